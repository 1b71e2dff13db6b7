"""Domain models for rental properties and their units."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import uuid4


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return uuid4().hex


@dataclass
class Property:
    """A rental property. Owns zero or more units."""

    name: str
    id: str = field(default_factory=_new_id)
    address: str = ""
    notes: str = ""
    image_url: str = ""
    created_at: datetime = field(default_factory=_utc_now)


@dataclass
class Unit:
    """A rentable unit inside a property, with its current tenancy.

    ``property_name`` is denormalized for display and export.
    """

    property_id: str
    number: str
    tenant_name: str
    rent_amount: Decimal
    move_in_date: date | None
    id: str = field(default_factory=_new_id)
    property_name: str = ""

    # Tenant contact
    phone_number: str = ""
    email: str = ""
    emergency_contact_name: str = ""
    emergency_contact_phone: str = ""

    # Lease
    lease_start_date: date | None = None
    lease_end_date: date | None = None
    lease_term: str = ""
    security_deposit_amount: Decimal = Decimal("0")

    # One-time flat rent step
    rent_increment_amount: Decimal = Decimal("0")
    rent_increment_effective_date: date | None = None

    notes: str = ""
    created_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        for name in ("rent_amount", "security_deposit_amount", "rent_increment_amount"):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                setattr(self, name, Decimal(str(value or 0)))

    def rent_fields(self) -> tuple[Decimal, date | None, Decimal, date | None]:
        """Fields whose change requires regenerating the rent schedule."""
        return (
            self.rent_amount,
            self.move_in_date,
            self.rent_increment_amount,
            self.rent_increment_effective_date,
        )

    @property
    def has_increment(self) -> bool:
        return (
            self.rent_increment_amount > Decimal("0")
            and self.rent_increment_effective_date is not None
        )
