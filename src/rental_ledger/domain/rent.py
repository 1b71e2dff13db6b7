"""Domain models for monthly rent obligations and ledger lines."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal

from rental_ledger.domain.dates import parse_month_key


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True, order=True)
class RentRecordKey:
    """Stable identity of a rent record: one unit, one calendar month."""

    unit_id: str
    month_year: str

    def __post_init__(self) -> None:
        if not self.unit_id:
            raise ValueError("unit_id is required")
        parse_month_key(self.month_year)

    @property
    def record_id(self) -> str:
        """Canonical document id derived from the key."""
        return f"{self.unit_id}_{self.month_year}"

    @classmethod
    def from_record_id(cls, record_id: str) -> "RentRecordKey":
        unit_id, sep, month_year = record_id.rpartition("_")
        if not sep:
            raise ValueError(f"Not a rent record id: {record_id!r}")
        return cls(unit_id, month_year)


@dataclass(frozen=True, slots=True)
class RentObligation:
    """A computed, not yet persisted, month of rent for a unit."""

    unit_id: str
    property_id: str
    month_year: str
    due_date: date
    amount: Decimal
    tenant_name: str
    unit_number: str
    property_name: str

    @property
    def key(self) -> RentRecordKey:
        return RentRecordKey(self.unit_id, self.month_year)


@dataclass
class RentRecord:
    """The persisted ledger line for one unit and one month.

    Payment fields (is_paid, amount_received, payment_date,
    is_partial_payment, partial_reason) change only through payment
    operations, never through schedule regeneration of a paid record.
    """

    unit_id: str
    property_id: str
    month_year: str
    due_date: date
    amount: Decimal
    property_name: str = ""
    unit_number: str = ""
    tenant_name: str = ""
    is_paid: bool = False
    amount_received: Decimal = Decimal("0")
    payment_date: date | None = None
    is_partial_payment: bool = False
    partial_reason: str = ""
    created_at: datetime = field(default_factory=_utc_now)

    @property
    def key(self) -> RentRecordKey:
        return RentRecordKey(self.unit_id, self.month_year)

    @property
    def id(self) -> str:
        return self.key.record_id

    @property
    def amount_remaining(self) -> Decimal:
        return self.amount - self.amount_received

    @classmethod
    def from_obligation(
        cls, obligation: RentObligation, created_at: datetime | None = None
    ) -> "RentRecord":
        """Create a fresh unpaid record for an obligation."""
        return cls(
            unit_id=obligation.unit_id,
            property_id=obligation.property_id,
            month_year=obligation.month_year,
            due_date=obligation.due_date,
            amount=obligation.amount,
            property_name=obligation.property_name,
            unit_number=obligation.unit_number,
            tenant_name=obligation.tenant_name,
            created_at=created_at or _utc_now(),
        )


@dataclass(frozen=True, slots=True)
class ArrearsEntry:
    """An unpaid, overdue rent record with its age and outstanding balance."""

    record: RentRecord
    days_overdue: int
    amount_remaining: Decimal
