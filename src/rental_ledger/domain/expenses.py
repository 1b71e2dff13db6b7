from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import uuid4


@dataclass
class Expense:
    """An expense booked against a property (and optionally one unit)."""

    date: date
    property_id: str
    amount: Decimal
    category: str
    id: str = field(default_factory=lambda: uuid4().hex)
    property_name: str = ""
    unit_id: str | None = None
    unit_number: str = ""
    reason: str = ""
    notes: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            self.amount = Decimal(str(self.amount))
