from rental_ledger.domain.expenses import Expense
from rental_ledger.domain.properties import Property, Unit
from rental_ledger.domain.rent import (
    ArrearsEntry,
    RentObligation,
    RentRecord,
    RentRecordKey,
)
from rental_ledger.domain.value_objects import (
    MAINTENANCE_CATEGORY,
    MAINTENANCE_DEDUCTION_NOTE,
    Currency,
    PartialReason,
)

__all__ = [
    "ArrearsEntry",
    "Currency",
    "Expense",
    "MAINTENANCE_CATEGORY",
    "MAINTENANCE_DEDUCTION_NOTE",
    "PartialReason",
    "Property",
    "RentObligation",
    "RentRecord",
    "RentRecordKey",
    "Unit",
]
