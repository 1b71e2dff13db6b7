from rental_ledger.domain.expenses import Expense
from rental_ledger.domain.properties import Property, Unit
from rental_ledger.domain.rent import (
    ArrearsEntry,
    RentObligation,
    RentRecord,
    RentRecordKey,
)
from rental_ledger.domain.value_objects import Currency, PartialReason

__all__ = [
    "ArrearsEntry",
    "Currency",
    "Expense",
    "PartialReason",
    "Property",
    "RentObligation",
    "RentRecord",
    "RentRecordKey",
    "Unit",
]

__version__ = "0.1.0"
