from rental_ledger.repositories.interfaces import (
    ExpenseRepository,
    PropertyRepository,
    RentRecordRepository,
    UnitRepository,
)
from rental_ledger.repositories.sqlite import (
    SQLiteDatabase,
    SQLiteExpenseRepository,
    SQLitePropertyRepository,
    SQLiteRentRecordRepository,
    SQLiteUnitRepository,
)

__all__ = [
    "ExpenseRepository",
    "PropertyRepository",
    "RentRecordRepository",
    "UnitRepository",
    "SQLiteDatabase",
    "SQLiteExpenseRepository",
    "SQLitePropertyRepository",
    "SQLiteRentRecordRepository",
    "SQLiteUnitRepository",
]
