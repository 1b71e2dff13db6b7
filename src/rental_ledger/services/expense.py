from datetime import date
from decimal import Decimal

from rental_ledger.domain.expenses import Expense
from rental_ledger.domain.value_objects import to_decimal
from rental_ledger.exceptions import (
    NegativeAmountError,
    NotFoundError,
    PropertyNotFoundError,
    RentValidationError,
    UnitNotFoundError,
)
from rental_ledger.logging_config import get_logger
from rental_ledger.repositories.interfaces import (
    ExpenseRepository,
    PropertyRepository,
    UnitRepository,
)

logger = get_logger(__name__)


class ExpenseService:
    def __init__(
        self,
        expense_repo: ExpenseRepository,
        property_repo: PropertyRepository,
        unit_repo: UnitRepository,
    ) -> None:
        self._expense_repo = expense_repo
        self._property_repo = property_repo
        self._unit_repo = unit_repo

    def add_expense(
        self,
        expense_date: date,
        property_id: str,
        amount: Decimal | int | float | str,
        category: str,
        unit_id: str | None = None,
        reason: str = "",
        notes: str = "",
    ) -> Expense:
        value = to_decimal(amount)
        if value < 0:
            raise NegativeAmountError("amount", value)
        if not category.strip():
            raise RentValidationError("Expense category is required")

        prop = self._property_repo.get(property_id)
        if prop is None:
            raise PropertyNotFoundError(property_id)
        unit_number = ""
        if unit_id:
            unit = self._unit_repo.get(unit_id)
            if unit is None:
                raise UnitNotFoundError(unit_id)
            unit_number = unit.number

        expense = Expense(
            date=expense_date,
            property_id=prop.id,
            property_name=prop.name,
            unit_id=unit_id or None,
            unit_number=unit_number,
            amount=value,
            category=category.strip(),
            reason=reason,
            notes=notes,
        )
        self._expense_repo.add(expense)
        logger.info(
            "expense_recorded",
            expense_id=expense.id,
            property_id=prop.id,
            category=expense.category,
            amount=str(value),
        )
        return expense

    def list_expenses(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
        property_id: str | None = None,
    ) -> list[Expense]:
        if start_date is None and end_date is None:
            expenses = list(self._expense_repo.list_all())
            if property_id:
                expenses = [e for e in expenses if e.property_id == property_id]
            return expenses
        return list(
            self._expense_repo.list_by_date_range(
                start_date or date.min, end_date or date.max, property_id
            )
        )

    def delete_expense(self, expense_id: str) -> None:
        if self._expense_repo.get(expense_id) is None:
            raise NotFoundError(
                f"Expense not found: {expense_id}",
                error_code="EXPENSE_NOT_FOUND",
                context={"expense_id": expense_id},
            )
        self._expense_repo.delete(expense_id)
        logger.info("expense_deleted", expense_id=expense_id)
