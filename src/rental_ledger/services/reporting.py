"""Dashboard and report figures over rent records and expenses."""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any

from dateutil.relativedelta import relativedelta  # type: ignore[import-untyped]

from rental_ledger.domain.dates import iter_months, month_key
from rental_ledger.domain.expenses import Expense
from rental_ledger.domain.rent import RentRecord
from rental_ledger.repositories.interfaces import (
    ExpenseRepository,
    PropertyRepository,
    RentRecordRepository,
)


def rent_collected(records: list[RentRecord]) -> Decimal:
    """Received amounts on paid records. Partial receipts count once settled."""
    return sum((r.amount_received for r in records if r.is_paid), Decimal("0"))


def rent_unpaid(records: list[RentRecord]) -> Decimal:
    remaining = (r.amount - r.amount_received for r in records if not r.is_paid)
    return sum((max(value, Decimal("0")) for value in remaining), Decimal("0"))


def total_expenses(expenses: list[Expense]) -> Decimal:
    return sum((e.amount for e in expenses), Decimal("0"))


class ReportingService:
    """Generates the summary, trend and breakdown reports."""

    def __init__(
        self,
        rent_record_repo: RentRecordRepository,
        expense_repo: ExpenseRepository,
        property_repo: PropertyRepository,
    ) -> None:
        self._rent_record_repo = rent_record_repo
        self._expense_repo = expense_repo
        self._property_repo = property_repo

    def summary(
        self, start_date: date, end_date: date, property_id: str | None = None
    ) -> dict[str, Any]:
        """Rent collected, rent outstanding, expenses and net income for a period.

        Rent records are placed in the period by their due date.
        """
        records = self._records_between(start_date, end_date, property_id)
        expenses = list(
            self._expense_repo.list_by_date_range(start_date, end_date, property_id)
        )

        collected = rent_collected(records)
        unpaid = rent_unpaid(records)
        spent = total_expenses(expenses)

        return {
            "report_name": "Rent Summary",
            "date_range": {"start_date": start_date, "end_date": end_date},
            "property_id": property_id,
            "totals": {
                "rent_collected": collected,
                "rent_unpaid": unpaid,
                "total_expenses": spent,
                "net_income": collected - spent,
            },
            "record_count": len(records),
            "unpaid_count": sum(1 for r in records if not r.is_paid),
            "has_unpaid_alert": unpaid > 0,
        }

    def monthly_net_income(self, as_of: date, months: int = 12) -> list[dict[str, Any]]:
        """Rent collected, expenses and net per month, oldest month first."""
        if months < 1:
            return []
        first = as_of.replace(day=1) - relativedelta(months=months - 1)
        keys = [month_key(y, m) for y, m in iter_months(first, as_of)]

        wanted = set(keys)
        collected: dict[str, Decimal] = defaultdict(Decimal)
        for record in self._rent_record_repo.list_all():
            if record.is_paid and record.month_year in wanted:
                collected[record.month_year] += record.amount_received

        spent: dict[str, Decimal] = defaultdict(Decimal)
        last = first + relativedelta(months=months, days=-1)
        for expense in self._expense_repo.list_by_date_range(first, last):
            spent[month_key(expense.date.year, expense.date.month)] += expense.amount

        return [
            {
                "month": key,
                "rent_collected": collected[key],
                "expenses": spent[key],
                "net_income": collected[key] - spent[key],
            }
            for key in keys
        ]

    def profit_loss_by_property(
        self, start_date: date, end_date: date
    ) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        for prop in self._property_repo.list_all():
            records = self._records_between(start_date, end_date, prop.id)
            expenses = list(
                self._expense_repo.list_by_date_range(start_date, end_date, prop.id)
            )
            collected = rent_collected(records)
            spent = total_expenses(expenses)
            rows.append(
                {
                    "property_id": prop.id,
                    "property_name": prop.name,
                    "rent_collected": collected,
                    "expenses": spent,
                    "net_income": collected - spent,
                }
            )
        return rows

    def expenses_by_category(
        self, start_date: date, end_date: date, property_id: str | None = None
    ) -> dict[str, Decimal]:
        """Expense totals keyed by category, largest first."""
        totals: dict[str, Decimal] = defaultdict(Decimal)
        for expense in self._expense_repo.list_by_date_range(
            start_date, end_date, property_id
        ):
            totals[expense.category] += expense.amount
        return dict(sorted(totals.items(), key=lambda item: (-item[1], item[0])))

    def _records_between(
        self, start_date: date, end_date: date, property_id: str | None
    ) -> list[RentRecord]:
        if property_id:
            records = self._rent_record_repo.list_by_property(property_id)
        else:
            records = self._rent_record_repo.list_all()
        return [r for r in records if start_date <= r.due_date <= end_date]
