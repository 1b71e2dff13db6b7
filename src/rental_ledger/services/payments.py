"""Rent payment recording and arrears classification.

The module-level functions are pure and return new objects; PaymentService
loads and persists through the repositories.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal

from rental_ledger.domain.dates import month_key, parse_iso_date
from rental_ledger.domain.expenses import Expense
from rental_ledger.domain.rent import ArrearsEntry, RentRecord
from rental_ledger.domain.value_objects import (
    MAINTENANCE_CATEGORY,
    MAINTENANCE_DEDUCTION_NOTE,
    PartialReason,
    format_currency,
    to_decimal,
)
from rental_ledger.exceptions import (
    InvalidPartialReasonError,
    NegativeAmountError,
    NegativeShortfallError,
    PartialReasonRequiredError,
    RentRecordNotFoundError,
)
from rental_ledger.logging_config import get_logger
from rental_ledger.repositories.interfaces import RentRecordRepository, UnitRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class PaymentOutcome:
    """The updated record and, for a maintenance deduction, its expense."""

    record: RentRecord
    expense: Expense | None = None


def record_payment(
    record: RentRecord,
    payment_date: date,
    amount_received: Decimal | int | float | str,
    reason: PartialReason | str | None = None,
    notes: str = "",
    currency: str = "INR",
) -> PaymentOutcome:
    """Apply a payment to a rent record.

    - Full payment (received >= due): capped at the amount due, paid.
    - Short payment with reason MAINTENANCE: the shortfall becomes a
      Maintenance expense and the rent is settled in full.
    - Short payment with any other reason: recorded as an unpaid partial.

    Raises:
        NegativeAmountError: If amount_received is negative.
        PartialReasonRequiredError: If the payment is short and no reason is given.
        InvalidPartialReasonError: If a short payment's reason is unknown.
        NegativeShortfallError: If the maintenance shortfall is negative.
    """
    received = to_decimal(amount_received)
    if received < 0:
        raise NegativeAmountError("amount_received", received)

    if received >= record.amount:
        settled = replace(
            record,
            is_paid=True,
            amount_received=record.amount,
            payment_date=payment_date,
            is_partial_payment=False,
            partial_reason="",
        )
        return PaymentOutcome(record=settled)

    try:
        partial_reason = PartialReason.parse(reason)
    except ValueError:
        raise InvalidPartialReasonError(str(reason)) from None

    if partial_reason is None:
        raise PartialReasonRequiredError(record.id)

    if partial_reason is PartialReason.MAINTENANCE:
        shortfall = record.amount - received
        if shortfall < 0:
            raise NegativeShortfallError(record.id, str(shortfall))
        expense = Expense(
            date=payment_date,
            property_id=record.property_id,
            property_name=record.property_name,
            unit_id=record.unit_id,
            unit_number=record.unit_number,
            amount=shortfall,
            category=MAINTENANCE_CATEGORY,
            reason=f"Maintenance deduction from rent for Unit {record.unit_number}",
            notes=(
                f"Original rent: {format_currency(record.amount, currency)}, "
                f"Received: {format_currency(received, currency)}. "
                f"Maintenance cost: {format_currency(shortfall, currency)}"
                + (f". {notes}" if notes else "")
            ),
        )
        settled = replace(
            record,
            is_paid=True,
            amount_received=record.amount,
            payment_date=payment_date,
            is_partial_payment=False,
            partial_reason=MAINTENANCE_DEDUCTION_NOTE,
        )
        return PaymentOutcome(record=settled, expense=expense)

    if partial_reason is PartialReason.OTHER and notes.strip():
        reason_text = notes.strip()
    else:
        reason_text = partial_reason.value
    partial = replace(
        record,
        is_paid=False,
        amount_received=received,
        payment_date=payment_date,
        is_partial_payment=True,
        partial_reason=reason_text,
    )
    return PaymentOutcome(record=partial)


def mark_paid(record: RentRecord, today: date) -> RentRecord:
    return replace(
        record,
        is_paid=True,
        amount_received=record.amount,
        payment_date=today,
        is_partial_payment=False,
        partial_reason="",
    )


def mark_unpaid(record: RentRecord) -> RentRecord:
    return replace(
        record,
        is_paid=False,
        amount_received=Decimal("0"),
        payment_date=None,
        is_partial_payment=False,
        partial_reason="",
    )


def classify_arrears(
    records: Iterable[RentRecord],
    today: date,
    move_in_dates: Mapping[str, date | None] | None = None,
) -> list[ArrearsEntry]:
    """Return unpaid, overdue records with a positive balance, oldest first.

    A record counts only if its due date is strictly before ``today`` and,
    when the unit's move-in date is known, its month is not before the
    move-in month.
    """
    move_in_dates = move_in_dates or {}
    entries: list[ArrearsEntry] = []
    for record in records:
        remaining = record.amount - record.amount_received
        if record.is_paid or remaining <= 0 or record.due_date >= today:
            continue
        move_in = parse_iso_date(move_in_dates.get(record.unit_id))
        if move_in is not None and record.month_year < month_key(
            move_in.year, move_in.month
        ):
            continue
        entries.append(
            ArrearsEntry(
                record=record,
                days_overdue=max((today - record.due_date).days, 0),
                amount_remaining=remaining,
            )
        )
    entries.sort(
        key=lambda e: (-e.days_overdue, e.record.month_year, e.record.unit_number)
    )
    return entries


class PaymentService:
    """Payment edits, bulk status changes and arrears over the stored ledger."""

    def __init__(
        self,
        rent_record_repo: RentRecordRepository,
        unit_repo: UnitRepository,
        currency: str = "INR",
    ) -> None:
        self._rent_record_repo = rent_record_repo
        self._unit_repo = unit_repo
        self._currency = currency

    def get_record(self, record_id: str) -> RentRecord:
        record = self._rent_record_repo.get(record_id)
        if record is None:
            raise RentRecordNotFoundError(record_id)
        return record

    def record_payment(
        self,
        record_id: str,
        payment_date: date,
        amount_received: Decimal | int | float | str,
        reason: PartialReason | str | None = None,
        notes: str = "",
    ) -> PaymentOutcome:
        """Validate and persist a payment. Nothing is written on error."""
        record = self.get_record(record_id)
        outcome = record_payment(
            record,
            payment_date,
            amount_received,
            reason,
            notes=notes,
            currency=self._currency,
        )
        expenses = [outcome.expense] if outcome.expense else []
        self._rent_record_repo.apply_batch([outcome.record], expenses=expenses)

        if outcome.expense is not None:
            logger.info(
                "maintenance_expense_recorded",
                record_id=record_id,
                expense_id=outcome.expense.id,
                amount=str(outcome.expense.amount),
            )
        logger.info(
            "rent_payment_recorded",
            record_id=record_id,
            is_paid=outcome.record.is_paid,
            amount_received=str(outcome.record.amount_received),
        )
        return outcome

    def mark_many_paid(self, record_ids: Iterable[str], today: date) -> list[RentRecord]:
        updated = [mark_paid(r, today) for r in self._load_many(record_ids)]
        self._rent_record_repo.apply_batch(updated)
        logger.info("rent_records_marked_paid", count=len(updated))
        return updated

    def mark_many_unpaid(self, record_ids: Iterable[str]) -> list[RentRecord]:
        updated = [mark_unpaid(r) for r in self._load_many(record_ids)]
        self._rent_record_repo.apply_batch(updated)
        logger.info("rent_records_marked_unpaid", count=len(updated))
        return updated

    def delete_record(self, record_id: str) -> None:
        self.get_record(record_id)
        self._rent_record_repo.delete(record_id)
        logger.info("rent_record_deleted", record_id=record_id)

    def delete_many(self, record_ids: Iterable[str]) -> int:
        records = self._load_many(record_ids)
        self._rent_record_repo.apply_batch([], deletes=[r.id for r in records])
        logger.info("rent_records_deleted", count=len(records))
        return len(records)

    def arrears(self, today: date, property_id: str | None = None) -> list[ArrearsEntry]:
        if property_id:
            records = self._rent_record_repo.list_by_property(property_id)
        else:
            records = self._rent_record_repo.list_all()
        move_in_dates = {u.id: u.move_in_date for u in self._unit_repo.list_all()}
        return classify_arrears(records, today, move_in_dates)

    def _load_many(self, record_ids: Iterable[str]) -> list[RentRecord]:
        # Resolve every id before writing so an unknown id changes nothing.
        return [self.get_record(record_id) for record_id in dict.fromkeys(record_ids)]
