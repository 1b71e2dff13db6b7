"""Reconciliation of computed rent obligations against stored rent records.

Merging rules per (unit, month) key:
- No stored record: create an unpaid record.
- Stored and paid: keep every financial and payment field, refresh only the
  display names (property, unit, tenant).
- Stored and unpaid: take amount and due date from the obligation. Partial
  payment markers are cleared only when the amount or due date changed;
  otherwise a recorded partial payment is kept as is.

Applying the resulting plan twice is a no-op the second time.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal

from rental_ledger.domain.properties import Unit
from rental_ledger.domain.rent import RentObligation, RentRecord, RentRecordKey
from rental_ledger.exceptions import (
    LedgerPersistenceError,
    PropertyNotFoundError,
    RentValidationError,
    UnitNotFoundError,
)
from rental_ledger.logging_config import LogContext, get_logger
from rental_ledger.repositories.interfaces import (
    PropertyRepository,
    RentRecordRepository,
    UnitRepository,
)
from rental_ledger.services.schedule import generate_schedule

logger = get_logger(__name__)


@dataclass
class ReconciliationPlan:
    """Records to write for one reconciliation pass."""

    to_create: list[RentRecord] = field(default_factory=list)
    to_update: list[RentRecord] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_create and not self.to_update

    @property
    def writes(self) -> list[RentRecord]:
        return [*self.to_create, *self.to_update]


@dataclass
class ReconciliationResult:
    """Outcome of reconciling one unit."""

    unit_id: str
    created: int = 0
    updated: int = 0
    skipped: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _refresh_display(record: RentRecord, obligation: RentObligation) -> RentRecord:
    return replace(
        record,
        property_id=obligation.property_id,
        property_name=obligation.property_name,
        unit_number=obligation.unit_number,
        tenant_name=obligation.tenant_name,
    )


def _refresh_unpaid(record: RentRecord, obligation: RentObligation) -> RentRecord:
    refreshed = _refresh_display(record, obligation)
    if (record.amount, record.due_date) == (obligation.amount, obligation.due_date):
        return refreshed
    return replace(
        refreshed,
        amount=obligation.amount,
        due_date=obligation.due_date,
        is_paid=False,
        amount_received=Decimal("0"),
        payment_date=None,
        is_partial_payment=False,
        partial_reason="",
    )


def reconcile(
    existing: Mapping[RentRecordKey, RentRecord],
    obligations: Iterable[RentObligation],
) -> ReconciliationPlan:
    """Work out which records to create and which to update.

    ``existing`` is not modified. Unchanged records are left out of the plan.
    """
    plan = ReconciliationPlan()
    for obligation in obligations:
        current = existing.get(obligation.key)
        if current is None:
            plan.to_create.append(RentRecord.from_obligation(obligation))
            continue

        if current.is_paid:
            refreshed = _refresh_display(current, obligation)
        else:
            refreshed = _refresh_unpaid(current, obligation)

        if refreshed != current:
            plan.to_update.append(refreshed)
    return plan


def index_by_key(records: Iterable[RentRecord]) -> dict[RentRecordKey, RentRecord]:
    return {record.key: record for record in records}


class RentLedgerService:
    """Keeps each unit's stored rent records in step with its schedule."""

    def __init__(
        self,
        property_repo: PropertyRepository,
        unit_repo: UnitRepository,
        rent_record_repo: RentRecordRepository,
    ) -> None:
        self._property_repo = property_repo
        self._unit_repo = unit_repo
        self._rent_record_repo = rent_record_repo

    def regenerate_unit(self, unit_id: str, as_of: date) -> ReconciliationResult:
        """Bring one unit's rent records up to ``as_of``.

        The unit's writes land in a single batch, so a failure leaves the
        previously stored records untouched and the call can be retried.

        Raises:
            UnitNotFoundError: If the unit does not exist.
            PropertyNotFoundError: If the unit's property does not exist.
            LedgerPersistenceError: If the batch could not be written.
        """
        unit = self._unit_repo.get(unit_id)
        if unit is None:
            raise UnitNotFoundError(unit_id)
        return self._regenerate(unit, as_of)

    def catch_up_all(self, as_of: date) -> list[ReconciliationResult]:
        """Regenerate every unit. One unit's failure never blocks the others."""
        results: list[ReconciliationResult] = []
        for unit in self._unit_repo.list_all():
            try:
                results.append(self._regenerate(unit, as_of))
            except (
                LedgerPersistenceError,
                PropertyNotFoundError,
                RentValidationError,
            ) as e:
                logger.error(
                    "unit_reconciliation_failed",
                    unit_id=unit.id,
                    error=e.message,
                )
                results.append(ReconciliationResult(unit_id=unit.id, error=e.message))

        logger.info(
            "rent_catch_up_completed",
            as_of=as_of.isoformat(),
            units=len(results),
            created=sum(r.created for r in results),
            updated=sum(r.updated for r in results),
            skipped=sum(1 for r in results if r.skipped),
            failed=sum(1 for r in results if not r.ok),
        )
        return results

    def _regenerate(self, unit: Unit, as_of: date) -> ReconciliationResult:
        prop = self._property_repo.get(unit.property_id)
        if prop is None:
            raise PropertyNotFoundError(unit.property_id)

        with LogContext(unit_id=unit.id):
            obligations = generate_schedule(unit, prop, as_of)
            if not obligations and unit.move_in_date is None:
                return ReconciliationResult(unit_id=unit.id, skipped=True)

            existing = index_by_key(self._rent_record_repo.list_by_unit(unit.id))
            plan = reconcile(existing, obligations)
            if not plan.is_empty:
                self._rent_record_repo.apply_batch(plan.writes)

            logger.info(
                "rent_records_reconciled",
                created=len(plan.to_create),
                updated=len(plan.to_update),
            )
        return ReconciliationResult(
            unit_id=unit.id,
            created=len(plan.to_create),
            updated=len(plan.to_update),
        )
