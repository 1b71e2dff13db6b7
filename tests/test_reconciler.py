from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from rental_ledger.domain.properties import Property, Unit
from rental_ledger.exceptions import UnitNotFoundError
from rental_ledger.repositories.sqlite import (
    SQLiteDatabase,
    SQLitePropertyRepository,
    SQLiteRentRecordRepository,
    SQLiteUnitRepository,
)
from rental_ledger.services.reconciler import (
    RentLedgerService,
    index_by_key,
    reconcile,
)
from rental_ledger.services.schedule import generate_schedule


@pytest.fixture
def prop() -> Property:
    return Property(name="Lakeview Apartments")


@pytest.fixture
def unit(prop: Property) -> Unit:
    return Unit(
        property_id=prop.id,
        property_name=prop.name,
        number="101",
        tenant_name="Asha Rao",
        rent_amount=Decimal("1000"),
        move_in_date=date(2024, 1, 15),
    )


def apply_plan(existing, plan):
    merged = dict(existing)
    for record in plan.writes:
        merged[record.key] = record
    return merged


class TestReconcile:
    def test_creates_unpaid_records_when_store_is_empty(self, prop, unit):
        obligations = generate_schedule(unit, prop, date(2024, 4, 10))

        plan = reconcile({}, obligations)

        assert len(plan.to_create) == 4
        assert plan.to_update == []
        for record in plan.to_create:
            assert record.is_paid is False
            assert record.amount_received == Decimal("0")
            assert record.payment_date is None
            assert record.is_partial_payment is False
            assert record.partial_reason == ""

    def test_second_pass_is_a_no_op(self, prop, unit):
        obligations = generate_schedule(unit, prop, date(2024, 4, 10))
        stored = apply_plan({}, reconcile({}, obligations))

        second = reconcile(stored, obligations)

        assert second.is_empty
        assert apply_plan(stored, second) == stored

    def test_paid_record_keeps_payment_fields(self, prop, unit):
        obligations = generate_schedule(unit, prop, date(2024, 4, 10))
        stored = apply_plan({}, reconcile({}, obligations))
        jan = next(r for r in stored.values() if r.month_year == "2024-01")
        paid = replace(
            jan,
            is_paid=True,
            amount_received=Decimal("1000"),
            payment_date=date(2024, 1, 16),
            partial_reason="Maintenance deduction",
        )
        stored[paid.key] = paid

        raised = replace(unit, rent_amount=Decimal("1500"), tenant_name="A. Rao")
        plan = reconcile(stored, generate_schedule(raised, prop, date(2024, 4, 10)))
        result = apply_plan(stored, plan)[paid.key]

        assert result.is_paid is True
        assert result.amount == Decimal("1000")
        assert result.amount_received == Decimal("1000")
        assert result.payment_date == date(2024, 1, 16)
        assert result.partial_reason == "Maintenance deduction"
        assert result.tenant_name == "A. Rao"

    def test_rent_change_on_unpaid_record_clears_partial_markers(self, prop, unit):
        obligations = generate_schedule(unit, prop, date(2024, 2, 1))
        stored = apply_plan({}, reconcile({}, obligations))
        feb = next(r for r in stored.values() if r.month_year == "2024-02")
        stored[feb.key] = replace(
            feb,
            amount_received=Decimal("400"),
            is_partial_payment=True,
            partial_reason="Late Payment",
            payment_date=date(2024, 2, 16),
        )

        raised = replace(unit, rent_amount=Decimal("1100"))
        plan = reconcile(stored, generate_schedule(raised, prop, date(2024, 2, 1)))
        refreshed = apply_plan(stored, plan)[feb.key]

        assert refreshed.amount == Decimal("1100")
        assert refreshed.amount_received == Decimal("0")
        assert refreshed.is_partial_payment is False
        assert refreshed.partial_reason == ""
        assert refreshed.payment_date is None

    def test_unchanged_unpaid_record_keeps_partial_payment(self, prop, unit):
        obligations = generate_schedule(unit, prop, date(2024, 2, 1))
        stored = apply_plan({}, reconcile({}, obligations))
        feb = next(r for r in stored.values() if r.month_year == "2024-02")
        stored[feb.key] = replace(
            feb,
            amount_received=Decimal("400"),
            is_partial_payment=True,
            partial_reason="Late Payment",
            payment_date=date(2024, 2, 16),
        )

        renamed = replace(unit, tenant_name="A. Rao")
        plan = reconcile(stored, generate_schedule(renamed, prop, date(2024, 2, 1)))
        kept = apply_plan(stored, plan)[feb.key]

        assert kept.tenant_name == "A. Rao"
        assert kept.amount_received == Decimal("400")
        assert kept.is_partial_payment is True
        assert kept.partial_reason == "Late Payment"
        assert kept.payment_date == date(2024, 2, 16)
        second = reconcile(
            apply_plan(stored, plan),
            generate_schedule(renamed, prop, date(2024, 2, 1)),
        )
        assert second.is_empty

    def test_does_not_mutate_existing_mapping(self, prop, unit):
        obligations = generate_schedule(unit, prop, date(2024, 2, 1))
        stored = apply_plan({}, reconcile({}, obligations))
        snapshot = dict(stored)

        cheaper = replace(unit, rent_amount=Decimal("5"))
        reconcile(stored, generate_schedule(cheaper, prop, date(2024, 2, 1)))

        assert stored == snapshot

    def test_index_by_key_uses_unit_and_month(self, prop, unit):
        records = reconcile({}, generate_schedule(unit, prop, date(2024, 2, 1))).to_create

        index = index_by_key(records)

        assert {k.month_year for k in index} == {"2024-01", "2024-02"}
        assert all(k.unit_id == unit.id for k in index)


@pytest.fixture
def ledger(db: SQLiteDatabase):
    property_repo = SQLitePropertyRepository(db)
    unit_repo = SQLiteUnitRepository(db)
    record_repo = SQLiteRentRecordRepository(db)
    return (
        RentLedgerService(property_repo, unit_repo, record_repo),
        property_repo,
        unit_repo,
        record_repo,
    )


class TestRentLedgerService:
    def test_regenerate_unit_end_to_end(self, ledger, prop, unit):
        service, property_repo, unit_repo, record_repo = ledger
        property_repo.add(prop)
        unit_repo.add(unit)

        result = service.regenerate_unit(unit.id, date(2024, 4, 10))
        records = list(record_repo.list_by_unit(unit.id))

        assert result.created == 4
        assert [r.month_year for r in records] == [
            "2024-01",
            "2024-02",
            "2024-03",
            "2024-04",
        ]
        assert {r.due_date.day for r in records} == {15}

    def test_regenerate_twice_creates_no_duplicates(self, ledger, prop, unit):
        service, property_repo, unit_repo, record_repo = ledger
        property_repo.add(prop)
        unit_repo.add(unit)

        service.regenerate_unit(unit.id, date(2024, 4, 10))
        before = list(record_repo.list_by_unit(unit.id))
        second = service.regenerate_unit(unit.id, date(2024, 4, 10))
        after = list(record_repo.list_by_unit(unit.id))

        assert second.created == 0
        assert second.updated == 0
        assert before == after

    def test_regenerate_missing_unit_raises(self, ledger):
        service = ledger[0]

        with pytest.raises(UnitNotFoundError):
            service.regenerate_unit("missing", date(2024, 1, 1))

    def test_catch_up_skips_unit_without_move_in(self, ledger, prop, unit):
        service, property_repo, unit_repo, record_repo = ledger
        property_repo.add(prop)
        unit_repo.add(unit)
        vacant = replace(unit, id="vacant-unit", number="102", move_in_date=None)
        unit_repo.add(vacant)

        results = {r.unit_id: r for r in service.catch_up_all(date(2024, 2, 1))}

        assert results["vacant-unit"].skipped is True
        assert results[unit.id].created == 2
        assert list(record_repo.list_by_unit("vacant-unit")) == []

    def test_catch_up_continues_after_unit_failure(self, ledger, prop, unit):
        service, property_repo, unit_repo, record_repo = ledger
        property_repo.add(prop)
        unit_repo.add(unit)
        broken = replace(unit, id="broken-unit", number="103", rent_amount=Decimal("-5"))
        unit_repo.add(broken)

        results = {r.unit_id: r for r in service.catch_up_all(date(2024, 2, 1))}

        assert results["broken-unit"].ok is False
        assert results[unit.id].ok is True
        assert len(list(record_repo.list_by_unit(unit.id))) == 2
