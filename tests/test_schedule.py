from datetime import date
from decimal import Decimal

import pytest

from rental_ledger.domain.properties import Property, Unit
from rental_ledger.exceptions import NegativeAmountError
from rental_ledger.services.schedule import generate_schedule, rent_for_period


@pytest.fixture
def prop() -> Property:
    return Property(name="Lakeview Apartments")


def make_unit(prop: Property, **overrides) -> Unit:
    fields = {
        "property_id": prop.id,
        "number": "101",
        "tenant_name": "Asha Rao",
        "rent_amount": Decimal("1000"),
        "move_in_date": date(2024, 1, 15),
    }
    fields.update(overrides)
    return Unit(**fields)


class TestGenerateSchedule:
    def test_one_obligation_per_month_through_as_of(self, prop):
        unit = make_unit(prop)

        obligations = generate_schedule(unit, prop, date(2024, 4, 10))

        assert [o.month_year for o in obligations] == [
            "2024-01",
            "2024-02",
            "2024-03",
            "2024-04",
        ]
        assert all(o.amount == Decimal("1000") for o in obligations)
        assert [o.due_date.day for o in obligations] == [15, 15, 15, 15]

    def test_obligations_carry_display_fields(self, prop):
        unit = make_unit(prop)

        first = generate_schedule(unit, prop, date(2024, 1, 20))[0]

        assert first.unit_id == unit.id
        assert first.property_id == prop.id
        assert first.property_name == "Lakeview Apartments"
        assert first.unit_number == "101"
        assert first.tenant_name == "Asha Rao"

    def test_includes_as_of_month_even_before_due_day(self, prop):
        unit = make_unit(prop)

        obligations = generate_schedule(unit, prop, date(2024, 2, 1))

        assert obligations[-1].month_year == "2024-02"
        assert obligations[-1].due_date == date(2024, 2, 15)

    def test_no_future_months(self, prop):
        unit = make_unit(prop, move_in_date=date(2024, 6, 1))

        assert generate_schedule(unit, prop, date(2024, 5, 31)) == []

    def test_move_in_on_31st_clamps_short_months(self, prop):
        unit = make_unit(prop, move_in_date=date(2024, 1, 31))

        obligations = generate_schedule(unit, prop, date(2024, 5, 1))
        due = {o.month_year: o.due_date for o in obligations}

        assert due["2024-02"] == date(2024, 2, 29)
        assert due["2024-03"] == date(2024, 3, 31)
        assert due["2024-04"] == date(2024, 4, 30)

    def test_clamp_in_common_year(self, prop):
        unit = make_unit(prop, move_in_date=date(2023, 1, 31))

        obligations = generate_schedule(unit, prop, date(2023, 2, 1))

        assert obligations[1].due_date == date(2023, 2, 28)

    def test_increment_applies_from_effective_date(self, prop):
        unit = make_unit(
            prop,
            rent_increment_amount=Decimal("200"),
            rent_increment_effective_date=date(2024, 3, 1),
        )

        amounts = {
            o.month_year: o.amount
            for o in generate_schedule(unit, prop, date(2024, 5, 1))
        }

        assert amounts["2024-02"] == Decimal("1000")
        assert amounts["2024-03"] == Decimal("1200")
        assert amounts["2024-05"] == Decimal("1200")

    def test_missing_move_in_date_yields_nothing(self, prop):
        unit = make_unit(prop, move_in_date=None)

        assert generate_schedule(unit, prop, date(2024, 4, 1)) == []

    def test_negative_rent_rejected(self, prop):
        unit = make_unit(prop, rent_amount=Decimal("-1"))

        with pytest.raises(NegativeAmountError):
            generate_schedule(unit, prop, date(2024, 4, 1))

    def test_deterministic_for_same_inputs(self, prop):
        unit = make_unit(prop)
        as_of = date(2024, 12, 1)

        assert generate_schedule(unit, prop, as_of) == generate_schedule(
            unit, prop, as_of
        )


class TestRentForPeriod:
    def test_increment_not_applied_without_effective_date(self, prop):
        unit = make_unit(prop, rent_increment_amount=Decimal("200"))

        assert unit.has_increment is False
        assert rent_for_period(unit, date(2030, 1, 1)) == Decimal("1000")

    def test_zero_increment_with_effective_date_is_ignored(self, prop):
        unit = make_unit(prop, rent_increment_effective_date=date(2024, 2, 1))

        assert unit.has_increment is False
        assert rent_for_period(unit, date(2024, 6, 15)) == Decimal("1000")

    def test_increment_is_a_single_flat_step(self, prop):
        unit = make_unit(
            prop,
            rent_increment_amount=Decimal("200"),
            rent_increment_effective_date=date(2024, 3, 1),
        )

        assert rent_for_period(unit, date(2026, 3, 15)) == Decimal("1200")

    def test_due_date_before_effective_date_in_same_month(self, prop):
        unit = make_unit(
            prop,
            rent_increment_amount=Decimal("200"),
            rent_increment_effective_date=date(2024, 3, 20),
        )

        assert rent_for_period(unit, date(2024, 3, 15)) == Decimal("1000")
