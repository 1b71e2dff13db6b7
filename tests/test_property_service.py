from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from rental_ledger.container import Container
from rental_ledger.domain.properties import Unit
from rental_ledger.exceptions import (
    InvalidMoveInDateError,
    NegativeAmountError,
    PropertyNotFoundError,
    RentValidationError,
    UnitNotFoundError,
)

AS_OF = date(2024, 4, 10)


@pytest.fixture
def service(container: Container):
    return container.property_service


def new_unit(property_id: str, **overrides) -> Unit:
    fields = {
        "property_id": property_id,
        "number": "101",
        "tenant_name": "Asha Rao",
        "rent_amount": Decimal("1000"),
        "move_in_date": date(2024, 1, 15),
    }
    fields.update(overrides)
    return Unit(**fields)


class TestProperties:
    def test_create_and_list(self, service):
        service.create_property("Lakeview")
        service.create_property("Hillside")

        assert [p.name for p in service.list_properties()] == ["Hillside", "Lakeview"]

    def test_blank_name_rejected(self, service):
        with pytest.raises(RentValidationError):
            service.create_property("   ")

    def test_get_missing_raises(self, service):
        with pytest.raises(PropertyNotFoundError):
            service.get("missing")

    def test_rename_refreshes_units_and_records(self, service, container):
        prop = service.create_property("Lakeview")
        unit, _ = service.add_unit(new_unit(prop.id), as_of=AS_OF)
        container.payment_service.record_payment(
            f"{unit.id}_2024-01", date(2024, 1, 15), Decimal("1000")
        )

        service.update_property(replace(prop, name="Lakeview Towers"), as_of=AS_OF)

        assert service.get_unit(unit.id).property_name == "Lakeview Towers"
        records = container.rent_record_repo.list_by_unit(unit.id)
        assert {r.property_name for r in records} == {"Lakeview Towers"}
        assert container.rent_record_repo.get(f"{unit.id}_2024-01").is_paid is True

    def test_delete_cascades(self, service, container):
        prop = service.create_property("Lakeview")
        unit, _ = service.add_unit(new_unit(prop.id), as_of=AS_OF)

        removed = service.delete_property(prop.id)

        assert removed == 1
        assert service.list_properties() == []
        assert container.unit_repo.get(unit.id) is None
        assert list(container.rent_record_repo.list_by_unit(unit.id)) == []


class TestUnits:
    def test_add_unit_generates_records(self, service, container):
        prop = service.create_property("Lakeview")

        unit, result = service.add_unit(new_unit(prop.id), as_of=AS_OF)

        assert unit.property_name == "Lakeview"
        assert result.created == 4
        records = list(container.rent_record_repo.list_by_unit(unit.id))
        assert [r.month_year for r in records] == [
            "2024-01",
            "2024-02",
            "2024-03",
            "2024-04",
        ]
        assert all(not r.is_paid for r in records)

    def test_add_unit_with_unknown_property(self, service):
        with pytest.raises(PropertyNotFoundError):
            service.add_unit(new_unit("missing"), as_of=AS_OF)

    def test_add_unit_without_move_in_rejected(self, service, container):
        prop = service.create_property("Lakeview")

        with pytest.raises(InvalidMoveInDateError):
            service.add_unit(new_unit(prop.id, move_in_date=None), as_of=AS_OF)

        assert service.list_units(prop.id) == []

    def test_add_unit_with_negative_rent_rejected(self, service):
        prop = service.create_property("Lakeview")

        with pytest.raises(NegativeAmountError):
            service.add_unit(
                new_unit(prop.id, rent_amount=Decimal("-100")), as_of=AS_OF
            )

    def test_increment_added_later_corrects_unpaid_months(self, service, container):
        prop = service.create_property("Lakeview")
        unit, _ = service.add_unit(new_unit(prop.id), as_of=AS_OF)

        service.update_unit(
            replace(
                unit,
                rent_increment_amount=Decimal("200"),
                rent_increment_effective_date=date(2024, 3, 1),
            ),
            as_of=AS_OF,
        )

        amounts = {
            r.month_year: r.amount
            for r in container.rent_record_repo.list_by_unit(unit.id)
        }
        assert amounts["2024-02"] == Decimal("1000")
        assert amounts["2024-03"] == Decimal("1200")
        assert amounts["2024-04"] == Decimal("1200")

    def test_update_missing_unit_raises(self, service):
        prop = service.create_property("Lakeview")

        with pytest.raises(UnitNotFoundError):
            service.update_unit(new_unit(prop.id), as_of=AS_OF)

    def test_delete_unit_removes_its_records(self, service, container):
        prop = service.create_property("Lakeview")
        unit, _ = service.add_unit(new_unit(prop.id), as_of=AS_OF)
        other, _ = service.add_unit(new_unit(prop.id, number="102"), as_of=AS_OF)

        removed = service.delete_unit(unit.id)

        assert removed == 4
        assert [u.id for u in service.list_units()] == [other.id]
        assert len(list(container.rent_record_repo.list_by_unit(other.id))) == 4

    def test_tenant_history_newest_first(self, service):
        prop = service.create_property("Lakeview")
        unit, _ = service.add_unit(new_unit(prop.id), as_of=AS_OF)

        history = service.tenant_history(unit.id)

        assert [r.month_year for r in history] == [
            "2024-04",
            "2024-03",
            "2024-02",
            "2024-01",
        ]
