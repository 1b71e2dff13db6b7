from datetime import date
from decimal import Decimal

import pytest

from rental_ledger.container import Container
from rental_ledger.domain.properties import Property, Unit
from rental_ledger.domain.rent import RentRecord
from rental_ledger.repositories.sqlite import SQLiteDatabase


@pytest.fixture
def db() -> SQLiteDatabase:
    database = SQLiteDatabase(":memory:", check_same_thread=False)
    database.initialize()
    return database


@pytest.fixture
def container(db: SQLiteDatabase) -> Container:
    return Container(database=db)


@pytest.fixture
def sample_property() -> Property:
    return Property(name="Lakeview Apartments", address="12 Lake Road")


@pytest.fixture
def sample_unit(sample_property: Property) -> Unit:
    return Unit(
        property_id=sample_property.id,
        property_name=sample_property.name,
        number="101",
        tenant_name="Asha Rao",
        rent_amount=Decimal("1000"),
        move_in_date=date(2024, 1, 15),
    )


@pytest.fixture
def unpaid_record(sample_unit: Unit) -> RentRecord:
    return RentRecord(
        unit_id=sample_unit.id,
        property_id=sample_unit.property_id,
        month_year="2024-03",
        due_date=date(2024, 3, 15),
        amount=Decimal("1000"),
        property_name="Lakeview Apartments",
        unit_number="101",
        tenant_name="Asha Rao",
    )
