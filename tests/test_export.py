import csv
import io
import json
from datetime import UTC, date, datetime
from decimal import Decimal

from rental_ledger.domain.expenses import Expense
from rental_ledger.domain.properties import Property, Unit
from rental_ledger.domain.rent import RentRecord
from rental_ledger.services.export import (
    EXPENSE_HEADERS,
    PROPERTY_UNIT_HEADERS,
    RENT_RECORD_HEADERS,
    expense_row,
    property_unit_rows,
    rent_record_row,
    to_csv,
    to_json,
)

CREATED = datetime(2024, 1, 1, 9, 30, tzinfo=UTC)


def make_record(**overrides) -> RentRecord:
    fields = {
        "unit_id": "unit-1",
        "property_id": "prop-1",
        "month_year": "2024-03",
        "due_date": date(2024, 3, 15),
        "amount": Decimal("1000"),
        "property_name": "Lakeview",
        "unit_number": "101",
        "tenant_name": "Asha Rao",
        "created_at": CREATED,
    }
    fields.update(overrides)
    return RentRecord(**fields)


def parse_csv(text: str) -> list[dict[str, str]]:
    return list(csv.DictReader(io.StringIO(text)))


class TestRentRecordCsv:
    def test_header_order(self):
        text = to_csv([], RENT_RECORD_HEADERS)

        assert text == ",".join(RENT_RECORD_HEADERS) + "\n"

    def test_unpaid_record_cells(self):
        rows = parse_csv(to_csv([rent_record_row(make_record())], RENT_RECORD_HEADERS))

        row = rows[0]
        assert row["id"] == "unit-1_2024-03"
        assert row["isPaid"] == "false"
        assert row["isPartialPayment"] == "false"
        assert row["paymentDate"] == ""
        assert row["dueDate"] == "2024-03-15"
        assert row["amount"] == "1000"
        assert row["createdAt"] == CREATED.isoformat()

    def test_paid_record_cells(self):
        record = make_record(
            is_paid=True,
            amount_received=Decimal("1000"),
            payment_date=date(2024, 3, 14),
            partial_reason="Maintenance deduction",
        )

        row = parse_csv(to_csv([rent_record_row(record)], RENT_RECORD_HEADERS))[0]

        assert row["isPaid"] == "true"
        assert row["paymentDate"] == "2024-03-14"
        assert row["partialReason"] == "Maintenance deduction"

    def test_commas_in_names_are_quoted(self):
        record = make_record(tenant_name="Rao, Asha")

        row = parse_csv(to_csv([rent_record_row(record)], RENT_RECORD_HEADERS))[0]

        assert row["tenantName"] == "Rao, Asha"


class TestOtherExports:
    def test_expense_without_unit_has_empty_unit_cells(self):
        expense = Expense(
            date=date(2024, 3, 2),
            property_id="prop-1",
            property_name="Lakeview",
            amount=Decimal("150.25"),
            category="Utilities",
            created_at=CREATED,
        )

        row = parse_csv(to_csv([expense_row(expense)], EXPENSE_HEADERS))[0]

        assert row["unitId"] == ""
        assert row["unitNumber"] == ""
        assert row["amount"] == "150.25"
        assert row["date"] == "2024-03-02"

    def test_property_rows_one_per_unit(self):
        lakeview = Property(name="Lakeview", image_url="https://img/1.png")
        empty = Property(name="Empty Lot")
        units = [
            Unit(
                property_id=lakeview.id,
                number=number,
                tenant_name="",
                rent_amount=Decimal("900"),
                move_in_date=date(2024, 1, 1),
            )
            for number in ("101", "102")
        ]

        rows = property_unit_rows([lakeview, empty], units)
        parsed = parse_csv(to_csv(rows, PROPERTY_UNIT_HEADERS))

        assert [r["number"] for r in parsed] == ["101", "102"]
        assert {r["propertyImageUrl"] for r in parsed} == {"https://img/1.png"}
        assert parsed[0]["rentIncrementEffectiveDate"] == ""

    def test_json_export(self):
        payload = json.loads(to_json([rent_record_row(make_record())]))

        assert payload[0]["amount"] == "1000"
        assert payload[0]["isPaid"] is False
        assert payload[0]["paymentDate"] is None
        assert payload[0]["dueDate"] == "2024-03-15"
