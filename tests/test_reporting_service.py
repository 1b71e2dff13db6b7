from datetime import date
from decimal import Decimal

import pytest

from rental_ledger.container import Container
from rental_ledger.domain.properties import Unit


@pytest.fixture
def ledger(container: Container):
    props = container.property_service
    lakeview = props.create_property("Lakeview")
    hillside = props.create_property("Hillside")
    unit, _ = props.add_unit(
        Unit(
            property_id=lakeview.id,
            number="101",
            tenant_name="Asha Rao",
            rent_amount=Decimal("1000"),
            move_in_date=date(2024, 1, 15),
        ),
        as_of=date(2024, 3, 20),
    )
    payments = container.payment_service
    payments.record_payment(f"{unit.id}_2024-01", date(2024, 1, 15), Decimal("1000"))
    payments.record_payment(
        f"{unit.id}_2024-02", date(2024, 2, 16), Decimal("800"), "Maintenance"
    )
    payments.record_payment(
        f"{unit.id}_2024-03", date(2024, 3, 16), Decimal("400"), "Late Payment"
    )
    container.expense_service.add_expense(
        date(2024, 3, 2), hillside.id, Decimal("150"), "Utilities"
    )
    return container, lakeview, hillside


class TestSummary:
    def test_totals(self, ledger):
        container, _, _ = ledger

        report = container.reporting_service.summary(date(2024, 1, 1), date(2024, 3, 31))
        totals = report["totals"]

        # Jan paid in full, Feb settled via maintenance, Mar partial
        assert totals["rent_collected"] == Decimal("2000")
        assert totals["rent_unpaid"] == Decimal("600")
        assert totals["total_expenses"] == Decimal("350")
        assert totals["net_income"] == Decimal("1650")
        assert report["has_unpaid_alert"] is True
        assert report["unpaid_count"] == 1

    def test_property_filter(self, ledger):
        container, _, hillside = ledger

        report = container.reporting_service.summary(
            date(2024, 1, 1), date(2024, 3, 31), hillside.id
        )

        assert report["totals"]["rent_collected"] == Decimal("0")
        assert report["totals"]["total_expenses"] == Decimal("150")
        assert report["has_unpaid_alert"] is False


class TestTrendsAndBreakdowns:
    def test_monthly_net_income(self, ledger):
        container, _, _ = ledger

        rows = container.reporting_service.monthly_net_income(date(2024, 3, 31), months=3)

        assert [r["month"] for r in rows] == ["2024-01", "2024-02", "2024-03"]
        assert rows[0]["net_income"] == Decimal("1000")
        assert rows[1]["expenses"] == Decimal("200")
        assert rows[1]["net_income"] == Decimal("800")
        assert rows[2]["rent_collected"] == Decimal("0")
        assert rows[2]["net_income"] == Decimal("-150")

    def test_default_trend_covers_twelve_months(self, ledger):
        container, _, _ = ledger

        rows = container.reporting_service.monthly_net_income(date(2024, 3, 31))

        assert len(rows) == 12
        assert rows[0]["month"] == "2023-04"
        assert rows[-1]["month"] == "2024-03"

    def test_profit_loss_by_property(self, ledger):
        container, lakeview, hillside = ledger

        rows = {
            r["property_id"]: r
            for r in container.reporting_service.profit_loss_by_property(
                date(2024, 1, 1), date(2024, 3, 31)
            )
        }

        assert rows[lakeview.id]["net_income"] == Decimal("1800")
        assert rows[hillside.id]["net_income"] == Decimal("-150")

    def test_expenses_by_category_largest_first(self, ledger):
        container, _, _ = ledger

        totals = container.reporting_service.expenses_by_category(
            date(2024, 1, 1), date(2024, 3, 31)
        )

        assert list(totals.items()) == [
            ("Maintenance", Decimal("200")),
            ("Utilities", Decimal("150")),
        ]
