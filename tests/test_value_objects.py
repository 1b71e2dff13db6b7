from decimal import Decimal

import pytest

from rental_ledger.domain.value_objects import (
    Currency,
    PartialReason,
    format_currency,
    to_decimal,
)


class TestFormatCurrency:
    def test_formats_with_grouping_and_two_decimals(self):
        assert format_currency(Decimal("1234567.5")) == "₹1,234,567.50"

    def test_uses_currency_symbol(self):
        assert format_currency(Decimal("1500"), Currency.USD) == "$1,500.00"
        assert format_currency(Decimal("1500"), "CHF") == "CHF 1,500.00"

    def test_negative_amount_has_leading_minus(self):
        assert format_currency(Decimal("-250")) == "-₹250.00"

    def test_unparseable_value_formats_as_zero(self):
        assert format_currency("not a number") == "₹0.00"
        assert format_currency(None) == "₹0.00"


class TestToDecimal:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, Decimal("0")),
            ("", Decimal("0")),
            ("abc", Decimal("0")),
            ("12.50", Decimal("12.50")),
            (7, Decimal("7")),
        ],
    )
    def test_coerces_inputs(self, value, expected):
        assert to_decimal(value) == expected


class TestPartialReason:
    def test_parse_accepts_display_value(self):
        assert PartialReason.parse("Late Payment") is PartialReason.LATE_PAYMENT

    def test_parse_accepts_name_case_insensitively(self):
        assert PartialReason.parse("maintenance") is PartialReason.MAINTENANCE
        assert PartialReason.parse("partial_payment") is PartialReason.PARTIAL_PAYMENT

    def test_parse_empty_returns_none(self):
        assert PartialReason.parse(None) is None
        assert PartialReason.parse("   ") is None

    def test_parse_passes_enum_through(self):
        assert PartialReason.parse(PartialReason.OTHER) is PartialReason.OTHER

    def test_parse_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown partial payment reason"):
            PartialReason.parse("forgot")
