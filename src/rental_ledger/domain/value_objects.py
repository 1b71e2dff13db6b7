from decimal import Decimal, InvalidOperation
from enum import Enum


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    INR = "INR"
    JPY = "JPY"
    CAD = "CAD"
    AUD = "AUD"


CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "INR": "₹",
    "JPY": "¥",
    "CAD": "CA$",
    "AUD": "A$",
}


class PartialReason(str, Enum):
    """Why a rent payment fell short of the amount due.

    MAINTENANCE is the only reason with a side effect: the shortfall is
    booked as a Maintenance expense and the rent is treated as settled.
    """

    LATE_PAYMENT = "Late Payment"
    PARTIAL_PAYMENT = "Partial Payment"
    MAINTENANCE = "Maintenance"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: "PartialReason | str | None") -> "PartialReason | None":
        """Accept an enum, its display value or its name (case-insensitive).

        Returns None for empty input. Raises ValueError for unknown text.
        """
        if value is None or isinstance(value, cls):
            return value
        text = value.strip()
        if not text:
            return None
        normalized = text.lower().replace("_", " ")
        for reason in cls:
            if normalized in (reason.value.lower(), reason.name.lower().replace("_", " ")):
                return reason
        raise ValueError(f"Unknown partial payment reason: {value}")


MAINTENANCE_CATEGORY = "Maintenance"
MAINTENANCE_DEDUCTION_NOTE = "Maintenance deduction"


def to_decimal(value: Decimal | int | float | str | None) -> Decimal:
    """Coerce a numeric input to Decimal. Empty and unparseable input is 0."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip() or "0")
    except InvalidOperation:
        return Decimal("0")


def format_currency(
    value: Decimal | float | int | str | None,
    currency: Currency | str = "INR",
) -> str:
    """Format a value as currency, e.g. ``format_currency(1500) == "₹1,500.00"``.

    Unparseable input formats as zero.
    """
    amount = to_decimal(value).quantize(Decimal("0.01"))
    code = currency.value if isinstance(currency, Currency) else str(currency)
    symbol = CURRENCY_SYMBOLS.get(code, code + " ")
    formatted = f"{abs(amount):,.2f}"
    if amount < 0:
        return f"-{symbol}{formatted}"
    return f"{symbol}{formatted}"


__all__ = [
    "Currency",
    "PartialReason",
    "MAINTENANCE_CATEGORY",
    "MAINTENANCE_DEDUCTION_NOTE",
    "format_currency",
    "to_decimal",
]
