"""Monthly rent schedule generation.

Given a unit, its property and an as-of date, derive every month of rent
owed from the move-in month through the as-of month. Pure computation:
persistence belongs to the reconciler.
"""

from datetime import date
from decimal import Decimal

from rental_ledger.domain.dates import clamp_day, iter_months, month_key, parse_iso_date
from rental_ledger.domain.properties import Property, Unit
from rental_ledger.domain.rent import RentObligation
from rental_ledger.exceptions import NegativeAmountError
from rental_ledger.logging_config import get_logger

logger = get_logger(__name__)


def rent_for_period(unit: Unit, due_date: date) -> Decimal:
    """Base rent, plus the one-time increment once its effective date is reached.

    The increment is a single flat step, not compounded.
    """
    if not unit.has_increment:
        return unit.rent_amount
    effective = parse_iso_date(unit.rent_increment_effective_date)
    if effective is not None and due_date >= effective:
        return unit.rent_amount + unit.rent_increment_amount
    return unit.rent_amount


def generate_schedule(unit: Unit, prop: Property, as_of: date) -> list[RentObligation]:
    """Compute the rent obligations for ``unit`` up to ``as_of``'s month.

    A unit without a usable move-in date yields no obligations and a
    warning. Output is ordered chronologically and is identical for
    identical inputs.

    Raises:
        NegativeAmountError: If the unit's rent or increment is negative.
    """
    if unit.rent_amount < 0:
        raise NegativeAmountError("rent_amount", unit.rent_amount)
    if unit.rent_increment_amount < 0:
        raise NegativeAmountError("rent_increment_amount", unit.rent_increment_amount)

    move_in = parse_iso_date(unit.move_in_date)
    if move_in is None:
        logger.warning(
            "unit_skipped_invalid_move_in_date",
            unit_id=unit.id,
            move_in_date=str(unit.move_in_date),
        )
        return []

    rent_due_day = move_in.day
    obligations: list[RentObligation] = []
    for year, month in iter_months(move_in, as_of):
        due_date = clamp_day(year, month, rent_due_day)
        obligations.append(
            RentObligation(
                unit_id=unit.id,
                property_id=prop.id,
                month_year=month_key(year, month),
                due_date=due_date,
                amount=rent_for_period(unit, due_date),
                tenant_name=unit.tenant_name,
                unit_number=unit.number,
                property_name=prop.name,
            )
        )

    logger.debug(
        "rent_schedule_generated",
        unit_id=unit.id,
        months=len(obligations),
        as_of=as_of.isoformat(),
    )
    return obligations
