"""Property and unit lifecycle.

Every change that can affect rent (a new unit, a unit edit, a property
rename) is followed by regeneration of the affected units' rent records.
Deletes cascade: property -> units -> rent records.
"""

from dataclasses import replace
from datetime import date

from rental_ledger.domain.dates import parse_iso_date
from rental_ledger.domain.properties import Property, Unit
from rental_ledger.domain.rent import RentRecord
from rental_ledger.exceptions import (
    InvalidMoveInDateError,
    NegativeAmountError,
    PropertyNotFoundError,
    RentValidationError,
    UnitNotFoundError,
)
from rental_ledger.logging_config import get_logger
from rental_ledger.repositories.interfaces import (
    PropertyRepository,
    RentRecordRepository,
    UnitRepository,
)
from rental_ledger.services.reconciler import RentLedgerService, ReconciliationResult

logger = get_logger(__name__)


class PropertyService:
    def __init__(
        self,
        property_repo: PropertyRepository,
        unit_repo: UnitRepository,
        rent_record_repo: RentRecordRepository,
        ledger: RentLedgerService,
    ) -> None:
        self._property_repo = property_repo
        self._unit_repo = unit_repo
        self._rent_record_repo = rent_record_repo
        self._ledger = ledger

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    def create_property(
        self, name: str, address: str = "", notes: str = "", image_url: str = ""
    ) -> Property:
        name = name.strip()
        if not name:
            raise RentValidationError("Property name is required")
        prop = Property(name=name, address=address, notes=notes, image_url=image_url)
        self._property_repo.add(prop)
        logger.info("property_created", property_id=prop.id, name=prop.name)
        return prop

    def get(self, property_id: str) -> Property:
        prop = self._property_repo.get(property_id)
        if prop is None:
            raise PropertyNotFoundError(property_id)
        return prop

    def list_properties(self) -> list[Property]:
        return list(self._property_repo.list_all())

    def update_property(self, prop: Property, as_of: date | None = None) -> Property:
        """Save property details and push a renamed property onto its units and records."""
        current = self.get(prop.id)
        if not prop.name.strip():
            raise RentValidationError("Property name is required")
        self._property_repo.update(prop)

        if current.name != prop.name:
            as_of = as_of or date.today()
            for unit in self._unit_repo.list_by_property(prop.id):
                self._unit_repo.update(replace(unit, property_name=prop.name))
                self._ledger.regenerate_unit(unit.id, as_of)
            logger.info(
                "property_renamed",
                property_id=prop.id,
                old_name=current.name,
                new_name=prop.name,
            )
        return prop

    def delete_property(self, property_id: str) -> int:
        """Delete a property with all of its units and their rent records.

        Returns the number of units removed.
        """
        self.get(property_id)
        units = list(self._unit_repo.list_by_property(property_id))
        for unit in units:
            self._delete_unit(unit)
        self._property_repo.delete(property_id)
        logger.info("property_deleted", property_id=property_id, units=len(units))
        return len(units)

    # ------------------------------------------------------------------
    # Units
    # ------------------------------------------------------------------

    def get_unit(self, unit_id: str) -> Unit:
        unit = self._unit_repo.get(unit_id)
        if unit is None:
            raise UnitNotFoundError(unit_id)
        return unit

    def list_units(self, property_id: str | None = None) -> list[Unit]:
        if property_id:
            return list(self._unit_repo.list_by_property(property_id))
        return list(self._unit_repo.list_all())

    def add_unit(
        self, unit: Unit, as_of: date | None = None
    ) -> tuple[Unit, ReconciliationResult]:
        """Validate and save a new unit, then generate its rent records.

        Raises:
            PropertyNotFoundError: If the unit's property does not exist.
            InvalidMoveInDateError: If the move-in date is missing or invalid.
            NegativeAmountError: If rent or increment is negative.
        """
        prop = self.get(unit.property_id)
        unit = self._validated(unit, prop)
        self._unit_repo.add(unit)
        logger.info(
            "unit_created",
            unit_id=unit.id,
            property_id=unit.property_id,
            number=unit.number,
        )
        result = self._ledger.regenerate_unit(unit.id, as_of or date.today())
        return unit, result

    def update_unit(
        self, unit: Unit, as_of: date | None = None
    ) -> tuple[Unit, ReconciliationResult]:
        """Save unit changes and regenerate its records.

        Unpaid months pick up rent changes; paid months only pick up the new
        display names.
        """
        current = self.get_unit(unit.id)
        prop = self.get(unit.property_id)
        unit = self._validated(unit, prop)
        self._unit_repo.update(unit)
        logger.info(
            "unit_updated",
            unit_id=unit.id,
            rent_changed=current.rent_fields() != unit.rent_fields(),
        )
        result = self._ledger.regenerate_unit(unit.id, as_of or date.today())
        return unit, result

    def delete_unit(self, unit_id: str) -> int:
        """Delete a unit and its rent records. Returns the records removed."""
        return self._delete_unit(self.get_unit(unit_id))

    def tenant_history(self, unit_id: str) -> list[RentRecord]:
        """The unit's rent records, newest month first."""
        self.get_unit(unit_id)
        records = self._rent_record_repo.list_by_unit(unit_id)
        return sorted(records, key=lambda r: r.month_year, reverse=True)

    def _delete_unit(self, unit: Unit) -> int:
        removed = self._rent_record_repo.delete_by_unit(unit.id)
        self._unit_repo.delete(unit.id)
        logger.info("unit_deleted", unit_id=unit.id, rent_records=removed)
        return removed

    def _validated(self, unit: Unit, prop: Property) -> Unit:
        if unit.rent_amount < 0:
            raise NegativeAmountError("rent_amount", unit.rent_amount)
        if unit.rent_increment_amount < 0:
            raise NegativeAmountError(
                "rent_increment_amount", unit.rent_increment_amount
            )
        move_in = parse_iso_date(unit.move_in_date)
        if move_in is None:
            raise InvalidMoveInDateError(unit.move_in_date)
        if not unit.number.strip():
            raise RentValidationError("Unit number is required")
        return replace(
            unit,
            move_in_date=move_in,
            rent_increment_effective_date=parse_iso_date(
                unit.rent_increment_effective_date
            ),
            property_name=prop.name,
        )
