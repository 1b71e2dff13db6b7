from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date

from rental_ledger.domain.expenses import Expense
from rental_ledger.domain.properties import Property, Unit
from rental_ledger.domain.rent import RentRecord, RentRecordKey


class PropertyRepository(ABC):
    @abstractmethod
    def add(self, prop: Property) -> None:
        pass

    @abstractmethod
    def get(self, property_id: str) -> Property | None:
        pass

    @abstractmethod
    def list_all(self) -> Iterable[Property]:
        pass

    @abstractmethod
    def update(self, prop: Property) -> None:
        pass

    @abstractmethod
    def delete(self, property_id: str) -> None:
        pass


class UnitRepository(ABC):
    @abstractmethod
    def add(self, unit: Unit) -> None:
        pass

    @abstractmethod
    def get(self, unit_id: str) -> Unit | None:
        pass

    @abstractmethod
    def list_all(self) -> Iterable[Unit]:
        pass

    @abstractmethod
    def list_by_property(self, property_id: str) -> Iterable[Unit]:
        pass

    @abstractmethod
    def update(self, unit: Unit) -> None:
        pass

    @abstractmethod
    def delete(self, unit_id: str) -> None:
        pass


class RentRecordRepository(ABC):
    @abstractmethod
    def get(self, record_id: str) -> RentRecord | None:
        pass

    @abstractmethod
    def get_by_key(self, key: RentRecordKey) -> RentRecord | None:
        pass

    @abstractmethod
    def list_all(self) -> Iterable[RentRecord]:
        pass

    @abstractmethod
    def list_by_unit(self, unit_id: str) -> Iterable[RentRecord]:
        pass

    @abstractmethod
    def list_by_property(self, property_id: str) -> Iterable[RentRecord]:
        pass

    @abstractmethod
    def list_by_month(self, month_year: str) -> Iterable[RentRecord]:
        pass

    @abstractmethod
    def upsert(self, record: RentRecord) -> None:
        """Insert or replace the record stored under record.key."""

    @abstractmethod
    def apply_batch(
        self,
        upserts: Iterable[RentRecord],
        expenses: Iterable[Expense] = (),
        deletes: Iterable[str] = (),
    ) -> None:
        """Write all changes atomically: either every change lands or none."""

    @abstractmethod
    def delete(self, record_id: str) -> None:
        pass

    @abstractmethod
    def delete_by_unit(self, unit_id: str) -> int:
        pass


class ExpenseRepository(ABC):
    @abstractmethod
    def add(self, expense: Expense) -> None:
        pass

    @abstractmethod
    def get(self, expense_id: str) -> Expense | None:
        pass

    @abstractmethod
    def list_all(self) -> Iterable[Expense]:
        pass

    @abstractmethod
    def list_by_date_range(
        self, start_date: date, end_date: date, property_id: str | None = None
    ) -> Iterable[Expense]:
        pass

    @abstractmethod
    def delete(self, expense_id: str) -> None:
        pass
