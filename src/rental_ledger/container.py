"""Dependency injection container for Rental Ledger.

Builds the database, repositories and services lazily from settings.

Usage:
    from rental_ledger.container import get_container

    container = get_container()
    container.rent_ledger_service.catch_up_all(date.today())
"""

from functools import cached_property, lru_cache
from typing import TYPE_CHECKING

from rental_ledger.config import Settings, get_settings
from rental_ledger.logging_config import get_logger
from rental_ledger.repositories.sqlite import (
    SQLiteDatabase,
    SQLiteExpenseRepository,
    SQLitePropertyRepository,
    SQLiteRentRecordRepository,
    SQLiteUnitRepository,
)

if TYPE_CHECKING:
    from rental_ledger.services.expense import ExpenseService
    from rental_ledger.services.payments import PaymentService
    from rental_ledger.services.properties import PropertyService
    from rental_ledger.services.reconciler import RentLedgerService
    from rental_ledger.services.reporting import ReportingService

logger = get_logger(__name__)


class Container:
    """Lazy access to the application's repositories and services.

    Pass ``database`` to wrap an existing connection (tests, API requests):

        container = Container(database=SQLiteDatabase(":memory:"))
    """

    def __init__(
        self,
        settings: Settings | None = None,
        database: SQLiteDatabase | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._database = database
        self._owns_database = database is None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def database(self) -> SQLiteDatabase:
        """The SQLite database, created and initialized on first access."""
        if self._database is None:
            db_path = str(self._settings.sqlite_path)
            logger.info("initializing_sqlite_database", path=db_path)
            self._database = SQLiteDatabase(db_path, check_same_thread=False)
            self._database.initialize()
        return self._database

    @cached_property
    def property_repo(self) -> SQLitePropertyRepository:
        return SQLitePropertyRepository(self.database)

    @cached_property
    def unit_repo(self) -> SQLiteUnitRepository:
        return SQLiteUnitRepository(self.database)

    @cached_property
    def rent_record_repo(self) -> SQLiteRentRecordRepository:
        return SQLiteRentRecordRepository(self.database)

    @cached_property
    def expense_repo(self) -> SQLiteExpenseRepository:
        return SQLiteExpenseRepository(self.database)

    @cached_property
    def rent_ledger_service(self) -> "RentLedgerService":
        """Schedule generation and reconciliation."""
        from rental_ledger.services.reconciler import RentLedgerService

        return RentLedgerService(self.property_repo, self.unit_repo, self.rent_record_repo)

    @cached_property
    def payment_service(self) -> "PaymentService":
        from rental_ledger.services.payments import PaymentService

        return PaymentService(
            self.rent_record_repo, self.unit_repo, currency=self._settings.currency.value
        )

    @cached_property
    def property_service(self) -> "PropertyService":
        from rental_ledger.services.properties import PropertyService

        return PropertyService(
            self.property_repo,
            self.unit_repo,
            self.rent_record_repo,
            self.rent_ledger_service,
        )

    @cached_property
    def expense_service(self) -> "ExpenseService":
        from rental_ledger.services.expense import ExpenseService

        return ExpenseService(self.expense_repo, self.property_repo, self.unit_repo)

    @cached_property
    def reporting_service(self) -> "ReportingService":
        from rental_ledger.services.reporting import ReportingService

        return ReportingService(
            self.rent_record_repo, self.expense_repo, self.property_repo
        )

    def close(self) -> None:
        """Close the database if this container opened it."""
        if self._owns_database and self._database is not None:
            logger.info("closing_database_connection")
            self._database.close()
            self._database = None

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


@lru_cache
def get_container() -> Container:
    """Get the global container singleton.

    For testing, build a Container directly with custom settings or an
    in-memory database instead.
    """
    return Container()


def reset_container() -> None:
    """Close and forget the global container."""
    if get_container.cache_info().currsize:
        get_container().close()
    get_container.cache_clear()


def get_database() -> SQLiteDatabase:
    """FastAPI dependency for database access."""
    return get_container().database
