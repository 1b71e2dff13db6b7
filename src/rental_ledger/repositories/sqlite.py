"""SQLite implementations of repository interfaces."""

from __future__ import annotations

import contextlib
import sqlite3
import threading
from collections.abc import Iterable, Iterator
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

from rental_ledger.domain.expenses import Expense
from rental_ledger.domain.properties import Property, Unit
from rental_ledger.domain.rent import RentRecord, RentRecordKey
from rental_ledger.exceptions import LedgerPersistenceError
from rental_ledger.repositories.interfaces import (
    ExpenseRepository,
    PropertyRepository,
    RentRecordRepository,
    UnitRepository,
)


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None


def _parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


class SQLiteDatabase:
    """SQLite database connection manager."""

    def __init__(
        self, path: str | Path = ":memory:", check_same_thread: bool = True
    ) -> None:
        self._path = str(path)
        self._check_same_thread = check_same_thread
        self._connection: sqlite3.Connection | None = None
        self._depth = 0
        self._lock = threading.RLock()

    @property
    def path(self) -> str:
        return self._path

    def get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(
                self._path, check_same_thread=self._check_same_thread
            )
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    @contextlib.contextmanager
    def transaction(self, operation: str = "write") -> Iterator[sqlite3.Connection]:
        """Run a block of writes as one all-or-nothing transaction.

        Nested calls in the same thread join the outermost transaction.
        Other threads sharing the connection wait until it finishes. A
        sqlite3 error rolls everything back and is raised as
        LedgerPersistenceError.
        """
        with self._lock:
            conn = self.get_connection()
            if self._depth:
                self._depth += 1
                try:
                    yield conn
                finally:
                    self._depth -= 1
                return

            self._depth = 1
            try:
                yield conn
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise LedgerPersistenceError(operation, str(e)) from e
            except BaseException:
                conn.rollback()
                raise
            finally:
                self._depth = 0

    def initialize(self) -> None:
        """Create all database tables."""
        conn = self.get_connection()
        conn.executescript(
            """
            -- Properties table
            CREATE TABLE IF NOT EXISTS properties (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                address TEXT NOT NULL DEFAULT '',
                notes TEXT NOT NULL DEFAULT '',
                image_url TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL
            );

            -- Units table
            CREATE TABLE IF NOT EXISTS units (
                id TEXT PRIMARY KEY,
                property_id TEXT NOT NULL,
                property_name TEXT NOT NULL DEFAULT '',
                number TEXT NOT NULL,
                tenant_name TEXT NOT NULL,
                phone_number TEXT NOT NULL DEFAULT '',
                email TEXT NOT NULL DEFAULT '',
                emergency_contact_name TEXT NOT NULL DEFAULT '',
                emergency_contact_phone TEXT NOT NULL DEFAULT '',
                rent_amount TEXT NOT NULL,
                move_in_date TEXT,
                lease_start_date TEXT,
                lease_end_date TEXT,
                lease_term TEXT NOT NULL DEFAULT '',
                security_deposit_amount TEXT NOT NULL DEFAULT '0',
                rent_increment_amount TEXT NOT NULL DEFAULT '0',
                rent_increment_effective_date TEXT,
                notes TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL,
                FOREIGN KEY (property_id) REFERENCES properties(id)
            );
            CREATE INDEX IF NOT EXISTS idx_units_property ON units(property_id);

            -- Rent records table, one row per (unit, month)
            CREATE TABLE IF NOT EXISTS rent_records (
                id TEXT PRIMARY KEY,
                unit_id TEXT NOT NULL,
                property_id TEXT NOT NULL,
                property_name TEXT NOT NULL DEFAULT '',
                unit_number TEXT NOT NULL DEFAULT '',
                tenant_name TEXT NOT NULL DEFAULT '',
                month_year TEXT NOT NULL,
                due_date TEXT NOT NULL,
                amount TEXT NOT NULL,
                is_paid INTEGER NOT NULL DEFAULT 0,
                amount_received TEXT NOT NULL DEFAULT '0',
                payment_date TEXT,
                is_partial_payment INTEGER NOT NULL DEFAULT 0,
                partial_reason TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL,
                UNIQUE(unit_id, month_year)
            );
            CREATE INDEX IF NOT EXISTS idx_rent_records_unit ON rent_records(unit_id);
            CREATE INDEX IF NOT EXISTS idx_rent_records_property ON rent_records(property_id);
            CREATE INDEX IF NOT EXISTS idx_rent_records_month ON rent_records(month_year);

            -- Expenses table
            CREATE TABLE IF NOT EXISTS expenses (
                id TEXT PRIMARY KEY,
                date TEXT NOT NULL,
                property_id TEXT NOT NULL,
                property_name TEXT NOT NULL DEFAULT '',
                unit_id TEXT,
                unit_number TEXT NOT NULL DEFAULT '',
                amount TEXT NOT NULL,
                reason TEXT NOT NULL DEFAULT '',
                category TEXT NOT NULL,
                notes TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_expenses_date ON expenses(date);
            CREATE INDEX IF NOT EXISTS idx_expenses_property ON expenses(property_id);
            """
        )
        conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None


class SQLitePropertyRepository(PropertyRepository):
    """SQLite implementation of PropertyRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, prop: Property) -> None:
        with self._db.transaction("add_property") as conn:
            conn.execute(
                """
                INSERT INTO properties (id, name, address, notes, image_url, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    prop.id,
                    prop.name,
                    prop.address,
                    prop.notes,
                    prop.image_url,
                    prop.created_at.isoformat(),
                ),
            )

    def get(self, property_id: str) -> Property | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM properties WHERE id = ?", (property_id,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_property(row)

    def list_all(self) -> Iterable[Property]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT * FROM properties ORDER BY name").fetchall()
        return [self._row_to_property(row) for row in rows]

    def update(self, prop: Property) -> None:
        with self._db.transaction("update_property") as conn:
            conn.execute(
                """
                UPDATE properties SET
                    name = ?,
                    address = ?,
                    notes = ?,
                    image_url = ?
                WHERE id = ?
                """,
                (prop.name, prop.address, prop.notes, prop.image_url, prop.id),
            )

    def delete(self, property_id: str) -> None:
        with self._db.transaction("delete_property") as conn:
            conn.execute("DELETE FROM properties WHERE id = ?", (property_id,))

    def _row_to_property(self, row: sqlite3.Row) -> Property:
        return Property(
            id=row["id"],
            name=row["name"],
            address=row["address"],
            notes=row["notes"],
            image_url=row["image_url"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteUnitRepository(UnitRepository):
    """SQLite implementation of UnitRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, unit: Unit) -> None:
        with self._db.transaction("add_unit") as conn:
            conn.execute(
                """
                INSERT INTO units (id, property_id, property_name, number, tenant_name,
                                   phone_number, email, emergency_contact_name,
                                   emergency_contact_phone, rent_amount, move_in_date,
                                   lease_start_date, lease_end_date, lease_term,
                                   security_deposit_amount, rent_increment_amount,
                                   rent_increment_effective_date, notes, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (unit.id, *self._unit_values(unit), unit.created_at.isoformat()),
            )

    def get(self, unit_id: str) -> Unit | None:
        conn = self._db.get_connection()
        row = conn.execute("SELECT * FROM units WHERE id = ?", (unit_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_unit(row)

    def list_all(self) -> Iterable[Unit]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM units ORDER BY property_name, number"
        ).fetchall()
        return [self._row_to_unit(row) for row in rows]

    def list_by_property(self, property_id: str) -> Iterable[Unit]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM units WHERE property_id = ? ORDER BY number",
            (property_id,),
        ).fetchall()
        return [self._row_to_unit(row) for row in rows]

    def update(self, unit: Unit) -> None:
        with self._db.transaction("update_unit") as conn:
            conn.execute(
                """
                UPDATE units SET
                    property_id = ?,
                    property_name = ?,
                    number = ?,
                    tenant_name = ?,
                    phone_number = ?,
                    email = ?,
                    emergency_contact_name = ?,
                    emergency_contact_phone = ?,
                    rent_amount = ?,
                    move_in_date = ?,
                    lease_start_date = ?,
                    lease_end_date = ?,
                    lease_term = ?,
                    security_deposit_amount = ?,
                    rent_increment_amount = ?,
                    rent_increment_effective_date = ?,
                    notes = ?
                WHERE id = ?
                """,
                (*self._unit_values(unit), unit.id),
            )

    def delete(self, unit_id: str) -> None:
        with self._db.transaction("delete_unit") as conn:
            conn.execute("DELETE FROM units WHERE id = ?", (unit_id,))

    def _unit_values(self, unit: Unit) -> tuple[object, ...]:
        return (
            unit.property_id,
            unit.property_name,
            unit.number,
            unit.tenant_name,
            unit.phone_number,
            unit.email,
            unit.emergency_contact_name,
            unit.emergency_contact_phone,
            str(unit.rent_amount),
            _iso(unit.move_in_date),
            _iso(unit.lease_start_date),
            _iso(unit.lease_end_date),
            unit.lease_term,
            str(unit.security_deposit_amount),
            str(unit.rent_increment_amount),
            _iso(unit.rent_increment_effective_date),
            unit.notes,
        )

    def _row_to_unit(self, row: sqlite3.Row) -> Unit:
        return Unit(
            id=row["id"],
            property_id=row["property_id"],
            property_name=row["property_name"],
            number=row["number"],
            tenant_name=row["tenant_name"],
            phone_number=row["phone_number"],
            email=row["email"],
            emergency_contact_name=row["emergency_contact_name"],
            emergency_contact_phone=row["emergency_contact_phone"],
            rent_amount=Decimal(row["rent_amount"]),
            move_in_date=_parse_date(row["move_in_date"]),
            lease_start_date=_parse_date(row["lease_start_date"]),
            lease_end_date=_parse_date(row["lease_end_date"]),
            lease_term=row["lease_term"],
            security_deposit_amount=Decimal(row["security_deposit_amount"]),
            rent_increment_amount=Decimal(row["rent_increment_amount"]),
            rent_increment_effective_date=_parse_date(
                row["rent_increment_effective_date"]
            ),
            notes=row["notes"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteRentRecordRepository(RentRecordRepository):
    """SQLite implementation of RentRecordRepository.

    Records are keyed by RentRecordKey.record_id, so writing the same
    (unit, month) twice replaces rather than duplicates.
    """

    _ORDER = "ORDER BY month_year, unit_number"

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def get(self, record_id: str) -> RentRecord | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM rent_records WHERE id = ?", (record_id,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_record(row)

    def get_by_key(self, key: RentRecordKey) -> RentRecord | None:
        return self.get(key.record_id)

    def list_all(self) -> Iterable[RentRecord]:
        conn = self._db.get_connection()
        rows = conn.execute(f"SELECT * FROM rent_records {self._ORDER}").fetchall()
        return [self._row_to_record(row) for row in rows]

    def list_by_unit(self, unit_id: str) -> Iterable[RentRecord]:
        conn = self._db.get_connection()
        rows = conn.execute(
            f"SELECT * FROM rent_records WHERE unit_id = ? {self._ORDER}",
            (unit_id,),
        ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def list_by_property(self, property_id: str) -> Iterable[RentRecord]:
        conn = self._db.get_connection()
        rows = conn.execute(
            f"SELECT * FROM rent_records WHERE property_id = ? {self._ORDER}",
            (property_id,),
        ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def list_by_month(self, month_year: str) -> Iterable[RentRecord]:
        conn = self._db.get_connection()
        rows = conn.execute(
            f"SELECT * FROM rent_records WHERE month_year = ? {self._ORDER}",
            (month_year,),
        ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def upsert(self, record: RentRecord) -> None:
        with self._db.transaction("upsert_rent_record") as conn:
            self._upsert(conn, record)

    def apply_batch(
        self,
        upserts: Iterable[RentRecord],
        expenses: Iterable[Expense] = (),
        deletes: Iterable[str] = (),
    ) -> None:
        with self._db.transaction("apply_rent_batch") as conn:
            for record in upserts:
                self._upsert(conn, record)
            for expense in expenses:
                SQLiteExpenseRepository.insert(conn, expense)
            for record_id in deletes:
                conn.execute("DELETE FROM rent_records WHERE id = ?", (record_id,))

    def delete(self, record_id: str) -> None:
        with self._db.transaction("delete_rent_record") as conn:
            conn.execute("DELETE FROM rent_records WHERE id = ?", (record_id,))

    def delete_by_unit(self, unit_id: str) -> int:
        with self._db.transaction("delete_unit_rent_records") as conn:
            cursor = conn.execute(
                "DELETE FROM rent_records WHERE unit_id = ?", (unit_id,)
            )
            return cursor.rowcount

    def _upsert(self, conn: sqlite3.Connection, record: RentRecord) -> None:
        conn.execute(
            """
            INSERT INTO rent_records (id, unit_id, property_id, property_name, unit_number,
                                      tenant_name, month_year, due_date, amount, is_paid,
                                      amount_received, payment_date, is_partial_payment,
                                      partial_reason, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                property_id = excluded.property_id,
                property_name = excluded.property_name,
                unit_number = excluded.unit_number,
                tenant_name = excluded.tenant_name,
                due_date = excluded.due_date,
                amount = excluded.amount,
                is_paid = excluded.is_paid,
                amount_received = excluded.amount_received,
                payment_date = excluded.payment_date,
                is_partial_payment = excluded.is_partial_payment,
                partial_reason = excluded.partial_reason
            """,
            (
                record.id,
                record.unit_id,
                record.property_id,
                record.property_name,
                record.unit_number,
                record.tenant_name,
                record.month_year,
                record.due_date.isoformat(),
                str(record.amount),
                1 if record.is_paid else 0,
                str(record.amount_received),
                _iso(record.payment_date),
                1 if record.is_partial_payment else 0,
                record.partial_reason,
                record.created_at.isoformat(),
            ),
        )

    def _row_to_record(self, row: sqlite3.Row) -> RentRecord:
        return RentRecord(
            unit_id=row["unit_id"],
            property_id=row["property_id"],
            month_year=row["month_year"],
            due_date=date.fromisoformat(row["due_date"]),
            amount=Decimal(row["amount"]),
            property_name=row["property_name"],
            unit_number=row["unit_number"],
            tenant_name=row["tenant_name"],
            is_paid=bool(row["is_paid"]),
            amount_received=Decimal(row["amount_received"]),
            payment_date=_parse_date(row["payment_date"]),
            is_partial_payment=bool(row["is_partial_payment"]),
            partial_reason=row["partial_reason"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteExpenseRepository(ExpenseRepository):
    """SQLite implementation of ExpenseRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    @staticmethod
    def insert(conn: sqlite3.Connection, expense: Expense) -> None:
        conn.execute(
            """
            INSERT INTO expenses (id, date, property_id, property_name, unit_id, unit_number,
                                  amount, reason, category, notes, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                expense.id,
                expense.date.isoformat(),
                expense.property_id,
                expense.property_name,
                expense.unit_id,
                expense.unit_number,
                str(expense.amount),
                expense.reason,
                expense.category,
                expense.notes,
                expense.created_at.isoformat(),
            ),
        )

    def add(self, expense: Expense) -> None:
        with self._db.transaction("add_expense") as conn:
            self.insert(conn, expense)

    def get(self, expense_id: str) -> Expense | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM expenses WHERE id = ?", (expense_id,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_expense(row)

    def list_all(self) -> Iterable[Expense]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT * FROM expenses ORDER BY date").fetchall()
        return [self._row_to_expense(row) for row in rows]

    def list_by_date_range(
        self, start_date: date, end_date: date, property_id: str | None = None
    ) -> Iterable[Expense]:
        conn = self._db.get_connection()
        query = "SELECT * FROM expenses WHERE date >= ? AND date <= ?"
        params: list[str] = [start_date.isoformat(), end_date.isoformat()]
        if property_id:
            query += " AND property_id = ?"
            params.append(property_id)
        rows = conn.execute(query + " ORDER BY date", params).fetchall()
        return [self._row_to_expense(row) for row in rows]

    def delete(self, expense_id: str) -> None:
        with self._db.transaction("delete_expense") as conn:
            conn.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))

    def _row_to_expense(self, row: sqlite3.Row) -> Expense:
        return Expense(
            id=row["id"],
            date=date.fromisoformat(row["date"]),
            property_id=row["property_id"],
            property_name=row["property_name"],
            unit_id=row["unit_id"],
            unit_number=row["unit_number"],
            amount=Decimal(row["amount"]),
            reason=row["reason"],
            category=row["category"],
            notes=row["notes"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
