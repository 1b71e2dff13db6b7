"""CSV and JSON export of rent records, expenses and properties with units.

Rows are plain projections of the stored fields under fixed camelCase
headers, so exported files line up with earlier exports column by column.
"""

import csv
import io
import json
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from rental_ledger.domain.expenses import Expense
from rental_ledger.domain.properties import Property, Unit
from rental_ledger.domain.rent import RentRecord

RENT_RECORD_HEADERS = [
    "id",
    "propertyId",
    "propertyName",
    "unitId",
    "unitNumber",
    "tenantName",
    "amount",
    "amountReceived",
    "monthYear",
    "isPaid",
    "paymentDate",
    "dueDate",
    "isPartialPayment",
    "partialReason",
    "createdAt",
]

EXPENSE_HEADERS = [
    "id",
    "date",
    "propertyId",
    "propertyName",
    "unitId",
    "unitNumber",
    "amount",
    "reason",
    "category",
    "notes",
    "createdAt",
]

PROPERTY_UNIT_HEADERS = [
    "id",
    "propertyId",
    "propertyName",
    "propertyImageUrl",
    "propertyNotes",
    "number",
    "tenantName",
    "rentAmount",
    "moveInDate",
    "notes",
    "phoneNumber",
    "email",
    "emergencyContactName",
    "emergencyContactPhone",
    "leaseStartDate",
    "leaseEndDate",
    "securityDepositAmount",
    "leaseTerm",
    "rentIncrementAmount",
    "rentIncrementEffectiveDate",
    "createdAt",
]

EXPORT_KINDS = ("rent", "expenses", "properties")


def rent_record_row(record: RentRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "propertyId": record.property_id,
        "propertyName": record.property_name,
        "unitId": record.unit_id,
        "unitNumber": record.unit_number,
        "tenantName": record.tenant_name,
        "amount": record.amount,
        "amountReceived": record.amount_received,
        "monthYear": record.month_year,
        "isPaid": record.is_paid,
        "paymentDate": record.payment_date,
        "dueDate": record.due_date,
        "isPartialPayment": record.is_partial_payment,
        "partialReason": record.partial_reason,
        "createdAt": record.created_at,
    }


def expense_row(expense: Expense) -> dict[str, Any]:
    return {
        "id": expense.id,
        "date": expense.date,
        "propertyId": expense.property_id,
        "propertyName": expense.property_name,
        "unitId": expense.unit_id,
        "unitNumber": expense.unit_number,
        "amount": expense.amount,
        "reason": expense.reason,
        "category": expense.category,
        "notes": expense.notes,
        "createdAt": expense.created_at,
    }


def property_unit_rows(
    properties: Iterable[Property], units: Iterable[Unit]
) -> list[dict[str, Any]]:
    """One row per unit, carrying its property's name, image and notes."""
    by_property: dict[str, list[Unit]] = {}
    for unit in units:
        by_property.setdefault(unit.property_id, []).append(unit)

    rows: list[dict[str, Any]] = []
    for prop in properties:
        for unit in by_property.get(prop.id, []):
            rows.append(
                {
                    "id": unit.id,
                    "propertyId": prop.id,
                    "propertyName": prop.name,
                    "propertyImageUrl": prop.image_url,
                    "propertyNotes": prop.notes,
                    "number": unit.number,
                    "tenantName": unit.tenant_name,
                    "rentAmount": unit.rent_amount,
                    "moveInDate": unit.move_in_date,
                    "notes": unit.notes,
                    "phoneNumber": unit.phone_number,
                    "email": unit.email,
                    "emergencyContactName": unit.emergency_contact_name,
                    "emergencyContactPhone": unit.emergency_contact_phone,
                    "leaseStartDate": unit.lease_start_date,
                    "leaseEndDate": unit.lease_end_date,
                    "securityDepositAmount": unit.security_deposit_amount,
                    "leaseTerm": unit.lease_term,
                    "rentIncrementAmount": unit.rent_increment_amount,
                    "rentIncrementEffectiveDate": unit.rent_increment_effective_date,
                    "createdAt": unit.created_at,
                }
            )
    return rows


def _serialize_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if value is None:
        return ""
    return value


def _make_json_serializable(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _make_json_serializable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_make_json_serializable(item) for item in value]
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def to_csv(rows: Iterable[Mapping[str, Any]], headers: list[str]) -> str:
    """Render rows under ``headers``. Missing fields become empty cells."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_serialize_value(row.get(h)) for h in headers])
    return buffer.getvalue()


def to_json(rows: Iterable[Mapping[str, Any]]) -> str:
    return json.dumps([_make_json_serializable(row) for row in rows], indent=2)
