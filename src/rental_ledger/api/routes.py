"""API routes for Rental Ledger."""

from datetime import date
from decimal import Decimal
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from rental_ledger import __version__
from rental_ledger.api.schemas import (
    ArrearsResponse,
    BulkRecordRequest,
    BulkRecordResponse,
    ExpenseCreate,
    ExpenseResponse,
    HealthResponse,
    PaymentCreate,
    PaymentResponse,
    PropertyCreate,
    PropertyResponse,
    PropertyUpdate,
    RegenerateResponse,
    RentRecordResponse,
    SummaryResponse,
    UnitCreate,
    UnitResponse,
    UnitSavedResponse,
)
from rental_ledger.container import Container
from rental_ledger.domain.expenses import Expense
from rental_ledger.domain.properties import Property, Unit
from rental_ledger.domain.rent import ArrearsEntry, RentRecord
from rental_ledger.repositories.sqlite import SQLiteDatabase
from rental_ledger.services import export
from rental_ledger.services.reconciler import ReconciliationResult

# Create routers
health_router = APIRouter(tags=["health"])
property_router = APIRouter(prefix="/properties", tags=["properties"])
unit_router = APIRouter(prefix="/units", tags=["units"])
rent_router = APIRouter(prefix="/rent-records", tags=["rent"])
expense_router = APIRouter(prefix="/expenses", tags=["expenses"])
report_router = APIRouter(prefix="/reports", tags=["reports"])
export_router = APIRouter(prefix="/export", tags=["export"])


def get_services(db: SQLiteDatabase) -> Container:
    """Wrap the request's database in a container of repositories and services."""
    return Container(database=db)


# Helper functions
def _property_to_response(prop: Property) -> PropertyResponse:
    return PropertyResponse(
        id=prop.id,
        name=prop.name,
        address=prop.address,
        notes=prop.notes,
        image_url=prop.image_url,
        created_at=prop.created_at,
    )


def _unit_to_response(unit: Unit) -> UnitResponse:
    return UnitResponse(
        id=unit.id,
        property_id=unit.property_id,
        property_name=unit.property_name,
        number=unit.number,
        tenant_name=unit.tenant_name,
        rent_amount=str(unit.rent_amount),
        move_in_date=unit.move_in_date,
        phone_number=unit.phone_number,
        email=unit.email,
        emergency_contact_name=unit.emergency_contact_name,
        emergency_contact_phone=unit.emergency_contact_phone,
        lease_start_date=unit.lease_start_date,
        lease_end_date=unit.lease_end_date,
        lease_term=unit.lease_term,
        security_deposit_amount=str(unit.security_deposit_amount),
        rent_increment_amount=str(unit.rent_increment_amount),
        rent_increment_effective_date=unit.rent_increment_effective_date,
        notes=unit.notes,
        created_at=unit.created_at,
    )


def _record_to_response(record: RentRecord) -> RentRecordResponse:
    return RentRecordResponse(
        id=record.id,
        unit_id=record.unit_id,
        property_id=record.property_id,
        property_name=record.property_name,
        unit_number=record.unit_number,
        tenant_name=record.tenant_name,
        month_year=record.month_year,
        due_date=record.due_date,
        amount=str(record.amount),
        amount_received=str(record.amount_received),
        amount_remaining=str(record.amount_remaining),
        is_paid=record.is_paid,
        payment_date=record.payment_date,
        is_partial_payment=record.is_partial_payment,
        partial_reason=record.partial_reason,
        created_at=record.created_at,
    )


def _expense_to_response(expense: Expense) -> ExpenseResponse:
    return ExpenseResponse(
        id=expense.id,
        date=expense.date,
        property_id=expense.property_id,
        property_name=expense.property_name,
        unit_id=expense.unit_id,
        unit_number=expense.unit_number,
        amount=str(expense.amount),
        reason=expense.reason,
        category=expense.category,
        notes=expense.notes,
        created_at=expense.created_at,
    )


def _arrears_to_response(entry: ArrearsEntry) -> ArrearsResponse:
    return ArrearsResponse(
        record=_record_to_response(entry.record),
        days_overdue=entry.days_overdue,
        amount_remaining=str(entry.amount_remaining),
    )


def _result_to_response(result: ReconciliationResult) -> RegenerateResponse:
    return RegenerateResponse(
        unit_id=result.unit_id,
        created=result.created,
        updated=result.updated,
        skipped=result.skipped,
        error=result.error,
    )


def _unit_from_payload(payload: UnitCreate, unit_id: str | None = None) -> Unit:
    unit = Unit(
        property_id=payload.property_id,
        number=payload.number,
        tenant_name=payload.tenant_name,
        rent_amount=Decimal(payload.rent_amount),
        move_in_date=payload.move_in_date,
        phone_number=payload.phone_number,
        email=payload.email,
        emergency_contact_name=payload.emergency_contact_name,
        emergency_contact_phone=payload.emergency_contact_phone,
        lease_start_date=payload.lease_start_date,
        lease_end_date=payload.lease_end_date,
        lease_term=payload.lease_term,
        security_deposit_amount=Decimal(payload.security_deposit_amount),
        rent_increment_amount=Decimal(payload.rent_increment_amount),
        rent_increment_effective_date=payload.rent_increment_effective_date,
        notes=payload.notes,
    )
    if unit_id:
        unit.id = unit_id
    return unit


def _stringify(values: dict[str, Any]) -> dict[str, Any]:
    return {k: str(v) if isinstance(v, Decimal) else v for k, v in values.items()}


# Health endpoint
@health_router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__)


# Property endpoints
@property_router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_property(
    payload: PropertyCreate,
    db: Annotated[SQLiteDatabase, Depends()],
) -> PropertyResponse:
    """Create a new property."""
    prop = get_services(db).property_service.create_property(
        name=payload.name,
        address=payload.address,
        notes=payload.notes,
        image_url=payload.image_url,
    )
    return _property_to_response(prop)


@property_router.get("", response_model=list[PropertyResponse])
def list_properties(
    db: Annotated[SQLiteDatabase, Depends()],
) -> list[PropertyResponse]:
    """List all properties."""
    props = get_services(db).property_service.list_properties()
    return [_property_to_response(p) for p in props]


@property_router.get("/{property_id}", response_model=PropertyResponse)
def get_property(
    property_id: str,
    db: Annotated[SQLiteDatabase, Depends()],
) -> PropertyResponse:
    """Get property by ID."""
    return _property_to_response(get_services(db).property_service.get(property_id))


@property_router.put("/{property_id}", response_model=PropertyResponse)
def update_property(
    property_id: str,
    payload: PropertyUpdate,
    db: Annotated[SQLiteDatabase, Depends()],
) -> PropertyResponse:
    """Update a property. A rename is carried onto its units and rent records."""
    service = get_services(db).property_service
    prop = service.get(property_id)
    prop.name = payload.name
    prop.address = payload.address
    prop.notes = payload.notes
    prop.image_url = payload.image_url
    return _property_to_response(service.update_property(prop))


@property_router.delete("/{property_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_property(
    property_id: str,
    db: Annotated[SQLiteDatabase, Depends()],
) -> Response:
    """Delete a property with its units and their rent records."""
    get_services(db).property_service.delete_property(property_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Unit endpoints
@unit_router.post(
    "",
    response_model=UnitSavedResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_unit(
    payload: UnitCreate,
    db: Annotated[SQLiteDatabase, Depends()],
    as_of: date | None = Query(default=None),
) -> UnitSavedResponse:
    """Add a unit and generate its rent records."""
    unit, result = get_services(db).property_service.add_unit(
        _unit_from_payload(payload), as_of=as_of
    )
    return UnitSavedResponse(
        unit=_unit_to_response(unit),
        records_created=result.created,
        records_updated=result.updated,
    )


@unit_router.get("", response_model=list[UnitResponse])
def list_units(
    db: Annotated[SQLiteDatabase, Depends()],
    property_id: str | None = Query(default=None),
) -> list[UnitResponse]:
    """List units, optionally filtered by property_id."""
    units = get_services(db).property_service.list_units(property_id)
    return [_unit_to_response(u) for u in units]


@unit_router.get("/{unit_id}", response_model=UnitResponse)
def get_unit(
    unit_id: str,
    db: Annotated[SQLiteDatabase, Depends()],
) -> UnitResponse:
    return _unit_to_response(get_services(db).property_service.get_unit(unit_id))


@unit_router.put("/{unit_id}", response_model=UnitSavedResponse)
def update_unit(
    unit_id: str,
    payload: UnitCreate,
    db: Annotated[SQLiteDatabase, Depends()],
    as_of: date | None = Query(default=None),
) -> UnitSavedResponse:
    """Update a unit and regenerate its rent records."""
    service = get_services(db).property_service
    current = service.get_unit(unit_id)
    unit = _unit_from_payload(payload, unit_id=unit_id)
    unit.created_at = current.created_at
    unit, result = service.update_unit(unit, as_of=as_of)
    return UnitSavedResponse(
        unit=_unit_to_response(unit),
        records_created=result.created,
        records_updated=result.updated,
    )


@unit_router.delete("/{unit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_unit(
    unit_id: str,
    db: Annotated[SQLiteDatabase, Depends()],
) -> Response:
    """Delete a unit and its rent records."""
    get_services(db).property_service.delete_unit(unit_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@unit_router.get("/{unit_id}/history", response_model=list[RentRecordResponse])
def tenant_history(
    unit_id: str,
    db: Annotated[SQLiteDatabase, Depends()],
) -> list[RentRecordResponse]:
    """A unit's rent records, newest month first."""
    records = get_services(db).property_service.tenant_history(unit_id)
    return [_record_to_response(r) for r in records]


@unit_router.post("/{unit_id}/regenerate", response_model=RegenerateResponse)
def regenerate_unit(
    unit_id: str,
    db: Annotated[SQLiteDatabase, Depends()],
    as_of: date | None = Query(default=None),
) -> RegenerateResponse:
    """Bring one unit's rent records up to date."""
    result = get_services(db).rent_ledger_service.regenerate_unit(
        unit_id, as_of or date.today()
    )
    return _result_to_response(result)


# Rent record endpoints
@rent_router.get("", response_model=list[RentRecordResponse])
def list_rent_records(
    db: Annotated[SQLiteDatabase, Depends()],
    unit_id: str | None = Query(default=None),
    property_id: str | None = Query(default=None),
    month_year: str | None = Query(default=None, pattern=r"^\d{4}-\d{2}$"),
    unpaid_only: bool = Query(default=False),
) -> list[RentRecordResponse]:
    """List rent records, filtered by unit, property or month."""
    repo = get_services(db).rent_record_repo
    if unit_id:
        records = list(repo.list_by_unit(unit_id))
    elif property_id:
        records = list(repo.list_by_property(property_id))
    elif month_year:
        records = list(repo.list_by_month(month_year))
    else:
        records = list(repo.list_all())

    if month_year:
        records = [r for r in records if r.month_year == month_year]
    if property_id:
        records = [r for r in records if r.property_id == property_id]
    if unpaid_only:
        records = [r for r in records if not r.is_paid]
    return [_record_to_response(r) for r in records]


@rent_router.post("/regenerate", response_model=list[RegenerateResponse])
def catch_up_all(
    db: Annotated[SQLiteDatabase, Depends()],
    as_of: date | None = Query(default=None),
) -> list[RegenerateResponse]:
    """Regenerate rent records for every unit."""
    results = get_services(db).rent_ledger_service.catch_up_all(as_of or date.today())
    return [_result_to_response(r) for r in results]


@rent_router.get("/arrears", response_model=list[ArrearsResponse])
def list_arrears(
    db: Annotated[SQLiteDatabase, Depends()],
    as_of: date | None = Query(default=None),
    property_id: str | None = Query(default=None),
) -> list[ArrearsResponse]:
    """Unpaid, overdue rent, most overdue first."""
    entries = get_services(db).payment_service.arrears(
        as_of or date.today(), property_id=property_id
    )
    return [_arrears_to_response(e) for e in entries]


@rent_router.post("/mark-paid", response_model=BulkRecordResponse)
def mark_paid(
    payload: BulkRecordRequest,
    db: Annotated[SQLiteDatabase, Depends()],
    as_of: date | None = Query(default=None),
) -> BulkRecordResponse:
    updated = get_services(db).payment_service.mark_many_paid(
        payload.record_ids, as_of or date.today()
    )
    return BulkRecordResponse(count=len(updated))


@rent_router.post("/mark-unpaid", response_model=BulkRecordResponse)
def mark_unpaid(
    payload: BulkRecordRequest,
    db: Annotated[SQLiteDatabase, Depends()],
) -> BulkRecordResponse:
    updated = get_services(db).payment_service.mark_many_unpaid(payload.record_ids)
    return BulkRecordResponse(count=len(updated))


@rent_router.post("/delete", response_model=BulkRecordResponse)
def delete_records(
    payload: BulkRecordRequest,
    db: Annotated[SQLiteDatabase, Depends()],
) -> BulkRecordResponse:
    count = get_services(db).payment_service.delete_many(payload.record_ids)
    return BulkRecordResponse(count=count)


@rent_router.get("/{record_id}", response_model=RentRecordResponse)
def get_rent_record(
    record_id: str,
    db: Annotated[SQLiteDatabase, Depends()],
) -> RentRecordResponse:
    return _record_to_response(get_services(db).payment_service.get_record(record_id))


@rent_router.post("/{record_id}/payment", response_model=PaymentResponse)
def record_payment(
    record_id: str,
    payload: PaymentCreate,
    db: Annotated[SQLiteDatabase, Depends()],
) -> PaymentResponse:
    """Record a full or partial payment."""
    outcome = get_services(db).payment_service.record_payment(
        record_id,
        payment_date=payload.payment_date,
        amount_received=Decimal(payload.amount_received),
        reason=payload.reason,
        notes=payload.notes,
    )
    return PaymentResponse(
        record=_record_to_response(outcome.record),
        expense=_expense_to_response(outcome.expense) if outcome.expense else None,
    )


@rent_router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rent_record(
    record_id: str,
    db: Annotated[SQLiteDatabase, Depends()],
) -> Response:
    get_services(db).payment_service.delete_record(record_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Expense endpoints
@expense_router.post(
    "",
    response_model=ExpenseResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_expense(
    payload: ExpenseCreate,
    db: Annotated[SQLiteDatabase, Depends()],
) -> ExpenseResponse:
    expense = get_services(db).expense_service.add_expense(
        expense_date=payload.date,
        property_id=payload.property_id,
        amount=Decimal(payload.amount),
        category=payload.category,
        unit_id=payload.unit_id,
        reason=payload.reason,
        notes=payload.notes,
    )
    return _expense_to_response(expense)


@expense_router.get("", response_model=list[ExpenseResponse])
def list_expenses(
    db: Annotated[SQLiteDatabase, Depends()],
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    property_id: str | None = Query(default=None),
) -> list[ExpenseResponse]:
    expenses = get_services(db).expense_service.list_expenses(
        start_date, end_date, property_id
    )
    return [_expense_to_response(e) for e in expenses]


@expense_router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(
    expense_id: str,
    db: Annotated[SQLiteDatabase, Depends()],
) -> Response:
    get_services(db).expense_service.delete_expense(expense_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Report endpoints
@report_router.get("/summary", response_model=SummaryResponse)
def summary_report(
    db: Annotated[SQLiteDatabase, Depends()],
    start_date: date = Query(...),
    end_date: date = Query(...),
    property_id: str | None = Query(default=None),
) -> SummaryResponse:
    """Dashboard figures for a period."""
    if start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must not be after end_date",
        )
    reporting = get_services(db).reporting_service
    report = reporting.summary(start_date, end_date, property_id)
    totals = report["totals"]
    return SummaryResponse(
        start_date=start_date,
        end_date=end_date,
        property_id=property_id,
        rent_collected=str(totals["rent_collected"]),
        rent_unpaid=str(totals["rent_unpaid"]),
        total_expenses=str(totals["total_expenses"]),
        net_income=str(totals["net_income"]),
        record_count=report["record_count"],
        unpaid_count=report["unpaid_count"],
        has_unpaid_alert=report["has_unpaid_alert"],
        monthly_net_income=[
            _stringify(row) for row in reporting.monthly_net_income(end_date)
        ],
        expenses_by_category={
            category: str(amount)
            for category, amount in reporting.expenses_by_category(
                start_date, end_date, property_id
            ).items()
        },
        profit_loss_by_property=[
            _stringify(row)
            for row in reporting.profit_loss_by_property(start_date, end_date)
        ],
    )


# Export endpoints
@export_router.get("/{kind}")
def export_data(
    kind: str,
    db: Annotated[SQLiteDatabase, Depends()],
    fmt: str = Query(default="csv", alias="format", pattern=r"^(csv|json)$"),
) -> Response:
    """Download rent records, expenses or properties with units."""
    services = get_services(db)
    if kind == "rent":
        rows = [export.rent_record_row(r) for r in services.rent_record_repo.list_all()]
        headers = export.RENT_RECORD_HEADERS
    elif kind == "expenses":
        rows = [export.expense_row(e) for e in services.expense_repo.list_all()]
        headers = export.EXPENSE_HEADERS
    elif kind == "properties":
        rows = export.property_unit_rows(
            services.property_repo.list_all(), services.unit_repo.list_all()
        )
        headers = export.PROPERTY_UNIT_HEADERS
    else:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown export kind: {kind}",
        )

    if fmt == "json":
        return Response(content=export.to_json(rows), media_type="application/json")
    return Response(
        content=export.to_csv(rows, headers),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{kind}.csv"'},
    )
