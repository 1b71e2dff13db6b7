"""Pydantic v2 schemas for API request/response models."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    status: str
    version: str = ""


# Property Schemas
class PropertyCreate(BaseModel):
    """Schema for creating a property."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    address: str = ""
    notes: str = ""
    image_url: str = ""


class PropertyUpdate(PropertyCreate):
    """Schema for replacing a property's details."""


class PropertyResponse(BaseModel):
    """Schema for property response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    address: str
    notes: str
    image_url: str
    created_at: datetime


# Unit Schemas
class UnitCreate(BaseModel):
    """Schema for creating or updating a unit."""

    model_config = ConfigDict(str_strip_whitespace=True)

    property_id: str = Field(..., min_length=1)
    number: str = Field(..., min_length=1, max_length=64)
    tenant_name: str = ""
    rent_amount: str = Field(..., pattern=r"^-?\d+(\.\d+)?$")
    move_in_date: date
    phone_number: str = ""
    email: str = ""
    emergency_contact_name: str = ""
    emergency_contact_phone: str = ""
    lease_start_date: date | None = None
    lease_end_date: date | None = None
    lease_term: str = ""
    security_deposit_amount: str = Field(default="0", pattern=r"^\d+(\.\d+)?$")
    rent_increment_amount: str = Field(default="0", pattern=r"^-?\d+(\.\d+)?$")
    rent_increment_effective_date: date | None = None
    notes: str = ""


class UnitResponse(BaseModel):
    """Schema for unit response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    property_id: str
    property_name: str
    number: str
    tenant_name: str
    rent_amount: str
    move_in_date: date | None
    phone_number: str
    email: str
    emergency_contact_name: str
    emergency_contact_phone: str
    lease_start_date: date | None
    lease_end_date: date | None
    lease_term: str
    security_deposit_amount: str
    rent_increment_amount: str
    rent_increment_effective_date: date | None
    notes: str
    created_at: datetime


class UnitSavedResponse(BaseModel):
    unit: UnitResponse
    records_created: int
    records_updated: int


# Rent Record Schemas
class RentRecordResponse(BaseModel):
    """Schema for rent record response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    unit_id: str
    property_id: str
    property_name: str
    unit_number: str
    tenant_name: str
    month_year: str
    due_date: date
    amount: str
    amount_received: str
    amount_remaining: str
    is_paid: bool
    payment_date: date | None
    is_partial_payment: bool
    partial_reason: str
    created_at: datetime


class PaymentCreate(BaseModel):
    """Schema for recording a payment against a rent record."""

    model_config = ConfigDict(str_strip_whitespace=True)

    payment_date: date
    amount_received: str = Field(..., pattern=r"^-?\d+(\.\d+)?$")
    reason: str | None = None
    notes: str = ""


class ExpenseResponse(BaseModel):
    """Schema for expense response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    date: date
    property_id: str
    property_name: str
    unit_id: str | None
    unit_number: str
    amount: str
    reason: str
    category: str
    notes: str
    created_at: datetime


class PaymentResponse(BaseModel):
    record: RentRecordResponse
    expense: ExpenseResponse | None = None


class BulkRecordRequest(BaseModel):
    record_ids: list[str] = Field(..., min_length=1)


class BulkRecordResponse(BaseModel):
    count: int


class RegenerateResponse(BaseModel):
    unit_id: str
    created: int
    updated: int
    skipped: bool
    error: str | None = None


class ArrearsResponse(BaseModel):
    record: RentRecordResponse
    days_overdue: int
    amount_remaining: str


# Expense Schemas
class ExpenseCreate(BaseModel):
    """Schema for creating an expense."""

    model_config = ConfigDict(str_strip_whitespace=True)

    date: date
    property_id: str = Field(..., min_length=1)
    unit_id: str | None = None
    amount: str = Field(..., pattern=r"^-?\d+(\.\d+)?$")
    category: str = Field(..., min_length=1, max_length=100)
    reason: str = ""
    notes: str = ""


# Report Schemas
class SummaryResponse(BaseModel):
    """Schema for the dashboard summary."""

    start_date: date
    end_date: date
    property_id: str | None
    rent_collected: str
    rent_unpaid: str
    total_expenses: str
    net_income: str
    record_count: int
    unpaid_count: int
    has_unpaid_alert: bool
    monthly_net_income: list[dict[str, Any]] = Field(default_factory=list)
    expenses_by_category: dict[str, str] = Field(default_factory=dict)
    profit_loss_by_property: list[dict[str, Any]] = Field(default_factory=list)
