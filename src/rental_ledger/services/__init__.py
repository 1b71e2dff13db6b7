from rental_ledger.services.expense import ExpenseService
from rental_ledger.services.export import (
    EXPENSE_HEADERS,
    PROPERTY_UNIT_HEADERS,
    RENT_RECORD_HEADERS,
    to_csv,
    to_json,
)
from rental_ledger.services.payments import (
    PaymentOutcome,
    PaymentService,
    classify_arrears,
    mark_paid,
    mark_unpaid,
    record_payment,
)
from rental_ledger.services.properties import PropertyService
from rental_ledger.services.reconciler import (
    ReconciliationPlan,
    ReconciliationResult,
    RentLedgerService,
    reconcile,
)
from rental_ledger.services.reporting import ReportingService
from rental_ledger.services.schedule import generate_schedule, rent_for_period

__all__ = [
    "EXPENSE_HEADERS",
    "ExpenseService",
    "PROPERTY_UNIT_HEADERS",
    "PaymentOutcome",
    "PaymentService",
    "PropertyService",
    "RENT_RECORD_HEADERS",
    "ReconciliationPlan",
    "ReconciliationResult",
    "RentLedgerService",
    "ReportingService",
    "classify_arrears",
    "generate_schedule",
    "mark_paid",
    "mark_unpaid",
    "reconcile",
    "record_payment",
    "rent_for_period",
    "to_csv",
    "to_json",
]
