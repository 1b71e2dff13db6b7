"""Domain exception hierarchy for Rental Ledger.

All domain-specific exceptions inherit from RentalLedgerError. Validation
errors ("your input was invalid") and persistence errors ("the system failed
to save") are separate branches so callers can report them differently.
"""

from typing import Any


class RentalLedgerError(Exception):
    """Base exception for all Rental Ledger errors.

    Includes optional error_code for API responses and extra context.
    """

    error_code: str = "RL_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Validation Errors
# =============================================================================


class RentValidationError(RentalLedgerError):
    """Base exception for rejected input. Nothing is written when raised."""

    error_code = "VALIDATION_ERROR"
    status_code = 422


class InvalidMoveInDateError(RentValidationError):
    """Raised when a unit's move-in date is missing or not a calendar date."""

    error_code = "INVALID_MOVE_IN_DATE"

    def __init__(self, value: object) -> None:
        super().__init__(
            f"Move-in date must be a valid YYYY-MM-DD date, got {value!r}",
            context={"move_in_date": str(value) if value is not None else None},
        )


class NegativeAmountError(RentValidationError):
    """Raised when a rent, increment or payment amount is negative."""

    error_code = "NEGATIVE_AMOUNT"

    def __init__(self, field: str, value: object) -> None:
        super().__init__(
            f"{field} must not be negative, got {value}",
            context={"field": field, "value": str(value)},
        )


class PartialReasonRequiredError(RentValidationError):
    """Raised when a partial payment is recorded without a reason."""

    error_code = "PARTIAL_REASON_REQUIRED"

    def __init__(self, record_id: str) -> None:
        super().__init__(
            "Reason for difference is required for partial payments",
            context={"record_id": record_id},
        )


class InvalidPartialReasonError(RentValidationError):
    """Raised when a partial-payment reason is not one of the known reasons."""

    error_code = "INVALID_PARTIAL_REASON"

    def __init__(self, value: str) -> None:
        super().__init__(
            f"Unknown partial payment reason: {value}",
            context={"reason": value},
        )


class NegativeShortfallError(RentValidationError):
    """Raised when a maintenance deduction would produce a negative expense."""

    error_code = "NEGATIVE_SHORTFALL"

    def __init__(self, record_id: str, shortfall: str) -> None:
        super().__init__(
            f"Maintenance shortfall cannot be negative: {shortfall}",
            context={"record_id": record_id, "shortfall": shortfall},
        )


# =============================================================================
# Not Found Errors
# =============================================================================


class NotFoundError(RentalLedgerError):
    """Base exception for missing documents."""

    error_code = "NOT_FOUND"
    status_code = 404


class PropertyNotFoundError(NotFoundError):
    error_code = "PROPERTY_NOT_FOUND"

    def __init__(self, property_id: str) -> None:
        super().__init__(
            f"Property not found: {property_id}",
            context={"property_id": property_id},
        )


class UnitNotFoundError(NotFoundError):
    error_code = "UNIT_NOT_FOUND"

    def __init__(self, unit_id: str) -> None:
        super().__init__(
            f"Unit not found: {unit_id}",
            context={"unit_id": unit_id},
        )


class RentRecordNotFoundError(NotFoundError):
    error_code = "RENT_RECORD_NOT_FOUND"

    def __init__(self, record_id: str) -> None:
        super().__init__(
            f"Rent record not found: {record_id}",
            context={"record_id": record_id},
        )


# =============================================================================
# Persistence Errors
# =============================================================================


class LedgerPersistenceError(RentalLedgerError):
    """Raised when the store fails mid-write. The batch was rolled back."""

    error_code = "PERSISTENCE_ERROR"
    status_code = 503

    def __init__(self, operation: str, detail: str) -> None:
        super().__init__(
            f"Failed to save changes ({operation}): {detail}",
            context={"operation": operation},
        )


__all__ = [
    "RentalLedgerError",
    "RentValidationError",
    "InvalidMoveInDateError",
    "NegativeAmountError",
    "PartialReasonRequiredError",
    "InvalidPartialReasonError",
    "NegativeShortfallError",
    "NotFoundError",
    "PropertyNotFoundError",
    "UnitNotFoundError",
    "RentRecordNotFoundError",
    "LedgerPersistenceError",
]
