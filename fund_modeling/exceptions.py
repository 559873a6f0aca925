"""Exception hierarchy for fund_modeling.

All library exceptions inherit from FundModelingError, so callers can catch
every application error with one base class while still telling validation,
lookup, persistence and permission failures apart.

Degenerate arithmetic (division by zero inside the calculators) is not an
error: it produces inf/nan values that the formatting helpers render as a
placeholder.
"""

from __future__ import annotations

from typing import Any


class FundModelingError(Exception):
    """Base exception for all fund_modeling errors."""

    error_code: str = "FUND_MODELING_ERROR"

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(FundModelingError):
    """Input rejected before it reaches a calculator."""

    error_code = "VALIDATION_ERROR"


class InvalidFieldError(ValidationError):
    """A single field is missing, non-numeric or out of range."""

    error_code = "INVALID_FIELD"

    def __init__(self, field: str, value: Any, reason: str) -> None:
        super().__init__(
            f"Invalid {field} {value!r}: {reason}",
            context={"field": field, "value": repr(value), "reason": reason},
        )
        self.field = field


class CheckSizeError(ValidationError):
    """Raised when the check size is not strictly smaller than the fund."""

    error_code = "CHECK_SIZE_TOO_LARGE"

    def __init__(self, check_size: float, fund_size: float) -> None:
        super().__init__(
            f"Check size {check_size:,.0f} cannot be greater than or equal to "
            f"fund size {fund_size:,.0f}",
            context={"check_size": check_size, "fund_size": fund_size},
        )


# =============================================================================
# Persistence Errors
# =============================================================================


class StoreError(FundModelingError):
    """Opaque failure of the persistence collaborator. Never retried here."""

    error_code = "STORE_ERROR"


class RecordNotFoundError(StoreError):
    """Raised when a fund model, fund or investment row does not exist."""

    error_code = "RECORD_NOT_FOUND"

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(
            f"{kind} not found: {record_id}",
            context={"kind": kind, "id": str(record_id)},
        )


class ModelInUseError(StoreError):
    """Raised when deleting a fund model that a deployed fund still links to."""

    error_code = "MODEL_IN_USE"

    def __init__(self, model_id: str, fund_ids: list[str]) -> None:
        super().__init__(
            f"Fund model {model_id} is linked to {len(fund_ids)} deployed fund(s)",
            context={"model_id": str(model_id), "fund_ids": list(fund_ids)},
        )


# =============================================================================
# Authorization Errors
# =============================================================================


class PermissionDeniedError(FundModelingError):
    """Raised when the caller may not act on a resource."""

    error_code = "PERMISSION_DENIED"

    def __init__(self, action: str, resource: str) -> None:
        super().__init__(
            f"Permission denied: cannot {action} on {resource}",
            context={"action": action, "resource": resource},
        )
