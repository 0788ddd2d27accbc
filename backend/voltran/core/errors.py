"""
Typed errors raised by the ledger core and the identity surface.

Every error carries a machine-readable ``code``, the HTTP ``status_code`` the
API layer answers with, a display ``message`` and a structured ``detail`` dict
that is merged into the response body.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any


def format_quantity(value: float) -> str:
    # Full precision, no exponent: 1500000 -> "1500000", 12345.678 -> "12345.678".
    return f"{Decimal(str(float(value))).normalize():f}"


class LedgerError(Exception):
    code = "error"
    status_code = 400

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = detail

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code, **self.detail}


class ValidationError(LedgerError):
    code = "validation_error"
    status_code = 400

    def __init__(self, message: str, field: str | None = None, **detail: Any) -> None:
        if field is not None:
            detail["field"] = field
        super().__init__(message, **detail)
        self.field = field


class NotFound(LedgerError):
    code = "not_found"
    status_code = 404


class InsufficientStock(LedgerError):
    code = "insufficient_stock"
    status_code = 400

    def __init__(self, available: float, unit: str, requested: float) -> None:
        super().__init__(
            f"Insufficient stock. Available: {format_quantity(available)} {unit}",
            available=float(available),
            unit=unit,
            requested=float(requested),
        )
        self.available = float(available)
        self.unit = unit
        self.requested = float(requested)


class InternalError(LedgerError):
    code = "internal_error"
    status_code = 500

    def __init__(self, message: str = "Internal Server Error") -> None:
        super().__init__(message)


class MaterialBusy(LedgerError):
    """The material's mutation lock could not be acquired in time; safe to retry."""

    code = "material_busy"
    status_code = 503
    retryable = True

    def __init__(self, material_id: str, waited_sec: float) -> None:
        super().__init__(
            "Material is being updated by another request, please retry",
            material_id=material_id,
            waited_sec=float(waited_sec),
        )


class Conflict(LedgerError):
    code = "conflict"
    status_code = 409


class Unauthorized(LedgerError):
    code = "unauthorized"
    status_code = 401
