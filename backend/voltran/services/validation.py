from __future__ import annotations

import math
import uuid
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import BaseModel

from voltran.core.errors import ValidationError

# Quantity columns are Numeric(14, 3).
QUANTUM = Decimal("0.001")
QUANTITY_MAX = 99_999_999_999.999


def as_fields(data: Mapping[str, Any] | BaseModel | None) -> dict[str, Any]:
    """Normalize request payloads to a plain dict holding only the keys the caller sent."""
    if data is None:
        return {}
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_unset=True)
    return dict(data)


def parse_id(value: object) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return uuid.UUID(value.strip())
        except ValueError:
            return None
    return None


def to_number(value: object) -> float | None:
    """Finite float for ints, floats and numeric strings; None for anything else."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        n = float(value)
    elif isinstance(value, str):
        try:
            n = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(n):
        return None
    return n


def require_text(value: object, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", field=field)
    return value.strip()


def optional_text(value: object) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def quantize(n: float) -> float:
    """Round to the stored scale (3 decimals, half up) so responses match what is persisted."""
    return float(Decimal(str(n)).quantize(QUANTUM, rounding=ROUND_HALF_UP))


def require_number(value: object, field: str, *, minimum: float | None = None, strict: bool = False) -> float:
    n = to_number(value)
    if n is None:
        raise ValidationError(f"{field} must be a number", field=field)
    if abs(n) <= QUANTITY_MAX:
        n = quantize(n)
    if abs(n) > QUANTITY_MAX:
        raise ValidationError(f"{field} must be at most {QUANTITY_MAX:.3f}", field=field)
    if minimum is not None:
        if strict and n <= minimum:
            raise ValidationError(f"{field} must be greater than {minimum:g}", field=field)
        if not strict and n < minimum:
            raise ValidationError(f"{field} must be at least {minimum:g}", field=field)
    return n
