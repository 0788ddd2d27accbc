from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import field_validator

from voltran.schemas.common import APIModel


def _numeric_or_none(v: Any) -> Any:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return v
    if isinstance(v, str):
        try:
            return float(v)
        except ValueError:
            return None
    return None


class MaterialCreate(APIModel):
    # Presence/emptiness is checked by the repository so that direct callers
    # and HTTP callers get the same ValidationError.
    name: str | None = None
    category: str | None = None
    quantity: float | None = None
    unit: str | None = None
    min_stock: float | None = None

    @field_validator("min_stock", mode="before")
    @classmethod
    def _lenient_min_stock(cls, v: Any) -> Any:
        # Non-numeric thresholds fall back to the default (0).
        return _numeric_or_none(v)


class MaterialUpdate(APIModel):
    name: str | None = None
    category: str | None = None
    quantity: float | None = None
    unit: str | None = None
    min_stock: float | None = None


class MaterialOut(APIModel):
    id: UUID
    owner_id: UUID
    name: str
    category: str
    quantity: float
    unit: str
    min_stock: float
    created_at: datetime
    updated_at: datetime


class MaterialDeleted(APIModel):
    message: str
    material: MaterialOut


class MaterialOptions(APIModel):
    categories: list[str]
    units: list[str]
