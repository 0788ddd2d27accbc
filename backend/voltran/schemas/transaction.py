from __future__ import annotations

from datetime import datetime
from uuid import UUID

from voltran.schemas.common import APIModel


class InwardCreate(APIModel):
    material_id: str | None = None
    quantity: float | None = None
    supplier: str | None = None
    invoice: str | None = None
    date: datetime | None = None


class OutwardCreate(APIModel):
    material_id: str | None = None
    quantity: float | None = None
    project: str | None = None
    supervisor: str | None = None
    date: datetime | None = None


class InwardOut(APIModel):
    id: UUID
    owner_id: UUID
    material_id: UUID
    quantity: float
    supplier: str
    invoice: str
    date: datetime
    material_name: str
    # Only present on the response of a freshly recorded movement.
    new_stock: float | None = None


class OutwardOut(APIModel):
    id: UUID
    owner_id: UUID
    material_id: UUID
    quantity: float
    project: str
    supervisor: str
    date: datetime
    material_name: str
    new_stock: float | None = None
