from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from voltran.schemas.common import APIModel
from voltran.schemas.material import MaterialOut


class DashboardSummary(APIModel):
    total_materials: int
    total_inward: float
    total_outward: float
    low_stock_count: int


class CategoryBreakdownRow(APIModel):
    category: str
    total_quantity: float
    count: int


class MonthlyTrendRow(APIModel):
    month: str
    inward: float
    outward: float


class RecentTransaction(APIModel):
    id: UUID
    kind: str = Field(alias="type")  # INWARD | OUTWARD
    owner_id: UUID
    material_id: UUID
    material_name: str
    quantity: float
    date: datetime
    supplier: str | None = None
    invoice: str | None = None
    project: str | None = None
    supervisor: str | None = None


class StockLevel(APIModel):
    name: str
    quantity: float
    min_stock: float
    unit: str


class DashboardOut(APIModel):
    summary: DashboardSummary
    low_stock_items: list[MaterialOut]
    category_breakdown: list[CategoryBreakdownRow]
    monthly_trend: list[MonthlyTrendRow]
    recent_transactions: list[RecentTransaction]
    stock_levels: list[StockLevel]
