from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from voltran.db.models.inward_transaction import InwardTransaction
from voltran.db.models.material import Material
from voltran.db.models.outward_transaction import OutwardTransaction
from voltran.services.material_repository import MaterialRepository
from voltran.services.transaction_log import TransactionLog, enrich, kind_of

TREND_MONTHS = 6
RECENT_LIMIT = 10
NAME_MAX = 20
ELLIPSIS = "…"


@dataclass
class DashboardSnapshot:
    materials: list[Material] = field(default_factory=list)
    inward: list[InwardTransaction] = field(default_factory=list)
    outward: list[OutwardTransaction] = field(default_factory=list)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _month_start(year: int, month: int) -> datetime:
    return datetime(year, month, 1, tzinfo=timezone.utc)


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


def _short_name(name: str) -> str:
    return name[:NAME_MAX] + ELLIPSIS if len(name) > NAME_MAX else name


def is_low_stock(m: Material) -> bool:
    return float(m.quantity) <= float(m.min_stock)


def material_to_dict(m: Material) -> dict[str, Any]:
    return {
        "id": m.id,
        "owner_id": m.owner_id,
        "name": m.name,
        "category": m.category,
        "quantity": float(m.quantity),
        "unit": m.unit,
        "min_stock": float(m.min_stock),
        "created_at": m.created_at,
        "updated_at": m.updated_at,
    }


def monthly_trend(
    inward: list[InwardTransaction], outward: list[OutwardTransaction], now: datetime
) -> list[dict[str, Any]]:
    """
    Inward/outward totals for the last TREND_MONTHS calendar months, oldest first.

    A movement belongs to month M when start(M) <= date < start(M + 1), which
    covers the whole last day of M.
    """
    now = _as_utc(now)
    out: list[dict[str, Any]] = []
    for back in range(TREND_MONTHS - 1, -1, -1):
        y, m = _shift_month(now.year, now.month, -back)
        ny, nm = _shift_month(y, m, 1)
        start, end = _month_start(y, m), _month_start(ny, nm)
        out.append(
            {
                "month": start.strftime("%b %Y"),
                "inward": sum(float(t.quantity) for t in inward if start <= _as_utc(t.date) < end),
                "outward": sum(float(t.quantity) for t in outward if start <= _as_utc(t.date) < end),
            }
        )
    return out


def aggregate(snapshot: DashboardSnapshot, now: datetime | None = None) -> dict[str, Any]:
    """Pure projection of one owner's snapshot; recomputed from scratch on every call."""
    now = now or datetime.now(timezone.utc)
    materials = snapshot.materials

    low = [m for m in materials if is_low_stock(m)]

    categories: dict[str, dict[str, Any]] = {}
    for m in materials:
        row = categories.setdefault(m.category, {"category": m.category, "total_quantity": 0.0, "count": 0})
        row["total_quantity"] += float(m.quantity)
        row["count"] += 1

    names: dict[UUID, str] = {m.id: m.name for m in materials}
    movements = [*snapshot.inward, *snapshot.outward]
    movements.sort(key=lambda t: _as_utc(t.date), reverse=True)
    recent = []
    for t in movements[:RECENT_LIMIT]:
        row = enrich(t, names)
        row["kind"] = kind_of(t)
        recent.append(row)

    return {
        "summary": {
            "total_materials": len(materials),
            "total_inward": sum(float(t.quantity) for t in snapshot.inward),
            "total_outward": sum(float(t.quantity) for t in snapshot.outward),
            "low_stock_count": len(low),
        },
        "low_stock_items": [material_to_dict(m) for m in low],
        "category_breakdown": list(categories.values()),
        "monthly_trend": monthly_trend(snapshot.inward, snapshot.outward, now),
        "recent_transactions": recent,
        "stock_levels": [
            {
                "name": _short_name(m.name),
                "quantity": float(m.quantity),
                "min_stock": float(m.min_stock),
                "unit": m.unit,
            }
            for m in materials
        ],
    }


class DashboardAggregator:
    def __init__(self, session: AsyncSession) -> None:
        self.materials = MaterialRepository(session)
        self.log = TransactionLog(session)

    async def snapshot(self, owner_id: UUID) -> DashboardSnapshot:
        return DashboardSnapshot(
            materials=await self.materials.list(owner_id, stored_order=True),
            inward=await self.log.inward_records(owner_id),
            outward=await self.log.outward_records(owner_id),
        )

    async def build(self, owner_id: UUID, now: datetime | None = None) -> dict[str, Any]:
        return aggregate(await self.snapshot(owner_id), now)
