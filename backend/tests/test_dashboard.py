from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from voltran.db.models.inward_transaction import InwardTransaction
from voltran.db.models.material import Material
from voltran.db.models.outward_transaction import OutwardTransaction
from voltran.services.dashboard import DashboardAggregator, DashboardSnapshot, aggregate, monthly_trend
from voltran.services.ledger import LedgerEngine
from voltran.services.material_repository import MaterialRepository

from conftest import BOLT

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
OWNER = uuid.uuid4()


def _material(name, category="Fasteners", quantity=10.0, min_stock=0.0, unit="pcs"):
    return Material(
        id=uuid.uuid4(),
        owner_id=OWNER,
        name=name,
        category=category,
        unit=unit,
        quantity=quantity,
        min_stock=min_stock,
        created_at=NOW,
        updated_at=NOW,
    )


def _inward(material_id, qty, date):
    return InwardTransaction(
        id=uuid.uuid4(), owner_id=OWNER, material_id=material_id, quantity=qty,
        supplier="Acme", invoice="", date=date, created_at=date,
    )


def _outward(material_id, qty, date):
    return OutwardTransaction(
        id=uuid.uuid4(), owner_id=OWNER, material_id=material_id, quantity=qty,
        project="Line 7", supervisor="", date=date, created_at=date,
    )


def test_empty_snapshot():
    out = aggregate(DashboardSnapshot(), now=NOW)

    assert out["summary"] == {"total_materials": 0, "total_inward": 0, "total_outward": 0, "low_stock_count": 0}
    assert out["low_stock_items"] == []
    assert out["recent_transactions"] == []
    assert [r["month"] for r in out["monthly_trend"]] == [
        "Jan 2024", "Feb 2024", "Mar 2024", "Apr 2024", "May 2024", "Jun 2024",
    ]


def test_summary_low_stock_and_categories():
    bolt = _material("Bolt", quantity=0, min_stock=20)
    nut = _material("Nut", quantity=20, min_stock=20)
    angle = _material("Angle", category="Steel", quantity=500, min_stock=50, unit="kg")
    washer = _material("Washer", quantity=30, min_stock=5)
    snap = DashboardSnapshot(
        materials=[bolt, nut, angle, washer],
        inward=[_inward(bolt.id, 50, NOW), _inward(angle.id, 25.5, NOW)],
        outward=[_outward(bolt.id, 150, NOW)],
    )

    out = aggregate(snap, now=NOW)

    assert out["summary"] == {
        "total_materials": 4, "total_inward": 75.5, "total_outward": 150, "low_stock_count": 2,
    }
    # quantity == minStock counts as low
    assert [m["name"] for m in out["low_stock_items"]] == ["Bolt", "Nut"]
    assert out["category_breakdown"] == [
        {"category": "Fasteners", "total_quantity": 50.0, "count": 3},
        {"category": "Steel", "total_quantity": 500.0, "count": 1},
    ]


def test_month_boundaries():
    m = _material("Bolt")
    first_of_month = datetime(2024, 6, 1, 0, 0, tzinfo=timezone.utc)
    last_of_previous = datetime(2024, 5, 31, 23, 59, 59, tzinfo=timezone.utc)
    too_old = datetime(2023, 12, 31, 23, 0, tzinfo=timezone.utc)

    trend = monthly_trend(
        [_inward(m.id, 7, first_of_month), _inward(m.id, 3, last_of_previous), _inward(m.id, 100, too_old)],
        [_outward(m.id, 2, last_of_previous)],
        NOW,
    )

    by_month = {r["month"]: r for r in trend}
    assert by_month["Jun 2024"] == {"month": "Jun 2024", "inward": 7, "outward": 0}
    assert by_month["May 2024"] == {"month": "May 2024", "inward": 3, "outward": 2}
    assert sum(r["inward"] for r in trend) == 10


def test_trend_crosses_year_end():
    trend = monthly_trend([], [], datetime(2024, 2, 29, tzinfo=timezone.utc))
    assert [r["month"] for r in trend] == ["Sep 2023", "Oct 2023", "Nov 2023", "Dec 2023", "Jan 2024", "Feb 2024"]


def test_recent_transactions_newest_first_and_limited():
    m = _material("Bolt")
    gone = uuid.uuid4()
    inward = [_inward(m.id, i + 1, NOW - timedelta(days=2 * i)) for i in range(7)]
    outward = [_outward(gone, i + 1, NOW - timedelta(days=2 * i + 1)) for i in range(7)]

    recent = aggregate(DashboardSnapshot([m], inward, outward), now=NOW)["recent_transactions"]

    assert len(recent) == 10
    dates = [r["date"] for r in recent]
    assert dates == sorted(dates, reverse=True)
    assert [r["kind"] for r in recent[:3]] == ["INWARD", "OUTWARD", "INWARD"]
    assert recent[0]["material_name"] == "Bolt"
    assert recent[1]["material_name"] == "Unknown"


def test_stock_level_names_are_truncated():
    long = _material("Galvanised Hex Bolt M16x120")
    short = _material("Bolt")

    levels = aggregate(DashboardSnapshot([long, short]), now=NOW)["stock_levels"]

    assert levels[0]["name"] == "Galvanised Hex Bolt …"
    assert len(levels[0]["name"]) == 21
    assert levels[1] == {"name": "Bolt", "quantity": 10.0, "min_stock": 0.0, "unit": "pcs"}


async def test_build_reads_owner_snapshot(session, owner, other_owner, locks):
    repo = MaterialRepository(session, locks)
    bolt = await repo.create(owner, BOLT)
    await repo.create(other_owner, {**BOLT, "name": "Theirs"})
    engine = LedgerEngine(session, locks)
    await engine.record_inward(owner, bolt.id, 50, "Acme")
    await engine.record_outward(owner, bolt.id, 150, "SiteA")

    out = await DashboardAggregator(session).build(owner)

    assert out["summary"]["total_materials"] == 1
    assert out["summary"]["low_stock_count"] == 1
    assert out["low_stock_items"][0]["name"] == "Bolt"
    assert out["monthly_trend"][-1]["inward"] == 50
    assert out["monthly_trend"][-1]["outward"] == 150
    assert [r["kind"] for r in out["recent_transactions"]] == ["OUTWARD", "INWARD"]


async def test_build_keeps_creation_order(session, owner, locks):
    repo = MaterialRepository(session, locks)
    for name, category in (("Zinc Washer", "Fasteners"), ("Angle", "Steel"), ("Bolt", "Fasteners")):
        await repo.create(owner, {**BOLT, "name": name, "category": category, "quantity": 5})

    out = await DashboardAggregator(session).build(owner)

    assert [s["name"] for s in out["stock_levels"]] == ["Zinc Washer", "Angle", "Bolt"]
    assert [m["name"] for m in out["low_stock_items"]] == ["Zinc Washer", "Angle", "Bolt"]
    assert [c["category"] for c in out["category_breakdown"]] == ["Fasteners", "Steel"]
    # plain listings stay alphabetical
    assert [m.name for m in await repo.list(owner)] == ["Angle", "Bolt", "Zinc Washer"]
