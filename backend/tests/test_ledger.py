from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from voltran.core.errors import InsufficientStock, InternalError, MaterialBusy, NotFound, ValidationError
from voltran.services.dashboard import is_low_stock
from voltran.services.ledger import LedgerEngine
from voltran.services.locks import MaterialLocks
from voltran.services.material_repository import MaterialRepository
from voltran.services.transaction_log import TransactionLog

from conftest import BOLT


async def _bolt(session_factory, owner, **overrides):
    async with session_factory() as s:
        return await MaterialRepository(s).create(owner, {**BOLT, **overrides})


async def _quantity(session_factory, owner, material_id) -> float:
    async with session_factory() as s:
        return (await MaterialRepository(s).get(owner, material_id)).quantity


class TestRecordMovements:
    async def test_inward_then_outward_scenario(self, session, session_factory, owner, locks):
        m = await _bolt(session_factory, owner)
        engine = LedgerEngine(session, locks)

        out = await engine.record_inward(owner, str(m.id), 50, "Acme", invoice="INV-1")
        assert out["new_stock"] == 150
        assert out["material_name"] == "Bolt"
        assert out["invoice"] == "INV-1"

        with pytest.raises(InsufficientStock) as ei:
            await engine.record_outward(owner, m.id, 200, "Line 7")
        assert ei.value.available == 150
        assert str(ei.value) == "Insufficient stock. Available: 150 pcs"
        assert await _quantity(session_factory, owner, m.id) == 150
        assert len(await TransactionLog(session).list_outward(owner)) == 0

        out = await engine.record_outward(owner, m.id, 150, "Line 7", supervisor="Ravi")
        assert out["new_stock"] == 0
        assert out["supervisor"] == "Ravi"

        after = await MaterialRepository(session).get(owner, m.id)
        assert after.quantity == 0
        assert is_low_stock(after)

    async def test_quantity_equals_initial_plus_inward_minus_outward(self, session, session_factory, owner, locks):
        m = await _bolt(session_factory, owner, quantity=10)
        engine = LedgerEngine(session, locks)
        for q in (5, 7.5, 2):
            await engine.record_inward(owner, m.id, q, "Acme")
        for q in (3, 11):
            await engine.record_outward(owner, m.id, q, "Line 7")
        with pytest.raises(InsufficientStock):
            await engine.record_outward(owner, m.id, 100, "Line 7")

        log = TransactionLog(session)
        inward = sum(r["quantity"] for r in await log.list_inward(owner, m.id))
        outward = sum(r["quantity"] for r in await log.list_outward(owner, m.id))
        assert await _quantity(session_factory, owner, m.id) == pytest.approx(10 + inward - outward)
        assert inward == 14.5 and outward == 14

    @pytest.mark.parametrize("quantity", [0, -5, None, "abc"])
    async def test_quantity_must_be_positive(self, session, session_factory, owner, locks, quantity):
        m = await _bolt(session_factory, owner)
        with pytest.raises(ValidationError) as ei:
            await LedgerEngine(session, locks).record_inward(owner, m.id, quantity, "Acme")
        assert ei.value.field == "quantity"
        assert await _quantity(session_factory, owner, m.id) == 100

    async def test_required_fields(self, session, session_factory, owner, locks):
        m = await _bolt(session_factory, owner)
        engine = LedgerEngine(session, locks)

        with pytest.raises(ValidationError) as ei:
            await engine.record_inward(owner, None, 5, "Acme")
        assert ei.value.field == "materialId"
        with pytest.raises(ValidationError) as ei:
            await engine.record_inward(owner, m.id, 5, " ")
        assert ei.value.field == "supplier"
        with pytest.raises(ValidationError) as ei:
            await engine.record_outward(owner, m.id, 5, None)
        assert ei.value.field == "project"

    async def test_unknown_or_foreign_material(self, session, session_factory, owner, other_owner, locks):
        m = await _bolt(session_factory, owner)
        engine = LedgerEngine(session, locks)

        with pytest.raises(NotFound):
            await engine.record_inward(other_owner, m.id, 5, "Acme")
        with pytest.raises(NotFound):
            await engine.record_outward(owner, "mat-0001", 5, "Line 7")
        assert await _quantity(session_factory, owner, m.id) == 100
        assert await TransactionLog(session).list_inward(other_owner) == []

    async def test_movement_date(self, session, session_factory, owner, locks):
        m = await _bolt(session_factory, owner)
        engine = LedgerEngine(session, locks)

        out = await engine.record_inward(owner, m.id, 1, "Acme", date="2024-01-31T23:30:00Z")
        assert out["date"] == datetime(2024, 1, 31, 23, 30, tzinfo=timezone.utc)

        out = await engine.record_inward(owner, m.id, 1, "Acme", date=datetime(2024, 2, 1, 8, 0))
        assert out["date"].tzinfo is not None

        before = datetime.now(timezone.utc)
        out = await engine.record_outward(owner, m.id, 1, "Line 7")
        assert out["date"] >= before

        with pytest.raises(ValidationError) as ei:
            await engine.record_inward(owner, m.id, 1, "Acme", date="yesterday")
        assert ei.value.field == "date"


class TestConcurrency:
    async def test_competing_outwards_never_oversell(self, session_factory, owner, locks):
        m = await _bolt(session_factory, owner)

        async def take(q):
            async with session_factory() as s:
                try:
                    return await LedgerEngine(s, locks).record_outward(owner, m.id, q, "Line 7")
                except InsufficientStock as e:
                    return e

        results = await asyncio.gather(take(60), take(60))
        ok = [r for r in results if isinstance(r, dict)]
        rejected = [r for r in results if isinstance(r, InsufficientStock)]

        assert len(ok) == 1 and len(rejected) == 1
        assert rejected[0].available == 40
        assert await _quantity(session_factory, owner, m.id) == 40

    async def test_many_small_outwards(self, session_factory, owner, locks):
        m = await _bolt(session_factory, owner)

        async def take():
            async with session_factory() as s:
                try:
                    return await LedgerEngine(s, locks).record_outward(owner, str(m.id), 15, "Line 7")
                except InsufficientStock:
                    return None

        results = await asyncio.gather(*(take() for _ in range(8)))

        assert sum(r is not None for r in results) == 6
        assert await _quantity(session_factory, owner, m.id) == 10
        async with session_factory() as s:
            assert len(await TransactionLog(s).list_outward(owner)) == 6

    async def test_lock_wait_is_bounded(self, session_factory, owner):
        m = await _bolt(session_factory, owner)
        impatient = MaterialLocks(timeout_sec=0.05)

        async with impatient.hold(m.id):
            assert impatient.is_locked(str(m.id))
            async with session_factory() as s:
                with pytest.raises(MaterialBusy) as ei:
                    await LedgerEngine(s, impatient).record_outward(owner, m.id, 5, "Line 7")

        assert ei.value.code == "material_busy"
        assert ei.value.status_code == 503
        assert not impatient.is_locked(m.id)
        assert await _quantity(session_factory, owner, m.id) == 100


class TestPrecision:
    async def test_quantities_are_kept_at_three_decimals(self, session, session_factory, owner, locks):
        m = await _bolt(session_factory, owner, quantity=1.0004)
        assert m.quantity == 1.0

        out = await LedgerEngine(session, locks).record_inward(owner, m.id, 1.0004, "Acme")

        assert out["quantity"] == 1.0
        assert out["new_stock"] == 2.0
        assert await _quantity(session_factory, owner, m.id) == 2.0

    async def test_half_up_rounding(self, session, session_factory, owner, locks):
        m = await _bolt(session_factory, owner, quantity=0)
        out = await LedgerEngine(session, locks).record_inward(owner, m.id, "2.0005", "Acme")
        assert out["new_stock"] == 2.001

    async def test_quantity_below_stored_scale_is_rejected(self, session, session_factory, owner, locks):
        m = await _bolt(session_factory, owner)

        with pytest.raises(ValidationError) as ei:
            await LedgerEngine(session, locks).record_outward(owner, m.id, 0.0001, "Line 7")

        assert ei.value.field == "quantity"
        assert await _quantity(session_factory, owner, m.id) == 100
        assert await TransactionLog(session).list_outward(owner) == []

    async def test_quantity_beyond_column_range(self, session, session_factory, owner, locks):
        m = await _bolt(session_factory, owner, quantity=99_999_999_999)
        engine = LedgerEngine(session, locks)

        with pytest.raises(ValidationError):
            await engine.record_inward(owner, m.id, 1e12, "Acme")
        with pytest.raises(ValidationError) as ei:
            await engine.record_inward(owner, m.id, 1, "Acme")

        assert ei.value.field == "quantity"
        assert await _quantity(session_factory, owner, m.id) == 99_999_999_999
        assert await TransactionLog(session).list_inward(owner) == []


class TestStorageFailure:
    async def test_failed_commit_rolls_back_and_raises_internal(
        self, session, session_factory, owner, locks, monkeypatch, caplog
    ):
        m = await _bolt(session_factory, owner)

        async def broken_commit():
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(session, "commit", broken_commit)

        with pytest.raises(InternalError) as ei:
            await LedgerEngine(session, locks).record_outward(owner, m.id, 30, "Line 7")

        assert ei.value.to_dict() == {"error": "Internal Server Error", "code": "internal_error"}
        assert "movement failed" in caplog.text
        assert not locks.is_locked(m.id)
        assert await _quantity(session_factory, owner, m.id) == 100
        async with session_factory() as s:
            assert await TransactionLog(s).list_outward(owner) == []
