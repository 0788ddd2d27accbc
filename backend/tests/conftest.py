"""Shared fixtures: a throwaway SQLite database per test and an ASGI client bound to it."""

from __future__ import annotations

import os

# The app module builds its default engine at import time; keep it off PostgreSQL.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import uuid

import pytest
from httpx import ASGITransport, AsyncClient

from voltran.api.deps import get_db, get_locks
from voltran.db import models  # noqa: F401
from voltran.db.base import Base
from voltran.db.models.user import User
from voltran.db.session import make_engine, make_session_factory
from voltran.main import app
from voltran.services.locks import MaterialLocks


@pytest.fixture
async def engine(tmp_path):
    eng = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def locks():
    return MaterialLocks(timeout_sec=2.0)


async def _make_user(session_factory, username: str) -> uuid.UUID:
    async with session_factory() as s:
        u = User(username=username, password_hash="not-a-real-hash")
        s.add(u)
        await s.commit()
        return u.id


@pytest.fixture
async def owner(session_factory) -> uuid.UUID:
    return await _make_user(session_factory, "alice")


@pytest.fixture
async def other_owner(session_factory) -> uuid.UUID:
    return await _make_user(session_factory, "bob")


@pytest.fixture
async def client(session_factory, locks):
    async def _db():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_locks] = lambda: locks
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


BOLT = {"name": "Bolt", "category": "Fasteners", "quantity": 100, "unit": "pcs", "min_stock": 20}
