from __future__ import annotations

from collections.abc import AsyncIterator
import logging
from urllib.parse import urlparse

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from voltran.core.config import settings

logger = logging.getLogger(__name__)


def make_engine(url: str) -> AsyncEngine:
    u = urlparse(url)
    logger.info("database engine: scheme=%s host=%s db=%s", u.scheme, u.hostname, (u.path or "").lstrip("/")[:32])
    if u.scheme.startswith("sqlite"):
        return create_async_engine(url, connect_args={"check_same_thread": False})
    return create_async_engine(url, pool_pre_ping=True)


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, expire_on_commit=False, class_=AsyncSession)


engine = make_engine(settings.database_url)
async_session_factory = make_session_factory(engine)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session_factory() as session:
        yield session
