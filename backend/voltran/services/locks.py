from __future__ import annotations

import asyncio
import logging
import time
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from voltran.core.config import settings
from voltran.core.errors import MaterialBusy
from voltran.services.validation import parse_id

logger = logging.getLogger(__name__)


class MaterialLocks:
    """
    Per-material mutual exclusion for the mutation path.

    One asyncio.Lock per material id, held weakly: a lock lives only while a
    holder or waiter references it. Waiting is bounded; on timeout the caller
    gets a retryable MaterialBusy instead of queueing indefinitely.
    """

    def __init__(self, timeout_sec: float | None = None) -> None:
        self.timeout_sec = float(settings.lock_timeout_sec if timeout_sec is None else timeout_sec)
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @staticmethod
    def _key(material_id: object) -> str:
        # UUID objects and their string spellings must share one lock.
        return str(parse_id(material_id) or material_id)

    def is_locked(self, material_id: object) -> bool:
        lock = self._locks.get(self._key(material_id))
        return bool(lock and lock.locked())

    @asynccontextmanager
    async def hold(self, material_id: object) -> AsyncIterator[None]:
        key = self._key(material_id)
        lock = self._lock_for(key)
        started = time.monotonic()
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self.timeout_sec)
        except asyncio.TimeoutError:
            waited = time.monotonic() - started
            logger.warning("material lock timeout: material_id=%s waited=%.2fs", key, waited)
            raise MaterialBusy(key, waited) from None
        try:
            yield
        finally:
            lock.release()


material_locks = MaterialLocks()
