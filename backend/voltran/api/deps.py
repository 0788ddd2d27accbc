from __future__ import annotations

from collections.abc import AsyncIterator
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from voltran.core.errors import Unauthorized
from voltran.core.security import decode_access_token
from voltran.db.session import get_session as _get_session
from voltran.services.locks import MaterialLocks, material_locks
from voltran.services.validation import parse_id

_bearer = HTTPBearer(auto_error=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    async for s in _get_session():
        yield s


def get_locks() -> MaterialLocks:
    return material_locks


async def get_current_owner(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> UUID:
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Access token required")
    try:
        claims = decode_access_token(credentials.credentials)
    except ValueError:
        raise Unauthorized("Invalid or expired token") from None
    owner = parse_id(claims.get("sub"))
    if owner is None:
        raise Unauthorized("Invalid or expired token")
    return owner
