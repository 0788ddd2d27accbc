from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from voltran.core.errors import Conflict, Unauthorized, ValidationError
from voltran.core.security import create_access_token, hash_password, verify_password
from voltran.db.models.user import User

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "USER"


def _credentials(username: object, password: object) -> tuple[str, str]:
    if not isinstance(username, str) or not username.strip() or not isinstance(password, str) or not password:
        raise ValidationError("Username and password are required", field="username" if not username else "password")
    return username.strip(), password


class AuthService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _by_username(self, username: str) -> User | None:
        return (await self.session.execute(select(User).where(User.username == username))).scalars().first()

    async def register(self, username: object, password: object, role: object = None) -> User:
        name, pw = _credentials(username, password)
        if await self._by_username(name) is not None:
            raise Conflict("Username already exists", username=name)

        u = User(
            username=name,
            password_hash=hash_password(pw),
            role=role.strip() if isinstance(role, str) and role.strip() else DEFAULT_ROLE,
            created_at=datetime.now(timezone.utc),
        )
        self.session.add(u)
        try:
            await self.session.commit()
        except IntegrityError:
            # Lost a race against a concurrent registration of the same name.
            await self.session.rollback()
            raise Conflict("Username already exists", username=name) from None
        logger.info("user registered: id=%s username=%s role=%s", u.id, u.username, u.role)
        return u

    async def authenticate(self, username: object, password: object) -> tuple[str, User]:
        name, pw = _credentials(username, password)
        u = await self._by_username(name)
        if u is None or not verify_password(pw, u.password_hash):
            logger.warning("login failed: username=%s", name)
            raise Unauthorized("Invalid credentials")
        token = create_access_token({"sub": str(u.id), "username": u.username, "role": u.role})
        return token, u
