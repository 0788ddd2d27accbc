from __future__ import annotations

from datetime import datetime
from uuid import UUID

from voltran.schemas.common import APIModel


class RegisterRequest(APIModel):
    username: str | None = None
    password: str | None = None
    role: str | None = None


class LoginRequest(APIModel):
    username: str | None = None
    password: str | None = None


class UserOut(APIModel):
    id: UUID
    username: str
    role: str
    created_at: datetime


class RegisterResponse(APIModel):
    message: str
    user: UserOut


class LoginResponse(APIModel):
    message: str
    token: str
    user: UserOut
