from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from voltran.api.deps import get_db
from voltran.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, RegisterResponse, UserOut
from voltran.services.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)) -> RegisterResponse:
    u = await AuthService(db).register(body.username, body.password, body.role)
    return RegisterResponse(message="User registered successfully", user=UserOut.model_validate(u))


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)) -> LoginResponse:
    token, u = await AuthService(db).authenticate(body.username, body.password)
    return LoginResponse(message="Login successful", token=token, user=UserOut.model_validate(u))
