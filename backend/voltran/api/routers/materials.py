from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from voltran.api.deps import get_current_owner, get_db, get_locks
from voltran.core.config import settings
from voltran.schemas.material import (
    MaterialCreate,
    MaterialDeleted,
    MaterialOptions,
    MaterialOut,
    MaterialUpdate,
)
from voltran.schemas.transaction import InwardOut, OutwardOut
from voltran.services.locks import MaterialLocks
from voltran.services.material_repository import MaterialRepository
from voltran.services.transaction_log import TransactionLog

router = APIRouter(prefix="/api/materials", tags=["materials"])


@router.get("/options", response_model=MaterialOptions)
async def material_options(owner_id: UUID = Depends(get_current_owner)) -> MaterialOptions:
    return MaterialOptions(categories=settings.category_list, units=settings.unit_list)


@router.get("", response_model=list[MaterialOut])
async def list_materials(
    category: str | None = Query(default=None),
    q: str | None = Query(default=None, description="Case-insensitive search over name and category"),
    owner_id: UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> list:
    return await MaterialRepository(db).list(owner_id, category=category, q=q)


@router.post("", response_model=MaterialOut, status_code=201)
async def create_material(
    body: MaterialCreate,
    owner_id: UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
    locks: MaterialLocks = Depends(get_locks),
):
    return await MaterialRepository(db, locks).create(owner_id, body)


@router.get("/{material_id}", response_model=MaterialOut)
async def get_material(
    material_id: str,
    owner_id: UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
):
    return await MaterialRepository(db).get(owner_id, material_id)


@router.api_route("/{material_id}", methods=["PUT", "PATCH"], response_model=MaterialOut)
async def update_material(
    material_id: str,
    body: MaterialUpdate,
    owner_id: UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
    locks: MaterialLocks = Depends(get_locks),
):
    return await MaterialRepository(db, locks).update(owner_id, material_id, body)


@router.delete("/{material_id}", response_model=MaterialDeleted)
async def delete_material(
    material_id: str,
    owner_id: UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
    locks: MaterialLocks = Depends(get_locks),
) -> MaterialDeleted:
    m = await MaterialRepository(db, locks).delete(owner_id, material_id)
    return MaterialDeleted(message="Material deleted", material=MaterialOut.model_validate(m))


@router.get("/{material_id}/inward", response_model=list[InwardOut])
async def material_inward(
    material_id: str,
    owner_id: UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    await MaterialRepository(db).get(owner_id, material_id)
    return await TransactionLog(db).list_inward(owner_id, material_id)


@router.get("/{material_id}/outward", response_model=list[OutwardOut])
async def material_outward(
    material_id: str,
    owner_id: UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    await MaterialRepository(db).get(owner_id, material_id)
    return await TransactionLog(db).list_outward(owner_id, material_id)
