from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from voltran.api.deps import get_current_owner, get_db, get_locks
from voltran.schemas.transaction import InwardCreate, InwardOut, OutwardCreate, OutwardOut
from voltran.services.ledger import LedgerEngine
from voltran.services.locks import MaterialLocks
from voltran.services.transaction_log import TransactionLog

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.get("/inward", response_model=list[InwardOut])
async def list_inward(
    material_id: str | None = Query(default=None, alias="materialId"),
    owner_id: UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    return await TransactionLog(db).list_inward(owner_id, material_id)


@router.post("/inward", response_model=InwardOut, status_code=201)
async def record_inward(
    body: InwardCreate,
    owner_id: UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
    locks: MaterialLocks = Depends(get_locks),
) -> dict:
    return await LedgerEngine(db, locks).record_inward(
        owner_id,
        body.material_id,
        body.quantity,
        body.supplier,
        invoice=body.invoice,
        date=body.date,
    )


@router.get("/outward", response_model=list[OutwardOut])
async def list_outward(
    material_id: str | None = Query(default=None, alias="materialId"),
    owner_id: UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    return await TransactionLog(db).list_outward(owner_id, material_id)


@router.post("/outward", response_model=OutwardOut, status_code=201)
async def record_outward(
    body: OutwardCreate,
    owner_id: UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
    locks: MaterialLocks = Depends(get_locks),
) -> dict:
    return await LedgerEngine(db, locks).record_outward(
        owner_id,
        body.material_id,
        body.quantity,
        body.project,
        supervisor=body.supervisor,
        date=body.date,
    )
