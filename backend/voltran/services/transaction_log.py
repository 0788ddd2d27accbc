from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import Any, Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltran.db.models.inward_transaction import InwardTransaction
from voltran.db.models.material import Material
from voltran.db.models.outward_transaction import OutwardTransaction
from voltran.services.validation import parse_id

Transaction = Union[InwardTransaction, OutwardTransaction]

INWARD = "INWARD"
OUTWARD = "OUTWARD"
UNKNOWN_MATERIAL = "Unknown"


def kind_of(txn: Transaction) -> str:
    return INWARD if isinstance(txn, InwardTransaction) else OUTWARD


def transaction_to_dict(txn: Transaction) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": txn.id,
        "owner_id": txn.owner_id,
        "material_id": txn.material_id,
        "quantity": float(txn.quantity),
        "date": txn.date,
    }
    if isinstance(txn, InwardTransaction):
        row["supplier"] = txn.supplier
        row["invoice"] = txn.invoice or ""
    else:
        row["project"] = txn.project
        row["supervisor"] = txn.supervisor or ""
    return row


def enrich(txn: Transaction, names: dict[UUID, str]) -> dict[str, Any]:
    row = transaction_to_dict(txn)
    row["material_name"] = names.get(txn.material_id, UNKNOWN_MATERIAL)
    return row


class TransactionLog:
    """Append-only store of inward/outward movements, scoped by owner."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _records(self, model: type, owner_id: UUID, material_id: object | None) -> list:
        owner = parse_id(owner_id)
        if owner is None:
            return []
        stmt = select(model).where(model.owner_id == owner)
        if material_id is not None:
            mid = parse_id(material_id)
            if mid is None:
                return []
            stmt = stmt.where(model.material_id == mid)
        stmt = stmt.order_by(model.date.desc(), model.created_at.desc())
        return list((await self.session.execute(stmt)).scalars().all())

    async def inward_records(self, owner_id: UUID, material_id: object | None = None) -> list[InwardTransaction]:
        return await self._records(InwardTransaction, owner_id, material_id)

    async def outward_records(self, owner_id: UUID, material_id: object | None = None) -> list[OutwardTransaction]:
        return await self._records(OutwardTransaction, owner_id, material_id)

    async def material_names(self, owner_id: UUID, txns: Iterable[Transaction]) -> dict[UUID, str]:
        owner = parse_id(owner_id)
        ids = {t.material_id for t in txns}
        if owner is None or not ids:
            return {}
        rows = (
            await self.session.execute(
                select(Material.id, Material.name).where(Material.owner_id == owner, Material.id.in_(ids))
            )
        ).all()
        return {mid: name for mid, name in rows}

    async def list_inward(self, owner_id: UUID, material_id: object | None = None) -> list[dict[str, Any]]:
        rows = await self.inward_records(owner_id, material_id)
        names = await self.material_names(owner_id, rows)
        return [enrich(t, names) for t in rows]

    async def list_outward(self, owner_id: UUID, material_id: object | None = None) -> list[dict[str, Any]]:
        rows = await self.outward_records(owner_id, material_id)
        names = await self.material_names(owner_id, rows)
        return [enrich(t, names) for t in rows]

    async def append(self, txn: Transaction) -> Transaction:
        # Uniqueness is enforced by the primary key; the flush raises on a clash.
        if txn.id is None:
            txn.id = uuid.uuid4()
        self.session.add(txn)
        await self.session.flush()
        return txn
