from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from voltran.core.errors import InsufficientStock, NotFound, ValidationError
from voltran.db.models.material import Material
from voltran.services.locks import MaterialLocks, material_locks
from voltran.services.validation import (
    QUANTITY_MAX,
    as_fields,
    parse_id,
    require_number,
    require_text,
    to_number,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _not_found(material_id: object) -> NotFound:
    return NotFound("Material not found", material_id=str(material_id))


class MaterialRepository:
    """
    Owner-scoped access to Material rows.

    Every lookup filters on owner_id, so a material owned by someone else is
    indistinguishable from a missing one. create/update/delete commit on their
    own; apply_quantity_delta only flushes and leaves the commit to the ledger.
    """

    def __init__(self, session: AsyncSession, locks: MaterialLocks | None = None) -> None:
        self.session = session
        self.locks = locks or material_locks

    async def _load(self, owner_id: UUID, material_id: object, *, for_update: bool = False) -> Material:
        mid = parse_id(material_id)
        owner = parse_id(owner_id)
        if mid is None or owner is None:
            raise _not_found(material_id)
        stmt = select(Material).where(Material.id == mid, Material.owner_id == owner)
        if for_update:
            # Re-read under a row lock; never trust a copy cached in the identity map.
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        m = (await self.session.execute(stmt)).scalars().first()
        if m is None:
            raise _not_found(material_id)
        return m

    async def list(
        self,
        owner_id: UUID,
        category: str | None = None,
        q: str | None = None,
        *,
        stored_order: bool = False,
    ) -> list[Material]:
        """Owner's materials by name, or in creation order when ``stored_order`` is set."""
        owner = parse_id(owner_id)
        if owner is None:
            return []
        stmt = select(Material).where(Material.owner_id == owner)
        if category:
            stmt = stmt.where(Material.category == category)
        if q and q.strip():
            needle = q.strip().lower()
            stmt = stmt.where(
                or_(
                    func.lower(Material.name).contains(needle, autoescape=True),
                    func.lower(Material.category).contains(needle, autoescape=True),
                )
            )
        if stored_order:
            stmt = stmt.order_by(Material.created_at.asc(), Material.id.asc())
        else:
            stmt = stmt.order_by(Material.name.asc(), Material.created_at.asc())
        return list((await self.session.execute(stmt)).scalars().all())

    async def get(self, owner_id: UUID, material_id: object) -> Material:
        return await self._load(owner_id, material_id)

    async def create(self, owner_id: UUID, data: Mapping[str, Any] | BaseModel) -> Material:
        fields = as_fields(data)
        name = require_text(fields.get("name"), "name")
        category = require_text(fields.get("category"), "category")
        unit = require_text(fields.get("unit"), "unit")
        quantity = require_number(fields.get("quantity"), "quantity", minimum=0)

        # Non-numeric thresholds fall back to 0.
        raw_min = fields.get("min_stock")
        min_stock = 0.0 if to_number(raw_min) is None else require_number(raw_min, "minStock", minimum=0)

        owner = parse_id(owner_id)
        if owner is None:
            raise ValidationError("owner is required", field="ownerId")

        now = _utcnow()
        m = Material(
            owner_id=owner,
            name=name,
            category=category,
            unit=unit,
            quantity=quantity,
            min_stock=min_stock,
            created_at=now,
            updated_at=now,
        )
        self.session.add(m)
        await self.session.commit()
        logger.info(
            "material created: id=%s owner_id=%s name=%s quantity=%s unit=%s",
            m.id, owner, m.name, m.quantity, m.unit,
        )
        return m

    async def update(self, owner_id: UUID, material_id: object, partial: Mapping[str, Any] | BaseModel) -> Material:
        patch = as_fields(partial)

        # Validate before taking the lock; a malformed patch never waits.
        changes: dict[str, Any] = {}
        for key in ("name", "category", "unit"):
            v = patch.get(key)
            # Blank strings leave the field unchanged.
            if isinstance(v, str) and v.strip():
                changes[key] = v.strip()
        if patch.get("quantity") is not None:
            changes["quantity"] = require_number(patch["quantity"], "quantity", minimum=0)
        if patch.get("min_stock") is not None:
            changes["min_stock"] = require_number(patch["min_stock"], "minStock", minimum=0)

        async with self.locks.hold(material_id):
            m = await self._load(owner_id, material_id, for_update=True)
            for k, v in changes.items():
                setattr(m, k, v)
            m.updated_at = _utcnow()
            await self.session.commit()

        logger.info("material updated: id=%s fields=%s", m.id, ",".join(sorted(changes)) or "-")
        return m

    async def delete(self, owner_id: UUID, material_id: object) -> Material:
        async with self.locks.hold(material_id):
            m = await self._load(owner_id, material_id, for_update=True)
            await self.session.delete(m)
            await self.session.commit()
        logger.info("material deleted: id=%s owner_id=%s name=%s", m.id, m.owner_id, m.name)
        return m

    async def apply_quantity_delta(self, owner_id: UUID, material_id: object, signed_delta: float) -> Material:
        """
        Add ``signed_delta`` to the material's quantity and flush.

        The caller must hold ``self.locks.hold(material_id)`` and owns the
        surrounding database transaction. Raises InsufficientStock without
        touching the row when the result would be negative.
        """
        m = await self._load(owner_id, material_id, for_update=True)
        before = float(m.quantity)
        # Both operands are already at the stored scale; rounding only drops float residue.
        after = round(before + float(signed_delta), 3)
        if after < 0:
            raise InsufficientStock(available=before, unit=m.unit, requested=-float(signed_delta))
        if after > QUANTITY_MAX:
            raise ValidationError(f"quantity would exceed {QUANTITY_MAX:.3f} {m.unit}", field="quantity")

        m.quantity = after
        m.updated_at = _utcnow()
        await self.session.flush()
        return m
