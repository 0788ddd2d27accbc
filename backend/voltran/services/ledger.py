from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from voltran.core.errors import InsufficientStock, InternalError, LedgerError, ValidationError
from voltran.db.models.inward_transaction import InwardTransaction
from voltran.db.models.material import Material
from voltran.db.models.outward_transaction import OutwardTransaction
from voltran.services.locks import MaterialLocks, material_locks
from voltran.services.material_repository import MaterialRepository
from voltran.services.transaction_log import INWARD, OUTWARD, Transaction, TransactionLog, enrich
from voltran.services.validation import optional_text, require_number, require_text

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_material_id(value: object) -> object:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("materialId is required", field="materialId")
    return value.strip() if isinstance(value, str) else value


def _movement_date(value: object) -> datetime:
    """Explicit movement date (datetime or ISO-8601 string) or now; naive values are UTC."""
    if value is None or value == "":
        return _utcnow()
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError("date must be an ISO-8601 date or datetime", field="date") from None
    else:
        raise ValidationError("date must be an ISO-8601 date or datetime", field="date")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class LedgerEngine:
    """
    Applies stock movements: quantity change plus transaction record, as one unit.

    For a given material every movement runs under that material's lock and
    inside a single database transaction that re-reads the row FOR UPDATE, so
    the sufficiency check and the write cannot interleave with another
    movement on the same material. Either both the quantity change and the
    appended record are committed, or neither is.
    """

    def __init__(self, session: AsyncSession, locks: MaterialLocks | None = None) -> None:
        self.session = session
        self.locks = locks or material_locks
        self.materials = MaterialRepository(session, self.locks)
        self.log = TransactionLog(session)

    async def record_inward(
        self,
        owner_id: UUID,
        material_id: object,
        quantity: object,
        supplier: object,
        invoice: object = None,
        date: object = None,
    ) -> dict[str, Any]:
        material_id = _require_material_id(material_id)
        qty = require_number(quantity, "quantity", minimum=0, strict=True)
        supplier_name = require_text(supplier, "supplier")
        when = _movement_date(date)

        def build(m: Material) -> InwardTransaction:
            return InwardTransaction(
                owner_id=m.owner_id,
                material_id=m.id,
                quantity=qty,
                supplier=supplier_name,
                invoice=optional_text(invoice),
                date=when,
                created_at=_utcnow(),
            )

        return await self._apply(INWARD, owner_id, material_id, qty, build)

    async def record_outward(
        self,
        owner_id: UUID,
        material_id: object,
        quantity: object,
        project: object,
        supervisor: object = None,
        date: object = None,
    ) -> dict[str, Any]:
        material_id = _require_material_id(material_id)
        qty = require_number(quantity, "quantity", minimum=0, strict=True)
        project_name = require_text(project, "project")
        when = _movement_date(date)

        def build(m: Material) -> OutwardTransaction:
            return OutwardTransaction(
                owner_id=m.owner_id,
                material_id=m.id,
                quantity=qty,
                project=project_name,
                supervisor=optional_text(supervisor),
                date=when,
                created_at=_utcnow(),
            )

        return await self._apply(OUTWARD, owner_id, material_id, -qty, build)

    async def _apply(
        self,
        kind: str,
        owner_id: UUID,
        material_id: object,
        delta: float,
        build: Callable[[Material], Transaction],
    ) -> dict[str, Any]:
        async with self.locks.hold(material_id):
            try:
                m = await self.materials.apply_quantity_delta(owner_id, material_id, delta)
                txn = await self.log.append(build(m))
                await self.session.commit()
            except InsufficientStock as e:
                await self.session.rollback()
                logger.warning(
                    "movement rejected: kind=%s material_id=%s requested=%s available=%s %s",
                    kind, material_id, e.requested, e.available, e.unit,
                )
                raise
            except LedgerError:
                await self.session.rollback()
                raise
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.exception("movement failed: kind=%s material_id=%s delta=%s", kind, material_id, delta)
                raise InternalError() from e

        after = float(m.quantity)
        logger.info(
            "stock movement: kind=%s material_id=%s owner_id=%s before=%s delta=%s after=%s txn_id=%s",
            kind, m.id, m.owner_id, after - delta, delta, after, txn.id,
        )
        out = enrich(txn, {m.id: m.name})
        out["new_stock"] = after
        return out
