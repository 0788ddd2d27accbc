from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, ForeignKey, Index, Numeric, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from voltran.db.base import Base, UTCDateTime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InwardTransaction(Base):
    __tablename__ = "inward_transactions"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_inward_transactions_quantity_positive"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # Not a foreign key: deleting a material keeps its history (shown as "Unknown").
    material_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    quantity: Mapped[float] = mapped_column(Numeric(14, 3, asdecimal=False), nullable=False)
    supplier: Mapped[str] = mapped_column(Text, nullable=False)
    invoice: Mapped[str] = mapped_column(Text, nullable=False, default="")

    date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=_utcnow)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=_utcnow)


Index("ix_inward_transactions_owner_date", InwardTransaction.owner_id, InwardTransaction.date)
Index("ix_inward_transactions_material_id", InwardTransaction.material_id)
