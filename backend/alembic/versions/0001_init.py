"""users, materials, inward/outward transactions

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", sa.Text(), nullable=False, server_default=sa.text("'USER'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    op.create_table(
        "materials",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("unit", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False, server_default=sa.text("0")),
        sa.Column("min_stock", sa.Numeric(14, 3), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("quantity >= 0", name="ck_materials_quantity_non_negative"),
        sa.CheckConstraint("min_stock >= 0", name="ck_materials_min_stock_non_negative"),
    )
    op.create_index("ix_materials_owner_id", "materials", ["owner_id"])
    op.create_index("ix_materials_owner_category", "materials", ["owner_id", "category"])

    op.create_table(
        "inward_transactions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        # No FK: history outlives a deleted material.
        sa.Column("material_id", sa.Uuid(), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False),
        sa.Column("supplier", sa.Text(), nullable=False),
        sa.Column("invoice", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("quantity > 0", name="ck_inward_transactions_quantity_positive"),
    )
    op.create_index("ix_inward_transactions_owner_date", "inward_transactions", ["owner_id", "date"])
    op.create_index("ix_inward_transactions_material_id", "inward_transactions", ["material_id"])

    op.create_table(
        "outward_transactions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("material_id", sa.Uuid(), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False),
        sa.Column("project", sa.Text(), nullable=False),
        sa.Column("supervisor", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("quantity > 0", name="ck_outward_transactions_quantity_positive"),
    )
    op.create_index("ix_outward_transactions_owner_date", "outward_transactions", ["owner_id", "date"])
    op.create_index("ix_outward_transactions_material_id", "outward_transactions", ["material_id"])


def downgrade() -> None:
    op.drop_index("ix_outward_transactions_material_id", table_name="outward_transactions")
    op.drop_index("ix_outward_transactions_owner_date", table_name="outward_transactions")
    op.drop_table("outward_transactions")

    op.drop_index("ix_inward_transactions_material_id", table_name="inward_transactions")
    op.drop_index("ix_inward_transactions_owner_date", table_name="inward_transactions")
    op.drop_table("inward_transactions")

    op.drop_index("ix_materials_owner_category", table_name="materials")
    op.drop_index("ix_materials_owner_id", table_name="materials")
    op.drop_table("materials")

    op.drop_table("users")
