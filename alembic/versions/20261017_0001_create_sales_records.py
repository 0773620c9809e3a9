"""create sales_records table

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 10:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "sales_records",
        sa.Column("pk", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("record_id", sa.String(length=64), nullable=False, comment="Repository-assigned id, unique per user"),
        sa.Column("position", sa.Integer(), nullable=False, comment="Insertion order"),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("product_name", sa.Text(), nullable=False),
        sa.Column("product_id", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("region", sa.Text(), nullable=False),
        sa.Column("sales_channel", sa.String(length=32), nullable=False),
        sa.Column("customer_type", sa.String(length=32), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Float(), nullable=False),
        sa.Column("revenue", sa.Float(), nullable=False),
        sa.Column("cost_price", sa.Float(), nullable=False),
        sa.Column("vat", sa.Float(), nullable=False),
        sa.Column("discount", sa.Float(), nullable=False),
        sa.Column("shipping_status", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("pk"),
    )
    op.create_index("ix_sales_records_user_id", "sales_records", ["user_id"], unique=False)
    op.create_index(
        "ux_sales_records_user_record",
        "sales_records",
        ["user_id", "record_id"],
        unique=True,
    )
    op.create_index("ix_sales_records_user_date", "sales_records", ["user_id", "date"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_sales_records_user_date", table_name="sales_records")
    op.drop_index("ux_sales_records_user_record", table_name="sales_records")
    op.drop_index("ix_sales_records_user_id", table_name="sales_records")
    op.drop_table("sales_records")
