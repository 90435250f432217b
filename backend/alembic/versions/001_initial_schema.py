"""Initial schema

Revision ID: 001
Revises:
Create Date: 2025-06-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
    ]


def _soft_delete():
    return [
        sa.Column("is_deleted", sa.Boolean(), server_default=sa.false(), nullable=False, index=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    # Suppliers table; score_data holds the latest score snapshot
    op.create_table(
        "suppliers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), nullable=False, index=True),
        sa.Column("business_name", sa.String(255), nullable=False, index=True),
        sa.Column("vat_number", sa.String(50), nullable=True),
        sa.Column("category", sa.String(20), nullable=True, index=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("score_data", sa.JSON(), nullable=True),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        *_timestamps(),
        *_soft_delete(),
    )

    # Supplier documents table
    op.create_table(
        "supplier_documents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("supplier_id", sa.Integer(), sa.ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("document_type", sa.String(20), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        *_timestamps(),
        *_soft_delete(),
    )

    # Products table
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False, index=True),
        sa.Column("unit", sa.String(20), server_default="kg", nullable=False),
        *_timestamps(),
        *_soft_delete(),
    )

    # Supplier catalog prices
    op.create_table(
        "supplier_products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("supplier_id", sa.Integer(), sa.ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("current_price", sa.Numeric(10, 4), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
        *_soft_delete(),
    )

    # Purchase orders table
    op.create_table(
        "purchase_orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), nullable=False, index=True),
        sa.Column("supplier_id", sa.Integer(), sa.ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("order_number", sa.String(50), nullable=True),
        sa.Column("status", sa.String(30), nullable=False, index=True),
        sa.Column("expected_delivery_date", sa.Date(), nullable=True),
        *_timestamps(),
        *_soft_delete(),
    )

    # Receivings table
    op.create_table(
        "receivings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), nullable=False, index=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("supplier_id", sa.Integer(), sa.ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("received_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, index=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        *_soft_delete(),
    )

    # Receiving lines table
    op.create_table(
        "receiving_lines",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("receiving_id", sa.Integer(), sa.ForeignKey("receivings.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True),
        sa.Column("quantity_ordered", sa.Numeric(10, 3), nullable=True),
        sa.Column("quantity_received", sa.Numeric(10, 3), nullable=True),
        sa.Column("is_conforming", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        *_soft_delete(),
    )

    # Scoring queries filter on supplier + time window
    op.create_index("ix_receivings_supplier_received", "receivings", ["supplier_id", "received_at"])
    op.create_index("ix_purchase_orders_supplier_created", "purchase_orders", ["supplier_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_purchase_orders_supplier_created", table_name="purchase_orders")
    op.drop_index("ix_receivings_supplier_received", table_name="receivings")
    op.drop_table("receiving_lines")
    op.drop_table("receivings")
    op.drop_table("purchase_orders")
    op.drop_table("supplier_products")
    op.drop_table("products")
    op.drop_table("supplier_documents")
    op.drop_table("suppliers")
