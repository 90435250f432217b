"""Goods receiving models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Enum as SQLEnum, ForeignKey, Integer, Numeric, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from supplier_scoring.db.base import Base, SoftDeleteMixin, TimestampMixin, UTCDateTime


class ReceivingStatus(str, Enum):
    """Status of a goods receiving."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Receiving(Base, TimestampMixin, SoftDeleteMixin):
    """A delivery received against a purchase order."""

    __tablename__ = "receivings"

    id: Mapped[int] = mapped_column(primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    supplier_id: Mapped[int] = mapped_column(
        ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    received_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), nullable=False, index=True
    )
    status: Mapped[ReceivingStatus] = mapped_column(
        SQLEnum(ReceivingStatus), default=ReceivingStatus.IN_PROGRESS, nullable=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    order: Mapped["PurchaseOrder"] = relationship("PurchaseOrder", back_populates="receivings")
    lines: Mapped[list["ReceivingLine"]] = relationship(
        "ReceivingLine", back_populates="receiving", cascade="all, delete-orphan"
    )


class ReceivingLine(Base, TimestampMixin, SoftDeleteMixin):
    """One inspected product line of a receiving."""

    __tablename__ = "receiving_lines"

    id: Mapped[int] = mapped_column(primary_key=True)
    receiving_id: Mapped[int] = mapped_column(
        ForeignKey("receivings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    quantity_ordered: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 3), nullable=True)
    quantity_received: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 3), nullable=True)
    is_conforming: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    receiving: Mapped["Receiving"] = relationship("Receiving", back_populates="lines")


# Forward references
from supplier_scoring.models.order import PurchaseOrder
