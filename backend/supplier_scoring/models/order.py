"""Purchase order models."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Optional

from sqlalchemy import Date, Enum as SQLEnum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from supplier_scoring.db.base import Base, SoftDeleteMixin, TimestampMixin


class OrderStatus(str, Enum):
    """Status of a purchase order."""

    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    SENT = "sent"
    CONFIRMED = "confirmed"
    IN_DELIVERY = "in_delivery"
    PARTIALLY_RECEIVED = "partially_received"
    RECEIVED = "received"
    CLOSED = "closed"
    CANCELLED = "cancelled"


# Orders that have left the building
SENT_OR_LATER_STATUSES = frozenset({
    OrderStatus.SENT,
    OrderStatus.CONFIRMED,
    OrderStatus.IN_DELIVERY,
    OrderStatus.PARTIALLY_RECEIVED,
    OrderStatus.RECEIVED,
    OrderStatus.CLOSED,
})

COMPLETED_STATUSES = frozenset({OrderStatus.RECEIVED, OrderStatus.CLOSED})


class PurchaseOrder(Base, TimestampMixin, SoftDeleteMixin):
    """A purchase order to a supplier."""

    __tablename__ = "purchase_orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    supplier_id: Mapped[int] = mapped_column(
        ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    order_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus), default=OrderStatus.DRAFT, nullable=False, index=True
    )
    expected_delivery_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Relationships
    supplier: Mapped["Supplier"] = relationship("Supplier", back_populates="purchase_orders")
    receivings: Mapped[list["Receiving"]] = relationship("Receiving", back_populates="order")


# Forward references
from supplier_scoring.models.supplier import Supplier
from supplier_scoring.models.receiving import Receiving
