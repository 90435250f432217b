"""Supplier models."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Optional

from sqlalchemy import JSON, Date, Enum as SQLEnum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from supplier_scoring.db.base import Base, SoftDeleteMixin, TimestampMixin, VersionMixin


class SupplierCategory(str, Enum):
    """Product category a supplier serves."""

    ORTOFRUTTA = "ortofrutta"
    ITTICO = "ittico"
    CARNI = "carni"
    LATTICINI = "latticini"
    BEVERAGE = "beverage"
    SECCO = "secco"
    NON_FOOD = "non_food"
    ALTRO = "altro"


class SupplierDocumentType(str, Enum):
    """Kind of document kept on file for a supplier."""

    CONTRACT = "contract"
    HACCP = "haccp"
    BIO = "bio"
    DOP = "dop"
    DURC = "durc"
    VISURA = "visura"
    OTHER = "other"


class Supplier(Base, TimestampMixin, SoftDeleteMixin, VersionMixin):
    """Supplier of a tenant.

    ``score_data`` holds the latest score snapshot as a single JSON document.
    It is replaced wholesale on every recalculation and is NULL until the
    supplier is scored for the first time.
    """

    __tablename__ = "suppliers"

    id: Mapped[int] = mapped_column(primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    business_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    vat_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    category: Mapped[Optional[SupplierCategory]] = mapped_column(
        SQLEnum(SupplierCategory), nullable=True, index=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    score_data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    # Relationships
    documents: Mapped[list["SupplierDocument"]] = relationship(
        "SupplierDocument", back_populates="supplier"
    )
    catalog: Mapped[list["SupplierProduct"]] = relationship(
        "SupplierProduct", back_populates="supplier"
    )
    purchase_orders: Mapped[list["PurchaseOrder"]] = relationship(
        "PurchaseOrder", back_populates="supplier"
    )


class SupplierDocument(Base, TimestampMixin, SoftDeleteMixin):
    """Document attached to a supplier (contracts, certificates, etc)."""

    __tablename__ = "supplier_documents"

    id: Mapped[int] = mapped_column(primary_key=True)
    supplier_id: Mapped[int] = mapped_column(
        ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    document_type: Mapped[SupplierDocumentType] = mapped_column(
        SQLEnum(SupplierDocumentType), default=SupplierDocumentType.OTHER, nullable=False
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    supplier: Mapped["Supplier"] = relationship("Supplier", back_populates="documents")


# Forward references
from supplier_scoring.models.product import SupplierProduct
from supplier_scoring.models.order import PurchaseOrder
