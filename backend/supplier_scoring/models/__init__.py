"""SQLAlchemy models."""

from supplier_scoring.models.supplier import (
    Supplier,
    SupplierDocument,
    SupplierCategory,
    SupplierDocumentType,
)
from supplier_scoring.models.product import Product, SupplierProduct
from supplier_scoring.models.order import (
    PurchaseOrder,
    OrderStatus,
    SENT_OR_LATER_STATUSES,
    COMPLETED_STATUSES,
)
from supplier_scoring.models.receiving import Receiving, ReceivingLine, ReceivingStatus
