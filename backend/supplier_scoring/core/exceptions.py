"""Domain errors raised by the scoring services."""

from typing import Optional


class SupplierNotFoundError(Exception):
    """Raised when a supplier does not exist, is deleted, or belongs to another tenant."""
    def __init__(self, supplier_id: int, tenant_id: Optional[int] = None):
        self.supplier_id = supplier_id
        self.tenant_id = tenant_id
        if tenant_id is None:
            message = f"Supplier {supplier_id} not found"
        else:
            message = f"Supplier {supplier_id} not found in tenant {tenant_id}"
        super().__init__(message)
