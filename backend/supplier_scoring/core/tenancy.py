"""Tenant scoping for API requests.

Authentication is handled by the gateway in front of this service; it forwards
the resolved tenant in the ``X-Tenant-ID`` header.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status


async def get_tenant_id(
    x_tenant_id: Annotated[str, Header(alias="X-Tenant-ID")],
) -> int:
    """Resolve the tenant of the current request."""
    try:
        tenant_id = int(x_tenant_id)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-ID must be a number",
        )
    if tenant_id <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-ID must be positive",
        )
    return tenant_id


TenantId = Annotated[int, Depends(get_tenant_id)]
