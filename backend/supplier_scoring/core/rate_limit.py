"""Shared rate limiter instance for use across route files."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from supplier_scoring.core.config import settings


def get_tenant_or_ip(request: Request) -> str:
    """Rate limit per tenant when the tenant header is present, else by IP."""
    tenant_id = request.headers.get("X-Tenant-ID", "").strip()
    if tenant_id:
        return f"tenant:{tenant_id}"
    return get_remote_address(request)


limiter = Limiter(key_func=get_tenant_or_ip, enabled=settings.rate_limit_enabled)
