"""API routes."""

from fastapi import APIRouter

from supplier_scoring.api.routes import suppliers

api_router = APIRouter()

api_router.include_router(suppliers.router, prefix="/suppliers", tags=["suppliers", "scoring"])
