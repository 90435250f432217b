"""Supplier scoring routes.

Static paths (``/ranking``, ``/risk-map``, ``/recalculate-scores``) are
declared before the ``/{supplier_id}`` ones.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Request, status

from supplier_scoring.core.config import settings
from supplier_scoring.core.exceptions import SupplierNotFoundError
from supplier_scoring.core.rate_limit import limiter
from supplier_scoring.core.tenancy import TenantId
from supplier_scoring.db.session import DbSession, SessionLocal
from supplier_scoring.models.supplier import SupplierCategory
from supplier_scoring.schemas.scoring import (
    CategoryRisk,
    RankedEntry,
    RankingSortKey,
    RecalculationResult,
    ScoreSnapshot,
)
from supplier_scoring.services.supplier_scoring_service import SupplierScoringService

logger = logging.getLogger(__name__)

router = APIRouter()


# ==================== READ-SIDE PROJECTIONS ====================

@router.get("/ranking", response_model=List[RankedEntry])
@limiter.limit("60/minute")
def get_ranking(
    request: Request,
    db: DbSession,
    tenant_id: TenantId,
    category: Optional[SupplierCategory] = None,
    sort_by: RankingSortKey = RankingSortKey.COMPOSITE,
):
    """Ranked list of the tenant's suppliers, best first."""
    return SupplierScoringService(db).get_ranking(tenant_id, category=category, sort_by=sort_by)


@router.get("/risk-map", response_model=List[CategoryRisk])
@limiter.limit("60/minute")
def get_risk_map(request: Request, db: DbSession, tenant_id: TenantId):
    """Supply risk per product category, most severe first."""
    return SupplierScoringService(db).get_risk_map(tenant_id)


# ==================== RECALCULATION ====================

@router.post("/recalculate-scores", response_model=RecalculationResult)
@limiter.limit("5/minute")
def recalculate_scores(request: Request, db: DbSession, tenant_id: TenantId):
    """Recalculate the score of every active supplier of the tenant."""
    session_factory = SessionLocal if settings.scoring_max_workers > 1 else None
    result = SupplierScoringService(db, session_factory=session_factory).recalculate_all(tenant_id)
    if result.failed:
        logger.warning(
            f"Recalculation for tenant {tenant_id} left {len(result.failed)} suppliers "
            f"on their previous score"
        )
    return result


@router.post("/{supplier_id}/score", response_model=ScoreSnapshot)
@limiter.limit("30/minute")
def calculate_supplier_score(request: Request, supplier_id: int, db: DbSession, tenant_id: TenantId):
    """Recalculate and store the score of one supplier."""
    try:
        return SupplierScoringService(db).calculate_score(supplier_id, tenant_id)
    except SupplierNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/{supplier_id}/score", response_model=ScoreSnapshot)
@limiter.limit("60/minute")
def get_supplier_score(request: Request, supplier_id: int, db: DbSession, tenant_id: TenantId):
    """Detailed score breakdown of one supplier."""
    try:
        return SupplierScoringService(db).get_score(supplier_id, tenant_id)
    except SupplierNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
