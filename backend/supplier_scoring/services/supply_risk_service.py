"""Supply risk map per product category."""

import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from supplier_scoring.models.supplier import Supplier, SupplierDocument
from supplier_scoring.schemas.scoring import CategoryRisk, RiskLevel
from supplier_scoring.services.composite_score import round_score
from supplier_scoring.services.score_snapshot_store import ScoreSnapshotStore

logger = logging.getLogger(__name__)

UNCATEGORIZED = "uncategorized"

CRITICAL_SCORE_THRESHOLD = 40
HIGH_SCORE_THRESHOLD = 60
MEDIUM_SCORE_THRESHOLD = 75


def classify_risk_level(supplier_count: int, average_score: Optional[float]) -> RiskLevel:
    """Risk level of a category. Rules are evaluated in order, first match wins."""
    single_supplier = supplier_count <= 1
    if single_supplier and (average_score is None or average_score < CRITICAL_SCORE_THRESHOLD):
        return RiskLevel.CRITICAL
    if (average_score is not None and average_score < HIGH_SCORE_THRESHOLD) or single_supplier:
        return RiskLevel.HIGH
    if average_score is not None and average_score < MEDIUM_SCORE_THRESHOLD:
        return RiskLevel.MEDIUM
    if average_score is None and supplier_count <= 2:
        return RiskLevel.HIGH
    return RiskLevel.LOW


def count_expiring_documents(
    db: Session, tenant_id: int, today: date, window_days: int = 30
) -> Dict[str, int]:
    """Documents expiring within the window (or already expired), per category."""
    cutoff = today + timedelta(days=window_days)
    rows = (
        db.query(Supplier.category, func.count(SupplierDocument.id))
        .join(Supplier, SupplierDocument.supplier_id == Supplier.id)
        .filter(
            Supplier.tenant_id == tenant_id,
            Supplier.not_deleted(),
            Supplier.category.isnot(None),
            SupplierDocument.not_deleted(),
            SupplierDocument.expiry_date.isnot(None),
            SupplierDocument.expiry_date <= cutoff,
        )
        .group_by(Supplier.category)
        .all()
    )
    return {category.value: count for category, count in rows}


def build_risk_map(
    db: Session, tenant_id: int, today: date, expiry_window_days: int = 30
) -> List[CategoryRisk]:
    """Classify every category of the tenant's active suppliers, most severe first."""
    suppliers = (
        db.query(Supplier)
        .filter(Supplier.tenant_id == tenant_id, Supplier.not_deleted())
        .order_by(Supplier.id)
        .all()
    )

    store = ScoreSnapshotStore(db)
    composites: Dict[str, List[Optional[float]]] = defaultdict(list)
    for supplier in suppliers:
        key = supplier.category.value if supplier.category else UNCATEGORIZED
        snapshot = store.stored(supplier)
        composites[key].append(snapshot.composite_score if snapshot else None)

    expiring = count_expiring_documents(db, tenant_id, today, expiry_window_days)

    risk_map = []
    for category, scores in composites.items():
        scored = [s for s in scores if s is not None]
        average = sum(scored) / len(scored) if scored else None
        risk_map.append(CategoryRisk(
            category=category,
            supplier_count=len(scores),
            scored_supplier_count=len(scored),
            average_score=round_score(average) if average is not None else None,
            single_supplier_risk=len(scores) <= 1,
            expiring_documents=0 if category == UNCATEGORIZED else expiring.get(category, 0),
            risk_level=classify_risk_level(len(scores), average),
        ))

    risk_map.sort(key=lambda r: (r.risk_level.severity, r.category))
    logger.debug(f"Risk map for tenant {tenant_id}: {len(risk_map)} categories")
    return risk_map
