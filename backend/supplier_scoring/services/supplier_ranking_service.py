"""Supplier ranking built from stored score snapshots."""

from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from supplier_scoring.models.supplier import Supplier, SupplierCategory
from supplier_scoring.schemas.scoring import RankedEntry, RankingSortKey, ScoreSnapshot
from supplier_scoring.services.score_snapshot_store import ScoreSnapshotStore

SortAccessor = Callable[[ScoreSnapshot], Optional[float]]

SORT_ACCESSORS: Dict[RankingSortKey, SortAccessor] = {
    RankingSortKey.COMPOSITE: lambda s: s.composite_score,
    RankingSortKey.PUNCTUALITY: lambda s: s.punctuality.score,
    RankingSortKey.CONFORMITY: lambda s: s.conformity.score,
    RankingSortKey.PRICE_COMPETITIVENESS: lambda s: s.price_competitiveness.score,
    RankingSortKey.RELIABILITY: lambda s: s.reliability.score,
}


def build_ranking(
    db: Session,
    tenant_id: int,
    category: Optional[SupplierCategory] = None,
    sort_by: RankingSortKey = RankingSortKey.COMPOSITE,
) -> List[RankedEntry]:
    """Rank the tenant's active suppliers, best first.

    Suppliers without a value for the sort key go last. Equal values keep
    supplier id order so the ranking is stable between calls.
    """
    query = db.query(Supplier).filter(
        Supplier.tenant_id == tenant_id,
        Supplier.not_deleted(),
    )
    if category is not None:
        query = query.filter(Supplier.category == category)

    store = ScoreSnapshotStore(db)
    accessor = SORT_ACCESSORS[sort_by]

    rows = []
    for supplier in query.all():
        snapshot = store.stored(supplier)
        value = accessor(snapshot) if snapshot is not None else None
        rows.append((value, supplier, snapshot))

    rows.sort(key=lambda row: (row[0] is None, -(row[0] or 0.0), row[1].id))

    ranking = []
    for position, (_, supplier, snapshot) in enumerate(rows, start=1):
        scores = {}
        if snapshot is not None:
            scores = {d.value: r.score for d, r in snapshot.dimensions().items()}
            scores["composite_score"] = snapshot.composite_score
            scores["calculated_at"] = snapshot.calculated_at
        ranking.append(RankedEntry(
            rank=position,
            supplier_id=supplier.id,
            business_name=supplier.business_name,
            category=supplier.category,
            **scores,
        ))
    return ranking
