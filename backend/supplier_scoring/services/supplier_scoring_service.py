"""Supplier Scoring Service.

Calculates supplier performance scores across four dimensions, persists the
breakdown on the supplier, and serves ranking and risk-map projections of the
stored scores.

Dimensions and nominal weights:
    - Punctuality (30): on-time deliveries vs deliveries with an expected date
    - Conformity (30): conforming receiving lines vs inspected lines
    - Price Competitiveness (25): closeness of catalog prices to the market mean
    - Reliability (15): completed orders vs orders sent

When a dimension has no data its weight is redistributed proportionally
across the dimensions that do have data.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from supplier_scoring.core.config import settings
from supplier_scoring.core.exceptions import SupplierNotFoundError
from supplier_scoring.models.supplier import Supplier, SupplierCategory
from supplier_scoring.schemas.scoring import (
    CategoryRisk,
    RankedEntry,
    RankingSortKey,
    RecalculationFailure,
    RecalculationResult,
    ScoreSnapshot,
)
from supplier_scoring.services.composite_score import aggregate_composite
from supplier_scoring.services.score_snapshot_store import ScoreSnapshotStore
from supplier_scoring.services.scoring_dimensions import ScoringWindow, calculate_dimensions
from supplier_scoring.services.supplier_ranking_service import build_ranking
from supplier_scoring.services.supply_risk_service import build_risk_map

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ScoringConfig:
    """Configuration for a scoring run. Unset values fall back to settings."""

    def __init__(
        self,
        lookback_months: Optional[int] = None,
        grace_period_days: Optional[int] = None,
        document_expiry_window_days: Optional[int] = None,
        max_workers: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.lookback_months = (
            lookback_months if lookback_months is not None else settings.scoring_lookback_months
        )
        self.grace_period_days = (
            grace_period_days if grace_period_days is not None else settings.scoring_grace_period_days
        )
        self.document_expiry_window_days = (
            document_expiry_window_days
            if document_expiry_window_days is not None
            else settings.document_expiry_window_days
        )
        self.max_workers = max_workers if max_workers is not None else settings.scoring_max_workers
        self.clock = clock or _utc_now

    def window(self) -> ScoringWindow:
        """Window anchored at the current clock reading."""
        return ScoringWindow(
            now=self.clock(),
            lookback_months=self.lookback_months,
            grace_period_days=self.grace_period_days,
        )


class SupplierScoringService:
    """Score, rank and risk-map suppliers of a tenant."""

    def __init__(
        self,
        db: Session,
        config: Optional[ScoringConfig] = None,
        session_factory: Optional[Callable[[], Session]] = None,
    ):
        self.db = db
        self.config = config or ScoringConfig()
        self.session_factory = session_factory
        self.store = ScoreSnapshotStore(db, clock=self.config.clock)

    def _get_active_supplier(self, supplier_id: int, tenant_id: Optional[int] = None) -> Supplier:
        query = self.db.query(Supplier).filter(
            Supplier.id == supplier_id,
            Supplier.not_deleted(),
        )
        if tenant_id is not None:
            query = query.filter(Supplier.tenant_id == tenant_id)
        supplier = query.first()
        if supplier is None:
            raise SupplierNotFoundError(supplier_id, tenant_id)
        return supplier

    def _score(self, supplier_id: int, tenant_id: int, window: ScoringWindow) -> ScoreSnapshot:
        self._get_active_supplier(supplier_id, tenant_id)
        try:
            dimensions = calculate_dimensions(self.db, supplier_id, tenant_id, window)
            snapshot = ScoreSnapshot(
                supplier_id=supplier_id,
                composite_score=aggregate_composite(dimensions),
                calculated_at=window.now,
                **{d.value: r for d, r in dimensions.items()},
            )
            # Join point: all four dimensions are in before anything is written
            self.store.write(supplier_id, snapshot)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return snapshot

    def calculate_score(self, supplier_id: int, tenant_id: int) -> ScoreSnapshot:
        """Recompute and persist the score of one supplier.

        Recomputes everything from source facts, so it is safe to retry.

        Raises:
            SupplierNotFoundError: supplier missing, deleted or in another tenant
            SQLAlchemyError: the data source failed; nothing was written
        """
        snapshot = self._score(supplier_id, tenant_id, self.config.window())
        logger.info(
            f"Scored supplier {supplier_id} (tenant {tenant_id}): "
            f"composite={snapshot.composite_score}"
        )
        return snapshot

    def _recalculate_one(
        self, supplier_id: int, tenant_id: int, window: ScoringWindow
    ) -> Tuple[Optional[ScoreSnapshot], Optional[RecalculationFailure]]:
        try:
            return self._score(supplier_id, tenant_id, window), None
        except (SQLAlchemyError, SupplierNotFoundError) as e:
            logger.exception(f"Score recalculation failed for supplier {supplier_id}")
            return None, RecalculationFailure(supplier_id=supplier_id, error=str(e))

    def _recalculate_in_own_session(
        self, supplier_id: int, tenant_id: int, window: ScoringWindow
    ) -> Tuple[Optional[ScoreSnapshot], Optional[RecalculationFailure]]:
        db = self.session_factory()
        try:
            worker = SupplierScoringService(db, self.config)
            return worker._recalculate_one(supplier_id, tenant_id, window)
        finally:
            db.close()

    def recalculate_all(self, tenant_id: int) -> RecalculationResult:
        """Recompute and persist scores for every active supplier of a tenant.

        Each supplier is committed on its own: a failure leaves that supplier's
        previous snapshot in place and is reported in ``failed``.
        """
        supplier_ids = [
            supplier_id
            for (supplier_id,) in self.db.query(Supplier.id)
            .filter(Supplier.tenant_id == tenant_id, Supplier.not_deleted())
            .order_by(Supplier.id)
            .all()
        ]
        window = self.config.window()

        if supplier_ids and self.config.max_workers > 1 and self.session_factory is not None:
            workers = min(self.config.max_workers, len(supplier_ids))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                outcomes = list(executor.map(
                    lambda sid: self._recalculate_in_own_session(sid, tenant_id, window),
                    supplier_ids,
                ))
        else:
            outcomes = [self._recalculate_one(sid, tenant_id, window) for sid in supplier_ids]

        results = [snapshot for snapshot, _ in outcomes if snapshot is not None]
        failed = [failure for _, failure in outcomes if failure is not None]

        logger.info(
            f"Recalculated scores for tenant {tenant_id}: "
            f"{len(results)} ok, {len(failed)} failed"
        )
        return RecalculationResult(
            suppliers_processed=len(results),
            results=results,
            failed=failed,
        )

    def get_score(self, supplier_id: int, tenant_id: Optional[int] = None) -> ScoreSnapshot:
        """Stored snapshot of a supplier, or an all-null default if never scored."""
        return self.store.read_supplier(self._get_active_supplier(supplier_id, tenant_id))

    def get_ranking(
        self,
        tenant_id: int,
        category: Optional[SupplierCategory] = None,
        sort_by: RankingSortKey = RankingSortKey.COMPOSITE,
    ) -> List[RankedEntry]:
        return build_ranking(self.db, tenant_id, category=category, sort_by=sort_by)

    def get_risk_map(self, tenant_id: int) -> List[CategoryRisk]:
        return build_risk_map(
            self.db,
            tenant_id,
            today=self.config.clock().date(),
            expiry_window_days=self.config.document_expiry_window_days,
        )
