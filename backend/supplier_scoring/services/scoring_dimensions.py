"""Dimension calculators for supplier scoring.

Each calculator scores one supplier on one quality axis from the facts
recorded in the trailing lookback window:

    punctuality             on-time deliveries / deliveries with an expected date
    conformity              conforming receiving lines / inspected lines
    price_competitiveness   mean closeness of catalog prices to the market mean
    reliability             completed orders / orders sent to the supplier

A dimension with no observations scores ``None`` with a sample size of 0.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Callable, Dict, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import func
from sqlalchemy.orm import Session

from supplier_scoring.db.base import as_utc
from supplier_scoring.models.order import COMPLETED_STATUSES, SENT_OR_LATER_STATUSES, PurchaseOrder
from supplier_scoring.models.product import SupplierProduct
from supplier_scoring.models.receiving import Receiving, ReceivingLine, ReceivingStatus
from supplier_scoring.models.supplier import Supplier
from supplier_scoring.schemas.scoring import DIMENSION_WEIGHTS, DimensionResult, ScoreDimension

logger = logging.getLogger(__name__)

# Every percentage point above the market mean costs two score points
PRICE_DEVIATION_PENALTY = 2


@dataclass(frozen=True)
class ScoringWindow:
    """Reference time and lookback window of one calculation."""

    now: datetime
    lookback_months: int = 6
    grace_period_days: int = 1

    def __post_init__(self):
        object.__setattr__(self, "now", as_utc(self.now))

    @property
    def start(self) -> datetime:
        return self.now - relativedelta(months=self.lookback_months)


def _ratio_score(successes: int, total: int) -> Optional[float]:
    if total == 0:
        return None
    return successes / total * 100


def _completed_receivings(supplier_id: int, tenant_id: int, window: ScoringWindow) -> list:
    return [
        Receiving.supplier_id == supplier_id,
        Receiving.tenant_id == tenant_id,
        Receiving.status == ReceivingStatus.COMPLETED,
        Receiving.not_deleted(),
        Receiving.received_at >= window.start,
    ]


def calculate_punctuality(
    db: Session, supplier_id: int, tenant_id: int, window: ScoringWindow
) -> DimensionResult:
    """Share of completed deliveries received by the expected date plus the grace period.

    Deliveries whose order carries no expected delivery date are left out of
    both the numerator and the denominator.
    """
    rows = (
        db.query(Receiving.received_at, PurchaseOrder.expected_delivery_date)
        .join(PurchaseOrder, Receiving.order_id == PurchaseOrder.id)
        .filter(*_completed_receivings(supplier_id, tenant_id, window))
        .all()
    )

    grace = timedelta(days=window.grace_period_days)
    on_time = 0
    total = 0
    excluded = 0
    for received_at, expected_date in rows:
        if expected_date is None:
            excluded += 1
            continue
        total += 1
        deadline = datetime.combine(expected_date, time.min, tzinfo=timezone.utc) + grace
        if received_at <= deadline:
            on_time += 1

    return DimensionResult(
        score=_ratio_score(on_time, total),
        weight=DIMENSION_WEIGHTS[ScoreDimension.PUNCTUALITY],
        sample_size=total,
        details={
            "on_time": on_time,
            "late": total - on_time,
            "excluded_no_expected_date": excluded,
            "total": total,
        },
    )


def calculate_conformity(
    db: Session, supplier_id: int, tenant_id: int, window: ScoringWindow
) -> DimensionResult:
    """Share of inspected receiving lines flagged as conforming."""
    rows = (
        db.query(ReceivingLine.is_conforming)
        .join(Receiving, ReceivingLine.receiving_id == Receiving.id)
        .filter(
            *_completed_receivings(supplier_id, tenant_id, window),
            ReceivingLine.not_deleted(),
        )
        .all()
    )

    total = len(rows)
    conforming = sum(1 for (is_conforming,) in rows if is_conforming)

    return DimensionResult(
        score=_ratio_score(conforming, total),
        weight=DIMENSION_WEIGHTS[ScoreDimension.CONFORMITY],
        sample_size=total,
        details={
            "conforming": conforming,
            "non_conforming": total - conforming,
            "total": total,
        },
    )


def calculate_price_competitiveness(
    db: Session, supplier_id: int, tenant_id: int, window: ScoringWindow
) -> DimensionResult:
    """Average per-product price score against the tenant's current market mean.

    Per product: ``clamp(100 - 2 * deviation_pct, 0, 100)`` where the deviation
    is measured against the mean active price of all suppliers offering the
    product. Being cheaper than the market caps at 100. Products whose market
    mean is missing or zero are not scored.
    """
    offers = (
        db.query(SupplierProduct.product_id, SupplierProduct.current_price)
        .join(Supplier, SupplierProduct.supplier_id == Supplier.id)
        .filter(
            SupplierProduct.supplier_id == supplier_id,
            Supplier.tenant_id == tenant_id,
            SupplierProduct.is_active.is_(True),
            SupplierProduct.not_deleted(),
        )
        .all()
    )
    if not offers:
        return DimensionResult.empty(
            ScoreDimension.PRICE_COMPETITIVENESS,
            products_listed=0,
            products_evaluated=0,
            products_skipped=0,
        )

    product_ids = {product_id for product_id, _ in offers}
    market_means = dict(
        db.query(SupplierProduct.product_id, func.avg(SupplierProduct.current_price))
        .join(Supplier, SupplierProduct.supplier_id == Supplier.id)
        .filter(
            Supplier.tenant_id == tenant_id,
            Supplier.not_deleted(),
            SupplierProduct.is_active.is_(True),
            SupplierProduct.not_deleted(),
            SupplierProduct.product_id.in_(product_ids),
        )
        .group_by(SupplierProduct.product_id)
        .all()
    )

    product_scores = []
    for product_id, price in offers:
        mean = market_means.get(product_id)
        if mean is None or float(mean) == 0:
            continue
        mean = float(mean)
        deviation_pct = (float(price) - mean) / mean * 100
        product_scores.append(max(0.0, min(100.0, 100 - deviation_pct * PRICE_DEVIATION_PENALTY)))

    scored = len(product_scores)
    return DimensionResult(
        score=sum(product_scores) / scored if scored else None,
        weight=DIMENSION_WEIGHTS[ScoreDimension.PRICE_COMPETITIVENESS],
        sample_size=scored,
        details={
            "products_listed": len(offers),
            "products_evaluated": scored,
            "products_skipped": len(offers) - scored,
        },
    )


def calculate_reliability(
    db: Session, supplier_id: int, tenant_id: int, window: ScoringWindow
) -> DimensionResult:
    """Share of orders sent to the supplier that reached received or closed.

    Drafts, orders awaiting approval, approved-but-unsent and cancelled orders
    are not in flight and do not count.
    """
    rows = (
        db.query(PurchaseOrder.status)
        .filter(
            PurchaseOrder.supplier_id == supplier_id,
            PurchaseOrder.tenant_id == tenant_id,
            PurchaseOrder.not_deleted(),
            PurchaseOrder.created_at >= window.start,
            PurchaseOrder.status.in_(SENT_OR_LATER_STATUSES),
        )
        .all()
    )

    total = len(rows)
    completed = sum(1 for (status,) in rows if status in COMPLETED_STATUSES)

    return DimensionResult(
        score=_ratio_score(completed, total),
        weight=DIMENSION_WEIGHTS[ScoreDimension.RELIABILITY],
        sample_size=total,
        details={"completed": completed, "total_sent": total},
    )


DimensionCalculator = Callable[[Session, int, int, ScoringWindow], DimensionResult]

DIMENSION_CALCULATORS: Dict[ScoreDimension, DimensionCalculator] = {
    ScoreDimension.PUNCTUALITY: calculate_punctuality,
    ScoreDimension.CONFORMITY: calculate_conformity,
    ScoreDimension.PRICE_COMPETITIVENESS: calculate_price_competitiveness,
    ScoreDimension.RELIABILITY: calculate_reliability,
}


def calculate_dimensions(
    db: Session, supplier_id: int, tenant_id: int, window: ScoringWindow
) -> Dict[ScoreDimension, DimensionResult]:
    """Run every dimension calculator for one supplier."""
    results = {
        dimension: calculator(db, supplier_id, tenant_id, window)
        for dimension, calculator in DIMENSION_CALCULATORS.items()
    }
    logger.debug(
        f"Supplier {supplier_id} dimensions: "
        + ", ".join(f"{d.value}={r.score} (n={r.sample_size})" for d, r in results.items())
    )
    return results
