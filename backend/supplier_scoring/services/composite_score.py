"""Composite score aggregation with weight redistribution."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Mapping, Optional

from supplier_scoring.schemas.scoring import DimensionResult, ScoreDimension


def round_score(value: float) -> float:
    """Round half-up to two decimals."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def effective_weights(
    dimensions: Mapping[ScoreDimension, DimensionResult],
) -> Dict[ScoreDimension, float]:
    """Weights of the scored dimensions, rescaled to sum to 100.

    A dimension without data gives its nominal weight away to the scored ones
    in proportion to their own nominal weights, so Conformity (30) and
    Reliability (15) alone become 66.67 and 33.33.
    """
    scored = {d: r for d, r in dimensions.items() if r.score is not None}
    total_weight = sum(r.weight for r in scored.values())
    if not total_weight:
        return {}
    return {d: r.weight / total_weight * 100 for d, r in scored.items()}


def aggregate_composite(
    dimensions: Mapping[ScoreDimension, DimensionResult],
) -> Optional[float]:
    """Weighted average of the scored dimensions; None when nothing is scored."""
    weights = effective_weights(dimensions)
    if not weights:
        return None
    weighted_sum = sum(dimensions[d].score * w / 100 for d, w in weights.items())
    return min(100.0, max(0.0, round_score(weighted_sum)))
