"""Supplier scoring schemas.

``ScoreSnapshot`` is both the API response model and the document persisted in
``suppliers.score_data``; it round-trips through ``model_dump(mode="json")`` /
``model_validate``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from supplier_scoring.models.supplier import SupplierCategory


class ScoreDimension(str, Enum):
    """The four independently scored quality axes."""

    PUNCTUALITY = "punctuality"
    CONFORMITY = "conformity"
    PRICE_COMPETITIVENESS = "price_competitiveness"
    RELIABILITY = "reliability"


# Nominal weights out of 100
DIMENSION_WEIGHTS: Dict[ScoreDimension, int] = {
    ScoreDimension.PUNCTUALITY: 30,
    ScoreDimension.CONFORMITY: 30,
    ScoreDimension.PRICE_COMPETITIVENESS: 25,
    ScoreDimension.RELIABILITY: 15,
}


class RankingSortKey(str, Enum):
    """Value a ranking can be ordered by."""

    COMPOSITE = "composite"
    PUNCTUALITY = "punctuality"
    CONFORMITY = "conformity"
    PRICE_COMPETITIVENESS = "price_competitiveness"
    RELIABILITY = "reliability"


class RiskLevel(str, Enum):
    """Supply risk of a product category."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def severity(self) -> int:
        """0 for the most severe level."""
        return _RISK_SEVERITY[self]


_RISK_SEVERITY = {
    RiskLevel.CRITICAL: 0,
    RiskLevel.HIGH: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.LOW: 3,
}


class DimensionResult(BaseModel):
    """Score of one dimension with the observations behind it."""

    score: Optional[float] = Field(default=None, ge=0, le=100)
    weight: int
    sample_size: int = Field(default=0, ge=0)
    details: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_score_matches_sample(self) -> "DimensionResult":
        if (self.score is None) != (self.sample_size == 0):
            raise ValueError("score must be null exactly when sample_size is 0")
        return self

    @classmethod
    def empty(cls, dimension: ScoreDimension, **details: Any) -> "DimensionResult":
        """Result for a dimension without any observation."""
        return cls(score=None, weight=DIMENSION_WEIGHTS[dimension], sample_size=0, details=details)


class ScoreSnapshot(BaseModel):
    """Full score breakdown of a supplier at one point in time."""

    supplier_id: int
    composite_score: Optional[float] = Field(default=None, ge=0, le=100)
    punctuality: DimensionResult
    conformity: DimensionResult
    price_competitiveness: DimensionResult
    reliability: DimensionResult
    calculated_at: datetime

    model_config = {"frozen": True}

    def dimension(self, dimension: ScoreDimension) -> DimensionResult:
        return getattr(self, dimension.value)

    def dimensions(self) -> Dict[ScoreDimension, DimensionResult]:
        return {d: self.dimension(d) for d in ScoreDimension}


class RankedEntry(BaseModel):
    """One row of a supplier ranking."""

    rank: int
    supplier_id: int
    business_name: str
    category: Optional[SupplierCategory] = None
    composite_score: Optional[float] = None
    punctuality: Optional[float] = None
    conformity: Optional[float] = None
    price_competitiveness: Optional[float] = None
    reliability: Optional[float] = None
    calculated_at: Optional[datetime] = None


class CategoryRisk(BaseModel):
    """Risk assessment of one product category."""

    category: str
    supplier_count: int
    scored_supplier_count: int
    average_score: Optional[float] = None
    single_supplier_risk: bool
    expiring_documents: int = 0
    risk_level: RiskLevel


class RecalculationFailure(BaseModel):
    """A supplier whose recalculation did not complete."""

    supplier_id: int
    error: str


class RecalculationResult(BaseModel):
    """Outcome of recalculating every active supplier of a tenant."""

    suppliers_processed: int
    results: List[ScoreSnapshot] = Field(default_factory=list)
    failed: List[RecalculationFailure] = Field(default_factory=list)
