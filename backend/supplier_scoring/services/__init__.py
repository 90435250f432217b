# Services module

from supplier_scoring.services.scoring_dimensions import (
    ScoringWindow,
    calculate_dimensions,
    calculate_punctuality,
    calculate_conformity,
    calculate_price_competitiveness,
    calculate_reliability,
)
from supplier_scoring.services.composite_score import aggregate_composite, effective_weights
from supplier_scoring.services.score_snapshot_store import ScoreSnapshotStore, default_snapshot
from supplier_scoring.services.supplier_ranking_service import build_ranking
from supplier_scoring.services.supply_risk_service import build_risk_map, classify_risk_level
from supplier_scoring.services.supplier_scoring_service import (
    ScoringConfig,
    SupplierScoringService,
)
