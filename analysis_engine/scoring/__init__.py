"""
Scoring Module

Shared scoring primitives for every processor:

1. **Score components** - bounded 0-100 values with competitor gap and
   advantage tag
2. **Weighted aggregation** - fixed-weight linear combinations whose
   weights must sum to 1.0
3. **Recommendation ranking** - priority x impact ordering, (type, title)
   deduplication and top-N truncation

Example Usage:
    from analysis_engine.scoring import weighted_score, rank_recommendations

    overall = weighted_score(
        {"technical": 80, "content": 60},
        {"technical": 0.4, "content": 0.6},
    )
"""

from .helpers import (
    PRIORITY_WEIGHTS,
    ScoreComponent,
    clamp_score,
    compare_metric,
    priority_weight,
    validate_weights,
    weighted_score,
)
from .recommendations import (
    Recommendation,
    dedupe_by_key,
    rank_recommendations,
)

__all__ = [
    "PRIORITY_WEIGHTS",
    "ScoreComponent",
    "clamp_score",
    "compare_metric",
    "priority_weight",
    "validate_weights",
    "weighted_score",
    "Recommendation",
    "dedupe_by_key",
    "rank_recommendations",
]
