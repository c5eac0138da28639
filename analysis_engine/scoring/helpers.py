"""
Scoring Helper Functions and Constants

Score components, weighted aggregation and priority weights used across
all processors.
"""

import math
from dataclasses import dataclass, asdict
from typing import Dict, Any, Mapping, Optional


WEIGHT_TOLERANCE = 1e-6


# ============================================================================
# PRIORITY WEIGHTS
# ============================================================================

PRIORITY_WEIGHTS: Dict[str, int] = {
    "high": 3,
    "medium": 2,
    "low": 1,
}


def priority_weight(level: Optional[str]) -> int:
    """
    Numeric weight for a qualitative level.

    Args:
        level: "high", "medium" or "low"

    Returns:
        Weight (1-3); unknown levels count as low
    """
    if not level:
        return 1
    return PRIORITY_WEIGHTS.get(level.lower(), 1)


# ============================================================================
# BOUNDING & AGGREGATION
# ============================================================================

def clamp_score(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp a score to [low, high]. NaN clamps to low."""
    if value is None or math.isnan(value):
        return low
    return max(low, min(high, value))


def validate_weights(weights: Mapping[str, float]) -> None:
    """Raise ValueError unless the weights sum to 1.0."""
    total = sum(weights.values())
    if abs(total - 1.0) > WEIGHT_TOLERANCE:
        raise ValueError(f"Weights must sum to 1.0, got {total:.4f}")


def weighted_score(scores: Mapping[str, float], weights: Mapping[str, float]) -> int:
    """
    Fixed-weight linear combination of named sub-scores.

    Args:
        scores: Sub-score values keyed by component name (each 0-100)
        weights: Weight per component name, summing to 1.0

    Returns:
        Rounded overall score in [0, 100]
    """
    validate_weights(weights)
    missing = set(weights) - set(scores)
    if missing:
        raise ValueError(f"Missing sub-scores: {sorted(missing)}")

    total = sum(clamp_score(scores[name]) * weight for name, weight in weights.items())
    return int(round(clamp_score(total)))


# ============================================================================
# SCORE COMPONENTS
# ============================================================================

@dataclass
class ScoreComponent:
    """A bounded score, optionally compared against a competitor."""
    name: str
    value: float
    competitor_value: Optional[float] = None
    lower_is_better: bool = False

    def __post_init__(self):
        self.value = clamp_score(self.value)
        if self.competitor_value is not None:
            self.competitor_value = clamp_score(self.competitor_value)

    @property
    def gap(self) -> Optional[float]:
        """User minus competitor."""
        if self.competitor_value is None:
            return None
        return round(self.value - self.competitor_value, 2)

    @property
    def advantage(self) -> Optional[str]:
        """'user', 'competitor' or 'tie'."""
        gap = self.gap
        if gap is None:
            return None
        if gap == 0:
            return "tie"
        user_ahead = gap < 0 if self.lower_is_better else gap > 0
        return "user" if user_ahead else "competitor"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["gap"] = self.gap
        data["advantage"] = self.advantage
        return data

    def comparison(self) -> Dict[str, Any]:
        """Same shape as compare_metric, with both sides bounded to 0-100."""
        return {
            "user": self.value,
            "competitor": self.competitor_value,
            "gap": self.gap,
            "advantage": self.advantage,
        }


def compare_metric(user: float, competitor: float, lower_is_better: bool = False) -> Dict[str, Any]:
    """
    Compare a raw metric that is not bounded to 0-100 (load times, CLS).

    Returns:
        {"user": .., "competitor": .., "gap": .., "advantage": ..}
    """
    gap = round(user - competitor, 3)
    if gap == 0:
        advantage = "tie"
    elif (gap < 0) == lower_is_better:
        advantage = "user"
    else:
        advantage = "competitor"
    return {
        "user": user,
        "competitor": competitor,
        "gap": gap,
        "advantage": advantage,
    }
