"""
Recommendations

Threshold-triggered recommendations and their ranking:
sort by priority x impact, drop duplicate (type, title) pairs, keep top N.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Any, Iterable, List, Optional, Tuple

from .helpers import priority_weight


@dataclass(frozen=True)
class Recommendation:
    """An actionable recommendation. Immutable once created."""
    type: str
    priority: str
    impact: str
    effort: str
    title: str
    description: str
    implementation: str
    expected_improvement: float

    @property
    def rank_score(self) -> int:
        return priority_weight(self.priority) * priority_weight(self.impact)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.type, self.title)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Recommendation":
        return cls(**data)


def dedupe_by_key(items: Iterable[Any], key) -> List[Any]:
    """Keep the first item for each key, preserving order."""
    seen = set()
    result = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        result.append(item)
    return result


def rank_recommendations(
    recommendations: Iterable[Recommendation],
    limit: Optional[int] = None,
) -> List[Recommendation]:
    """
    Sort, deduplicate and truncate recommendations.

    Args:
        recommendations: Candidate recommendations
        limit: Maximum number to return (None for all)

    Returns:
        Recommendations ordered by descending priority x impact weight
    """
    ordered = sorted(recommendations, key=lambda r: r.rank_score, reverse=True)
    unique = dedupe_by_key(ordered, key=lambda r: r.key)
    if limit is not None:
        unique = unique[:limit]
    return unique
