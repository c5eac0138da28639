"""
Competitive Insights

Derived after the analysis data is assembled:

- alerts: keyword gap, topic gap, performance opportunity
- confidence: base scores adjusted by data strategy, depth and the
  sections present
- metadata: algorithm version, parameters, data source profiles,
  limitations
"""

import uuid
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, Any, List, Optional

from ...database.repository import Competitor
from ...jobs.models import CompetitiveOptions
from ...scoring.helpers import clamp_score
from .integration import IntegrationMetadata

METADATA_VERSION = "2.0.0"
LIVE_ALGORITHM = "competitive-analysis-external-v2"
SIMULATED_ALGORITHM = "competitive-analysis-simulated-v1"

PERFORMANCE_ALERT_THRESHOLD = 50

SECTION_CONFIDENCE_BONUS = {
    "content_analysis": 5,
    "seo_analysis": 5,
    "performance_analysis": 5,
    "market_position": 10,
    "content_gaps": 5,
}

BASE_LIMITATIONS = [
    "Historical data limited to last 12 months",
    "Real-time competitive monitoring requires separate monitoring jobs",
]

INTERNAL_SOURCE = {"source": "Internal Analytics", "type": "api", "coverage": 95, "reliability": 90}

LIVE_SOURCE_PROFILES = {
    "Web Scraping": {"source": "Website Content Scraping", "type": "third-party", "coverage": 90, "reliability": 88},
    "SerpApi": {"source": "SerpApi Search Data", "type": "third-party", "coverage": 95, "reliability": 92},
    "PageSpeed Insights": {
        "source": "PageSpeed Insights Lighthouse",
        "type": "third-party",
        "coverage": 85,
        "reliability": 95,
    },
}

SIMULATED_SOURCE = {
    "source": "Simulated Data (External APIs Unavailable)",
    "type": "manual",
    "coverage": 60,
    "reliability": 70,
}


# ============================================================================
# ALERTS
# ============================================================================

def _alert(
    competitors: List[Competitor],
    alert_type: str,
    severity: str,
    title: str,
    description: str,
    source: str,
    scores: tuple,
    entity: str,
    data: Dict[str, Any],
    recommendation: Dict[str, Any],
    action_required: bool = True,
) -> Dict[str, Any]:
    confidence, impact, urgency = scores
    return {
        "id": f"alert-{uuid.uuid4().hex[:12]}",
        "competitor_id": competitors[0].id if competitors else "unknown",
        "type": alert_type,
        "severity": severity,
        "title": title,
        "description": description,
        "timestamp": datetime.utcnow().isoformat(),
        "status": "new",
        "metadata": {
            "source": source,
            "confidence": confidence,
            "impact": impact,
            "urgency": urgency,
            "related_entities": [entity],
            "data": data,
        },
        "action_required": action_required,
        "recommendations": [recommendation],
    }


def _volume_text(volume: Optional[int]) -> str:
    return f"{volume:,} monthly searches" if volume else "unmeasured search volume"


def generate_alerts(data: Dict[str, Any], competitors: List[Competitor]) -> List[Dict[str, Any]]:
    """
    Alerts derived from the assembled analysis data.

    - keyword gap present -> high severity opportunity alert
    - topic gap present -> medium severity content alert
    - top performance opportunity above 50% -> medium severity alert
    """
    alerts = []

    seo = data.get("seo_analysis")
    keyword_gaps = seo.get("keyword_analysis", {}).get("keyword_gaps", []) if seo else []
    if keyword_gaps:
        gap = keyword_gaps[0]
        alerts.append(_alert(
            competitors,
            "opportunity-identified",
            "high",
            "High-Value Keyword Opportunity Detected",
            f'Competitor ranks #{gap["competitor_ranking"]} for "{gap["keyword"]}" '
            f'with {_volume_text(gap.get("search_volume"))}',
            "SEO Analysis",
            (85, 90, 80),
            gap["keyword"],
            {
                "keyword": gap["keyword"],
                "search_volume": gap.get("search_volume"),
                "difficulty": gap.get("difficulty"),
                "opportunity_score": gap.get("opportunity_score"),
            },
            {
                "action": "Create targeted content for this keyword",
                "priority": "short-term",
                "description": "Develop comprehensive content targeting this high-opportunity keyword",
                "expected_outcome": "Potential to capture significant organic traffic",
                "effort": "medium",
            },
        ))

    content = data.get("content_analysis")
    topic_gaps = content.get("topic_analysis", {}).get("topic_gaps", []) if content else []
    if topic_gaps:
        gap = topic_gaps[0]
        alerts.append(_alert(
            competitors,
            "content-published",
            "medium",
            "Content Gap Opportunity Identified",
            f'Significant opportunity in "{gap["topic"]}" topic '
            f'with {gap["opportunity_score"]:.1f}% opportunity score',
            "Content Analysis",
            (78, 75, 60),
            gap["topic"],
            {
                "topic": gap["topic"],
                "opportunity_score": gap["opportunity_score"],
                "search_volume": gap.get("search_volume"),
                "strategic_relevance": gap.get("strategic_relevance"),
            },
            {
                "action": "Develop content strategy for this topic",
                "priority": "medium-term",
                "description": "Create comprehensive content addressing this topic gap",
                "expected_outcome": "Improved topic authority and search visibility",
                "effort": "medium",
            },
        ))

    performance = data.get("performance_analysis")
    opportunities = performance.get("performance_opportunities", []) if performance else []
    if opportunities and opportunities[0]["improvement_potential"] > PERFORMANCE_ALERT_THRESHOLD:
        top = opportunities[0]
        implementation = top.get("implementation", {})
        alerts.append(_alert(
            competitors,
            "performance-improvement",
            "medium",
            "Performance Optimization Opportunity",
            f'{top["metric"]} optimization could improve performance by '
            f'{top["improvement_potential"]:.1f}%',
            "Performance Analysis",
            (82, 70, 65),
            top["metric"],
            {
                "metric": top["metric"],
                "current_value": top.get("current_value"),
                "competitor_value": top.get("competitor_value"),
                "improvement_potential": top["improvement_potential"],
            },
            {
                "action": "Implement performance optimization",
                "priority": "medium-term",
                "description": implementation.get("effort", ""),
                "expected_outcome": f'{implementation.get("expected_impact", 0):.1f}% performance improvement',
                "effort": implementation.get("difficulty", "medium"),
            },
            action_required=False,
        ))

    return alerts


# ============================================================================
# CONFIDENCE
# ============================================================================

@dataclass
class ConfidenceScore:
    overall: float = 75
    data_quality: float = 80
    sample_size: float = 70
    recency: float = 90
    source_reliability: float = 75
    analysis_accuracy: float = 80

    def clamped(self) -> "ConfidenceScore":
        return ConfidenceScore(**{k: clamp_score(v) for k, v in asdict(self).items()})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def calculate_confidence(
    data: Dict[str, Any],
    depth: str,
    live_metadata: Optional[IntegrationMetadata] = None,
) -> ConfidenceScore:
    """
    Confidence in a competitive result.

    Args:
        data: Assembled analysis sections
        depth: basic | standard | comprehensive
        live_metadata: Integration metadata when live data was used,
                       None for simulated data
    """
    score = ConfidenceScore()

    if live_metadata is not None:
        score.overall = max(score.overall, live_metadata.confidence)
        score.data_quality += 20
        score.source_reliability += 15
        score.analysis_accuracy += 20
        score.sample_size += 20
        score.overall += min(len(live_metadata.data_sources_used) * 5, 15)
        score.overall -= min(len(live_metadata.limitations) * 3, 15)
    else:
        score.overall -= 25
        score.data_quality -= 30
        score.source_reliability -= 20
        score.analysis_accuracy -= 25

    if depth == "comprehensive":
        score.overall += 15
        score.data_quality += 10
        score.analysis_accuracy += 15
    elif depth == "basic":
        score.overall -= 10
        score.data_quality -= 15
        score.analysis_accuracy -= 10

    for section, bonus in SECTION_CONFIDENCE_BONUS.items():
        if data.get(section):
            score.overall += bonus

    return score.clamped()


# ============================================================================
# METADATA
# ============================================================================

def analysis_metadata(
    analysis_types: List[str],
    options: CompetitiveOptions,
    execution_time: float,
    live_metadata: Optional[IntegrationMetadata] = None,
) -> Dict[str, Any]:
    """Result metadata; execution_time is in milliseconds."""
    now = datetime.utcnow().isoformat()
    used_live = live_metadata is not None
    limitations = list(BASE_LIMITATIONS)
    sources = [dict(INTERNAL_SOURCE, last_update=now)]

    if used_live:
        for name in live_metadata.data_sources_used:
            profile = LIVE_SOURCE_PROFILES.get(name)
            if profile:
                sources.append(dict(profile, last_update=now))
        limitations.extend(live_metadata.limitations)
    else:
        sources.append(dict(SIMULATED_SOURCE, last_update=now))
        limitations.append("Analysis based on simulated data due to external API unavailability")

    return {
        "version": METADATA_VERSION,
        "algorithm": LIVE_ALGORITHM if used_live else SIMULATED_ALGORITHM,
        "data_strategy": "live" if used_live else "simulated",
        "parameters": {
            "analysis_types": list(analysis_types),
            "depth": options.depth,
            "include_historical": options.include_historical,
            "alerts_enabled": options.alerts_enabled,
            "custom_parameters": dict(options.custom_parameters),
            "external_apis_used": used_live,
            "data_sources_used": list(live_metadata.data_sources_used) if used_live else [],
        },
        "execution_time": execution_time,
        "data_source_info": sources,
        "limitations": limitations,
        "notes": (
            f"{'Live external API' if used_live else 'Simulated'} competitive analysis "
            f"performed with {options.depth} depth level"
        ),
    }
