"""
PageSpeed Insights Client

Google PageSpeed Insights (Lighthouse) scores for page speed, mobile
performance and Core Web Vitals.

API: https://developers.google.com/speed/docs/insights/v5/get-started
Works without a key at a low quota; a key raises the limit.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .http import APIClient

logger = logging.getLogger(__name__)


CATEGORIES = ("performance", "accessibility", "best-practices", "seo")

METRIC_AUDITS = {
    "first_contentful_paint": "first-contentful-paint",
    "largest_contentful_paint": "largest-contentful-paint",
    "total_blocking_time": "total-blocking-time",
    "cumulative_layout_shift": "cumulative-layout-shift",
    "speed_index": "speed-index",
}


@dataclass
class PageSpeedReport:
    """Lighthouse summary for one URL and strategy."""
    url: str
    strategy: str
    performance: float = 0.0
    accessibility: float = 0.0
    best_practices: float = 0.0
    seo: float = 0.0
    metrics: Dict[str, float] = field(default_factory=dict)
    opportunities: List[Dict[str, Any]] = field(default_factory=list)


def parse_report(data: Dict[str, Any], url: str, strategy: str) -> PageSpeedReport:
    """Convert a runPagespeed response into a PageSpeedReport."""
    lighthouse = data.get("lighthouseResult", {})
    categories = lighthouse.get("categories", {})
    audits = lighthouse.get("audits", {})

    def category_score(name: str) -> float:
        return round((categories.get(name, {}).get("score") or 0) * 100, 1)

    metrics = {}
    for key, audit_id in METRIC_AUDITS.items():
        value = audits.get(audit_id, {}).get("numericValue")
        if value is not None:
            metrics[key] = round(float(value), 3)

    opportunities = []
    for audit_id, audit in audits.items():
        details = audit.get("details") or {}
        if details.get("type") != "opportunity":
            continue
        savings = details.get("overallSavingsMs") or 0
        if savings > 0:
            opportunities.append({
                "id": audit_id,
                "title": audit.get("title", audit_id),
                "description": (audit.get("description") or "")[:200],
                "savings_ms": round(savings),
            })
    opportunities.sort(key=lambda o: o["savings_ms"], reverse=True)

    return PageSpeedReport(
        url=url,
        strategy=strategy,
        performance=category_score("performance"),
        accessibility=category_score("accessibility"),
        best_practices=category_score("best-practices"),
        seo=category_score("seo"),
        metrics=metrics,
        opportunities=opportunities,
    )


class PageSpeedClient(APIClient):
    """Async client for the PageSpeed Insights v5 API."""

    SERVICE_NAME = "PageSpeed Insights"
    BASE_URL = "https://www.googleapis.com/pagespeedonline/v5"

    def __init__(self, api_key: Optional[str] = None, timeout: float = 60.0, **kwargs):
        super().__init__(timeout=timeout, **kwargs)
        self.api_key = api_key

    async def run(self, url: str, strategy: str = "mobile") -> PageSpeedReport:
        """
        Run Lighthouse for a URL.

        Args:
            url: Page to test
            strategy: "mobile" or "desktop"
        """
        params: List = [("url", url), ("strategy", strategy)]
        params.extend(("category", c.upper().replace("-", "_")) for c in CATEGORIES)
        if self.api_key:
            params.append(("key", self.api_key))

        data = await self._get_json("/runPagespeed", params=params)
        report = parse_report(data, url, strategy)
        logger.info(f"PageSpeed {strategy} for {url}: performance {report.performance}")
        return report
