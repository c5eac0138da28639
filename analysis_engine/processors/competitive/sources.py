"""
Competitive Data Strategies

The processor asks the live strategy first and falls back to the
simulated one. Both return a DataSourceResult whose `strategy` field
says which one produced the data.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from .integration import CompetitiveDataRequest, IntegrationCoordinator, IntegrationMetadata
from .simulation import CompetitiveSimulator, simulate_sections

logger = logging.getLogger(__name__)


LIVE = "live"
SIMULATED = "simulated"

# Analysis type (job payload) -> data sections it produces
TYPE_SECTIONS: Dict[str, List[str]] = {
    "content-similarity": ["content_analysis"],
    "seo-comparison": ["seo_analysis"],
    "performance-benchmark": ["performance_analysis"],
    "market-position": ["market_position"],
    "content-gaps": ["content_gaps"],
    "comprehensive": [
        "content_analysis",
        "seo_analysis",
        "performance_analysis",
        "market_position",
        "content_gaps",
    ],
}


@dataclass
class DataSourceResult:
    strategy: str
    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    metadata: Optional[IntegrationMetadata] = None

    @property
    def is_live(self) -> bool:
        return self.strategy == LIVE and self.success


class LiveDataSource:
    """Live external data through the integration coordinator."""

    strategy = LIVE

    def __init__(self, coordinator: IntegrationCoordinator):
        self.coordinator = coordinator

    async def collect(self, request: CompetitiveDataRequest) -> DataSourceResult:
        response = await self.coordinator.perform_competitive_analysis(request)
        return DataSourceResult(
            strategy=self.strategy,
            success=response.success and bool(response.data),
            data=response.data if response.success else {},
            error=response.error,
            metadata=response.metadata,
        )


class SimulatedDataSource:
    """
    Placeholder data for when live collection fails.

    Usage:
        source = SimulatedDataSource(seed=7)
        sections = source.generate("seo-comparison")
    """

    strategy = SIMULATED

    def __init__(self, seed: Optional[int] = None):
        self.simulator = CompetitiveSimulator(seed)

    @staticmethod
    def sections_for(analysis_type: str) -> List[str]:
        return TYPE_SECTIONS.get(analysis_type, TYPE_SECTIONS["content-similarity"])

    def generate(self, analysis_type: str) -> Dict[str, Any]:
        """Simulated sections for one analysis type."""
        return simulate_sections(self.simulator, self.sections_for(analysis_type))

    async def collect(self, analysis_types: List[str]) -> DataSourceResult:
        data: Dict[str, Any] = {}
        for analysis_type in analysis_types:
            data.update(self.generate(analysis_type))
        return DataSourceResult(strategy=self.strategy, success=True, data=data)
