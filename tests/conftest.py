"""
Pytest Configuration and Fixtures

Shared fixtures for the analysis engine test suite: sample pages,
mock collaborators, job payloads and an in-memory result store.
"""

import pytest
from typing import Dict, List
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from analysis_engine.database import ResultRepository, init_db
from analysis_engine.integrations.fetcher import PageContent, parse_page
from analysis_engine.jobs.progress import ProgressSink
from analysis_engine.semantic import SemanticAnalysisEngine
from analysis_engine.utils.errors import ExternalServiceError
from analysis_engine.utils.retry import RetryPolicies


# ============================================================================
# Sample Pages
# ============================================================================

WELL_FORMED_HTML = """
<html>
<head>
  <title>Content Marketing Guide for Growing Teams</title>
  <meta name="description" content="A practical guide to content marketing for growing teams: plan topics, write useful articles and measure what drives organic growth.">
  <meta name="viewport" content="width=device-width, initial-scale=1">
</head>
<body>
  <h1>Content Marketing Guide</h1>
  <p>Content marketing helps growing teams earn organic traffic. Research shows that
  useful articles attract links and readers. A clear content strategy keeps the
  editorial calendar focused on search intent.</p>
  <h2>Why content marketing works</h2>
  <p>According to industry research, companies that publish helpful guides see more
  qualified leads. Good articles answer real questions. Keyword research reveals what
  readers search for each month.</p>
  <h3>Measuring organic growth</h3>
  <p>Track organic traffic, rankings and conversions. Review the analytics report every
  week. Update older articles when the data suggests they are losing positions.</p>
  <h2>Building a content calendar</h2>
  <p>Plan topics around customer questions. Assign owners and deadlines. Publish on a
  steady schedule so search engines crawl the site often.</p>
  <p>Content marketing is a long game. Consistent publishing builds topical authority
  over time.</p>
  <img src="/images/calendar.png" alt="Content calendar">
  <a href="/pricing">Pricing</a>
  <a href="/blog">Blog</a>
  <a href="/about">About</a>
  <a href="https://other.example.org/">Partner</a>
</body>
</html>
"""

MISSING_H1_HTML = """
<html>
<head><title>Short title</title></head>
<body>
  <h2>Only a subheading</h2>
  <p>This page has no main heading and no internal links at all.</p>
</body>
</html>
"""

COMPETITOR_HTML = """
<html>
<head>
  <title>Video Marketing and Content Strategy Playbook</title>
  <meta name="description" content="Learn video marketing, social media distribution and content strategy from a team that ships weekly campaigns for B2B brands.">
</head>
<body>
  <h1>Video Marketing Playbook</h1>
  <p>Video marketing drives engagement across social media channels. A strong content
  strategy pairs video tutorials with written guides. Social media distribution
  multiplies the reach of every campaign.</p>
  <h2>Planning video content</h2>
  <p>Start with customer questions and turn the best answers into short video
  tutorials. Measure watch time and conversions.</p>
</body>
</html>
"""


@pytest.fixture
def well_formed_page() -> PageContent:
    return parse_page(WELL_FORMED_HTML, "https://example.com/guide")


@pytest.fixture
def missing_h1_page() -> PageContent:
    return parse_page(MISSING_H1_HTML, "https://example.com/thin")


@pytest.fixture
def competitor_page() -> PageContent:
    return parse_page(COMPETITOR_HTML, "https://competitor.com/playbook")


# ============================================================================
# Mock Collaborators
# ============================================================================

def make_fetcher(pages: Dict[str, PageContent], exists: bool = True) -> MagicMock:
    """
    Mock ContentFetcher serving the given pages.

    Unknown URLs raise a non-retryable 404 ExternalServiceError.
    """
    async def fetch_page(url: str) -> PageContent:
        if url not in pages:
            raise ExternalServiceError("content fetch", f"HTTP 404 for {url}", status_code=404)
        return pages[url]

    fetcher = MagicMock()
    fetcher.fetch_page = AsyncMock(side_effect=fetch_page)
    fetcher.exists = AsyncMock(return_value=exists)
    fetcher.close = AsyncMock()
    return fetcher


@pytest.fixture
def fetcher_factory():
    return make_fetcher


class RecordingSink(ProgressSink):
    """Progress sink that keeps every update."""

    def __init__(self):
        self.updates: List[tuple] = []

    async def update_progress(self, job_id: str, percent: int, message: str) -> None:
        self.updates.append((job_id, percent, message))

    @property
    def percents(self) -> List[int]:
        return [percent for _, percent, _ in self.updates]


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def retry_policies() -> RetryPolicies:
    """Retry policies without backoff delays."""
    return RetryPolicies.immediate()


@pytest.fixture(scope="session")
def semantic_engine() -> SemanticAnalysisEngine:
    """One engine per session; loading the NLP pipeline is slow."""
    return SemanticAnalysisEngine()


@pytest.fixture
def mock_ai_client():
    """Mock Claude client answering every prompt with one JSON object."""
    client = MagicMock()
    client.analyze_json = AsyncMock(return_value={
        "overall_score": 88,
        "content_structure_score": 80,
        "keyword_density": 1.8,
        "content_gaps": ["Case studies", "Pricing comparisons"],
        "topic_clusters": ["content strategy", "organic growth"],
        "clusters": [{"name": "content strategy"}, {"name": "organic growth"}, {"name": "analytics"}],
        "expertise": 80,
        "authoritativeness": 70,
        "trustworthiness": 90,
        "signals": {"citations": 2},
    })
    return client


# ============================================================================
# Job Payloads
# ============================================================================

@pytest.fixture
def content_job_data() -> Dict:
    return {
        "projectId": "project-1",
        "userId": "user-1",
        "teamId": "team-1",
        "params": {
            "websiteUrl": "https://example.com/guide",
            "targetKeywords": ["content marketing", "organic growth"],
            "competitorUrls": [],
            "analysisDepth": "standard",
        },
    }


@pytest.fixture
def seo_job_data() -> Dict:
    return {
        "projectId": "project-1",
        "userId": "user-1",
        "teamId": "team-1",
        "params": {
            "websiteUrl": "https://example.com",
            "pages": ["https://example.com/guide"],
            "includePerformance": False,
            "includeMobile": False,
        },
    }


@pytest.fixture
def competitive_job_data() -> Dict:
    return {
        "projectId": "project-1",
        "userId": "user-1",
        "teamId": "team-1",
        "params": {
            "targetDomain": "example.com",
            "competitorIds": ["comp-1"],
            "analysisTypes": ["comprehensive"],
            "options": {
                "depth": "standard",
                "includeHistorical": False,
                "alertsEnabled": True,
                "customParameters": {},
            },
        },
    }


# ============================================================================
# Result Store
# ============================================================================

@pytest.fixture
def session_factory():
    """In-memory SQLite shared across sessions via a static pool."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    yield factory
    engine.dispose()


@pytest.fixture
def repository(session_factory) -> ResultRepository:
    return ResultRepository(session_factory)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
