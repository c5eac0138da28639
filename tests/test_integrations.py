"""
Tests for External Integrations.

HTTP clients run against httpx.MockTransport; the Anthropic and OpenAI
SDK clients are replaced with mocks.
"""

from types import SimpleNamespace

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from analysis_engine.integrations import (
    ClaudeClient,
    ContentFetcher,
    EmbeddingClient,
    ExternalClients,
    PageSpeedClient,
    SerpApiClient,
    cosine,
    extract_json,
    find_domain_position,
    normalize_domain,
    parse_page,
    parse_report,
    site_url,
)
from analysis_engine.utils.config import Settings
from analysis_engine.utils.errors import ExternalServiceError


PAGE_HTML = """
<html>
<head>
  <title>Pricing Guide</title>
  <meta name="Description" content="  How our pricing works.  ">
  <link rel="stylesheet" href="/site.css">
  <script>var tracking = "not body text";</script>
</head>
<body>
  <h1>Pricing</h1>
  <h2>Plans</h2>
  <p>Every plan includes analytics.</p>
  <p>   </p>
  <a href="/plans">Plans</a>
  <a href="https://example.com/faq">FAQ</a>
  <a href="https://partner.com/">Partner</a>
  <img src="/hero.png">
</body>
</html>
"""


def _transport(routes):
    """MockTransport answering from a path -> (status, body) table; unknown paths 404."""
    def handler(request):
        status, body = routes.get(request.url.path, (404, "not found"))
        if isinstance(body, Exception):
            raise body
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)
    return httpx.MockTransport(handler)


# =============================================================================
# MARKUP EXTRACTION
# =============================================================================

class TestParsePage:
    """Test on-page signal extraction."""

    def test_signals(self):
        page = parse_page(PAGE_HTML, "https://example.com/pricing")

        assert page.title == "Pricing Guide"
        assert page.meta_description == "How our pricing works."
        assert [(h.level, h.text) for h in page.headings] == [(1, "Pricing"), (2, "Plans")]
        assert page.paragraphs == ["Every plan includes analytics."]
        assert page.internal_links == 2
        assert page.external_links == 1
        assert page.images == 1
        assert page.script_count == 1
        assert page.stylesheet_count == 1
        assert page.has_viewport is False
        assert "tracking" not in page.text

    def test_missing_tags(self):
        page = parse_page("<html><body><p>Hello there</p></body></html>", "https://example.com")
        assert page.title is None
        assert page.meta_description is None
        assert page.heading_count(1) == 0
        assert page.body == "Hello there"
        assert page.word_count == 2

    def test_empty_markup(self):
        page = parse_page("", "https://example.com")
        assert page.text == ""
        assert page.html_size == 0

    def test_site_url(self):
        assert site_url("https://example.com/a/b?x=1", "/robots.txt") == "https://example.com/robots.txt"


# =============================================================================
# CONTENT FETCHER
# =============================================================================

class TestContentFetcher:
    """Test page fetching and error mapping."""

    @pytest.fixture
    def fetcher(self):
        transport = _transport({
            "/pricing": (200, PAGE_HTML),
            "/robots.txt": (200, "User-agent: *"),
            "/busy": (503, "unavailable"),
            "/down": (200, httpx.ConnectError("connection refused")),
        })
        return ContentFetcher(transport=transport)

    @pytest.mark.asyncio
    async def test_fetch_page(self, fetcher):
        page = await fetcher.fetch_page("https://example.com/pricing")
        assert page.url == "https://example.com/pricing"
        assert page.title == "Pricing Guide"
        await fetcher.close()

    @pytest.mark.asyncio
    async def test_not_found_not_retryable(self, fetcher):
        with pytest.raises(ExternalServiceError) as exc_info:
            await fetcher.fetch_page("https://example.com/missing")
        assert exc_info.value.status_code == 404
        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_server_error_retryable(self, fetcher):
        with pytest.raises(ExternalServiceError) as exc_info:
            await fetcher.fetch("https://example.com/busy")
        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_network_error_retryable(self, fetcher):
        with pytest.raises(ExternalServiceError) as exc_info:
            await fetcher.fetch("https://example.com/down")
        assert exc_info.value.status_code is None
        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_exists(self, fetcher):
        assert await fetcher.exists("https://example.com/robots.txt") is True
        assert await fetcher.exists("https://example.com/sitemap.xml") is False

    @pytest.mark.asyncio
    async def test_closed_client(self, fetcher):
        async with fetcher:
            pass
        with pytest.raises(ExternalServiceError) as exc_info:
            await fetcher.fetch("https://example.com/pricing")
        assert exc_info.value.retryable is False


# =============================================================================
# PAGESPEED INSIGHTS
# =============================================================================

LIGHTHOUSE_RESPONSE = {
    "lighthouseResult": {
        "categories": {
            "performance": {"score": 0.62},
            "accessibility": {"score": 0.9},
            "best-practices": {"score": 0.85},
            "seo": {"score": 1.0},
        },
        "audits": {
            "largest-contentful-paint": {"numericValue": 2534.1234},
            "cumulative-layout-shift": {"numericValue": 0.08},
            "render-blocking-resources": {
                "title": "Eliminate render-blocking resources",
                "description": "Resources are blocking the first paint of your page.",
                "details": {"type": "opportunity", "overallSavingsMs": 850},
            },
            "unused-css-rules": {
                "title": "Reduce unused CSS",
                "details": {"type": "opportunity", "overallSavingsMs": 0},
            },
            "uses-long-cache-ttl": {"title": "Cache policy", "details": {"type": "table"}},
        },
    }
}


class TestPageSpeed:
    """Test Lighthouse response parsing and the client."""

    def test_parse_report(self):
        report = parse_report(LIGHTHOUSE_RESPONSE, "https://example.com", "mobile")

        assert report.performance == 62.0
        assert report.best_practices == 85.0
        assert report.seo == 100.0
        assert report.metrics == {"largest_contentful_paint": 2534.123, "cumulative_layout_shift": 0.08}
        assert [o["id"] for o in report.opportunities] == ["render-blocking-resources"]
        assert report.opportunities[0]["savings_ms"] == 850

    def test_parse_empty(self):
        report = parse_report({}, "https://example.com", "desktop")
        assert report.performance == 0.0
        assert report.opportunities == []

    @pytest.mark.asyncio
    async def test_run(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=LIGHTHOUSE_RESPONSE)

        client = PageSpeedClient(api_key="psi-key", transport=httpx.MockTransport(handler))
        report = await client.run("https://example.com", strategy="desktop")
        await client.close()

        assert report.strategy == "desktop"
        request = seen[0]
        assert request.url.path == "/pagespeedonline/v5/runPagespeed"
        assert request.url.params["strategy"] == "desktop"
        assert request.url.params["key"] == "psi-key"
        assert request.url.params.get_list("category") == ["PERFORMANCE", "ACCESSIBILITY", "BEST_PRACTICES", "SEO"]

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        client = PageSpeedClient(transport=_transport({"/pagespeedonline/v5/runPagespeed": (200, "<html>")}))
        with pytest.raises(ExternalServiceError) as exc_info:
            await client.run("https://example.com")
        assert exc_info.value.retryable is False


# =============================================================================
# SERPAPI
# =============================================================================

class TestSerpApi:
    """Test organic result parsing and domain matching."""

    def test_key_required(self):
        with pytest.raises(ValueError):
            SerpApiClient(api_key="")

    @pytest.mark.asyncio
    async def test_search(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"organic_results": [
                {"position": 1, "link": "https://www.rival.com/crm", "title": "Rival CRM"},
                {"position": 2, "link": "https://blog.example.com/crm", "title": "Our CRM"},
            ]})

        client = SerpApiClient(api_key="serp-key", transport=httpx.MockTransport(handler))
        results = await client.search("crm software", location="Austin, Texas")

        assert [r["position"] for r in results] == [1, 2]
        params = seen[0].url.params
        assert params["q"] == "crm software"
        assert params["location"] == "Austin, Texas"
        assert params["api_key"] == "serp-key"

        assert find_domain_position(results, "rival.com") == 1
        assert find_domain_position(results, "https://example.com") == 2
        assert find_domain_position(results, "other.com") is None

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("https://WWW.Example.com/path", "example.com"),
            ("www.example.com/pricing", "example.com"),
            ("", ""),
        ],
    )
    def test_normalize_domain(self, value, expected):
        assert normalize_domain(value) == expected


# =============================================================================
# AI COLLABORATORS
# =============================================================================

class TestClaudeClient:
    """Test JSON extraction and usage tracking."""

    def _client(self, text):
        client = ClaudeClient(api_key="test-key")
        client.async_client = MagicMock()
        client.async_client.messages.create = AsyncMock(return_value=SimpleNamespace(
            content=[SimpleNamespace(text=text)],
            usage=SimpleNamespace(input_tokens=1000, output_tokens=200),
            stop_reason="end_turn",
        ))
        return client

    def test_extract_json(self):
        assert extract_json('Here you go:\n```json\n{"score": 80}\n```') == {"score": 80}
        assert extract_json('["a", "b"]') == ["a", "b"]
        with pytest.raises(ValueError):
            extract_json("no structured answer")

    @pytest.mark.asyncio
    async def test_analyze_json(self):
        client = self._client('{"overall_score": 77}')
        assert await client.analyze_json("Rate this page", system="You are an editor") == {"overall_score": 77}

        kwargs = client.async_client.messages.create.await_args.kwargs
        assert kwargs["system"] == "You are an editor"
        assert client.call_count == 1
        assert client.total_usage.total_tokens == 1200
        assert client.total_usage.estimated_cost == pytest.approx(0.006)

    @pytest.mark.asyncio
    async def test_unparsable_answer(self):
        client = self._client("I cannot rate this page.")
        with pytest.raises(ExternalServiceError) as exc_info:
            await client.analyze_json("Rate this page")
        assert exc_info.value.retryable is True

    def test_key_required(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(ValueError):
            ClaudeClient()


class TestEmbeddings:
    """Test embedding similarity."""

    @pytest.mark.asyncio
    async def test_similarity(self):
        client = EmbeddingClient(api_key="sk-test")
        client.client = MagicMock()
        client.client.embeddings.create = AsyncMock(return_value=SimpleNamespace(data=[
            SimpleNamespace(embedding=[1.0, 0.0]),
            SimpleNamespace(embedding=[1.0, 1.0]),
        ]))

        assert await client.similarity("page text", "keyword") == pytest.approx(0.7071, abs=1e-4)

    @pytest.mark.asyncio
    async def test_incomplete_response(self):
        client = EmbeddingClient(api_key="sk-test")
        client.client = MagicMock()
        client.client.embeddings.create = AsyncMock(return_value=SimpleNamespace(data=[]))
        with pytest.raises(ExternalServiceError):
            await client.similarity("page text", "keyword")

    @pytest.mark.parametrize(
        "a,b,expected",
        [([1, 0], [1, 0], 1.0), ([1, 0], [0, 1], 0.0), ([1, 0], [-1, 0], 0.0), ([0, 0], [1, 0], 0.0)],
    )
    def test_cosine(self, a, b, expected):
        assert cosine(a, b) == pytest.approx(expected)


# =============================================================================
# CLIENT FACTORY
# =============================================================================

class TestExternalClients:
    """Optional clients exist only when configured."""

    def _settings(self, **overrides):
        values = {
            "ANTHROPIC_API_KEY": None,
            "OPENAI_API_KEY": None,
            "SERPAPI_API_KEY": None,
            "PAGESPEED_ENABLED": False,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    @pytest.mark.asyncio
    async def test_unconfigured(self):
        clients = ExternalClients(self._settings())
        assert clients.claude is None
        assert clients.embeddings is None
        assert clients.serp is None
        assert clients.pagespeed is None
        assert isinstance(clients.fetcher, ContentFetcher)
        await clients.close()

    @pytest.mark.asyncio
    async def test_configured(self):
        clients = ExternalClients(self._settings(SERPAPI_API_KEY="serp-key", PAGESPEED_ENABLED=True))
        assert isinstance(clients.serp, SerpApiClient)
        assert clients.serp is clients.serp
        assert isinstance(clients.pagespeed, PageSpeedClient)
        clients.log_status()
        await clients.close()
