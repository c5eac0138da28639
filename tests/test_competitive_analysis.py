"""
Tests for Competitive Analysis.

These tests verify:
- Estimates and validation
- Live-first processing with the simulated fallback
- Competitor loading and placeholders
- The integration coordinator and its live sources
- Alerts, confidence and metadata
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from analysis_engine.database import CompetitiveAnalysisResult as CompetitiveRow
from analysis_engine.database import CompetitorRecord, get_db_context
from analysis_engine.database.repository import Competitor
from analysis_engine.integrations.pagespeed import PageSpeedReport
from analysis_engine.jobs import CompetitiveOptions, Job, JobType
from analysis_engine.processors.competitive import (
    CompetitiveAnalysisProcessor,
    CompetitiveDataRequest,
    CompetitiveSimulator,
    DataSourceResult,
    IntegrationCoordinator,
    IntegrationMetadata,
    LiveDataSource,
    PageSpeedSource,
    ScrapedContentSource,
    SerpRankingSource,
    SimulatedDataSource,
    analysis_metadata,
    calculate_confidence,
    generate_alerts,
    map_analysis_types,
    placeholder_competitors,
)
from analysis_engine.processors.competitive.integration import (
    CompetitiveSource,
    gap_priority,
    improvement_potential,
    integration_confidence,
    overall_health,
    serp_comparison,
    visibility,
)
from analysis_engine.processors.competitive.simulation import SECTIONS, simulate_sections
from analysis_engine.processors.competitive.sources import LIVE, SIMULATED
from analysis_engine.utils.errors import ExternalServiceError, PersistenceError


def _job(data):
    return Job.create(JobType.COMPETITIVE_ANALYSIS, data)


def _request(kinds=("comprehensive",), keywords=None):
    return CompetitiveDataRequest(
        target_domain="example.com",
        competitor_domains=["competitor.com"],
        analysis_types=list(kinds),
        keywords=list(keywords or []),
    )


class FakeSource(CompetitiveSource):
    """Live source returning a canned section or raising."""

    def __init__(self, kind, section, source_name, result=None, error=None, health="healthy"):
        self.kind = kind
        self.section = section
        self.source_name = source_name
        self.result = result if result is not None else {"score": 1}
        self.error = error
        self.health = health
        self.calls = 0

    async def analyze(self, request):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result

    async def health_check(self):
        if isinstance(self.health, Exception):
            raise self.health
        return self.health


def _sources(**errors):
    return [
        FakeSource("content", "content_analysis", "Web Scraping", error=errors.get("content")),
        FakeSource("seo", "seo_analysis", "SerpApi", error=errors.get("seo")),
        FakeSource("performance", "performance_analysis", "PageSpeed Insights", error=errors.get("performance")),
    ]


def _live_result(sections=("content_analysis", "seo_analysis"), sources=("Web Scraping", "SerpApi")):
    simulator = CompetitiveSimulator(seed=3)
    return DataSourceResult(
        strategy=LIVE,
        success=True,
        data=simulate_sections(simulator, list(sections)),
        metadata=IntegrationMetadata(
            processing_time=12.5,
            data_sources_used=list(sources),
            confidence=integration_confidence(len(sources), 0),
        ),
    )


# =============================================================================
# ESTIMATES & VALIDATION
# =============================================================================

class TestEstimate:
    """Test competitive processing time estimates."""

    @pytest.mark.parametrize("depth,expected", [("basic", 480), ("standard", 720), ("comprehensive", 1200)])
    def test_depth_multipliers(self, competitive_job_data, depth, expected):
        competitive_job_data["params"]["options"]["depth"] = depth
        assert CompetitiveAnalysisProcessor().estimate_processing_time(competitive_job_data) == expected

    def test_monotonic_in_competitors(self, competitive_job_data):
        processor = CompetitiveAnalysisProcessor()
        estimates = []
        for count in range(1, 6):
            competitive_job_data["params"]["competitorIds"] = [f"c{i}" for i in range(count)]
            estimates.append(processor.estimate_processing_time(competitive_job_data))
        assert estimates == sorted(estimates)
        assert len(set(estimates)) == len(estimates)

    def test_empty_competitors_rejected(self, competitive_job_data):
        competitive_job_data["params"]["competitorIds"] = []
        assert CompetitiveAnalysisProcessor().validate(competitive_job_data) is False

    def test_unknown_analysis_type_rejected(self, competitive_job_data):
        competitive_job_data["params"]["analysisTypes"] = ["sentiment-tracking"]
        assert CompetitiveAnalysisProcessor().validate(competitive_job_data) is False

    def test_missing_options_rejected(self, competitive_job_data):
        del competitive_job_data["params"]["options"]
        assert CompetitiveAnalysisProcessor().validate(competitive_job_data) is False


# =============================================================================
# PROCESSOR
# =============================================================================

class TestSimulatedFallback:
    """Without live data the processor completes with simulated sections."""

    @pytest.mark.asyncio
    async def test_no_live_source(self, competitive_job_data, recording_sink, retry_policies):
        processor = CompetitiveAnalysisProcessor(
            simulated_source=SimulatedDataSource(seed=11),
            progress_sink=recording_sink,
            retry_policies=retry_policies,
        )
        result = await processor.process(_job(competitive_job_data))

        assert result.success
        data = result.data
        assert data.strategy == SIMULATED
        assert data.metadata["algorithm"] == "competitive-analysis-simulated-v1"
        assert set(data.data) == set(SECTIONS)
        assert data.analysis_type == "comprehensive"
        assert data.competitor_id == "comp-1"
        assert data.confidence.overall == 80
        assert recording_sink.percents == [5, 10, 20, 30, 35, 85, 90, 95, 100]

    @pytest.mark.asyncio
    async def test_progress_spans_analysis_types(self, competitive_job_data, recording_sink):
        competitive_job_data["params"]["analysisTypes"] = ["seo-comparison", "content-gaps"]
        processor = CompetitiveAnalysisProcessor(progress_sink=recording_sink)
        result = await processor.process(_job(competitive_job_data))

        assert set(result.data.data) == {"seo_analysis", "content_gaps"}
        assert 35 in recording_sink.percents
        assert 57 in recording_sink.percents
        assert recording_sink.percents == sorted(recording_sink.percents)

    @pytest.mark.asyncio
    async def test_live_failure_falls_back(self, competitive_job_data, recording_sink):
        live = MagicMock()
        live.collect = AsyncMock(return_value=DataSourceResult(
            strategy=LIVE, success=False, error="No live data source returned data"
        ))
        processor = CompetitiveAnalysisProcessor(live_source=live, progress_sink=recording_sink)
        result = await processor.process(_job(competitive_job_data))

        assert result.success
        assert result.data.strategy == SIMULATED
        assert 30 in recording_sink.percents
        assert "Analysis based on simulated data due to external API unavailability" in result.data.metadata["limitations"]

    @pytest.mark.asyncio
    async def test_live_exception_falls_back(self, competitive_job_data):
        live = MagicMock()
        live.collect = AsyncMock(side_effect=RuntimeError("coordinator crashed"))
        result = await CompetitiveAnalysisProcessor(live_source=live).process(_job(competitive_job_data))

        assert result.success
        assert result.data.strategy == SIMULATED

    @pytest.mark.asyncio
    async def test_alerts_disabled(self, competitive_job_data):
        competitive_job_data["params"]["options"]["alertsEnabled"] = False
        result = await CompetitiveAnalysisProcessor().process(_job(competitive_job_data))
        assert result.data.alerts == []

    @pytest.mark.asyncio
    async def test_simulated_alerts(self, competitive_job_data):
        result = await CompetitiveAnalysisProcessor().process(_job(competitive_job_data))
        types = [alert["type"] for alert in result.data.alerts]
        assert types[:2] == ["opportunity-identified", "content-published"]
        assert all(alert["competitor_id"] == "comp-1" for alert in result.data.alerts)


class TestLiveData:
    """Live data is preferred and raises confidence."""

    @pytest.mark.asyncio
    async def test_live_result(self, competitive_job_data, recording_sink):
        live = MagicMock()
        live.collect = AsyncMock(return_value=_live_result())
        processor = CompetitiveAnalysisProcessor(live_source=live, progress_sink=recording_sink)

        result = await processor.process(_job(competitive_job_data))

        assert result.data.strategy == LIVE
        assert result.data.metadata["algorithm"] == "competitive-analysis-external-v2"
        assert result.data.metadata["parameters"]["data_sources_used"] == ["Web Scraping", "SerpApi"]
        assert 80 in recording_sink.percents
        assert 30 not in recording_sink.percents

    @pytest.mark.asyncio
    async def test_live_confidence_exceeds_simulated(self, competitive_job_data):
        live = MagicMock()
        live.collect = AsyncMock(return_value=_live_result())

        live_result = await CompetitiveAnalysisProcessor(live_source=live).process(_job(competitive_job_data))
        simulated_result = await CompetitiveAnalysisProcessor().process(_job(competitive_job_data))

        assert live_result.data.confidence.overall > simulated_result.data.confidence.overall
        assert live_result.data.confidence.data_quality > simulated_result.data.confidence.data_quality

    @pytest.mark.asyncio
    async def test_request_built_from_job(self, competitive_job_data):
        competitive_job_data["params"]["analysisTypes"] = ["seo-comparison", "market-position"]
        competitive_job_data["params"]["options"]["customParameters"] = {"keywords": ["crm software"]}
        live = MagicMock()
        live.collect = AsyncMock(return_value=_live_result(("seo_analysis",), ("SerpApi",)))

        await CompetitiveAnalysisProcessor(live_source=live).process(_job(competitive_job_data))

        request = live.collect.await_args.args[0]
        assert request.target_domain == "example.com"
        assert request.analysis_types == ["seo", "content"]
        assert request.keywords == ["crm software"]
        assert request.competitor_domains == ["competitor1.com"]


class TestCompetitorLoading:
    """Stored competitors are used; missing ones become placeholders."""

    def test_placeholders(self):
        placeholders = placeholder_competitors(["a", "b"])
        assert [p.name for p in placeholders] == ["Competitor 1", "Competitor 2"]
        assert [p.domain for p in placeholders] == ["competitor1.com", "competitor2.com"]
        assert all(p.placeholder for p in placeholders)

    @pytest.mark.asyncio
    async def test_stored_and_missing(self, competitive_job_data, repository, session_factory):
        with get_db_context(session_factory) as db:
            db.add(CompetitorRecord(id="comp-1", project_id="project-1", name="Rival", domain="rival.com"))
        competitive_job_data["params"]["competitorIds"] = ["comp-1", "comp-2"]

        processor = CompetitiveAnalysisProcessor(repository=repository)
        competitors = await processor._load_competitors(["comp-1", "comp-2"])

        assert [c.domain for c in competitors] == ["rival.com", "competitor2.com"]
        assert [c.placeholder for c in competitors] == [False, True]

    @pytest.mark.asyncio
    async def test_lookup_failure_uses_placeholders(self, competitive_job_data):
        repository = MagicMock()
        repository.load_competitors = MagicMock(side_effect=PersistenceError("connection reset"))
        repository.save_competitive_result = MagicMock(return_value="row-1")

        result = await CompetitiveAnalysisProcessor(repository=repository).process(_job(competitive_job_data))

        assert result.success
        repository.save_competitive_result.assert_called_once()

    @pytest.mark.asyncio
    async def test_result_stored(self, competitive_job_data, repository):
        job = _job(competitive_job_data)
        await CompetitiveAnalysisProcessor(repository=repository).process(job)

        row = repository.get_result(CompetitiveRow, job.id, "project-1")
        assert row.analysis_type == "comprehensive"
        assert row.overall_confidence == 80
        assert set(row.data) == set(SECTIONS)
        assert row.analysis_metadata["data_strategy"] == "simulated"


# =============================================================================
# SIMULATION
# =============================================================================

class TestSimulation:
    """Simulated sections are shaped like live ones."""

    def test_seeded_runs_repeat(self):
        first = SimulatedDataSource(seed=7).generate("comprehensive")
        second = SimulatedDataSource(seed=7).generate("comprehensive")
        assert first == second

    def test_unknown_section(self):
        with pytest.raises(ValueError):
            simulate_sections(CompetitiveSimulator(seed=1), ["pricing_analysis"])

    def test_unknown_type_maps_to_content(self):
        assert SimulatedDataSource.sections_for("something-else") == ["content_analysis"]

    def test_similarity_is_weighted(self):
        similarity = CompetitiveSimulator(seed=5).content_analysis()["content_similarity"]
        expected = (
            0.3 * similarity["lexical"]
            + 0.4 * similarity["semantic"]
            + 0.15 * similarity["structural"]
            + 0.15 * similarity["topical"]
        )
        assert similarity["overall"] == pytest.approx(expected, abs=1e-3)

    def test_threat_risk_scores(self):
        for threat in CompetitiveSimulator(seed=5).market_position()["threats"]:
            assert threat["risk_score"] == pytest.approx(threat["probability"] * threat["impact"] / 100, abs=0.05)

    def test_performance_opportunities_ranked(self):
        """Opportunities come back highest improvement potential first."""
        for seed in range(50):
            opportunities = CompetitiveSimulator(seed=seed).performance_analysis()["performance_opportunities"]
            potentials = [o["improvement_potential"] for o in opportunities]
            assert potentials == sorted(potentials, reverse=True)

    def test_opportunity_matrix_quadrants(self):
        matrix = CompetitiveSimulator(seed=5).content_gaps()["opportunity_matrix"]
        assert set(matrix) == {
            "high_impact_low_effort",
            "high_impact_high_effort",
            "low_impact_low_effort",
            "low_impact_high_effort",
        }

    @pytest.mark.asyncio
    async def test_collect_merges_types(self):
        result = await SimulatedDataSource(seed=2).collect(["seo-comparison", "performance-benchmark"])
        assert result.success
        assert not result.is_live
        assert set(result.data) == {"seo_analysis", "performance_analysis"}


# =============================================================================
# INTEGRATION COORDINATOR
# =============================================================================

class TestCoordinator:
    """Test source selection, merging and confidence."""

    @pytest.mark.asyncio
    async def test_all_sources_succeed(self):
        response = await IntegrationCoordinator(_sources()).perform_competitive_analysis(_request())

        assert response.success
        assert set(response.data) == {"content_analysis", "seo_analysis", "performance_analysis"}
        assert response.metadata.confidence == 70.0
        assert response.metadata.limitations == []

    @pytest.mark.asyncio
    async def test_one_source_fails(self):
        sources = _sources(seo=RuntimeError("quota exceeded"))
        response = await IntegrationCoordinator(sources).perform_competitive_analysis(_request())

        assert response.success
        assert "seo_analysis" not in response.data
        assert response.metadata.limitations == ["Seo analysis failed: quota exceeded"]
        assert response.metadata.confidence == pytest.approx(36.7)

    @pytest.mark.asyncio
    async def test_all_sources_fail(self):
        error = RuntimeError("offline")
        sources = _sources(content=error, seo=error, performance=error)
        response = await IntegrationCoordinator(sources).perform_competitive_analysis(_request())

        assert not response.success
        assert response.data == {}
        assert response.error == "No live data source returned data"
        assert response.metadata.confidence == 0.0

    @pytest.mark.asyncio
    async def test_only_requested_kinds_run(self):
        sources = _sources()
        await IntegrationCoordinator(sources).perform_competitive_analysis(_request(kinds=["seo"]))
        assert [s.calls for s in sources] == [0, 1, 0]

    @pytest.mark.asyncio
    async def test_live_source_wraps_response(self):
        error = RuntimeError("offline")
        live = LiveDataSource(IntegrationCoordinator(_sources(content=error, seo=error, performance=error)))
        result = await live.collect(_request())
        assert result.strategy == LIVE
        assert not result.is_live
        assert result.data == {}

    @pytest.mark.parametrize(
        "sources,limitations,expected",
        [(3, 0, 70.0), (1, 0, 23.3), (0, 5, 0.0), (3, 5, 40.0)],
    )
    def test_integration_confidence(self, sources, limitations, expected):
        assert integration_confidence(sources, limitations) == pytest.approx(expected)

    def test_map_analysis_types(self):
        assert map_analysis_types(["market-position", "content-gaps", "seo-comparison"]) == ["content", "seo"]

    def test_primary_competitor_required(self):
        request = CompetitiveDataRequest("example.com", [], ["content"])
        with pytest.raises(ValueError):
            request.primary_competitor


class TestHealth:
    """Test the coordinator health verdict."""

    @pytest.mark.parametrize(
        "statuses,expected",
        [
            (["healthy", "healthy", "unhealthy"], "healthy"),
            (["healthy", "degraded", "unhealthy"], "degraded"),
            (["healthy", "unhealthy", "unhealthy"], "unhealthy"),
            ([], "unhealthy"),
        ],
    )
    def test_overall_health(self, statuses, expected):
        assert overall_health(statuses) == expected

    @pytest.mark.asyncio
    async def test_raising_probe_counts_unhealthy(self):
        sources = _sources()
        sources[2].health = RuntimeError("timeout")
        health = await IntegrationCoordinator(sources).health_check()

        assert health["sources"]["PageSpeed Insights"] == "unhealthy"
        assert health["status"] == "healthy"


# =============================================================================
# LIVE SOURCES
# =============================================================================

class TestSerpRanking:
    """Test the SERP ranking comparison."""

    def test_serp_comparison(self):
        rows = [
            {"keyword": "crm", "user": 1, "competitor": 5},
            {"keyword": "crm pricing", "user": None, "competitor": 2},
            {"keyword": "crm tools", "user": 12, "competitor": None},
        ]
        section = serp_comparison(rows)

        overall = section["overall_comparison"]
        assert overall["user_score"] == pytest.approx(33.3)
        assert overall["competitor_score"] == pytest.approx(50.0)
        gaps = section["keyword_analysis"]["keyword_gaps"]
        assert gaps == [{
            "keyword": "crm pricing",
            "competitor_ranking": 2,
            "search_volume": None,
            "difficulty": None,
            "opportunity_score": 95,
            "priority": "high",
        }]
        assert section["keyword_analysis"]["ranking_overlap"] == pytest.approx(33.3)
        improvements = overall["ranking_comparison"]["improvement_opportunities"]
        assert [i["keyword"] for i in improvements] == ["crm tools"]

    @pytest.mark.parametrize("rank,priority", [(1, "high"), (3, "high"), (7, "medium"), (15, "low")])
    def test_gap_priority(self, rank, priority):
        assert gap_priority(rank) == priority

    def test_visibility_empty(self):
        assert visibility([]) == 0.0

    @pytest.mark.asyncio
    async def test_source_uses_client(self, retry_policies):
        client = MagicMock()
        client.search = AsyncMock(return_value=[
            {"position": 1, "link": "https://www.competitor.com/crm", "title": "CRM"},
            {"position": 4, "link": "https://example.com/crm", "title": "Our CRM"},
        ])
        source = SerpRankingSource(client, retry_policies.optional)

        section = await source.analyze(_request(keywords=["crm"]))

        shared = section["keyword_analysis"]["shared_keywords"]
        assert shared == [{"keyword": "crm", "user_ranking": 4, "competitor_ranking": 1}]

    @pytest.mark.asyncio
    async def test_keywords_required(self, retry_policies):
        source = SerpRankingSource(MagicMock(), retry_policies.optional)
        with pytest.raises(ValueError):
            await source.analyze(_request())


class TestPageSpeedSource:
    """Test the Lighthouse performance comparison."""

    @pytest.mark.parametrize(
        "savings,lcp,expected",
        [(500, 2000, 25.0), (5000, 2000, 100.0), (500, None, 0.0)],
    )
    def test_improvement_potential(self, savings, lcp, expected):
        assert improvement_potential(savings, lcp) == expected

    @pytest.mark.asyncio
    async def test_section(self, retry_policies):
        async def run(url, strategy="mobile"):
            fast = "example.com" in url
            return PageSpeedReport(
                url=url,
                strategy=strategy,
                performance=90.0 if fast else 60.0,
                accessibility=95.0,
                best_practices=92.0,
                seo=100.0,
                metrics={"largest_contentful_paint": 1800.0 if fast else 3200.0},
                opportunities=[{"id": "unused-javascript", "title": "Reduce unused JavaScript",
                                "description": "Remove dead code", "savings_ms": 1200}],
            )

        client = MagicMock()
        client.run = AsyncMock(side_effect=run)
        section = await PageSpeedSource(client, retry_policies.optional).analyze(_request())

        assert client.run.await_count == 4
        assert section["speed_comparison"]["largest_contentful_paint"]["advantage"] == "user"
        assert section["user_experience"]["overall_score"]["gap"] == 30.0
        assert section["user_experience"]["overall_score"]["advantage"] == "user"
        assert section["mobile_performance"]["mobile_accessibility"] == {
            "user": 95.0, "competitor": 95.0, "gap": 0.0, "advantage": "tie",
        }
        assert section["performance_opportunities"][0]["improvement_potential"] == pytest.approx(66.7)


class TestScrapedContent:
    """Test the scraped homepage comparison."""

    @pytest.mark.asyncio
    async def test_section(self, fetcher_factory, well_formed_page, competitor_page, semantic_engine, retry_policies):
        fetcher = fetcher_factory({
            "https://example.com": well_formed_page,
            "https://competitor.com": competitor_page,
        })
        source = ScrapedContentSource(fetcher, semantic_engine, retry_policies.optional)

        section = await source.analyze(_request())

        assert set(section["content_similarity"]) == {"overall", "lexical", "semantic", "structural", "topical"}
        assert len(section["topic_analysis"]["topic_gaps"]) <= 5
        assert section["content_quality"]["quality_factors"]["seo_optimization"]["user"] == 100

    @pytest.mark.asyncio
    async def test_unreachable_competitor_raises(self, fetcher_factory, well_formed_page, semantic_engine, retry_policies):
        fetcher = fetcher_factory({"https://example.com": well_formed_page})
        source = ScrapedContentSource(fetcher, semantic_engine, retry_policies.optional)
        with pytest.raises(ExternalServiceError):
            await source.analyze(_request())


# =============================================================================
# INSIGHTS
# =============================================================================

class TestAlerts:
    """Test alert derivation."""

    def _competitors(self):
        return [Competitor(id="comp-9", name="Rival", domain="rival.com")]

    def test_keyword_gap_without_volume(self):
        data = serp_comparison([{"keyword": "crm pricing", "user": None, "competitor": 2}])
        alerts = generate_alerts({"seo_analysis": data}, self._competitors())

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert["type"] == "opportunity-identified"
        assert alert["severity"] == "high"
        assert alert["competitor_id"] == "comp-9"
        assert alert["status"] == "new"
        assert "unmeasured search volume" in alert["description"]
        assert alert["id"].startswith("alert-")

    def test_performance_threshold(self):
        def data(potential):
            return {"performance_analysis": {"performance_opportunities": [{
                "metric": "Image Optimization",
                "improvement_potential": potential,
                "implementation": {"difficulty": "low", "effort": "Compress images", "expected_impact": 80.0},
            }]}}

        assert generate_alerts(data(50), self._competitors()) == []
        alerts = generate_alerts(data(50.1), self._competitors())
        assert alerts[0]["type"] == "performance-improvement"
        assert alerts[0]["action_required"] is False

    def test_performance_alert_follows_top_opportunity(self):
        """The alert fires whenever the best simulated opportunity clears the threshold."""
        for seed in range(50):
            section = CompetitiveSimulator(seed=seed).performance_analysis()
            top = max(section["performance_opportunities"], key=lambda o: o["improvement_potential"])
            alerts = generate_alerts({"performance_analysis": section}, self._competitors())

            if top["improvement_potential"] > 50:
                assert [a["type"] for a in alerts] == ["performance-improvement"]
                assert top["metric"] in alerts[0]["description"]
            else:
                assert alerts == []

    def test_no_competitors(self):
        data = CompetitiveSimulator(seed=4).content_analysis()
        alerts = generate_alerts({"content_analysis": data}, [])
        assert alerts[0]["competitor_id"] == "unknown"
        assert alerts[0]["type"] == "content-published"

    def test_empty_data_no_alerts(self):
        assert generate_alerts({}, self._competitors()) == []


class TestConfidence:
    """Test confidence scoring."""

    def test_simulated_comprehensive_standard(self):
        data = SimulatedDataSource(seed=1).generate("comprehensive")
        score = calculate_confidence(data, "standard")
        assert score.overall == 80
        assert score.data_quality == 50

    @pytest.mark.parametrize("depth", ["basic", "standard", "comprehensive"])
    @pytest.mark.parametrize("live", [True, False])
    def test_bounded(self, depth, live):
        data = SimulatedDataSource(seed=1).generate("comprehensive")
        metadata = IntegrationMetadata(1.0, ["Web Scraping", "SerpApi", "PageSpeed Insights"], 70.0) if live else None
        score = calculate_confidence(data, depth, metadata)
        for value in score.to_dict().values():
            assert 0 <= value <= 100

    def test_depth_order(self):
        data = SimulatedDataSource(seed=1).generate("seo-comparison")
        basic = calculate_confidence(data, "basic").overall
        standard = calculate_confidence(data, "standard").overall
        comprehensive = calculate_confidence(data, "comprehensive").overall
        assert basic < standard < comprehensive


class TestMetadata:
    """Test result metadata."""

    def test_live_metadata(self):
        options = CompetitiveOptions(depth="comprehensive")
        live = IntegrationMetadata(5.0, ["SerpApi"], 23.3, ["Performance analysis failed: timeout"])
        metadata = analysis_metadata(["seo-comparison"], options, 1234.5, live)

        assert metadata["version"] == "2.0.0"
        assert metadata["data_strategy"] == "live"
        assert metadata["execution_time"] == 1234.5
        sources = [s["source"] for s in metadata["data_source_info"]]
        assert sources == ["Internal Analytics", "SerpApi Search Data"]
        assert "Performance analysis failed: timeout" in metadata["limitations"]
        assert metadata["notes"].startswith("Live external API")

    def test_simulated_metadata(self):
        metadata = analysis_metadata(["comprehensive"], CompetitiveOptions(), 10.0)
        assert metadata["parameters"]["external_apis_used"] is False
        assert metadata["data_source_info"][-1]["type"] == "manual"
        assert metadata["notes"] == "Simulated competitive analysis performed with standard depth level"
