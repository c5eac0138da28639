"""
Simulated Competitive Data

Placeholder datasets used when no live competitive data could be
collected. Every section has the same shape as its live counterpart so
downstream alerting, confidence scoring and storage do not care which
strategy produced it.

Values are drawn from fixed ranges with random.Random; pass a seed to
make a run reproducible.
"""

import random
from typing import Dict, Any, List, Optional

from ...scoring.helpers import compare_metric


class CompetitiveSimulator:
    """
    Generates simulated analysis sections.

    Usage:
        simulator = CompetitiveSimulator(seed=42)
        seo = simulator.seo_analysis()
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self.random = random.Random(seed)

    def between(self, low: float, high: float, digits: int = 2) -> float:
        return round(low + self.random.random() * (high - low), digits)

    def whole(self, low: int, high: int) -> int:
        return self.random.randint(low, high)

    def _compare(self, user_range, competitor_range, lower_is_better: bool = False, digits: int = 2):
        return compare_metric(
            self.between(*user_range, digits=digits),
            self.between(*competitor_range, digits=digits),
            lower_is_better=lower_is_better,
        )

    def _quality_factor(self, user_range, competitor_range, recommendation: str) -> Dict[str, Any]:
        factor = self._compare(user_range, competitor_range, digits=1)
        factor["recommendation"] = recommendation
        return factor

    # =========================================================================
    # CONTENT
    # =========================================================================

    def content_analysis(self) -> Dict[str, Any]:
        lexical = self.between(0.2, 0.6)
        semantic = self.between(0.3, 0.7)
        structural = self.between(0.4, 0.8)
        topical = self.between(0.3, 0.7)
        overall = round(0.3 * lexical + 0.4 * semantic + 0.15 * structural + 0.15 * topical, 3)

        user_quality = self.between(70, 95, 1)
        competitor_quality = self.between(65, 95, 1)

        return {
            "content_similarity": {
                "overall": overall,
                "lexical": lexical,
                "semantic": semantic,
                "structural": structural,
                "topical": topical,
            },
            "content_quality": {
                "user_score": user_quality,
                "competitor_score": competitor_quality,
                "gap": round(user_quality - competitor_quality, 1),
                "quality_factors": {
                    "depth": self._quality_factor(
                        (70, 95), (65, 95), "Add detailed sections that answer follow-up questions"
                    ),
                    "readability": self._quality_factor(
                        (60, 85), (60, 90), "Shorten sentences and break up long paragraphs"
                    ),
                    "seo_optimization": self._quality_factor(
                        (70, 95), (70, 95), "Tighten titles and meta descriptions around target keywords"
                    ),
                    "engagement": self._quality_factor(
                        (60, 90), (55, 90), "Add visuals, examples and calls to action"
                    ),
                },
            },
            "topic_analysis": {
                "shared_topics": ["Digital Marketing", "Content Strategy"],
                "unique_user_topics": ["Analytics Integration"],
                "unique_competitor_topics": ["Social Media Management"],
                "topic_gaps": [
                    {
                        "topic": "Video Marketing",
                        "keywords": ["video marketing", "video content strategy", "video seo"],
                        "opportunity_score": self.between(70, 100, 1),
                        "difficulty": self.between(30, 70, 1),
                        "search_volume": self.whole(10000, 60000),
                        "strategic_relevance": self.between(70, 100, 1),
                        "recommendation": "Create a video content hub covering tutorials and case studies",
                    },
                ],
                "emerging_topics": [
                    {
                        "topic": "AI-Powered Marketing",
                        "growth_rate": self.between(50, 150, 1),
                        "competitor_adoption": self.between(20, 60, 1),
                    },
                ],
            },
            "content_volume": {
                "total_pages": compare_metric(self.whole(150, 250), self.whole(100, 300)),
                "monthly_publishing": compare_metric(self.whole(10, 25), self.whole(8, 28)),
                "average_word_count": compare_metric(self.whole(1500, 2500), self.whole(1200, 2800)),
            },
            "content_strategy": {
                "focus_areas": ["Thought leadership", "Product education"],
                "recommendations": [
                    {
                        "type": "content-gap",
                        "priority": "high",
                        "title": "Expand Video Content Strategy",
                        "description": "Competitors publish more video content on shared topics",
                        "expected_impact": self.between(20, 40, 1),
                        "timeframe": "2-3 months",
                    },
                    {
                        "type": "keyword-opportunity",
                        "priority": "medium",
                        "title": "Target Long-Tail Keywords",
                        "description": "Cover specific long-tail queries competitors leave open",
                        "expected_impact": self.between(15, 30, 1),
                        "timeframe": "1-2 months",
                    },
                ],
            },
        }

    # =========================================================================
    # SEO
    # =========================================================================

    def seo_analysis(self) -> Dict[str, Any]:
        user_score = self.between(70, 90, 1)
        competitor_score = self.between(65, 95, 1)
        shared = [
            {
                "keyword": keyword,
                "user_ranking": self.whole(1, 20),
                "competitor_ranking": self.whole(1, 20),
                "search_volume": self.whole(5000, 50000),
            }
            for keyword in ("content marketing", "digital marketing strategy")
        ]
        overlap = sum(1 for k in shared if abs(k["user_ranking"] - k["competitor_ranking"]) <= 3)

        return {
            "overall_comparison": {
                "user_score": user_score,
                "competitor_score": competitor_score,
                "gap": round(user_score - competitor_score, 1),
                "ranking_comparison": {
                    "average_position": {
                        "user": self.between(10, 30, 1),
                        "competitor": self.between(10, 35, 1),
                    },
                    "top_rankings": {"user": self.whole(5, 20), "competitor": self.whole(5, 25)},
                    "improvement_opportunities": [
                        {
                            "keyword": "marketing analytics",
                            "current_position": self.whole(11, 25),
                            "target_position": 5,
                            "search_volume": self.whole(8000, 30000),
                        },
                    ],
                },
                "visibility_metrics": {
                    "organic_traffic": compare_metric(self.whole(10000, 30000), self.whole(8000, 35000)),
                    "keyword_visibility": self._compare((50, 80), (45, 85), digits=1),
                    "featured_snippets": {"user": self.whole(0, 5), "competitor": self.whole(0, 6)},
                },
            },
            "keyword_analysis": {
                "shared_keywords": shared,
                "user_unique_keywords": [
                    {"keyword": "marketing analytics platform", "ranking": self.whole(1, 10)},
                ],
                "competitor_unique_keywords": [
                    {"keyword": "social media marketing tools", "ranking": self.whole(1, 10)},
                ],
                "keyword_gaps": [
                    {
                        "keyword": "marketing automation platform",
                        "competitor_ranking": self.whole(2, 9),
                        "search_volume": self.whole(15000, 40000),
                        "difficulty": self.between(40, 75, 1),
                        "opportunity_score": self.between(70, 100, 1),
                        "priority": "high",
                    },
                ],
                "ranking_overlap": round(overlap / len(shared) * 100, 1),
            },
            "technical_seo": {
                "site_speed": self._compare((2.0, 3.5), (2.0, 4.5), lower_is_better=True),
                "mobile_optimization": self._compare((80, 98), (75, 98), digits=1),
                "core_web_vitals": {
                    "lcp": self._compare((1.8, 3.0), (2.0, 3.8), lower_is_better=True),
                    "fid": self._compare((50, 100), (60, 180), lower_is_better=True, digits=0),
                    "cls": self._compare((0.05, 0.1), (0.05, 0.2), lower_is_better=True, digits=3),
                },
                "technical_issues": [
                    {"issue": "Render-blocking resources", "severity": "medium", "affected_pages": self.whole(3, 25)},
                ],
            },
            "content_optimization": {
                "title_optimization": self._compare((75, 95), (70, 95), digits=1),
                "meta_descriptions": self._compare((70, 95), (65, 95), digits=1),
                "heading_structure": self._compare((75, 95), (70, 95), digits=1),
                "internal_linking": self._compare((60, 90), (60, 90), digits=1),
                "schema_markup": self._compare((40, 80), (40, 85), digits=1),
            },
            "link_profile": {
                "domain_authority": self._compare((40, 70), (40, 75), digits=0),
                "backlinks": compare_metric(self.whole(5000, 20000), self.whole(4000, 25000)),
                "referring_domains": compare_metric(self.whole(300, 1200), self.whole(250, 1500)),
                "link_opportunities": [
                    {
                        "source": "industry-publication.com",
                        "domain_authority": self.whole(60, 85),
                        "relevance": self.between(70, 100, 1),
                        "difficulty": "medium",
                    },
                ],
            },
        }

    # =========================================================================
    # PERFORMANCE
    # =========================================================================

    def performance_analysis(self) -> Dict[str, Any]:
        section = {
            "speed_comparison": {
                "load_time": self._compare((2.0, 4.0), (2.5, 5.5), lower_is_better=True),
                "first_contentful_paint": self._compare((1500, 2500), (2000, 3500), lower_is_better=True, digits=0),
                "largest_contentful_paint": self._compare((2000, 3000), (2500, 4000), lower_is_better=True, digits=0),
                "first_input_delay": self._compare((50, 100), (100, 200), lower_is_better=True, digits=0),
                "cumulative_layout_shift": self._compare((0.05, 0.1), (0.1, 0.2), lower_is_better=True, digits=3),
            },
            "user_experience": {
                "overall_score": self._compare((80, 100), (70, 100), digits=1),
                "navigation": self._compare((85, 100), (75, 100), digits=1),
                "accessibility": self._compare((80, 100), (70, 100), digits=1),
                "best_practices": self._compare((75, 100), (65, 100), digits=1),
            },
            "mobile_performance": {
                "mobile_speed": self._compare((75, 100), (70, 100), digits=1),
                "mobile_ux": self._compare((80, 100), (65, 100), digits=1),
                "responsiveness": self._compare((85, 100), (75, 100), digits=1),
                "mobile_optimization": self._compare((80, 100), (70, 100), digits=1),
            },
            "performance_opportunities": [
                {
                    "metric": "Image Optimization",
                    "current_value": self.between(500, 2500, 0),
                    "competitor_value": self.between(300, 1800, 0),
                    "improvement_potential": self.between(30, 70, 1),
                    "implementation": {
                        "difficulty": "low",
                        "effort": "Implement next-gen image formats and compression",
                        "expected_impact": self.between(70, 100, 1),
                    },
                },
                {
                    "metric": "JavaScript Bundle Size",
                    "current_value": self.between(800, 1800, 0),
                    "competitor_value": self.between(600, 1400, 0),
                    "improvement_potential": self.between(25, 60, 1),
                    "implementation": {
                        "difficulty": "medium",
                        "effort": "Implement code splitting and tree shaking",
                        "expected_impact": self.between(60, 85, 1),
                    },
                },
            ],
        }
        section["performance_opportunities"].sort(key=lambda o: o["improvement_potential"], reverse=True)
        return section

    # =========================================================================
    # MARKET POSITION
    # =========================================================================

    def market_position(self) -> Dict[str, Any]:
        threats = [
            {
                "source": "Established Platform Vendors",
                "type": "competitive",
                "severity": "high",
                "probability": self.between(70, 100, 1),
                "impact": self.between(60, 100, 1),
                "timeline": "Next 12 months",
                "mitigation_strategy": "Focus on advanced features and user experience incumbents lack",
            },
            {
                "source": "Economic Downturn",
                "type": "market",
                "severity": "medium",
                "probability": self.between(30, 80, 1),
                "impact": self.between(40, 100, 1),
                "timeline": "Next 6-18 months",
                "mitigation_strategy": "Offer cost-effective pricing tiers and demonstrate clear ROI",
            },
        ]
        for threat in threats:
            threat["risk_score"] = round(threat["probability"] * threat["impact"] / 100, 1)

        return {
            "overall_position": {
                "score": self.between(70, 100, 1),
                "category": self.random.choice(["leader", "challenger", "follower", "niche"]),
                "trend": self.random.choice(["improving", "stable", "declining"]),
                "competitive_advantages": [
                    "Superior analytics capabilities",
                    "Better user experience design",
                    "Comprehensive reporting features",
                ],
            },
            "competitive_strengths": [
                {
                    "area": "Product Innovation",
                    "score": self.between(80, 100, 1),
                    "impact": "high",
                    "sustainability": "sustainable",
                },
                {
                    "area": "Customer Experience",
                    "score": self.between(75, 100, 1),
                    "impact": "high",
                    "sustainability": "sustainable",
                },
            ],
            "competitive_weaknesses": [
                {
                    "area": "Market Presence",
                    "score": self.between(30, 70, 1),
                    "urgency": "high",
                    "improvement_strategy": "Increase thought leadership content and partnerships",
                },
                {
                    "area": "Integration Ecosystem",
                    "score": self.between(45, 80, 1),
                    "urgency": "medium",
                    "improvement_strategy": "Develop a partnership program and API marketplace",
                },
            ],
            "market_opportunities": [
                {
                    "title": "AI-Powered Analytics",
                    "market_value": self.whole(100_000_000, 150_000_000),
                    "accessibility": self.between(70, 100, 1),
                    "competitive_intensity": self.between(30, 70, 1),
                    "strategic_fit": self.between(80, 100, 1),
                    "priority": "high",
                    "timeframe": "6-12 months",
                },
                {
                    "title": "SMB Market Expansion",
                    "market_value": self.whole(80_000_000, 110_000_000),
                    "accessibility": self.between(75, 100, 1),
                    "competitive_intensity": self.between(40, 90, 1),
                    "strategic_fit": self.between(75, 100, 1),
                    "priority": "medium",
                    "timeframe": "3-6 months",
                },
            ],
            "threats": threats,
            "strategic_recommendations": [
                {
                    "category": "positioning",
                    "priority": "critical",
                    "title": "Strengthen Market Position Through Thought Leadership",
                    "expected_outcome": "Increased market awareness and customer acquisition",
                    "timeline": "3-6 months",
                },
                {
                    "category": "differentiation",
                    "priority": "high",
                    "title": "Develop AI-Enhanced Analytics Features",
                    "expected_outcome": "Product differentiation and premium pricing",
                    "timeline": "6-12 months",
                },
            ],
        }

    # =========================================================================
    # CONTENT GAPS
    # =========================================================================

    def _matrix_item(self, kind: str, title: str, impact, effort, timeline: str) -> Dict[str, Any]:
        return {
            "type": kind,
            "title": title,
            "impact": self.between(*impact, digits=1),
            "effort": self.between(*effort, digits=1),
            "timeline": timeline,
        }

    def content_gaps(self) -> Dict[str, Any]:
        return {
            "topic_gaps": [
                {
                    "topic": "Marketing Automation ROI",
                    "keywords": ["marketing automation ROI", "automation benefits", "marketing efficiency"],
                    "coverage": self.between(0.1, 0.4),
                    "opportunity_score": self.between(75, 100, 1),
                    "difficulty": self.between(30, 70, 1),
                    "search_volume": self.whole(15000, 45000),
                    "strategic_relevance": self.between(80, 100, 1),
                    "recommendation": "Publish a guide to measuring automation ROI with case studies",
                },
            ],
            "keyword_gaps": [
                {
                    "keyword": "customer journey analytics",
                    "competitor_ranking": self.whole(3, 10),
                    "search_volume": self.whole(12000, 37000),
                    "difficulty": self.between(45, 80, 1),
                    "opportunity_score": self.between(70, 100, 1),
                    "priority": "high",
                },
            ],
            "format_gaps": [
                {
                    "format": "Interactive Demos",
                    "user_coverage": self.between(10, 30, 1),
                    "competitor_coverage": self.between(50, 90, 1),
                    "opportunity_score": self.between(75, 100, 1),
                },
                {
                    "format": "Video Tutorials",
                    "user_coverage": self.between(20, 50, 1),
                    "competitor_coverage": self.between(60, 90, 1),
                    "opportunity_score": self.between(70, 100, 1),
                },
            ],
            "audience_gaps": [
                {
                    "segment": "Small Business Owners",
                    "user_coverage": self.between(30, 70, 1),
                    "competitor_coverage": self.between(60, 90, 1),
                    "engagement_potential": self.between(75, 100, 1),
                },
            ],
            "opportunity_matrix": {
                "high_impact_low_effort": [
                    self._matrix_item("topic", "Create ROI Calculator Tool", (85, 100), (10, 40), "2-4 weeks"),
                ],
                "high_impact_high_effort": [
                    self._matrix_item("format", "Video Tutorial Series", (80, 100), (75, 100), "3-6 months"),
                ],
                "low_impact_low_effort": [
                    self._matrix_item("topic", "Weekly Blog Posts", (30, 70), (10, 40), "Ongoing"),
                ],
                "low_impact_high_effort": [
                    self._matrix_item("topic", "Industry Research Report", (20, 70), (70, 100), "6-8 months"),
                ],
            },
            "prioritized_recommendations": [
                self._gap_recommendation(
                    "content-creation",
                    "critical",
                    "Develop Interactive Demo Library",
                    "Competitors cover interactive formats far more than you do",
                    "8-12 weeks",
                ),
                self._gap_recommendation(
                    "optimization",
                    "high",
                    "Optimize for Customer Journey Keywords",
                    "Target high-value keywords where competitors rank and you do not",
                    "6-8 weeks",
                ),
            ],
        }

    def _gap_recommendation(
        self, kind: str, priority: str, title: str, opportunity: str, timeline: str
    ) -> Dict[str, Any]:
        return {
            "type": kind,
            "priority": priority,
            "title": title,
            "opportunity": opportunity,
            "timeline": timeline,
            "expected_impact": {
                "traffic": self.between(40, 100, 1),
                "engagement": self.between(40, 100, 1),
                "rankings": self.between(30, 100, 1),
                "conversions": self.between(30, 100, 1),
            },
        }


SECTIONS = (
    "content_analysis",
    "seo_analysis",
    "performance_analysis",
    "market_position",
    "content_gaps",
)


def simulate_sections(simulator: CompetitiveSimulator, sections: List[str]) -> Dict[str, Any]:
    """Generate the named sections in order."""
    unknown = [name for name in sections if name not in SECTIONS]
    if unknown:
        raise ValueError(f"Unknown analysis sections: {unknown}")
    return {name: getattr(simulator, name)() for name in sections}
