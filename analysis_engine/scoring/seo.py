"""
SEO Health Checks

Point-based sub-checks for the SEO health pillars. Each check returns
its points and the issues it found.

Per page (on-page pillar, 100 points):
- Title tag: 25
- Meta description: 20
- Heading structure: 25
- Internal linking: 30

Site architecture (technical pillar, 35 points):
- robots.txt -5, sitemap.xml -8, HTTPS -10, URL structure (base 10)
"""

import re
from dataclasses import dataclass, asdict
from typing import Dict, Any, Iterable, List, Sequence, Tuple
from urllib.parse import urlparse

from ..integrations.fetcher import PageContent
from .recommendations import dedupe_by_key


UNSAFE_URL_CHARS = re.compile(r"[^a-zA-Z0-9\-._~:/?#\[\]@!$&'()*+,;=]")

IMPACT_ORDER = {"high": 0, "medium": 1, "low": 2}
TYPE_ORDER = {"critical": 0, "warning": 1, "recommendation": 2}

IMPACT_SCORES = {"high": 90, "medium": 60, "low": 30}
DIFFICULTY_SCORES = {"easy": 20, "medium": 50, "hard": 80}
TIMEFRAMES = {"easy": "1-2 days", "medium": "1-2 weeks", "hard": "2-4 weeks"}

RESOURCES = {
    "technical": ["Developer", "Server Access"],
    "content": ["Content Writer", "SEO Specialist"],
    "performance": ["Developer", "Performance Expert"],
    "mobile": ["Frontend Developer", "UX Designer"],
}
DEFAULT_RESOURCES = ["SEO Specialist"]

MAX_SEO_RECOMMENDATIONS = 10


# ============================================================================
# DATA CLASSES
# ============================================================================

@dataclass
class SEOIssue:
    """A problem found by a check."""
    type: str              # critical | warning | recommendation
    category: str          # technical | content | performance | mobile
    title: str
    description: str
    impact: str            # high | medium | low
    fix_complexity: str    # easy | medium | hard
    how_to_fix: str

    @property
    def key(self) -> Tuple[str, str]:
        return (self.type, self.title)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SEORecommendation:
    category: str
    title: str
    description: str
    impact: int
    difficulty: int
    timeframe: str
    resources: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


CheckResult = Tuple[int, List[SEOIssue]]


# ============================================================================
# TECHNICAL INFRASTRUCTURE
# ============================================================================

def page_speed_issues(score: float) -> List[SEOIssue]:
    issues = []
    if score < 70:
        issues.append(SEOIssue(
            type="critical",
            category="performance",
            title="Poor Page Speed",
            description="Page load time is slower than recommended.",
            impact="high",
            fix_complexity="medium",
            how_to_fix="Optimize images, minify CSS/JS, enable compression, use a CDN.",
        ))
    if score < 80:
        issues.append(SEOIssue(
            type="warning",
            category="performance",
            title="Optimize Core Web Vitals",
            description="Core Web Vitals metrics need improvement.",
            impact="medium",
            fix_complexity="medium",
            how_to_fix="Improve Largest Contentful Paint, Interaction to Next Paint, and Cumulative Layout Shift.",
        ))
    return issues


def mobile_issues(score: float) -> List[SEOIssue]:
    if score >= 85:
        return []
    return [SEOIssue(
        type="warning",
        category="mobile",
        title="Mobile Optimization Issues",
        description="Some mobile usability issues detected.",
        impact="medium",
        fix_complexity="easy",
        how_to_fix="Ensure responsive design, proper viewport meta tag, and touch-friendly elements.",
    )]


def markup_speed_score(page: PageContent) -> int:
    """Page speed estimate from page weight, script and image count."""
    score = 100
    if page.html_size > 500_000:
        score -= 20
    elif page.html_size > 200_000:
        score -= 10
    if page.script_count > 15:
        score -= 15
    elif page.script_count > 8:
        score -= 8
    if page.images > 10:
        score -= 10
    return max(0, score)


def markup_mobile_score(page: PageContent) -> int:
    """Mobile friendliness estimate from the viewport meta and page weight."""
    score = 100
    if not page.has_viewport:
        score -= 30
    if page.html_size > 500_000:
        score -= 10
    if page.images > 20:
        score -= 10
    if page.stylesheet_count > 10:
        score -= 5
    return max(0, score)


def url_structure_check(pages: Sequence[str]) -> CheckResult:
    """URL hygiene across the job's pages (base 10 points)."""
    issues = []
    score = 10
    has_long_urls = False
    has_unsafe_chars = False

    for page in pages:
        parsed = urlparse(page)
        if not parsed.scheme or not parsed.netloc:
            score -= 2
            continue
        if len(parsed.path) > 100:
            has_long_urls = True
        if UNSAFE_URL_CHARS.search(parsed.path):
            has_unsafe_chars = True

    if has_long_urls:
        score -= 3
        issues.append(SEOIssue(
            type="warning",
            category="technical",
            title="Long URLs Detected",
            description="Some URLs are longer than recommended.",
            impact="low",
            fix_complexity="medium",
            how_to_fix="Shorten URLs and use descriptive, keyword-rich paths.",
        ))
    if has_unsafe_chars:
        score -= 2
        issues.append(SEOIssue(
            type="warning",
            category="technical",
            title="URL Character Issues",
            description="Some URLs contain special characters.",
            impact="low",
            fix_complexity="easy",
            how_to_fix="Use only alphanumeric characters and hyphens in URLs.",
        ))

    return max(0, score), issues


def site_architecture_check(
    url: str,
    pages: Sequence[str],
    has_robots: bool,
    has_sitemap: bool,
) -> CheckResult:
    """Crawlability and security (35 points)."""
    issues = []
    score = 35

    if not has_robots:
        score -= 5
        issues.append(SEOIssue(
            type="warning",
            category="technical",
            title="Missing robots.txt",
            description="No robots.txt file found.",
            impact="low",
            fix_complexity="easy",
            how_to_fix="Create a robots.txt file to guide search engine crawlers.",
        ))

    if not has_sitemap:
        score -= 8
        issues.append(SEOIssue(
            type="warning",
            category="technical",
            title="Missing XML Sitemap",
            description="No XML sitemap found.",
            impact="medium",
            fix_complexity="easy",
            how_to_fix="Generate and submit an XML sitemap to help search engines discover your pages.",
        ))

    if urlparse(url).scheme.lower() != "https":
        score -= 10
        issues.append(SEOIssue(
            type="critical",
            category="technical",
            title="No HTTPS Encryption",
            description="Website is not using HTTPS.",
            impact="high",
            fix_complexity="medium",
            how_to_fix="Install an SSL certificate and redirect all HTTP traffic to HTTPS.",
        ))

    url_score, url_issues = url_structure_check(pages)
    score += url_score - 10
    issues.extend(url_issues)

    return max(0, score), issues


def technical_pillar(speed: float, mobile: float, architecture: float) -> int:
    """Speed (40) + mobile responsiveness (25) + architecture (35)."""
    return int(round(speed * 0.40 + mobile * 0.25 + architecture))


# ============================================================================
# ON-PAGE
# ============================================================================

def title_check(title) -> CheckResult:
    if title is None:
        return 0, [SEOIssue(
            type="critical",
            category="content",
            title="Missing Title Tag",
            description="Page is missing a title tag.",
            impact="high",
            fix_complexity="easy",
            how_to_fix="Add a descriptive title tag to the page head section.",
        )]

    title = title.strip()
    if not title:
        return 5, [SEOIssue(
            type="critical",
            category="content",
            title="Empty Title Tag",
            description="Title tag is empty.",
            impact="high",
            fix_complexity="easy",
            how_to_fix="Add descriptive text to the title tag.",
        )]
    if len(title) < 30:
        return 15, [SEOIssue(
            type="warning",
            category="content",
            title="Short Title Tag",
            description="Title tag is shorter than recommended.",
            impact="medium",
            fix_complexity="easy",
            how_to_fix="Expand title to 30-60 characters for better SEO.",
        )]
    if len(title) > 60:
        return 18, [SEOIssue(
            type="warning",
            category="content",
            title="Long Title Tag",
            description="Title tag may be truncated in search results.",
            impact="medium",
            fix_complexity="easy",
            how_to_fix="Shorten title to under 60 characters.",
        )]
    return 25, []


def meta_description_check(description) -> CheckResult:
    if description is None:
        return 0, [SEOIssue(
            type="warning",
            category="content",
            title="Missing Meta Description",
            description="Page is missing a meta description.",
            impact="medium",
            fix_complexity="easy",
            how_to_fix="Add a compelling meta description tag.",
        )]

    description = description.strip()
    if not description:
        return 3, [SEOIssue(
            type="warning",
            category="content",
            title="Empty Meta Description",
            description="Meta description is empty.",
            impact="medium",
            fix_complexity="easy",
            how_to_fix="Add descriptive text to the meta description.",
        )]
    if len(description) < 120:
        return 12, [SEOIssue(
            type="recommendation",
            category="content",
            title="Short Meta Description",
            description="Meta description could be longer for better visibility.",
            impact="low",
            fix_complexity="easy",
            how_to_fix="Expand meta description to 120-160 characters.",
        )]
    if len(description) > 160:
        return 15, [SEOIssue(
            type="warning",
            category="content",
            title="Long Meta Description",
            description="Meta description may be truncated in search results.",
            impact="low",
            fix_complexity="easy",
            how_to_fix="Shorten meta description to under 160 characters.",
        )]
    return 20, []


def heading_structure_check(page: PageContent) -> CheckResult:
    """
    H1 usage plus hierarchy bonuses.

    A page without an H1 scores 0 for headings regardless of H2/H3.
    """
    h1 = page.heading_count(1)
    h2 = page.heading_count(2)
    h3 = page.heading_count(3)

    if h1 == 0:
        return 0, [SEOIssue(
            type="critical",
            category="content",
            title="Missing H1 Tag",
            description="Page is missing an H1 heading.",
            impact="high",
            fix_complexity="easy",
            how_to_fix="Add one H1 tag as the main page heading.",
        )]

    issues = []
    if h1 > 1:
        score = 10
        issues.append(SEOIssue(
            type="warning",
            category="content",
            title="Multiple H1 Tags",
            description="Page has multiple H1 tags.",
            impact="medium",
            fix_complexity="easy",
            how_to_fix="Use only one H1 tag per page and convert others to H2-H6.",
        ))
    else:
        score = 15

    if h2 > 0:
        score += 5
    if h3 > 0 and h2 > 0:
        score += 5
    return score, issues


def internal_linking_check(internal_links: int) -> CheckResult:
    if internal_links == 0:
        return 5, [SEOIssue(
            type="warning",
            category="content",
            title="No Internal Links",
            description="Page has no internal links.",
            impact="medium",
            fix_complexity="easy",
            how_to_fix="Add relevant internal links to other pages on your site.",
        )]
    if internal_links < 3:
        return 15, [SEOIssue(
            type="recommendation",
            category="content",
            title="Few Internal Links",
            description="Page could benefit from more internal links.",
            impact="low",
            fix_complexity="easy",
            how_to_fix="Add 3-5 relevant internal links to improve site navigation.",
        )]
    return 30, []


def page_optimization(page: PageContent) -> Dict[str, Any]:
    """Run all on-page checks for one page."""
    title_points, title_issues = title_check(page.title)
    meta_points, meta_issues = meta_description_check(page.meta_description)
    heading_points, heading_issues = heading_structure_check(page)
    link_points, link_issues = internal_linking_check(page.internal_links)

    return {
        "url": page.url,
        "score": title_points + meta_points + heading_points + link_points,
        "breakdown": {
            "title": title_points,
            "meta_description": meta_points,
            "headings": heading_points,
            "internal_links": link_points,
        },
        "issues": title_issues + meta_issues + heading_issues + link_issues,
    }


def dedupe_issues(issues: Iterable[SEOIssue]) -> List[SEOIssue]:
    return dedupe_by_key(issues, key=lambda issue: issue.key)


# ============================================================================
# SCORING & RECOMMENDATIONS
# ============================================================================

def sort_issues(issues: Iterable[SEOIssue]) -> List[SEOIssue]:
    """Impact first (high > medium > low), then severity."""
    return sorted(
        issues,
        key=lambda i: (IMPACT_ORDER.get(i.impact, 2), TYPE_ORDER.get(i.type, 2)),
    )


def issues_to_recommendations(
    issues: Iterable[SEOIssue],
    limit: int = MAX_SEO_RECOMMENDATIONS,
) -> List[SEORecommendation]:
    return [
        SEORecommendation(
            category=issue.category,
            title=issue.title,
            description=issue.how_to_fix,
            impact=IMPACT_SCORES.get(issue.impact, 30),
            difficulty=DIFFICULTY_SCORES.get(issue.fix_complexity, 50),
            timeframe=TIMEFRAMES.get(issue.fix_complexity, TIMEFRAMES["medium"]),
            resources=list(RESOURCES.get(issue.category, DEFAULT_RESOURCES)),
        )
        for issue in sort_issues(issues)[:limit]
    ]


INDUSTRY_AVERAGE_SCORE = 72
TOP_PERFORMER_SCORE = 89


def estimated_position(overall: int) -> int:
    """
    Estimated ranking position from the overall score.

    Above the industry average maps onto positions 1-30, below onto 30-80.
    """
    if overall > INDUSTRY_AVERAGE_SCORE:
        span = TOP_PERFORMER_SCORE - INDUSTRY_AVERAGE_SCORE
        behind = TOP_PERFORMER_SCORE - min(overall, TOP_PERFORMER_SCORE)
        return 1 + int(round(behind / span * 29))
    return 30 + int(round((INDUSTRY_AVERAGE_SCORE - overall) / INDUSTRY_AVERAGE_SCORE * 50))


def competitor_comparison(overall: int) -> Dict[str, Any]:
    return {
        "average_score": INDUSTRY_AVERAGE_SCORE,
        "top_performer_score": TOP_PERFORMER_SCORE,
        "your_position": estimated_position(overall),
        "improvement_potential": max(0, TOP_PERFORMER_SCORE - overall),
    }
