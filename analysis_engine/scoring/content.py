"""
Content Scoring

Pure scoring stages for page content. Each function takes extracted
page signals and returns a 0-100 score.

Rubrics:
- Technical SEO: title (25) + meta description (20) + H1/H2 (25) + heading flow (30)
- Readability: Flesch Reading Ease, +5 with three or more headings
- Semantic relevance: keyword density bands per target keyword
- Completeness: length tiers, paragraph structure, images
- Expertise: length, expert phrasing, technical vocabulary, citations
- E-A-T (pattern heuristics): citation, authority and fact markers
"""

import re
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Sequence

from .helpers import clamp_score
from ..integrations.fetcher import Heading, PageContent
from ..utils.text import flesch_reading_ease, split_sentences, split_words


EXPERT_PHRASES = (
    "according to",
    "research shows",
    "studies indicate",
    "data suggests",
    "analysis reveals",
)

TECHNICAL_TERMS = (
    "algorithm",
    "methodology",
    "implementation",
    "framework",
    "architecture",
)

CITATION_PATTERN = re.compile(r"\b(source|study|research|report)\b", re.IGNORECASE)
AUTHOR_PATTERN = re.compile(r"\b(author|expert|specialist)\b", re.IGNORECASE)
FACT_PATTERN = re.compile(r"\b(fact|verified|confirmed|proven|evidence)\b", re.IGNORECASE)


# ============================================================================
# TECHNICAL SEO
# ============================================================================

def title_points(title: str, full: int = 25, partial: int = 15, minimal: int = 8) -> int:
    length = len(title or "")
    if 30 <= length <= 60:
        return full
    if 20 <= length <= 80:
        return partial
    if length > 0:
        return minimal
    return 0


def meta_description_points(meta: str) -> int:
    length = len(meta or "")
    if 120 <= length <= 160:
        return 20
    if 80 <= length <= 200:
        return 12
    if length > 0:
        return 6
    return 0


def has_logical_heading_flow(headings: Sequence[Heading]) -> bool:
    """No heading skips more than one level below its predecessor."""
    for previous, current in zip(headings, headings[1:]):
        if current.level - previous.level > 1:
            return False
    return True


def score_technical_seo(page: PageContent) -> int:
    """Point-based technical SEO score out of 100."""
    score = title_points(page.title or "")
    score += meta_description_points(page.meta_description or "")

    h1 = page.heading_count(1)
    h2 = page.heading_count(2)
    if h1 == 1 and h2 > 0:
        score += 25
    elif h1 == 1:
        score += 15
    elif h1 > 0:
        score += 8

    total = len(page.headings)
    if has_logical_heading_flow(page.headings) and total >= 3:
        score += 30
    elif total >= 2:
        score += 18
    elif total > 0:
        score += 10

    return int(round(clamp_score(score)))


# ============================================================================
# READABILITY & RELEVANCE
# ============================================================================

def score_readability(page: PageContent) -> int:
    """Flesch Reading Ease with a small bonus for a structured outline."""
    if not split_sentences(page.text) or not split_words(page.text):
        return 0
    score = flesch_reading_ease(page.text)
    if len(page.headings) >= 3:
        score += 5
    return int(round(clamp_score(score)))


def keyword_density(keyword: str, title: str, text: str) -> float:
    """Occurrences per 100 words of body text."""
    words = split_words(text)
    if not words or not keyword.strip():
        return 0.0
    haystack = f"{title or ''} {text}".lower()
    matches = re.findall(rf"\b{re.escape(keyword.lower().strip())}\b", haystack)
    return len(matches) / len(words) * 100


def density_points(density: float) -> int:
    if 1 <= density <= 3:
        return 100
    if 0.5 <= density <= 5:
        return 70
    if density > 0:
        return 40
    return 0


def score_semantic_relevance(page: PageContent, keywords: Sequence[str]) -> int:
    """Mean density-band score across the target keywords."""
    if not keywords:
        return 0
    total = sum(
        density_points(keyword_density(k, page.title or "", page.text))
        for k in keywords
    )
    return int(round(total / len(keywords)))


# ============================================================================
# DEPTH & EXPERTISE
# ============================================================================

def score_completeness(page: PageContent) -> int:
    """Length tiers plus paragraph structure and media."""
    words = page.word_count
    paragraphs = len(page.paragraphs)

    if words >= 2000:
        score = 40
    elif words >= 1000:
        score = 30
    elif words >= 500:
        score = 20
    else:
        score = 10

    score += min(20, paragraphs * 2)
    if page.images > 0:
        score += 10
    if paragraphs >= 5:
        score += 15
    if words >= 1500 and paragraphs >= 6:
        score += 15
    return int(min(100, score))


def count_citations(text: str) -> int:
    return len(CITATION_PATTERN.findall(text or ""))


def score_expertise(page: PageContent) -> int:
    text = (page.text or "").lower()
    score = min(40.0, page.word_count / 1000 * 40)
    score += 8 * sum(1 for phrase in EXPERT_PHRASES if phrase in text)
    score += 6 * sum(1 for term in TECHNICAL_TERMS if term in text)
    score += min(20, count_citations(text) * 4)
    return int(round(min(100.0, score)))


@dataclass
class EATScore:
    """Expertise, authoritativeness and trustworthiness."""
    expertise: int
    authoritativeness: int
    trustworthiness: int
    signals: Dict[str, Any] = field(default_factory=dict)
    source: str = "heuristic"

    @property
    def overall(self) -> int:
        return int(round((self.expertise + self.authoritativeness + self.trustworthiness) / 3))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["overall"] = self.overall
        return data


def heuristic_eat(page: PageContent) -> EATScore:
    """E-A-T from citation, authority and fact markers in the text."""
    text = (page.text or "").lower()
    expert_markers = sum(1 for phrase in EXPERT_PHRASES[:4] if phrase in text)
    citations = count_citations(text)
    facts = len(FACT_PATTERN.findall(text))

    return EATScore(
        expertise=min(100, expert_markers * 20 + 40),
        authoritativeness=min(100, citations * 10 + 50),
        trustworthiness=min(100, facts * 15 + 45),
        signals={
            "citations": citations,
            "author_mentions": len(AUTHOR_PATTERN.findall(text)),
            "expert_language": expert_markers,
            "factual_accuracy": facts,
        },
        source="heuristic",
    )


def content_depth_blend(
    topic_coverage: float,
    topic_depth: float,
    completeness: float,
    expertise: float,
) -> int:
    """Sub-weighted content depth used by the extended weighting."""
    value = topic_coverage * 0.4 + topic_depth * 0.3 + completeness * 0.2 + expertise * 0.1
    return int(round(clamp_score(value)))


def improvement_timeline(overall: float) -> str:
    if overall >= 90:
        return "1-2 weeks (minor optimizations)"
    if overall >= 75:
        return "2-4 weeks (moderate improvements)"
    if overall >= 60:
        return "1-2 months (significant updates needed)"
    return "2-3 months (comprehensive content overhaul)"


def page_quality_score(page: PageContent) -> int:
    """Single quality figure for a page, used to rank competitor pages."""
    return int(round(
        score_technical_seo(page) * 0.4
        + score_readability(page) * 0.3
        + score_completeness(page) * 0.3
    ))
