"""
Semantic Analysis Engine

Text analysis service consumed by the content-oriented processors:

- Lexical similarity: TF-IDF vectors + cosine similarity
- Semantic similarity: pairwise term similarity (Jaro-Winkler, Porter stems)
- Structural similarity: sentence and word count ratios
- Topical similarity: shared / union of extracted topics
- Topics, entities, keywords, sentiment and readability
- Keyword opportunity and content gap detection across competitors

The engine holds no per-call state; configuration is fixed at
construction and identical input always yields identical output.
"""

import logging
import re
import time
from collections import OrderedDict
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, List, Optional, Sequence, Tuple

import numpy as np
from nltk.metrics.distance import jaro_winkler_similarity
from nltk.stem.porter import PorterStemmer
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity
from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

from .nlp import TextProcessor
from ..utils.text import count_syllables

logger = logging.getLogger(__name__)


ALGORITHM_NAME = "TF-IDF + NLP + Semantic Analysis"

SIMILARITY_WEIGHTS = {
    "lexical": 0.3,
    "semantic": 0.4,
    "structural": 0.15,
    "topical": 0.15,
}

ENTITY_CONFIDENCE = {
    "person": 0.8,
    "place": 0.8,
    "organization": 0.7,
}

DIFFICULTY_SCORES = {"low": 1.0, "medium": 0.7, "high": 0.4}

MAX_TOPICS = 20
MAX_MEANINGFUL_TERMS = 150
MIN_TERM_CHARS = 2
SENTIMENT_THRESHOLD = 0.1

TOPIC_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("price", "cost", "buy"), "pricing"),
    (("review", "rating", "comparison"), "reviews"),
    (("how", "tutorial", "guide"), "tutorials"),
    (("best", "top", "recommended"), "recommendations"),
]


# ============================================================================
# CONFIGURATION & OPTIONS
# ============================================================================

@dataclass
class SemanticEngineConfig:
    """Engine configuration, fixed at construction."""
    enable_tfidf: bool = True
    enable_ngrams: bool = True
    enable_sentiment: bool = True
    enable_entities: bool = True
    min_similarity_threshold: float = 0.1
    ngram_size: int = 3
    spacy_model: str = "en_core_web_sm"


@dataclass
class AnalysisOptions:
    include_topics: bool = True
    include_sentiment: bool = True
    include_entities: bool = True
    include_keywords: bool = True
    include_readability: bool = True
    max_keywords: int = 20


@dataclass
class KeywordOpportunityOptions:
    """
    Keyword opportunity options.

    min_length / max_length bound keyword phrases by word count.
    """
    max_keywords: int = 50
    min_length: int = 1
    max_length: int = 3
    include_search_volume: bool = False


# ============================================================================
# RESULT TYPES
# ============================================================================

@dataclass
class Keyword:
    term: str
    frequency: int
    importance: float


@dataclass
class SimilarityScores:
    overall: float
    lexical: float
    semantic: float
    structural: float
    topical: float


@dataclass
class KeywordOpportunity:
    keyword: str
    competitor_usage: int
    target_usage: int
    opportunity: float
    difficulty: str
    priority: int
    related_terms: List[str] = field(default_factory=list)
    search_volume: Optional[int] = None


@dataclass
class ContentGap:
    topic: str
    missing_keywords: List[str]
    competitor_advantage: float


@dataclass
class KeywordRecommendation:
    action: str
    keywords: List[str]
    priority: int
    expected_impact: str


@dataclass
class EngineResult:
    """Outcome of an engine operation."""
    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _unique(items: Sequence[str]) -> List[str]:
    """Deduplicate preserving first-seen order."""
    return list(OrderedDict.fromkeys(items))


def categorize_keyword(keyword: str) -> str:
    """Naive topic bucket for a keyword."""
    lowered = keyword.lower()
    for needles, topic in TOPIC_RULES:
        if any(n in lowered for n in needles):
            return topic
    return lowered.split()[0] if lowered.split() else lowered


def keyword_difficulty(keyword: str, competitor_usage: int) -> str:
    words = len(keyword.split())
    if words >= 3 and competitor_usage < 5:
        return "low"
    if words >= 2 and competitor_usage < 10:
        return "medium"
    if competitor_usage >= 20:
        return "high"
    return "medium"


def keyword_priority(opportunity: float, difficulty: str, competitor_usage: int) -> int:
    usage_score = min(1.0, competitor_usage / 10)
    return int(round(opportunity * 0.5 + DIFFICULTY_SCORES[difficulty] * 30 + usage_score * 20))


class SemanticAnalysisEngine:
    """
    Deterministic text analysis service.

    Usage:
        engine = SemanticAnalysisEngine(SemanticEngineConfig())
        result = engine.analyze_content(page_text, [competitor_text])
        result.data["comparisons"][0]["similarity"]["overall"]
    """

    def __init__(
        self,
        config: Optional[SemanticEngineConfig] = None,
        processor: Optional[TextProcessor] = None,
    ):
        self.config = config or SemanticEngineConfig()
        self.processor = processor or TextProcessor(self.config.spacy_model)
        self.stemmer = PorterStemmer()
        self.sentiment_analyzer = SentimentIntensityAnalyzer()

    # =========================================================================
    # Public operations
    # =========================================================================

    def analyze_content(
        self,
        primary: str,
        comparisons: Optional[Sequence[str]] = None,
        options: Optional[AnalysisOptions] = None,
    ) -> EngineResult:
        """
        Analyze a primary text and compare it against other texts.

        Args:
            primary: Text to analyze
            comparisons: Texts to compare against
            options: Which sections to compute

        Returns:
            EngineResult with primary_analysis and comparisons
        """
        start = time.perf_counter()
        options = options or AnalysisOptions()
        comparisons = list(comparisons or [])

        try:
            primary_analysis = self._analyze_single(primary, options)
            primary_topics = primary_analysis.get("topics") or self.extract_topics(primary)

            results = []
            for index, text in enumerate(comparisons):
                other_topics = self.extract_topics(text)
                similarity = self.calculate_similarity(primary, text, primary_topics, other_topics)
                shared = [t for t in primary_topics if t in set(other_topics)]
                unique = [t for t in primary_topics if t not in set(other_topics)]
                gaps = [t for t in other_topics if t not in set(primary_topics)]
                results.append({
                    "index": index,
                    "similarity": asdict(similarity),
                    "shared_topics": shared,
                    "unique_topics": unique,
                    "content_gaps": gaps,
                })

            confidence = self._analysis_confidence(primary_analysis["word_count"], results)
            return EngineResult(
                success=True,
                data={"primary_analysis": primary_analysis, "comparisons": results},
                metadata={
                    "processing_time": round((time.perf_counter() - start) * 1000, 2),
                    "algorithm": ALGORITHM_NAME,
                    "confidence": confidence,
                    "nlp_tier": self.processor.tier,
                },
            )
        except Exception as e:
            logger.error(f"Content analysis failed: {e}")
            return EngineResult(
                success=False,
                error=str(e),
                metadata={
                    "processing_time": round((time.perf_counter() - start) * 1000, 2),
                    "algorithm": ALGORITHM_NAME,
                    "confidence": 0,
                },
            )

    def identify_keyword_opportunities(
        self,
        target: str,
        competitors: Sequence[str],
        seed_keywords: Optional[Sequence[str]] = None,
        options: Optional[KeywordOpportunityOptions] = None,
    ) -> EngineResult:
        """
        Find keywords competitors use more than the target.

        Seed keywords are always evaluated, even when they do not rank
        among the extracted competitor keywords.

        Returns:
            EngineResult with opportunities, gaps and recommendations
        """
        start = time.perf_counter()
        options = options or KeywordOpportunityOptions()

        try:
            competitor_usage: Dict[str, int] = OrderedDict()
            competitor_importance: Dict[str, float] = {}
            for text in competitors:
                for kw in self.extract_keywords(text, options.max_keywords, options.min_length, options.max_length):
                    competitor_usage[kw.term] = competitor_usage.get(kw.term, 0) + kw.frequency
                    competitor_importance[kw.term] = max(competitor_importance.get(kw.term, 0.0), kw.importance)

            for seed in seed_keywords or []:
                term = seed.lower().strip()
                if term and term not in competitor_usage:
                    usage = sum(self.term_frequency(term, text) for text in competitors)
                    if usage:
                        competitor_usage[term] = usage
                        competitor_importance[term] = 0.5

            opportunities: List[KeywordOpportunity] = []
            all_terms = list(competitor_usage)
            for term, comp_usage in competitor_usage.items():
                target_usage = self.term_frequency(term, target)
                gap = comp_usage - target_usage
                if gap <= 0:
                    continue
                opportunity = min(100.0, gap / comp_usage * 100)
                difficulty = keyword_difficulty(term, comp_usage)
                opportunities.append(KeywordOpportunity(
                    keyword=term,
                    competitor_usage=comp_usage,
                    target_usage=target_usage,
                    opportunity=round(opportunity, 2),
                    difficulty=difficulty,
                    priority=keyword_priority(opportunity, difficulty, comp_usage),
                    related_terms=self._related_terms(term, all_terms),
                ))

            opportunities.sort(key=lambda o: (-o.priority, o.keyword))
            gaps = self._content_gaps(opportunities, competitor_importance)
            recommendations = self._keyword_recommendations(opportunities, gaps)

            confidence = 0
            if opportunities:
                confidence = int(round(min(100.0, sum(o.priority for o in opportunities) / len(opportunities))))

            return EngineResult(
                success=True,
                data={
                    "opportunities": [asdict(o) for o in opportunities],
                    "gaps": [asdict(g) for g in gaps],
                    "recommendations": [asdict(r) for r in recommendations],
                },
                metadata={
                    "processing_time": round((time.perf_counter() - start) * 1000, 2),
                    "total_keywords_analyzed": len(competitor_usage),
                    "confidence": confidence,
                },
            )
        except Exception as e:
            logger.error(f"Keyword opportunity analysis failed: {e}")
            return EngineResult(
                success=False,
                error=str(e),
                metadata={
                    "processing_time": round((time.perf_counter() - start) * 1000, 2),
                    "total_keywords_analyzed": 0,
                    "confidence": 0,
                },
            )

    def health_check(self) -> Dict[str, Any]:
        """Probe each component with a fixed sample text."""
        sample = "Search engines reward helpful content. Good pages answer questions clearly."
        components = {
            "tfidf": self._probe(lambda: self.lexical_similarity(sample, sample) > 0.99),
            "nlp": self._probe(lambda: len(self.processor.sentences(sample)) == 2),
            "sentiment": self._probe(lambda: "label" in self.analyze_sentiment(sample)),
        }
        healthy = sum(1 for ok in components.values() if ok)
        if healthy == len(components):
            status = "healthy"
        elif healthy:
            status = "degraded"
        else:
            status = "unhealthy"
        return {
            "status": status,
            "components": components,
            "nlp_tier": self.processor.tier,
        }

    @staticmethod
    def _probe(check) -> bool:
        try:
            return bool(check())
        except Exception as e:
            logger.warning(f"Semantic engine health probe failed: {e}")
            return False

    # =========================================================================
    # Similarity
    # =========================================================================

    def calculate_similarity(
        self,
        text1: str,
        text2: str,
        topics1: Optional[List[str]] = None,
        topics2: Optional[List[str]] = None,
    ) -> SimilarityScores:
        topics1 = topics1 if topics1 is not None else self.extract_topics(text1)
        topics2 = topics2 if topics2 is not None else self.extract_topics(text2)

        lexical = self.lexical_similarity(text1, text2) if self.config.enable_tfidf else 0.0
        semantic = self.semantic_similarity(text1, text2)
        structural = self.structural_similarity(text1, text2)
        topical = self.topical_similarity(topics1, topics2)

        scores = {"lexical": lexical, "semantic": semantic, "structural": structural, "topical": topical}
        overall = sum(scores[name] * weight for name, weight in SIMILARITY_WEIGHTS.items())
        return SimilarityScores(
            overall=round(overall, 4),
            lexical=round(lexical, 4),
            semantic=round(semantic, 4),
            structural=round(structural, 4),
            topical=round(topical, 4),
        )

    @staticmethod
    def preprocess(text: str) -> str:
        return re.sub(r"\s+", " ", re.sub(r"[^\w\s]", " ", (text or "").lower())).strip()

    def lexical_similarity(self, text1: str, text2: str) -> float:
        """TF-IDF cosine similarity of the two texts."""
        docs = [self.preprocess(text1), self.preprocess(text2)]
        if not all(docs):
            return 0.0
        ngram_range = (1, 2) if self.config.enable_ngrams else (1, 1)
        vectorizer = TfidfVectorizer(stop_words="english", lowercase=True, ngram_range=ngram_range)
        try:
            matrix = vectorizer.fit_transform(docs)
        except ValueError:
            # Empty vocabulary: nothing but stop words
            return 0.0
        return float(np.clip(cosine_similarity(matrix[0:1], matrix[1:2])[0][0], 0.0, 1.0))

    def _meaningful_terms(self, text: str) -> List[str]:
        return _unique(self.processor.meaningful_terms(text))[:MAX_MEANINGFUL_TERMS]

    def _term_similarity(self, a: str, b: str) -> float:
        if a == b:
            return 1.0
        stem_match = 1.0 if self.stemmer.stem(a) == self.stemmer.stem(b) else 0.0
        return max(jaro_winkler_similarity(a, b), stem_match)

    def semantic_similarity(self, text1: str, text2: str) -> float:
        """Mean pairwise term similarity of the meaningful terms."""
        terms1 = self._meaningful_terms(text1)
        terms2 = self._meaningful_terms(text2)
        if not terms1 or not terms2:
            return 0.0
        total = sum(self._term_similarity(a, b) for a in terms1 for b in terms2)
        return total / (len(terms1) * len(terms2))

    def structural_similarity(self, text1: str, text2: str) -> float:
        sentences1 = len(self.processor.sentences(text1))
        sentences2 = len(self.processor.sentences(text2))
        words1 = len(self.processor.words(text1))
        words2 = len(self.processor.words(text2))
        return (self._ratio(sentences1, sentences2) + self._ratio(words1, words2)) / 2

    @staticmethod
    def _ratio(a: int, b: int) -> float:
        if a == 0 and b == 0:
            return 1.0
        return min(a, b) / max(a, b)

    @staticmethod
    def topical_similarity(topics1: Sequence[str], topics2: Sequence[str]) -> float:
        set1, set2 = set(topics1), set(topics2)
        if not set1 and not set2:
            return 1.0
        if not set1 or not set2:
            return 0.0
        return len(set1 & set2) / len(set1 | set2)

    # =========================================================================
    # Extraction
    # =========================================================================

    def extract_topics(self, text: str) -> List[str]:
        """Noun phrases, then nouns; lowercased, longer than 3 chars, max 20."""
        candidates = self.processor.noun_phrases(text) + self.processor.nouns(text)
        topics = [c.lower().strip() for c in candidates if len(c.strip()) > 3]
        return _unique(topics)[:MAX_TOPICS]

    def extract_entities(self, text: str) -> List[Dict[str, Any]]:
        entities = []
        seen = set()
        for name, kind in self.processor.entities(text):
            key = (name, kind)
            if key in seen:
                continue
            seen.add(key)
            entities.append({"text": name, "type": kind, "confidence": ENTITY_CONFIDENCE[kind]})
        return entities

    @staticmethod
    def term_frequency(term: str, text: str) -> int:
        if not term:
            return 0
        return len(re.findall(rf"\b{re.escape(term)}\b", text or "", flags=re.IGNORECASE))

    def extract_keywords(
        self,
        text: str,
        max_keywords: int = 20,
        min_length: int = 1,
        max_length: int = 3,
    ) -> List[Keyword]:
        """
        TF-IDF ranked keywords.

        Sentences serve as the document collection; importance is the
        summed TF-IDF weight normalised to the strongest term.
        """
        sentences = [self.preprocess(s) for s in self.processor.sentences(text)]
        sentences = [s for s in sentences if s]
        if not sentences:
            return []

        upper = max_length if self.config.enable_ngrams else 1
        lower = max(1, min(min_length, upper))
        vectorizer = TfidfVectorizer(
            stop_words="english",
            lowercase=True,
            ngram_range=(lower, max(lower, min(upper, self.config.ngram_size))),
            token_pattern=r"(?u)\b[a-zA-Z][a-zA-Z0-9]+\b",
        )
        try:
            matrix = vectorizer.fit_transform(sentences)
        except ValueError:
            return []

        weights = np.asarray(matrix.sum(axis=0)).ravel()
        terms = vectorizer.get_feature_names_out()
        peak = weights.max() if weights.size else 0.0
        if peak <= 0:
            return []

        ranked = sorted(zip(terms, weights), key=lambda tw: (-tw[1], tw[0]))
        keywords = []
        for term, weight in ranked:
            if len(term) < MIN_TERM_CHARS:
                continue
            keywords.append(Keyword(
                term=str(term),
                frequency=self.term_frequency(str(term), text),
                importance=round(float(weight / peak), 4),
            ))
            if len(keywords) >= max_keywords:
                break
        return keywords

    def analyze_sentiment(self, text: str) -> Dict[str, Any]:
        """
        Lexicon sentiment.

        score is the summed VADER valence of the tokens, comparative is
        the score per token.
        """
        tokens = [t.lower() for t in self.processor.words(text)]
        lexicon = self.sentiment_analyzer.lexicon
        score = sum(lexicon.get(t, 0.0) for t in tokens)
        comparative = score / len(tokens) if tokens else 0.0
        if comparative > SENTIMENT_THRESHOLD:
            label = "positive"
        elif comparative < -SENTIMENT_THRESHOLD:
            label = "negative"
        else:
            label = "neutral"
        return {
            "score": round(score, 3),
            "comparative": round(comparative, 4),
            "label": label,
        }

    def readability(self, text: str) -> float:
        """Flesch Reading Ease over sentence-split text, clamped to [0, 100]."""
        sentences = self.processor.sentences(text)
        words = self.processor.words(text)
        if not sentences or not words:
            return 0.0
        syllables = sum(count_syllables(w) for w in words)
        score = 206.835 - 1.015 * (len(words) / len(sentences)) - 84.6 * (syllables / len(words))
        return round(max(0.0, min(100.0, score)), 2)

    # =========================================================================
    # Internals
    # =========================================================================

    def _analyze_single(self, text: str, options: AnalysisOptions) -> Dict[str, Any]:
        analysis: Dict[str, Any] = {
            "word_count": len(self.processor.words(text)),
            "sentence_count": len(self.processor.sentences(text)),
            "paragraph_count": len(self.processor.paragraphs(text)),
        }
        if options.include_readability:
            analysis["readability_score"] = self.readability(text)
        if options.include_sentiment and self.config.enable_sentiment:
            analysis["sentiment"] = self.analyze_sentiment(text)
        if options.include_topics:
            analysis["topics"] = self.extract_topics(text)
        if options.include_entities and self.config.enable_entities:
            analysis["entities"] = self.extract_entities(text)
        if options.include_keywords and self.config.enable_tfidf:
            analysis["keywords"] = [
                asdict(k) for k in self.extract_keywords(text, max_keywords=options.max_keywords)
            ]
        return analysis

    def _analysis_confidence(self, word_count: int, comparisons: List[Dict[str, Any]]) -> int:
        confidence = 50
        if word_count > 500:
            confidence += 20
        if word_count > 1000:
            confidence += 10
        confidence += min(20, len(comparisons) * 5)
        if comparisons:
            mean = sum(c["similarity"]["overall"] for c in comparisons) / len(comparisons)
            if mean < self.config.min_similarity_threshold:
                confidence -= 20
        return max(0, min(100, confidence))

    def _related_terms(self, term: str, candidates: Sequence[str]) -> List[str]:
        related = []
        stem = self.stemmer.stem(term)
        for other in candidates:
            if other == term:
                continue
            if jaro_winkler_similarity(term, other) > 0.7 or self.stemmer.stem(other) == stem:
                related.append(other)
            if len(related) >= 5:
                break
        return related

    @staticmethod
    def _content_gaps(
        opportunities: List[KeywordOpportunity],
        importance: Dict[str, float],
    ) -> List[ContentGap]:
        grouped: Dict[str, List[str]] = OrderedDict()
        for opp in opportunities:
            grouped.setdefault(categorize_keyword(opp.keyword), []).append(opp.keyword)

        gaps = []
        for topic, keywords in grouped.items():
            advantage = sum(importance.get(k, 0.0) for k in keywords) / len(keywords)
            gaps.append(ContentGap(
                topic=topic,
                missing_keywords=keywords,
                competitor_advantage=round(advantage, 4),
            ))
        gaps.sort(key=lambda g: (-g.competitor_advantage, g.topic))
        return gaps

    @staticmethod
    def _keyword_recommendations(
        opportunities: List[KeywordOpportunity],
        gaps: List[ContentGap],
    ) -> List[KeywordRecommendation]:
        recommendations = []

        high_value = [o for o in opportunities if o.priority >= 70 and o.difficulty != "high"][:10]
        if high_value:
            recommendations.append(KeywordRecommendation(
                action="Target high-opportunity keywords",
                keywords=[o.keyword for o in high_value],
                priority=90,
                expected_impact="High - significant traffic potential with reasonable difficulty",
            ))

        for gap in gaps[:5]:
            recommendations.append(KeywordRecommendation(
                action=f"Create content around {gap.topic} topic",
                keywords=gap.missing_keywords[:8],
                priority=int(round(gap.competitor_advantage * 100)),
                expected_impact="Medium - address competitor advantages in specific topics",
            ))

        long_tail = [o for o in opportunities if len(o.keyword.split()) >= 3 and o.difficulty == "low"][:15]
        if long_tail:
            recommendations.append(KeywordRecommendation(
                action="Target long-tail keywords",
                keywords=[o.keyword for o in long_tail],
                priority=60,
                expected_impact="Medium - easier to rank, targeted traffic",
            ))

        recommendations.sort(key=lambda r: -r.priority)
        return recommendations
