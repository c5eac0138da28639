"""
Semantic Analysis

Deterministic text similarity, topic/keyword/entity extraction and
keyword gap detection.
"""

from .engine import (
    AnalysisOptions,
    EngineResult,
    KeywordOpportunityOptions,
    SemanticAnalysisEngine,
    SemanticEngineConfig,
    SimilarityScores,
    categorize_keyword,
    keyword_difficulty,
    keyword_priority,
)
from .nlp import TextProcessor

__all__ = [
    "AnalysisOptions",
    "EngineResult",
    "KeywordOpportunityOptions",
    "SemanticAnalysisEngine",
    "SemanticEngineConfig",
    "SimilarityScores",
    "categorize_keyword",
    "keyword_difficulty",
    "keyword_priority",
    "TextProcessor",
]
