"""
SQLAlchemy Models for Analysis Results

One results table per processor, keyed by (job_id, project_id), with
score breakdowns in numeric columns and recommendations, issues and
metadata in JSON columns. Re-running a job replaces its row.
"""

import enum
from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Column, String, Integer, Float, DateTime, Text,
    Index, UniqueConstraint, JSON,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _uuid() -> str:
    return str(uuid4())


# =============================================================================
# ENUMS
# =============================================================================

class CompetitorCategory(enum.Enum):
    """How directly a competitor competes with the project."""
    DIRECT = "direct"
    INDIRECT = "indirect"
    ASPIRATIONAL = "aspirational"


class CompetitorStatus(enum.Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    ARCHIVED = "archived"


# =============================================================================
# COMPETITORS
# =============================================================================

class CompetitorRecord(Base):
    """Competitors tracked for a project"""
    __tablename__ = "competitors"

    id = Column(String(64), primary_key=True, default=_uuid)
    project_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    domain = Column(String(255), nullable=False)
    category = Column(String(32), default=CompetitorCategory.DIRECT.value)
    priority = Column(String(16), default="medium")
    status = Column(String(16), default=CompetitorStatus.ACTIVE.value)
    extra = Column("metadata", JSON, default=dict)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# =============================================================================
# RESULT TABLES
# =============================================================================

class ContentAnalysisResult(Base):
    """Content quality scores per job"""
    __tablename__ = "content_analysis_results"

    id = Column(String(64), primary_key=True, default=_uuid)
    job_id = Column(String(64), nullable=False)
    project_id = Column(String(64), nullable=False)

    overall_score = Column(Integer, nullable=False)
    technical_seo = Column(Integer)
    content_depth = Column(Integer)
    readability = Column(Integer)
    semantic_relevance = Column(Integer)

    recommendations = Column(JSON, default=list)
    content_gaps = Column(JSON, default=list)
    improvement_timeline = Column(String(64))

    analysis_depth = Column(String(16))
    scoring_variant = Column(String(16))
    pages_analyzed = Column(Integer, default=1)
    content_volume = Column(Integer, default=0)
    details = Column(JSON, default=dict)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("job_id", "project_id", name="uq_content_result_job_project"),
        Index("idx_content_result_project", "project_id", "created_at"),
    )


class SEOHealthResult(Base):
    """SEO health scores per job"""
    __tablename__ = "seo_health_results"

    id = Column(String(64), primary_key=True, default=_uuid)
    job_id = Column(String(64), nullable=False)
    project_id = Column(String(64), nullable=False)

    overall_score = Column(Integer, nullable=False)
    technical = Column(Integer)
    on_page = Column(Integer)
    performance = Column(Integer)
    mobile = Column(Integer)

    critical_issues = Column(JSON, default=list)
    warnings = Column(JSON, default=list)
    recommendations = Column(JSON, default=list)
    competitor_comparison = Column(JSON, default=dict)

    pages_crawled = Column(Integer, default=0)
    issues_found = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("job_id", "project_id", name="uq_seo_result_job_project"),
        Index("idx_seo_result_project", "project_id", "created_at"),
    )


class CompetitiveAnalysisResult(Base):
    """Competitive analysis output per job"""
    __tablename__ = "competitive_analysis_results"

    id = Column(String(64), primary_key=True, default=_uuid)
    job_id = Column(String(64), nullable=False)
    project_id = Column(String(64), nullable=False)
    competitor_id = Column(String(64))
    analysis_type = Column(String(32))

    status = Column(String(16), default="completed")
    progress = Column(Integer, default=100)
    overall_confidence = Column(Float)

    data = Column(JSON, default=dict)
    alerts = Column(JSON, default=list)
    confidence = Column(JSON, default=dict)
    analysis_metadata = Column("metadata", JSON, default=dict)
    notes = Column(Text)

    analyzed_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("job_id", "project_id", name="uq_competitive_result_job_project"),
        Index("idx_competitive_result_project", "project_id", "analyzed_at"),
    )
