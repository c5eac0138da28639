"""
Result Repository

Read/write operations used by the processors:

- save_content_result / save_seo_result / save_competitive_result:
  replace-or-insert one row per (job_id, project_id) in a single
  transaction, so re-running a job overwrites its stored result
- load_competitors: competitor records by id
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .models import (
    CompetitiveAnalysisResult,
    CompetitorRecord,
    ContentAnalysisResult,
    SEOHealthResult,
)
from .session import get_db_context
from ..utils.errors import PersistenceError

logger = logging.getLogger(__name__)


@dataclass
class Competitor:
    """A competitor entity as seen by the competitive processor."""
    id: str
    name: str
    domain: str
    category: str = "direct"
    priority: str = "medium"
    status: str = "active"
    metadata: Dict[str, Any] = field(default_factory=dict)
    placeholder: bool = False

    @classmethod
    def from_record(cls, record: CompetitorRecord) -> "Competitor":
        return cls(
            id=record.id,
            name=record.name,
            domain=record.domain,
            category=record.category or "direct",
            priority=record.priority or "medium",
            status=record.status or "active",
            metadata=dict(record.extra or {}),
        )


class ResultRepository:
    """
    Persistence for analysis results.

    Usage:
        repo = ResultRepository()
        repo.save_content_result(job.id, project_id, result.to_dict())
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        """
        Args:
            session_factory: Session factory; the global one when omitted
        """
        self.session_factory = session_factory

    def _replace(self, model, job_id: str, project_id: str, row) -> str:
        try:
            with get_db_context(self.session_factory) as db:
                db.execute(
                    delete(model).where(
                        model.job_id == job_id,
                        model.project_id == project_id,
                    )
                )
                db.add(row)
                db.flush()
                row_id = row.id
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to store {model.__tablename__} for job {job_id}: {e}") from e

        logger.info(f"Stored {model.__tablename__} row for job {job_id}")
        return row_id

    # =========================================================================
    # Writes
    # =========================================================================

    def save_content_result(
        self,
        job_id: str,
        project_id: str,
        result: Dict[str, Any],
        analysis_depth: str = "standard",
    ) -> str:
        comparison = result.get("competitor_comparison") or {}
        row = ContentAnalysisResult(
            job_id=job_id,
            project_id=project_id,
            overall_score=result["overall_score"],
            technical_seo=result["technical_seo"],
            content_depth=result["content_depth"],
            readability=result["readability"],
            semantic_relevance=result["semantic_relevance"],
            recommendations=result.get("recommendations", []),
            content_gaps=result.get("content_gaps", []),
            improvement_timeline=result.get("improvement_timeline"),
            analysis_depth=analysis_depth,
            scoring_variant=result.get("scoring_variant"),
            pages_analyzed=1 + comparison.get("pages_compared", 0),
            content_volume=result.get("word_count", 0),
            details={
                "competitor_comparison": result.get("competitor_comparison"),
                "extended": result.get("extended"),
                "degraded_stages": result.get("degraded_stages", {}),
            },
        )
        return self._replace(ContentAnalysisResult, job_id, project_id, row)

    def save_seo_result(self, job_id: str, project_id: str, result: Dict[str, Any]) -> str:
        row = SEOHealthResult(
            job_id=job_id,
            project_id=project_id,
            overall_score=result["overall_score"],
            technical=result["technical"],
            on_page=result["on_page"],
            performance=result["performance"],
            mobile=result["mobile"],
            critical_issues=result.get("critical_issues", []),
            warnings=result.get("warnings", []),
            recommendations=result.get("recommendations", []),
            competitor_comparison=result.get("competitor_comparison", {}),
            pages_crawled=result.get("pages_analyzed", 0),
            issues_found=result.get("issues_found", 0),
        )
        return self._replace(SEOHealthResult, job_id, project_id, row)

    def save_competitive_result(self, job_id: str, project_id: str, result: Dict[str, Any]) -> str:
        confidence = result.get("confidence", {})
        metadata = result.get("metadata", {})
        row = CompetitiveAnalysisResult(
            job_id=job_id,
            project_id=project_id,
            competitor_id=result.get("competitor_id"),
            analysis_type=result.get("analysis_type"),
            status=result.get("status", "completed"),
            progress=result.get("progress", 100),
            overall_confidence=confidence.get("overall"),
            data=result.get("data", {}),
            alerts=result.get("alerts", []),
            confidence=confidence,
            analysis_metadata=metadata,
            notes=metadata.get("notes"),
        )
        return self._replace(CompetitiveAnalysisResult, job_id, project_id, row)

    # =========================================================================
    # Reads
    # =========================================================================

    def load_competitors(self, competitor_ids: List[str]) -> List[Competitor]:
        """Competitor records in the order of the requested ids."""
        if not competitor_ids:
            return []
        try:
            with get_db_context(self.session_factory) as db:
                records = db.execute(
                    select(CompetitorRecord).where(CompetitorRecord.id.in_(competitor_ids))
                ).scalars().all()
                found = {r.id: Competitor.from_record(r) for r in records}
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load competitors: {e}") from e
        return [found[cid] for cid in competitor_ids if cid in found]

    def get_result(self, model, job_id: str, project_id: str):
        """Stored row for a job, or None."""
        with get_db_context(self.session_factory) as db:
            return db.execute(
                select(model).where(model.job_id == job_id, model.project_id == project_id)
            ).scalar_one_or_none()

    def count_results(self, model, job_id: str, project_id: str) -> int:
        with get_db_context(self.session_factory) as db:
            rows = db.execute(
                select(model.id).where(model.job_id == job_id, model.project_id == project_id)
            ).all()
            return len(rows)
