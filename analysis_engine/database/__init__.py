"""
Analysis Result Store

Usage:
    from analysis_engine.database import init_db, ResultRepository

    init_db()
    repo = ResultRepository()
    repo.save_seo_result(job_id, project_id, result.to_dict())
"""

from .models import (
    Base,
    CompetitiveAnalysisResult,
    CompetitorCategory,
    CompetitorRecord,
    CompetitorStatus,
    ContentAnalysisResult,
    SEOHealthResult,
)
from .repository import Competitor, ResultRepository
from .session import (
    check_db_connection,
    create_db_engine,
    get_database_url,
    get_db_context,
    get_engine,
    get_session_factory,
    init_db,
)

__all__ = [
    "Base",
    "CompetitiveAnalysisResult",
    "CompetitorCategory",
    "CompetitorRecord",
    "CompetitorStatus",
    "ContentAnalysisResult",
    "SEOHealthResult",
    "Competitor",
    "ResultRepository",
    "check_db_connection",
    "create_db_engine",
    "get_database_url",
    "get_db_context",
    "get_engine",
    "get_session_factory",
    "init_db",
]
