"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Claude API (Optional - AI content analysis and E-A-T scoring)
    ANTHROPIC_API_KEY: Optional[str] = None
    CLAUDE_MODEL: str = "claude-sonnet-4-20250514"

    # OpenAI (Optional - embedding similarity)
    OPENAI_API_KEY: Optional[str] = None
    EMBEDDING_MODEL: str = "text-embedding-3-small"

    # Competitive data sources (Optional)
    SERPAPI_API_KEY: Optional[str] = None
    PAGESPEED_API_KEY: Optional[str] = None
    PAGESPEED_ENABLED: bool = False

    # Cache
    REDIS_URL: Optional[str] = None
    CACHE_TTL_SECONDS: int = 3600

    # Scoring
    CONTENT_SCORING_VARIANT: str = "basic"  # basic | extended
    SPACY_MODEL: str = "en_core_web_sm"

    # HTTP
    HTTP_TIMEOUT: float = 30.0
    USER_AGENT: str = "Mozilla/5.0 (compatible; AnalysisEngine/0.4; +https://example.com/bot)"

    # Retry behaviour
    RETRY_INITIAL_DELAY: float = 1.0
    RETRY_MAX_DELAY: float = 10.0
    RETRY_AFTER_SECONDS: int = 120

    # Job tracking
    JOBS_PATH: Optional[str] = None

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
