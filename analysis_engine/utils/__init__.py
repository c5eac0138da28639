"""Shared utilities: configuration, errors, retry and text metrics."""

from .config import Settings, get_settings
from .errors import (
    AnalysisError,
    ErrorCategory,
    ExternalServiceError,
    JobValidationError,
    PersistenceError,
    ProcessingError,
    classify_error,
    is_retryable_message,
    to_analysis_error,
)
from .retry import RetryPolicy, RetryPolicies

__all__ = [
    "Settings",
    "get_settings",
    "AnalysisError",
    "ErrorCategory",
    "ExternalServiceError",
    "JobValidationError",
    "PersistenceError",
    "ProcessingError",
    "classify_error",
    "is_retryable_message",
    "to_analysis_error",
    "RetryPolicy",
    "RetryPolicies",
]
