"""
Error Taxonomy

Every failure a processor can report falls into one of four categories:

- VALIDATION: job data is missing or malformed, never retried
- EXTERNAL_SERVICE: fetch, AI or data-source call failed
- PERSISTENCE: results could not be stored
- PROCESSING: anything else raised during a stage

Retryability of unknown errors is decided by message pattern matching.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


DEFAULT_RETRY_AFTER = 120

NON_RETRYABLE_PATTERNS = (
    "validation",
    "invalid url",
    "permission denied",
    "unauthorized",
    "forbidden",
    "not found",
    "bad request",
)

RETRYABLE_PATTERNS = (
    "timeout",
    "network",
    "connection",
    "rate limit",
    "server error",
    "service unavailable",
    "temporary",
)

RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)


class ErrorCategory(Enum):
    """Failure categories reported on job results."""
    VALIDATION = "validation"
    EXTERNAL_SERVICE = "external_service"
    PERSISTENCE = "persistence"
    PROCESSING = "processing"


class AnalysisError(Exception):
    """Base exception for analysis job failures."""

    category = ErrorCategory.PROCESSING

    def __init__(
        self,
        message: str,
        user_message: Optional[str] = None,
        retryable: bool = True,
        retry_after: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message
        self.retryable = retryable
        self.retry_after = retry_after

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "message": self.message,
            "user_message": self.user_message,
            "retryable": self.retryable,
            "retry_after": self.retry_after,
        }


class JobValidationError(AnalysisError):
    """Job data failed validation. Never retried."""

    category = ErrorCategory.VALIDATION

    def __init__(self, message: str):
        super().__init__(
            message,
            user_message=f"Invalid job parameters: {message}",
            retryable=False,
        )


class ExternalServiceError(AnalysisError):
    """An outbound call to a collaborator service failed."""

    category = ErrorCategory.EXTERNAL_SERVICE

    def __init__(
        self,
        service: str,
        message: str,
        status_code: Optional[int] = None,
        retryable: Optional[bool] = None,
    ):
        if retryable is None:
            retryable = _retryable_for_status(status_code, message)
        if retryable:
            user_message = (
                f"The {service} service is temporarily unavailable. "
                "Please try again in a few minutes."
            )
        else:
            user_message = (
                f"The {service} service rejected the request. "
                "Check the job parameters and service configuration."
            )
        super().__init__(message, user_message=user_message, retryable=retryable)
        self.service = service
        self.status_code = status_code


class PersistenceError(AnalysisError):
    """Results could not be written to the result store."""

    category = ErrorCategory.PERSISTENCE

    def __init__(self, message: str):
        super().__init__(
            message,
            user_message="Failed to store analysis results. Please try again.",
            retryable=True,
        )


class ProcessingError(AnalysisError):
    """Unexpected failure while running an analysis stage."""

    category = ErrorCategory.PROCESSING

    def __init__(self, job_type: str, message: str, retryable: Optional[bool] = None):
        if retryable is None:
            retryable = is_retryable_message(message)
        super().__init__(
            message,
            user_message=(
                f"The {job_type} analysis failed. "
                "Please try again or contact support if the issue persists."
            ),
            retryable=retryable,
        )
        self.job_type = job_type


def is_retryable_message(message: str) -> bool:
    """
    Classify an error message.

    Non-retryable patterns win over retryable ones; messages matching
    neither table are treated as retryable.
    """
    lowered = (message or "").lower()
    if any(pattern in lowered for pattern in NON_RETRYABLE_PATTERNS):
        return False
    if any(pattern in lowered for pattern in RETRYABLE_PATTERNS):
        return True
    return True


def _retryable_for_status(status_code: Optional[int], message: str) -> bool:
    if status_code is not None:
        if status_code in RETRYABLE_STATUS_CODES or status_code >= 500:
            return True
        if 400 <= status_code < 500:
            return False
    return is_retryable_message(message)


def classify_error(error: BaseException) -> bool:
    """Return True when the failed operation may be attempted again."""
    if isinstance(error, AnalysisError):
        return error.retryable
    if isinstance(error, (httpx.TimeoutException, httpx.TransportError)):
        return True
    return is_retryable_message(str(error))


def to_analysis_error(error: BaseException, job_type: str) -> AnalysisError:
    """Wrap any exception as an AnalysisError for result conversion."""
    if isinstance(error, AnalysisError):
        return error
    return ProcessingError(job_type, str(error) or error.__class__.__name__, retryable=classify_error(error))
