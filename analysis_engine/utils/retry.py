"""
Retry Policy

One bounded-retry abstraction shared by every outbound call site.

Usage:
    policy = RetryPolicy(max_attempts=3)
    html = await policy.run(lambda: fetcher.fetch(url), name="content-fetch")
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from .errors import classify_error

logger = logging.getLogger(__name__)


@dataclass
class RetryPolicy:
    """Configuration and execution of retry behaviour."""

    max_attempts: int = 3
    classify_error: Callable[[BaseException], bool] = field(default=classify_error)
    initial_delay: float = 1.0
    max_delay: float = 10.0
    exponential_base: float = 2.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay_for(self, attempt: int) -> float:
        """Delay in seconds after the given zero-based attempt."""
        return min(self.initial_delay * (self.exponential_base ** attempt), self.max_delay)

    async def run(
        self,
        operation: Callable[[], Awaitable[Any]],
        name: str = "operation",
    ) -> Any:
        """
        Run an async operation with retries.

        Args:
            operation: Zero-argument callable returning an awaitable
            name: Label used in log messages

        Returns:
            The operation's result

        Raises:
            The last exception once attempts are exhausted, or the first
            exception classified as non-retryable.
        """
        last_exception: Optional[BaseException] = None

        for attempt in range(self.max_attempts):
            try:
                return await operation()
            except Exception as e:
                last_exception = e
                if not self.classify_error(e):
                    logger.warning(f"{name} failed with non-retryable error: {e}")
                    raise
                if attempt < self.max_attempts - 1:
                    delay = self.delay_for(attempt)
                    logger.warning(
                        f"{name} failed (attempt {attempt + 1}/{self.max_attempts}), "
                        f"retrying in {delay:.1f}s: {e}"
                    )
                    if delay > 0:
                        await asyncio.sleep(delay)

        logger.error(f"{name} failed after {self.max_attempts} attempts: {last_exception}")
        raise last_exception


@dataclass
class RetryPolicies:
    """Named policies handed to processors."""

    required: RetryPolicy = field(default_factory=lambda: RetryPolicy(max_attempts=3))
    optional: RetryPolicy = field(default_factory=lambda: RetryPolicy(max_attempts=2))
    database: RetryPolicy = field(default_factory=lambda: RetryPolicy(max_attempts=3, max_delay=5.0))

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicies":
        initial = settings.RETRY_INITIAL_DELAY
        ceiling = settings.RETRY_MAX_DELAY
        return cls(
            required=RetryPolicy(max_attempts=3, initial_delay=initial, max_delay=ceiling),
            optional=RetryPolicy(max_attempts=2, initial_delay=initial, max_delay=ceiling),
            database=RetryPolicy(max_attempts=3, initial_delay=initial, max_delay=min(ceiling, 5.0)),
        )

    @classmethod
    def immediate(cls) -> "RetryPolicies":
        """Policies without backoff delay, for tests and CLI dry runs."""
        return cls(
            required=RetryPolicy(max_attempts=3, initial_delay=0.0),
            optional=RetryPolicy(max_attempts=2, initial_delay=0.0),
            database=RetryPolicy(max_attempts=3, initial_delay=0.0),
        )
