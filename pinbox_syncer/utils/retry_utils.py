"""Retry utilities for handling transient errors with backoff.

Each call site picks an explicit ``RetryPolicy`` (attempt budget, backoff
function and retryable-error predicate) instead of hand-rolling counters and
sleeps. Attempts are 1-indexed everywhere.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

import httpx

from pinbox_syncer.domain.exceptions import (
    ContentUnavailableError,
    RemoteAPIError,
    RetryExhaustedError,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient_error(error: BaseException) -> bool:
    """Determine if an error is transient and worth retrying.

    Args:
        error: The exception to check

    Returns:
        True if the error appears to be transient, False otherwise

    Transient errors include:
    - Network-related errors (connection, timeout, DNS)
    - Rate limiting errors
    - Temporary server errors (5xx)
    """
    if isinstance(error, RemoteAPIError):
        return error.is_retryable
    if isinstance(error, httpx.TransportError):
        return True

    error_str = str(error).lower()
    transient_keywords = [
        "timeout",
        "connection",
        "network",
        "rate limit",
        "too many requests",
        "temporary",
        "unavailable",
        "bad gateway",
        "gateway timeout",
        "try again",
    ]
    if any(keyword in error_str for keyword in transient_keywords):
        return True

    exception_type = type(error).__name__.lower()
    transient_types = [
        "timeout",
        "connectionerror",
        "networkerror",
    ]
    return any(exc_type in exception_type for exc_type in transient_types)


def linear_backoff(attempt: int, error: BaseException) -> float:
    """``attempt`` seconds after the ``attempt``-th failure (1s, 2s, 3s...)."""
    return float(attempt)


def never_retry(error: BaseException) -> bool:
    return False


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget, backoff and retryable-error predicate for one call site."""

    max_attempts: int = 3
    backoff: Callable[[int, BaseException], float] = linear_backoff
    is_retryable: Callable[[BaseException], bool] = is_transient_error
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)

    async def run(self, func: Callable[[], Awaitable[T]], *, operation_name: str) -> T:
        """Execute ``func`` until it succeeds or the budget is spent.

        Args:
            func: Async callable to execute, called once per attempt
            operation_name: Name of operation for logging

        Returns:
            Result of the first successful attempt

        Raises:
            RetryExhaustedError: If every attempt failed with a retryable error
            Exception: The first non-retryable error, unchanged
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                result = await func()
            except Exception as exc:
                if not self.is_retryable(exc):
                    raise

                if attempt >= self.max_attempts:
                    logger.warning(
                        "retry_exhausted",
                        extra={
                            "operation": operation_name,
                            "attempts": attempt,
                            "error": str(exc),
                        },
                    )
                    raise RetryExhaustedError(operation_name, attempt, exc) from exc

                delay = self.backoff(attempt, exc)
                logger.debug(
                    "retrying_after_transient_error",
                    extra={
                        "operation": operation_name,
                        "attempt": attempt,
                        "max_attempts": self.max_attempts,
                        "delay_seconds": delay,
                        "error": str(exc),
                    },
                )
                await self.sleep(delay)
                continue

            if attempt > 1:
                logger.info(
                    "retry_succeeded",
                    extra={"operation": operation_name, "attempt": attempt},
                )
            return result

        # max_attempts >= 1 guarantees the loop returns or raises
        msg = f"{operation_name} ran no attempts"
        raise RuntimeError(msg)

    def with_sleep(self, sleep: Callable[[float], Awaitable[None]]) -> RetryPolicy:
        """Return a copy of this policy that waits with ``sleep`` (mocked clocks)."""
        return RetryPolicy(
            max_attempts=self.max_attempts,
            backoff=self.backoff,
            is_retryable=self.is_retryable,
            sleep=sleep,
        )


class PlaceholderContentError(Exception):
    """A page rendered only a loading placeholder; the origin needs more time."""

    def __init__(self, markdown: str) -> None:
        super().__init__("page content is a loading placeholder")
        self.markdown = markdown


def content_fetch_backoff(attempt: int, error: BaseException) -> float:
    """1s/2s for HTTP and network failures, 3s/4s for loading placeholders."""
    if isinstance(error, PlaceholderContentError):
        return 2.0 + attempt
    return float(attempt)


def _is_retryable_fetch_error(error: BaseException) -> bool:
    return not isinstance(error, ContentUnavailableError)


def _is_retryable_remote_error(error: BaseException) -> bool:
    if isinstance(error, RemoteAPIError):
        return error.is_retryable
    return isinstance(error, httpx.TransportError)


CONTENT_FETCH_POLICY = RetryPolicy(
    max_attempts=3,
    backoff=content_fetch_backoff,
    is_retryable=_is_retryable_fetch_error,
)

REMOTE_DELETE_POLICY = RetryPolicy(
    max_attempts=3,
    backoff=linear_backoff,
    is_retryable=_is_retryable_remote_error,
)

NO_RETRY_POLICY = RetryPolicy(max_attempts=1, is_retryable=never_retry)
