"""
Retry utilities for exchange calls.

Provides exponential backoff retry logic with automatic error classification.
This is the single retry loop of the package: every gateway operation routes
through RetryExecutor, and no endpoint retries on its own.

Classification:
- Network/transport errors, 408/418/429 and 5xx responses: retry
- Malformed upstream bodies (no status): retry
- Failures carrying a 2xx status (the exchange accepted the request): abort
- Other 4xx, configuration, parse and malformed-request errors: abort immediately
"""

import random
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

import httpx
from loguru import logger

from ironfly.core.errors import (
    ConfigurationError,
    ParseError,
    RetryCancelledError,
    RetryExhaustedError,
    UpstreamError,
)


T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({408, 418, 429})


@dataclass(frozen=True, slots=True)
class FailureClass:
    """Outcome of classifying one failure."""

    error_type: str
    should_retry: bool


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """
    Retry policy.

    Attributes:
        max_attempts: Total attempts including the first call
        base_delay: Delay before the second attempt (seconds)
        max_delay: Cap on any single backoff wait (seconds)
        jitter: Add up to one second of random jitter to each wait
        total_timeout: Deadline for the whole retried operation (seconds, None = unbounded)
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    jitter: bool = True
    total_timeout: Optional[float] = None

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("Retry delays must be non-negative")

    def backoff(self, attempt: int) -> float:
        """Wait before attempt number `attempt + 1` (attempt is 1-based)."""
        delay = self.base_delay * (2 ** (attempt - 1))
        if self.jitter:
            delay += random.uniform(0, 1)
        return min(delay, self.max_delay)


def classify_error(error: BaseException) -> FailureClass:
    """
    Classify an exception to determine retry strategy.

    Args:
        error: The exception to classify

    Returns:
        FailureClass with error type and retry flag
    """
    if isinstance(error, ConfigurationError):
        return FailureClass("configuration", should_retry=False)

    if isinstance(error, ParseError):
        return FailureClass("parse", should_retry=False)

    if isinstance(error, httpx.TimeoutException):
        return FailureClass("timeout", should_retry=True)

    if isinstance(error, (httpx.TransportError, OSError)):
        return FailureClass("connection", should_retry=True)

    status = getattr(error, "status_code", None)
    if isinstance(error, UpstreamError) and status is None:
        return FailureClass("malformed_response", should_retry=True)

    if isinstance(status, int):
        if 200 <= status < 300:
            # Request already accepted; resending would repeat it
            return FailureClass("unreadable_success", should_retry=False)
        if status in RETRYABLE_STATUS_CODES:
            return FailureClass("rate_limit" if status != 408 else "timeout", should_retry=True)
        if 500 <= status < 600:
            return FailureClass("server_error", should_retry=True)
        if 400 <= status < 500:
            return FailureClass("client_error", should_retry=False)

    if isinstance(error, (ValueError, TypeError)):
        return FailureClass("malformed_request", should_retry=False)

    # Unknown errors - retry with caution
    return FailureClass("unknown", should_retry=True)


def execute_with_retry(
    operation: Callable[[], T],
    operation_name: str,
    policy: Optional[RetryPolicy] = None,
    cancel_event: Optional[threading.Event] = None,
) -> T:
    """
    Execute a zero-argument operation with exponential backoff retry.

    Args:
        operation: Callable to execute
        operation_name: Name used in logs and in the exhaustion error
        policy: Retry policy (defaults to RetryPolicy())
        cancel_event: Setting this event aborts any pending backoff wait

    Returns:
        The operation's result

    Raises:
        Exception: The original error when it is classified terminal
        RetryCancelledError: If cancelled or the deadline leaves no time for another attempt
        RetryExhaustedError: If every attempt failed with a retryable error
    """
    policy = policy or RetryPolicy()
    waiter = cancel_event or threading.Event()
    deadline = (
        time.monotonic() + policy.total_timeout
        if policy.total_timeout is not None
        else None
    )
    last_error: Optional[BaseException] = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return operation()
        except Exception as e:
            classified = classify_error(e)
            last_error = e

            logger.warning(
                f"{operation_name}: attempt {attempt}/{policy.max_attempts} failed "
                f"({classified.error_type}): {e}"
            )

            if not classified.should_retry:
                logger.debug(f"{operation_name}: non-retryable error ({classified.error_type})")
                raise

        if attempt == policy.max_attempts:
            break

        delay = policy.backoff(attempt)
        if deadline is not None and time.monotonic() + delay >= deadline:
            logger.error(f"{operation_name}: retry deadline reached after {attempt} attempt(s)")
            raise RetryCancelledError(operation_name, attempt, last_error) from last_error

        logger.info(f"{operation_name}: retry {attempt + 1}/{policy.max_attempts} in {delay:.1f}s")
        if waiter.wait(delay):
            logger.warning(f"{operation_name}: retry cancelled")
            raise RetryCancelledError(operation_name, attempt, last_error) from last_error

    logger.error(f"{operation_name}: all {policy.max_attempts} attempts exhausted")
    raise RetryExhaustedError(operation_name, policy.max_attempts, last_error) from last_error


class RetryExecutor:
    """
    Retry executor bound to one policy.

    Shared by every gateway operation so the resilience policy lives in one place.
    cancel() stays in effect for every later call until reset() is called.

    Attributes:
        policy: Retry policy applied to each call
        cancel_event: Event that aborts pending backoff waits when set
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.policy = policy or RetryPolicy()
        self.cancel_event = cancel_event or threading.Event()

    def execute_with_retry(self, operation: Callable[[], T], operation_name: str) -> T:
        """Run operation under this executor's policy."""
        return execute_with_retry(
            operation,
            operation_name,
            policy=self.policy,
            cancel_event=self.cancel_event,
        )

    def cancel(self) -> None:
        """Abort pending and future backoff waits."""
        self.cancel_event.set()

    def reset(self) -> None:
        """Clear a previous cancel() so retries resume."""
        self.cancel_event.clear()
