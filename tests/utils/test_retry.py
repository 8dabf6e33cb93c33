"""
Tests for the retry executor.

Tests error classification, attempt counting, exhaustion, deadline and
cancellation. Policies use zero delays so no test sleeps.
"""

import threading

import httpx
import pytest

from ironfly.core.errors import (
    ConfigurationError,
    OrderError,
    ParseError,
    RetryCancelledError,
    RetryExhaustedError,
    UpstreamError,
)
from ironfly.utils.retry import RetryExecutor, RetryPolicy, classify_error, execute_with_retry


NO_WAIT = RetryPolicy(max_attempts=3, base_delay=0, max_delay=0, jitter=False)


class FlakyOperation:
    """Fails with the given errors in order, then returns result."""

    def __init__(self, errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.attempts = 0

    def __call__(self):
        self.attempts += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


class TestClassifyError:
    """Test retry classification."""

    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("refused"),
            httpx.ReadTimeout("slow"),
            OSError("reset"),
            UpstreamError("server", status_code=503),
            UpstreamError("rate limited", status_code=429),
            UpstreamError("teapot", status_code=418),
            UpstreamError("timeout", status_code=408),
            UpstreamError("malformed body"),
            RuntimeError("unknown"),
        ],
    )
    def test_retryable(self, error):
        """Test transient failures are retried."""
        assert classify_error(error).should_retry is True

    @pytest.mark.parametrize(
        "error",
        [
            ConfigurationError("no key"),
            ParseError("bad symbol"),
            UpstreamError("bad request", status_code=400),
            OrderError("insufficient margin", status_code=400, body='{"code":-2010}'),
            OrderError("unreadable acknowledgement", status_code=200, body='{"orderId": 1'),
            UpstreamError("not found", status_code=404),
            ValueError("bad"),
            TypeError("bad"),
        ],
    )
    def test_terminal(self, error):
        """Test permanent failures are not retried."""
        assert classify_error(error).should_retry is False

    def test_timeout_type(self):
        """Test timeouts are reported as such."""
        assert classify_error(httpx.ConnectTimeout("slow")).error_type == "timeout"

    def test_server_error_type(self):
        """Test 5xx is reported as a server error."""
        assert classify_error(UpstreamError("x", status_code=502)).error_type == "server_error"


class TestRetryPolicy:
    """Test backoff computation and validation."""

    def test_exponential_backoff(self):
        """Test delay doubles per attempt without jitter."""
        policy = RetryPolicy(base_delay=1.0, max_delay=30.0, jitter=False)

        assert [policy.backoff(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]

    def test_backoff_capped(self):
        """Test delay never exceeds max_delay."""
        policy = RetryPolicy(base_delay=1.0, max_delay=5.0, jitter=True)

        assert all(policy.backoff(n) <= 5.0 for n in range(1, 10))

    def test_jitter_bounded(self):
        """Test jitter adds at most one second."""
        policy = RetryPolicy(base_delay=2.0, max_delay=30.0, jitter=True)

        for _ in range(20):
            assert 2.0 <= policy.backoff(1) <= 3.0

    def test_invalid_attempts(self):
        """Test max_attempts below 1 is rejected."""
        with pytest.raises(ValueError, match="max_attempts"):
            RetryPolicy(max_attempts=0)


class TestExecuteWithRetry:
    """Test the retry loop."""

    def test_success_first_attempt(self):
        """Test successful operation runs once."""
        operation = FlakyOperation([])

        assert execute_with_retry(operation, "op", NO_WAIT) == "ok"
        assert operation.attempts == 1

    def test_succeeds_on_third_attempt(self):
        """Test two retryable failures then success returns the value after 3 attempts."""
        operation = FlakyOperation(
            [httpx.ConnectError("refused"), UpstreamError("busy", status_code=503)],
            result=42,
        )

        assert execute_with_retry(operation, "op", NO_WAIT) == 42
        assert operation.attempts == 3

    def test_terminal_error_stops_after_one_attempt(self):
        """Test terminal error is re-raised unchanged after 1 attempt."""
        error = UpstreamError("bad request", status_code=400, body='{"code":-1102}')
        operation = FlakyOperation([error, error])

        with pytest.raises(UpstreamError) as exc_info:
            execute_with_retry(operation, "op", NO_WAIT)

        assert exc_info.value is error
        assert operation.attempts == 1

    def test_configuration_error_not_retried(self):
        """Test configuration errors propagate immediately."""
        operation = FlakyOperation([ConfigurationError("missing key")])

        with pytest.raises(ConfigurationError):
            execute_with_retry(operation, "op", NO_WAIT)
        assert operation.attempts == 1

    def test_exhaustion_wraps_last_error(self):
        """Test exhaustion raises RetryExhaustedError chained from the last failure."""
        last = UpstreamError("still down", status_code=503)
        operation = FlakyOperation([httpx.ConnectError("a"), httpx.ConnectError("b"), last])

        with pytest.raises(RetryExhaustedError) as exc_info:
            execute_with_retry(operation, "get_order_book", NO_WAIT)

        error = exc_info.value
        assert not isinstance(error, RetryCancelledError)
        assert error.operation_name == "get_order_book"
        assert error.attempts == 3
        assert error.last_error is last
        assert error.__cause__ is last
        assert operation.attempts == 3

    def test_single_attempt_policy(self):
        """Test max_attempts=1 never retries."""
        operation = FlakyOperation([OSError("reset")])

        with pytest.raises(RetryExhaustedError):
            execute_with_retry(operation, "op", RetryPolicy(max_attempts=1, jitter=False))
        assert operation.attempts == 1

    def test_deadline_stops_retrying(self):
        """Test a wait that would pass the deadline cancels instead of sleeping."""
        policy = RetryPolicy(max_attempts=5, base_delay=60.0, max_delay=60.0, jitter=False, total_timeout=1.0)
        operation = FlakyOperation([OSError("reset")] * 5)

        with pytest.raises(RetryCancelledError) as exc_info:
            execute_with_retry(operation, "op", policy)

        assert operation.attempts == 1
        assert exc_info.value.attempts == 1

    def test_cancel_event_aborts_wait(self):
        """Test a set cancel event aborts the pending backoff."""
        cancel = threading.Event()
        cancel.set()
        operation = FlakyOperation([OSError("reset")] * 3)

        with pytest.raises(RetryCancelledError):
            execute_with_retry(operation, "op", NO_WAIT, cancel_event=cancel)
        assert operation.attempts == 1


class TestRetryExecutor:
    """Test the policy-bound executor."""

    def test_default_policy(self):
        """Test executor defaults to RetryPolicy()."""
        assert RetryExecutor().policy == RetryPolicy()

    def test_execute_with_retry(self):
        """Test executor applies its policy."""
        executor = RetryExecutor(NO_WAIT)
        operation = FlakyOperation([OSError("reset")], result="done")

        assert executor.execute_with_retry(operation, "op") == "done"
        assert operation.attempts == 2

    def test_cancel(self):
        """Test cancel() stops subsequent retries."""
        executor = RetryExecutor(NO_WAIT)
        executor.cancel()
        operation = FlakyOperation([OSError("reset")] * 3)

        with pytest.raises(RetryCancelledError):
            executor.execute_with_retry(operation, "op")
        assert operation.attempts == 1

    def test_reset_clears_cancel(self):
        """Test reset() lets later calls retry again after a cancel()."""
        executor = RetryExecutor(NO_WAIT)
        executor.cancel()
        executor.reset()
        operation = FlakyOperation([OSError("reset")], result="done")

        assert executor.execute_with_retry(operation, "op") == "done"
        assert operation.attempts == 2
