"""
Tests for retry policies and the retry executor.
"""

import threading
from unittest.mock import patch

import pytest

from buildpack_lifecycle.retry import (
    NO_RETRY,
    ConstantBackoff,
    NoBackoff,
    RetryPolicy,
    with_retry,
)


class Flaky:
    """Callable failing a fixed number of times before succeeding."""

    def __init__(self, failures: int, error: Exception | None = None, value: str = "ok"):
        self.failures = failures
        self.error = error or ConnectionError("connection refused")
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.value


# =============================================================================
# Backoff Strategy Tests
# =============================================================================


class TestBackoff:
    def test_no_backoff(self):
        assert NoBackoff().get_delay(1) == 0.0
        assert NoBackoff().get_delay(10) == 0.0

    def test_constant_backoff(self):
        backoff = ConstantBackoff(delay=2.5)
        assert backoff.get_delay(1) == 2.5
        assert backoff.get_delay(100) == 2.5


# =============================================================================
# Retry Policy Tests
# =============================================================================


class TestRetryPolicy:
    def test_stops_at_max_attempts(self):
        policy = RetryPolicy(max_attempts=3)
        assert policy.should_retry(1, ValueError())
        assert policy.should_retry(2, ValueError())
        assert not policy.should_retry(3, ValueError())

    def test_retry_on_filters_types(self):
        policy = RetryPolicy(max_attempts=3, retry_on=(ConnectionError,))
        assert policy.should_retry(1, ConnectionError())
        assert not policy.should_retry(1, ValueError())

    def test_retry_if_predicate(self):
        policy = RetryPolicy(max_attempts=3, retry_if=lambda e: "transient" in str(e))
        assert policy.should_retry(1, RuntimeError("transient"))
        assert not policy.should_retry(1, RuntimeError("fatal"))

    def test_no_retry_constant(self):
        assert NO_RETRY.max_attempts == 1
        assert not NO_RETRY.should_retry(1, Exception())


# =============================================================================
# with_retry Tests
# =============================================================================


class TestWithRetry:
    """Tests for the retry executor."""

    def test_success_first_try(self):
        operation = Flaky(failures=0)
        result = with_retry(operation, RetryPolicy(max_attempts=3))
        assert result.success
        assert result.result == "ok"
        assert result.attempts == 1
        assert result.errors == []

    def test_recovers_after_failures(self):
        operation = Flaky(failures=2)
        with patch("buildpack_lifecycle.retry.time.sleep") as sleep:
            result = with_retry(operation, RetryPolicy(max_attempts=3, backoff=ConstantBackoff(0.5)))

        assert result.success
        assert result.attempts == 3
        assert len(result.errors) == 2
        assert result.total_delay == pytest.approx(1.0)
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 0.5]

    def test_gives_up_after_max_attempts(self):
        operation = Flaky(failures=10)
        result = with_retry(operation, RetryPolicy(max_attempts=3))
        assert not result.success
        assert operation.calls == 3
        assert isinstance(result.final_error, ConnectionError)

    def test_non_retryable_error_stops_immediately(self):
        operation = Flaky(failures=10, error=PermissionError("denied"))
        result = with_retry(operation, RetryPolicy(max_attempts=5, retry_on=(ConnectionError,)))
        assert not result.success
        assert operation.calls == 1
        assert isinstance(result.final_error, PermissionError)

    def test_waits_on_cancel_event(self):
        cancel = threading.Event()
        operation = Flaky(failures=1)
        with patch.object(cancel, "wait") as wait:
            result = with_retry(
                operation,
                RetryPolicy(max_attempts=2, backoff=ConstantBackoff(3.0)),
                cancel=cancel,
            )
        assert result.success
        wait.assert_called_once_with(3.0)

    def test_cancelled_before_first_attempt(self):
        cancel = threading.Event()
        cancel.set()
        operation = Flaky(failures=0)
        result = with_retry(operation, RetryPolicy(max_attempts=3), cancel=cancel)
        assert not result.success
        assert result.cancelled
        assert operation.calls == 0

    def test_cancelled_between_attempts(self):
        cancel = threading.Event()

        def operation():
            cancel.set()
            raise ConnectionError("down")

        result = with_retry(operation, RetryPolicy(max_attempts=5, backoff=ConstantBackoff(0.0)), cancel=cancel)
        assert result.cancelled
        assert result.attempts == 1
        assert isinstance(result.final_error, ConnectionError)
