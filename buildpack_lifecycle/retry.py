"""
Retry patterns for the buildpack lifecycle.

Provides:
- BackoffStrategy: delay calculation between attempts
- RetryPolicy: how many attempts, which failures trigger another
- with_retry: run a callable under a policy, honoring cancellation

The lifecycle is single-threaded; waiting between attempts blocks on a
threading.Event so a caller holding the event can abort a retry loop.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

from .observability import log_retry_attempt

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Backoff Strategies
# =============================================================================


class BackoffStrategy(ABC):
    """Abstract base for backoff delay calculation."""

    @abstractmethod
    def get_delay(self, attempt: int) -> float:
        """
        Calculate delay before the next attempt.

        Args:
            attempt: Attempt that just failed (1-indexed)

        Returns:
            Delay in seconds
        """
        ...


@dataclass
class NoBackoff(BackoffStrategy):
    """No delay between retries."""

    def get_delay(self, attempt: int) -> float:
        return 0.0


@dataclass
class ConstantBackoff(BackoffStrategy):
    """
    Fixed delay between retries.

    Example:
        backoff = ConstantBackoff(delay=1.0)
        # Always waits 1 second between retries
    """

    delay: float = 1.0

    def get_delay(self, attempt: int) -> float:
        return self.delay


# =============================================================================
# Retry Policy
# =============================================================================


@dataclass
class RetryPolicy:
    """
    Configures retry behavior for an operation.

    Example:
        policy = RetryPolicy(
            max_attempts=3,
            backoff=ConstantBackoff(delay=1.0),
            retry_on=(httpx.TransportError,),
        )
    """

    max_attempts: int = 1  # 1 = single attempt
    backoff: BackoffStrategy = field(default_factory=NoBackoff)
    retry_on: tuple[type[Exception], ...] = (Exception,)
    retry_if: Callable[[Exception], bool] | None = None

    def should_retry(self, attempt: int, error: Exception) -> bool:
        if attempt >= self.max_attempts:
            return False
        if not isinstance(error, self.retry_on):
            return False
        if self.retry_if is not None:
            return self.retry_if(error)
        return True

    def get_delay(self, attempt: int) -> float:
        return self.backoff.get_delay(attempt)


NO_RETRY = RetryPolicy(max_attempts=1)


# =============================================================================
# Retry Executor
# =============================================================================


@dataclass
class RetryResult:
    """Result of a retry-wrapped operation."""

    success: bool
    result: Any = None
    attempts: int = 0
    total_delay: float = 0.0
    cancelled: bool = False
    errors: list[Exception] = field(default_factory=list)

    @property
    def final_error(self) -> Exception | None:
        """Get the last error encountered."""
        return self.errors[-1] if self.errors else None


def with_retry(
    operation: Callable[[], T],
    policy: RetryPolicy,
    operation_name: str = "operation",
    cancel: threading.Event | None = None,
) -> RetryResult:
    """
    Execute an operation with retry logic.

    Errors the policy does not retry end the loop immediately. Setting
    ``cancel`` stops the loop before the next attempt.

    Example:
        result = with_retry(
            lambda: client.post(body),
            policy=RetryPolicy(max_attempts=3, backoff=ConstantBackoff(1.0)),
            operation_name="credhub interpolate",
        )
        if not result.success:
            raise result.final_error
    """
    errors: list[Exception] = []
    total_delay = 0.0
    attempt = 0

    while True:
        if cancel is not None and cancel.is_set():
            logger.warning(f"{operation_name}: cancelled before attempt {attempt + 1}")
            return RetryResult(
                success=False,
                attempts=attempt,
                total_delay=total_delay,
                cancelled=True,
                errors=errors,
            )

        attempt += 1
        try:
            result = operation()
            return RetryResult(
                success=True,
                result=result,
                attempts=attempt,
                total_delay=total_delay,
                errors=errors,
            )
        except Exception as e:
            errors.append(e)

            if not policy.should_retry(attempt, e):
                logger.error(f"{operation_name}: Failed after {attempt} attempts, last error: {e}")
                return RetryResult(
                    success=False,
                    attempts=attempt,
                    total_delay=total_delay,
                    errors=errors,
                )

            delay = policy.get_delay(attempt)
            total_delay += delay
            log_retry_attempt(operation_name, attempt, policy.max_attempts, f"{type(e).__name__}: {e}", delay)

            if cancel is not None:
                cancel.wait(delay)
            elif delay > 0:
                time.sleep(delay)
