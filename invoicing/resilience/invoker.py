"""Resilient invocation of external services.

Every call to a language model or ledger API goes through ``invoke``: failed
attempts are classified as transient or permanent, transient ones are retried
with capped exponential backoff and symmetric jitter, permanent ones fail on
first occurrence so that bugs in request construction surface immediately.

Built on tenacity's asyncio support:
https://tenacity.readthedocs.io/
"""

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

import httpx
import openai
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
)
from tenacity.wait import wait_base

from invoicing.shared import metrics
from invoicing.shared.errors import (
    RetriesExhaustedError,
    SchemaError,
    TransientServiceError,
    TranslationError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

JITTER_RATIO = 0.25


def _is_retryable_status(status: Any) -> bool:
    return isinstance(status, int) and (status == 429 or 500 <= status < 600)


def is_retryable_error(error: BaseException) -> bool:
    """Default transient-vs-permanent classification.

    Transient: connection and timeout failures, HTTP 429, HTTP 5xx.
    Everything else (4xx, schema and translation errors) is permanent.

    Args:
        error: Exception raised by the wrapped operation

    Returns:
        True if the operation should be attempted again
    """
    if isinstance(error, (SchemaError, TranslationError)):
        return False
    if isinstance(error, TransientServiceError):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return _is_retryable_status(error.response.status_code)
    if isinstance(error, openai.APIStatusError):
        return _is_retryable_status(error.status_code)
    if isinstance(error, (httpx.TransportError, openai.APIConnectionError)):
        return True
    if isinstance(error, (TimeoutError, ConnectionError)):
        return True

    # Errors from other clients that expose an HTTP status
    status = getattr(error, "status_code", None)
    if status is None:
        status = getattr(error, "status", None)
    return _is_retryable_status(status)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration for a resilient call.

    Attributes:
        max_retries: Retries after the first attempt (attempts are 0..max_retries)
        base_delay: Backoff before the first retry, in seconds
        max_delay: Upper bound on any single backoff, in seconds
        is_retryable: Predicate deciding whether a failure is transient
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    is_retryable: Callable[[BaseException], bool] = field(default=is_retryable_error)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Backoff before retrying after the given zero-based attempt, without jitter."""
    return min(base_delay * (2**attempt), max_delay)


class wait_capped_exponential_jitter(wait_base):  # noqa: N801 - tenacity naming
    """Wait ``min(base * 2**attempt, max)`` adjusted by a uniform +/-25% jitter."""

    def __init__(
        self,
        base_delay: float,
        max_delay: float,
        jitter: float = JITTER_RATIO,
        uniform: Callable[[float, float], float] = random.uniform,
    ) -> None:
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter
        self.uniform = uniform

    def __call__(self, retry_state: RetryCallState) -> float:
        delay = backoff_delay(retry_state.attempt_number - 1, self.base_delay, self.max_delay)
        return max(0.0, delay + delay * self.jitter * self.uniform(-1.0, 1.0))


async def invoke(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    name: str = "external_call",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run an async operation under the retry policy.

    Args:
        operation: Zero-argument coroutine function performing the external call
        policy: Retry configuration (defaults to RetryPolicy())
        name: Operation label for logs and metrics
        sleep: Coroutine used for backoff delays

    Returns:
        The operation's result from the first successful attempt

    Raises:
        RetriesExhaustedError: If every permitted attempt failed with a retryable error
        Exception: The operation's own error, unchanged, if it is not retryable
    """
    policy = policy or RetryPolicy()

    async def attempt() -> T:
        try:
            result = await operation()
        except Exception as e:
            outcome = "retryable_error" if policy.is_retryable(e) else "permanent_error"
            metrics.external_call_attempts_total.labels(operation=name, outcome=outcome).inc()
            raise
        metrics.external_call_attempts_total.labels(operation=name, outcome="success").inc()
        return result

    def before_sleep(retry_state: RetryCallState) -> None:
        metrics.external_call_retries_total.labels(operation=name).inc()
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"{name} attempt {retry_state.attempt_number} failed ({error!r}); "
            f"retrying in {delay:.2f}s"
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_retries + 1),
        wait=wait_capped_exponential_jitter(policy.base_delay, policy.max_delay),
        retry=retry_if_exception(policy.is_retryable),
        before_sleep=before_sleep,
        sleep=sleep,
        reraise=False,
    )

    start = time.monotonic()
    try:
        return await retrying(attempt)
    except RetryError as e:
        last_error = e.last_attempt.exception()
        attempts = e.last_attempt.attempt_number
        logger.error(f"{name} exhausted {attempts} attempts: {last_error!r}")
        raise RetriesExhaustedError(name, attempts, last_error) from last_error  # type: ignore[arg-type]
    finally:
        metrics.external_call_duration_seconds.labels(operation=name).observe(
            time.monotonic() - start
        )


class ResilientInvoker:
    """Invoker bound to a retry policy, handed to components at construction.

    Holds configuration only; no state is carried between calls.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def __call__(
        self, operation: Callable[[], Awaitable[T]], name: str = "external_call"
    ) -> T:
        return await invoke(operation, self.policy, name=name, sleep=self._sleep)
