# src/ragline/retry.py
"""Bounded exponential-backoff retry for calls to external services.

Two entry points:

- ``retry``: retries any exception (used for embedding requests).
- ``retry_transient``: retries only errors classified as transient
  (rate limits, timeouts, network failures, 5xx). Used for vector index calls.

Errors are classified by ``ErrorKind`` rather than by matching message text.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
)

from ragline.exceptions import ProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryCallback = Callable[[BaseException, int], None]


class ErrorKind(str, Enum):
    """Classification of a failed provider call."""

    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    NETWORK = "network"
    SERVER = "server"
    CLIENT = "client"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"

    @classmethod
    def from_status(cls, status_code: int) -> ErrorKind:
        """Map an HTTP status code to an error kind."""
        if status_code == 429:
            return cls.RATE_LIMIT
        if status_code in (408, 504):
            return cls.TIMEOUT
        if status_code == 404:
            return cls.NOT_FOUND
        if status_code >= 500:
            return cls.SERVER
        if status_code >= 400:
            return cls.CLIENT
        return cls.UNKNOWN

    @property
    def is_transient(self) -> bool:
        return self in TRANSIENT_KINDS


TRANSIENT_KINDS = frozenset(
    {ErrorKind.RATE_LIMIT, ErrorKind.TIMEOUT, ErrorKind.NETWORK, ErrorKind.SERVER}
)


def status_code_of(error: BaseException) -> int | None:
    """Find an HTTP status code on an exception or its ``response`` attribute."""
    status = getattr(error, "status_code", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None)
    if isinstance(status, int):
        return status
    return None


def classify_error(error: BaseException) -> ErrorKind:
    """Classify an exception raised by a provider call.

    Precedence:
    1. ``ProviderError.kind`` (already classified by the provider layer)
    2. An integer HTTP ``status_code`` on the error or its response
    3. Builtin timeout / connection errors
    """
    if isinstance(error, ProviderError):
        return error.kind

    status_code = status_code_of(error)
    if status_code is not None:
        return ErrorKind.from_status(status_code)

    if isinstance(error, TimeoutError):
        return ErrorKind.TIMEOUT
    if isinstance(error, ConnectionError):
        return ErrorKind.NETWORK
    return ErrorKind.UNKNOWN


def is_transient(error: BaseException) -> bool:
    """True if the error is worth retrying."""
    return classify_error(error).is_transient


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration.

    Attributes:
        retries: Number of retries after the first attempt.
        min_timeout: Delay in seconds before the first retry.
        max_timeout: Upper bound in seconds for any single delay.
        factor: Exponential growth factor between retries.
        jitter: Multiplicative jitter range applied to each delay, or None
            for deterministic delays.
        on_retry: Optional callback(error, attempt) invoked before each retry.
            ``attempt`` is zero-based.
    """

    retries: int = 3
    min_timeout: float = 1.0
    max_timeout: float = 30.0
    factor: float = 2.0
    jitter: tuple[float, float] | None = (0.5, 1.0)
    on_retry: RetryCallback | None = None

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise ValueError(f"retries must be >= 0, got {self.retries}")
        if self.min_timeout < 0 or self.max_timeout < 0:
            raise ValueError("min_timeout and max_timeout must be >= 0")
        if self.factor < 1:
            raise ValueError(f"factor must be >= 1, got {self.factor}")
        if self.jitter is not None:
            low, high = self.jitter
            if not 0 < low <= high <= 1:
                raise ValueError(f"jitter must satisfy 0 < low <= high <= 1, got {self.jitter}")

    def delay(self, attempt: int) -> float:
        """Delay in seconds before retry number ``attempt`` (zero-based)."""
        base = min(self.max_timeout, self.min_timeout * self.factor**attempt)
        if self.jitter is None:
            return base
        return base * random.uniform(*self.jitter)


DEFAULT_POLICY = RetryPolicy()
INDEX_POLICY = RetryPolicy(max_timeout=10.0)


def _wait(policy: RetryPolicy) -> Callable[[RetryCallState], float]:
    def wait(state: RetryCallState) -> float:
        # attempt_number is 1 after the first failure
        return policy.delay(state.attempt_number - 1)

    return wait


def _before_sleep(policy: RetryPolicy, name: str) -> Callable[[RetryCallState], None]:
    def before_sleep(state: RetryCallState) -> None:
        error = state.outcome.exception() if state.outcome else None
        attempt = state.attempt_number - 1
        delay = state.next_action.sleep if state.next_action else 0.0
        logger.warning(
            "%s failed (attempt %d/%d), retrying in %.2fs: %s",
            name,
            state.attempt_number,
            policy.retries + 1,
            delay,
            error,
        )
        if policy.on_retry is not None and error is not None:
            policy.on_retry(error, attempt)

    return before_sleep


async def retry(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    should_retry: Callable[[BaseException], bool] | None = None,
    name: str | None = None,
) -> T:
    """Call ``fn`` with bounded exponential-backoff retry.

    Args:
        fn: Zero-argument callable returning an awaitable, such as a
            coroutine function or a lambda wrapping a coroutine call.
        policy: Retry configuration (default: ``DEFAULT_POLICY``).
        should_retry: Predicate deciding whether an error is retryable.
            Defaults to retrying every ``Exception``.
        name: Operation name used in log messages.

    Returns:
        Whatever ``fn`` returns on its first successful attempt.

    Raises:
        The last error raised by ``fn``, unchanged, once retries are exhausted
        or the error is not retryable.
    """
    policy = policy or DEFAULT_POLICY
    predicate = should_retry or (lambda error: isinstance(error, Exception))
    label = name or getattr(fn, "__qualname__", "operation")

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.retries + 1),
        wait=_wait(policy),
        retry=retry_if_exception(predicate),
        before_sleep=_before_sleep(policy, label),
        reraise=True,
    )
    # await inside the attempt so lambdas returning coroutines are retried too
    async for attempt in retrying:
        with attempt:
            return await fn()
    raise AssertionError("unreachable: tenacity exits by returning or raising")


async def retry_transient(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    name: str | None = None,
) -> T:
    """Retry ``fn`` only on transient errors.

    Non-transient errors (4xx, validation, unknown) are raised on the first
    attempt without consuming the retry budget.
    """
    return await retry(fn, policy or INDEX_POLICY, should_retry=is_transient, name=name)
