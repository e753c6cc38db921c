"""Tests for the retry/backoff executor."""

import pytest

from ragline.exceptions import ProviderError
from ragline.retry import (
    ErrorKind,
    RetryPolicy,
    classify_error,
    is_transient,
    retry,
    retry_transient,
)


class HTTPError(Exception):
    """Error carrying an HTTP status code, like most SDK exceptions."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


def flaky(errors: list[Exception], result: str = "ok"):
    """Coroutine function raising queued errors before returning ``result``."""
    calls = []

    async def fn() -> str:
        calls.append(1)
        if errors:
            raise errors.pop(0)
        return result

    return fn, calls


class TestErrorKind:
    @pytest.mark.parametrize(
        "status,kind",
        [
            (429, ErrorKind.RATE_LIMIT),
            (408, ErrorKind.TIMEOUT),
            (504, ErrorKind.TIMEOUT),
            (404, ErrorKind.NOT_FOUND),
            (500, ErrorKind.SERVER),
            (503, ErrorKind.SERVER),
            (400, ErrorKind.CLIENT),
            (401, ErrorKind.CLIENT),
            (302, ErrorKind.UNKNOWN),
        ],
    )
    def test_from_status(self, status, kind):
        assert ErrorKind.from_status(status) is kind

    def test_transient_kinds(self):
        assert ErrorKind.RATE_LIMIT.is_transient
        assert ErrorKind.SERVER.is_transient
        assert not ErrorKind.CLIENT.is_transient
        assert not ErrorKind.NOT_FOUND.is_transient
        assert not ErrorKind.UNKNOWN.is_transient


class TestClassifyError:
    def test_provider_error_kind_wins(self):
        error = ProviderError("boom", ErrorKind.NETWORK, status_code=400)
        assert classify_error(error) is ErrorKind.NETWORK

    def test_status_code_attribute(self):
        assert classify_error(HTTPError(502)) is ErrorKind.SERVER

    def test_builtin_errors(self):
        assert classify_error(TimeoutError()) is ErrorKind.TIMEOUT
        assert classify_error(ConnectionResetError()) is ErrorKind.NETWORK
        assert classify_error(ValueError("bad")) is ErrorKind.UNKNOWN

    def test_is_transient(self):
        assert is_transient(HTTPError(429))
        assert not is_transient(HTTPError(400))


class TestRetryPolicy:
    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.retries == 3
        assert policy.min_timeout == 1.0
        assert policy.max_timeout == 30.0
        assert policy.factor == 2.0

    def test_delay_grows_and_is_capped(self):
        policy = RetryPolicy(min_timeout=1.0, max_timeout=5.0, factor=2.0, jitter=None)
        assert [policy.delay(n) for n in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]

    def test_jitter_stays_within_bounds(self):
        policy = RetryPolicy(min_timeout=1.0, max_timeout=30.0, factor=2.0)
        for attempt in range(6):
            base = min(30.0, 2.0**attempt)
            for _ in range(20):
                delay = policy.delay(attempt)
                assert 0.5 * base <= delay <= base

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"retries": -1},
            {"min_timeout": -1.0},
            {"factor": 0.5},
            {"jitter": (0.0, 1.0)},
            {"jitter": (0.9, 0.5)},
        ],
    )
    def test_invalid_policy(self, kwargs):
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)


class TestRetry:
    @pytest.mark.asyncio
    async def test_returns_first_success(self, no_delay):
        fn, calls = flaky([])
        assert await retry(fn, no_delay) == "ok"
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_retries_until_success(self, no_delay):
        fn, calls = flaky([RuntimeError("a"), RuntimeError("b")])
        assert await retry(fn, no_delay) == "ok"
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_exhaustion_reraises_last_error(self):
        errors = [RuntimeError(str(i)) for i in range(5)]
        last = errors[2]
        fn, calls = flaky(errors)
        policy = RetryPolicy(retries=2, min_timeout=0.0, jitter=None)

        with pytest.raises(RuntimeError) as exc_info:
            await retry(fn, policy)

        assert exc_info.value is last
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_zero_retries_calls_once(self):
        fn, calls = flaky([RuntimeError("boom")])
        with pytest.raises(RuntimeError):
            await retry(fn, RetryPolicy(retries=0, min_timeout=0.0))
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_on_retry_callback(self):
        seen = []
        policy = RetryPolicy(
            retries=3,
            min_timeout=0.0,
            jitter=None,
            on_retry=lambda error, attempt: seen.append((str(error), attempt)),
        )
        fn, _ = flaky([RuntimeError("a"), RuntimeError("b")])

        await retry(fn, policy)

        assert seen == [("a", 0), ("b", 1)]

    @pytest.mark.asyncio
    async def test_should_retry_predicate(self, no_delay):
        fn, calls = flaky([KeyError("x")])
        with pytest.raises(KeyError):
            await retry(fn, no_delay, should_retry=lambda e: isinstance(e, RuntimeError))
        assert len(calls) == 1


class TestRetryTransient:
    @pytest.mark.asyncio
    async def test_rate_limit_is_retried(self, no_delay):
        fn, calls = flaky([HTTPError(429)])
        assert await retry_transient(fn, no_delay) == "ok"
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_client_error_fails_immediately(self, no_delay):
        fn, calls = flaky([HTTPError(400)])
        with pytest.raises(HTTPError):
            await retry_transient(fn, no_delay)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_provider_error_kinds(self, no_delay):
        fn, calls = flaky(
            [
                ProviderError("slow", ErrorKind.TIMEOUT),
                ProviderError("down", ErrorKind.NETWORK),
                ProviderError("oops", ErrorKind.SERVER, 500),
            ]
        )
        assert await retry_transient(fn, no_delay) == "ok"
        assert len(calls) == 4

    @pytest.mark.asyncio
    async def test_unknown_error_not_retried(self, no_delay):
        fn, calls = flaky([ValueError("bad input")])
        with pytest.raises(ValueError):
            await retry_transient(fn, no_delay)
        assert len(calls) == 1


class TestLambdaCallables:
    """Callers wrap bound coroutine methods in lambdas; each attempt must await them."""

    @pytest.mark.asyncio
    async def test_retry_awaits_lambda_result(self, no_delay):
        fn, calls = flaky([RuntimeError("a")], result="done")
        assert await retry(lambda: fn(), no_delay) == "done"
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_retry_transient_awaits_lambda_result(self, no_delay):
        calls = []

        async def upsert(count: int) -> int:
            calls.append(count)
            if len(calls) == 1:
                raise ProviderError("rate limited", ErrorKind.RATE_LIMIT, 429)
            return count

        result = await retry_transient(lambda: upsert(3), no_delay)

        assert result == 3
        assert calls == [3, 3]

    @pytest.mark.asyncio
    async def test_lambda_client_error_reraised(self, no_delay):
        fn, calls = flaky([HTTPError(400)])
        with pytest.raises(HTTPError):
            await retry_transient(lambda: fn(), no_delay)
        assert len(calls) == 1
