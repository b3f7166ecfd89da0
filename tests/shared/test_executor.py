"""Tests for RetryingExecutor — attempts, delays, fallbacks and timeouts."""

import asyncio

import pytest
from shared.resilience.errors import ErrorKind, ExternalCallError
from shared.resilience.executor import API_CALL, CONNECTION, MESSAGE_SEND, PROVISIONING, RetryPolicy

pytestmark = pytest.mark.anyio


class Flaky:
    """Async operation factory that fails a set number of times before succeeding."""

    def __init__(self, failures, error=None, result="ok"):
        self.failures = failures
        self.error = error or RuntimeError("something odd")
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.result


class TestPresets:
    async def test_attempt_counts(self):
        assert (MESSAGE_SEND.attempts, PROVISIONING.attempts, API_CALL.attempts, CONNECTION.attempts) == (3, 2, 3, 5)


class TestRetries:
    async def test_success_on_first_attempt(self, executor, sleeper):
        operation = Flaky(0)
        assert await executor.run(operation, name="send", policy=MESSAGE_SEND) == "ok"
        assert operation.calls == 1
        assert sleeper.delays == []

    async def test_succeeds_after_retries(self, executor, sleeper):
        operation = Flaky(2)
        assert await executor.run(operation, name="send", policy=MESSAGE_SEND) == "ok"
        assert operation.calls == 3
        assert len(sleeper.delays) == 2
        assert 1.0 <= sleeper.delays[0] <= 2.0
        assert 2.0 <= sleeper.delays[1] <= 3.0

    async def test_gives_up_after_policy_attempts(self, executor, sleeper):
        operation = Flaky(10, error=ConnectionResetError("reset"))
        with pytest.raises(ExternalCallError) as exc:
            await executor.run(operation, name="create_server", policy=PROVISIONING)

        assert operation.calls == 2
        assert len(sleeper.delays) == 1
        assert exc.value.reason is ErrorKind.NETWORK
        assert exc.value.attempts == 2
        assert exc.value.operation == "create_server"
        assert isinstance(exc.value.__cause__, ConnectionResetError)

    async def test_non_retryable_failure_stops_immediately(self, executor, sleeper):
        operation = Flaky(10, error=RuntimeError("Unauthorized"))
        with pytest.raises(ExternalCallError) as exc:
            await executor.run(operation, name="send", policy=MESSAGE_SEND)

        assert operation.calls == 1
        assert sleeper.delays == []
        assert exc.value.reason is ErrorKind.AUTH
        assert exc.value.retryable is False

    async def test_rate_limit_waits_at_least_a_minute(self, executor, sleeper):
        operation = Flaky(1, error=RuntimeError("rate limit exceeded"))
        await executor.run(operation, name="send", policy=MESSAGE_SEND)
        assert sleeper.delays == [60.0]


class TestFallback:
    async def test_fallback_used_on_exhaustion(self, executor):
        async def fallback():
            return "cached"

        result = await executor.run(Flaky(10), name="list", policy=API_CALL, fallback=fallback)
        assert result == "cached"

    async def test_fallback_not_used_on_success(self, executor):
        async def fallback():
            raise AssertionError("fallback should not run")

        assert await executor.run(Flaky(1), name="list", policy=API_CALL, fallback=fallback) == "ok"


class TestTimeout:
    async def test_slow_attempt_is_a_timeout(self, executor, sleeper):
        calls = []

        async def slow():
            calls.append(1)
            await asyncio.sleep(5)

        policy = RetryPolicy(attempts=2, timeout=0.01, base_delay=0.0, max_delay=0.0, jitter=0.0)
        with pytest.raises(ExternalCallError) as exc:
            await executor.run(slow, name="slow_call", policy=policy)

        assert exc.value.reason is ErrorKind.TIMEOUT
        assert len(calls) == 2
        assert sleeper.delays == [0.0]
