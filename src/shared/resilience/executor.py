"""Retrying executor — timeout plus bounded, classifier-driven retry loop.

Generic resilience primitive: it knows nothing about orders or messages.
Every call that crosses a process boundary (panel API, outbound chat send)
goes through ``RetryingExecutor.run``.
"""

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import structlog

from shared.resilience.classifier import backoff_delay, classify
from shared.resilience.errors import ErrorKind, ExternalCallError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Per operation-class retry settings. Times are in seconds."""

    attempts: int
    timeout: float
    base_delay: float
    max_delay: float
    factor: float = 2.0
    jitter: float = 1.0


MESSAGE_SEND = RetryPolicy(attempts=3, timeout=15.0, base_delay=1.0, max_delay=15.0, factor=2.0)
PROVISIONING = RetryPolicy(attempts=2, timeout=45.0, base_delay=2.0, max_delay=30.0, factor=2.0)
API_CALL = RetryPolicy(attempts=3, timeout=20.0, base_delay=0.5, max_delay=10.0, factor=1.5)
CONNECTION = RetryPolicy(attempts=5, timeout=60.0, base_delay=5.0, max_delay=60.0, factor=2.0)


class RetryingExecutor:
    """Runs async operations with a per-attempt timeout and retries.

    ``sleep`` and ``rng`` are injectable so tests can run without real
    waiting and with deterministic jitter.
    """

    def __init__(
        self,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ):
        self._sleep = sleep
        self._rng = rng or random.Random()

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        name: str,
        policy: RetryPolicy = API_CALL,
        fallback: Callable[[], Awaitable[T]] | None = None,
    ) -> T:
        """Run ``operation`` until it succeeds, aborts or runs out of attempts.

        ``operation`` is a zero-argument factory returning a fresh awaitable
        for every attempt. On exhaustion (or on a non-retryable failure) the
        ``fallback`` is awaited if supplied, otherwise ``ExternalCallError``
        is raised with the classified reason of the last failure.
        """
        last_error: Exception | None = None
        kind = ErrorKind.UNKNOWN
        attempt = 0

        for attempt in range(1, policy.attempts + 1):
            try:
                return await asyncio.wait_for(operation(), timeout=policy.timeout)
            except Exception as exc:
                last_error = exc
                kind = classify(exc)
                logger.warning(
                    "External call failed",
                    operation=name,
                    attempt=attempt,
                    max_attempts=policy.attempts,
                    reason=kind.value,
                    error=str(exc) or exc.__class__.__name__,
                )

                if not kind.retryable or attempt >= policy.attempts:
                    break

                delay = backoff_delay(
                    kind,
                    attempt,
                    base_delay=policy.base_delay,
                    max_delay=policy.max_delay,
                    factor=policy.factor,
                    jitter=policy.jitter,
                    rng=self._rng,
                )
                logger.debug("Retrying external call", operation=name, delay=round(delay, 3))
                await self._sleep(delay)

        error = ExternalCallError(name, kind, attempt, last_error)

        if fallback is not None:
            logger.info("Using fallback after external call failure", operation=name, reason=kind.value)
            return await fallback()

        logger.error(
            "External call gave up",
            operation=name,
            attempts=attempt,
            reason=kind.value,
        )
        raise error from last_error
