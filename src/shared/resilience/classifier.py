"""Error classifier — maps a raw failure to an ErrorKind and a backoff delay.

Pure functions only. Exceptions are inspected by type first, then by the
HTTP status code they carry (``httpx.HTTPStatusError`` or any exception with
a ``status_code`` attribute), then by message text.
"""

import asyncio
import random

import httpx

from shared.resilience.errors import ErrorKind, ExternalCallError

RATE_LIMIT_FLOOR = 60.0

_TIMEOUT_MARKERS = ("timeout", "timed out")
_NETWORK_MARKERS = ("network", "connection", "econnreset", "econnrefused", "enotfound")
_AUTH_MARKERS = ("unauthorized", "forbidden", "invalid session")
_RATE_LIMIT_MARKERS = ("rate limit", "rate-limit", "too many requests")
_CRITICAL_MARKERS = ("logged out", "loggedout", "banned", "account suspended", "not configured")


def status_code_of(exc: BaseException) -> int | None:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    code = getattr(exc, "status_code", None)
    return code if isinstance(code, int) else None


def classify(exc: BaseException) -> ErrorKind:
    """Return the ErrorKind for a failure raised by an external call."""
    if isinstance(exc, ExternalCallError):
        return exc.reason

    status = status_code_of(exc)
    message = str(exc).lower()

    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException)):
        return ErrorKind.TIMEOUT
    if status == 408 or any(marker in message for marker in _TIMEOUT_MARKERS):
        return ErrorKind.TIMEOUT

    if isinstance(exc, (ConnectionError, httpx.TransportError)):
        return ErrorKind.NETWORK
    if any(marker in message for marker in _NETWORK_MARKERS):
        return ErrorKind.NETWORK

    if status in (401, 403) or any(marker in message for marker in _AUTH_MARKERS):
        return ErrorKind.AUTH

    if status == 429 or any(marker in message for marker in _RATE_LIMIT_MARKERS):
        return ErrorKind.RATE_LIMIT

    if any(marker in message for marker in _CRITICAL_MARKERS):
        return ErrorKind.CRITICAL

    return ErrorKind.UNKNOWN


def backoff_delay(
    kind: ErrorKind,
    attempt: int,
    base_delay: float,
    max_delay: float,
    factor: float,
    jitter: float = 1.0,
    rng: random.Random | None = None,
) -> float:
    """Seconds to wait before retry number ``attempt`` (1-based).

    Exponential with a bounded random component, capped at ``max_delay``.
    Rate-limited failures never wait less than ``RATE_LIMIT_FLOOR``.
    """
    rng = rng or random
    delay = base_delay * factor ** (attempt - 1) + rng.uniform(0, jitter)
    delay = min(delay, max_delay)
    if kind is ErrorKind.RATE_LIMIT:
        delay = max(delay, RATE_LIMIT_FLOOR)
    return delay
