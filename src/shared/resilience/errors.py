"""Failure taxonomy for calls that cross a process boundary."""

from enum import Enum


class ErrorKind(Enum):
    TIMEOUT = "timeout"
    NETWORK = "network"
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    CRITICAL = "critical"
    UNKNOWN = "unknown"

    @property
    def retryable(self) -> bool:
        return self not in (ErrorKind.AUTH, ErrorKind.CRITICAL)


class ExternalCallError(Exception):
    """An external operation failed after the executor gave up on it.

    Carries the operation name, how many attempts were made and the
    classified reason of the last failure. The original exception is
    available as ``cause`` (and as ``__cause__`` when raised with ``from``).
    """

    def __init__(self, operation: str, reason: ErrorKind, attempts: int, cause: BaseException | None = None):
        self.operation = operation
        self.reason = reason
        self.attempts = attempts
        self.cause = cause
        detail = str(cause) if cause is not None else reason.value
        super().__init__(f"{operation} failed after {attempts} attempt(s) [{reason.value}]: {detail}")

    @property
    def retryable(self) -> bool:
        return self.reason.retryable
