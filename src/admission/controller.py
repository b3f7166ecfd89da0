"""Admission controller — per-sender rate limiting and duplicate suppression.

Gates whether an inbound chat command is processed at all. Each sender has
a fixed-size counting window that resets lazily on the first request after
it expires, a duplicate guard for identical texts sent in quick succession,
and a cool-down block applied when the quota is exhausted. The block is
independent of the window and outlives it.

The controller never formats user-facing text; callers turn the decision
reason into a reply (or into silence, for duplicates).
"""

import asyncio
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import structlog

logger = structlog.get_logger(__name__)


class RejectionReason(Enum):
    BLOCKED = "blocked"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class AdmissionDecision:
    allowed: bool
    reason: RejectionReason | None = None

    @property
    def is_duplicate(self) -> bool:
        return self.reason is RejectionReason.DUPLICATE

    @property
    def is_blocked(self) -> bool:
        return self.reason is RejectionReason.BLOCKED


@dataclass(frozen=True)
class SenderStatus:
    is_blocked: bool
    remaining_requests: int
    block_time_remaining: float
    window_reset_in: float


@dataclass(frozen=True)
class AdmissionStats:
    total_senders: int
    blocked_senders: int
    active_senders: int


@dataclass
class _SenderWindow:
    count: int
    window_start: float
    blocked_until: float | None = None
    last_message: str | None = None
    last_message_at: float | None = None

    def is_blocked(self, now: float) -> bool:
        return self.blocked_until is not None and now < self.blocked_until


_ALLOWED = AdmissionDecision(allowed=True)
_BLOCKED = AdmissionDecision(allowed=False, reason=RejectionReason.BLOCKED)
_DUPLICATE = AdmissionDecision(allowed=False, reason=RejectionReason.DUPLICATE)


class AdmissionController:
    """Sliding-window rate limiter keyed by sender address.

    All durations are in seconds. ``clock`` must be monotonic; it is
    injectable so tests can move time forward explicitly.
    """

    def __init__(
        self,
        max_requests: int = 8,
        window: float = 60.0,
        block_duration: float = 180.0,
        duplicate_interval: float = 2.0,
        cleanup_interval: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")

        self.max_requests = max_requests
        self.window = window
        self.block_duration = block_duration
        self.duplicate_interval = duplicate_interval
        self.cleanup_interval = cleanup_interval
        self._clock = clock
        self._senders: dict[str, _SenderWindow] = {}
        self._lock = threading.Lock()

    # -------------------------------------------------------------------
    # Admission
    # -------------------------------------------------------------------
    def admit(self, sender: str, text: str) -> AdmissionDecision:
        """Decide whether a message from ``sender`` may be processed."""
        now = self._clock()
        with self._lock:
            entry = self._senders.get(sender)
            if entry is None:
                entry = _SenderWindow(count=0, window_start=now)
                self._senders[sender] = entry

            if entry.is_blocked(now):
                return _BLOCKED

            if (
                entry.last_message == text
                and entry.last_message_at is not None
                and now - entry.last_message_at < self.duplicate_interval
            ):
                logger.debug("Duplicate message suppressed", sender=sender)
                return _DUPLICATE

            if now - entry.window_start >= self.window:
                entry.count = 0
                entry.window_start = now
                entry.blocked_until = None

            if entry.count >= self.max_requests:
                entry.blocked_until = now + self.block_duration
                logger.warning(
                    "Sender exceeded request quota, blocking",
                    sender=sender,
                    max_requests=self.max_requests,
                    block_seconds=self.block_duration,
                )
                return _BLOCKED

            entry.count += 1
            entry.last_message = text
            entry.last_message_at = now
            return _ALLOWED

    # -------------------------------------------------------------------
    # Support tooling
    # -------------------------------------------------------------------
    def status(self, sender: str) -> SenderStatus:
        now = self._clock()
        with self._lock:
            entry = self._senders.get(sender)
            if entry is None:
                return SenderStatus(
                    is_blocked=False,
                    remaining_requests=self.max_requests,
                    block_time_remaining=0.0,
                    window_reset_in=0.0,
                )

            blocked = entry.is_blocked(now)
            window_expired = now - entry.window_start >= self.window
            if blocked:
                remaining = 0
            elif window_expired:
                remaining = self.max_requests
            else:
                remaining = max(0, self.max_requests - entry.count)

            return SenderStatus(
                is_blocked=blocked,
                remaining_requests=remaining,
                block_time_remaining=max(0.0, entry.blocked_until - now) if blocked else 0.0,
                window_reset_in=0.0 if window_expired else entry.window_start + self.window - now,
            )

    def remaining_requests(self, sender: str) -> int:
        return self.status(sender).remaining_requests

    def is_blocked(self, sender: str) -> bool:
        return self.status(sender).is_blocked

    def block(self, sender: str, duration: float | None = None) -> None:
        """Block a sender manually for ``duration`` (default: the cool-down)."""
        now = self._clock()
        with self._lock:
            entry = self._senders.setdefault(sender, _SenderWindow(count=0, window_start=now))
            entry.blocked_until = now + (duration if duration is not None else self.block_duration)
        logger.info("Sender blocked manually", sender=sender)

    def unblock(self, sender: str) -> bool:
        """Lift a block and restart the sender's window. Returns False if unknown."""
        now = self._clock()
        with self._lock:
            entry = self._senders.get(sender)
            if entry is None:
                return False
            entry.blocked_until = None
            entry.count = 0
            entry.window_start = now
        logger.info("Sender unblocked", sender=sender)
        return True

    def reset(self, sender: str) -> None:
        """Forget everything known about a sender."""
        with self._lock:
            self._senders.pop(sender, None)

    def stats(self) -> AdmissionStats:
        now = self._clock()
        with self._lock:
            blocked = sum(1 for entry in self._senders.values() if entry.is_blocked(now))
            active = sum(1 for entry in self._senders.values() if now - entry.window_start < self.window)
            return AdmissionStats(
                total_senders=len(self._senders),
                blocked_senders=blocked,
                active_senders=active,
            )

    # -------------------------------------------------------------------
    # Memory bounding
    # -------------------------------------------------------------------
    def cleanup(self) -> int:
        """Evict senders idle for more than two windows. Blocked senders stay."""
        now = self._clock()
        with self._lock:
            stale = [
                sender
                for sender, entry in self._senders.items()
                if now - entry.window_start > self.window * 2 and not entry.is_blocked(now)
            ]
            for sender in stale:
                del self._senders[sender]

        if stale:
            logger.debug("Evicted idle senders", count=len(stale))
        return len(stale)

    async def run_cleanup(self, stop: asyncio.Event) -> None:
        """Sweep idle senders every ``cleanup_interval`` seconds until ``stop`` is set."""
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.cleanup_interval)
            except TimeoutError:
                self.cleanup()
