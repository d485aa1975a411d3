"""Per-client failure counting with a timed lockout."""

from __future__ import annotations

import asyncio
import contextlib
import threading
import time
from collections.abc import Callable, Collection
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from starlette.requests import Request

logger = structlog.get_logger(__name__)

MAX_ATTEMPTS = 5
BLOCK_SECONDS = 30.0
IDLE_SECONDS = 300.0
SWEEP_INTERVAL_SECONDS = 60.0


@dataclass
class RateLimitEntry:
    attempts: int
    blocked_until: float | None
    last_attempt: float


@dataclass(frozen=True)
class RateLimitStatus:
    is_blocked: bool
    remaining_ms: int | None = None


@dataclass(frozen=True)
class FailureResult:
    is_blocked: bool
    attempts: int
    remaining_ms: int | None = None


def _to_ms(seconds: float) -> int:
    return max(0, int(seconds * 1000))


class RateLimiter:
    """In-memory attempt counter keyed by client identifier (usually an IP).

    After ``max_attempts`` consecutive failures the client is blocked for
    ``block_seconds``. A success resets the entry completely. Nothing here
    raises: an unknown client has zero attempts and is not blocked.
    """

    def __init__(
        self,
        max_attempts: int = MAX_ATTEMPTS,
        block_seconds: float = BLOCK_SECONDS,
        idle_seconds: float = IDLE_SECONDS,
        sweep_interval: float = SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._max_attempts = max_attempts
        self._block_seconds = block_seconds
        self._idle_seconds = idle_seconds
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()
        self._sweeper: asyncio.Task[None] | None = None

    def check(self, client_id: str) -> RateLimitStatus:
        """Report whether ``client_id`` is currently locked out."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(client_id)
            if entry is None or entry.blocked_until is None:
                return RateLimitStatus(is_blocked=False)
            if now < entry.blocked_until:
                return RateLimitStatus(
                    is_blocked=True, remaining_ms=_to_ms(entry.blocked_until - now)
                )
            # Block elapsed: start over.
            del self._entries[client_id]
            return RateLimitStatus(is_blocked=False)

    def record_failure(self, client_id: str) -> FailureResult:
        """Count one failed attempt and block the client at the threshold."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(client_id)
            if entry is None:
                entry = RateLimitEntry(attempts=0, blocked_until=None, last_attempt=now)
                self._entries[client_id] = entry

            entry.attempts += 1
            entry.last_attempt = now

            if entry.attempts < self._max_attempts:
                return FailureResult(is_blocked=False, attempts=entry.attempts)

            # An active block keeps its deadline so the wait never grows.
            if entry.blocked_until is None or now >= entry.blocked_until:
                entry.blocked_until = now + self._block_seconds
                logger.warning(
                    "rate_limit_blocked",
                    client_id=client_id,
                    attempts=entry.attempts,
                    block_seconds=self._block_seconds,
                )
            return FailureResult(
                is_blocked=True,
                attempts=entry.attempts,
                remaining_ms=_to_ms(entry.blocked_until - now),
            )

    def reset(self, client_id: str) -> None:
        """Forget every recorded failure for ``client_id``."""
        with self._lock:
            self._entries.pop(client_id, None)

    def attempts(self, client_id: str) -> int:
        with self._lock:
            entry = self._entries.get(client_id)
            return entry.attempts if entry else 0

    def sweep(self) -> int:
        """Drop idle entries that are not serving an active block."""
        now = self._clock()
        removed = 0
        with self._lock:
            for client_id, entry in list(self._entries.items()):
                block_over = entry.blocked_until is None or now > entry.blocked_until
                if block_over and now - entry.last_attempt > self._idle_seconds:
                    del self._entries[client_id]
                    removed += 1
        if removed:
            logger.debug("rate_limit_swept", removed=removed)
        return removed

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Background sweep lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Schedule the periodic sweep on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())

    async def stop(self) -> None:
        """Cancel the periodic sweep and wait for it to finish."""
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweeper
        self._sweeper = None

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            self.sweep()


def client_ip(request: Request, trusted_proxies: Collection[str] = ("*",)) -> str:
    """Caller address used as the rate-limit key.

    ``X-Forwarded-For`` (first hop) and ``X-Real-IP`` are read only when the
    socket peer is listed in ``trusted_proxies``; ``"*"`` trusts every peer.
    Otherwise the socket peer itself is the key.
    """
    peer = request.client.host if request.client and request.client.host else None
    if "*" in trusted_proxies or (peer is not None and peer in trusted_proxies):
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
        real_ip = request.headers.get("x-real-ip")
        if real_ip and real_ip.strip():
            return real_ip.strip()
    return peer or "unknown"
