"""Short-lived one-time captcha codes with a verify-then-finalize flow.

A client first checks its code (``finalize=False``) for immediate feedback.
The protected action (login, submission) then consumes the proof exactly
once with ``finalize=True``. A verified code stays valid for a short window
so the two steps do not need to happen in the same request.
"""

from __future__ import annotations

import asyncio
import contextlib
import math
import secrets
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from fabricfair.exceptions import GateError
from fabricfair.security.rate_limit import RateLimiter

logger = structlog.get_logger(__name__)

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 6
TTL_SECONDS = 60.0
VERIFIED_WINDOW_SECONDS = 30.0
USED_GRACE_SECONDS = 5.0
SWEEP_INTERVAL_SECONDS = 30.0


@dataclass
class ChallengeEntry:
    code: str
    expires_at: float
    verified_at: float | None = None
    used: bool = False
    delete_after: float | None = None


@dataclass(frozen=True)
class GeneratedChallenge:
    code: str
    expires_at_ms: int


@dataclass(frozen=True)
class VerifyResult:
    success: bool
    error: str | None = None
    reason: GateError | None = None
    blocked: bool = False
    remaining_ms: int | None = None

    @property
    def remaining_seconds(self) -> int | None:
        if self.remaining_ms is None:
            return None
        return math.ceil(self.remaining_ms / 1000)


def new_code(length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def blocked_message(remaining_ms: int | None) -> str:
    seconds = math.ceil((remaining_ms or 0) / 1000)
    return f"Too many attempts. Try again in {seconds} seconds."


class ChallengeStore:
    """Captcha codes keyed by a client-chosen session identifier.

    Failed checks are charged to the caller through the shared
    :class:`RateLimiter`; a correct code clears the caller's record.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        ttl_seconds: float = TTL_SECONDS,
        verified_window_seconds: float = VERIFIED_WINDOW_SECONDS,
        used_grace_seconds: float = USED_GRACE_SECONDS,
        sweep_interval: float = SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._limiter = rate_limiter
        self._ttl = ttl_seconds
        self._verified_window = verified_window_seconds
        self._used_grace = used_grace_seconds
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._entries: dict[str, ChallengeEntry] = {}
        self._lock = threading.Lock()
        self._sweeper: asyncio.Task[None] | None = None

    def generate(self, session_id: str) -> GeneratedChallenge:
        """Issue a fresh code for ``session_id``, replacing any previous one."""
        now = self._clock()
        with self._lock:
            previous = self._entries.get(session_id)
            code = new_code()
            while previous is not None and code == previous.code:
                code = new_code()
            entry = ChallengeEntry(code=code, expires_at=now + self._ttl)
            self._entries[session_id] = entry
        logger.debug("challenge_generated", session_id=session_id)
        return GeneratedChallenge(code=code, expires_at_ms=int(entry.expires_at * 1000))

    def verify(
        self,
        session_id: str,
        submitted_code: str,
        client_id: str,
        finalize: bool = False,
    ) -> VerifyResult:
        """Check ``submitted_code`` for ``session_id``.

        With ``finalize=True`` a successful check also consumes the
        challenge; any later finalize for the same session is a replay.
        An empty code is only accepted when the challenge was already
        verified by an earlier call.
        """
        code = (submitted_code or "").strip().upper()

        status = self._limiter.check(client_id)
        if status.is_blocked:
            return VerifyResult(
                success=False,
                error=blocked_message(status.remaining_ms),
                reason=GateError.RATE_LIMITED,
                blocked=True,
                remaining_ms=status.remaining_ms,
            )

        now = self._clock()
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is not None and entry.delete_after is not None and now >= entry.delete_after:
                del self._entries[session_id]
                entry = None

            if entry is None:
                return self._fail(
                    client_id,
                    GateError.CHALLENGE_EXPIRED,
                    "Captcha expired or invalid. Please request a new code.",
                )

            if entry.used:
                logger.warning("challenge_replay", session_id=session_id, client_id=client_id)
                return self._fail(
                    client_id,
                    GateError.CHALLENGE_ALREADY_USED,
                    "Captcha code has already been used.",
                )

            if now > entry.expires_at:
                del self._entries[session_id]
                return self._fail(
                    client_id,
                    GateError.CHALLENGE_EXPIRED,
                    "Captcha code has expired. Please request a new code.",
                )

            if entry.verified_at is not None:
                if now - entry.verified_at > self._verified_window:
                    del self._entries[session_id]
                    return VerifyResult(
                        success=False,
                        error="Captcha verification has expired. Please request a new code.",
                        reason=GateError.CHALLENGE_EXPIRED,
                    )
                if finalize:
                    self._consume(entry, now)
                    logger.info("challenge_finalized", session_id=session_id)
                return VerifyResult(success=True)

            if not code:
                if finalize:
                    return VerifyResult(
                        success=False,
                        error="Captcha not verified. Verify the code first.",
                        reason=GateError.CHALLENGE_REQUIRED,
                    )
                return VerifyResult(
                    success=False,
                    error="Captcha code is required.",
                    reason=GateError.CHALLENGE_REQUIRED,
                )

            if not secrets.compare_digest(code, entry.code):
                return self._fail(client_id, GateError.CHALLENGE_MISMATCH, "Invalid captcha code.")

            entry.verified_at = now
            if finalize:
                self._consume(entry, now)

        self._limiter.reset(client_id)
        logger.info("challenge_verified", session_id=session_id, finalized=finalize)
        return VerifyResult(success=True)

    def _consume(self, entry: ChallengeEntry, now: float) -> None:
        entry.used = True
        entry.delete_after = now + self._used_grace

    def _fail(self, client_id: str, reason: GateError, message: str) -> VerifyResult:
        failure = self._limiter.record_failure(client_id)
        if failure.is_blocked:
            return VerifyResult(
                success=False,
                error=blocked_message(failure.remaining_ms),
                reason=reason,
                blocked=True,
                remaining_ms=failure.remaining_ms,
            )
        return VerifyResult(success=False, error=message, reason=reason)

    def get(self, session_id: str) -> ChallengeEntry | None:
        return self._entries.get(session_id)

    def sweep(self) -> int:
        """Delete expired challenges and elapsed tombstones."""
        now = self._clock()
        removed = 0
        with self._lock:
            for session_id, entry in list(self._entries.items()):
                tombstoned = entry.delete_after is not None and now >= entry.delete_after
                if now > entry.expires_at or tombstoned:
                    del self._entries[session_id]
                    removed += 1
        if removed:
            logger.debug("challenges_swept", removed=removed)
        return removed

    def __len__(self) -> int:
        return len(self._entries)

    def start(self) -> None:
        """Schedule the periodic sweep on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())

    async def stop(self) -> None:
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
