"""Admin login gate: rate limit, optional captcha finalize, credentials."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from fabricfair.exceptions import GateError
from fabricfair.security.challenge_store import blocked_message
from fabricfair.security.passwords import verify_password

if TYPE_CHECKING:
    from fabricfair.security.challenge_store import ChallengeStore
    from fabricfair.security.rate_limit import RateLimiter
    from fabricfair.storage.repositories.admins import AdminRepository

logger = structlog.get_logger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"


@dataclass(frozen=True)
class LoginResult:
    success: bool
    email: str | None = None
    reason: GateError | None = None
    error: str | None = None
    blocked: bool = False
    remaining_ms: int | None = None


class AuthGate:
    """Unauthenticated -> Authenticated transition for the admin panel.

    Checks run in a fixed order: lockout, captcha finalize (only when the
    caller sent a captcha session), account lookup, password. Unknown
    account and wrong password produce the same result.
    """

    def __init__(
        self,
        admins: AdminRepository,
        rate_limiter: RateLimiter,
        challenges: ChallengeStore,
    ) -> None:
        self._admins = admins
        self._limiter = rate_limiter
        self._challenges = challenges

    async def login(
        self,
        email: str,
        password: str,
        client_id: str,
        session_id: str | None = None,
    ) -> LoginResult:
        status = self._limiter.check(client_id)
        if status.is_blocked:
            logger.warning("login_blocked", client_id=client_id, remaining_ms=status.remaining_ms)
            return LoginResult(
                success=False,
                reason=GateError.RATE_LIMITED,
                error=blocked_message(status.remaining_ms),
                blocked=True,
                remaining_ms=status.remaining_ms,
            )

        if session_id:
            captcha = self._challenges.verify(session_id, "", client_id, finalize=True)
            if not captcha.success:
                return LoginResult(
                    success=False,
                    reason=GateError.RATE_LIMITED if captcha.blocked else captcha.reason,
                    error=captcha.error,
                    blocked=captcha.blocked,
                    remaining_ms=captcha.remaining_ms,
                )

        admin = await self._admins.get_by_email(email)
        # Always hash-compare so unknown accounts take as long as wrong passwords.
        valid = verify_password(password, admin.password_hash if admin else None)
        if admin is None or not valid:
            failure = self._limiter.record_failure(client_id)
            logger.warning("login_failed", client_id=client_id, attempts=failure.attempts)
            return LoginResult(
                success=False,
                reason=GateError.INVALID_CREDENTIALS,
                error=INVALID_CREDENTIALS_MESSAGE,
            )

        self._limiter.reset(client_id)
        logger.info("login_succeeded", email=admin.email, client_id=client_id)
        return LoginResult(success=True, email=admin.email)
