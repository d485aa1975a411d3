"""Cookie-based admin sessions."""

from __future__ import annotations

import hashlib
import hmac
import secrets
import time
from collections.abc import Callable
from typing import Any

import structlog
from fastapi import HTTPException, Request

logger = structlog.get_logger(__name__)

SESSION_COOKIE = "admin-session"


class SessionAuth:
    """Signed opaque tokens validated against a server-side session table."""

    def __init__(
        self,
        secret_key: str,
        max_age: int = 60 * 60 * 24 * 7,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret_key.encode()
        self._max_age = max_age
        self._clock = clock
        self._sessions: dict[str, dict[str, Any]] = {}

    @property
    def max_age(self) -> int:
        return self._max_age

    def create_session(self, email: str) -> str:
        """Create a new session and return the token."""
        token = secrets.token_urlsafe(32)
        signed_token = f"{token}.{self._sign(token)}"
        self._sessions[signed_token] = {"email": email, "created_at": self._clock()}
        logger.info("session_created", email=email)
        return signed_token

    def validate_session(self, token: str | None) -> dict[str, Any] | None:
        """Return the session data, or None for forged, unknown or stale tokens."""
        if not token or "." not in token:
            return None

        raw_token, signature = token.rsplit(".", 1)
        if not hmac.compare_digest(signature, self._sign(raw_token)):
            return None

        session = self._sessions.get(token)
        if not session:
            return None

        if self._clock() - session["created_at"] > self._max_age:
            self.destroy_session(token)
            return None

        return session

    def destroy_session(self, token: str) -> None:
        if self._sessions.pop(token, None) is not None:
            logger.info("session_destroyed")

    def _sign(self, data: str) -> str:
        return hmac.new(self._secret, data.encode(), hashlib.sha256).hexdigest()[:32]


def get_session_auth(request: Request) -> SessionAuth:
    return request.app.state.session_auth


def require_admin(request: Request) -> dict[str, Any]:
    """FastAPI dependency: the current admin session or a 401.

    The app turns 401s on page routes into a redirect to the login page.
    """
    session = get_session_auth(request).validate_session(request.cookies.get(SESSION_COOKIE))
    if session is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return session
