"""Unit tests for AuthGate login ordering and lockout."""

from __future__ import annotations

import pytest

from fabricfair.exceptions import GateError
from fabricfair.models.database import Admin
from fabricfair.security.challenge_store import ChallengeStore
from fabricfair.security.passwords import hash_password
from fabricfair.security.rate_limit import RateLimiter
from fabricfair.web.auth.gate import AuthGate

IP = "9.9.9.9"
EMAIL = "admin@fabricfair.com"
PASSWORD = "correct-horse"


class FakeAdminRepository:
    def __init__(self, *admins: Admin) -> None:
        self._admins = {a.email: a for a in admins}
        self.lookups = 0

    async def get_by_email(self, email: str) -> Admin | None:
        self.lookups += 1
        return self._admins.get(email)


@pytest.fixture()
def limiter(clock) -> RateLimiter:
    return RateLimiter(clock=clock)


@pytest.fixture()
def challenges(limiter, clock) -> ChallengeStore:
    return ChallengeStore(limiter, clock=clock)


@pytest.fixture()
def admins() -> FakeAdminRepository:
    return FakeAdminRepository(Admin(email=EMAIL, password_hash=hash_password(PASSWORD, rounds=4)))


@pytest.fixture()
def gate(admins, limiter, challenges) -> AuthGate:
    return AuthGate(admins, limiter, challenges)


@pytest.mark.unit
class TestAuthGate:
    async def test_valid_credentials(self, gate, limiter) -> None:
        limiter.record_failure(IP)
        result = await gate.login(EMAIL, PASSWORD, IP)
        assert result.success is True
        assert result.email == EMAIL
        assert limiter.attempts(IP) == 0

    async def test_wrong_password_and_unknown_user_look_the_same(self, gate, limiter) -> None:
        wrong_password = await gate.login(EMAIL, "nope", IP)
        unknown_user = await gate.login("ghost@example.com", PASSWORD, IP)
        assert wrong_password.reason is unknown_user.reason is GateError.INVALID_CREDENTIALS
        assert wrong_password.error == unknown_user.error
        assert limiter.attempts(IP) == 2

    async def test_lockout_rejects_correct_credentials(self, gate, admins, clock) -> None:
        for _ in range(5):
            await gate.login(EMAIL, "nope", IP)
        lookups = admins.lookups

        clock.advance(3)
        result = await gate.login(EMAIL, PASSWORD, IP)
        assert result.success is False
        assert result.reason is GateError.RATE_LIMITED
        assert result.blocked is True
        assert result.remaining_ms == 27_000
        assert admins.lookups == lookups

        clock.advance(27)
        assert (await gate.login(EMAIL, PASSWORD, IP)).success is True

    async def test_challenge_finalized_before_credentials(self, gate, challenges, admins) -> None:
        code = challenges.generate("sess").code
        assert challenges.verify("sess", code, IP).success is True

        result = await gate.login(EMAIL, PASSWORD, IP, session_id="sess")
        assert result.success is True
        assert challenges.get("sess").used is True

        replay = await gate.login(EMAIL, PASSWORD, IP, session_id="sess")
        assert replay.success is False
        assert replay.reason is GateError.CHALLENGE_ALREADY_USED
        assert admins.lookups == 1

    async def test_unverified_challenge_blocks_login(self, gate, challenges, admins) -> None:
        challenges.generate("sess")
        result = await gate.login(EMAIL, PASSWORD, IP, session_id="sess")
        assert result.success is False
        assert result.reason is GateError.CHALLENGE_REQUIRED
        assert admins.lookups == 0

    async def test_challenge_failure_that_trips_block(self, gate, limiter) -> None:
        for _ in range(4):
            limiter.record_failure(IP)
        result = await gate.login(EMAIL, PASSWORD, IP, session_id="missing")
        assert result.success is False
        assert result.blocked is True
        assert result.reason is GateError.RATE_LIMITED
