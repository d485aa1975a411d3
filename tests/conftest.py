"""Shared test fixtures."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from fabricfair.config.settings import Settings
from fabricfair.security.passwords import hash_password
from fabricfair.storage.database import create_engine_from_url, init_db
from fabricfair.storage.repositories.admins import AdminRepository
from fabricfair.web.app import create_app

ADMIN_EMAIL = "admin@fabricfair.com"
ADMIN_PASSWORD = "correct-horse"


class FakeClock:
    """Manually advanced stand-in for ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        secret_key="test-secret",
        debug=True,
        log_level="WARNING",
    )


@pytest.fixture()
async def engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine_from_url("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def admin(engine):
    hashed = hash_password(ADMIN_PASSWORD, rounds=4)
    return await AdminRepository(engine).upsert(ADMIN_EMAIL, hashed)


@pytest.fixture()
def app(settings, engine):
    """A fresh app with its own stores and database."""
    return create_app(settings=settings, engine=engine)


@pytest.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture()
async def authed_client(app, admin):
    """An AsyncClient holding a valid admin session cookie."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post(
            "/api/auth/login",
            json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
        )
        assert resp.status_code == 200
        yield client


@pytest.fixture()
def credentials() -> dict[str, str]:
    return {"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}


@pytest.fixture()
def make_payload():
    """Factory for a valid intake form body; keyword overrides replace fields."""

    def _make(**overrides: object) -> dict[str, object]:
        payload: dict[str, object] = {
            "companyName": "Tkaniny Sp. z o.o.",
            "nip": "1234567890",
            "country": "Polska",
            "postalCode": "00-001",
            "city": "Warszawa",
            "street": "Marszalkowska",
            "buildingNumber": "10",
            "apartmentNumber": "4",
            "phone": "+48 600 000 000",
            "email": "buyer@example.com",
            "notes": "Deliver before March",
            "collections": [
                {"collection": "Sinope", "cartelas": [3, 1]},
                {"collection": "Magia", "cartelas": [7]},
            ],
        }
        payload.update(overrides)
        return payload

    return _make
