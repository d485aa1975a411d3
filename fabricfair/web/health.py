"""Liveness probe for the intake service."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from fabricfair import __version__

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from fabricfair.security.challenge_store import ChallengeStore
    from fabricfair.security.rate_limit import RateLimiter

logger = structlog.get_logger(__name__)


async def check_health(
    engine: AsyncEngine,
    rate_limiter: RateLimiter | None = None,
    challenges: ChallengeStore | None = None,
) -> dict[str, object]:
    """Probe the database and report the size of the in-memory gate stores.

    A failed probe marks the service ``degraded``; the endpoint still answers 200.
    """
    report: dict[str, object] = {"status": "healthy", "version": __version__}
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        report["database"] = "connected"
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("health_database_unreachable", error=str(exc))
        report.update(status="degraded", database="unavailable")

    if rate_limiter is not None:
        report["trackedClients"] = len(rate_limiter)
    if challenges is not None:
        report["activeChallenges"] = len(challenges)
    return report
