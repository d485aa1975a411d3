"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING
from urllib.parse import quote

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from fabricfair import __version__
from fabricfair.config.logging import setup_logging
from fabricfair.config.settings import Settings, get_settings
from fabricfair.exceptions import InvalidBodyError
from fabricfair.reporter.pdf import load_fonts
from fabricfair.security.challenge_store import ChallengeStore
from fabricfair.security.rate_limit import RateLimiter
from fabricfair.storage.database import create_engine_from_url, init_db
from fabricfair.storage.repositories.admins import AdminRepository
from fabricfair.storage.repositories.submissions import SubmissionRepository
from fabricfair.web.auth.gate import AuthGate
from fabricfair.web.auth.session import SessionAuth
from fabricfair.web.health import check_health
from fabricfair.web.middleware import RequestIDMiddleware, SecurityHeadersMiddleware
from fabricfair.web.routes.admin import router as admin_router
from fabricfair.web.routes.auth import router as auth_router
from fabricfair.web.routes.captcha import router as captcha_router
from fabricfair.web.routes.pages import router as pages_router
from fabricfair.web.routes.submissions import router as submissions_router

if TYPE_CHECKING:
    from fastapi.exceptions import HTTPException
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create tables and run the gate sweeps for the life of the server."""
    await init_db(app.state.engine)
    app.state.rate_limiter.start()
    app.state.challenge_store.start()
    logger.info("app_started")
    try:
        yield
    finally:
        await app.state.challenge_store.stop()
        await app.state.rate_limiter.stop()
        await app.state.engine.dispose()
        logger.info("app_stopped")


def create_app(settings: Settings | None = None, engine: AsyncEngine | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    ``settings`` and ``engine`` default to the environment configuration;
    tests pass their own so each app gets isolated stores and data.
    """
    settings = settings or get_settings()
    setup_logging(log_level=settings.log_level, json_output=not settings.debug)

    app = FastAPI(
        title="FabricFair",
        description="Trade fair sample requests and admin review",
        version=__version__,
        lifespan=lifespan,
    )

    engine = engine or create_engine_from_url(settings.database_url, echo=settings.debug)
    rate_limiter = RateLimiter(
        max_attempts=settings.rate_limit_max_attempts,
        block_seconds=settings.rate_limit_block_seconds,
        idle_seconds=settings.rate_limit_idle_seconds,
        sweep_interval=settings.rate_limit_sweep_seconds,
    )
    challenge_store = ChallengeStore(
        rate_limiter,
        ttl_seconds=settings.challenge_ttl_seconds,
        verified_window_seconds=settings.challenge_verified_window_seconds,
        used_grace_seconds=settings.challenge_used_grace_seconds,
        sweep_interval=settings.challenge_sweep_seconds,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.rate_limiter = rate_limiter
    app.state.challenge_store = challenge_store
    app.state.session_auth = SessionAuth(
        settings.secret_key, max_age=settings.session_max_age_seconds
    )
    app.state.submission_repo = SubmissionRepository(engine)
    app.state.auth_gate = AuthGate(AdminRepository(engine), rate_limiter, challenge_store)
    app.state.pdf_fonts = load_fonts(settings.pdf_font_path, settings.pdf_font_bold_path)

    # Redirect 401s to the admin login for browser page requests; return JSON for API
    @app.exception_handler(401)
    async def auth_redirect_handler(
        request: Request, exc: HTTPException
    ) -> RedirectResponse | JSONResponse:
        if not request.url.path.startswith("/api/"):
            next_url = quote(str(request.url.path), safe="/")
            return RedirectResponse(url=f"/admin/login?next={next_url}", status_code=302)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(InvalidBodyError)
    async def invalid_body_handler(request: Request, exc: InvalidBodyError) -> JSONResponse:
        content: dict[str, object] = {"error": exc.error}
        if exc.details is not None:
            content["details"] = exc.details
        return JSONResponse(status_code=400, content=content)

    # Middleware order: last added runs first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/api/health")
    async def health_check() -> dict[str, object]:
        return await check_health(engine, rate_limiter, challenge_store)

    app.include_router(auth_router)
    app.include_router(captcha_router)
    app.include_router(submissions_router)
    app.include_router(admin_router)
    # Last: its "/{locale}" pattern would shadow single-segment routes above.
    app.include_router(pages_router)

    logger.info("app_created")
    return app
