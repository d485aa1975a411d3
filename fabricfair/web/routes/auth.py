"""Admin authentication routes: login page, password login, logout."""

from __future__ import annotations

from pathlib import Path

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from fabricfair.config.settings import Settings
from fabricfair.models.api import LoginRequest
from fabricfair.web.auth.gate import AuthGate
from fabricfair.web.auth.session import SESSION_COOKIE, get_session_auth
from fabricfair.web.dependencies import (
    get_app_settings,
    get_auth_gate,
    get_client_ip,
    parse_json_body,
)
from fabricfair.web.responses import gate_failure

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["auth"])
templates = Jinja2Templates(directory=str(Path(__file__).parent.parent / "templates"))


@router.get("/admin/login", response_class=HTMLResponse)
async def login_page(request: Request) -> HTMLResponse:
    """Render the login form, or skip it when already signed in."""
    if get_session_auth(request).validate_session(request.cookies.get(SESSION_COOKIE)):
        return RedirectResponse(url="/admin", status_code=302)  # type: ignore[return-value]
    next_url = request.query_params.get("next", "/admin")
    # Only same-site paths; "//host" would leave the site.
    if not next_url.startswith("/") or next_url.startswith("//"):
        next_url = "/admin"
    return templates.TemplateResponse(request, "login.html", {"next": next_url})


@router.post("/api/auth/login", response_model=None)
async def login(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    settings: Settings = Depends(get_app_settings),
    ip: str = Depends(get_client_ip),
) -> JSONResponse:
    body = await parse_json_body(request, LoginRequest)
    if not body.login or not body.password:
        raise HTTPException(status_code=400, detail="Username and password are required")

    result = await gate.login(
        email=body.login,
        password=body.password,
        client_id=ip,
        session_id=body.session_id,
    )
    if not result.success:
        return gate_failure(result.reason, result.error, result.blocked, result.remaining_ms)

    auth = get_session_auth(request)
    token = auth.create_session(result.email or body.login)
    response = JSONResponse({"success": True})
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=not settings.debug,
        samesite="strict",
        max_age=auth.max_age,
    )
    logger.info("admin_logged_in", email=result.email)
    return response


@router.post("/api/auth/logout")
async def logout(request: Request) -> JSONResponse:
    """Invalidate the current session and clear its cookie."""
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        get_session_auth(request).destroy_session(token)
    response = JSONResponse({"status": "logged_out"})
    response.delete_cookie(SESSION_COOKIE)
    logger.info("admin_logged_out")
    return response
