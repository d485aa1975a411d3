"""Captcha issue and verification endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from fabricfair.models.api import CaptchaVerifyRequest
from fabricfair.security.challenge_store import ChallengeStore
from fabricfair.web.dependencies import get_challenge_store, get_client_ip, parse_json_body
from fabricfair.web.responses import gate_failure

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/captcha", tags=["captcha"])


@router.get("/verify")
async def issue_captcha(
    session_id: str | None = Query(default=None, alias="sessionId"),
    store: ChallengeStore = Depends(get_challenge_store),
) -> dict[str, object]:
    if not session_id:
        raise HTTPException(status_code=400, detail="Missing session ID")
    challenge = store.generate(session_id)
    return {"code": challenge.code, "expiresAt": challenge.expires_at_ms}


@router.post("/verify", response_model=None)
async def verify_captcha(
    request: Request,
    store: ChallengeStore = Depends(get_challenge_store),
    ip: str = Depends(get_client_ip),
) -> JSONResponse:
    """Check a code; ``markAsUsed`` consumes it for the protected action."""
    body = await parse_json_body(request, CaptchaVerifyRequest)
    if not body.captcha_code or not body.session_id:
        raise HTTPException(status_code=400, detail="Missing captcha code or session ID")

    result = store.verify(
        body.session_id,
        body.captcha_code,
        ip,
        finalize=body.mark_as_used,
    )
    if not result.success:
        logger.info("captcha_verify_failed", reason=result.reason, blocked=result.blocked)
        return gate_failure(result.reason, result.error, result.blocked, result.remaining_ms)
    return JSONResponse({"success": True})
