"""Public sample-request intake and the admin submission API."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from fabricfair.config.settings import Settings
from fabricfair.exceptions import GateError, StorageError
from fabricfair.i18n import locale_from_path
from fabricfair.models.api import SubmissionCreate, SubmissionDetail, SubmissionSummary
from fabricfair.security.challenge_store import ChallengeStore, blocked_message
from fabricfair.security.rate_limit import RateLimiter
from fabricfair.storage.repositories.submissions import SubmissionRepository
from fabricfair.web.auth.session import require_admin
from fabricfair.web.dependencies import (
    get_app_settings,
    get_challenge_store,
    get_client_ip,
    get_rate_limiter,
    get_submission_repo,
    parse_json_body,
)
from fabricfair.web.responses import gate_failure

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


def _request_locale(request: Request) -> str | None:
    referer = request.headers.get("referer")
    if not referer:
        return None
    return locale_from_path(urlparse(referer).path)


@router.post("", status_code=201, response_model=None)
async def create_submission(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
    challenges: ChallengeStore = Depends(get_challenge_store),
    repo: SubmissionRepository = Depends(get_submission_repo),
    settings: Settings = Depends(get_app_settings),
    ip: str = Depends(get_client_ip),
) -> JSONResponse:
    status = limiter.check(ip)
    if status.is_blocked:
        return gate_failure(
            GateError.RATE_LIMITED,
            blocked_message(status.remaining_ms),
            blocked=True,
            remaining_ms=status.remaining_ms,
        )

    data = await parse_json_body(request, SubmissionCreate)

    if settings.require_challenge_on_submit:
        if not data.session_id:
            return gate_failure(GateError.CHALLENGE_REQUIRED, "Captcha verification is required.")
        captcha = challenges.verify(data.session_id, data.captcha_code or "", ip, finalize=True)
        if not captcha.success:
            return gate_failure(
                captcha.reason, captcha.error, captcha.blocked, captcha.remaining_ms
            )

    try:
        submission = await repo.create(data, locale=_request_locale(request))
    except StorageError:
        logger.exception("submission_store_failed")
        return JSONResponse(status_code=500, content={"error": "Failed to create submission"})

    return JSONResponse(status_code=201, content={"success": True, "id": submission.id})


@router.get("", dependencies=[Depends(require_admin)], response_model=None)
async def read_submissions(
    submission_id: str | None = Query(default=None, alias="id"),
    repo: SubmissionRepository = Depends(get_submission_repo),
) -> dict[str, Any] | list[dict[str, Any]]:
    """One full record with ``?id=``, otherwise newest-first summaries."""
    if submission_id:
        submission = await repo.get(submission_id)
        if submission is None:
            raise HTTPException(status_code=404, detail="Submission not found")
        return SubmissionDetail.model_validate(submission).model_dump(mode="json", by_alias=True)

    return [
        SubmissionSummary.model_validate(s).model_dump(mode="json", by_alias=True)
        for s in await repo.list_recent()
    ]
