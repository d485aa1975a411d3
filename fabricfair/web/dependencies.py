"""Request-scoped accessors for the services the app factory wires up."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from fabricfair.exceptions import InvalidBodyError
from fabricfair.security.rate_limit import client_ip

if TYPE_CHECKING:
    from fabricfair.config.settings import Settings
    from fabricfair.reporter.pdf import PdfFonts
    from fabricfair.security.challenge_store import ChallengeStore
    from fabricfair.security.rate_limit import RateLimiter
    from fabricfair.storage.repositories.submissions import SubmissionRepository
    from fabricfair.web.auth.gate import AuthGate

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_challenge_store(request: Request) -> ChallengeStore:
    return request.app.state.challenge_store


def get_submission_repo(request: Request) -> SubmissionRepository:
    return request.app.state.submission_repo


def get_auth_gate(request: Request) -> AuthGate:
    return request.app.state.auth_gate


def get_pdf_fonts(request: Request) -> PdfFonts:
    return request.app.state.pdf_fonts


def get_client_ip(request: Request) -> str:
    """Rate-limit key for the caller, honouring only the configured proxies."""
    return client_ip(request, request.app.state.settings.trusted_proxies)


def validation_details(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {"path": [str(p) for p in err["loc"]], "message": err["msg"]}
        for err in exc.errors(include_url=False, include_input=False)
    ]


async def parse_json_body(request: Request, model: type[ModelT]) -> ModelT:
    """Decode and validate the request body; failures become ``InvalidBodyError``."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidBodyError("Invalid JSON body") from exc
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise InvalidBodyError("Validation failed", validation_details(exc)) from exc
