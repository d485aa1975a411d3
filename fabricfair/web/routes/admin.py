"""Admin panel pages and PDF export."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates

from fabricfair.exceptions import ReportError
from fabricfair.reporter.catalog import cartela_name
from fabricfair.reporter.pdf import (
    PdfFonts,
    delivery_address,
    export_filename,
    parse_collections,
    render_submission_pdf,
)
from fabricfair.storage.repositories.submissions import SubmissionRepository
from fabricfair.web.auth.session import require_admin
from fabricfair.web.dependencies import get_pdf_fonts, get_submission_repo
from fabricfair.web.responses import attachment_disposition

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["admin"], dependencies=[Depends(require_admin)])
templates = Jinja2Templates(directory=str(Path(__file__).parent.parent / "templates"))
templates.env.globals["cartela_name"] = cartela_name


@router.get("/admin", response_class=HTMLResponse)
async def submissions_page(
    request: Request,
    repo: SubmissionRepository = Depends(get_submission_repo),
) -> HTMLResponse:
    submissions = await repo.list_recent()
    return templates.TemplateResponse(request, "admin_list.html", {"submissions": submissions})


@router.get("/admin/submissions/{submission_id}", response_class=HTMLResponse)
async def submission_detail_page(
    request: Request,
    submission_id: str,
    repo: SubmissionRepository = Depends(get_submission_repo),
) -> HTMLResponse:
    submission = await repo.get(submission_id)
    if submission is None:
        return HTMLResponse(content="Submission not found", status_code=404)
    return templates.TemplateResponse(
        request,
        "admin_detail.html",
        {
            "submission": submission,
            "address": delivery_address(submission),
            "collections": parse_collections(submission.collections),
        },
    )


@router.get("/api/admin/export-single")
async def export_single(
    submission_id: str | None = Query(default=None, alias="id"),
    repo: SubmissionRepository = Depends(get_submission_repo),
    fonts: PdfFonts = Depends(get_pdf_fonts),
) -> Response:
    if not submission_id:
        raise HTTPException(status_code=400, detail="Submission ID required")

    submission = await repo.get(submission_id)
    if submission is None:
        raise HTTPException(status_code=404, detail="Submission not found")

    try:
        content = render_submission_pdf(submission, fonts)
    except ReportError as exc:
        raise HTTPException(status_code=500, detail="Failed to generate PDF") from exc

    filename = export_filename(submission, datetime.now(UTC).date().isoformat())
    logger.info("submission_exported", submission_id=submission.id, bytes=len(content))
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": attachment_disposition(filename)},
    )
