"""Public, locale-prefixed page routes."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from fabricfair.config.settings import Settings
from fabricfair.i18n import LOCALES, get_translations, is_locale, localized_path, preferred_locale
from fabricfair.reporter.catalog import COLLECTIONS
from fabricfair.web.dependencies import get_app_settings

router = APIRouter(tags=["pages"])

templates = Jinja2Templates(directory=str(Path(__file__).parent.parent / "templates"))


@router.get("/", include_in_schema=False)
async def root(
    request: Request, settings: Settings = Depends(get_app_settings)
) -> RedirectResponse:
    locale = preferred_locale(request.headers.get("accept-language"), settings.default_locale)
    return RedirectResponse(url=f"/{locale}", status_code=307)


@router.get("/{locale}", response_class=HTMLResponse, response_model=None)
async def intake_page(
    request: Request,
    locale: str,
    settings: Settings = Depends(get_app_settings),
) -> HTMLResponse | RedirectResponse:
    if not is_locale(locale):
        accept = request.headers.get("accept-language")
        preferred = preferred_locale(accept, settings.default_locale)
        return RedirectResponse(url=localized_path(request.url.path, preferred), status_code=307)

    other = next(code for code in LOCALES if code != locale)
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "locale": locale,
            "t": get_translations(locale),
            "switch_url": localized_path(request.url.path, other),
            "collections": COLLECTIONS,
        },
    )
