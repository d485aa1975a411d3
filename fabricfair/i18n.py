"""Locale negotiation and localized URL helpers for the public pages."""

from __future__ import annotations

from typing import Literal

Locale = Literal["pl", "en"]

LOCALES: tuple[Locale, ...] = ("pl", "en")
DEFAULT_LOCALE: Locale = "pl"

# Page chrome only; form copy lives in the templates.
TRANSLATIONS: dict[str, dict[str, str]] = {
    "pl": {
        "title": "Fabric Fair - Zamow probki",
        "heading": "Formularz zamowienia probek",
        "submit": "Wyslij zgloszenie",
        "switch_language": "English",
    },
    "en": {
        "title": "Fabric Fair - Request samples",
        "heading": "Sample request form",
        "submit": "Send request",
        "switch_language": "Polski",
    },
}


def is_locale(value: str) -> bool:
    return value in LOCALES


def get_translations(locale: str) -> dict[str, str]:
    return TRANSLATIONS.get(locale, TRANSLATIONS[DEFAULT_LOCALE])


def preferred_locale(accept_language: str | None, default: str = DEFAULT_LOCALE) -> str:
    """Pick the best supported locale from an ``Accept-Language`` header."""
    if not accept_language:
        return default

    ranked: list[tuple[float, int, str]] = []
    for position, part in enumerate(accept_language.split(",")):
        tag, _, params = part.strip().partition(";")
        quality = 1.0
        params = params.strip()
        if params.startswith("q="):
            try:
                quality = float(params[2:])
            except ValueError:
                quality = 0.0
        language = tag.split("-")[0].strip().lower()
        if language:
            ranked.append((-quality, position, language))

    for _, _, language in sorted(ranked):
        if is_locale(language):
            return language
    return default


def locale_from_path(path: str) -> str:
    segments = [s for s in path.split("/") if s]
    if segments and is_locale(segments[0]):
        return segments[0]
    return DEFAULT_LOCALE


def localized_path(path: str, locale: str) -> str:
    """Rewrite ``path`` under ``locale``; admin paths are returned unchanged."""
    segments = [s for s in path.split("/") if s]
    if segments and is_locale(segments[0]):
        segments.pop(0)
    if segments and segments[0] == "admin":
        return path
    rest = "/" + "/".join(segments) if segments else ""
    return f"/{locale}{rest}"
