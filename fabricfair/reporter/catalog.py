"""Fabric collections offered at the fair and sample (cartela) labels."""

from __future__ import annotations

COLLECTIONS: tuple[str, ...] = ("Sinope", "Premier Home", "Decency", "Magia")
LEGACY_COLLECTION = "Legacy"


def cartela_name(collection: str, number: int) -> str:
    """Label printed next to a sample checkbox, e.g. ``Sinope 07``."""
    return f"{collection} {number:02d}"


def sample_word(count: int) -> str:
    """Polish noun for "sample" agreeing with ``count``."""
    if count == 1:
        return "probka"
    if count % 10 in (2, 3, 4) and count % 100 not in (12, 13, 14):
        return "probki"
    return "probek"
