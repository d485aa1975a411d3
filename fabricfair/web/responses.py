"""JSON bodies for gate refusals and headers for file downloads."""

from __future__ import annotations

import math
import unicodedata
from urllib.parse import quote

from fastapi.responses import JSONResponse

from fabricfair.exceptions import GateError

# Letters NFKD leaves whole (no combining mark to strip).
_ASCII_FOLD = str.maketrans(
    {"Ł": "L", "ł": "l", "Ø": "O", "ø": "o", "Đ": "D", "đ": "d", "ß": "ss"}
)


def gate_failure(
    reason: GateError | None,
    error: str | None,
    blocked: bool = False,
    remaining_ms: int | None = None,
) -> JSONResponse:
    """Map a refused gate check to 429 (blocked), 401 or 400."""
    reason = reason or GateError.CHALLENGE_REQUIRED
    status_code = 429 if blocked else reason.status_code
    body: dict[str, object] = {
        "detail": error or "Request refused",
        "error": reason.value,
    }
    if blocked:
        body["blocked"] = True
        body["remainingTime"] = math.ceil((remaining_ms or 0) / 1000)
    headers = {"Retry-After": str(body["remainingTime"])} if blocked else None
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def ascii_filename(filename: str) -> str:
    """Fold ``filename`` to ASCII: diacritics dropped, anything else becomes ``_``."""
    decomposed = unicodedata.normalize("NFKD", filename.translate(_ASCII_FOLD))
    return "".join(
        c if c.isascii() and c not in '"\\' else "_"
        for c in decomposed
        if not unicodedata.combining(c)
    )


def attachment_disposition(filename: str) -> str:
    """``Content-Disposition`` for a download, with an RFC 5987 UTF-8 name.

    Header values travel as latin-1, so the plain ``filename`` carries the
    ASCII fold and ``filename*`` the exact name.
    """
    encoded = quote(filename, safe="")
    return f"attachment; filename=\"{ascii_filename(filename)}\"; filename*=UTF-8''{encoded}"
