"""Render a stored submission as a printable A4 order sheet."""

from __future__ import annotations

import io
import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.pdfgen import canvas

from fabricfair.exceptions import ConfigError, ReportError
from fabricfair.reporter.catalog import LEGACY_COLLECTION, cartela_name, sample_word

if TYPE_CHECKING:
    from fabricfair.models.database import Submission

logger = structlog.get_logger(__name__)

GOLD = (201 / 255, 162 / 255, 77 / 255)
BLACK = (0, 0, 0)
GREY = (100 / 255, 100 / 255, 100 / 255)

MARGIN_X = 20  # mm
TOP_Y = 20  # mm, cursor position after a page break
CHECKBOX_SIZE = 3  # mm


@dataclass(frozen=True)
class PdfFonts:
    regular: str = "Helvetica"
    bold: str = "Helvetica-Bold"


# Standard PDF fonts: WinAnsi only, so Polish letters such as "ł" do not render.
BUILTIN_FONTS = PdfFonts()

SYSTEM_FONT_PATHS = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
)


def load_fonts(regular_path: str | None = None, bold_path: str | None = None) -> PdfFonts:
    """Register the TrueType family used for the order sheet.

    A configured font that cannot be loaded raises ``ConfigError``. Without
    configuration the first DejaVu font from ``SYSTEM_FONT_PATHS`` is used,
    falling back to Helvetica.
    """
    if regular_path:
        return _register_family(Path(regular_path), Path(bold_path) if bold_path else None)

    for candidate in SYSTEM_FONT_PATHS:
        if not Path(candidate).is_file():
            continue
        try:
            return _register_family(Path(candidate), None)
        except ConfigError as exc:
            logger.warning("pdf_system_font_unusable", path=candidate, error=str(exc))

    logger.info("pdf_font_fallback", font=BUILTIN_FONTS.regular)
    return BUILTIN_FONTS


def _register_family(regular: Path, bold: Path | None) -> PdfFonts:
    if bold is None:
        sibling = regular.with_name(f"{regular.stem}-Bold{regular.suffix}")
        bold = sibling if sibling.is_file() else regular

    names: list[str] = []
    for path in (regular, bold):
        if not path.is_file():
            raise ConfigError(f"PDF font not found: {path}")
        try:
            pdfmetrics.registerFont(TTFont(path.stem, str(path)))
        except (TTFError, OSError) as exc:
            raise ConfigError(f"PDF font {path} cannot be loaded: {exc}") from exc
        names.append(path.stem)

    logger.info("pdf_fonts_registered", regular=names[0], bold=names[1])
    return PdfFonts(regular=names[0], bold=names[1])


@dataclass
class CollectionBlock:
    collection: str
    cartelas: list[int]


def parse_collections(raw: str | None) -> list[CollectionBlock]:
    """Decode the stored ``collections`` JSON.

    Older records stored a bare list of sample numbers; those are shown
    under a single "Legacy" heading, sorted.
    """
    if not raw:
        return []
    try:
        parsed: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("collections_parse_failed", error=str(exc))
        return []
    if not isinstance(parsed, list) or not parsed:
        return []
    if all(isinstance(item, int) for item in parsed):
        return [CollectionBlock(collection=LEGACY_COLLECTION, cartelas=sorted(parsed))]

    blocks: list[CollectionBlock] = []
    for item in parsed:
        if not isinstance(item, dict):
            continue
        cartelas = [n for n in item.get("cartelas", []) if isinstance(n, int)]
        name = str(item.get("collection", ""))
        blocks.append(CollectionBlock(collection=name, cartelas=cartelas))
    return blocks


def delivery_address(submission: Submission) -> str | None:
    parts = [
        submission.country,
        submission.postal_code,
        submission.city,
        submission.street,
        submission.building_number,
    ]
    if all(parts):
        if submission.apartment_number:
            parts.append(submission.apartment_number)
        return ", ".join(p for p in parts if p)
    return submission.delivery_address


class _Sheet:
    """Top-down cursor over a reportlab canvas, measured in mm."""

    def __init__(self, pdf: canvas.Canvas, fonts: PdfFonts) -> None:
        self._pdf = pdf
        self._fonts = fonts
        self._page_height = A4[1] / mm
        self.y: float = TOP_Y

    def ensure_room(self, limit: float) -> None:
        if self.y > limit:
            self._pdf.showPage()
            self.y = TOP_Y

    def text(
        self,
        value: str,
        x: float = MARGIN_X,
        size: int = 11,
        bold: bool = False,
        color: tuple[float, float, float] = BLACK,
    ) -> None:
        self._pdf.setFont(self._fonts.bold if bold else self._fonts.regular, size)
        self._pdf.setFillColorRGB(*color)
        self._pdf.drawString(x * mm, (self._page_height - self.y) * mm, value)

    def rule(self, y: float, color: tuple[float, float, float] = GOLD) -> None:
        self._pdf.setStrokeColorRGB(*color)
        baseline = (self._page_height - y) * mm
        self._pdf.line(MARGIN_X * mm, baseline, 190 * mm, baseline)

    def checkbox(self, x: float) -> None:
        self._pdf.setStrokeColorRGB(*BLACK)
        self._pdf.setLineWidth(0.3 * mm)
        top = self.y - CHECKBOX_SIZE / 2
        self._pdf.rect(
            x * mm,
            (self._page_height - top - CHECKBOX_SIZE) * mm,
            CHECKBOX_SIZE * mm,
            CHECKBOX_SIZE * mm,
            stroke=1,
            fill=0,
        )


def render_submission_pdf(submission: Submission, fonts: PdfFonts = BUILTIN_FONTS) -> bytes:
    """Return the PDF bytes for one submission."""
    try:
        return _render(submission, fonts)
    except Exception as exc:
        logger.exception("pdf_render_failed", submission_id=submission.id)
        raise ReportError(f"Failed to render submission {submission.id}") from exc


def _render(submission: Submission, fonts: PdfFonts) -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(f"Fabric Fair - {submission.company_name}")
    sheet = _Sheet(pdf, fonts)

    sheet.text("Fabric Fair - Szczegoly Zgloszenia", size=20, bold=True, color=GOLD)
    sheet.rule(25)
    sheet.y = 35

    sheet.text("Informacje o Firmie", size=14, bold=True)
    sheet.y += 10
    for line in (
        f"Nazwa Firmy: {submission.company_name}",
        f"NIP: {submission.nip}",
        f"E-mail: {submission.email}",
        f"Nr. Telefonu: {submission.phone}",
    ):
        sheet.text(line)
        sheet.y += 7

    address = delivery_address(submission)
    if address:
        sheet.text(f"Adres Dostawy: {address}")
    sheet.y += 7

    if submission.notes:
        sheet.text(f"Notatka: {submission.notes}")
        sheet.y += 7

    sheet.ensure_room(250)
    sheet.text("Wybrane Kolekcje i Probki", size=14, bold=True)
    sheet.y += 10

    blocks = parse_collections(submission.collections)
    for block in blocks:
        sheet.ensure_room(270)
        sheet.text(f"{block.collection}:", size=12, bold=True, color=GOLD)
        sheet.y += 7

        for number in block.cartelas:
            sheet.ensure_room(280)
            sheet.checkbox(MARGIN_X)
            label_x = MARGIN_X + CHECKBOX_SIZE + 2
            sheet.text(cartela_name(block.collection, number), x=label_x, size=9)
            sheet.y += 5

        count = len(block.cartelas)
        sheet.text(f"Lacznie: {count} {sample_word(count)}", size=9, color=GREY)
        sheet.y += 7

    total = sum(len(b.cartelas) for b in blocks)
    sheet.ensure_room(280)
    sheet.text(f"Lacznie: {total} {sample_word(total)} z {len(blocks)} kolekcji")
    sheet.y += 7

    sheet.text("Data Zgloszenia:", bold=True)
    sheet.text(submission.created_at.strftime("%d.%m.%Y, %H:%M:%S"), x=70)

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def export_filename(submission: Submission, day: str) -> str:
    company = "".join(c if c.isalnum() or c in "-_ " else "_" for c in submission.company_name)
    return f"submission-{company.strip() or 'company'}-{day}.pdf"
