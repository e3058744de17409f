"""
CityFlow - PDF export of generated plans

Layout runs in two passes: the plan is first laid out into pages of
positioned text lines, then the pages are drawn on a reportlab canvas.
Knowing the page count up front lets every footer read "Page i of n".
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from io import BytesIO
from pathlib import Path
from typing import Any

from reportlab.lib.colors import Color, black
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.pdfgen import canvas as rl_canvas

from cityflow.core.config import settings
from cityflow.core.exceptions import AppError
from cityflow.domains.plan.content import DEFAULT_CURRENCY, GeneratedContent, parse_generated_content

logger = logging.getLogger(__name__)

# ============ Layout constants ============

MARGIN = 50
TITLE_SIZE = 24
HEADING_SIZE = 16
BODY_SIZE = 11
SMALL_SIZE = 9
LINE_GAP = 5
FOOTER_Y = 30
INDENT = "  "

TITLE_COLOR = Color(0.2, 0.2, 0.8)
DAY_COLOR = Color(0.2, 0.4, 0.8)
WARNING_HEADING_COLOR = Color(0.8, 0.4, 0)
WARNING_COLOR = Color(0.6, 0.3, 0)
MODIFICATION_HEADING_COLOR = Color(0.3, 0.6, 0.3)
MODIFICATION_COLOR = Color(0.2, 0.5, 0.2)
FOOTER_COLOR = Color(0.5, 0.5, 0.5)

CATEGORY_LABELS = {
    "history": "[History]",
    "food": "[Food]",
    "sport": "[Sport]",
    "nature": "[Nature]",
    "culture": "[Culture]",
    "transport": "[Transport]",
    "accommodation": "[Hotel]",
    "other": "[Activity]",
}

REGULAR_FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"
BUNDLED_FONT_PATH = Path(__file__).resolve().parents[3] / "assets" / "fonts" / "Lato-Regular.ttf"
STROKE_WIDTH_RATIO = 0.03


class PdfGenerationError(AppError):
    """Raised when a plan cannot be rendered to PDF."""

    def __init__(self, message: str = "PDF generation failed") -> None:
        super().__init__(message, status_code=500, is_operational=False)


def get_category_label(category: str | None) -> str:
    return CATEGORY_LABELS.get(category or "", "[Activity]")


def build_pdf_filename(plan_name: str) -> str:
    """Slugify the plan name into an attachment filename.

    "Weekend w Rzymie" -> "weekend-w-rzymie-plan.pdf"
    """
    slug = re.sub(r"[^a-z0-9]", "-", plan_name, flags=re.IGNORECASE)
    slug = re.sub(r"-+", "-", slug).lower()[:50]
    return f"{slug}-plan.pdf"


def resolve_fonts() -> tuple[str, str]:
    """Register the TTF fonts used for exports.

    ``PDF_FONT_PATH`` replaces the bundled Lato face. Without a bold TTF
    both names point at the regular face and bold lines are stroked.
    Helvetica is the last resort and cannot encode Polish letters.
    """
    regular = _register_ttf(settings.PDF_FONT_PATH or str(BUNDLED_FONT_PATH))
    if regular is None:
        logger.warning("No TTF font available for PDF export, using Helvetica")
        return REGULAR_FONT, BOLD_FONT

    bold = _register_ttf(settings.PDF_FONT_BOLD_PATH) if settings.PDF_FONT_BOLD_PATH else None
    return regular, bold or regular


def _register_ttf(path: str) -> str | None:
    name = f"CityFlow-{Path(path).stem}"
    if name in pdfmetrics.getRegisteredFontNames():
        return name
    try:
        pdfmetrics.registerFont(TTFont(name, path))
    except (OSError, TTFError) as e:
        logger.warning(f"Could not load PDF font {path}: {e}")
        return None
    return name


def wrap_text(text: str, font_name: str, font_size: float, max_width: float) -> list[str]:
    """Greedy word wrap measured with the font's real glyph widths.

    Words wider than a full line are broken at character level.
    """
    lines: list[str] = []
    for paragraph in text.splitlines() or [""]:
        current = ""
        for word in paragraph.split():
            candidate = f"{current} {word}" if current else word
            if pdfmetrics.stringWidth(candidate, font_name, font_size) <= max_width:
                current = candidate
                continue

            if current:
                lines.append(current)
            current = ""
            while pdfmetrics.stringWidth(word, font_name, font_size) > max_width:
                cut = _fitting_prefix_length(word, font_name, font_size, max_width)
                lines.append(word[:cut])
                word = word[cut:]
            current = word
        if current:
            lines.append(current)
    return lines


def _fitting_prefix_length(word: str, font_name: str, font_size: float, max_width: float) -> int:
    length = 1
    while (
        length < len(word)
        and pdfmetrics.stringWidth(word[: length + 1], font_name, font_size) <= max_width
    ):
        length += 1
    return length


def _format_short_date(value: Any) -> str:
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.strftime("%d.%m.%Y")
    return str(value)


def _format_day_heading(value: str) -> str:
    """'2025-06-02' -> 'Monday, June 2, 2025'; other strings pass through."""
    try:
        day = date.fromisoformat(value)
    except ValueError:
        return value
    return f"{day:%A}, {day:%B} {day.day}, {day.year}"


# ============ Layout ============


@dataclass
class TextLine:
    text: str
    y: float
    font: str
    size: float
    color: Color = black
    stroke: bool = False


@dataclass
class PageLayout:
    lines: list[TextLine] = field(default_factory=list)


class PlanPdfLayout:
    """Lays a plan out onto pages, tracking the vertical cursor."""

    def __init__(
        self,
        regular_font: str = REGULAR_FONT,
        bold_font: str = BOLD_FONT,
        page_size: tuple[float, float] = A4,
    ) -> None:
        self.regular_font = regular_font
        self.bold_font = bold_font
        self.page_width, self.page_height = page_size
        self.stroke_bold = bold_font == regular_font
        self.pages: list[PageLayout] = []
        self.y = 0.0
        self._new_page()

    @property
    def text_width(self) -> float:
        return self.page_width - 2 * MARGIN

    def _new_page(self) -> None:
        self.pages.append(PageLayout())
        self.y = self.page_height - MARGIN

    def ensure_space(self, required: float) -> None:
        """Start a new page when the next block would cross the bottom margin."""
        if self.y - required < MARGIN:
            self._new_page()

    def draw(self, text: str, size: float, bold: bool = False, color: Color = black) -> None:
        font = self.bold_font if bold else self.regular_font
        stroke = self.stroke_bold and bold
        self.pages[-1].lines.append(TextLine(text, self.y, font, size, color, stroke))
        self.y -= size + LINE_GAP

    def draw_wrapped(
        self,
        text: str,
        size: float,
        prefix: str = "",
        bold: bool = False,
        color: Color = black,
    ) -> None:
        font = self.bold_font if bold else self.regular_font
        width = self.text_width - pdfmetrics.stringWidth(prefix, font, size)
        for line in wrap_text(text, font, size, width):
            self.ensure_space(size + LINE_GAP)
            self.draw(f"{prefix}{line}", size, bold, color)

    def skip(self, amount: float) -> None:
        self.y -= amount

    # ==================== Sections ====================

    def layout_plan(self, plan: Any) -> list[PageLayout]:
        """Lay out the whole plan and return its pages."""
        self.draw_wrapped(plan.name, TITLE_SIZE, bold=True, color=TITLE_COLOR)
        self.skip(10)

        self.draw_wrapped(f"Destination: {plan.destination}", BODY_SIZE)
        self.draw(
            f"Dates: {_format_short_date(plan.start_date)} - {_format_short_date(plan.end_date)}",
            BODY_SIZE,
        )
        if plan.notes:
            self.skip(5)
            self.draw("Notes:", BODY_SIZE, bold=True)
            self.draw_wrapped(plan.notes, BODY_SIZE)
        self.skip(20)

        content = parse_generated_content(plan.generated_content)
        if content is None or not content.days:
            self.draw("No generated plan available.", BODY_SIZE)
            return self.pages

        self._layout_notes(
            content.warnings,
            heading="Important notes:",
            prefix="! ",
            heading_color=WARNING_HEADING_COLOR,
            color=WARNING_COLOR,
        )
        self._layout_days(content)
        self._layout_notes(
            content.modifications,
            heading="AI modifications:",
            prefix="* ",
            heading_color=MODIFICATION_HEADING_COLOR,
            color=MODIFICATION_COLOR,
            trailing_gap=0,
        )
        return self.pages

    def _layout_notes(
        self,
        notes: list[str] | None,
        heading: str,
        prefix: str,
        heading_color: Color,
        color: Color,
        trailing_gap: float = 15,
    ) -> None:
        if not notes:
            return
        self.ensure_space(100)
        self.draw(heading, HEADING_SIZE, bold=True, color=heading_color)
        self.skip(-5)
        for note in notes:
            self.ensure_space(40)
            self.draw_wrapped(note, SMALL_SIZE, prefix=prefix, color=color)
        self.skip(trailing_gap)

    def _layout_days(self, content: GeneratedContent) -> None:
        currency = content.currency or DEFAULT_CURRENCY
        for day in content.days:
            self.ensure_space(60)
            self.draw(_format_day_heading(day.date), HEADING_SIZE, bold=True, color=DAY_COLOR)
            self.skip(5)

            if not day.items:
                self.draw(f"{INDENT}No activities planned for this day.", BODY_SIZE)
                self.skip(10)
                continue

            for item in day.items:
                self.ensure_space(80)
                time_prefix = f"{item.time} - " if item.time else INDENT
                self.draw_wrapped(
                    f"{time_prefix}{get_category_label(item.category)} {item.title}",
                    BODY_SIZE,
                    bold=True,
                )
                if item.description:
                    self.draw_wrapped(item.description, SMALL_SIZE, prefix=INDENT)
                if item.location:
                    self.draw_wrapped(f"Location: {item.location}", SMALL_SIZE, prefix=INDENT)
                if item.estimated_price and item.estimated_price != "0":
                    self.ensure_space(SMALL_SIZE + LINE_GAP)
                    self.draw(f"{INDENT}Cost: {item.estimated_price} {currency}", SMALL_SIZE)
                self.skip(5)
            self.skip(15)


# ============ Rendering ============


def _draw_line(pdf: rl_canvas.Canvas, line: TextLine) -> None:
    # Text render mode persists between text objects, so it is set on every line
    pdf.setFillColor(line.color)
    pdf.setStrokeColor(line.color)
    pdf.setLineWidth(line.size * STROKE_WIDTH_RATIO)
    text = pdf.beginText(MARGIN, line.y)
    text.setFont(line.font, line.size)
    text.setTextRenderMode(2 if line.stroke else 0)
    text.textOut(line.text)
    pdf.drawText(text)


def render_pages(pages: list[PageLayout], regular_font: str, title: str) -> bytes:
    """Draw laid-out pages and their footers onto a PDF canvas."""
    buffer = BytesIO()
    pdf = rl_canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(title)
    pdf.setCreator(settings.APP_NAME)

    total = len(pages)
    for number, page in enumerate(pages, start=1):
        for line in page.lines:
            _draw_line(pdf, line)

        footer = f"Generated by CityFlow - Page {number} of {total}"
        _draw_line(pdf, TextLine(footer, FOOTER_Y, regular_font, SMALL_SIZE, FOOTER_COLOR))
        pdf.showPage()

    pdf.save()
    return buffer.getvalue()


def generate_plan_pdf(plan: Any) -> bytes:
    """Render a plan (model or response schema) as a PDF document.

    Raises:
        PdfGenerationError: On any failure while laying out or drawing
    """
    logger.debug(f"Starting PDF generation for plan {plan.id}")
    try:
        regular_font, bold_font = resolve_fonts()
        layout = PlanPdfLayout(regular_font, bold_font)
        pages = layout.layout_plan(plan)
        pdf_bytes = render_pages(pages, regular_font, plan.name)
    except Exception as e:
        logger.error(f"Failed to generate PDF for plan {plan.id}: {e}")
        raise PdfGenerationError() from e

    logger.info(f"PDF generated for plan {plan.id} ({len(pdf_bytes)} bytes, {len(pages)} page(s))")
    return pdf_bytes
