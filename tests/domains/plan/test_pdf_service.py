"""
Tests for PDF export of generated plans.
"""

from unittest.mock import patch

import pytest
from reportlab.pdfbase import pdfmetrics

from cityflow.core.config import settings
from cityflow.domains.plan.schemas import PlanResponse
from cityflow.domains.plan.services.pdf_service import (
    BODY_SIZE,
    LINE_GAP,
    MARGIN,
    PdfGenerationError,
    PlanPdfLayout,
    build_pdf_filename,
    generate_plan_pdf,
    get_category_label,
    resolve_fonts,
    wrap_text,
)

from conftest import build_generated_content, build_generated_plan, build_plan


def all_text(pages) -> list[str]:
    return [line.text for page in pages for line in page.lines]


@pytest.fixture
def default_fonts():
    """Font settings as shipped: bundled Lato, no bold face."""
    with patch.object(settings, "PDF_FONT_PATH", None), patch.object(settings, "PDF_FONT_BOLD_PATH", None):
        yield


class TestBuildPdfFilename:
    """Tests for build_pdf_filename."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Weekend w Rzymie", "weekend-w-rzymie-plan.pdf"),
            ("Kraków  2025", "krak-w-2025-plan.pdf"),
            ("A" * 60, "a" * 50 + "-plan.pdf"),
        ],
    )
    def test_slug(self, name, expected):
        """Test slugification of plan names."""
        assert build_pdf_filename(name) == expected


class TestWrapText:
    """Tests for wrap_text."""

    def test_lines_fit_the_width(self):
        """Test that every wrapped line fits the available width."""
        text = "Spacer po Plantach wokół Starego Miasta z przystankiem na obwarzanka " * 4
        lines = wrap_text(text, "Helvetica", 11, 200)

        assert len(lines) > 1
        for line in lines:
            assert pdfmetrics.stringWidth(line, "Helvetica", 11) <= 200
        assert " ".join(lines).split() == text.split()

    def test_long_word_is_broken(self):
        """Test that a word wider than a line is split at character level."""
        word = "Konstantynopolitańczykowianeczka" * 3
        lines = wrap_text(word, "Helvetica", 11, 100)

        assert len(lines) > 1
        assert "".join(lines) == word

    def test_short_text_is_one_line(self):
        """Test text that already fits."""
        assert wrap_text("Rynek Główny", "Helvetica", 11, 400) == ["Rynek Główny"]


class TestPlanPdfLayout:
    """Tests for the page layout."""

    def test_header_and_items(self):
        """Test the plan header and activity lines."""
        plan = build_generated_plan(notes="Bez pośpiechu")
        pages = PlanPdfLayout().layout_plan(plan)
        text = all_text(pages)

        assert text[0] == "Weekend w Krakowie"
        assert "Destination: Kraków" in text
        assert "Dates: 02.06.2025 - 03.06.2025" in text
        assert "Bez pośpiechu" in text
        assert "Monday, June 2, 2025" in text
        assert "09:00 - [Food] Śniadanie na Kazimierzu" in text
        assert "  Cost: 40 PLN" in text
        assert "  Location: Wawel 5, Kraków" in text
        assert "  No activities planned for this day." in text

    def test_free_items_have_no_cost_line(self):
        """Test that a price of "0" prints no cost line."""
        pages = PlanPdfLayout().layout_plan(build_generated_plan())
        assert "  Cost: 0 PLN" not in all_text(pages)

    def test_missing_content(self):
        """Test the placeholder for plans without generated content."""
        pages = PlanPdfLayout().layout_plan(build_plan())
        assert "No generated plan available." in all_text(pages)

    def test_warnings_and_modifications(self):
        """Test the optional warnings and modifications sections."""
        content = build_generated_content()
        content["warnings"] = ["Muzeum zamknięte w poniedziałki"]
        content["modifications"] = ["Przesunięto obiad"]
        pages = PlanPdfLayout().layout_plan(build_generated_plan(generated_content=content))
        text = all_text(pages)

        assert "Important notes:" in text
        assert "! Muzeum zamknięte w poniedziałki" in text
        assert "AI modifications:" in text
        assert "* Przesunięto obiad" in text
        assert text.index("Important notes:") < text.index("Monday, June 2, 2025")

    def test_long_plans_break_pages(self):
        """Test that content never crosses the bottom margin."""
        content = build_generated_content()
        content["days"][0]["items"] = [
            {
                "id": f"item-{i}",
                "title": f"Atrakcja {i}",
                "time": f"{8 + i // 6:02d}:{(i % 6) * 10:02d}",
                "description": "Opis " * 40,
                "category": "culture",
            }
            for i in range(40)
        ]
        pages = PlanPdfLayout().layout_plan(build_generated_plan(generated_content=content))

        assert len(pages) > 1
        for page in pages:
            for line in page.lines:
                assert line.y >= MARGIN - (BODY_SIZE + LINE_GAP)

    def test_category_labels(self):
        """Test category labels and the fallback."""
        assert get_category_label("history") == "[History]"
        assert get_category_label("accommodation") == "[Hotel]"
        assert get_category_label(None) == "[Activity]"
        assert get_category_label("nightlife") == "[Activity]"


class TestResolveFonts:
    """Tests for PDF font selection."""

    def test_bundled_font_covers_polish(self, default_fonts):
        """Test that the default font can draw Polish letters."""
        regular, bold = resolve_fonts()

        assert regular == "CityFlow-Lato-Regular"
        assert bold == regular
        glyphs = pdfmetrics.getFont(regular).face.charToGlyph
        for char in "ąćęłńóśźżĄĆĘŁŃÓŚŹŻ":
            assert ord(char) in glyphs

    def test_unreadable_font_falls_back_to_helvetica(self):
        """Test the fallback when the configured font cannot be loaded."""
        with patch.object(settings, "PDF_FONT_PATH", "/nonexistent/fonts/Missing.ttf"):
            assert resolve_fonts() == ("Helvetica", "Helvetica-Bold")

    def test_single_face_strokes_bold_lines(self, default_fonts):
        """Test that bold lines are stroked when no bold face is available."""
        regular, bold = resolve_fonts()
        pages = PlanPdfLayout(regular, bold).layout_plan(build_generated_plan())
        lines = {line.text: line for page in pages for line in page.lines}

        assert lines["Weekend w Krakowie"].stroke is True
        assert lines["Destination: Kraków"].stroke is False


class TestGeneratePlanPdf:
    """Tests for generate_plan_pdf."""

    def test_returns_pdf_document(self):
        """Test that a real PDF is produced from a plan response."""
        plan = PlanResponse.model_validate(build_generated_plan(name="Weekend"))
        pdf_bytes = generate_plan_pdf(plan)

        assert pdf_bytes.startswith(b"%PDF")
        assert len(pdf_bytes) > 500

    def test_failures_are_wrapped(self):
        """Test that rendering failures become PdfGenerationError."""
        plan = build_generated_plan()
        with patch(
            "cityflow.domains.plan.services.pdf_service.render_pages",
            side_effect=RuntimeError("disk full"),
        ):
            with pytest.raises(PdfGenerationError) as exc_info:
                generate_plan_pdf(plan)

        assert exc_info.value.status_code == 500
        assert exc_info.value.is_operational is False

    def test_polish_text_uses_embedded_font(self, default_fonts):
        """Test that a Polish itinerary is rendered with the embedded TTF face."""
        plan = build_generated_plan(name="Wycieczka do Łodzi", notes="Żurek i pierogi z kaszą")
        pdf_bytes = generate_plan_pdf(plan)

        assert pdf_bytes.startswith(b"%PDF")
        assert b"FontFile2" in pdf_bytes
