"""Unit tests for text font selection and glyph coverage."""

import os

import pytest

from core.exceptions import RenderError
from models.elements import TextElement
from modules.fonts import (
    VERA_DIR,
    TextFonts,
    font_group,
    missing_characters,
    register_ttf,
)

VERA = os.path.join(VERA_DIR, "Vera.ttf")


class TestFontSelection:
    @pytest.mark.parametrize("family,group", [
        ("Arial", "sans"),
        ("'Times New Roman', serif", "serif"),
        ("Courier New", "mono"),
        ("", "sans"),
    ])
    def test_font_group(self, family, group):
        assert font_group(family) == group

    def test_standard_faces(self):
        fonts = TextFonts()
        assert fonts.pdf_font_name(TextElement(font_family="Georgia", font_weight="bold")) == "Times-Bold"
        assert fonts.pdf_font_name(TextElement(font_family="Arial", font_style="italic")) == "Helvetica-Oblique"

    def test_raster_faces_default_to_vera(self):
        path = TextFonts().raster_font_file(TextElement(font_weight="bold", font_style="italic"))
        assert os.path.basename(path) == "VeraBI.ttf"

    def test_configured_font_is_used_for_every_style(self):
        fonts = TextFonts(font_path=VERA)
        bold = TextElement(font_family="Courier", font_weight="bold")
        assert fonts.pdf_font_name(bold) == fonts.pdf_font_name(TextElement()) == "Export-Vera"
        assert fonts.raster_font_file(bold) == VERA

    def test_from_config(self):
        assert TextFonts.from_config({"EXPORT_TEXT_FONT_PATH": VERA}).font_path == VERA
        assert TextFonts.from_config({"EXPORT_TEXT_FONT_PATH": ""}).font_path is None

    def test_unreadable_font_file(self, tmp_path):
        with pytest.raises(RenderError) as exc_info:
            register_ttf(str(tmp_path / "missing.ttf"))
        assert "Cannot load font" in exc_info.value.message


class TestGlyphCoverage:
    """Characters a font cannot draw are reported, not replaced."""

    def test_latin_text_is_covered(self):
        assert missing_characters("Café, 10 € ", "Helvetica") == ""
        assert missing_characters("Café", register_ttf(VERA)) == ""

    def test_thai_is_missing_from_builtin_faces(self):
        assert missing_characters("นามบัตร", "Helvetica") == "นามบัตร"
        assert missing_characters("นามบัตร", register_ttf(VERA)) == "นามบัตร"

    def test_missing_characters_are_distinct_and_ordered(self):
        assert missing_characters("ก ข ก a", "Helvetica") == "กข"

    def test_glyph_warning(self):
        element = TextElement(id="title", content="Hi นา")
        assert TextFonts().glyph_warning(element, "Helvetica") == (
            "Text title: font Helvetica has no glyphs for 'นา'"
        )
        assert TextFonts().glyph_warning(TextElement(id="t", content="Hi"), "Helvetica") is None
