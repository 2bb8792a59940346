"""
Text fonts for the PDF and PNG renderers.

By default PDF text uses the PDF standard Type1 faces (Helvetica, Times,
Courier) and PNG text uses Bitstream Vera, which ships with ReportLab.
Neither covers scripts outside Western Europe, so a host serving Thai or
other non-Latin designs configures ``EXPORT_TEXT_FONT_PATH`` with a TrueType
file that has the glyphs. That one file is then used for every family and
style, in both formats, and for the shared width metric.

Characters the active font cannot draw are reported, never silently
replaced: renderers turn ``missing_characters`` into export warnings.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Optional

import reportlab
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from config import Config
from core.exceptions import RenderError
from logging_config import get_logger
from models.elements import TextElement

logger = get_logger(__name__)

SERIF_FAMILIES = {"times", "times new roman", "georgia", "palatino", "garamond", "bookman", "serif"}
MONO_FAMILIES = {"courier", "courier new", "lucida console", "monospace"}

# (regular, bold, italic, bold italic)
STANDARD_FACES = {
    "sans": ("Helvetica", "Helvetica-Bold", "Helvetica-Oblique", "Helvetica-BoldOblique"),
    "serif": ("Times-Roman", "Times-Bold", "Times-Italic", "Times-BoldItalic"),
    "mono": ("Courier", "Courier-Bold", "Courier-Oblique", "Courier-BoldOblique"),
}

VERA_DIR = os.path.join(os.path.dirname(reportlab.__file__), "fonts")
VERA_FACES = ("Vera.ttf", "VeraBd.ttf", "VeraIt.ttf", "VeraBI.ttf")

# Standard Type1 fonts are written with WinAnsiEncoding
STANDARD_ENCODING = "cp1252"


def font_group(family: str) -> str:
    """Map a CSS font family onto one of the sans/serif/mono groups."""
    name = (family or "").split(",")[0].strip().strip("'\"").lower()
    if name in SERIF_FAMILIES:
        return "serif"
    if name in MONO_FAMILIES:
        return "mono"
    return "sans"


def face_index(element: TextElement) -> int:
    return (2 if element.is_italic else 0) + (1 if element.is_bold else 0)


@lru_cache(maxsize=None)
def register_ttf(path: str) -> str:
    """
    Register a TrueType file with ReportLab once and return its font name.

    Raises:
        RenderError: If the file is missing or not a usable TrueType font
    """
    name = f"Export-{Path(path).stem}"
    try:
        pdfmetrics.registerFont(TTFont(name, path))
    except Exception as e:
        raise RenderError(f"Cannot load font {path}: {e}")
    logger.info(f"Registered text font {name} from {path}")
    return name


def missing_characters(text: str, font_name: str) -> str:
    """Distinct characters of ``text`` (in order) that ``font_name`` has no glyph for."""
    font = pdfmetrics.getFont(font_name)
    if isinstance(font, TTFont):
        cmap = font.face.charToGlyph

        def covered(ch):
            return ord(ch) in cmap
    else:

        def covered(ch):
            try:
                ch.encode(STANDARD_ENCODING)
            except UnicodeEncodeError:
                return False
            return True

    missing = []
    for ch in text:
        if ch.isspace() or ch in missing:
            continue
        if not covered(ch):
            missing.append(ch)
    return "".join(missing)


class TextFonts:
    """
    Font choice for text elements.

    Args:
        font_path: Optional TrueType file used for all text in place of the
            built-in faces
    """

    def __init__(self, font_path: Optional[str] = None):
        self.font_path = font_path or None

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "TextFonts":
        return cls(config.get("EXPORT_TEXT_FONT_PATH", Config.EXPORT_TEXT_FONT_PATH))

    def pdf_font_name(self, element: TextElement) -> str:
        """ReportLab font name used to draw and measure ``element``."""
        if self.font_path:
            return register_ttf(self.font_path)
        return STANDARD_FACES[font_group(element.font_family)][face_index(element)]

    def raster_font_file(self, element: TextElement) -> str:
        if self.font_path:
            return self.font_path
        # Vera has no serif or mono cut; every family uses the sans faces
        return os.path.join(VERA_DIR, VERA_FACES[face_index(element)])

    def raster_font_name(self, element: TextElement) -> str:
        """ReportLab name of the raster face, for glyph coverage checks."""
        return register_ttf(self.raster_font_file(element))

    def glyph_warning(self, element: TextElement, font_name: str) -> Optional[str]:
        missing = missing_characters(element.content, font_name)
        if not missing:
            return None
        return f"Text {element.id}: font {font_name} has no glyphs for {missing!r}"


DEFAULT_TEXT_FONTS = TextFonts()


def measure_text(text: str, font_name: str, font_size: float) -> float:
    """Advance width of ``text``; the one metric all renderers align with."""
    return pdfmetrics.stringWidth(text, font_name, font_size)

