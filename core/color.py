"""
Color parsing and approximate RGB <-> CMYK conversion.

The CMYK values produced here are a naive estimate (no ICC profile, no
dot-gain compensation). They are good enough to drive DeviceCMYK operators
in the PDF output and to preview how a color will separate.

Fallback policy:
    ``parse_hex`` is strict and raises ColorFormatError. Every other entry
    point (``hex_to_rgb``, ``parse_color``) is what renderers call, and it
    substitutes black so that one bad color never breaks an export.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from logging_config import get_logger

from .exceptions import ColorFormatError

logger = get_logger(__name__)

_HEX_RE = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)
_SHORT_HEX_RE = re.compile(r"^#([a-f\d])([a-f\d])([a-f\d])$", re.IGNORECASE)
_RGB_FUNC_RE = re.compile(
    r"^rgba?\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*(?:,\s*[\d.]+\s*)?\)$",
    re.IGNORECASE,
)

# Values that mean "do not paint" for fill/stroke
NO_PAINT = {"", "none", "transparent"}


@dataclass(frozen=True)
class RGB:
    r: int
    g: int
    b: int

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    def as_tuple(self) -> tuple:
        return (self.r, self.g, self.b)

    def to_dict(self) -> dict:
        return {"r": self.r, "g": self.g, "b": self.b}


@dataclass(frozen=True)
class CMYK:
    """Ink coverage in percent, 0-100 per channel."""

    c: int
    m: int
    y: int
    k: int

    def as_fractions(self) -> tuple:
        return (self.c / 100.0, self.m / 100.0, self.y / 100.0, self.k / 100.0)

    def to_dict(self) -> dict:
        return {"c": self.c, "m": self.m, "y": self.y, "k": self.k}


BLACK = RGB(0, 0, 0)
WHITE = RGB(255, 255, 255)

NAMED_COLORS = {
    "black": BLACK,
    "white": WHITE,
    "red": RGB(255, 0, 0),
    "green": RGB(0, 128, 0),
    "blue": RGB(0, 0, 255),
    "yellow": RGB(255, 255, 0),
    "cyan": RGB(0, 255, 255),
    "magenta": RGB(255, 0, 255),
    "gray": RGB(128, 128, 128),
    "grey": RGB(128, 128, 128),
    "orange": RGB(255, 165, 0),
}


def rgb_to_cmyk(r: float, g: float, b: float) -> CMYK:
    """
    Estimate CMYK coverage for an RGB color.

    Args:
        r, g, b: Channel values in [0, 255]

    Returns:
        CMYK with each channel rounded to a whole percent. Pure black
        (k == 1) is defined as c = m = y = 0 instead of dividing by zero.
    """
    red, green, blue = (min(max(v, 0), 255) / 255.0 for v in (r, g, b))

    k = 1.0 - max(red, green, blue)
    if k >= 1.0:
        return CMYK(0, 0, 0, 100)

    c = (1.0 - red - k) / (1.0 - k)
    m = (1.0 - green - k) / (1.0 - k)
    y = (1.0 - blue - k) / (1.0 - k)

    return CMYK(
        c=round(max(0.0, c) * 100),
        m=round(max(0.0, m) * 100),
        y=round(max(0.0, y) * 100),
        k=round(k * 100),
    )


def cmyk_to_rgb(cmyk: CMYK) -> RGB:
    """Inverse of the naive estimate above."""
    c, m, y, k = cmyk.as_fractions()
    return RGB(
        r=round(255 * (1 - c) * (1 - k)),
        g=round(255 * (1 - m) * (1 - k)),
        b=round(255 * (1 - y) * (1 - k)),
    )


def parse_hex(value: str) -> RGB:
    """Strictly parse ``#RRGGBB`` (``#`` optional, any case)."""
    match = _HEX_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ColorFormatError(value)
    return RGB(*(int(part, 16) for part in match.groups()))


def hex_to_rgb(value: str) -> RGB:
    """
    Parse ``#RRGGBB``, falling back to black on any other input.

    Example:
        >>> hex_to_rgb("#FF0000")
        RGB(r=255, g=0, b=0)
        >>> hex_to_rgb("bad")
        RGB(r=0, g=0, b=0)
    """
    try:
        return parse_hex(value)
    except ColorFormatError as exc:
        logger.warning(f"{exc.message}; using black")
        return BLACK


def parse_color(value: Optional[str], fallback: RGB = BLACK) -> RGB:
    """
    Parse any supported color notation.

    Supports ``#RRGGBB``, ``#RGB``, ``rgb()/rgba()`` (alpha ignored) and a few
    CSS names. Missing or malformed values resolve to ``fallback``.
    """
    if not isinstance(value, str) or not value.strip():
        return fallback

    text = value.strip()
    lowered = text.lower()

    if lowered in NAMED_COLORS:
        return NAMED_COLORS[lowered]

    short = _SHORT_HEX_RE.match(text)
    if short:
        return RGB(*(int(part * 2, 16) for part in short.groups()))

    func = _RGB_FUNC_RE.match(text)
    if func:
        return RGB(*(min(int(part), 255) for part in func.groups()))

    try:
        return parse_hex(text)
    except ColorFormatError as exc:
        logger.warning(f"{exc.message}; using {fallback.to_hex()}")
        return fallback


def is_paintable(value: Optional[str]) -> bool:
    """False when a fill/stroke value means nothing should be drawn."""
    if not isinstance(value, str):
        return False
    return value.strip().lower() not in NO_PAINT


def is_white(value: Optional[str]) -> bool:
    if not is_paintable(value):
        return False
    return parse_color(value, fallback=BLACK) == WHITE
