"""Unit conversion and bleed-box geometry.

Element coordinates are stored in pixels at the document's own DPI. These
helpers are the only place physical millimetres, pixels at some DPI, and PDF
points are converted into each other.
"""

from __future__ import annotations

from dataclasses import dataclass

from .exceptions import GeometryError

MM_PER_INCH = 25.4
POINTS_PER_INCH = 72.0
POINTS_PER_MM = 2.83465


def _require_dpi(dpi: float) -> None:
    if dpi is None or dpi <= 0:
        raise GeometryError(f"DPI must be positive, got {dpi}", dpi)


def mm_to_px(mm: float, dpi: float) -> float:
    """Millimetres to pixels at ``dpi``."""
    _require_dpi(dpi)
    if mm < 0:
        raise GeometryError(f"Length must not be negative, got {mm} mm", mm)
    return mm / MM_PER_INCH * dpi


def px_to_mm(px: float, dpi: float) -> float:
    """Pixels at ``dpi`` to millimetres (inverse of :func:`mm_to_px`)."""
    _require_dpi(dpi)
    return px / dpi * MM_PER_INCH


def rescale(px: float, from_dpi: float, to_dpi: float) -> float:
    """Move a pixel length from one DPI to another."""
    _require_dpi(from_dpi)
    _require_dpi(to_dpi)
    return px / from_dpi * to_dpi


def mm_to_pt(mm: float) -> float:
    return mm * POINTS_PER_MM


def px_to_pt(px: float, dpi: float) -> float:
    """Pixels at ``dpi`` to PDF points, going through millimetres."""
    return mm_to_pt(px_to_mm(px, dpi))


@dataclass(frozen=True)
class BleedBox:
    """Canvas geometry for one product at one DPI (all values in px)."""

    content_width_px: float
    """Trim width."""

    content_height_px: float
    """Trim height."""

    bleed_px: float
    """Bleed margin on each side."""

    @property
    def total_width_px(self) -> float:
        return self.content_width_px + 2 * self.bleed_px

    @property
    def total_height_px(self) -> float:
        return self.content_height_px + 2 * self.bleed_px

    def to_dict(self) -> dict:
        return {
            "contentWidthPx": self.content_width_px,
            "contentHeightPx": self.content_height_px,
            "bleedPx": self.bleed_px,
            "totalWidthPx": self.total_width_px,
            "totalHeightPx": self.total_height_px,
        }


def compute_bleed_box(product, dpi: float) -> BleedBox:
    """
    Compute content, bleed and total dimensions of ``product`` at ``dpi``.

    Args:
        product: Any object with ``width_mm``, ``height_mm`` and ``bleed_mm``
        dpi: Target resolution

    Returns:
        BleedBox where total = content + 2 * bleed on both axes

    Example:
        A 90x54 mm card with 3 mm bleed at 300 DPI gives roughly 1063 px of
        content width, 35 px of bleed and 1134 px total width.
    """
    return BleedBox(
        content_width_px=mm_to_px(product.width_mm, dpi),
        content_height_px=mm_to_px(product.height_mm, dpi),
        bleed_px=mm_to_px(product.bleed_mm, dpi),
    )
