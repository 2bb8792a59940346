"""
Core module for the print export engine.

Contains the dependency-free building blocks every renderer shares:
- exceptions: Custom exception hierarchy
- units: mm/px/pt conversion and bleed-box geometry
- color: Color parsing and approximate RGB/CMYK conversion
"""

from .exceptions import (
    PrintExportError,
    GeometryError,
    ColorFormatError,
    ImageLoadError,
    RequestPayloadError,
    RenderError,
    UnsupportedFormatError,
    ExportCancelledError,
)
from .units import (
    BleedBox,
    compute_bleed_box,
    mm_to_px,
    mm_to_pt,
    px_to_mm,
    px_to_pt,
    rescale,
)
from .color import CMYK, RGB, cmyk_to_rgb, hex_to_rgb, parse_color, rgb_to_cmyk

__all__ = [
    "PrintExportError",
    "GeometryError",
    "ColorFormatError",
    "ImageLoadError",
    "RequestPayloadError",
    "RenderError",
    "UnsupportedFormatError",
    "ExportCancelledError",
    "BleedBox",
    "compute_bleed_box",
    "mm_to_px",
    "mm_to_pt",
    "px_to_mm",
    "px_to_pt",
    "rescale",
    "CMYK",
    "RGB",
    "cmyk_to_rgb",
    "hex_to_rgb",
    "parse_color",
    "rgb_to_cmyk",
]
