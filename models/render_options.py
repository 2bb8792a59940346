"""
Render options and export results.

RenderOptions is frozen: a caller that wants different settings builds a new
instance (``RenderOptions(...)`` or ``options.replace(...)``). The module
level DEFAULT_RENDER_OPTIONS can therefore be shared safely.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from core.exceptions import GeometryError


class ExportFormat(Enum):
    PDF = "pdf"
    PNG = "png"
    SVG = "svg"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def mime_type(self) -> str:
        return {
            ExportFormat.PDF: "application/pdf",
            ExportFormat.PNG: "image/png",
            ExportFormat.SVG: "image/svg+xml",
        }[self]


class QualityTier(Enum):
    DRAFT = "draft"
    PRINT = "print"
    HIGH = "high"


class ColorMode(Enum):
    RGB = "rgb"
    CMYK = "cmyk"


QUALITY_TO_DPI: Dict[QualityTier, int] = {
    QualityTier.DRAFT: 150,
    QualityTier.PRINT: 300,
    QualityTier.HIGH: 600,
}

DEFAULT_IMAGE_TIMEOUT = 10.0


@dataclass(frozen=True)
class RenderOptions:
    """Per-call export configuration."""

    format: ExportFormat = ExportFormat.PDF
    quality: QualityTier = QualityTier.PRINT
    include_bleed: bool = True
    include_crop_marks: bool = True
    color_mode: ColorMode = ColorMode.CMYK
    dpi: int = 300

    show_guides: bool = False
    """Overlay dashed bleed/safe-zone outlines (proofing only)."""

    image_timeout: float = DEFAULT_IMAGE_TIMEOUT
    """Seconds allowed for each image load before it is skipped."""

    def __post_init__(self):
        if self.dpi <= 0:
            raise GeometryError(f"dpi must be positive, got {self.dpi}", self.dpi)

    @classmethod
    def for_quality(cls, quality: QualityTier, **overrides) -> "RenderOptions":
        """Options whose DPI follows the quality tier (draft 150, print 300, high 600)."""
        return cls(quality=quality, dpi=QUALITY_TO_DPI[quality], **overrides)

    def replace(self, **changes) -> "RenderOptions":
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RenderOptions":
        """
        Create from the host's camelCase JSON.

        Missing keys keep their defaults. ``dpi`` defaults to the quality
        tier's DPI when only ``quality`` is given.

        Raises:
            ValueError: On unknown enum values or a non-positive dpi
        """
        data = data or {}
        quality = QualityTier(str(data.get("quality", QualityTier.PRINT.value)).lower())
        dpi = data.get("dpi")
        return cls(
            format=ExportFormat(str(data.get("format", ExportFormat.PDF.value)).lower()),
            quality=quality,
            include_bleed=bool(data.get("includeBleed", True)),
            include_crop_marks=bool(data.get("includeCropMarks", True)),
            color_mode=ColorMode(str(data.get("colorMode", ColorMode.CMYK.value)).lower()),
            dpi=int(dpi) if dpi is not None else QUALITY_TO_DPI[quality],
            show_guides=bool(data.get("showGuides", False)),
            image_timeout=float(data.get("imageTimeout", DEFAULT_IMAGE_TIMEOUT)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": self.format.value,
            "quality": self.quality.value,
            "includeBleed": self.include_bleed,
            "includeCropMarks": self.include_crop_marks,
            "colorMode": self.color_mode.value,
            "dpi": self.dpi,
            "showGuides": self.show_guides,
            "imageTimeout": self.image_timeout,
        }


DEFAULT_RENDER_OPTIONS = RenderOptions()


@dataclass
class ExportResult:
    """
    Outcome of one export call.

    On success ``data`` holds the file bytes; on failure ``error`` holds a
    retryable message with the underlying cause.
    """

    success: bool
    """Whether bytes were produced."""

    data: Optional[bytes] = None
    """Encoded file contents."""

    filename: str = ""
    """Suggested download name: {product-name}-{unix-millis}.{ext}."""

    mime_type: str = ""

    error: Optional[str] = None
    """Failure message (success=False only)."""

    warnings: List[str] = field(default_factory=list)
    """Soft failures, e.g. images that were skipped."""

    @classmethod
    def ok(cls, data: bytes, filename: str, export_format: ExportFormat, warnings: List[str]) -> "ExportResult":
        return cls(
            success=True,
            data=data,
            filename=filename,
            mime_type=export_format.mime_type,
            warnings=list(warnings),
        )

    @classmethod
    def failed(cls, error: str, filename: str = "") -> "ExportResult":
        return cls(success=False, filename=filename, error=error)

    def to_dict(self, include_data: bool = False) -> Dict[str, Any]:
        """Convert to JSON; bytes are base64 encoded when requested."""
        payload: Dict[str, Any] = {
            "success": self.success,
            "filename": self.filename,
            "mimeType": self.mime_type,
            "warnings": list(self.warnings),
        }
        if self.error:
            payload["error"] = self.error
        if include_data and self.data is not None:
            payload["data"] = base64.b64encode(self.data).decode("ascii")
        return payload
