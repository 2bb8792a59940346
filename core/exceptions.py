"""
Custom exceptions for the print export engine.

Exception Hierarchy:
    PrintExportError (base)
    ├── GeometryError          - Invalid DPI or negative length (fatal for the call)
    ├── ColorFormatError       - Malformed color string (recovered with black)
    ├── ImageLoadError         - One image resource could not be loaded (soft)
    ├── RequestPayloadError    - Malformed API request body (HTTP 4xx)
    └── RenderError            - Unexpected failure while drawing (aborts export)
        ├── UnsupportedFormatError - Unknown export format requested
        └── ExportCancelledError   - Cancellation signal observed mid-export

Usage:
    GeometryError and RenderError abort the current export call and are
    surfaced to the host as ExportResult(success=False, error=...).
    ColorFormatError and ImageLoadError are caught close to where they are
    raised and turned into a documented fallback or a soft warning.
"""

from typing import Optional, Dict, Any


class PrintExportError(Exception):
    """
    Base exception for all print export errors.

    Callers can catch every engine-specific failure with a single except
    clause; ``details`` carries structured context for logs and API payloads.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class GeometryError(PrintExportError):
    """
    A unit conversion was asked to work outside its domain.

    Raised for ``dpi <= 0`` and for negative physical lengths. There is no
    sensible fallback for a zero-DPI canvas, so the whole call is rejected.
    """

    def __init__(self, message: str, value: Optional[float] = None):
        details = {}
        if value is not None:
            details["value"] = value
        super().__init__(message, details)
        self.value = value


class ColorFormatError(PrintExportError):
    """
    A color string did not match any supported notation.

    Never reaches the host: ``core.color.hex_to_rgb`` and
    ``core.color.parse_color`` replace the color with black and log it.
    """

    def __init__(self, value: Any):
        super().__init__(f"Invalid color format: {value!r}", {"value": value})
        self.value = value


class ImageLoadError(PrintExportError):
    """
    An image resource could not be fetched or decoded.

    Renderers skip the element and record a soft warning instead of
    failing the export.
    """

    def __init__(self, source: str, reason: str, element_id: Optional[str] = None):
        details = {"source": _shorten(source), "reason": reason}
        if element_id:
            details["element_id"] = element_id
        super().__init__(f"Could not load image: {reason}", details)
        self.source = source
        self.reason = reason
        self.element_id = element_id


class RequestPayloadError(PrintExportError):
    """
    An API request body could not be turned into a product, elements or
    options. Carries the HTTP status the route should answer with.
    """

    def __init__(self, message: str, status_code: int = 400, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.status_code = status_code


class RenderError(PrintExportError):
    """
    Unexpected failure while producing export bytes.

    The export call is aborted; the message is shown to the user as a
    retryable failure, so it includes the underlying cause.
    """

    def __init__(
        self,
        message: str,
        export_format: Optional[str] = None,
        element_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if export_format:
            error_details["format"] = export_format
        if element_id:
            error_details["element_id"] = element_id
        super().__init__(message, error_details)
        self.export_format = export_format
        self.element_id = element_id


class UnsupportedFormatError(RenderError):
    """The requested export format has no renderer."""

    def __init__(self, export_format: str):
        super().__init__(
            f"Unsupported export format: {export_format}",
            details={"supported": ["pdf", "png", "svg"]},
        )
        self.export_format = export_format


class ExportCancelledError(RenderError):
    """
    The host cancelled the export.

    Checked before each element draw and before final encoding; buffers
    owned by the call are simply dropped.
    """

    def __init__(self, export_format: Optional[str] = None, stage: str = ""):
        message = "Export cancelled"
        if stage:
            message = f"Export cancelled before {stage}"
        super().__init__(message, export_format=export_format)
        self.stage = stage


def _shorten(source: str, limit: int = 80) -> str:
    """Keep data URIs from flooding log lines."""
    if source and len(source) > limit:
        return source[:limit] + "..."
    return source
