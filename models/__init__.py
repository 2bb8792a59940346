"""
Data models for the print export engine.

This module contains the snapshot types every export and preflight call
works on:
- PrintProduct: Physical product definition (frozen)
- TextElement / ImageElement / ShapeElement: Tagged element variants (frozen)
- DesignDocument: Ordered element collection (z-order)
- RenderOptions / ExportResult: Export configuration and outcome
- PreflightIssue / PreflightResult: Validation report
- ExportJob: Status of a background export

Frozen dataclasses can be shared between threads without locks; a renderer
never writes converted coordinates back into them.
"""

from .product import PrintProduct, ProductCategory
from .elements import (
    CropRect,
    DesignElement,
    ElementType,
    ImageElement,
    ShapeElement,
    ShapeKind,
    TextAlign,
    TextElement,
    element_from_dict,
)
from .document import DesignDocument
from .render_options import (
    ColorMode,
    DEFAULT_RENDER_OPTIONS,
    ExportFormat,
    ExportResult,
    QualityTier,
    RenderOptions,
)
from .export_job import ExportJob, ExportJobStatus
from .preflight import (
    IssueCategory,
    IssueType,
    PreflightIssue,
    PreflightResult,
    PreflightSummary,
    Severity,
)

__all__ = [
    # Product
    "PrintProduct",
    "ProductCategory",
    # Elements
    "CropRect",
    "DesignElement",
    "ElementType",
    "ImageElement",
    "ShapeElement",
    "ShapeKind",
    "TextAlign",
    "TextElement",
    "element_from_dict",
    "DesignDocument",
    # Export
    "ColorMode",
    "DEFAULT_RENDER_OPTIONS",
    "ExportFormat",
    "ExportResult",
    "QualityTier",
    "RenderOptions",
    "ExportJob",
    "ExportJobStatus",
    # Preflight
    "IssueCategory",
    "IssueType",
    "PreflightIssue",
    "PreflightResult",
    "PreflightSummary",
    "Severity",
]
