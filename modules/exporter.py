"""
Export entry point.

``export_design`` takes a snapshot of the elements, picks the renderer for
the requested format and wraps the outcome in an ExportResult. It never
raises for rendering problems: the host always gets a result it can show.
"""

from __future__ import annotations

import threading
import time
from typing import Dict, Iterable, Optional, Type, Union

from core.exceptions import ExportCancelledError, PrintExportError, UnsupportedFormatError
from logging_config import get_logger
from models.elements import DesignElement
from models.product import PrintProduct
from models.render_options import DEFAULT_RENDER_OPTIONS, ExportFormat, ExportResult, RenderOptions
from modules.fonts import TextFonts
from modules.image_loader import ImageLoader
from modules.pdf_renderer import PdfRenderer
from modules.raster_renderer import RasterRenderer
from modules.render_common import Renderer
from modules.svg_renderer import SvgRenderer

logger = get_logger(__name__)

RENDERERS: Dict[ExportFormat, Type[Renderer]] = {
    ExportFormat.SVG: SvgRenderer,
    ExportFormat.PNG: RasterRenderer,
    ExportFormat.PDF: PdfRenderer,
}


def build_filename(product: PrintProduct, export_format: ExportFormat, timestamp_ms: Optional[int] = None) -> str:
    """``{product-name-with-dashes}-{unix-millis}.{ext}``"""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{product.slug}-{timestamp_ms}.{export_format.extension}"


def get_renderer(
    export_format: Union[ExportFormat, str],
    image_loader: Optional[ImageLoader] = None,
    fonts: Optional[TextFonts] = None,
) -> Renderer:
    """
    Renderer instance for a format.

    Raises:
        UnsupportedFormatError: If no renderer handles the format
    """
    if not isinstance(export_format, ExportFormat):
        try:
            export_format = ExportFormat(str(export_format).lower())
        except ValueError:
            raise UnsupportedFormatError(str(export_format))
    renderer_cls = RENDERERS.get(export_format)
    if renderer_cls is None:
        raise UnsupportedFormatError(export_format.value)
    return renderer_cls(image_loader=image_loader, fonts=fonts)


async def export_design(
    elements: Iterable[DesignElement],
    product: PrintProduct,
    options: Optional[RenderOptions] = None,
    cancel_event: Optional[threading.Event] = None,
    image_loader: Optional[ImageLoader] = None,
    fonts: Optional[TextFonts] = None,
) -> ExportResult:
    """
    Render a design snapshot in the requested format.

    Args:
        elements: Elements in z-order (bottom first); copied before rendering
        product: Target print product
        options: Render options (defaults: PDF, print quality, bleed, crop marks, CMYK, 300 DPI)
        cancel_event: Set it to abort the export between elements
        image_loader: Loader policy for image elements (defaults from Config)
        fonts: Text font choice (defaults to the built-in faces)

    Returns:
        ExportResult; ``success=False`` with a message on any failure
    """
    options = options or DEFAULT_RENDER_OPTIONS
    snapshot = tuple(elements)
    export_format = options.format
    filename = build_filename(product, export_format) if isinstance(export_format, ExportFormat) else ""

    logger.info(
        f"Exporting {len(snapshot)} elements for '{product.id}' as "
        f"{getattr(export_format, 'value', export_format)} at {options.dpi} DPI "
        f"(bleed={options.include_bleed}, crop_marks={options.include_crop_marks}, "
        f"color={options.color_mode.value})"
    )

    started = time.monotonic()
    try:
        renderer = get_renderer(export_format, image_loader, fonts)
        output = await renderer.render(snapshot, product, options, cancel_event)
    except ExportCancelledError as e:
        logger.info(f"Export of '{product.id}' cancelled: {e.message}")
        return ExportResult.failed(e.message, filename)
    except PrintExportError as e:
        logger.error(f"Export of '{product.id}' failed: {e}")
        return ExportResult.failed(f"Export failed: {e.message}", filename)
    except Exception as e:
        logger.error(f"Unexpected error exporting '{product.id}': {e}", exc_info=True)
        return ExportResult.failed(f"Export failed: {e}", filename)

    elapsed = time.monotonic() - started
    logger.info(
        f"Export of '{product.id}' finished: {filename} ({len(output.data)} bytes, "
        f"{len(output.warnings)} warnings, {elapsed:.2f}s)"
    )
    return ExportResult.ok(output.data, filename, export_format, output.warnings)
