"""
Geometry and style resolution shared by the SVG, PNG and PDF renderers.

RenderContext turns document-space values (px at the product's DPI) into
output-space values (px at ``options.dpi``, origin shifted by the bleed), and
resolves colors, fonts and text layout once, so every renderer places things
identically. Renderer is the common driver: it walks the elements in
z-order, dispatches on the element variant and handles cancellation and
error wrapping; subclasses only provide the drawing primitives.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from core.color import BLACK, CMYK, RGB, cmyk_to_rgb, is_paintable, parse_color, rgb_to_cmyk
from core.exceptions import ExportCancelledError, PrintExportError, RenderError
from core.units import compute_bleed_box, mm_to_px, rescale
from logging_config import get_logger
from models.elements import (
    DesignElement,
    ImageElement,
    ShapeElement,
    ShapeKind,
    TextAlign,
    TextElement,
)
from models.product import PrintProduct
from models.render_options import ColorMode, ExportFormat, RenderOptions
from modules.fonts import DEFAULT_TEXT_FONTS, TextFonts, measure_text

logger = get_logger(__name__)

CROP_MARK_LENGTH_MM = 3.0
CROP_MARK_STROKE_MM = 0.1
GUIDE_STROKE_MM = 0.2
LINE_HEIGHT = 1.2

BLEED_GUIDE_COLOR = RGB(255, 0, 0)
SAFE_GUIDE_COLOR = RGB(0, 255, 0)

Segment = Tuple[Tuple[float, float], Tuple[float, float]]


def aligned_x(x: float, text_width: float, align: TextAlign) -> float:
    """Left keeps x, center subtracts half the width, right the full width."""
    if align is TextAlign.CENTER:
        return x - text_width / 2
    if align is TextAlign.RIGHT:
        return x - text_width
    return x


@dataclass(frozen=True)
class Frame:
    """An element's box in output pixels."""

    x: float
    y: float
    width: float
    height: float
    rotation: float

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


@dataclass(frozen=True)
class TextLine:
    text: str
    x: float
    baseline: float
    width: float


@dataclass(frozen=True)
class TextLayout:
    """Positioned lines of a text element, in output pixels."""

    font_name: str
    font_size: float
    lines: Tuple[TextLine, ...]
    decoration: str

    def decoration_segments(self) -> List[Tuple[Segment, float]]:
        """Underline/line-through strokes as (segment, thickness)."""
        if self.decoration not in ("underline", "line-through"):
            return []
        thickness = max(self.font_size / 15.0, 0.5)
        offset = self.font_size * 0.12 if self.decoration == "underline" else -self.font_size * 0.3
        return [
            (((line.x, line.baseline + offset), (line.x + line.width, line.baseline + offset)), thickness)
            for line in self.lines
            if line.width > 0
        ]


@dataclass(frozen=True)
class Paint:
    """Resolved fill/stroke of a shape; ``None`` means skip that draw."""

    fill: Optional[str]
    stroke: Optional[str]
    stroke_width: float


class RenderContext:
    """
    Output-space geometry for one product rendered with one set of options.

    Document coordinates are px at ``product.dpi``; output coordinates are
    px at ``options.dpi`` with the origin moved in by the bleed when the
    bleed is included.
    """

    def __init__(self, product: PrintProduct, options: RenderOptions, fonts: Optional[TextFonts] = None):
        self.product = product
        self.options = options
        self.fonts = fonts or DEFAULT_TEXT_FONTS
        self.dpi = options.dpi
        self.box = compute_bleed_box(product, options.dpi)
        self.offset = self.box.bleed_px if options.include_bleed else 0.0

        if options.include_bleed:
            self.width = self.box.total_width_px
            self.height = self.box.total_height_px
        else:
            self.width = self.box.content_width_px
            self.height = self.box.content_height_px

    # -------------------------------------------------------------------------
    # Geometry
    # -------------------------------------------------------------------------

    @property
    def pixel_size(self) -> Tuple[int, int]:
        """Canvas size rounded to whole pixels (raster output)."""
        return (max(1, int(round(self.width))), max(1, int(round(self.height))))

    def length(self, px: float) -> float:
        return rescale(px, self.product.dpi, self.dpi)

    def point(self, x: float, y: float) -> Tuple[float, float]:
        return (self.offset + self.length(x), self.offset + self.length(y))

    def frame(self, element: DesignElement) -> Frame:
        x, y = self.point(element.x, element.y)
        return Frame(
            x=x,
            y=y,
            width=self.length(element.scaled_width),
            height=self.length(element.scaled_height),
            rotation=float(element.rotation or 0.0),
        )

    def trim_rect(self) -> Tuple[float, float, float, float]:
        """(x0, y0, x1, y1) of the trim line."""
        return (
            self.offset,
            self.offset,
            self.offset + self.box.content_width_px,
            self.offset + self.box.content_height_px,
        )

    def safe_rect(self) -> Tuple[float, float, float, float]:
        inset = mm_to_px(self.product.safe_zone_mm, self.dpi)
        x0, y0, x1, y1 = self.trim_rect()
        return (x0 + inset, y0 + inset, x1 - inset, y1 - inset)

    def crop_mark_segments(self) -> List[Segment]:
        """
        Two short lines per trim corner.

        With a bleed margin the lines start at the trim corner and run
        outward into the bleed (clipped to the sheet); without one they run
        inward along the trim edges.
        """
        length = mm_to_px(CROP_MARK_LENGTH_MM, self.dpi)
        x0, y0, x1, y1 = self.trim_rect()
        segments: List[Segment] = []

        for cx, sx in ((x0, -1), (x1, 1)):
            for cy, sy in ((y0, -1), (y1, 1)):
                if self.offset > 0:
                    reach = min(length, self.offset)
                    segments.append(((cx, cy), (cx + sx * reach, cy)))
                    segments.append(((cx, cy), (cx, cy + sy * reach)))
                else:
                    segments.append(((cx, cy), (cx - sx * length, cy)))
                    segments.append(((cx, cy), (cx, cy - sy * length)))
        return segments

    def crop_mark_width(self) -> float:
        return mm_to_px(CROP_MARK_STROKE_MM, self.dpi)

    def guide_width(self) -> float:
        return mm_to_px(GUIDE_STROKE_MM, self.dpi)

    # -------------------------------------------------------------------------
    # Style
    # -------------------------------------------------------------------------

    @property
    def cmyk_mode(self) -> bool:
        return self.options.color_mode is ColorMode.CMYK

    def rgb(self, value: Optional[str], fallback: RGB = BLACK) -> RGB:
        """
        Resolve a color for RGB-based output.

        In CMYK mode the color is passed through the rounded CMYK estimate,
        so previews show the separated color rather than the screen color.
        """
        color = parse_color(value, fallback)
        if self.cmyk_mode:
            color = cmyk_to_rgb(rgb_to_cmyk(color.r, color.g, color.b))
        return color

    def cmyk(self, value: Optional[str], fallback: RGB = BLACK) -> CMYK:
        color = parse_color(value, fallback)
        return rgb_to_cmyk(color.r, color.g, color.b)

    def paint(self, element: ShapeElement) -> Paint:
        return Paint(
            fill=element.fill if is_paintable(element.fill) else None,
            stroke=element.stroke if is_paintable(element.stroke) and element.stroke_width > 0 else None,
            stroke_width=self.length(element.stroke_width),
        )

    def text_layout(self, element: TextElement) -> TextLayout:
        """
        Position every line of a text element.

        The first baseline sits one font size below the element's top; each
        further line advances by 1.2 font sizes. Alignment is relative to the
        element's x, measured with the shared metric.
        """
        font_name = self.fonts.pdf_font_name(element)
        font_size = self.length(element.effective_font_size)
        x, y = self.point(element.x, element.y)

        lines = []
        for index, text in enumerate(element.content.split("\n")):
            width = measure_text(text, font_name, font_size)
            lines.append(
                TextLine(
                    text=text,
                    x=aligned_x(x, width, element.align),
                    baseline=y + font_size + index * font_size * LINE_HEIGHT,
                    width=width,
                )
            )
        return TextLayout(
            font_name=font_name,
            font_size=font_size,
            lines=tuple(lines),
            decoration=str(element.decoration).lower(),
        )

    @staticmethod
    def shape_points(kind: ShapeKind, frame: Frame) -> List[Tuple[float, float]]:
        """Polygon vertices (rectangle and triangle only)."""
        x, y, w, h = frame.x, frame.y, frame.width, frame.height
        if kind is ShapeKind.TRIANGLE:
            return [(x + w / 2, y), (x + w, y + h), (x, y + h)]
        return [(x, y), (x + w, y), (x + w, y + h), (x, y + h)]

    # -------------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------------

    def check_cancelled(self, cancel_event: Optional[threading.Event], stage: str) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise ExportCancelledError(self.options.format.value, stage)


@dataclass
class RenderOutput:
    data: bytes
    warnings: List[str] = field(default_factory=list)


class Renderer(ABC):
    """
    One export format.

    ``render`` is the only public entry point. Subclasses implement the
    surface lifecycle (``begin``/``finish``) and one draw method per element
    variant; the driver below owns ordering, visibility, cancellation and
    error wrapping.
    """

    format: ExportFormat

    def __init__(self, image_loader=None, fonts: Optional[TextFonts] = None):
        self.image_loader = image_loader
        self.fonts = fonts or DEFAULT_TEXT_FONTS

    async def render(
        self,
        elements: Iterable[DesignElement],
        product: PrintProduct,
        options: RenderOptions,
        cancel_event: Optional[threading.Event] = None,
    ) -> RenderOutput:
        snapshot: Sequence[DesignElement] = tuple(elements)
        ctx = RenderContext(product, options, self.fonts)
        warnings: List[str] = []

        images = await self.prepare(snapshot, ctx)
        warnings.extend(images.warnings)

        surface = self.begin(ctx)
        for element in snapshot:
            ctx.check_cancelled(cancel_event, f"drawing element {element.id}")
            if not element.visible:
                continue
            try:
                if isinstance(element, TextElement):
                    self.draw_text(surface, ctx, element)
                    self.check_glyphs(element, warnings)
                elif isinstance(element, ImageElement):
                    self.draw_image(surface, ctx, element, images.get(element.id), warnings)
                elif isinstance(element, ShapeElement):
                    self.draw_shape(surface, ctx, element)
                else:
                    raise TypeError(f"unsupported element type {type(element).__name__}")
            except PrintExportError:
                raise
            except Exception as exc:
                raise RenderError(
                    f"Failed to draw element {element.id}: {exc}",
                    export_format=self.format.value,
                    element_id=element.id,
                ) from exc

        if options.show_guides:
            self.draw_guides(surface, ctx)
        if options.include_crop_marks:
            self.draw_crop_marks(surface, ctx)

        ctx.check_cancelled(cancel_event, "encoding")
        data = self.finish(surface, ctx)
        logger.debug(f"{self.format.value} rendered: {len(data)} bytes, {len(warnings)} warnings")
        return RenderOutput(data=data, warnings=warnings)

    def text_font_name(self, element: TextElement) -> Optional[str]:
        """Font the text is drawn with, or None when the viewer picks it (SVG)."""
        return None

    def check_glyphs(self, element: TextElement, warnings: List[str]) -> None:
        font_name = self.text_font_name(element)
        if font_name is None:
            return
        warning = self.fonts.glyph_warning(element, font_name)
        if warning:
            logger.warning(warning)
            warnings.append(warning)

    async def prepare(self, elements: Sequence[DesignElement], ctx: RenderContext):
        """Load image pixels before drawing; formats that embed pixels override."""
        from modules.image_loader import LoadedImages

        return LoadedImages()

    @abstractmethod
    def begin(self, ctx: RenderContext) -> Any:
        """Allocate a fresh output surface."""

    @abstractmethod
    def finish(self, surface: Any, ctx: RenderContext) -> bytes:
        """Encode the surface."""

    @abstractmethod
    def draw_text(self, surface: Any, ctx: RenderContext, element: TextElement) -> None:
        ...

    @abstractmethod
    def draw_image(self, surface: Any, ctx: RenderContext, element: ImageElement, image, warnings: List[str]) -> None:
        ...

    @abstractmethod
    def draw_shape(self, surface: Any, ctx: RenderContext, element: ShapeElement) -> None:
        ...

    @abstractmethod
    def draw_crop_marks(self, surface: Any, ctx: RenderContext) -> None:
        ...

    @abstractmethod
    def draw_guides(self, surface: Any, ctx: RenderContext) -> None:
        ...


class PixelRenderer(Renderer):
    """Base for formats that embed decoded image pixels (PNG, PDF)."""

    async def prepare(self, elements: Sequence[DesignElement], ctx: RenderContext):
        from modules.image_loader import ImageLoader

        loader = self.image_loader or ImageLoader()
        image_elements = [e for e in elements if isinstance(e, ImageElement)]
        return await loader.load_all(image_elements, timeout=ctx.options.image_timeout)
