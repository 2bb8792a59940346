"""
PNG export (Pillow).

The canvas is an opaque white RGB image at the output DPI. Each element is
drawn onto its own small RGBA layer, rotated about the element's top-left
corner and faded by its opacity there, then composited onto the canvas.
The finished PNG carries the output DPI in its pHYs chunk.
"""

from __future__ import annotations

import io
import math
from functools import lru_cache
from typing import Callable, List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from models.elements import DesignElement, ImageElement, ShapeElement, ShapeKind, TextElement
from models.render_options import ExportFormat
from modules.render_common import (
    BLEED_GUIDE_COLOR,
    SAFE_GUIDE_COLOR,
    Frame,
    PixelRenderer,
    RenderContext,
)

RESAMPLE_LANCZOS = Image.Resampling.LANCZOS
RESAMPLE_BICUBIC = Image.Resampling.BICUBIC

Box = Tuple[float, float, float, float]


@lru_cache(maxsize=64)
def load_font(path: str, size: int):
    try:
        return ImageFont.truetype(path, size)
    except OSError:
        return ImageFont.load_default(size=size)


def rgba(color, alpha: int = 255) -> Tuple[int, int, int, int]:
    return color.as_tuple() + (alpha,)


class RasterRenderer(PixelRenderer):
    format = ExportFormat.PNG

    def begin(self, ctx: RenderContext) -> Image.Image:
        return Image.new("RGB", ctx.pixel_size, (255, 255, 255))

    def finish(self, surface: Image.Image, ctx: RenderContext) -> bytes:
        buffer = io.BytesIO()
        surface.save(buffer, format="PNG", dpi=(ctx.dpi, ctx.dpi))
        return buffer.getvalue()

    def text_font_name(self, element: TextElement) -> str:
        return self.fonts.raster_font_name(element)

    # -------------------------------------------------------------------------
    # Layer compositing
    # -------------------------------------------------------------------------

    def _composite(
        self,
        canvas: Image.Image,
        element: DesignElement,
        frame: Frame,
        bounds: Box,
        paint: Callable[[ImageDraw.ImageDraw, Image.Image, float, float], None],
    ) -> None:
        """
        Draw ``paint`` on a local layer and merge it into the canvas.

        ``paint(draw, layer, ox, oy)`` receives the layer origin in canvas
        pixels and must subtract it from every coordinate. Rotated layers are
        squares centred on the pivot, large enough that nothing is clipped.
        """
        x0, y0, x1, y1 = bounds
        if frame.rotation:
            radius = max(math.hypot(cx - frame.x, cy - frame.y) for cx in (x0, x1) for cy in (y0, y1))
            radius = int(math.ceil(radius)) + 2
            ox, oy = int(math.floor(frame.x)) - radius, int(math.floor(frame.y)) - radius
            size = (2 * radius, 2 * radius)
        else:
            ox, oy = int(math.floor(x0)) - 1, int(math.floor(y0)) - 1
            size = (max(1, int(math.ceil(x1)) - ox + 1), max(1, int(math.ceil(y1)) - oy + 1))

        layer = Image.new("RGBA", size, (0, 0, 0, 0))
        paint(ImageDraw.Draw(layer), layer, ox, oy)

        if frame.rotation:
            # PIL rotates counter-clockwise; the editor's angles are clockwise
            layer = layer.rotate(
                -frame.rotation,
                resample=RESAMPLE_BICUBIC,
                center=(frame.x - ox, frame.y - oy),
            )

        opacity = element.clamped_opacity
        if opacity < 1:
            alpha = layer.getchannel("A").point(lambda a: int(round(a * opacity)))
            layer.putalpha(alpha)

        canvas.paste(layer, (ox, oy), layer)

    # -------------------------------------------------------------------------
    # Elements
    # -------------------------------------------------------------------------

    def draw_text(self, canvas: Image.Image, ctx: RenderContext, element: TextElement) -> None:
        frame = ctx.frame(element)
        layout = ctx.text_layout(element)
        if not layout.lines:
            return
        font = load_font(self.fonts.raster_font_file(element), max(1, int(round(layout.font_size))))
        fill = rgba(ctx.rgb(element.color))

        bounds = (
            min([frame.x] + [line.x for line in layout.lines]),
            min(frame.y, layout.lines[0].baseline - layout.font_size),
            max([frame.x] + [line.x + line.width for line in layout.lines]),
            layout.lines[-1].baseline + layout.font_size * 0.5,
        )

        def paint(draw, layer, ox, oy):
            for line in layout.lines:
                if line.text:
                    draw.text((line.x - ox, line.baseline - oy), line.text, font=font, fill=fill, anchor="ls")
            for ((sx, sy), (ex, ey)), thickness in layout.decoration_segments():
                draw.line(
                    [(sx - ox, sy - oy), (ex - ox, ey - oy)],
                    fill=fill,
                    width=max(1, int(round(thickness))),
                )

        self._composite(canvas, element, frame, bounds, paint)

    def draw_image(
        self,
        canvas: Image.Image,
        ctx: RenderContext,
        element: ImageElement,
        image: Optional[Image.Image],
        warnings: List[str],
    ) -> None:
        if image is None:
            # failed loads were already recorded as warnings
            return
        frame = ctx.frame(element)
        width, height = int(round(frame.width)), int(round(frame.height))
        if width <= 0 or height <= 0:
            return
        resized = image.resize((width, height), RESAMPLE_LANCZOS)

        def paint(draw, layer, ox, oy):
            dest = (max(0, int(round(frame.x)) - ox), max(0, int(round(frame.y)) - oy))
            layer.alpha_composite(resized, dest=dest)

        bounds = (frame.x, frame.y, frame.x + width, frame.y + height)
        self._composite(canvas, element, frame, bounds, paint)

    def draw_shape(self, canvas: Image.Image, ctx: RenderContext, element: ShapeElement) -> None:
        frame = ctx.frame(element)
        paint_spec = ctx.paint(element)
        if paint_spec.fill is None and paint_spec.stroke is None:
            return

        fill = rgba(ctx.rgb(paint_spec.fill)) if paint_spec.fill else None
        outline = rgba(ctx.rgb(paint_spec.stroke)) if paint_spec.stroke else None
        stroke_width = max(1, int(round(paint_spec.stroke_width))) if outline else 0
        pad = stroke_width

        def paint(draw, layer, ox, oy):
            x0, y0 = frame.x - ox, frame.y - oy
            x1, y1 = x0 + frame.width, y0 + frame.height
            if element.shape is ShapeKind.CIRCLE:
                cx, cy = (x0 + x1) / 2, (y0 + y1) / 2
                r = min(frame.width, frame.height) / 2
                draw.ellipse([cx - r, cy - r, cx + r, cy + r], fill=fill, outline=outline, width=stroke_width)
            elif element.shape is ShapeKind.ELLIPSE:
                draw.ellipse([x0, y0, x1, y1], fill=fill, outline=outline, width=stroke_width)
            elif element.shape is ShapeKind.TRIANGLE:
                points = [(px - ox, py - oy) for px, py in ctx.shape_points(element.shape, frame)]
                draw.polygon(points, fill=fill, outline=outline, width=stroke_width)
            else:
                draw.rectangle([x0, y0, x1, y1], fill=fill, outline=outline, width=stroke_width)

        bounds = (frame.x - pad, frame.y - pad, frame.x + frame.width + pad, frame.y + frame.height + pad)
        self._composite(canvas, element, frame, bounds, paint)

    # -------------------------------------------------------------------------
    # Print furniture
    # -------------------------------------------------------------------------

    def draw_crop_marks(self, canvas: Image.Image, ctx: RenderContext) -> None:
        draw = ImageDraw.Draw(canvas)
        width = max(1, int(round(ctx.crop_mark_width())))
        for start, end in ctx.crop_mark_segments():
            draw.line([start, end], fill=(0, 0, 0), width=width)

    def draw_guides(self, canvas: Image.Image, ctx: RenderContext) -> None:
        draw = ImageDraw.Draw(canvas)
        width = max(1, int(round(ctx.guide_width())))
        dash = max(2.0, ctx.guide_width() * 8)
        gap = dash / 2
        for (x0, y0, x1, y1), color in (
            (ctx.trim_rect(), BLEED_GUIDE_COLOR),
            (ctx.safe_rect(), SAFE_GUIDE_COLOR),
        ):
            for start, end in ((x0, y0), (x1, y0)), ((x1, y0), (x1, y1)), ((x1, y1), (x0, y1)), ((x0, y1), (x0, y0)):
                for segment in _dashes(start, end, dash, gap):
                    draw.line(segment, fill=color.as_tuple(), width=width)


def _dashes(start, end, dash: float, gap: float):
    (sx, sy), (ex, ey) = start, end
    length = math.hypot(ex - sx, ey - sy)
    if length == 0:
        return
    ux, uy = (ex - sx) / length, (ey - sy) / length
    position = 0.0
    while position < length:
        stop = min(position + dash, length)
        yield [(sx + ux * position, sy + uy * position), (sx + ux * stop, sy + uy * stop)]
        position = stop + gap
