"""
SVG export.

Produces a standalone SVG document sized to the output canvas in pixels.
Images are referenced by their source URL rather than embedded, so this
renderer never loads image data.
"""

from __future__ import annotations

from typing import List, Optional

from markupsafe import escape

from core.color import is_paintable
from models.elements import ImageElement, ShapeElement, ShapeKind, TextElement
from models.render_options import ExportFormat
from modules.render_common import (
    BLEED_GUIDE_COLOR,
    SAFE_GUIDE_COLOR,
    Frame,
    RenderContext,
    Renderer,
)

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"


def fmt(value: float) -> str:
    """Compact, deterministic number formatting (2 decimals max)."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def attrs(**values) -> str:
    """Render keyword arguments as escaped XML attributes, skipping None."""
    parts = []
    for key, value in values.items():
        if value is None:
            continue
        name = key.rstrip("_").replace("_", "-")
        if isinstance(value, float):
            value = fmt(value)
        parts.append(f'{name}="{escape(str(value))}"')
    return " ".join(parts)


class SvgRenderer(Renderer):
    format = ExportFormat.SVG

    def begin(self, ctx: RenderContext) -> List[str]:
        width, height = fmt(ctx.width), fmt(ctx.height)
        return [
            '<?xml version="1.0" encoding="UTF-8"?>',
            f'<svg xmlns="{SVG_NS}" xmlns:xlink="{XLINK_NS}" '
            f'width="{width}" height="{height}" viewBox="0 0 {width} {height}">',
            f'<rect x="0" y="0" width="{width}" height="{height}" fill="#ffffff"/>',
        ]

    def finish(self, surface: List[str], ctx: RenderContext) -> bytes:
        surface.append("</svg>")
        return ("\n".join(surface) + "\n").encode("utf-8")

    # -------------------------------------------------------------------------
    # Elements
    # -------------------------------------------------------------------------

    def _group_open(self, ctx: RenderContext, element, frame: Frame, color: Optional[str] = None) -> str:
        transform = None
        if frame.rotation:
            transform = f"rotate({fmt(frame.rotation)} {fmt(frame.x)} {fmt(frame.y)})"
        opacity = element.clamped_opacity
        data_cmyk = None
        if ctx.cmyk_mode and color is not None and is_paintable(color):
            cmyk = ctx.cmyk(color)
            data_cmyk = f"{fmt(cmyk.c)},{fmt(cmyk.m)},{fmt(cmyk.y)},{fmt(cmyk.k)}"
        return "<g " + attrs(
            id=element.id or None,
            transform=transform,
            opacity=float(opacity) if opacity < 1 else None,
            data_cmyk=data_cmyk,
        ).rstrip() + ">"

    def draw_text(self, surface: List[str], ctx: RenderContext, element: TextElement) -> None:
        frame = ctx.frame(element)
        layout = ctx.text_layout(element)
        surface.append(self._group_open(ctx, element, frame, element.color or "#000000"))

        decoration = layout.decoration if layout.decoration in ("underline", "line-through") else None
        for line in layout.lines:
            surface.append(
                "<text "
                + attrs(
                    x=float(line.x),
                    y=float(line.baseline),
                    font_family=element.font_family or "Arial",
                    font_size=float(layout.font_size),
                    font_weight="bold" if element.is_bold else None,
                    font_style="italic" if element.is_italic else None,
                    text_decoration=decoration,
                    fill=ctx.rgb(element.color).to_hex(),
                )
                + f">{escape(line.text)}</text>"
            )
        surface.append("</g>")

    def draw_image(self, surface: List[str], ctx: RenderContext, element: ImageElement, image, warnings) -> None:
        if not element.src:
            warnings.append(f"Image {element.id} skipped: empty source")
            return
        frame = ctx.frame(element)
        surface.append(self._group_open(ctx, element, frame))
        surface.append(
            "<image "
            + attrs(
                x=float(frame.x),
                y=float(frame.y),
                width=float(frame.width),
                height=float(frame.height),
                href=element.src,
                preserveAspectRatio="none",
            )
            + "/>"
        )
        surface.append("</g>")

    def draw_shape(self, surface: List[str], ctx: RenderContext, element: ShapeElement) -> None:
        frame = ctx.frame(element)
        paint = ctx.paint(element)
        style = attrs(
            fill=ctx.rgb(paint.fill).to_hex() if paint.fill else "none",
            stroke=ctx.rgb(paint.stroke).to_hex() if paint.stroke else None,
            stroke_width=float(paint.stroke_width) if paint.stroke else None,
        )

        cx, cy = frame.center
        if element.shape is ShapeKind.CIRCLE:
            geometry = "circle " + attrs(cx=float(cx), cy=float(cy), r=float(min(frame.width, frame.height) / 2))
        elif element.shape is ShapeKind.ELLIPSE:
            geometry = "ellipse " + attrs(
                cx=float(cx), cy=float(cy), rx=float(frame.width / 2), ry=float(frame.height / 2)
            )
        elif element.shape is ShapeKind.TRIANGLE:
            points = " ".join(f"{fmt(px)},{fmt(py)}" for px, py in ctx.shape_points(element.shape, frame))
            geometry = "polygon " + attrs(points=points)
        else:
            geometry = "rect " + attrs(
                x=float(frame.x), y=float(frame.y), width=float(frame.width), height=float(frame.height)
            )

        surface.append(self._group_open(ctx, element, frame, paint.fill))
        surface.append(f"<{geometry} {style}/>")
        surface.append("</g>")

    # -------------------------------------------------------------------------
    # Print furniture
    # -------------------------------------------------------------------------

    def draw_crop_marks(self, surface: List[str], ctx: RenderContext) -> None:
        surface.append(
            '<g id="crop-marks" ' + attrs(stroke="#000000", stroke_width=float(ctx.crop_mark_width())) + ">"
        )
        for (x1, y1), (x2, y2) in ctx.crop_mark_segments():
            surface.append("<line " + attrs(x1=float(x1), y1=float(y1), x2=float(x2), y2=float(y2)) + "/>")
        surface.append("</g>")

    def draw_guides(self, surface: List[str], ctx: RenderContext) -> None:
        width = ctx.guide_width()
        dash = f"{fmt(width * 8)} {fmt(width * 4)}"
        surface.append('<g id="guides" fill="none">')
        for (x0, y0, x1, y1), color in (
            (ctx.trim_rect(), BLEED_GUIDE_COLOR),
            (ctx.safe_rect(), SAFE_GUIDE_COLOR),
        ):
            surface.append(
                "<rect "
                + attrs(
                    x=float(x0),
                    y=float(y0),
                    width=float(x1 - x0),
                    height=float(y1 - y0),
                    stroke=color.to_hex(),
                    stroke_width=float(width),
                    stroke_dasharray=dash,
                )
                + "/>"
            )
        surface.append("</g>")
