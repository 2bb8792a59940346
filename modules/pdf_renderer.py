"""
PDF export (ReportLab).

The page is sized from the output canvas: total px at the output DPI,
converted to mm and then to points. The canvas transform is set up once so
drawing code works in the same y-down pixel space as the other renderers;
text and images are flipped back locally so they read upright.

The canvas is created with ``invariant=1``, which pins the creation date
and document id, so rendering the same snapshot twice yields identical
bytes.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import List, Optional

from PIL import Image
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas as pdf_canvas

from core.color import BLACK
from core.units import mm_to_pt, px_to_mm
from models.elements import ImageElement, ShapeElement, ShapeKind, TextElement
from models.render_options import ExportFormat
from modules.render_common import (
    BLEED_GUIDE_COLOR,
    SAFE_GUIDE_COLOR,
    PixelRenderer,
    RenderContext,
)

PDF_CREATOR = "print_export"


@dataclass
class PdfSurface:
    pdf: pdf_canvas.Canvas
    buffer: io.BytesIO
    page_width_pt: float
    page_height_pt: float


class PdfRenderer(PixelRenderer):
    format = ExportFormat.PDF

    def begin(self, ctx: RenderContext) -> PdfSurface:
        page_width = mm_to_pt(px_to_mm(ctx.width, ctx.dpi))
        page_height = mm_to_pt(px_to_mm(ctx.height, ctx.dpi))

        buffer = io.BytesIO()
        pdf = pdf_canvas.Canvas(buffer, pagesize=(page_width, page_height), invariant=1)
        pdf.setTitle(ctx.product.name)
        pdf.setSubject(f"{ctx.product.width_mm:g} x {ctx.product.height_mm:g} mm, {ctx.dpi} DPI")
        pdf.setCreator(PDF_CREATOR)

        # y-down pixel space: origin top-left, 1 unit = 1 output pixel
        points_per_px = page_width / ctx.width
        pdf.translate(0, page_height)
        pdf.scale(points_per_px, -points_per_px)

        return PdfSurface(pdf, buffer, page_width, page_height)

    def finish(self, surface: PdfSurface, ctx: RenderContext) -> bytes:
        surface.pdf.showPage()
        surface.pdf.save()
        return surface.buffer.getvalue()

    def text_font_name(self, element: TextElement) -> str:
        return self.fonts.pdf_font_name(element)

    # -------------------------------------------------------------------------
    # Color helpers
    # -------------------------------------------------------------------------

    def _fill(self, pdf, ctx: RenderContext, value: Optional[str]) -> None:
        if ctx.cmyk_mode:
            pdf.setFillColorCMYK(*ctx.cmyk(value).as_fractions())
        else:
            color = ctx.rgb(value)
            pdf.setFillColorRGB(color.r / 255.0, color.g / 255.0, color.b / 255.0)

    def _stroke(self, pdf, ctx: RenderContext, value: Optional[str]) -> None:
        if ctx.cmyk_mode:
            pdf.setStrokeColorCMYK(*ctx.cmyk(value).as_fractions())
        else:
            color = ctx.rgb(value)
            pdf.setStrokeColorRGB(color.r / 255.0, color.g / 255.0, color.b / 255.0)

    # -------------------------------------------------------------------------
    # Per-element state
    # -------------------------------------------------------------------------

    def _enter(self, pdf, element, frame) -> None:
        pdf.saveState()
        if frame.rotation:
            # in the flipped frame a positive angle turns clockwise on the page
            pdf.translate(frame.x, frame.y)
            pdf.rotate(frame.rotation)
            pdf.translate(-frame.x, -frame.y)
        opacity = element.clamped_opacity
        if opacity < 1:
            pdf.setFillAlpha(opacity)
            pdf.setStrokeAlpha(opacity)

    def _leave(self, pdf, element) -> None:
        pdf.restoreState()
        if element.clamped_opacity < 1:
            pdf.setFillAlpha(1)
            pdf.setStrokeAlpha(1)

    # -------------------------------------------------------------------------
    # Elements
    # -------------------------------------------------------------------------

    def draw_text(self, surface: PdfSurface, ctx: RenderContext, element: TextElement) -> None:
        pdf = surface.pdf
        frame = ctx.frame(element)
        layout = ctx.text_layout(element)

        self._enter(pdf, element, frame)
        try:
            self._fill(pdf, ctx, element.color)
            self._stroke(pdf, ctx, element.color)
            for line in layout.lines:
                if not line.text:
                    continue
                pdf.saveState()
                pdf.translate(line.x, line.baseline)
                pdf.scale(1, -1)
                pdf.setFont(layout.font_name, layout.font_size)
                pdf.drawString(0, 0, line.text)
                pdf.restoreState()
            for ((sx, sy), (ex, ey)), thickness in layout.decoration_segments():
                pdf.setLineWidth(thickness)
                pdf.line(sx, sy, ex, ey)
        finally:
            self._leave(pdf, element)

    def draw_image(
        self,
        surface: PdfSurface,
        ctx: RenderContext,
        element: ImageElement,
        image: Optional[Image.Image],
        warnings: List[str],
    ) -> None:
        if image is None:
            return
        pdf = surface.pdf
        frame = ctx.frame(element)
        if frame.width <= 0 or frame.height <= 0:
            return

        self._enter(pdf, element, frame)
        try:
            pdf.translate(frame.x, frame.y + frame.height)
            pdf.scale(1, -1)
            pdf.drawImage(
                ImageReader(image),
                0,
                0,
                width=frame.width,
                height=frame.height,
                mask="auto",
                preserveAspectRatio=False,
            )
        finally:
            self._leave(pdf, element)

    def draw_shape(self, surface: PdfSurface, ctx: RenderContext, element: ShapeElement) -> None:
        pdf = surface.pdf
        frame = ctx.frame(element)
        paint = ctx.paint(element)
        fill = 1 if paint.fill else 0
        stroke = 1 if paint.stroke else 0
        if not fill and not stroke:
            return

        self._enter(pdf, element, frame)
        try:
            if fill:
                self._fill(pdf, ctx, paint.fill)
            if stroke:
                self._stroke(pdf, ctx, paint.stroke)
                pdf.setLineWidth(paint.stroke_width)

            if element.shape is ShapeKind.CIRCLE:
                cx, cy = frame.center
                pdf.circle(cx, cy, min(frame.width, frame.height) / 2, stroke=stroke, fill=fill)
            elif element.shape is ShapeKind.ELLIPSE:
                pdf.ellipse(
                    frame.x, frame.y, frame.x + frame.width, frame.y + frame.height, stroke=stroke, fill=fill
                )
            elif element.shape is ShapeKind.TRIANGLE:
                points = ctx.shape_points(element.shape, frame)
                path = pdf.beginPath()
                path.moveTo(*points[0])
                for point in points[1:]:
                    path.lineTo(*point)
                path.close()
                pdf.drawPath(path, stroke=stroke, fill=fill)
            else:
                pdf.rect(frame.x, frame.y, frame.width, frame.height, stroke=stroke, fill=fill)
        finally:
            self._leave(pdf, element)

    # -------------------------------------------------------------------------
    # Print furniture
    # -------------------------------------------------------------------------

    def draw_crop_marks(self, surface: PdfSurface, ctx: RenderContext) -> None:
        pdf = surface.pdf
        pdf.saveState()
        self._stroke(pdf, ctx, BLACK.to_hex())
        pdf.setLineWidth(ctx.crop_mark_width())
        for (x1, y1), (x2, y2) in ctx.crop_mark_segments():
            pdf.line(x1, y1, x2, y2)
        pdf.restoreState()

    def draw_guides(self, surface: PdfSurface, ctx: RenderContext) -> None:
        pdf = surface.pdf
        width = ctx.guide_width()
        pdf.saveState()
        pdf.setLineWidth(width)
        pdf.setDash(width * 8, width * 4)
        for (x0, y0, x1, y1), color in (
            (ctx.trim_rect(), BLEED_GUIDE_COLOR),
            (ctx.safe_rect(), SAFE_GUIDE_COLOR),
        ):
            self._stroke(pdf, ctx, color.to_hex())
            pdf.rect(x0, y0, x1 - x0, y1 - y0, stroke=1, fill=0)
        pdf.restoreState()
