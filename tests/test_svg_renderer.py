"""Tests for SVG export."""

import asyncio
import threading
import xml.etree.ElementTree as ET

import pytest

from core.exceptions import ExportCancelledError
from core.units import mm_to_px
from models.elements import ImageElement, ShapeElement, ShapeKind, TextAlign, TextElement
from models.render_options import ColorMode, ExportFormat, RenderOptions
from modules.render_common import measure_text
from modules.svg_renderer import SvgRenderer, fmt

SVG = "{http://www.w3.org/2000/svg}"


@pytest.fixture
def options():
    return RenderOptions(format=ExportFormat.SVG, color_mode=ColorMode.RGB)


def render(elements, product, options, cancel_event=None):
    return asyncio.run(SvgRenderer().render(elements, product, options, cancel_event))


def parse(output):
    return ET.fromstring(output.data)


def group(root, element_id):
    for node in root.iter(f"{SVG}g"):
        if node.get("id") == element_id:
            return node
    return None


class TestDocument:
    """Canvas size, blank documents and crop marks."""

    def test_empty_design_is_valid_blank_document(self, business_card, options):
        root = parse(render([], business_card, options))

        assert root.tag == f"{SVG}svg"
        assert root.get("width") == "1133.86"
        assert root.get("height") == "708.66"
        assert root.find(f"{SVG}rect").get("fill") == "#ffffff"

    def test_without_bleed_uses_trim_size(self, business_card, options):
        root = parse(render([], business_card, options.replace(include_bleed=False)))
        assert root.get("width") == "1062.99"
        assert root.get("height") == "637.8"

    def test_canvas_scales_with_output_dpi(self, business_card, options):
        root = parse(render([], business_card, options.replace(dpi=600)))
        assert float(root.get("width")) == pytest.approx(2267.72, abs=0.01)

    def test_crop_marks_at_trim_corners(self, business_card, options):
        root = parse(render([], business_card, options))
        marks = group(root, "crop-marks")
        lines = marks.findall(f"{SVG}line")
        bleed = mm_to_px(3, 300)

        assert len(lines) == 8
        starts = [(float(line.get("x1")), float(line.get("y1"))) for line in lines]
        assert any(x == pytest.approx(bleed, abs=0.01) and y == pytest.approx(bleed, abs=0.01) for x, y in starts)
        # every mark stays on the sheet
        for line in lines:
            assert 0 <= float(line.get("x2")) <= 1133.86
            assert 0 <= float(line.get("y2")) <= 708.66

    def test_no_crop_marks_when_disabled(self, business_card, options):
        root = parse(render([], business_card, options.replace(include_crop_marks=False)))
        assert group(root, "crop-marks") is None

    def test_guides(self, business_card, options):
        root = parse(render([], business_card, options.replace(show_guides=True)))
        rects = group(root, "guides").findall(f"{SVG}rect")
        assert [r.get("stroke") for r in rects] == ["#ff0000", "#00ff00"]


class TestText:
    """Text placement and escaping."""

    def test_special_characters_are_escaped(self, business_card, options):
        content = 'Fish & <Chips> "daily"'
        output = render([TextElement(id="t", x=100, y=100, content=content)], business_card, options)

        assert b"<Chips>" not in output.data
        text = group(parse(output), "t").find(f"{SVG}text")
        assert text.text == content

    def test_baseline_is_one_font_size_below_top(self, business_card, options):
        element = TextElement(id="t", x=100, y=100, content="Hi", font_size=20)
        text = group(parse(render([element], business_card, options.replace(include_bleed=False))), "t").find(f"{SVG}text")

        assert float(text.get("x")) == pytest.approx(100, abs=0.01)
        assert float(text.get("y")) == pytest.approx(120, abs=0.01)
        assert float(text.get("font-size")) == pytest.approx(20)

    @pytest.mark.parametrize("align,factor", [(TextAlign.LEFT, 0), (TextAlign.CENTER, 0.5), (TextAlign.RIGHT, 1)])
    def test_alignment_uses_measured_width(self, business_card, options, align, factor):
        element = TextElement(id="t", x=500, y=100, content="Hello", font_size=20, align=align)
        text = group(parse(render([element], business_card, options.replace(include_bleed=False))), "t").find(f"{SVG}text")

        expected = 500 - measure_text("Hello", "Helvetica", 20) * factor
        assert float(text.get("x")) == pytest.approx(expected, abs=0.01)

    def test_font_size_scales_with_dpi(self, business_card, options):
        element = TextElement(id="t", x=100, y=100, content="Hi", font_size=20)
        root = parse(render([element], business_card, options.replace(dpi=600, include_bleed=False)))
        text = group(root, "t").find(f"{SVG}text")

        assert float(text.get("font-size")) == pytest.approx(40)
        assert float(text.get("x")) == pytest.approx(200, abs=0.01)

    def test_multiline_text(self, business_card, options):
        element = TextElement(id="t", x=100, y=100, content="one\ntwo", font_size=10)
        texts = group(parse(render([element], business_card, options.replace(include_bleed=False))), "t").findall(f"{SVG}text")

        assert [t.text for t in texts] == ["one", "two"]
        assert float(texts[1].get("y")) - float(texts[0].get("y")) == pytest.approx(12, abs=0.01)


class TestElements:
    """Shapes, images, transforms and color annotation."""

    def test_rotation_is_around_top_left(self, business_card, options):
        element = ShapeElement(id="s", x=100, y=100, width=50, height=50, fill="#000000", rotation=30)
        node = group(parse(render([element], business_card, options)), "s")
        corner = fmt(100 + mm_to_px(3, 300))

        assert node.get("transform") == f"rotate(30 {corner} {corner})"

    def test_opacity(self, business_card, options):
        element = ShapeElement(id="s", width=10, height=10, fill="#000000", opacity=0.25)
        assert group(parse(render([element], business_card, options)), "s").get("opacity") == "0.25"

    def test_transparent_fill_and_stroke(self, business_card, options):
        element = ShapeElement(id="s", width=10, height=10, fill="transparent", stroke="#ff0000", stroke_width=2)
        rect = group(parse(render([element], business_card, options)), "s").find(f"{SVG}rect")

        assert rect.get("fill") == "none"
        assert rect.get("stroke") == "#ff0000"
        assert float(rect.get("stroke-width")) == pytest.approx(2)

    @pytest.mark.parametrize("shape,tag", [
        (ShapeKind.CIRCLE, "circle"),
        (ShapeKind.ELLIPSE, "ellipse"),
        (ShapeKind.TRIANGLE, "polygon"),
        (ShapeKind.RECTANGLE, "rect"),
    ])
    def test_shape_kinds(self, business_card, options, shape, tag):
        element = ShapeElement(id="s", width=40, height=20, shape=shape, fill="#00ff00")
        assert group(parse(render([element], business_card, options)), "s").find(f"{SVG}{tag}") is not None

    def test_image_is_referenced_not_loaded(self, business_card, options):
        element = ImageElement(id="i", x=10, y=10, width=100, height=50, src="https://example.com/logo.png")
        image = group(parse(render([element], business_card, options)), "i").find(f"{SVG}image")
        assert image.get("href") == "https://example.com/logo.png"

    def test_image_without_source_warns(self, business_card, options):
        output = render([ImageElement(id="i", width=10, height=10)], business_card, options)
        assert output.warnings == ["Image i skipped: empty source"]

    def test_invisible_elements_are_skipped(self, business_card, options):
        element = ShapeElement(id="hidden", width=10, height=10, fill="#000000", visible=False)
        assert group(parse(render([element], business_card, options)), "hidden") is None

    def test_cmyk_annotation(self, business_card, options):
        element = ShapeElement(id="s", width=10, height=10, fill="#FF0000")
        cmyk_root = parse(render([element], business_card, options.replace(color_mode=ColorMode.CMYK)))
        rgb_root = parse(render([element], business_card, options))

        assert group(cmyk_root, "s").get("data-cmyk") == "0,100,100,0"
        assert group(rgb_root, "s").get("data-cmyk") is None

    def test_z_order_is_document_order(self, business_card, options):
        elements = [ShapeElement(id="a", fill="#000"), ShapeElement(id="b", fill="#000")]
        ids = [g.get("id") for g in parse(render(elements, business_card, options)).iter(f"{SVG}g")]
        assert ids.index("a") < ids.index("b")


class TestCancellation:
    def test_cancel_before_drawing(self, business_card, options):
        event = threading.Event()
        event.set()
        with pytest.raises(ExportCancelledError):
            render([ShapeElement(id="s")], business_card, options, event)
