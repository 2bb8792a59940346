"""Unit tests for products, elements, documents and render options."""

import pytest

from core.exceptions import GeometryError
from models.document import DesignDocument
from models.elements import (
    DEFAULT_FONT_SIZE,
    ImageElement,
    ShapeElement,
    ShapeKind,
    TextAlign,
    TextElement,
    element_from_dict,
    primary_color,
)
from models.product import PrintProduct, ProductCategory
from models.render_options import (
    ColorMode,
    DEFAULT_RENDER_OPTIONS,
    ExportFormat,
    ExportResult,
    QualityTier,
    RenderOptions,
)


class TestPrintProduct:
    """PrintProduct validation and JSON shapes."""

    def test_slug_replaces_whitespace(self, business_card):
        assert business_card.slug == "Standard-Business-Card"

    def test_rejects_non_positive_dpi(self):
        with pytest.raises(GeometryError):
            PrintProduct(id="x", name="X", width_mm=10, height_mm=10, bleed_mm=0, safe_zone_mm=0, dpi=0)

    def test_rejects_negative_bleed(self):
        with pytest.raises(GeometryError):
            PrintProduct(id="x", name="X", width_mm=10, height_mm=10, bleed_mm=-1, safe_zone_mm=0, dpi=300)

    def test_from_dict_nested_dimensions(self, business_card):
        """Test from_dict reads what to_dict writes."""
        assert PrintProduct.from_dict(business_card.to_dict()) == business_card

    def test_from_dict_flat_keys_and_name_alias(self):
        product = PrintProduct.from_dict({
            "id": "flyer",
            "nameEn": "A5 Flyer",
            "width_mm": 148,
            "height_mm": 210,
            "bleed_mm": 3,
            "dpi": 300,
            "category": "flyers",
        })
        assert product.name == "A5 Flyer"
        assert product.category is ProductCategory.FLYERS
        assert product.safe_zone_mm == 0

    def test_from_dict_requires_size(self):
        with pytest.raises(ValueError):
            PrintProduct.from_dict({"id": "x", "dimensions": {"bleed": 3}})


class TestElements:
    """Element variants and editor JSON parsing."""

    def test_text_defaults(self):
        element = TextElement(id="t", content="Hi")
        assert element.effective_font_size == DEFAULT_FONT_SIZE
        assert element.align is TextAlign.LEFT
        assert element.visible

    def test_bold_and_italic_detection(self):
        assert TextElement(font_weight="700").is_bold
        assert TextElement(font_weight="bold").is_bold
        assert not TextElement(font_weight="400").is_bold
        assert TextElement(font_style="italic").is_italic

    def test_scaled_size(self):
        element = ShapeElement(width=100, height=50, scale_x=2, scale_y=0.5)
        assert (element.scaled_width, element.scaled_height) == (200, 25)

    def test_opacity_is_clamped(self):
        assert ShapeElement(opacity=1.5).clamped_opacity == 1.0
        assert ShapeElement(opacity=-0.2).clamped_opacity == 0.0

    def test_parse_nested_editor_json(self):
        element = element_from_dict({
            "id": "t1",
            "type": "text",
            "position": {"x": 10, "y": 20},
            "size": {"width": 300, "height": 40},
            "content": "Hello",
            "style": {"fontSize": 24, "fontFamily": "Georgia", "color": "#333333", "textAlign": "center"},
        })
        assert isinstance(element, TextElement)
        assert (element.x, element.y, element.width, element.height) == (10, 20, 300, 40)
        assert element.font_size == 24
        assert element.font_family == "Georgia"
        assert element.align is TextAlign.CENTER

    def test_parse_top_level_style_keys(self):
        element = element_from_dict({"id": "t2", "type": "text", "content": "x", "fontSize": 9, "color": "red"})
        assert element.font_size == 9
        assert element.color == "red"

    def test_parse_image_aliases(self):
        element = element_from_dict({"id": "i", "type": "image", "imageUrl": "https://example.com/a.png",
                                     "naturalWidth": 1200, "naturalHeight": 800})
        assert isinstance(element, ImageElement)
        assert element.src == "https://example.com/a.png"
        assert (element.natural_width, element.natural_height) == (1200, 800)

    def test_parse_shape(self):
        element = element_from_dict({"id": "s", "type": "shape", "shapeType": "triangle",
                                     "style": {"fill": "#00ff00", "strokeWidth": 2}})
        assert element.shape is ShapeKind.TRIANGLE
        assert element.stroke_width == 2

    @pytest.mark.parametrize("payload", [{"type": "video"}, {"type": "shape", "shapeType": "star"}, {}])
    def test_parse_rejects_unknown_types(self, payload):
        with pytest.raises(ValueError):
            element_from_dict(payload)

    @pytest.mark.parametrize("style", [
        {"color": 5},
        {"fill": {"type": "linear-gradient", "stops": []}},
    ])
    def test_parse_rejects_non_string_text_color(self, style):
        with pytest.raises(ValueError, match="must be a color string"):
            element_from_dict({"id": "t", "type": "text", "content": "Hi", "style": style})

    def test_parse_rejects_non_string_shape_paint(self):
        with pytest.raises(ValueError, match="stroke must be a color string, got int"):
            element_from_dict({"id": "s", "type": "shape", "style": {"fill": "#000000", "stroke": 0}})

    def test_primary_color(self):
        assert primary_color(TextElement(color="#111111")) == "#111111"
        assert primary_color(ShapeElement(fill="#222222")) == "#222222"
        assert primary_color(ImageElement()) is None


class TestDesignDocument:
    """Ordered element collection."""

    def test_add_generates_ids(self):
        doc = DesignDocument()
        stored = doc.add(TextElement(content="a"))
        assert stored.id.startswith("text-")
        assert doc.get(stored.id) is stored

    def test_duplicate_ids_rejected(self):
        doc = DesignDocument([TextElement(id="a")])
        with pytest.raises(ValueError):
            doc.add(ShapeElement(id="a"))

    def test_order_is_z_order(self):
        doc = DesignDocument([ShapeElement(id="bottom"), TextElement(id="top")])
        assert [e.id for e in doc] == ["bottom", "top"]

    def test_remove_unknown_is_noop(self):
        doc = DesignDocument([ShapeElement(id="a")])
        doc.remove("missing")
        assert len(doc) == 1

    def test_snapshot_is_isolated_from_edits(self):
        doc = DesignDocument([ShapeElement(id="a")])
        snapshot = doc.snapshot()
        doc.add(ShapeElement(id="b"))
        assert len(snapshot) == 1

    def test_of_type(self):
        doc = DesignDocument([ShapeElement(id="s"), TextElement(id="t"), ShapeElement(id="s2")])
        assert [e.id for e in doc.of_type(ShapeElement)] == ["s", "s2"]


class TestRenderOptions:
    """Defaults and JSON parsing."""

    def test_defaults(self):
        options = DEFAULT_RENDER_OPTIONS
        assert options.format is ExportFormat.PDF
        assert options.quality is QualityTier.PRINT
        assert options.include_bleed and options.include_crop_marks
        assert options.color_mode is ColorMode.CMYK
        assert options.dpi == 300

    @pytest.mark.parametrize("quality,dpi", [(QualityTier.DRAFT, 150), (QualityTier.PRINT, 300), (QualityTier.HIGH, 600)])
    def test_for_quality(self, quality, dpi):
        assert RenderOptions.for_quality(quality).dpi == dpi

    def test_from_dict_uses_quality_dpi(self):
        options = RenderOptions.from_dict({"format": "png", "quality": "high", "colorMode": "rgb"})
        assert options.format is ExportFormat.PNG
        assert options.dpi == 600
        assert options.color_mode is ColorMode.RGB

    def test_from_dict_rejects_unknown_format(self):
        with pytest.raises(ValueError):
            RenderOptions.from_dict({"format": "tiff"})

    def test_rejects_zero_dpi(self):
        with pytest.raises(GeometryError) as exc_info:
            RenderOptions(dpi=0)
        assert exc_info.value.details == {"value": 0}

    def test_frozen(self):
        with pytest.raises(Exception):
            DEFAULT_RENDER_OPTIONS.dpi = 600


class TestExportResult:
    def test_ok_sets_mime_type(self):
        result = ExportResult.ok(b"x", "card-1.svg", ExportFormat.SVG, ["w"])
        assert result.success
        assert result.mime_type == "image/svg+xml"
        assert result.to_dict(include_data=True)["data"] == "eA=="

    def test_failed(self):
        result = ExportResult.failed("boom")
        assert not result.success
        assert result.to_dict()["error"] == "boom"
