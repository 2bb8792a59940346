"""
Design element models.

A design is an ordered list of elements. Each element is one variant of a
tagged union - TextElement, ImageElement or ShapeElement - so renderers and
preflight rules match on the concrete class instead of probing optional
style fields.

Coordinates (x, y, width, height, font_size, stroke_width) are pixels at the
document's own DPI (the product's ``dpi``). They are never rewritten in
place; renderers convert them on the way out.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Union


class ElementType(Enum):
    """Discriminator of the element union."""

    TEXT = "text"
    IMAGE = "image"
    SHAPE = "shape"


class TextAlign(Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"

    @classmethod
    def from_value(cls, value: Any) -> "TextAlign":
        # 'justify' and unknown values render as left-aligned single lines
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.LEFT


class ShapeKind(Enum):
    RECTANGLE = "rectangle"
    CIRCLE = "circle"
    ELLIPSE = "ellipse"
    TRIANGLE = "triangle"


DEFAULT_FONT_SIZE = 12.0


@dataclass(frozen=True)
class CropRect:
    """Source-image crop window, in the image's own pixels."""

    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class DesignElement:
    """
    Fields shared by every element variant.

    Rotation is in degrees, clockwise, around the element's top-left corner
    (the convention of the editing canvas).
    """

    kind: ClassVar[ElementType]

    id: str = ""
    """Unique within one document."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    rotation: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0

    opacity: float = 1.0
    """0 (invisible) to 1 (opaque)."""

    visible: bool = True

    @property
    def scaled_width(self) -> float:
        return self.width * self.scale_x

    @property
    def scaled_height(self) -> float:
        return self.height * self.scale_y

    @property
    def clamped_opacity(self) -> float:
        return min(max(float(self.opacity), 0.0), 1.0)

    def with_id(self, element_id: str) -> "DesignElement":
        return replace(self, id=element_id)


@dataclass(frozen=True)
class TextElement(DesignElement):
    kind: ClassVar[ElementType] = ElementType.TEXT

    content: str = ""
    font_family: str = ""
    font_size: Optional[float] = None
    font_weight: str = "normal"
    font_style: str = "normal"
    color: Optional[str] = None
    align: TextAlign = TextAlign.LEFT
    decoration: str = "none"

    @property
    def effective_font_size(self) -> float:
        """Font size with the permissive default applied."""
        return float(self.font_size) if self.font_size else DEFAULT_FONT_SIZE

    @property
    def is_bold(self) -> bool:
        weight = str(self.font_weight).lower()
        if weight.isdigit():
            return int(weight) >= 600
        return weight in ("bold", "bolder")

    @property
    def is_italic(self) -> bool:
        return str(self.font_style).lower() in ("italic", "oblique")


@dataclass(frozen=True)
class ImageElement(DesignElement):
    kind: ClassVar[ElementType] = ElementType.IMAGE

    src: str = ""
    """Data URI, http(s) URL, file:// URL or local path."""

    crop: Optional[CropRect] = None

    natural_width: Optional[int] = None
    """Intrinsic pixel width, when the editor declares it."""

    natural_height: Optional[int] = None


@dataclass(frozen=True)
class ShapeElement(DesignElement):
    kind: ClassVar[ElementType] = ElementType.SHAPE

    shape: ShapeKind = ShapeKind.RECTANGLE
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: float = 0.0


Element = Union[TextElement, ImageElement, ShapeElement]


def primary_color(element: DesignElement) -> Optional[str]:
    """The color preflight inspects: text color or shape fill."""
    if isinstance(element, TextElement):
        return element.color
    if isinstance(element, ShapeElement):
        return element.fill
    return None


# =============================================================================
# PARSING
# =============================================================================

def _number(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _pick(data: Dict[str, Any], style: Dict[str, Any], *keys: str, default=None):
    """First non-None value among style[key] then data[key]."""
    for key in keys:
        if style.get(key) is not None:
            return style[key]
        if data.get(key) is not None:
            return data[key]
    return default


def _color(value: Any, name: str) -> Optional[str]:
    """Color fields are CSS strings; gradients and numbers are rejected."""
    if value is None or isinstance(value, str):
        return value
    raise ValueError(f"{name} must be a color string, got {type(value).__name__}")


def element_from_dict(data: Dict[str, Any]) -> Element:
    """
    Build an element from the editor's JSON shape.

    The editor nests geometry under ``position``/``size`` and styles under
    ``style``; older payloads put style keys at the top level. Both work.

    Raises:
        ValueError: If ``type`` is missing or unknown, or a color is not a string
    """
    try:
        element_type = ElementType(str(data.get("type", "")).lower())
    except ValueError:
        raise ValueError(f"Unknown element type: {data.get('type')!r}")

    position = data.get("position") or {}
    size = data.get("size") or {}
    scale = data.get("scale") or {}
    style = data.get("style") or {}

    common = {
        "id": str(data.get("id", "") or ""),
        "x": _number(position.get("x", data.get("x")), 0.0),
        "y": _number(position.get("y", data.get("y")), 0.0),
        "width": _number(size.get("width", data.get("width")), 0.0),
        "height": _number(size.get("height", data.get("height")), 0.0),
        "rotation": _number(data.get("rotation"), 0.0),
        "scale_x": _number(scale.get("x"), 1.0),
        "scale_y": _number(scale.get("y"), 1.0),
        "opacity": _number(_pick(data, style, "opacity", default=1.0), 1.0),
        "visible": bool(data.get("visible", True)),
    }

    if element_type is ElementType.TEXT:
        font_size = _pick(data, style, "fontSize", "font_size")
        return TextElement(
            content=str(data.get("content", "") or ""),
            font_family=str(_pick(data, style, "fontFamily", "font_family", default="") or ""),
            font_size=_number(font_size, DEFAULT_FONT_SIZE) if font_size is not None else None,
            font_weight=str(_pick(data, style, "fontWeight", "font_weight", default="normal")),
            font_style=str(_pick(data, style, "fontStyle", "font_style", default="normal")),
            color=_color(_pick(data, style, "color", "fill"), "color"),
            align=TextAlign.from_value(_pick(data, style, "textAlign", "align", default="left")),
            decoration=str(_pick(data, style, "textDecoration", "decoration", default="none")),
            **common,
        )

    if element_type is ElementType.IMAGE:
        crop_data = data.get("crop")
        crop = None
        if isinstance(crop_data, dict) and crop_data.get("width") and crop_data.get("height"):
            crop = CropRect(
                x=_number(crop_data.get("x"), 0.0),
                y=_number(crop_data.get("y"), 0.0),
                width=_number(crop_data.get("width"), 0.0),
                height=_number(crop_data.get("height"), 0.0),
            )
        natural_width = data.get("naturalWidth", data.get("natural_width"))
        natural_height = data.get("naturalHeight", data.get("natural_height"))
        return ImageElement(
            src=str(data.get("src") or data.get("url") or data.get("imageUrl") or ""),
            crop=crop,
            natural_width=int(natural_width) if natural_width else None,
            natural_height=int(natural_height) if natural_height else None,
            **common,
        )

    shape_value = str(data.get("shapeType", data.get("shape", "rectangle")) or "rectangle").lower()
    try:
        shape = ShapeKind(shape_value)
    except ValueError:
        raise ValueError(f"Unknown shape type: {shape_value!r}")

    return ShapeElement(
        shape=shape,
        fill=_color(_pick(data, style, "fill", "color"), "fill"),
        stroke=_color(_pick(data, style, "stroke"), "stroke"),
        stroke_width=_number(_pick(data, style, "strokeWidth", "stroke_width", default=0), 0.0),
        **common,
    )
