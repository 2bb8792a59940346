"""Shared fixtures for the print export tests."""

import base64
import io

import pytest
from PIL import Image

from models.elements import ImageElement, ShapeElement, ShapeKind, TextElement
from models.product import PrintProduct, ProductCategory
from modules.image_loader import ImageLoader


@pytest.fixture
def business_card():
    """90 x 54 mm card, 3 mm bleed, 5 mm safe zone, 300 DPI."""
    return PrintProduct(
        id="business-card-standard",
        name="Standard Business Card",
        width_mm=90,
        height_mm=54,
        bleed_mm=3,
        safe_zone_mm=5,
        dpi=300,
        category=ProductCategory.BUSINESS_CARDS,
    )


@pytest.fixture
def png_bytes():
    """A 20 x 10 solid red PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (20, 10), (255, 0, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_data_uri(png_bytes):
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def offline_loader():
    """Loader that never touches the network."""
    return ImageLoader(timeout=2.0, allow_remote=False, allow_files=True)


@pytest.fixture
def sample_elements(png_data_uri):
    """A small design using every element variant."""
    return (
        ShapeElement(id="bg", x=0, y=0, width=1063, height=638, shape=ShapeKind.RECTANGLE, fill="#1E3A8A"),
        TextElement(
            id="title",
            x=100,
            y=100,
            width=600,
            height=80,
            content="Jane Doe",
            font_family="Arial",
            font_size=48,
            color="#FFFFFF",
        ),
        ImageElement(id="logo", x=800, y=80, width=200, height=100, src=png_data_uri),
        ShapeElement(
            id="badge",
            x=700,
            y=400,
            width=120,
            height=120,
            shape=ShapeKind.CIRCLE,
            fill="transparent",
            stroke="#FF0000",
            stroke_width=4,
            rotation=15,
            opacity=0.5,
        ),
    )
