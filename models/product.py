"""
Physical product specification.

A PrintProduct is supplied by the product catalog (or posted by the host)
and treated as read-only for the whole export or preflight call.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, Optional

from core.exceptions import GeometryError


class ProductCategory(Enum):
    """Catalog category of a printable product."""

    BUSINESS_CARDS = "business-cards"
    FLYERS = "flyers"
    POSTERS = "posters"
    BANNERS = "banners"
    STICKERS = "stickers"

    @classmethod
    def from_value(cls, value: Any) -> "ProductCategory":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            raise ValueError(f"Unknown product category: {value!r}")


@dataclass(frozen=True)
class PrintProduct:
    """
    Immutable physical definition of a printable product.

    All lengths are millimetres; ``dpi`` is the resolution the design's
    element coordinates are expressed in.
    """

    id: str
    """Catalog identifier (e.g., 'business-card-standard')."""

    name: str
    """English display name, also used to build export filenames."""

    width_mm: float
    """Trim width."""

    height_mm: float
    """Trim height."""

    bleed_mm: float
    """Bleed margin beyond the trim line on every side."""

    safe_zone_mm: float
    """Inset inside the trim line that critical content must respect."""

    dpi: int
    """Resolution of the document's pixel coordinates."""

    category: ProductCategory = ProductCategory.BUSINESS_CARDS
    """Catalog category."""

    name_local: str = ""
    """Localized display name (optional)."""

    description: str = ""
    """Short catalog description (optional)."""

    def __post_init__(self):
        if self.dpi <= 0:
            raise GeometryError(f"Product dpi must be positive, got {self.dpi}", self.dpi)
        for field_name in ("width_mm", "height_mm", "bleed_mm", "safe_zone_mm"):
            if getattr(self, field_name) < 0:
                raise GeometryError(f"Product {field_name} must not be negative", getattr(self, field_name))

    @property
    def slug(self) -> str:
        """Name with whitespace runs replaced by dashes (filename stem)."""
        return re.sub(r"\s+", "-", self.name.strip()) or self.id

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape used by the host UI."""
        return {
            "id": self.id,
            "name": self.name,
            "nameLocal": self.name_local,
            "category": self.category.value,
            "description": self.description,
            "dimensions": {
                "width": self.width_mm,
                "height": self.height_mm,
                "bleed": self.bleed_mm,
                "safeZone": self.safe_zone_mm,
                "dpi": self.dpi,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrintProduct":
        """
        Create from a JSON payload.

        Accepts both the nested ``dimensions`` shape and flat snake_case keys.
        ``nameEn`` is accepted as an alias for ``name``.

        Raises:
            ValueError: If required dimensions are missing or invalid
            GeometryError: If dpi is not positive or a length is negative
        """
        dims: Optional[Dict[str, Any]] = data.get("dimensions")
        if dims is None:
            dims = {
                "width": data.get("width_mm"),
                "height": data.get("height_mm"),
                "bleed": data.get("bleed_mm", 0),
                "safeZone": data.get("safe_zone_mm", 0),
                "dpi": data.get("dpi", 300),
            }

        try:
            width = float(dims["width"])
            height = float(dims["height"])
        except (KeyError, TypeError, ValueError):
            raise ValueError("Product width and height (mm) are required")

        name = data.get("name") or data.get("nameEn") or data.get("id") or "design"

        return cls(
            id=str(data.get("id", "custom")),
            name=str(name),
            width_mm=width,
            height_mm=height,
            bleed_mm=float(dims.get("bleed", 0) or 0),
            safe_zone_mm=float(dims.get("safeZone", dims.get("safe_zone", 0)) or 0),
            dpi=int(dims.get("dpi", 300) or 300),
            category=ProductCategory.from_value(data.get("category", "business-cards")),
            name_local=str(data.get("nameLocal", data.get("name_local", "")) or ""),
            description=str(data.get("description", "") or ""),
        )
