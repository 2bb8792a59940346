"""
Built-in print product catalog.

Sizes, bleeds and safe zones follow common commercial-printer specs. The
storefront's product service is the source of truth in production; this
catalog is what the API serves when a request names a product by id.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from core.units import mm_to_px
from models.product import PrintProduct, ProductCategory

PREVIEW_DPI = 72

CATEGORY_NAMES = {
    ProductCategory.BUSINESS_CARDS: "Business Cards",
    ProductCategory.FLYERS: "Flyers & Leaflets",
    ProductCategory.POSTERS: "Posters",
    ProductCategory.BANNERS: "Banners",
    ProductCategory.STICKERS: "Stickers & Labels",
}

CATEGORY_NAMES_TH = {
    ProductCategory.BUSINESS_CARDS: "นามบัตร",
    ProductCategory.FLYERS: "ใบปลิวและโบรชัวร์",
    ProductCategory.POSTERS: "โปสเตอร์",
    ProductCategory.BANNERS: "แบนเนอร์",
    ProductCategory.STICKERS: "สติกเกอร์และฉลาก",
}


def _product(pid, name, category, width, height, bleed, safe, dpi=300, description=""):
    return PrintProduct(
        id=pid,
        name=name,
        width_mm=width,
        height_mm=height,
        bleed_mm=bleed,
        safe_zone_mm=safe,
        dpi=dpi,
        category=category,
        description=description,
    )


PRINT_PRODUCTS: Tuple[PrintProduct, ...] = (
    # Business cards (postcards share the category)
    _product("business-card-standard", "Standard Business Card", ProductCategory.BUSINESS_CARDS,
             90, 54, 3, 5, description="Standard business card size used worldwide"),
    _product("business-card-square", "Square Business Card", ProductCategory.BUSINESS_CARDS,
             85, 85, 3, 5, description="Modern square format for creative professionals"),
    _product("postcard-standard", "Standard Postcard", ProductCategory.BUSINESS_CARDS,
             148, 105, 3, 6, description="A6 postcard for mailings and invitations"),
    # Flyers
    _product("flyer-a4", "A4 Flyer", ProductCategory.FLYERS, 210, 297, 3, 8),
    _product("flyer-a5", "A5 Flyer", ProductCategory.FLYERS, 148, 210, 3, 6),
    _product("flyer-dl", "DL Flyer", ProductCategory.FLYERS, 99, 210, 3, 5),
    # Posters
    _product("poster-a3", "A3 Poster", ProductCategory.POSTERS, 297, 420, 5, 10),
    _product("poster-a2", "A2 Poster", ProductCategory.POSTERS, 420, 594, 5, 12),
    _product("poster-a1", "A1 Poster", ProductCategory.POSTERS, 594, 841, 8, 15),
    # Banners are viewed from a distance, so 150 DPI is enough
    _product("banner-small", "Small Banner", ProductCategory.BANNERS, 600, 1800, 10, 20, dpi=150),
    _product("banner-medium", "Medium Banner", ProductCategory.BANNERS, 800, 2000, 12, 25, dpi=150),
    _product("banner-large", "Large Banner", ProductCategory.BANNERS, 1000, 3000, 15, 30, dpi=150),
    # Stickers
    _product("sticker-small", "Small Sticker", ProductCategory.STICKERS, 50, 50, 2, 3),
    _product("sticker-medium", "Medium Sticker", ProductCategory.STICKERS, 100, 100, 3, 5),
)

_BY_ID: Dict[str, PrintProduct] = {product.id: product for product in PRINT_PRODUCTS}


def get_product_by_id(product_id: str) -> Optional[PrintProduct]:
    return _BY_ID.get(product_id)


def get_products_by_category(category: ProductCategory) -> List[PrintProduct]:
    return [product for product in PRINT_PRODUCTS if product.category is category]


def get_category_name(category: ProductCategory, language: str = "en") -> str:
    """Display name of a category ('en' or 'th')."""
    names = CATEGORY_NAMES_TH if language == "th" else CATEGORY_NAMES
    return names[category]


def get_preview_dimensions(product: PrintProduct) -> Tuple[float, float]:
    """Trim size in px at the 72 DPI on-screen preview resolution."""
    return (
        mm_to_px(product.width_mm, PREVIEW_DPI),
        mm_to_px(product.height_mm, PREVIEW_DPI),
    )


def get_export_dimensions(product: PrintProduct) -> Tuple[float, float]:
    """Trim size in px at the product's own DPI."""
    return (
        mm_to_px(product.width_mm, product.dpi),
        mm_to_px(product.height_mm, product.dpi),
    )
