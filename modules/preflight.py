"""
Preflight checks for print-ready designs.

Runs a fixed checklist over a design snapshot, in this order: resolution,
bleed/safe zone, fonts, colors, accessibility, content. Findings are
returned as data (PreflightResult); nothing here raises on well-formed
input, and missing optional fields default permissively.

Based on the checklists commercial printers publish for customer artwork.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Set

from core.color import is_white
from core.units import mm_to_px
from logging_config import get_logger
from models.elements import DesignElement, ImageElement, TextElement, primary_color
from models.preflight import (
    IssueCategory,
    IssueType,
    PreflightIssue,
    PreflightResult,
    PreflightSummary,
    Severity,
)
from models.product import PrintProduct

logger = get_logger(__name__)

WEB_SAFE_FONTS = frozenset({
    "arial", "helvetica", "times", "times new roman", "courier", "courier new",
    "georgia", "palatino", "garamond", "bookman", "comic sans ms", "trebuchet ms",
    "arial black", "impact", "lucida console", "tahoma", "verdana",
})

PLACEHOLDER_TEXTS = (
    "click to edit", "your text here", "placeholder", "sample text",
    "lorem ipsum", "add text", "edit me", "your company name",
)

SCREEN_DPI = 96
MIN_PRINT_FONT_SIZE = 8
MIN_READABLE_FONT_SIZE = 10
LOW_RESOLUTION_FACTOR = 0.8
DIMENSION_TOLERANCE = 0.1

RECOMMEND_RESOLUTION = "Use high-resolution images (300 DPI minimum) for best print quality"
RECOMMEND_BLEED = "Extend important elements to the bleed area to avoid white edges"
RECOMMEND_FONTS = "Use web-safe fonts or ensure custom fonts are properly embedded"
RECOMMEND_OK = "Your design looks good for print! Consider adding a test print to verify colors."


def _num(value: float) -> str:
    """Render 6.0 as '6' and 6.5 as '6.5' in messages."""
    return f"{value:g}"


def estimate_image_dpi(element: ImageElement, product: PrintProduct) -> Optional[float]:
    """
    Effective print resolution of an image element, or None for zero-size boxes.

    With a declared intrinsic size the DPI is intrinsic pixels over printed
    inches (display px / product DPI), the smaller of the two axes.
    Without one, the screen-size estimate is used; it assumes 96 DPI source
    pixels and comes out at 2438.4 for every non-empty box.
    """
    width, height = element.scaled_width, element.scaled_height
    if width <= 0 or height <= 0:
        return None

    if element.natural_width and element.natural_height:
        printed_width_in = width / product.dpi
        printed_height_in = height / product.dpi
        return min(element.natural_width / printed_width_in, element.natural_height / printed_height_in)

    return min(
        (width * SCREEN_DPI) / (width / 25.4),
        (height * SCREEN_DPI) / (height / 25.4),
    )


def validate_print_dimensions(width_mm: float, height_mm: float, product: PrintProduct) -> bool:
    """True when both sides are within 10% of the product's trim size."""
    return (
        abs(width_mm - product.width_mm) / product.width_mm < DIMENSION_TOLERANCE
        and abs(height_mm - product.height_mm) / product.height_mm < DIMENSION_TOLERANCE
    )


class PreflightChecker:
    """
    Validates a design against a product's print requirements.

    Usage:
        checker = PreflightChecker(product, elements)
        checker.add_loaded_font("Roboto")
        result = await checker.run_checks()
    """

    def __init__(self, product: PrintProduct, elements: Iterable[DesignElement]):
        self.product = product
        self.elements: List[DesignElement] = list(elements)
        self.loaded_fonts: Set[str] = set()
        self.last_result: Optional[PreflightResult] = None

    def add_loaded_font(self, font_family: str) -> None:
        """Register a custom font as available (case-insensitive)."""
        self.loaded_fonts.add(font_family.lower())

    async def run_checks(self) -> PreflightResult:
        return self.run_checks_sync()

    def run_checks_sync(self) -> PreflightResult:
        issues: List[PreflightIssue] = []
        issues.extend(self.check_resolution())
        issues.extend(self.check_bleed_and_safe_zones())
        issues.extend(self.check_fonts())
        issues.extend(self.check_colors())
        issues.extend(self.check_accessibility())
        issues.extend(self.check_content())

        result = PreflightResult(
            issues=issues,
            summary=PreflightSummary.from_issues(issues),
            recommendations=self.generate_recommendations(issues),
        )
        self.last_result = result

        logger.info(
            f"Preflight for '{self.product.id}': {len(self.elements)} elements, "
            f"{result.summary.errors} errors, {result.summary.warnings} warnings, "
            f"{result.summary.info} info (valid={result.is_valid})"
        )
        return result

    def get_issues_by_category(self, category: IssueCategory) -> List[PreflightIssue]:
        """Issues of one category from the most recent run (empty before any run)."""
        if self.last_result is None:
            return []
        return self.last_result.issues_by_category(category)

    # -------------------------------------------------------------------------
    # Rule groups
    # -------------------------------------------------------------------------

    def check_resolution(self) -> List[PreflightIssue]:
        issues = []
        min_dpi = self.product.dpi

        for element in self.elements:
            if not isinstance(element, ImageElement) or not element.src:
                continue
            estimated = estimate_image_dpi(element, self.product)
            if estimated is None:
                continue

            if estimated < min_dpi * LOW_RESOLUTION_FACTOR:
                issues.append(PreflightIssue(
                    type=IssueType.ERROR,
                    category=IssueCategory.RESOLUTION,
                    message=f"Image resolution too low (estimated {round(estimated)} DPI, need {min_dpi} DPI)",
                    element_id=element.id,
                    severity=Severity.CRITICAL,
                    suggestion="Replace with higher resolution image or reduce image size",
                ))
            elif estimated < min_dpi:
                issues.append(PreflightIssue(
                    type=IssueType.WARNING,
                    category=IssueCategory.RESOLUTION,
                    message=(
                        f"Image resolution may be insufficient (estimated {round(estimated)} DPI, "
                        f"recommended {min_dpi} DPI)"
                    ),
                    element_id=element.id,
                    severity=Severity.MEDIUM,
                    suggestion="Consider using a higher resolution image for better print quality",
                ))
        return issues

    def check_bleed_and_safe_zones(self) -> List[PreflightIssue]:
        issues = []
        dpi = self.product.dpi
        bleed = mm_to_px(self.product.bleed_mm, dpi)
        safe = mm_to_px(self.product.safe_zone_mm, dpi)
        total_width = mm_to_px(self.product.width_mm, dpi)
        total_height = mm_to_px(self.product.height_mm, dpi)

        for element in self.elements:
            if not isinstance(element, TextElement):
                continue
            left, top = element.x, element.y
            right, bottom = left + element.scaled_width, top + element.scaled_height

            too_close_to_trim = (
                left < safe or top < safe
                or right > total_width - safe or bottom > total_height - safe
            )
            extends_to_bleed = (
                left < bleed or top < bleed
                or right > total_width - bleed or bottom > total_height - bleed
            )

            if too_close_to_trim:
                issues.append(PreflightIssue(
                    type=IssueType.ERROR,
                    category=IssueCategory.BLEED,
                    message="Text too close to trim edge - may be cut off during printing",
                    element_id=element.id,
                    severity=Severity.CRITICAL,
                    suggestion="Move text further from edges or reduce text size",
                ))
            elif not extends_to_bleed:
                issues.append(PreflightIssue(
                    type=IssueType.WARNING,
                    category=IssueCategory.BLEED,
                    message="Text doesn't extend to bleed area - may have white edges",
                    element_id=element.id,
                    severity=Severity.MEDIUM,
                    suggestion="Extend text or background to bleed area for professional finish",
                ))
        return issues

    def check_fonts(self) -> List[PreflightIssue]:
        issues = []
        for element in self.elements:
            if not isinstance(element, TextElement) or not element.font_family:
                continue
            family = element.font_family.lower()

            if family not in WEB_SAFE_FONTS and family not in self.loaded_fonts:
                issues.append(PreflightIssue(
                    type=IssueType.WARNING,
                    category=IssueCategory.FONTS,
                    message=f'Custom font "{element.font_family}" may not be available for printing',
                    element_id=element.id,
                    severity=Severity.MEDIUM,
                    suggestion="Use web-safe fonts or ensure custom fonts are properly embedded",
                ))

            if element.font_size and element.font_size < MIN_PRINT_FONT_SIZE:
                issues.append(PreflightIssue(
                    type=IssueType.ERROR,
                    category=IssueCategory.FONTS,
                    message=f"Font size too small ({_num(element.font_size)}px) for print readability",
                    element_id=element.id,
                    severity=Severity.HIGH,
                    suggestion="Increase font size to at least 8px for print",
                ))
        return issues

    def check_colors(self) -> List[PreflightIssue]:
        issues = []
        for element in self.elements:
            color = primary_color(element)
            if not isinstance(color, str) or not color:
                continue

            if color.startswith("rgb") or color.startswith("#"):
                issues.append(PreflightIssue(
                    type=IssueType.INFO,
                    category=IssueCategory.COLORS,
                    message="RGB colors will be converted to CMYK for printing",
                    element_id=element.id,
                    severity=Severity.LOW,
                    fixable=False,
                    suggestion="Consider using CMYK colors for more predictable print results",
                ))

            if is_white(color):
                issues.append(PreflightIssue(
                    type=IssueType.WARNING,
                    category=IssueCategory.COLORS,
                    message="White text may not be visible on light backgrounds",
                    element_id=element.id,
                    severity=Severity.MEDIUM,
                    suggestion="Use darker colors or add background contrast",
                ))
        return issues

    def check_accessibility(self) -> List[PreflightIssue]:
        issues = []
        for element in self.elements:
            if not isinstance(element, TextElement):
                continue

            if is_white(element.color):
                issues.append(PreflightIssue(
                    type=IssueType.WARNING,
                    category=IssueCategory.ACCESSIBILITY,
                    message="White text may have poor contrast",
                    element_id=element.id,
                    severity=Severity.MEDIUM,
                    suggestion="Ensure sufficient contrast with background",
                ))

            if element.font_size and element.font_size < MIN_READABLE_FONT_SIZE:
                issues.append(PreflightIssue(
                    type=IssueType.WARNING,
                    category=IssueCategory.ACCESSIBILITY,
                    message="Small text may be difficult to read",
                    element_id=element.id,
                    severity=Severity.MEDIUM,
                    suggestion="Consider increasing font size for better readability",
                ))
        return issues

    def check_content(self) -> List[PreflightIssue]:
        issues = []
        if not self.elements:
            issues.append(PreflightIssue(
                type=IssueType.ERROR,
                category=IssueCategory.CONTENT,
                message="Design is empty - please add content",
                severity=Severity.CRITICAL,
                suggestion="Add text, images, or shapes to your design",
            ))

        for element in self.elements:
            if not isinstance(element, TextElement) or not element.content:
                continue
            content = element.content.lower()
            if any(placeholder in content for placeholder in PLACEHOLDER_TEXTS):
                issues.append(PreflightIssue(
                    type=IssueType.WARNING,
                    category=IssueCategory.CONTENT,
                    message="Placeholder text detected - please replace with actual content",
                    element_id=element.id,
                    severity=Severity.MEDIUM,
                    suggestion="Replace placeholder text with your actual content",
                ))
        return issues

    # -------------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------------

    @staticmethod
    def generate_recommendations(issues: List[PreflightIssue]) -> List[str]:
        categories = {issue.category for issue in issues}
        recommendations = []
        if IssueCategory.RESOLUTION in categories:
            recommendations.append(RECOMMEND_RESOLUTION)
        if IssueCategory.BLEED in categories:
            recommendations.append(RECOMMEND_BLEED)
        if IssueCategory.FONTS in categories:
            recommendations.append(RECOMMEND_FONTS)
        if not recommendations:
            recommendations.append(RECOMMEND_OK)
        return recommendations
