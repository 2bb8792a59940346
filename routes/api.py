"""
JSON API routes.

Handles:
- /health - Health check endpoint
- /api/products - Product catalog
- /api/preflight - Preflight report for a design
- /api/export - Synchronous export (file download)
- /api/export/jobs - Background export jobs (submit, poll, cancel)

Request bodies carry the product (inline ``product`` object or catalog
``productId``), the ``elements`` list in editor JSON and, for exports, the
camelCase ``options``.
"""

import asyncio
import io
from typing import Any, Dict, List

import bleach
from flask import Blueprint, current_app, jsonify, request, send_file

from core.exceptions import GeometryError, PrintExportError, RequestPayloadError, UnsupportedFormatError
from logging_config import get_logger
from models.document import DesignDocument
from models.export_job import ExportJobStatus
from models.product import PrintProduct, ProductCategory
from models.render_options import ExportFormat, ExportResult, RenderOptions
from modules.catalog import PRINT_PRODUCTS, get_category_name, get_product_by_id, get_products_by_category
from modules.exporter import export_design
from modules.fonts import TextFonts
from modules.image_loader import ImageLoader
from modules.preflight import PreflightChecker


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)

# Constants
MAX_PRODUCT_NAME_LENGTH = 120
MAX_ELEMENTS = 2000


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@api_bp.errorhandler(RequestPayloadError)
def handle_payload_error(e: RequestPayloadError):
    logger.warning(f"Rejected request to {request.path}: {e.message}")
    return jsonify({"error": e.message, "details": e.details}), e.status_code


@api_bp.errorhandler(UnsupportedFormatError)
def handle_unsupported_format(e: UnsupportedFormatError):
    return jsonify({"error": e.message, "details": e.details}), 422


@api_bp.errorhandler(GeometryError)
def handle_geometry_error(e: GeometryError):
    return jsonify({"error": e.message, "details": e.details}), 422


@api_bp.errorhandler(PrintExportError)
def handle_export_error(e: PrintExportError):
    logger.error(f"Request to {request.path} failed: {e}", exc_info=True)
    return jsonify({"error": e.message}), 500


# =============================================================================
# PAYLOAD PARSING
# =============================================================================

def _sanitize_text(text: str, max_length: int = None) -> str:
    """Strip markup from user-supplied text that ends up in filenames/headers."""
    if not text:
        return ""
    text = bleach.clean(str(text).strip(), tags=[], strip=True)
    if max_length and len(text) > max_length:
        text = text[:max_length]
    return text


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise RequestPayloadError("Request body must be a JSON object")
    return data


def _resolve_product(data: Dict[str, Any]) -> PrintProduct:
    product_id = data.get("productId")
    if product_id:
        product = get_product_by_id(str(product_id))
        if product is None:
            raise RequestPayloadError(f"Unknown product: {product_id}", status_code=404)
        return product

    product_data = data.get("product")
    if not isinstance(product_data, dict):
        raise RequestPayloadError("Either 'productId' or a 'product' object is required")

    product_data = dict(product_data)
    for key in ("name", "nameEn", "nameLocal"):
        if key in product_data:
            product_data[key] = _sanitize_text(product_data[key], MAX_PRODUCT_NAME_LENGTH)
    try:
        return PrintProduct.from_dict(product_data)
    except (TypeError, ValueError) as e:
        raise RequestPayloadError(f"Invalid product: {e}")


def _parse_elements(data: Dict[str, Any]) -> tuple:
    items = data.get("elements", [])
    if not isinstance(items, list):
        raise RequestPayloadError("'elements' must be a list")
    if len(items) > MAX_ELEMENTS:
        raise RequestPayloadError(f"Too many elements ({len(items)} > {MAX_ELEMENTS})")
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise RequestPayloadError(f"Element {index} must be an object")
    try:
        return DesignDocument.from_dicts(items).snapshot()
    except ValueError as e:
        raise RequestPayloadError(f"Invalid element: {e}")


def _parse_options(data: Dict[str, Any]) -> RenderOptions:
    raw = data.get("options") or {}
    if not isinstance(raw, dict):
        raise RequestPayloadError("'options' must be an object")

    requested_format = str(raw.get("format", ExportFormat.PDF.value)).lower()
    if requested_format not in {f.value for f in ExportFormat}:
        raise UnsupportedFormatError(requested_format)

    try:
        options = RenderOptions.from_dict(raw)
    except (TypeError, ValueError) as e:
        raise RequestPayloadError(f"Invalid options: {e}")

    max_dpi = current_app.config.get("EXPORT_MAX_DPI", 1200)
    if options.dpi > max_dpi:
        raise RequestPayloadError(f"Requested dpi {options.dpi} exceeds the limit of {max_dpi}")

    if "imageTimeout" not in raw:
        options = options.replace(image_timeout=current_app.config.get("EXPORT_IMAGE_TIMEOUT_SECONDS"))
    return options


def _image_loader() -> ImageLoader:
    loader = current_app.config.get("IMAGE_LOADER")
    if loader is None:
        loader = ImageLoader.from_config(current_app.config)
    return loader


def _text_fonts() -> TextFonts:
    fonts = current_app.config.get("TEXT_FONTS")
    if fonts is None:
        fonts = TextFonts.from_config(current_app.config)
    return fonts


def _file_response(result: ExportResult):
    """Send export bytes as a download, with page info headers for PDFs."""
    response = send_file(
        io.BytesIO(result.data),
        mimetype=result.mime_type,
        as_attachment=True,
        download_name=result.filename,
    )
    response.headers["X-Export-Warning-Count"] = str(len(result.warnings))

    if result.mime_type == ExportFormat.PDF.mime_type:
        analyzer = current_app.config.get("PDF_ANALYZER")
        if analyzer is not None:
            info = analyzer.analyze_bytes(result.data)
            if info["page_dimensions"]:
                page = info["page_dimensions"][0]
                response.headers["X-Page-Width-Mm"] = str(page["width_mm"])
                response.headers["X-Page-Height-Mm"] = str(page["height_mm"])
    return response


# =============================================================================
# ROUTES
# =============================================================================

@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {}
    }

    export_service = current_app.config.get("EXPORT_SERVICE")
    if export_service:
        health_status["checks"]["export_service"] = "ok"
    else:
        health_status["checks"]["export_service"] = "not_available"
        health_status["status"] = "degraded"

    health_status["checks"]["catalog"] = f"{len(PRINT_PRODUCTS)} products"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


@api_bp.route("/api/products", methods=["GET"])
def list_products():
    """Catalog listing, optionally filtered by ``?category=``."""
    language = request.args.get("lang", "en")
    category_value = request.args.get("category")

    if category_value:
        try:
            category = ProductCategory.from_value(category_value)
        except ValueError as e:
            raise RequestPayloadError(str(e))
        products = get_products_by_category(category)
    else:
        products = list(PRINT_PRODUCTS)

    payload: List[Dict[str, Any]] = []
    for product in products:
        item = product.to_dict()
        item["categoryName"] = get_category_name(product.category, language)
        payload.append(item)

    return {"products": payload, "count": len(payload)}


@api_bp.route("/api/products/<product_id>", methods=["GET"])
def get_product(product_id: str):
    product = get_product_by_id(product_id)
    if product is None:
        raise RequestPayloadError(f"Unknown product: {product_id}", status_code=404)
    item = product.to_dict()
    item["categoryName"] = get_category_name(product.category, request.args.get("lang", "en"))
    return item


@api_bp.route("/api/preflight", methods=["POST"])
def preflight():
    """Run the preflight checklist and return the report."""
    data = _json_body()
    product = _resolve_product(data)
    elements = _parse_elements(data)

    checker = PreflightChecker(product, elements)
    loaded_fonts = data.get("loadedFonts") or []
    if not isinstance(loaded_fonts, list):
        raise RequestPayloadError("'loadedFonts' must be a list")
    for family in loaded_fonts:
        checker.add_loaded_font(str(family))

    result = asyncio.run(checker.run_checks())
    return result.to_dict()


@api_bp.route("/api/export", methods=["POST"])
def export():
    """
    Render a design and return the file.

    Failures come back as JSON with status 500 and a retryable message.
    """
    data = _json_body()
    product = _resolve_product(data)
    elements = _parse_elements(data)
    options = _parse_options(data)

    result = asyncio.run(
        export_design(elements, product, options, image_loader=_image_loader(), fonts=_text_fonts())
    )
    if not result.success:
        return result.to_dict(), 500

    return _file_response(result)


@api_bp.route("/api/export/jobs", methods=["POST"])
def submit_export_job():
    """Start a background export; poll the returned job id."""
    data = _json_body()
    product = _resolve_product(data)
    elements = _parse_elements(data)
    options = _parse_options(data)

    export_service = current_app.config.get("EXPORT_SERVICE")
    if not export_service:
        return {"error": "Export service unavailable"}, 503

    job_id = export_service.submit(elements, product, options)
    return {"jobId": job_id, "status": ExportJobStatus.PENDING.value}, 202


@api_bp.route("/api/export/jobs/<job_id>", methods=["GET"])
def export_job_status(job_id: str):
    """
    Job status, or the file once the job has completed.

    A completed job is removed when its file is downloaded; a failed or
    cancelled job is removed once its final status has been read.
    """
    export_service = current_app.config.get("EXPORT_SERVICE")
    if not export_service:
        return {"error": "Export service unavailable"}, 503

    job = export_service.get_job(job_id)
    if job is None:
        return {"error": f"Unknown export job: {job_id}"}, 404

    if job.status is ExportJobStatus.COMPLETED and request.args.get("download", "1") != "0":
        export_service.pop_job(job_id)
        return _file_response(job.result)

    if job.status.is_finished and job.status is not ExportJobStatus.COMPLETED:
        export_service.pop_job(job_id)

    return job.to_dict()


@api_bp.route("/api/export/jobs/<job_id>", methods=["DELETE"])
def cancel_export_job(job_id: str):
    export_service = current_app.config.get("EXPORT_SERVICE")
    if not export_service:
        return {"error": "Export service unavailable"}, 503

    job = export_service.get_job(job_id)
    if job is None:
        return {"error": f"Unknown export job: {job_id}"}, 404

    if not export_service.cancel(job_id):
        return {"jobId": job_id, "cancelled": False, "status": job.status.value}, 409

    return {"jobId": job_id, "cancelled": True, "status": job.status.value}, 202
