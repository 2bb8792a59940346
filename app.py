"""
Print export service - Flask Application Entry Point.

This is a slim app factory that:
1. Loads configuration and sets up logging
2. Creates the image loader and the export service (thread-per-job)
3. Registers route blueprints
4. Sets up JSON error handlers

ARCHITECTURE:
    Main Thread
    ├── Flask request handling (synchronous exports and preflight run on
    │   a short-lived event loop per request)
    └── Cleanup on shutdown

    Export Threads (one per background job)
    └── Each with its own event loop and cancel event
"""

from __future__ import annotations

import atexit
import logging
import os

from flask import Flask
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from logging_config import setup_logging, get_logger
from modules.fonts import TextFonts
from modules.image_loader import ImageLoader
from modules.pdf_analyzer import PDFAnalyzer
from routes import register_blueprints
from services.export_service import ExportService


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def create_app(config_object: str = "config.Config") -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        config_object: Import path of the config class
            (e.g. "config.TestingConfig")

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        app_name="print_export",
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    # Set Flask's logger to use our configured logger
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting print export service in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    image_loader = ImageLoader.from_config(app.config)
    app.config["IMAGE_LOADER"] = image_loader

    text_fonts = TextFonts.from_config(app.config)
    app.config["TEXT_FONTS"] = text_fonts

    export_service = ExportService(
        image_loader=image_loader,
        fonts=text_fonts,
        job_timeout_seconds=app.config.get("EXPORT_JOB_TIMEOUT_SECONDS", 120.0),
        job_retention_seconds=app.config.get("EXPORT_JOB_RETENTION_SECONDS", 900.0),
    )
    app.config["EXPORT_SERVICE"] = export_service
    logger.info("Export service initialized")

    app.config["PDF_ANALYZER"] = PDFAnalyzer()

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Cleanup on application shutdown."""
        logger.info("Shutting down...")
        export_service.shutdown()
        logger.info("Shutdown complete")

    atexit.register(cleanup)

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        max_mb = app.config.get("MAX_CONTENT_LENGTH", 32 * 1024 * 1024) / (1024 * 1024)
        return {"error": f"Request too large. Maximum size is {max_mb:.0f} MB."}, 413

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return {"error": e.description or e.name}, e.code

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return {"error": "An unexpected error occurred. Please try again."}, 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode)
