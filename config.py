"""
Configuration for the print export service.

Only host-level knobs live here (upload limits, image fetching policy,
timeouts). Render defaults are frozen constants in models.render_options
so that no caller can change them for everyone else.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env early so the Config class attributes see it
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_CONTENT_LENGTH", 32 * 1024 * 1024))  # design JSON incl. data URIs
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    TESTING = False

    # ==========================================================================
    # Image resources
    # ==========================================================================
    # Images are referenced from the design by data URI, http(s) URL or local
    # path. Each load is bounded; a slow or broken image is skipped with a
    # warning rather than failing the whole export.
    #
    # EXPORT_IMAGE_TIMEOUT_SECONDS: per-image load budget
    # EXPORT_IMAGE_MAX_BYTES:       refuse images larger than this
    # EXPORT_ALLOW_REMOTE_IMAGES:   fetch http(s) sources
    # EXPORT_ALLOW_FILE_IMAGES:     read local paths / file:// URLs
    # ==========================================================================
    EXPORT_IMAGE_TIMEOUT_SECONDS = float(
        os.environ.get("EXPORT_IMAGE_TIMEOUT_SECONDS", "10")
    )
    EXPORT_IMAGE_MAX_BYTES = int(
        os.environ.get("EXPORT_IMAGE_MAX_BYTES", str(25 * 1024 * 1024))
    )
    EXPORT_ALLOW_REMOTE_IMAGES = _env_flag("EXPORT_ALLOW_REMOTE_IMAGES", "1")
    EXPORT_ALLOW_FILE_IMAGES = _env_flag("EXPORT_ALLOW_FILE_IMAGES", "0")

    # TrueType file used for all PDF/PNG text. The built-in faces only cover
    # Western European text; point this at a font with Thai glyphs (for
    # example Sarabun or Noto Sans Thai) to export Thai designs.
    EXPORT_TEXT_FONT_PATH = os.environ.get("EXPORT_TEXT_FONT_PATH", "")

    # Upper bound for the DPI a client may request
    EXPORT_MAX_DPI = int(os.environ.get("EXPORT_MAX_DPI", "1200"))

    # Background export jobs
    EXPORT_JOB_TIMEOUT_SECONDS = float(
        os.environ.get("EXPORT_JOB_TIMEOUT_SECONDS", "120")
    )

    # Finished jobs not collected by the client are dropped after this long
    EXPORT_JOB_RETENTION_SECONDS = float(
        os.environ.get("EXPORT_JOB_RETENTION_SECONDS", "900")
    )


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    EXPORT_ALLOW_FILE_IMAGES = False


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    EXPORT_IMAGE_TIMEOUT_SECONDS = 2.0
    EXPORT_ALLOW_REMOTE_IMAGES = False
    EXPORT_ALLOW_FILE_IMAGES = True
