"""
Centralized logging configuration for the print export engine.

Exports can run on background job threads (see services.export_service),
so every record carries the name of the thread that produced it. That makes
it possible to follow a single export through interleaved log output.

Features:
    - Thread name in every log message
    - Console output (always enabled)
    - Rotating file logs plus a separate error log (optional, production)
    - Namespaced loggers under "print_export"

Log Format:
    2026-10-18 10:15:30 [INFO    ] [MainThread] print_export.app - Starting
    2026-10-18 10:15:31 [INFO    ] [Export-a1b2c3d4] print_export.export.a1b2c3d4 - Rendering pdf
    2026-10-18 10:15:31 [WARNING ] [Export-a1b2c3d4] print_export.modules.raster_renderer - Skipping image img-1

Usage:
    # At application startup
    from logging_config import setup_logging, get_logger

    setup_logging(log_level=logging.INFO, enable_file_logging=False)

    # In modules
    logger = get_logger(__name__)
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "print_export"

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries the renderers and image loader pull in; DEBUG from them is noise
THIRD_PARTY_LOGGERS = ("PIL", "urllib3", "requests", "pypdf", "reportlab")


class ThreadContextFilter(logging.Filter):
    """Attach ``thread_name`` and ``thread_id`` to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        current_thread = threading.current_thread()
        record.thread_name = current_thread.name
        record.thread_id = threading.get_ident()
        return True


def _rotating_handler(path: Path, level: int, formatter, thread_filter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=path,
        maxBytes=10 * 1024 * 1024,  # 10 MB per file
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(thread_filter)
    return handler


def setup_logging(
    app_name: str = ROOT_LOGGER_NAME,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = False,
) -> logging.Logger:
    """
    Configure the engine's root logger.

    Calling this again replaces the previous handlers, so tests and the
    Flask app factory can both call it safely.

    Args:
        app_name: Name of the root logger (default: "print_export")
        log_level: Minimum log level (default: INFO)
        log_dir: Directory for log files (default: ./logs next to this file)
        enable_file_logging: Whether to write rotating log files

    Returns:
        Configured root logger instance
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)
    logger.propagate = False
    logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    thread_filter = ThreadContextFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(thread_filter)
    logger.addHandler(console_handler)

    if enable_file_logging:
        if log_dir is None:
            log_dir = Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        app_log_file = log_dir / f"{app_name}.log"
        logger.addHandler(_rotating_handler(app_log_file, log_level, formatter, thread_filter))

        # ERROR and CRITICAL only
        error_log_file = log_dir / f"{app_name}_error.log"
        logger.addHandler(_rotating_handler(error_log_file, logging.ERROR, formatter, thread_filter))

        logger.info(f"File logging enabled: {app_log_file}")

    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger under the engine namespace.

    Example:
        # In modules/pdf_renderer.py
        logger = get_logger(__name__)
        # Logger name: "print_export.modules.pdf_renderer"
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def get_job_logger(job_id: str) -> logging.Logger:
    """
    Get a logger for one background export job.

    Only the first 8 characters of the job id are used in the logger name.
    """
    short_id = job_id[:8]
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.export.{short_id}")


def set_thread_name(name: str) -> None:
    """Rename the current thread; the name shows up in [thread_name]."""
    threading.current_thread().name = name
