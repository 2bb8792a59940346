"""
Services layer for the print export engine.

- ExportService: Background export threads and the job store

Thread Model:
    Main Thread (Flask)
    └── ExportService threads (one per submitted export, each with its own
        asyncio event loop)
"""

from .export_service import ExportJobStore, ExportService

__all__ = [
    "ExportJobStore",
    "ExportService",
]
