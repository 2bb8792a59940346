"""Export, preflight and catalog modules of the print export engine."""

__all__ = [
    "catalog",
    "exporter",
    "fonts",
    "image_loader",
    "pdf_analyzer",
    "pdf_renderer",
    "preflight",
    "raster_renderer",
    "render_common",
    "svg_renderer",
]
