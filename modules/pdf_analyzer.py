"""Lightweight analyzer for exported PDFs."""

from __future__ import annotations

import io
import re
from pathlib import Path
from typing import Any, Dict

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from core.units import POINTS_PER_MM
from logging_config import get_logger

logger = get_logger(__name__)

# "c m y k k" / "c m y k K" operators in a content stream
_CMYK_OPERATOR = re.compile(rb"(?:^|\s)(?:[\d.]+\s+){4}[kK](?=\s|$)")


class PDFAnalyzer:
    """Extract page geometry and metadata, resilient to malformed PDFs."""

    def analyze(self, pdf_path: str | Path) -> Dict[str, Any]:
        path = Path(pdf_path)
        info = self.analyze_bytes(path.read_bytes())
        info["path"] = str(path)
        return info

    def analyze_bytes(self, pdf_bytes: bytes) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "pages": 0,
            "size_kb": round(len(pdf_bytes) / 1024, 2),
            "page_dimensions": [],
            "uses_cmyk": False,
            "metadata": {},
        }

        try:
            reader = PdfReader(io.BytesIO(pdf_bytes))
            info["pages"] = len(reader.pages)
            for page in reader.pages:
                width_pt = float(page.mediabox.width)
                height_pt = float(page.mediabox.height)
                info["page_dimensions"].append({
                    "width_pt": round(width_pt, 2),
                    "height_pt": round(height_pt, 2),
                    "width_mm": round(width_pt / POINTS_PER_MM, 2),
                    "height_mm": round(height_pt / POINTS_PER_MM, 2),
                })
                contents = page.get_contents()
                if contents is not None and _CMYK_OPERATOR.search(contents.get_data()):
                    info["uses_cmyk"] = True

            metadata = reader.metadata
            if metadata is not None:
                info["metadata"] = {
                    "title": metadata.title,
                    "subject": metadata.subject,
                    "creator": metadata.creator,
                }
        except (PyPdfError, ValueError, KeyError) as exc:
            logger.warning(f"PDF analysis failed: {exc}")
            info["error"] = f"PDF analysis failed: {exc}"

        return info
