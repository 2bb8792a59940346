"""
Image resource loading for the raster and PDF renderers.

Every image element becomes one awaitable. The blocking fetch/decode runs in
a worker thread (``asyncio.to_thread``) under a per-image timeout, and the
renderer gathers all of them before it draws anything, so a frame is never
encoded while a load is still outstanding.

Supported sources:
    - data URIs (base64 or percent-encoded)
    - http(s) URLs (requests; can be disabled)
    - local paths and file:// URLs (disabled by default)

Any failure to fetch or decode one image raises ImageLoadError, which the
renderer turns into a soft warning and a skipped element.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional
from urllib.parse import unquote_to_bytes, urlparse

import requests
from PIL import Image

from config import Config
from core.exceptions import ImageLoadError
from logging_config import get_logger
from models.elements import ImageElement

logger = get_logger(__name__)


@dataclass
class LoadedImages:
    """Outcome of loading every image of one export call."""

    images: Dict[str, Image.Image] = field(default_factory=dict)
    """Decoded RGBA images keyed by element id."""

    warnings: List[str] = field(default_factory=list)
    """One message per image that was skipped."""

    def get(self, element_id: str) -> Optional[Image.Image]:
        return self.images.get(element_id)


class ImageLoader:
    """
    Fetches and decodes image elements.

    A loader holds only policy (timeouts, size limit, which schemes are
    allowed); it keeps no per-export state and can be shared between calls.
    """

    def __init__(
        self,
        timeout: float = Config.EXPORT_IMAGE_TIMEOUT_SECONDS,
        max_bytes: int = Config.EXPORT_IMAGE_MAX_BYTES,
        allow_remote: bool = Config.EXPORT_ALLOW_REMOTE_IMAGES,
        allow_files: bool = Config.EXPORT_ALLOW_FILE_IMAGES,
    ):
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.allow_remote = allow_remote
        self.allow_files = allow_files

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ImageLoader":
        """Build a loader from a Flask ``app.config`` mapping."""
        return cls(
            timeout=config.get("EXPORT_IMAGE_TIMEOUT_SECONDS", Config.EXPORT_IMAGE_TIMEOUT_SECONDS),
            max_bytes=config.get("EXPORT_IMAGE_MAX_BYTES", Config.EXPORT_IMAGE_MAX_BYTES),
            allow_remote=config.get("EXPORT_ALLOW_REMOTE_IMAGES", Config.EXPORT_ALLOW_REMOTE_IMAGES),
            allow_files=config.get("EXPORT_ALLOW_FILE_IMAGES", Config.EXPORT_ALLOW_FILE_IMAGES),
        )

    # -------------------------------------------------------------------------
    # Async API
    # -------------------------------------------------------------------------

    async def load(self, element: ImageElement, timeout: Optional[float] = None) -> Image.Image:
        """
        Load one image element.

        Raises:
            ImageLoadError: On timeout, fetch failure or undecodable data
        """
        budget = timeout if timeout is not None else self.timeout
        try:
            return await asyncio.wait_for(asyncio.to_thread(self.load_sync, element), budget)
        except asyncio.TimeoutError:
            raise ImageLoadError(element.src, f"timed out after {budget:.1f}s", element.id)

    async def load_all(self, elements: Iterable[ImageElement], timeout: Optional[float] = None) -> LoadedImages:
        """
        Load every image concurrently and wait until all have settled.

        Image failures become warnings; any other exception is re-raised so
        the export call fails as a whole.
        """
        targets = [e for e in elements if e.visible and e.src]
        result = LoadedImages()
        if not targets:
            return result

        outcomes = await asyncio.gather(
            *(self.load(element, timeout) for element in targets),
            return_exceptions=True,
        )

        for element, outcome in zip(targets, outcomes):
            if isinstance(outcome, ImageLoadError):
                logger.warning(f"Skipping image {element.id}: {outcome.reason}")
                result.warnings.append(f"Image {element.id} skipped: {outcome.reason}")
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.images[element.id] = outcome

        logger.debug(f"Loaded {len(result.images)}/{len(targets)} images")
        return result

    # -------------------------------------------------------------------------
    # Blocking helpers (run in worker threads)
    # -------------------------------------------------------------------------

    def load_sync(self, element: ImageElement) -> Image.Image:
        data = self.fetch_bytes(element.src, element.id)
        return self.decode(data, element)

    def fetch_bytes(self, src: str, element_id: Optional[str] = None) -> bytes:
        if not src:
            raise ImageLoadError(src, "empty source", element_id)

        if src.startswith("data:"):
            data = self._read_data_uri(src, element_id)
        else:
            scheme = urlparse(src).scheme.lower()
            if scheme in ("http", "https"):
                data = self._read_remote(src, element_id)
            elif scheme in ("", "file") or Path(src).drive:
                data = self._read_file(src, element_id)
            else:
                raise ImageLoadError(src, f"unsupported scheme '{scheme}'", element_id)

        if len(data) > self.max_bytes:
            raise ImageLoadError(src, f"image exceeds {self.max_bytes} bytes", element_id)
        return data

    def decode(self, data: bytes, element: ImageElement) -> Image.Image:
        try:
            with Image.open(io.BytesIO(data)) as opened:
                opened.load()
                image = opened.convert("RGBA")
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise ImageLoadError(element.src, f"cannot decode image ({exc})", element.id)

        if element.crop is not None:
            crop = element.crop
            box = (
                int(round(crop.x)),
                int(round(crop.y)),
                int(round(crop.x + crop.width)),
                int(round(crop.y + crop.height)),
            )
            image = image.crop(box)
        return image

    def _read_data_uri(self, src: str, element_id: Optional[str]) -> bytes:
        header, sep, payload = src.partition(",")
        if not sep:
            raise ImageLoadError(src, "malformed data URI", element_id)
        if header.endswith(";base64"):
            try:
                return base64.b64decode(payload, validate=False)
            except (binascii.Error, ValueError):
                raise ImageLoadError(src, "invalid base64 payload", element_id)
        return unquote_to_bytes(payload)

    def _read_remote(self, src: str, element_id: Optional[str]) -> bytes:
        if not self.allow_remote:
            raise ImageLoadError(src, "remote images are disabled", element_id)
        try:
            with requests.get(src, timeout=self.timeout, stream=True) as response:
                response.raise_for_status()
                chunks = []
                received = 0
                for chunk in response.iter_content(chunk_size=64 * 1024):
                    received += len(chunk)
                    if received > self.max_bytes:
                        raise ImageLoadError(src, f"image exceeds {self.max_bytes} bytes", element_id)
                    chunks.append(chunk)
                return b"".join(chunks)
        except requests.RequestException as exc:
            raise ImageLoadError(src, f"download failed ({exc})", element_id)

    def _read_file(self, src: str, element_id: Optional[str]) -> bytes:
        if not self.allow_files:
            raise ImageLoadError(src, "local file images are disabled", element_id)
        path = Path(urlparse(src).path) if src.startswith("file:") else Path(src)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise ImageLoadError(src, f"cannot read file ({exc.strerror or exc})", element_id)
