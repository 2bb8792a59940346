"""Tests for image fetching and decoding."""

import asyncio
import time
from unittest.mock import MagicMock, patch

import pytest
import requests

from core.exceptions import ImageLoadError
from models.elements import CropRect, ImageElement
from modules.image_loader import ImageLoader


def image(src, **kwargs):
    return ImageElement(id=kwargs.pop("id", "img"), width=10, height=10, src=src, **kwargs)


def load(loader, element, timeout=None):
    return asyncio.run(loader.load(element, timeout))


class TestSources:
    """Data URIs, files and remote URLs."""

    def test_data_uri(self, offline_loader, png_data_uri):
        decoded = load(offline_loader, image(png_data_uri))
        assert decoded.mode == "RGBA"
        assert decoded.size == (20, 10)

    def test_local_file(self, offline_loader, png_bytes, tmp_path):
        path = tmp_path / "logo.png"
        path.write_bytes(png_bytes)
        assert load(offline_loader, image(str(path))).size == (20, 10)
        assert load(offline_loader, image(path.as_uri())).size == (20, 10)

    def test_local_files_disabled(self, png_bytes, tmp_path):
        path = tmp_path / "logo.png"
        path.write_bytes(png_bytes)
        with pytest.raises(ImageLoadError) as exc_info:
            load(ImageLoader(allow_files=False), image(str(path)))
        assert exc_info.value.reason == "local file images are disabled"

    def test_missing_file(self, offline_loader, tmp_path):
        with pytest.raises(ImageLoadError) as exc_info:
            load(offline_loader, image(str(tmp_path / "missing.png")))
        assert exc_info.value.reason.startswith("cannot read file")

    def test_remote_disabled(self, offline_loader):
        with pytest.raises(ImageLoadError) as exc_info:
            load(offline_loader, image("https://example.com/logo.png"))
        assert exc_info.value.reason == "remote images are disabled"

    def test_remote_download(self, png_bytes):
        response = MagicMock()
        response.iter_content.return_value = [png_bytes[:30], png_bytes[30:]]
        with patch("modules.image_loader.requests.get") as mock_get:
            mock_get.return_value.__enter__.return_value = response
            decoded = load(ImageLoader(allow_remote=True, timeout=3), image("https://example.com/logo.png"))

        assert decoded.size == (20, 10)
        mock_get.assert_called_once_with("https://example.com/logo.png", timeout=3, stream=True)

    def test_remote_failure(self):
        with patch("modules.image_loader.requests.get", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(ImageLoadError) as exc_info:
                load(ImageLoader(allow_remote=True), image("https://example.com/logo.png"))
        assert exc_info.value.reason.startswith("download failed")

    def test_unsupported_scheme(self, offline_loader):
        with pytest.raises(ImageLoadError) as exc_info:
            load(offline_loader, image("ftp://example.com/logo.png"))
        assert exc_info.value.reason == "unsupported scheme 'ftp'"


class TestDecoding:
    def test_undecodable_bytes(self, offline_loader):
        with pytest.raises(ImageLoadError) as exc_info:
            load(offline_loader, image("data:text/plain,hello"))
        assert exc_info.value.reason.startswith("cannot decode image")

    def test_size_limit(self, png_data_uri):
        loader = ImageLoader(max_bytes=10, allow_remote=False)
        with pytest.raises(ImageLoadError) as exc_info:
            load(loader, image(png_data_uri))
        assert exc_info.value.reason == "image exceeds 10 bytes"

    def test_crop_window(self, offline_loader, png_data_uri):
        element = image(png_data_uri, crop=CropRect(x=5, y=2, width=10, height=6))
        assert load(offline_loader, element).size == (10, 6)


class SlowLoader(ImageLoader):
    def load_sync(self, element):
        time.sleep(0.5)
        return super().load_sync(element)


class TestLoadAll:
    """Concurrent loading and failure policy."""

    def test_failures_become_warnings(self, offline_loader, png_data_uri):
        elements = [image(png_data_uri, id="good"), image("data:text/plain,nope", id="bad")]
        loaded = asyncio.run(offline_loader.load_all(elements))

        assert set(loaded.images) == {"good"}
        assert len(loaded.warnings) == 1
        assert loaded.warnings[0].startswith("Image bad skipped: cannot decode image")

    def test_hidden_and_empty_sources_are_ignored(self, offline_loader, png_data_uri):
        elements = [image(png_data_uri, id="hidden", visible=False), image("", id="empty")]
        loaded = asyncio.run(offline_loader.load_all(elements))
        assert loaded.images == {}
        assert loaded.warnings == []

    def test_timeout_is_a_warning(self, png_data_uri):
        loader = SlowLoader(allow_remote=False)
        loaded = asyncio.run(loader.load_all([image(png_data_uri)], timeout=0.1))
        assert loaded.images == {}
        assert loaded.warnings == ["Image img skipped: timed out after 0.1s"]

    def test_unexpected_errors_propagate(self, offline_loader, png_data_uri):
        with patch.object(ImageLoader, "load_sync", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                asyncio.run(offline_loader.load_all([image(png_data_uri)]))


class TestFromConfig:
    def test_reads_flask_config_keys(self):
        loader = ImageLoader.from_config({"EXPORT_IMAGE_TIMEOUT_SECONDS": 3.0, "EXPORT_ALLOW_REMOTE_IMAGES": False})
        assert loader.timeout == 3.0
        assert loader.allow_remote is False
