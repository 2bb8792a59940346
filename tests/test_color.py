"""Unit tests for color parsing and RGB/CMYK conversion."""

import pytest

from core.color import (
    BLACK,
    CMYK,
    RGB,
    WHITE,
    cmyk_to_rgb,
    hex_to_rgb,
    is_paintable,
    is_white,
    parse_color,
    parse_hex,
    rgb_to_cmyk,
)
from core.exceptions import ColorFormatError


class TestRgbToCmyk:
    """Naive RGB -> CMYK estimate."""

    def test_pure_red(self):
        assert rgb_to_cmyk(255, 0, 0) == CMYK(0, 100, 100, 0)

    def test_pure_black_has_no_color_channels(self):
        """Test k = 1 yields 0/0/0/100 instead of dividing by zero."""
        assert rgb_to_cmyk(0, 0, 0) == CMYK(0, 0, 0, 100)

    def test_white(self):
        assert rgb_to_cmyk(255, 255, 255) == CMYK(0, 0, 0, 0)

    def test_mid_grey_is_key_only(self):
        cmyk = rgb_to_cmyk(128, 128, 128)
        assert (cmyk.c, cmyk.m, cmyk.y) == (0, 0, 0)
        assert cmyk.k == 50

    def test_channels_in_range(self):
        """Test every channel stays within 0..100 for a sweep of inputs."""
        for r in (0, 37, 128, 255):
            for g in (0, 90, 255):
                for b in (0, 200, 255):
                    cmyk = rgb_to_cmyk(r, g, b)
                    assert all(0 <= v <= 100 for v in (cmyk.c, cmyk.m, cmyk.y, cmyk.k))

    def test_round_trip_is_close(self):
        """Test cmyk_to_rgb lands near the original color."""
        back = cmyk_to_rgb(rgb_to_cmyk(30, 58, 138))
        assert abs(back.r - 30) <= 3
        assert abs(back.g - 58) <= 3
        assert abs(back.b - 138) <= 3


class TestHexParsing:
    """Strict and lenient hex parsing."""

    @pytest.mark.parametrize("value", ["#FF0000", "ff0000", "#ff0000"])
    def test_valid_hex(self, value):
        assert parse_hex(value) == RGB(255, 0, 0)

    @pytest.mark.parametrize("value", ["bad", "#12345", "#GGGGGG", ""])
    def test_strict_parser_raises(self, value):
        with pytest.raises(ColorFormatError):
            parse_hex(value)

    def test_lenient_parser_falls_back_to_black(self):
        """Test hex_to_rgb never raises and returns black for garbage."""
        assert hex_to_rgb("not-a-color") == BLACK
        assert hex_to_rgb("#00FF00") == RGB(0, 255, 0)


class TestParseColor:
    """All supported notations."""

    def test_short_hex(self):
        assert parse_color("#fff") == WHITE

    def test_rgb_function(self):
        assert parse_color("rgb(10, 20, 30)") == RGB(10, 20, 30)
        assert parse_color("rgba(10, 20, 30, 0.5)") == RGB(10, 20, 30)

    def test_named(self):
        assert parse_color("Red") == RGB(255, 0, 0)

    def test_missing_uses_fallback(self):
        assert parse_color(None) == BLACK
        assert parse_color("", fallback=WHITE) == WHITE

    def test_malformed_uses_fallback(self):
        assert parse_color("#zzz123") == BLACK


class TestPaintHelpers:
    @pytest.mark.parametrize("value", [None, "", "none", "transparent", " Transparent ", 5, {"type": "linear"}])
    def test_not_paintable(self, value):
        assert not is_paintable(value)

    def test_paintable(self):
        assert is_paintable("#000000")

    @pytest.mark.parametrize("value", ["#ffffff", "#FFF", "white", "rgb(255,255,255)"])
    def test_white_variants(self, value):
        assert is_white(value)

    def test_not_white(self):
        assert not is_white("#fefefe")
        assert not is_white(None)
