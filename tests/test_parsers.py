"""Tests for unit/type parsing and color conversion."""

import pytest

from zigbee2mqtt_bridge.color import hs_to_rgb_hex, is_hex_color, xy_to_rgb_hex
from zigbee2mqtt_bridge.parsers import parse_type, parse_unit


class TestParseType:
    """Tests for expose type parsing."""

    @pytest.mark.parametrize(
        ("expose_type", "expected"),
        [
            ("binary", "boolean"),
            ("numeric", "number"),
            ("enum", "string"),
            ("text", "string"),
            ("composite", "object"),
            ("list", "array"),
        ],
    )
    def test_known_types(self, expose_type, expected):
        assert parse_type({"type": expose_type}) == expected

    def test_integer_step(self):
        assert parse_type({"type": "numeric", "value_step": 1}) == "integer"

    def test_fractional_step(self):
        assert parse_type({"type": "numeric", "value_step": 0.5}) == "number"

    def test_unknown_type_is_string(self):
        assert parse_type({"type": "something_new"}) == "string"
        assert parse_type({}) == "string"


class TestParseUnit:
    """Tests for unit parsing."""

    def test_known_units(self):
        assert parse_unit("°C") == "degree celsius"
        assert parse_unit("%") == "percent"
        assert parse_unit("W") == "watt"
        assert parse_unit("lx") == "lux"

    def test_unknown_unit_passes_through(self):
        assert parse_unit("furlong") == "furlong"

    def test_missing_unit(self):
        assert parse_unit(None) is None
        assert parse_unit("") is None


class TestColor:
    """Tests for color conversions."""

    def test_hs_primary_colors(self):
        assert hs_to_rgb_hex(0, 100) == "#ff0000"
        assert hs_to_rgb_hex(120, 100) == "#00ff00"
        assert hs_to_rgb_hex(240, 100) == "#0000ff"

    def test_hs_zero_saturation_is_white(self):
        assert hs_to_rgb_hex(42, 0) == "#ffffff"

    def test_xy_red_corner_is_red(self):
        color = xy_to_rgb_hex(0.7, 0.29)
        red, green, blue = (int(color[i : i + 2], 16) for i in (1, 3, 5))
        assert red == 255
        assert red > green
        assert red > blue

    def test_xy_luminance_dims_color(self):
        full = xy_to_rgb_hex(0.7, 0.3)
        dim = xy_to_rgb_hex(0.7, 0.3, 0.1)
        assert int(dim[1:3], 16) < int(full[1:3], 16)
        assert xy_to_rgb_hex(0.7, 0.3, 0) == "#000000"

    def test_xy_rejects_zero_y(self):
        with pytest.raises(ValueError):
            xy_to_rgb_hex(0.3, 0)

    def test_is_hex_color(self):
        assert is_hex_color("#a0b1C2")
        assert not is_hex_color("a0b1c2")
        assert not is_hex_color("#fff")
        assert not is_hex_color(None)
