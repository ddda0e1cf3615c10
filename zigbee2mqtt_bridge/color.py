"""Color conversions between bridge color payloads and RGB hex strings."""

from __future__ import annotations

import colorsys
import re

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


def _gamma_correct(channel: float) -> float:
    if channel <= 0.0031308:
        return 12.92 * channel
    return 1.055 * channel ** (1.0 / 2.4) - 0.055


def _to_hex(red: float, green: float, blue: float) -> str:
    channels = [min(max(channel, 0.0), 1.0) for channel in (red, green, blue)]
    return "#" + "".join(f"{round(channel * 255):02x}" for channel in channels)


def xy_to_rgb_hex(x: float, y: float, luminance: float = 1.0) -> str:
    """Convert a CIE 1931 xy coordinate to #rrggbb.

    ``luminance`` is the relative brightness in 0..1.
    """
    if y <= 0:
        raise ValueError(f"Invalid y coordinate: {y}")

    luminance = min(max(luminance, 0.0), 1.0)
    z = 1.0 - x - y
    big_x = luminance / y * x
    big_z = luminance / y * z

    # Wide gamut D65 conversion
    red = big_x * 1.656492 - luminance * 0.354851 - big_z * 0.255038
    green = -big_x * 0.707196 + luminance * 1.655397 + big_z * 0.036152
    blue = big_x * 0.051713 - luminance * 0.121364 + big_z * 1.011530

    red, green, blue = (_gamma_correct(c) for c in (red, green, blue))

    peak = max(red, green, blue)
    if peak > 1:
        red, green, blue = red / peak, green / peak, blue / peak

    return _to_hex(red, green, blue)


def hs_to_rgb_hex(hue: float, saturation: float) -> str:
    """Convert hue (0-360 degrees) and saturation (0-100 percent) to #rrggbb."""
    red, green, blue = colorsys.hsv_to_rgb(
        (hue % 360) / 360, max(0.0, min(saturation, 100.0)) / 100, 1.0
    )
    return _to_hex(red, green, blue)


def is_hex_color(value: object) -> bool:
    """Return True for #rrggbb strings."""
    return isinstance(value, str) and bool(_HEX_COLOR.match(value))
