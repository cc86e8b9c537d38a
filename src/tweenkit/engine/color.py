"""Hex color parsing, formatting and interpolation."""

import math
import re
from functools import lru_cache

_HEX_PATTERN = re.compile(r"^#?([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")

RGB = tuple[int, int, int]


def is_valid_hex(value: str) -> bool:
    return bool(_HEX_PATTERN.match(value))


@lru_cache(maxsize=1024)
def hex_to_rgb(value: str) -> RGB:
    """Parse ``RRGGBB``, ``#RRGGBB`` or the 3-digit short form."""
    match = _HEX_PATTERN.match(value.strip())
    if match is None:
        raise ValueError(f"Invalid hex color: {value!r}")
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(c + c for c in digits)
    number = int(digits, 16)
    return (number >> 16) & 255, (number >> 8) & 255, number & 255


def _round_channel(value: float) -> int:
    # Half-up rounding so 127.5 becomes 128 regardless of parity.
    return max(0, min(255, int(math.floor(value + 0.5))))


def rgb_to_hex(r: float, g: float, b: float) -> str:
    """Format channels as uppercase ``RRGGBB`` (no leading '#')."""
    return "".join(f"{_round_channel(channel):02X}" for channel in (r, g, b))


def interpolate_color(color_a: str, color_b: str, t: float) -> str:
    """Blend two hex colors per RGB channel at progress ``t``."""
    a = hex_to_rgb(color_a)
    b = hex_to_rgb(color_b)
    return rgb_to_hex(*(ca + (cb - ca) * t for ca, cb in zip(a, b)))


def rgba(value: str, alpha: float = 1.0) -> tuple[int, int, int, int]:
    """Hex color plus 0-1 alpha as a Pillow RGBA tuple."""
    r, g, b = hex_to_rgb(value)
    return r, g, b, _round_channel(alpha * 255)
