"""Shared helpers for SVG output encoding."""

from functools import lru_cache
from xml.sax.saxutils import escape, quoteattr

from ..constants import KEY_TIME_PRECISION
from ..engine.color import hex_to_rgb


def _short_hex(color: str) -> str:
    lower = color.lower()
    if len(lower) == 7 and lower[1] == lower[2] and lower[3] == lower[4] and lower[5] == lower[6]:
        return f"#{lower[1]}{lower[3]}{lower[5]}"
    return lower


@lru_cache(maxsize=1024)
def _svg_color(value: str) -> str:
    r, g, b = hex_to_rgb(value)
    return _short_hex(f"#{r:02x}{g:02x}{b:02x}")


@lru_cache(maxsize=8192)
def _svg_num(value: float) -> str:
    """Round to 3 decimals and drop redundant zeros (``0.50`` -> ``.5``)."""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if abs(value - round(value)) < 1e-9:
        return str(int(round(value)))
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    if text.startswith("0.") and len(text) > 2:
        text = text[1:]
    if text.startswith("-0.") and len(text) > 3:
        text = "-" + text[2:]
    if text in ("-0", "-"):
        return "0"
    return text or "0"


@lru_cache(maxsize=8192)
def _svg_key_time(value: float) -> str:
    """Normalized key time rounded to 1/KEY_TIME_PRECISION."""
    rounded = round(value * KEY_TIME_PRECISION) / KEY_TIME_PRECISION
    if abs(rounded - round(rounded)) < 1e-12:
        return str(int(round(rounded)))
    text = f"{rounded:.6f}".rstrip("0").rstrip(".")
    if text.startswith("0.") and len(text) > 2:
        text = text[1:]
    return text or "0"


def _svg_points(points: list[tuple[float, float]]) -> str:
    return " ".join(f"{_svg_num(x)},{_svg_num(y)}" for x, y in points)


def _svg_text(value: str) -> str:
    return escape(value, {"\"": "&quot;"})


def _svg_attrs(attrs: dict[str, str]) -> str:
    return "".join(f" {name}={quoteattr(value)}" for name, value in attrs.items())


def _svg_tag(tag: str, attrs: dict[str, str], content: str = "") -> str:
    if content:
        return f"<{tag}{_svg_attrs(attrs)}>{content}</{tag}>"
    return f"<{tag}{_svg_attrs(attrs)}/>"


def _svg_seconds(value: float) -> str:
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{text or '0'}s"
