"""
Unit conversion between markup measurements and the host's two-unit model.

The host only understands pixels and percent. Markup values may also be
expressed in em or without a unit.
"""

from __future__ import annotations

import re

from frame_translate.document.base import Measure, Unit

DEFAULT_FONT_SIZE_PX = 16.0

_NUMBER_PATTERN = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*([a-zA-Z%]*)\s*$")


def measure_to_css(measure: Measure) -> str:
    """Render a measure as a markup value such as ``12px`` or ``120%``."""
    suffix = "%" if measure.unit == Unit.PERCENT else "px"
    return f"{format_number(measure.value)}{suffix}"


def format_number(value: float) -> str:
    """Format a number the way it appears in markup (``16`` not ``16.0``)."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def _split(text: str) -> tuple[float, str] | None:
    match = _NUMBER_PATTERN.match(text)
    if not match:
        return None
    return float(match.group(1)), match.group(2).lower()


def em_to_px(
    value: float, font_size: float | None = None, base: float = DEFAULT_FONT_SIZE_PX
) -> float:
    """Convert an em value to pixels, using ``base`` when the font size is unknown."""
    return value * (font_size if font_size else base)


def parse_px(text: str) -> float | None:
    """Parse a font size such as ``16px`` or ``16``."""
    parts = _split(text)
    if parts is None:
        return None
    value, suffix = parts
    if suffix in ("", "px"):
        return value
    return None


def parse_letter_spacing(
    text: str, font_size: float | None = None, em_base: float = DEFAULT_FONT_SIZE_PX
) -> Measure | None:
    """
    Convert a letter-spacing value.

    Args:
        text: Markup value (``2px``, ``5%``, ``-0.025em``).
        font_size: Font size of the range in pixels, if known.
        em_base: Pixel size of 1em when the font size is unknown.

    Returns:
        Measure in pixels or percent, or None for an unrecognized unit.
    """
    parts = _split(text)
    if parts is None:
        return None
    value, suffix = parts
    if suffix == "%":
        return Measure(value, Unit.PERCENT)
    if suffix == "em":
        return Measure(em_to_px(value, font_size, em_base), Unit.PIXELS)
    if suffix == "px":
        return Measure(value, Unit.PIXELS)
    return None


def parse_line_height(
    text: str, font_size: float | None = None, em_base: float = DEFAULT_FONT_SIZE_PX
) -> Measure | None:
    """
    Convert a line-height value.

    A unitless value becomes ``value * font_size`` pixels when the font size is
    known. Without a font size the same number is read as a multiplier and
    becomes ``value * 100`` percent.

    Args:
        text: Markup value (``24px``, ``120%``, ``1.5em``, ``1.18``).
        font_size: Font size of the range in pixels, if known.
        em_base: Pixel size of 1em when the font size is unknown.

    Returns:
        Measure in pixels or percent, or None for an unrecognized unit.
    """
    parts = _split(text)
    if parts is None:
        return None
    value, suffix = parts
    if suffix == "%":
        return Measure(value, Unit.PERCENT)
    if suffix == "px":
        return Measure(value, Unit.PIXELS)
    if suffix == "em":
        return Measure(em_to_px(value, font_size, em_base), Unit.PIXELS)
    if suffix == "":
        if font_size:
            return Measure(value * font_size, Unit.PIXELS)
        return Measure(value * 100, Unit.PERCENT)
    return None
