"""
Canonical style representation.

StyleDictionary is the resolved style of a run read from the document.
SegmentStyle is the same information as it appears in markup: one optional
string per supported property.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any

from frame_translate.document.base import Measure
from frame_translate.styling.units import format_number, measure_to_css

# Supported markup properties in canonical emission order
CSS_PROPERTIES: list[tuple[str, str]] = [
    ("font-family", "font_family"),
    ("font-weight", "font_weight"),
    ("font-style", "font_style"),
    ("font-size", "font_size"),
    ("color", "color"),
    ("text-decoration", "text_decoration"),
    ("letter-spacing", "letter_spacing"),
    ("line-height", "line_height"),
]

_FIELD_BY_PROPERTY = dict(CSS_PROPERTIES)


@dataclass(frozen=True)
class RGB:
    """An 8-bit RGB color."""

    r: int
    g: int
    b: int

    def to_css(self) -> str:
        return f"rgb({self.r},{self.g},{self.b})"

    @classmethod
    def from_unit_floats(cls, r: float, g: float, b: float) -> RGB:
        """Build from 0-1 channels as stored by the host."""
        return cls(round(r * 255), round(g * 255), round(b * 255))


@dataclass(frozen=True)
class SegmentStyle:
    """Markup-level style: raw property values, None when absent."""

    font_family: str | None = None
    font_weight: str | None = None
    font_style: str | None = None
    font_size: str | None = None
    color: str | None = None
    text_decoration: str | None = None
    letter_spacing: str | None = None
    line_height: str | None = None

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    @property
    def italic(self) -> bool:
        return (self.font_style or "").strip().lower() == "italic"

    def with_italic(self) -> SegmentStyle:
        """Copy with font-style forced to italic."""
        return replace(self, font_style="italic")

    def merged(self, other: SegmentStyle) -> SegmentStyle:
        """Copy with every property set in ``other`` overriding this one."""
        overrides = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if getattr(other, f.name) is not None
        }
        return replace(self, **overrides)

    def to_css(self) -> str:
        """Serialize present properties in canonical order."""
        parts = []
        for prop, attr in CSS_PROPERTIES:
            value = getattr(self, attr)
            if value is not None:
                parts.append(f"{prop}:{value}")
        return ";".join(parts)

    @classmethod
    def parse(cls, declarations: str) -> SegmentStyle:
        """
        Parse a flat ``prop:value;prop:value`` attribute string.

        Unknown properties and empty values are ignored. Quotes around the
        font family are removed.
        """
        values: dict[str, str] = {}
        for part in declarations.split(";"):
            key, sep, value = part.partition(":")
            if not sep:
                continue
            key = key.strip().lower()
            value = value.strip()
            if not key or not value or key not in _FIELD_BY_PROPERTY:
                continue
            if key == "font-family":
                value = value.strip("'\"")
            values[_FIELD_BY_PROPERTY[key]] = value
        return cls(**values)


@dataclass
class StyleDictionary:
    """Resolved style of a run of document text."""

    font_family: str
    font_weight: int = 400
    italic: bool = False
    font_size: float = 16.0
    color: RGB | None = None
    text_decoration: str | None = None  # Host value, e.g. "UNDERLINE"
    letter_spacing: Measure | None = None
    line_height: Measure | None = None  # None means AUTO

    def to_segment_style(self) -> SegmentStyle:
        """Express this style as markup properties."""
        decoration = None
        if self.text_decoration and self.text_decoration.upper() != "NONE":
            decoration = self.text_decoration.lower().replace("_", "-")
        return SegmentStyle(
            font_family=self.font_family,
            font_weight=str(self.font_weight),
            font_style="italic" if self.italic else None,
            font_size=f"{format_number(self.font_size)}px",
            color=self.color.to_css() if self.color else None,
            text_decoration=decoration,
            letter_spacing=measure_to_css(self.letter_spacing) if self.letter_spacing else None,
            line_height=measure_to_css(self.line_height) if self.line_height else None,
        )

    def to_css(self) -> str:
        """Canonical attribute string for a style element."""
        return self.to_segment_style().to_css()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON storage."""
        return {
            "font_family": self.font_family,
            "font_weight": self.font_weight,
            "italic": self.italic,
            "font_size": self.font_size,
            "color": [self.color.r, self.color.g, self.color.b] if self.color else None,
            "text_decoration": self.text_decoration,
            "letter_spacing": self.letter_spacing.to_dict() if self.letter_spacing else None,
            "line_height": self.line_height.to_dict() if self.line_height else None,
        }


@dataclass
class StyleRun:
    """A slice of text with its resolved style. ``style`` is None for gap runs."""

    text: str
    style: StyleDictionary | None = None
    start: int = 0
    end: int = 0

    @property
    def is_gap(self) -> bool:
        return self.style is None
