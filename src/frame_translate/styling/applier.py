"""
Application of decoded markup styles to document text.

The node's text is replaced first, so every range offset refers to the new
content. Properties are then applied segment by segment; a property that
cannot be applied is reported and skipped without affecting the others.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from frame_translate.document.base import MIXED, DocumentStore, FontName, Paint, RangeProperty
from frame_translate.errors import FontUnavailableError, UnrecognizedValueError
from frame_translate.markup.decoder import Segment, decode
from frame_translate.styling.fonts import FontResolver, parse_weight, target_style_name
from frame_translate.styling.style import SegmentStyle
from frame_translate.styling.units import (
    DEFAULT_FONT_SIZE_PX,
    parse_letter_spacing,
    parse_line_height,
    parse_px,
)

logger = logging.getLogger(__name__)

_COLOR_PATTERN = re.compile(
    r"^\s*rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*(?:,\s*([\d.]+)\s*)?\)\s*$",
    re.IGNORECASE,
)

_DECORATIONS = {
    "UNDERLINE": "UNDERLINE",
    "STRIKETHROUGH": "STRIKETHROUGH",
    "LINE_THROUGH": "STRIKETHROUGH",
}


def parse_color(value: str) -> Paint | None:
    """Parse ``rgb(r,g,b)`` or ``rgba(r,g,b,a)`` into a solid paint."""
    match = _COLOR_PATTERN.match(value)
    if not match:
        return None
    r, g, b = (min(int(match.group(i)), 255) / 255 for i in (1, 2, 3))
    opacity = float(match.group(4)) if match.group(4) else None
    return Paint(type="SOLID", color=(r, g, b), opacity=opacity)


def parse_decoration(value: str) -> str | None:
    """Normalize a text-decoration value to the host's UNDERLINE / STRIKETHROUGH."""
    return _DECORATIONS.get(value.strip().upper().replace("-", "_"))


@dataclass
class ApplyReport:
    """Outcome of applying markup to one text node."""

    node_id: str
    segments: int = 0
    degraded: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.degraded

    def degrade(self, prop: str, start: int, end: int, error: Exception) -> None:
        message = f"{prop} on {self.node_id}[{start}:{end}]: {error}"
        self.degraded.append(message)
        logger.warning("Skipped %s", message)


class StyleApplier:
    """
    Applies decoded segments to text nodes of a document store.

    Font requests go through a FontResolver, which tries the fallback ladder
    when an exact style is missing.
    """

    def __init__(
        self,
        store: DocumentStore,
        fonts: FontResolver | None = None,
        *,
        default_font: FontName = FontName("Inter", "Regular"),
        em_base: float = DEFAULT_FONT_SIZE_PX,
    ):
        """
        Initialize style applier.

        Args:
            store: Document store to mutate.
            fonts: Font resolver; one bound to the store is created if omitted.
            default_font: Font used when a node's current font cannot be read.
            em_base: Pixel size of 1em when a range's font size is unknown.
        """
        self.store = store
        self.fonts = fonts or FontResolver(store.load_font)
        self.default_font = default_font
        self.em_base = em_base

    async def apply_markup(self, node_id: str, markup: str) -> ApplyReport:
        """Decode markup and apply it to a text node."""
        return await self.apply_segments(node_id, decode(markup))

    async def apply_segments(self, node_id: str, segments: list[Segment]) -> ApplyReport:
        """
        Replace a node's text with the segments and style each range.

        Args:
            node_id: Text node id.
            segments: Decoded segments.

        Returns:
            ApplyReport listing properties that could not be applied.
        """
        report = ApplyReport(node_id=node_id)
        original_font = self._original_font(node_id)
        if not await self.fonts.load(original_font):
            logger.warning(
                "Could not load font: %s %s", original_font.family, original_font.style
            )

        self.store.replace_text(node_id, "".join(segment.text for segment in segments))

        position = 0
        for segment in segments:
            start = position
            end = position + len(segment.text)
            position = end
            if end <= start:
                continue
            report.segments += 1
            await self._apply_segment(node_id, start, end, segment.style, original_font, report)

        if report.degraded:
            logger.info(
                "Applied %d segment(s) to %s with %d degraded propert(ies)",
                report.segments,
                node_id,
                len(report.degraded),
            )
        return report

    async def _apply_segment(
        self,
        node_id: str,
        start: int,
        end: int,
        style: SegmentStyle,
        original_font: FontName,
        report: ApplyReport,
    ) -> None:
        if style.font_family or style.font_weight or style.font_style:
            try:
                await self._apply_font(node_id, start, end, style, original_font)
            except Exception as e:
                report.degrade("font", start, end, e)

        font_size: float | None = None
        if style.font_size:
            font_size = parse_px(style.font_size)
            try:
                if font_size is None:
                    raise UnrecognizedValueError(f"Unrecognized font size {style.font_size!r}")
                self.store.set_range_style(node_id, start, end, RangeProperty.FONT_SIZE, font_size)
            except Exception as e:
                report.degrade("font-size", start, end, e)
        if font_size is None:
            font_size = self._current_size(node_id, start, end)

        if style.color:
            try:
                paint = parse_color(style.color)
                if paint is None:
                    raise UnrecognizedValueError(f"Unsupported color {style.color!r}")
                self.store.set_range_style(node_id, start, end, RangeProperty.FILLS, [paint])
            except Exception as e:
                report.degrade("color", start, end, e)

        if style.text_decoration:
            decoration = parse_decoration(style.text_decoration)
            if decoration is None:
                logger.debug("Ignoring text-decoration %r", style.text_decoration)
            else:
                try:
                    self.store.set_range_style(
                        node_id, start, end, RangeProperty.TEXT_DECORATION, decoration
                    )
                except Exception as e:
                    report.degrade("text-decoration", start, end, e)

        if style.letter_spacing:
            try:
                spacing = parse_letter_spacing(style.letter_spacing, font_size, self.em_base)
                if spacing is None:
                    raise UnrecognizedValueError(f"Unrecognized unit in {style.letter_spacing!r}")
                self.store.set_range_style(
                    node_id, start, end, RangeProperty.LETTER_SPACING, spacing
                )
            except Exception as e:
                report.degrade("letter-spacing", start, end, e)

        if style.line_height:
            try:
                line_height = parse_line_height(style.line_height, font_size, self.em_base)
                if line_height is None:
                    raise UnrecognizedValueError(f"Unrecognized unit in {style.line_height!r}")
                self.store.set_range_style(
                    node_id, start, end, RangeProperty.LINE_HEIGHT, line_height
                )
            except Exception as e:
                report.degrade("line-height", start, end, e)

    async def _apply_font(
        self,
        node_id: str,
        start: int,
        end: int,
        style: SegmentStyle,
        original_font: FontName,
    ) -> None:
        current = self.store.get_range_style(node_id, start, end, RangeProperty.FONT_NAME)
        if current is MIXED or not isinstance(current, FontName):
            current = original_font

        family = style.font_family or current.family
        italic = style.italic
        target = target_style_name(parse_weight(style.font_weight), italic, current.style)

        if family == current.family and target == current.style:
            return

        resolved = await self.fonts.resolve(family, target, italic)
        if resolved is None:
            raise FontUnavailableError(f"No loadable style of {family} for {target}")
        self.store.set_range_style(node_id, start, end, RangeProperty.FONT_NAME, resolved)
        logger.debug(
            "Applied font %s %s to %s[%d:%d]", resolved.family, resolved.style, node_id, start, end
        )

    def _original_font(self, node_id: str) -> FontName:
        length = len(self.store.get_characters(node_id))
        if length == 0:
            return self.default_font
        font: Any = self.store.get_range_style(node_id, 0, length, RangeProperty.FONT_NAME)
        if font is MIXED:
            font = self.store.get_range_style(node_id, 0, 1, RangeProperty.FONT_NAME)
        if isinstance(font, FontName):
            return font
        return self.default_font

    def _current_size(self, node_id: str, start: int, end: int) -> float | None:
        size = self.store.get_range_style(node_id, start, end, RangeProperty.FONT_SIZE)
        if isinstance(size, (int, float)):
            return float(size)
        return None
