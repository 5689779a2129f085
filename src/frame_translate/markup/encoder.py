"""
Markup encoding of style runs.

Each styled run becomes ``<span style="...">text</span>`` with properties
in a fixed order; gap runs are emitted as bare text.
"""

from __future__ import annotations

from collections.abc import Iterable

from frame_translate.styling.style import SegmentStyle, StyleRun

LINE_BREAK = "<br/>"

_ESCAPES = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#039;",
    }
)


def escape_text(text: str) -> str:
    """Entity-escape text and turn newlines into line breaks."""
    return text.translate(_ESCAPES).replace("\n", LINE_BREAK)


def escape_attribute(value: str) -> str:
    """Entity-escape an attribute value."""
    return value.translate(_ESCAPES)


def style_element(declarations: str, text: str) -> str:
    """Wrap already-serialized declarations and raw text in a style element."""
    return f'<span style="{escape_attribute(declarations)}">{escape_text(text)}</span>'


def encode_segment(text: str, style: SegmentStyle | None) -> str:
    """Encode one piece of text with an optional markup style."""
    if style is None or style.is_empty:
        return escape_text(text)
    return style_element(style.to_css(), text)


def encode_runs(runs: Iterable[StyleRun]) -> str:
    """
    Encode a gap-filled run sequence to markup.

    Args:
        runs: Ordered runs as produced by the run extractor.

    Returns:
        Markup string. Identical input always gives identical output.
    """
    parts: list[str] = []
    for run in runs:
        if not run.text:
            continue
        if run.style is None:
            parts.append(escape_text(run.text))
        else:
            parts.append(style_element(run.style.to_css(), run.text))
    return "".join(parts)
