"""
Styling extraction and application for text translation.

Reads per-character style runs from the document, converts units and font
styles, and applies decoded markup styles back onto text ranges.
"""

from frame_translate.styling.extractor import RunExtractor, first_visible_solid, style_from_run
from frame_translate.styling.fonts import FontResolver, infer_weight, is_italic_style
from frame_translate.styling.style import RGB, SegmentStyle, StyleDictionary, StyleRun

__all__ = [
    "RunExtractor",
    "first_visible_solid",
    "style_from_run",
    "FontResolver",
    "infer_weight",
    "is_italic_style",
    "RGB",
    "SegmentStyle",
    "StyleDictionary",
    "StyleRun",
]
