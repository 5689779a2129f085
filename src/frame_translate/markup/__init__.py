"""
Inline-styled markup exchanged with the translation service.

Two element kinds (style and emphasis) plus line breaks; one flat
attribute string per style element.
"""

from frame_translate.markup.decoder import (
    Segment,
    Token,
    TokenKind,
    decode,
    first_style_attributes,
    tokenize,
    visible_text,
)
from frame_translate.markup.encoder import encode_runs, encode_segment, escape_text, style_element

__all__ = [
    "Segment",
    "Token",
    "TokenKind",
    "decode",
    "first_style_attributes",
    "tokenize",
    "visible_text",
    "encode_runs",
    "encode_segment",
    "escape_text",
    "style_element",
]
