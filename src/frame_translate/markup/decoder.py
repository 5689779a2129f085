"""
Markup decoding into styled segments.

Markup is tokenized into text, style-element, emphasis-element and
line-break tokens, then a small stack parser resolves each text piece's
style. Emphasis always forces italic over the inherited style.

An opening tag without a matching close, or a closing tag without a
matching open, is kept as literal text under the enclosing style, so no
interior text is ever dropped.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from enum import Enum

from frame_translate.styling.style import SegmentStyle

logger = logging.getLogger(__name__)

_TAG_PATTERN = re.compile(
    r"(?P<style_open><span(?:\s+style\s*=\s*(?:\"(?P<dq>[^\"]*)\"|'(?P<sq>[^']*)'))?\s*>)"
    r"|(?P<style_close></span\s*>)"
    r"|(?P<emphasis_open><em\s*>)"
    r"|(?P<emphasis_close></em\s*>)"
    r"|(?P<line_break><br\s*/?\s*>)",
    re.IGNORECASE,
)


class TokenKind(str, Enum):
    """Kinds of markup tokens."""

    TEXT = "text"
    STYLE_OPEN = "style_open"
    STYLE_CLOSE = "style_close"
    EMPHASIS_OPEN = "emphasis_open"
    EMPHASIS_CLOSE = "emphasis_close"
    LINE_BREAK = "line_break"


_CLOSES = {
    TokenKind.STYLE_CLOSE: TokenKind.STYLE_OPEN,
    TokenKind.EMPHASIS_CLOSE: TokenKind.EMPHASIS_OPEN,
}


@dataclass(frozen=True)
class Token:
    """A markup token. ``value`` is decoded text or the raw attribute string."""

    kind: TokenKind
    value: str = ""
    raw: str = ""


@dataclass(frozen=True)
class Segment:
    """A piece of text with its resolved markup style."""

    text: str
    style: SegmentStyle

    def to_dict(self) -> dict[str, str | None]:
        return {"text": self.text, "style": self.style.to_css()}


def tokenize(markup: str) -> list[Token]:
    """Split markup into tokens. Text tokens carry entity-decoded text."""
    tokens: list[Token] = []
    cursor = 0
    for match in _TAG_PATTERN.finditer(markup):
        if match.start() > cursor:
            raw = markup[cursor : match.start()]
            tokens.append(Token(TokenKind.TEXT, html.unescape(raw), raw))

        # lastgroup is the outermost alternative, never the nested attribute group
        kind = TokenKind(match.lastgroup)
        if kind == TokenKind.STYLE_OPEN:
            attrs = match.group("dq")
            if attrs is None:
                attrs = match.group("sq") or ""
            tokens.append(Token(TokenKind.STYLE_OPEN, html.unescape(attrs), match.group(0)))
        else:
            tokens.append(Token(kind, "", match.group(0)))
        cursor = match.end()

    if cursor < len(markup):
        raw = markup[cursor:]
        tokens.append(Token(TokenKind.TEXT, html.unescape(raw), raw))
    return tokens


def _literal(token: Token) -> Token:
    return Token(TokenKind.TEXT, token.raw, token.raw)


def balance(tokens: list[Token]) -> list[Token]:
    """
    Demote unmatched opening and closing tags to literal text tokens.

    A close matches the nearest open of its kind; opens left unclosed in
    between are unmatched.
    """
    result = list(tokens)
    open_stack: list[int] = []

    for index, token in enumerate(tokens):
        if token.kind in (TokenKind.STYLE_OPEN, TokenKind.EMPHASIS_OPEN):
            open_stack.append(index)
        elif token.kind in _CLOSES:
            wanted = _CLOSES[token.kind]
            if not any(tokens[i].kind == wanted for i in open_stack):
                logger.warning("Unmatched closing tag kept as text: %s", token.raw)
                result[index] = _literal(token)
                continue
            while open_stack:
                opened = open_stack.pop()
                if tokens[opened].kind == wanted:
                    break
                logger.warning("Unterminated tag kept as text: %s", tokens[opened].raw)
                result[opened] = _literal(tokens[opened])

    for opened in open_stack:
        logger.warning("Unterminated tag kept as text: %s", tokens[opened].raw)
        result[opened] = _literal(tokens[opened])
    return result


def parse(tokens: list[Token]) -> list[Segment]:
    """Resolve balanced tokens into segments."""
    segments: list[Segment] = []
    styles = [SegmentStyle()]
    buffer: list[str] = []

    def flush() -> None:
        if buffer:
            segments.append(Segment("".join(buffer), styles[-1]))
            buffer.clear()

    for token in tokens:
        if token.kind == TokenKind.TEXT:
            buffer.append(token.value)
        elif token.kind == TokenKind.LINE_BREAK:
            buffer.append("\n")
        elif token.kind == TokenKind.STYLE_OPEN:
            flush()
            styles.append(styles[-1].merged(SegmentStyle.parse(token.value)))
        elif token.kind == TokenKind.EMPHASIS_OPEN:
            flush()
            styles.append(styles[-1].with_italic())
        else:
            flush()
            styles.pop()

    flush()
    return segments


def decode(markup: str) -> list[Segment]:
    """
    Decode markup into ordered segments.

    Args:
        markup: Markup string.

    Returns:
        Segments whose texts concatenate to the markup's visible text.
    """
    return parse(balance(tokenize(markup)))


def visible_text(markup: str) -> str:
    """Return the plain text a markup string displays."""
    return "".join(segment.text for segment in decode(markup))


def first_style_attributes(markup: str) -> str | None:
    """Return the attribute string of the first matched style element."""
    for token in balance(tokenize(markup)):
        if token.kind == TokenKind.STYLE_OPEN:
            return token.value
    return None
