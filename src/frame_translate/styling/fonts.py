"""
Font style inference and fallback resolution.

Maps host font style names ("Semi Bold Italic") to a numeric weight plus an
italic flag and back, and searches a fixed ladder of alternative styles when
the exact style of a family cannot be loaded.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from frame_translate.document.base import FontName

logger = logging.getLogger(__name__)

# Canonical weight table
WEIGHT_NAMES: dict[int, str] = {
    100: "Thin",
    300: "Light",
    400: "Regular",
    500: "Medium",
    600: "Semi Bold",
    700: "Bold",
    900: "Black",
}

# Keywords accepted as font-weight values in markup
WEIGHT_KEYWORDS: dict[str, int] = {
    "thin": 100,
    "light": 300,
    "normal": 400,
    "regular": 400,
    "medium": 500,
    "semibold": 600,
    "semi bold": 600,
    "bold": 700,
    "black": 900,
    "heavy": 900,
}

# Ordered substring checks; "semi bold" contains "bold" so it must come first.
_STYLE_NAME_WEIGHTS: list[tuple[tuple[str, ...], int]] = [
    (("semibold", "semi bold"), 600),
    (("bold",), 700),
    (("medium",), 500),
    (("light",), 300),
    (("thin",), 100),
    (("black", "heavy"), 900),
]

ITALIC_FALLBACKS: list[str] = [
    "Bold Italic",
    "SemiBold Italic",
    "Semi Bold Italic",
    "Medium Italic",
    "Italic",
]

UPRIGHT_FALLBACKS: list[str] = [
    "Bold",
    "SemiBold",
    "Semi Bold",
    "Medium",
    "Regular",
]

FontLoader = Callable[[FontName], Awaitable[bool]]


def infer_weight(style_name: str) -> int:
    """Infer the numeric weight of a host style name."""
    style = style_name.lower()
    for needles, weight in _STYLE_NAME_WEIGHTS:
        if any(needle in style for needle in needles):
            return weight
    return 400


def is_italic_style(style_name: str) -> bool:
    """Check whether a host style name denotes an italic face."""
    return "italic" in style_name.lower()


def parse_weight(value: str | None) -> int | None:
    """Parse a markup font-weight value (``600``, ``bold``) into a number."""
    if not value:
        return None
    text = value.strip().lower()
    if text in WEIGHT_KEYWORDS:
        return WEIGHT_KEYWORDS[text]
    try:
        return int(float(text))
    except ValueError:
        return None


def style_name_for(weight: int, italic: bool) -> str:
    """Compose a style name from the weight table (400 italic is plain "Italic")."""
    name = WEIGHT_NAMES.get(weight, "Regular")
    if not italic:
        return name
    if name == "Regular":
        return "Italic"
    return f"{name} Italic"


def target_style_name(weight: int | None, italic: bool, current_style: str) -> str:
    """
    Determine the style name a range should use.

    Args:
        weight: Requested weight, or None when the markup gives none.
        italic: Whether italic was requested.
        current_style: Style name currently applied to the range.

    Returns:
        A style name from the weight table, "Italic", or the current style
        when the request cannot be expressed by the table.
    """
    if weight in WEIGHT_NAMES:
        return style_name_for(weight, italic)
    if italic:
        return "Italic"
    return current_style


def fallback_styles(italic: bool) -> list[str]:
    """Return the fallback ladder; italic requests try every italic style first."""
    if italic:
        return ITALIC_FALLBACKS + UPRIGHT_FALLBACKS
    return list(UPRIGHT_FALLBACKS)


class FontResolver:
    """
    Resolves a (family, style) request to a loadable font.

    Load results are cached per session so a missing style is only tried once.
    """

    def __init__(self, loader: FontLoader):
        """
        Initialize font resolver.

        Args:
            loader: Coroutine function returning True when the host loaded the font.
        """
        self._loader = loader
        self._cache: dict[FontName, bool] = {}

    async def load(self, font: FontName) -> bool:
        """Load a font through the host, caching the outcome."""
        if font in self._cache:
            return self._cache[font]
        loaded = await self._loader(font)
        self._cache[font] = loaded
        if not loaded:
            logger.debug("Font not available: %s %s", font.family, font.style)
        return loaded

    async def resolve(self, family: str, style: str, italic: bool) -> FontName | None:
        """
        Find the first loadable font for a request.

        Args:
            family: Requested family.
            style: Exact style name to try first.
            italic: Whether italic was requested (selects the ladder).

        Returns:
            The loaded FontName, or None if every option failed.
        """
        requested = FontName(family, style)
        if await self.load(requested):
            return requested

        logger.warning("Could not load %s %s, trying alternatives", family, style)
        for alternative in fallback_styles(italic):
            if alternative == style:
                continue
            candidate = FontName(family, alternative)
            if await self.load(candidate):
                logger.info("Using fallback font %s %s", family, alternative)
                return candidate
        return None
