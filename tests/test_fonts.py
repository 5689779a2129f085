"""Tests for weight inference and font fallback."""

import pytest

from frame_translate.document import FontName
from frame_translate.styling.fonts import (
    FontResolver,
    fallback_styles,
    infer_weight,
    is_italic_style,
    parse_weight,
    style_name_for,
    target_style_name,
)


class TestWeightInference:
    """Test style name to weight decoding."""

    @pytest.mark.parametrize(
        "style,weight",
        [
            ("SemiBold Italic", 600),
            ("Semi Bold", 600),
            ("Bold", 700),
            ("Extra Bold", 700),
            ("Medium", 500),
            ("Light Italic", 300),
            ("Thin", 100),
            ("Black", 900),
            ("Heavy", 900),
            ("Regular", 400),
            ("Italic", 400),
        ],
    )
    def test_infer_weight(self, style, weight):
        assert infer_weight(style) == weight

    def test_semibold_italic_is_italic(self):
        assert is_italic_style("SemiBold Italic")
        assert not is_italic_style("Semi Bold")

    @pytest.mark.parametrize(
        "value,weight",
        [("600", 600), ("bold", 700), ("normal", 400), ("Regular", 400), ("semibold", 600)],
    )
    def test_parse_weight(self, value, weight):
        assert parse_weight(value) == weight

    def test_parse_weight_rejects_garbage(self):
        assert parse_weight("bolder-ish") is None
        assert parse_weight(None) is None


class TestStyleNames:
    """Test style name composition."""

    def test_regular_italic_is_plain_italic(self):
        assert style_name_for(400, True) == "Italic"

    def test_weighted_italic(self):
        assert style_name_for(600, True) == "Semi Bold Italic"
        assert style_name_for(700, False) == "Bold"

    def test_target_from_table(self):
        assert target_style_name(900, False, "Regular") == "Black"

    def test_target_italic_only(self):
        assert target_style_name(None, True, "Bold") == "Italic"

    def test_target_keeps_current_style(self):
        assert target_style_name(None, False, "Condensed") == "Condensed"
        assert target_style_name(850, False, "Condensed") == "Condensed"


class TestFallbackLadder:
    """Test the ordered fallback search."""

    def test_italic_ladder_tries_italics_first(self):
        ladder = fallback_styles(True)
        last_italic = max(i for i, style in enumerate(ladder) if "Italic" in style)
        first_upright = min(i for i, style in enumerate(ladder) if "Italic" not in style)
        assert last_italic < first_upright
        assert ladder[-1] == "Regular"

    def test_upright_ladder(self):
        assert fallback_styles(False) == ["Bold", "SemiBold", "Semi Bold", "Medium", "Regular"]

    @pytest.mark.asyncio
    async def test_black_italic_falls_through_to_italic(self):
        """Black Italic resolves to Italic before any upright style."""
        available = {FontName("Inter", "Italic"), FontName("Inter", "Bold")}
        attempts: list[FontName] = []

        async def loader(font: FontName) -> bool:
            attempts.append(font)
            return font in available

        resolved = await FontResolver(loader).resolve("Inter", "Black Italic", True)

        assert resolved == FontName("Inter", "Italic")
        assert all("Italic" in font.style for font in attempts)

    @pytest.mark.asyncio
    async def test_total_failure_returns_none(self):
        async def loader(font: FontName) -> bool:
            return False

        assert await FontResolver(loader).resolve("Nope", "Bold", False) is None

    @pytest.mark.asyncio
    async def test_load_results_are_cached(self):
        calls: list[FontName] = []

        async def loader(font: FontName) -> bool:
            calls.append(font)
            return True

        resolver = FontResolver(loader)
        await resolver.load(FontName("Inter", "Bold"))
        await resolver.load(FontName("Inter", "Bold"))

        assert calls == [FontName("Inter", "Bold")]
