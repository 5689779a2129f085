"""
Style extraction from document text nodes.

Reads the host's styled runs for a text node and resolves each into a
StyleDictionary, filling any character range the host iterator skips.
"""

from __future__ import annotations

import logging

from frame_translate.document.base import DocumentStore, FontName, HostRun, Paint
from frame_translate.document.traversal import iter_nodes
from frame_translate.styling.fonts import infer_weight, is_italic_style
from frame_translate.styling.style import RGB, StyleDictionary, StyleRun

logger = logging.getLogger(__name__)


def first_visible_solid(fills: list[Paint]) -> RGB | None:
    """Return the color of the first visible solid paint, if any."""
    for paint in fills:
        if paint.type != "SOLID" or not paint.visible or paint.color is None:
            continue
        return RGB.from_unit_floats(*paint.color)
    return None


def style_from_run(run: HostRun) -> StyleDictionary:
    """Resolve a host run into a StyleDictionary."""
    decoration = run.text_decoration if run.text_decoration != "NONE" else None
    return StyleDictionary(
        font_family=run.font.family,
        font_weight=infer_weight(run.font.style),
        italic=is_italic_style(run.font.style),
        font_size=run.font_size,
        color=first_visible_solid(run.fills),
        text_decoration=decoration,
        letter_spacing=run.letter_spacing,
        line_height=run.line_height,
    )


class RunExtractor:
    """
    Extracts style runs from text nodes.

    Produces an ordered run list that covers the node's full text. Ranges
    the host does not report become gap runs with no style.
    """

    def __init__(self, store: DocumentStore):
        """
        Initialize run extractor.

        Args:
            store: Document store to read from.
        """
        self.store = store

    def extract(self, node_id: str) -> list[StyleRun]:
        """
        Extract the style runs of a text node.

        Args:
            node_id: Text node id.

        Returns:
            Runs in order; their texts concatenate to the node's characters.
        """
        characters = self.store.get_characters(node_id)
        runs: list[StyleRun] = []
        last_end = 0

        for host_run in self.store.get_style_runs(node_id):
            start = max(host_run.start, last_end)
            end = min(host_run.end, len(characters))
            if end <= start:
                continue

            if start > last_end:
                runs.append(StyleRun(text=characters[last_end:start], start=last_end, end=start))

            runs.append(
                StyleRun(
                    text=characters[start:end],
                    style=style_from_run(host_run),
                    start=start,
                    end=end,
                )
            )
            last_end = end

        if last_end < len(characters):
            runs.append(
                StyleRun(text=characters[last_end:], start=last_end, end=len(characters))
            )

        gaps = sum(1 for run in runs if run.is_gap)
        if gaps:
            logger.debug("Filled %d unstyled gap(s) in node %s", gaps, node_id)
        return runs

    def collect_fonts(self, root_id: str) -> set[FontName]:
        """Collect every font used by text nodes under a root."""
        fonts: set[FontName] = set()
        for node_id in iter_nodes(self.store, root_id):
            if not self.store.is_text_unit(node_id):
                continue
            for host_run in self.store.get_style_runs(node_id):
                fonts.add(host_run.font)
        return fonts
