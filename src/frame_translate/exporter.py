"""
Export payload construction.

Validates the selection, preloads the fonts used inside the frame, encodes
every text node to markup and optionally attaches a rendered image.
"""

from __future__ import annotations

import base64
import logging
from datetime import datetime, timezone

from frame_translate.document.base import DocumentStore
from frame_translate.document.traversal import iter_text_units
from frame_translate.errors import SelectionError
from frame_translate.markup.encoder import encode_runs
from frame_translate.models import ExportMeta, ExportPayload, FrameRef, TextUnit
from frame_translate.styling.extractor import RunExtractor
from frame_translate.styling.fonts import FontResolver

logger = logging.getLogger(__name__)


def validate_selection(store: DocumentStore) -> str:
    """
    Return the id of the single selected frame.

    Raises:
        SelectionError: Selection is empty, has several nodes, or is not a frame.
    """
    selection = store.selection()
    if len(selection) != 1:
        raise SelectionError(f"Select exactly one frame (got {len(selection)} nodes)")
    node = store.get_node(selection[0])
    if node.type != "FRAME":
        raise SelectionError(f"Selected node {node.name!r} is a {node.type}, not a FRAME")
    return node.id


async def preload_fonts(
    store: DocumentStore,
    frame_id: str,
    extractor: RunExtractor,
    fonts: FontResolver | None = None,
) -> int:
    """
    Load every font used inside a frame.

    Failures are logged and do not abort the export.

    Returns:
        Number of fonts that loaded.
    """
    resolver = fonts or FontResolver(store.load_font)
    loaded = 0
    for font in sorted(extractor.collect_fonts(frame_id), key=lambda f: (f.family, f.style)):
        try:
            if await resolver.load(font):
                loaded += 1
            else:
                logger.warning("Font unavailable: %s %s", font.family, font.style)
        except Exception as e:
            logger.warning("Error loading font %s %s: %s", font.family, font.style, e)
    return loaded


async def build_export_payload(
    store: DocumentStore,
    frame_id: str,
    *,
    include_image: bool = True,
    extractor: RunExtractor | None = None,
    fonts: FontResolver | None = None,
) -> ExportPayload:
    """
    Build the export payload for a frame.

    Args:
        store: Document store.
        frame_id: Frame to export.
        include_image: Attach a base64 rendering of the frame.
        extractor: Run extractor (one bound to the store if omitted).
        fonts: Font resolver shared with the session.

    Returns:
        ExportPayload without language or chunk tags.
    """
    extractor = extractor or RunExtractor(store)
    frame = store.get_node(frame_id)

    loaded = await preload_fonts(store, frame_id, extractor, fonts)
    logger.debug("Preloaded %d font(s) for frame %s", loaded, frame_id)

    texts: list[TextUnit] = []
    for node_id in iter_text_units(store, frame_id):
        node = store.get_node(node_id)
        texts.append(
            TextUnit(
                node_id=node_id,
                name=node.name,
                characters=store.get_characters(node_id),
                markup=encode_runs(extractor.extract(node_id)),
            )
        )

    image: str | None = None
    if include_image:
        try:
            data = await store.export_image(frame_id)
        except Exception as e:
            logger.warning("Could not render frame %r, exporting without image: %s", frame.name, e)
            data = b""
        image = base64.b64encode(data).decode("ascii") if data else None

    meta = store.metadata()
    logger.info("Exported %d text node(s) from frame %r", len(texts), frame.name)
    return ExportPayload(
        meta=ExportMeta(
            file_key=meta.file_key,
            file_name=meta.file_name,
            page_name=meta.page_name,
            exported_at=datetime.now(timezone.utc).isoformat(),
        ),
        frame=FrameRef(id=frame.id, name=frame.name, image=image),
        texts=texts,
    )
