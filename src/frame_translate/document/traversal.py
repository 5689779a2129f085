"""Tree traversal over a document store with an explicit work stack."""

from __future__ import annotations

from collections.abc import Iterator

from frame_translate.document.base import DocumentStore


def iter_nodes(store: DocumentStore, root_id: str) -> Iterator[str]:
    """Yield node ids in depth-first pre-order, root included."""
    stack = [root_id]
    while stack:
        node_id = stack.pop()
        yield node_id
        # Reversed so the first child is visited first
        stack.extend(reversed(store.children(node_id)))


def iter_text_units(store: DocumentStore, root_id: str) -> Iterator[str]:
    """Yield text node ids under a root in document order."""
    for node_id in iter_nodes(store, root_id):
        if store.is_text_unit(node_id):
            yield node_id


def collect_text_units(store: DocumentStore, root_id: str) -> list[str]:
    """Return every text node under a root in document order."""
    return list(iter_text_units(store, root_id))
