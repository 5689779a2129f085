"""
Document store abstraction.

The host document is external; the translator reads and mutates it only
through the DocumentStore interface.
"""

from frame_translate.document.base import (
    MIXED,
    DocumentMeta,
    DocumentStore,
    FontName,
    HostRun,
    Measure,
    NodeInfo,
    Paint,
    RangeProperty,
    Unit,
)
from frame_translate.document.memory import CharStyle, InMemoryDocumentStore
from frame_translate.document.traversal import collect_text_units, iter_nodes, iter_text_units

__all__ = [
    "MIXED",
    "DocumentMeta",
    "DocumentStore",
    "FontName",
    "HostRun",
    "Measure",
    "NodeInfo",
    "Paint",
    "RangeProperty",
    "Unit",
    "CharStyle",
    "InMemoryDocumentStore",
    "collect_text_units",
    "iter_nodes",
    "iter_text_units",
]
