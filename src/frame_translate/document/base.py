"""
Base classes for document stores.

Defines the narrow interface the translator uses to read and mutate the host
document: tree traversal, styled runs, range mutations, font loading,
cloning, image export and selection.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class _Mixed:
    """Sentinel returned when a range holds more than one value."""

    def __repr__(self) -> str:
        return "MIXED"


MIXED: Any = _Mixed()


class Unit(str, Enum):
    """Units understood by the document store."""

    PIXELS = "PIXELS"
    PERCENT = "PERCENT"


class RangeProperty(str, Enum):
    """Character-range properties that can be read and written."""

    FONT_NAME = "fontName"
    FONT_SIZE = "fontSize"
    FILLS = "fills"
    TEXT_DECORATION = "textDecoration"
    LETTER_SPACING = "letterSpacing"
    LINE_HEIGHT = "lineHeight"


TEXT_DECORATIONS = ("NONE", "UNDERLINE", "STRIKETHROUGH")


@dataclass(frozen=True)
class Measure:
    """A numeric style value tagged with its unit."""

    value: float
    unit: Unit

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "unit": self.unit.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Measure:
        return cls(value=float(data["value"]), unit=Unit(data.get("unit", "PIXELS")))


@dataclass(frozen=True)
class FontName:
    """A font family and style pair as the host names it."""

    family: str
    style: str

    def to_dict(self) -> dict[str, str]:
        return {"family": self.family, "style": self.style}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FontName:
        return cls(family=data["family"], style=data.get("style", "Regular"))


@dataclass(frozen=True)
class Paint:
    """A fill paint. Channels are normalized to 0-1."""

    type: str = "SOLID"
    color: tuple[float, float, float] | None = None
    opacity: float | None = None
    visible: bool = True

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type, "visible": self.visible}
        if self.color is not None:
            r, g, b = self.color
            data["color"] = {"r": r, "g": g, "b": b}
        if self.opacity is not None:
            data["opacity"] = self.opacity
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Paint:
        color = data.get("color")
        return cls(
            type=data.get("type", "SOLID"),
            color=(float(color["r"]), float(color["g"]), float(color["b"])) if color else None,
            opacity=data.get("opacity"),
            visible=data.get("visible", True),
        )


@dataclass
class HostRun:
    """A styled run as reported by the host's run iterator (end exclusive)."""

    start: int
    end: int
    font: FontName
    font_size: float
    fills: list[Paint] = field(default_factory=list)
    text_decoration: str = "NONE"
    letter_spacing: Measure | None = None
    line_height: Measure | None = None  # None means AUTO


@dataclass
class NodeInfo:
    """Identity and geometry of a node."""

    id: str
    name: str
    type: str
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


@dataclass
class DocumentMeta:
    """File-level information included in every export."""

    file_key: str
    file_name: str
    page_name: str


class DocumentStore(ABC):
    """
    Abstract base class for document stores.

    Font loading and image export are asynchronous suspension points; every
    other operation is synchronous.
    """

    @abstractmethod
    def metadata(self) -> DocumentMeta:
        """File key, file name and current page name."""
        ...

    @abstractmethod
    def get_node(self, node_id: str) -> NodeInfo:
        """Return a node's identity and geometry."""
        ...

    @abstractmethod
    def children(self, node_id: str) -> list[str]:
        """Return the ids of a node's children in document order."""
        ...

    @abstractmethod
    def is_text_unit(self, node_id: str) -> bool:
        """Check whether a node holds translatable text."""
        ...

    @abstractmethod
    def get_characters(self, node_id: str) -> str:
        """Return the plain text of a text node."""
        ...

    @abstractmethod
    def get_style_runs(self, node_id: str) -> list[HostRun]:
        """Return the node's styled runs in order. Ranges may be omitted."""
        ...

    @abstractmethod
    def get_range_style(self, node_id: str, start: int, end: int, prop: RangeProperty) -> Any:
        """Return a property's value over a range, or MIXED."""
        ...

    @abstractmethod
    def replace_text(self, node_id: str, text: str) -> None:
        """Overwrite a text node's content."""
        ...

    @abstractmethod
    def set_range_style(
        self,
        node_id: str,
        start: int,
        end: int,
        prop: RangeProperty,
        value: Any,
    ) -> None:
        """Set a property over a character range."""
        ...

    @abstractmethod
    async def load_font(self, font: FontName) -> bool:
        """Load a font; returns False when the font is unavailable."""
        ...

    @abstractmethod
    def clone_subtree(self, node_id: str) -> str:
        """Duplicate a node and its descendants, returning the new root id."""
        ...

    @abstractmethod
    def rename(self, node_id: str, name: str) -> None:
        """Rename a node."""
        ...

    @abstractmethod
    def move(self, node_id: str, x: float, y: float) -> None:
        """Position a node."""
        ...

    @abstractmethod
    async def export_image(self, node_id: str) -> bytes:
        """Render a node to image bytes."""
        ...

    @abstractmethod
    def selection(self) -> list[str]:
        """Return the ids of the currently selected nodes."""
        ...

    @abstractmethod
    def select(self, node_ids: list[str]) -> None:
        """Replace the current selection."""
        ...

    @abstractmethod
    def scroll_into_view(self, node_ids: list[str]) -> None:
        """Bring nodes into the viewport."""
        ...
