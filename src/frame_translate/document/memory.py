"""
In-memory document store backed by a JSON document file.

Text styling is stored per character, and the run iterator groups equal
neighbours into runs the same way the host reports them.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

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
)
from frame_translate.document.traversal import iter_nodes
from frame_translate.errors import DocumentError

DEFAULT_FONT = FontName("Inter", "Regular")

_FIELD_FOR_PROPERTY = {
    RangeProperty.FONT_NAME: "font",
    RangeProperty.FONT_SIZE: "font_size",
    RangeProperty.FILLS: "fills",
    RangeProperty.TEXT_DECORATION: "text_decoration",
    RangeProperty.LETTER_SPACING: "letter_spacing",
    RangeProperty.LINE_HEIGHT: "line_height",
}


@dataclass(frozen=True)
class CharStyle:
    """Style of a single character."""

    font: FontName = DEFAULT_FONT
    font_size: float = 16.0
    fills: tuple[Paint, ...] = (Paint(color=(0.0, 0.0, 0.0)),)
    text_decoration: str = "NONE"
    letter_spacing: Measure | None = None
    line_height: Measure | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "fontName": self.font.to_dict(),
            "fontSize": self.font_size,
            "fills": [paint.to_dict() for paint in self.fills],
            "textDecoration": self.text_decoration,
        }
        if self.letter_spacing is not None:
            data["letterSpacing"] = self.letter_spacing.to_dict()
        if self.line_height is not None:
            data["lineHeight"] = self.line_height.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CharStyle:
        default = cls()
        return cls(
            font=FontName.from_dict(data["fontName"]) if "fontName" in data else default.font,
            font_size=float(data.get("fontSize", default.font_size)),
            fills=tuple(Paint.from_dict(p) for p in data["fills"])
            if "fills" in data
            else default.fills,
            text_decoration=data.get("textDecoration", "NONE"),
            letter_spacing=Measure.from_dict(data["letterSpacing"])
            if data.get("letterSpacing")
            else None,
            line_height=Measure.from_dict(data["lineHeight"]) if data.get("lineHeight") else None,
        )


@dataclass
class MemoryNode:
    """A node of the in-memory tree."""

    id: str
    name: str
    type: str
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    parent: str | None = None
    children: list[str] = field(default_factory=list)
    characters: str = ""
    styles: list[CharStyle] = field(default_factory=list)
    image: bytes | None = None


class InMemoryDocumentStore(DocumentStore):
    """
    Document store holding a whole document in memory.

    Used by the CLI against JSON document files and by the tests.
    """

    def __init__(
        self,
        *,
        file_key: str = "local",
        file_name: str = "Untitled",
        page_name: str = "Page 1",
        available_fonts: set[FontName] | None = None,
    ):
        """
        Initialize an empty document.

        Args:
            file_key: Identifier of the document file.
            file_name: Human-readable file name.
            page_name: Name of the current page.
            available_fonts: Fonts that can be loaded. None means every font loads.
        """
        self._meta = DocumentMeta(file_key=file_key, file_name=file_name, page_name=page_name)
        self.available_fonts = available_fonts
        self.nodes: dict[str, MemoryNode] = {}
        self.roots: list[str] = []
        self.loaded_fonts: set[FontName] = set()
        self.load_attempts: list[FontName] = []
        self.viewport: list[str] = []
        self._selection: list[str] = []
        self._clone_counter = 0

    # ==================== Building ====================

    def add_node(
        self,
        node_id: str,
        name: str,
        node_type: str,
        *,
        parent: str | None = None,
        **geometry: float,
    ) -> MemoryNode:
        """Add a container node."""
        if node_id in self.nodes:
            raise DocumentError(f"Duplicate node id: {node_id}")
        node = MemoryNode(id=node_id, name=name, type=node_type, parent=parent, **geometry)
        self.nodes[node_id] = node
        if parent is None:
            self.roots.append(node_id)
        else:
            self._node(parent).children.append(node_id)
        return node

    def add_text(
        self,
        node_id: str,
        name: str,
        characters: str,
        *,
        parent: str | None = None,
        runs: list[tuple[int, int, CharStyle]] | None = None,
        style: CharStyle | None = None,
    ) -> MemoryNode:
        """
        Add a text node.

        Args:
            node_id: Node id.
            name: Layer name.
            characters: Text content.
            parent: Parent node id.
            runs: Optional (start, end, style) ranges over the text.
            style: Style for characters not covered by runs.
        """
        node = self.add_node(node_id, name, "TEXT", parent=parent)
        node.characters = characters
        node.styles = [style or CharStyle()] * len(characters)
        for start, end, run_style in runs or []:
            for index in range(start, min(end, len(characters))):
                node.styles[index] = run_style
        return node

    # ==================== DocumentStore ====================

    def metadata(self) -> DocumentMeta:
        return self._meta

    def get_node(self, node_id: str) -> NodeInfo:
        node = self._node(node_id)
        return NodeInfo(
            id=node.id,
            name=node.name,
            type=node.type,
            x=node.x,
            y=node.y,
            width=node.width,
            height=node.height,
        )

    def children(self, node_id: str) -> list[str]:
        return list(self._node(node_id).children)

    def is_text_unit(self, node_id: str) -> bool:
        return self._node(node_id).type == "TEXT"

    def get_characters(self, node_id: str) -> str:
        return self._text_node(node_id).characters

    def get_style_runs(self, node_id: str) -> list[HostRun]:
        node = self._text_node(node_id)
        runs: list[HostRun] = []
        start = 0
        for index in range(1, len(node.styles) + 1):
            if index == len(node.styles) or node.styles[index] != node.styles[start]:
                style = node.styles[start]
                runs.append(
                    HostRun(
                        start=start,
                        end=index,
                        font=style.font,
                        font_size=style.font_size,
                        fills=list(style.fills),
                        text_decoration=style.text_decoration,
                        letter_spacing=style.letter_spacing,
                        line_height=style.line_height,
                    )
                )
                start = index
        return runs

    def get_range_style(self, node_id: str, start: int, end: int, prop: RangeProperty) -> Any:
        node = self._text_node(node_id)
        self._check_range(node, start, end)
        attr = _FIELD_FOR_PROPERTY[prop]
        values = {getattr(style, attr) for style in node.styles[start:end]}
        if len(values) != 1:
            return MIXED
        value = values.pop()
        if prop == RangeProperty.FILLS:
            return list(value)
        return value

    def replace_text(self, node_id: str, text: str) -> None:
        node = self._text_node(node_id)
        # New content inherits the style of the first character
        first = node.styles[0] if node.styles else CharStyle()
        if first.font not in self.loaded_fonts:
            raise DocumentError(f"Font {first.font.family} {first.font.style} is not loaded")
        node.characters = text
        node.styles = [first] * len(text)

    def set_range_style(
        self,
        node_id: str,
        start: int,
        end: int,
        prop: RangeProperty,
        value: Any,
    ) -> None:
        node = self._text_node(node_id)
        self._check_range(node, start, end)
        if prop == RangeProperty.FONT_NAME and value not in self.loaded_fonts:
            raise DocumentError(f"Font {value.family} {value.style} is not loaded")
        if prop == RangeProperty.FILLS:
            value = tuple(value)
        attr = _FIELD_FOR_PROPERTY[prop]
        for index in range(start, end):
            node.styles[index] = replace(node.styles[index], **{attr: value})

    async def load_font(self, font: FontName) -> bool:
        self.load_attempts.append(font)
        if self.available_fonts is not None and font not in self.available_fonts:
            return False
        self.loaded_fonts.add(font)
        return True

    def clone_subtree(self, node_id: str) -> str:
        source_root = self._node(node_id)
        self._clone_counter += 1
        suffix = f"c{self._clone_counter}"
        id_map: dict[str, str] = {}
        for original_id in iter_nodes(self, node_id):
            original = self.nodes[original_id]
            clone_id = f"{original_id}:{suffix}"
            id_map[original_id] = clone_id
            self.nodes[clone_id] = replace(
                original,
                id=clone_id,
                parent=id_map.get(original.parent) if original_id != node_id else original.parent,
                children=[],
                styles=list(original.styles),
            )
        for original_id, clone_id in id_map.items():
            self.nodes[clone_id].children = [id_map[c] for c in self.nodes[original_id].children]

        clone_root = id_map[node_id]
        if source_root.parent is None:
            self.roots.insert(self.roots.index(node_id) + 1, clone_root)
        else:
            siblings = self.nodes[source_root.parent].children
            siblings.insert(siblings.index(node_id) + 1, clone_root)
        return clone_root

    def rename(self, node_id: str, name: str) -> None:
        self._node(node_id).name = name

    def move(self, node_id: str, x: float, y: float) -> None:
        node = self._node(node_id)
        node.x = x
        node.y = y

    async def export_image(self, node_id: str) -> bytes:
        return self._node(node_id).image or b""

    def selection(self) -> list[str]:
        return list(self._selection)

    def select(self, node_ids: list[str]) -> None:
        for node_id in node_ids:
            self._node(node_id)
        self._selection = list(node_ids)

    def scroll_into_view(self, node_ids: list[str]) -> None:
        self.viewport = list(node_ids)

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        """Serialize the document to the JSON file format."""

        def dump(node_id: str) -> dict[str, Any]:
            node = self.nodes[node_id]
            data: dict[str, Any] = {
                "id": node.id,
                "name": node.name,
                "type": node.type,
                "x": node.x,
                "y": node.y,
                "width": node.width,
                "height": node.height,
            }
            if node.type == "TEXT":
                data["characters"] = node.characters
                data["runs"] = [
                    {"start": run.start, "end": run.end, **node.styles[run.start].to_dict()}
                    for run in self.get_style_runs(node_id)
                ]
            if node.image:
                data["image"] = base64.b64encode(node.image).decode("ascii")
            if node.children:
                data["children"] = [dump(child) for child in node.children]
            return data

        data: dict[str, Any] = {
            "fileKey": self._meta.file_key,
            "name": self._meta.file_name,
            "page": self._meta.page_name,
            "selection": self.selection(),
            "nodes": [dump(root) for root in self.roots],
        }
        if self.available_fonts is not None:
            data["fonts"] = [
                font.to_dict()
                for font in sorted(self.available_fonts, key=lambda f: (f.family, f.style))
            ]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InMemoryDocumentStore:
        """Build a store from the JSON file format."""
        fonts = data.get("fonts")
        store = cls(
            file_key=data.get("fileKey", "local"),
            file_name=data.get("name", "Untitled"),
            page_name=data.get("page", "Page 1"),
            available_fonts={FontName.from_dict(f) for f in fonts} if fonts is not None else None,
        )

        stack: list[tuple[dict[str, Any], str | None]] = [
            (node, None) for node in reversed(data.get("nodes", []))
        ]
        while stack:
            raw, parent = stack.pop()
            try:
                node_id = str(raw["id"])
                name = raw.get("name", node_id)
                node_type = raw.get("type", "FRAME")
            except (KeyError, TypeError) as e:
                raise DocumentError(f"Malformed node entry: {raw!r}") from e

            if node_type == "TEXT":
                runs = [
                    (int(run["start"]), int(run["end"]), CharStyle.from_dict(run))
                    for run in raw.get("runs", [])
                ]
                base_style = CharStyle.from_dict(raw["style"]) if raw.get("style") else None
                node = store.add_text(
                    node_id,
                    name,
                    raw.get("characters", ""),
                    parent=parent,
                    runs=runs,
                    style=base_style,
                )
            else:
                node = store.add_node(node_id, name, node_type, parent=parent)
            node.x = float(raw.get("x", 0))
            node.y = float(raw.get("y", 0))
            node.width = float(raw.get("width", 0))
            node.height = float(raw.get("height", 0))
            if raw.get("image"):
                node.image = base64.b64decode(raw["image"])

            for child in reversed(raw.get("children", [])):
                stack.append((child, node_id))

        if data.get("selection"):
            store.select([str(node_id) for node_id in data["selection"]])
        return store

    @classmethod
    def load(cls, path: Path | str) -> InMemoryDocumentStore:
        """Load a JSON document file."""
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise DocumentError(f"{path} is not valid JSON: {e}") from e
        return cls.from_dict(data)

    def save(self, path: Path | str) -> None:
        """Write the document to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, ensure_ascii=False, indent=2)

    # ==================== Internals ====================

    def _node(self, node_id: str) -> MemoryNode:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise DocumentError(f"Unknown node: {node_id}") from None

    def _text_node(self, node_id: str) -> MemoryNode:
        node = self._node(node_id)
        if node.type != "TEXT":
            raise DocumentError(f"Node {node_id} is not a text node")
        return node

    @staticmethod
    def _check_range(node: MemoryNode, start: int, end: int) -> None:
        if not 0 <= start < end <= len(node.characters):
            raise DocumentError(
                f"Invalid range {start}-{end} for node {node.id} of length {len(node.characters)}"
            )
