"""
Wire models for the translation service and the review UI.

Fields are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """Base model accepting both field names and wire aliases."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        """Dump with wire aliases, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ==================== Export ====================


class ExportMeta(WireModel):
    file_key: str = Field(alias="fileKey")
    file_name: str | None = Field(default=None, alias="fileName")
    page_name: str = Field(alias="pageName")
    exported_at: str = Field(alias="exportedAt")


class FrameRef(WireModel):
    id: str
    name: str
    image: str | None = None  # base64-encoded PNG


class TextUnit(WireModel):
    """One text node exported for translation."""

    node_id: str = Field(alias="nodeId")
    name: str
    characters: str
    markup: str = Field(
        validation_alias=AliasChoices("markup", "html"), serialization_alias="markup"
    )


class ChunkInfo(WireModel):
    index: int = Field(ge=1)
    total: int = Field(ge=1)


class ExportPayload(WireModel):
    """Request body sent to the translation service."""

    meta: ExportMeta
    frame: FrameRef
    texts: list[TextUnit] = Field(default_factory=list)
    chunk: ChunkInfo | None = None
    lang: str | None = None

    def find_text(self, node_id: str) -> TextUnit | None:
        """Look up an exported unit by node id."""
        for unit in self.texts:
            if unit.node_id == node_id:
                return unit
        return None


# ==================== Translation ====================


class TranslatedText(WireModel):
    node_id: str = Field(alias="nodeId")
    characters: str | None = None
    markup: str = Field(
        validation_alias=AliasChoices("markup", "html"), serialization_alias="markup"
    )
    is_new: bool = Field(default=False, alias="isNew")


class TranslationResult(WireModel):
    """Response body of the translation service for one language."""

    frame_id: str = Field(alias="frameId")
    version: int | str = 1
    lang: str
    dir: str = "ltr"
    texts: list[TranslatedText] = Field(default_factory=list)


# ==================== Upload ====================


class UploadText(WireModel):
    node_id: str = Field(alias="nodeId")
    characters: str
    characters_translated: str


class UploadBody(WireModel):
    texts: list[UploadText]
    lang: str


class UploadFrame(WireModel):
    id: str
    name: str


class UploadRequest(WireModel):
    """Reviewed translations committed back to the service."""

    frame: UploadFrame
    body: UploadBody


# ==================== Review UI protocol ====================


class ReviewEntry(WireModel):
    """A review item as the UI sees it."""

    node_id: str = Field(alias="nodeId")
    characters: str
    characters_translated: str
    markup: str
    applied: bool = False


class LoadReviewMessage(WireModel):
    type: Literal["load-review"] = "load-review"
    translations: list[ReviewEntry]
    lang: str
    lang_index: int = Field(alias="langIndex")
    total_langs: int = Field(alias="totalLangs")


class ReviewCompleteMessage(WireModel):
    type: Literal["review-complete"] = "review-complete"
    languages: list[str] = Field(default_factory=list)


class NotifyMessage(WireModel):
    type: Literal["notify"] = "notify"
    message: str
    error: bool = False


class HighlightNodeEvent(WireModel):
    type: Literal["highlight-node"] = "highlight-node"
    node_id: str = Field(alias="nodeId")
    lang: str | None = None


class ApplyChangesEvent(WireModel):
    type: Literal["apply-changes"] = "apply-changes"
    translation: ReviewEntry
    lang: str | None = None


class RevertChangesEvent(WireModel):
    type: Literal["revert-changes"] = "revert-changes"
    node_id: str = Field(alias="nodeId")
    lang: str | None = None


class UploadTranslationsEvent(WireModel):
    type: Literal["upload-translations"] = "upload-translations"
    translations: list[ReviewEntry] = Field(default_factory=list)
    lang: str | None = None


class AbandonReviewEvent(WireModel):
    type: Literal["abandon-review"] = "abandon-review"
    lang: str | None = None


ReviewEvent = Annotated[
    HighlightNodeEvent
    | ApplyChangesEvent
    | RevertChangesEvent
    | UploadTranslationsEvent
    | AbandonReviewEvent,
    Field(discriminator="type"),
]

UIMessage = LoadReviewMessage | ReviewCompleteMessage | NotifyMessage


class _EventEnvelope(BaseModel):
    event: ReviewEvent


def parse_event(data: dict[str, Any]) -> ReviewEvent:
    """Validate a raw UI event dict into its typed model."""
    return _EventEnvelope.model_validate({"event": data}).event
