"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from frame_translate.document import (
    CharStyle,
    FontName,
    InMemoryDocumentStore,
    Measure,
    Paint,
    Unit,
)
from frame_translate.errors import TransportError
from frame_translate.models import ExportPayload, TranslatedText, TranslationResult, UploadRequest
from frame_translate.review import RecordingReviewUI
from frame_translate.transport.base import TransportClient

REGULAR = CharStyle(font=FontName("Inter", "Regular"), font_size=16.0)
SEMI_BOLD = CharStyle(font=FontName("Inter", "Semi Bold"), font_size=16.0)
BOLD_RED = CharStyle(
    font=FontName("Inter", "Bold"),
    font_size=20.0,
    fills=(Paint(color=(1.0, 0.0, 0.0)),),
    text_decoration="UNDERLINE",
    letter_spacing=Measure(-0.4, Unit.PIXELS),
    line_height=Measure(120.0, Unit.PERCENT),
)
ITALIC = CharStyle(font=FontName("Inter", "Italic"), font_size=16.0)


def build_document(available_fonts: set[FontName] | None = None) -> InMemoryDocumentStore:
    """A frame with a three-run heading, a plain label and a nested caption."""
    store = InMemoryDocumentStore(
        file_key="file-1",
        file_name="Landing",
        page_name="Home",
        available_fonts=available_fonts,
    )
    store.add_node("1:1", "Hero", "FRAME", x=0.0, y=0.0, width=400.0, height=300.0)
    store.add_text(
        "1:2",
        "Heading",
        "Hello bold world",
        parent="1:1",
        runs=[(0, 6, REGULAR), (6, 10, SEMI_BOLD), (10, 16, REGULAR)],
    )
    store.add_text("1:3", "Label", "Sign up", parent="1:1", style=BOLD_RED)
    store.add_node("1:4", "Card", "GROUP", parent="1:1")
    store.add_text("1:5", "Caption", "Fine print", parent="1:4", style=ITALIC)
    store.select(["1:1"])
    return store


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Document with every font available."""
    return build_document()


@pytest.fixture
def ui() -> RecordingReviewUI:
    return RecordingReviewUI()


class FakeTransport(TransportClient):
    """
    Transport returning canned results per language.

    A value may be a TranslationResult, an exception to raise, or a callable
    taking the request payload.
    """

    def __init__(self, responses: dict | None = None, fail_upload: bool = False):
        self.responses = responses or {}
        self.fail_upload = fail_upload
        self.requests: list[ExportPayload] = []
        self.uploads: list[UploadRequest] = []

    @property
    def name(self) -> str:
        return "fake"

    async def translate(self, payload: ExportPayload) -> TranslationResult:
        self.requests.append(payload)
        response = self.responses[payload.lang]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(payload)
        return response

    async def upload(self, request: UploadRequest) -> None:
        if self.fail_upload:
            raise TransportError("HTTP 503: unavailable", status_code=503)
        self.uploads.append(request)


def translation(
    lang: str, *entries: tuple[str, str, bool], frame_id: str = "1:1"
) -> TranslationResult:
    """Build a result from (node_id, markup, is_new) tuples."""
    return TranslationResult(
        frame_id=frame_id,
        lang=lang,
        texts=[
            TranslatedText(node_id=node_id, markup=markup, is_new=is_new)
            for node_id, markup, is_new in entries
        ],
    )


@pytest.fixture
def fake_transport_factory():
    return FakeTransport
