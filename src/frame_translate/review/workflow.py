"""
Multi-language translation and review workflow.

One manager drives one export session:
1. Validate the selection and build the export payload
2. Translate every target language concurrently, each in isolation
3. Duplicate the frame per language and apply confirmed translations
4. Present new translations for review, one language at a time
5. Upload reviewed translations and advance to the next language
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from frame_translate.document.base import DocumentStore, FontName
from frame_translate.document.traversal import collect_text_units
from frame_translate.errors import (
    FrameTranslateError,
    MalformedResponseError,
    MappingMismatchError,
    TransportError,
    WorkflowStateError,
)
from frame_translate.exporter import build_export_payload, validate_selection
from frame_translate.markup.decoder import first_style_attributes, visible_text
from frame_translate.markup.encoder import escape_text, style_element
from frame_translate.models import (
    AbandonReviewEvent,
    ApplyChangesEvent,
    ExportPayload,
    HighlightNodeEvent,
    LoadReviewMessage,
    NotifyMessage,
    ReviewCompleteMessage,
    ReviewEntry,
    RevertChangesEvent,
    TranslationResult,
    UIMessage,
    UploadBody,
    UploadFrame,
    UploadRequest,
    UploadText,
    UploadTranslationsEvent,
    parse_event,
)
from frame_translate.review.state import (
    REVIEW_STATES,
    LanguageSession,
    LanguageState,
    NodeMapping,
    ReviewItem,
    SessionSummary,
)
from frame_translate.review.ui import ReviewUI
from frame_translate.styling.applier import ApplyReport, StyleApplier
from frame_translate.styling.extractor import RunExtractor
from frame_translate.styling.fonts import FontResolver
from frame_translate.styling.units import DEFAULT_FONT_SIZE_PX
from frame_translate.transport.base import TransportClient
from frame_translate.transport.chunker import PayloadChunker

logger = logging.getLogger(__name__)


@dataclass
class WorkflowOptions:
    """Options for a review session."""

    include_image: bool = True
    duplicate_spacing: float = 100.0
    default_font: FontName = field(default_factory=lambda: FontName("Inter", "Regular"))
    em_base: float = DEFAULT_FONT_SIZE_PX


def rewrap_edited_text(text: str, markup: str) -> str:
    """
    Wrap edited text in the attributes of the markup's first style element.

    Styling of any further runs is collapsed into that one element.
    """
    attributes = first_style_attributes(markup)
    if attributes is None:
        return escape_text(text)
    return style_element(attributes, text)


class ReviewWorkflowManager:
    """
    Drives translation, application, review and upload for one frame.

    Translating phases of all languages run concurrently; review phases are
    strictly sequential, in the order languages became ready for review.
    """

    def __init__(
        self,
        store: DocumentStore,
        transport: TransportClient,
        ui: ReviewUI | None = None,
        *,
        chunker: PayloadChunker | None = None,
        applier: StyleApplier | None = None,
        options: WorkflowOptions | None = None,
    ):
        """
        Initialize workflow manager.

        Args:
            store: Document store holding the frame.
            transport: Client for the translation service.
            ui: Review front end receiving outbound messages.
            chunker: Payload chunker (defaults to one over the transport).
            applier: Style applier (defaults to one over the store).
            options: Session options.
        """
        self.store = store
        self.transport = transport
        self.ui = ui
        self.options = options or WorkflowOptions()
        self.fonts = FontResolver(store.load_font)
        self.extractor = RunExtractor(store)
        self.applier = applier or StyleApplier(
            store,
            self.fonts,
            default_font=self.options.default_font,
            em_base=self.options.em_base,
        )
        self.chunker = chunker or PayloadChunker(transport)

        self.frame_id: str | None = None
        self.payload: ExportPayload | None = None
        self.sessions: dict[str, LanguageSession] = {}
        self._pending: deque[str] = deque()
        self._active: str | None = None

    # ==================== Properties ====================

    @property
    def active_language(self) -> str | None:
        """Language currently presented for review."""
        return self._active

    @property
    def all_complete(self) -> bool:
        """True once no language is translating, awaiting or under review."""
        unfinished = (LanguageState.TRANSLATING, LanguageState.AWAITING_REVIEW, *REVIEW_STATES)
        return all(session.state not in unfinished for session in self.sessions.values())

    # ==================== Session ====================

    async def run(self, languages: list[str]) -> SessionSummary:
        """
        Run a full session for the selected frame.

        Args:
            languages: Target language codes.

        Returns:
            SessionSummary with the state of each language.

        Raises:
            SelectionError: Selection is not exactly one frame. Raised before
                any network call.
        """
        frame_id = validate_selection(self.store)
        await self.export(frame_id)
        await self.translate_all(languages)

        duplicates = [s.duplicate_id for s in self.sessions.values() if s.duplicate_id]
        if duplicates:
            self.store.select(duplicates)
            self.store.scroll_into_view(duplicates)
            translated = [s.lang for s in self.sessions.values() if s.duplicate_id]
            self._notify(f"Translated to {len(translated)} language(s): {', '.join(translated)}")

        self._present_next()
        return self.summary()

    async def export(self, frame_id: str) -> ExportPayload:
        """Build and keep the export payload for a frame."""
        self.frame_id = frame_id
        self.payload = await build_export_payload(
            self.store,
            frame_id,
            include_image=self.options.include_image,
            extractor=self.extractor,
            fonts=self.fonts,
        )
        return self.payload

    async def translate_all(self, languages: list[str]) -> None:
        """Translate every language concurrently; failures stay per language."""
        if self.payload is None:
            raise WorkflowStateError("Export the frame before translating")

        ordered = list(dict.fromkeys(languages))
        self.sessions = {
            lang: LanguageSession(lang=lang, index=index) for index, lang in enumerate(ordered)
        }
        await asyncio.gather(*(self._translate_language(s) for s in self.sessions.values()))

        failed = [s.lang for s in self.sessions.values() if s.state == LanguageState.FAILED]
        if failed:
            logger.warning("Translation failed for: %s", ", ".join(failed))

    async def _translate_language(self, session: LanguageSession) -> None:
        assert self.payload is not None
        self._notify(
            f"Translating to {session.lang.upper()} ({session.index + 1}/{len(self.sessions)})"
        )
        try:
            result = await self.chunker.send(self.payload, session.lang)
            await self._apply_translation(session, result)
        except MalformedResponseError as e:
            logger.warning("No translation received for %s: %s", session.lang, e)
            session.fail(e)
        except TransportError as e:
            logger.error("Translation request for %s failed: %s", session.lang, e)
            session.fail(e)
            self._notify(f"Translation to {session.lang} failed: {e}", error=True)
        except Exception as e:
            logger.exception("Unexpected error translating %s", session.lang)
            session.fail(e)
            self._notify(f"Translation to {session.lang} failed: {e}", error=True)

    async def _apply_translation(self, session: LanguageSession, result: TranslationResult) -> None:
        assert self.payload is not None and self.frame_id is not None
        if not result.texts:
            logger.info("Empty translation for %s, nothing to apply", session.lang)
            session.release(LanguageState.COMPLETED)
            return

        duplicate_id = self._duplicate_frame(session)
        session.mapping = NodeMapping.build(
            session.lang,
            collect_text_units(self.store, self.frame_id),
            collect_text_units(self.store, duplicate_id),
        )
        logger.debug("Mapped %d text node(s) for %s", len(session.mapping), session.lang)

        for entry in result.texts:
            if entry.is_new:
                source = self.payload.find_text(entry.node_id)
                session.queue.append(
                    ReviewItem(
                        node_id=entry.node_id,
                        source_text=source.characters if source else "",
                        proposed_text=entry.characters
                        if entry.characters is not None
                        else visible_text(entry.markup),
                        proposed_markup=entry.markup,
                        source_markup=source.markup if source else "",
                    )
                )
            elif await self._apply_to_duplicate(session, entry.node_id, entry.markup):
                session.applied_directly += 1

        logger.info(
            "Applied %d translation(s) to %s, %d awaiting review",
            session.applied_directly,
            session.lang,
            len(session.queue),
        )
        if session.queue:
            session.state = LanguageState.AWAITING_REVIEW
            self._pending.append(session.lang)
        else:
            session.release(LanguageState.COMPLETED)

    def _duplicate_frame(self, session: LanguageSession) -> str:
        assert self.frame_id is not None
        original = self.store.get_node(self.frame_id)
        duplicate_id = self.store.clone_subtree(self.frame_id)
        self.store.rename(duplicate_id, f"{original.name} [{session.lang}]")
        offset = (original.width + self.options.duplicate_spacing) * (session.index + 1)
        self.store.move(duplicate_id, original.x + offset, original.y)
        session.duplicate_id = duplicate_id
        return duplicate_id

    async def _apply_to_duplicate(
        self, session: LanguageSession, node_id: str, markup: str
    ) -> ApplyReport | None:
        if session.mapping is None:
            raise WorkflowStateError(f"No node mapping for {session.lang}")
        try:
            target = session.mapping.require(node_id)
        except MappingMismatchError as e:
            logger.warning("Skipping node: %s", e)
            return None
        try:
            return await self.applier.apply_markup(target, markup)
        except FrameTranslateError as e:
            logger.warning("Could not apply translation to %s (%s): %s", target, session.lang, e)
            return None

    # ==================== Review ====================

    def _present_next(self) -> LanguageSession | None:
        while self._pending:
            session = self.sessions[self._pending.popleft()]
            if session.state != LanguageState.AWAITING_REVIEW:
                continue
            session.state = LanguageState.REVIEWING
            self._active = session.lang
            logger.info("Presenting %d item(s) for review in %s", len(session.queue), session.lang)
            self._send(
                LoadReviewMessage(
                    translations=[item.to_entry() for item in session.queue],
                    lang=session.lang,
                    lang_index=session.index,
                    total_langs=len(self.sessions),
                )
            )
            return session

        self._active = None
        done = [
            s.lang
            for s in self.sessions.values()
            if s.state in (LanguageState.UPLOADED, LanguageState.COMPLETED)
        ]
        self._send(ReviewCompleteMessage(languages=done))
        return None

    def _review_session(self, lang: str | None) -> LanguageSession:
        lang = lang or self._active
        if lang is None:
            raise WorkflowStateError("No language is under review")
        session = self.sessions.get(lang)
        if session is None:
            raise WorkflowStateError(f"Unknown language: {lang}")
        if session.state not in REVIEW_STATES:
            raise WorkflowStateError(f"{lang} is not under review (state: {session.state.value})")
        return session

    def _review_item(self, session: LanguageSession, node_id: str) -> ReviewItem:
        item = session.find(node_id)
        if item is None:
            raise WorkflowStateError(f"Node {node_id} is not queued for review in {session.lang}")
        return item

    def highlight(self, node_id: str, lang: str | None = None) -> str | None:
        """
        Select and scroll to a node's counterpart in a language's duplicate.

        Returns:
            The duplicate node id, or None if the node has no counterpart.
        """
        session = self.sessions.get(lang or self._active or "")
        if session is None or session.mapping is None:
            logger.debug("Nothing to highlight for %s in %s", node_id, lang or self._active)
            return None
        target = session.mapping.lookup(node_id)
        if target is None:
            logger.debug("No duplicate node for %s in %s", node_id, session.lang)
            return None
        self.store.select([target])
        self.store.scroll_into_view([target])
        return target

    async def apply_edit(
        self, node_id: str, text: str | None = None, lang: str | None = None
    ) -> ApplyReport | None:
        """
        Apply a reviewed item to the duplicate.

        Unedited items apply their proposed markup unchanged. Edited text is
        wrapped in the first style element of the proposed markup.

        Args:
            node_id: Original node id of the item.
            text: Reviewer's text; None keeps the proposal.
            lang: Language (defaults to the one under review).
        """
        session = self._review_session(lang)
        item = self._review_item(session, node_id)

        if text is None or text == item.proposed_text:
            item.translated_text = item.proposed_text
            item.markup = item.proposed_markup
        else:
            item.translated_text = text
            item.markup = rewrap_edited_text(text, item.proposed_markup)

        report = await self._apply_to_duplicate(session, node_id, item.markup)
        if report is None:
            self._notify(
                f"Could not apply the translation of {node_id} in {session.lang}", error=True
            )
            return None
        item.applied = True
        session.state = LanguageState.APPLIED
        return report

    async def revert(self, node_id: str, lang: str | None = None) -> ApplyReport | None:
        """Restore a node's source content in the duplicate and unmark the item."""
        session = self._review_session(lang)
        item = self._review_item(session, node_id)

        markup = item.source_markup or escape_text(item.source_text)
        report = await self._apply_to_duplicate(session, node_id, markup)
        item.reset()
        if not any(queued.applied for queued in session.queue):
            session.state = LanguageState.REVIEWING
        return report

    async def upload(
        self, lang: str | None = None, entries: list[ReviewEntry] | None = None
    ) -> bool:
        """
        Commit a language's reviewed translations and advance.

        Args:
            lang: Language (defaults to the one under review).
            entries: Items as the UI holds them; their text overrides the queue's.

        Returns:
            True on success. On failure the language stays under review.
        """
        session = self._review_session(lang)
        assert self.payload is not None

        for entry in entries or []:
            item = session.find(entry.node_id)
            if item is not None:
                item.translated_text = entry.characters_translated

        request = UploadRequest(
            frame=UploadFrame(id=self.payload.frame.id, name=self.payload.frame.name),
            body=UploadBody(
                texts=[
                    UploadText(
                        node_id=item.node_id,
                        characters=item.source_text,
                        characters_translated=item.translated_text,
                    )
                    for item in session.queue
                ],
                lang=session.lang,
            ),
        )
        try:
            await self.transport.upload(request)
        except TransportError as e:
            logger.error("Upload for %s failed: %s", session.lang, e)
            self._notify(f"Upload for {session.lang} failed: {e}", error=True)
            return False

        edited = sum(1 for item in session.queue if item.edited)
        logger.info(
            "Uploaded %d reviewed translation(s) for %s (%d edited)",
            len(session.queue),
            session.lang,
            edited,
        )
        session.release(LanguageState.UPLOADED)
        self._notify(f"Uploaded translations for {session.lang}")
        if self._active == session.lang:
            self._present_next()
        return True

    def abandon(self, lang: str | None = None) -> None:
        """Drop a language's review without uploading; applied styling stays."""
        session = self._review_session(lang)
        logger.info("Abandoning review of %s (%d item(s))", session.lang, len(session.queue))
        session.release(LanguageState.ABANDONED)
        if self._active == session.lang:
            self._present_next()

    # ==================== UI protocol ====================

    async def handle_event(self, event: Any) -> None:
        """
        Dispatch an event from the review UI.

        Accepts a typed event or its raw dict form. Invalid operations are
        reported back to the UI.
        """
        try:
            if isinstance(event, dict):
                event = parse_event(event)
            if isinstance(event, HighlightNodeEvent):
                self.highlight(event.node_id, event.lang)
            elif isinstance(event, ApplyChangesEvent):
                translation = event.translation
                await self.apply_edit(
                    translation.node_id, translation.characters_translated, event.lang
                )
            elif isinstance(event, RevertChangesEvent):
                await self.revert(event.node_id, event.lang)
            elif isinstance(event, UploadTranslationsEvent):
                await self.upload(event.lang, event.translations)
            elif isinstance(event, AbandonReviewEvent):
                self.abandon(event.lang)
            else:
                raise WorkflowStateError(f"Unsupported event: {event!r}")
        except (ValidationError, WorkflowStateError) as e:
            logger.warning("Rejected UI event: %s", e)
            self._notify(str(e), error=True)

    def summary(self) -> SessionSummary:
        """Snapshot of the session."""
        return SessionSummary(
            frame_id=self.frame_id or "",
            states={lang: s.state for lang, s in self.sessions.items()},
            duplicates={
                lang: s.duplicate_id for lang, s in self.sessions.items() if s.duplicate_id
            },
            errors={lang: s.error for lang, s in self.sessions.items() if s.error},
            pending_review=[
                lang
                for lang, s in self.sessions.items()
                if s.state in (LanguageState.AWAITING_REVIEW, *REVIEW_STATES)
            ],
        )

    def _send(self, message: UIMessage) -> None:
        if self.ui is not None:
            self.ui.send(message)

    def _notify(self, message: str, error: bool = False) -> None:
        self._send(NotifyMessage(message=message, error=error))
