"""Tests for the review workflow manager."""

import asyncio

import pytest
from conftest import FakeTransport, build_document, translation

from frame_translate.errors import (
    DocumentError,
    MalformedResponseError,
    SelectionError,
    TransportError,
)
from frame_translate.models import ExportPayload, LoadReviewMessage, TranslationResult
from frame_translate.review import (
    LanguageState,
    RecordingReviewUI,
    ReviewWorkflowManager,
    WorkflowOptions,
)
from frame_translate.review.workflow import rewrap_edited_text
from frame_translate.transport.base import TransportClient

HEADING_ES = '<span style="font-family:Inter;font-weight:700">Hola mundo</span>'
LABEL_ES = '<span style="font-family:Inter;font-weight:700">Registrarse</span>'
LABEL_FR = '<span style="font-family:Inter;font-weight:700">S&#039;inscrire</span>'


def scenario_b(lang: str = "es", label: str = LABEL_ES):
    """One entry applied directly, one queued for review."""
    return translation(lang, ("1:2", HEADING_ES, False), ("1:3", label, True))


def make_manager(responses, store=None, ui=None, **kwargs):
    store = store or build_document()
    ui = ui or RecordingReviewUI()
    transport = FakeTransport(responses, **kwargs)
    manager = ReviewWorkflowManager(
        store, transport, ui, options=WorkflowOptions(include_image=False)
    )
    return manager, store, transport, ui


class TestSessionStart:
    """Test export, translation and application."""

    @pytest.mark.asyncio
    async def test_scenario_b(self):
        """A new entry is queued; the other is applied to the duplicate."""
        manager, store, _, ui = make_manager({"es": scenario_b()})

        summary = await manager.run(["es"])

        session = manager.sessions["es"]
        assert len(session.queue) == 1
        assert session.applied_directly == 1
        assert summary.states["es"] == LanguageState.REVIEWING

        duplicate_heading = session.mapping.lookup("1:2")
        assert store.get_characters(duplicate_heading) == "Hola mundo"
        assert store.get_characters("1:2") == "Hello bold world"
        # Queued entry is not applied yet
        assert store.get_characters(session.mapping.lookup("1:3")) == "Sign up"

        review = ui.reviews[0]
        assert review.lang == "es"
        assert review.lang_index == 0
        assert review.total_langs == 1
        entry = review.translations[0]
        assert entry.node_id == "1:3"
        assert entry.characters == "Sign up"
        assert entry.characters_translated == "Registrarse"

    @pytest.mark.asyncio
    async def test_duplicate_named_and_placed(self):
        manager, store, _, _ = make_manager({"es": scenario_b(), "fr": scenario_b("fr", LABEL_FR)})

        await manager.run(["es", "fr"])

        for index, lang in enumerate(["es", "fr"]):
            duplicate = store.get_node(manager.sessions[lang].duplicate_id)
            assert duplicate.name == f"Hero [{lang}]"
            assert duplicate.x == (400 + 100) * (index + 1)
            assert duplicate.y == 0
        assert store.selection() == [manager.sessions[lang].duplicate_id for lang in ("es", "fr")]

    @pytest.mark.asyncio
    async def test_export_payload_sent_per_language(self):
        manager, _, transport, _ = make_manager({"es": scenario_b(), "fr": scenario_b("fr")})

        await manager.run(["es", "fr", "es"])

        assert sorted(r.lang for r in transport.requests) == ["es", "fr"]
        payload = transport.requests[0]
        assert [t.node_id for t in payload.texts] == ["1:2", "1:3", "1:5"]
        assert payload.meta.file_key == "file-1"
        assert payload.frame.image is None

    @pytest.mark.asyncio
    async def test_selection_validated_before_network(self):
        store = build_document()
        store.select(["1:2"])
        manager, _, transport, _ = make_manager({"es": scenario_b()}, store=store)

        with pytest.raises(SelectionError):
            await manager.run(["es"])
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_failures_isolated_per_language(self):
        manager, store, _, ui = make_manager(
            {
                "es": scenario_b(),
                "fr": TransportError("HTTP 502: bad gateway", status_code=502),
                "de": MalformedResponseError("not json"),
            }
        )

        summary = await manager.run(["es", "fr", "de"])

        assert summary.states == {
            "es": LanguageState.REVIEWING,
            "fr": LanguageState.FAILED,
            "de": LanguageState.FAILED,
        }
        assert summary.failed == ["fr", "de"]
        assert "502" in summary.errors["fr"]
        assert set(summary.duplicates) == {"es"}
        assert any(n.error and "fr" in n.message for n in ui.notifications)

    @pytest.mark.asyncio
    async def test_empty_result_completes_without_duplicate(self):
        manager, store, _, ui = make_manager({"es": translation("es")})

        summary = await manager.run(["es"])

        assert summary.states["es"] == LanguageState.COMPLETED
        assert summary.duplicates == {}
        assert manager.all_complete
        assert ui.of_type("review-complete")

    @pytest.mark.asyncio
    async def test_nothing_new_completes(self):
        result = translation("es", ("1:2", HEADING_ES, False))
        manager, _, _, ui = make_manager({"es": result})

        summary = await manager.run(["es"])

        assert summary.states["es"] == LanguageState.COMPLETED
        assert manager.sessions["es"].mapping is None
        assert ui.reviews == []

    @pytest.mark.asyncio
    async def test_unmapped_node_skipped(self):
        result = translation("es", ("9:9", "Nada", False), ("1:2", HEADING_ES, False))
        manager, store, _, _ = make_manager({"es": result})

        await manager.run(["es"])

        duplicate_id = manager.sessions["es"].duplicate_id
        heading = store.children(duplicate_id)[0]
        assert store.get_characters(heading) == "Hola mundo"
        assert manager.sessions["es"].applied_directly == 1

    @pytest.mark.asyncio
    async def test_image_failure_does_not_abort(self):
        store = build_document()
        store.nodes["1:1"].image = b"png"

        async def fail_render(node_id):
            raise DocumentError("render failed")

        store.export_image = fail_render
        transport = FakeTransport({"es": scenario_b()})
        manager = ReviewWorkflowManager(store, transport, RecordingReviewUI())

        summary = await manager.run(["es"])

        assert len(transport.requests) == 1
        assert transport.requests[0].frame.image is None
        assert summary.states["es"] == LanguageState.REVIEWING

    @pytest.mark.asyncio
    async def test_languages_translate_concurrently(self):
        started = {"es": asyncio.Event(), "fr": asyncio.Event()}

        class WaitingTransport(TransportClient):
            name = "waiting"

            async def translate(self, payload: ExportPayload) -> TranslationResult:
                started[payload.lang].set()
                other = "fr" if payload.lang == "es" else "es"
                await asyncio.wait_for(started[other].wait(), timeout=1)
                return translation(payload.lang)

            async def upload(self, request) -> None:
                return None

        manager = ReviewWorkflowManager(
            build_document(), WaitingTransport(), options=WorkflowOptions(include_image=False)
        )
        summary = await manager.run(["es", "fr"])

        assert summary.states == {"es": LanguageState.COMPLETED, "fr": LanguageState.COMPLETED}


class TestReview:
    """Test review operations."""

    @pytest.mark.asyncio
    async def test_highlight_selects_duplicate_node(self):
        manager, store, _, _ = make_manager({"es": scenario_b()})
        await manager.run(["es"])

        target = manager.highlight("1:3")

        assert target == manager.sessions["es"].mapping.lookup("1:3")
        assert store.selection() == [target]
        assert store.viewport == [target]
        assert manager.highlight("9:9") is None

    @pytest.mark.asyncio
    async def test_apply_unedited(self):
        manager, store, _, _ = make_manager({"es": scenario_b()})
        await manager.run(["es"])

        await manager.apply_edit("1:3", "Registrarse")

        session = manager.sessions["es"]
        assert store.get_characters(session.mapping.lookup("1:3")) == "Registrarse"
        assert session.queue[0].applied
        assert session.queue[0].markup == LABEL_ES
        assert session.state == LanguageState.APPLIED

    @pytest.mark.asyncio
    async def test_apply_edited_wraps_first_style(self):
        manager, store, _, _ = make_manager({"es": scenario_b()})
        await manager.run(["es"])

        await manager.apply_edit("1:3", "Únete")

        item = manager.sessions["es"].queue[0]
        assert item.translated_text == "Únete"
        assert item.markup == '<span style="font-family:Inter;font-weight:700">Únete</span>'
        assert store.get_characters(manager.sessions["es"].mapping.lookup("1:3")) == "Únete"

    @pytest.mark.asyncio
    async def test_unmapped_item_not_marked_applied(self):
        result = translation("es", ("1:2", HEADING_ES, True), ("9:9", LABEL_ES, True))
        manager, _, _, ui = make_manager({"es": result})
        await manager.run(["es"])

        report = await manager.apply_edit("9:9")

        session = manager.sessions["es"]
        assert report is None
        assert not session.find("9:9").applied
        assert session.state == LanguageState.REVIEWING
        assert ui.notifications[-1].error
        assert "9:9" in ui.notifications[-1].message

    def test_rewrap_collapses_runs(self):
        markup = '<span style="font-weight:700">Sign</span><span style="font-weight:400"> up</span>'
        expected = '<span style="font-weight:700">A &amp; B</span>'
        assert rewrap_edited_text("A & B", markup) == expected
        assert rewrap_edited_text("plain", "no styles") == "plain"

    @pytest.mark.asyncio
    async def test_revert_restores_source(self):
        manager, store, _, _ = make_manager({"es": scenario_b()})
        await manager.run(["es"])
        await manager.apply_edit("1:3", "Únete")

        await manager.revert("1:3")

        session = manager.sessions["es"]
        assert store.get_characters(session.mapping.lookup("1:3")) == "Sign up"
        assert not session.queue[0].applied
        assert session.queue[0].translated_text == "Registrarse"
        assert session.state == LanguageState.REVIEWING

    @pytest.mark.asyncio
    async def test_upload_clears_and_completes(self):
        manager, _, transport, ui = make_manager({"es": scenario_b()})
        await manager.run(["es"])
        await manager.apply_edit("1:3", "Únete")

        assert await manager.upload()

        request = transport.uploads[0]
        assert request.frame.id == "1:1"
        assert request.frame.name == "Hero"
        assert request.body.lang == "es"
        assert [(t.node_id, t.characters, t.characters_translated) for t in request.body.texts] == [
            ("1:3", "Sign up", "Únete")
        ]
        session = manager.sessions["es"]
        assert session.state == LanguageState.UPLOADED
        assert session.queue == []
        assert session.mapping is None
        assert manager.active_language is None
        assert manager.all_complete
        assert ui.of_type("review-complete")[-1].languages == ["es"]

    @pytest.mark.asyncio
    async def test_upload_failure_keeps_review_open(self):
        manager, _, _, ui = make_manager({"es": scenario_b()}, fail_upload=True)
        await manager.run(["es"])

        assert not await manager.upload("es")

        assert manager.sessions["es"].state == LanguageState.REVIEWING
        assert len(manager.sessions["es"].queue) == 1
        assert ui.notifications[-1].error

    @pytest.mark.asyncio
    async def test_languages_reviewed_one_at_a_time(self):
        manager, _, _, ui = make_manager({"es": scenario_b(), "fr": scenario_b("fr", LABEL_FR)})
        await manager.run(["es", "fr"])

        assert [r.lang for r in ui.reviews] == ["es"]
        assert manager.sessions["fr"].state == LanguageState.AWAITING_REVIEW

        await manager.upload()

        assert [r.lang for r in ui.reviews] == ["es", "fr"]
        assert ui.reviews[1].lang_index == 1
        assert ui.reviews[1].translations[0].characters_translated == "S'inscrire"
        assert manager.active_language == "fr"

    @pytest.mark.asyncio
    async def test_abandon_advances(self):
        manager, store, transport, _ = make_manager(
            {"es": scenario_b(), "fr": scenario_b("fr", LABEL_FR)}
        )
        await manager.run(["es", "fr"])
        duplicate = manager.sessions["es"].duplicate_id

        manager.abandon()

        assert manager.sessions["es"].state == LanguageState.ABANDONED
        assert manager.sessions["es"].queue == []
        assert transport.uploads == []
        assert duplicate in store.nodes
        assert manager.active_language == "fr"


class TestEvents:
    """Test UI event dispatch."""

    @pytest.mark.asyncio
    async def test_raw_apply_event(self):
        manager, store, _, _ = make_manager({"es": scenario_b()})
        await manager.run(["es"])

        await manager.handle_event(
            {
                "type": "apply-changes",
                "lang": "es",
                "translation": {
                    "nodeId": "1:3",
                    "characters": "Sign up",
                    "characters_translated": "Inscríbete",
                    "markup": LABEL_ES,
                },
            }
        )

        assert store.get_characters(manager.sessions["es"].mapping.lookup("1:3")) == "Inscríbete"

    @pytest.mark.asyncio
    async def test_upload_event_uses_ui_text(self):
        manager, _, transport, _ = make_manager({"es": scenario_b()})
        await manager.run(["es"])

        await manager.handle_event(
            {
                "type": "upload-translations",
                "translations": [
                    {
                        "nodeId": "1:3",
                        "characters": "Sign up",
                        "characters_translated": "Apúntate",
                        "markup": LABEL_ES,
                    }
                ],
            }
        )

        assert transport.uploads[0].body.texts[0].characters_translated == "Apúntate"

    @pytest.mark.asyncio
    async def test_invalid_event_reported(self):
        manager, _, _, ui = make_manager({"es": scenario_b()})
        await manager.run(["es"])

        await manager.handle_event({"type": "revert-changes", "nodeId": "1:3", "lang": "fr"})

        assert ui.notifications[-1].error
        assert "fr" in ui.notifications[-1].message

    @pytest.mark.asyncio
    async def test_malformed_event_reported(self):
        manager, _, _, ui = make_manager({"es": scenario_b()})
        await manager.run(["es"])

        await manager.handle_event({"type": "apply-changes"})

        assert ui.notifications[-1].error
        assert manager.sessions["es"].state == LanguageState.REVIEWING

    @pytest.mark.asyncio
    async def test_highlight_and_abandon_events(self):
        manager, store, _, ui = make_manager({"es": scenario_b()})
        await manager.run(["es"])

        await manager.handle_event({"type": "highlight-node", "nodeId": "1:2"})
        assert store.selection() == [manager.sessions["es"].mapping.lookup("1:2")]

        await manager.handle_event({"type": "abandon-review", "lang": "es"})
        assert manager.sessions["es"].state == LanguageState.ABANDONED
        assert isinstance(ui.reviews[0], LoadReviewMessage)
