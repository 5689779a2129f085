"""Tests for the webhook transport."""

import json

import httpx
import pytest

from frame_translate.errors import MalformedResponseError, TransportError
from frame_translate.models import (
    ExportMeta,
    ExportPayload,
    FrameRef,
    TextUnit,
    UploadBody,
    UploadFrame,
    UploadRequest,
    UploadText,
)
from frame_translate.transport.webhook import WebhookTransport, parse_translation_response

RESULT = {
    "frameId": "1:1",
    "version": 1,
    "lang": "es",
    "dir": "ltr",
    "texts": [{"nodeId": "1:2", "html": "<em>Hola</em>", "isNew": True}],
}


def make_payload() -> ExportPayload:
    return ExportPayload(
        meta=ExportMeta(file_key="f", file_name="File", page_name="Page", exported_at="now"),
        frame=FrameRef(id="1:1", name="Hero"),
        texts=[TextUnit(node_id="1:2", name="Heading", characters="Hello", markup="Hello")],
        lang="es",
    )


def make_transport(handler, **kwargs) -> WebhookTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WebhookTransport(
        "https://hooks.example.com/translate",
        "https://hooks.example.com/upload",
        client=client,
        retry_delay=0,
        **kwargs,
    )


class TestParseResponse:
    """Test translation response parsing."""

    def test_object(self):
        result = parse_translation_response(json.dumps(RESULT))
        assert result.frame_id == "1:1"
        assert result.texts[0].markup == "<em>Hola</em>"
        assert result.texts[0].is_new

    def test_array_uses_first_element(self):
        other = dict(RESULT, lang="fr")
        result = parse_translation_response(json.dumps([RESULT, other]))
        assert result.lang == "es"

    @pytest.mark.parametrize("body", ["", "   ", "not json", "[]", "42", '{"lang": "es"}'])
    def test_malformed(self, body):
        with pytest.raises(MalformedResponseError):
            parse_translation_response(body)


class TestWebhookTransport:
    """Test HTTP behaviour against a mock transport."""

    @pytest.mark.asyncio
    async def test_translate_posts_wire_json(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=RESULT)

        transport = make_transport(handler, auth_token="secret")
        result = await transport.translate(make_payload())

        body = json.loads(seen[0].content)
        assert str(seen[0].url) == "https://hooks.example.com/translate"
        assert seen[0].headers["Authorization"] == "Bearer secret"
        assert body["texts"][0]["nodeId"] == "1:2"
        assert body["meta"]["fileKey"] == "f"
        assert "chunk" not in body
        assert result.lang == "es"

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(400, text="bad request " + "x" * 500)

        with pytest.raises(TransportError) as exc_info:
            await make_transport(handler).translate(make_payload())

        assert exc_info.value.status_code == 400
        assert len(calls) == 1
        assert len(str(exc_info.value)) < 250

    @pytest.mark.asyncio
    async def test_server_error_retried(self):
        responses = iter([httpx.Response(503, text="busy"), httpx.Response(200, json=RESULT)])

        def handler(request: httpx.Request) -> httpx.Response:
            return next(responses)

        result = await make_transport(handler, max_retries=3).translate(make_payload())
        assert result.frame_id == "1:1"

    @pytest.mark.asyncio
    async def test_network_error_exhausts_retries(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(TransportError) as exc_info:
            await make_transport(handler, max_retries=2).translate(make_payload())

        assert exc_info.value.status_code is None
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_non_json_success_is_malformed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>ok</html>")

        with pytest.raises(MalformedResponseError):
            await make_transport(handler).translate(make_payload())

    @pytest.mark.asyncio
    async def test_upload(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        request = UploadRequest(
            frame=UploadFrame(id="1:1", name="Hero"),
            body=UploadBody(
                texts=[UploadText(node_id="1:2", characters="Hello", characters_translated="Hola")],
                lang="es",
            ),
        )
        await make_transport(handler).upload(request)

        body = json.loads(seen[0].content)
        assert str(seen[0].url) == "https://hooks.example.com/upload"
        assert body == {
            "frame": {"id": "1:1", "name": "Hero"},
            "body": {
                "texts": [
                    {"nodeId": "1:2", "characters": "Hello", "characters_translated": "Hola"}
                ],
                "lang": "es",
            },
        }
