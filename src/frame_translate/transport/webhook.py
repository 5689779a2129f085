"""
Webhook transport.

Posts export payloads and reviewed translations as JSON to HTTP endpoints
using httpx, retrying network failures and server errors with exponential
backoff.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any

import httpx
from pydantic import ValidationError

from frame_translate.errors import MalformedResponseError, TransportError
from frame_translate.models import ExportPayload, TranslationResult, UploadRequest
from frame_translate.transport.base import TransportClient

logger = logging.getLogger(__name__)

ERROR_PREVIEW_CHARS = 200


def parse_translation_response(content: bytes | str) -> TranslationResult:
    """
    Parse a translation response body.

    Array bodies are accepted and their first element is used.

    Raises:
        MalformedResponseError: Body is empty, not JSON, or fails validation.
    """
    if not content or not content.strip():
        raise MalformedResponseError("Empty response body")
    try:
        data: Any = json.loads(content)
    except ValueError as e:
        raise MalformedResponseError(f"Response is not JSON: {e}") from e

    if isinstance(data, list):
        if not data:
            raise MalformedResponseError("Response is an empty array")
        data = data[0]
    if not isinstance(data, dict):
        raise MalformedResponseError(f"Unexpected response type: {type(data).__name__}")

    try:
        return TranslationResult.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(f"Response misses required fields: {e}") from e


class WebhookTransport(TransportClient):
    """
    Transport posting JSON to webhook endpoints.

    Client errors (4xx other than 429) fail immediately; network errors,
    429 and 5xx responses are retried.
    """

    def __init__(
        self,
        translate_url: str,
        upload_url: str | None = None,
        *,
        auth_token: str | None = None,
        timeout: float = 60.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize webhook transport.

        Args:
            translate_url: Endpoint receiving export payloads.
            upload_url: Endpoint receiving reviewed translations (defaults to translate_url).
            auth_token: Optional bearer token.
            timeout: Request timeout in seconds.
            max_retries: Maximum attempts per request.
            retry_delay: Base delay for exponential backoff in seconds.
            client: Preconfigured client (the caller keeps ownership).
        """
        self._translate_url = translate_url
        self._upload_url = upload_url or translate_url
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay

        headers = {"Content-Type": "application/json"}
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"
        self._headers = headers

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def name(self) -> str:
        """Transport name."""
        return "webhook"

    async def translate(self, payload: ExportPayload) -> TranslationResult:
        """Post an export payload and parse the translation response."""
        chunk = f" chunk {payload.chunk.index}/{payload.chunk.total}" if payload.chunk else ""
        logger.info(
            "Sending %d text(s) for %s%s", len(payload.texts), payload.lang or "default", chunk
        )
        response = await self._post(self._translate_url, payload.to_wire())
        return parse_translation_response(response.content)

    async def upload(self, request: UploadRequest) -> None:
        """Post reviewed translations."""
        logger.info(
            "Uploading %d reviewed text(s) for %s", len(request.body.texts), request.body.lang
        )
        await self._post(self._upload_url, request.to_wire())

    async def aclose(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> WebhookTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _post(self, url: str, body: dict[str, Any]) -> httpx.Response:
        start_time = time.perf_counter()
        last_error: TransportError | None = None

        for attempt in range(self._max_retries):
            try:
                response = await self._client.post(url, json=body, headers=self._headers)
            except httpx.HTTPError as e:
                last_error = TransportError(f"Network error posting to {url}: {e}")
            else:
                if response.is_success:
                    latency_ms = (time.perf_counter() - start_time) * 1000
                    logger.debug(
                        "POST %s -> %d in %.0fms (attempt %d)",
                        url,
                        response.status_code,
                        latency_ms,
                        attempt + 1,
                    )
                    return response

                preview = response.text[:ERROR_PREVIEW_CHARS]
                error = TransportError(
                    f"HTTP {response.status_code}: {preview}", status_code=response.status_code
                )
                if response.status_code < 500 and response.status_code != 429:
                    raise error
                last_error = error

            if attempt < self._max_retries - 1:
                delay = self._retry_delay * 2**attempt
                logger.warning(
                    "Request to %s failed (%s), retrying in %.1fs", url, last_error, delay
                )
                await asyncio.sleep(delay)

        assert last_error is not None
        raise last_error
