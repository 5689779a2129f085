"""
Payload chunking for oversized exports.

When the serialized export exceeds the size limit, its text units are split
into fixed-size batches that are sent one after another.
"""

from __future__ import annotations

import logging
from enum import Enum

from frame_translate.errors import MalformedResponseError
from frame_translate.models import ChunkInfo, ExportPayload, TextUnit, TranslationResult
from frame_translate.transport.base import TransportClient

logger = logging.getLogger(__name__)

MAX_PAYLOAD_SIZE = 5 * 1024 * 1024  # 5 MiB
CHUNK_SIZE = 200  # text units per batch


class ChunkResponsePolicy(str, Enum):
    """Which batch responses make up a language's translation."""

    MERGE = "merge"  # Union of every batch response, in batch order
    LAST = "last"  # Only the final batch; the service aggregates server-side


def payload_size(payload: ExportPayload) -> int:
    """Size of the serialized payload in UTF-8 bytes."""
    return len(payload.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8"))


def split_batches(texts: list[TextUnit], batch_size: int = CHUNK_SIZE) -> list[list[TextUnit]]:
    """Split text units into ordered batches of at most ``batch_size``."""
    size = max(1, batch_size)
    return [texts[i : i + size] for i in range(0, len(texts), size)]


def plan_requests(
    payload: ExportPayload,
    lang: str,
    *,
    max_bytes: int = MAX_PAYLOAD_SIZE,
    batch_size: int = CHUNK_SIZE,
) -> list[ExportPayload]:
    """
    Build the request sequence for one language.

    Args:
        payload: Full export payload.
        lang: Target language code.
        max_bytes: Serialized size above which the export is chunked.
        batch_size: Text units per batch.

    Returns:
        A single request, or one request per batch tagged with ``{index, total}``.
        Only the first batch carries the frame image, and only when it still
        fits within ``max_bytes``.
    """
    request = payload.model_copy(update={"lang": lang, "chunk": None})
    if payload_size(request) <= max_bytes:
        return [request]

    bare_frame = payload.frame.model_copy(update={"image": None})
    if not payload.texts:
        logger.warning("Export for %s exceeds %d bytes, sending without image", lang, max_bytes)
        return [request.model_copy(update={"frame": bare_frame})]

    batches = split_batches(payload.texts, batch_size)
    total = len(batches)
    requests = [
        payload.model_copy(
            update={
                "frame": bare_frame,
                "texts": batch,
                "chunk": ChunkInfo(index=i + 1, total=total),
                "lang": lang,
            }
        )
        for i, batch in enumerate(batches)
    ]

    if payload.frame.image:
        first = requests[0].model_copy(update={"frame": payload.frame})
        if payload_size(first) <= max_bytes:
            requests[0] = first
        else:
            logger.warning("Frame image does not fit in a batch for %s, sending without it", lang)
    return requests


def merge_results(results: list[TranslationResult]) -> TranslationResult:
    """Merge batch responses; header fields come from the last response."""
    last = results[-1]
    texts = [text for result in results for text in result.texts]
    return last.model_copy(update={"texts": texts})


class PayloadChunker:
    """
    Sends an export for one language, chunking it when it is too large.

    Batches are awaited one at a time so the service receives them in order.
    """

    def __init__(
        self,
        transport: TransportClient,
        *,
        max_bytes: int = MAX_PAYLOAD_SIZE,
        batch_size: int = CHUNK_SIZE,
        policy: ChunkResponsePolicy = ChunkResponsePolicy.MERGE,
    ):
        """
        Initialize payload chunker.

        Args:
            transport: Transport client used for every request.
            max_bytes: Serialized size above which the export is chunked.
            batch_size: Text units per batch.
            policy: How batch responses are combined.
        """
        self.transport = transport
        self.max_bytes = max_bytes
        self.batch_size = batch_size
        self.policy = policy

    async def send(self, payload: ExportPayload, lang: str) -> TranslationResult:
        """
        Send the export for one language.

        Raises:
            TransportError: A request failed; later batches are not sent.
            MalformedResponseError: No usable response was received.
        """
        requests = plan_requests(
            payload, lang, max_bytes=self.max_bytes, batch_size=self.batch_size
        )
        if len(requests) == 1:
            return await self.transport.translate(requests[0])

        logger.info("Export for %s split into %d batches", lang, len(requests))
        responses: list[TranslationResult | None] = []
        for request in requests:
            try:
                responses.append(await self.transport.translate(request))
            except MalformedResponseError as e:
                assert request.chunk is not None
                logger.warning(
                    "Batch %d/%d for %s returned no usable response: %s",
                    request.chunk.index,
                    request.chunk.total,
                    lang,
                    e,
                )
                responses.append(None)

        if self.policy == ChunkResponsePolicy.LAST:
            last = responses[-1]
            if last is None:
                raise MalformedResponseError(f"Final batch for {lang} returned no usable response")
            return last

        usable = [response for response in responses if response is not None]
        if not usable:
            raise MalformedResponseError(f"No batch for {lang} returned a usable response")
        return merge_results(usable)
