"""
Transport to the external translation service.

Supports:
- Webhook (default): JSON over HTTP via httpx
- Chunked sending of oversized exports
"""

from frame_translate.transport.base import TransportClient
from frame_translate.transport.chunker import ChunkResponsePolicy, PayloadChunker, plan_requests
from frame_translate.transport.webhook import WebhookTransport, parse_translation_response

__all__ = [
    "TransportClient",
    "ChunkResponsePolicy",
    "PayloadChunker",
    "plan_requests",
    "WebhookTransport",
    "parse_translation_response",
]
