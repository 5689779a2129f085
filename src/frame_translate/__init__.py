"""
frame-translate: styled-text translation for design documents.

This package provides tools for:
- Encoding rich-text style runs to inline markup and decoding them back
- Unit conversion, weight inference and font fallback for styled ranges
- Sending exports to a translation service, chunking oversized payloads
- Reviewing, editing and uploading translations across several languages
"""

__version__ = "0.1.0"

from frame_translate.config import Settings, load_config
from frame_translate.document import DocumentStore, InMemoryDocumentStore
from frame_translate.errors import FrameTranslateError
from frame_translate.exporter import build_export_payload, validate_selection
from frame_translate.markup import decode, encode_runs
from frame_translate.review import RecordingReviewUI, ReviewWorkflowManager, WorkflowOptions
from frame_translate.styling import RunExtractor
from frame_translate.styling.applier import StyleApplier
from frame_translate.transport import PayloadChunker, TransportClient, WebhookTransport

__all__ = [
    # Config
    "Settings",
    "load_config",
    # Document
    "DocumentStore",
    "InMemoryDocumentStore",
    # Errors
    "FrameTranslateError",
    # Codec
    "decode",
    "encode_runs",
    "RunExtractor",
    "StyleApplier",
    # Export and transport
    "build_export_payload",
    "validate_selection",
    "PayloadChunker",
    "TransportClient",
    "WebhookTransport",
    # Review
    "RecordingReviewUI",
    "ReviewWorkflowManager",
    "WorkflowOptions",
]
