"""
Error definitions for frame-translate.

Only selection validation is fatal; every other error is caught at the
language, node or property level and reported.
"""

from __future__ import annotations


class FrameTranslateError(Exception):
    """Base exception for all custom errors."""


class SelectionError(FrameTranslateError):
    """Raised when the current selection is not exactly one frame."""


class DocumentError(FrameTranslateError):
    """Raised for unknown nodes or malformed document files."""


class TransportError(FrameTranslateError):
    """Raised when the translation service returns a non-success status or is unreachable."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(FrameTranslateError):
    """Raised when a response is not JSON or misses required fields."""


class FontUnavailableError(FrameTranslateError):
    """Raised when no style of the fallback ladder can be loaded."""


class UnrecognizedValueError(FrameTranslateError):
    """Raised for unit suffixes or color forms the applier cannot convert."""


class MappingMismatchError(FrameTranslateError):
    """Raised when an original node has no positional counterpart in the duplicate."""


class WorkflowStateError(FrameTranslateError):
    """Raised when a review operation is not valid for a language's current state."""
