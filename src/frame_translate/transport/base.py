"""
Base classes for transport clients.

Defines the abstract interface used to reach the translation service.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from frame_translate.models import ExportPayload, TranslationResult, UploadRequest


class TransportClient(ABC):
    """
    Abstract base class for transport clients.

    Contract for chunked exports: batches of one language are sent strictly
    in order and each carries ``chunk = {index, total}``. When the chunker
    runs with the ``last`` response policy, the service must aggregate every
    batch server-side and answer the final batch with the complete result;
    with the ``merge`` policy each response only needs to cover its own batch.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Transport name for logging and identification."""
        ...

    @abstractmethod
    async def translate(self, payload: ExportPayload) -> TranslationResult:
        """
        Send an export payload and return the service's translation.

        Raises:
            TransportError: Non-success status or network failure.
            MalformedResponseError: Body is not JSON or misses required fields.
        """
        ...

    @abstractmethod
    async def upload(self, request: UploadRequest) -> None:
        """
        Commit reviewed translations.

        Raises:
            TransportError: Non-success status or network failure.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        return None
