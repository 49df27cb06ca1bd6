"""
Abstract base class for remote transcription service clients.

A client wraps the three remote operations (upload, submit, status) into
typed calls. Transport-level failures raise ``TransportError``; a job that
the service itself marks as failed is returned as a normal ``JobSnapshot``.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

from audioscribe.core.models import AudioAsset, JobSnapshot, TranscriptionRequestConfig

UploadProgressCallback = Callable[[float], None]


class BaseTranscriptionClient(ABC):
    """Interface that every remote transcription provider must implement."""

    @abstractmethod
    async def upload(
        self,
        asset: AudioAsset,
        on_progress: UploadProgressCallback | None = None,
    ) -> str:
        """Send the raw audio bytes to the service's ingest endpoint.

        Args:
            asset: The audio file to upload.
            on_progress: Best-effort observer called with a percentage in
                [0, 100] as bytes are transmitted. May never be called.

        Returns:
            The remote URL the service assigned to the uploaded audio.

        Raises:
            TransportError: On any non-success response or network failure.
        """

    @abstractmethod
    async def submit(self, config: TranscriptionRequestConfig) -> str:
        """Request a transcription of previously uploaded audio.

        Returns:
            The service-issued job identifier.

        Raises:
            TransportError: If the service rejects the request or the network fails.
        """

    @abstractmethod
    async def fetch_status(self, job_id: str) -> JobSnapshot:
        """Retrieve the current state of a job.

        A job the service reports as ``error`` is returned, not raised.

        Raises:
            TransportError: On network failure or non-success response.
        """

    async def aclose(self) -> None:
        """Release network resources. No-op by default."""
