"""
audioscribe exception hierarchy.

All application-specific exceptions inherit from AudioScribeError so the
lifecycle controller can convert any of them into a visible error message.

- ``TransportError``: network failure or non-success HTTP response.
- ``JobError``: the remote service reports the transcription job failed.
- ``TranscriptionTimeoutError``: polling gave up before a terminal state.
"""

from datetime import UTC, datetime


class AudioScribeError(Exception):
    """Base exception for all audioscribe errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "AUDIOSCRIBE_ERROR",
    ) -> None:
        self.detail = detail
        self.code = code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


class TransportError(AudioScribeError):
    """Raised when an upload/submit/status call fails at the HTTP level."""

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(detail=detail, code="TRANSPORT_ERROR")


class JobError(AudioScribeError):
    """Raised when the remote service reports the job as failed."""

    def __init__(self, detail: str | None = None, job_id: str | None = None) -> None:
        self.job_id = job_id
        super().__init__(detail=detail or "Transcription failed", code="JOB_ERROR")


class TranscriptionTimeoutError(AudioScribeError, TimeoutError):
    """Raised when a job does not reach a terminal state in time."""

    def __init__(self, job_id: str, timeout: float) -> None:
        self.job_id = job_id
        self.timeout = timeout
        super().__init__(
            detail=f"Transcription timed out after {timeout:g}s (job {job_id})",
            code="TRANSCRIPTION_TIMEOUT",
        )


class CredentialError(AudioScribeError):
    """Raised when no API credential was supplied."""

    def __init__(self, detail: str = "AssemblyAI API key is required") -> None:
        super().__init__(detail=detail, code="CREDENTIAL_MISSING")


class AudioValidationError(AudioScribeError):
    """Raised when a selected file is not an acceptable audio asset."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail=detail, code="VALIDATION_ERROR")
