"""
Pydantic v2 value objects shared by the transport client, poller and controller.

Wire models (``TranscriptionRequestConfig``, ``JobSnapshot``) mirror the
AssemblyAI v2 JSON; the rest describe what the lifecycle controller exposes.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class AudioAsset(BaseModel):
    """An audio file held in memory for one transcription attempt."""

    model_config = ConfigDict(frozen=True)

    name: str
    content: bytes = Field(repr=False)
    mime_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


class TranscriptionSettings(BaseModel):
    """User-facing options passed to ``TranscriptionController.start()``."""

    model_config = ConfigDict(frozen=True)

    speaker_detection: bool = False
    speaker_count: int = Field(default=2, ge=2)


# ---------------------------------------------------------------------------
# Remote job
# ---------------------------------------------------------------------------


class TranscriptionRequestConfig(BaseModel):
    """Body of ``POST /transcript``."""

    model_config = ConfigDict(frozen=True)

    audio_url: str
    language_detection: bool = True
    punctuate: bool = True
    format_text: bool = True
    speaker_labels: bool = False
    speakers_expected: int | None = None

    @classmethod
    def from_settings(
        cls, audio_url: str, settings: TranscriptionSettings
    ) -> "TranscriptionRequestConfig":
        """Map presentation settings onto recognition options.

        The expected speaker count is only carried when speaker detection is on.
        """
        return cls(
            audio_url=audio_url,
            speaker_labels=settings.speaker_detection,
            speakers_expected=settings.speaker_count if settings.speaker_detection else None,
        )

    def to_payload(self) -> dict:
        payload = self.model_dump(exclude={"speakers_expected"})
        if self.speaker_labels and self.speakers_expected is not None:
            payload["speakers_expected"] = self.speakers_expected
        return payload


class JobStatus(StrEnum):
    """Lifecycle state reported by the remote service."""

    queued = "queued"
    processing = "processing"
    completed = "completed"
    error = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.completed, JobStatus.error)


class Utterance(BaseModel):
    """A single speaker-attributed stretch of the transcript."""

    speaker: str | int
    text: str
    start: float | None = None
    end: float | None = None


class JobSnapshot(BaseModel):
    """Parsed ``GET /transcript/{id}`` response. Unknown keys are ignored."""

    id: str
    status: JobStatus
    text: str | None = None
    error: str | None = None
    utterances: list[Utterance] | None = None
    confidence: float | None = None
    audio_duration: float | None = None
    language_code: str | None = None


# ---------------------------------------------------------------------------
# Controller-visible state
# ---------------------------------------------------------------------------


class Phase(StrEnum):
    """Coarse lifecycle state of one transcription attempt."""

    idle = "idle"
    uploading = "uploading"
    processing = "processing"
    completed = "completed"
    error = "error"

    @property
    def is_busy(self) -> bool:
        return self in (Phase.uploading, Phase.processing)


class ProgressSnapshot(BaseModel):
    """Upload / processing progress plus the phase they belong to."""

    model_config = ConfigDict(frozen=True)

    upload_progress: float = 0.0
    processing_progress: float = 0.0
    phase: Phase = Phase.idle

    @property
    def overall(self) -> float:
        """Weighted overall progress: upload is 40%, processing 60%."""
        match self.phase:
            case Phase.uploading:
                value = self.upload_progress * 0.4
            case Phase.processing:
                value = 40 + self.processing_progress * 0.6
            case Phase.completed:
                value = 100.0
            case _:
                value = 0.0
        return max(0.0, min(100.0, value))

    @property
    def status_text(self) -> str:
        match self.phase:
            case Phase.uploading:
                return f"Uploading... {round(self.upload_progress)}%"
            case Phase.processing:
                return "Processing transcription..."
            case Phase.completed:
                return "Transcription complete!"
            case _:
                return "Starting..."


class TranscriptResult(BaseModel):
    """Normalized output of a completed job."""

    model_config = ConfigDict(frozen=True)

    text: str
    utterances: list[Utterance] | None = None
    confidence: float = 0.0
    audio_duration: float = 0.0
    language_code: str | None = None

    @classmethod
    def from_snapshot(cls, snapshot: JobSnapshot) -> "TranscriptResult":
        return cls(
            text=snapshot.text or "",
            utterances=list(snapshot.utterances) if snapshot.utterances else None,
            confidence=snapshot.confidence or 0.0,
            audio_duration=snapshot.audio_duration or 0.0,
            language_code=snapshot.language_code,
        )


class ControllerState(BaseModel):
    """Immutable view of the controller pushed to observers."""

    model_config = ConfigDict(frozen=True)

    asset: AudioAsset | None = None
    phase: Phase = Phase.idle
    progress: ProgressSnapshot = Field(default_factory=ProgressSnapshot)
    result: TranscriptResult | None = None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.phase in (Phase.completed, Phase.error)
