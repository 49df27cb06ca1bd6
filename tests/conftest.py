"""Shared pytest fixtures for the audioscribe test suite.

Provides a sample audio asset, a mock transport client implementing the
BaseTranscriptionClient interface, and helpers for building job snapshots.
"""

from unittest.mock import AsyncMock

import pytest

from audioscribe.core.models import AudioAsset, JobSnapshot, JobStatus

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_snapshot(status: str = "processing", job_id: str = "job-1", **fields) -> JobSnapshot:
    """Build a JobSnapshot with the given status and extra fields."""
    return JobSnapshot(id=job_id, status=JobStatus(status), **fields)


# ---------------------------------------------------------------------------
# Audio Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_asset():
    """A small in-memory MP3 asset.

    Returns:
        AudioAsset: 1 KiB of placeholder bytes labelled ``audio/mpeg``.
    """
    return AudioAsset(name="meeting.mp3", content=b"\xff\xfb" * 512, mime_type="audio/mpeg")


# ---------------------------------------------------------------------------
# Transport Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_client():
    """Create a mock transport client for unit testing.

    Returns:
        AsyncMock: A mock implementing BaseTranscriptionClient whose job
        completes on the first status check.
    """
    from audioscribe.services.transcription.base import BaseTranscriptionClient

    client = AsyncMock(spec=BaseTranscriptionClient)
    client.upload.return_value = "https://cdn.assemblyai.test/upload/abc"
    client.submit.return_value = "job-1"
    client.fetch_status.return_value = make_snapshot(
        "completed",
        text="Hello there.",
        confidence=0.93,
        audio_duration=12.5,
    )
    return client
