"""Unit tests for CompletionPoller.

Time is faked: ``sleep`` advances a manual clock instead of waiting, so the
timeout path runs instantly and poll counts are deterministic.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from audioscribe.core.exceptions import JobError, TranscriptionTimeoutError, TransportError
from audioscribe.core.models import JobSnapshot, JobStatus
from audioscribe.services.transcription.base import BaseTranscriptionClient
from audioscribe.services.transcription.poller import CompletionPoller

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _snapshot(status: str, **fields) -> JobSnapshot:
    return JobSnapshot(id="job-1", status=JobStatus(status), **fields)


class FakeClock:
    """Manual monotonic clock whose ``sleep`` just advances time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def client():
    return AsyncMock(spec=BaseTranscriptionClient)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def poller(client, clock):
    return CompletionPoller(client, poll_interval=3.0, timeout=300.0, clock=clock, sleep=clock.sleep)


# ---------------------------------------------------------------------------
# Terminal states
# ---------------------------------------------------------------------------


class TestTerminalStates:
    """Tests for CompletionPoller.await_completion() reaching completed or error."""

    async def test_returns_completed_snapshot_after_processing(self, poller, client, clock):
        """Verify three processing snapshots, then completed on the fourth call."""
        done = _snapshot("completed", text="final text")
        client.fetch_status.side_effect = [
            _snapshot("processing"),
            _snapshot("processing"),
            _snapshot("processing"),
            done,
        ]
        seen: list[JobStatus] = []

        result = await poller.await_completion(
            "job-1", on_each_poll=lambda s: seen.append(s.status)
        )

        assert result is done
        assert result.text == "final text"
        assert client.fetch_status.await_count == 4
        assert seen == [JobStatus.processing] * 3 + [JobStatus.completed]
        assert clock.sleeps == [3.0, 3.0, 3.0]

    async def test_queued_and_processing_both_keep_polling(self, poller, client):
        """Verify queued is treated like processing."""
        client.fetch_status.side_effect = [
            _snapshot("queued"),
            _snapshot("processing"),
            _snapshot("queued"),
            _snapshot("completed"),
        ]

        result = await poller.await_completion("job-1")

        assert result.status == JobStatus.completed
        assert client.fetch_status.await_count == 4

    async def test_job_error_carries_service_message(self, poller, client):
        """Verify a failed job raises JobError with the service's message."""
        client.fetch_status.side_effect = [
            _snapshot("processing"),
            _snapshot("error", error="Audio file is corrupt"),
        ]
        seen = []

        with pytest.raises(JobError, match="Audio file is corrupt") as exc_info:
            await poller.await_completion("job-1", on_each_poll=seen.append)

        assert exc_info.value.job_id == "job-1"
        assert len(seen) == 2

    async def test_job_error_without_message_uses_fallback(self, poller, client):
        """Verify a failed job without a message uses the generic one."""
        client.fetch_status.return_value = _snapshot("error")

        with pytest.raises(JobError, match="Transcription failed"):
            await poller.await_completion("job-1")

    async def test_transport_error_propagates(self, poller, client):
        """Verify a failing status call is not swallowed."""
        client.fetch_status.side_effect = TransportError("Status check failed: boom")

        with pytest.raises(TransportError, match="boom"):
            await poller.await_completion("job-1")


# ---------------------------------------------------------------------------
# Timeout
# ---------------------------------------------------------------------------


class TestTimeout:
    """Tests for giving up on jobs that never finish."""

    async def test_times_out_after_about_timeout_over_interval_polls(self, poller, client, clock):
        """Verify about timeout / interval status calls happen before giving up."""

        async def slow_status(job_id):
            clock.now += 0.1
            return _snapshot("processing")

        client.fetch_status.side_effect = slow_status

        with pytest.raises(TranscriptionTimeoutError, match="timed out"):
            await poller.await_completion("job-1", poll_interval=1.0, timeout=10.0)

        expected = 10.0 / 1.0
        assert expected - 1 <= client.fetch_status.await_count <= expected + 1

    async def test_keeps_polling_at_exactly_the_timeout(self, poller, client, clock):
        """Verify the poller only gives up once elapsed time exceeds the timeout."""
        client.fetch_status.return_value = _snapshot("processing")

        with pytest.raises(TranscriptionTimeoutError):
            await poller.await_completion("job-1", poll_interval=5.0, timeout=10.0)

        # Polls at 0s, 5s, 10s (not yet over) and 15s.
        assert client.fetch_status.await_count == 4
        assert clock.sleeps == [5.0, 5.0, 5.0]

    async def test_timeout_error_is_builtin_timeout(self, poller, client):
        """Verify TranscriptionTimeoutError is also a builtin TimeoutError."""
        client.fetch_status.return_value = _snapshot("queued")

        with pytest.raises(TimeoutError):
            await poller.await_completion("job-1", poll_interval=5.0, timeout=5.0)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class TestConfiguration:
    """Tests for interval and timeout defaults and overrides."""

    async def test_per_call_overrides_constructor_defaults(self, poller, client, clock):
        """Verify a per-call poll_interval wins over the constructor value."""
        client.fetch_status.side_effect = [_snapshot("processing"), _snapshot("completed")]

        await poller.await_completion("job-1", poll_interval=0.5)

        assert clock.sleeps == [0.5]

    async def test_defaults_come_from_settings(self, client):
        """Verify the 3s interval and 300s timeout defaults."""
        poller = CompletionPoller(client)

        assert poller._interval == 3.0
        assert poller._timeout == 300.0


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


class TestCancellation:
    """Tests for cancelling a poll loop."""

    async def test_wait_between_polls_is_cancellable(self, client):
        """Verify cancelling the task interrupts the wait between polls."""
        client.fetch_status.return_value = _snapshot("processing")
        poller = CompletionPoller(client, poll_interval=60.0, timeout=600.0)

        task = asyncio.create_task(poller.await_completion("job-1"))
        for _ in range(10):
            await asyncio.sleep(0)
            if client.fetch_status.await_count:
                break
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert client.fetch_status.await_count == 1
