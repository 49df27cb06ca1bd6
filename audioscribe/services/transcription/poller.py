"""Completion poller: wait for a submitted job to reach a terminal state.

Turns the one-shot ``fetch_status`` call into a bounded loop::

    poller = CompletionPoller(client)
    snapshot = await poller.await_completion(job_id, on_each_poll=print)

``queued`` and ``processing`` both keep the loop going; ``completed``
returns and ``error`` raises ``JobError``. The wait between polls is an
awaited ``sleep`` so cancelling the surrounding task stops the loop.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from audioscribe.core.config import get_settings
from audioscribe.core.exceptions import JobError, TranscriptionTimeoutError
from audioscribe.core.models import JobSnapshot, JobStatus
from audioscribe.services.transcription.base import BaseTranscriptionClient

logger = logging.getLogger(__name__)

PollCallback = Callable[[JobSnapshot], None]


class CompletionPoller:
    """Repeatedly query job status until a terminal state or timeout.

    Args:
        client: Transport client used for ``fetch_status``.
        poll_interval: Default seconds between checks (falls back to settings).
        timeout: Default maximum total wait in seconds (falls back to settings).
        clock: Monotonic time source, injectable for tests.
        sleep: Awaitable sleep, injectable for tests.
    """

    def __init__(
        self,
        client: BaseTranscriptionClient,
        poll_interval: float | None = None,
        timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        settings = get_settings()
        self._client = client
        self._interval = poll_interval if poll_interval is not None else settings.poll_interval
        self._timeout = timeout if timeout is not None else settings.poll_timeout
        self._clock = clock
        self._sleep = sleep

    async def await_completion(
        self,
        job_id: str,
        on_each_poll: PollCallback | None = None,
        poll_interval: float | None = None,
        timeout: float | None = None,
    ) -> JobSnapshot:
        """Poll ``job_id`` until it completes.

        ``on_each_poll`` sees every snapshot, including the first and the
        terminal one.

        Raises:
            JobError: The service reported the job as failed.
            TranscriptionTimeoutError: No terminal state within ``timeout``.
            TransportError: A status call failed (propagated from the client).
        """
        interval = poll_interval if poll_interval is not None else self._interval
        limit = timeout if timeout is not None else self._timeout
        started = self._clock()
        polls = 0

        while True:
            snapshot = await self._client.fetch_status(job_id)
            polls += 1

            if on_each_poll is not None:
                on_each_poll(snapshot)

            if snapshot.status == JobStatus.completed:
                logger.info("Job %s completed after %d poll(s)", job_id, polls)
                return snapshot

            if snapshot.status == JobStatus.error:
                logger.warning("Job %s failed: %s", job_id, snapshot.error)
                raise JobError(snapshot.error, job_id=job_id)

            elapsed = self._clock() - started
            if elapsed > limit:
                logger.warning(
                    "Job %s still %s after %.1fs; giving up", job_id, snapshot.status, elapsed
                )
                raise TranscriptionTimeoutError(job_id, limit)

            await self._sleep(interval)
