"""Transcription lifecycle controller.

Drives one audio file through upload -> submit -> poll -> completed/error
and is the only writer of the state the presentation layer observes.

Usage::

    from audioscribe.services.controller import create_controller

    controller = create_controller(api_key)
    controller.select_asset(asset)
    async with controller.events() as stream:
        task = asyncio.create_task(controller.start(TranscriptionSettings()))
        async for state in stream:
            print(state.phase, state.progress.overall)

Every ``start()`` call takes a new attempt generation. State writes carry
the generation they were issued under and are dropped once ``reset()`` or
``select_asset()`` has moved the controller on, so an abandoned attempt can
never overwrite fresh state.
"""

import asyncio
import logging
import weakref
from collections.abc import Callable

from audioscribe.core.config import Settings, get_settings
from audioscribe.core.exceptions import AudioScribeError
from audioscribe.core.models import (
    AudioAsset,
    ControllerState,
    JobSnapshot,
    JobStatus,
    Phase,
    ProgressSnapshot,
    TranscriptionRequestConfig,
    TranscriptionSettings,
    TranscriptResult,
)
from audioscribe.services.transcription import (
    BaseTranscriptionClient,
    CompletionPoller,
    create_client,
)

logger = logging.getLogger(__name__)

StateListener = Callable[[ControllerState], None]

# The service exposes no processing percentage; non-terminal polls report this.
PROCESSING_PLACEHOLDER = 50.0


class _AttemptAbandoned(Exception):
    """Raised inside an attempt once it is no longer the active one."""


class StateStream:
    """Queue-backed async iterator over controller states.

    Subscribes on creation. The listener is removed when the stream ends
    (terminal or idle state), on ``aclose()`` / leaving an ``async with``
    block, or as soon as the stream object itself is released, so breaking
    out of ``async for state in controller.events()`` does not leave a
    listener behind.
    """

    def __init__(self, controller: "TranscriptionController") -> None:
        self._queue: asyncio.Queue[ControllerState] = asyncio.Queue()
        self._closed = False
        unsubscribe = controller.subscribe(self._queue.put_nowait)
        # Must not reference self, or the stream could never be released.
        self._finalizer = weakref.finalize(self, unsubscribe)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop the stream and unsubscribe; safe to call more than once."""
        self._closed = True
        self._finalizer()

    async def aclose(self) -> None:
        self.close()

    def __aiter__(self) -> "StateStream":
        return self

    async def __anext__(self) -> ControllerState:
        if self._closed:
            raise StopAsyncIteration
        state = await self._queue.get()
        if state.is_terminal or state.phase == Phase.idle:
            self.close()
        return state

    async def __aenter__(self) -> "StateStream":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()


class TranscriptionController:
    """State machine for one transcription at a time.

    Args:
        client: Transport client for upload / submit / status.
        poller: Completion poller (defaults to one built on ``client``).
    """

    def __init__(
        self,
        client: BaseTranscriptionClient,
        poller: CompletionPoller | None = None,
    ) -> None:
        self._client = client
        self._poller = poller or CompletionPoller(client)
        self._state = ControllerState()
        self._generation = 0
        self._listeners: list[StateListener] = []

    # -- observable state --

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def asset(self) -> AudioAsset | None:
        return self._state.asset

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def progress(self) -> ProgressSnapshot:
        return self._state.progress

    @property
    def result(self) -> TranscriptResult | None:
        return self._state.result

    @property
    def error(self) -> str | None:
        return self._state.error

    @property
    def overall_progress(self) -> float:
        return self._state.progress.overall

    @property
    def is_busy(self) -> bool:
        """True while uploading or processing; callers should disable start."""
        return self._state.phase.is_busy

    # -- observers --

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register ``listener`` for every state change.

        Returns:
            A callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def events(self) -> StateStream:
        """Stream state changes from now on.

        The stream ends after yielding a terminal state (completed / error)
        or the idle state produced by ``reset()`` / ``select_asset()``.
        States emitted between this call and the first iteration are kept.
        """
        return StateStream(self)

    def _emit(self) -> None:
        state = self._state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener failed (ignored)")

    # -- state transitions --

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _apply(self, generation: int, phase: Phase | None = None, **changes) -> bool:
        """Apply ``changes`` if ``generation`` is still active.

        Keeps ``progress.phase`` in step with ``phase``. Returns False (and
        changes nothing) for a stale generation.
        """
        if not self._is_current(generation):
            logger.debug("Dropping state update from abandoned attempt %d", generation)
            return False

        if phase is not None:
            changes["phase"] = phase
            progress = changes.get("progress", self._state.progress)
            changes["progress"] = progress.model_copy(update={"phase": phase})

        self._state = self._state.model_copy(update=changes)
        self._emit()
        return True

    def _abandon(self) -> None:
        self._generation += 1

    def select_asset(self, asset: AudioAsset | None) -> None:
        """Replace the selected audio; clears error, progress and result."""
        if self.is_busy:
            logger.info("Abandoning in-flight attempt for new selection")
        self._abandon()
        self._state = ControllerState(asset=asset)
        self._emit()

    def reset(self) -> None:
        """Return every piece of state to its initial value."""
        if self.is_busy:
            logger.info("Abandoning in-flight attempt on reset")
        self._abandon()
        self._state = ControllerState()
        self._emit()

    async def start(self, settings: TranscriptionSettings | None = None) -> None:
        """Run one transcription attempt for the selected asset.

        Runs only from ``Phase.idle`` with a selected asset; otherwise the
        call is ignored. After completed / error, ``reset()`` or
        ``select_asset()`` is needed before the next attempt. Failures never
        propagate: they end the attempt in ``Phase.error`` with a readable
        message.
        """
        asset = self._state.asset
        if asset is None:
            logger.debug("start() ignored: no audio selected")
            return
        if self.is_busy:
            logger.warning("start() ignored: an attempt is already in flight")
            return
        if self._state.phase != Phase.idle:
            logger.warning(
                "start() ignored: attempt already ended in %s; reset or select audio first",
                self._state.phase,
            )
            return

        settings = settings or TranscriptionSettings()
        self._generation += 1
        generation = self._generation

        self._apply(
            generation,
            phase=Phase.uploading,
            progress=ProgressSnapshot(),
            result=None,
            error=None,
        )

        try:
            audio_url = await self._client.upload(
                asset, on_progress=lambda pct: self._on_upload_progress(generation, pct)
            )
            self._ensure_current(generation)

            config = TranscriptionRequestConfig.from_settings(audio_url, settings)
            job_id = await self._client.submit(config)
            self._ensure_current(generation)

            self._apply(generation, phase=Phase.processing)
            snapshot = await self._poller.await_completion(
                job_id, on_each_poll=lambda snap: self._on_poll(generation, snap)
            )
            self._ensure_current(generation)

            result = TranscriptResult.from_snapshot(snapshot)
            self._apply(
                generation,
                phase=Phase.completed,
                progress=self._state.progress.model_copy(update={"processing_progress": 100.0}),
                result=result,
            )
            logger.info(
                "Transcription of %s completed (%d chars, %.1fs audio)",
                asset.name,
                len(result.text),
                result.audio_duration,
            )

        except _AttemptAbandoned:
            logger.info("Attempt %d abandoned; discarding its outcome", generation)
        except asyncio.CancelledError:
            self._apply(generation, phase=Phase.error, error="Transcription cancelled")
            raise
        except AudioScribeError as exc:
            logger.warning("Transcription of %s failed: %s", asset.name, exc.detail)
            self._apply(generation, phase=Phase.error, error=exc.detail)
        except Exception as exc:
            logger.exception("Unexpected failure transcribing %s", asset.name)
            self._apply(generation, phase=Phase.error, error=str(exc) or "Transcription failed")

    def _ensure_current(self, generation: int) -> None:
        if not self._is_current(generation):
            raise _AttemptAbandoned()

    def _on_upload_progress(self, generation: int, percent: float) -> None:
        self._apply(
            generation,
            phase=Phase.uploading,
            progress=self._state.progress.model_copy(
                update={"upload_progress": max(0.0, min(100.0, percent))}
            ),
        )

    def _on_poll(self, generation: int, snapshot: JobSnapshot) -> None:
        # Raising here stops the poll loop of an abandoned attempt.
        self._ensure_current(generation)
        if snapshot.status == JobStatus.completed:
            # The completed transition sets 100% together with the phase.
            return
        self._apply(
            generation,
            phase=Phase.processing,
            progress=self._state.progress.model_copy(
                update={"processing_progress": PROCESSING_PLACEHOLDER}
            ),
        )

    async def aclose(self) -> None:
        """Abandon any attempt and close the transport client."""
        self._abandon()
        await self._client.aclose()


def create_controller(
    api_key: str,
    settings: Settings | None = None,
    **client_kwargs,
) -> TranscriptionController:
    """Build a controller wired to AssemblyAI with the given credential.

    Args:
        api_key: AssemblyAI credential, passed through on every call.
        settings: Optional Settings instance (defaults to get_settings()).
        **client_kwargs: Extra ``AssemblyAIClient`` arguments (e.g. ``transport``).

    Raises:
        CredentialError: If ``api_key`` is empty.
    """
    settings = settings or get_settings()
    client = create_client(
        "assemblyai",
        api_key=api_key,
        base_url=settings.assemblyai_base_url,
        timeout=settings.http_timeout,
        upload_chunk_size=settings.upload_chunk_size,
        **client_kwargs,
    )
    poller = CompletionPoller(
        client,
        poll_interval=settings.poll_interval,
        timeout=settings.poll_timeout,
    )
    return TranscriptionController(client, poller)
