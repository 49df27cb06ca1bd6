"""AssemblyAI v2 REST client built on ``httpx.AsyncClient``.

Endpoints used:

- ``POST /upload``           raw bytes in, ``{"upload_url": ...}`` out
- ``POST /transcript``       recognition options in, ``{"id": ...}`` out
- ``GET  /transcript/{id}``  job status, text and utterances out

The credential is sent verbatim in the ``Authorization`` header of every call.
"""

import logging
from collections.abc import AsyncIterator

import httpx
from pydantic import ValidationError

from audioscribe.core.config import get_settings
from audioscribe.core.exceptions import CredentialError, TransportError
from audioscribe.core.models import AudioAsset, JobSnapshot, TranscriptionRequestConfig
from audioscribe.services.transcription.base import (
    BaseTranscriptionClient,
    UploadProgressCallback,
)

logger = logging.getLogger(__name__)


class AssemblyAIClient(BaseTranscriptionClient):
    """Async client for the AssemblyAI transcription API.

    Args:
        api_key: AssemblyAI credential. Only checked for being non-empty.
        base_url: API root (falls back to settings).
        timeout: Per-request network timeout in seconds (falls back to settings).
        upload_chunk_size: Chunk size used when streaming an upload with progress.
        transport: Optional httpx transport (e.g. ``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float | None = None,
        upload_chunk_size: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise CredentialError()

        settings = get_settings()
        self._base_url = (base_url or settings.assemblyai_base_url).rstrip("/")
        self._chunk_size = upload_chunk_size or settings.upload_chunk_size
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": api_key},
            timeout=timeout if timeout is not None else settings.http_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "AssemblyAIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, operation: str, **kwargs) -> dict:
        """Execute an HTTP request and decode its JSON body.

        Args:
            method: HTTP method name ("GET", "POST").
            path: Endpoint path relative to the API root.
            operation: Human-readable prefix for error messages.
            **kwargs: Passed through to ``httpx.AsyncClient.request``.

        Raises:
            TransportError: On network failure, timeout, non-2xx status or a
                body that is not a JSON object.
        """
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise TransportError(f"{operation}: request timed out ({exc})") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{operation}: network error: {exc}") from exc

        if not resp.is_success:
            detail = self._error_detail(resp)
            logger.warning("%s (%s %s -> %s)", operation, method, path, resp.status_code)
            raise TransportError(f"{operation}: {detail}", status_code=resp.status_code)

        try:
            body = resp.json()
        except ValueError as exc:
            raise TransportError(
                f"{operation}: response is not valid JSON", status_code=resp.status_code
            ) from exc
        if not isinstance(body, dict):
            raise TransportError(
                f"{operation}: unexpected response body", status_code=resp.status_code
            )
        return body

    @staticmethod
    def _error_detail(resp: httpx.Response) -> str:
        """Prefer the service's ``error`` field; fall back to the status code."""
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            return f"{body['error']} (status: {resp.status_code})"
        return f"HTTP error! status: {resp.status_code}"

    async def _iter_chunks(
        self, content: bytes, on_progress: UploadProgressCallback
    ) -> AsyncIterator[bytes]:
        """Yield the payload in chunks, reporting the sent percentage after each."""
        total = len(content)
        sent = 0
        for offset in range(0, total, self._chunk_size):
            chunk = content[offset : offset + self._chunk_size]
            yield chunk
            sent += len(chunk)
            on_progress(sent / total * 100)

    async def upload(
        self,
        asset: AudioAsset,
        on_progress: UploadProgressCallback | None = None,
    ) -> str:
        headers = {
            "Content-Type": "application/octet-stream",
            "Content-Length": str(asset.size),
        }
        content = (
            self._iter_chunks(asset.content, on_progress)
            if on_progress is not None
            else asset.content
        )
        logger.info("Uploading %s (%d bytes)", asset.name, asset.size)
        body = await self._request(
            "POST", "/upload", "Upload failed", content=content, headers=headers
        )

        upload_url = body.get("upload_url")
        if not upload_url:
            raise TransportError("Upload failed: response did not include an upload_url")
        logger.debug("Upload of %s stored at %s", asset.name, upload_url)
        return upload_url

    async def submit(self, config: TranscriptionRequestConfig) -> str:
        body = await self._request(
            "POST",
            "/transcript",
            "Transcription request failed",
            json=config.to_payload(),
        )

        job_id = body.get("id")
        if not job_id:
            raise TransportError("Transcription request failed: response did not include an id")
        logger.info(
            "Submitted transcription job %s (speaker_labels=%s)",
            job_id,
            config.speaker_labels,
        )
        return str(job_id)

    async def fetch_status(self, job_id: str) -> JobSnapshot:
        body = await self._request("GET", f"/transcript/{job_id}", "Status check failed")
        try:
            snapshot = JobSnapshot.model_validate(body)
        except ValidationError as exc:
            raise TransportError(f"Status check failed: malformed job status ({exc})") from exc
        logger.debug("Job %s status: %s", job_id, snapshot.status)
        return snapshot
