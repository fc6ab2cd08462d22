"""AssemblyAI implementation of the TranscriptionClient interface."""

from collections.abc import AsyncIterator
from typing import BinaryIO

import httpx
from pydantic import ValidationError

from minuta.domain.models import RemoteJob
from minuta.exceptions import (
    RemoteNetworkError,
    RemotePayloadError,
    RemoteResponseError,
)
from minuta.logging import setup_logging

from .interfaces import TranscriptionClient

logger = setup_logging()

UPLOAD_CHUNK_SIZE = 5 * 1024 * 1024


class AssemblyAIClient(TranscriptionClient):
    """
    Talks to the AssemblyAI REST API over an async HTTP client.

    The credential is passed on every call rather than held, so a key
    updated at runtime takes effect on the next request.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        language_code: str = "en",
        speaker_labels: bool = True,
    ):
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._language_code = language_code
        self._speaker_labels = speaker_labels

    async def upload(self, file_path: str, api_key: str) -> str:
        with open(file_path, "rb") as fp:
            payload = await self._request(
                "upload",
                "POST",
                "/upload",
                api_key,
                content=_iter_chunks(fp),
            )
        upload_url = payload.get("upload_url") or payload.get("url")
        if not upload_url:
            raise RemotePayloadError("upload", "response carried no upload_url")
        logger.info("Audio uploaded to AssemblyAI", extra={"file_path": file_path})
        return upload_url

    async def create_job(self, audio_url: str, api_key: str) -> str:
        payload = await self._request(
            "create_job",
            "POST",
            "/transcript",
            api_key,
            json={
                "audio_url": audio_url,
                "speaker_labels": self._speaker_labels,
                "language_code": self._language_code,
            },
        )
        job_id = payload.get("id")
        if not job_id:
            raise RemotePayloadError("create_job", "response carried no job id")
        logger.info("AssemblyAI job created", extra={"remote_job_id": job_id})
        return job_id

    async def get_job(self, job_id: str, api_key: str) -> RemoteJob:
        payload = await self._request(
            "get_job", "GET", f"/transcript/{job_id}", api_key
        )
        try:
            return RemoteJob.model_validate(payload)
        except ValidationError as e:
            raise RemotePayloadError("get_job", "unexpected job payload", cause=e) from e

    async def _request(
        self, operation: str, method: str, path: str, api_key: str, **kwargs
    ) -> dict:
        """
        Sends one request and decodes the JSON object it returns.

        Raises:
            RemoteNetworkError: If the provider cannot be reached.
            RemoteResponseError: If the provider answers with a non-2xx status.
            RemotePayloadError: If the body is not a JSON object.
        """
        try:
            response = await self._client.request(
                method,
                f"{self._base_url}{path}",
                headers={"authorization": api_key},
                **kwargs,
            )
        except httpx.TransportError as e:
            logger.exception("AssemblyAI request failed", extra={"operation": operation})
            raise RemoteNetworkError(operation, str(e) or type(e).__name__, cause=e) from e

        if response.is_error:
            logger.warning(
                "AssemblyAI returned an error status",
                extra={"operation": operation, "status_code": response.status_code},
            )
            raise RemoteResponseError(operation, response.status_code, response.text)

        try:
            payload = response.json()
        except ValueError as e:
            raise RemotePayloadError(operation, "response is not JSON", cause=e) from e
        if not isinstance(payload, dict):
            raise RemotePayloadError(operation, "response is not a JSON object")
        return payload


async def _iter_chunks(fp: BinaryIO) -> AsyncIterator[bytes]:
    while chunk := fp.read(UPLOAD_CHUNK_SIZE):
        yield chunk
