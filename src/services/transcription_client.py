"""HTTP client for the external transcription (extract-and-embed) service."""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from src.config import Settings, get_settings
from src.errors import ConfigurationError, TranscriptionAPIError
from src.schemas.schemas import (
    TranscriptionJobRequest,
    TranscriptionJobResponse,
    TranscriptionJobStatusResponse,
)

logger = logging.getLogger(__name__)

SUBMIT_PATH = "/api/v2/extract-and-embed"
STATUS_PATH = "/api/jobs/{batch_id}/status"


class TranscriptionClient:
    """Submits lesson batches and polls batch status."""

    def __init__(
        self,
        base_url: Optional[str],
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not base_url or not base_url.strip():
            raise ConfigurationError("TRANSCRIPTION_API_URL not configured")
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "TranscriptionClient":
        settings = settings or get_settings()
        return cls(
            settings.transcription_api_url,
            timeout=settings.transcription_http_timeout,
            transport=transport,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy initialization of the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def submit_batch(self, payload: TranscriptionJobRequest) -> TranscriptionJobResponse:
        """
        Submit one tenant's lessons for transcription.

        Returns:
            The accepted batch, carrying the service-assigned job ID

        Raises:
            TranscriptionAPIError: transport failure, non-2xx answer or bad body
        """
        response = await self._request(
            "POST",
            SUBMIT_PATH,
            content=payload.to_json(),
        )
        try:
            return TranscriptionJobResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise TranscriptionAPIError(f"Error decoding submit response: {e}") from e

    async def get_batch_status(self, batch_id: str) -> TranscriptionJobStatusResponse:
        """Fetch per-lesson status of a submitted batch."""
        response = await self._request("GET", STATUS_PATH.format(batch_id=batch_id))
        try:
            return TranscriptionJobStatusResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise TranscriptionAPIError(f"Error decoding status response: {e}") from e

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            raise TranscriptionAPIError(f"Error making request to {path}: {e!r}") from e

        if not response.is_success:
            raise TranscriptionAPIError(
                "API error",
                status_code=response.status_code,
                body=response.text,
            )
        return response

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
