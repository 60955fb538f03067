"""
Backend Adapter base
Shared request plumbing for vendor-specific submit/poll/extract
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from gen3d.exceptions import MissingResultError, PollError, SubmissionError
from gen3d.models.enums import Backend, ImageEncoding, JobStatus, TERMINAL_STATUSES
from gen3d.models.generation import EncodedImage, GenerationJob

logger = logging.getLogger(__name__)


class AdapterConfig(BaseModel):
    """Immutable per-vendor configuration"""

    model_config = ConfigDict(frozen=True)

    backend: Backend
    endpoint: str = Field(..., description="Creation endpoint (or proxy URL)")
    auth_scheme: Optional[str] = Field(None, description="Authorization scheme, e.g. 'Token' or 'Bearer'")
    api_key: Optional[str] = Field(None, repr=False)
    poll_interval: float = Field(default=5.0, ge=0.0, description="Seconds between polls")
    encoding: ImageEncoding = ImageEncoding.DATA_URI
    result_extension: Optional[str] = Field(None, description="Required suffix of the asset URL")
    status_endpoint: Optional[str] = Field(None, description="Relay used for polling when no client key is held")


class BackendAdapter(ABC):
    """
    Vendor-specific implementation of the generation contract.

    Subclasses build the creation request, parse vendor payloads into
    GenerationJob and map vendor status strings onto JobStatus.
    """

    def __init__(self, config: AdapterConfig, http_client: httpx.AsyncClient):
        self.config = config
        self.http_client = http_client

    @property
    def backend(self) -> Backend:
        return self.config.backend

    @property
    def poll_interval(self) -> float:
        return self.config.poll_interval

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    @abstractmethod
    async def submit(self, image: EncodedImage) -> GenerationJob:
        """Issue the creation call and return the initial job"""

    @abstractmethod
    async def poll(self, job: GenerationJob) -> GenerationJob:
        """Issue one status check and return the updated job"""

    def is_terminal(self, job: GenerationJob) -> bool:
        return job.status in TERMINAL_STATUSES

    def extract_result(self, job: GenerationJob) -> str:
        """
        Return the asset URL of a successful job.

        Raises:
            MissingResultError if the job did not succeed or carries no
            usable URL
        """
        if job.status != JobStatus.SUCCEEDED:
            raise MissingResultError(
                f"Job is {job.status.value}, no result to extract",
                backend=self.backend.value,
            )

        url = job.result_url
        if not url or not isinstance(url, str):
            raise MissingResultError(
                "Could not find a model URL in the API response.",
                backend=self.backend.value,
            )

        extension = self.config.result_extension
        if extension and not url.split("?", 1)[0].lower().endswith(extension.lower()):
            raise MissingResultError(
                f"Could not find a valid {extension} model URL in the API response.",
                backend=self.backend.value,
            )
        return url

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def auth_headers(self) -> Dict[str, str]:
        if self.config.auth_scheme and self.config.api_key:
            return {"Authorization": f"{self.config.auth_scheme} {self.config.api_key}"}
        return {}

    async def _submit_request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        """One creation call; every failure surfaces as SubmissionError"""
        try:
            response = await self.http_client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise SubmissionError(f"Request failed: {e}", backend=self.backend.value) from e

        if not response.is_success:
            raise SubmissionError(
                response.text or response.reason_phrase,
                backend=self.backend.value,
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SubmissionError(
                "Response body is not valid JSON",
                backend=self.backend.value,
                status_code=response.status_code,
                body=response.text,
            ) from e

        if not isinstance(data, dict):
            raise SubmissionError(
                "Response body is not a JSON object",
                backend=self.backend.value,
                status_code=response.status_code,
                body=data,
            )
        logger.debug(f"{self.backend.value} submission response: {data}")
        return data

    async def _poll_request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        """One status call; transport and parse failures surface as PollError"""
        try:
            response = await self.http_client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise PollError(f"Status check failed: {e}", backend=self.backend.value) from e

        if not response.is_success:
            raise PollError(
                response.text or response.reason_phrase,
                backend=self.backend.value,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise PollError("Status body is not valid JSON", backend=self.backend.value) from e

        if not isinstance(data, dict):
            raise PollError("Status body is not a JSON object", backend=self.backend.value)
        logger.debug(f"{self.backend.value} poll response: {data}")
        return data
