"""
Replicate Adapter
Creation goes through the proxy; polling follows the returned job URL
"""

import logging
from typing import Any, Awaitable, Optional, Tuple, Type

import httpx

from gen3d.exceptions import GenerationError, PollError, SubmissionError
from gen3d.models.enums import JobStatus
from gen3d.models.generation import EncodedImage, GenerationJob
from gen3d.services.adapters.base import AdapterConfig, BackendAdapter
from gen3d.services.proxy import ReplicateProxy

logger = logging.getLogger(__name__)

STATUS_MAP = {
    "starting": JobStatus.PENDING,
    "processing": JobStatus.PROCESSING,
    "succeeded": JobStatus.SUCCEEDED,
    "failed": JobStatus.FAILED,
    "canceled": JobStatus.CANCELED,
}


class ReplicateAdapter(BackendAdapter):
    """
    Replicate predictions API.

    ``config.endpoint`` is the proxy that attaches the server-side
    credential to the creation call. Polls either go to the status relay
    (``config.status_endpoint``, the default) or, when a client token is
    configured, straight to the ``urls.get`` URL with ``Token`` auth.

    Inside the server process a ``ReplicateProxy`` is passed instead and
    both calls go through it without an HTTP round trip to the relay.
    """

    def __init__(
        self,
        config: AdapterConfig,
        http_client: httpx.AsyncClient,
        model_version: str,
        proxy: Optional[ReplicateProxy] = None,
    ):
        super().__init__(config, http_client)
        self.model_version = model_version
        self.proxy = proxy

        if self.polls_directly:
            logger.warning(
                "Replicate polling uses a client-held token; "
                "prefer the status relay so the credential stays server side"
            )

    @property
    def polls_directly(self) -> bool:
        return self.proxy is None and bool(self.config.api_key)

    def build_request(self, image: EncodedImage) -> dict:
        return {
            "version": self.model_version,
            "input": {"image": image.data_uri},
        }

    async def submit(self, image: EncodedImage) -> GenerationJob:
        if self.proxy is not None:
            logger.info("Creating Replicate prediction in process")
            data = await self._proxy_call(self.proxy.create_prediction(self.build_request(image)), SubmissionError)
        else:
            logger.info(f"Creating Replicate prediction via proxy {self.config.endpoint}")
            data = await self._submit_request(
                "POST",
                self.config.endpoint,
                json=self.build_request(image),
            )

        urls = data.get("urls")
        poll_url = urls.get("get") if isinstance(urls, dict) else None
        if not poll_url:
            raise SubmissionError(
                "Response is missing 'urls.get'",
                backend=self.backend.value,
                body=data,
            )
        if not self.polls_directly and not data.get("id"):
            raise SubmissionError(
                "Response is missing the prediction 'id' needed by the status relay",
                backend=self.backend.value,
                body=data,
            )

        job = self.parse_job(data, GenerationJob(backend=self.backend, id=data.get("id"), poll_url=poll_url))
        logger.info(f"Replicate prediction created: {job.id}")
        return job

    async def poll(self, job: GenerationJob) -> GenerationJob:
        if self.proxy is not None:
            data = await self._proxy_call(self.proxy.get_prediction(job.id), PollError)
        elif self.polls_directly:
            data = await self._poll_request("GET", job.poll_url, headers=self.auth_headers())
        else:
            data = await self._poll_request(
                "POST",
                self.config.status_endpoint,
                json={"id": job.id},
            )
        return self.parse_job(data, job)

    async def _proxy_call(
        self,
        call: Awaitable[Tuple[int, Any]],
        error_class: Type[GenerationError],
    ) -> dict:
        """Await a ReplicateProxy call; failures surface as ``error_class``"""
        try:
            status_code, data = await call
        except (httpx.HTTPError, ValueError) as e:
            raise error_class(f"Request failed: {e}", backend=self.backend.value) from e

        if status_code >= 400:
            detail = data.get("detail") if isinstance(data, dict) else None
            raise error_class(str(detail or data), backend=self.backend.value, status_code=status_code)
        if not isinstance(data, dict):
            raise error_class("Response body is not a JSON object", backend=self.backend.value)

        logger.debug(f"{self.backend.value} proxy response: {data}")
        return data

    def parse_job(self, data: dict, job: GenerationJob) -> GenerationJob:
        raw_status = data.get("status")
        status = STATUS_MAP.get(raw_status, JobStatus.PROCESSING)

        error = data.get("error")
        return job.model_copy(update={
            "status": status,
            "raw_status": raw_status,
            "result_url": self._output_url(data.get("output")),
            "error_message": str(error) if error else None,
        })

    @staticmethod
    def _output_url(output: Any) -> Optional[str]:
        if isinstance(output, str):
            return output
        if isinstance(output, list):
            for item in output:
                if isinstance(item, str):
                    return item
        return None
