"""
Gradio Adapter
Public Gradio demo that answers the creation call synchronously
"""

import logging

import httpx

from gen3d.exceptions import SubmissionError
from gen3d.models.enums import JobStatus
from gen3d.models.generation import EncodedImage, GenerationJob
from gen3d.services.adapters.base import AdapterConfig, BackendAdapter

logger = logging.getLogger(__name__)


class GradioAdapter(BackendAdapter):
    """
    Legacy ``/run/predict`` Gradio endpoint.

    The model URL comes back in the submission response itself, so
    ``submit`` returns a job that is already SUCCEEDED or FAILED and
    there is nothing to poll.
    """

    def __init__(
        self,
        config: AdapterConfig,
        http_client: httpx.AsyncClient,
        inference_steps: int = 0,
        denoising_steps: int = 20,
    ):
        super().__init__(config, http_client)
        self.inference_steps = inference_steps
        self.denoising_steps = denoising_steps

    def build_request(self, image: EncodedImage) -> dict:
        # The data array must match the Gradio function's inputs
        return {
            "fn_index": 0,
            "data": [image.data_uri, self.inference_steps, self.denoising_steps],
        }

    async def submit(self, image: EncodedImage) -> GenerationJob:
        logger.info(f"Sending {image.filename} to Gradio endpoint {self.config.endpoint}")
        data = await self._submit_request(
            "POST",
            self.config.endpoint,
            json=self.build_request(image),
            headers=self.auth_headers(),
        )
        return self.parse_job(data)

    def parse_job(self, data: dict) -> GenerationJob:
        outputs = data.get("data")

        if isinstance(outputs, list):
            result = outputs[0] if outputs else None
            return GenerationJob(
                backend=self.backend,
                status=JobStatus.SUCCEEDED,
                raw_status="complete",
                result_url=result if isinstance(result, str) else None,
            )

        if data.get("error"):
            return GenerationJob(
                backend=self.backend,
                status=JobStatus.FAILED,
                raw_status="error",
                error_message=str(data["error"]),
            )

        raise SubmissionError(
            "Response is missing the 'data' output list",
            backend=self.backend.value,
            body=data,
        )

    async def poll(self, job: GenerationJob) -> GenerationJob:
        return job
