"""
Meshy Adapter
Bearer-authenticated creation with an id-keyed status endpoint
"""

import logging
from typing import Optional

from gen3d.exceptions import SubmissionError
from gen3d.models.enums import ImageEncoding, JobStatus
from gen3d.models.generation import EncodedImage, GenerationJob
from gen3d.services.adapters.base import BackendAdapter

logger = logging.getLogger(__name__)

STATUS_MAP = {
    "PENDING": JobStatus.PENDING,
    "IN_PROGRESS": JobStatus.PROCESSING,
    "PROCESSING": JobStatus.PROCESSING,
    "SUCCEEDED": JobStatus.SUCCEEDED,
    "FAILED": JobStatus.FAILED,
    "CANCELED": JobStatus.CANCELED,
}


class MeshyAdapter(BackendAdapter):
    """Meshy image-to-3D: ``POST <endpoint>`` then ``GET <endpoint>/<id>``"""

    def status_url(self, job_id: str) -> str:
        return f"{self.config.endpoint.rstrip('/')}/{job_id}"

    async def submit(self, image: EncodedImage) -> GenerationJob:
        logger.info(f"Creating Meshy task ({self.config.encoding.value}) for {image.filename}")

        if self.config.encoding == ImageEncoding.MULTIPART:
            data = await self._submit_request(
                "POST",
                self.config.endpoint,
                files=image.as_multipart("image_file"),
                headers=self.auth_headers(),
            )
        else:
            data = await self._submit_request(
                "POST",
                self.config.endpoint,
                json={"image_url": image.data_uri},
                headers=self.auth_headers(),
            )

        job_id = data.get("result")
        if not job_id or not isinstance(job_id, str):
            raise SubmissionError(
                "Response is missing the task id ('result')",
                backend=self.backend.value,
                body=data,
            )

        logger.info(f"Meshy task created: {job_id}")
        return GenerationJob(
            backend=self.backend,
            id=job_id,
            poll_url=self.status_url(job_id),
            status=JobStatus.PENDING,
        )

    async def poll(self, job: GenerationJob) -> GenerationJob:
        data = await self._poll_request(
            "GET",
            job.poll_url or self.status_url(job.id),
            headers=self.auth_headers(),
        )
        return self.parse_job(data, job)

    def parse_job(self, data: dict, job: GenerationJob) -> GenerationJob:
        raw_status = data.get("status")
        status = STATUS_MAP.get(raw_status, JobStatus.PROCESSING)

        return job.model_copy(update={
            "status": status,
            "raw_status": raw_status,
            "result_url": self._model_url(data),
            "error_message": self._error_message(data),
        })

    @staticmethod
    def _model_url(data: dict) -> Optional[str]:
        url = data.get("model_url")
        if isinstance(url, str) and url:
            return url
        model_urls = data.get("model_urls")
        if isinstance(model_urls, dict) and isinstance(model_urls.get("glb"), str):
            return model_urls["glb"]
        return None

    @staticmethod
    def _error_message(data: dict) -> Optional[str]:
        task_error = data.get("task_error")
        if isinstance(task_error, dict) and task_error.get("message"):
            return str(task_error["message"])
        if data.get("error"):
            return str(data["error"])
        return None
