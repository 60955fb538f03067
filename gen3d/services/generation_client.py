"""
Generation Client
Drives one image-to-3D job from encoding to a loaded model
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Mapping, Optional

from gen3d.exceptions import (
    ConfigurationError,
    GenerationError,
    GenerationTimeoutError,
    VendorJobFailed,
)
from gen3d.models.enums import Backend, ClientState, JobStatus
from gen3d.models.generation import GenerationJob, GenerationRequest
from gen3d.services.adapters.base import BackendAdapter
from gen3d.services.encoder import ImageEncoder, ImageSource, get_image_encoder
from gen3d.services.viewer import ModelViewer

logger = logging.getLogger(__name__)

NO_FILE_MESSAGE = "Error: Please select an image file first."

BACKEND_LABELS = {
    Backend.GRADIO: "Gradio (TripoSR)",
    Backend.REPLICATE: "Replicate",
    Backend.MESHY: "Meshy",
}


class CancelToken:
    """Invalidates one job's flow once a newer request or a cancel arrives"""

    def __init__(self):
        self._canceled = False

    @property
    def canceled(self) -> bool:
        return self._canceled

    def cancel(self) -> None:
        self._canceled = True


class GenerationClient:
    """
    State machine for the generation-request lifecycle.

    IDLE -> ENCODING -> SUBMITTING -> POLLING -> SUCCEEDED | FAILED

    One job is active per instance. A new ``request`` cancels the previous
    job's token and clears the viewer; the superseded flow keeps running
    until its current network call returns, then drops its result without
    touching state or the viewer.
    """

    def __init__(
        self,
        adapters: Mapping[Backend, BackendAdapter],
        viewer: ModelViewer,
        encoder: Optional[ImageEncoder] = None,
        default_backend: Backend = Backend.GRADIO,
        max_poll_attempts: int = 120,
        poll_timeout: float = 900.0,
        on_change: Optional[Callable[["GenerationClient"], None]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.adapters = dict(adapters)
        self.viewer = viewer
        self.encoder = encoder or get_image_encoder()
        self.default_backend = Backend(default_backend)
        self.max_poll_attempts = max_poll_attempts
        self.poll_timeout = poll_timeout
        self.on_change = on_change
        self._sleep = sleep
        self._clock = clock

        self.state = ClientState.IDLE
        self.status_message = ""
        self.backend: Optional[Backend] = None
        self.current_request: Optional[GenerationRequest] = None
        self.job: Optional[GenerationJob] = None
        self.error: Optional[GenerationError] = None
        self.load_progress: Optional[float] = None
        self._token: Optional[CancelToken] = None
        self._progress_percent: Optional[int] = None
        self._busy = False

    @property
    def is_busy(self) -> bool:
        """True while a request is encoding, submitting, polling or loading"""
        return self._busy

    async def request(
        self,
        source: Optional[ImageSource],
        backend: Optional[Backend] = None,
        filename: Optional[str] = None,
    ) -> Optional[GenerationJob]:
        """
        Run the full lifecycle for one image.

        Args:
            source: Selected file (path, bytes or binary stream); None means
                nothing was selected
            backend: Vendor to use (default: ``default_backend``)
            filename: Name for byte/stream sources

        Returns:
            The final job as seen by this request, or None when no file was
            selected. Errors are reported through ``status_message`` and
            ``error``, never raised.
        """
        if source is None:
            self.status_message = NO_FILE_MESSAGE
            self._emit()
            return None

        if self._token is not None and not self._token.canceled:
            logger.info("New request supersedes the active job")
            self._token.cancel()

        token = CancelToken()
        self._token = token
        self._busy = True
        self.viewer.clear_model()
        self.backend = None
        self.current_request = None
        self.job = None
        self.error = None
        self.load_progress = None
        self._progress_percent = None
        job: Optional[GenerationJob] = None

        try:
            backend = self._resolve_backend(backend, self.default_backend)
            self.backend = backend
            adapter = self.adapters.get(backend)
            if adapter is None:
                raise ConfigurationError(f"{backend.value} backend is not configured", backend=backend.value)

            label = BACKEND_LABELS.get(backend, backend.value)
            self._transition(token, ClientState.ENCODING, "Processing image...")
            image = await self.encoder.encode(source, adapter.config.encoding, filename=filename)
            if token.canceled:
                return None

            self.current_request = GenerationRequest(image_data=image.payload, backend=backend)
            self._transition(token, ClientState.SUBMITTING, f"Image processed. Sending to {label}...")
            job = await adapter.submit(image)
            if token.canceled:
                return self._abandoned(job)
            self._set_job(token, job)

            if not adapter.is_terminal(job):
                self._transition(token, ClientState.POLLING, self._waiting_message(label, job))
                job = await self._poll_until_terminal(adapter, job, token, label)
                if token.canceled:
                    return self._abandoned(job)

            await self._finish(adapter, job, token)

        except GenerationError as e:
            if token.canceled:
                logger.warning(f"Ignoring error from superseded job: {e}")
                return self._abandoned(job)
            self._fail(token, e)

        finally:
            if self._token is token:
                self._busy = False

        if token.canceled:
            return self._abandoned(job)
        return self.job

    def cancel(self) -> bool:
        """
        Cancel the active request locally.

        The vendor-side job is not canceled; its results are discarded.

        Returns:
            True if a request was active
        """
        if self._token is None or self._token.canceled or not self._busy:
            return False

        self._token.cancel()
        self._busy = False
        self.viewer.clear_model()
        if self.job is not None and not self.job.is_terminal:
            self.job = self.job.model_copy(update={"status": JobStatus.CANCELED})
        self.state = ClientState.IDLE
        self.status_message = "Generation canceled."
        logger.info("Generation canceled by user")
        self._emit()
        return True

    async def _poll_until_terminal(
        self,
        adapter: BackendAdapter,
        job: GenerationJob,
        token: CancelToken,
        label: str,
    ) -> GenerationJob:
        deadline = self._clock() + self.poll_timeout
        attempts = 0

        while True:
            if attempts >= self.max_poll_attempts:
                raise GenerationTimeoutError(
                    f"No terminal status after {attempts} polls",
                    backend=adapter.backend.value,
                )
            if self._clock() >= deadline:
                raise GenerationTimeoutError(
                    f"No terminal status within {self.poll_timeout:.0f} seconds",
                    backend=adapter.backend.value,
                )

            await self._sleep(adapter.poll_interval)
            if token.canceled:
                return job

            job = await adapter.poll(job)
            attempts += 1
            if token.canceled:
                return job

            self._set_job(token, job)
            if adapter.is_terminal(job):
                logger.info(f"Job {job.id} reached {job.status.value} after {attempts} poll(s)")
                return job

            self._notify(token, self._waiting_message(label, job))

    async def _finish(self, adapter: BackendAdapter, job: GenerationJob, token: CancelToken) -> None:
        if job.status != JobStatus.SUCCEEDED:
            detail = job.error_message or f"Job {job.status.value.lower()}"
            raise VendorJobFailed(detail, backend=adapter.backend.value)

        url = adapter.extract_result(job)
        self._transition(token, ClientState.SUCCEEDED, "Generation complete! Loading 3D model...")

        await self.viewer.load_model(url, on_progress=lambda fraction: self._on_progress(token, fraction))
        self._notify(token, "Model loaded! Click and drag to rotate.")

    def _fail(self, token: CancelToken, error: GenerationError) -> None:
        logger.error(f"Generation failed in state {self.state.value}: {error}")
        self.error = error
        if self.job is not None and not self.job.is_terminal:
            self.job = self.job.model_copy(update={
                "status": JobStatus.FAILED,
                "error_message": str(error),
            })
        self._transition(token, ClientState.FAILED, error.user_message)

    def _abandoned(self, job: Optional[GenerationJob]) -> Optional[GenerationJob]:
        if job is not None and not job.is_terminal:
            return job.model_copy(update={"status": JobStatus.CANCELED})
        return job

    def _set_job(self, token: CancelToken, job: GenerationJob) -> None:
        if token.canceled:
            return
        if self.job is not None and self.job.is_terminal and not job.is_terminal:
            return
        self.job = job

    def _transition(self, token: CancelToken, state: ClientState, message: str) -> None:
        if token.canceled:
            return
        logger.info(f"{self.state.value} -> {state.value}: {message}")
        self.state = state
        self.status_message = message
        self._emit()

    def _notify(self, token: CancelToken, message: str) -> None:
        if token.canceled:
            return
        self.status_message = message
        self._emit()

    def _on_progress(self, token: CancelToken, fraction: float) -> None:
        if token.canceled:
            return
        self.load_progress = fraction
        # Listeners only hear about whole-percent steps
        percent = int(fraction * 100)
        if percent == self._progress_percent:
            return
        self._progress_percent = percent
        self._notify(token, f"Loading model... {fraction * 100:.2f}%")

    @staticmethod
    def _resolve_backend(backend: Optional[Backend], default: Backend) -> Backend:
        try:
            return Backend(backend or default)
        except ValueError as e:
            raise ConfigurationError(f"Unknown backend: {backend}") from e

    @staticmethod
    def _waiting_message(label: str, job: GenerationJob) -> str:
        status = job.raw_status or job.status.value.lower()
        return f"Waiting for {label}... (status: {status})"

    def _emit(self) -> None:
        if self.on_change is None:
            return
        try:
            self.on_change(self)
        except Exception as e:
            logger.error(f"Status listener failed: {e}")
