"""Pydantic models package"""

from gen3d.models.enums import Backend, ClientState, ImageEncoding, JobStatus, TERMINAL_STATUSES
from gen3d.models.generation import EncodedImage, GenerationJob, GenerationRequest
from gen3d.models.responses import (
    SessionResponse,
    SessionStatusResponse,
    HealthResponse,
    ErrorResponse,
)

__all__ = [
    "Backend",
    "ClientState",
    "ImageEncoding",
    "JobStatus",
    "TERMINAL_STATUSES",
    "EncodedImage",
    "GenerationJob",
    "GenerationRequest",
    "SessionResponse",
    "SessionStatusResponse",
    "HealthResponse",
    "ErrorResponse",
]
