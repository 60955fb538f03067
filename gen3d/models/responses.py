"""
Response models for API endpoints
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime
from gen3d.models.enums import Backend, ClientState, JobStatus


class SessionResponse(BaseModel):
    """Response when a generation request is accepted"""
    session_id: str = Field(..., description="Session handle, reuse it to supersede the job")
    backend: Backend = Field(..., description="Vendor the image is sent to")
    state: ClientState = Field(..., description="Client state when the request was accepted")
    message: Optional[str] = Field(None, description="Human-readable status message")

    class Config:
        json_schema_extra = {
            "example": {
                "session_id": "550e8400-e29b-41d4-a716-446655440000",
                "backend": "meshy",
                "state": "idle",
                "message": "Queued for generation",
            }
        }


class SessionStatusResponse(BaseModel):
    """Detailed session status response"""
    session_id: str = Field(..., description="Session handle")
    backend: Backend = Field(..., description="Vendor of the current job")
    state: ClientState = Field(..., description="Generation client state")
    message: Optional[str] = Field(None, description="Latest user-visible status message")
    job_id: Optional[str] = Field(None, description="Vendor job id")
    job_status: Optional[JobStatus] = Field(None, description="Vendor job status")
    result_url: Optional[str] = Field(None, description="Asset URL once the job succeeded")
    error: Optional[str] = Field(None, description="Error kind and detail if the job failed")
    load_progress: Optional[float] = Field(
        None,
        ge=0.0,
        le=1.0,
        description="Fraction of the model downloaded by the viewer"
    )
    model: Optional[Dict[str, Any]] = Field(None, description="Summary of the loaded model")
    created_at: datetime = Field(..., description="Timestamp when the session was created")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")
    completed_at: Optional[datetime] = Field(None, description="Timestamp of the last terminal state")

    class Config:
        json_schema_extra = {
            "example": {
                "session_id": "550e8400-e29b-41d4-a716-446655440000",
                "backend": "meshy",
                "state": "succeeded",
                "message": "Model loaded! Click and drag to rotate.",
                "job_id": "018a210d-8ba4-705c-b111-1f1776f7f578",
                "job_status": "SUCCEEDED",
                "result_url": "https://assets.meshy.ai/tasks/model.glb",
                "error": None,
                "load_progress": 1.0,
                "model": {"geometries": 1, "vertices": 24, "faces": 12},
                "created_at": "2024-02-15T10:30:00Z",
                "updated_at": "2024-02-15T10:31:45Z",
                "completed_at": "2024-02-15T10:31:45Z",
            }
        }


class HealthResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    redis_connected: bool = Field(..., description="Session store connection status")
    backends: Dict[str, bool] = Field(..., description="Which vendors are configured")

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "version": "1.0.0",
                "redis_connected": True,
                "backends": {"gradio": True, "replicate": False, "meshy": True},
            }
        }


class ErrorResponse(BaseModel):
    """Error response"""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")

    class Config:
        json_schema_extra = {
            "example": {
                "error": "ConfigurationError",
                "message": "Meshy backend is not configured",
                "detail": "Set MESHY_API_KEY",
            }
        }
