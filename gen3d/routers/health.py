"""
Health Router
Health check and status endpoints
"""

import logging
from typing import Dict, Any
from fastapi import APIRouter, Depends

from gen3d.models.responses import HealthResponse
from gen3d.services.adapters import configured_backends
from gen3d.services.session_store import SessionStore, get_session_store
from gen3d.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check API health including the session store and configured backends.",
)
async def health_check(
    store: SessionStore = Depends(get_session_store),
) -> HealthResponse:
    """
    Health check endpoint.

    Returns:
    - API status
    - Redis connection status
    - Which vendors have complete settings
    """
    redis_connected = store.health_check()

    return HealthResponse(
        status="healthy" if redis_connected else "degraded",
        version=settings.app_version,
        redis_connected=redis_connected,
        backends=configured_backends(settings),
    )


@router.get(
    "/",
    summary="Root endpoint",
    description="API information and available endpoints.",
)
async def root() -> Dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "endpoints": {
            "health": "/health",
            "docs": "/docs",
            "generate": "/api/v1/generate",
            "session": "/api/v1/generate/{session_id}",
            "proxy": f"/api/{settings.proxy_name}",
            "status_proxy": f"/api/{settings.status_proxy_name}",
        },
        "documentation": "/docs",
    }
