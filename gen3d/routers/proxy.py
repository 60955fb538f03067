"""
Proxy Router
Server-side relay that keeps the Replicate credential out of the client
"""

import logging
from typing import Any

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from gen3d.config import settings
from gen3d.dependencies import get_replicate_proxy
from gen3d.exceptions import ConfigurationError
from gen3d.middleware.rate_limit import limiter
from gen3d.services.proxy import CORS_HEADERS, ReplicateProxy

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Proxy"])

# Every method is routed here so that anything but POST gets a 405
ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def _json(status_code: int, content: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=CORS_HEADERS)


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as e:
        raise ValueError(f"Proxy error: invalid JSON body ({e})") from e


@router.api_route(
    f"/{settings.proxy_name}",
    methods=ALL_METHODS,
    summary="Create a Replicate prediction",
    description="Forwards the JSON body verbatim to Replicate with the server-side API key attached.",
)
@limiter.limit(settings.rate_limit_proxy)
async def replicate_proxy(
    request: Request,
    proxy: ReplicateProxy = Depends(get_replicate_proxy),
) -> Response:
    """
    Relay a prediction creation call.

    The vendor's status code and JSON body are returned unchanged with
    permissive CORS headers.
    """
    if request.method != "POST":
        return PlainTextResponse("Method Not Allowed", status_code=405)

    try:
        proxy.ensure_configured()
        body = await _read_json(request)
        status_code, data = await proxy.create_prediction(body)
    except ConfigurationError as e:
        return _json(500, {"detail": e.detail})
    except ValueError as e:
        logger.error(f"Proxy function error: {e}")
        return _json(500, {"detail": str(e)})
    except httpx.HTTPError as e:
        logger.error(f"Proxy function error: {e}")
        return _json(500, {"detail": f"Proxy error: {e}"})

    if status_code >= 400:
        logger.warning(f"Replicate rejected prediction: {status_code}")
    return _json(status_code, data)


@router.api_route(
    f"/{settings.status_proxy_name}",
    methods=ALL_METHODS,
    summary="Fetch a Replicate prediction",
    description="Looks up a prediction by id with the server-side API key, for clients that hold no credential.",
)
@limiter.limit(settings.rate_limit_default)
async def replicate_status(
    request: Request,
    proxy: ReplicateProxy = Depends(get_replicate_proxy),
) -> Response:
    """Relay a prediction status check. Body: ``{"id": "<prediction id>"}``"""
    if request.method != "POST":
        return PlainTextResponse("Method Not Allowed", status_code=405)

    try:
        proxy.ensure_configured()
        body = await _read_json(request)
    except ConfigurationError as e:
        return _json(500, {"detail": e.detail})
    except ValueError as e:
        return _json(500, {"detail": str(e)})

    prediction_id = body.get("id") if isinstance(body, dict) else None
    try:
        status_code, data = await proxy.get_prediction(prediction_id)
    except ValueError as e:
        return _json(400, {"detail": str(e)})
    except httpx.HTTPError as e:
        logger.error(f"Status relay error: {e}")
        return _json(500, {"detail": f"Proxy error: {e}"})

    return _json(status_code, data)
