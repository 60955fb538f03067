"""
FastAPI Dependencies
"""

from typing import Optional

import httpx
from fastapi import Depends

from gen3d.config import settings
from gen3d.services.proxy import ReplicateProxy
from gen3d.services.session_store import SessionStore, get_session_store
from gen3d.services.sessions import SessionManager, get_session_manager

__all__ = [
    "get_http_client",
    "close_http_client",
    "get_replicate_proxy",
    "get_session_store",
    "get_session_manager",
]

# Shared outbound client, closed on application shutdown
_http_client: Optional[httpx.AsyncClient] = None


def get_http_client() -> httpx.AsyncClient:
    """Get or create the shared outbound HTTP client"""
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.http_timeout),
            follow_redirects=True,
        )
    return _http_client


async def close_http_client() -> None:
    """Release the shared outbound HTTP client"""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


def get_replicate_proxy(
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> ReplicateProxy:
    """Proxy bound to the shared client and the current server secret"""
    return ReplicateProxy(http_client)
