"""
Session Manager
One GenerationClient + ModelViewer pair per session, the server-side tab
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

import httpx

from gen3d.config import settings
from gen3d.models.enums import Backend
from gen3d.services.adapters import build_adapters
from gen3d.services.generation_client import GenerationClient
from gen3d.services.proxy import ReplicateProxy
from gen3d.services.session_store import SessionStore
from gen3d.services.viewer import ModelViewer

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Process-local registry of generation clients keyed by session id.

    A client only lives while a queued or running job holds it. Each
    ``acquire`` reserves the client for one run and each ``release`` gives
    that reservation back; when the last run finishes the client and its
    viewer are dropped and a later upload builds a fresh one.
    """

    def __init__(self, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self._clients: Dict[str, GenerationClient] = {}
        self._runs: Dict[str, int] = {}
        self._sleep = sleep

    def get(self, session_id: str) -> Optional[GenerationClient]:
        return self._clients.get(session_id)

    def acquire(
        self,
        session_id: str,
        http_client: httpx.AsyncClient,
        store: SessionStore,
        proxy: Optional[ReplicateProxy] = None,
    ) -> GenerationClient:
        """Reserve the session's client for one run, building it on first use"""
        client = self._clients.get(session_id)
        if client is None:
            client = GenerationClient(
                adapters=build_adapters(http_client, proxy=proxy),
                viewer=ModelViewer(http_client, settings.viewer_width, settings.viewer_height),
                default_backend=Backend(settings.default_backend),
                max_poll_attempts=settings.max_poll_attempts,
                poll_timeout=settings.poll_timeout_seconds,
                on_change=lambda c: store.record_client(session_id, c),
                sleep=self._sleep,
            )
            self._clients[session_id] = client
            logger.info(f"Created generation client for session {session_id}")
        self._runs[session_id] = self._runs.get(session_id, 0) + 1
        return client

    def release(self, session_id: str, client: GenerationClient) -> bool:
        """Give back one run's reservation; drop the client after the last one"""
        if self._clients.get(session_id) is not client:
            return False
        remaining = self._runs.get(session_id, 1) - 1
        if remaining > 0:
            self._runs[session_id] = remaining
            return False
        del self._clients[session_id]
        self._runs.pop(session_id, None)
        client.viewer.clear_model()
        logger.debug(f"Released generation client for session {session_id}")
        return True

    def remove(self, session_id: str) -> bool:
        client = self._clients.pop(session_id, None)
        self._runs.pop(session_id, None)
        if client is None:
            return False
        client.cancel()
        client.viewer.clear_model()
        return True

    def __len__(self) -> int:
        return len(self._clients)


async def run_generation(
    manager: SessionManager,
    session_id: str,
    client: GenerationClient,
    data: bytes,
    filename: Optional[str],
    backend: Backend,
) -> None:
    """Background entry point for one uploaded image"""
    try:
        job = await client.request(data, backend=backend, filename=filename)
        logger.info(
            f"Session generation finished: state={client.state.value}, "
            f"job={job.id if job else None}"
        )
    finally:
        manager.release(session_id, client)


# Global instance
_session_manager: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    """Get or create SessionManager instance"""
    global _session_manager
    if _session_manager is None:
        _session_manager = SessionManager()
    return _session_manager
