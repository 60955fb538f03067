"""
Tests for the per-session client registry
"""

import pytest

from gen3d.config import settings
from gen3d.models.enums import Backend
from gen3d.services.sessions import SessionManager, run_generation


@pytest.fixture
def manager():
    async def no_sleep(seconds):
        return None

    return SessionManager(sleep=no_sleep)


class TestAcquireRelease:
    """Tests for client reservations"""

    def test_acquire_reuses_client(self, manager, http_client, mock_session_store):
        first = manager.acquire("sess-1", http_client, mock_session_store)
        second = manager.acquire("sess-1", http_client, mock_session_store)

        assert first is second
        assert len(manager) == 1

    def test_release_drops_client(self, manager, http_client, mock_session_store):
        client = manager.acquire("sess-1", http_client, mock_session_store)

        assert manager.release("sess-1", client) is True
        assert manager.get("sess-1") is None
        assert len(manager) == 0

    def test_release_waits_for_queued_run(self, manager, http_client, mock_session_store):
        """Test that a superseded run does not drop the client a newer upload is queued on"""
        client = manager.acquire("sess-1", http_client, mock_session_store)
        manager.acquire("sess-1", http_client, mock_session_store)

        assert manager.release("sess-1", client) is False
        assert manager.get("sess-1") is client

        assert manager.release("sess-1", client) is True
        assert len(manager) == 0

    def test_release_ignores_replaced_client(self, manager, http_client, mock_session_store):
        old = manager.acquire("sess-1", http_client, mock_session_store)
        manager.remove("sess-1")
        new = manager.acquire("sess-1", http_client, mock_session_store)

        assert manager.release("sess-1", old) is False
        assert manager.get("sess-1") is new

    def test_remove(self, manager, http_client, mock_session_store):
        manager.acquire("sess-1", http_client, mock_session_store)

        assert manager.remove("sess-1") is True
        assert manager.remove("sess-1") is False
        assert len(manager) == 0


class TestRunGeneration:
    """Tests for the background entry point"""

    @pytest.mark.asyncio
    async def test_releases_after_failure(self, manager, http_client, vendor, mock_session_store,
                                          sample_image_bytes):
        vendor.add("POST", settings.gradio_endpoint, status_code=503, text="Service Unavailable")
        mock_session_store.create_session("sess-1", Backend.GRADIO)
        client = manager.acquire("sess-1", http_client, mock_session_store)

        await run_generation(manager, "sess-1", client, sample_image_bytes, "chair.png", Backend.GRADIO)

        assert len(manager) == 0
        assert mock_session_store.get_session("sess-1")["state"] == "failed"
