"""
Tests for SessionStore service
"""

import json
from datetime import datetime
from unittest.mock import Mock

import pytest

from gen3d.exceptions import SubmissionError
from gen3d.models.enums import Backend, ClientState, JobStatus


class TestSessionStoreCreate:
    """Tests for session creation"""

    def test_create_session_success(self, mock_session_store):
        """Test creating a session with valid params"""
        data = mock_session_store.create_session("sess-123", Backend.MESHY, filename="chair.png")

        assert data["session_id"] == "sess-123"
        assert data["backend"] == "meshy"
        assert data["state"] == "idle"
        assert data["filename"] == "chair.png"
        assert data["job_id"] is None
        assert data["completed_at"] is None
        datetime.fromisoformat(data["created_at"])

    def test_create_session_stores_in_redis(self, mock_session_store, mock_redis_connection):
        """Test that the session is stored in Redis with a TTL"""
        mock_session_store.create_session("sess-store", Backend.GRADIO)

        stored = mock_redis_connection.get("session:sess-store")
        assert json.loads(stored)["session_id"] == "sess-store"
        assert 0 < mock_redis_connection.ttl("session:sess-store") <= mock_session_store.ttl


class TestSessionStoreGet:
    """Tests for session retrieval"""

    def test_get_existing(self, mock_session_store):
        mock_session_store.create_session("sess-get", Backend.REPLICATE)

        assert mock_session_store.get_session("sess-get")["backend"] == "replicate"

    def test_get_missing(self, mock_session_store):
        assert mock_session_store.get_session("nope") is None


class TestSessionStoreUpdate:
    """Tests for session updates"""

    def test_update_fields(self, mock_session_store):
        mock_session_store.create_session("sess-up", Backend.MESHY)

        data = mock_session_store.update_session("sess-up", state="polling", message="Waiting for Meshy...")

        assert data["state"] == "polling"
        assert data["message"] == "Waiting for Meshy..."
        assert data["completed_at"] is None

    def test_terminal_state_sets_completed_at(self, mock_session_store):
        mock_session_store.create_session("sess-done", Backend.MESHY)

        data = mock_session_store.update_session("sess-done", state="succeeded")

        assert data["completed_at"] is not None

    def test_leaving_terminal_state_resets_completed_at(self, mock_session_store):
        mock_session_store.create_session("sess-again", Backend.MESHY)
        mock_session_store.update_session("sess-again", state="failed")

        data = mock_session_store.update_session("sess-again", state="encoding")

        assert data["completed_at"] is None

    def test_update_missing(self, mock_session_store):
        assert mock_session_store.update_session("ghost", state="polling") is None


class TestRecordClient:
    """Tests for snapshotting a GenerationClient"""

    def test_record_client(self, mock_session_store, make_job):
        mock_session_store.create_session("sess-rec", Backend.GRADIO)
        client = Mock()
        client.backend = Backend.MESHY
        client.state = ClientState.FAILED
        client.status_message = "Error: SubmissionError: [meshy] HTTP 401 - bad key"
        client.job = make_job(JobStatus.FAILED, id="task-7")
        client.error = SubmissionError("bad key", backend="meshy", status_code=401)
        client.load_progress = None
        client.viewer.summary.return_value = None

        data = mock_session_store.record_client("sess-rec", client)

        assert data["backend"] == "meshy"
        assert data["state"] == "failed"
        assert data["job_id"] == "task-7"
        assert data["job_status"] == "FAILED"
        assert data["error"] == client.status_message
        assert data["completed_at"] is not None

    def test_record_client_without_job(self, mock_session_store):
        mock_session_store.create_session("sess-idle", Backend.GRADIO)
        client = Mock()
        client.backend = None
        client.state = ClientState.IDLE
        client.status_message = "Error: Please select an image file first."
        client.job = None
        client.error = None
        client.load_progress = None
        client.viewer.summary.return_value = None

        data = mock_session_store.record_client("sess-idle", client)

        assert data["backend"] == "gradio"
        assert data["job_id"] is None
        assert data["message"] == client.status_message


class TestSessionStoreDelete:
    """Tests for session deletion"""

    def test_delete_session(self, mock_session_store):
        mock_session_store.create_session("sess-del", Backend.GRADIO)

        assert mock_session_store.delete_session("sess-del") is True
        assert mock_session_store.get_session("sess-del") is None

    def test_delete_missing(self, mock_session_store):
        assert mock_session_store.delete_session("ghost") is False


class TestHealthCheck:
    """Tests for Redis health checks"""

    def test_healthy(self, mock_session_store):
        assert mock_session_store.health_check() is True

    def test_unhealthy(self, mock_session_store):
        mock_session_store._redis = Mock()
        mock_session_store._redis.ping.side_effect = ConnectionError("refused")

        assert mock_session_store.health_check() is False
