"""
Pytest configuration and shared fixtures for Gen3D tests
"""

import asyncio
from io import BytesIO
from typing import Any, Callable, Dict, List, Tuple, Union
from unittest.mock import AsyncMock, Mock

import pytest
import fakeredis
import httpx
import trimesh
from fastapi.testclient import TestClient
from PIL import Image

from gen3d.config import Settings
from gen3d.models.enums import Backend, JobStatus
from gen3d.models.generation import GenerationJob
from gen3d.services.viewer import ModelViewer


# =============================================================================
# Vendor HTTP Fixtures
# =============================================================================

Reply = Union[Dict[str, Any], Exception, Callable[[httpx.Request], httpx.Response]]


class MockVendor:
    """
    Scripted vendor endpoints served through httpx.MockTransport.

    Replies queued for a route are used in order; the last one repeats.
    Unrouted requests get a 404.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[Reply]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, url: str, status_code: int = 200, **kwargs: Any) -> "MockVendor":
        """Queue a reply; kwargs go to httpx.Response (json=, content=, headers=)"""
        self.routes.setdefault((method.upper(), url), []).append({"status_code": status_code, **kwargs})
        return self

    def add_error(self, method: str, url: str, error: Exception) -> "MockVendor":
        self.routes.setdefault((method.upper(), url), []).append(error)
        return self

    def add_handler(self, method: str, url: str, handler: Callable[[httpx.Request], httpx.Response]) -> "MockVendor":
        self.routes.setdefault((method.upper(), url), []).append(handler)
        return self

    def requests_to(self, url: str, method: str = None) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if str(r.url).split("?", 1)[0] == url and (method is None or r.method == method.upper())
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, str(request.url).split("?", 1)[0])
        queue = self.routes.get(key)
        if not queue:
            return httpx.Response(404, json={"detail": f"No route for {key}"})

        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        return httpx.Response(**reply)


@pytest.fixture
def vendor():
    """Scripted vendor endpoints"""
    return MockVendor()


@pytest.fixture
def http_client(vendor):
    """AsyncClient whose requests are answered by the scripted vendor"""
    return httpx.AsyncClient(transport=httpx.MockTransport(vendor.handler))


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def test_settings():
    """Settings with every backend configured and no .env lookup"""
    return Settings(
        _env_file=None,
        replicate_model_version="ver123",
        replicate_api_key="r8_server",
        meshy_api_key="msy_test",
        replicate_proxy_url="http://testserver/api/replicate-proxy",
        replicate_status_proxy_url="http://testserver/api/replicate-status",
    )


# =============================================================================
# Sleep / Clock Fixtures
# =============================================================================

class RecordingSleep:
    """Async sleep stand-in that records requested delays and yields once"""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


# =============================================================================
# Image / Model Fixtures
# =============================================================================

@pytest.fixture
def sample_image_bytes():
    """Create sample image bytes for testing"""
    img = Image.new("RGB", (100, 100), color="red")
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    buffer.seek(0)
    return buffer.getvalue()


@pytest.fixture
def sample_image_path(tmp_path, sample_image_bytes):
    """PNG file on disk"""
    path = tmp_path / "chair.png"
    path.write_bytes(sample_image_bytes)
    return path


@pytest.fixture
def sample_glb_bytes():
    """Binary glTF of a unit box (8 vertices, 12 faces)"""
    return trimesh.creation.box().export(file_type="glb")


@pytest.fixture
def model_url():
    return "https://cdn.test/models/chair.glb"


@pytest.fixture
def serve_model(vendor, model_url, sample_glb_bytes):
    """Route the asset URL to the sample GLB"""
    vendor.add("GET", model_url, content=sample_glb_bytes)
    return model_url


# =============================================================================
# Job Fixtures
# =============================================================================

@pytest.fixture
def make_job():
    """Factory for GenerationJob snapshots"""
    def _make(status: JobStatus = JobStatus.PENDING, backend: Backend = Backend.MESHY, **kwargs):
        defaults = {
            "id": "task-1",
            "poll_url": "https://vendor.test/jobs/task-1",
        }
        defaults.update(kwargs)
        return GenerationJob(backend=backend, status=status, **defaults)

    return _make


@pytest.fixture
def mock_viewer():
    """ModelViewer stand-in that records clear/load calls in order"""
    viewer = Mock(spec=ModelViewer)
    viewer.events = []

    def clear_model():
        viewer.events.append(("clear",))

    async def load_model(url, on_progress=None):
        viewer.events.append(("load", url))
        if on_progress:
            on_progress(0.5)
            on_progress(1.0)

    viewer.clear_model = Mock(side_effect=clear_model)
    viewer.load_model = AsyncMock(side_effect=load_model)
    viewer.summary = Mock(return_value=None)
    return viewer


# =============================================================================
# Redis Fixtures
# =============================================================================

@pytest.fixture
def fake_redis():
    """In-memory Redis for testing using fakeredis"""
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def mock_redis_connection(fake_redis, monkeypatch):
    """Patch redis.from_url to return fake_redis"""
    def mock_from_url(*args, **kwargs):
        return fake_redis

    monkeypatch.setattr("redis.from_url", mock_from_url)
    return fake_redis


@pytest.fixture
def mock_session_store(mock_redis_connection):
    """SessionStore instance with mocked Redis"""
    from gen3d.services.session_store import SessionStore
    store = SessionStore()
    store._redis = mock_redis_connection
    return store


# =============================================================================
# FastAPI Test Client Fixtures
# =============================================================================

@pytest.fixture
def client(vendor, http_client, mock_session_store, monkeypatch):
    """Test client with mocked dependencies"""
    from gen3d.main import app
    from gen3d.dependencies import (
        get_http_client,
        get_replicate_proxy,
        get_session_manager,
        get_session_store,
    )
    from gen3d.middleware.rate_limit import limiter
    from gen3d.services.proxy import ReplicateProxy
    from gen3d.services.sessions import SessionManager

    async def no_sleep(seconds):
        return None

    manager = SessionManager(sleep=no_sleep)
    proxy = ReplicateProxy(http_client, api_key="r8_server", api_url="https://api.replicate.test/v1/predictions")

    monkeypatch.setattr(limiter, "enabled", False)

    app.dependency_overrides[get_http_client] = lambda: http_client
    app.dependency_overrides[get_session_store] = lambda: mock_session_store
    app.dependency_overrides[get_session_manager] = lambda: manager
    app.dependency_overrides[get_replicate_proxy] = lambda: proxy

    test_client = TestClient(app)

    # Store mocks on the client for test access
    test_client.vendor = vendor
    test_client.mock_session_store = mock_session_store
    test_client.session_manager = manager
    test_client.proxy = proxy

    yield test_client

    # Cleanup
    app.dependency_overrides.clear()
