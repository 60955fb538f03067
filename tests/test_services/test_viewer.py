"""
Tests for ModelViewer
"""

import httpx
import pytest
import trimesh

from gen3d.exceptions import ModelLoadError
from gen3d.services.viewer import ModelViewer


@pytest.fixture
def viewer(http_client):
    return ModelViewer(http_client, width=800, height=600)


class TestLoadModel:
    """Tests for downloading and parsing assets"""

    @pytest.mark.asyncio
    async def test_load_glb(self, viewer, serve_model, sample_glb_bytes):
        await viewer.load_model(serve_model)

        assert isinstance(viewer.current_model, trimesh.Scene)
        assert viewer.model_url == serve_model
        assert viewer.model_bytes == sample_glb_bytes
        summary = viewer.summary()
        assert summary["geometries"] == 1
        assert summary["faces"] == 12
        assert summary["vertices"] > 0

    @pytest.mark.asyncio
    async def test_progress_reported(self, viewer, serve_model):
        progress = []

        await viewer.load_model(serve_model, on_progress=progress.append)

        assert progress
        assert progress[-1] == 1.0
        assert all(0.0 <= p <= 1.0 for p in progress)
        assert progress == sorted(progress)

    @pytest.mark.asyncio
    async def test_viewport_applied(self, viewer, serve_model):
        await viewer.load_model(serve_model)

        assert tuple(viewer.current_model.camera.resolution) == (800, 600)

    @pytest.mark.asyncio
    async def test_new_model_replaces_old(self, viewer, vendor, serve_model, sample_glb_bytes):
        other = "https://cdn.test/models/table.glb"
        vendor.add("GET", other, content=trimesh.creation.icosphere().export(file_type="glb"))

        await viewer.load_model(serve_model)
        await viewer.load_model(other)

        assert viewer.model_url == other
        assert viewer.model_bytes != sample_glb_bytes

    @pytest.mark.asyncio
    async def test_http_error(self, viewer, vendor):
        vendor.add("GET", "https://cdn.test/models/gone.glb", status_code=404)

        with pytest.raises(ModelLoadError) as exc_info:
            await viewer.load_model("https://cdn.test/models/gone.glb")

        assert "Could not download model" in str(exc_info.value)
        assert viewer.current_model is None

    @pytest.mark.asyncio
    async def test_transport_error(self, viewer, vendor):
        vendor.add_error("GET", "https://cdn.test/models/slow.glb", httpx.ConnectTimeout("timed out"))

        with pytest.raises(ModelLoadError):
            await viewer.load_model("https://cdn.test/models/slow.glb")

    @pytest.mark.asyncio
    async def test_empty_file(self, viewer, vendor):
        vendor.add("GET", "https://cdn.test/models/empty.glb", content=b"")

        with pytest.raises(ModelLoadError) as exc_info:
            await viewer.load_model("https://cdn.test/models/empty.glb")

        assert "Empty model file" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_corrupt_file(self, viewer, vendor):
        vendor.add("GET", "https://cdn.test/models/bad.glb", content=b"glTF this is not a real binary")

        with pytest.raises(ModelLoadError) as exc_info:
            await viewer.load_model("https://cdn.test/models/bad.glb")

        assert "Could not parse model" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_clear_during_load_discards_result(self, viewer, vendor, sample_glb_bytes):
        """Test that a load invalidated mid-download never installs its model"""
        url = "https://cdn.test/models/stale.glb"

        def respond(request):
            viewer.clear_model()
            return httpx.Response(200, content=sample_glb_bytes)

        vendor.add_handler("GET", url, respond)

        await viewer.load_model(url)

        assert viewer.current_model is None
        assert viewer.model_url is None


class TestViewerState:
    """Tests for clearing, resizing and exporting"""

    @pytest.mark.asyncio
    async def test_clear_model(self, viewer, serve_model):
        await viewer.load_model(serve_model)

        viewer.clear_model()

        assert viewer.current_model is None
        assert viewer.model_bytes is None
        assert viewer.summary() is None

    @pytest.mark.asyncio
    async def test_resize_updates_camera(self, viewer, serve_model):
        await viewer.load_model(serve_model)

        viewer.on_resize(1024, 512)

        assert viewer.aspect == 2.0
        assert tuple(viewer.current_model.camera.resolution) == (1024, 512)

    def test_resize_without_model(self, viewer):
        viewer.on_resize(640, 480)

        assert (viewer.width, viewer.height) == (640, 480)

    @pytest.mark.parametrize("width,height", [(0, 600), (800, 0), (-1, -1)])
    def test_resize_rejects_invalid_size(self, viewer, width, height):
        with pytest.raises(ValueError):
            viewer.on_resize(width, height)

    @pytest.mark.asyncio
    async def test_export(self, viewer, serve_model, sample_glb_bytes, tmp_path):
        await viewer.load_model(serve_model)

        path = viewer.export(tmp_path / "out" / "chair.glb")

        assert path.read_bytes() == sample_glb_bytes

    def test_export_without_model(self, viewer, tmp_path):
        with pytest.raises(ModelLoadError):
            viewer.export(tmp_path / "chair.glb")

    @pytest.mark.parametrize("url,expected", [
        ("https://a/model.glb", "glb"),
        ("https://a/model.OBJ?sig=1", "obj"),
        ("https://a/file=/tmp/model", "glb"),
        ("https://a/model.fbx", "glb"),
    ])
    def test_file_type(self, url, expected):
        assert ModelViewer._file_type(url) == expected
