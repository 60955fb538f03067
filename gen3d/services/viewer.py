"""
Model Viewer
Holds the single loaded 3D model and its viewport
"""

import io
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlparse

import httpx
import trimesh

from gen3d.exceptions import ModelLoadError

logger = logging.getLogger(__name__)

# Formats trimesh can read from a byte stream
SUPPORTED_FORMATS = {"glb", "gltf", "obj", "ply", "stl", "off"}

ProgressCallback = Callable[[float], None]


class ModelViewer:
    """
    Downloads and parses generated assets into a ``trimesh.Scene``.

    At most one model is held at a time. ``clear_model`` releases it and
    invalidates any load still downloading, so a stale asset can never be
    installed over a newer request.
    """

    def __init__(self, http_client: httpx.AsyncClient, width: int = 1280, height: int = 720):
        self.http_client = http_client
        self.width = width
        self.height = height
        self.current_model: Optional[trimesh.Scene] = None
        self.model_url: Optional[str] = None
        self.model_bytes: Optional[bytes] = None
        self._generation = 0

    @property
    def aspect(self) -> float:
        return self.width / self.height if self.height else 1.0

    async def load_model(self, url: str, on_progress: Optional[ProgressCallback] = None) -> None:
        """
        Download ``url``, parse it and make it the current model.

        Args:
            url: Asset URL returned by the vendor
            on_progress: Called with the downloaded fraction (0.0-1.0)

        Raises:
            ModelLoadError on network or parse failure
        """
        generation = self._generation
        logger.info(f"Loading model from {url}")

        data = await self._download(url, on_progress)
        scene = self._parse(data, url)

        if generation != self._generation:
            logger.warning(f"Discarding model from {url}: viewer was cleared during the load")
            return

        self.clear_model()
        self.current_model = scene
        self.model_url = url
        self.model_bytes = data
        self._apply_viewport()
        logger.info(f"Model loaded: {self.summary()}")

    def clear_model(self) -> None:
        """Release the current model and invalidate in-flight loads"""
        self._generation += 1
        if self.current_model is not None:
            logger.debug(f"Clearing model {self.model_url}")
        self.current_model = None
        self.model_url = None
        self.model_bytes = None

    def on_resize(self, width: int, height: int) -> None:
        """Update the viewport size and the camera aspect"""
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid viewport size: {width}x{height}")
        self.width = width
        self.height = height
        self._apply_viewport()

    def summary(self) -> Optional[Dict[str, Any]]:
        """Geometry counts of the current model"""
        if self.current_model is None:
            return None

        vertices = 0
        faces = 0
        for geometry in self.current_model.geometry.values():
            vertices += len(getattr(geometry, "vertices", []))
            faces += len(getattr(geometry, "faces", []))

        return {
            "geometries": len(self.current_model.geometry),
            "vertices": vertices,
            "faces": faces,
        }

    def export(self, path: Path) -> Path:
        """Write the asset exactly as downloaded"""
        if self.model_bytes is None:
            raise ModelLoadError("No model loaded")
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.model_bytes)
        logger.info(f"Saved model to: {path}")
        return path

    async def _download(self, url: str, on_progress: Optional[ProgressCallback]) -> bytes:
        buffer = bytearray()
        try:
            async with self.http_client.stream("GET", url) as response:
                response.raise_for_status()
                total = int(response.headers.get("Content-Length") or 0)

                async for chunk in response.aiter_bytes():
                    buffer.extend(chunk)
                    if on_progress and total:
                        on_progress(min(len(buffer) / total, 1.0))
        except (httpx.HTTPError, ValueError) as e:
            raise ModelLoadError(f"Could not download model: {e}") from e

        if on_progress:
            on_progress(1.0)
        return bytes(buffer)

    @staticmethod
    def _file_type(url: str) -> str:
        suffix = Path(urlparse(url).path).suffix.lower().lstrip(".")
        return suffix if suffix in SUPPORTED_FORMATS else "glb"

    def _parse(self, data: bytes, url: str) -> trimesh.Scene:
        if not data:
            raise ModelLoadError(f"Empty model file: {url}")
        try:
            return trimesh.load(io.BytesIO(data), file_type=self._file_type(url), force="scene")
        except Exception as e:
            raise ModelLoadError(f"Could not parse model: {e}") from e

    def _apply_viewport(self) -> None:
        if self.current_model is not None and not self.current_model.is_empty:
            self.current_model.camera.resolution = (self.width, self.height)
