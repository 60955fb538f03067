"""
Backend Adapters
Vendor selection through configuration
"""

import logging
from typing import Dict, Optional

import httpx

from gen3d.config import Settings, settings as default_settings
from gen3d.exceptions import ConfigurationError
from gen3d.models.enums import Backend, ImageEncoding
from gen3d.services.adapters.base import AdapterConfig, BackendAdapter
from gen3d.services.adapters.gradio import GradioAdapter
from gen3d.services.adapters.meshy import MeshyAdapter
from gen3d.services.adapters.replicate import ReplicateAdapter
from gen3d.services.proxy import ReplicateProxy

logger = logging.getLogger(__name__)

__all__ = [
    "AdapterConfig",
    "BackendAdapter",
    "GradioAdapter",
    "MeshyAdapter",
    "ReplicateAdapter",
    "build_adapter",
    "build_adapters",
    "configured_backends",
]


def _missing(backend: Backend, settings: Settings) -> Optional[str]:
    """Name of the first required setting a backend lacks, if any"""
    if backend == Backend.REPLICATE and not settings.replicate_model_version:
        return "REPLICATE_MODEL_VERSION"
    if backend == Backend.MESHY and not settings.meshy_api_key:
        return "MESHY_API_KEY"
    return None


def configured_backends(settings: Optional[Settings] = None) -> Dict[str, bool]:
    """Map of backend name to whether its settings are complete"""
    settings = settings or default_settings
    return {backend.value: _missing(backend, settings) is None for backend in Backend}


def build_adapter(
    backend: Backend,
    http_client: httpx.AsyncClient,
    settings: Optional[Settings] = None,
    proxy: Optional[ReplicateProxy] = None,
) -> BackendAdapter:
    """
    Build the adapter for ``backend`` from settings.

    A configured ``proxy`` routes Replicate calls through it in process
    instead of over HTTP to the proxy and status relay endpoints.

    Raises:
        ConfigurationError if a required credential or version is unset
    """
    settings = settings or default_settings
    backend = Backend(backend)

    missing = _missing(backend, settings)
    if missing:
        raise ConfigurationError(f"{backend.value} backend is not configured: set {missing}", backend=backend.value)

    if backend == Backend.GRADIO:
        config = AdapterConfig(
            backend=backend,
            endpoint=settings.gradio_endpoint,
            poll_interval=0.0,
            result_extension=settings.gradio_result_extension,
        )
        return GradioAdapter(
            config,
            http_client,
            inference_steps=settings.gradio_inference_steps,
            denoising_steps=settings.gradio_denoising_steps,
        )

    elif backend == Backend.REPLICATE:
        config = AdapterConfig(
            backend=backend,
            endpoint=settings.replicate_proxy_url,
            auth_scheme="Token",
            api_key=settings.replicate_client_token,
            poll_interval=settings.replicate_poll_interval,
            status_endpoint=settings.replicate_status_proxy_url,
        )
        if proxy is not None and not proxy.api_key:
            proxy = None
        return ReplicateAdapter(config, http_client, model_version=settings.replicate_model_version, proxy=proxy)

    elif backend == Backend.MESHY:
        config = AdapterConfig(
            backend=backend,
            endpoint=settings.meshy_endpoint,
            auth_scheme="Bearer",
            api_key=settings.meshy_api_key,
            poll_interval=settings.meshy_poll_interval,
            encoding=ImageEncoding(settings.meshy_encoding),
        )
        return MeshyAdapter(config, http_client)

    else:
        raise ValueError(f"Unknown backend: {backend}")


def build_adapters(
    http_client: httpx.AsyncClient,
    settings: Optional[Settings] = None,
    proxy: Optional[ReplicateProxy] = None,
) -> Dict[Backend, BackendAdapter]:
    """Build every backend whose settings are complete"""
    settings = settings or default_settings
    adapters = {}
    for backend in Backend:
        try:
            adapters[backend] = build_adapter(backend, http_client, settings, proxy=proxy)
        except ConfigurationError as e:
            logger.info(f"Skipping backend: {e}")
    return adapters
