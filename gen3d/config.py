"""
Gen3D Configuration using Pydantic Settings
"""

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List, Optional
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # App Settings
    app_name: str = "Gen3D"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    default_backend: str = Field(
        default="gradio",
        description="Backend used when a request does not name one: gradio, replicate or meshy"
    )

    # Gradio demo (synchronous)
    gradio_endpoint: str = "https://gdtharusha-3d-modle-generator.hf.space/--replicas/v48hg/run/predict"
    gradio_inference_steps: int = 0
    gradio_denoising_steps: int = 20
    gradio_result_extension: str = ".glb"

    # Replicate
    replicate_api_url: str = "https://api.replicate.com/v1/predictions"
    replicate_model_version: Optional[str] = None
    replicate_proxy_url: str = "http://localhost:8000/api/replicate-proxy"
    replicate_status_proxy_url: str = "http://localhost:8000/api/replicate-status"
    replicate_api_key: Optional[str] = Field(
        default=None,
        description="Server-side secret used by the proxy endpoints only"
    )
    replicate_client_token: Optional[str] = Field(
        default=None,
        description="Opt-in token for polling Replicate directly instead of through the status relay"
    )
    replicate_poll_interval: float = 3.0

    # Meshy
    meshy_endpoint: str = "https://api.meshy.ai/openapi/v1/image-to-3d"
    meshy_api_key: Optional[str] = None
    meshy_encoding: str = Field(default="data_uri", description="data_uri (JSON body) or multipart")
    meshy_poll_interval: float = 5.0

    # Polling limits
    max_poll_attempts: int = 120
    poll_timeout_seconds: float = 900.0
    http_timeout: float = 60.0

    # Viewer
    viewer_width: int = 1280
    viewer_height: int = 720

    # Session store
    redis_url: str = "redis://localhost:6379/0"
    session_ttl_hours: int = 24

    # Proxy
    proxy_name: str = "replicate-proxy"
    status_proxy_name: str = "replicate-status"

    # Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_default: str = "60/minute"
    rate_limit_proxy: str = "30/minute"

    # CORS Settings
    cors_origins: str = "*"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins"""
        if self.cors_origins == "*":
            return ["*"]
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def session_ttl_seconds(self) -> int:
        """Convert hours to seconds"""
        return self.session_ttl_hours * 3600


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Convenience alias
settings = get_settings()
