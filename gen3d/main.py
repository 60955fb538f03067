"""
Gen3D API Server
Replicate proxy and image-to-3D generation sessions
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from gen3d.config import settings
from gen3d.dependencies import close_http_client
from gen3d.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from gen3d.routers import generate_router, health_router, proxy_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    if not settings.replicate_api_key:
        logger.warning("REPLICATE_API_KEY is not set; the proxy endpoints will answer 500")
    yield
    await close_http_client()
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    description="""
## Image to 3D Generation API

- **Generate**: upload an image to a Gradio demo, Replicate or Meshy and
  follow the job until the model is loaded
- **Proxy**: relay Replicate calls with the server-side API key attached

### Usage
1. POST your image to `/api/v1/generate`
2. Poll `/api/v1/generate/{session_id}` until the state is `succeeded` or `failed`
3. Fetch the model from `result_url`
    """,
    version=settings.app_version,
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.cors_origins != "*",
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(proxy_router)
app.include_router(generate_router, prefix="/api/v1")


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler"""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "message": str(exc),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("gen3d.main:app", host="0.0.0.0", port=8000)
