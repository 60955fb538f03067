"""API Routers package"""

from gen3d.routers.generate import router as generate_router
from gen3d.routers.proxy import router as proxy_router
from gen3d.routers.health import router as health_router

__all__ = ["generate_router", "proxy_router", "health_router"]
