"""API routers."""
from autoblog.routers.health_router import router as health_router
from autoblog.routers.queue_router import router as queue_router

__all__ = [
    "health_router",
    "queue_router",
]
