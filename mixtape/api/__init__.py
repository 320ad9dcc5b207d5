"""API routers for Mixtape."""

from mixtape.api.routes_health import router as health_router
from mixtape.api.routes_podcasts import router as podcasts_router
from mixtape.api.routes_queue import router as queue_router
from mixtape.api.routes_sources import router as sources_router
from mixtape.api.routes_updates import router as updates_router

__all__ = [
    "health_router",
    "sources_router",
    "podcasts_router",
    "updates_router",
    "queue_router",
]
