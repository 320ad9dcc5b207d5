"""Mixtape - Main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from mixtape.api import (
    health_router,
    podcasts_router,
    queue_router,
    sources_router,
    updates_router,
)
from mixtape.api.errors import register_error_handlers
from mixtape.config import get_settings
from mixtape.db import dispose_engine, get_sessionmaker, init_db
from mixtape.logging import setup_logging
from mixtape.models import MediaSourceType
from mixtape.playback import PlaybackQueue
from mixtape.rss.store import FeedStore
from mixtape.sources import build_sources
from mixtape.updates.scheduler import UpdateScheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    settings = get_settings()
    setup_logging()
    if not await init_db():
        logger.warning("Update entries are unavailable until the database is reachable")

    redis = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=False)
    store = FeedStore(redis)

    sources = build_sources(settings, feed_store=store)
    podcasts = sources[MediaSourceType.PODCAST]
    podcasts.restore_feeds(await store.load_all())

    queue = PlaybackQueue()
    scheduler = UpdateScheduler(
        sources,
        queue,
        get_sessionmaker(),
        check_timeout=settings.update_check_timeout_seconds,
    )
    await scheduler.load()

    app.state.sources = sources
    app.state.queue = queue
    app.state.scheduler = scheduler
    logger.info("Mixtape started")

    yield

    # Shutdown
    await scheduler.stop()
    await redis.aclose()
    await dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Mixtape",
        description="One playback queue over Spotify, YouTube and podcast feeds",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Configure rate limiting
    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(sources_router)
    app.include_router(podcasts_router)
    app.include_router(updates_router)
    app.include_router(queue_router)

    return app


app = create_app()


def main():
    """Entry point for running the application."""
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()
