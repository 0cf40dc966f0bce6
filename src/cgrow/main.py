"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from cgrow.config import get_settings
from cgrow.database import close_db, get_session_factory, init_db
from cgrow.health.router import router as health_router
from cgrow.leaderboard.ranking_scheduler import close_scheduler, init_scheduler
from cgrow.leaderboard.router import router as leaderboard_router
from cgrow.leaderboard.seed import seed_achievements
from cgrow.middleware import setup_middleware
from cgrow.redis_client import close_redis, get_redis, init_redis

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    # Seed the default achievement catalog (idempotent)
    try:
        async with get_session_factory()() as db:
            await seed_achievements(db)
    except Exception:
        logger.warning("Achievement seeding failed (tables may not exist yet)", exc_info=True)

    if settings.ranking_mode == "deferred":
        init_scheduler(
            get_session_factory(),
            get_redis(),
            period_field=settings.ranking_period_field,
            min_interval_seconds=settings.ranking_min_interval_seconds,
            lock_timeout_seconds=settings.ranking_lock_timeout_seconds,
        )

    yield

    try:
        await close_scheduler()
    finally:
        await close_db()
        await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="CompanyGrow Leaderboard API",
        description="Points ledger, achievements and leaderboard rankings for CompanyGrow",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(leaderboard_router)

    return app


app = create_app()
