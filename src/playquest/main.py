"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from playquest.challenges.router import router as challenges_router
from playquest.config import get_settings
from playquest.database import close_db, get_session, init_db
from playquest.gamification.router import router as gamification_router
from playquest.gamification.seed import seed_catalogs
from playquest.games.router import router as games_router
from playquest.health.router import router as health_router
from playquest.ledger.router import router as ledger_router
from playquest.middleware import setup_middleware
from playquest.redis_client import close_redis, init_redis

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    if settings.seed_catalogs_on_startup:
        try:
            async for db in get_session():
                await seed_catalogs(db)
                break
        except Exception:
            logger.warning("Catalog seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="PlayQuest Progression API",
        description="PlayCoins, XP, streaks, achievements and challenges for the learning platform",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(ledger_router)
    app.include_router(gamification_router)
    app.include_router(challenges_router)
    app.include_router(games_router)

    return app


app = create_app()
