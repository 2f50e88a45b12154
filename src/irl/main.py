"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from irl.auth.router import router as auth_router
from irl.config import get_settings
from irl.database import close_db, get_session, init_db
from irl.gamification.router import router as gamification_router
from irl.gamification.seed import seed_gamification
from irl.groups.router import router as groups_router
from irl.health.router import router as health_router
from irl.interests.router import router as interests_router
from irl.invitations.router import router as invitations_router
from irl.middleware import setup_middleware
from irl.persons.router import router as persons_router
from irl.redis_client import close_redis, init_redis

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    if settings.seed_on_startup:
        # Idempotent; tables may not exist yet on a fresh database
        try:
            async for db in get_session():
                await seed_gamification(db)
                break
        except SQLAlchemyError:
            logger.warning("Gamification seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="IRL API",
        description="Backend API for IRL, a community directory with achievements",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(persons_router)
    app.include_router(groups_router)
    app.include_router(interests_router)
    app.include_router(invitations_router)
    app.include_router(gamification_router)

    return app


app = create_app()
