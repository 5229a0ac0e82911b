"""FastAPI application factory."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from goldticket.admin.router import router as admin_router
from goldticket.auth.router import router as auth_router
from goldticket.config import get_settings
from goldticket.coupons.router import router as coupons_router
from goldticket.database import close_db, create_schema, get_session_factory, init_db
from goldticket.game.router import router as game_router
from goldticket.health.router import router as health_router
from goldticket.middleware import setup_middleware
from goldticket.redis_client import close_redis, init_redis
from goldticket.shop.router import router as shop_router
from goldticket.shop.seed import seed_shop_items
from goldticket.signs.pruner import SignPruner
from goldticket.signs.router import router as signs_router
from goldticket.stats.router import router as stats_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    if settings.database_url.startswith("sqlite"):
        await create_schema()

    # Seed the shop catalog (idempotent)
    try:
        async with get_session_factory()() as db:
            await seed_shop_items(db)
    except SQLAlchemyError:
        logger.warning("shop_seed_failed", exc_info=True)

    pruner = SignPruner(settings.sign_prune_interval_seconds)
    pruner_task = asyncio.create_task(pruner.start())

    yield

    await pruner.stop()
    pruner_task.cancel()
    try:
        await pruner_task
    except asyncio.CancelledError:
        pass

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Gold Ticket API",
        description="Backend API for Gold Ticket, a location-based coupon treasure hunt",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(coupons_router)
    app.include_router(stats_router)
    app.include_router(game_router)
    app.include_router(shop_router)
    app.include_router(signs_router)
    app.include_router(admin_router)

    return app


app = create_app()
