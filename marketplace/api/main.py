"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marketplace.api.error_handlers import register_error_handlers
from marketplace.api.routes import admin, health, listings, transactions
from marketplace.config import settings
from marketplace.infrastructure.database.connection import engine
from marketplace.logging_config import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging(settings.log_level, json=settings.log_json)
    logger.info(
        "marketplace_starting",
        transaction_uniqueness=settings.transaction_uniqueness.value,
        notifier_backend=settings.notifier_backend.value,
        event_publishing_enabled=settings.event_publishing_enabled,
    )
    yield
    await engine.dispose()
    logger.info("marketplace_stopping")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Campus Marketplace",
        description="Listings, purchase requests and seller decisions for the campus marketplace.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    for router in (health.router, listings.router, transactions.router, admin.router):
        app.include_router(router)
    return app


app = create_app()
