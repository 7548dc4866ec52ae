"""
Application lifespan handler.
Manages startup and shutdown events for the FastAPI application.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from shared.infrastructure.db import engine, SessionLocal
from shared.config.settings import settings
from shared.config.logging import setup_logging, rest_api_logger as logger
from shared.infrastructure.events import close_redis_pool
from rest_api.models import Base
from rest_api.seed import seed


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Runs on startup and shutdown.
    """
    setup_logging()

    # Refuse to boot production with insecure defaults
    secret_errors = settings.validate_production_secrets()
    if secret_errors:
        for error in secret_errors:
            logger.error("Configuration error", error=error)
        if settings.is_production:
            raise RuntimeError(
                f"Production configuration errors: {'; '.join(secret_errors)}. "
                "Server will not start with insecure configuration."
            )

    logger.info("Starting REST API", port=settings.rest_api_port, env=settings.environment)

    if settings.create_tables_on_startup:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created/verified")

    if settings.seed_demo_data:
        with SessionLocal() as db:
            seed(db)

    yield

    logger.info("Shutting down REST API")
    await close_redis_pool()
    logger.info("Redis connection pool closed")
