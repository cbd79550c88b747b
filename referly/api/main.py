"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from psycopg_pool import ConnectionPool

from referly.adapters.hashing.bcrypt_hasher import BcryptCredentialHasher
from referly.adapters.store.memory import InMemoryAccountStore
from referly.adapters.store.postgres import PostgresAccountStore, run_migrations
from referly.api.errors import register_error_handlers
from referly.api.routes import router
from referly.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "accounts",
        "description": "Registration with OTP verification, activation, login, "
        "profile and address management",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool and runs migrations on startup
      (or an in-memory store when STORE_BACKEND=memory)
    - Builds the credential hasher
    - Closes connection pool on shutdown
    """
    settings: Settings = app.state.settings
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    logger.info("Starting application...")

    pool: ConnectionPool | None = None
    if settings.store_backend == "postgres":
        logger.info("Connecting to database...")
        pool = ConnectionPool(
            conninfo=settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            open=True,
        )
        logger.info("Running database migrations...")
        run_migrations(pool)
        app.state.store = PostgresAccountStore(pool)
    else:
        logger.warning("Using in-memory account store; data is lost on shutdown")
        app.state.store = InMemoryAccountStore()

    app.state.hasher = BcryptCredentialHasher(cost=settings.bcrypt_cost)

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application; settings default to the environment."""
    app = FastAPI(
        title="referly",
        description="User account service - OTP-verified registration, "
        "deferred password activation and referral coins",
        version="0.1.0",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    settings = settings or get_settings()
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(router, prefix=settings.api_prefix)

    @app.get("/health")
    def health_check(request: Request) -> dict[str, str]:
        """
        Health check endpoint with store validation.

        Returns 200 OK if application and store are healthy.
        A store failure surfaces as a 500 through the error handlers.
        """
        request.app.state.store.ping()
        return {"status": "healthy"}

    return app


app = create_app()
