"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures logging, exception handlers, and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from otpgate.adapters.repository.memory import InMemoryAccountRepository
from otpgate.adapters.repository.postgres import (
    PostgresAccountRepository,
    create_pool,
    run_migrations,
)
from otpgate.adapters.smtp.console import ConsoleEmailSender
from otpgate.adapters.smtp.sender import SmtpEmailSender
from otpgate.api.v1 import router as v1_router
from otpgate.config.settings import Settings, get_settings
from otpgate.domain.exceptions import AuthServiceError, UpstreamError

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Account API v1 - Register, verify email by one-time code, log in",
    },
]


def build_email_sender(settings: Settings) -> ConsoleEmailSender | SmtpEmailSender:
    """Select the mail notifier adapter from settings."""
    if settings.mail_backend == "smtp":
        return SmtpEmailSender(settings)
    return ConsoleEmailSender(settings.verify_url_base)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Configures logging
    - Creates the storage adapter (and connection pool for PostgreSQL)
    - Runs migrations and purges expired OTP records on startup
    - Closes connection pool on shutdown
    """
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger.info("Starting application...")

    pool = None
    if settings.storage_backend == "postgres":
        logger.info("Connecting to database...")
        pool = create_pool(settings)

        logger.info("Running database migrations...")
        run_migrations(pool)
        repository = PostgresAccountRepository(pool)
    else:
        logger.warning("Using in-memory storage; data is lost on restart")
        repository = InMemoryAccountRepository()

    repository.purge_expired_otps()

    # Store adapters in app state for dependency injection
    app.state.pool = pool
    app.state.repository = repository
    app.state.email_sender = build_email_sender(settings)

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


async def handle_service_error(request: Request, exc: AuthServiceError) -> JSONResponse:
    """
    Translate raised domain errors into 500 responses.

    Business failures travel inside AuthResult; anything raised here is a
    collaborator failure (mail, storage) or an internal fault.
    """
    if isinstance(exc, UpstreamError):
        logger.error("%s %s failed upstream: %s", request.method, request.url.path, exc.message)
    else:
        logger.error("%s %s failed", request.method, request.url.path, exc_info=exc)
    # Class-level message only; instance messages may carry internal detail
    return JSONResponse(status_code=500, content={"detail": type(exc).message})


app = FastAPI(
    title="otpgate",
    description="Account registration with email one-time-code verification and session login",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

app.add_exception_handler(AuthServiceError, handle_service_error)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with storage validation.

    Returns 200 OK if application and storage are healthy.
    Raises StorageError (500) if storage is unreachable.
    """
    request.app.state.repository.ping()
    return {"status": "healthy"}
