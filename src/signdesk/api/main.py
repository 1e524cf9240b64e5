"""FastAPI application factory and main entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from signdesk.api.middleware import (
    LoggingMiddleware,
    MetricsMiddleware,
    setup_exception_handlers,
)
from signdesk.api.routes import (
    agreements,
    auth,
    billing,
    documents,
    health,
    payments,
    sign,
    uploads,
    users,
)
from signdesk.api.routes.health import VERSION
from signdesk.core.config import get_settings
from signdesk.core.database import engine
from signdesk.core.logging import configure_logging, get_logger

settings = get_settings()

configure_logging(
    json_logs=settings.is_production,
    log_level="DEBUG" if settings.debug else "INFO",
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        env=settings.app_env,
        payment_provider=settings.payment_provider,
        blob_storage_provider=settings.blob_storage_provider,
    )
    yield
    logger.info("application_shutdown")
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=VERSION,
        description="Document e-signature service with tiered LIVE quotas",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(LoggingMiddleware)

    setup_exception_handlers(app)

    prefix = settings.api_v1_prefix
    app.include_router(health.router, tags=["Health"])
    app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["Authentication"])
    app.include_router(users.router, prefix=f"{prefix}/users", tags=["Users"])
    app.include_router(documents.router, prefix=f"{prefix}/documents", tags=["Documents"])
    app.include_router(sign.router, prefix=f"{prefix}/sign", tags=["Documents"])
    app.include_router(uploads.router, prefix=f"{prefix}/upload", tags=["Documents"])
    app.include_router(agreements.router, prefix=f"{prefix}/agreements", tags=["Agreements"])
    app.include_router(payments.router, prefix=f"{prefix}/payment", tags=["Payments"])
    app.include_router(billing.router, prefix=f"{prefix}/billing", tags=["Billing"])

    return app


app = create_app()
