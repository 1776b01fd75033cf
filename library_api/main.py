"""Library API - FastAPI Application Factory."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from library_api.api import api_router, health_router
from library_api.api.auth import prune_login_attempts
from library_api.core import engine, settings, setup_logging
from library_api.core.exceptions import register_exception_handlers
from library_api.core.logging import get_logger
from library_api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware

# Import all models to ensure they're registered with Base for Alembic
from library_api.models import Book, Category, TokenBlacklist, User  # noqa: F401
from library_api.services.blacklist_reaper import BlacklistReaperService

logger = get_logger("main")


def task_done_callback(task: asyncio.Task[None]) -> None:
    """Log unhandled exceptions from background tasks."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background task {task.get_name()} failed: {exc}")


async def _login_attempts_cleanup_loop() -> None:
    """Periodically forget clients with no recent failed logins."""
    while True:
        try:
            await asyncio.sleep(settings.login_window_seconds * 10)
            removed = prune_login_attempts()
            if removed > 0:
                logger.debug(f"Login limiter cleanup: removed {removed} clients")
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.warning(f"Login limiter cleanup error: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    setup_logging(
        level=settings.log_level,
        format_type="structured" if not settings.debug else "dev",
    )
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    # Check security configuration
    for warning in settings.check_security_configuration():
        logger.warning(f"SECURITY: {warning}")

    reaper = BlacklistReaperService.get_instance()
    await reaper.start()

    login_task = asyncio.create_task(_login_attempts_cleanup_loop(), name="login_attempts_cleanup")
    login_task.add_done_callback(task_done_callback)

    yield

    # Shutdown
    logger.info("Shutting down...")
    login_task.cancel()
    try:
        await login_task
    except asyncio.CancelledError:
        pass

    await reaper.stop()
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Library catalog API with JWT authentication",
        version=settings.app_version,
        lifespan=lifespan,
        # Interactive docs expose the full schema; only serve them in debug
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    register_exception_handlers(app)

    # Security headers middleware
    app.add_middleware(SecurityHeadersMiddleware)

    # Request IDs and access logs
    app.add_middleware(RequestLoggingMiddleware)

    # CORS middleware - MUST be outermost (added last in Starlette LIFO order)
    # so that CORS headers are present on ALL responses, including 401s.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=[
            "Authorization",
            "Content-Type",
            "Accept",
            "X-Request-ID",
        ],
        expose_headers=["X-Request-ID"],
    )

    # Prometheus metrics (before routers so /metrics endpoint is registered first)
    if settings.enable_metrics:
        from prometheus_fastapi_instrumentator import Instrumentator

        Instrumentator(
            excluded_handlers=["/health", "/metrics"],
        ).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    # Include routers
    app.include_router(health_router)  # Health and index at root level
    app.include_router(api_router)  # API at /api/v1

    return app


# Application instance
app = create_app()
