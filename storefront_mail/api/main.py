"""
FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from storefront_mail import __version__
from storefront_mail.api.middleware import create_timing_middleware
from storefront_mail.api.routes import health_router, status_router
from storefront_mail.config import get_settings
from storefront_mail.observability.logging import setup_logging
from storefront_mail.observability.metrics import setup_metrics
from storefront_mail.observability.tracing import instrument_fastapi, setup_tracing
from storefront_mail.runtime import MailRuntime

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Starts the mail runtime on startup and drains it on shutdown.
    """
    runtime: MailRuntime = app.state.runtime

    # Startup
    setup_logging(runtime.settings)
    setup_metrics()
    setup_tracing(runtime.settings)

    await runtime.start()

    logger.info("Application started")

    yield

    # Shutdown
    await runtime.stop()
    logger.info("Application shutdown")


def create_app(runtime: MailRuntime | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        runtime: Mail runtime to serve. Built from settings if omitted.

    Returns:
        FastAPI: The configured application instance.
    """
    runtime = runtime or MailRuntime.from_settings(get_settings())

    app = FastAPI(
        title="Storefront Mail API",
        description="Transactional email delivery status for the storefront",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.runtime = runtime

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(
        BaseHTTPMiddleware,
        dispatch=create_timing_middleware(runtime.settings.slow_request_threshold_ms),
    )

    app.include_router(health_router)
    app.include_router(status_router)

    instrument_fastapi(app)

    return app


def run() -> None:
    """Run the API server."""
    settings = get_settings()
    app = create_app()

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
