"""FastAPI application entrypoint.

Run with ``uvicorn tunegate.main:app`` or the ``tunegate`` console script.
"""

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tunegate import __version__
from tunegate.api import gateway_router, health, register_exception_handlers
from tunegate.config import Settings, get_settings
from tunegate.infrastructure.lifecycle import lifespan
from tunegate.infrastructure.observability import RequestLoggingMiddleware


def create_app(
    settings: Settings | None = None,
    provider_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the gateway application.

    Args:
        settings: Settings to use instead of get_settings()
        provider_transport: httpx transport for provider calls (tests pass a MockTransport)

    Returns:
        Configured FastAPI app; services are created by the lifespan on startup
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="tunegate",
        description="Auth gateway and reverse proxy for the Spotify Web API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.provider_transport = provider_transport

    # Starlette runs the last added middleware first: CORS wraps request logging
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.api.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(gateway_router, prefix=settings.api.prefix.rstrip("/"))

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "tunegate.main:app",
        host=settings.api.host,
        port=settings.api.port,
        log_config=None,
    )
