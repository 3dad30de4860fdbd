"""FastAPI application factory for the APR HTTP API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apr_service.api import routes


def create_app(
    lifespan: Any = None,
    prefix: str = "/api",
    cors_origin: str = "*",
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to inject startup/shutdown logic.
        prefix: Global path prefix; APR routes live under {prefix}/apr.
        cors_origin: Allowed CORS origin.

    Returns:
        Configured FastAPI application. The caller must set
        ``app.state.orchestrator`` before serving requests.
    """
    prefix = prefix.rstrip("/")
    app = FastAPI(
        title="SSV APR Service API",
        description="API for SSV Network APR calculations and historical data",
        version="1.0",
        lifespan=lifespan,
        docs_url=f"{prefix}/docs",
        openapi_url=f"{prefix}/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[cors_origin],
        allow_credentials=cors_origin != "*",
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.orchestrator = None

    app.include_router(routes.router, prefix=f"{prefix}/apr", tags=["apr"])

    return app
