"""
Consentry - FastAPI Application

Mounts a consent instance under its base path. Every request below the
base path is handed to the instance router, which owns routing, hooks,
middlewares and error rendering.
"""

from __future__ import annotations

import re
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from consentry import __version__
from consentry.api.middleware import CorrelationIdMiddleware, RequestLoggingMiddleware
from consentry.config import ConsentOptions, get_settings
from consentry.core import ConsentInstance, create_consentry
from consentry.monitoring.logging import configure_logging

logger = structlog.get_logger(__name__)

_ROUTER_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def create_app(
    instance: ConsentInstance | None = None,
    options: ConsentOptions | None = None,
    *,
    title: str = "Consentry",
    docs_url: str | None = "/docs",
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        instance: Consent instance to mount (built from ``options`` or
            the environment when omitted)
        options: Options for a new instance
        title: API title for documentation
        docs_url: Swagger UI URL (None to disable)
    """
    settings = get_settings()
    instance = instance or create_consentry(options)

    if settings.is_production:
        docs_url = None

    app = FastAPI(
        title=title,
        description="Consent management API",
        version=__version__,
        docs_url=docs_url,
        redoc_url=None,
    )
    app.state.consentry = instance

    # Last added runs first
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    if instance.options.trusted_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[o for o in instance.options.trusted_origins if "*" not in o],
            allow_origin_regex=_wildcard_origin_regex(instance.options.trusted_origins),
            allow_credentials=True,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_exception", path=str(request.url.path), error=str(exc))
        return JSONResponse(
            status_code=500,
            content={
                "error": True,
                "code": "INTERNAL_SERVER_ERROR",
                "message": "Internal Server Error",
            },
        )

    @app.api_route(instance.base_path, methods=_ROUTER_METHODS, include_in_schema=False)
    @app.api_route(
        f"{instance.base_path}/{{path:path}}",
        methods=_ROUTER_METHODS,
        include_in_schema=False,
    )
    async def consent_router(request: Request) -> Response:
        return await instance.handler(request)

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, Any]:
        available = await instance.adapter.health_check()
        return {"status": "healthy" if available else "degraded", "version": __version__}

    return app


def _wildcard_origin_regex(origins: list[str]) -> str | None:
    patterns = [
        re.escape(origin).replace(r"\*", "[^./]+")
        for origin in origins
        if "*" in origin
    ]
    return "^(" + "|".join(patterns) + ")$" if patterns else None


def build_app() -> FastAPI:
    """Application factory for ``uvicorn --factory``."""
    settings = get_settings()
    configure_logging(
        level=settings.log_level,
        json_output=settings.is_production,
        mask_ip_addresses=settings.log_mask_ip_addresses,
    )
    return create_app()
