"""
Consentry - Router

Composes the addressable API from base endpoints, plugin endpoints and
the fixed ``ok`` health endpoint, then dispatches Starlette requests:

    on_request (IP, user agent, plugin callbacks)
      -> route match -> core + plugin middlewares
      -> converted endpoint (hooks + handler)
      -> on_response (plugin callbacks)

Anything escaping dispatch goes through ``on_error`` and the outer error
boundary, which always produces a JSON response unless fail-fast mode
is enabled.

Endpoint conflict policy:
- among plugins, the first plugin registering a name keeps it
- base endpoints replace same-named plugin endpoints
- ``ok`` is registered last and cannot be replaced
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import structlog
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from consentry.config import ConsentOptions
from consentry.errors import APIError
from consentry.kernel.context import ConsentContext, EndpointContext
from consentry.kernel.converter import ApiFunction, ContextSource, resolve_context, to_endpoints
from consentry.kernel.endpoint import Endpoint, create_endpoint, to_response
from consentry.kernel.hooks import Continue, Respond
from consentry.kernel.plugins import Middleware
from consentry.utils.awaitables import maybe_await
from consentry.utils.headers import clone_headers
from consentry.utils.ip import get_ip_address
from consentry.utils.merge import apply_patch
from consentry.utils.url import resolve_base_path
from consentry.utils.wildcard import match_path

logger = structlog.get_logger(__name__)

_BODYLESS_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


@create_endpoint("/ok", method="GET")
async def ok(ctx: EndpointContext) -> dict[str, bool]:
    return {"ok": True}


@dataclass
class RouterMiddleware:
    path: str
    middleware: Middleware


# =============================================================================
# Endpoint Aggregation
# =============================================================================

def get_endpoints(
    context: ContextSource,
    options: ConsentOptions,
    base_endpoints: Mapping[str, Endpoint] | None = None,
) -> tuple[dict[str, ApiFunction], list[RouterMiddleware]]:
    """Build the API function map and the flattened plugin middleware list."""
    registry: dict[str, Endpoint] = {}

    for plugin in options.plugins:
        for name, endpoint in plugin.endpoints.items():
            if name in registry:
                logger.warning(
                    "plugin_endpoint_conflict",
                    endpoint=name,
                    plugin=plugin.id,
                    kept=registry[name].path,
                )
                continue
            registry[name] = endpoint

    for name, endpoint in (base_endpoints or {}).items():
        if name in registry:
            logger.warning("plugin_endpoint_overridden", endpoint=name)
        registry[name] = endpoint

    registry.pop("ok", None)
    registry["ok"] = ok

    middlewares = [
        RouterMiddleware(path=entry.path, middleware=_bind_middleware(entry.middleware, context))
        for plugin in options.plugins
        for entry in plugin.middlewares
    ]

    return to_endpoints(registry, context), middlewares


def _bind_middleware(middleware: Middleware, source: ContextSource) -> Middleware:
    async def bound(ctx: EndpointContext) -> Any:
        base = await resolve_context(source)
        ctx.context = base.overlay(ctx.context)
        return await maybe_await(middleware(ctx))

    bound.__name__ = getattr(middleware, "__name__", "middleware")
    return bound


def _match_route(pattern: str, path: str) -> dict[str, str] | None:
    expected = [p for p in pattern.strip("/").split("/") if p]
    actual = [p for p in path.strip("/").split("/") if p]
    if len(expected) != len(actual):
        return None

    params: dict[str, str] = {}
    for want, got in zip(expected, actual):
        if want.startswith(":"):
            params[want[1:]] = got
        elif want != got:
            return None
    return params


# =============================================================================
# Router
# =============================================================================

class ApiRouter:
    """Dispatches requests to the composed endpoint map."""

    def __init__(
        self,
        context: ContextSource,
        options: ConsentOptions,
        *,
        base_endpoints: Mapping[str, Endpoint] | None = None,
        middlewares: list[RouterMiddleware] | None = None,
    ) -> None:
        self.options = options
        self._source = context
        self.endpoints, plugin_middlewares = get_endpoints(context, options, base_endpoints)
        self.middlewares = [*(middlewares or []), *plugin_middlewares]
        self.base_path = resolve_base_path(options.base_url, options.base_path)
        self.logger = logger.bind(component="router")

    # -------------------------------------------------------------------------
    # Lifecycle callbacks
    # -------------------------------------------------------------------------

    async def on_request(self, request: Request, context: ConsentContext) -> Any | None:
        """
        Enrich the per-request context and run plugin ``on_request``.

        Returns a response value when a plugin answers the request.
        """
        context.ip_address = get_ip_address(request, self.options)
        context.user_agent = request.headers.get("user-agent")

        for plugin in context.plugins:
            if plugin.on_request is None:
                continue
            result = await maybe_await(plugin.on_request(request, context))
            if isinstance(result, Continue):
                apply_patch(context, result.context)
            elif isinstance(result, Respond):
                self.logger.debug("request_answered_by_plugin", plugin=plugin.id)
                return result.value
            elif isinstance(result, Response):
                return result
        return None

    async def on_response(self, response: Response, context: ConsentContext) -> Response:
        """Run plugin ``on_response``; the first substitution wins."""
        for plugin in context.plugins:
            if plugin.on_response is None:
                continue
            result = await maybe_await(plugin.on_response(response, context))
            if isinstance(result, Respond):
                return to_response(result.value)
            if isinstance(result, Response):
                return result
        return response

    async def on_error(self, error: Exception) -> None:
        if isinstance(error, APIError) and error.status == "FOUND":
            return
        if self.options.on_api_error.throw:
            raise error

        if isinstance(error, APIError):
            if error.status_code == 401:
                self.logger.warning("api_unauthorized", code=error.code, message=error.message)
            elif error.status_code == 404:
                self.logger.debug("api_not_found", code=error.code, message=error.message)
            else:
                self.logger.error(
                    "api_error",
                    status=error.status,
                    code=error.code,
                    message=error.message,
                    meta=error.meta,
                )
        else:
            self.logger.error("unhandled_exception", error=str(error), exc_info=error)

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    async def handler(self, request: Request) -> Response:
        context: ConsentContext | None = None
        try:
            context = (await resolve_context(self._source)).fork()
            early = await self.on_request(request, context)
            if early is not None:
                return to_response(early)
            response = await self.dispatch(request, context)
            return await self.on_response(response, context)
        except Exception as error:
            await self.on_error(error)
            return await self._error_response(error, context)

    async def dispatch(self, request: Request, context: ConsentContext) -> Response:
        path = self.relative_path(request.url.path)
        if path is None:
            raise APIError("NOT_FOUND", code="ROUTE_NOT_FOUND")

        method = request.method.upper()
        api, params = self.match(path, method)
        body = await self._read_body(request)
        query = dict(request.query_params)

        for entry in self.middlewares:
            if not match_path(entry.path, path):
                continue
            middleware_context = EndpointContext(
                path=api.path,
                context=context,
                method=method,
                body=body,
                query=query,
                params=params,
                headers=clone_headers(request.headers),
                request=request,
            )
            result = await maybe_await(entry.middleware(middleware_context))
            if isinstance(result, Respond):
                return to_response(result.value)
            if isinstance(result, Response):
                return result
            if isinstance(result, Continue):
                apply_patch(context, result.context)

        result = await api(
            body=body,
            query=query,
            params=params,
            headers=request.headers,
            request=request,
            method=method,
            context=context,
            return_headers=True,
        )
        return to_response(result)

    def relative_path(self, path: str) -> str | None:
        if path == self.base_path:
            return "/"
        if not path.startswith(self.base_path + "/"):
            return None
        return path[len(self.base_path):] or "/"

    def match(self, path: str, method: str) -> tuple[ApiFunction, dict[str, str]]:
        candidates = [
            (api, params)
            for api in self.endpoints.values()
            if (params := _match_route(api.path, path)) is not None
        ]
        if not candidates:
            raise APIError("NOT_FOUND", code="ROUTE_NOT_FOUND", meta={"path": path})

        for api, params in candidates:
            if api.endpoint.allows(method):
                return api, params

        allowed = sorted({m for api, _ in candidates for m in api.methods})
        raise APIError(
            "METHOD_NOT_ALLOWED",
            code="METHOD_NOT_ALLOWED",
            meta={"path": path, "method": method},
            headers={"Allow": ", ".join(allowed)},
        )

    async def _read_body(self, request: Request) -> Any:
        if request.method.upper() in _BODYLESS_METHODS:
            return None
        raw = await request.body()
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise APIError("BAD_REQUEST", "Request body is not valid JSON", code="INVALID_JSON") from exc

    async def _error_response(self, error: Exception, context: ConsentContext | None) -> Response:
        if isinstance(error, APIError) and error.status == "FOUND":
            return error.to_response()

        callback = self.options.on_api_error.on_error
        if callback is not None:
            try:
                result = await maybe_await(callback(error, context))
            except Exception as callback_error:
                self.logger.error("error_callback_failed", error=str(callback_error), exc_info=callback_error)
                result = None
            if isinstance(result, Response):
                return result
            return JSONResponse(
                status_code=500,
                content={
                    "error": True,
                    "code": "INTERNAL_SERVER_ERROR",
                    "message": "Error handling failed",
                },
            )

        if isinstance(error, APIError):
            return error.to_response()
        return APIError("INTERNAL_SERVER_ERROR").to_response()


__all__ = ["ApiRouter", "RouterMiddleware", "get_endpoints", "ok"]
