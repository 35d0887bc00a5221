"""
Consentry - Plugins

A plugin can contribute endpoints, path-scoped middlewares, endpoint
hooks and request/response callbacks, and can patch the application
context once at startup through ``init``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from consentry.kernel.hooks import HookEntry
from consentry.utils.awaitables import maybe_await
from consentry.utils.merge import apply_patch

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from consentry.kernel.context import ConsentContext, EndpointContext
    from consentry.kernel.endpoint import Endpoint

logger = structlog.get_logger(__name__)

Middleware = Callable[["EndpointContext"], "Awaitable[Any] | Any"]
RequestCallback = Callable[["Request", "ConsentContext"], "Awaitable[Any] | Any"]
ResponseCallback = Callable[["Response", "ConsentContext"], "Awaitable[Any] | Any"]
InitCallback = Callable[["ConsentContext"], "Awaitable[Mapping[str, Any] | None] | Mapping[str, Any] | None"]


@dataclass
class PluginMiddleware:
    """A middleware scoped to endpoint paths matching ``path``."""

    path: str
    middleware: Middleware


@dataclass
class PluginHooks:
    before: list[HookEntry] = field(default_factory=list)
    after: list[HookEntry] = field(default_factory=list)


@dataclass
class Plugin:
    id: str
    name: str | None = None
    init: InitCallback | None = None
    endpoints: dict[str, Endpoint] = field(default_factory=dict)
    middlewares: list[PluginMiddleware] = field(default_factory=list)
    on_request: RequestCallback | None = None
    on_response: ResponseCallback | None = None
    hooks: PluginHooks | None = None


async def run_plugin_init(context: ConsentContext, plugins: list[Plugin]) -> ConsentContext:
    """
    Run each plugin's ``init`` in registration order.

    An init may return ``{"context": {...}}`` and/or ``{"options": {...}}``
    patches, applied before the next plugin runs.
    """
    for plugin in plugins:
        if plugin.init is None:
            continue

        result = await maybe_await(plugin.init(context))
        if not result:
            continue

        context_patch = result.get("context")
        if context_patch:
            apply_patch(context, context_patch)
        options_patch = result.get("options")
        if options_patch:
            apply_patch(context.options, options_patch)

        logger.debug(
            "plugin_initialized",
            plugin=plugin.id,
            context_keys=sorted(context_patch or {}),
        )
    return context


__all__ = [
    "Middleware",
    "Plugin",
    "PluginHooks",
    "PluginMiddleware",
    "run_plugin_init",
]
