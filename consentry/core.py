"""
Consentry instance.

Wires options, storage, registry, plugins and the router together:

    instance = create_consentry(ConsentOptions(trusted_origins=["https://example.com"]))
    response = await instance.handler(request)        # Starlette request
    result = await instance.api["verify_consent"](body={...})
"""

from __future__ import annotations

import asyncio
import dataclasses
from typing import Any

import structlog
from starlette.requests import Request
from starlette.responses import Response

from consentry.config import ConsentOptions
from consentry.handlers import BASE_ENDPOINTS
from consentry.kernel.context import ConsentContext
from consentry.kernel.converter import ApiFunction
from consentry.kernel.plugins import run_plugin_init
from consentry.kernel.router import ApiRouter
from consentry.middlewares import CORE_MIDDLEWARES
from consentry.registry import ConsentRegistry
from consentry.storage import Adapter, MemoryAdapter
from consentry.utils.url import get_origin, resolve_base_path

logger = structlog.get_logger(__name__)


class ConsentInstance:
    """A configured consent backend."""

    def __init__(self, options: ConsentOptions) -> None:
        self.options = options
        self.adapter: Adapter = options.adapter or MemoryAdapter()
        self.base_path = resolve_base_path(options.base_url, options.base_path)
        self._context: ConsentContext | None = None
        self._init_lock = asyncio.Lock()

        self.router = ApiRouter(
            self.get_context,
            options,
            base_endpoints=BASE_ENDPOINTS,
            middlewares=list(CORE_MIDDLEWARES),
        )

    @property
    def api(self) -> dict[str, ApiFunction]:
        return self.router.endpoints

    def _build_context(self) -> ConsentContext:
        trusted_origins = list(self.options.trusted_origins)
        base_origin = get_origin(self.options.base_url) if self.options.base_url else None
        if base_origin and base_origin not in trusted_origins:
            trusted_origins.insert(0, base_origin)

        return ConsentContext(
            options=self.options,
            app_name=self.options.app_name,
            base_url=self.options.base_url,
            base_path=self.base_path,
            secret=self.options.secret,
            trusted_origins=trusted_origins,
            adapter=self.adapter,
            registry=ConsentRegistry(self.adapter, self.options.database_hooks),
            plugins=list(self.options.plugins),
            hooks=list(self.options.hooks),
        )

    async def get_context(self) -> ConsentContext:
        """The application context, initialized once on first use."""
        if self._context is not None:
            return self._context

        async with self._init_lock:
            if self._context is None:
                context = self._build_context()
                await run_plugin_init(context, context.plugins)
                self._context = context
                logger.info(
                    "consentry_initialized",
                    base_path=self.base_path,
                    adapter=self.adapter.id,
                    plugins=[p.id for p in context.plugins],
                )
        return self._context

    async def handler(self, request: Request) -> Response:
        return await self.router.handler(request)


def create_consentry(options: ConsentOptions | None = None, **overrides: Any) -> ConsentInstance:
    """
    Create an instance.

    Without ``options``, settings are read from the environment and
    ``overrides`` are applied on top.
    """
    if options is None:
        options = ConsentOptions.from_settings(**overrides)
    elif overrides:
        options = dataclasses.replace(options, **overrides)
    return ConsentInstance(options)


__all__ = ["ConsentInstance", "create_consentry"]
