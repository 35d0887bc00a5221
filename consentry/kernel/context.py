"""
Consentry - Request Contexts

``ConsentContext`` is the application context shared by an instance:
options, storage, registry, plugins and hooks. Every request works on a
``fork()`` of it, so per-request fields (caller IP, user agent, the
handler's returned value) never leak into shared state.

``EndpointContext`` is what endpoint handlers, hooks and middlewares
receive for a single call.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from starlette.datastructures import MutableHeaders

from consentry.config import DEFAULT_BASE_PATH, ConsentOptions
from consentry.errors import APIError

if TYPE_CHECKING:
    from starlette.requests import Request

    from consentry.kernel.hooks import Hook
    from consentry.kernel.plugins import Plugin
    from consentry.registry import ConsentRegistry
    from consentry.storage.adapter import Adapter


# =============================================================================
# Application Context
# =============================================================================

@dataclass
class ConsentContext:
    """Application context, forked per request."""

    options: ConsentOptions = field(default_factory=ConsentOptions)
    app_name: str = "consentry"
    base_url: str | None = None
    base_path: str = DEFAULT_BASE_PATH
    secret: str | None = None
    trusted_origins: list[str] = field(default_factory=list)
    adapter: Adapter | None = None
    registry: ConsentRegistry | None = None
    plugins: list[Plugin] = field(default_factory=list)
    hooks: list[Hook] = field(default_factory=list)

    # Per-request
    ip_address: str | None = None
    user_agent: str | None = None
    returned: Any = None
    response_headers: MutableHeaders | None = None
    session: Any = None

    extras: dict[str, Any] = field(default_factory=dict)

    def fork(self) -> ConsentContext:
        """Copy for a single request with the transient fields reset."""
        return dataclasses.replace(
            self,
            returned=None,
            response_headers=None,
            session=None,
            extras=dict(self.extras),
        )

    def overlay(self, other: ConsentContext) -> ConsentContext:
        """Fork of ``self`` with every field ``other`` sets taking precedence."""
        merged = self.fork()
        for f in dataclasses.fields(other):
            if f.name == "extras":
                continue
            value = getattr(other, f.name)
            if value is not None:
                setattr(merged, f.name, value)
        merged.extras.update(other.extras)
        return merged

    def __getattr__(self, name: str) -> Any:
        # Plugin-contributed fields live in extras
        extras = self.__dict__.get("extras")
        if extras is not None and name in extras:
            return extras[name]
        raise AttributeError(f"{type(self).__name__!s} has no attribute {name!r}")


# =============================================================================
# Endpoint Context
# =============================================================================

@dataclass
class EndpointContext:
    """Inputs and scratch state for one endpoint invocation."""

    path: str
    context: ConsentContext
    method: str = "GET"
    body: Any = None
    query: Any = None
    params: dict[str, str] = field(default_factory=dict)
    headers: MutableHeaders = field(default_factory=MutableHeaders)
    request: Request | None = None
    as_response: bool = False
    return_headers: bool = False
    response_headers: MutableHeaders = field(default_factory=MutableHeaders)

    def set_header(self, key: str, value: str) -> None:
        self.response_headers[key] = value

    def get_header(self, key: str) -> str | None:
        return self.headers.get(key)

    def error(self, status: str, message: str | None = None, **kwargs: Any) -> APIError:
        return APIError(status, message, **kwargs)


__all__ = ["ConsentContext", "EndpointContext"]
