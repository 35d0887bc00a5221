"""
Consentry - Endpoints

An ``Endpoint`` binds a path and HTTP method(s) to an async handler
taking an ``EndpointContext``. Request bodies and query strings are
validated with pydantic before the handler runs.

    @create_endpoint("/consent/set", method="POST", body=SetConsentRequest)
    async def set_consent(ctx: EndpointContext) -> SetConsentResponse:
        ...
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, TypeAdapter, ValidationError
from starlette.datastructures import MutableHeaders
from starlette.responses import JSONResponse, Response

from consentry.errors import APIError
from consentry.kernel.context import EndpointContext
from consentry.utils.awaitables import maybe_await
from consentry.utils.headers import merge_headers

EndpointHandler = Callable[[EndpointContext], Awaitable[Any]]


@dataclass
class EndpointResult:
    """Handler output together with the headers it set."""

    response: Any
    headers: MutableHeaders | None = None


class Endpoint:
    """A routable, validated endpoint handler."""

    def __init__(
        self,
        path: str,
        handler: EndpointHandler,
        *,
        method: str | list[str] = "GET",
        body: Any = None,
        query: Any = None,
        name: str | None = None,
    ) -> None:
        self.path = path
        self.handler = handler
        self.methods = [m.upper() for m in ([method] if isinstance(method, str) else method)]
        self.name = name or getattr(handler, "__name__", path)
        self._body = TypeAdapter(body) if body is not None else None
        self._query = TypeAdapter(query) if query is not None else None

    def allows(self, method: str) -> bool:
        return "*" in self.methods or method.upper() in self.methods

    def _validate(self, adapter: TypeAdapter[Any] | None, value: Any) -> Any:
        if adapter is None:
            return value
        try:
            return adapter.validate_python(value if value is not None else {})
        except ValidationError as exc:
            raise APIError.from_validation_error(exc) from exc

    async def __call__(self, ctx: EndpointContext) -> Any:
        ctx.body = self._validate(self._body, ctx.body)
        ctx.query = self._validate(self._query, ctx.query)

        value = await maybe_await(self.handler(ctx))

        if ctx.as_response:
            return to_response(value, ctx.response_headers)
        if ctx.return_headers:
            return EndpointResult(response=value, headers=ctx.response_headers)
        return value

    def __repr__(self) -> str:
        return f"Endpoint({self.name!r}, {'|'.join(self.methods)} {self.path})"


def create_endpoint(
    path: str,
    *,
    method: str | list[str] = "GET",
    body: Any = None,
    query: Any = None,
    name: str | None = None,
) -> Callable[[EndpointHandler], Endpoint]:
    def decorator(handler: EndpointHandler) -> Endpoint:
        return Endpoint(path, handler, method=method, body=body, query=query, name=name)

    return decorator


def to_response(value: Any, headers: Any = None) -> Response:
    """Render an endpoint value as a Starlette response."""
    if isinstance(value, EndpointResult):
        merged = MutableHeaders()
        merge_headers(merged, value.headers)
        merge_headers(merged, headers)
        return to_response(value.response, merged)

    if isinstance(value, Response):
        response = value
    elif isinstance(value, APIError):
        response = value.to_response()
    elif isinstance(value, BaseModel):
        response = JSONResponse(value.model_dump(mode="json", by_alias=True, exclude_none=True))
    else:
        response = JSONResponse(jsonable_encoder(value))

    if headers:
        merge_headers(response.headers, headers)
    return response


__all__ = [
    "Endpoint",
    "EndpointHandler",
    "EndpointResult",
    "create_endpoint",
    "to_response",
]
