"""
Consentry - Endpoint Converter

Turns endpoints into directly callable API functions bound to an
application context. Each call runs:

    resolve context -> before-hooks -> handler -> after-hooks -> shape

A before-hook ``Respond`` skips the handler. API errors raised by the
handler are captured so after-hooks can observe or replace them; they are
re-raised afterwards unless the caller asked for a response object.
"""

from __future__ import annotations

import dataclasses
import inspect
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Union

import structlog

from consentry.errors import APIError
from consentry.kernel.context import ConsentContext, EndpointContext
from consentry.kernel.endpoint import Endpoint, EndpointResult, to_response
from consentry.kernel.hooks import Respond, get_hooks, run_after_hooks, run_before_hooks
from consentry.utils.headers import clone_headers, merge_headers
from consentry.utils.merge import apply_patch

logger = structlog.get_logger(__name__)

_ENDPOINT_FIELDS = frozenset(f.name for f in dataclasses.fields(EndpointContext))

ContextSource = Union[
    ConsentContext,
    Awaitable[ConsentContext],
    Callable[[], "ConsentContext | Awaitable[ConsentContext]"],
]


async def resolve_context(source: ContextSource) -> ConsentContext:
    """
    Resolve a context source.

    Accepts a context, an awaitable that can be awaited repeatedly (a
    Future or Task), or a zero-argument callable returning either.
    """
    value: Any = source
    if callable(value) and not isinstance(value, ConsentContext):
        value = value()
    if inspect.isawaitable(value):
        value = await value
    if not isinstance(value, ConsentContext):
        raise TypeError(f"Expected ConsentContext, got {type(value).__name__}")
    return value


class ApiFunction:
    """A converted endpoint, callable with keyword request fields."""

    def __init__(self, endpoint: Endpoint, source: ContextSource) -> None:
        self.endpoint = endpoint
        self._source = source

    @property
    def path(self) -> str:
        return self.endpoint.path

    @property
    def methods(self) -> list[str]:
        return self.endpoint.methods

    async def __call__(
        self,
        *,
        body: Any = None,
        query: Any = None,
        params: Mapping[str, str] | None = None,
        headers: Any = None,
        request: Any = None,
        method: str | None = None,
        context: ConsentContext | Mapping[str, Any] | None = None,
        as_response: bool = False,
        return_headers: bool = False,
    ) -> Any:
        app_context = await resolve_context(self._source)

        if isinstance(context, ConsentContext):
            request_context = app_context.overlay(context)
        else:
            request_context = app_context.fork()
            if context:
                apply_patch(request_context, context)

        internal = EndpointContext(
            path=self.endpoint.path,
            context=request_context,
            method=(method or self.endpoint.methods[0]).upper(),
            body=body,
            query=dict(query) if query is not None else None,
            params=dict(params or {}),
            headers=clone_headers(headers),
            request=request,
        )

        before_hooks, after_hooks = get_hooks(app_context)

        before = await run_before_hooks(internal, before_hooks)
        if isinstance(before, Respond):
            logger.debug("endpoint_short_circuited", endpoint=self.endpoint.name)
            return before.value

        patch = dict(before.context)
        hook_headers = patch.pop("headers", None)
        if hook_headers:
            merge_headers(internal.headers, hook_headers)
        if patch:
            own = {k: v for k, v in patch.items() if k in _ENDPOINT_FIELDS}
            apply_patch(internal, own)
            # Anything else belongs to the request context
            apply_patch(internal.context, {k: v for k, v in patch.items() if k not in own})

        internal.as_response = False
        internal.return_headers = True
        try:
            result: EndpointResult = await self.endpoint(internal)
        except APIError as error:
            result = EndpointResult(response=error, headers=clone_headers(error.headers))

        internal.context.returned = result.response
        internal.context.response_headers = result.headers

        after = await run_after_hooks(internal, after_hooks)
        if after.response is not None:
            result.response = after.response
        if after.headers:
            result.headers = merge_headers(
                result.headers if result.headers is not None else clone_headers(),
                after.headers,
            )

        if isinstance(result.response, APIError) and not as_response:
            error = result.response
            if result.headers is not None:
                present = {key.lower() for key in error.headers}
                for key, value in result.headers.items():
                    if key not in present:
                        error.headers[key] = value
            raise error

        if as_response:
            return to_response(result.response, result.headers)
        if return_headers:
            return result
        return result.response

    def __repr__(self) -> str:
        return f"ApiFunction({self.endpoint!r})"


def to_endpoints(
    endpoints: Mapping[str, Endpoint],
    context: ContextSource,
) -> dict[str, ApiFunction]:
    """Wrap every endpoint in ``endpoints`` as an ``ApiFunction``."""
    return {name: ApiFunction(endpoint, context) for name, endpoint in endpoints.items()}


__all__ = ["ApiFunction", "ContextSource", "resolve_context", "to_endpoints"]
