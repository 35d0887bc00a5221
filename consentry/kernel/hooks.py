"""
Consentry - Hook Processor

Runs ordered before/after hook chains around endpoint handlers.

Before-hooks return one of:
- ``Continue(context={...})``: a partial context to merge in
- ``Respond(value)``: stop the chain and answer with ``value``
- ``None``: nothing to contribute

After-hooks return an ``AfterResult(response=..., headers=...)``.
The first non-None response wins; headers accumulate across hooks.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from starlette.datastructures import MutableHeaders

from consentry.utils.awaitables import maybe_await
from consentry.utils.headers import merge_headers
from consentry.utils.merge import deep_merge

if TYPE_CHECKING:
    from consentry.kernel.context import ConsentContext, EndpointContext

Matcher = Callable[["EndpointContext"], bool]
HookHandler = Callable[["EndpointContext"], "Awaitable[Any] | Any"]


# =============================================================================
# Hook Results
# =============================================================================

@dataclass
class Continue:
    """Continue processing, merging ``context`` into the request context."""

    context: dict[str, Any] = field(default_factory=dict)


@dataclass
class Respond:
    """Short-circuit with ``value`` as the response."""

    value: Any


@dataclass
class AfterResult:
    response: Any = None
    headers: MutableHeaders | None = None


# =============================================================================
# Hook Registration
# =============================================================================

@dataclass
class HookEntry:
    """A single matcher/handler pair in a hook chain."""

    handler: HookHandler
    matcher: Matcher | None = None

    def matches(self, context: EndpointContext) -> bool:
        return self.matcher is None or bool(self.matcher(context))


@dataclass
class Hook:
    """Endpoint hook registered through the instance options."""

    before: HookHandler | None = None
    after: HookHandler | None = None
    match: Matcher | None = None


def get_hooks(context: ConsentContext) -> tuple[list[HookEntry], list[HookEntry]]:
    """Split the context's hook registry into before and after chains."""
    before: list[HookEntry] = []
    after: list[HookEntry] = []

    for hook in context.hooks:
        if hook.before is not None:
            before.append(HookEntry(handler=hook.before, matcher=hook.match))
        if hook.after is not None:
            after.append(HookEntry(handler=hook.after, matcher=hook.match))

    for plugin in context.plugins:
        if plugin.hooks is None:
            continue
        before.extend(plugin.hooks.before)
        after.extend(plugin.hooks.after)

    return before, after


# =============================================================================
# Execution
# =============================================================================

async def run_before_hooks(
    context: EndpointContext,
    hooks: list[HookEntry],
) -> Continue | Respond:
    """
    Run before-hooks in order.

    Returns ``Continue`` with the accumulated partial context (including
    a merged ``headers`` map when any hook supplied headers), or the first
    ``Respond``. Any other truthy value is treated as a response.
    """
    accumulated: dict[str, Any] = {}
    headers: MutableHeaders | None = None

    for hook in hooks:
        if not hook.matches(context):
            continue

        result = await maybe_await(hook.handler(context))
        if result is None:
            continue

        if isinstance(result, Continue):
            patch = dict(result.context)
            hook_headers = patch.pop("headers", None)
            if hook_headers:
                headers = merge_headers(headers if headers is not None else MutableHeaders(), hook_headers)
            accumulated = deep_merge(accumulated, patch)
            continue

        if isinstance(result, Respond):
            return result
        if result:
            return Respond(result)

    if headers is not None:
        accumulated["headers"] = headers
    return Continue(accumulated)


async def run_after_hooks(
    context: EndpointContext,
    hooks: list[HookEntry],
) -> AfterResult:
    """
    Run after-hooks in order.

    Every matching hook runs. The first hook to supply a response sets
    it; headers from all hooks are merged, later values winning per key.
    """
    response: Any = None
    headers: MutableHeaders | None = None

    for hook in hooks:
        if not hook.matches(context):
            continue

        result = await maybe_await(hook.handler(context))
        if result is None:
            continue
        if isinstance(result, Respond):
            result = AfterResult(response=result.value)
        elif not isinstance(result, AfterResult):
            result = AfterResult(response=result)

        if response is None and result.response is not None:
            response = result.response
        if result.headers:
            headers = merge_headers(headers if headers is not None else MutableHeaders(), result.headers)

    return AfterResult(response=response, headers=headers)


__all__ = [
    "AfterResult",
    "Continue",
    "Hook",
    "HookEntry",
    "Respond",
    "get_hooks",
    "run_after_hooks",
    "run_before_hooks",
]
