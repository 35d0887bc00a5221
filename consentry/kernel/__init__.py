"""
Consentry Kernel

Request-processing core: hook chains, endpoint conversion, routing and
plugin composition.
"""

from consentry.kernel.context import ConsentContext, EndpointContext
from consentry.kernel.converter import ApiFunction, resolve_context, to_endpoints
from consentry.kernel.endpoint import Endpoint, EndpointResult, create_endpoint, to_response
from consentry.kernel.hooks import (
    AfterResult,
    Continue,
    Hook,
    HookEntry,
    Respond,
    get_hooks,
    run_after_hooks,
    run_before_hooks,
)
from consentry.kernel.plugins import Plugin, PluginHooks, PluginMiddleware, run_plugin_init
from consentry.kernel.router import ApiRouter, RouterMiddleware, get_endpoints

__all__ = [
    # Contexts
    "ConsentContext",
    "EndpointContext",
    # Hooks
    "AfterResult",
    "Continue",
    "Hook",
    "HookEntry",
    "Respond",
    "get_hooks",
    "run_after_hooks",
    "run_before_hooks",
    # Endpoints
    "ApiFunction",
    "Endpoint",
    "EndpointResult",
    "create_endpoint",
    "resolve_context",
    "to_endpoints",
    "to_response",
    # Routing
    "ApiRouter",
    "RouterMiddleware",
    "get_endpoints",
    # Plugins
    "Plugin",
    "PluginHooks",
    "PluginMiddleware",
    "run_plugin_init",
]
