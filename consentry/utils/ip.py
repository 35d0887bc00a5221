"""Caller IP resolution from proxy and CDN headers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from consentry.config import DEFAULT_IP_HEADERS

if TYPE_CHECKING:
    from consentry.config import ConsentOptions

LOOPBACK_ADDRESS = "127.0.0.1"


def get_ip_address(request: Any, options: ConsentOptions) -> str | None:
    """
    Resolve the caller IP.

    Tracking can be disabled entirely; test mode always yields the
    loopback address. Otherwise the first configured (or default) header
    present wins, taking the first entry of a comma-separated list.
    """
    if options.ip_address.disable_ip_tracking:
        return None
    if options.testing:
        return LOOPBACK_ADDRESS

    headers = getattr(request, "headers", request)
    names = options.ip_address.ip_address_headers or DEFAULT_IP_HEADERS
    for name in names:
        value = headers.get(name)
        if not value:
            continue
        first = value.split(",")[0].strip()
        if first:
            return first

    client = getattr(request, "client", None)
    return client.host if client is not None else None
