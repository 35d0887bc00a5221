"""
Origin check middleware.

Guards cookie-bearing POST requests against cross-site request forgery
and open redirects: the Origin (or Referer) header and any callback or
redirect URL in the body must belong to a trusted origin. Trusted
origins are exact ``scheme://host[:port]`` values or host wildcard
patterns such as ``https://*.example.com``.
"""

from __future__ import annotations

import re
from typing import Any

import structlog

from consentry.errors import APIError
from consentry.kernel.context import EndpointContext
from consentry.utils.url import get_host, get_origin
from consentry.utils.wildcard import wildcard_match

logger = structlog.get_logger(__name__)

VALID_RELATIVE_URL = re.compile(r"^/(?!/|\\|%2f|%5c)[\w\-./]*(?:\?[\w\-./=&%]*)?$", re.IGNORECASE)

# Body/query field -> error code
URL_FIELDS: dict[str, str] = {
    "callbackURL": "INVALID_CALLBACK_URL",
    "redirectTo": "INVALID_REDIRECT_URL",
    "errorCallbackURL": "INVALID_CALLBACK_URL",
    "newSubjectCallbackURL": "INVALID_CALLBACK_URL",
}


def matches_origin(url: str, pattern: str) -> bool:
    if url.startswith("/"):
        return False
    if "*" in pattern:
        host = get_host(url)
        pattern_host = get_host(pattern) or pattern
        return host is not None and wildcard_match(pattern_host, host)
    return get_origin(url) == pattern.rstrip("/")


def is_trusted(url: str, trusted_origins: list[str], *, allow_relative: bool) -> bool:
    if allow_relative and url.startswith("/") and VALID_RELATIVE_URL.match(url):
        return True
    return any(matches_origin(url, origin) for origin in trusted_origins)


def _validate(url: Any, label: str, code: str, trusted_origins: list[str]) -> None:
    if not url or not isinstance(url, str):
        return
    if is_trusted(url, trusted_origins, allow_relative=label != "origin"):
        return
    logger.error("untrusted_url", label=label, url=url, trusted_origins=trusted_origins)
    raise APIError(
        "FORBIDDEN",
        "The URL provided is not from a trusted origin.",
        code=code,
        meta={"url": url, "label": label},
    )


async def origin_check(ctx: EndpointContext) -> None:
    if ctx.method != "POST":
        return None

    context = ctx.context
    trusted_origins = context.trusted_origins
    body = ctx.body if isinstance(ctx.body, dict) else {}
    query = ctx.query if isinstance(ctx.query, dict) else {}

    if "cookie" in ctx.headers and not context.options.disable_csrf_check:
        origin = ctx.headers.get("origin") or ctx.headers.get("referer")
        _validate(origin, "origin", "INVALID_ORIGIN", trusted_origins)

    for field_name, code in URL_FIELDS.items():
        _validate(body.get(field_name) or query.get(field_name), field_name, code, trusted_origins)
    return None
