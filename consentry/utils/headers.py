"""Header-map helpers built on Starlette's case-insensitive headers."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from starlette.datastructures import Headers, MutableHeaders


def header_items(headers: Any) -> Iterable[tuple[str, str]]:
    if headers is None:
        return ()
    if isinstance(headers, Headers):
        return headers.items()
    if isinstance(headers, Mapping):
        return ((str(k), str(v)) for k, v in headers.items())
    return ((str(k), str(v)) for k, v in headers)


def clone_headers(headers: Any = None) -> MutableHeaders:
    """Copy any header-ish value into a fresh mutable header map."""
    if isinstance(headers, Headers):
        return MutableHeaders(raw=list(headers.raw))
    cloned = MutableHeaders()
    for key, value in header_items(headers):
        cloned[key] = value
    return cloned


def merge_headers(target: MutableHeaders, source: Any) -> MutableHeaders:
    """Set each header of ``source`` on ``target``; later values win per key."""
    for key, value in header_items(source):
        target[key] = value
    return target
