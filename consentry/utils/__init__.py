"""Small helpers shared across the pipeline."""

from consentry.utils.awaitables import maybe_await
from consentry.utils.headers import clone_headers, header_items
from consentry.utils.ip import get_ip_address
from consentry.utils.merge import apply_patch, deep_merge
from consentry.utils.wildcard import match_path, wildcard_match

__all__ = [
    "apply_patch",
    "clone_headers",
    "deep_merge",
    "get_ip_address",
    "header_items",
    "match_path",
    "maybe_await",
    "wildcard_match",
]
