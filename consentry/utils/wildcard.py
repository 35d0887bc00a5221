"""
Wildcard matching for trusted origins and middleware paths.

``*`` matches within one segment (no ``/`` for paths, no ``.`` for
hosts), ``**`` matches anything and ``?`` matches one character.
"""

from __future__ import annotations

import re
from functools import lru_cache


@lru_cache(maxsize=256)
def _compile(pattern: str, separator: str) -> re.Pattern[str]:
    sep = re.escape(separator)
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if pattern.startswith("**", i):
            parts.append(".*")
            i += 2
            continue
        if char == "*":
            parts.append(f"[^{sep}]*")
        elif char == "?":
            parts.append(f"[^{sep}]")
        else:
            parts.append(re.escape(char))
        i += 1
    return re.compile("^" + "".join(parts) + "$")


def wildcard_match(pattern: str, value: str, separator: str = ".") -> bool:
    return _compile(pattern, separator).match(value) is not None


def match_path(pattern: str, path: str) -> bool:
    """Match an endpoint path against a middleware path pattern."""
    if pattern in ("*", "/*", "**", "/**"):
        return True
    return wildcard_match(pattern.rstrip("/") or "/", path.rstrip("/") or "/", separator="/")
