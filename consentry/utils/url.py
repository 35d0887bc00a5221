from __future__ import annotations

from urllib.parse import urlsplit

from consentry.config import DEFAULT_BASE_PATH


def get_origin(url: str) -> str | None:
    """``scheme://host[:port]`` of an absolute URL, or None."""
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}"


def get_host(url: str) -> str | None:
    parts = urlsplit(url)
    return parts.netloc or None


def resolve_base_path(base_url: str | None, base_path: str | None = None) -> str:
    """
    Path prefix the router strips before matching endpoints.

    The path component of ``base_url`` wins; then the configured
    ``base_path``; an empty or root path falls back to the default.
    """
    candidates = []
    if base_url:
        candidates.append(urlsplit(base_url).path)
    candidates.append(base_path)
    for candidate in candidates:
        if candidate and candidate.strip() not in ("", "/"):
            path = candidate.strip().rstrip("/")
            return path if path.startswith("/") else "/" + path
    return DEFAULT_BASE_PATH
