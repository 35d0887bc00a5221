"""
Shared test fixtures for consentry.

Provides an in-memory adapter, a registry over it, a configured
instance and a FastAPI test client mounting that instance.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any

# Set before any consentry import reads settings
os.environ["APP_ENV"] = "testing"

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

from consentry.api.app import create_app
from consentry.config import ConsentOptions
from consentry.core import ConsentInstance, create_consentry
from consentry.registry import ConsentRegistry
from consentry.storage import MemoryAdapter

TRUSTED_ORIGIN = "https://app.example.com"


# =============================================================================
# STORAGE FIXTURES
# =============================================================================


@pytest.fixture
def memory_adapter() -> MemoryAdapter:
    """Fresh in-memory adapter."""
    return MemoryAdapter()


@pytest.fixture
def registry(memory_adapter: MemoryAdapter) -> ConsentRegistry:
    """Registry bound to the in-memory adapter."""
    return ConsentRegistry(memory_adapter)


# =============================================================================
# INSTANCE FIXTURES
# =============================================================================


@pytest.fixture
def options(memory_adapter: MemoryAdapter) -> ConsentOptions:
    return ConsentOptions(
        testing=True,
        trusted_origins=[TRUSTED_ORIGIN],
        adapter=memory_adapter,
    )


@pytest.fixture
def instance(options: ConsentOptions) -> ConsentInstance:
    return create_consentry(options)


@pytest.fixture
def client(instance: ConsentInstance) -> TestClient:
    """Test client for the API mounted at the default base path."""
    return TestClient(create_app(instance))


# =============================================================================
# REQUEST FACTORY
# =============================================================================


def _make_request(
    method: str = "GET",
    path: str = "/api/consentry/ok",
    headers: dict[str, str] | None = None,
    body: bytes = b"",
    query_string: bytes = b"",
    client: tuple[str, int] | None = ("10.0.0.1", 54321),
) -> Request:
    scope: dict[str, Any] = {
        "type": "http",
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "server": ("testserver", 80),
        "root_path": "",
        "path": path,
        "raw_path": path.encode(),
        "query_string": query_string,
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }

    async def receive() -> dict[str, Any]:
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


@pytest.fixture
def make_request() -> Callable[..., Request]:
    """Factory for raw Starlette requests."""
    return _make_request
