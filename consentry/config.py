"""
Consentry Configuration Management

Environment-driven settings via Pydantic Settings, plus the runtime-only
options (plugins, hooks, callbacks, storage adapter) that cannot be
expressed as environment variables.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from starlette.responses import Response

    from consentry.kernel.hooks import Hook
    from consentry.kernel.plugins import Plugin
    from consentry.registry.base import DatabaseHooks
    from consentry.storage.adapter import Adapter

DEFAULT_BASE_PATH = "/api/consentry"

DEFAULT_IP_HEADERS: tuple[str, ...] = (
    "x-client-ip",
    "x-forwarded-for",
    "cf-connecting-ip",
    "fastly-client-ip",
    "x-real-ip",
    "x-cluster-client-ip",
    "x-forwarded",
    "forwarded-for",
    "forwarded",
)


def parse_origin_list(value: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """
    Normalize a trusted-origins value.

    Accepts a list, a JSON-encoded array, or a comma-separated string.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]

    text = value.strip()
    if not text:
        return []
    if text.startswith("["):
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError:
            decoded = None
        if isinstance(decoded, list):
            return [str(v).strip() for v in decoded if str(v).strip()]
    return [part.strip() for part in text.split(",") if part.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ═══════════════════════════════════════════════════════════════
    # APPLICATION
    # ═══════════════════════════════════════════════════════════════
    app_name: str = Field(default="consentry", description="Application name")
    app_env: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_mask_ip_addresses: bool = Field(
        default=True, description="Truncate caller IP addresses in log output"
    )

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, ge=1, le=65535, description="API port")

    # ═══════════════════════════════════════════════════════════════
    # ROUTING
    # ═══════════════════════════════════════════════════════════════
    base_url: str | None = Field(default=None, description="Public base URL of the API")
    base_path: str = Field(default=DEFAULT_BASE_PATH, description="Path prefix for all endpoints")

    trusted_origins: str = Field(
        default="",
        description="Trusted origins: comma-separated, or a JSON array. '*' wildcards allowed",
    )

    @property
    def trusted_origins_list(self) -> list[str]:
        """Parse trusted origins into a list."""
        return parse_origin_list(self.trusted_origins)

    # ═══════════════════════════════════════════════════════════════
    # SECURITY / PRIVACY
    # ═══════════════════════════════════════════════════════════════
    secret: str | None = Field(default=None, description="Instance secret")
    disable_csrf_check: bool = Field(default=False, description="Skip origin checks")
    disable_ip_tracking: bool = Field(default=False, description="Never record caller IP")
    ip_address_headers: str = Field(
        default="",
        description="Comma-separated header names to read the caller IP from",
    )

    @property
    def ip_address_headers_list(self) -> list[str]:
        return [h.strip().lower() for h in self.ip_address_headers.split(",") if h.strip()]

    # ═══════════════════════════════════════════════════════════════
    # ERRORS
    # ═══════════════════════════════════════════════════════════════
    api_error_throw: bool = Field(
        default=False, description="Re-raise API errors instead of rendering them"
    )

    @field_validator("base_path")
    @classmethod
    def validate_base_path(cls, v: str) -> str:
        v = v.strip()
        if not v or v == "/":
            return DEFAULT_BASE_PATH
        if not v.startswith("/"):
            v = "/" + v
        return v.rstrip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @property
    def is_testing(self) -> bool:
        return self.app_env == "testing"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# =============================================================================
# Runtime Options
# =============================================================================

ErrorCallback = Callable[[Exception, Any], "Awaitable[Response | None] | Response | None"]


@dataclass
class OnAPIError:
    """How the router reacts to errors escaping dispatch."""

    throw: bool = False
    on_error: ErrorCallback | None = None


@dataclass
class IPAddressOptions:
    ip_address_headers: list[str] = field(default_factory=list)
    disable_ip_tracking: bool = False


@dataclass
class ConsentOptions:
    """
    Runtime options for a consentry instance.

    Values that come from the environment are seeded from ``Settings``;
    everything else is passed in code.
    """

    app_name: str = "consentry"
    base_url: str | None = None
    base_path: str | None = None
    secret: str | None = None
    trusted_origins: list[str] = field(default_factory=list)
    plugins: list[Plugin] = field(default_factory=list)
    hooks: list[Hook] = field(default_factory=list)
    database_hooks: list[DatabaseHooks] = field(default_factory=list)
    on_api_error: OnAPIError = field(default_factory=OnAPIError)
    ip_address: IPAddressOptions = field(default_factory=IPAddressOptions)
    disable_csrf_check: bool = False
    testing: bool = False
    adapter: Adapter | None = None

    def __post_init__(self) -> None:
        self.trusted_origins = parse_origin_list(self.trusted_origins)

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **overrides: Any) -> ConsentOptions:
        settings = settings or get_settings()
        values: dict[str, Any] = {
            "app_name": settings.app_name,
            "base_url": settings.base_url,
            "base_path": settings.base_path,
            "secret": settings.secret,
            "trusted_origins": settings.trusted_origins_list,
            "on_api_error": OnAPIError(throw=settings.api_error_throw),
            "ip_address": IPAddressOptions(
                ip_address_headers=settings.ip_address_headers_list,
                disable_ip_tracking=settings.disable_ip_tracking,
            ),
            "disable_csrf_check": settings.disable_csrf_check,
            "testing": settings.is_testing,
        }
        values.update(overrides)
        return cls(**values)


__all__ = [
    "DEFAULT_BASE_PATH",
    "DEFAULT_IP_HEADERS",
    "ConsentOptions",
    "IPAddressOptions",
    "OnAPIError",
    "Settings",
    "get_settings",
    "parse_origin_list",
]
