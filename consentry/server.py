"""
Consentry standalone server.

    python -m consentry.server
    consentry-server
"""

from __future__ import annotations

import uvicorn

from consentry.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "consentry.api.app:build_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
        reload=settings.app_env == "development",
    )


if __name__ == "__main__":
    main()
