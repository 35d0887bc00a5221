"""GET /status: service and storage health plus caller details."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import structlog

from consentry.jurisdiction import detect_location
from consentry.kernel.context import EndpointContext
from consentry.kernel.endpoint import create_endpoint

logger = structlog.get_logger(__name__)


@create_endpoint("/status", method="GET")
async def status(ctx: EndpointContext) -> dict[str, Any]:
    from consentry import __version__

    context = ctx.context
    adapter = context.adapter

    available = False
    if adapter is not None:
        try:
            available = await adapter.health_check()
        except Exception as e:
            logger.warning("storage_health_check_failed", adapter=adapter.id, error=str(e))

    country_code, region_code = detect_location(ctx.headers)

    return {
        "status": "ok" if available else "error",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
        "storage": {
            "type": adapter.id if adapter is not None else None,
            "available": available,
        },
        "client": {
            "ip": context.ip_address,
            "userAgent": context.user_agent,
            "region": {
                "countryCode": country_code,
                "regionCode": region_code,
            },
        },
    }
