"""GET /show-consent-banner: jurisdiction-based banner decision."""

from __future__ import annotations

from typing import Any

from consentry.jurisdiction import check_jurisdiction, detect_location
from consentry.kernel.context import EndpointContext
from consentry.kernel.endpoint import create_endpoint
from consentry.translations import get_translations


def banner_decision(headers: Any) -> dict[str, Any]:
    """Pure function of the request headers."""
    country_code, region_code = detect_location(headers)
    decision = check_jurisdiction(country_code)
    return {
        "showConsentBanner": decision.show_consent_banner,
        "jurisdiction": {
            "code": decision.jurisdiction.value,
            "message": decision.message,
        },
        "location": {
            "countryCode": country_code,
            "regionCode": region_code,
        },
        "translations": get_translations(headers.get("accept-language")),
    }


@create_endpoint("/show-consent-banner", method="GET")
async def show_consent_banner(ctx: EndpointContext) -> dict[str, Any]:
    return banner_decision(ctx.headers)
