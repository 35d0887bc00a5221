"""
Jurisdiction detection for the consent banner decision.

Country and region come from CDN/edge geolocation headers; the country
maps to a regulatory regime which decides whether a banner is required.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum


class JurisdictionCode(str, Enum):
    GDPR = "GDPR"
    CH = "CH"
    BR = "BR"
    PIPEDA = "PIPEDA"
    AU = "AU"
    APPI = "APPI"
    PIPA = "PIPA"
    NONE = "NONE"


# First present header wins
COUNTRY_HEADERS: tuple[str, ...] = (
    "cf-ipcountry",
    "x-vercel-ip-country",
    "x-amz-cf-ipcountry",
    "x-country-code",
)

REGION_HEADERS: tuple[str, ...] = (
    "x-vercel-ip-country-region",
    "x-region-code",
)

EU_COUNTRIES = frozenset({
    "AT", "BE", "BG", "HR", "CY", "CZ", "DK", "EE", "FI", "FR", "DE", "GR", "HU",
    "IE", "IT", "LV", "LT", "LU", "MT", "NL", "PL", "PT", "RO", "SK", "SI", "ES", "SE",
})
EEA_COUNTRIES = frozenset({"IS", "NO", "LI"})
UK_COUNTRIES = frozenset({"GB"})

COUNTRY_JURISDICTIONS: dict[str, JurisdictionCode] = {
    "CH": JurisdictionCode.CH,
    "BR": JurisdictionCode.BR,
    "CA": JurisdictionCode.PIPEDA,
    "AU": JurisdictionCode.AU,
    "JP": JurisdictionCode.APPI,
    "KR": JurisdictionCode.PIPA,
}

JURISDICTION_MESSAGES: dict[JurisdictionCode, str] = {
    JurisdictionCode.GDPR: "GDPR or equivalent regulations require a cookie banner.",
    JurisdictionCode.CH: "Switzerland requires similar data protection measures.",
    JurisdictionCode.BR: "Brazil's LGPD requires consent for cookies.",
    JurisdictionCode.PIPEDA: "PIPEDA requires consent for data collection.",
    JurisdictionCode.AU: "Australia's Privacy Act mandates transparency about data collection.",
    JurisdictionCode.APPI: "Japan's APPI requires consent for data collection.",
    JurisdictionCode.PIPA: "South Korea's PIPA requires consent for data collection.",
    JurisdictionCode.NONE: "No specific requirements",
}


@dataclass(frozen=True)
class BannerDecision:
    show_consent_banner: bool
    jurisdiction: JurisdictionCode
    message: str


def _first_header(headers: Mapping[str, str], names: tuple[str, ...]) -> str | None:
    for name in names:
        value = headers.get(name)
        if value and value.strip():
            return value.strip().upper()
    return None


def detect_location(headers: Mapping[str, str]) -> tuple[str | None, str | None]:
    """(country_code, region_code) from geolocation headers."""
    return _first_header(headers, COUNTRY_HEADERS), _first_header(headers, REGION_HEADERS)


def classify_country(country_code: str) -> JurisdictionCode:
    code = country_code.upper()
    if code in EU_COUNTRIES or code in EEA_COUNTRIES or code in UK_COUNTRIES:
        return JurisdictionCode.GDPR
    return COUNTRY_JURISDICTIONS.get(code, JurisdictionCode.NONE)


def check_jurisdiction(country_code: str | None) -> BannerDecision:
    """
    Banner decision for a country.

    An unknown location has no jurisdiction but still shows the banner;
    known countries without a consent regime do not.
    """
    if not country_code:
        return BannerDecision(
            show_consent_banner=True,
            jurisdiction=JurisdictionCode.NONE,
            message=JURISDICTION_MESSAGES[JurisdictionCode.NONE],
        )

    jurisdiction = classify_country(country_code)
    return BannerDecision(
        show_consent_banner=jurisdiction is not JurisdictionCode.NONE,
        jurisdiction=jurisdiction,
        message=JURISDICTION_MESSAGES[jurisdiction],
    )


__all__ = [
    "BannerDecision",
    "COUNTRY_HEADERS",
    "JurisdictionCode",
    "REGION_HEADERS",
    "check_jurisdiction",
    "classify_country",
    "detect_location",
]
