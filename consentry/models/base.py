"""
Base model configuration.

Python code uses snake_case; JSON on the wire uses camelCase aliases.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(UTC)


class ConsentryModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
    )


class PolicyType(str, Enum):
    COOKIE_BANNER = "cookie_banner"
    PRIVACY_POLICY = "privacy_policy"
    DPA = "dpa"
    TERMS_AND_CONDITIONS = "terms_and_conditions"
    MARKETING_COMMUNICATIONS = "marketing_communications"
    AGE_VERIFICATION = "age_verification"
    OTHER = "other"


class ConsentStatus(str, Enum):
    ACTIVE = "active"
    WITHDRAWN = "withdrawn"
    EXPIRED = "expired"


class LegalBasis(str, Enum):
    CONSENT = "consent"
    CONTRACT = "contract"
    LEGAL_OBLIGATION = "legal_obligation"
    VITAL_INTERESTS = "vital_interests"
    PUBLIC_INTEREST = "public_interest"
    LEGITIMATE_INTEREST = "legitimate_interest"
