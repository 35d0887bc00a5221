"""
Request and response contracts for the consent endpoints.

``SetConsentRequest`` is a union discriminated on ``type``:

- ``cookie_banner`` requires ``preferences``
- ``privacy_policy`` / ``dpa`` / ``terms_and_conditions`` accept ``policyId``
- ``marketing_communications`` / ``age_verification`` / ``other``
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import Field, model_validator

from consentry.models.base import ConsentryModel, PolicyType

# =============================================================================
# Set Consent
# =============================================================================


class BaseConsentRequest(ConsentryModel):
    subject_id: str | None = None
    external_subject_id: str | None = None
    domain: str = Field(min_length=1)
    metadata: dict[str, Any] | None = None


class CookieBannerConsentRequest(BaseConsentRequest):
    type: Literal["cookie_banner"]
    preferences: dict[str, bool]


class PolicyBasedConsentRequest(BaseConsentRequest):
    type: Literal["privacy_policy", "dpa", "terms_and_conditions"]
    policy_id: str | None = None
    preferences: dict[str, bool] | None = None


class OtherConsentRequest(BaseConsentRequest):
    type: Literal["marketing_communications", "age_verification", "other"]
    preferences: dict[str, bool] | None = None


SetConsentRequest = Annotated[
    Union[CookieBannerConsentRequest, PolicyBasedConsentRequest, OtherConsentRequest],
    Field(discriminator="type"),
]


class SetConsentResponse(ConsentryModel):
    id: str
    subject_id: str
    external_subject_id: str | None = None
    domain_id: str
    domain: str
    type: PolicyType
    status: str
    record_id: str
    metadata: dict[str, Any] | None = None
    given_at: datetime


# =============================================================================
# Verify Consent
# =============================================================================


class VerifyConsentRequest(ConsentryModel):
    subject_id: str | None = None
    external_subject_id: str | None = None
    domain: str = Field(min_length=1)
    type: PolicyType
    policy_id: str | None = None
    preferences: list[str] | None = None


class VerifyConsentResponse(ConsentryModel):
    is_valid: bool
    reasons: list[str] | None = None
    consent: dict[str, Any] | None = None

    @classmethod
    def invalid(cls, *reasons: str) -> VerifyConsentResponse:
        return cls(is_valid=False, reasons=list(reasons))


# =============================================================================
# Withdraw Consent
# =============================================================================


class WithdrawConsentRequest(ConsentryModel):
    consent_id: str | None = None
    subject_id: str | None = None
    external_subject_id: str | None = None
    domain: str | None = None
    reason: str | None = None
    metadata: dict[str, Any] | None = None

    @model_validator(mode="after")
    def check_identifier(self) -> WithdrawConsentRequest:
        if self.consent_id:
            return self
        if not (self.subject_id or self.external_subject_id):
            raise ValueError("Provide consentId, or subjectId/externalSubjectId with domain")
        if not self.domain:
            raise ValueError("domain is required when withdrawing by subject")
        return self


class WithdrawConsentData(ConsentryModel):
    consent_ids: list[str]
    record_ids: list[str]
    revoked_at: datetime


class WithdrawConsentResponse(ConsentryModel):
    success: bool = True
    data: WithdrawConsentData


# =============================================================================
# Get Consent
# =============================================================================


class GetConsentQuery(ConsentryModel):
    subject_id: str | None = None
    external_id: str | None = None
    domain: str | None = None

    @model_validator(mode="after")
    def check_identifier(self) -> GetConsentQuery:
        if not (self.subject_id or self.external_id):
            raise ValueError("Provide subjectId or externalId")
        return self


class ConsentSummary(ConsentryModel):
    id: str
    subject_id: str
    domain: str
    status: str
    given_at: datetime
    policy_id: str
    purpose_ids: list[str]


class GetConsentData(ConsentryModel):
    has_active_consent: bool
    records: list[ConsentSummary]
    identified_by: str


class GetConsentResponse(ConsentryModel):
    success: bool = True
    data: GetConsentData
