"""
POST /consent/verify

Read-side validity check. Expected failures (unknown subject, domain or
purpose, missing preferences, unknown policy) come back as
``{isValid: false, reasons: [...]}`` rather than errors. Every check that
reaches the consent lookup writes an audit log entry.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from consentry.errors import APIError
from consentry.kernel.context import EndpointContext
from consentry.kernel.endpoint import create_endpoint
from consentry.models import (
    Consent,
    ConsentPolicy,
    Domain,
    PolicyType,
    Subject,
    VerifyConsentRequest,
    VerifyConsentResponse,
)
from consentry.registry import ConsentRegistry

logger = structlog.get_logger(__name__)


@dataclass
class PolicyConsentCheck:
    """Consents found for a (subject, policy, domain) triple."""

    consents: list[Consent] = field(default_factory=list)
    filtered_consents: list[Consent] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        # TODO: confirm with product whether validity should follow
        # filtered_consents; it currently follows raw existence.
        return bool(self.consents)

    @property
    def consent(self) -> Consent | None:
        return self.filtered_consents[0] if self.filtered_consents else None

    def to_response(self) -> VerifyConsentResponse:
        if not self.is_valid:
            return VerifyConsentResponse.invalid("No consent found for the given policy")
        consent = self.consent
        return VerifyConsentResponse(
            is_valid=True,
            consent=consent.model_dump(mode="json", by_alias=True) if consent else None,
        )


async def check_policy_consent(
    registry: ConsentRegistry,
    *,
    subject: Subject,
    domain: Domain,
    policy: ConsentPolicy,
    purpose_ids: list[str],
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> PolicyConsentCheck:
    """Look up consents for the policy and filter them to a purpose superset."""
    consents = await registry.consents.find_for_policy(
        subject_id=subject.id,
        policy_id=policy.id,
        domain_id=domain.id,
    )

    if purpose_ids:
        required = set(purpose_ids)
        filtered = [c for c in consents if required.issubset(c.purpose_ids)]
    else:
        filtered = list(consents)

    check = PolicyConsentCheck(consents=consents, filtered_consents=filtered)

    details = {
        "type": policy.type,
        "policyId": policy.id,
        "purposeIds": purpose_ids,
        "success": bool(filtered),
    }
    if check.consent is not None:
        details["consentId"] = check.consent.id

    await registry.audit_logs.log(
        entity_type="consent_policy",
        entity_id=policy.id,
        action_type="verify_consent",
        subject_id=subject.id,
        details=details,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return check


@create_endpoint("/consent/verify", method="POST", body=VerifyConsentRequest)
async def verify_consent(ctx: EndpointContext) -> VerifyConsentResponse:
    body: VerifyConsentRequest = ctx.body
    context = ctx.context
    registry: ConsentRegistry = context.registry

    try:
        subject = await registry.subjects.find_or_create(
            subject_id=body.subject_id,
            external_subject_id=body.external_subject_id,
            ip_address=context.ip_address,
        )
    except APIError as error:
        if error.code != "SUBJECT_NOT_FOUND":
            raise
        return VerifyConsentResponse.invalid("Subject not found")

    domain = await registry.domains.find_by_name(body.domain)
    if domain is None:
        return VerifyConsentResponse.invalid("Domain not found")

    if body.type == PolicyType.COOKIE_BANNER and not body.preferences:
        return VerifyConsentResponse.invalid("Preferences are required")

    purpose_ids: list[str] = []
    for code in body.preferences or []:
        purpose = await registry.purposes.find_by_code(code)
        if purpose is None:
            return VerifyConsentResponse.invalid("Could not find all purposes")
        purpose_ids.append(purpose.id)

    if body.policy_id:
        policy = await registry.policies.get_by_id(body.policy_id)
        if policy is None or policy.type != body.type:
            return VerifyConsentResponse.invalid("Policy not found")
    else:
        policy = await registry.policies.find_or_create_latest(body.type)

    check = await check_policy_consent(
        registry,
        subject=subject,
        domain=domain,
        policy=policy,
        purpose_ids=purpose_ids,
        ip_address=context.ip_address,
        user_agent=context.user_agent,
    )

    logger.debug(
        "consent_verified",
        subject_id=subject.id,
        policy_id=policy.id,
        found=len(check.consents),
        matching=len(check.filtered_consents),
    )
    return check.to_response()
