"""
POST /consent/set

Records a consent decision. Subject, domain, policy and purposes are
resolved first; the consent, its consent record and the audit log entry
are then written in one transaction.
"""

from __future__ import annotations

from datetime import UTC, datetime

import structlog

from consentry.errors import APIError
from consentry.kernel.context import EndpointContext
from consentry.kernel.endpoint import create_endpoint
from consentry.models import (
    ConsentPolicy,
    ConsentStatus,
    SetConsentRequest,
    SetConsentResponse,
)
from consentry.monitoring.logging import log_duration
from consentry.registry import ConsentRegistry

logger = structlog.get_logger(__name__)


async def resolve_policy(
    registry: ConsentRegistry,
    policy_type: str,
    policy_id: str | None,
) -> ConsentPolicy:
    if policy_id:
        policy = await registry.policies.get_by_id(policy_id)
        if policy is None:
            raise APIError(
                "NOT_FOUND",
                code="POLICY_NOT_FOUND",
                meta={"policyId": policy_id, "type": policy_type},
            )
        if not policy.is_active:
            raise APIError(
                "CONFLICT",
                code="POLICY_INACTIVE",
                meta={"policyId": policy_id, "type": policy_type},
            )
        return policy

    return await registry.policies.find_or_create_latest(policy_type)


async def resolve_purpose_ids(registry: ConsentRegistry, preferences: dict[str, bool] | None) -> list[str]:
    """Ids of every purpose granted in ``preferences``, creating unknown codes."""
    codes = [code for code, granted in (preferences or {}).items() if granted]
    purpose_ids = [(await registry.purposes.find_or_create(code)).id for code in codes]
    if len(purpose_ids) != len(codes):
        raise APIError("INTERNAL_SERVER_ERROR", code="PURPOSE_CREATION_FAILED", meta={"codes": codes})
    return purpose_ids


@create_endpoint("/consent/set", method="POST", body=SetConsentRequest)
async def set_consent(ctx: EndpointContext) -> SetConsentResponse:
    body = ctx.body
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
        raise APIError(
            "BAD_REQUEST",
            code="SUBJECT_CREATION_FAILED",
            meta={"subjectId": body.subject_id, "externalSubjectId": body.external_subject_id},
        ) from error

    domain = await registry.domains.find_or_create(body.domain)
    policy = await resolve_policy(registry, body.type, getattr(body, "policy_id", None))
    purpose_ids = await resolve_purpose_ids(registry, body.preferences)

    given_at = datetime.now(UTC)
    with log_duration(logger, "consent_transaction", level="debug", domain=domain.name):
        async with registry.transaction() as tx:
            consent = await tx.consents.create({
                "subject_id": subject.id,
                "domain_id": domain.id,
                "policy_id": policy.id,
                "purpose_ids": purpose_ids,
                "status": ConsentStatus.ACTIVE.value,
                "is_active": True,
                "given_at": given_at,
                "ip_address": context.ip_address,
                "user_agent": context.user_agent,
                "metadata": body.metadata,
            })
            if consent is None:
                raise APIError("INTERNAL_SERVER_ERROR", code="CONSENT_CREATION_FAILED")

            record = await tx.records.record(
                subject_id=subject.id,
                consent_id=consent.id,
                action_type="consent_given",
                details=body.metadata,
            )
            if record is None:
                raise APIError("INTERNAL_SERVER_ERROR", code="CONSENT_CREATION_FAILED")

            await tx.audit_logs.log(
                entity_type="consent",
                entity_id=consent.id,
                action_type="consent_given",
                subject_id=subject.id,
                details={"consentId": consent.id, "type": body.type},
                ip_address=context.ip_address,
                user_agent=context.user_agent,
            )

    logger.info(
        "consent_created",
        consent_id=consent.id,
        subject_id=subject.id,
        domain=domain.name,
        type=body.type,
        purposes=len(purpose_ids),
    )

    return SetConsentResponse(
        id=consent.id,
        subject_id=subject.id,
        external_subject_id=subject.external_id,
        domain_id=domain.id,
        domain=domain.name,
        type=body.type,
        status=consent.status,
        record_id=record.id,
        metadata=body.metadata,
        given_at=consent.given_at,
    )
