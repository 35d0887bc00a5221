"""
POST /consent/withdraw

Withdraws one consent by id, or every active consent a subject holds on
a domain. Each withdrawal appends a consent record and an audit log
entry, all in one transaction.
"""

from __future__ import annotations

from datetime import UTC, datetime

import structlog

from consentry.errors import APIError
from consentry.kernel.context import EndpointContext
from consentry.kernel.endpoint import create_endpoint
from consentry.models import Consent, ConsentStatus, WithdrawConsentRequest, WithdrawConsentResponse
from consentry.models.contracts import WithdrawConsentData
from consentry.registry import ConsentRegistry

logger = structlog.get_logger(__name__)


async def _consents_to_withdraw(registry: ConsentRegistry, body: WithdrawConsentRequest) -> list[Consent]:
    if body.consent_id:
        consent = await registry.consents.get_by_id(body.consent_id)
        if consent is None:
            raise APIError("NOT_FOUND", code="CONSENT_NOT_FOUND", meta={"consentId": body.consent_id})
        if consent.status != ConsentStatus.ACTIVE or not consent.is_active:
            raise APIError(
                "CONFLICT",
                code="CONSENT_ALREADY_WITHDRAWN",
                meta={"consentId": consent.id, "status": consent.status},
            )
        return [consent]

    if body.subject_id:
        subject = await registry.subjects.get_by_id(body.subject_id)
    else:
        subject = await registry.subjects.find_by_external_id(body.external_subject_id)
    if subject is None:
        raise APIError(
            "NOT_FOUND",
            code="SUBJECT_NOT_FOUND",
            meta={"subjectId": body.subject_id, "externalSubjectId": body.external_subject_id},
        )

    domain = await registry.domains.find_by_name(body.domain)
    consents = (
        await registry.consents.find_active(subject_id=subject.id, domain_id=domain.id)
        if domain is not None
        else []
    )
    if not consents:
        raise APIError(
            "NOT_FOUND",
            "No active consent found for this subject and domain",
            code="CONSENT_NOT_FOUND",
            meta={"subjectId": subject.id, "domain": body.domain},
        )
    return consents


@create_endpoint("/consent/withdraw", method="POST", body=WithdrawConsentRequest)
async def withdraw_consent(ctx: EndpointContext) -> WithdrawConsentResponse:
    body: WithdrawConsentRequest = ctx.body
    context = ctx.context
    registry: ConsentRegistry = context.registry

    consents = await _consents_to_withdraw(registry, body)
    revoked_at = datetime.now(UTC)
    record_ids: list[str] = []

    async with registry.transaction() as tx:
        for consent in consents:
            updated = await tx.consents.withdraw(consent.id, body.reason)
            if updated is None:
                raise APIError("INTERNAL_SERVER_ERROR", code="CONSENT_WITHDRAWAL_FAILED")

            details = {"reason": body.reason, **(body.metadata or {})}
            record = await tx.records.record(
                subject_id=consent.subject_id,
                consent_id=consent.id,
                action_type="consent_withdrawn",
                details=details,
            )
            if record is None:
                raise APIError("INTERNAL_SERVER_ERROR", code="CONSENT_WITHDRAWAL_FAILED")
            record_ids.append(record.id)

            await tx.audit_logs.log(
                entity_type="consent",
                entity_id=consent.id,
                action_type="consent_withdrawn",
                subject_id=consent.subject_id,
                details={"consentId": consent.id, "reason": body.reason},
                ip_address=context.ip_address,
                user_agent=context.user_agent,
            )

    logger.info("consent_withdrawn", consent_ids=[c.id for c in consents], reason=body.reason)

    return WithdrawConsentResponse(
        data=WithdrawConsentData(
            consent_ids=[c.id for c in consents],
            record_ids=record_ids,
            revoked_at=revoked_at,
        )
    )
