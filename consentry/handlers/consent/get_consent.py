"""GET /consent/get: active consents held by a subject."""

from __future__ import annotations

from consentry.kernel.context import EndpointContext
from consentry.kernel.endpoint import create_endpoint
from consentry.models import GetConsentQuery, GetConsentResponse
from consentry.models.contracts import ConsentSummary, GetConsentData
from consentry.registry import ConsentRegistry


@create_endpoint("/consent/get", method="GET", query=GetConsentQuery)
async def get_consent(ctx: EndpointContext) -> GetConsentResponse:
    query: GetConsentQuery = ctx.query
    registry: ConsentRegistry = ctx.context.registry
    identified_by = "subjectId" if query.subject_id else "externalId"

    if query.subject_id:
        subject = await registry.subjects.get_by_id(query.subject_id)
    else:
        subject = await registry.subjects.find_by_external_id(query.external_id)

    empty = GetConsentResponse(
        data=GetConsentData(has_active_consent=False, records=[], identified_by=identified_by)
    )
    if subject is None:
        return empty

    domain_id = None
    if query.domain:
        domain = await registry.domains.find_by_name(query.domain)
        if domain is None:
            return empty
        domain_id = domain.id

    consents = await registry.consents.find_active(subject_id=subject.id, domain_id=domain_id)

    domain_names: dict[str, str] = {}
    records = []
    for consent in consents:
        if consent.domain_id not in domain_names:
            domain = await registry.domains.get_by_id(consent.domain_id)
            domain_names[consent.domain_id] = domain.name if domain else ""
        records.append(ConsentSummary(
            id=consent.id,
            subject_id=consent.subject_id,
            domain=domain_names[consent.domain_id],
            status=consent.status,
            given_at=consent.given_at,
            policy_id=consent.policy_id,
            purpose_ids=consent.purpose_ids,
        ))

    return GetConsentResponse(
        data=GetConsentData(
            has_active_consent=bool(records),
            records=records,
            identified_by=identified_by,
        )
    )
