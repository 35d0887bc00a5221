"""Consent, consent record and audit log repositories."""

from __future__ import annotations

from typing import Any

from consentry.models import AuditLog, Consent, ConsentRecord, ConsentStatus
from consentry.registry.base import BaseRepository
from consentry.storage.adapter import SortBy, Where


class ConsentRepository(BaseRepository[Consent]):
    model_name = "consent"
    model_class = Consent

    async def find_for_policy(
        self,
        *,
        subject_id: str,
        policy_id: str,
        domain_id: str,
    ) -> list[Consent]:
        """Active consents for (subject, policy, domain), newest first."""
        return await self.find_many(
            Where("subject_id", subject_id),
            Where("policy_id", policy_id),
            Where("domain_id", domain_id),
            Where("is_active", True),
            sort_by=SortBy("given_at", "desc"),
        )

    async def find_active(self, *, subject_id: str, domain_id: str | None = None) -> list[Consent]:
        clauses = [Where("subject_id", subject_id), Where("is_active", True)]
        if domain_id is not None:
            clauses.append(Where("domain_id", domain_id))
        return await self.find_many(*clauses, sort_by=SortBy("given_at", "desc"))

    async def withdraw(self, consent_id: str, reason: str | None = None) -> Consent | None:
        return await self.update(consent_id, {
            "status": ConsentStatus.WITHDRAWN.value,
            "is_active": False,
            "withdrawal_reason": reason,
        })


class ConsentRecordRepository(BaseRepository[ConsentRecord]):
    """Append-only consent action trail."""

    model_name = "consentRecord"
    model_class = ConsentRecord

    async def record(
        self,
        *,
        subject_id: str,
        consent_id: str | None,
        action_type: str,
        details: dict[str, Any] | None = None,
    ) -> ConsentRecord | None:
        return await self.create({
            "subject_id": subject_id,
            "consent_id": consent_id,
            "action_type": action_type,
            "details": details,
        })


class AuditLogRepository(BaseRepository[AuditLog]):
    """Append-only compliance audit log."""

    model_name = "auditLog"
    model_class = AuditLog

    async def log(
        self,
        *,
        entity_type: str,
        entity_id: str,
        action_type: str,
        subject_id: str | None = None,
        details: dict[str, Any] | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuditLog | None:
        return await self.create({
            "entity_type": entity_type,
            "entity_id": entity_id,
            "action_type": action_type,
            "subject_id": subject_id,
            "details": details,
            "ip_address": ip_address,
            "user_agent": user_agent,
            "timestamp": self._now(),
        })
