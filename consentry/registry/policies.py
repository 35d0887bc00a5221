"""Consent policy repository."""

from __future__ import annotations

import hashlib

from consentry.errors import APIError
from consentry.models import ConsentPolicy, PolicyType
from consentry.registry.base import BaseRepository
from consentry.storage.adapter import SortBy, Where

DEFAULT_POLICY_VERSION = "1.0.0"

PLACEHOLDER_TEMPLATE = (
    "[PLACEHOLDER] This is an automatically generated version of the {name} policy.\n\n"
    "This placeholder content should be replaced with actual policy terms before "
    "being presented to users.\n\n"
    "Generated on: {generated_on}"
)


def policy_name(policy_type: str) -> str:
    return policy_type.replace("_", " ").title()


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class PolicyRepository(BaseRepository[ConsentPolicy]):
    model_name = "consentPolicy"
    model_class = ConsentPolicy

    async def find_latest(self, policy_type: str | PolicyType) -> ConsentPolicy | None:
        """Latest active policy of a type, by effective date."""
        policies = await self.find_many(
            Where("type", PolicyType(policy_type).value),
            Where("is_active", True),
            sort_by=SortBy("effective_date", "desc"),
            limit=1,
        )
        return policies[0] if policies else None

    async def find_or_create_latest(self, policy_type: str | PolicyType) -> ConsentPolicy:
        """
        Latest active policy of a type, creating a placeholder version
        when none exists.

        Runs in a transaction so concurrent callers see one policy.
        """
        policy_type = PolicyType(policy_type).value

        async with self.adapter.transaction() as tx:
            repo = self.bind(tx)
            existing = await repo.find_latest(policy_type)
            if existing is not None:
                return existing

            now = self._now()
            name = policy_name(policy_type)
            content = PLACEHOLDER_TEMPLATE.format(name=name, generated_on=now.isoformat())
            created = await repo.create({
                "version": DEFAULT_POLICY_VERSION,
                "type": policy_type,
                "name": name,
                "effective_date": now,
                "content": content,
                "content_hash": content_hash(content),
                "is_active": True,
            })

        if created is None:
            raise APIError(
                "INTERNAL_SERVER_ERROR",
                code="POLICY_CREATION_FAILED",
                meta={"type": policy_type},
            )
        self.logger.info("policy_created", policy_id=created.id, type=policy_type, version=created.version)
        return created
