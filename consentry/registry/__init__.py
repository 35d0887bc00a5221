"""
Consent Registry

Repositories over the storage adapter, grouped behind one facade:

    registry = ConsentRegistry(adapter)
    subject = await registry.subjects.find_or_create(external_subject_id="u-1")

    async with registry.transaction() as tx:
        consent = await tx.consents.create({...})
        await tx.records.record(...)
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager

from consentry.registry.base import BaseRepository, DatabaseHooks, ModelHooks
from consentry.registry.consents import (
    AuditLogRepository,
    ConsentRecordRepository,
    ConsentRepository,
)
from consentry.registry.domains import DomainRepository
from consentry.registry.policies import PolicyRepository
from consentry.registry.purposes import PurposeRepository
from consentry.registry.subjects import SubjectRepository
from consentry.storage.adapter import Adapter


class ConsentRegistry:
    """All repositories bound to one adapter handle."""

    def __init__(self, adapter: Adapter, database_hooks: Sequence[DatabaseHooks] = ()) -> None:
        self.adapter = adapter
        self.database_hooks = list(database_hooks)
        self.subjects = SubjectRepository(adapter, self.database_hooks)
        self.domains = DomainRepository(adapter, self.database_hooks)
        self.policies = PolicyRepository(adapter, self.database_hooks)
        self.purposes = PurposeRepository(adapter, self.database_hooks)
        self.consents = ConsentRepository(adapter, self.database_hooks)
        self.records = ConsentRecordRepository(adapter, self.database_hooks)
        self.audit_logs = AuditLogRepository(adapter, self.database_hooks)

    def bind(self, adapter: Adapter) -> ConsentRegistry:
        return ConsentRegistry(adapter, self.database_hooks)

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[ConsentRegistry, None]:
        """
        Registry scoped to an adapter transaction.

        Commits on successful exit; any exception rolls back every write
        made through the yielded registry.
        """
        async with self.adapter.transaction() as tx:
            yield self.bind(tx)


__all__ = [
    "AuditLogRepository",
    "BaseRepository",
    "ConsentRecordRepository",
    "ConsentRegistry",
    "ConsentRepository",
    "DatabaseHooks",
    "DomainRepository",
    "ModelHooks",
    "PolicyRepository",
    "PurposeRepository",
    "SubjectRepository",
]
