"""
Tests for the consent registry repositories.

Covers subject resolution, domain normalization, policy and purpose
find-or-create, consent withdrawal and database hooks.
"""

import hashlib
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from consentry.errors import APIError
from consentry.registry import ConsentRegistry, DatabaseHooks, ModelHooks
from consentry.registry.domains import normalize_domain
from consentry.registry.policies import policy_name
from consentry.storage import Where


class TestSubjectRepository:
    """Tests for subject find-or-create."""

    @pytest.mark.asyncio
    async def test_anonymous_subject(self, registry):
        subject = await registry.subjects.find_or_create(ip_address="203.0.113.1")

        assert subject.id.startswith("sub_")
        assert subject.is_identified is False
        assert subject.identity_provider == "anonymous"
        assert subject.last_ip_address == "203.0.113.1"

    @pytest.mark.asyncio
    async def test_external_id_idempotent(self, registry):
        first = await registry.subjects.find_or_create(external_subject_id="user-1")
        second = await registry.subjects.find_or_create(external_subject_id="user-1")

        assert first.id == second.id
        assert first.is_identified is True
        assert first.identity_provider == "external"

    @pytest.mark.asyncio
    async def test_unknown_subject_id(self, registry):
        with pytest.raises(APIError) as exc_info:
            await registry.subjects.find_or_create(subject_id="sub_missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.code == "SUBJECT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_matching_pair(self, registry):
        created = await registry.subjects.find_or_create(external_subject_id="user-1")

        found = await registry.subjects.find_or_create(subject_id=created.id, external_subject_id="user-1")

        assert found.id == created.id

    @pytest.mark.asyncio
    async def test_mismatched_pair(self, registry):
        created = await registry.subjects.find_or_create(external_subject_id="user-1")

        with pytest.raises(APIError) as exc_info:
            await registry.subjects.find_or_create(subject_id=created.id, external_subject_id="user-2")

        assert exc_info.value.status_code == 400
        assert exc_info.value.code == "SUBJECT_MISMATCH"


class TestDomainRepository:
    def test_normalize(self):
        assert normalize_domain("  Example.COM ") == "example.com"

    @pytest.mark.asyncio
    async def test_find_or_create_normalizes(self, registry):
        first = await registry.domains.find_or_create("Example.com")
        second = await registry.domains.find_or_create("example.com")

        assert first.id == second.id
        assert first.name == "example.com"
        assert first.id.startswith("dom_")


class TestPolicyRepository:
    """Tests for policy lookup and placeholder creation."""

    def test_policy_name(self):
        assert policy_name("terms_and_conditions") == "Terms And Conditions"

    @pytest.mark.asyncio
    async def test_placeholder_created_once(self, registry):
        first = await registry.policies.find_or_create_latest("privacy_policy")
        second = await registry.policies.find_or_create_latest("privacy_policy")

        assert first.id == second.id
        assert first.version == "1.0.0"
        assert first.type == "privacy_policy"
        assert first.name == "Privacy Policy"
        assert first.content.startswith("[PLACEHOLDER]")
        assert first.content_hash == hashlib.sha256(first.content.encode()).hexdigest()

    @pytest.mark.asyncio
    async def test_latest_by_effective_date(self, registry):
        now = datetime.now(UTC)

        async def make(version, effective, active=True):
            return await registry.policies.create({
                "version": version,
                "type": "dpa",
                "name": "DPA",
                "effective_date": effective,
                "content": version,
                "content_hash": version,
                "is_active": active,
            })

        await make("1.0.0", now - timedelta(days=30))
        newer = await make("2.0.0", now - timedelta(days=1))
        await make("3.0.0", now, active=False)

        latest = await registry.policies.find_latest("dpa")

        assert latest.id == newer.id

    @pytest.mark.asyncio
    async def test_unknown_type_rejected(self, registry):
        with pytest.raises(ValueError):
            await registry.policies.find_latest("cookie_jar")


class TestPurposeRepository:
    @pytest.mark.asyncio
    async def test_auto_created_purpose(self, registry):
        purpose = await registry.purposes.find_or_create("analytics")

        assert purpose.code == "analytics"
        assert purpose.is_essential is False
        assert purpose.data_category == "functional"
        assert purpose.legal_basis == "consent"
        assert (await registry.purposes.find_or_create("analytics")).id == purpose.id


class TestConsentRepositories:
    """Tests for consents, consent records and audit logs."""

    async def _consent(self, registry, **overrides):
        data = {
            "subject_id": "sub_1",
            "domain_id": "dom_1",
            "policy_id": "pol_1",
            "purpose_ids": [],
            "is_active": True,
            "given_at": datetime.now(UTC),
        }
        data.update(overrides)
        return await registry.consents.create(data)

    @pytest.mark.asyncio
    async def test_find_for_policy_newest_first(self, registry):
        now = datetime.now(UTC)
        older = await self._consent(registry, given_at=now - timedelta(hours=1))
        newer = await self._consent(registry, given_at=now)
        await self._consent(registry, policy_id="pol_2")

        consents = await registry.consents.find_for_policy(
            subject_id="sub_1", policy_id="pol_1", domain_id="dom_1"
        )

        assert [c.id for c in consents] == [newer.id, older.id]

    @pytest.mark.asyncio
    async def test_withdraw(self, registry):
        consent = await self._consent(registry)

        withdrawn = await registry.consents.withdraw(consent.id, "no longer needed")

        assert withdrawn.status == "withdrawn"
        assert withdrawn.is_active is False
        assert withdrawn.withdrawal_reason == "no longer needed"
        assert await registry.consents.find_active(subject_id="sub_1") == []

    @pytest.mark.asyncio
    async def test_audit_log_has_timestamp_only(self, registry, memory_adapter):
        log = await registry.audit_logs.log(entity_type="consent", entity_id="cns_1", action_type="test")

        raw = await memory_adapter.find_one("auditLog", [Where("id", log.id)])

        assert "timestamp" in raw
        assert "created_at" not in raw

    @pytest.mark.asyncio
    async def test_record(self, registry):
        record = await registry.records.record(
            subject_id="sub_1", consent_id="cns_1", action_type="consent_given", details={"a": 1}
        )

        assert record.id.startswith("rec_")
        assert record.details == {"a": 1}


class TestDatabaseHooks:
    """Tests for before/after write hooks."""

    @pytest.mark.asyncio
    async def test_before_hook_aborts(self, memory_adapter):
        hooks = DatabaseHooks(create={"subject": ModelHooks(before=lambda data: False)})
        registry = ConsentRegistry(memory_adapter, [hooks])

        with pytest.raises(APIError) as exc_info:
            await registry.subjects.find_or_create()

        assert exc_info.value.code == "SUBJECT_CREATION_FAILED"
        assert await memory_adapter.count("subject") == 0

    @pytest.mark.asyncio
    async def test_before_hook_patches_data(self, memory_adapter):
        hooks = DatabaseHooks(create={"subject": ModelHooks(before=lambda data: {"data": {"identity_provider": "sso"}})})
        registry = ConsentRegistry(memory_adapter, [hooks])

        subject = await registry.subjects.find_or_create()

        assert subject.identity_provider == "sso"

    @pytest.mark.asyncio
    async def test_after_hook_receives_record(self, memory_adapter):
        after = MagicMock()
        hooks = DatabaseHooks(create={"domain": ModelHooks(after=after)})
        registry = ConsentRegistry(memory_adapter, [hooks])

        domain = await registry.domains.find_or_create("example.com")

        after.assert_called_once()
        assert after.call_args.args[0]["id"] == domain.id

    @pytest.mark.asyncio
    async def test_update_hooks(self, memory_adapter):
        seen = []
        hooks = DatabaseHooks(update={"consent": ModelHooks(before=lambda data: seen.append(data["status"]))})
        registry = ConsentRegistry(memory_adapter, [hooks])
        consent = await registry.consents.create({
            "subject_id": "sub_1", "domain_id": "dom_1", "policy_id": "pol_1",
        })

        await registry.consents.withdraw(consent.id)

        assert seen == ["withdrawn"]


class TestRegistryTransaction:
    @pytest.mark.asyncio
    async def test_rollback(self, registry, memory_adapter):
        with pytest.raises(RuntimeError):
            async with registry.transaction() as tx:
                await tx.domains.find_or_create("example.com")
                raise RuntimeError("fail")

        assert await memory_adapter.count("domain") == 0

    @pytest.mark.asyncio
    async def test_bound_registry_shares_hooks(self, registry):
        async with registry.transaction() as tx:
            assert tx.database_hooks == registry.database_hooks
            assert tx is not registry
