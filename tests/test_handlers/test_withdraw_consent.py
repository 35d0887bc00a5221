"""Tests for POST /consent/withdraw."""

import pytest

from consentry.errors import APIError


async def _set(instance, domain="example.com", subject="user-1"):
    return await instance.api["set_consent"](body={
        "type": "privacy_policy",
        "domain": domain,
        "externalSubjectId": subject,
    })


class TestWithdrawConsent:
    """Tests for the withdraw_consent endpoint."""

    @pytest.mark.asyncio
    async def test_withdraw_by_id(self, instance):
        created = await _set(instance)

        result = await instance.api["withdraw_consent"](body={"consentId": created.id, "reason": "changed mind"})

        assert result.success is True
        assert result.data.consent_ids == [created.id]
        assert len(result.data.record_ids) == 1

        registry = (await instance.get_context()).registry
        consent = await registry.consents.get_by_id(created.id)
        assert consent.status == "withdrawn"
        assert consent.is_active is False
        assert consent.withdrawal_reason == "changed mind"

    @pytest.mark.asyncio
    async def test_withdraw_twice(self, instance):
        created = await _set(instance)
        await instance.api["withdraw_consent"](body={"consentId": created.id})

        with pytest.raises(APIError) as exc_info:
            await instance.api["withdraw_consent"](body={"consentId": created.id})

        assert exc_info.value.status_code == 409
        assert exc_info.value.code == "CONSENT_ALREADY_WITHDRAWN"

    @pytest.mark.asyncio
    async def test_withdraw_by_subject_and_domain(self, instance):
        first = await _set(instance)
        second = await _set(instance)
        other_domain = await _set(instance, domain="other.example")

        result = await instance.api["withdraw_consent"](body={
            "externalSubjectId": "user-1",
            "domain": "example.com",
        })

        assert sorted(result.data.consent_ids) == sorted([first.id, second.id])
        registry = (await instance.get_context()).registry
        assert (await registry.consents.get_by_id(other_domain.id)).is_active is True

    @pytest.mark.asyncio
    async def test_unknown_consent(self, instance):
        with pytest.raises(APIError) as exc_info:
            await instance.api["withdraw_consent"](body={"consentId": "cns_missing"})

        assert exc_info.value.code == "CONSENT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_unknown_subject(self, instance):
        with pytest.raises(APIError) as exc_info:
            await instance.api["withdraw_consent"](body={"externalSubjectId": "ghost", "domain": "example.com"})

        assert exc_info.value.code == "SUBJECT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_nothing_active_on_domain(self, instance):
        await _set(instance)

        with pytest.raises(APIError) as exc_info:
            await instance.api["withdraw_consent"](body={"externalSubjectId": "user-1", "domain": "nowhere.example"})

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_identifier_required(self, instance):
        with pytest.raises(APIError) as exc_info:
            await instance.api["withdraw_consent"](body={"reason": "x"})

        assert exc_info.value.status_code == 422

    @pytest.mark.asyncio
    async def test_domain_required_for_subject(self, instance):
        with pytest.raises(APIError) as exc_info:
            await instance.api["withdraw_consent"](body={"externalSubjectId": "user-1"})

        assert exc_info.value.code == "INPUT_VALIDATION_FAILED"
