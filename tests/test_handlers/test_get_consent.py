"""Tests for GET /consent/get."""

import pytest

from consentry.errors import APIError


async def _set(instance, domain="example.com"):
    return await instance.api["set_consent"](body={
        "type": "privacy_policy",
        "domain": domain,
        "externalSubjectId": "user-1",
    })


class TestGetConsent:
    @pytest.mark.asyncio
    async def test_by_external_id(self, instance):
        created = await _set(instance)

        result = await instance.api["get_consent"](query={"externalId": "user-1"})

        assert result.data.has_active_consent is True
        assert result.data.identified_by == "externalId"
        assert [r.id for r in result.data.records] == [created.id]
        assert result.data.records[0].domain == "example.com"

    @pytest.mark.asyncio
    async def test_by_subject_id_and_domain(self, instance):
        created = await _set(instance)
        await _set(instance, domain="other.example")

        result = await instance.api["get_consent"](query={"subjectId": created.subject_id, "domain": "example.com"})

        assert result.data.identified_by == "subjectId"
        assert [r.id for r in result.data.records] == [created.id]

    @pytest.mark.asyncio
    async def test_unknown_subject_empty(self, instance):
        result = await instance.api["get_consent"](query={"externalId": "ghost"})

        assert result.data.has_active_consent is False
        assert result.data.records == []

    @pytest.mark.asyncio
    async def test_withdrawn_excluded(self, instance):
        created = await _set(instance)
        await instance.api["withdraw_consent"](body={"consentId": created.id})

        result = await instance.api["get_consent"](query={"externalId": "user-1"})

        assert result.data.has_active_consent is False

    @pytest.mark.asyncio
    async def test_identifier_required(self, instance):
        with pytest.raises(APIError) as exc_info:
            await instance.api["get_consent"](query={"domain": "example.com"})

        assert exc_info.value.status_code == 422
