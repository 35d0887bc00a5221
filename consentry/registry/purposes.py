"""Consent purpose repository."""

from __future__ import annotations

from consentry.errors import APIError
from consentry.models import ConsentPurpose, LegalBasis
from consentry.registry.base import BaseRepository
from consentry.storage.adapter import Where


class PurposeRepository(BaseRepository[ConsentPurpose]):
    model_name = "consentPurpose"
    model_class = ConsentPurpose

    async def find_by_code(self, code: str) -> ConsentPurpose | None:
        return await self.find_one(Where("code", code))

    async def find_or_create(self, code: str) -> ConsentPurpose:
        """Find a purpose by code, auto-creating a non-essential one."""
        purpose = await self.find_by_code(code)
        if purpose is not None:
            return purpose

        created = await self.create({
            "code": code,
            "name": code,
            "description": f"Auto-created consent purpose for {code}",
            "is_essential": False,
            "data_category": "functional",
            "legal_basis": LegalBasis.CONSENT.value,
            "is_active": True,
        })
        if created is None:
            raise APIError(
                "INTERNAL_SERVER_ERROR",
                code="PURPOSE_CREATION_FAILED",
                meta={"code": code},
            )
        self.logger.info("purpose_created", purpose_id=created.id, code=code)
        return created
