"""Domain repository."""

from __future__ import annotations

from consentry.errors import APIError
from consentry.models import Domain
from consentry.registry.base import BaseRepository
from consentry.storage.adapter import Where


def normalize_domain(name: str) -> str:
    return name.strip().lower()


class DomainRepository(BaseRepository[Domain]):
    model_name = "domain"
    model_class = Domain

    async def find_by_name(self, name: str) -> Domain | None:
        return await self.find_one(Where("name", normalize_domain(name)))

    async def find_or_create(self, name: str) -> Domain:
        domain = await self.find_by_name(name)
        if domain is not None:
            return domain

        created = await self.create({
            "name": normalize_domain(name),
            "allowed_origins": [],
            "is_active": True,
            "is_verified": False,
        })
        if created is None:
            raise APIError(
                "INTERNAL_SERVER_ERROR",
                code="DOMAIN_CREATION_FAILED",
                meta={"domain": name},
            )
        self.logger.info("domain_created", domain=created.name, domain_id=created.id)
        return created
