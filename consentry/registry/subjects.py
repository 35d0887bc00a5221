"""Subject repository."""

from __future__ import annotations

from consentry.errors import APIError
from consentry.models import Subject
from consentry.registry.base import BaseRepository
from consentry.storage.adapter import Where


class SubjectRepository(BaseRepository[Subject]):
    model_name = "subject"
    model_class = Subject

    async def find_by_external_id(self, external_id: str) -> Subject | None:
        return await self.find_one(Where("external_id", external_id))

    async def find_or_create(
        self,
        *,
        subject_id: str | None = None,
        external_subject_id: str | None = None,
        ip_address: str | None = None,
    ) -> Subject:
        """
        Resolve the subject for a consent interaction.

        - both ids: the internal id must exist and carry the external id
        - internal id only: must exist
        - external id only: found, or created as an identified subject
        - neither: a new anonymous subject

        Raises:
            APIError: NOT_FOUND (SUBJECT_NOT_FOUND) for an unknown id,
                BAD_REQUEST (SUBJECT_MISMATCH) when the ids disagree,
                BAD_REQUEST (SUBJECT_CREATION_FAILED) when creation is refused.
        """
        if subject_id:
            subject = await self.get_by_id(subject_id)
            if subject is None:
                raise APIError(
                    "NOT_FOUND",
                    code="SUBJECT_NOT_FOUND",
                    meta={"subjectId": subject_id},
                )
            if external_subject_id and subject.external_id != external_subject_id:
                self.logger.warning(
                    "subject_id_mismatch",
                    subject_id=subject_id,
                    external_subject_id=external_subject_id,
                )
                raise APIError(
                    "BAD_REQUEST",
                    code="SUBJECT_MISMATCH",
                    meta={"subjectId": subject_id, "externalSubjectId": external_subject_id},
                )
            return subject

        if external_subject_id:
            subject = await self.find_by_external_id(external_subject_id)
            if subject is not None:
                return subject
            created = await self.create({
                "external_id": external_subject_id,
                "identity_provider": "external",
                "is_identified": True,
                "last_ip_address": ip_address,
            })
        else:
            created = await self.create({
                "identity_provider": "anonymous",
                "is_identified": False,
                "last_ip_address": ip_address,
            })

        if created is None:
            raise APIError("BAD_REQUEST", code="SUBJECT_CREATION_FAILED")
        self.logger.debug("subject_created", subject_id=created.id, identified=created.is_identified)
        return created
