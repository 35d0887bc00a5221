"""
Persisted entities.

These mirror the records held by the storage adapter. Consent records
and audit logs are append-only.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from consentry.models.base import (
    ConsentryModel,
    ConsentStatus,
    LegalBasis,
    PolicyType,
    utc_now,
)


class Subject(ConsentryModel):
    """A consenting party (website visitor or identified user)."""

    id: str
    external_id: str | None = None
    identity_provider: str = "anonymous"
    last_ip_address: str | None = None
    is_identified: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Domain(ConsentryModel):
    id: str
    name: str
    description: str | None = None
    allowed_origins: list[str] = Field(default_factory=list)
    is_active: bool = True
    is_verified: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ConsentPolicy(ConsentryModel):
    """A versioned policy document consent is given against."""

    id: str
    version: str
    type: PolicyType
    name: str
    effective_date: datetime
    expiration_date: datetime | None = None
    content: str
    content_hash: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)


class ConsentPurpose(ConsentryModel):
    id: str
    code: str
    name: str
    description: str = ""
    is_essential: bool = False
    data_category: str | None = None
    legal_basis: LegalBasis = LegalBasis.CONSENT
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Consent(ConsentryModel):
    id: str
    subject_id: str
    domain_id: str
    policy_id: str
    purpose_ids: list[str] = Field(default_factory=list)
    status: ConsentStatus = ConsentStatus.ACTIVE
    is_active: bool = True
    given_at: datetime = Field(default_factory=utc_now)
    valid_until: datetime | None = None
    withdrawal_reason: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    metadata: dict[str, Any] | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ConsentRecord(ConsentryModel):
    id: str
    subject_id: str
    consent_id: str | None = None
    action_type: str
    details: dict[str, Any] | None = None
    created_at: datetime = Field(default_factory=utc_now)


class AuditLog(ConsentryModel):
    id: str
    entity_type: str
    entity_id: str
    action_type: str
    subject_id: str | None = None
    details: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)
