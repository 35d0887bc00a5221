"""Entities and endpoint contracts."""

from consentry.models.base import (
    ConsentryModel,
    ConsentStatus,
    LegalBasis,
    PolicyType,
    utc_now,
)
from consentry.models.contracts import (
    CookieBannerConsentRequest,
    GetConsentQuery,
    GetConsentResponse,
    OtherConsentRequest,
    PolicyBasedConsentRequest,
    SetConsentRequest,
    SetConsentResponse,
    VerifyConsentRequest,
    VerifyConsentResponse,
    WithdrawConsentRequest,
    WithdrawConsentResponse,
)
from consentry.models.entities import (
    AuditLog,
    Consent,
    ConsentPolicy,
    ConsentPurpose,
    ConsentRecord,
    Domain,
    Subject,
)

__all__ = [
    # Base
    "ConsentryModel",
    "ConsentStatus",
    "LegalBasis",
    "PolicyType",
    "utc_now",
    # Entities
    "AuditLog",
    "Consent",
    "ConsentPolicy",
    "ConsentPurpose",
    "ConsentRecord",
    "Domain",
    "Subject",
    # Contracts
    "CookieBannerConsentRequest",
    "GetConsentQuery",
    "GetConsentResponse",
    "OtherConsentRequest",
    "PolicyBasedConsentRequest",
    "SetConsentRequest",
    "SetConsentResponse",
    "VerifyConsentRequest",
    "VerifyConsentResponse",
    "WithdrawConsentRequest",
    "WithdrawConsentResponse",
]
