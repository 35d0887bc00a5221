from consentry.handlers.consent.get_consent import get_consent
from consentry.handlers.consent.set_consent import set_consent
from consentry.handlers.consent.show_banner import banner_decision, show_consent_banner
from consentry.handlers.consent.verify_consent import (
    PolicyConsentCheck,
    check_policy_consent,
    verify_consent,
)
from consentry.handlers.consent.withdraw_consent import withdraw_consent

__all__ = [
    "PolicyConsentCheck",
    "banner_decision",
    "check_policy_consent",
    "get_consent",
    "set_consent",
    "show_consent_banner",
    "verify_consent",
    "withdraw_consent",
]
