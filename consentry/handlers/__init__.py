"""
Base endpoints.

``BASE_ENDPOINTS`` is the name -> endpoint map the router composes with
plugin endpoints.
"""

from consentry.handlers.consent import (
    get_consent,
    set_consent,
    show_consent_banner,
    verify_consent,
    withdraw_consent,
)
from consentry.handlers.meta import status

BASE_ENDPOINTS = {
    "set_consent": set_consent,
    "verify_consent": verify_consent,
    "withdraw_consent": withdraw_consent,
    "get_consent": get_consent,
    "show_consent_banner": show_consent_banner,
    "status": status,
}

__all__ = ["BASE_ENDPOINTS"]
