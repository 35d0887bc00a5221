"""
Consentry - Consent Management Backend

Records, verifies and reports on user consent decisions for
privacy-regulation compliance (GDPR, LGPD, PIPEDA, ...).

Layers:
- kernel: hook processor, endpoint converter, router and plugins
- storage: adapter interface and in-memory adapter
- registry: find-or-create repositories over the adapter
- handlers: set / verify / withdraw consent, banner decision, status
- api: FastAPI application mounting the router
"""

__version__ = "1.0.0"

from consentry.core import ConsentInstance, create_consentry
from consentry.errors import APIError

__all__ = [
    "__version__",
    "APIError",
    "ConsentInstance",
    "create_consentry",
]
