"""
Consentry Errors

The single recognized API error type plus the status and code tables
used to render the public error envelope:

    {"error": true, "code": "...", "message": "...", "meta": {...}}
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError
from starlette.responses import JSONResponse

# Symbolic status names understood by APIError
STATUS_CODES: dict[str, int] = {
    "OK": 200,
    "CREATED": 201,
    "ACCEPTED": 202,
    "NO_CONTENT": 204,
    "MOVED_PERMANENTLY": 301,
    "FOUND": 302,
    "BAD_REQUEST": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "METHOD_NOT_ALLOWED": 405,
    "CONFLICT": 409,
    "UNPROCESSABLE_ENTITY": 422,
    "INPUT_VALIDATION_FAILED": 422,
    "TOO_MANY_REQUESTS": 429,
    "INTERNAL_SERVER_ERROR": 500,
    "NOT_IMPLEMENTED": 501,
    "SERVICE_UNAVAILABLE": 503,
}

# Stable machine codes and their default messages
ERROR_CODES: dict[str, str] = {
    "INPUT_VALIDATION_FAILED": "Invalid request input",
    "SUBJECT_CREATION_FAILED": "Failed to create or find subject",
    "SUBJECT_NOT_FOUND": "Subject not found",
    "SUBJECT_MISMATCH": "Subject ID and external subject ID do not match",
    "DOMAIN_CREATION_FAILED": "Failed to create or find domain",
    "POLICY_NOT_FOUND": "Policy not found",
    "POLICY_INACTIVE": "Policy is not active",
    "POLICY_CREATION_FAILED": "Failed to create or find policy",
    "PURPOSE_CREATION_FAILED": "Failed to create or find purposes",
    "CONSENT_CREATION_FAILED": "Failed to create consent",
    "CONSENT_NOT_FOUND": "Consent not found",
    "CONSENT_ALREADY_WITHDRAWN": "Consent has already been withdrawn",
    "CONSENT_WITHDRAWAL_FAILED": "Failed to withdraw consent",
    "INVALID_ORIGIN": "Invalid origin",
    "INVALID_CALLBACK_URL": "Invalid callbackURL",
    "INVALID_REDIRECT_URL": "Invalid redirectURL",
    "ROUTE_NOT_FOUND": "Route not found",
    "METHOD_NOT_ALLOWED": "Method not allowed",
    "INTERNAL_SERVER_ERROR": "Internal Server Error",
}


class ConsentryError(Exception):
    """Base exception for consentry."""


class APIError(ConsentryError):
    """
    Error raised by endpoints, hooks and middlewares.

    Carries a symbolic status (``NOT_FOUND``), a machine code
    (``POLICY_NOT_FOUND``), an optional ``meta`` payload and response
    headers. Everything else raised inside the pipeline is treated as an
    unexpected failure and rendered as a generic 500.
    """

    def __init__(
        self,
        status: str | int = "INTERNAL_SERVER_ERROR",
        message: str | None = None,
        *,
        code: str | None = None,
        meta: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status = status
        self.code = code or (status if isinstance(status, str) else "INTERNAL_SERVER_ERROR")
        self.message = message or ERROR_CODES.get(self.code) or str(self.status).replace("_", " ").title()
        self.meta = meta
        self.headers: dict[str, str] = dict(headers or {})
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        if isinstance(self.status, int):
            return self.status
        return STATUS_CODES.get(self.status, 500)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "error": True,
            "code": self.code,
            "message": self.message,
        }
        if self.meta:
            body["meta"] = self.meta
        return body

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status_code,
            content=self.to_dict(),
            headers=self.headers or None,
        )

    @classmethod
    def from_validation_error(cls, exc: ValidationError) -> APIError:
        """Flatten pydantic errors into ``{formErrors, fieldErrors}``."""
        form_errors: list[str] = []
        field_errors: dict[str, list[str]] = {}
        for error in exc.errors():
            loc = [str(part) for part in error.get("loc", ())]
            # Discriminated unions prefix the location with the tag value
            if loc and loc[0] in _CONSENT_TYPE_TAGS:
                loc = loc[1:]
            message = error.get("msg", "Invalid value")
            if loc:
                field_errors.setdefault(".".join(loc), []).append(message)
            else:
                form_errors.append(message)
        return cls(
            "INPUT_VALIDATION_FAILED",
            code="INPUT_VALIDATION_FAILED",
            meta={"formErrors": form_errors, "fieldErrors": field_errors},
        )

    def __repr__(self) -> str:
        return f"APIError(status={self.status!r}, code={self.code!r}, message={self.message!r})"


_CONSENT_TYPE_TAGS = frozenset({
    "cookie_banner",
    "privacy_policy",
    "dpa",
    "terms_and_conditions",
    "marketing_communications",
    "age_verification",
    "other",
})


__all__ = [
    "APIError",
    "ConsentryError",
    "ERROR_CODES",
    "STATUS_CODES",
]
