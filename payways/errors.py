"""
Error taxonomy.

Every error the API can surface derives from PaywaysError and carries the
HTTP status it maps to. Gateway failures never leave risk.py.
"""

from __future__ import annotations


class PaywaysError(Exception):
    status_code = 400
    message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "message": self.message}


class ValidationError(PaywaysError):
    """Bad form input, reported against a single field."""

    status_code = 422

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["field"] = self.field
        return d


class DuplicateEmail(PaywaysError):
    status_code = 409
    message = "An account with this email already exists."


class DuplicateCode(PaywaysError):
    status_code = 409
    message = "Country with this code already exists."


class CountryNotFound(PaywaysError):
    status_code = 404
    message = "Country not found."


class InvalidCredentials(PaywaysError):
    # Same message for unknown email and wrong password.
    status_code = 401
    message = "Invalid email or password."


class NotAuthenticated(PaywaysError):
    status_code = 401
    message = "Log in to continue."


class AdminRequired(PaywaysError):
    status_code = 403
    message = "Administrator access required."


class SubmissionInProgress(PaywaysError):
    status_code = 409
    message = "A payment is already being analyzed."


class GatewayUnavailable(Exception):
    """Risk provider unreachable, misconfigured or returned a non-2xx."""


class GatewaySchemaViolation(Exception):
    """Risk provider answered, but not with a valid verdict object."""
