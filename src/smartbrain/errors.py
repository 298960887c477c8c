"""Error taxonomy.

Every failure a handler can report is a SmartBrainError subclass carrying
a machine-readable ``kind``, a short message and the HTTP status. The
exception handlers in main.py render all of them as one envelope:

    {"error": {"kind": "unauthorized", "message": "Unauthorized"}}
"""

from typing import Optional


class SmartBrainError(Exception):
    """Base class for errors surfaced to API clients."""

    kind = "internal_error"
    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": {"kind": self.kind, "message": self.message}}


class BadRequest(SmartBrainError):
    kind = "bad_request"
    status_code = 400
    default_message = "Incorrect form submission"


class Unauthorized(SmartBrainError):
    kind = "unauthorized"
    status_code = 401
    default_message = "Unauthorized"


class InvalidCredentials(SmartBrainError):
    kind = "invalid_credentials"
    status_code = 400
    default_message = "Wrong credentials"


class DuplicateEmail(SmartBrainError):
    kind = "duplicate_email"
    status_code = 400
    default_message = "Email already registered"


class NotFound(SmartBrainError):
    kind = "not_found"
    status_code = 404
    default_message = "User not found"


class TokenNotFound(SmartBrainError):
    kind = "token_not_found"
    status_code = 400
    default_message = "Token not found"


class ServiceUnavailable(SmartBrainError):
    kind = "service_unavailable"
    status_code = 503
    default_message = "Service unavailable"


class SessionStoreError(ServiceUnavailable):
    """The session store could not be reached or rejected a command."""

    default_message = "Session store unavailable"


class InternalError(SmartBrainError):
    pass


class DatabaseError(SmartBrainError):
    """A query failed on an endpoint that reports query errors as 400."""

    kind = "database_error"
    status_code = 400
    default_message = "Database error"


class VendorError(SmartBrainError):
    kind = "vendor_error"
    status_code = 400
    default_message = "Unable to work with API"


class RequestTimeout(SmartBrainError):
    """An outbound call (database, Redis, vendor API) exceeded its timeout."""

    kind = "timeout"
    status_code = 504
    default_message = "Upstream call timed out"


class ConfigurationError(SmartBrainError):
    kind = "configuration_error"
    status_code = 500
    default_message = "Server is misconfigured"
