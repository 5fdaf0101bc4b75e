"""
ReadSync Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for every failure the API reports.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) translate them
       into the `{success: false, message}` envelope with the right status.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    ReadSyncError (base)
    ├── ValidationError            → 400 Bad Request (client can fix)
    ├── AuthError                  → 401 Unauthorized
    ├── NotFoundError              → 404 Not Found
    ├── ConflictError              → 409 Conflict
    └── BackendError               → 500 Internal Server Error
        ├── DatabaseError          (record store failure)
        └── IdentityProviderError  (identity provider failure or rejection)

Validation errors are raised before any backend call is made. Backend
errors never reach the client verbatim: handlers log `context` server-side
and return a generic message.
"""

from typing import Any, Dict, Optional


class ReadSyncError(Exception):
    """
    Base exception for all ReadSync application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ReadSyncError):
    """
    Raised when client input fails validation.

    When:    Missing fields, short password, unknown sort column, blank fileId.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthError(ReadSyncError):
    """
    Raised when the caller cannot be authenticated.

    When:    Missing/invalid bearer token on a protected route, or bad
             credentials on login.
    HTTP:    401 Unauthorized

    `reason` is a machine-readable tag: missing_token, invalid_token or
    invalid_credentials.
    """

    def __init__(
        self,
        message: str = "Authentication required",
        reason: str = "invalid_token",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["reason"] = reason
        super().__init__(message=message, context=ctx)
        self.reason = reason


class NotFoundError(ReadSyncError):
    """
    Raised when a requested resource does not exist.

    When:    GET /reading-records/{fileId} for a file the caller never synced.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        message: str = "The requested resource was not found",
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(ReadSyncError):
    """
    Raised when a create would collide with an existing resource.

    When:    Registering an email that the identity provider already knows.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class BackendError(ReadSyncError):
    """
    Raised when a downstream dependency fails.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. The original
        error detail lives in `context` and is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A server error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(BackendError):
    """Raised when a reading_records query, upsert or delete fails."""

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class IdentityProviderError(BackendError):
    """
    Raised by the identity provider client.

    `status_code` is the upstream HTTP status, or None when the provider
    could not be reached at all. Callers treat 4xx as a rejection of the
    caller's input (bad credentials, duplicate email) and translate it
    into a client error; anything else stays a 500.
    """

    def __init__(
        self,
        message: str = "Identity provider request failed",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.status_code = status_code

    @property
    def is_rejection(self) -> bool:
        """True when the provider answered and refused the request (4xx)."""
        return self.status_code is not None and 400 <= self.status_code < 500
