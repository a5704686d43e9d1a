"""
Groceree Backend - Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions, one per failure class.
How:   Each exception carries an HTTP status code, a machine-readable error
       code, a user-facing message, an optional context dict, and an
       optional wrapped cause. One global handler (registered in main.py)
       turns any of them into a JSON error response.
Who:   Raised by services, security dependencies and routes.

Exception Hierarchy:
    GrocereeError (base)            → 500 server_error
    ├── ValidationError             → 400 validation_error
    ├── AuthenticationError         → 401 unauthorized
    ├── PermissionDeniedError       → 403 forbidden
    ├── NotFoundError               → 404 not_found
    ├── ConflictError               → 409 conflict
    ├── DatabaseError               → 500 server_error
    └── BlobStorageError            → 500 server_error

The wrapped cause is logged server-side and only echoed back to the client
outside production (see main.register_exception_handlers).
"""

from typing import Any, Dict, Optional


class GrocereeError(Exception):
    """
    Base exception for all Groceree application errors.

    Attributes:
        status_code: HTTP status returned to the client
        error_code:  Machine-readable code placed in the "error" field
        message:     User-facing error description
        context:     Additional debug info (logged, not returned)
        cause:       The lower-level exception this one wraps, if any
    """

    status_code: int = 500
    error_code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        self.message = message
        self.context = context or {}
        self.cause = cause
        super().__init__(self.message)


class ValidationError(GrocereeError):
    """
    Raised when client input fails a business rule.

    Examples: username already taken, unsupported image type, image too
    large. Schema-level problems (missing fields, wrong types) are raised by
    FastAPI itself and mapped to the same 400 response in main.py.
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Invalid request data",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(GrocereeError):
    """Missing, malformed or rejected credentials (bad login, bad token)."""

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message=message, context=context, cause=cause)


class PermissionDeniedError(GrocereeError):
    """Authenticated, but acting on another user's resource."""

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(GrocereeError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that None
    into this exception so routes never deal with status codes.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        message: str = "The requested resource was not found",
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if resource:
            ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(GrocereeError):
    """A unique constraint was hit by a concurrent write."""

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "The resource was modified concurrently",
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message=message, context=context, cause=cause)


class DatabaseError(GrocereeError):
    """
    Raised when database operations fail unexpectedly.

    The message names the operation that failed ("Failed to fetch recipe");
    the SQL error itself travels in `cause` and is never shown in
    production responses.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message=message, context=context, cause=cause)


class BlobStorageError(GrocereeError):
    """Could not write an uploaded image to the blob store."""

    def __init__(
        self,
        message: str = "Failed to upload image to storage",
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message=message, context=context, cause=cause)
