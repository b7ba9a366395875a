"""
TechGear Catalog Backend — Custom Exception Hierarchy
======================================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions let every pipeline stage (rate limit, auth, validation,
       storage) short-circuit a request with the right HTTP status without
       building responses itself.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return JSON error responses with correct HTTP status codes.
Who:   Raised by middleware, dependencies and services; caught by global handlers.

Exception Hierarchy:
    CatalogError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── ConflictError            → 400 Bad Request (duplicate unique field)
    ├── UnauthorizedError        → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── ServiceUnavailableError  → 503 Service Unavailable (retry later)
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class CatalogError(Exception):
    """
    Base exception for all catalog application errors.

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


class ValidationError(CatalogError):
    """
    Raised when client input fails validation.

    When:    Missing product/user fields, bad price, bad URL, bad email, bad id.
    HTTP:    400 Bad Request

    Raised before any storage access, so a failed validation never leaves
    a partial write behind.
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


class ConflictError(CatalogError):
    """
    Raised when a write would duplicate a unique field (user email).

    HTTP:    400 Bad Request

    Registration checks for an existing user first; this is also what a
    unique-index violation from the database is translated into, so a race
    between two identical registrations still yields a clean message.
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnauthorizedError(CatalogError):
    """
    Raised when a request cannot be authenticated.

    When:    No bearer token, malformed header, bad signature, expired token,
             or a token whose user no longer exists.
    HTTP:    401 Unauthorized (with WWW-Authenticate: Bearer)
    """

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(CatalogError):
    """Authenticated, but the role is not allowed to perform the action (403)."""

    def __init__(
        self,
        message: str = "Forbidden",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(CatalogError):
    """
    Raised when a requested resource does not exist.

    When:    GET/PUT/DELETE /products/{id} with an id that has no row.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ServiceUnavailableError(CatalogError):
    """
    Raised when storage is unreachable, not configured, or too slow.

    When:    Readiness gate gave up, a query exceeded db_query_timeout, or the
             connection dropped mid-query.
    HTTP:    503 Service Unavailable

    Why separate from DatabaseError:
        503 tells the client the failure is transient and the request can be
        retried; DatabaseError (500) is reserved for everything else.
    """

    def __init__(
        self,
        message: str = "Database is temporarily unavailable. Please try again later.",
        retry_after: Optional[int] = 5,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class DatabaseError(CatalogError):
    """
    Raised when database operations fail for non-transient reasons.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. Driver details are
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(CatalogError):
    """
    Raised when a client exceeds one of the per-IP request windows.

    HTTP:    429 Too Many Requests (with Retry-After header)
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
