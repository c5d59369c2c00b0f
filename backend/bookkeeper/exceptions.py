"""
Book Keeper Backend - Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions, one per failure category.
How:   Each exception carries a user-safe `message` and a `context` dict.
       Global handlers registered in main.py turn them into JSON responses.
Who:   Raised by services and the access policy; caught by global handlers.

Exception Hierarchy:
    BookKeeperError (base)
    ├── ValidationError           → 400 Bad Request
    │   └── DuplicateKeyError     → 400 Bad Request (unique field clash)
    ├── AlreadyCompletedError     → 400 Bad Request (terminal ticket)
    ├── BookUnavailableError      → 400 Bad Request (book already lent out)
    ├── UnauthenticatedError      → 401 Unauthorized (no credential)
    ├── InvalidCredentialError    → 401 Unauthorized (bad token / password)
    ├── ForbiddenError            → 401 Unauthorized (insufficient capability)
    ├── NotFoundError             → 404 Not Found
    ├── DatabaseError             → 500 Internal Server Error
    └── RateLimitExceededError    → 429 Too Many Requests

    ForbiddenError maps to 401 rather than 403 to keep the status codes
    existing clients of this API already handle.
"""

from typing import Any, Dict, Optional


class BookKeeperError(Exception):
    """
    Base exception for all Book Keeper application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, not returned unless a handler opts in)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(BookKeeperError):
    """
    Raised when client input fails a business rule.

    When:  Password length out of range, empty update, malformed reference.
    HTTP:  400 Bad Request
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


class DuplicateKeyError(ValidationError):
    """
    Raised when a unique field (user email, category name) is already taken.

    Subclasses ValidationError so registration with a duplicate email is a
    client error (400), never a generic 500.
    """

    def __init__(
        self,
        resource: str = "resource",
        field: str = "id",
        value: Optional[str] = None,
    ):
        message = f"A {resource} with the same {field} already exists"
        ctx: Dict[str, Any] = {"resource": resource}
        if value is not None:
            ctx["value"] = value
        super().__init__(message=message, field=field, context=ctx)
        self.resource = resource


class NotFoundError(BookKeeperError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that None
    into this exception so routes stay free of existence checks.
    HTTP:  404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource


class AlreadyCompletedError(BookKeeperError):
    """
    Raised when a workflow transition targets a ticket in `completed`.

    `completed` is terminal: neither approve nor complete may touch it again.
    HTTP:  400 Bad Request
    """

    def __init__(self, ticket_id: Optional[str] = None):
        ctx = {"ticket_id": ticket_id} if ticket_id else {}
        super().__init__(message="Ticket already completed", context=ctx)


class BookUnavailableError(BookKeeperError):
    """
    Raised when approving a ticket for a book that another approved ticket
    already holds.

    HTTP:  400 Bad Request
    """

    def __init__(self, book_id: Optional[str] = None):
        ctx = {"book_id": book_id} if book_id else {}
        super().__init__(
            message="Book is currently issued on another approved ticket",
            context=ctx,
        )


class UnauthenticatedError(BookKeeperError):
    """No bearer credential was presented. HTTP: 401."""

    def __init__(self, message: str = "Unauthorized access!"):
        super().__init__(message=message)


class InvalidCredentialError(BookKeeperError):
    """
    The credential was presented but cannot be trusted.

    When:  Expired / malformed / wrongly-signed token, token for a deleted
           user, wrong login password, wrong old password on change.
    HTTP:  401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Invalid token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(BookKeeperError):
    """
    The caller is authenticated but lacks the capability for this operation.

    HTTP:  401 Unauthorized (see module docstring)
    """

    def __init__(
        self,
        message: str = "Access denied!",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(BookKeeperError):
    """
    Raised when a store operation fails unexpectedly.

    The response message is always generic; the original error type is kept
    in `context` and logged server-side only. Never retried automatically.
    HTTP:  500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(BookKeeperError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:  429 Too Many Requests, with a Retry-After header
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
