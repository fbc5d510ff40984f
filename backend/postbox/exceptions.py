"""
Postbox Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for the error scenarios of the API.
How:   Each exception carries a user-safe message and an optional context
       dict. Global handlers (registered in main.py) map them to structured
       JSON responses with the right HTTP status.
Who:   Raised by services; caught by the handlers in main.py.

Exception Hierarchy:
    PostboxError (base)     → 500 Internal Server Error
    ├── ValidationError     → 400 Bad Request (client can fix)
    ├── NotFoundError       → 404 Not Found
    ├── ConflictError       → 409 Conflict
    └── DatabaseError       → 500 Internal Server Error (details logged only)
"""

from typing import Any, Dict, Optional


class PostboxError(Exception):
    """
    Base exception for all Postbox application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; returned only where handlers allow)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PostboxError):
    """
    Raised when client input breaks a business rule.

    When:    A message names an author that does not exist.
    HTTP:    400 Bad Request

    Schema-level problems (missing title, unknown PUT fields) are rejected
    earlier by FastAPI with 422; this class covers rules that need the store.
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


class NotFoundError(PostboxError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that None
    into this exception so routes can stay free of status-code logic.
    HTTP: 404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(PostboxError):
    """
    Raised when a write collides with existing state.

    When:    Creating a message with an `_id` already in use, or a user
             with a taken username.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(PostboxError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the driver error
    and query context are logged server-side only.
    HTTP: 500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
