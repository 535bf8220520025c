"""
ClassNotes Backend - Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for each error scenario.
How:   Each exception carries a user-safe message and an optional context
       dict. Global handlers (registered in main.py) turn them into
       structured JSON responses with the matching HTTP status code.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    ClassNotesError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden
    │   ├── InvalidTokenError
    │   └── TokenExpiredError
    ├── ConflictError            → 409 Conflict
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error

There is no NotFoundError: deleting a missing record reports
success, and a missing parent during populate renders as null.
"""

from typing import Any, Dict, Optional


class ClassNotesError(Exception):
    """
    Base exception for all ClassNotes application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, and returned only for 4xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ClassNotesError):
    """
    Raised when client input fails validation (InvalidInput).

    When:    Blank names, missing fields, unknown parent id, rejected upload.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Class with ID '...' does not exist",
            "details": {"field": "class_id"}
        }
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


class AuthenticationError(ClassNotesError):
    """
    Raised for failed logins and requests without credentials.

    HTTP:    401 Unauthorized

    The login message is identical for unknown usernames and wrong
    passwords so a caller cannot probe which accounts exist.
    """

    def __init__(
        self,
        message: str = "Invalid credentials",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(ClassNotesError):
    """Raised when a presented token fails verification. HTTP 403."""

    def __init__(
        self,
        message: str = "Invalid token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidTokenError(ForbiddenError):
    """Token is malformed, or its signature does not match."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid token", context=context)


class TokenExpiredError(ForbiddenError):
    """Token signature is valid but its expiry has passed."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Token has expired", context=context)


class ConflictError(ClassNotesError):
    """
    Raised when a write conflicts with existing data.

    When:    Registering a taken username; deleting a Class, Semester or
             Subject that still has children.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "The request conflicts with existing data",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(ClassNotesError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, directory not writable.
    HTTP:    500 Internal Server Error (generic message, details logged)
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(ClassNotesError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    Security Note:
        The client only ever sees a generic message. SQL text, constraint
        names and driver errors are logged server-side.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
