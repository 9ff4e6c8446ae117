"""
The Villagers Backend — Custom Exception Hierarchy
====================================================

What:  Application-specific exceptions for the error taxonomy of the API.
How:   Each exception class carries a user-facing message and an optional
       context dict. Global exception handlers (registered in main.py) map
       them to HTTP status codes and a flat `{"error": message}` body.
Who:   Raised by services; caught only by the global handlers.

Exception Hierarchy:
    VillagersError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict (duplicate unique key)
    ├── DirectoryServiceError    → 500 Internal Server Error (postal API failed)
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class VillagersError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(VillagersError):
    """
    Raised when client input fails validation.

    When:    Malformed pincode, missing required field, bad upload.
    HTTP:    400 Bad Request
    """

    status_code = 400

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


class NotFoundError(VillagersError):
    """
    Raised when a requested resource does not exist.

    When:    Unknown village id, unknown (pincode, village name) pair, or a
             pincode the postal directory does not know.
    HTTP:    404 Not Found

    The message is the resource name followed by "not found"
    (e.g. "Village not found"), which is what the frontend displays.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)


class ConflictError(VillagersError):
    """
    Raised when an insert collides with an existing unique key.

    When:    Same food name or specialty title submitted twice for one village.
    HTTP:    409 Conflict
    """

    status_code = 409

    def __init__(
        self,
        message: str = "This entry already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DirectoryServiceError(VillagersError):
    """
    Raised when the external postal directory cannot be used.

    When:    Network failure or 5xx after all retries, timeout, or a body
             that is not the expected JSON list.
    HTTP:    500 Internal Server Error (generic message to the client)
    """

    def __init__(
        self,
        message: str = "Postal directory lookup failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(VillagersError):
    """
    Raised when database operations fail unexpectedly.

    When:    Any SQLAlchemyError escaping a service operation (see
             database.translate_database_errors).
    HTTP:    500 Internal Server Error

    The client always sees a generic message; the context (constraint names,
    original exception type) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
