"""
KNote Backend — Custom Exception Hierarchy
==========================================

What:  Application-specific exceptions for the note and attachment pipeline.
Why:   Custom exceptions let the global handlers in main.py pick the right HTTP
       status and keep internal details (bucket names, driver errors) out of
       responses.
How:   Each exception carries a user-safe message and an optional context dict
       that is logged but never returned to the client.

Exception Hierarchy:
    KNoteError (base)
    ├── ValidationError            → 400 Bad Request
    ├── NotFoundError              → 404 Not Found
    ├── StorageBootstrapFailure    → never surfaced (startup only, logged)
    ├── StorageUnavailableError    → 503 Service Unavailable
    ├── ObjectStoreError           → 502 Bad Gateway
    │   └── UploadFailedError      → 502 Bad Gateway
    └── DatabaseError              → 500 Internal Server Error

A blank note description is not an error: the note is simply not created.
"""

from typing import Any, Dict, Optional


class KNoteError(Exception):
    """
    Base exception for all KNote application errors.

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


class ValidationError(KNoteError):
    """
    Raised when a submission breaks a business rule the client can correct.

    When:    An attached image is larger than MAX_IMAGE_SIZE.
    HTTP:    400 Bad Request

    Unlike the other errors, the context is returned as `details` so the
    client can tell which field to fix.
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


class NotFoundError(KNoteError):
    """
    Raised when a requested resource does not exist.

    When:    GET /img/{key} for a key that was never uploaded.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StorageBootstrapFailure(KNoteError):
    """
    One failed attempt at connecting to the object store during startup.

    Retried by the bootstrapper according to its RetryPolicy. It is logged,
    never returned to a client.
    """

    def __init__(
        self,
        message: str = "Object store bootstrap attempt failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StorageUnavailableError(KNoteError):
    """
    Raised when attachments are used while the object store is not connected.

    When:    Bootstrap failed with reconnect disabled (degraded mode), or has
             not finished yet.
    HTTP:    503 Service Unavailable

    Publishing text notes keeps working in this state.
    """

    def __init__(
        self,
        message: str = "Image storage is currently unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ObjectStoreError(KNoteError):
    """
    Raised when an object store call fails for a reason other than a missing key.

    HTTP:    502 Bad Gateway (the upstream store misbehaved, not our server)
    """

    def __init__(
        self,
        message: str = "Object store request failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UploadFailedError(ObjectStoreError):
    """
    Raised when writing an attachment to the object store fails.

    Not retried: the user can press Upload again.
    HTTP:    502 Bad Gateway
    """

    def __init__(
        self,
        message: str = "Failed to upload image. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(KNoteError):
    """
    Raised when note store operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; the driver error is
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
