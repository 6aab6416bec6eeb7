"""
Notebook Backend: Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the analytics endpoints.
How:   Each exception carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return the `{success: false, error, details}` envelope with the
       matching HTTP status code.
Who:   Raised by services; caught by global handlers.

Exception Hierarchy:
    NotebookError (base)
    ├── ValidationError   → 400 Bad Request (client can fix)
    └── StorageError      → 500 Internal Server Error (read path only)

Write-path storage faults are deliberately absent from this hierarchy:
the ingestion service reports them through IngestionOutcome instead of
raising.
"""

from typing import Any, Dict, Optional


class NotebookError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  Human-readable error description (returned in the response)
        context:  Additional debug info (logged, not returned)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NotebookError):
    """
    Raised when client input fails validation.

    HTTP:    400 Bad Request

    Example response:
        {
            "success": false,
            "error": "Validation failed",
            "details": "\"event_type\" must be one of [note_created, ...]",
            "field": "event_type"
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


class StorageError(NotebookError):
    """
    Raised when an aggregation query against the store fails.

    HTTP:    500 Internal Server Error

    `message` is the operation category ("Failed to fetch popular tags") and
    `details` the underlying driver message. Both are returned to the caller.
    Not retried.
    """

    def __init__(
        self,
        message: str = "Storage operation failed",
        details: str = "",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.details = details
