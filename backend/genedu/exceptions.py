"""
GenEdu Backend — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the error kinds of the API.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) convert them
       into the `{success: false, message}` envelope with the right status.
Who:   Raised by dependencies and services; caught by the global handlers.

Exception Hierarchy:
    GenEduError (base)
    ├── AuthenticationError  → 401 Unauthorized
    ├── ValidationError      → 400 Bad Request
    ├── ConflictError        → 400 Bad Request
    ├── ForbiddenError       → 403 Forbidden
    ├── NotFoundError        → 404 Not Found (also used for "exists but not yours")
    └── DatabaseError        → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class GenEduError(Exception):
    """
    Base exception for all GenEdu application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Internal server error",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class AuthenticationError(GenEduError):
    """
    Missing, malformed, expired or insufficient bearer token.

    HTTP: 401 Unauthorized
    """

    status_code = 401

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ValidationError(GenEduError):
    """
    Client input failed a business rule (invalid role, malformed email,
    malformed cell list).

    HTTP: 400 Bad Request
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


class ConflictError(GenEduError):
    """
    A uniqueness rule would be violated (e.g. email already in use).

    HTTP: 400 Bad Request, matching the API contract for duplicate emails.
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(GenEduError):
    """
    The caller is authenticated but the action is refused (last admin).

    HTTP: 403 Forbidden
    """

    status_code = 403

    def __init__(
        self,
        message: str = "Forbidden",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(GenEduError):
    """
    The requested document does not exist, or the caller may not see it.

    HTTP: 404 Not Found

    The two cases share one response so that the existence of a notebook
    is never revealed to a caller without access.
    """

    status_code = 404

    def __init__(
        self,
        message: str = "Not found",
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


class DatabaseError(GenEduError):
    """
    A database operation failed unexpectedly.

    HTTP: 500 Internal Server Error. The client always receives the generic
    message; details stay in the server log.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Internal server error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
