"""
Application exception hierarchy.

Services raise these; the handler registered in ``app.main`` turns them
into JSON error bodies with the matching status code::

    DiaryServiceError (base)      500
    ├── BadRequestError           400
    ├── UnauthorizedError         401
    ├── ForbiddenError            403
    ├── NotFoundError             404
    └── ConflictError             409

``message`` is safe to show to API consumers. ``context`` is logged
server-side only.
"""
from typing import Any, Dict, Optional


class DiaryServiceError(Exception):
    status_code: int = 500
    error_code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class BadRequestError(DiaryServiceError):
    """Malformed input, or a write that touched no row when one was expected."""

    status_code = 400
    error_code = "bad_request"

    def __init__(
        self,
        message: str = "The request is not valid",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnauthorizedError(DiaryServiceError):
    """Missing, malformed, expired or forged access token."""

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "A valid access token is required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(DiaryServiceError):
    """The caller is not the owner of the diary."""

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You do not have permission to do this",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(DiaryServiceError):
    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} {resource_id} does not exist or has already been deleted"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(DiaryServiceError):
    """The request repeats a state change that already happened."""

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "The request conflicts with the current state",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
