"""Error hierarchy for worktrack and its HTTP mapping.

Every error raised by services, repositories, and the event reconstructor
derives from WorkTrackError. Each class carries the HTTP status it maps to;
register_exception_handlers() installs a FastAPI handler that renders them
as JSON:API-style error documents:

    {"errors": [{"status": "404", "code": "not_found", "detail": "..."}]}
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class WorkTrackError(Exception):
    """Base class for all worktrack errors.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code the error maps to.
        code: Short machine-readable error code.
    """

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str) -> None:
        """Initialize WorkTrackError.

        Args:
            message: Error description.
        """
        super().__init__(message)
        self.message = message


class NotFoundError(WorkTrackError):
    """Raised when a requested resource does not exist."""

    status_code = 404
    code = "not_found"

    def __init__(self, resource: str, resource_id: str) -> None:
        """Initialize NotFoundError.

        Args:
            resource: Resource type name, e.g. ``WorkItem``.
            resource_id: Identifier that was looked up.
        """
        super().__init__(f"{resource} with id '{resource_id}' not found")
        self.resource = resource
        self.resource_id = resource_id


class BadParameterError(WorkTrackError):
    """Raised when an input or stored value is invalid or malformed."""

    status_code = 400
    code = "bad_parameter"

    def __init__(
        self,
        parameter: str,
        value: Any,
        expected: str | None = None,
        message: str | None = None,
    ) -> None:
        """Initialize BadParameterError.

        Args:
            parameter: Name of the offending parameter or field.
            value: The offending value.
            expected: Optional description of what was expected.
            message: Optional message overriding the generated one.
        """
        if message is None:
            message = f"Bad value for parameter '{parameter}': '{value}'"
            if expected:
                message += f" (expected: '{expected}')"
        super().__init__(message)
        self.parameter = parameter
        self.value = value
        self.expected = expected


class UnknownFieldTypeError(WorkTrackError):
    """Raised when a field descriptor is of an unrecognized kind."""

    code = "unknown_field_type"

    def __init__(self, kind: str) -> None:
        super().__init__(f"unknown field type: {kind}")
        self.kind = kind


class LookupFailedError(WorkTrackError):
    """Wraps a collaborator failure with the context it happened in.

    Reports the status and code of the wrapped cause when the cause is
    itself a WorkTrackError, so a wrapped not-found still answers 404.
    """

    def __init__(self, message: str, cause: Exception) -> None:
        """Initialize LookupFailedError.

        Args:
            message: Context describing the failed lookup.
            cause: The underlying exception.
        """
        super().__init__(f"{message}: {cause}")
        self.cause = cause
        if isinstance(cause, WorkTrackError):
            self.status_code = cause.status_code
            self.code = cause.code


class UnauthorizedError(WorkTrackError):
    """Raised when the caller is not authenticated."""

    status_code = 401
    code = "unauthorized"


class ForbiddenError(WorkTrackError):
    """Raised when the caller lacks a required scope."""

    status_code = 403
    code = "forbidden"


class OperationCancelledError(WorkTrackError):
    """Raised when a caller-supplied cancellation signal aborts an operation."""

    status_code = 503
    code = "cancelled"


class AuthServiceError(WorkTrackError):
    """Raised when the auth service cannot be reached or answers unexpectedly."""

    status_code = 502
    code = "auth_service_error"


async def _handle_worktrack_error(request: Request, exc: WorkTrackError) -> JSONResponse:
    """Render a WorkTrackError as a JSON:API error document."""
    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            extra={"path": request.url.path, "error_code": exc.code, "detail": exc.message},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "errors": [
                {
                    "status": str(exc.status_code),
                    "code": exc.code,
                    "detail": exc.message,
                }
            ]
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the WorkTrackError handler on a FastAPI application.

    Args:
        app: The application to configure.
    """
    app.add_exception_handler(WorkTrackError, _handle_worktrack_error)
