"""Exception handling for automation web endpoints.

This module maps the automation error taxonomy onto HTTP responses and
provides the error raised when the plugin was configured without a database.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from litestar import Response
from litestar.status_codes import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_501_NOT_IMPLEMENTED,
)

from litestar_automation.exceptions import (
    ApprovalAlreadyResolvedError,
    ApprovalNotGrantedError,
    AutomationError,
    AutomationValidationError,
    NotFoundError,
)

if TYPE_CHECKING:  # pragma: no cover
    from litestar import Request

__all__ = [
    "DatabaseRequiredError",
    "automation_error_handler",
    "database_required_handler",
]


class DatabaseRequiredError(Exception):
    """Raised when an endpoint needs a database session but none is configured.

    The plugin raises this from its session provider when
    ``AutomationPluginConfig.session_maker`` is not set.
    """

    def __init__(self, message: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Optional custom error message.
        """
        if message is None:
            message = "This endpoint requires database persistence. Configure AutomationPluginConfig.session_maker."
        super().__init__(message)


def database_required_handler(
    _request: Request,
    exc: DatabaseRequiredError,
) -> Response:
    """Exception handler for DatabaseRequiredError.

    Args:
        _request: The Litestar request object.
        exc: The DatabaseRequiredError exception.

    Returns:
        A 501 Not Implemented response.
    """
    return Response(
        content={
            "error": "database_required",
            "message": str(exc),
        },
        status_code=HTTP_501_NOT_IMPLEMENTED,
        media_type="application/json",
    )


def _status_for(exc: AutomationError) -> tuple[int, str]:
    if isinstance(exc, AutomationValidationError):
        return HTTP_400_BAD_REQUEST, "validation_error"
    if isinstance(exc, NotFoundError):
        return HTTP_404_NOT_FOUND, "not_found"
    if isinstance(exc, ApprovalAlreadyResolvedError):
        return HTTP_409_CONFLICT, "already_resolved"
    if isinstance(exc, ApprovalNotGrantedError):
        return HTTP_409_CONFLICT, "not_granted"
    return HTTP_500_INTERNAL_SERVER_ERROR, "automation_error"


def automation_error_handler(
    _request: Request,
    exc: AutomationError,
) -> Response:
    """Exception handler for the automation error hierarchy.

    Validation errors map to 400, unknown identifiers to 404 and approval
    state conflicts to 409.

    Args:
        _request: The Litestar request object.
        exc: The raised automation error.

    Returns:
        A JSON error response.
    """
    status_code, error = _status_for(exc)
    content: dict[str, object] = {"error": error, "message": str(exc)}
    if isinstance(exc, AutomationValidationError):
        content["errors"] = exc.errors
    return Response(content=content, status_code=status_code, media_type="application/json")
