"""Exception hierarchy for litestar-automation."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

__all__ = (
    "ApprovalAlreadyResolvedError",
    "ApprovalNotGrantedError",
    "ApprovalRequestNotFoundError",
    "AutomationError",
    "AutomationValidationError",
    "NotFoundError",
    "ScheduleValidationError",
    "ScheduledTaskNotFoundError",
    "TaskValidationError",
    "WorkflowExecutionNotFoundError",
    "WorkflowNotFoundError",
    "WorkflowTemplateNotFoundError",
    "WorkflowValidationError",
)


class AutomationError(Exception):
    """Base exception for all litestar-automation errors.

    Nothing raised from this package is fatal to the process: a failing step,
    dispatch or approval only affects the execution, log row or request it
    belongs to.
    """


class AutomationValidationError(AutomationError):
    """Raised when a workflow, task or schedule is malformed.

    Validation always happens before anything is persisted.

    Attributes:
        errors: List of validation error messages.
    """

    subject = "Validation"

    def __init__(self, errors: list[str]) -> None:
        """Initialize the exception with validation errors.

        Args:
            errors: List of validation error messages.
        """
        self.errors = errors
        super().__init__(f"{self.subject} failed: {'; '.join(errors)}")


class WorkflowValidationError(AutomationValidationError):
    """Raised when a workflow definition is rejected."""

    subject = "Workflow validation"


class TaskValidationError(AutomationValidationError):
    """Raised when a scheduled task definition is rejected."""

    subject = "Task validation"


class ScheduleValidationError(AutomationValidationError):
    """Raised when a schedule type or schedule config cannot be evaluated."""

    subject = "Schedule validation"


class NotFoundError(AutomationError):
    """Base exception for unknown identifiers.

    Attributes:
        identifier: The identifier that could not be resolved.
    """

    kind = "Resource"

    def __init__(self, identifier: str | UUID) -> None:
        """Initialize the exception with the missing identifier.

        Args:
            identifier: The identifier that could not be resolved.
        """
        self.identifier = identifier
        super().__init__(f"{self.kind} '{identifier}' not found")


class WorkflowNotFoundError(NotFoundError):
    """Raised when a workflow id does not exist."""

    kind = "Workflow"


class WorkflowExecutionNotFoundError(NotFoundError):
    """Raised when a workflow execution id does not exist."""

    kind = "Workflow execution"


class WorkflowTemplateNotFoundError(NotFoundError):
    """Raised when a built-in workflow template id does not exist."""

    kind = "Workflow template"


class ScheduledTaskNotFoundError(NotFoundError):
    """Raised when a scheduled task id does not exist."""

    kind = "Scheduled task"


class ApprovalRequestNotFoundError(NotFoundError):
    """Raised when a command approval request id does not exist."""

    kind = "Approval request"


class ApprovalAlreadyResolvedError(AutomationError):
    """Raised when approving or denying a request that is no longer pending.

    Approval requests are one-shot: ``pending`` moves to ``approved`` or
    ``denied`` exactly once.

    Attributes:
        request_id: The ID of the approval request.
        status: The status the request was already resolved to.
    """

    def __init__(self, request_id: str | UUID, status: str) -> None:
        """Initialize the exception with request state details.

        Args:
            request_id: The ID of the approval request.
            status: The status the request was already resolved to.
        """
        self.request_id = request_id
        self.status = status
        super().__init__(f"Approval request '{request_id}' is already {status}")


class ApprovalNotGrantedError(AutomationError):
    """Raised when acting on a request whose command may not run.

    Attributes:
        request_id: The ID of the approval request.
        status: The current status of the request.
    """

    def __init__(self, request_id: str | UUID, status: str, reason: str | None = None) -> None:
        """Initialize the exception with request state details.

        Args:
            request_id: The ID of the approval request.
            status: The current status of the request.
            reason: Additional context about why the request cannot be used.
        """
        self.request_id = request_id
        self.status = status
        msg = f"Approval request '{request_id}' is {status}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
