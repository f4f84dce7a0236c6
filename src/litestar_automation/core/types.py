"""Core type definitions for litestar-automation.

This module defines the enums and type aliases shared by the workflow engine,
the task dispatcher and the command approval gate. Enum values are the
lower-cased member names, which is also how they are persisted.
"""

from __future__ import annotations

from enum import StrEnum, auto
from typing import Any, TypeAlias

__all__ = [
    "ApprovalStatus",
    "ExecutionStatus",
    "JSONObject",
    "ScheduleType",
    "SecurityLevel",
    "TaskRunStatus",
    "TaskType",
]


class ExecutionStatus(StrEnum):
    """Status of a workflow execution.

    Attributes:
        PENDING: Execution row exists but no step has been attempted.
        RUNNING: Steps are being executed.
        COMPLETED: Every step ran and none stopped the run.
        FAILED: A step failed with ``stop_on_error`` in effect.
    """

    PENDING = auto()
    RUNNING = auto()
    COMPLETED = auto()
    FAILED = auto()

    @property
    def is_terminal(self) -> bool:
        """Whether the execution can no longer change."""
        return self in (ExecutionStatus.COMPLETED, ExecutionStatus.FAILED)


class TaskType(StrEnum):
    """What a scheduled task does when it is dispatched.

    Attributes:
        WORKFLOW: Run a stored workflow with configured inputs.
        CAPABILITY: Invoke a capability directly.
        NOTIFICATION: Invoke the notification-send capability.
        REPORT: Invoke the summary-generation capability.
    """

    WORKFLOW = auto()
    CAPABILITY = auto()
    NOTIFICATION = auto()
    REPORT = auto()


class ScheduleType(StrEnum):
    """Recurrence policy of a scheduled task."""

    ONCE = auto()
    INTERVAL = auto()
    DAILY = auto()
    WEEKLY = auto()
    MONTHLY = auto()
    CRON = auto()


class TaskRunStatus(StrEnum):
    """Status of a single task execution log row."""

    RUNNING = auto()
    COMPLETED = auto()
    FAILED = auto()


class SecurityLevel(StrEnum):
    """Risk tier assigned to an operator command.

    Attributes:
        SAFE: Read-only inspection commands, run immediately.
        MODERATE: Commands with contained side effects, run immediately and logged.
        DANGEROUS: Destructive or unrecognized commands, deferred to human approval.
    """

    SAFE = auto()
    MODERATE = auto()
    DANGEROUS = auto()


class ApprovalStatus(StrEnum):
    """Status of a command approval request."""

    PENDING = auto()
    APPROVED = auto()
    DENIED = auto()


JSONObject: TypeAlias = dict[str, Any]
"""Type alias for a decoded JSON object."""
