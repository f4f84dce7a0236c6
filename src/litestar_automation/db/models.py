"""SQLAlchemy models for automation persistence.

This module defines the database models backing the automation core:
- WorkflowModel: Stored workflow definitions (ordered capability steps)
- WorkflowExecutionModel: One row per workflow run with its step results
- ScheduledTaskModel: Recurring or one-shot tasks and their schedule bookkeeping
- TaskExecutionLogModel: Append-only audit trail of task dispatch attempts
- CommandApprovalModel: Approval requests for dangerous operator commands
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum as PyEnum
from typing import Any
from uuid import UUID

from advanced_alchemy.base import UUIDAuditBase
from advanced_alchemy.types import DateTimeUTC
from sqlalchemy import JSON, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from litestar_automation.core.types import (
    ApprovalStatus,
    ExecutionStatus,
    ScheduleType,
    SecurityLevel,
    TaskRunStatus,
    TaskType,
)

__all__ = [
    "CommandApprovalModel",
    "ScheduledTaskModel",
    "TaskExecutionLogModel",
    "WorkflowExecutionModel",
    "WorkflowModel",
]


# Cross-database JSON type: uses JSONB for PostgreSQL, JSON for others (SQLite, MySQL, etc.)
JSONType = JSON().with_variant(JSONB, "postgresql")


def _enum_values(enum_cls: type[PyEnum]) -> list[str]:
    return [member.value for member in enum_cls]


def _status_column(enum_cls: type[PyEnum]) -> Enum:
    return Enum(enum_cls, native_enum=False, length=50, values_callable=_enum_values)


class WorkflowModel(UUIDAuditBase):
    """Persisted workflow definition.

    Attributes:
        name: Human-readable workflow name.
        description: Optional description.
        steps: Ordered list of serialized step specifications.
        triggers: Optional trigger metadata.
        is_active: Whether the workflow is listed as active.
    """

    __tablename__ = "automation_workflows"
    __table_args__ = (Index("ix_automation_workflows_is_active", "is_active"),)

    name: Mapped[str] = mapped_column(String(255), index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    steps: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list)
    triggers: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True)


class WorkflowExecutionModel(UUIDAuditBase):
    """Persisted workflow run.

    ``step_results`` grows one entry per attempted step, so a failed run keeps
    every completed step's result alongside the failing step's error.

    Attributes:
        workflow_id: Foreign key to the workflow.
        status: Current execution status.
        inputs: External inputs supplied for the run.
        step_results: Ordered step records (index, capability, params, envelope).
        error: Error of the step that stopped the run, if any.
        triggered_by: Who or what started the run (``manual``, ``schedule``...).
        started_at: Timestamp when the run began.
        completed_at: Timestamp when the run reached a terminal status.
    """

    __tablename__ = "automation_workflow_executions"
    __table_args__ = (
        Index("ix_automation_workflow_executions_workflow_id", "workflow_id"),
        Index("ix_automation_workflow_executions_status", "status"),
    )

    workflow_id: Mapped[UUID] = mapped_column(
        ForeignKey("automation_workflows.id", ondelete="CASCADE"),
    )
    status: Mapped[ExecutionStatus] = mapped_column(
        _status_column(ExecutionStatus),
        default=ExecutionStatus.PENDING,
    )
    inputs: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    step_results: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    triggered_by: Mapped[str] = mapped_column(String(255), default="manual")
    started_at: Mapped[datetime] = mapped_column(DateTimeUTC(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTimeUTC(timezone=True), nullable=True)


class ScheduledTaskModel(UUIDAuditBase):
    """Persisted scheduled task.

    The dispatcher is the only writer of ``last_run``, ``next_run``,
    ``run_count`` and ``is_active`` once the task exists.

    Attributes:
        name: Human-readable task name.
        description: Optional description.
        task_type: What the task does when dispatched.
        task_config: Type-specific configuration (workflow id, capability...).
        schedule_type: Recurrence policy.
        schedule_config: Policy parameters (time, minutes, dayOfWeek...).
        is_active: Whether the task may be dispatched.
        last_run: When the last successful run happened.
        next_run: When the task is next due.
        run_count: Number of successful runs.
        max_runs: Optional cap on successful runs.
        user_id: Optional owner, passed to report capabilities.
    """

    __tablename__ = "automation_scheduled_tasks"
    __table_args__ = (Index("ix_automation_scheduled_tasks_active_next_run", "is_active", "next_run"),)

    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    task_type: Mapped[TaskType] = mapped_column(_status_column(TaskType))
    task_config: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    schedule_type: Mapped[ScheduleType] = mapped_column(_status_column(ScheduleType))
    schedule_config: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    is_active: Mapped[bool] = mapped_column(default=True)
    last_run: Mapped[datetime | None] = mapped_column(DateTimeUTC(timezone=True), nullable=True)
    next_run: Mapped[datetime | None] = mapped_column(DateTimeUTC(timezone=True), nullable=True)
    run_count: Mapped[int] = mapped_column(Integer, default=0)
    max_runs: Mapped[int | None] = mapped_column(Integer, nullable=True)
    user_id: Mapped[str | None] = mapped_column(String(255), nullable=True)


class TaskExecutionLogModel(UUIDAuditBase):
    """One row per dispatch attempt of a scheduled task.

    Attributes:
        task_id: Foreign key to the scheduled task.
        status: Running, Completed or Failed.
        started_at: When the dispatch began.
        completed_at: When the dispatch finished.
        result: Result payload of a successful dispatch.
        error: Error message of a failed dispatch.
    """

    __tablename__ = "automation_task_executions"
    __table_args__ = (Index("ix_automation_task_executions_task_id", "task_id"),)

    task_id: Mapped[UUID] = mapped_column(
        ForeignKey("automation_scheduled_tasks.id", ondelete="CASCADE"),
    )
    status: Mapped[TaskRunStatus] = mapped_column(
        _status_column(TaskRunStatus),
        default=TaskRunStatus.RUNNING,
    )
    started_at: Mapped[datetime] = mapped_column(DateTimeUTC(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTimeUTC(timezone=True), nullable=True)
    result: Mapped[Any | None] = mapped_column(JSONType, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)


class CommandApprovalModel(UUIDAuditBase):
    """Approval request for a dangerous operator command.

    ``status`` moves from ``pending`` to ``approved`` or ``denied`` exactly
    once. ``result``/``error``/``executed_at`` record what happened when the
    caller ran an approved command.

    Attributes:
        command: The raw command as submitted.
        cwd: Working directory the command should run in.
        security_level: The classifier's verdict.
        status: Pending, Approved or Denied.
        requested_by: Optional requester identifier.
        requested_at: When the request was created.
        resolved_at: When the request was approved or denied.
        resolved_by: Who approved or denied the request.
        executed_at: When the approved command was run.
        result: Outcome of the approved command.
        error: Error of the approved command.
    """

    __tablename__ = "automation_command_approvals"
    __table_args__ = (Index("ix_automation_command_approvals_status", "status"),)

    command: Mapped[str] = mapped_column(Text)
    cwd: Mapped[str | None] = mapped_column(Text, nullable=True)
    security_level: Mapped[SecurityLevel] = mapped_column(_status_column(SecurityLevel))
    status: Mapped[ApprovalStatus] = mapped_column(
        _status_column(ApprovalStatus),
        default=ApprovalStatus.PENDING,
    )
    requested_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    requested_at: Mapped[datetime] = mapped_column(DateTimeUTC(timezone=True))
    resolved_at: Mapped[datetime | None] = mapped_column(DateTimeUTC(timezone=True), nullable=True)
    resolved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    executed_at: Mapped[datetime | None] = mapped_column(DateTimeUTC(timezone=True), nullable=True)
    result: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
