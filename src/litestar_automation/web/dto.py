"""Data Transfer Objects for the automation web API.

This module defines DTOs for serializing and deserializing workflows,
executions, scheduled tasks and command approvals in REST API requests and
responses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

__all__ = [
    "ApprovalDTO",
    "ApprovalDecisionDTO",
    "ClassificationDTO",
    "CommandDTO",
    "CreateFromTemplateDTO",
    "CreateScheduledTaskDTO",
    "CreateWorkflowDTO",
    "QuickTaskDTO",
    "ResolveApprovalDTO",
    "RunWorkflowDTO",
    "ScheduledTaskDTO",
    "ScheduledTaskDetailDTO",
    "TaskRunDTO",
    "TemplateDTO",
    "ToggleTaskDTO",
    "UpdateWorkflowDTO",
    "WorkflowDTO",
    "WorkflowDetailDTO",
    "WorkflowExecutionDTO",
]


@dataclass
class CreateWorkflowDTO:
    """DTO for creating a workflow.

    Attributes:
        name: Workflow name.
        steps: Ordered step definitions (``capability``/``tool``, ``params``,
            ``stopOnError``).
        description: Optional description.
        triggers: Optional trigger metadata.
        is_active: Whether the workflow is active.
    """

    name: str
    steps: list[dict[str, Any]]
    description: str | None = None
    triggers: dict[str, Any] | None = None
    is_active: bool = True


@dataclass
class UpdateWorkflowDTO:
    """DTO for an explicit workflow update. Omitted fields are unchanged."""

    name: str | None = None
    description: str | None = None
    steps: list[dict[str, Any]] | None = None
    triggers: dict[str, Any] | None = None
    is_active: bool | None = None


@dataclass
class RunWorkflowDTO:
    """DTO for running a workflow.

    Attributes:
        inputs: External inputs, visible to step templates as ``input``.
        triggered_by: Who or what started the run.
    """

    inputs: dict[str, Any] | None = None
    triggered_by: str = "manual"


@dataclass
class CreateFromTemplateDTO:
    """DTO for creating a workflow from a built-in template.

    Attributes:
        template_id: The template identifier.
        name: Optional workflow name.
        customization: Optional ``{"steps": [...]}`` per-step overrides.
    """

    template_id: str
    name: str | None = None
    customization: dict[str, Any] | None = None


@dataclass
class WorkflowDTO:
    """DTO for a stored workflow."""

    id: UUID
    name: str
    description: str | None
    steps: list[dict[str, Any]]
    triggers: dict[str, Any] | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


@dataclass
class WorkflowExecutionDTO:
    """DTO for a workflow execution.

    Attributes:
        id: Execution ID.
        workflow_id: The workflow that ran.
        status: Execution status.
        triggered_by: Who or what started the run.
        inputs: External inputs of the run.
        step_results: Ordered step records.
        started_at: When the run began.
        completed_at: When the run finished.
        error: Error of the step that stopped the run.
    """

    id: UUID
    workflow_id: UUID
    status: str
    triggered_by: str
    inputs: dict[str, Any]
    step_results: list[dict[str, Any]]
    started_at: datetime
    completed_at: datetime | None = None
    error: str | None = None


@dataclass
class WorkflowDetailDTO:
    """DTO for a workflow with its most recent executions."""

    workflow: WorkflowDTO
    recent_executions: list[WorkflowExecutionDTO]


@dataclass
class TemplateDTO:
    """DTO for a built-in workflow template."""

    id: str
    name: str
    description: str
    category: str
    steps_count: int
    steps: list[dict[str, Any]]


@dataclass
class CreateScheduledTaskDTO:
    """DTO for creating a scheduled task.

    Attributes:
        name: Task name.
        task_type: ``workflow``, ``capability``, ``notification`` or ``report``.
        schedule_type: ``once``, ``interval``, ``daily``, ``weekly``,
            ``monthly`` or ``cron``.
        task_config: Type-specific configuration.
        schedule_config: Policy parameters.
        description: Optional description.
        max_runs: Optional cap on successful runs.
        user_id: Optional owner.
    """

    name: str
    task_type: str
    schedule_type: str
    task_config: dict[str, Any] = field(default_factory=dict)
    schedule_config: dict[str, Any] = field(default_factory=dict)
    description: str | None = None
    max_runs: int | None = None
    user_id: str | None = None


@dataclass
class QuickTaskDTO:
    """DTO for scheduling a capability to run once.

    Exactly one of ``run_at`` and ``delay_minutes`` should be given; with
    neither the task is due immediately.
    """

    name: str
    capability: str
    args: dict[str, Any] | None = None
    run_at: datetime | None = None
    delay_minutes: float | None = None


@dataclass
class ToggleTaskDTO:
    """DTO for activating or deactivating a scheduled task."""

    is_active: bool


@dataclass
class TaskRunDTO:
    """DTO for one dispatch attempt of a scheduled task."""

    id: UUID
    task_id: UUID
    status: str
    started_at: datetime
    completed_at: datetime | None = None
    result: Any | None = None
    error: str | None = None


@dataclass
class ScheduledTaskDTO:
    """DTO for a scheduled task."""

    id: UUID
    name: str
    description: str | None
    task_type: str
    task_config: dict[str, Any]
    schedule_type: str
    schedule_config: dict[str, Any]
    is_active: bool
    last_run: datetime | None
    next_run: datetime | None
    run_count: int
    max_runs: int | None
    user_id: str | None


@dataclass
class ScheduledTaskDetailDTO:
    """DTO for a scheduled task with its most recent runs."""

    task: ScheduledTaskDTO
    recent_runs: list[TaskRunDTO]


@dataclass
class CommandDTO:
    """DTO for classifying or executing an operator command."""

    command: str
    cwd: str | None = None
    requested_by: str | None = None


@dataclass
class ClassificationDTO:
    """DTO for a command classification.

    Attributes:
        command: The normalized command.
        security_level: ``safe``, ``moderate`` or ``dangerous``.
        rule: Name of the deciding rule, if any rule matched.
    """

    command: str
    security_level: str
    rule: str | None = None


@dataclass
class ResolveApprovalDTO:
    """DTO for approving or denying a request."""

    resolved_by: str | None = None


@dataclass
class ApprovalDecisionDTO:
    """DTO for the outcome of approving or denying a request."""

    request_id: UUID
    status: str
    command: str


@dataclass
class ApprovalDTO:
    """DTO for a command approval request."""

    id: UUID
    command: str
    cwd: str | None
    security_level: str
    status: str
    requested_by: str | None
    requested_at: datetime
    resolved_at: datetime | None = None
    resolved_by: str | None = None
    executed_at: datetime | None = None
    result: dict[str, Any] | None = None
    error: str | None = None
