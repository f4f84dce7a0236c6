"""REST API controllers for the automation core.

This module provides the controller classes exposing the core operations:
- WorkflowController: Create, update, delete and run workflows
- ExecutionController: Inspect workflow executions
- TemplateController: Browse built-in workflow templates
- ScheduledTaskController: Manage and dispatch scheduled tasks
- CommandController: Classify and execute commands, resolve approvals
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, ClassVar
from uuid import UUID

from litestar import Controller, delete, get, patch, post
from litestar.params import Parameter
from litestar.status_codes import HTTP_200_OK

from litestar_automation.core.types import ExecutionStatus, TaskType
from litestar_automation.db.models import (
    CommandApprovalModel,
    ScheduledTaskModel,
    TaskExecutionLogModel,
    WorkflowExecutionModel,
    WorkflowModel,
)
from litestar_automation.engine.executor import WorkflowEngine  # noqa: TC001 - needed for DI
from litestar_automation.engine.templates import WorkflowTemplate, get_template, list_templates
from litestar_automation.scheduling.dispatcher import TaskDispatcher  # noqa: TC001 - needed for DI
from litestar_automation.security.classifier import CommandClassifier  # noqa: TC001 - needed for DI
from litestar_automation.security.commands import CommandRunner  # noqa: TC001 - needed for DI
from litestar_automation.security.gate import ApprovalGate  # noqa: TC001 - needed for DI
from litestar_automation.web.dto import (
    ApprovalDecisionDTO,
    ApprovalDTO,
    ClassificationDTO,
    CommandDTO,
    CreateFromTemplateDTO,
    CreateScheduledTaskDTO,
    CreateWorkflowDTO,
    QuickTaskDTO,
    ResolveApprovalDTO,
    RunWorkflowDTO,
    ScheduledTaskDetailDTO,
    ScheduledTaskDTO,
    TaskRunDTO,
    TemplateDTO,
    ToggleTaskDTO,
    UpdateWorkflowDTO,
    WorkflowDetailDTO,
    WorkflowDTO,
    WorkflowExecutionDTO,
)

__all__ = [
    "CommandController",
    "ExecutionController",
    "ScheduledTaskController",
    "TemplateController",
    "WorkflowController",
]


def _workflow_dto(workflow: WorkflowModel) -> WorkflowDTO:
    return WorkflowDTO(
        id=workflow.id,
        name=workflow.name,
        description=workflow.description,
        steps=list(workflow.steps or []),
        triggers=workflow.triggers,
        is_active=workflow.is_active,
        created_at=workflow.created_at,
        updated_at=workflow.updated_at,
    )


def _execution_dto(execution: WorkflowExecutionModel) -> WorkflowExecutionDTO:
    return WorkflowExecutionDTO(
        id=execution.id,
        workflow_id=execution.workflow_id,
        status=str(execution.status),
        triggered_by=execution.triggered_by,
        inputs=dict(execution.inputs or {}),
        step_results=list(execution.step_results or []),
        started_at=execution.started_at,
        completed_at=execution.completed_at,
        error=execution.error,
    )


def _template_dto(template: WorkflowTemplate) -> TemplateDTO:
    return TemplateDTO(
        id=template.id,
        name=template.name,
        description=template.description,
        category=template.category,
        steps_count=template.steps_count,
        steps=[dict(step) for step in template.steps],
    )


def _task_dto(task: ScheduledTaskModel) -> ScheduledTaskDTO:
    return ScheduledTaskDTO(
        id=task.id,
        name=task.name,
        description=task.description,
        task_type=str(task.task_type),
        task_config=dict(task.task_config or {}),
        schedule_type=str(task.schedule_type),
        schedule_config=dict(task.schedule_config or {}),
        is_active=task.is_active,
        last_run=task.last_run,
        next_run=task.next_run,
        run_count=task.run_count,
        max_runs=task.max_runs,
        user_id=task.user_id,
    )


def _run_dto(log: TaskExecutionLogModel) -> TaskRunDTO:
    return TaskRunDTO(
        id=log.id,
        task_id=log.task_id,
        status=str(log.status),
        started_at=log.started_at,
        completed_at=log.completed_at,
        result=log.result,
        error=log.error,
    )


def _approval_dto(approval: CommandApprovalModel) -> ApprovalDTO:
    return ApprovalDTO(
        id=approval.id,
        command=approval.command,
        cwd=approval.cwd,
        security_level=str(approval.security_level),
        status=str(approval.status),
        requested_by=approval.requested_by,
        requested_at=approval.requested_at,
        resolved_at=approval.resolved_at,
        resolved_by=approval.resolved_by,
        executed_at=approval.executed_at,
        result=approval.result,
        error=approval.error,
    )


class WorkflowController(Controller):
    """API controller for stored workflows.

    Tags: Workflows
    """

    path = "/workflows"
    tags: ClassVar[list[str]] = ["Workflows"]

    @get("/")
    async def list_workflows(
        self,
        workflow_engine: WorkflowEngine,
        active_only: bool = Parameter(default=False, description="Only return active workflows"),
    ) -> list[WorkflowDTO]:
        """List stored workflows, newest first.

        Args:
            workflow_engine: Injected workflow engine.
            active_only: Whether to filter to active workflows.

        Returns:
            List of workflow DTOs.
        """
        workflows = await workflow_engine.list_workflows(active_only=active_only)
        return [_workflow_dto(workflow) for workflow in workflows]

    @post("/")
    async def create_workflow(self, data: CreateWorkflowDTO, workflow_engine: WorkflowEngine) -> WorkflowDTO:
        """Validate and store a new workflow.

        Args:
            data: Workflow definition.
            workflow_engine: Injected workflow engine.

        Returns:
            The stored workflow.
        """
        workflow = await workflow_engine.create_workflow(
            {
                "name": data.name,
                "description": data.description or "",
                "steps": data.steps,
                "triggers": data.triggers,
                "is_active": data.is_active,
            }
        )
        return _workflow_dto(workflow)

    @post("/from-template")
    async def create_from_template(
        self,
        data: CreateFromTemplateDTO,
        workflow_engine: WorkflowEngine,
    ) -> WorkflowDTO:
        """Store a new workflow built from a built-in template.

        Args:
            data: Template identifier, name and customization.
            workflow_engine: Injected workflow engine.

        Returns:
            The stored workflow.
        """
        workflow = await workflow_engine.create_from_template(data.template_id, data.name, data.customization)
        return _workflow_dto(workflow)

    @get("/{workflow_id:uuid}")
    async def get_workflow(self, workflow_id: UUID, workflow_engine: WorkflowEngine) -> WorkflowDetailDTO:
        """Get a workflow with its most recent executions.

        Args:
            workflow_id: The workflow ID.
            workflow_engine: Injected workflow engine.

        Returns:
            Workflow detail DTO.
        """
        workflow = await workflow_engine.get_workflow(workflow_id)
        executions = await workflow_engine.recent_executions(workflow_id)
        return WorkflowDetailDTO(
            workflow=_workflow_dto(workflow),
            recent_executions=[_execution_dto(execution) for execution in executions],
        )

    @patch("/{workflow_id:uuid}")
    async def update_workflow(
        self,
        workflow_id: UUID,
        data: UpdateWorkflowDTO,
        workflow_engine: WorkflowEngine,
    ) -> WorkflowDTO:
        """Apply an explicit update to a workflow.

        Args:
            workflow_id: The workflow ID.
            data: Fields to change.
            workflow_engine: Injected workflow engine.

        Returns:
            The updated workflow.
        """
        workflow = await workflow_engine.update_workflow(
            workflow_id,
            name=data.name,
            description=data.description,
            steps=data.steps,
            triggers=data.triggers,
            is_active=data.is_active,
        )
        return _workflow_dto(workflow)

    @delete("/{workflow_id:uuid}")
    async def delete_workflow(self, workflow_id: UUID, workflow_engine: WorkflowEngine) -> None:
        """Delete a workflow together with its executions.

        Args:
            workflow_id: The workflow ID.
            workflow_engine: Injected workflow engine.
        """
        await workflow_engine.delete_workflow(workflow_id)

    @post("/{workflow_id:uuid}/run")
    async def run_workflow(
        self,
        workflow_id: UUID,
        workflow_engine: WorkflowEngine,
        data: RunWorkflowDTO | None = None,
    ) -> WorkflowExecutionDTO:
        """Run a workflow to completion.

        Args:
            workflow_id: The workflow ID.
            workflow_engine: Injected workflow engine.
            data: Optional run inputs.

        Returns:
            The execution in its terminal state.
        """
        payload = data or RunWorkflowDTO()
        execution = await workflow_engine.run(workflow_id, payload.inputs, triggered_by=payload.triggered_by)
        return _execution_dto(execution)


class ExecutionController(Controller):
    """API controller for workflow executions.

    Tags: Workflow Executions
    """

    path = "/executions"
    tags: ClassVar[list[str]] = ["Workflow Executions"]

    @get("/")
    async def list_executions(
        self,
        workflow_engine: WorkflowEngine,
        workflow_id: UUID | None = Parameter(default=None, description="Filter by workflow"),
        status: ExecutionStatus | None = Parameter(default=None, description="Filter by status"),
        limit: int = Parameter(default=20, ge=1, le=100, description="Maximum number of results"),
        offset: int = Parameter(default=0, ge=0, description="Number of results to skip"),
    ) -> list[WorkflowExecutionDTO]:
        """List executions, newest first.

        Args:
            workflow_engine: Injected workflow engine.
            workflow_id: Optional workflow filter.
            status: Optional status filter.
            limit: Maximum number of results.
            offset: Pagination offset.

        Returns:
            List of execution DTOs.
        """
        executions, _ = await workflow_engine.list_executions(
            workflow_id=workflow_id,
            status=status,
            limit=limit,
            offset=offset,
        )
        return [_execution_dto(execution) for execution in executions]

    @get("/{execution_id:uuid}")
    async def get_execution(self, execution_id: UUID, workflow_engine: WorkflowEngine) -> WorkflowExecutionDTO:
        """Get an execution with its step results.

        Args:
            execution_id: The execution ID.
            workflow_engine: Injected workflow engine.

        Returns:
            Execution DTO.
        """
        return _execution_dto(await workflow_engine.get_execution(execution_id))


class TemplateController(Controller):
    """API controller for built-in workflow templates.

    Tags: Workflow Templates
    """

    path = "/templates"
    tags: ClassVar[list[str]] = ["Workflow Templates"]

    @get("/")
    async def list_workflow_templates(
        self,
        category: str | None = Parameter(default=None, description="Filter by category"),
    ) -> list[TemplateDTO]:
        """List built-in templates.

        Args:
            category: Optional category filter.

        Returns:
            List of template DTOs.
        """
        return [_template_dto(template) for template in list_templates(category)]

    @get("/{template_id:str}")
    async def get_workflow_template(self, template_id: str) -> TemplateDTO:
        """Get a built-in template.

        Args:
            template_id: The template identifier.

        Returns:
            Template DTO.
        """
        return _template_dto(get_template(template_id))


class ScheduledTaskController(Controller):
    """API controller for scheduled tasks.

    Dispatch is caller-driven: ``/due`` lists what is due and ``/run-due`` or
    ``/{task_id}/run`` dispatch it. There is no background timer.

    Tags: Scheduled Tasks
    """

    path = "/tasks"
    tags: ClassVar[list[str]] = ["Scheduled Tasks"]

    @get("/")
    async def list_tasks(
        self,
        task_dispatcher: TaskDispatcher,
        active_only: bool = Parameter(default=False, description="Only return active tasks"),
        task_type: TaskType | None = Parameter(default=None, description="Filter by task type"),
    ) -> list[ScheduledTaskDTO]:
        """List scheduled tasks ordered by next run.

        Args:
            task_dispatcher: Injected task dispatcher.
            active_only: Whether to filter to active tasks.
            task_type: Optional task type filter.

        Returns:
            List of task DTOs.
        """
        tasks = await task_dispatcher.list_tasks(active_only=active_only, task_type=task_type)
        return [_task_dto(task) for task in tasks]

    @post("/")
    async def create_task(self, data: CreateScheduledTaskDTO, task_dispatcher: TaskDispatcher) -> ScheduledTaskDTO:
        """Validate and store a scheduled task.

        Args:
            data: Task definition.
            task_dispatcher: Injected task dispatcher.

        Returns:
            The stored task with its first next run.
        """
        task = await task_dispatcher.create_task(
            data.name,
            data.task_type,
            data.task_config,
            data.schedule_type,
            data.schedule_config,
            description=data.description,
            max_runs=data.max_runs,
            user_id=data.user_id,
        )
        return _task_dto(task)

    @post("/quick")
    async def schedule_quick_task(self, data: QuickTaskDTO, task_dispatcher: TaskDispatcher) -> ScheduledTaskDTO:
        """Schedule a capability to run once.

        Args:
            data: Capability, arguments and run time.
            task_dispatcher: Injected task dispatcher.

        Returns:
            The stored one-shot task.
        """
        run_at = data.run_at if data.run_at is not None else timedelta(minutes=data.delay_minutes or 0)
        task = await task_dispatcher.schedule_quick_task(data.name, data.capability, data.args, run_at=run_at)
        return _task_dto(task)

    @get("/due")
    async def list_due_tasks(
        self,
        task_dispatcher: TaskDispatcher,
        within_minutes: float | None = Parameter(default=None, ge=0, description="Look-ahead window in minutes"),
    ) -> list[ScheduledTaskDTO]:
        """List active tasks due within the window.

        Args:
            task_dispatcher: Injected task dispatcher.
            within_minutes: Look-ahead window, defaults to the configured one.

        Returns:
            List of due task DTOs.
        """
        tasks = await task_dispatcher.due_tasks(within_minutes)
        return [_task_dto(task) for task in tasks]

    @post("/run-due", status_code=HTTP_200_OK)
    async def run_due_tasks(self, task_dispatcher: TaskDispatcher) -> list[TaskRunDTO]:
        """Dispatch every task that is due now.

        Args:
            task_dispatcher: Injected task dispatcher.

        Returns:
            One run DTO per dispatched task.
        """
        return [_run_dto(log) for log in await task_dispatcher.run_due()]

    @get("/{task_id:uuid}")
    async def get_task(self, task_id: UUID, task_dispatcher: TaskDispatcher) -> ScheduledTaskDetailDTO:
        """Get a task with its most recent runs.

        Args:
            task_id: The task ID.
            task_dispatcher: Injected task dispatcher.

        Returns:
            Task detail DTO.
        """
        task = await task_dispatcher.get_task(task_id)
        runs = await task_dispatcher.list_task_runs(task_id)
        return ScheduledTaskDetailDTO(task=_task_dto(task), recent_runs=[_run_dto(log) for log in runs])

    @get("/{task_id:uuid}/runs")
    async def list_task_runs(
        self,
        task_id: UUID,
        task_dispatcher: TaskDispatcher,
        limit: int | None = Parameter(default=None, ge=1, le=100, description="Maximum number of runs"),
    ) -> list[TaskRunDTO]:
        """List a task's dispatch attempts, newest first.

        Args:
            task_id: The task ID.
            task_dispatcher: Injected task dispatcher.
            limit: Maximum number of runs.

        Returns:
            List of run DTOs.
        """
        await task_dispatcher.get_task(task_id)
        return [_run_dto(log) for log in await task_dispatcher.list_task_runs(task_id, limit)]

    @post("/{task_id:uuid}/run", status_code=HTTP_200_OK)
    async def run_task(self, task_id: UUID, task_dispatcher: TaskDispatcher) -> TaskRunDTO:
        """Dispatch a task immediately.

        Args:
            task_id: The task ID.
            task_dispatcher: Injected task dispatcher.

        Returns:
            The run DTO. A failed dispatch is reported in its status.
        """
        return _run_dto(await task_dispatcher.run_task(task_id))

    @patch("/{task_id:uuid}/active")
    async def toggle_task(
        self,
        task_id: UUID,
        data: ToggleTaskDTO,
        task_dispatcher: TaskDispatcher,
    ) -> ScheduledTaskDTO:
        """Activate or deactivate a task.

        Args:
            task_id: The task ID.
            data: The new active flag.
            task_dispatcher: Injected task dispatcher.

        Returns:
            The updated task.
        """
        return _task_dto(await task_dispatcher.toggle_task(task_id, data.is_active))

    @delete("/{task_id:uuid}")
    async def delete_task(self, task_id: UUID, task_dispatcher: TaskDispatcher) -> None:
        """Delete a task and its run log.

        Args:
            task_id: The task ID.
            task_dispatcher: Injected task dispatcher.
        """
        await task_dispatcher.delete_task(task_id)


class CommandController(Controller):
    """API controller for operator commands and their approvals.

    Tags: Commands
    """

    path = "/commands"
    tags: ClassVar[list[str]] = ["Commands"]

    @post("/classify", status_code=HTTP_200_OK)
    async def classify_command(self, data: CommandDTO, command_classifier: CommandClassifier) -> ClassificationDTO:
        """Classify a command without running it.

        Args:
            data: The command.
            command_classifier: Injected classifier.

        Returns:
            Classification DTO.
        """
        classification = command_classifier.explain(data.command)
        return ClassificationDTO(
            command=classification.command,
            security_level=str(classification.level),
            rule=classification.rule,
        )

    @post("/execute", status_code=HTTP_200_OK)
    async def execute_command(self, data: CommandDTO, command_runner: CommandRunner) -> dict[str, Any]:
        """Run a safe or moderate command, or request approval for a dangerous one.

        Args:
            data: The command and working directory.
            command_runner: Injected command runner.

        Returns:
            The command outcome, or a ``pending_approval`` response.
        """
        return await command_runner.execute(data.command, data.cwd, requested_by=data.requested_by)

    @get("/approvals")
    async def list_pending_approvals(self, approval_gate: ApprovalGate) -> list[ApprovalDTO]:
        """List pending approval requests, oldest first.

        Args:
            approval_gate: Injected approval gate.

        Returns:
            List of approval DTOs.
        """
        return [_approval_dto(approval) for approval in await approval_gate.list_pending()]

    @get("/approvals/{request_id:uuid}")
    async def get_approval(self, request_id: UUID, approval_gate: ApprovalGate) -> ApprovalDTO:
        """Get an approval request.

        Args:
            request_id: The approval request ID.
            approval_gate: Injected approval gate.

        Returns:
            Approval DTO.
        """
        return _approval_dto(await approval_gate.get(request_id))

    @post("/approvals/{request_id:uuid}/approve", status_code=HTTP_200_OK)
    async def approve_request(
        self,
        request_id: UUID,
        approval_gate: ApprovalGate,
        data: ResolveApprovalDTO | None = None,
    ) -> ApprovalDecisionDTO:
        """Approve a pending request.

        Args:
            request_id: The approval request ID.
            approval_gate: Injected approval gate.
            data: Optional resolver identity.

        Returns:
            The decision.
        """
        decision = await approval_gate.approve(request_id, data.resolved_by if data else None)
        return ApprovalDecisionDTO(request_id=decision.request_id, status=str(decision.status), command=decision.command)

    @post("/approvals/{request_id:uuid}/deny", status_code=HTTP_200_OK)
    async def deny_request(
        self,
        request_id: UUID,
        approval_gate: ApprovalGate,
        data: ResolveApprovalDTO | None = None,
    ) -> ApprovalDecisionDTO:
        """Deny a pending request.

        Args:
            request_id: The approval request ID.
            approval_gate: Injected approval gate.
            data: Optional resolver identity.

        Returns:
            The decision.
        """
        decision = await approval_gate.deny(request_id, data.resolved_by if data else None)
        return ApprovalDecisionDTO(request_id=decision.request_id, status=str(decision.status), command=decision.command)

    @post("/approvals/{request_id:uuid}/run", status_code=HTTP_200_OK)
    async def run_approved(self, request_id: UUID, command_runner: CommandRunner) -> dict[str, Any]:
        """Run an approved command once and record its outcome.

        Args:
            request_id: The approval request ID.
            command_runner: Injected command runner.

        Returns:
            The command outcome.
        """
        return await command_runner.execute_approved(request_id)
