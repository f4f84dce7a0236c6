"""Persistent workflow engine.

This module provides the engine that stores workflow definitions and runs
them: each run walks the workflow's steps strictly in order, resolves each
step's parameter templates against the run inputs and the results recorded so
far, invokes the step's capability and appends the outcome to the execution
row before moving on.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from litestar_automation.config import AutomationSettings
from litestar_automation.core.clock import utc_now
from litestar_automation.core.context import ExecutionContext, StepRecord
from litestar_automation.core.definition import WorkflowSpec
from litestar_automation.core.result import Err, to_json_compatible
from litestar_automation.core.templating import resolve_params
from litestar_automation.core.types import ExecutionStatus
from litestar_automation.db.models import WorkflowExecutionModel, WorkflowModel
from litestar_automation.db.repositories import WorkflowExecutionRepository, WorkflowRepository
from litestar_automation.engine.registry import invoke_capability
from litestar_automation.engine.templates import get_template
from litestar_automation.exceptions import WorkflowExecutionNotFoundError, WorkflowNotFoundError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from litestar_automation.core.clock import Clock
    from litestar_automation.core.protocols import CapabilityInvoker, EventBus

__all__ = ["WorkflowEngine", "spec_from_model"]

logger = logging.getLogger(__name__)


def spec_from_model(workflow: WorkflowModel) -> WorkflowSpec:
    """Rebuild the declarative specification of a stored workflow.

    Args:
        workflow: The stored workflow.

    Returns:
        The workflow specification.
    """
    return WorkflowSpec.from_dict(
        {
            "name": workflow.name,
            "description": workflow.description or "",
            "steps": workflow.steps or [],
            "triggers": workflow.triggers,
            "is_active": workflow.is_active,
        }
    )


class WorkflowEngine:
    """Workflow store and sequential executor with database persistence.

    The engine is the exclusive writer of a :class:`WorkflowExecutionModel`
    for the duration of its run. Capability failures are recorded on the
    execution, never raised; only unknown ids and invalid definitions raise.

    Attributes:
        session: SQLAlchemy async session for database operations.
        capabilities: The capability invoker steps are dispatched to.
        settings: Engine tunables (step timeout, history limit).
        event_bus: Optional event bus for emitting workflow events.
    """

    def __init__(
        self,
        session: AsyncSession,
        capabilities: CapabilityInvoker,
        settings: AutomationSettings | None = None,
        event_bus: EventBus | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the workflow engine.

        Args:
            session: SQLAlchemy async session.
            capabilities: The capability invoker.
            settings: Optional settings, defaults to :class:`AutomationSettings`.
            event_bus: Optional event bus for events.
            clock: Optional clock returning aware datetimes.
        """
        self.session = session
        self.capabilities = capabilities
        self.settings = settings or AutomationSettings()
        self.event_bus = event_bus
        self._clock = clock or utc_now

        self._workflow_repo = WorkflowRepository(session=session)
        self._execution_repo = WorkflowExecutionRepository(session=session)

    async def create_workflow(self, spec: WorkflowSpec | Mapping[str, Any]) -> WorkflowModel:
        """Validate and store a new workflow.

        Args:
            spec: The workflow specification or its JSON form.

        Returns:
            The stored workflow.

        Raises:
            WorkflowValidationError: If the definition is invalid.
        """
        if isinstance(spec, Mapping):
            spec = WorkflowSpec.from_dict(spec)
        spec.ensure_valid()

        workflow = WorkflowModel(
            name=spec.name,
            description=spec.description or None,
            steps=spec.steps_as_dicts(),
            triggers=spec.triggers,
            is_active=spec.is_active,
        )
        workflow = await self._workflow_repo.add(workflow, auto_commit=True)
        logger.info("Created workflow %s (%s) with %d steps", workflow.id, spec.name, len(spec.steps))
        return workflow

    async def update_workflow(
        self,
        workflow_id: UUID,
        *,
        name: str | None = None,
        description: str | None = None,
        steps: list[Mapping[str, Any]] | None = None,
        triggers: dict[str, Any] | None = None,
        is_active: bool | None = None,
    ) -> WorkflowModel:
        """Apply an explicit update to a stored workflow.

        Only the given fields change. The merged definition is validated
        before anything is written.

        Args:
            workflow_id: The workflow ID.
            name: New name.
            description: New description.
            steps: New step list in JSON form.
            triggers: New trigger metadata.
            is_active: New active flag.

        Returns:
            The updated workflow.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist.
            WorkflowValidationError: If the merged definition is invalid.
        """
        workflow = await self.get_workflow(workflow_id)
        current = spec_from_model(workflow)
        merged = WorkflowSpec.from_dict(
            {
                "name": current.name if name is None else name,
                "description": current.description if description is None else description,
                "steps": current.steps_as_dicts() if steps is None else steps,
                "triggers": current.triggers if triggers is None else triggers,
                "is_active": current.is_active if is_active is None else is_active,
            }
        ).ensure_valid()

        workflow.name = merged.name
        workflow.description = merged.description or None
        workflow.steps = merged.steps_as_dicts()
        workflow.triggers = merged.triggers
        workflow.is_active = merged.is_active
        workflow = await self._workflow_repo.update(workflow, auto_commit=True)
        logger.info("Updated workflow %s", workflow_id)
        return workflow

    async def get_workflow(self, workflow_id: UUID) -> WorkflowModel:
        """Get a workflow by ID.

        Args:
            workflow_id: The workflow ID.

        Returns:
            The stored workflow.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist.
        """
        workflow = await self._workflow_repo.get_one_or_none(id=workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)
        return workflow

    async def recent_executions(self, workflow_id: UUID, limit: int | None = None) -> Sequence[WorkflowExecutionModel]:
        """Get the most recent executions of a workflow.

        Args:
            workflow_id: The workflow ID.
            limit: Maximum number of executions, defaults to the configured
                history limit.

        Returns:
            Executions ordered newest first.
        """
        return await self._execution_repo.recent_for_workflow(
            workflow_id,
            limit=limit or self.settings.recent_history_limit,
        )

    async def list_workflows(self, *, active_only: bool = False) -> Sequence[WorkflowModel]:
        """List stored workflows, newest first.

        Args:
            active_only: If True, only return active workflows.

        Returns:
            List of workflows.
        """
        return await self._workflow_repo.list_workflows(active_only=active_only)

    async def delete_workflow(self, workflow_id: UUID) -> None:
        """Delete a workflow together with its executions.

        Args:
            workflow_id: The workflow ID.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist.
        """
        workflow = await self.get_workflow(workflow_id)
        removed = await self._execution_repo.delete_for_workflow(workflow.id)
        await self._workflow_repo.delete(workflow.id)
        await self.session.commit()
        logger.info("Deleted workflow %s and %d executions", workflow_id, removed)

    async def create_from_template(
        self,
        template_id: str,
        name: str | None = None,
        customization: Mapping[str, Any] | None = None,
    ) -> WorkflowModel:
        """Store a new workflow built from a built-in template.

        Args:
            template_id: The template identifier.
            name: Optional workflow name. Defaults to the template name
                followed by today's date.
            customization: Optional per-step overrides.

        Returns:
            The stored workflow.

        Raises:
            WorkflowTemplateNotFoundError: If the template does not exist.
            WorkflowValidationError: If the customized steps are invalid.
        """
        template = get_template(template_id)
        workflow_name = name or f"{template.name} - {self._clock().date().isoformat()}"
        return await self.create_workflow(template.to_spec(workflow_name, customization))

    async def run(
        self,
        workflow_id: UUID,
        inputs: Mapping[str, Any] | None = None,
        *,
        triggered_by: str = "manual",
    ) -> WorkflowExecutionModel:
        """Run a stored workflow to completion.

        A ``running`` execution row is created before the first step. After
        every step its record is appended to ``step_results`` and committed.
        A failed step whose ``stop_on_error`` is true ends the run as
        ``failed`` with the step's error; otherwise the run continues.

        Args:
            workflow_id: The workflow ID.
            inputs: External inputs, visible to templates as ``input``.
            triggered_by: Who or what started the run.

        Returns:
            The execution in its terminal state.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist.
        """
        workflow = await self.get_workflow(workflow_id)
        spec = spec_from_model(workflow)
        run_inputs = dict(inputs or {})

        execution = WorkflowExecutionModel(
            workflow_id=workflow.id,
            status=ExecutionStatus.RUNNING,
            inputs=run_inputs,
            step_results=[],
            triggered_by=triggered_by,
            started_at=self._clock(),
        )
        execution = await self._execution_repo.add(execution, auto_commit=True)
        execution_id = execution.id
        logger.info("Started execution %s of workflow %s (%d steps)", execution_id, workflow_id, len(spec.steps))

        if self.event_bus:
            await self.event_bus.emit("workflow.started", workflow_id=workflow_id, execution_id=execution_id)

        context = ExecutionContext(input=run_inputs)
        status = ExecutionStatus.COMPLETED
        error: str | None = None

        for index, step in enumerate(spec.steps):
            params = resolve_params(step.params, context)
            logger.debug("Execution %s step %d/%d: %s", execution_id, index + 1, len(spec.steps), step.capability)
            result = await invoke_capability(
                self.capabilities, step.capability, params, timeout=self.settings.step_timeout
            )

            context.record(StepRecord(step_index=index, capability=step.capability, resolved_params=params, result=result))
            execution.step_results = to_json_compatible([record.to_dict() for record in context.steps])
            await self.session.commit()

            if isinstance(result, Err):
                logger.warning(
                    "Execution %s step %d (%s) failed: %s", execution_id, index, step.capability, result.message
                )
                if step.stop_on_error:
                    status = ExecutionStatus.FAILED
                    error = result.message
                    break

        execution.status = status
        execution.error = error
        execution.completed_at = self._clock()
        await self.session.commit()
        await self.session.refresh(execution)

        logger.info("Execution %s of workflow %s finished: %s", execution_id, workflow_id, status)
        if self.event_bus:
            event_type = "workflow.completed" if status == ExecutionStatus.COMPLETED else "workflow.failed"
            await self.event_bus.emit(event_type, workflow_id=workflow_id, execution_id=execution_id, error=error)

        return execution

    async def list_executions(
        self,
        workflow_id: UUID | None = None,
        status: ExecutionStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[Sequence[WorkflowExecutionModel], int]:
        """List executions with optional filters.

        Args:
            workflow_id: Optional workflow ID filter.
            status: Optional status filter.
            limit: Maximum number of results.
            offset: Number of results to skip.

        Returns:
            Tuple of (executions newest first, total_count).
        """
        return await self._execution_repo.find_by_workflow(
            workflow_id=workflow_id,
            status=status,
            limit=limit,
            offset=offset,
        )

    async def get_execution(self, execution_id: UUID) -> WorkflowExecutionModel:
        """Get an execution by ID.

        Args:
            execution_id: The execution ID.

        Returns:
            The execution.

        Raises:
            WorkflowExecutionNotFoundError: If the execution does not exist.
        """
        execution = await self._execution_repo.get_one_or_none(id=execution_id)
        if execution is None:
            raise WorkflowExecutionNotFoundError(execution_id)
        return execution
