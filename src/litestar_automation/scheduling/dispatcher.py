"""Scheduled task store and dispatcher.

The dispatcher owns scheduled tasks and their execution log. It never runs a
timer of its own: callers poll :meth:`TaskDispatcher.due_tasks` (or call
:meth:`TaskDispatcher.run_due`) as often as they like and feed tasks into
:meth:`TaskDispatcher.run_task`.

Nothing prevents two dispatchers from picking up the same due task, so a
deployment must run at most one dispatcher against a given database.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any
from uuid import UUID

from litestar_automation.config import AutomationSettings
from litestar_automation.core.clock import ensure_aware, utc_now
from litestar_automation.core.result import Err, Ok, to_json_compatible
from litestar_automation.core.types import ExecutionStatus, ScheduleType, TaskRunStatus, TaskType
from litestar_automation.db.models import ScheduledTaskModel, TaskExecutionLogModel
from litestar_automation.db.repositories import ScheduledTaskRepository, TaskExecutionLogRepository
from litestar_automation.engine.executor import WorkflowEngine
from litestar_automation.engine.registry import invoke_capability
from litestar_automation.exceptions import ScheduledTaskNotFoundError, TaskValidationError
from litestar_automation.scheduling.calculator import next_run, validate_schedule

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from litestar_automation.core.clock import Clock
    from litestar_automation.core.protocols import CapabilityInvoker, EventBus
    from litestar_automation.core.result import CapabilityResult

__all__ = ["TaskDispatcher"]

logger = logging.getLogger(__name__)


def _coerce_enum(enum_cls: type[TaskType] | type[ScheduleType], value: Any, label: str) -> Any:
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        raise TaskValidationError([f"Unknown {label}: {value}"]) from None


def _validate_task_config(task_type: TaskType, config: Any) -> list[str]:
    if not isinstance(config, Mapping):
        return ["taskConfig must be an object"]
    errors: list[str] = []
    if task_type == TaskType.WORKFLOW:
        workflow_id = config.get("workflowId", config.get("workflow_id"))
        try:
            UUID(str(workflow_id))
        except ValueError:
            errors.append("taskConfig.workflowId must be a workflow id")
        inputs = config.get("inputs")
        if inputs is not None and not isinstance(inputs, Mapping):
            errors.append("taskConfig.inputs must be an object")
    elif task_type == TaskType.CAPABILITY:
        name = config.get("capability") or config.get("toolName") or config.get("tool")
        if not isinstance(name, str) or not name.strip():
            errors.append("taskConfig.capability is required")
        args = config.get("args", config.get("toolParams"))
        if args is not None and not isinstance(args, Mapping):
            errors.append("taskConfig.args must be an object")
    elif task_type == TaskType.NOTIFICATION:
        notification = config.get("notification", config.get("notificationConfig"))
        if notification is not None and not isinstance(notification, Mapping):
            errors.append("taskConfig.notification must be an object")
    return errors


class TaskDispatcher:
    """Scheduled task store and on-demand dispatcher.

    A dispatch attempt always appends a row to the task execution log. The
    task's ``last_run``, ``next_run``, ``run_count`` and ``is_active`` are
    only updated when the attempt succeeds, so a failed task stays due at its
    previous ``next_run``.

    Attributes:
        session: SQLAlchemy async session for database operations.
        capabilities: The capability invoker tasks are dispatched to.
        engine: The workflow engine used for workflow tasks.
        settings: Dispatcher tunables.
        event_bus: Optional event bus for emitting task events.
    """

    def __init__(
        self,
        session: AsyncSession,
        capabilities: CapabilityInvoker,
        engine: WorkflowEngine | None = None,
        settings: AutomationSettings | None = None,
        event_bus: EventBus | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            session: SQLAlchemy async session.
            capabilities: The capability invoker.
            engine: Optional workflow engine. One sharing the session,
                settings, event bus and clock is created if omitted.
            settings: Optional settings, defaults to :class:`AutomationSettings`.
            event_bus: Optional event bus for events.
            clock: Optional clock returning aware datetimes.
        """
        self.session = session
        self.capabilities = capabilities
        self.settings = settings or AutomationSettings()
        self.event_bus = event_bus
        self._clock = clock or utc_now
        self.engine = engine or WorkflowEngine(
            session,
            capabilities,
            settings=self.settings,
            event_bus=event_bus,
            clock=self._clock,
        )

        self._task_repo = ScheduledTaskRepository(session=session)
        self._log_repo = TaskExecutionLogRepository(session=session)

    async def create_task(
        self,
        name: str,
        task_type: TaskType | str,
        task_config: Mapping[str, Any] | None,
        schedule_type: ScheduleType | str,
        schedule_config: Mapping[str, Any] | None,
        *,
        description: str | None = None,
        max_runs: int | None = None,
        user_id: str | None = None,
    ) -> ScheduledTaskModel:
        """Validate and store a new scheduled task.

        Args:
            name: Task name.
            task_type: What the task does.
            task_config: Type-specific configuration.
            schedule_type: Recurrence policy.
            schedule_config: Policy parameters.
            description: Optional description.
            max_runs: Optional cap on successful runs.
            user_id: Optional owner.

        Returns:
            The stored task with its first ``next_run``.

        Raises:
            TaskValidationError: If any part of the task is invalid.
        """
        task_kind = _coerce_enum(TaskType, task_type, "task type")
        schedule_kind = _coerce_enum(ScheduleType, schedule_type, "schedule type")
        config = {} if task_config is None else task_config
        schedule = {} if schedule_config is None else schedule_config

        errors: list[str] = []
        if not isinstance(name, str) or not name.strip():
            errors.append("Task name is required")
        errors.extend(_validate_task_config(task_kind, config))
        errors.extend(validate_schedule(schedule_kind, schedule))
        if max_runs is not None and (isinstance(max_runs, bool) or not isinstance(max_runs, int) or max_runs < 1):
            errors.append("maxRuns must be a positive integer")
        if errors:
            raise TaskValidationError(errors)

        task = ScheduledTaskModel(
            name=name,
            description=description,
            task_type=task_kind,
            task_config=dict(config),
            schedule_type=schedule_kind,
            schedule_config=dict(schedule),
            is_active=True,
            next_run=next_run(schedule_kind, schedule, now=self._clock()),
            run_count=0,
            max_runs=max_runs,
            user_id=user_id,
        )
        task = await self._task_repo.add(task, auto_commit=True)
        logger.info("Created %s task %s (%s), next run %s", task_kind, task.id, name, task.next_run)
        return task

    async def schedule_quick_task(
        self,
        name: str,
        capability: str,
        args: Mapping[str, Any] | None = None,
        *,
        run_at: datetime | timedelta,
    ) -> ScheduledTaskModel:
        """Schedule a capability to run once.

        Args:
            name: Task name.
            capability: The capability to invoke.
            args: Capability arguments.
            run_at: Absolute time, or a delay relative to now.

        Returns:
            The stored one-shot task.

        Raises:
            TaskValidationError: If the task is invalid.
        """
        moment = self._clock() + run_at if isinstance(run_at, timedelta) else ensure_aware(run_at)
        return await self.create_task(
            name,
            TaskType.CAPABILITY,
            {"capability": capability, "args": dict(args or {})},
            ScheduleType.ONCE,
            {"datetime": moment.isoformat()},
            max_runs=1,
        )

    async def get_task(self, task_id: UUID) -> ScheduledTaskModel:
        """Get a scheduled task by ID.

        Args:
            task_id: The task ID.

        Returns:
            The task.

        Raises:
            ScheduledTaskNotFoundError: If the task does not exist.
        """
        task = await self._task_repo.get_one_or_none(id=task_id)
        if task is None:
            raise ScheduledTaskNotFoundError(task_id)
        return task

    async def list_tasks(
        self,
        *,
        active_only: bool = False,
        task_type: TaskType | str | None = None,
    ) -> Sequence[ScheduledTaskModel]:
        """List tasks ordered by next run time.

        Args:
            active_only: If True, only return active tasks.
            task_type: Optional task type filter.

        Returns:
            List of tasks.
        """
        kind = _coerce_enum(TaskType, task_type, "task type") if task_type is not None else None
        return await self._task_repo.list_tasks(active_only=active_only, task_type=kind)

    async def list_task_runs(self, task_id: UUID, limit: int | None = None) -> Sequence[TaskExecutionLogModel]:
        """List a task's dispatch attempts, newest first.

        Args:
            task_id: The task ID.
            limit: Maximum number of rows, defaults to the configured
                history limit.

        Returns:
            Log rows.

        Raises:
            ScheduledTaskNotFoundError: If the task does not exist.
        """
        await self.get_task(task_id)
        return await self._log_repo.find_by_task(task_id, limit=limit or self.settings.recent_history_limit)

    async def toggle_task(self, task_id: UUID, is_active: bool) -> ScheduledTaskModel:
        """Activate or deactivate a task.

        Activating recomputes ``next_run`` from now.

        Args:
            task_id: The task ID.
            is_active: The new active flag.

        Returns:
            The updated task.

        Raises:
            ScheduledTaskNotFoundError: If the task does not exist.
        """
        task = await self.get_task(task_id)
        task.is_active = is_active
        if is_active:
            task.next_run = next_run(task.schedule_type, task.schedule_config, now=self._clock())
        await self.session.commit()
        await self.session.refresh(task)
        logger.info("Task %s %s", task_id, "activated" if is_active else "deactivated")
        return task

    async def delete_task(self, task_id: UUID) -> None:
        """Delete a task together with its execution log.

        Args:
            task_id: The task ID.

        Raises:
            ScheduledTaskNotFoundError: If the task does not exist.
        """
        task = await self.get_task(task_id)
        await self._log_repo.delete_for_task(task.id)
        await self._task_repo.delete(task.id)
        await self.session.commit()
        logger.info("Deleted task %s", task_id)

    async def due_tasks(self, within_minutes: float | None = None) -> Sequence[ScheduledTaskModel]:
        """Find active tasks due within a window. Does not modify anything.

        Args:
            within_minutes: Look-ahead window, defaults to the configured
                due window. ``0`` returns tasks that are due right now.

        Returns:
            Due tasks, earliest first.
        """
        window = self.settings.due_window_minutes if within_minutes is None else within_minutes
        return await self._task_repo.find_due(self._clock() + timedelta(minutes=window))

    async def run_due(self, within_minutes: float = 0) -> list[TaskExecutionLogModel]:
        """Run every task that is currently due, one after another.

        Args:
            within_minutes: Look-ahead window.

        Returns:
            One log row per dispatched task.
        """
        task_ids = [task.id for task in await self.due_tasks(within_minutes)]
        if task_ids:
            logger.info("Dispatching %d due task(s)", len(task_ids))
        return [await self.run_task(task_id) for task_id in task_ids]

    async def run_task(self, task_id: UUID) -> TaskExecutionLogModel:
        """Dispatch a task now, regardless of its schedule.

        Args:
            task_id: The task ID.

        Returns:
            The task's log row for this attempt, ``completed`` or ``failed``.

        Raises:
            ScheduledTaskNotFoundError: If the task does not exist.
        """
        task = await self.get_task(task_id)
        task_type = task.task_type
        task_config = dict(task.task_config or {})
        schedule_type = task.schedule_type
        schedule_config = dict(task.schedule_config or {})
        run_count = task.run_count or 0
        max_runs = task.max_runs
        user_id = task.user_id

        started_at = self._clock()
        log = TaskExecutionLogModel(task_id=task_id, status=TaskRunStatus.RUNNING, started_at=started_at)
        log = await self._log_repo.add(log, auto_commit=True)
        log_id = log.id
        logger.info("Running %s task %s", task_type, task_id)

        outcome = await self._dispatch(task_type, task_config, user_id)
        finished_at = self._clock()
        log.completed_at = finished_at

        if isinstance(outcome, Ok):
            log.status = TaskRunStatus.COMPLETED
            log.result = to_json_compatible(outcome.value)
            task.last_run = started_at
            task.next_run = next_run(schedule_type, schedule_config, last_run=finished_at, now=finished_at)
            task.run_count = run_count + 1
            if (max_runs is not None and run_count + 1 >= max_runs) or schedule_type == ScheduleType.ONCE:
                task.is_active = False
                logger.info("Task %s deactivated after %d run(s)", task_id, run_count + 1)
            await self.session.commit()
            if self.event_bus:
                await self.event_bus.emit("task.completed", task_id=task_id, log_id=log_id)
        else:
            log.status = TaskRunStatus.FAILED
            log.error = outcome.message
            await self.session.commit()
            logger.warning("Task %s failed: %s", task_id, outcome.message)
            if self.event_bus:
                await self.event_bus.emit("task.failed", task_id=task_id, log_id=log_id, error=outcome.message)

        await self.session.refresh(log)
        return log

    async def _dispatch(self, task_type: TaskType, config: dict[str, Any], user_id: str | None) -> CapabilityResult:
        """Carry out a task's action.

        Args:
            task_type: What the task does.
            config: The task configuration.
            user_id: The task owner.

        Returns:
            ``Ok`` with the action's result, or ``Err`` describing the failure.
        """
        timeout = self.settings.step_timeout
        if task_type == TaskType.WORKFLOW:
            return await self._run_workflow(config)
        if task_type == TaskType.CAPABILITY:
            name = config.get("capability") or config.get("toolName") or config.get("tool")
            args = config.get("args", config.get("toolParams")) or {}
            return await invoke_capability(self.capabilities, name, dict(args), timeout=timeout)
        if task_type == TaskType.NOTIFICATION:
            notification = config.get("notification", config.get("notificationConfig")) or config
            return await invoke_capability(
                self.capabilities, self.settings.notification_capability, dict(notification), timeout=timeout
            )
        if task_type == TaskType.REPORT:
            args = {"userId": config.get("userId") or user_id or "system"}
            return await invoke_capability(self.capabilities, self.settings.report_capability, args, timeout=timeout)
        return Err(f"Unknown task type: {task_type}")

    async def _run_workflow(self, config: dict[str, Any]) -> CapabilityResult:
        workflow_id = config.get("workflowId", config.get("workflow_id"))
        try:
            execution = await self.engine.run(
                UUID(str(workflow_id)),
                config.get("inputs") or {},
                triggered_by="schedule",
            )
        except Exception as e:  # noqa: BLE001
            logger.warning("Workflow task for %s raised %s: %s", workflow_id, type(e).__name__, e)
            return Err(str(e) or type(e).__name__, {"exception": type(e).__name__})

        summary = {
            "executionId": str(execution.id),
            "workflowId": str(execution.workflow_id),
            "status": str(execution.status),
            "stepsCompleted": len(execution.step_results or []),
        }
        if execution.status == ExecutionStatus.FAILED:
            return Err(execution.error or f"Workflow execution {execution.id} failed", summary)
        return Ok(summary)
