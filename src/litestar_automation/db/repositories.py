"""Repository implementations for automation persistence.

This module provides async repositories for CRUD operations on the
automation models using advanced-alchemy's repository pattern.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from advanced_alchemy.filters import LimitOffset, OrderBy
from advanced_alchemy.repository import SQLAlchemyAsyncRepository
from sqlalchemy import and_, delete, select, update

from litestar_automation.core.types import ApprovalStatus, ExecutionStatus, TaskType
from litestar_automation.db.models import (
    CommandApprovalModel,
    ScheduledTaskModel,
    TaskExecutionLogModel,
    WorkflowExecutionModel,
    WorkflowModel,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

__all__ = [
    "CommandApprovalRepository",
    "ScheduledTaskRepository",
    "TaskExecutionLogRepository",
    "WorkflowExecutionRepository",
    "WorkflowRepository",
]


class WorkflowRepository(SQLAlchemyAsyncRepository[WorkflowModel]):
    """Repository for workflow definition CRUD operations."""

    model_type = WorkflowModel

    async def list_workflows(self, *, active_only: bool = False) -> Sequence[WorkflowModel]:
        """List workflows, newest first.

        Args:
            active_only: If True, only return active workflows.

        Returns:
            List of workflows.
        """
        stmt = select(WorkflowModel).order_by(WorkflowModel.created_at.desc())
        if active_only:
            stmt = stmt.where(WorkflowModel.is_active == True)  # noqa: E712
        result = await self.session.execute(stmt)
        return result.scalars().all()


class WorkflowExecutionRepository(SQLAlchemyAsyncRepository[WorkflowExecutionModel]):
    """Repository for workflow execution history."""

    model_type = WorkflowExecutionModel

    async def find_by_workflow(
        self,
        workflow_id: UUID | None = None,
        status: ExecutionStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[Sequence[WorkflowExecutionModel], int]:
        """Find executions with optional workflow and status filters.

        Args:
            workflow_id: Optional workflow ID filter.
            status: Optional status filter.
            limit: Maximum number of results.
            offset: Number of results to skip.

        Returns:
            Tuple of (executions newest first, total_count).
        """
        conditions = []
        if workflow_id is not None:
            conditions.append(WorkflowExecutionModel.workflow_id == workflow_id)
        if status is not None:
            conditions.append(WorkflowExecutionModel.status == status)

        return await self.list_and_count(
            *conditions,
            LimitOffset(limit=limit, offset=offset),
            OrderBy(field_name="started_at", sort_order="desc"),
        )

    async def recent_for_workflow(self, workflow_id: UUID, limit: int = 10) -> Sequence[WorkflowExecutionModel]:
        """Return the most recent executions of a workflow.

        Args:
            workflow_id: The workflow ID.
            limit: Maximum number of executions.

        Returns:
            Executions ordered newest first.
        """
        executions, _ = await self.find_by_workflow(workflow_id=workflow_id, limit=limit)
        return executions

    async def delete_for_workflow(self, workflow_id: UUID) -> int:
        """Delete every execution of a workflow.

        Args:
            workflow_id: The workflow ID.

        Returns:
            Number of deleted rows.
        """
        stmt = delete(WorkflowExecutionModel).where(WorkflowExecutionModel.workflow_id == workflow_id)
        result = await self.session.execute(stmt)
        return result.rowcount or 0


class ScheduledTaskRepository(SQLAlchemyAsyncRepository[ScheduledTaskModel]):
    """Repository for scheduled tasks."""

    model_type = ScheduledTaskModel

    async def list_tasks(
        self,
        *,
        active_only: bool = False,
        task_type: TaskType | None = None,
    ) -> Sequence[ScheduledTaskModel]:
        """List tasks ordered by next run time.

        Args:
            active_only: If True, only return active tasks.
            task_type: Optional task type filter.

        Returns:
            List of scheduled tasks.
        """
        conditions = []
        if active_only:
            conditions.append(ScheduledTaskModel.is_active == True)  # noqa: E712
        if task_type is not None:
            conditions.append(ScheduledTaskModel.task_type == task_type)

        stmt = select(ScheduledTaskModel).order_by(
            ScheduledTaskModel.next_run.asc().nullslast(),
            ScheduledTaskModel.created_at,
        )
        if conditions:
            stmt = stmt.where(and_(*conditions))
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def find_due(self, before: datetime) -> Sequence[ScheduledTaskModel]:
        """Find active tasks whose next run is at or before ``before``.

        Args:
            before: Inclusive upper bound for ``next_run``.

        Returns:
            Due tasks, earliest first.
        """
        stmt = (
            select(ScheduledTaskModel)
            .where(
                and_(
                    ScheduledTaskModel.is_active == True,  # noqa: E712
                    ScheduledTaskModel.next_run.isnot(None),
                    ScheduledTaskModel.next_run <= before,
                )
            )
            .order_by(ScheduledTaskModel.next_run)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()


class TaskExecutionLogRepository(SQLAlchemyAsyncRepository[TaskExecutionLogModel]):
    """Repository for the task dispatch audit trail."""

    model_type = TaskExecutionLogModel

    async def find_by_task(self, task_id: UUID, limit: int = 10) -> Sequence[TaskExecutionLogModel]:
        """Find log rows of a task, newest first.

        Args:
            task_id: The scheduled task ID.
            limit: Maximum number of rows.

        Returns:
            List of log rows.
        """
        stmt = (
            select(TaskExecutionLogModel)
            .where(TaskExecutionLogModel.task_id == task_id)
            .order_by(TaskExecutionLogModel.started_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def delete_for_task(self, task_id: UUID) -> int:
        """Delete every log row of a task.

        Args:
            task_id: The scheduled task ID.

        Returns:
            Number of deleted rows.
        """
        stmt = delete(TaskExecutionLogModel).where(TaskExecutionLogModel.task_id == task_id)
        result = await self.session.execute(stmt)
        return result.rowcount or 0


class CommandApprovalRepository(SQLAlchemyAsyncRepository[CommandApprovalModel]):
    """Repository for command approval requests."""

    model_type = CommandApprovalModel

    async def find_pending(self) -> Sequence[CommandApprovalModel]:
        """Find pending approval requests, oldest first.

        Returns:
            List of pending requests.
        """
        stmt = (
            select(CommandApprovalModel)
            .where(CommandApprovalModel.status == ApprovalStatus.PENDING)
            .order_by(CommandApprovalModel.requested_at)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def resolve_pending(
        self,
        request_id: UUID,
        status: ApprovalStatus,
        *,
        resolved_by: str | None,
        resolved_at: datetime,
    ) -> bool:
        """Move a pending request to its final status in one statement.

        The ``status = pending`` predicate makes the transition one-shot even
        when two resolutions race.

        Args:
            request_id: The approval request ID.
            status: ``approved`` or ``denied``.
            resolved_by: Who resolved the request.
            resolved_at: Resolution timestamp.

        Returns:
            True if a pending row was updated.
        """
        stmt = (
            update(CommandApprovalModel)
            .where(
                and_(
                    CommandApprovalModel.id == request_id,
                    CommandApprovalModel.status == ApprovalStatus.PENDING,
                )
            )
            .values(status=status, resolved_by=resolved_by, resolved_at=resolved_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) == 1

    async def claim_for_execution(self, request_id: UUID, executed_at: datetime) -> bool:
        """Mark an approved request as executed if it has not run yet.

        Args:
            request_id: The approval request ID.
            executed_at: Execution start timestamp.

        Returns:
            True if this call claimed the request.
        """
        stmt = (
            update(CommandApprovalModel)
            .where(
                and_(
                    CommandApprovalModel.id == request_id,
                    CommandApprovalModel.status == ApprovalStatus.APPROVED,
                    CommandApprovalModel.executed_at.is_(None),
                )
            )
            .values(executed_at=executed_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) == 1
