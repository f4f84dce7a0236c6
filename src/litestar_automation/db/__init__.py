"""Database persistence layer for litestar-automation.

This module provides SQLAlchemy models and repositories for persisting
workflows, workflow executions, scheduled tasks, their dispatch log and
command approval requests.
"""

from __future__ import annotations

from litestar_automation.db.models import (
    CommandApprovalModel,
    ScheduledTaskModel,
    TaskExecutionLogModel,
    WorkflowExecutionModel,
    WorkflowModel,
)
from litestar_automation.db.repositories import (
    CommandApprovalRepository,
    ScheduledTaskRepository,
    TaskExecutionLogRepository,
    WorkflowExecutionRepository,
    WorkflowRepository,
)

__all__ = [
    "CommandApprovalModel",
    "CommandApprovalRepository",
    "ScheduledTaskModel",
    "ScheduledTaskRepository",
    "TaskExecutionLogModel",
    "TaskExecutionLogRepository",
    "WorkflowExecutionModel",
    "WorkflowExecutionRepository",
    "WorkflowModel",
    "WorkflowRepository",
]
