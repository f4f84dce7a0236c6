"""Litestar Automation - workflow, scheduling and command automation for Litestar.

This package provides the automation core of an operator assistant: stored
workflows that chain capability invocations, a scheduler that computes when
recurring tasks are due, and a tiered command gate that defers dangerous
commands to human approval.

Key Features:
    - Sequential workflows with ``{{steps[i].result...}}`` data dependencies
    - Once, interval, daily, weekly, monthly and cron schedules
    - Caller-driven task dispatch with an audit log of every run
    - Command classification into safe, moderate and dangerous tiers
    - One-shot approval requests for dangerous commands
    - Litestar plugin with REST controllers

Example:
    >>> from litestar_automation import CapabilityRegistry
    >>>
    >>> capabilities = CapabilityRegistry()
    >>>
    >>> @capabilities.capability("echo")
    ... async def echo(args):
    ...     return args
"""

from __future__ import annotations

from litestar_automation.__metadata__ import __project__, __version__
from litestar_automation.config import AutomationSettings
from litestar_automation.engine import CapabilityRegistry, WorkflowEngine
from litestar_automation.exceptions import (
    ApprovalAlreadyResolvedError,
    ApprovalNotGrantedError,
    ApprovalRequestNotFoundError,
    AutomationError,
    AutomationValidationError,
    NotFoundError,
    ScheduledTaskNotFoundError,
    ScheduleValidationError,
    TaskValidationError,
    WorkflowExecutionNotFoundError,
    WorkflowNotFoundError,
    WorkflowTemplateNotFoundError,
    WorkflowValidationError,
)
from litestar_automation.plugin import AutomationPlugin, AutomationPluginConfig
from litestar_automation.scheduling import TaskDispatcher, next_run
from litestar_automation.security import ApprovalGate, CommandClassifier, CommandRunner, classify_command

__all__ = (
    "ApprovalAlreadyResolvedError",
    "ApprovalGate",
    "ApprovalNotGrantedError",
    "ApprovalRequestNotFoundError",
    "AutomationError",
    "AutomationPlugin",
    "AutomationPluginConfig",
    "AutomationSettings",
    "AutomationValidationError",
    "CapabilityRegistry",
    "CommandClassifier",
    "CommandRunner",
    "NotFoundError",
    "ScheduleValidationError",
    "ScheduledTaskNotFoundError",
    "TaskDispatcher",
    "TaskValidationError",
    "WorkflowEngine",
    "WorkflowExecutionNotFoundError",
    "WorkflowNotFoundError",
    "WorkflowTemplateNotFoundError",
    "WorkflowValidationError",
    "__project__",
    "__version__",
    "classify_command",
    "next_run",
)
