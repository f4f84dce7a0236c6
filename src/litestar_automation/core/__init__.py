"""Core domain module for litestar-automation.

This module exports the building blocks shared by the workflow engine, the
scheduler and the command approval gate: types, the tagged capability result,
execution context, definitions, template resolution and protocols.
"""

from __future__ import annotations

from litestar_automation.core.clock import Clock, ensure_aware, utc_now
from litestar_automation.core.context import ExecutionContext, StepRecord
from litestar_automation.core.definition import StepSpec, WorkflowSpec
from litestar_automation.core.protocols import CapabilityInvoker, EventBus
from litestar_automation.core.result import CapabilityResult, Err, Ok, from_envelope, to_envelope
from litestar_automation.core.templating import UNRESOLVED, TemplatePath, resolve_params, resolve_value
from litestar_automation.core.types import (
    ApprovalStatus,
    ExecutionStatus,
    JSONObject,
    ScheduleType,
    SecurityLevel,
    TaskRunStatus,
    TaskType,
)

__all__ = [
    "UNRESOLVED",
    "ApprovalStatus",
    "CapabilityInvoker",
    "CapabilityResult",
    "Clock",
    "Err",
    "EventBus",
    "ExecutionContext",
    "ExecutionStatus",
    "JSONObject",
    "Ok",
    "ScheduleType",
    "SecurityLevel",
    "StepRecord",
    "StepSpec",
    "TaskRunStatus",
    "TaskType",
    "TemplatePath",
    "WorkflowSpec",
    "ensure_aware",
    "from_envelope",
    "resolve_params",
    "resolve_value",
    "to_envelope",
    "utc_now",
]
