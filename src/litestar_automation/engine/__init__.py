"""Execution layer for litestar-automation.

This module exports the capability registry, the persistent workflow engine
and the built-in workflow templates.
"""

from __future__ import annotations

from litestar_automation.engine.executor import WorkflowEngine, spec_from_model
from litestar_automation.engine.registry import CapabilityInfo, CapabilityRegistry
from litestar_automation.engine.templates import BUILTIN_TEMPLATES, WorkflowTemplate, get_template, list_templates

__all__ = [
    "BUILTIN_TEMPLATES",
    "CapabilityInfo",
    "CapabilityRegistry",
    "WorkflowEngine",
    "WorkflowTemplate",
    "get_template",
    "list_templates",
    "spec_from_model",
]
