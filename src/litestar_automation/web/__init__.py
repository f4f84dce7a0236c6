"""REST API for litestar-automation.

The API is registered by :class:`~litestar_automation.plugin.AutomationPlugin`
when ``enable_api=True`` (the default) and exposes workflows, executions,
templates, scheduled tasks and command approvals under ``api_path_prefix``.

Example:
    With authentication guards::

        from litestar_automation import AutomationPlugin, AutomationPluginConfig

        config = AutomationPluginConfig(
            session_maker=session_maker,
            api_path_prefix="/api/v1/automation",
            api_guards=[require_operator_guard],
        )

        app = Litestar(plugins=[AutomationPlugin(config=config)])
"""

from __future__ import annotations

from litestar_automation.web.controllers import (
    CommandController,
    ExecutionController,
    ScheduledTaskController,
    TemplateController,
    WorkflowController,
)
from litestar_automation.web.exceptions import (
    DatabaseRequiredError,
    automation_error_handler,
    database_required_handler,
)

__all__ = [
    "CommandController",
    "DatabaseRequiredError",
    "ExecutionController",
    "ScheduledTaskController",
    "TemplateController",
    "WorkflowController",
    "automation_error_handler",
    "database_required_handler",
]
