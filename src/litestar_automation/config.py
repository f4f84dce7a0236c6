"""Runtime settings for the automation core."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["AutomationSettings"]


@dataclass
class AutomationSettings:
    """Tunables shared by the engine, dispatcher and command runner.

    Attributes:
        step_timeout: Seconds a single workflow step may take before it is
            recorded as failed. ``None`` waits indefinitely.
        command_timeout: Seconds an operator command may run.
        command_max_output: Bytes of stdout/stderr kept per command.
        notification_capability: Capability invoked for notification tasks.
        report_capability: Capability invoked for report tasks.
        command_capability: Name the command runner is registered under.
        due_window_minutes: Default look-ahead for due-task queries.
        recent_history_limit: Executions/log rows returned with detail views.

    Example:
        >>> settings = AutomationSettings(step_timeout=60, command_timeout=10)
    """

    step_timeout: float | None = 300.0
    command_timeout: float = 30.0
    command_max_output: int = 10 * 1024 * 1024
    notification_capability: str = "send_notification"
    report_capability: str = "get_dashboard_summary"
    command_capability: str = "system_exec"
    due_window_minutes: int = 60
    recent_history_limit: int = 10
