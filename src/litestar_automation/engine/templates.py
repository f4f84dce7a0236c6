"""Built-in workflow templates.

Templates are ready-made step lists for common automations. Creating a
workflow from a template copies its steps, optionally overriding individual
steps, into a regular stored workflow.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from litestar_automation.core.definition import WorkflowSpec
from litestar_automation.exceptions import WorkflowTemplateNotFoundError, WorkflowValidationError

__all__ = ["BUILTIN_TEMPLATES", "WorkflowTemplate", "get_template", "list_templates"]


@dataclass(frozen=True)
class WorkflowTemplate:
    """A reusable workflow blueprint.

    Attributes:
        id: Stable template identifier.
        name: Human-readable name, used as the default workflow name prefix.
        description: What the workflow does.
        category: Grouping used for filtering.
        steps: Serialized step specifications.
    """

    id: str
    name: str
    description: str
    category: str
    steps: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    @property
    def steps_count(self) -> int:
        """Number of steps in the template."""
        return len(self.steps)

    def to_spec(self, name: str, customization: Mapping[str, Any] | None = None) -> WorkflowSpec:
        """Build a workflow specification from the template.

        Args:
            name: Name for the new workflow.
            customization: Optional mapping whose ``steps`` entry is a list of
                per-step overrides, merged over the template steps by index.

        Returns:
            A validated workflow specification.

        Raises:
            WorkflowValidationError: If the customized steps are invalid.

        Example:
            >>> template = get_template("daily-report")
            >>> spec = template.to_spec(
            ...     "Team report",
            ...     {"steps": [{}, {"params": {"title": "Team", "message": "{{steps[0].result.summary}}"}}]},
            ... )
        """
        steps = [dict(step) for step in self.steps]
        overrides = (customization or {}).get("steps") or []
        if not isinstance(overrides, list):
            raise WorkflowValidationError(["customization.steps must be a list"])
        for index, override in enumerate(overrides[: len(steps)]):
            if override:
                if not isinstance(override, Mapping):
                    raise WorkflowValidationError([f"customization.steps[{index}] must be an object"])
                steps[index] = {**steps[index], **override}

        return WorkflowSpec.from_dict({"name": name, "description": self.description, "steps": steps}).ensure_valid()


BUILTIN_TEMPLATES: tuple[WorkflowTemplate, ...] = (
    WorkflowTemplate(
        id="meeting-summary",
        name="Meeting recording summary",
        description="Transcribe an audio file and generate meeting minutes",
        category="productivity",
        steps=(
            {"capability": "speech_to_text", "params": {"audioPath": "{{input.audioPath}}", "language": "ko"}},
            {"capability": "generate_meeting_minutes", "params": {"text": "{{steps[0].result.text}}"}},
            {
                "capability": "send_notification",
                "params": {
                    "title": "Meeting minutes ready",
                    "message": "{{steps[1].result.summary}}",
                    "type": "success",
                },
            },
        ),
    ),
    WorkflowTemplate(
        id="daily-report",
        name="Daily report",
        description="Summarize project activity and send it as a notification",
        category="reporting",
        steps=(
            {"capability": "get_dashboard_summary", "params": {"userId": "{{input.userId}}"}},
            {
                "capability": "send_notification",
                "params": {"title": "Daily report", "message": "{{steps[0].result.summary}}", "type": "info"},
            },
        ),
    ),
    WorkflowTemplate(
        id="content-translation",
        name="Multilingual content",
        description="Translate a text into several languages",
        category="content",
        steps=(
            {"capability": "translate", "params": {"text": "{{input.text}}", "targetLanguage": "en"}},
            {"capability": "translate", "params": {"text": "{{input.text}}", "targetLanguage": "ja"}},
            {"capability": "translate", "params": {"text": "{{input.text}}", "targetLanguage": "zh"}},
        ),
    ),
    WorkflowTemplate(
        id="github-pr-notify",
        name="GitHub PR notification",
        description="Post a Slack message when a pull request is opened",
        category="development",
        steps=(
            {
                "capability": "get_pull_request",
                "params": {"owner": "{{input.owner}}", "repo": "{{input.repo}}", "pullNumber": "{{input.prNumber}}"},
            },
            {
                "capability": "send_slack_message",
                "params": {"channel": "{{input.channel}}", "text": "New PR: {{steps[0].result.title}}"},
            },
        ),
    ),
)


def list_templates(category: str | None = None) -> list[WorkflowTemplate]:
    """List built-in templates sorted by name.

    Args:
        category: Optional category filter.

    Returns:
        Matching templates.
    """
    templates = [t for t in BUILTIN_TEMPLATES if category is None or t.category == category]
    return sorted(templates, key=lambda t: t.name)


def get_template(template_id: str) -> WorkflowTemplate:
    """Look up a built-in template.

    Args:
        template_id: The template identifier.

    Returns:
        The template.

    Raises:
        WorkflowTemplateNotFoundError: If no template has that id.
    """
    for template in BUILTIN_TEMPLATES:
        if template.id == template_id:
            return template
    raise WorkflowTemplateNotFoundError(template_id)
