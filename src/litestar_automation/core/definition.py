"""Workflow and step definitions.

This module provides the declarative structures a workflow is stored as: an
ordered list of capability invocations whose parameters may reference the
run's inputs and the results of earlier steps.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from litestar_automation.core.templating import find_placeholders
from litestar_automation.exceptions import WorkflowValidationError

__all__ = ["StepSpec", "WorkflowSpec"]


@dataclass
class StepSpec:
    """One capability invocation within a workflow.

    Attributes:
        capability: Name of the capability to invoke.
        params: Parameter tree, may contain ``{{...}}`` placeholders.
        stop_on_error: Whether a failed invocation ends the run.

    Example:
        >>> step = StepSpec(
        ...     capability="generate_meeting_minutes",
        ...     params={"text": "{{steps[0].result.text}}"},
        ... )
    """

    capability: str
    params: dict[str, Any] = field(default_factory=dict)
    stop_on_error: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StepSpec:
        """Build a step from its JSON form.

        ``tool`` is accepted as an alias of ``capability`` and ``stopOnError``
        as an alias of ``stop_on_error``.

        Args:
            data: The step's JSON object.

        Returns:
            The step specification. Field types are checked by :meth:`validate`.
        """
        stop_on_error = data.get("stop_on_error", data.get("stopOnError", True))
        return cls(
            capability=data.get("capability", data.get("tool", "")),
            params=data.get("params") if data.get("params") is not None else {},
            stop_on_error=stop_on_error,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize the step for persistence."""
        return {"capability": self.capability, "params": self.params, "stop_on_error": self.stop_on_error}

    def validate(self, index: int) -> list[str]:
        """Check the step for structural problems.

        Args:
            index: Position of the step, used in messages and for
                forward-reference checks.

        Returns:
            List of error messages, empty when the step is valid.
        """
        errors: list[str] = []
        if not isinstance(self.capability, str) or not self.capability.strip():
            errors.append(f"Step {index}: capability name is required")
        if not isinstance(self.params, Mapping):
            errors.append(f"Step {index}: params must be an object")
            return errors
        if not isinstance(self.stop_on_error, bool):
            errors.append(f"Step {index}: stop_on_error must be a boolean")
        for path in find_placeholders(self.params):
            segments = path.segments
            if len(segments) >= 2 and segments[0] == "steps" and segments[1].isdigit() and int(segments[1]) >= index:
                errors.append(f"Step {index}: '{{{{{path.expression}}}}}' references a step that has not run yet")
        return errors


@dataclass
class WorkflowSpec:
    """Declarative workflow structure.

    Steps are ordered and the order is meaningful: step ``N`` may reference
    ``steps[k]`` for any ``k < N``.

    Attributes:
        name: Human-readable workflow name.
        steps: Ordered step specifications.
        description: Optional description.
        triggers: Optional trigger metadata (manual, schedule, webhook).
        is_active: Whether the workflow is listed as active.
    """

    name: str
    steps: list[StepSpec]
    description: str = ""
    triggers: dict[str, Any] | None = None
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WorkflowSpec:
        """Build a workflow from its JSON form.

        Args:
            data: Mapping with ``name``, ``steps`` and optional fields.

        Returns:
            The workflow specification.

        Raises:
            WorkflowValidationError: If ``steps`` is not a list of objects.
        """
        raw_steps = data.get("steps")
        if not isinstance(raw_steps, list) or not all(isinstance(step, Mapping) for step in raw_steps):
            raise WorkflowValidationError(["steps must be a list of objects"])
        return cls(
            name=data.get("name", ""),
            description=data.get("description") or "",
            steps=[StepSpec.from_dict(step) for step in raw_steps],
            triggers=data.get("triggers"),
            is_active=data.get("is_active", data.get("isActive", True)),
        )

    def steps_as_dicts(self) -> list[dict[str, Any]]:
        """Serialize the ordered steps for persistence."""
        return [step.to_dict() for step in self.steps]

    def validate(self) -> list[str]:
        """Validate the workflow definition for common issues.

        Checks for:
        - Missing name
        - Empty step list
        - Steps without a capability or with non-object params
        - Placeholders that reference the current or a later step

        Returns:
            List of validation error messages (empty if valid).
        """
        errors: list[str] = []
        if not isinstance(self.name, str) or not self.name.strip():
            errors.append("Workflow name is required")
        if not self.steps:
            errors.append("Workflow must have at least one step")
        if self.triggers is not None and not isinstance(self.triggers, Mapping):
            errors.append("triggers must be an object")
        for index, step in enumerate(self.steps):
            errors.extend(step.validate(index))
        return errors

    def ensure_valid(self) -> WorkflowSpec:
        """Raise if the workflow is invalid.

        Returns:
            The same workflow, for chaining.

        Raises:
            WorkflowValidationError: If :meth:`validate` reports errors.
        """
        errors = self.validate()
        if errors:
            raise WorkflowValidationError(errors)
        return self
