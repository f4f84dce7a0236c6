"""Workflow execution context.

This module provides the records a workflow run accumulates and the context
its parameter templates are resolved against.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from litestar_automation.core.result import CapabilityResult, Err, Ok, from_envelope, to_envelope

__all__ = ["ExecutionContext", "StepRecord"]


@dataclass
class StepRecord:
    """Record of a single step invocation within a workflow execution.

    Attributes:
        step_index: Zero-based position of the step in the workflow.
        capability: Name of the invoked capability.
        resolved_params: Parameters after template resolution.
        result: Outcome of the invocation.
    """

    step_index: int
    capability: str
    resolved_params: dict[str, Any]
    result: CapabilityResult

    @property
    def ok(self) -> bool:
        """Whether the invocation succeeded."""
        return isinstance(self.result, Ok)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the record for persistence.

        Returns:
            JSON-compatible dictionary with the result as an envelope.
        """
        return {
            "step_index": self.step_index,
            "capability": self.capability,
            "resolved_params": self.resolved_params,
            "result": to_envelope(self.result),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StepRecord:
        """Rebuild a record from its persisted form.

        Args:
            data: Dictionary produced by :meth:`to_dict`.

        Returns:
            The reconstructed record.
        """
        return cls(
            step_index=int(data["step_index"]),
            capability=data["capability"],
            resolved_params=data.get("resolved_params") or {},
            result=from_envelope(data.get("result") or {}),
        )

    def as_scope(self) -> dict[str, Any]:
        """Expose the record to parameter templates.

        ``result`` is the capability's returned value (``None`` on failure) so
        that ``{{steps[0].result.text}}`` reads the payload directly.
        """
        return {
            "step_index": self.step_index,
            "capability": self.capability,
            "params": self.resolved_params,
            "ok": self.ok,
            "result": self.result.value if isinstance(self.result, Ok) else None,
            "error": self.result.message if isinstance(self.result, Err) else None,
        }


@dataclass
class ExecutionContext:
    """Data visible to parameter templates while a workflow runs.

    Attributes:
        input: External inputs supplied when the run was triggered.
        steps: Records of the steps completed so far, in order.

    Example:
        >>> context = ExecutionContext(input={"userId": "u1"})
        >>> context.scope()["input"]["userId"]
        'u1'
    """

    input: dict[str, Any] = field(default_factory=dict)
    steps: list[StepRecord] = field(default_factory=list)

    def scope(self) -> dict[str, Any]:
        """Build the plain mapping that template paths are walked against.

        Returns:
            ``{"input": ..., "steps": [...]}``.
        """
        return {"input": self.input, "steps": [step.as_scope() for step in self.steps]}

    def record(self, step: StepRecord) -> None:
        """Append a completed step.

        Args:
            step: The step record to append.
        """
        self.steps.append(step)
