"""Parameter template resolution.

Workflow step parameters may contain ``{{path}}`` placeholders such as
``{{input.audioPath}}`` or ``{{steps[0].result.text}}``. Each placeholder is
parsed into a :class:`TemplatePath` and evaluated against the execution
scope. A path that cannot be followed evaluates to :data:`UNRESOLVED` and the
placeholder text is left in place verbatim; resolution never raises.

A string that consists of exactly one placeholder is replaced by the raw
value, preserving its JSON type. Placeholders embedded in longer strings are
interpolated: strings as-is, everything else as compact JSON.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from litestar_automation.core.context import ExecutionContext

__all__ = ["UNRESOLVED", "TemplatePath", "find_placeholders", "resolve_params", "resolve_value"]


class _Unresolved:
    """Marker for a path that could not be followed."""

    _instance: _Unresolved | None = None

    def __new__(cls) -> _Unresolved:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNRESOLVED"

    def __bool__(self) -> bool:
        return False


UNRESOLVED: Final = _Unresolved()
"""Returned by :meth:`TemplatePath.evaluate` when a segment is missing."""

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^}]+)\}\}")
_WHOLE_PLACEHOLDER = re.compile(r"^\{\{([^}]+)\}\}$")
_SEGMENT_PATTERN = re.compile(r"[^.\[\]\s]+")


@dataclass(frozen=True)
class TemplatePath:
    """A parsed placeholder expression.

    Attributes:
        expression: The original expression text, without braces.
        segments: Field names and list indexes to follow, in order.

    Example:
        >>> TemplatePath.parse("steps[0].result.text").segments
        ('steps', '0', 'result', 'text')
    """

    expression: str
    segments: tuple[str, ...]

    @classmethod
    def parse(cls, expression: str) -> TemplatePath:
        """Split an expression on ``.`` and ``[]`` into path segments.

        Args:
            expression: Placeholder body such as ``steps[1].result.summary``.

        Returns:
            The parsed path.
        """
        return cls(expression=expression, segments=tuple(_SEGMENT_PATTERN.findall(expression)))

    def evaluate(self, scope: Any) -> Any:
        """Walk the scope one segment at a time.

        Args:
            scope: Nested mappings and sequences to walk.

        Returns:
            The value found at the path, or :data:`UNRESOLVED`.
        """
        if not self.segments:
            return UNRESOLVED
        current = scope
        for segment in self.segments:
            current = _step_into(current, segment)
            if current is UNRESOLVED:
                return UNRESOLVED
        return current


def _step_into(current: Any, segment: str) -> Any:
    if isinstance(current, Mapping):
        return current[segment] if segment in current else UNRESOLVED
    if isinstance(current, Sequence) and not isinstance(current, str | bytes):
        if not segment.isdigit():
            return UNRESOLVED
        index = int(segment)
        return current[index] if index < len(current) else UNRESOLVED
    return UNRESOLVED


def _interpolate(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), default=str)


def find_placeholders(value: Any) -> list[TemplatePath]:
    """Collect every placeholder in a parameter tree.

    Args:
        value: A JSON-compatible parameter tree.

    Returns:
        Parsed paths in document order.
    """
    if isinstance(value, str):
        return [TemplatePath.parse(match.strip()) for match in PLACEHOLDER_PATTERN.findall(value)]
    if isinstance(value, Mapping):
        return [path for item in value.values() for path in find_placeholders(item)]
    if isinstance(value, list | tuple):
        return [path for item in value for path in find_placeholders(item)]
    return []


def resolve_value(value: Any, scope: Mapping[str, Any]) -> Any:
    """Resolve placeholders in a single value of a parameter tree.

    Args:
        value: Any JSON-compatible value.
        scope: The mapping that placeholder paths are evaluated against.

    Returns:
        The value with every resolvable placeholder substituted.
    """
    if isinstance(value, str):
        if "{{" not in value:
            return value
        whole = _WHOLE_PLACEHOLDER.match(value)
        if whole is not None:
            resolved = TemplatePath.parse(whole.group(1).strip()).evaluate(scope)
            return value if resolved is UNRESOLVED else resolved

        def substitute(match: re.Match[str]) -> str:
            resolved = TemplatePath.parse(match.group(1).strip()).evaluate(scope)
            return match.group(0) if resolved is UNRESOLVED else _interpolate(resolved)

        return PLACEHOLDER_PATTERN.sub(substitute, value)
    if isinstance(value, Mapping):
        return {key: resolve_value(item, scope) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [resolve_value(item, scope) for item in value]
    return value


def resolve_params(params: Mapping[str, Any] | None, context: ExecutionContext) -> dict[str, Any]:
    """Resolve a step's parameter tree against an execution context.

    Args:
        params: The step's parameters, possibly containing placeholders.
        context: Inputs and prior step records of the current run.

    Returns:
        A new parameter tree; the input is not modified.

    Example:
        >>> ctx = ExecutionContext(input={"text": "hi"})
        >>> resolve_params({"t": "{{input.text}}", "x": "{{input.missing}}"}, ctx)
        {'t': 'hi', 'x': '{{input.missing}}'}
    """
    if not params:
        return {}
    return resolve_value(dict(params), context.scope())
