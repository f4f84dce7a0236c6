"""Tagged result type for capability invocations.

Every capability call produces either :class:`Ok` or :class:`Err`. Callers
branch with ``isinstance`` (or the ``ok`` flag) instead of inspecting loosely
shaped dictionaries; :func:`to_envelope` and :func:`from_envelope` convert to
and from the ``{ok, result | error}`` wire envelope used for persistence.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, time
from typing import Any, ClassVar, Generic, TypeAlias, TypeVar

__all__ = ["CapabilityResult", "Err", "Ok", "from_envelope", "to_envelope", "to_json_compatible"]

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful capability result.

    Attributes:
        value: The JSON-compatible value returned by the capability.
    """

    value: T
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Err:
    """Failed capability result.

    Attributes:
        message: Human-readable error message.
        details: Optional structured data about the failure.
    """

    message: str
    details: dict[str, Any] | None = field(default=None)
    ok: ClassVar[bool] = False


CapabilityResult: TypeAlias = Ok[Any] | Err
"""Either branch of a capability invocation."""


def to_envelope(result: CapabilityResult) -> dict[str, Any]:
    """Serialize a result into its JSON envelope.

    Args:
        result: The result to serialize.

    Returns:
        ``{"ok": True, "result": ...}`` or ``{"ok": False, "error": ...}``.

    Example:
        >>> to_envelope(Ok({"value": "A"}))
        {'ok': True, 'result': {'value': 'A'}}
    """
    if isinstance(result, Ok):
        return {"ok": True, "result": result.value}
    envelope: dict[str, Any] = {"ok": False, "error": result.message}
    if result.details is not None:
        envelope["details"] = result.details
    return envelope


def from_envelope(envelope: Mapping[str, Any]) -> CapabilityResult:
    """Parse a JSON envelope back into a tagged result.

    Args:
        envelope: Mapping with an ``ok`` flag and ``result`` or ``error``.

    Returns:
        The corresponding :class:`Ok` or :class:`Err`.
    """
    if envelope.get("ok"):
        return Ok(envelope.get("result"))
    return Err(str(envelope.get("error") or "Unknown error"), envelope.get("details"))


def _json_default(value: Any) -> Any:
    if isinstance(value, date | time):
        return value.isoformat()
    if isinstance(value, set | frozenset):
        return list(value)
    return str(value)


def to_json_compatible(value: Any) -> Any:
    """Convert a capability value into plain JSON types for storage.

    Dates and times become ISO strings, sets become lists and any other
    unknown object becomes its ``str()``.

    Example:
        >>> to_json_compatible({"at": date(2024, 5, 1), "tags": ("a",)})
        {'at': '2024-05-01', 'tags': ['a']}
    """
    return json.loads(json.dumps(value, default=_json_default))
