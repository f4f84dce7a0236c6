"""Core protocols for litestar-automation.

This module defines the Protocol-based interfaces for the collaborators the
automation core depends on but does not implement. Using Protocol allows
duck typing while maintaining type safety.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from litestar_automation.core.result import CapabilityResult

__all__ = ["CapabilityInvoker", "EventBus"]


@runtime_checkable
class CapabilityInvoker(Protocol):
    """Protocol for anything that can invoke a named capability.

    This is the single operation the automation core consumes from its
    environment. Implementations must be safe to call concurrently from
    several workflow executions and must not raise for capability failures:
    failures are returned as :class:`~litestar_automation.core.result.Err`.

    Example:
        >>> class EchoInvoker:
        ...     async def invoke(self, name: str, args: dict[str, Any]) -> CapabilityResult:
        ...         return Ok(args)
    """

    async def invoke(self, name: str, args: dict[str, Any]) -> CapabilityResult:
        """Invoke a capability.

        Args:
            name: The capability name.
            args: JSON-compatible arguments.

        Returns:
            ``Ok(value)`` on success, ``Err(message)`` otherwise.
        """
        ...


@runtime_checkable
class EventBus(Protocol):
    """Protocol for an optional lifecycle event sink."""

    async def emit(self, event: str, **payload: Any) -> None:
        """Publish an event.

        Args:
            event: Dotted event name such as ``workflow.completed``.
            **payload: Event attributes.
        """
        ...
