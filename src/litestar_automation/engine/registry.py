"""Capability registry for named, invokable operations.

This module provides an in-process implementation of the capability invoker
contract: a mapping of capability names to async (or sync) handlers that
always answers with a tagged :class:`~litestar_automation.core.result.Ok` or
:class:`~litestar_automation.core.result.Err`.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from litestar_automation.core.result import CapabilityResult, Err, Ok, from_envelope

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from litestar_automation.core.protocols import CapabilityInvoker

    CapabilityHandler = Callable[[dict[str, Any]], Awaitable[Any] | Any]

__all__ = ["CapabilityInfo", "CapabilityRegistry", "invoke_capability"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapabilityInfo:
    """Public description of a registered capability.

    Attributes:
        name: The capability name used by workflow steps and tasks.
        description: Human-readable description.
    """

    name: str
    description: str = ""


class CapabilityRegistry:
    """Registry for storing and invoking capabilities by name.

    Handlers receive the resolved argument mapping and may return either a
    plain JSON-compatible value (wrapped in ``Ok``) or a ready-made
    ``Ok``/``Err``. Exceptions raised by a handler are converted into ``Err``
    so a misbehaving capability never propagates into the engine.

    Example:
        >>> registry = CapabilityRegistry()
        >>> @registry.capability("echo")
        ... async def echo(args: dict[str, Any]) -> dict[str, Any]:
        ...     return args
        >>> await registry.invoke("echo", {"value": "A"})
        Ok(value={'value': 'A'})
    """

    def __init__(self) -> None:
        """Initialize an empty capability registry."""
        self._handlers: dict[str, CapabilityHandler] = {}
        self._info: dict[str, CapabilityInfo] = {}

    def register(self, name: str, handler: CapabilityHandler, *, description: str = "") -> None:
        """Register a capability handler.

        Registering an existing name replaces the previous handler.

        Args:
            name: The capability name.
            handler: Callable taking the argument mapping.
            description: Optional human-readable description.

        Raises:
            ValueError: If ``name`` is empty.
        """
        if not name or not name.strip():
            msg = "Capability name must not be empty"
            raise ValueError(msg)
        if name in self._handlers:
            logger.debug("Replacing capability %s", name)
        self._handlers[name] = handler
        self._info[name] = CapabilityInfo(name=name, description=description or inspect.getdoc(handler) or "")

    def capability(
        self,
        name: str | None = None,
        *,
        description: str = "",
    ) -> Callable[[CapabilityHandler], CapabilityHandler]:
        """Decorator form of :meth:`register`.

        Args:
            name: The capability name. Defaults to the function name.
            description: Optional description. Defaults to the docstring.

        Returns:
            A decorator that registers and returns the handler unchanged.
        """

        def decorator(handler: CapabilityHandler) -> CapabilityHandler:
            self.register(name or handler.__name__, handler, description=description)
            return handler

        return decorator

    def unregister(self, name: str) -> None:
        """Remove a capability. Unknown names are ignored.

        Args:
            name: The capability name.
        """
        self._handlers.pop(name, None)
        self._info.pop(name, None)

    def has_capability(self, name: str) -> bool:
        """Check if a capability is registered.

        Args:
            name: The capability name.

        Returns:
            True if the capability exists, False otherwise.
        """
        return name in self._handlers

    def list_capabilities(self) -> list[CapabilityInfo]:
        """List registered capabilities sorted by name."""
        return [self._info[name] for name in sorted(self._info)]

    async def invoke(self, name: str, args: dict[str, Any]) -> CapabilityResult:
        """Invoke a capability by name.

        Args:
            name: The capability name.
            args: JSON-compatible arguments.

        Returns:
            The handler's result as ``Ok``, or ``Err`` if the capability is
            unknown or its handler raised. A returned ``{ok, result | error}``
            envelope is parsed into the matching branch.
        """
        handler = self._handlers.get(name)
        if handler is None:
            return Err(f"Unknown capability: {name}")

        try:
            value = handler(args)
            if inspect.isawaitable(value):
                value = await value
        except Exception as e:  # noqa: BLE001
            logger.warning("Capability %s raised %s: %s", name, type(e).__name__, e)
            return Err(str(e) or type(e).__name__, {"exception": type(e).__name__})

        if isinstance(value, Ok | Err):
            return value
        if isinstance(value, Mapping) and "ok" in value:
            return from_envelope(value)
        return Ok(value)


async def invoke_capability(
    invoker: CapabilityInvoker,
    name: str,
    args: dict[str, Any],
    *,
    timeout: float | None = None,
) -> CapabilityResult:
    """Invoke a capability through any invoker, never raising.

    Args:
        invoker: The capability invoker.
        name: The capability name.
        args: Resolved arguments.
        timeout: Seconds to wait before giving up. ``None`` waits indefinitely.

    Returns:
        The invoker's result. Timeouts and exceptions become ``Err``; a raw
        ``{ok, result | error}`` envelope is parsed and any other value is
        wrapped in ``Ok``.
    """
    try:
        result = await asyncio.wait_for(invoker.invoke(name, args), timeout=timeout)
    except TimeoutError:
        logger.warning("Capability %s timed out after %ss", name, timeout)
        return Err(f"Capability '{name}' timed out after {timeout}s", {"timeout": timeout})
    except Exception as e:  # noqa: BLE001
        logger.warning("Capability %s raised %s: %s", name, type(e).__name__, e)
        return Err(str(e) or type(e).__name__, {"exception": type(e).__name__})

    if isinstance(result, Ok | Err):
        return result
    if isinstance(result, Mapping) and "ok" in result:
        return from_envelope(result)
    return Ok(result)
