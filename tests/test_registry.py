"""Tests for the capability registry."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from litestar_automation.core.protocols import CapabilityInvoker
from litestar_automation.core.result import Err, Ok
from litestar_automation.engine.registry import CapabilityInfo, CapabilityRegistry, invoke_capability


class EnvelopeInvoker:
    """Invoker answering with raw envelopes and plain values."""

    async def invoke(self, name: str, args: dict[str, Any]) -> Any:
        if name == "envelope_ok":
            return {"ok": True, "result": {"n": 1}}
        if name == "envelope_err":
            return {"ok": False, "error": "denied"}
        if name == "raises":
            raise ConnectionError("unreachable")
        if name == "hangs":
            await asyncio.sleep(1)
        return ["plain", name]


@pytest.mark.unit
class TestCapabilityRegistry:
    """Tests for registering and invoking capabilities."""

    def test_satisfies_invoker_protocol(self) -> None:
        """The registry is a CapabilityInvoker."""
        assert isinstance(CapabilityRegistry(), CapabilityInvoker)

    def test_register_and_list(self) -> None:
        """Capabilities are listed sorted by name with their descriptions."""
        registry = CapabilityRegistry()
        registry.register("zeta", lambda args: args, description="Last")

        @registry.capability()
        async def alpha(args: dict[str, Any]) -> None:
            """First capability."""

        assert registry.list_capabilities() == [
            CapabilityInfo(name="alpha", description="First capability."),
            CapabilityInfo(name="zeta", description="Last"),
        ]
        assert registry.has_capability("alpha")

    def test_register_empty_name(self) -> None:
        """Empty names are rejected."""
        with pytest.raises(ValueError, match="must not be empty"):
            CapabilityRegistry().register("  ", lambda args: args)

    def test_unregister(self) -> None:
        """Unregistering removes the capability and ignores unknown names."""
        registry = CapabilityRegistry()
        registry.register("echo", lambda args: args)

        registry.unregister("echo")
        registry.unregister("missing")

        assert not registry.has_capability("echo")
        assert registry.list_capabilities() == []

    async def test_invoke_async_handler(self, capabilities: CapabilityRegistry) -> None:
        """Plain return values are wrapped in Ok."""
        assert await capabilities.invoke("echo", {"x": "A"}) == Ok({"x": "A"})

    async def test_invoke_sync_handler(self) -> None:
        """Synchronous handlers are supported."""
        registry = CapabilityRegistry()
        registry.register("double", lambda args: args["n"] * 2)

        assert await registry.invoke("double", {"n": 4}) == Ok(8)

    async def test_invoke_passes_err_through(self, capabilities: CapabilityRegistry) -> None:
        """Handlers may return Err directly."""
        assert await capabilities.invoke("fail", {}) == Err("boom")

    async def test_invoke_parses_returned_envelopes(self) -> None:
        """Handlers answering with an envelope get the matching branch."""
        registry = CapabilityRegistry()
        registry.register("legacy_ok", lambda args: {"ok": True, "result": {"n": 1}})
        registry.register("legacy_err", lambda args: {"ok": False, "error": "denied"})

        assert await registry.invoke("legacy_ok", {}) == Ok({"n": 1})
        assert await registry.invoke("legacy_err", {}) == Err("denied")

    async def test_invoke_converts_exceptions(self, capabilities: CapabilityRegistry) -> None:
        """Exceptions become Err with the exception type in the details."""
        result = await capabilities.invoke("explode", {})

        assert result == Err("kaboom", {"exception": "RuntimeError"})

    async def test_invoke_unknown(self, capabilities: CapabilityRegistry) -> None:
        """Unknown capabilities fail without raising."""
        assert await capabilities.invoke("nope", {}) == Err("Unknown capability: nope")


@pytest.mark.unit
class TestInvokeCapability:
    """Tests for invoke_capability normalization."""

    async def test_parses_envelopes(self) -> None:
        """Raw envelopes are parsed into tagged results."""
        invoker = EnvelopeInvoker()

        assert await invoke_capability(invoker, "envelope_ok", {}) == Ok({"n": 1})
        assert await invoke_capability(invoker, "envelope_err", {}) == Err("denied")

    async def test_wraps_plain_values(self) -> None:
        """Anything else is treated as a successful value."""
        assert await invoke_capability(EnvelopeInvoker(), "other", {}) == Ok(["plain", "other"])

    async def test_converts_invoker_exceptions(self) -> None:
        """An invoker that raises yields Err."""
        result = await invoke_capability(EnvelopeInvoker(), "raises", {})

        assert result == Err("unreachable", {"exception": "ConnectionError"})

    async def test_timeout(self) -> None:
        """A call exceeding the timeout yields Err."""
        result = await invoke_capability(EnvelopeInvoker(), "hangs", {}, timeout=0.01)

        assert isinstance(result, Err)
        assert result.message == "Capability 'hangs' timed out after 0.01s"
        assert result.details == {"timeout": 0.01}
