"""Tests for the AutomationPlugin integration with Litestar.

These tests verify that the plugin correctly integrates with Litestar
applications and provides dependency injection for automation components.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from litestar import Litestar, get
from litestar.status_codes import HTTP_200_OK, HTTP_404_NOT_FOUND, HTTP_501_NOT_IMPLEMENTED
from litestar.testing import AsyncTestClient

from litestar_automation import (
    AutomationPlugin,
    AutomationPluginConfig,
    AutomationSettings,
    CapabilityRegistry,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


@get("/capabilities")
async def capability_names(capability_registry: CapabilityRegistry) -> list[str]:
    return [info.name for info in capability_registry.list_capabilities()]


@get("/settings")
async def step_timeout(automation_settings: AutomationSettings) -> dict[str, float | None]:
    return {"step_timeout": automation_settings.step_timeout}


@pytest.mark.unit
class TestPluginConfig:
    """Tests for plugin construction."""

    def test_defaults(self) -> None:
        config = AutomationPluginConfig()

        assert config.enable_api is True
        assert config.api_path_prefix == "/automation"
        assert config.api_tags == ["Automation"]
        assert config.session_maker is None
        assert config.settings == AutomationSettings()

    def test_registry_before_init(self) -> None:
        plugin = AutomationPlugin()

        with pytest.raises(RuntimeError, match="has not been initialized"):
            _ = plugin.registry

    def test_uses_given_registry(self) -> None:
        registry = CapabilityRegistry()
        plugin = AutomationPlugin(config=AutomationPluginConfig(capabilities=registry))

        Litestar(plugins=[plugin])

        assert plugin.registry is registry


@pytest.mark.unit
class TestCommandCapabilityRegistration:
    """Tests for registering the gated command runner as a capability."""

    def test_registered_with_database(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        plugin = AutomationPlugin(config=AutomationPluginConfig(session_maker=session_maker))

        Litestar(plugins=[plugin])

        assert plugin.registry.has_capability("system_exec")

    def test_custom_name(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        settings = AutomationSettings(command_capability="shell")
        plugin = AutomationPlugin(config=AutomationPluginConfig(session_maker=session_maker, settings=settings))

        Litestar(plugins=[plugin])

        assert plugin.registry.has_capability("shell")
        assert not plugin.registry.has_capability("system_exec")

    def test_not_registered_without_database(self) -> None:
        plugin = AutomationPlugin()

        Litestar(plugins=[plugin])

        assert not plugin.registry.has_capability("system_exec")

    def test_opt_out(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        plugin = AutomationPlugin(
            config=AutomationPluginConfig(session_maker=session_maker, register_command_capability=False)
        )

        Litestar(plugins=[plugin])

        assert not plugin.registry.has_capability("system_exec")

    def test_existing_capability_is_kept(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        registry = CapabilityRegistry()
        registry.register("system_exec", lambda args: "custom")
        plugin = AutomationPlugin(config=AutomationPluginConfig(capabilities=registry, session_maker=session_maker))

        Litestar(plugins=[plugin])

        assert registry.list_capabilities()[0].description == ""


@pytest.mark.integration
@pytest.mark.asyncio
class TestPluginWiring:
    """Tests for dependency injection and route registration."""

    async def test_injects_registry_and_settings(self) -> None:
        registry = CapabilityRegistry()
        registry.register("echo", lambda args: args)
        app = Litestar(
            route_handlers=[capability_names, step_timeout],
            plugins=[
                AutomationPlugin(
                    config=AutomationPluginConfig(capabilities=registry, settings=AutomationSettings(step_timeout=7))
                )
            ],
        )

        async with AsyncTestClient(app=app) as client:
            assert (await client.get("/capabilities")).json() == ["echo"]
            assert (await client.get("/settings")).json() == {"step_timeout": 7}

    async def test_database_required(self) -> None:
        app = Litestar(plugins=[AutomationPlugin()])

        async with AsyncTestClient(app=app, raise_server_exceptions=False) as client:
            response = await client.get("/automation/workflows")

            assert response.status_code == HTTP_501_NOT_IMPLEMENTED
            assert response.json()["error"] == "database_required"

            response = await client.get("/automation/templates")
            assert response.status_code == HTTP_200_OK

    async def test_api_disabled(self) -> None:
        app = Litestar(plugins=[AutomationPlugin(config=AutomationPluginConfig(enable_api=False))])

        async with AsyncTestClient(app=app) as client:
            response = await client.get("/automation/templates")

            assert response.status_code == HTTP_404_NOT_FOUND

    async def test_custom_prefix(self) -> None:
        app = Litestar(plugins=[AutomationPlugin(config=AutomationPluginConfig(api_path_prefix="/api/ops"))])

        async with AsyncTestClient(app=app) as client:
            assert (await client.get("/api/ops/templates")).status_code == HTTP_200_OK
            assert (await client.get("/automation/templates")).status_code == HTTP_404_NOT_FOUND
