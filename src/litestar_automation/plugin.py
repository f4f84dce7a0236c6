"""Litestar plugin for automation integration.

This module provides the AutomationPlugin, which wires the capability
registry, the workflow engine, the task dispatcher and the command approval
gate into a Litestar application.
"""

from __future__ import annotations

from collections.abc import AsyncIterator  # noqa: TC003 - needed for DI
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from litestar.di import Provide
from litestar.plugins import InitPluginProtocol
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: TC002 - needed for DI

from litestar_automation.config import AutomationSettings
from litestar_automation.engine.executor import WorkflowEngine
from litestar_automation.engine.registry import CapabilityRegistry
from litestar_automation.exceptions import AutomationError
from litestar_automation.scheduling.dispatcher import TaskDispatcher
from litestar_automation.security.classifier import CommandClassifier
from litestar_automation.security.commands import CommandRunner, session_command_capability
from litestar_automation.security.gate import ApprovalGate
from litestar_automation.web.exceptions import (
    DatabaseRequiredError,
    automation_error_handler,
    database_required_handler,
)

if TYPE_CHECKING:
    from litestar.config.app import AppConfig

    from litestar_automation.core.protocols import EventBus

__all__ = ["AutomationPlugin", "AutomationPluginConfig"]


@dataclass
class AutomationPluginConfig:
    """Configuration for the AutomationPlugin.

    Request handlers receive the services under fixed dependency keys:
    ``automation_session``, ``workflow_engine``, ``task_dispatcher``,
    ``approval_gate``, ``command_runner`` and ``command_classifier``.

    Attributes:
        capabilities: Optional pre-configured CapabilityRegistry. If not
            provided, an empty one will be created.
        settings: Engine, dispatcher and command tunables.
        session_maker: Async session factory. Without it every endpoint
            answers 501.
        event_bus: Optional event bus receiving workflow, task and approval
            events.
        classifier: Optional command classifier, defaults to the built-in rules.
        register_command_capability: Whether to register the gated command
            runner under ``settings.command_capability`` when no capability
            of that name exists.
        dependency_key_registry: The key used for dependency injection of
            the CapabilityRegistry. Defaults to "capability_registry".
        dependency_key_settings: The key used for dependency injection of
            the settings. Defaults to "automation_settings".
        enable_api: Whether to enable the REST API endpoints. Defaults to True.
        api_path_prefix: URL path prefix for all automation API endpoints.
            Defaults to "/automation".
        api_guards: List of Litestar guards to apply to all API endpoints.
        api_tags: OpenAPI tags to apply to the API endpoints.
        include_api_in_schema: Whether to include API endpoints in OpenAPI schema.
            Defaults to True.
    """

    capabilities: CapabilityRegistry | None = None
    settings: AutomationSettings = field(default_factory=AutomationSettings)
    session_maker: async_sessionmaker[AsyncSession] | None = None
    event_bus: EventBus | None = None
    classifier: CommandClassifier | None = None
    register_command_capability: bool = True
    dependency_key_registry: str = "capability_registry"
    dependency_key_settings: str = "automation_settings"
    enable_api: bool = True
    api_path_prefix: str = "/automation"
    api_guards: list[Any] = field(default_factory=list)
    api_tags: list[str] = field(default_factory=lambda: ["Automation"])
    include_api_in_schema: bool = True


class AutomationPlugin(InitPluginProtocol):
    """Litestar plugin for workflow, scheduling and command automation.

    Example:
        Basic usage::

            from litestar import Litestar
            from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

            from litestar_automation import AutomationPlugin, AutomationPluginConfig, CapabilityRegistry

            capabilities = CapabilityRegistry()


            @capabilities.capability("send_notification")
            async def send_notification(args: dict) -> dict:
                return {"sent": True}


            engine = create_async_engine("sqlite+aiosqlite:///automation.db")
            app = Litestar(
                plugins=[
                    AutomationPlugin(
                        config=AutomationPluginConfig(
                            capabilities=capabilities,
                            session_maker=async_sessionmaker(engine, expire_on_commit=False),
                        )
                    )
                ]
            )

        Using in a route handler::

            from litestar import post


            @post("/reports/run")
            async def run_report(workflow_engine: WorkflowEngine) -> dict:
                execution = await workflow_engine.run(report_workflow_id)
                return {"status": execution.status}
    """

    __slots__ = ("_classifier", "_config", "_registry")

    def __init__(self, config: AutomationPluginConfig | None = None) -> None:
        """Initialize the plugin.

        Args:
            config: Optional configuration for the plugin.
        """
        self._config = config or AutomationPluginConfig()
        self._registry: CapabilityRegistry | None = None
        self._classifier: CommandClassifier | None = None

    @property
    def config(self) -> AutomationPluginConfig:
        """Get the plugin configuration."""
        return self._config

    @property
    def registry(self) -> CapabilityRegistry:
        """Get the capability registry.

        Returns:
            The CapabilityRegistry instance.

        Raises:
            RuntimeError: If accessed before plugin initialization.
        """
        if self._registry is None:
            msg = "AutomationPlugin has not been initialized. Access registry after app startup."
            raise RuntimeError(msg)
        return self._registry

    def on_app_init(self, app_config: AppConfig) -> AppConfig:
        """Initialize the plugin when the Litestar app starts.

        This method:
        1. Creates or uses the provided CapabilityRegistry
        2. Registers the gated command runner as a capability
        3. Adds dependency providers to the app config
        4. Optionally registers REST API controllers if enable_api=True

        Args:
            app_config: The Litestar application configuration.

        Returns:
            The modified application configuration.
        """
        config = self._config
        self._registry = config.capabilities if config.capabilities is not None else CapabilityRegistry()
        self._classifier = config.classifier or CommandClassifier()

        command_capability = config.settings.command_capability
        if (
            config.register_command_capability
            and config.session_maker is not None
            and not self._registry.has_capability(command_capability)
        ):
            self._registry.register(
                command_capability,
                session_command_capability(
                    config.session_maker,
                    settings=config.settings,
                    event_bus=config.event_bus,
                    classifier=self._classifier,
                ),
            )

        def provide_registry() -> CapabilityRegistry:
            return self._registry  # type: ignore[return-value]

        def provide_settings() -> AutomationSettings:
            return config.settings

        def provide_classifier() -> CommandClassifier:
            return self._classifier  # type: ignore[return-value]

        async def provide_session() -> AsyncIterator[AsyncSession]:
            if config.session_maker is None:
                raise DatabaseRequiredError
            async with config.session_maker() as session:
                yield session

        def provide_engine(automation_session: AsyncSession) -> WorkflowEngine:
            return WorkflowEngine(
                automation_session,
                self._registry,  # type: ignore[arg-type]
                settings=config.settings,
                event_bus=config.event_bus,
            )

        def provide_dispatcher(automation_session: AsyncSession, workflow_engine: WorkflowEngine) -> TaskDispatcher:
            return TaskDispatcher(
                automation_session,
                self._registry,  # type: ignore[arg-type]
                engine=workflow_engine,
                settings=config.settings,
                event_bus=config.event_bus,
            )

        def provide_gate(automation_session: AsyncSession) -> ApprovalGate:
            return ApprovalGate(
                automation_session,
                settings=config.settings,
                event_bus=config.event_bus,
                classifier=self._classifier,
            )

        def provide_runner(approval_gate: ApprovalGate) -> CommandRunner:
            return CommandRunner(approval_gate)

        app_config.dependencies[config.dependency_key_registry] = Provide(provide_registry, sync_to_thread=False)
        app_config.dependencies[config.dependency_key_settings] = Provide(provide_settings, sync_to_thread=False)
        app_config.dependencies["command_classifier"] = Provide(provide_classifier, sync_to_thread=False)
        app_config.dependencies["automation_session"] = Provide(provide_session)
        app_config.dependencies["workflow_engine"] = Provide(provide_engine, sync_to_thread=False)
        app_config.dependencies["task_dispatcher"] = Provide(provide_dispatcher, sync_to_thread=False)
        app_config.dependencies["approval_gate"] = Provide(provide_gate, sync_to_thread=False)
        app_config.dependencies["command_runner"] = Provide(provide_runner, sync_to_thread=False)

        if config.enable_api:
            from litestar import Router

            from litestar_automation.web.controllers import (
                CommandController,
                ExecutionController,
                ScheduledTaskController,
                TemplateController,
                WorkflowController,
            )

            controllers = [
                WorkflowController,
                ExecutionController,
                TemplateController,
                ScheduledTaskController,
                CommandController,
            ]

            automation_router = Router(
                path=config.api_path_prefix,
                route_handlers=controllers,
                guards=config.api_guards,
                tags=config.api_tags,
                include_in_schema=config.include_api_in_schema,
            )
            app_config.route_handlers.append(automation_router)

        app_config.exception_handlers[DatabaseRequiredError] = database_required_handler  # type: ignore[assignment]
        app_config.exception_handlers[AutomationError] = automation_error_handler  # type: ignore[assignment]

        return app_config
