"""Shared test fixtures for litestar-automation test suite."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from litestar_automation.config import AutomationSettings
from litestar_automation.core.result import Err
from litestar_automation.db.models import WorkflowModel
from litestar_automation.engine.executor import WorkflowEngine
from litestar_automation.engine.registry import CapabilityRegistry
from litestar_automation.scheduling.dispatcher import TaskDispatcher
from litestar_automation.security.gate import ApprovalGate

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class FrozenClock:
    """Clock returning a fixed, manually advanced time."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, value: datetime) -> None:
        self.now = value

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingEventBus:
    """Event bus that keeps every emitted event."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    async def emit(self, event: str, **payload: Any) -> None:
        self.events.append((event, payload))

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.events]


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
async def db_engine():
    """Create an async SQLite in-memory engine with all tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    # Enable foreign keys for SQLite
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(WorkflowModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def session_maker(db_engine) -> async_sessionmaker[AsyncSession]:
    """Create session factory."""
    return async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def session(session_maker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Create an async session for testing."""
    async with session_maker() as session:
        yield session
        await session.rollback()


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FrozenClock:
    """Clock pinned to Wednesday 2024-05-01 08:00 UTC."""
    return FrozenClock(datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc))


@pytest.fixture
def event_bus() -> RecordingEventBus:
    """Event bus recording emitted events."""
    return RecordingEventBus()


@pytest.fixture
def settings() -> AutomationSettings:
    """Settings with short timeouts."""
    return AutomationSettings(step_timeout=5, command_timeout=5)


@pytest.fixture
def capabilities() -> CapabilityRegistry:
    """Registry with deterministic test capabilities.

    - ``echo`` returns its arguments
    - ``fail`` returns ``Err("boom")``
    - ``explode`` raises ``RuntimeError("kaboom")``
    - ``slow`` sleeps for a second
    - ``send_notification`` and ``get_dashboard_summary`` stand in for the
      notification and report capabilities
    """
    registry = CapabilityRegistry()

    @registry.capability("echo")
    async def echo(args: dict[str, Any]) -> dict[str, Any]:
        """Return the arguments unchanged."""
        return dict(args)

    @registry.capability("fail")
    async def fail(args: dict[str, Any]) -> Err:
        return Err("boom")

    @registry.capability("explode")
    def explode(args: dict[str, Any]) -> None:
        raise RuntimeError("kaboom")

    @registry.capability("slow")
    async def slow(args: dict[str, Any]) -> dict[str, Any]:
        await asyncio.sleep(1)
        return {"slept": True}

    @registry.capability("send_notification")
    async def send_notification(args: dict[str, Any]) -> dict[str, Any]:
        return {"sent": True, **args}

    @registry.capability("get_dashboard_summary")
    async def get_dashboard_summary(args: dict[str, Any]) -> dict[str, Any]:
        return {"summary": f"report for {args['userId']}"}

    return registry


@pytest.fixture
def workflow_engine(
    session: AsyncSession,
    capabilities: CapabilityRegistry,
    settings: AutomationSettings,
    event_bus: RecordingEventBus,
    clock: FrozenClock,
) -> WorkflowEngine:
    """Workflow engine bound to the test session."""
    return WorkflowEngine(session, capabilities, settings=settings, event_bus=event_bus, clock=clock)


@pytest.fixture
def dispatcher(
    session: AsyncSession,
    capabilities: CapabilityRegistry,
    workflow_engine: WorkflowEngine,
    settings: AutomationSettings,
    event_bus: RecordingEventBus,
    clock: FrozenClock,
) -> TaskDispatcher:
    """Task dispatcher sharing the workflow engine."""
    return TaskDispatcher(
        session,
        capabilities,
        engine=workflow_engine,
        settings=settings,
        event_bus=event_bus,
        clock=clock,
    )


@pytest.fixture
def gate(
    session: AsyncSession,
    settings: AutomationSettings,
    event_bus: RecordingEventBus,
    clock: FrozenClock,
) -> ApprovalGate:
    """Approval gate bound to the test session."""
    return ApprovalGate(session, settings=settings, event_bus=event_bus, clock=clock)


@pytest.fixture
def echo_chain() -> dict[str, Any]:
    """Two-step workflow where the second step reads the first step's result."""
    return {
        "name": "echo chain",
        "steps": [
            {"capability": "echo", "params": {"x": "A"}},
            {"capability": "echo", "params": {"x": "{{steps[0].result.x}}"}},
        ],
    }
