"""Minimal example of litestar-automation integration.

This example wires the AutomationPlugin into an app with two toy
capabilities, stores everything in SQLite and runs a single background
dispatcher that fires due scheduled tasks once a minute.

Run with:
    cd examples/minimal
    litestar run

Or:
    uvicorn app:app --reload

Then try:
    curl -X POST localhost:8000/automation/workflows/from-template \\
        -H 'content-type: application/json' -d '{"template_id": "daily-report"}'
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from typing import Any

from litestar import Litestar, get
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from litestar_automation import AutomationPlugin, AutomationPluginConfig, CapabilityRegistry, TaskDispatcher
from litestar_automation.db.models import WorkflowModel

logger = logging.getLogger(__name__)

# =============================================================================
# Capabilities
# =============================================================================


async def send_notification(args: dict[str, Any]) -> dict[str, Any]:
    """Log a notification instead of delivering it."""
    logger.info("Notification: %s - %s", args.get("title"), args.get("message"))
    return {"delivered": True, "title": args.get("title")}


async def get_dashboard_summary(args: dict[str, Any]) -> dict[str, Any]:
    """Summarize activity for a user."""
    return {"summary": f"No open items for {args.get('userId', 'everyone')}"}


def build_capabilities() -> CapabilityRegistry:
    """Create the registry of capabilities this app offers."""
    capabilities = CapabilityRegistry()
    capabilities.register("send_notification", send_notification)
    capabilities.register("get_dashboard_summary", get_dashboard_summary)
    return capabilities


# =============================================================================
# Application
# =============================================================================


@get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


async def dispatch_forever(
    session_maker: async_sessionmaker[AsyncSession],
    capabilities: CapabilityRegistry,
    interval: float,
) -> None:
    """Run due scheduled tasks every ``interval`` seconds. Run exactly one of these."""
    while True:
        try:
            async with session_maker() as session:
                logs = await TaskDispatcher(session, capabilities).run_due()
            if logs:
                logger.info("Dispatched %d task(s)", len(logs))
        except Exception:
            logger.exception("Dispatcher pass failed")
        await asyncio.sleep(interval)


def create_app(database_url: str = "sqlite+aiosqlite:///./automation.db", poll_interval: float | None = 60.0) -> Litestar:
    """Build the example application.

    Args:
        database_url: SQLAlchemy async database URL.
        poll_interval: Seconds between dispatcher passes. ``None`` disables
            the background dispatcher.

    Returns:
        The Litestar application.
    """
    capabilities = build_capabilities()
    engine = create_async_engine(database_url)
    session_maker = async_sessionmaker(engine, expire_on_commit=False)

    async def create_tables() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(WorkflowModel.metadata.create_all)

    @contextlib.asynccontextmanager
    async def dispatcher_lifespan(_: Litestar) -> AsyncIterator[None]:
        task = None
        if poll_interval:
            task = asyncio.create_task(dispatch_forever(session_maker, capabilities, poll_interval))
        try:
            yield
        finally:
            if task is not None:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
            await engine.dispose()

    return Litestar(
        route_handlers=[health_check],
        on_startup=[create_tables],
        lifespan=[dispatcher_lifespan],
        plugins=[
            AutomationPlugin(
                config=AutomationPluginConfig(capabilities=capabilities, session_maker=session_maker),
            )
        ],
    )


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
