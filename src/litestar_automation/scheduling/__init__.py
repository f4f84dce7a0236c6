"""Scheduling layer for litestar-automation.

This module exports the next-run calculator and the scheduled task
dispatcher.
"""

from __future__ import annotations

from litestar_automation.scheduling.calculator import next_run, validate_schedule
from litestar_automation.scheduling.dispatcher import TaskDispatcher

__all__ = ["TaskDispatcher", "next_run", "validate_schedule"]
