"""Command classification, approval and execution."""

from __future__ import annotations

from litestar_automation.security.classifier import (
    DEFAULT_RULES,
    Classification,
    CommandClassifier,
    CommandRule,
    classify_command,
    normalize_command,
)
from litestar_automation.security.commands import CommandOutcome, CommandRunner, session_command_capability
from litestar_automation.security.gate import ApprovalDecision, ApprovalGate

__all__ = [
    "DEFAULT_RULES",
    "ApprovalDecision",
    "ApprovalGate",
    "Classification",
    "CommandClassifier",
    "CommandOutcome",
    "CommandRule",
    "CommandRunner",
    "classify_command",
    "normalize_command",
    "session_command_capability",
]
