"""Tiered execution of operator commands.

Safe and moderate commands run immediately in a subprocess. Dangerous ones
are turned into approval requests and only run through
:meth:`CommandRunner.execute_approved` once a human has approved them.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from litestar_automation.config import AutomationSettings
from litestar_automation.core.result import Err, Ok
from litestar_automation.core.types import SecurityLevel
from litestar_automation.exceptions import AutomationError, AutomationValidationError
from litestar_automation.security.classifier import CommandClassifier
from litestar_automation.security.gate import ApprovalGate

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from litestar_automation.core.protocols import EventBus
    from litestar_automation.core.result import CapabilityResult

__all__ = ["CommandOutcome", "CommandRunner", "session_command_capability"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandOutcome:
    """What happened when a command ran.

    Attributes:
        command: The command as submitted.
        security_level: The classifier's verdict.
        cwd: Working directory, ``None`` for the process default.
        exit_code: Process exit code, ``None`` if it never started or was killed.
        stdout: Captured standard output, truncated to the configured cap.
        stderr: Captured standard error, truncated to the configured cap.
        error: Why the command did not succeed, if it did not.
    """

    command: str
    security_level: SecurityLevel
    cwd: str | None = None
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Whether the command exited with status 0."""
        return self.error is None and self.exit_code == 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON shape returned to callers."""
        return {
            "success": self.succeeded,
            "status": "executed" if self.succeeded else "failed",
            "command": self.command,
            "securityLevel": str(self.security_level),
            "cwd": self.cwd,
            "exitCode": self.exit_code,
            "output": self.stdout,
            "stderr": self.stderr,
            "error": self.error,
        }


def _decode(data: bytes | None, limit: int) -> str:
    return (data or b"")[:limit].decode("utf-8", errors="replace")


class CommandRunner:
    """Runs commands according to their security tier.

    Attributes:
        gate: Approval gate receiving dangerous commands.
        classifier: Command classifier.
        settings: Timeout and output limits.
    """

    def __init__(
        self,
        gate: ApprovalGate,
        classifier: CommandClassifier | None = None,
        settings: AutomationSettings | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            gate: Approval gate receiving dangerous commands.
            classifier: Optional classifier, defaults to the gate's.
            settings: Optional settings, defaults to the gate's.
        """
        self.gate = gate
        self.classifier = classifier or gate.classifier
        self.settings = settings or gate.settings

    async def execute(
        self,
        command: str,
        cwd: str | None = None,
        *,
        requested_by: str | None = None,
    ) -> dict[str, Any]:
        """Classify a command and run it or defer it to approval.

        Args:
            command: The raw command.
            cwd: Working directory.
            requested_by: Recorded on approval requests.

        Returns:
            The command outcome, or a ``pending_approval`` response carrying
            the ``requestId`` for dangerous commands.

        Raises:
            AutomationValidationError: If the command is empty.
        """
        if not isinstance(command, str) or not command.strip():
            raise AutomationValidationError(["command is required"])

        level = self.classifier.classify(command)
        if level == SecurityLevel.DANGEROUS:
            approval = await self.gate.request(command, level, cwd=cwd, requested_by=requested_by)
            return {
                "success": False,
                "status": "pending_approval",
                "requestId": str(approval.id),
                "securityLevel": str(level),
                "command": command,
                "message": "Dangerous commands run only after approval",
            }

        if level == SecurityLevel.MODERATE:
            logger.info("Running moderate command in %s: %s", cwd or ".", command)
        else:
            logger.debug("Running safe command in %s: %s", cwd or ".", command)
        outcome = await self.run(command, level, cwd)
        return outcome.to_dict()

    async def execute_approved(self, request_id: UUID) -> dict[str, Any]:
        """Run an approved request exactly once and record its outcome.

        Args:
            request_id: The approval request ID.

        Returns:
            The command outcome including the ``requestId``.

        Raises:
            ApprovalRequestNotFoundError: If the request does not exist.
            ApprovalNotGrantedError: If the request is not approved or has
                already been executed.
        """
        approval = await self.gate.claim(request_id)
        logger.warning("Running approved command %s: %s", request_id, approval.command)
        outcome = await self.run(approval.command, approval.security_level, approval.cwd)
        await self.gate.record_outcome(request_id, result=outcome.to_dict(), error=outcome.error)
        return {**outcome.to_dict(), "requestId": str(request_id)}

    async def run(self, command: str, level: SecurityLevel, cwd: str | None = None) -> CommandOutcome:
        """Run a command in a shell without any classification.

        Args:
            command: The command.
            level: The level reported on the outcome.
            cwd: Working directory.

        Returns:
            The outcome. Start failures and timeouts are reported, not raised.
        """
        limit = self.settings.command_max_output
        try:
            process = await asyncio.create_subprocess_shell(
                command,
                cwd=cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.warning("Command could not start: %s (%s)", command, e)
            return CommandOutcome(command=command, security_level=level, cwd=cwd, error=str(e))

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.settings.command_timeout)
        except TimeoutError:
            process.kill()
            await process.wait()
            logger.warning("Command timed out after %ss: %s", self.settings.command_timeout, command)
            return CommandOutcome(
                command=command,
                security_level=level,
                cwd=cwd,
                error=f"Command timed out after {self.settings.command_timeout}s",
            )

        error = None if process.returncode == 0 else f"Command exited with status {process.returncode}"
        if error:
            logger.warning("Command failed (%s): %s", process.returncode, command)
        return CommandOutcome(
            command=command,
            security_level=level,
            cwd=cwd,
            exit_code=process.returncode,
            stdout=_decode(stdout, limit),
            stderr=_decode(stderr, limit),
            error=error,
        )

    def as_capability(self) -> Callable[[dict[str, Any]], Awaitable[CapabilityResult]]:
        """Expose :meth:`execute` as a capability handler.

        The handler takes ``{"command", "cwd"?}``. Executed commands yield
        ``Ok``; failures and pending approvals yield ``Err`` whose details
        carry the full response.

        Returns:
            An async capability handler.
        """

        async def system_exec(args: dict[str, Any]) -> CapabilityResult:
            """Run an operator command under the tiered security policy."""
            return await _execute_as_result(self, args)

        return system_exec


async def _execute_as_result(runner: CommandRunner, args: dict[str, Any]) -> CapabilityResult:
    try:
        response = await runner.execute(args.get("command"), args.get("cwd"), requested_by=args.get("requestedBy"))
    except AutomationError as e:
        return Err(str(e))
    if response["success"]:
        return Ok(response)
    return Err(response.get("message") or response.get("error") or "Command failed", response)


def session_command_capability(
    session_maker: async_sessionmaker[AsyncSession],
    settings: AutomationSettings | None = None,
    event_bus: EventBus | None = None,
    classifier: CommandClassifier | None = None,
) -> Callable[[dict[str, Any]], Awaitable[CapabilityResult]]:
    """Build a command capability that opens its own session per call.

    Used where no request-scoped session exists, e.g. when the capability is
    registered once at application start.

    Args:
        session_maker: Factory for async sessions.
        settings: Optional settings.
        event_bus: Optional event bus passed to the gate.
        classifier: Optional classifier.

    Returns:
        An async capability handler.
    """

    async def system_exec(args: dict[str, Any]) -> CapabilityResult:
        """Run an operator command under the tiered security policy."""
        async with session_maker() as session:
            gate = ApprovalGate(session, settings=settings, event_bus=event_bus, classifier=classifier)
            return await _execute_as_result(CommandRunner(gate), args)

    return system_exec
