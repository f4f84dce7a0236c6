"""Persistent approval gate for dangerous operator commands.

The gate records human decisions and nothing else: it never runs a command.
Every status transition is a single conditional ``UPDATE`` so concurrent
resolutions of the same request cannot both succeed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from litestar_automation.config import AutomationSettings
from litestar_automation.core.clock import utc_now
from litestar_automation.core.types import ApprovalStatus, SecurityLevel
from litestar_automation.db.models import CommandApprovalModel
from litestar_automation.db.repositories import CommandApprovalRepository
from litestar_automation.exceptions import (
    ApprovalAlreadyResolvedError,
    ApprovalNotGrantedError,
    ApprovalRequestNotFoundError,
    AutomationValidationError,
)
from litestar_automation.security.classifier import CommandClassifier

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from litestar_automation.core.clock import Clock
    from litestar_automation.core.protocols import EventBus

__all__ = ["ApprovalDecision", "ApprovalGate"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApprovalDecision:
    """Outcome of approving or denying a request.

    Attributes:
        request_id: The approval request ID.
        status: ``approved`` or ``denied``.
        command: The command the decision applies to.
    """

    request_id: UUID
    status: ApprovalStatus
    command: str


class ApprovalGate:
    """Creates and resolves command approval requests.

    Attributes:
        session: SQLAlchemy async session for database operations.
        settings: Shared settings.
        event_bus: Optional event bus for emitting approval events.
        classifier: Classifier used to confirm requests are dangerous.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: AutomationSettings | None = None,
        event_bus: EventBus | None = None,
        clock: Clock | None = None,
        classifier: CommandClassifier | None = None,
    ) -> None:
        """Initialize the approval gate.

        Args:
            session: SQLAlchemy async session.
            settings: Optional settings, defaults to :class:`AutomationSettings`.
            event_bus: Optional event bus for events.
            clock: Optional clock returning aware datetimes.
            classifier: Optional classifier, defaults to the built-in rules.
        """
        self.session = session
        self.settings = settings or AutomationSettings()
        self.event_bus = event_bus
        self.classifier = classifier or CommandClassifier()
        self._clock = clock or utc_now

        self._repo = CommandApprovalRepository(session=session)

    async def request(
        self,
        command: str,
        level: SecurityLevel | str | None = None,
        *,
        cwd: str | None = None,
        requested_by: str | None = None,
    ) -> CommandApprovalModel:
        """Record a pending approval request for a dangerous command.

        Args:
            command: The raw command.
            level: The caller's classification. Computed when omitted.
            cwd: Working directory the command should run in.
            requested_by: Optional requester identifier.

        Returns:
            The pending request.

        Raises:
            AutomationValidationError: If the command is empty or not dangerous.
        """
        if not command or not str(command).strip():
            raise AutomationValidationError(["command is required"])
        tier = SecurityLevel(level) if level is not None else self.classifier.classify(command)
        if tier != SecurityLevel.DANGEROUS:
            raise AutomationValidationError([f"Only dangerous commands need approval, got {tier}"])

        approval = CommandApprovalModel(
            command=command,
            cwd=cwd,
            security_level=tier,
            status=ApprovalStatus.PENDING,
            requested_by=requested_by,
            requested_at=self._clock(),
        )
        approval = await self._repo.add(approval, auto_commit=True)
        request_id = approval.id
        logger.warning("Dangerous command awaiting approval %s: %s", request_id, command)

        if self.event_bus:
            await self.event_bus.emit("approval.requested", request_id=request_id, command=command)

        return approval

    async def approve(self, request_id: UUID, resolved_by: str | None = None) -> ApprovalDecision:
        """Approve a pending request.

        Args:
            request_id: The approval request ID.
            resolved_by: Who approved the request.

        Returns:
            The decision.

        Raises:
            ApprovalRequestNotFoundError: If the request does not exist.
            ApprovalAlreadyResolvedError: If the request is no longer pending.
        """
        return await self._resolve(request_id, ApprovalStatus.APPROVED, resolved_by)

    async def deny(self, request_id: UUID, resolved_by: str | None = None) -> ApprovalDecision:
        """Deny a pending request.

        Args:
            request_id: The approval request ID.
            resolved_by: Who denied the request.

        Returns:
            The decision.

        Raises:
            ApprovalRequestNotFoundError: If the request does not exist.
            ApprovalAlreadyResolvedError: If the request is no longer pending.
        """
        return await self._resolve(request_id, ApprovalStatus.DENIED, resolved_by)

    async def _resolve(
        self,
        request_id: UUID,
        status: ApprovalStatus,
        resolved_by: str | None,
    ) -> ApprovalDecision:
        resolved = await self._repo.resolve_pending(
            request_id,
            status,
            resolved_by=resolved_by,
            resolved_at=self._clock(),
        )
        await self.session.commit()

        approval = await self._repo.get_one_or_none(id=request_id)
        if approval is None:
            raise ApprovalRequestNotFoundError(request_id)
        await self.session.refresh(approval)
        if not resolved:
            raise ApprovalAlreadyResolvedError(request_id, approval.status)

        logger.info("Approval request %s %s by %s", request_id, status, resolved_by or "unknown")
        if self.event_bus:
            await self.event_bus.emit(f"approval.{status}", request_id=request_id, resolved_by=resolved_by)

        return ApprovalDecision(request_id=approval.id, status=approval.status, command=approval.command)

    async def get(self, request_id: UUID) -> CommandApprovalModel:
        """Get an approval request by ID.

        Args:
            request_id: The approval request ID.

        Returns:
            The request.

        Raises:
            ApprovalRequestNotFoundError: If the request does not exist.
        """
        approval = await self._repo.get_one_or_none(id=request_id)
        if approval is None:
            raise ApprovalRequestNotFoundError(request_id)
        return approval

    async def list_pending(self) -> Sequence[CommandApprovalModel]:
        """List pending requests, oldest first."""
        return await self._repo.find_pending()

    async def claim(self, request_id: UUID) -> CommandApprovalModel:
        """Claim an approved request for its single execution.

        Args:
            request_id: The approval request ID.

        Returns:
            The claimed request with ``executed_at`` set.

        Raises:
            ApprovalRequestNotFoundError: If the request does not exist.
            ApprovalNotGrantedError: If the request is not approved or has
                already been executed.
        """
        claimed = await self._repo.claim_for_execution(request_id, self._clock())
        await self.session.commit()

        approval = await self.get(request_id)
        await self.session.refresh(approval)
        if not claimed:
            reason = "already executed" if approval.executed_at is not None else None
            raise ApprovalNotGrantedError(request_id, approval.status, reason)
        return approval

    async def record_outcome(
        self,
        request_id: UUID,
        result: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> CommandApprovalModel:
        """Attach the outcome of an executed command to its request.

        Args:
            request_id: The approval request ID.
            result: Structured command output.
            error: Error message if the command failed.

        Returns:
            The updated request.

        Raises:
            ApprovalRequestNotFoundError: If the request does not exist.
            ApprovalNotGrantedError: If the request was not approved.
        """
        approval = await self.get(request_id)
        if approval.status != ApprovalStatus.APPROVED:
            raise ApprovalNotGrantedError(request_id, approval.status, "only approved commands have outcomes")

        approval.result = result
        approval.error = error
        if approval.executed_at is None:
            approval.executed_at = self._clock()
        approval = await self._repo.update(approval, auto_commit=True)
        logger.info("Recorded outcome of approval request %s (error=%s)", request_id, error is not None)
        return approval
