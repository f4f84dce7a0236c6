"""Tests for exception hierarchy."""

from __future__ import annotations

from uuid import UUID

import pytest


@pytest.mark.unit
class TestAutomationError:
    """Tests for base AutomationError exception."""

    def test_base_exception(self) -> None:
        """Test AutomationError is a plain Exception."""
        from litestar_automation.exceptions import AutomationError

        error = AutomationError("Test error message")

        assert str(error) == "Test error message"
        assert issubclass(AutomationError, Exception)

    def test_all_errors_share_the_base(self) -> None:
        """Test every public exception derives from AutomationError."""
        from litestar_automation import exceptions

        for name in exceptions.__all__:
            assert issubclass(getattr(exceptions, name), exceptions.AutomationError), name


@pytest.mark.unit
class TestValidationErrors:
    """Tests for validation error subclasses."""

    def test_validation_error_joins_messages(self) -> None:
        """Test the message lists every error."""
        from litestar_automation.exceptions import AutomationValidationError

        error = AutomationValidationError(["first", "second"])

        assert error.errors == ["first", "second"]
        assert str(error) == "Validation failed: first; second"

    @pytest.mark.parametrize(
        ("class_name", "prefix"),
        [
            ("WorkflowValidationError", "Workflow validation failed"),
            ("TaskValidationError", "Task validation failed"),
            ("ScheduleValidationError", "Schedule validation failed"),
        ],
    )
    def test_subject_prefix(self, class_name: str, prefix: str) -> None:
        """Test each subclass names what was rejected."""
        from litestar_automation import exceptions

        error_class = getattr(exceptions, class_name)
        error = error_class(["bad"])

        assert isinstance(error, exceptions.AutomationValidationError)
        assert str(error) == f"{prefix}: bad"


@pytest.mark.unit
class TestNotFoundErrors:
    """Tests for unknown identifier errors."""

    @pytest.mark.parametrize(
        ("class_name", "kind"),
        [
            ("WorkflowNotFoundError", "Workflow"),
            ("WorkflowExecutionNotFoundError", "Workflow execution"),
            ("WorkflowTemplateNotFoundError", "Workflow template"),
            ("ScheduledTaskNotFoundError", "Scheduled task"),
            ("ApprovalRequestNotFoundError", "Approval request"),
        ],
    )
    def test_message(self, class_name: str, kind: str) -> None:
        """Test the message names the kind and identifier."""
        from litestar_automation import exceptions

        error = getattr(exceptions, class_name)("abc")

        assert isinstance(error, exceptions.NotFoundError)
        assert error.identifier == "abc"
        assert str(error) == f"{kind} 'abc' not found"

    def test_uuid_identifier(self) -> None:
        """Test UUID identifiers are rendered in full."""
        from litestar_automation.exceptions import WorkflowNotFoundError

        workflow_id = UUID("12345678-1234-5678-1234-567812345678")

        assert str(WorkflowNotFoundError(workflow_id)) == f"Workflow '{workflow_id}' not found"


@pytest.mark.unit
class TestApprovalErrors:
    """Tests for approval state errors."""

    def test_already_resolved(self) -> None:
        """Test ApprovalAlreadyResolvedError creation."""
        from litestar_automation.exceptions import ApprovalAlreadyResolvedError

        error = ApprovalAlreadyResolvedError("req-1", "denied")

        assert error.request_id == "req-1"
        assert error.status == "denied"
        assert str(error) == "Approval request 'req-1' is already denied"

    def test_not_granted(self) -> None:
        """Test ApprovalNotGrantedError with and without a reason."""
        from litestar_automation.exceptions import ApprovalNotGrantedError

        assert str(ApprovalNotGrantedError("req-1", "pending")) == "Approval request 'req-1' is pending"
        assert (
            str(ApprovalNotGrantedError("req-1", "approved", "already executed"))
            == "Approval request 'req-1' is approved: already executed"
        )
