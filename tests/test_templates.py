"""Tests for the built-in workflow templates."""

from __future__ import annotations

import pytest

from litestar_automation.engine.templates import BUILTIN_TEMPLATES, get_template, list_templates
from litestar_automation.exceptions import WorkflowTemplateNotFoundError, WorkflowValidationError


@pytest.mark.unit
class TestTemplateCatalog:
    """Tests for listing and looking up templates."""

    def test_all_templates_are_valid(self) -> None:
        """Every built-in template produces a valid workflow."""
        for template in BUILTIN_TEMPLATES:
            spec = template.to_spec(template.name)

            assert len(spec.steps) == template.steps_count

    def test_list_sorted_by_name(self) -> None:
        """Templates are listed by name."""
        names = [template.name for template in list_templates()]

        assert names == sorted(names)
        assert len(names) == len(BUILTIN_TEMPLATES)

    def test_filter_by_category(self) -> None:
        """Category filtering returns only matching templates."""
        assert [template.id for template in list_templates("reporting")] == ["daily-report"]
        assert list_templates("unknown") == []

    def test_unknown_template(self) -> None:
        """Unknown ids raise WorkflowTemplateNotFoundError."""
        with pytest.raises(WorkflowTemplateNotFoundError, match="nope"):
            get_template("nope")


@pytest.mark.unit
class TestTemplateCustomization:
    """Tests for building workflows from templates."""

    def test_override_merges_by_index(self) -> None:
        """Overrides replace only the keys they name."""
        template = get_template("daily-report")

        spec = template.to_spec(
            "Team report",
            {"steps": [{}, {"params": {"title": "Team", "message": "{{steps[0].result.summary}}"}}]},
        )

        assert spec.name == "Team report"
        assert spec.steps[0].capability == "get_dashboard_summary"
        assert spec.steps[1].capability == "send_notification"
        assert spec.steps[1].params == {"title": "Team", "message": "{{steps[0].result.summary}}"}

    def test_extra_overrides_are_ignored(self) -> None:
        """Overrides past the last template step are dropped."""
        template = get_template("daily-report")

        spec = template.to_spec("x", {"steps": [{}, {}, {"capability": "echo"}]})

        assert len(spec.steps) == 2

    def test_customizing_does_not_change_template(self) -> None:
        """Building twice with the same input gives the same workflow."""
        template = get_template("meeting-summary")
        customization = {"steps": [{"params": {"audioPath": "{{input.file}}", "language": "en"}}]}

        first = template.to_spec("Minutes", customization)
        second = template.to_spec("Minutes", customization)

        assert first == second
        assert template.steps[0]["params"]["language"] == "ko"

    def test_invalid_override_rejected(self) -> None:
        """Overrides that break the workflow are rejected."""
        template = get_template("daily-report")

        with pytest.raises(WorkflowValidationError):
            template.to_spec("x", {"steps": [{"params": {"userId": "{{steps[1].result}}"}}]})

    def test_override_must_be_list(self) -> None:
        """customization.steps must be a list."""
        with pytest.raises(WorkflowValidationError, match=r"customization\.steps must be a list"):
            get_template("daily-report").to_spec("x", {"steps": {"0": {}}})
