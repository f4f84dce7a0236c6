"""Tests for parameter template resolution and the execution context."""

from __future__ import annotations

import pytest

from litestar_automation.core.context import ExecutionContext, StepRecord
from litestar_automation.core.result import Err, Ok
from litestar_automation.core.templating import (
    UNRESOLVED,
    TemplatePath,
    find_placeholders,
    resolve_params,
    resolve_value,
)


@pytest.fixture
def context() -> ExecutionContext:
    """Context with inputs and two recorded steps, the second one failed."""
    ctx = ExecutionContext(input={"audioPath": "/tmp/a.wav", "count": 3})
    ctx.record(
        StepRecord(
            step_index=0,
            capability="speech_to_text",
            resolved_params={"audioPath": "/tmp/a.wav"},
            result=Ok({"text": "hello", "segments": [{"start": 0}, {"start": 5}]}),
        )
    )
    ctx.record(StepRecord(step_index=1, capability="translate", resolved_params={}, result=Err("quota")))
    return ctx


@pytest.mark.unit
class TestTemplatePath:
    """Tests for placeholder path parsing and evaluation."""

    def test_parse_dots_and_indexes(self) -> None:
        """Dots and brackets both separate segments."""
        assert TemplatePath.parse("steps[0].result.segments[1].start").segments == (
            "steps",
            "0",
            "result",
            "segments",
            "1",
            "start",
        )

    def test_evaluate_missing_key(self) -> None:
        """A missing key evaluates to UNRESOLVED."""
        assert TemplatePath.parse("input.missing").evaluate({"input": {}}) is UNRESOLVED

    def test_evaluate_index_out_of_range(self) -> None:
        """An index past the end evaluates to UNRESOLVED."""
        assert TemplatePath.parse("steps[4]").evaluate({"steps": []}) is UNRESOLVED

    def test_evaluate_into_scalar(self) -> None:
        """Walking into a scalar evaluates to UNRESOLVED."""
        assert TemplatePath.parse("input.name.first").evaluate({"input": {"name": "Kim"}}) is UNRESOLVED

    def test_empty_expression(self) -> None:
        """An expression without segments never resolves."""
        assert TemplatePath.parse("  ").evaluate({"input": {}}) is UNRESOLVED

    def test_unresolved_is_falsy_singleton(self) -> None:
        """UNRESOLVED is falsy and has a readable repr."""
        assert not UNRESOLVED
        assert repr(UNRESOLVED) == "UNRESOLVED"


@pytest.mark.unit
class TestResolveParams:
    """Tests for resolving a parameter tree against a context."""

    def test_whole_placeholder_keeps_type(self, context: ExecutionContext) -> None:
        """A string that is exactly one placeholder becomes the raw value."""
        resolved = resolve_params({"count": "{{input.count}}", "segments": "{{steps[0].result.segments}}"}, context)

        assert resolved["count"] == 3
        assert resolved["segments"] == [{"start": 0}, {"start": 5}]

    def test_embedded_placeholders_interpolate(self, context: ExecutionContext) -> None:
        """Placeholders inside longer strings are interpolated."""
        resolved = resolve_params({"message": "Said {{ steps[0].result.text }} x{{input.count}}"}, context)

        assert resolved["message"] == "Said hello x3"

    def test_embedded_non_string_uses_compact_json(self, context: ExecutionContext) -> None:
        """Non-string values are interpolated as compact JSON."""
        resolved = resolve_params({"message": "at {{steps[0].result.segments[1]}}"}, context)

        assert resolved["message"] == 'at {"start":5}'

    def test_unresolved_placeholder_left_verbatim(self, context: ExecutionContext) -> None:
        """Unresolvable placeholders stay as written."""
        params = {"a": "{{input.nope}}", "b": "x {{steps[9].result}} y"}

        assert resolve_params(params, context) == params

    def test_failed_step_result_is_none(self, context: ExecutionContext) -> None:
        """A failed step exposes a null result and its error."""
        resolved = resolve_params({"r": "{{steps[1].result}}", "e": "{{steps[1].error}}"}, context)

        assert resolved == {"r": None, "e": "quota"}

    def test_nested_structures(self, context: ExecutionContext) -> None:
        """Lists and nested objects are resolved recursively."""
        resolved = resolve_params({"outer": {"list": ["{{input.audioPath}}", 1, True]}}, context)

        assert resolved == {"outer": {"list": ["/tmp/a.wav", 1, True]}}

    def test_input_is_not_modified(self, context: ExecutionContext) -> None:
        """Resolution returns a new tree."""
        params = {"nested": {"p": "{{input.audioPath}}"}}

        resolve_params(params, context)

        assert params == {"nested": {"p": "{{input.audioPath}}"}}

    def test_empty_params(self, context: ExecutionContext) -> None:
        """Missing params resolve to an empty object."""
        assert resolve_params(None, context) == {}

    def test_resolving_twice_is_stable(self, context: ExecutionContext) -> None:
        """Resolving an already resolved tree changes nothing."""
        once = resolve_params({"t": "{{steps[0].result.text}}", "m": "{{input.nope}}"}, context)

        assert resolve_params(once, context) == once

    def test_resolve_value_without_placeholders(self) -> None:
        """Plain values pass through untouched."""
        assert resolve_value("plain", {}) == "plain"
        assert resolve_value(4.5, {}) == 4.5


@pytest.mark.unit
class TestFindPlaceholders:
    """Tests for placeholder discovery."""

    def test_document_order(self) -> None:
        """Placeholders are collected in document order."""
        paths = find_placeholders({"a": "{{input.x}} {{steps[0].result}}", "b": ["{{steps[1].ok}}"]})

        assert [path.expression for path in paths] == ["input.x", "steps[0].result", "steps[1].ok"]


@pytest.mark.unit
class TestStepRecord:
    """Tests for step record persistence."""

    def test_round_trip(self) -> None:
        """A persisted record rebuilds to an equal record."""
        record = StepRecord(step_index=2, capability="echo", resolved_params={"x": 1}, result=Err("bad", {"code": 1}))

        assert StepRecord.from_dict(record.to_dict()) == record

    def test_to_dict_uses_envelope(self) -> None:
        """The result is stored as an ok/result envelope."""
        record = StepRecord(step_index=0, capability="echo", resolved_params={}, result=Ok({"x": "A"}))

        assert record.to_dict()["result"] == {"ok": True, "result": {"x": "A"}}
        assert record.ok is True
