"""Tests for the tagged capability result."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from litestar_automation.core.result import Err, Ok, from_envelope, to_envelope, to_json_compatible


@pytest.mark.unit
class TestResultTypes:
    """Tests for Ok and Err."""

    def test_ok_flag(self) -> None:
        """Ok and Err expose their branch as a class-level flag."""
        assert Ok(1).ok is True
        assert Err("nope").ok is False

    def test_results_are_frozen(self) -> None:
        """Results cannot be mutated after creation."""
        result = Ok({"a": 1})

        with pytest.raises(AttributeError):
            result.value = 2  # type: ignore[misc]

    def test_err_details_default_to_none(self) -> None:
        """Err carries no details unless given."""
        assert Err("nope").details is None


@pytest.mark.unit
class TestEnvelope:
    """Tests for the JSON envelope conversion."""

    def test_ok_envelope(self) -> None:
        """Ok serializes its value under result."""
        assert to_envelope(Ok({"text": "hi"})) == {"ok": True, "result": {"text": "hi"}}

    def test_err_envelope_without_details(self) -> None:
        """Err serializes its message under error."""
        assert to_envelope(Err("boom")) == {"ok": False, "error": "boom"}

    def test_err_envelope_with_details(self) -> None:
        """Err details are kept in the envelope."""
        envelope = to_envelope(Err("boom", {"timeout": 5}))

        assert envelope["details"] == {"timeout": 5}

    def test_parse_success(self) -> None:
        """A truthy ok flag parses to Ok."""
        assert from_envelope({"ok": True, "result": [1, 2]}) == Ok([1, 2])

    def test_parse_failure_without_message(self) -> None:
        """A failed envelope without an error message still parses to Err."""
        result = from_envelope({"ok": False})

        assert isinstance(result, Err)
        assert result.message == "Unknown error"


@pytest.mark.unit
class TestJsonCompatible:
    """Tests for normalizing values before storage."""

    def test_plain_json_is_unchanged(self) -> None:
        value = {"a": [1, 2.5, None, True], "b": {"c": "d"}}

        assert to_json_compatible(value) == value

    def test_dates_sets_and_tuples(self) -> None:
        """Dates become ISO strings, sets and tuples become lists."""
        value = {
            "at": datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc),
            "day": date(2024, 5, 1),
            "tags": {"a"},
            "pair": (1, 2),
        }

        assert to_json_compatible(value) == {
            "at": "2024-05-01T08:00:00+00:00",
            "day": "2024-05-01",
            "tags": ["a"],
            "pair": [1, 2],
        }

    def test_unknown_objects_become_strings(self) -> None:
        class Marker:
            def __str__(self) -> str:
                return "marker"

        assert to_json_compatible([Marker()]) == ["marker"]
