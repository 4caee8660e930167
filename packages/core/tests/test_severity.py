"""Tests for severity parsing and ordering."""

import pytest

from swiftstyle_core.severity import (
    Severity,
    compare_severity,
    get_severity_style,
    is_above_threshold,
    parse_severity,
)


class TestParseSeverity:
    @pytest.mark.parametrize("value, expected", [
        ("error", Severity.ERROR),
        ("WARNING", Severity.WARNING),
        (" info ", Severity.INFO),
        ("high", Severity.ERROR),
        ("warn", Severity.WARNING),
        ("note", Severity.INFO),
        (Severity.ERROR, Severity.ERROR),
    ])
    def test_values_and_aliases(self, value, expected) -> None:
        assert parse_severity(value) == expected

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown severity"):
            parse_severity("fatal")


class TestOrdering:
    def test_compare(self) -> None:
        assert compare_severity("error", "warning") == 1
        assert compare_severity(Severity.INFO, "warning") == -1
        assert compare_severity("warn", Severity.WARNING) == 0

    def test_threshold_is_inclusive(self) -> None:
        assert is_above_threshold("warning", "warning")
        assert is_above_threshold(Severity.ERROR, "info")
        assert not is_above_threshold("info", "warning")

    def test_styles(self) -> None:
        assert get_severity_style(Severity.ERROR) == "bold red"
        assert get_severity_style("info") == "blue"
        assert get_severity_style("other") == ""
