"""Tests for the formatting rules and their fixes."""

import pytest

from swiftstyle_core.analysis import analyze_source
from swiftstyle_core.fixer import apply_fixes
from swiftstyle_core.rules import RuleEngine, RuleRegistry


@pytest.fixture
def fixed(analyze):
    """Source text after applying the fixes of the given rules."""

    def _fixed(source: str, *rule_ids: str) -> str:
        analysis = analyze(source, *rule_ids)
        return apply_fixes(analysis.source, analysis.tokens, analysis.violations)

    return _fixed


class TestColumnLimit:
    """column-limit rule."""

    def test_line_at_limit_passes(self, check) -> None:
        assert check("// " + "x" * 97 + "\n", "column-limit") == []

    def test_line_over_limit(self, check) -> None:
        [violation] = check("// " + "x" * 98 + "\n", "column-limit")
        assert violation.message == "line is 101 columns long; the limit is 100"
        assert (violation.line, violation.column) == (1, 101)
        assert violation.range.end_column == 102
        assert not violation.fix_available

    def test_last_line_without_newline(self, check) -> None:
        violations = check("let a = 1\n" + "x" * 120, "column-limit")
        assert [v.line for v in violations] == [2]

    def test_configured_limit(self) -> None:
        registry = RuleRegistry.from_config({"column-limit": {"params": {"limit": 20}}})
        analysis = analyze_source(
            "let short = 1\nlet longerName = \"abcdef\"\n", "A.swift", RuleEngine(registry), ["column-limit"]
        )
        assert [v.line for v in analysis.violations] == [2]


class TestTrailingWhitespace:
    """trailing-whitespace rule."""

    def test_reports_and_fixes(self, check, fixed) -> None:
        source = "let a = 1 \nlet b = 2\t\n\n   \nlet c = 3\n"
        violations = check(source, "trailing-whitespace")
        assert [(v.line, v.column) for v in violations] == [(1, 10), (2, 10), (4, 1)]
        assert all(v.fix_available for v in violations)
        assert fixed(source, "trailing-whitespace") == "let a = 1\nlet b = 2\n\n\nlet c = 3\n"

    def test_crlf_line_endings(self, fixed) -> None:
        assert fixed("let a = 1  \r\nlet b = 2\r\n", "trailing-whitespace") == "let a = 1\r\nlet b = 2\r\n"

    def test_whitespace_inside_comment_has_no_fix(self, check) -> None:
        [violation] = check("let a = 1 // note  \n", "trailing-whitespace")
        assert violation.column == 18
        assert not violation.fix_available


class TestSemicolons:
    """semicolon-terminator and one-statement-per-line rules."""

    def test_terminating_semicolon(self, check, fixed) -> None:
        source = "let a = 1;\nlet b = 2 ;\n"
        violations = check(source, "semicolon-terminator", "one-statement-per-line")
        assert [(v.rule_id, v.line) for v in violations] == [
            ("semicolon-terminator", 1),
            ("semicolon-terminator", 2),
        ]
        assert fixed(source, "semicolon-terminator") == "let a = 1\nlet b = 2\n"

    def test_semicolon_before_comment_or_brace(self, check) -> None:
        source = "func f() { a(); }\nlet b = 2; // two\n"
        violations = check(source, "semicolon-terminator")
        assert [(v.line, v.column) for v in violations] == [(1, 15), (2, 10)]

    def test_joined_statements(self, check, fixed) -> None:
        source = "let a = 1; let b = 2\n"
        [violation] = check(source, "semicolon-terminator", "one-statement-per-line")
        assert violation.rule_id == "one-statement-per-line"
        assert fixed(source, "one-statement-per-line") == "let a = 1\nlet b = 2\n"

    def test_split_keeps_indentation(self, fixed) -> None:
        source = "func f() {\n    a(); b()\n}\n"
        assert fixed(source, "one-statement-per-line") == "func f() {\n    a()\n    b()\n}\n"

    def test_semicolons_in_strings_are_ignored(self, check) -> None:
        assert check('let s = "a; b;"\n', "semicolon-terminator", "one-statement-per-line") == []


class TestBraceStyle:
    """brace-style rule."""

    def test_brace_on_own_line(self, check, fixed) -> None:
        source = "func f()\n{\n}\n"
        [violation] = check(source, "brace-style")
        assert (violation.line, violation.column) == (2, 1)
        assert violation.message == "opening brace belongs on the same line as its declaration or statement"
        assert fixed(source, "brace-style") == "func f() {\n}\n"

    def test_else_on_own_line(self, check, fixed) -> None:
        source = "if ready {\n    go()\n}\nelse {\n    wait()\n}\n"
        [violation] = check(source, "brace-style")
        assert violation.message == "'else' belongs on the same line as the preceding closing brace"
        assert fixed(source, "brace-style") == "if ready {\n    go()\n} else {\n    wait()\n}\n"

    def test_type_header_brace(self, fixed) -> None:
        assert fixed("struct Point: Equatable\n{\n}\n", "brace-style") == "struct Point: Equatable {\n}\n"

    def test_comment_before_brace_has_no_fix(self, check) -> None:
        [violation] = check("func f() // note\n{\n}\n", "brace-style")
        assert not violation.fix_available

    @pytest.mark.parametrize("source", [
        "func f() {\n}\n",
        "let values = [\n    1,\n]\n",
        "run(\n    {\n    }\n)\n",
        "if ready {\n} else {\n}\n",
    ])
    def test_conforming(self, check, source: str) -> None:
        assert check(source, "brace-style") == []
