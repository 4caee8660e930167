"""Tests for the naming rules."""

import pytest

from swiftstyle_core.analysis import analyze_source
from swiftstyle_core.rules import RuleEngine, RuleRegistry
from swiftstyle_core.rules.naming import split_words, to_lower_camel, to_upper_camel


class TestWordSplitting:
    """Identifier word splitting and camel-case rendering."""

    @pytest.mark.parametrize("identifier, words", [
        ("URLSession", ["URL", "Session"]),
        ("my_view_controller", ["my", "view", "controller"]),
        ("userID2Name", ["user", "ID", "2", "Name"]),
        ("parseJSON", ["parse", "JSON"]),
    ])
    def test_split_words(self, identifier: str, words: list[str]) -> None:
        assert split_words(identifier) == words

    def test_upper_camel(self) -> None:
        assert to_upper_camel("my_view") == "MyView"
        assert to_upper_camel("url_session") == "URLSession"

    def test_lower_camel(self) -> None:
        assert to_lower_camel("UserName") == "userName"
        assert to_lower_camel("fetch_url") == "fetchURL"
        assert to_lower_camel("URLString") == "urlString"


class TestIdentifierCasing:
    """identifier-casing rule."""

    def test_type_should_be_upper_camel(self, check) -> None:
        [violation] = check("struct my_view {}\n", "identifier-casing")
        assert violation.message == "type 'my_view' should be UpperCamelCase: 'MyView'"
        assert (violation.line, violation.column) == (1, 8)
        assert violation.severity.value == "error"

    def test_property_should_be_lower_camel(self, check) -> None:
        [violation] = check("let UserName = 1\n", "identifier-casing")
        assert "'userName'" in violation.message

    def test_function_with_underscores(self, check) -> None:
        [violation] = check("func fetch_url() {}\n", "identifier-casing")
        assert violation.message == "function 'fetch_url' should be lowerCamelCase: 'fetchURL'"

    def test_enum_cases_are_upper_camel(self, check) -> None:
        violations = check("enum Color {\n    case red, Green\n}\n", "identifier-casing")
        assert [v.message for v in violations] == [
            "enum case 'red' should be UpperCamelCase: 'Red'",
        ]

    def test_parameters_and_locals(self, check) -> None:
        source = "func load(UserID: Int) {\n    let Total = UserID\n}\n"
        violations = check(source, "identifier-casing")
        assert [(v.line, v.column) for v in violations] == [(1, 11), (2, 9)]
        assert "'userID'" in violations[0].message

    @pytest.mark.parametrize("source", [
        "extension my_type {}\n",
        "struct S {\n    init() {}\n    deinit {}\n}\n",
        "static func == (lhs: A, rhs: A) -> Bool { true }\n",
        "let `default` = 1\n",
        "func f(_ value: Int) {}\n",
    ])
    def test_skipped_names(self, check, source: str) -> None:
        assert check(source, "identifier-casing") == []


class TestAcronymCasing:
    """acronym-casing rule."""

    def test_mixed_case_acronym(self, check) -> None:
        [violation] = check("var userId: Int = 0\n", "acronym-casing")
        assert violation.message == "acronym in 'userId' should be rendered as 'userID'"
        assert violation.severity.value == "warning"

    def test_type_name_acronym(self, check) -> None:
        [violation] = check("class UrlSession {}\n", "acronym-casing")
        assert "'URLSession'" in violation.message

    @pytest.mark.parametrize("source", [
        "let urlString = \"\"\n",
        "let baseURL = \"\"\n",
        "struct JSONDecoder {}\n",
        "func parseHTML() {}\n",
    ])
    def test_conforming_names(self, check, source: str) -> None:
        assert check(source, "acronym-casing") == []

    def test_wrong_leading_case_left_to_identifier_casing(self, check) -> None:
        violations = check("let URLString = \"\"\n", "acronym-casing", "identifier-casing")
        assert [v.rule_id for v in violations] == ["identifier-casing"]
        assert "'urlString'" in violations[0].message

    def test_configured_acronyms(self) -> None:
        registry = RuleRegistry.from_config({"acronym-casing": {"params": {"acronyms": ["XYZ"]}}})
        engine = RuleEngine(registry)
        analysis = analyze_source("let loadXyz = 1\nlet userId = 2\n", "A.swift", engine, ["acronym-casing"])
        assert [v.line for v in analysis.violations] == [1]
