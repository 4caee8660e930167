"""Tests for the rule engine."""

import pytest

from swiftstyle_core.analysis import analyze_source
from swiftstyle_core.errors import ConfigurationError
from swiftstyle_core.parsing import SourceRange, build, tokenize
from swiftstyle_core.rules import RuleCategory, RuleEngine, RuleRegistry, StyleRule
from swiftstyle_core.severity import Severity

MIXED_SOURCE = (
    "import Zoo\n"
    "import Abc\n"
    "\n"
    "class myViewController {\n"
    "    var URL: String = \"\" \n"
    "    func load(userId: Int)\n"
    "    {\n"
    "        let value = cache!.value(userId); print(value)\n"
    "    }\n"
    "}\n"
    "struct Second {}\n"
)

CLEAN_SOURCE = (
    "import Foundation\n"
    "\n"
    "/// An account.\n"
    "public struct Account {\n"
    "    /// The name.\n"
    "    public let name: String\n"
    "\n"
    "    /// Creates an account.\n"
    "    public init(name: String) {\n"
    "        self.name = name\n"
    "    }\n"
    "}\n"
)


class DuplicateRule(StyleRule):
    """Reports the same range twice."""

    id = "duplicate-test"
    category = RuleCategory.FORMATTING

    def evaluate(self, model, tokens):
        span = SourceRange(0, 1, 1, 1, 1, 2)
        return [self.violation(model, span, "first"), self.violation(model, span, "second")]


class ExplodingRule(StyleRule):
    id = "exploding-test"
    category = RuleCategory.PRACTICES
    default_severity = Severity.INFO

    def evaluate(self, model, tokens):
        raise RuntimeError("boom")


def evaluate(engine: RuleEngine, source: str, rule_ids=None):
    tokens = tokenize(source)
    return engine.evaluate(build(tokens, "Sample.swift"), tokens, rule_ids)


class TestEvaluation:
    """Engine evaluation semantics."""

    def test_clean_source_has_no_violations(self, engine: RuleEngine) -> None:
        assert evaluate(engine, CLEAN_SOURCE) == []

    def test_naming_scenario(self, engine: RuleEngine) -> None:
        violations = evaluate(engine, "class myViewController { var URL: String }\n")
        assert [(v.column, v.rule_id) for v in violations] == [
            (7, "access-level"),
            (7, "identifier-casing"),
            (30, "access-level"),
            (30, "identifier-casing"),
        ]
        assert violations[1].message == (
            "type 'myViewController' should be UpperCamelCase: 'MyViewController'"
        )
        assert violations[3].message == "property 'URL' should be lowerCamelCase: 'url'"

    def test_sorted_by_position_then_rule(self, engine: RuleEngine) -> None:
        violations = evaluate(engine, MIXED_SOURCE)
        assert violations == sorted(violations, key=lambda v: (v.line, v.column, v.rule_id))
        assert {v.rule_id for v in violations} >= {
            "import-order",
            "identifier-casing",
            "acronym-casing",
            "trailing-whitespace",
            "brace-style",
            "force-unwrap",
            "one-statement-per-line",
            "single-primary-type",
            "access-level",
        }

    def test_deterministic(self, engine: RuleEngine) -> None:
        first = evaluate(engine, MIXED_SOURCE)
        second = evaluate(engine, MIXED_SOURCE)
        assert [(v.key, v.message, v.fix) for v in first] == [(v.key, v.message, v.fix) for v in second]

    def test_parallel_matches_sequential(self, registry: RuleRegistry) -> None:
        sequential = evaluate(RuleEngine(registry), MIXED_SOURCE)
        parallel = evaluate(RuleEngine(registry, parallel=True, max_workers=4), MIXED_SOURCE)
        assert [(v.key, v.message) for v in parallel] == [(v.key, v.message) for v in sequential]

    def test_rules_are_independent(self, engine: RuleEngine, registry: RuleRegistry) -> None:
        full = evaluate(engine, MIXED_SOURCE)
        for rule in registry:
            alone = evaluate(engine, MIXED_SOURCE, [rule.id])
            assert alone == [v for v in full if v.rule_id == rule.id], rule.id

    def test_unknown_rule_id(self, engine: RuleEngine) -> None:
        with pytest.raises(ConfigurationError, match="no-such-rule"):
            evaluate(engine, CLEAN_SOURCE, ["no-such-rule"])

    def test_disabled_rules_do_not_run(self) -> None:
        engine = RuleEngine(RuleRegistry.from_config({"access-level": {"enabled": False}}))
        violations = evaluate(engine, "class myViewController { var URL: String }\n")
        assert {v.rule_id for v in violations} == {"identifier-casing"}
        assert evaluate(engine, "struct A {}\n", ["access-level"]) == []

    def test_severity_override(self) -> None:
        engine = RuleEngine(RuleRegistry.from_config({"identifier-casing": {"severity": "warning"}}))
        [violation] = evaluate(engine, "let Bad = 1\n", ["identifier-casing"])
        assert violation.severity == Severity.WARNING


class TestAggregation:
    """Deduplication and failure isolation."""

    def test_duplicates_collapse_to_first(self, registry: RuleRegistry) -> None:
        engine = RuleEngine(registry.with_rule(DuplicateRule()))
        [violation] = evaluate(engine, "let a = 1\n", ["duplicate-test"])
        assert violation.message == "first"

    def test_failing_rule_is_isolated(self, registry: RuleRegistry) -> None:
        engine = RuleEngine(registry.with_rule(ExplodingRule()))
        violations = evaluate(engine, "let Bad = 1\n")
        failures = [v for v in violations if v.rule_id == "rule-failure"]
        assert len(failures) == 1
        failure = failures[0]
        assert failure.is_diagnostic
        assert failure.severity == Severity.ERROR
        assert (failure.line, failure.column) == (1, 1)
        assert failure.message == "rule 'exploding-test' failed: RuntimeError('boom')"
        assert "identifier-casing" in {v.rule_id for v in violations}

    def test_failure_marks_file_as_internal_failure(self, registry: RuleRegistry) -> None:
        engine = RuleEngine(registry.with_rule(ExplodingRule()))
        analysis = analyze_source("let a = 1\n", "A.swift", engine)
        assert analysis.has_internal_failure
