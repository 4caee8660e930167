"""Shared fixtures for the engine tests."""

from __future__ import annotations

from typing import Callable

import pytest

from swiftstyle_core.analysis import FileAnalysis, analyze_source
from swiftstyle_core.rules import RuleEngine, RuleRegistry, Violation


@pytest.fixture(scope="session")
def registry() -> RuleRegistry:
    return RuleRegistry.load_default()


@pytest.fixture
def engine(registry: RuleRegistry) -> RuleEngine:
    return RuleEngine(registry)


@pytest.fixture
def analyze(engine: RuleEngine) -> Callable[..., FileAnalysis]:
    """Analyze source text, optionally restricted to some rule ids."""

    def _analyze(source: str, *rule_ids: str, path: str = "Sample.swift") -> FileAnalysis:
        return analyze_source(source, path, engine, rule_ids or None)

    return _analyze


@pytest.fixture
def check(analyze: Callable[..., FileAnalysis]) -> Callable[..., list[Violation]]:
    """Violations for source text, optionally restricted to some rule ids."""

    def _check(source: str, *rule_ids: str, path: str = "Sample.swift") -> list[Violation]:
        return list(analyze(source, *rule_ids, path=path).violations)

    return _check
