"""Rule engine: evaluates every enabled rule against one file.

Rules run independently against the same frozen model and token stream, so
the result does not depend on evaluation order and rules may run on a worker
pool. Aggregation (fix attachment, deduplication, sorting) is a single join
point per file.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Iterable

import structlog

from swiftstyle_core.errors import ConfigurationError, RuleEvaluationError
from swiftstyle_core.parsing.lexer import Token
from swiftstyle_core.parsing.model import SourceRange, StructuralModel
from swiftstyle_core.rules.base import StyleRule
from swiftstyle_core.rules.models import RULE_FAILURE, Violation, diagnostic
from swiftstyle_core.rules.registry import RuleRegistry

logger = structlog.get_logger()

FILE_START = SourceRange(start=0, end=0, line=1, column=1, end_line=1, end_column=1)


class RuleEngine:
    """Evaluates the enabled rules of a registry.

    Example:
        >>> engine = RuleEngine(RuleRegistry.load_default())
        >>> violations = engine.evaluate(model, tokens)
    """

    def __init__(
        self,
        registry: RuleRegistry,
        parallel: bool = False,
        max_workers: int | None = None,
    ) -> None:
        self.registry = registry
        self.parallel = parallel
        self.max_workers = max_workers

    def evaluate(
        self,
        model: StructuralModel,
        tokens: tuple[Token, ...],
        rule_ids: Iterable[str] | None = None,
    ) -> list[Violation]:
        """Evaluate rules and return deduplicated violations.

        Args:
            model: Structural model of the file
            tokens: Token stream the model was built from
            rule_ids: Restrict evaluation to these enabled rules

        Returns:
            Violations sorted by (line, column, rule_id)
        """
        rules = self._select(rule_ids)
        if self.parallel and len(rules) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                batches = list(pool.map(lambda rule: self._run_rule(rule, model, tokens), rules))
        else:
            batches = [self._run_rule(rule, model, tokens) for rule in rules]

        merged: dict[tuple[str, SourceRange], Violation] = {}
        diagnostics: list[Violation] = []
        for batch in batches:
            for violation in batch:
                if violation.is_diagnostic:
                    diagnostics.append(violation)
                else:
                    merged.setdefault(violation.key, violation)
        return sorted([*merged.values(), *diagnostics], key=Violation.sort_key)

    def _select(self, rule_ids: Iterable[str] | None) -> list[StyleRule]:
        enabled = self.registry.enabled_rules()
        if rule_ids is None:
            return enabled
        wanted = set(rule_ids)
        unknown = wanted - {rule.id for rule in self.registry}
        if unknown:
            raise ConfigurationError(f"unknown rule ids: {', '.join(sorted(unknown))}")
        return [rule for rule in enabled if rule.id in wanted]

    def _run_rule(
        self,
        rule: StyleRule,
        model: StructuralModel,
        tokens: tuple[Token, ...],
    ) -> list[Violation]:
        """Run one rule, converting a failure into a rule-failure diagnostic."""
        try:
            violations = rule.evaluate(model, tokens)
            return [self._with_fix(rule, model, tokens, v) for v in violations]
        except Exception as e:
            error = RuleEvaluationError(rule.id, e)
            logger.warning("rule_failed", rule_id=rule.id, path=model.path, error=str(e))
            return [diagnostic(RULE_FAILURE, str(error), FILE_START, path=model.path)]

    @staticmethod
    def _with_fix(
        rule: StyleRule,
        model: StructuralModel,
        tokens: tuple[Token, ...],
        violation: Violation,
    ) -> Violation:
        fix = rule.fix(model, tokens, violation)
        if fix is None:
            return violation
        return replace(violation, fix=fix)
