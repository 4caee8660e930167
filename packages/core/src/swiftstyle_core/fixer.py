"""Fix application.

Fixes are replacements computed against the original buffer. They are
checked for overlap and token boundaries, then composed in a single pass in
descending offset order so earlier edits never shift later ones. After
rewriting, the file is analyzed again; a fix whose violation is still present
is reported, never retried, so a fix run always terminates.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable

import structlog

from swiftstyle_core.analysis import FileAnalysis, analyze_source
from swiftstyle_core.errors import ConflictingFixError, FixBoundaryError, FixDidNotConverge
from swiftstyle_core.parsing.lexer import Token
from swiftstyle_core.rules.engine import FILE_START, RuleEngine
from swiftstyle_core.rules.models import (
    FIX_CONFLICT,
    FIX_DID_NOT_CONVERGE,
    RULE_FAILURE,
    Replacement,
    Violation,
    diagnostic,
)
from swiftstyle_core.severity import Severity

logger = structlog.get_logger()


def _selected(violations: Iterable[Violation]) -> list[tuple[Replacement, Violation]]:
    """Fixable violations in span order, without exact duplicate replacements."""
    seen: set[Replacement] = set()
    selected = []
    for violation in violations:
        if violation.fix is None or violation.fix in seen:
            continue
        seen.add(violation.fix)
        selected.append((violation.fix, violation))
    selected.sort(key=lambda item: (item[0].start, item[0].end, item[1].rule_id))
    return selected


def _check(source: str, tokens: tuple[Token, ...], selected: list[tuple[Replacement, Violation]]) -> None:
    boundaries = {token.offset for token in tokens} | {len(source)}
    previous: tuple[Replacement, Violation] | None = None
    reach = -1
    for fix, violation in selected:
        if fix.start > fix.end or fix.start not in boundaries or fix.end not in boundaries:
            bad = fix.start if fix.start not in boundaries else fix.end
            raise FixBoundaryError(violation.rule_id, bad)
        if previous is not None:
            prev_fix, prev_violation = previous
            both_insert_here = (
                fix.start == fix.end == prev_fix.start == prev_fix.end
            )
            if fix.start < reach or both_insert_here:
                raise ConflictingFixError(
                    prev_violation.rule_id, violation.rule_id, fix.start, max(fix.end, reach)
                )
        reach = max(reach, fix.end)
        previous = (fix, violation)


def apply_fixes(source: str, tokens: tuple[Token, ...], violations: Iterable[Violation]) -> str:
    """Apply the fixes carried by violations to source.

    Args:
        source: Original source text
        tokens: Token stream of source
        violations: Violations; those without a fix are ignored

    Raises:
        ConflictingFixError: two fixes have overlapping spans, or insert at the same offset
        FixBoundaryError: a fix span starts or ends inside a token
    """
    selected = _selected(violations)
    _check(source, tokens, selected)
    result = source
    for fix, _ in reversed(selected):
        result = result[:fix.start] + fix.text + result[fix.end:]
    return result


def _mapped_spans(selected: list[tuple[Replacement, Violation]]) -> list[tuple[int, int]]:
    """Spans each replacement occupies in the rewritten buffer."""
    spans = []
    delta = 0
    for fix, _ in selected:
        start = fix.start + delta
        spans.append((start, start + len(fix.text)))
        delta += len(fix.text) - (fix.end - fix.start)
    return spans


@dataclass(frozen=True)
class FixOutcome:
    """Result of fixing one file.

    `source` is the rewritten text when every fix applied and converged, and
    the original text otherwise. `analysis` describes `source`.
    """

    path: str
    original: str
    source: str
    analysis: FileAnalysis
    applied: tuple[Violation, ...] = ()
    diagnostics: tuple[Violation, ...] = ()

    @property
    def changed(self) -> bool:
        return self.source != self.original


class FixApplier:
    """Applies fixes for one analyzed file and verifies they converged."""

    def __init__(self, engine: RuleEngine, strict: bool = False) -> None:
        self.engine = engine
        self.strict = strict

    def fix(self, analysis: FileAnalysis, rule_ids: Iterable[str] | None = None) -> FixOutcome:
        """Fix the violations of an analysis, all or nothing.

        Args:
            analysis: Completed analysis of the file
            rule_ids: Only apply fixes of these rules

        Raises:
            ConflictingFixError, FixDidNotConverge: in strict mode, instead of
                reporting a diagnostic
        """
        wanted = set(rule_ids) if rule_ids is not None else None
        candidates = [
            v for v in analysis.violations
            if v.fix is not None and (wanted is None or v.rule_id in wanted)
        ]
        if not analysis.parseable or not candidates:
            return FixOutcome(analysis.path, analysis.source, analysis.source, analysis)

        selected = _selected(candidates)
        try:
            rewritten = apply_fixes(analysis.source, analysis.tokens, candidates)
        except ConflictingFixError as e:
            if self.strict:
                raise
            logger.warning("fix_conflict", path=analysis.path, rules=list(e.rule_ids), start=e.start)
            at = next((v.range for f, v in selected if f.start == e.start), FILE_START)
            return self._unchanged(
                analysis,
                [diagnostic(FIX_CONFLICT, str(e), at, Severity.WARNING, analysis.path)],
            )
        except FixBoundaryError as e:
            if self.strict:
                raise
            logger.error("fix_boundary", path=analysis.path, rule_id=e.rule_id, offset=e.offset)
            return self._unchanged(
                analysis, [diagnostic(RULE_FAILURE, str(e), FILE_START, path=analysis.path)]
            )

        after = analyze_source(rewritten, analysis.path, self.engine)
        if not after.parseable:
            failures = [
                FixDidNotConverge(violation.rule_id, violation.line) for _, violation in selected
            ]
            if self.strict:
                raise failures[0]
            logger.warning("fix_broke_file", path=analysis.path)
            return self._unchanged(analysis, [
                diagnostic(
                    FIX_DID_NOT_CONVERGE,
                    f"{failure}: the rewritten file cannot be parsed",
                    violation.range,
                    Severity.WARNING,
                    analysis.path,
                )
                for failure, (_, violation) in zip(failures, selected)
            ])

        remaining = []
        for (fix, violation), (start, end) in zip(selected, _mapped_spans(selected)):
            still_there = any(
                other.rule_id == violation.rule_id and other.range.overlaps(start, end)
                for other in after.violations
            )
            if still_there:
                remaining.append(violation)

        if remaining:
            if self.strict:
                raise FixDidNotConverge(remaining[0].rule_id, remaining[0].line)
            logger.warning(
                "fix_did_not_converge", path=analysis.path, rules=sorted({v.rule_id for v in remaining})
            )
            return self._unchanged(analysis, [
                diagnostic(
                    FIX_DID_NOT_CONVERGE,
                    str(FixDidNotConverge(violation.rule_id, violation.line)),
                    violation.range,
                    Severity.WARNING,
                    analysis.path,
                )
                for violation in remaining
            ])

        logger.info("fixes_applied", path=analysis.path, count=len(selected))
        return FixOutcome(
            path=analysis.path,
            original=analysis.source,
            source=rewritten,
            analysis=after,
            applied=tuple(violation for _, violation in selected),
        )

    @staticmethod
    def _unchanged(analysis: FileAnalysis, diagnostics: list[Violation]) -> FixOutcome:
        violations = sorted([*analysis.violations, *diagnostics], key=Violation.sort_key)
        return FixOutcome(
            path=analysis.path,
            original=analysis.source,
            source=analysis.source,
            analysis=replace(analysis, violations=tuple(violations)),
            diagnostics=tuple(diagnostics),
        )
