"""Violation reporters.

Pure serialization: every function takes violations in engine order and
returns text or data in that same order.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Sequence

from swiftstyle_core import __version__
from swiftstyle_core.rules.base import StyleRule
from swiftstyle_core.rules.models import RuleCategory, Violation
from swiftstyle_core.severity import Severity

SARIF_SCHEMA = (
    "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/Schemata/sarif-schema-2.1.0.json"
)


def summarize(violations: Iterable[Violation], files: int | None = None) -> dict[str, Any]:
    """Counts per severity and category."""
    violations = list(violations)
    summary: dict[str, Any] = {
        "total": len(violations),
        "by_severity": {severity.value: 0 for severity in Severity},
        "by_category": {category.value: 0 for category in RuleCategory},
        "fixable": sum(1 for v in violations if v.fix_available),
    }
    for violation in violations:
        summary["by_severity"][violation.severity.value] += 1
        summary["by_category"][violation.category.value] += 1
    if files is not None:
        summary["files"] = files
    return summary


def format_violation(violation: Violation) -> str:
    location = f"{violation.path}:" if violation.path else ""
    return (
        f"{location}{violation.line}:{violation.column}: {violation.severity.value} "
        f"[{violation.rule_id}] {violation.message}"
    )


def format_text(violations: Iterable[Violation]) -> str:
    """One `path:line:column: severity [rule_id] message` line per violation."""
    return "\n".join(format_violation(v) for v in violations)


def to_dict(violations: Iterable[Violation], files: int | None = None) -> dict[str, Any]:
    violations = list(violations)
    return {
        "tool": "swiftstyle",
        "version": __version__,
        "violations": [v.to_dict() for v in violations],
        "summary": summarize(violations, files=files),
    }


def to_json(violations: Iterable[Violation], files: int | None = None, indent: int = 2) -> str:
    return json.dumps(to_dict(violations, files=files), indent=indent)


def _sarif_level(severity: Severity | str) -> str:
    """Convert severity to SARIF level."""
    value = getattr(severity, "value", severity)
    return {
        "error": "error",
        "warning": "warning",
        "info": "note",
    }.get(value, "note")


def _sarif_fix(violation: Violation) -> dict[str, Any]:
    fix = violation.fix
    return {
        "description": {"text": f"Fix for {violation.rule_id}"},
        "artifactChanges": [{
            "artifactLocation": {"uri": violation.path},
            "replacements": [{
                "deletedRegion": {"charOffset": fix.start, "charLength": fix.end - fix.start},
                "insertedContent": {"text": fix.text},
            }],
        }],
    }


def _sarif_result(violation: Violation) -> dict[str, Any]:
    result: dict[str, Any] = {
        "ruleId": violation.rule_id,
        "level": _sarif_level(violation.severity),
        "message": {"text": violation.message},
        "locations": [{
            "physicalLocation": {
                "artifactLocation": {"uri": violation.path},
                "region": {
                    "startLine": violation.range.line,
                    "startColumn": violation.range.column,
                    "endLine": violation.range.end_line,
                    "endColumn": violation.range.end_column,
                    "charOffset": violation.range.start,
                    "charLength": violation.range.end - violation.range.start,
                },
            }
        }],
        "properties": {"category": violation.category.value},
    }
    if violation.fix is not None:
        result["fixes"] = [_sarif_fix(violation)]
    return result


def to_sarif(
    violations: Iterable[Violation],
    rules: Sequence[StyleRule] = (),
) -> dict[str, Any]:
    """Convert violations to a SARIF 2.1.0 log.

    Args:
        violations: Violations in engine order
        rules: Configured rules, described in the tool driver
    """
    return {
        "$schema": SARIF_SCHEMA,
        "version": "2.1.0",
        "runs": [{
            "tool": {
                "driver": {
                    "name": "swiftstyle",
                    "version": __version__,
                    "rules": [
                        {
                            "id": rule.id,
                            "shortDescription": {"text": rule.summary or rule.id},
                            "fullDescription": {"text": rule.description or rule.summary},
                            "defaultConfiguration": {
                                "level": _sarif_level(rule.severity),
                                "enabled": rule.enabled,
                            },
                            "properties": {"category": rule.category.value},
                        }
                        for rule in rules
                    ],
                }
            },
            "results": [_sarif_result(v) for v in violations],
        }],
    }
