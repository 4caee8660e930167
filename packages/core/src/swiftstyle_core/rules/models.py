"""Models and data types for style rules and their violations.

This module contains the core data structures shared by rules, the engine,
the fix applier and the reporters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from swiftstyle_core.parsing.model import SourceRange
from swiftstyle_core.severity import Severity


class RuleCategory(str, Enum):
    """Category a rule belongs to. Metadata for reporting and filtering only."""

    NAMING = "naming"
    FORMATTING = "formatting"
    FILE_STRUCTURE = "file_structure"
    PRACTICES = "practices"
    DIAGNOSTIC = "diagnostic"  # Reserved for engine pseudo-rules


# Reserved pseudo-rule ids reported by the engine itself.
UNPARSEABLE = "unparseable"
RULE_FAILURE = "rule-failure"
FIX_CONFLICT = "fix-conflict"
FIX_DID_NOT_CONVERGE = "fix-did-not-converge"

DIAGNOSTIC_RULE_IDS = frozenset({UNPARSEABLE, RULE_FAILURE, FIX_CONFLICT, FIX_DID_NOT_CONVERGE})

# Diagnostics that mean the input or the engine failed (exit status 2).
INTERNAL_FAILURE_IDS = frozenset({UNPARSEABLE, RULE_FAILURE})


@dataclass(frozen=True)
class Replacement:
    """Replace source[start:end] with text. Offsets refer to the original buffer."""

    start: int
    end: int
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start, "end": self.end, "text": self.text}


@dataclass(frozen=True)
class Violation:
    """A single rule failure at a specific source location.

    Equality and hashing use only (rule_id, range), which is the
    deduplication key.
    """

    rule_id: str
    range: SourceRange
    severity: Severity = field(compare=False)
    category: RuleCategory = field(compare=False)
    message: str = field(compare=False)
    fix: Replacement | None = field(default=None, compare=False)
    path: str = field(default="", compare=False)

    @property
    def key(self) -> tuple[str, SourceRange]:
        return (self.rule_id, self.range)

    @property
    def line(self) -> int:
        return self.range.line

    @property
    def column(self) -> int:
        return self.range.column

    @property
    def fix_available(self) -> bool:
        return self.fix is not None

    @property
    def is_diagnostic(self) -> bool:
        return self.category == RuleCategory.DIAGNOSTIC

    def sort_key(self) -> tuple[int, int, str]:
        return (self.range.line, self.range.column, self.rule_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "path": self.path,
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "category": self.category.value,
            "line": self.range.line,
            "column": self.range.column,
            "end_line": self.range.end_line,
            "end_column": self.range.end_column,
            "range": self.range.to_dict(),
            "message": self.message,
            "fix_available": self.fix_available,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Violation":
        """Create from dictionary (the inverse of to_dict, without the fix)."""
        span = data["range"]
        return cls(
            rule_id=data["rule_id"],
            range=SourceRange(
                start=span["start"],
                end=span["end"],
                line=span["line"],
                column=span["column"],
                end_line=span["end_line"],
                end_column=span["end_column"],
            ),
            severity=Severity(data["severity"]),
            category=RuleCategory(data["category"]),
            message=data["message"],
            path=data.get("path", ""),
        )


def diagnostic(
    rule_id: str,
    message: str,
    range: SourceRange,
    severity: Severity = Severity.ERROR,
    path: str = "",
) -> Violation:
    """Create a violation for one of the reserved pseudo-rules."""
    return Violation(
        rule_id=rule_id,
        range=range,
        severity=severity,
        category=RuleCategory.DIAGNOSTIC,
        message=message,
        path=path,
    )
