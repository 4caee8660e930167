"""Exception hierarchy for the style engine."""

from __future__ import annotations


class SwiftStyleError(Exception):
    """Base class for all engine errors."""


class MalformedSourceError(SwiftStyleError):
    """Scope delimiters are unbalanced, so nesting cannot be determined."""

    def __init__(self, message: str, line: int = 1, column: int = 1, offset: int = 0) -> None:
        super().__init__(f"{message} at {line}:{column}")
        self.reason = message
        self.line = line
        self.column = column
        self.offset = offset


class RuleEvaluationError(SwiftStyleError):
    """A rule predicate raised while evaluating a file."""

    def __init__(self, rule_id: str, cause: BaseException) -> None:
        super().__init__(f"rule '{rule_id}' failed: {cause!r}")
        self.rule_id = rule_id
        self.cause = cause


class FixError(SwiftStyleError):
    """Base class for errors raised while applying fixes."""


class ConflictingFixError(FixError):
    """Two selected fixes have overlapping spans."""

    def __init__(self, first: str, second: str, start: int, end: int) -> None:
        super().__init__(
            f"fix for '{second}' overlaps fix for '{first}' at offsets {start}-{end}"
        )
        self.rule_ids = (first, second)
        self.start = start
        self.end = end


class FixBoundaryError(FixError):
    """A fix span starts or ends inside a token."""

    def __init__(self, rule_id: str, offset: int) -> None:
        super().__init__(f"fix for '{rule_id}' splits a token at offset {offset}")
        self.rule_id = rule_id
        self.offset = offset


class FixDidNotConverge(FixError):
    """An applied fix left the violation it was meant to remove in place."""

    def __init__(self, rule_id: str, line: int) -> None:
        super().__init__(f"fix for '{rule_id}' did not converge at line {line}")
        self.rule_id = rule_id
        self.line = line


class ConfigurationError(SwiftStyleError):
    """Rule configuration data is malformed."""
