"""Formatting rules: column limit, whitespace, semicolons and braces."""

from __future__ import annotations

from pydantic import Field

from swiftstyle_core.parsing.lexer import Token, TokenKind
from swiftstyle_core.parsing.model import SourceRange, StructuralModel
from swiftstyle_core.rules.base import RuleParams, StyleRule, register_rule
from swiftstyle_core.rules.models import Replacement, RuleCategory, Violation
from swiftstyle_core.severity import Severity

# Keywords and contextual words after which a "{" opens a block on the same line.
BLOCK_HEADER_WORDS = frozenset({
    "else", "do", "repeat", "defer", "throws", "rethrows", "async", "get", "set",
    "willSet", "didSet", "Void",
})
LITERAL_KEYWORDS = frozenset({"self", "Self", "Any", "true", "false", "nil"})


def _line_range(model: StructuralModel, number: int, start_column: int, end_column: int) -> SourceRange:
    line = model.line(number)
    return SourceRange(
        start=line.start_offset + start_column - 1,
        end=line.start_offset + end_column - 1,
        line=number,
        column=start_column,
        end_line=number,
        end_column=end_column,
    )


def _previous(tokens: tuple[Token, ...], index: int, skip_comments: bool = True) -> int | None:
    """Index of the nearest preceding non-trivia token."""
    i = index - 1
    while i >= 0:
        token = tokens[i]
        if token.kind in (TokenKind.WHITESPACE, TokenKind.NEWLINE):
            i -= 1
            continue
        if skip_comments and token.is_comment:
            i -= 1
            continue
        return i
    return None


def _next_on_line(tokens: tuple[Token, ...], index: int) -> Token | None:
    """Nearest following token on the same line that is not whitespace."""
    for token in tokens[index + 1:]:
        if token.kind == TokenKind.WHITESPACE:
            continue
        if token.kind in (TokenKind.NEWLINE, TokenKind.EOF):
            return None
        return token
    return None


def _first_on_line(tokens: tuple[Token, ...], index: int) -> bool:
    i = index - 1
    while i >= 0 and tokens[i].kind == TokenKind.WHITESPACE:
        i -= 1
    return i < 0 or tokens[i].kind == TokenKind.NEWLINE


def _index_at(tokens: tuple[Token, ...], offset: int) -> int | None:
    for index, token in enumerate(tokens):
        if token.offset == offset and token.kind != TokenKind.EOF:
            return index
    return None


class ColumnLimitParams(RuleParams):
    limit: int = Field(default=100, ge=1)


@register_rule
class ColumnLimitRule(StyleRule):
    """Lines are at most `limit` columns wide."""

    id = "column-limit"
    category = RuleCategory.FORMATTING
    default_severity = Severity.WARNING
    params_model = ColumnLimitParams
    summary = "Lines must not exceed the column limit."

    def evaluate(self, model: StructuralModel, tokens: tuple[Token, ...]) -> list[Violation]:
        limit = self.params.limit
        return [
            self.violation(
                model,
                _line_range(model, line.number, limit + 1, line.length + 1),
                f"line is {line.length} columns long; the limit is {limit}",
            )
            for line in model.lines
            if line.length > limit
        ]


@register_rule
class TrailingWhitespaceRule(StyleRule):
    id = "trailing-whitespace"
    category = RuleCategory.FORMATTING
    default_severity = Severity.WARNING
    summary = "Lines must not end in whitespace."

    def evaluate(self, model: StructuralModel, tokens: tuple[Token, ...]) -> list[Violation]:
        return [
            self.violation(
                model,
                _line_range(model, line.number, line.content_end_column, line.length + 1),
                "trailing whitespace",
            )
            for line in model.lines
            if line.trailing_whitespace > 0
        ]

    def fix(
        self,
        model: StructuralModel,
        tokens: tuple[Token, ...],
        violation: Violation,
    ) -> Replacement | None:
        index = _index_at(tokens, violation.range.start)
        if index is None or tokens[index].kind != TokenKind.WHITESPACE:
            # Trailing spaces inside a comment token cannot be cut on a token boundary.
            return None
        return Replacement(violation.range.start, violation.range.end, "")


@register_rule
class SemicolonTerminatorRule(StyleRule):
    """Statements are not terminated with semicolons."""

    id = "semicolon-terminator"
    category = RuleCategory.FORMATTING
    default_severity = Severity.WARNING
    summary = "Semicolons are not used to terminate statements."

    def evaluate(self, model: StructuralModel, tokens: tuple[Token, ...]) -> list[Violation]:
        violations = []
        for index, token in enumerate(tokens):
            if not token.is_punct(";"):
                continue
            following = _next_on_line(tokens, index)
            if following is None or following.is_comment or following.is_punct("}"):
                violations.append(self.violation(
                    model, SourceRange.from_tokens(token), "remove the terminating semicolon"
                ))
        return violations

    def fix(
        self,
        model: StructuralModel,
        tokens: tuple[Token, ...],
        violation: Violation,
    ) -> Replacement | None:
        index = _index_at(tokens, violation.range.start)
        if index is None:
            return None
        start = violation.range.start
        # Take preceding spaces along so "a ;" does not leave "a ".
        if index > 0 and tokens[index - 1].kind == TokenKind.WHITESPACE and not _first_on_line(
            tokens, index - 1
        ):
            start = tokens[index - 1].offset
        return Replacement(start, violation.range.end, "")


@register_rule
class OneStatementPerLineRule(StyleRule):
    id = "one-statement-per-line"
    category = RuleCategory.FORMATTING
    default_severity = Severity.WARNING
    summary = "Each statement is on its own line."

    def evaluate(self, model: StructuralModel, tokens: tuple[Token, ...]) -> list[Violation]:
        violations = []
        for index, token in enumerate(tokens):
            if not token.is_punct(";"):
                continue
            following = _next_on_line(tokens, index)
            if following is None or following.is_comment or following.is_punct("}"):
                continue
            violations.append(self.violation(
                model,
                SourceRange.from_tokens(token),
                "put each statement on its own line",
            ))
        return violations

    def fix(
        self,
        model: StructuralModel,
        tokens: tuple[Token, ...],
        violation: Violation,
    ) -> Replacement | None:
        index = _index_at(tokens, violation.range.start)
        if index is None:
            return None
        end = violation.range.end
        if index + 1 < len(tokens) and tokens[index + 1].kind == TokenKind.WHITESPACE:
            end = tokens[index + 1].end_offset
        indent = model.line(violation.range.line).indent
        return Replacement(violation.range.start, end, "\n" + indent)


@register_rule
class BraceStyleRule(StyleRule):
    """Opening braces and `else` stay on the line of the construct they continue."""

    id = "brace-style"
    category = RuleCategory.FORMATTING
    default_severity = Severity.WARNING
    summary = "Opening braces and 'else' are not placed on their own line."

    def evaluate(self, model: StructuralModel, tokens: tuple[Token, ...]) -> list[Violation]:
        violations = []
        for index, token in enumerate(tokens):
            is_brace = token.is_punct("{")
            is_else = token.kind == TokenKind.KEYWORD and token.text == "else"
            if not (is_brace or is_else) or not _first_on_line(tokens, index):
                continue
            prev_index = _previous(tokens, index)
            if prev_index is None:
                continue
            prev = tokens[prev_index]
            if is_else and prev.is_punct("}"):
                violations.append(self.violation(
                    model,
                    SourceRange.from_tokens(token),
                    "'else' belongs on the same line as the preceding closing brace",
                ))
            elif is_brace and self._ends_header(prev):
                violations.append(self.violation(
                    model,
                    SourceRange.from_tokens(token),
                    "opening brace belongs on the same line as its declaration or statement",
                ))
        return violations

    @staticmethod
    def _ends_header(token: Token) -> bool:
        if token.kind in (
            TokenKind.IDENTIFIER,
            TokenKind.NUMBER_LITERAL,
            TokenKind.STRING_LITERAL,
        ):
            return True
        if token.kind == TokenKind.KEYWORD:
            return token.text in BLOCK_HEADER_WORDS or token.text in LITERAL_KEYWORDS
        return token.is_punct(")", "]", ">", "?", "!")

    def fix(
        self,
        model: StructuralModel,
        tokens: tuple[Token, ...],
        violation: Violation,
    ) -> Replacement | None:
        index = _index_at(tokens, violation.range.start)
        if index is None:
            return None
        prev_index = _previous(tokens, index, skip_comments=False)
        if prev_index is None or tokens[prev_index].is_comment:
            # A comment sits between the header and the brace.
            return None
        # Start at the line break so any trailing whitespace on the header line
        # stays a separate trailing-whitespace fix.
        for token in tokens[prev_index + 1:index]:
            if token.kind == TokenKind.NEWLINE:
                return Replacement(token.offset, violation.range.start, " ")
        return None
