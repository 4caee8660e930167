"""Practice rules: force unwrapping and explicit access levels."""

from __future__ import annotations

import fnmatch
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field

from swiftstyle_core.parsing.lexer import Token, TokenKind
from swiftstyle_core.parsing.model import (
    AccessLevel,
    Declaration,
    DeclarationKind,
    SourceRange,
    StructuralModel,
)
from swiftstyle_core.rules.base import RuleParams, StyleRule, register_rule
from swiftstyle_core.rules.models import Replacement, RuleCategory, Violation
from swiftstyle_core.severity import Severity

# (path, enclosing declaration, its ancestors innermost first) -> allowed
AllowlistPredicate = Callable[[str, Declaration | None, tuple[Declaration, ...]], bool]

UNWRAP_OPERAND_KEYWORDS = frozenset({"self", "super"})
TYPE_SCOPE_KEYWORDS = frozenset({"class", "struct", "enum", "protocol", "actor", "extension"})


class Allowlist(BaseModel):
    """Contexts where force unwrapping is accepted.

    Attributes:
        paths: Glob patterns matched against the file path and its basename
        attributes: Attribute names (without "@") on the enclosing declaration
            or any of its ancestors
        declarations: Glob patterns matched against the names of the enclosing
            declaration and its ancestors
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    paths: list[str] = Field(default_factory=list)
    attributes: list[str] = Field(default_factory=list)
    declarations: list[str] = Field(default_factory=list)

    def __call__(
        self,
        path: str,
        enclosing: Declaration | None,
        ancestors: tuple[Declaration, ...],
    ) -> bool:
        if path and any(_path_matches(path, pattern) for pattern in self.paths):
            return True
        scope = ((enclosing,) if enclosing is not None else ()) + ancestors
        wanted = {name.lstrip("@") for name in self.attributes}
        for decl in scope:
            if wanted.intersection(decl.attributes):
                return True
            if any(fnmatch.fnmatchcase(decl.name, pattern) for pattern in self.declarations):
                return True
        return False


def _path_matches(path: str, pattern: str) -> bool:
    normalized = path.replace("\\", "/")
    basename = normalized.rsplit("/", 1)[-1]
    return fnmatch.fnmatch(normalized, pattern) or fnmatch.fnmatch(basename, pattern)


class ForceUnwrapParams(RuleParams):
    allowlist: Allowlist = Field(default_factory=Allowlist)


@register_rule
class ForceUnwrapRule(StyleRule):
    """Postfix `!` force unwraps are not used outside allowlisted contexts.

    The allowlist is a predicate over the file path and the enclosing
    declaration chain. By default it is built from the ``allowlist`` parameter;
    callers may pass their own predicate instead.
    """

    id = "force-unwrap"
    category = RuleCategory.PRACTICES
    default_severity = Severity.ERROR
    params_model = ForceUnwrapParams
    summary = "Optionals are not force unwrapped with '!' outside allowlisted contexts."

    def __init__(
        self,
        severity: Severity | None = None,
        params: RuleParams | dict[str, Any] | None = None,
        enabled: bool = True,
        description: str = "",
        allowlist: AllowlistPredicate | None = None,
    ) -> None:
        super().__init__(severity=severity, params=params, enabled=enabled, description=description)
        self.allowlist: AllowlistPredicate = allowlist or self.params.allowlist

    def evaluate(self, model: StructuralModel, tokens: tuple[Token, ...]) -> list[Violation]:
        sig = [token for token in tokens if token.is_significant]
        violations = []
        for pos, token in enumerate(sig):
            if not self._is_postfix_unwrap(sig, pos):
                continue
            enclosing = model.enclosing_declaration(token.offset)
            ancestors = tuple(model.ancestors(enclosing)) if enclosing is not None else ()
            if self.allowlist(model.path, enclosing, ancestors):
                continue
            violations.append(self.violation(
                model,
                SourceRange.from_tokens(token),
                "force unwrap with '!'; use optional binding, optional chaining or '??' instead",
            ))
        return violations

    @staticmethod
    def _is_postfix_unwrap(sig: list[Token], pos: int) -> bool:
        token = sig[pos]
        if not token.is_punct("!") or pos == 0:
            return False
        operand = sig[pos - 1]
        if operand.end_offset != token.offset:
            return False
        if operand.kind == TokenKind.IDENTIFIER:
            return True
        if operand.kind == TokenKind.KEYWORD:
            return operand.text in UNWRAP_OPERAND_KEYWORDS
        return operand.is_punct(")", "]", "?", "!")

    def fix(
        self,
        model: StructuralModel,
        tokens: tuple[Token, ...],
        violation: Violation,
    ) -> Replacement | None:
        """Rewrite `a!.b()` to `a?.b()` when it is a whole call statement.

        The rewrite only applies to a statement inside a function body that
        is a pure member/call chain ending in a call, so the optional result
        is discarded and no surrounding expression changes type.
        """
        sig = [token for token in tokens if token.is_significant]
        pos = next(
            (i for i, token in enumerate(sig) if token.offset == violation.range.start), None
        )
        if pos is None:
            return None
        enclosing = model.enclosing_declaration(sig[pos].offset)
        if enclosing is None or enclosing.kind != DeclarationKind.FUNCTION:
            return None
        start = self._chain_start(sig, pos)
        if start is None or not self._at_statement_start(sig, start):
            return None
        if not self._call_chain_ends_statement(sig, pos + 1):
            return None
        return Replacement(violation.range.start, violation.range.end, "?")

    @staticmethod
    def _chain_start(sig: list[Token], pos: int) -> int | None:
        """Position of the first token of `a.b.c` ending just before sig[pos]."""
        p = pos - 1
        if sig[p].kind != TokenKind.IDENTIFIER and sig[p].text not in UNWRAP_OPERAND_KEYWORDS:
            return None
        while p >= 2 and sig[p - 1].is_punct(".") and (
            sig[p - 2].kind == TokenKind.IDENTIFIER or sig[p - 2].text in UNWRAP_OPERAND_KEYWORDS
        ):
            p -= 2
        return p

    @staticmethod
    def _at_statement_start(sig: list[Token], pos: int) -> bool:
        if pos == 0:
            return True
        prev = sig[pos - 1]
        if prev.is_punct("{", "}", ";"):
            return True
        return prev.line < sig[pos].line and prev.kind != TokenKind.PUNCTUATION

    @staticmethod
    def _call_chain_ends_statement(sig: list[Token], pos: int) -> bool:
        """True if sig[pos:] is `.name(...)...` up to the end of the statement."""
        p = pos
        ends_in_call = False
        while p < len(sig):
            token = sig[p]
            if token.is_punct(".") and p + 1 < len(sig) and sig[p + 1].kind == TokenKind.IDENTIFIER:
                if p > pos and token.line != sig[p - 1].line:
                    return False
                ends_in_call = False
                p += 2
                continue
            if token.is_punct("(") and p > pos and token.offset == sig[p - 1].end_offset:
                depth = 0
                while p < len(sig):
                    if sig[p].is_punct("(", "[", "{"):
                        depth += 1
                    elif sig[p].is_punct(")", "]", "}"):
                        depth -= 1
                        if depth == 0:
                            break
                    p += 1
                if p >= len(sig):
                    return False
                ends_in_call = True
                p += 1
                continue
            break
        if p == pos or not ends_in_call:
            return False
        if p == len(sig):
            return True
        following = sig[p]
        if following.kind == TokenKind.EOF or following.is_punct("}", ";"):
            return True
        return following.line > sig[p - 1].line and not following.is_punct(".")


@register_rule
class AccessLevelRule(StyleRule):
    """Top-level and member declarations state their access level explicitly.

    Members of a private or fileprivate type or extension are exempt, since the
    enclosing restriction already applies to them. Members of an extension that
    names an access level inherit that level and are exempt as well.
    """

    id = "access-level"
    category = RuleCategory.PRACTICES
    default_severity = Severity.WARNING
    summary = "Declarations have an explicit access level keyword."

    def evaluate(self, model: StructuralModel, tokens: tuple[Token, ...]) -> list[Violation]:
        violations = []
        for decl in model.declarations:
            if decl.access_level != AccessLevel.UNSPECIFIED or not self._applies(model, decl):
                continue
            violations.append(self.violation(
                model,
                decl.name_range,
                f"{decl.keyword} '{decl.name}' has no explicit access level",
            ))
        return violations

    @staticmethod
    def _applies(model: StructuralModel, decl: Declaration) -> bool:
        if decl.is_local or decl.kind in (
            DeclarationKind.PARAMETER,
            DeclarationKind.ENUM_CASE,
            DeclarationKind.IMPORT,
        ):
            return False
        if decl.keyword in ("deinit", "extension"):
            return False
        return not any(_exempts_members(ancestor) for ancestor in model.ancestors(decl))

    def fix(
        self,
        model: StructuralModel,
        tokens: tuple[Token, ...],
        violation: Violation,
    ) -> Replacement | None:
        for decl in model.declarations:
            if decl.name_range == violation.range:
                return Replacement(decl.insertion_offset, decl.insertion_offset, "internal ")
        return None


def _exempts_members(ancestor: Declaration) -> bool:
    if ancestor.keyword not in TYPE_SCOPE_KEYWORDS:
        # Nested in a function or property body.
        return True
    if ancestor.keyword == "protocol" or ancestor.access_level.is_restricted:
        return True
    return ancestor.keyword == "extension" and ancestor.access_level != AccessLevel.UNSPECIFIED

