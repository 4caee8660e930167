"""File structure rules: imports, overloads, primary types and documentation."""

from __future__ import annotations

from swiftstyle_core.parsing.lexer import Token
from swiftstyle_core.parsing.model import (
    AccessLevel,
    DeclarationKind,
    ImportEntry,
    StructuralModel,
)
from swiftstyle_core.rules.base import StyleRule, register_rule
from swiftstyle_core.rules.models import RuleCategory, Violation
from swiftstyle_core.severity import Severity

PRIMARY_TYPE_KEYWORDS = frozenset({"class", "struct", "enum", "protocol", "actor"})
OVERLOADABLE_KEYWORDS = frozenset({"func", "init", "subscript"})


@register_rule
class ImportOrderRule(StyleRule):
    """Imports are grouped and sorted.

    Groups are ordinary module imports, individual declaration imports and
    @testable imports, in that order, separated by a blank line. Within a group
    entries are in lexicographic order of module name.
    """

    id = "import-order"
    category = RuleCategory.FILE_STRUCTURE
    default_severity = Severity.WARNING
    summary = "Imports are grouped, separated by blank lines and sorted within each group."

    def evaluate(self, model: StructuralModel, tokens: tuple[Token, ...]) -> list[Violation]:
        violations: list[Violation] = []
        imports = model.imports

        # Sorting within each group; one violation per adjacent inversion.
        by_group: dict[object, list[ImportEntry]] = {}
        for entry in imports:
            by_group.setdefault(entry.group, []).append(entry)
        for entries in by_group.values():
            for previous, current in zip(entries, entries[1:]):
                if current.module_name < previous.module_name:
                    violations.append(self.violation(
                        model,
                        current.range,
                        f"import '{current.module_name}' (line {current.line}) should come "
                        f"before '{previous.module_name}' (line {previous.line})",
                    ))

        # Group order and separation between consecutive imports.
        for previous, current in zip(imports, imports[1:]):
            if current.group == previous.group:
                continue
            if current.group.order < previous.group.order:
                violations.append(self.violation(
                    model,
                    current.range,
                    f"{current.group.value} import '{current.module_name}' (line {current.line}) "
                    f"should come before the {previous.group.value} imports "
                    f"(line {previous.line})",
                ))
            elif not self._blank_line_between(model, previous, current):
                violations.append(self.violation(
                    model,
                    current.range,
                    f"separate {current.group.value} imports from {previous.group.value} "
                    f"imports with a blank line",
                ))
        return violations

    @staticmethod
    def _blank_line_between(model: StructuralModel, first: ImportEntry, second: ImportEntry) -> bool:
        for number in range(first.range.end_line + 1, second.range.line):
            if model.line(number).is_blank:
                return True
        return False


@register_rule
class OverloadGroupingRule(StyleRule):
    """Overloaded declarations in the same scope appear next to each other."""

    id = "overload-grouping"
    category = RuleCategory.FILE_STRUCTURE
    default_severity = Severity.WARNING
    summary = "Overloads of the same name are grouped together with no other declarations between."

    def evaluate(self, model: StructuralModel, tokens: tuple[Token, ...]) -> list[Violation]:
        siblings: dict[int | None, list[int]] = {}
        for index, decl in enumerate(model.declarations):
            if decl.kind in (DeclarationKind.PARAMETER, DeclarationKind.ENUM_CASE) or decl.is_local:
                continue
            siblings.setdefault(decl.parent_index, []).append(index)

        violations = []
        for members in siblings.values():
            last_seen: dict[tuple[str, str], int] = {}
            for position, index in enumerate(members):
                decl = model.declarations[index]
                if decl.keyword not in OVERLOADABLE_KEYWORDS:
                    continue
                key = (decl.keyword, decl.name)
                if key in last_seen and last_seen[key] != position - 1:
                    first = model.declarations[members[last_seen[key]]]
                    violations.append(self.violation(
                        model,
                        decl.name_range,
                        f"overload of '{decl.name}' should be grouped with the declaration "
                        f"on line {first.name_range.line}",
                    ))
                last_seen[key] = position
        return violations


@register_rule
class SinglePrimaryTypeRule(StyleRule):
    """A file declares one primary (non-private, top-level) type."""

    id = "single-primary-type"
    category = RuleCategory.FILE_STRUCTURE
    default_severity = Severity.INFO
    summary = "A source file contains a single primary type."

    def evaluate(self, model: StructuralModel, tokens: tuple[Token, ...]) -> list[Violation]:
        primary = [
            decl
            for decl in model.declarations
            if decl.nesting_depth == 0
            and not decl.is_local
            and decl.keyword in PRIMARY_TYPE_KEYWORDS
            and not decl.access_level.is_restricted
        ]
        if len(primary) < 2:
            return []
        first = primary[0]
        return [
            self.violation(
                model,
                decl.name_range,
                f"'{decl.name}' is a second primary type in this file; "
                f"'{first.name}' is declared on line {first.name_range.line}",
            )
            for decl in primary[1:]
        ]


@register_rule
class MissingDocCommentRule(StyleRule):
    """Public and open declarations carry a /// documentation comment."""

    id = "missing-doc-comment"
    category = RuleCategory.FILE_STRUCTURE
    default_severity = Severity.INFO
    summary = "Public and open declarations are documented with /// comments."

    def evaluate(self, model: StructuralModel, tokens: tuple[Token, ...]) -> list[Violation]:
        violations = []
        for decl in model.declarations:
            if decl.is_local or decl.kind == DeclarationKind.PARAMETER:
                continue
            if decl.access_level not in (AccessLevel.PUBLIC, AccessLevel.OPEN):
                continue
            if decl.has_doc_comment or "override" in decl.modifiers or decl.keyword == "extension":
                continue
            violations.append(self.violation(
                model,
                decl.name_range,
                f"{decl.access_level.value} {decl.keyword} '{decl.name}' needs a /// doc comment",
            ))
        return violations
