"""Naming rules: identifier casing and acronym rendering."""

from __future__ import annotations

import re

from pydantic import Field

from swiftstyle_core.parsing.lexer import Token
from swiftstyle_core.parsing.model import Declaration, DeclarationKind, StructuralModel
from swiftstyle_core.rules.base import RuleParams, StyleRule, register_rule
from swiftstyle_core.rules.models import RuleCategory, Violation
from swiftstyle_core.severity import Severity

UPPER_CAMEL_RE = re.compile(r"^[A-Z][A-Za-z0-9]*$")
LOWER_CAMEL_RE = re.compile(r"^[a-z][A-Za-z0-9]*$")
WORD_RE = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|[0-9]+")

DEFAULT_ACRONYMS = (
    "API", "CSS", "DNS", "HTML", "HTTP", "HTTPS", "ID", "IP", "JSON", "PDF",
    "SQL", "SSL", "TCP", "TLS", "UDP", "UI", "URI", "URL", "UUID", "XML",
)

# Names that are keywords rather than chosen identifiers.
SKIPPED_NAMES = frozenset({"init", "deinit", "subscript", "_"})


def split_words(identifier: str) -> list[str]:
    """Split an identifier into words at case, digit and underscore boundaries.

    >>> split_words("URLSession")
    ['URL', 'Session']
    >>> split_words("my_view_controller")
    ['my', 'view', 'controller']
    """
    words: list[str] = []
    for chunk in identifier.split("_"):
        words.extend(WORD_RE.findall(chunk))
    return words


def _render(words: list[str], upper_first: bool, acronyms: frozenset[str]) -> str:
    rendered: list[str] = []
    for index, word in enumerate(words):
        if word.upper() in acronyms:
            if index == 0 and not upper_first:
                rendered.append(word.lower())
            else:
                rendered.append(word.upper())
        elif index == 0 and not upper_first:
            rendered.append(word.lower())
        elif word.isdigit():
            rendered.append(word)
        else:
            rendered.append(word[:1].upper() + word[1:].lower())
    return "".join(rendered)


def to_upper_camel(identifier: str, acronyms: frozenset[str] = frozenset(DEFAULT_ACRONYMS)) -> str:
    """Acronym-aware UpperCamelCase rendering of an identifier."""
    return _render(split_words(identifier), True, acronyms) or identifier


def to_lower_camel(identifier: str, acronyms: frozenset[str] = frozenset(DEFAULT_ACRONYMS)) -> str:
    """Acronym-aware lowerCamelCase rendering of an identifier."""
    return _render(split_words(identifier), False, acronyms) or identifier


def expects_upper_camel(declaration: Declaration) -> bool:
    return declaration.kind in (DeclarationKind.TYPE, DeclarationKind.ENUM_CASE)


def _checkable(declaration: Declaration) -> bool:
    return (
        declaration.kind != DeclarationKind.IMPORT
        and declaration.name not in SKIPPED_NAMES
        and declaration.is_identifier_name
    )


class AcronymParams(RuleParams):
    acronyms: list[str] = Field(default_factory=lambda: list(DEFAULT_ACRONYMS))


@register_rule
class IdentifierCasingRule(StyleRule):
    """Types and enum cases are UpperCamelCase; everything else lowerCamelCase."""

    id = "identifier-casing"
    category = RuleCategory.NAMING
    default_severity = Severity.ERROR
    params_model = AcronymParams
    summary = "Types and enum cases use UpperCamelCase; other identifiers use lowerCamelCase."

    def evaluate(self, model: StructuralModel, tokens: tuple[Token, ...]) -> list[Violation]:
        acronyms = frozenset(a.upper() for a in self.params.acronyms)
        violations = []
        for decl in model.declarations:
            if not _checkable(decl):
                continue
            # Extensions name an existing type, possibly a qualified one.
            if decl.keyword == "extension":
                continue
            if expects_upper_camel(decl):
                if UPPER_CAMEL_RE.match(decl.name):
                    continue
                expected = to_upper_camel(decl.name, acronyms)
                style = "UpperCamelCase"
            else:
                if LOWER_CAMEL_RE.match(decl.name):
                    continue
                expected = to_lower_camel(decl.name, acronyms)
                style = "lowerCamelCase"
            violations.append(self.violation(
                model,
                decl.name_range,
                f"{decl.kind.value.replace('_', ' ')} '{decl.name}' should be "
                f"{style}: '{expected}'",
            ))
        return violations


@register_rule
class AcronymCasingRule(StyleRule):
    """Known acronyms are rendered uniformly upper- or lowercase."""

    id = "acronym-casing"
    category = RuleCategory.NAMING
    default_severity = Severity.WARNING
    params_model = AcronymParams
    summary = (
        "Acronyms are all caps, except at the start of a lowerCamelCase identifier "
        "where they are all lowercase."
    )

    def evaluate(self, model: StructuralModel, tokens: tuple[Token, ...]) -> list[Violation]:
        acronyms = frozenset(a.upper() for a in self.params.acronyms)
        violations = []
        for decl in model.declarations:
            if not _checkable(decl) or decl.keyword == "extension" or "_" in decl.name:
                continue
            upper = expects_upper_camel(decl)
            # A wrong leading case is reported by identifier-casing.
            if upper != decl.name[0].isupper():
                continue
            words = split_words(decl.name)
            corrected = list(words)
            for index, word in enumerate(words):
                if word.upper() not in acronyms:
                    continue
                corrected[index] = word.lower() if index == 0 and not upper else word.upper()
            expected = "".join(corrected)
            if expected != decl.name:
                violations.append(self.violation(
                    model,
                    decl.name_range,
                    f"acronym in '{decl.name}' should be rendered as '{expected}'",
                ))
        return violations
