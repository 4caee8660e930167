"""Abstract rule interface and the rule catalog.

Every style rule implements StyleRule. Rules are pure: they read the frozen
structural model and token stream and return violations, without shared
state and without depending on any other rule having run. New rules are added
by subclassing StyleRule and decorating the class with register_rule; the
engine needs no changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, TypeVar

from pydantic import BaseModel, ConfigDict

from swiftstyle_core.parsing.lexer import Token
from swiftstyle_core.parsing.model import SourceRange, StructuralModel
from swiftstyle_core.rules.models import Replacement, RuleCategory, Violation
from swiftstyle_core.severity import Severity


class RuleParams(BaseModel):
    """Base for rule parameter models. Unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class StyleRule(ABC):
    """Abstract base class for a single style rule.

    Subclasses set ``id``, ``category`` and ``default_severity`` and, when the
    rule is parameterized, ``params_model``.
    """

    id: ClassVar[str]
    category: ClassVar[RuleCategory]
    default_severity: ClassVar[Severity] = Severity.WARNING
    params_model: ClassVar[type[RuleParams]] = RuleParams
    summary: ClassVar[str] = ""

    def __init__(
        self,
        severity: Severity | None = None,
        params: RuleParams | dict[str, Any] | None = None,
        enabled: bool = True,
        description: str = "",
    ) -> None:
        self.severity = severity or self.default_severity
        if isinstance(params, RuleParams):
            self.params = params
        else:
            self.params = self.params_model(**(params or {}))
        self.enabled = enabled
        self.description = description or self.summary

    @abstractmethod
    def evaluate(self, model: StructuralModel, tokens: tuple[Token, ...]) -> list[Violation]:
        """Evaluate the rule and return its violations.

        Args:
            model: Frozen structural model of the file
            tokens: Full token stream of the file

        Returns:
            List of violations, in any order
        """
        pass

    def fix(
        self,
        model: StructuralModel,
        tokens: tuple[Token, ...],
        violation: Violation,
    ) -> Replacement | None:
        """Return a replacement removing the violation, or None if no safe fix exists."""
        return None

    def violation(self, model: StructuralModel, range: SourceRange, message: str) -> Violation:
        return Violation(
            rule_id=self.id,
            range=range,
            severity=self.severity,
            category=self.category,
            message=message,
            path=model.path,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, severity={self.severity.value!r})"


RULE_CATALOG: dict[str, type[StyleRule]] = {}

R = TypeVar("R", bound=type[StyleRule])


def register_rule(cls: R) -> R:
    """Class decorator adding a rule implementation to the catalog."""
    if cls.id in RULE_CATALOG and RULE_CATALOG[cls.id] is not cls:
        raise ValueError(f"Duplicate rule id: {cls.id}")
    RULE_CATALOG[cls.id] = cls
    return cls
