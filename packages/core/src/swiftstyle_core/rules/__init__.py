"""Style rules, the rule registry and the rule engine.

Modules:
    models: Violation, Replacement and the rule categories
    base: StyleRule interface and the rule catalog
    naming, formatting, file_structure, practices: built-in rules
    registry: RuleRegistry built from configuration data
    engine: RuleEngine evaluating a registry against one file

Example:
    >>> from swiftstyle_core.rules import RuleEngine, RuleRegistry
    >>> engine = RuleEngine(RuleRegistry.load_default())
    >>> violations = engine.evaluate(model, tokens)
"""

# Models
from swiftstyle_core.rules.models import (
    DIAGNOSTIC_RULE_IDS,
    FIX_CONFLICT,
    FIX_DID_NOT_CONVERGE,
    INTERNAL_FAILURE_IDS,
    RULE_FAILURE,
    UNPARSEABLE,
    Replacement,
    RuleCategory,
    Violation,
    diagnostic,
)

# Rule interface
from swiftstyle_core.rules.base import RULE_CATALOG, RuleParams, StyleRule, register_rule

# Built-in rules (importing registers them in the catalog)
from swiftstyle_core.rules.naming import AcronymCasingRule, IdentifierCasingRule
from swiftstyle_core.rules.formatting import (
    BraceStyleRule,
    ColumnLimitRule,
    OneStatementPerLineRule,
    SemicolonTerminatorRule,
    TrailingWhitespaceRule,
)
from swiftstyle_core.rules.file_structure import (
    ImportOrderRule,
    MissingDocCommentRule,
    OverloadGroupingRule,
    SinglePrimaryTypeRule,
)
from swiftstyle_core.rules.practices import AccessLevelRule, Allowlist, ForceUnwrapRule

# Registry and engine
from swiftstyle_core.rules.registry import RuleEntry, RuleRegistry
from swiftstyle_core.rules.engine import RuleEngine

__all__ = [
    # Models
    "DIAGNOSTIC_RULE_IDS",
    "FIX_CONFLICT",
    "FIX_DID_NOT_CONVERGE",
    "INTERNAL_FAILURE_IDS",
    "RULE_FAILURE",
    "UNPARSEABLE",
    "Replacement",
    "RuleCategory",
    "Violation",
    "diagnostic",
    # Rule interface
    "RULE_CATALOG",
    "RuleParams",
    "StyleRule",
    "register_rule",
    # Built-in rules
    "AccessLevelRule",
    "AcronymCasingRule",
    "Allowlist",
    "BraceStyleRule",
    "ColumnLimitRule",
    "ForceUnwrapRule",
    "IdentifierCasingRule",
    "ImportOrderRule",
    "MissingDocCommentRule",
    "OneStatementPerLineRule",
    "OverloadGroupingRule",
    "SemicolonTerminatorRule",
    "SinglePrimaryTypeRule",
    "TrailingWhitespaceRule",
    # Registry and engine
    "RuleEngine",
    "RuleEntry",
    "RuleRegistry",
]
