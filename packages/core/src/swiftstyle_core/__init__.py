"""swiftstyle core - mechanical style rule engine for Swift sources."""

__version__ = "0.1.0"

from swiftstyle_core.severity import (
    SEVERITY_ORDER,
    Severity,
    compare_severity,
    is_above_threshold,
    parse_severity,
)
from swiftstyle_core.errors import (
    ConfigurationError,
    ConflictingFixError,
    FixBoundaryError,
    FixDidNotConverge,
    FixError,
    MalformedSourceError,
    RuleEvaluationError,
    SwiftStyleError,
)
from swiftstyle_core.parsing import (
    AccessLevel,
    Declaration,
    DeclarationKind,
    SourceRange,
    StructuralModel,
    Token,
    TokenKind,
    build,
    tokenize,
)
from swiftstyle_core.rules import (
    Replacement,
    RuleCategory,
    RuleEngine,
    RuleRegistry,
    StyleRule,
    Violation,
)
from swiftstyle_core.config import SwiftStyleConfig, load_config, parse_config
from swiftstyle_core.analysis import FileAnalysis, LintResults, StyleAnalyzer, analyze_source
from swiftstyle_core.fixer import FixApplier, FixOutcome, apply_fixes

__all__ = [
    "__version__",
    # Severity
    "SEVERITY_ORDER",
    "Severity",
    "compare_severity",
    "is_above_threshold",
    "parse_severity",
    # Errors
    "ConfigurationError",
    "ConflictingFixError",
    "FixBoundaryError",
    "FixDidNotConverge",
    "FixError",
    "MalformedSourceError",
    "RuleEvaluationError",
    "SwiftStyleError",
    # Parsing
    "AccessLevel",
    "Declaration",
    "DeclarationKind",
    "SourceRange",
    "StructuralModel",
    "Token",
    "TokenKind",
    "build",
    "tokenize",
    # Rules
    "Replacement",
    "RuleCategory",
    "RuleEngine",
    "RuleRegistry",
    "StyleRule",
    "Violation",
    # Analysis
    "FileAnalysis",
    "LintResults",
    "StyleAnalyzer",
    "SwiftStyleConfig",
    "analyze_source",
    "load_config",
    "parse_config",
    # Fixing
    "FixApplier",
    "FixOutcome",
    "apply_fixes",
]
