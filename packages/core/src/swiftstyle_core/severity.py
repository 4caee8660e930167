"""Severity utilities for consistent handling across the engine.

This module provides centralized severity constants, parsing, and comparison
functions used by rules, violations, reports and the CLI exit status.
"""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    """Severity level of a violation."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


# Severity ordering for comparison (higher number = more severe)
SEVERITY_ORDER: dict[str, int] = {
    "info": 0,
    "warning": 1,
    "error": 2,
}

# Aliases accepted in configuration files
SEVERITY_ALIASES: dict[str, Severity] = {
    "critical": Severity.ERROR,
    "high": Severity.ERROR,
    "medium": Severity.WARNING,
    "warn": Severity.WARNING,
    "low": Severity.INFO,
    "note": Severity.INFO,
}

SEVERITY_STYLES: dict[str, str] = {
    "error": "bold red",
    "warning": "yellow",
    "info": "blue",
}


def parse_severity(value: str | Severity) -> Severity:
    """Parse a severity value to the Severity enum.

    Args:
        value: String or Severity value

    Returns:
        Severity enum value

    Raises:
        ValueError: if the value is neither a severity nor a known alias

    Examples:
        >>> parse_severity("error")
        <Severity.ERROR: 'error'>
        >>> parse_severity("high")  # alias
        <Severity.ERROR: 'error'>
    """
    if isinstance(value, Severity):
        return value

    normalized = str(value).strip().lower()
    try:
        return Severity(normalized)
    except ValueError:
        if normalized in SEVERITY_ALIASES:
            return SEVERITY_ALIASES[normalized]
        raise ValueError(f"Unknown severity: {value}") from None


def compare_severity(sev1: str | Severity, sev2: str | Severity) -> int:
    """Compare two severity values.

    Returns:
        -1 if sev1 < sev2, 0 if equal, 1 if sev1 > sev2
    """
    val1 = SEVERITY_ORDER[parse_severity(sev1).value]
    val2 = SEVERITY_ORDER[parse_severity(sev2).value]

    if val1 < val2:
        return -1
    elif val1 > val2:
        return 1
    return 0


def is_above_threshold(severity: str | Severity, threshold: str | Severity) -> bool:
    """Check if severity is at or above a threshold.

    Examples:
        >>> is_above_threshold("error", "warning")
        True
        >>> is_above_threshold("info", "warning")
        False
    """
    return compare_severity(severity, threshold) >= 0


def get_severity_style(severity: str | Severity) -> str:
    """Get the rich style used to render a severity."""
    return SEVERITY_STYLES.get(str(getattr(severity, "value", severity)).lower(), "")
