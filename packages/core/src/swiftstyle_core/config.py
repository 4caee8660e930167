"""Configuration file parser for .swiftstyle.yml files."""
from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path
from typing import Any

import structlog
import yaml

from swiftstyle_core.errors import ConfigurationError

logger = structlog.get_logger()

CONFIG_NAMES = (".swiftstyle.yml", ".swiftstyle.yaml", "swiftstyle.yml")

# Directories never analyzed, whatever the patterns say.
DEFAULT_EXCLUDED_DIRS = frozenset({
    ".build", ".git", ".swiftpm", "Pods", "Carthage", "DerivedData", "build",
})

KNOWN_KEYS = frozenset({"version", "include", "exclude", "rules", "jobs", "timeout", "max_file_size"})
RULE_KEYS = frozenset({"severity", "enabled", "params"})


@dataclass
class SwiftStyleConfig:
    """Complete swiftstyle configuration."""

    version: str = "1"

    # File patterns, relative to the analyzed root
    include_patterns: list[str] = field(default_factory=lambda: ["**/*.swift"])
    exclude_patterns: list[str] = field(default_factory=list)

    # Per-rule overrides keyed by rule id: severity, enabled, params
    rules: dict[str, dict[str, Any]] = field(default_factory=dict)

    # Batch run settings
    jobs: int | None = None
    timeout_seconds: float | None = None
    max_file_size: int = 500_000

    source: Path | None = None


def _as_list(data: dict[str, Any], key: str) -> list[str]:
    value = data[key]
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"'{key}' must be a list of glob patterns")
    return list(value)


def parse_config(content: str | dict[str, Any]) -> SwiftStyleConfig:
    """Parse configuration from YAML string or dict.

    Raises:
        ConfigurationError: the YAML is malformed or a value has the wrong type
    """
    if isinstance(content, str):
        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML: {e}") from e
    else:
        data = content

    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a YAML mapping")

    config = SwiftStyleConfig()
    config.version = str(data.get("version", "1"))

    # File patterns
    if "include" in data:
        config.include_patterns = _as_list(data, "include")
    if "exclude" in data:
        config.exclude_patterns = _as_list(data, "exclude")

    # Rule overrides
    rules = data.get("rules") or {}
    if not isinstance(rules, dict):
        raise ConfigurationError("'rules' must map rule ids to settings")
    for rule_id, settings in rules.items():
        if settings is None:
            settings = {}
        if not isinstance(settings, dict):
            raise ConfigurationError(f"settings for rule '{rule_id}' must be a mapping")
        config.rules[str(rule_id)] = dict(settings)

    # Batch settings
    if data.get("jobs") is not None:
        jobs = data["jobs"]
        if not isinstance(jobs, int) or isinstance(jobs, bool) or jobs < 1:
            raise ConfigurationError("'jobs' must be a positive integer")
        config.jobs = jobs
    if data.get("timeout") is not None:
        timeout = data["timeout"]
        if not isinstance(timeout, (int, float)) or isinstance(timeout, bool) or timeout <= 0:
            raise ConfigurationError("'timeout' must be a positive number of seconds")
        config.timeout_seconds = float(timeout)
    if data.get("max_file_size") is not None:
        size = data["max_file_size"]
        if not isinstance(size, int) or isinstance(size, bool) or size < 1:
            raise ConfigurationError("'max_file_size' must be a positive integer")
        config.max_file_size = size

    return config


def find_config(root: Path | str) -> Path | None:
    """Locate a configuration file in root, trying each known name."""
    root = Path(root)
    if root.is_file():
        root = root.parent
    for name in CONFIG_NAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Path | str) -> SwiftStyleConfig:
    """Load configuration from a file, or discover it in a directory.

    A directory without a configuration file yields the defaults.
    """
    path = Path(path)
    config_file = path if path.is_file() else find_config(path)
    if config_file is None:
        logger.info("config_defaults", root=str(path))
        return SwiftStyleConfig()

    logger.info("config_loaded", path=str(config_file))
    try:
        text = config_file.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read {config_file}: {e}") from e
    config = parse_config(text)
    config.source = config_file
    return config


def validate_config(content: Path | str | dict[str, Any]) -> tuple[list[str], list[str]]:
    """Validate configuration data without raising.

    Args:
        content: Path to a configuration file, YAML text or parsed mapping

    Returns:
        (errors, warnings)
    """
    # Imported here: the registry pulls in every rule module.
    from swiftstyle_core.rules.registry import RuleRegistry

    errors: list[str] = []
    warnings: list[str] = []

    if isinstance(content, Path):
        if not content.exists():
            errors.append(f"Configuration file not found: {content}")
            return errors, warnings
        content = content.read_text(encoding="utf-8")

    if isinstance(content, str):
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            errors.append(f"Invalid YAML syntax: {e}")
            return errors, warnings
    else:
        data = content

    if data is None:
        return errors, warnings
    if not isinstance(data, dict):
        errors.append("Configuration must be a YAML mapping")
        return errors, warnings

    version = data.get("version")
    if version is not None and str(version) not in ("1", "1.0"):
        warnings.append(f"Unknown config version: {version}")

    for key in data:
        if key not in KNOWN_KEYS:
            warnings.append(f"Unknown configuration key: {key}")

    rules = data.get("rules") or {}
    if isinstance(rules, dict):
        for rule_id, settings in rules.items():
            if isinstance(settings, dict):
                for key in settings:
                    if key not in RULE_KEYS:
                        errors.append(f"rules.{rule_id}: unknown setting '{key}'")

    try:
        config = parse_config(data)
    except ConfigurationError as e:
        errors.append(str(e))
        return errors, warnings

    if not errors:
        try:
            registry = RuleRegistry.from_config(config.rules)
        except ConfigurationError as e:
            errors.append(str(e))
        else:
            if not registry.enabled_rules():
                warnings.append("Every rule is disabled")

    if config.timeout_seconds is not None and config.timeout_seconds > 3600:
        warnings.append("timeout is very high (>3600s)")

    return errors, warnings


def _matches(path: str, pattern: str) -> bool:
    if fnmatch(path, pattern):
        return True
    # "**/" also matches zero directories.
    if pattern.startswith("**/"):
        return _matches(path, pattern[3:])
    return False


def should_analyze_file(config: SwiftStyleConfig, file_path: str) -> bool:
    """Check if a file should be analyzed based on config patterns.

    Args:
        config: Loaded configuration
        file_path: Path relative to the analyzed root, "/" separated
    """
    file_path = file_path.replace("\\", "/")
    if not file_path.endswith(".swift"):
        return False

    parts = file_path.split("/")
    if any(part in DEFAULT_EXCLUDED_DIRS for part in parts[:-1]):
        return False

    # Check exclusions first
    for pattern in config.exclude_patterns:
        if _matches(file_path, pattern):
            return False

    # Check inclusions
    for pattern in config.include_patterns:
        if _matches(file_path, pattern):
            return True

    return False


# Example configuration written by `swiftstyle init`
EXAMPLE_CONFIG = """\
# .swiftstyle.yml - swiftstyle configuration
version: "1"

# Files to analyze, relative to this directory
include:
  - "**/*.swift"

exclude:
  - "Pods/**"
  - "**/Generated/**"

# Per-rule overrides: severity (error, warning, info), enabled, params
rules:
  column-limit:
    params:
      limit: 100

  force-unwrap:
    severity: error
    params:
      allowlist:
        paths: ["*Tests.swift"]
        attributes: ["IBOutlet"]
        declarations: []

  single-primary-type:
    enabled: true

# Parallel workers and run timeout in seconds
# jobs: 4
# timeout: 120
"""
