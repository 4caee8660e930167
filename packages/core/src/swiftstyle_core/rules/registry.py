"""Rule registry built from configuration data.

The registry is constructed once at startup and never mutated afterwards, so
any number of workers can read it concurrently without locking.
"""

from __future__ import annotations

from importlib import resources
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from swiftstyle_core.errors import ConfigurationError
from swiftstyle_core.rules.base import RULE_CATALOG, StyleRule
from swiftstyle_core.rules.models import RuleCategory
from swiftstyle_core.severity import Severity, parse_severity

logger = structlog.get_logger()

DEFAULT_RULES_RESOURCE = "data/rules.yml"


class RuleEntry(BaseModel):
    """One rule entry of the catalog data."""

    model_config = ConfigDict(extra="forbid")

    id: str
    category: RuleCategory | None = None
    severity: Severity | None = None
    enabled: bool = True
    description: str = ""
    params: dict[str, Any] = Field(default_factory=dict)

    @field_validator("severity", mode="before")
    @classmethod
    def _parse_severity(cls, value: Any) -> Any:
        if value is None or isinstance(value, Severity):
            return value
        return parse_severity(str(value))


class RuleOverride(BaseModel):
    """Per-rule settings a user configuration may change."""

    model_config = ConfigDict(extra="forbid")

    severity: Severity | None = None
    enabled: bool | None = None
    params: dict[str, Any] = Field(default_factory=dict)

    @field_validator("severity", mode="before")
    @classmethod
    def _parse_severity(cls, value: Any) -> Any:
        if value is None or isinstance(value, Severity):
            return value
        return parse_severity(str(value))


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in item['loc']) or 'entry'}: {item['msg']}"
        for item in error.errors()
    )


def instantiate(entry: RuleEntry) -> StyleRule:
    """Create the rule implementation an entry refers to.

    Raises:
        ConfigurationError: the id is unknown, the category does not match the
            implementation or the parameters are invalid
    """
    rule_class = RULE_CATALOG.get(entry.id)
    if rule_class is None:
        raise ConfigurationError(f"unknown rule id '{entry.id}'")
    if entry.category is not None and entry.category != rule_class.category:
        raise ConfigurationError(
            f"rule '{entry.id}' is in category '{rule_class.category.value}', "
            f"not '{entry.category.value}'"
        )
    try:
        params = rule_class.params_model(**entry.params)
    except ValidationError as e:
        raise ConfigurationError(f"invalid params for rule '{entry.id}': {_describe(e)}") from e
    return rule_class(
        severity=entry.severity,
        params=params,
        enabled=entry.enabled,
        description=entry.description,
    )


class RuleRegistry:
    """Immutable, ordered collection of configured rules."""

    def __init__(self, rules: Iterable[StyleRule]) -> None:
        ordered: dict[str, StyleRule] = {}
        for rule in rules:
            if rule.id in ordered:
                raise ConfigurationError(f"rule '{rule.id}' is configured twice")
            ordered[rule.id] = rule
        self._rules = tuple(ordered.values())
        self._by_id = MappingProxyType(ordered)

    @classmethod
    def from_entries(cls, entries: Iterable[Mapping[str, Any] | RuleEntry]) -> "RuleRegistry":
        rules = []
        for raw in entries:
            if isinstance(raw, RuleEntry):
                entry = raw
            else:
                if not isinstance(raw, Mapping):
                    raise ConfigurationError(f"rule entry must be a mapping, got {raw!r}")
                try:
                    entry = RuleEntry(**raw)
                except ValidationError as e:
                    raise ConfigurationError(
                        f"invalid rule entry {raw.get('id', '?')!r}: {_describe(e)}"
                    ) from e
                except ValueError as e:
                    raise ConfigurationError(str(e)) from e
            rules.append(instantiate(entry))
        return cls(rules)

    @classmethod
    def default_entries(cls) -> list[dict[str, Any]]:
        """Catalog data shipped with the package."""
        text = resources.files("swiftstyle_core").joinpath(DEFAULT_RULES_RESOURCE).read_text(
            encoding="utf-8"
        )
        data = yaml.safe_load(text) or {}
        return list(data.get("rules", []))

    @classmethod
    def load_default(cls) -> "RuleRegistry":
        return cls.from_entries(cls.default_entries())

    @classmethod
    def from_config(
        cls,
        overrides: Mapping[str, Mapping[str, Any]] | None = None,
        entries: Iterable[Mapping[str, Any]] | None = None,
    ) -> "RuleRegistry":
        """Build a registry from catalog entries merged with per-rule overrides.

        Args:
            overrides: Settings keyed by rule id (severity, enabled, params).
                Params are merged key by key over the catalog defaults.
            entries: Catalog entries; the packaged defaults when omitted

        Raises:
            ConfigurationError: an override names an unknown rule or carries
                invalid settings
        """
        base = [dict(entry) for entry in (entries if entries is not None else cls.default_entries())]
        by_id = {entry.get("id"): entry for entry in base}
        for rule_id, raw in (overrides or {}).items():
            if rule_id not in by_id:
                raise ConfigurationError(f"configuration overrides unknown rule '{rule_id}'")
            try:
                override = RuleOverride(**(raw or {}))
            except ValidationError as e:
                raise ConfigurationError(f"invalid settings for rule '{rule_id}': {_describe(e)}") from e
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"invalid settings for rule '{rule_id}': {e}") from e
            entry = by_id[rule_id]
            if override.severity is not None:
                entry["severity"] = override.severity
            if override.enabled is not None:
                entry["enabled"] = override.enabled
            if override.params:
                entry["params"] = {**(entry.get("params") or {}), **override.params}
            logger.debug("rule_override_applied", rule_id=rule_id)
        return cls.from_entries(base)

    def get(self, rule_id: str) -> StyleRule | None:
        return self._by_id.get(rule_id)

    @property
    def rules(self) -> tuple[StyleRule, ...]:
        return self._rules

    def enabled_rules(self) -> list[StyleRule]:
        return [rule for rule in self._rules if rule.enabled]

    def subset(self, rule_ids: Iterable[str]) -> "RuleRegistry":
        """A registry holding only the given rules, in catalog order."""
        wanted = set(rule_ids)
        unknown = sorted(wanted - set(self._by_id))
        if unknown:
            raise ConfigurationError(f"unknown rule ids: {', '.join(unknown)}")
        return RuleRegistry(rule for rule in self._rules if rule.id in wanted)

    def with_rule(self, rule: StyleRule) -> "RuleRegistry":
        """A new registry where `rule` replaces the rule with the same id, or is appended."""
        if rule.id in self._by_id:
            return RuleRegistry(rule if existing.id == rule.id else existing for existing in self._rules)
        return RuleRegistry((*self._rules, rule))

    def __iter__(self) -> Iterator[StyleRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id

    def __repr__(self) -> str:
        return f"RuleRegistry({[rule.id for rule in self._rules]!r})"
