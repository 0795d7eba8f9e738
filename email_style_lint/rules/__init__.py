"""Rules package."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from email_style_lint.compat import CompatibilityEntry, collect_table
from email_style_lint.errors import ConfigurationError
from email_style_lint.matcher import MatcherOptions
from email_style_lint.rules.base import Diagnostic, Rule, Severity
from email_style_lint.rules.factory import RuleSpec, StylePropertyRule, create_rule, rule_id_for

logger = logging.getLogger(__name__)

__all__ = [
    "Diagnostic",
    "RegistryBuild",
    "Rule",
    "RuleInfo",
    "RuleRegistry",
    "RuleSpec",
    "Severity",
    "StylePropertyRule",
    "build_registry",
    "create_rule",
    "default_registry",
    "list_rule_info",
    "rule_id_for",
    "select_rules",
]


@dataclass(frozen=True, slots=True)
class RuleInfo:
    """Rule metadata for listing and selection."""

    rule_id: str
    property_name: str
    compatibility_score: float
    reference_url: str
    aliases: tuple[str, ...]
    severity: str


class RuleRegistry:
    """Append-only mapping of rule id to rule, sealed once startup finishes."""

    def __init__(self) -> None:
        self._rules: dict[str, StylePropertyRule] = {}
        self._sealed = False

    def register(self, rule: StylePropertyRule) -> None:
        if self._sealed:
            raise ConfigurationError(f"Cannot register {rule.rule_id}: registry is sealed")
        existing = self._rules.get(rule.rule_id)
        if existing is not None:
            raise ConfigurationError(
                f"Duplicate rule id {rule.rule_id}: {rule.spec.property_name!r} "
                f"conflicts with {existing.spec.property_name!r}"
            )
        self._rules[rule.rule_id] = rule

    def seal(self) -> RuleRegistry:
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    def get(self, rule_id: str) -> StylePropertyRule | None:
        return self._rules.get(rule_id)

    def rule_ids(self) -> list[str]:
        return list(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[StylePropertyRule]:
        return iter(list(self._rules.values()))

    def __len__(self) -> int:
        return len(self._rules)


@dataclass(slots=True)
class RegistryBuild:
    """A sealed registry plus the entries that failed to register."""

    registry: RuleRegistry
    errors: list[ConfigurationError]

    @property
    def ok(self) -> bool:
        return not self.errors


def build_registry(
    entries: list[CompatibilityEntry],
    *,
    severity: Severity = Severity.WARNING,
    options: MatcherOptions | None = None,
) -> RegistryBuild:
    """Create one rule per entry; a bad entry never blocks the others."""
    registry = RuleRegistry()
    errors: list[ConfigurationError] = []
    for entry in entries:
        try:
            rule = create_rule(
                entry.name,
                entry.score,
                entry.url,
                aliases=entry.aliases,
                severity=severity,
                options=options,
            )
            registry.register(rule)
        except ConfigurationError as exc:
            error = ConfigurationError(f"{entry.source}: {exc}")
            logger.warning("skipping compatibility entry: %s", error)
            errors.append(error)
    logger.debug("registered %d style property rules", len(registry))
    return RegistryBuild(registry=registry.seal(), errors=errors)


def default_registry(
    *,
    severity: Severity = Severity.WARNING,
    options: MatcherOptions | None = None,
) -> RuleRegistry:
    """Return the registry built from the bundled compatibility table."""
    build = build_registry(collect_table().entries, severity=severity, options=options)
    if build.errors:
        joined = "; ".join(str(error) for error in build.errors)
        raise ConfigurationError(f"Invalid builtin compatibility data: {joined}")
    return build.registry


def select_rules(
    registry: RuleRegistry,
    *,
    enabled_rule_ids: list[str] | None = None,
    disabled_rule_ids: list[str] | None = None,
) -> list[Rule]:
    """Apply enable/disable filters, keeping registration order unless an enable list is given."""
    disabled_set = set(disabled_rule_ids or [])
    requested_ids = set(enabled_rule_ids or []) | disabled_set

    unknown = [rule_id for rule_id in requested_ids if rule_id not in registry]
    if unknown:
        joined = ", ".join(sorted(unknown))
        raise ConfigurationError(f"Unknown rule ids: {joined}")

    if enabled_rule_ids is None:
        selected_ids = [rule_id for rule_id in registry.rule_ids() if rule_id not in disabled_set]
    else:
        selected_ids = [
            rule_id for rule_id in _dedupe(enabled_rule_ids) if rule_id not in disabled_set
        ]

    selected: list[Rule] = []
    for rule_id in selected_ids:
        rule = registry.get(rule_id)
        if rule is not None:
            selected.append(rule)
    return selected


def list_rule_info(registry: RuleRegistry) -> list[RuleInfo]:
    """Return metadata for every registered rule."""
    info: list[RuleInfo] = []
    for rule in registry:
        info.append(
            RuleInfo(
                rule_id=rule.rule_id,
                property_name=rule.spec.property_name,
                compatibility_score=rule.spec.compatibility_score,
                reference_url=rule.spec.reference_url,
                aliases=rule.spec.aliases,
                severity=rule.severity.value,
            )
        )
    return info


def _dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    output: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        output.append(item)
    return output
