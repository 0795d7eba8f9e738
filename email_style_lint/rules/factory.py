"""Rule factory for monitored CSS properties."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

from email_style_lint.errors import ConfigurationError
from email_style_lint.matcher import MatcherOptions, StyleUsageMatcher
from email_style_lint.normalize import normalize_property
from email_style_lint.rules.base import Diagnostic, Severity
from email_style_lint.rules.reporter import report
from email_style_lint.source import SourceFile

RULE_ID_PREFIX = "no-css-"


@dataclass(frozen=True, slots=True)
class RuleSpec:
    """Compatibility data for one monitored property."""

    property_name: str
    compatibility_score: float
    reference_url: str
    aliases: tuple[str, ...] = ()
    canonical_names: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        names = {normalize_property(self.property_name)}
        names.update(normalize_property(alias) for alias in self.aliases)
        object.__setattr__(self, "canonical_names", frozenset(names))

    @property
    def rule_id(self) -> str:
        return rule_id_for(self.property_name)

    def matches(self, declared_property_name: str) -> bool:
        return normalize_property(declared_property_name) in self.canonical_names


class StylePropertyRule:
    """Flags every declaration of one CSS property with limited email client support."""

    def __init__(
        self,
        spec: RuleSpec,
        *,
        severity: Severity = Severity.WARNING,
        options: MatcherOptions | None = None,
    ) -> None:
        self.spec = spec
        self.severity = severity
        self.options = options or MatcherOptions()
        self.rule_id = spec.rule_id

    def __repr__(self) -> str:
        return f"StylePropertyRule({self.rule_id!r})"

    def evaluate(self, source: SourceFile) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        for site in StyleUsageMatcher(source, self.options):
            if not self.spec.matches(site.declared_property_name):
                continue
            diagnostics.append(
                report(site, self.spec, rule_id=self.rule_id, severity=self.severity)
            )
        return diagnostics


def create_rule(
    property_name: Any,
    compatibility_score: Any,
    reference_url: Any,
    *,
    aliases: tuple[str, ...] | list[str] = (),
    severity: Severity = Severity.WARNING,
    options: MatcherOptions | None = None,
) -> StylePropertyRule:
    """Validate a property's compatibility data and build its rule."""
    spec = RuleSpec(
        property_name=_validate_property_name(property_name),
        compatibility_score=_validate_score(property_name, compatibility_score),
        reference_url=_validate_url(property_name, reference_url),
        aliases=_validate_aliases(property_name, aliases),
    )
    return StylePropertyRule(spec, severity=severity, options=options)


def rule_id_for(property_name: str) -> str:
    """Derive the rule identifier for a property, e.g. ``no-css-gap``."""
    return f"{RULE_ID_PREFIX}{normalize_property(property_name).lstrip('-')}"


def _validate_property_name(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"property name must be a non-empty string, got {value!r}")
    return value.strip()


def _validate_score(property_name: Any, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(
            f"compatibility score for {property_name!r} must be a number, got {value!r}"
        )
    score = float(value)
    if not math.isfinite(score) or not 0.0 <= score <= 100.0:
        raise ConfigurationError(
            f"compatibility score for {property_name!r} must be within 0-100, got {value!r}"
        )
    return score


def _validate_url(property_name: Any, value: Any) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(
            f"reference URL for {property_name!r} must be a string, got {value!r}"
        )
    try:
        parts = urlsplit(value.strip())
    except ValueError as exc:
        raise ConfigurationError(
            f"reference URL for {property_name!r} is malformed: {exc}"
        ) from exc
    if parts.scheme not in {"http", "https"} or not parts.netloc or " " in value.strip():
        raise ConfigurationError(
            f"reference URL for {property_name!r} must be an absolute http(s) URL, got {value!r}"
        )
    return value.strip()


def _validate_aliases(property_name: Any, value: Any) -> tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"aliases for {property_name!r} must be a list of strings")
    aliases: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ConfigurationError(f"aliases for {property_name!r} must be non-empty strings")
        aliases.append(item.strip())
    return tuple(aliases)
