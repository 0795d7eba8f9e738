"""Diagnostic message formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from email_style_lint.matcher import UsageSite
from email_style_lint.rules.base import Diagnostic, Severity

if TYPE_CHECKING:
    from email_style_lint.rules.factory import RuleSpec


def format_score(score: float) -> str:
    """Format a support percentage with at most two decimals, trailing zeros trimmed."""
    text = f"{score:.2f}".rstrip("0").rstrip(".")
    return "0" if text in {"", "-0"} else text


def format_message(spec: RuleSpec) -> str:
    return (
        f"`{spec.property_name}` has {format_score(spec.compatibility_score)}% support "
        f"across email clients. See {spec.reference_url}"
    )


def report(site: UsageSite, spec: RuleSpec, *, rule_id: str, severity: Severity) -> Diagnostic:
    """Build the diagnostic for one usage site of a monitored property."""
    return Diagnostic(
        site=site,
        message=format_message(spec),
        severity=severity,
        rule_id=rule_id,
    )
