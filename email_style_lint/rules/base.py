"""Base rule protocol and diagnostic model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from email_style_lint.matcher import UsageSite
from email_style_lint.source import SourceFile


class Severity(Enum):
    """Severity class shared by every generated rule."""

    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single finding tying a usage site to the rule that flagged it."""

    site: UsageSite
    message: str
    severity: Severity
    rule_id: str


class Rule(Protocol):
    """Protocol for rules the linter can run against a parsed file."""

    rule_id: str

    def evaluate(self, source: SourceFile) -> list[Diagnostic]:
        """Evaluate a parsed source file and return diagnostics in source order."""
