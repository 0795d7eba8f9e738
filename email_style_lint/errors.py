"""Error types shared across the linter."""

from __future__ import annotations


class EmailStyleLintError(Exception):
    """Base class for linter errors."""


class ConfigurationError(EmailStyleLintError, ValueError):
    """Raised for malformed rule specs, registry conflicts and invalid config."""


class ParseInputError(EmailStyleLintError):
    """Raised when a source file is missing, unreadable or not parseable."""
