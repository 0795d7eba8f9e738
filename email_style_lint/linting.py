"""Lint orchestration across source files."""

from __future__ import annotations

import fnmatch
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from email_style_lint.errors import ParseInputError
from email_style_lint.rules.base import Diagnostic, Rule, Severity
from email_style_lint.source import SourceFile, is_source_path, parse_source, read_source

logger = logging.getLogger(__name__)

SKIP_DIRS = {"node_modules", ".git", ".next", "dist", "build", "coverage"}


@dataclass(slots=True)
class FileReport:
    """Diagnostics, or the parse failure, for a single file."""

    path: str
    diagnostics: list[Diagnostic] = field(default_factory=list)
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(slots=True)
class LintResult:
    """Top-level output of a lint run."""

    files: list[FileReport]

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [item for report in self.files for item in report.diagnostics]

    @property
    def error_count(self) -> int:
        return sum(1 for item in self.diagnostics if item.severity is Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for item in self.diagnostics if item.severity is Severity.WARNING)

    @property
    def failed_files(self) -> list[FileReport]:
        return [report for report in self.files if report.failed]

    def should_fail(self, fail_on: str) -> bool:
        """Return True when the run should exit nonzero under a ``fail_on`` policy."""
        if self.failed_files:
            return True
        if fail_on == "warning":
            return bool(self.diagnostics)
        if fail_on == "error":
            return self.error_count > 0
        return False


def lint_source(source: SourceFile, rules: list[Rule]) -> list[Diagnostic]:
    """Run every rule on one parsed file; diagnostics come back in source order."""
    diagnostics: list[Diagnostic] = []
    for rule in rules:
        diagnostics.extend(rule.evaluate(source))
    return sorted(
        diagnostics,
        key=lambda item: (item.site.location.line, item.site.location.column),
    )


def lint_text(text: str, rules: list[Rule], *, path: str = "<input>") -> FileReport:
    """Parse and lint in-memory source text."""
    try:
        source = parse_source(text, path=path)
    except ParseInputError as exc:
        return FileReport(path=path, error=str(exc))
    return FileReport(path=path, diagnostics=lint_source(source, rules))


def lint_file(path: Path, rules: list[Rule]) -> FileReport:
    try:
        source = read_source(path)
    except ParseInputError as exc:
        logger.debug("not analyzed: %s", exc)
        return FileReport(path=str(path), error=str(exc))
    return FileReport(path=str(path), diagnostics=lint_source(source, rules))


def lint_paths(
    paths: list[Path],
    rules: list[Rule],
    *,
    includes: list[str] | None = None,
    excludes: list[str] | None = None,
    jobs: int = 1,
) -> LintResult:
    """Discover source files under ``paths`` and lint them, optionally in parallel.

    Rules are stateless, so the same rule objects are shared by every worker.
    Reports keep the discovery order regardless of ``jobs``.
    """
    files = discover_files(paths, includes=includes or [], excludes=excludes or [])
    logger.debug("linting %d files with %d rules", len(files), len(rules))
    if jobs <= 1 or len(files) <= 1:
        return LintResult(files=[lint_file(path, rules) for path in files])

    with ThreadPoolExecutor(max_workers=jobs) as executor:
        reports = list(executor.map(lambda path: lint_file(path, rules), files))
    return LintResult(files=reports)


def discover_files(paths: list[Path], *, includes: list[str], excludes: list[str]) -> list[Path]:
    """Expand directories into source files, applying include/exclude globs."""
    discovered: list[Path] = []
    seen: set[Path] = set()
    for root in paths:
        if root.is_dir():
            candidates = sorted(_walk(root))
            base = root
        else:
            candidates = [root]
            base = None
        for candidate in candidates:
            relative = candidate.relative_to(base).as_posix() if base else candidate.as_posix()
            if base is not None and not is_source_path(candidate):
                continue
            if includes and not any(fnmatch.fnmatch(relative, pattern) for pattern in includes):
                continue
            if excludes and any(fnmatch.fnmatch(relative, pattern) for pattern in excludes):
                continue
            resolved = candidate.resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            discovered.append(candidate)
    return discovered


def _walk(root: Path) -> list[Path]:
    found: list[Path] = []
    for entry in root.iterdir():
        if entry.is_dir():
            if entry.name in SKIP_DIRS:
                continue
            found.extend(_walk(entry))
        elif entry.is_file():
            found.append(entry)
    return found
