"""Output rendering."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import click

from email_style_lint import __version__
from email_style_lint.linting import FileReport, LintResult
from email_style_lint.rules.base import Diagnostic, Severity

_SEVERITY_COLORS = {Severity.ERROR: "red", Severity.WARNING: "yellow"}


def render_human(result: LintResult) -> str:
    """Render diagnostics grouped per file, followed by a summary line."""
    lines: list[str] = []
    for report in result.files:
        if not report.diagnostics and not report.failed:
            continue
        lines.append(click.style(report.path, underline=True))
        if report.error is not None:
            lines.append(f"  {click.style('parse error', fg='red', bold=True)}  {report.error}")
        for diagnostic in report.diagnostics:
            severity = click.style(
                diagnostic.severity.value, fg=_SEVERITY_COLORS[diagnostic.severity]
            )
            lines.append(
                f"  {diagnostic.site.location}  {severity}  "
                f"{diagnostic.message}  {click.style(diagnostic.rule_id, dim=True)}"
            )
        lines.append("")

    lines.append(_summary_line(result))
    return "\n".join(lines)


def render_json(result: LintResult, *, rule_ids: list[str] | None = None) -> str:
    """Render stable JSON output for CI and editor integrations."""
    return json.dumps(build_json_payload(result, rule_ids=rule_ids), sort_keys=True)


def build_json_payload(
    result: LintResult, *, rule_ids: list[str] | None = None
) -> dict[str, Any]:
    meta: dict[str, Any] = {
        "generated_at": datetime.now(tz=UTC)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z"),
        "version": __version__,
    }
    if rule_ids is not None:
        meta["rules"] = list(rule_ids)

    return {
        "files": [_serialize_file(item) for item in result.files],
        "summary": {
            "files": len(result.files),
            "errors": result.error_count,
            "warnings": result.warning_count,
            "failed_files": len(result.failed_files),
        },
        "meta": meta,
    }


def _serialize_file(report: FileReport) -> dict[str, Any]:
    return {
        "path": report.path,
        "error": report.error,
        "diagnostics": [_serialize_diagnostic(item) for item in report.diagnostics],
    }


def _serialize_diagnostic(diagnostic: Diagnostic) -> dict[str, Any]:
    site = diagnostic.site
    return {
        "rule_id": diagnostic.rule_id,
        "severity": diagnostic.severity.value,
        "message": diagnostic.message,
        "line": site.location.line,
        "column": site.location.column,
        "property": site.declared_property_name,
        "form": site.declared_form.value,
        "value": site.raw_value,
    }


def _summary_line(result: LintResult) -> str:
    total = len(result.diagnostics)
    parts = [f"{total} problem{'s' if total != 1 else ''}"]
    parts.append(f"({result.error_count} errors, {result.warning_count} warnings)")
    if result.failed_files:
        parts.append(f"{len(result.failed_files)} file(s) could not be parsed")
    if total == 0 and not result.failed_files:
        return click.style(f"No problems found in {len(result.files)} file(s).", fg="green")
    color = "red" if result.error_count or result.failed_files else "yellow"
    return click.style(" ".join(parts), fg=color, bold=True)
