"""CLI entrypoint for email-style-lint."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from email_style_lint import __version__
from email_style_lint.compat import collect_table
from email_style_lint.config import AppConfig, default_config_template, load_app_config
from email_style_lint.errors import ConfigurationError
from email_style_lint.linting import LintResult, lint_paths, lint_text
from email_style_lint.output import render_human, render_json
from email_style_lint.rules import (
    RegistryBuild,
    Rule,
    build_registry,
    list_rule_info,
    select_rules,
)
from email_style_lint.rules.base import Severity
from email_style_lint.rules.reporter import format_score

app = typer.Typer(
    name="email-style-lint",
    no_args_is_help=True,
    help="Flag CSS properties with limited email client support in JSX/TSX templates.",
)


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    """Root command callback."""
    _ = version
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.ERROR,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@app.command("check")
def check_command(
    paths: Annotated[
        list[Path] | None, typer.Argument(help="Files or directories to lint.")
    ] = None,
    stdin: Annotated[bool, typer.Option(help="Read a single source file from stdin.")] = False,
    stdin_filename: Annotated[
        str, typer.Option("--stdin-filename", help="File name used for stdin input.")
    ] = "<stdin>.tsx",
    root: Annotated[Path, typer.Option(help="Project root used for config lookup.")] = Path("."),
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    severity: Annotated[
        str | None, typer.Option(help="Severity for every rule: warning|error.")
    ] = None,
    fail_on: Annotated[
        str | None, typer.Option("--fail-on", help="Exit nonzero on: warning|error|never.")
    ] = None,
    jobs: Annotated[int | None, typer.Option(help="Number of files linted in parallel.")] = None,
    include: Annotated[list[str] | None, typer.Option(help="Include glob pattern.")] = None,
    exclude: Annotated[list[str] | None, typer.Option(help="Exclude glob pattern.")] = None,
    rule: Annotated[
        list[str] | None, typer.Option("--rule", help="Only run these rule ids.")
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Lint JSX/TSX sources for CSS properties with partial email client support."""
    app_config = _load_config_or_raise(root, config_file)
    output_format = (format or app_config.format).lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")
    resolved_severity = _choice_or_default(
        value=severity,
        default=app_config.severity,
        allowed={"warning", "error"},
        field_name="--severity",
    )
    resolved_fail_on = _choice_or_default(
        value=fail_on,
        default=app_config.fail_on,
        allowed={"warning", "error", "never"},
        field_name="--fail-on",
    )
    resolved_jobs = jobs if jobs is not None else app_config.jobs
    if resolved_jobs <= 0:
        raise typer.BadParameter("jobs must be > 0", param_hint="--jobs")
    if stdin and paths:
        raise typer.BadParameter("Use either PATHS or --stdin, not both.")

    build = _build_registry_or_raise(app_config, severity=Severity(resolved_severity))
    _echo_registry_errors(build)
    rules = _select_rules_or_raise(build, app_config, enabled_rule_ids=rule)

    if stdin:
        report = lint_text(sys.stdin.read(), rules, path=stdin_filename)
        result = LintResult(files=[report])
    else:
        result = lint_paths(
            list(paths or [Path(".")]),
            rules,
            includes=include if include is not None else app_config.include,
            excludes=exclude if exclude is not None else app_config.exclude,
            jobs=resolved_jobs,
        )

    if output_format == "json":
        typer.echo(render_json(result, rule_ids=[item.rule_id for item in rules]))
    else:
        typer.echo(render_human(result))

    if result.should_fail(resolved_fail_on) or not build.ok:
        raise typer.Exit(code=1)


@app.command("rules")
def rules_command(
    root: Annotated[Path, typer.Option(help="Project root used for config lookup.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """List the generated property rules and whether they are enabled."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(root, config_file)
    build = _build_registry_or_raise(app_config, severity=app_config.severity_level)
    active_ids = {item.rule_id for item in _select_rules_or_raise(build, app_config)}
    rule_info = list_rule_info(build.registry)

    if output_format == "json":
        payload = {
            "rules": [
                {
                    "rule_id": item.rule_id,
                    "property": item.property_name,
                    "compatibility_score": item.compatibility_score,
                    "reference_url": item.reference_url,
                    "aliases": list(item.aliases),
                    "severity": item.severity,
                    "enabled": item.rule_id in active_ids,
                }
                for item in rule_info
            ],
            "errors": [str(error) for error in build.errors],
            "meta": {"config_source": app_config.source},
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = ["Available rules:"]
    for item in rule_info:
        status = "enabled" if item.rule_id in active_ids else "disabled"
        lines.append(
            f"- {item.rule_id} [{status}] - {item.property_name}: "
            f"{format_score(item.compatibility_score)}% support ({item.reference_url})"
        )
    typer.echo("\n".join(lines))
    _echo_registry_errors(build)


@app.command("config")
def config_command(
    root: Annotated[Path, typer.Option(help="Project root used for config lookup.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(root, config_file)
    build = _build_registry_or_raise(app_config, severity=app_config.severity_level)
    payload = app_config.to_dict()
    payload["active_rule_ids"] = [
        item.rule_id for item in _select_rules_or_raise(build, app_config)
    ]

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- format: {payload['format']}",
        f"- severity: {payload['severity']}",
        f"- fail_on: {payload['fail_on']}",
        f"- jobs: {payload['jobs']}",
        f"- include: {payload['include']}",
        f"- exclude: {payload['exclude']}",
        f"- rules.enable: {payload['rules']['enable']}",
        f"- rules.disable: {payload['rules']['disable']}",
        f"- active_rule_ids: {payload['active_rule_ids']}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".email-style-lint.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter project config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


@app.command("config-validate")
def config_validate_command(
    root: Annotated[Path, typer.Option(help="Project root used for config lookup.")] = Path("."),
    config_file: Annotated[
        Path,
        typer.Option("--config", help="Path to config TOML file to validate."),
    ] = Path(".email-style-lint.toml"),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """Validate a config file, its compatibility entries and report active rules."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(root, config_file)
    build = _build_registry_or_raise(app_config, severity=app_config.severity_level)
    active_rules = _select_rules_or_raise(build, app_config)
    payload = {
        "ok": build.ok,
        "source": app_config.source,
        "active_rule_ids": [item.rule_id for item in active_rules],
        "errors": [str(error) for error in build.errors],
    }
    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
    else:
        lines = [
            "Config is valid." if build.ok else "Config has invalid compatibility entries.",
            f"- source: {payload['source']}",
            f"- active_rule_ids: {payload['active_rule_ids']}",
        ]
        lines.extend(f"- error: {error}" for error in payload["errors"])
        typer.echo("\n".join(lines))
    if not build.ok:
        raise typer.Exit(code=1)


def main() -> None:
    """Console script entrypoint."""
    app()


def _load_config_or_raise(root: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(root, config_path=config_file)
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _build_registry_or_raise(app_config: AppConfig, *, severity: Severity) -> RegistryBuild:
    compatibility = app_config.compatibility
    try:
        table = collect_table(
            include_builtin=compatibility.include_builtin,
            table_paths=compatibility.tables,
            extra_entries=compatibility.properties,
        )
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc), param_hint="config.compatibility") from exc
    return build_registry(
        table.entries,
        severity=severity,
        options=app_config.matcher.to_options(),
    )


def _select_rules_or_raise(
    build: RegistryBuild,
    app_config: AppConfig,
    *,
    enabled_rule_ids: list[str] | None = None,
) -> list[Rule]:
    try:
        return select_rules(
            build.registry,
            enabled_rule_ids=enabled_rule_ids or app_config.rule_enable,
            disabled_rule_ids=app_config.rule_disable,
        )
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc), param_hint="config.rules") from exc


def _echo_registry_errors(build: RegistryBuild) -> None:
    for error in build.errors:
        typer.echo(f"configuration error: {error}", err=True)


def _choice_or_default(
    *,
    value: str | None,
    default: str,
    allowed: set[str],
    field_name: str,
) -> str:
    resolved = (value or default).lower()
    if resolved not in allowed:
        choices = ", ".join(sorted(allowed))
        raise typer.BadParameter(f"{field_name} must be one of: {choices}", param_hint=field_name)
    return resolved
