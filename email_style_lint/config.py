"""Configuration loading for email-style-lint."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from email_style_lint.compat import CompatibilityEntry, parse_entries
from email_style_lint.errors import ConfigurationError
from email_style_lint.matcher import (
    DEFAULT_STYLE_ATTRIBUTES,
    DEFAULT_STYLE_ELEMENTS,
    DEFAULT_STYLE_TAGS,
    MatcherOptions,
)
from email_style_lint.rules.base import Severity

CONFIG_FILENAMES = (".email-style-lint.toml", "email-style-lint.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("email_style_lint", "email-style-lint")


@dataclass(slots=True)
class MatcherConfig:
    """Names treated as style-bearing by the matcher."""

    style_attributes: list[str] = field(default_factory=lambda: list(DEFAULT_STYLE_ATTRIBUTES))
    style_tags: list[str] = field(default_factory=lambda: list(DEFAULT_STYLE_TAGS))
    style_elements: list[str] = field(default_factory=lambda: list(DEFAULT_STYLE_ELEMENTS))

    def to_options(self) -> MatcherOptions:
        return MatcherOptions(
            style_attributes=tuple(self.style_attributes),
            style_tags=tuple(self.style_tags),
            style_elements=tuple(self.style_elements),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "style_attributes": list(self.style_attributes),
            "style_tags": list(self.style_tags),
            "style_elements": list(self.style_elements),
        }


@dataclass(slots=True)
class CompatibilityConfig:
    """Where compatibility entries come from."""

    include_builtin: bool = True
    tables: list[Path] = field(default_factory=list)
    properties: list[CompatibilityEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "include_builtin": self.include_builtin,
            "tables": [str(path) for path in self.tables],
            "properties": [entry.to_dict() for entry in self.properties],
        }


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    format: str = "human"
    severity: str = "warning"
    fail_on: str = "error"
    jobs: int = 1
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    rule_enable: list[str] | None = None
    rule_disable: list[str] = field(default_factory=list)
    matcher: MatcherConfig = field(default_factory=MatcherConfig)
    compatibility: CompatibilityConfig = field(default_factory=CompatibilityConfig)
    source: str | None = None

    @property
    def severity_level(self) -> Severity:
        return Severity(self.severity)

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "severity": self.severity,
            "fail_on": self.fail_on,
            "jobs": self.jobs,
            "include": list(self.include),
            "exclude": list(self.exclude),
            "rules": {
                "enable": list(self.rule_enable) if self.rule_enable is not None else None,
                "disable": list(self.rule_disable),
            },
            "matcher": self.matcher.to_dict(),
            "compatibility": self.compatibility.to_dict(),
            "source": self.source,
        }


def load_app_config(root: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or project-local files with precedence."""
    root = root.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (root / config_path)
        if not resolved.exists():
            raise ConfigurationError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved), base_dir=resolved.parent)

    for filename in CONFIG_FILENAMES:
        resolved = root / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved), base_dir=root)

    pyproject_path = root / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path), base_dir=root)

    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template users can customize."""
    return "\n".join(
        [
            'format = "human"',
            'severity = "warning"',
            'fail_on = "error"',
            "jobs = 4",
            'include = ["emails/**"]',
            'exclude = ["dist/**"]',
            "",
            "[rules]",
            '# enable = ["no-css-gap"]',
            "disable = []",
            "",
            "[matcher]",
            'style_attributes = ["style"]',
            'style_tags = ["css", "styled", "createGlobalStyle", "keyframes", "injectGlobal"]',
            'style_elements = ["style"]',
            "",
            "[compatibility]",
            "include_builtin = true",
            '# tables = ["compat/caniemail.toml"]',
            "",
            "[[compatibility.properties]]",
            'name = "border-radius"',
            "score = 80.5",
            'url = "https://www.caniemail.com/features/css-border-radius/"',
            "aliases = []",
            "",
        ]
    )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    if source_path.name == PYPROJECT_FILENAME:
        section = _find_pyproject_tool_section(loaded)
        return section if section is not None else {}

    tool_section = _find_pyproject_tool_section(loaded)
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str, base_dir: Path) -> AppConfig:
    rules_mapping = _as_table(mapping.get("rules"), "rules")
    matcher_mapping = _as_table(mapping.get("matcher"), "matcher")
    compatibility_mapping = _as_table(mapping.get("compatibility"), "compatibility")

    raw_format = mapping.get("format", "human")
    format_value = str(raw_format).lower()
    if format_value not in {"human", "json"}:
        format_value = "human"

    jobs = _as_int(mapping.get("jobs", 1), "jobs")
    if jobs <= 0:
        raise ConfigurationError("jobs must be > 0")

    return AppConfig(
        format=format_value,
        severity=_as_choice(mapping.get("severity", "warning"), {"warning", "error"}, "severity"),
        fail_on=_as_choice(
            mapping.get("fail_on", "error"), {"warning", "error", "never"}, "fail_on"
        ),
        jobs=jobs,
        include=_as_str_list(mapping.get("include")),
        exclude=_as_str_list(mapping.get("exclude")),
        rule_enable=_as_str_list_or_none(rules_mapping.get("enable")),
        rule_disable=_as_str_list(rules_mapping.get("disable")),
        matcher=_parse_matcher_config(matcher_mapping),
        compatibility=_parse_compatibility_config(
            compatibility_mapping, source=source, base_dir=base_dir
        ),
        source=source,
    )


def _parse_matcher_config(value: dict[str, Any]) -> MatcherConfig:
    defaults = MatcherConfig()
    return MatcherConfig(
        style_attributes=_as_str_list_or_default(
            value.get("style_attributes"), defaults.style_attributes
        ),
        style_tags=_as_str_list_or_default(value.get("style_tags"), defaults.style_tags),
        style_elements=_as_str_list_or_default(
            value.get("style_elements"), defaults.style_elements
        ),
    )


def _parse_compatibility_config(
    value: dict[str, Any], *, source: str, base_dir: Path
) -> CompatibilityConfig:
    tables: list[Path] = []
    for item in _as_str_list(value.get("tables")):
        path = Path(item)
        tables.append(path if path.is_absolute() else (base_dir / path))
    return CompatibilityConfig(
        include_builtin=_as_bool(
            value.get("include_builtin", True), "compatibility.include_builtin"
        ),
        tables=tables,
        properties=parse_entries(value.get("properties"), source=source),
    )


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"{field_name} must be a table/object")
    return value


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigurationError("Expected a list of strings")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ConfigurationError("Expected a list of strings")
        items.append(item)
    return items


def _as_str_list_or_none(value: Any) -> list[str] | None:
    if value is None:
        return None
    return _as_str_list(value)


def _as_str_list_or_default(value: Any, default: list[str]) -> list[str]:
    if value is None:
        return list(default)
    return _as_str_list(value)


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ConfigurationError(f"{field_name} must be one of: {choices}")
    return value


def _as_int(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ConfigurationError(f"{field_name} must be an integer")
    return raw


def _as_bool(raw: Any, field_name: str) -> bool:
    if not isinstance(raw, bool):
        raise ConfigurationError(f"{field_name} must be a boolean")
    return raw
