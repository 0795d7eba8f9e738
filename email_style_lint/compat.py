"""Compatibility table loading."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

from email_style_lint.errors import ConfigurationError

logger = logging.getLogger(__name__)

BUILTIN_TABLE = "compatibility.toml"


@dataclass(frozen=True, slots=True)
class CompatibilityEntry:
    """One unvalidated row of a compatibility table."""

    name: Any
    score: Any
    url: Any
    aliases: Any = ()
    source: str = "<inline>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "score": self.score,
            "url": self.url,
            "aliases": list(self.aliases) if isinstance(self.aliases, (list, tuple)) else [],
            "source": self.source,
        }


@dataclass(slots=True)
class CompatibilityTable:
    """Ordered compatibility entries gathered from one or more sources."""

    entries: list[CompatibilityEntry] = field(default_factory=list)

    def extend(self, entries: list[CompatibilityEntry]) -> None:
        self.entries.extend(entries)

    def __len__(self) -> int:
        return len(self.entries)


def load_builtin_table() -> list[CompatibilityEntry]:
    """Return the entries shipped with the package."""
    resource = resources.files("email_style_lint") / "data" / BUILTIN_TABLE
    with resource.open("rb") as file_obj:
        try:
            loaded = tomllib.load(file_obj)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(f"Invalid builtin compatibility table: {exc}") from exc
    return parse_entries(loaded.get("property"), source=f"builtin:{BUILTIN_TABLE}")


def load_table_file(path: Path) -> list[CompatibilityEntry]:
    """Load a user supplied compatibility table."""
    if not path.exists():
        raise ConfigurationError(f"Compatibility table does not exist: {path}")
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc
    entries = parse_entries(loaded.get("property"), source=str(path))
    logger.debug("loaded %d compatibility entries from %s", len(entries), path)
    return entries


def collect_table(
    *,
    include_builtin: bool = True,
    table_paths: list[Path] | None = None,
    extra_entries: list[CompatibilityEntry] | None = None,
) -> CompatibilityTable:
    """Gather builtin, file and inline entries in that order."""
    table = CompatibilityTable()
    if include_builtin:
        table.extend(load_builtin_table())
    for path in table_paths or []:
        table.extend(load_table_file(path))
    table.extend(list(extra_entries or []))
    return table


def parse_entries(value: Any, *, source: str) -> list[CompatibilityEntry]:
    """Turn a TOML ``[[property]]`` array into entries without validating values."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigurationError(f"{source}: `property` must be an array of tables")
    entries: list[CompatibilityEntry] = []
    for item in value:
        if not isinstance(item, dict):
            raise ConfigurationError(f"{source}: `property` must be an array of tables")
        entries.append(
            CompatibilityEntry(
                name=item.get("name"),
                score=item.get("score"),
                url=item.get("url"),
                aliases=item.get("aliases", ()),
                source=source,
            )
        )
    return entries
