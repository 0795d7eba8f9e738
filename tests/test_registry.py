"""Rule registry and compatibility table tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from email_style_lint.compat import (
    CompatibilityEntry,
    collect_table,
    load_builtin_table,
    load_table_file,
)
from email_style_lint.errors import ConfigurationError
from email_style_lint.rules import (
    RuleRegistry,
    Severity,
    build_registry,
    default_registry,
    list_rule_info,
    select_rules,
)
from tests.helpers_rules import gap_rule


def test_builtin_table_registers_gap_and_background_clip() -> None:
    registry = default_registry()
    assert registry.rule_ids() == ["no-css-gap", "no-css-background-clip"]
    assert registry.sealed
    gap = registry.get("no-css-gap")
    assert gap is not None
    assert gap.spec.compatibility_score == 48.75
    assert gap.spec.reference_url == "https://www.caniemail.com/features/css-gap/"


def test_builtin_table_entries_keep_source_label() -> None:
    entries = load_builtin_table()
    assert [entry.name for entry in entries] == ["gap", "background-clip"]
    assert all(entry.source.startswith("builtin:") for entry in entries)


def test_duplicate_identifier_is_rejected() -> None:
    registry = RuleRegistry()
    registry.register(gap_rule())
    with pytest.raises(ConfigurationError, match="Duplicate rule id no-css-gap"):
        registry.register(gap_rule())
    assert len(registry) == 1


def test_sealed_registry_is_append_only() -> None:
    registry = RuleRegistry().seal()
    with pytest.raises(ConfigurationError, match="sealed"):
        registry.register(gap_rule())


def test_bad_entries_do_not_block_other_registrations() -> None:
    entries = [
        CompatibilityEntry(name="gap", score=48.75, url="https://example.com/gap"),
        CompatibilityEntry(name="", score=10, url="https://example.com/empty"),
        CompatibilityEntry(name="rowGap", score=140, url="https://example.com/row-gap"),
        CompatibilityEntry(name="Gap", score=50, url="https://example.com/dup"),
        CompatibilityEntry(name="border-radius", score=80.5, url="https://example.com/br"),
        CompatibilityEntry(name="color", score=99, url="nope", source="custom.toml"),
    ]
    build = build_registry(entries)
    assert build.registry.rule_ids() == ["no-css-gap", "no-css-border-radius"]
    assert not build.ok
    assert len(build.errors) == 4
    assert any("Duplicate rule id no-css-gap" in str(error) for error in build.errors)
    assert str(build.errors[-1]).startswith("custom.toml: ")


def test_build_registry_applies_global_severity() -> None:
    entries = [CompatibilityEntry(name="gap", score=48.75, url="https://example.com/gap")]
    build = build_registry(entries, severity=Severity.ERROR)
    assert [rule.severity for rule in build.registry] == [Severity.ERROR]


def test_select_rules_applies_enable_and_disable() -> None:
    registry = default_registry()
    assert [rule.rule_id for rule in select_rules(registry)] == [
        "no-css-gap",
        "no-css-background-clip",
    ]
    assert [
        rule.rule_id for rule in select_rules(registry, disabled_rule_ids=["no-css-gap"])
    ] == ["no-css-background-clip"]
    assert [
        rule.rule_id
        for rule in select_rules(
            registry, enabled_rule_ids=["no-css-background-clip", "no-css-background-clip"]
        )
    ] == ["no-css-background-clip"]


def test_select_rules_rejects_unknown_ids() -> None:
    with pytest.raises(ConfigurationError, match="Unknown rule ids: no-css-float"):
        select_rules(default_registry(), enabled_rule_ids=["no-css-float"])


def test_list_rule_info_reports_spec_fields() -> None:
    info = list_rule_info(default_registry())
    assert info[1].rule_id == "no-css-background-clip"
    assert info[1].property_name == "background-clip"
    assert info[1].compatibility_score == pytest.approx(63.829787234042556)
    assert info[1].severity == "warning"


def test_load_table_file_and_collect_order(tmp_path: Path) -> None:
    table_path = tmp_path / "compat.toml"
    table_path.write_text(
        "\n".join(
            [
                "[[property]]",
                'name = "border-radius"',
                "score = 80.5",
                'url = "https://example.com/border-radius"',
                'aliases = ["borderTopLeftRadius"]',
            ]
        ),
        encoding="utf-8",
    )
    entries = load_table_file(table_path)
    assert entries[0].aliases == ["borderTopLeftRadius"]
    assert entries[0].source == str(table_path)

    extra = CompatibilityEntry(name="float", score=70, url="https://example.com/float")
    table = collect_table(table_paths=[table_path], extra_entries=[extra])
    assert [entry.name for entry in table.entries] == [
        "gap",
        "background-clip",
        "border-radius",
        "float",
    ]
    only_file = collect_table(include_builtin=False, table_paths=[table_path])
    assert len(only_file) == 1


def test_load_table_file_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="does not exist"):
        load_table_file(tmp_path / "missing.toml")

    broken = tmp_path / "broken.toml"
    broken.write_text("[[property]\nname =", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Invalid TOML"):
        load_table_file(broken)

    wrong_shape = tmp_path / "shape.toml"
    wrong_shape.write_text('property = "gap"\n', encoding="utf-8")
    with pytest.raises(ConfigurationError, match="array of tables"):
        load_table_file(wrong_shape)
