"""Helpers for building rules and parsed sources in tests."""

from __future__ import annotations

from textwrap import dedent

from email_style_lint.rules.factory import StylePropertyRule, create_rule
from email_style_lint.source import SourceFile, parse_source

GAP_URL = "https://example.com/gap"
BACKGROUND_CLIP_URL = "https://www.caniemail.com/features/css-background-clip/"


def parse_tsx(text: str, path: str = "Email.tsx") -> SourceFile:
    """Parse dedented TSX text."""
    return parse_source(dedent(text).lstrip("\n"), path=path)


def gap_rule(**kwargs: object) -> StylePropertyRule:
    return create_rule("gap", 48.75, GAP_URL, **kwargs)  # type: ignore[arg-type]


def background_clip_rule(**kwargs: object) -> StylePropertyRule:
    return create_rule(
        "background-clip",
        63.829787234042556,
        BACKGROUND_CLIP_URL,
        **kwargs,  # type: ignore[arg-type]
    )
