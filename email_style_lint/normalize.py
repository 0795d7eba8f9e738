"""CSS property name canonicalization."""

from __future__ import annotations

import re

PROPERTY_TOKEN_RE = re.compile(r"-{0,2}[A-Za-z_][-\w]*")
_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

# React spells vendor prefixes as `WebkitFoo`, `MozFoo` or `msFoo`.
VENDOR_PREFIXES = {"webkit", "moz", "ms"}


def normalize_property(token: str) -> str:
    """Return the canonical spelling of a declared property token.

    Hyphenated and camel-cased spellings of the same property share one
    canonical, lower-case hyphenated token. Custom properties keep their
    case, and anything that is not shaped like a property is returned
    verbatim.
    """
    stripped = token.strip()
    if not PROPERTY_TOKEN_RE.fullmatch(stripped):
        return token
    if stripped.startswith("--"):
        return stripped
    if "-" in stripped or stripped.islower():
        return stripped.lower()

    hyphenated = _CAMEL_BOUNDARY_RE.sub("-", stripped).lower()
    prefix, sep, _rest = hyphenated.partition("-")
    if sep and prefix in VENDOR_PREFIXES:
        return f"-{hyphenated}"
    return hyphenated

