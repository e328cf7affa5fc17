"""Identifier conversion between protocol names and Python names.

Pure functions. Protocol names are lowerCamelCase for members and
UpperCamelCase for types; generated Python uses snake_case members,
UPPER_SNAKE enum members and keeps type names as-is.
"""

from __future__ import annotations

import keyword
import re

# Splits "includeCommandLineAPI" into include / Command / Line / API.
_WORD_PATTERN = re.compile(r"[A-Z]+(?=[A-Z][a-z]|\d|\b|_)|[A-Z]?[a-z]+|[A-Z]+|\d+")
_INVALID_CHARS = re.compile(r"[^0-9a-zA-Z_]")


def snake_case(name: str) -> str:
    """Convert a protocol member name to a safe snake_case Python identifier.

    ``setBreakpointByUrl`` becomes ``set_breakpoint_by_url``; keywords get a
    trailing underscore (``from`` -> ``from_``).
    """
    words = _WORD_PATTERN.findall(_INVALID_CHARS.sub("_", name))
    result = "_".join(w.lower() for w in words) or "value"
    if result[0].isdigit():
        result = f"_{result}"
    if keyword.iskeyword(result) or keyword.issoftkeyword(result):
        result = f"{result}_"
    return result


def upper_first(name: str) -> str:
    """``setBreakpoint`` -> ``SetBreakpoint``."""
    return name[:1].upper() + name[1:]


def enum_member(literal: str) -> str:
    """Python member name for an enum literal (``camelCase-x`` -> ``CAMEL_CASE_X``)."""
    return snake_case(literal).rstrip("_").upper() or "VALUE"


def unique_names(names: list[str]) -> list[str]:
    """Disambiguate colliding names with a numeric suffix, preserving order."""
    seen: dict[str, int] = {}
    result: list[str] = []
    for name in names:
        count = seen.get(name, 0)
        seen[name] = count + 1
        result.append(name if count == 0 else f"{name}_{count + 1}")
    return result
