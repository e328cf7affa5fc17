"""Filesystem operations for generated source units.

The emitter never touches disk; this module places its ``(name, content)``
pairs under an output root. Writes are diff-stable: a unit whose file
already holds identical text is left untouched so timestamps and VCS status
only change for units that really changed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from cdpgen.infrastructure.emitter import SourceUnit


@dataclass
class WriteReport:
    """Outcome of :func:`write_units`, as output-relative unit names."""

    written: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)


def unit_path(output_dir: Path, name: str) -> Path:
    """Resolve a unit name below *output_dir*, rejecting escapes.

    Raises:
        ValueError: the name is absolute or climbs out of the output root.
    """
    rel = PurePosixPath(name)
    if rel.is_absolute() or ".." in rel.parts:
        msg = f"Unit name escapes the output directory: {name!r}"
        raise ValueError(msg)
    return output_dir.joinpath(*rel.parts)


def write_units(output_dir: Path, units: Iterable[SourceUnit]) -> WriteReport:
    """Write every unit under *output_dir*, creating parent directories."""
    report = WriteReport()
    for unit in units:
        path = unit_path(output_dir, unit.name)
        if path.is_file() and path.read_text(encoding="utf-8") == unit.content:
            report.unchanged.append(unit.name)
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(unit.content, encoding="utf-8")
        report.written.append(unit.name)
    return report
