"""Locating and reading ``cdpgen.toml``.

The file is found by walking up from the working directory, the way git
finds ``.git/``, unless ``CDPGEN_CONFIG`` names it. Paths inside the file
are relative to the directory that holds it.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from cdpgen.config.models import CdpgenConfig

CONFIG_FILENAME = "cdpgen.toml"
CONFIG_ENV_VAR = "CDPGEN_CONFIG"


class ConfigFileError(Exception):
    """The discovered or explicit cdpgen.toml cannot be used."""


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for cdpgen.toml.

    ``CDPGEN_CONFIG`` wins when set; if it names a missing file there is
    no config at all, rather than a silently different one.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_config(path: Path) -> dict[str, Any]:
    """Parse *path* and check it only holds ``cdpgen.toml`` sections.

    Raises:
        ConfigFileError: the file is not valid TOML or has an unknown
            top-level table (a misspelt ``[generate]`` would otherwise be
            ignored).
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ConfigFileError(msg) from exc

    unknown = sorted(set(data) - set(CdpgenConfig.model_fields))
    if unknown:
        known = ", ".join(f"[{name}]" for name in CdpgenConfig.model_fields)
        msg = f"Unknown section(s) in {path}: {', '.join(unknown)} (expected {known})"
        raise ConfigFileError(msg)
    return data


def load_config(path: Path | None = None, cwd: Path | None = None) -> CdpgenConfig:
    """The validated file at *path*, or the one discovered from *cwd*.

    Without any file the code defaults apply.
    """
    if path is None:
        path = find_config(cwd)
    if path is None:
        return CdpgenConfig()
    return CdpgenConfig.model_validate(read_config(path))


def config_root(path: Path | None) -> Path:
    """Directory that ``[input] paths`` and ``[generate] output`` are relative to."""
    return path.resolve().parent if path is not None else Path.cwd()
