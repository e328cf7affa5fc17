"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, cdpgen.toml only contains
overrides. A typical project needs only ``[input] paths``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# Dotted Python package name, e.g. ``devtools.cdp``.
PACKAGE_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$"

# --- cdpgen.toml sections ---


class InputConfig(BaseModel):
    """[input] section."""

    model_config = {"frozen": True}

    # Schema documents, relative to the directory holding cdpgen.toml.
    paths: list[str] = Field(default_factory=list)


class GenerateConfig(BaseModel):
    """[generate] section."""

    model_config = {"frozen": True}

    package: str = Field(default="cdp", pattern=PACKAGE_PATTERN)
    output: str = "generated"
    support_module: str = "cdp_runtime.support"
    workers: int = Field(default=1, ge=1)
    domains: list[str] = Field(default_factory=list)
    templates: str | None = None


class CdpgenConfig(BaseModel):
    """Root config model — composes all sections."""

    model_config = {"frozen": True}

    input: InputConfig = Field(default_factory=InputConfig)
    generate: GenerateConfig = Field(default_factory=GenerateConfig)
