"""Schema error taxonomy.

Every error is fatal for a generation run. Errors carry the path of the
offending schema element (domain, owner, property) so the CLI can point at
the exact location without re-parsing.
"""

from __future__ import annotations

from typing import Any


class SchemaError(Exception):
    """Base class for all schema validation failures."""

    code = "SCHEMA_ERROR"

    def __init__(
        self,
        message: str,
        *,
        path: tuple[str, ...] = (),
        source: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.source = source

    @property
    def location(self) -> str:
        """Dotted location of the offending element (``Domain.command.param``)."""
        return ".".join(self.path)

    def to_detail(self) -> dict[str, Any]:
        detail: dict[str, Any] = {}
        if self.path:
            detail["path"] = self.location
        if self.source:
            detail["source"] = self.source
        return detail

    def __str__(self) -> str:
        text = f"{self.location}: {self.message}" if self.path else self.message
        return f"{self.source}: {text}" if self.source else text


class MalformedSchema(SchemaError):
    """Structural parse failure: missing fields, duplicate names, bad references."""

    code = "MALFORMED_SCHEMA"


class UnresolvedTypeReference(SchemaError):
    """A type reference that binds to neither a TypeDef nor a primitive."""

    code = "UNRESOLVED_TYPE_REFERENCE"

    def __init__(
        self,
        reference: str,
        *,
        domain: str,
        owner: str | None = None,
        prop: str | None = None,
    ) -> None:
        path = tuple(p for p in (domain, owner, prop) if p)
        super().__init__(f"Unresolved type reference '{reference}'", path=path)
        self.reference = reference
        self.domain = domain
        self.owner = owner
        self.prop = prop

    def to_detail(self) -> dict[str, Any]:
        detail = super().to_detail()
        detail["reference"] = self.reference
        detail["domain"] = self.domain
        if self.owner:
            detail["owner"] = self.owner
        if self.prop:
            detail["property"] = self.prop
        return detail


class InvalidRedirect(SchemaError):
    """A redirect whose target is missing, which re-declares a shape, or which cycles."""

    code = "INVALID_REDIRECT"
