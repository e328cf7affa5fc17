"""Definition model — domains, commands, events, types and properties.

Plain frozen dataclasses built once per generation run by the loader.
Ordered collections are tuples so a loaded schema cannot be mutated by any
later pipeline stage. ``experimental``/``deprecated`` are carried on every
entity and only ever read by the emitter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

PRIMITIVE_TAGS = frozenset({"string", "integer", "number", "boolean", "object", "any", "binary"})


class RefKind(StrEnum):
    """Shape of a type reference as written in the schema."""

    PRIMITIVE = "primitive"
    REF = "ref"
    ARRAY = "array"
    ENUM = "enum"
    OBJECT = "object"


class TypeKind(StrEnum):
    """Kinds of named type declarations."""

    PRIMITIVE = "primitive"
    ENUM = "enum"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True)
class TypeRef:
    """An unresolved type reference.

    ``name`` holds the primitive tag for PRIMITIVE and the ``$ref`` text
    (``Name`` or ``Domain.Name``) for REF. ARRAY carries ``items``, ENUM its
    literals and OBJECT its inline properties.
    """

    kind: RefKind
    name: str | None = None
    items: TypeRef | None = None
    enum: tuple[str, ...] = ()
    properties: tuple[Property, ...] = ()

    @property
    def is_qualified(self) -> bool:
        return self.kind is RefKind.REF and self.name is not None and "." in self.name


@dataclass(frozen=True)
class Property:
    """A named, typed field: command parameter, return value, event or object field."""

    name: str
    type: TypeRef
    optional: bool = False
    description: str = ""
    experimental: bool = False
    deprecated: bool = False


@dataclass(frozen=True)
class TypeDef:
    """A named type declaration inside a domain."""

    name: str
    kind: TypeKind
    body: TypeRef
    description: str = ""
    experimental: bool = False
    deprecated: bool = False

    @property
    def properties(self) -> tuple[Property, ...]:
        return self.body.properties


@dataclass(frozen=True)
class Command:
    """A request/response operation; ``redirect`` names the domain that now owns it."""

    name: str
    description: str = ""
    parameters: tuple[Property, ...] = ()
    returns: tuple[Property, ...] = ()
    experimental: bool = False
    deprecated: bool = False
    redirect: str | None = None
    handlers: tuple[str, ...] = ()


@dataclass(frozen=True)
class Event:
    """An asynchronous notification with an ordered payload."""

    name: str
    description: str = ""
    parameters: tuple[Property, ...] = ()
    experimental: bool = False
    deprecated: bool = False


@dataclass(frozen=True)
class Domain:
    name: str
    description: str = ""
    commands: tuple[Command, ...] = ()
    events: tuple[Event, ...] = ()
    types: tuple[TypeDef, ...] = ()
    experimental: bool = False
    deprecated: bool = False
    dependencies: tuple[str, ...] = ()

    def find_command(self, name: str) -> Command | None:
        for command in self.commands:
            if command.name == name:
                return command
        return None


@dataclass(frozen=True)
class ProtocolVersion:
    major: str
    minor: str

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


@dataclass(frozen=True)
class ProtocolSchema:
    """The whole loaded protocol: domains in declaration order."""

    domains: tuple[Domain, ...] = ()
    version: ProtocolVersion | None = None
    _by_name: dict[str, Domain] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Frozen dataclass: populate the name index through object.__setattr__.
        object.__setattr__(self, "_by_name", {d.name: d for d in self.domains})

    def domain(self, name: str) -> Domain | None:
        return self._by_name.get(name)

    @property
    def domain_names(self) -> list[str]:
        return [d.name for d in self.domains]
