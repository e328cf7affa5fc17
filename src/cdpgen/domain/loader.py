"""Schema loader — raw protocol records to an unresolved definition model.

Purely structural: checks required fields, reference syntax and name
uniqueness inside each scope. Cross-domain binding is the resolver's job.

Accepted record shape (the DevTools protocol JSON layout)::

    {"domain": "Debugger", "dependencies": ["Runtime"],
     "types": [{"id": "Location", "type": "object", "properties": [...]}],
     "commands": [{"name": "enable", "parameters": [...], "returns": [...]}],
     "events": [{"name": "paused", "parameters": [...]}]}
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from cdpgen.domain.errors import MalformedSchema
from cdpgen.domain.model import (
    PRIMITIVE_TAGS,
    Command,
    Domain,
    Event,
    Property,
    ProtocolSchema,
    ProtocolVersion,
    RefKind,
    TypeDef,
    TypeKind,
    TypeRef,
)

# "Name" or "Domain.Name"
_REF_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")
_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_SCOPES = {"parameters": "parameter", "returns": "return value", "properties": "property"}


def parse_document(data: Any) -> ProtocolSchema:
    """Parse one deserialized schema document.

    Accepts ``{"version": {...}, "domains": [...]}`` or a bare list of domain
    records.
    """
    if isinstance(data, Mapping):
        if "domains" not in data:
            raise MalformedSchema("Schema document has no 'domains' list")
        return load_schema(data["domains"], version=data.get("version"))
    if isinstance(data, Sequence) and not isinstance(data, str):
        return load_schema(data)
    raise MalformedSchema(f"Schema document must be a mapping or a list, got {type(data).__name__}")


def load_schema(
    records: Iterable[Any],
    *,
    version: Mapping[str, Any] | None = None,
) -> ProtocolSchema:
    """Build the unresolved model from a sequence of domain records."""
    if isinstance(records, (str, bytes, Mapping)) or not isinstance(records, Iterable):
        raise MalformedSchema("'domains' must be a list of domain records")
    domains = tuple(_parse_domain(record, index) for index, record in enumerate(records))
    _check_unique([d.name for d in domains], scope="domain", path=())
    return ProtocolSchema(domains=domains, version=_parse_version(version))


def merge_schemas(schemas: Sequence[ProtocolSchema]) -> ProtocolSchema:
    """Concatenate documents in order; a domain may only be declared once."""
    domains = tuple(d for schema in schemas for d in schema.domains)
    _check_unique([d.name for d in domains], scope="domain", path=())
    version = next((s.version for s in schemas if s.version is not None), None)
    return ProtocolSchema(domains=domains, version=version)


# ── Records ──────────────────────────────────────────────────────────


def _parse_version(raw: Mapping[str, Any] | None) -> ProtocolVersion | None:
    if raw is None:
        return None
    if not isinstance(raw, Mapping) or "major" not in raw or "minor" not in raw:
        raise MalformedSchema("'version' must have 'major' and 'minor'")
    return ProtocolVersion(major=str(raw["major"]), minor=str(raw["minor"]))


def _parse_domain(record: Any, index: int) -> Domain:
    if not isinstance(record, Mapping):
        raise MalformedSchema(f"Domain record #{index} is not a mapping")
    name = record.get("domain")
    if not name:
        raise MalformedSchema(f"Domain record #{index} has no 'domain' name")
    name = _identifier(name, path=(str(name),))
    path = (name,)

    types = tuple(_parse_typedef(r, path) for r in _records(record, "types", path))
    commands = tuple(_parse_command(r, path) for r in _records(record, "commands", path))
    events = tuple(_parse_event(r, path) for r in _records(record, "events", path))

    _check_unique([t.name for t in types], scope="type", path=path)
    _check_unique([c.name for c in commands], scope="command", path=path)
    _check_unique([e.name for e in events], scope="event", path=path)

    return Domain(
        name=name,
        description=str(record.get("description", "")),
        commands=commands,
        events=events,
        types=types,
        experimental=_flag(record, "experimental", path),
        deprecated=_flag(record, "deprecated", path),
        dependencies=_strings(record, "dependencies", path),
    )


def _parse_typedef(record: Mapping[str, Any], path: tuple[str, ...]) -> TypeDef:
    name = _identifier(record.get("id"), path=path, what="type id")
    type_path = (*path, name)
    if "$ref" in record:
        raise MalformedSchema("Type declarations cannot be bare '$ref' aliases", path=type_path)
    body = _parse_type(record, type_path)
    if body.kind is RefKind.ENUM:
        kind = TypeKind.ENUM
    elif body.kind is RefKind.ARRAY:
        kind = TypeKind.ARRAY
    elif body.kind is RefKind.OBJECT:
        kind = TypeKind.OBJECT
    else:
        kind = TypeKind.PRIMITIVE
    return TypeDef(
        name=name,
        kind=kind,
        body=body,
        description=str(record.get("description", "")),
        experimental=_flag(record, "experimental", type_path),
        deprecated=_flag(record, "deprecated", type_path),
    )


def _parse_command(record: Mapping[str, Any], path: tuple[str, ...]) -> Command:
    name = _identifier(record.get("name"), path=path, what="command name")
    cmd_path = (*path, name)
    parameters = _parse_properties(record, "parameters", cmd_path)
    returns = _parse_properties(record, "returns", cmd_path)
    redirect = record.get("redirect")
    if redirect is not None:
        redirect = _identifier(redirect, path=cmd_path, what="redirect domain")
    return Command(
        name=name,
        description=str(record.get("description", "")),
        parameters=parameters,
        returns=returns,
        experimental=_flag(record, "experimental", cmd_path),
        deprecated=_flag(record, "deprecated", cmd_path),
        redirect=redirect,
        handlers=_strings(record, "handlers", cmd_path),
    )


def _parse_event(record: Mapping[str, Any], path: tuple[str, ...]) -> Event:
    name = _identifier(record.get("name"), path=path, what="event name")
    event_path = (*path, name)
    return Event(
        name=name,
        description=str(record.get("description", "")),
        parameters=_parse_properties(record, "parameters", event_path),
        experimental=_flag(record, "experimental", event_path),
        deprecated=_flag(record, "deprecated", event_path),
    )


def _parse_properties(
    record: Mapping[str, Any], key: str, path: tuple[str, ...]
) -> tuple[Property, ...]:
    props = tuple(_parse_property(r, path) for r in _records(record, key, path))
    _check_unique([p.name for p in props], scope=_SCOPES.get(key, key), path=path)
    return props


def _parse_property(record: Mapping[str, Any], path: tuple[str, ...]) -> Property:
    name = _identifier(record.get("name"), path=path, what="property name")
    prop_path = (*path, name)
    return Property(
        name=name,
        type=_parse_type(record, prop_path),
        optional=_flag(record, "optional", prop_path),
        description=str(record.get("description", "")),
        experimental=_flag(record, "experimental", prop_path),
        deprecated=_flag(record, "deprecated", prop_path),
    )


# ── Type references ──────────────────────────────────────────────────


def _parse_type(record: Mapping[str, Any], path: tuple[str, ...]) -> TypeRef:
    """Parse the type portion of a property, array item or type declaration."""
    ref = record.get("$ref")
    tag = record.get("type")
    if ref is not None and tag is not None:
        raise MalformedSchema("Both '$ref' and 'type' given", path=path)
    if ref is not None:
        if not isinstance(ref, str) or not _REF_PATTERN.match(ref):
            raise MalformedSchema(f"Invalid type reference {ref!r}", path=path)
        return TypeRef(kind=RefKind.REF, name=ref)
    if tag is None:
        raise MalformedSchema("Missing 'type' or '$ref'", path=path)

    if tag == "array":
        items = record.get("items")
        if not isinstance(items, Mapping):
            raise MalformedSchema("Array type without 'items'", path=path)
        return TypeRef(kind=RefKind.ARRAY, items=_parse_type(items, (*path, "items")))

    if tag not in PRIMITIVE_TAGS:
        raise MalformedSchema(f"Unknown type tag {tag!r}", path=path)

    if "enum" in record:
        values = record["enum"]
        if tag != "string" or not isinstance(values, list) or not values:
            raise MalformedSchema("Enum must be a non-empty list of strings", path=path)
        literals = [str(v) for v in values]
        _check_unique(literals, scope="enum value", path=path)
        return TypeRef(kind=RefKind.ENUM, name=tag, enum=tuple(literals))

    if tag == "object" and "properties" in record:
        props = _parse_properties(record, "properties", path)
        return TypeRef(kind=RefKind.OBJECT, name=tag, properties=props)

    return TypeRef(kind=RefKind.PRIMITIVE, name=tag)


# ── Helpers ──────────────────────────────────────────────────────────


def _records(record: Mapping[str, Any], key: str, path: tuple[str, ...]) -> list[Mapping[str, Any]]:
    raw = record.get(key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise MalformedSchema(f"'{key}' must be a list", path=path)
    for item in raw:
        if not isinstance(item, Mapping):
            raise MalformedSchema(f"'{key}' entries must be mappings", path=path)
    return raw


def _identifier(value: Any, *, path: tuple[str, ...], what: str = "name") -> str:
    if not value:
        raise MalformedSchema(f"Missing {what}", path=path)
    if not isinstance(value, str) or not _NAME_PATTERN.match(value):
        raise MalformedSchema(f"Invalid {what} {value!r}", path=path)
    return value


def _check_unique(names: list[str], *, scope: str, path: tuple[str, ...]) -> None:
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise MalformedSchema(f"Duplicate {scope} '{name}'", path=(*path, name))
        seen.add(name)


def _flag(record: Mapping[str, Any], key: str, path: tuple[str, ...]) -> bool:
    value = record.get(key, False)
    if not isinstance(value, bool):
        raise MalformedSchema(f"'{key}' must be true or false, got {value!r}", path=path)
    return value


def _strings(record: Mapping[str, Any], key: str, path: tuple[str, ...]) -> tuple[str, ...]:
    raw = record.get(key)
    if raw is None:
        return ()
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise MalformedSchema(f"'{key}' must be a list of strings", path=path)
    return tuple(raw)
