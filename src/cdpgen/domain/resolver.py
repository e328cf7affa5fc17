"""Type resolver — binds every type reference to a TypeDef or primitive.

Named references never expand in place. They resolve to a :class:`NamedType`
handle, a qualified key (``Domain.Name``) into the shared type table held by
:class:`ResolvedSchema`. Each TypeDef body is resolved exactly once; a stack
of in-progress keys detects re-entry, so self-referential and mutually
referential object graphs terminate. Once every body is resolved, the
strongly connected components of the type reference graph give
``ResolvedSchema.cycles``.

Inline enums and inline objects are promoted to named types of the declaring
domain so the emitter only ever deals with named shapes.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TypeAlias

import networkx as nx

from cdpgen.domain.errors import InvalidRedirect, UnresolvedTypeReference
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
from cdpgen.domain.naming import upper_first

# ── Resolved shapes ──────────────────────────────────────────────────


@dataclass(frozen=True)
class PrimitiveType:
    tag: str


@dataclass(frozen=True)
class ArrayType:
    items: ResolvedType


@dataclass(frozen=True)
class NamedType:
    """Reference handle: a key into ``ResolvedSchema.types``."""

    key: str

    @property
    def domain(self) -> str:
        return self.key.split(".", 1)[0]

    @property
    def name(self) -> str:
        return self.key.split(".", 1)[1]


ResolvedType: TypeAlias = PrimitiveType | ArrayType | NamedType


@dataclass(frozen=True)
class ResolvedProperty:
    name: str
    type: ResolvedType
    optional: bool = False
    description: str = ""
    experimental: bool = False
    deprecated: bool = False


@dataclass(frozen=True)
class ResolvedTypeDef:
    """A named type after resolution.

    OBJECT kinds carry ``fields``, ENUM kinds ``values`` and ARRAY/PRIMITIVE
    kinds their aliased ``target``. ``synthesized`` marks types promoted from
    an inline enum or object.
    """

    domain: str
    name: str
    kind: TypeKind
    description: str = ""
    fields: tuple[ResolvedProperty, ...] = ()
    values: tuple[str, ...] = ()
    target: ResolvedType | None = None
    experimental: bool = False
    deprecated: bool = False
    synthesized: bool = False

    @property
    def key(self) -> str:
        return f"{self.domain}.{self.name}"


@dataclass(frozen=True)
class ResolvedCommand:
    """A command with its effective shape.

    For a redirect the parameters and returns are the final target's, and
    ``redirect_target`` names that ``(domain, command)``.
    """

    domain: str
    name: str
    description: str = ""
    parameters: tuple[ResolvedProperty, ...] = ()
    returns: tuple[ResolvedProperty, ...] = ()
    experimental: bool = False
    deprecated: bool = False
    redirect_target: tuple[str, str] | None = None
    handlers: tuple[str, ...] = ()

    @property
    def is_redirect(self) -> bool:
        return self.redirect_target is not None


@dataclass(frozen=True)
class ResolvedEvent:
    domain: str
    name: str
    description: str = ""
    parameters: tuple[ResolvedProperty, ...] = ()
    experimental: bool = False
    deprecated: bool = False


@dataclass(frozen=True)
class ResolvedDomain:
    name: str
    description: str = ""
    commands: tuple[ResolvedCommand, ...] = ()
    events: tuple[ResolvedEvent, ...] = ()
    types: tuple[str, ...] = ()  # keys: declared order, then synthesized
    experimental: bool = False
    deprecated: bool = False
    dependencies: tuple[str, ...] = ()

    def command(self, name: str) -> ResolvedCommand | None:
        for command in self.commands:
            if command.name == name:
                return command
        return None


@dataclass(frozen=True)
class ResolvedSchema:
    """Immutable output of resolution, shared read-only by planner and emitter."""

    domains: tuple[ResolvedDomain, ...]
    types: Mapping[str, ResolvedTypeDef]
    cycles: frozenset[str] = frozenset()
    version: ProtocolVersion | None = None

    def lookup(self, handle: NamedType) -> ResolvedTypeDef:
        return self.types[handle.key]

    def domain(self, name: str) -> ResolvedDomain | None:
        for domain in self.domains:
            if domain.name == name:
                return domain
        return None


def iter_named(rtype: ResolvedType) -> Iterator[NamedType]:
    """Yield every named handle mentioned by *rtype* (without following it)."""
    if isinstance(rtype, NamedType):
        yield rtype
    elif isinstance(rtype, ArrayType):
        yield from iter_named(rtype.items)


def resolve_schema(schema: ProtocolSchema) -> ResolvedSchema:
    """Resolve every reference in *schema*.

    Raises:
        UnresolvedTypeReference: a reference binds to nothing.
        InvalidRedirect: a redirect target is missing, re-declares a shape,
            or the redirect chain cycles.
    """
    return _Resolver(schema).run()


# ── Implementation ───────────────────────────────────────────────────


@dataclass(frozen=True)
class _Site:
    """Where a reference is written, for diagnostics and synthesized names."""

    domain: str
    owner: str
    prop: str | None = None


class _Resolver:
    def __init__(self, schema: ProtocolSchema) -> None:
        self._schema = schema
        # Single pass over all domains: qualified name -> declaration.
        self._index: dict[str, TypeDef] = {
            f"{d.name}.{t.name}": t for d in schema.domains for t in d.types
        }
        self._resolved: dict[str, ResolvedTypeDef] = {}
        self._stack: list[str] = []
        self._taken: dict[str, set[str]] = {
            d.name: {t.name for t in d.types} for d in schema.domains
        }
        self._synthesized: dict[str, list[str]] = {d.name: [] for d in schema.domains}

    def run(self) -> ResolvedSchema:
        for domain in self._schema.domains:
            for typedef in domain.types:
                self._resolve_typedef(f"{domain.name}.{typedef.name}")

        commands: dict[tuple[str, str], ResolvedCommand] = {}
        events: dict[str, tuple[ResolvedEvent, ...]] = {}
        for domain in self._schema.domains:
            for command in domain.commands:
                if command.redirect is None:
                    commands[(domain.name, command.name)] = self._resolve_command(domain, command)
            events[domain.name] = tuple(self._resolve_event(domain, e) for e in domain.events)

        for domain in self._schema.domains:
            for command in domain.commands:
                if command.redirect is not None:
                    target = self._redirect_target(domain, command)
                    commands[(domain.name, command.name)] = _forwarding(
                        domain, command, commands[target]
                    )

        domains = tuple(
            ResolvedDomain(
                name=d.name,
                description=d.description,
                commands=tuple(commands[(d.name, c.name)] for c in d.commands),
                events=events[d.name],
                types=(
                    *(f"{d.name}.{t.name}" for t in d.types),
                    *self._synthesized[d.name],
                ),
                experimental=d.experimental,
                deprecated=d.deprecated,
                dependencies=d.dependencies,
            )
            for d in self._schema.domains
        )
        ordered = {key: self._resolved[key] for d in domains for key in d.types}
        return ResolvedSchema(
            domains=domains,
            types=MappingProxyType(ordered),
            cycles=_type_cycles(ordered),
            version=self._schema.version,
        )

    # -- Types --

    def _resolve_typedef(self, key: str) -> None:
        if key in self._resolved:
            return
        if key in self._stack:
            # Re-entry: the caller keeps a handle.
            return

        domain, name = key.split(".", 1)
        typedef = self._index[key]
        site = _Site(domain=domain, owner=name)
        self._stack.append(key)
        try:
            body = typedef.body
            fields: tuple[ResolvedProperty, ...] = ()
            values: tuple[str, ...] = ()
            target: ResolvedType | None = None
            if typedef.kind is TypeKind.OBJECT:
                fields = self._resolve_properties(body.properties, site)
            elif typedef.kind is TypeKind.ENUM:
                values = body.enum
            elif typedef.kind is TypeKind.ARRAY:
                assert body.items is not None
                target = ArrayType(self._resolve_ref(body.items, site))
            else:
                target = PrimitiveType(body.name or "any")
        finally:
            self._stack.pop()

        self._resolved[key] = ResolvedTypeDef(
            domain=domain,
            name=name,
            kind=typedef.kind,
            description=typedef.description,
            fields=fields,
            values=values,
            target=target,
            experimental=typedef.experimental,
            deprecated=typedef.deprecated,
        )

    def _resolve_properties(
        self, props: tuple[Property, ...], site: _Site
    ) -> tuple[ResolvedProperty, ...]:
        return tuple(
            ResolvedProperty(
                name=p.name,
                type=self._resolve_ref(p.type, _Site(site.domain, site.owner, p.name)),
                optional=p.optional,
                description=p.description,
                experimental=p.experimental,
                deprecated=p.deprecated,
            )
            for p in props
        )

    def _resolve_ref(self, ref: TypeRef, site: _Site) -> ResolvedType:
        if ref.kind is RefKind.PRIMITIVE:
            return PrimitiveType(ref.name or "any")
        if ref.kind is RefKind.ARRAY:
            assert ref.items is not None
            return ArrayType(self._resolve_ref(ref.items, site))
        if ref.kind is RefKind.ENUM:
            return NamedType(self._synthesize_enum(ref, site))
        if ref.kind is RefKind.OBJECT:
            return NamedType(self._synthesize_object(ref, site))
        return self._bind(ref.name or "", site)

    def _bind(self, name: str, site: _Site) -> ResolvedType:
        """Qualified lookup, else declaring domain, else built-in primitive."""
        if "." in name:
            key = name
        else:
            key = f"{site.domain}.{name}"
            if key not in self._index and name in PRIMITIVE_TAGS:
                return PrimitiveType(name)
        if key not in self._index:
            raise UnresolvedTypeReference(
                name, domain=site.domain, owner=site.owner, prop=site.prop
            )
        self._resolve_typedef(key)
        return NamedType(key)

    # -- Synthesized inline types --

    def _candidates(self, site: _Site) -> Iterator[str]:
        base = upper_first(site.prop) if site.prop else f"{upper_first(site.owner)}Item"
        yield base
        qualified = f"{upper_first(site.owner)}{base}"
        if qualified != base:
            yield qualified
        n = 2
        while True:
            yield f"{qualified}{n}"
            n += 1

    def _claim(self, domain: str, name: str, rtd: ResolvedTypeDef) -> str:
        key = f"{domain}.{name}"
        self._taken[domain].add(name)
        self._resolved[key] = rtd
        self._synthesized[domain].append(key)
        return key

    def _synthesize_enum(self, ref: TypeRef, site: _Site) -> str:
        for name in self._candidates(site):
            existing = self._resolved.get(f"{site.domain}.{name}")
            if (
                existing is not None
                and existing.synthesized
                and existing.kind is TypeKind.ENUM
                and existing.values == ref.enum
            ):
                return existing.key
            if name not in self._taken[site.domain]:
                rtd = ResolvedTypeDef(
                    domain=site.domain,
                    name=name,
                    kind=TypeKind.ENUM,
                    values=ref.enum,
                    synthesized=True,
                )
                return self._claim(site.domain, name, rtd)
        raise AssertionError("unreachable")  # pragma: no cover

    def _synthesize_object(self, ref: TypeRef, site: _Site) -> str:
        name = next(n for n in self._candidates(site) if n not in self._taken[site.domain])
        # Reserve the name before resolving fields so nested inline types avoid it.
        self._taken[site.domain].add(name)
        fields = self._resolve_properties(ref.properties, _Site(site.domain, name))
        rtd = ResolvedTypeDef(
            domain=site.domain,
            name=name,
            kind=TypeKind.OBJECT,
            fields=fields,
            synthesized=True,
        )
        return self._claim(site.domain, name, rtd)

    # -- Commands and events --

    def _resolve_command(self, domain: Domain, command: Command) -> ResolvedCommand:
        site = _Site(domain=domain.name, owner=command.name)
        return ResolvedCommand(
            domain=domain.name,
            name=command.name,
            description=command.description,
            parameters=self._resolve_properties(command.parameters, site),
            returns=self._resolve_properties(command.returns, site),
            experimental=command.experimental,
            deprecated=command.deprecated,
            handlers=command.handlers,
        )

    def _resolve_event(self, domain: Domain, event: Event) -> ResolvedEvent:
        site = _Site(domain=domain.name, owner=event.name)
        return ResolvedEvent(
            domain=domain.name,
            name=event.name,
            description=event.description,
            parameters=self._resolve_properties(event.parameters, site),
            experimental=event.experimental,
            deprecated=event.deprecated,
        )

    def _redirect_target(self, domain: Domain, command: Command) -> tuple[str, str]:
        """Follow a redirect chain to the command that owns the implementation."""
        path = (domain.name, command.name)
        chain = [(domain.name, command.name)]
        current = command
        while current.redirect is not None:
            if current.parameters or current.returns:
                raise InvalidRedirect(
                    f"Redirect to '{current.redirect}' must not declare parameters or returns",
                    path=chain[-1],
                )
            target_domain = self._schema.domain(current.redirect)
            if target_domain is None:
                raise InvalidRedirect(
                    f"Redirect target domain '{current.redirect}' does not exist", path=path
                )
            target = target_domain.find_command(command.name)
            if target is None:
                raise InvalidRedirect(
                    f"Redirect target '{target_domain.name}.{command.name}' does not exist",
                    path=path,
                )
            step = (target_domain.name, target.name)
            if step in chain:
                cycle = " -> ".join(".".join(s) for s in (*chain, step))
                raise InvalidRedirect(f"Redirect chain cycles: {cycle}", path=path)
            chain.append(step)
            current = target
        return chain[-1]


def _forwarding(domain: Domain, command: Command, target: ResolvedCommand) -> ResolvedCommand:
    return ResolvedCommand(
        domain=domain.name,
        name=command.name,
        description=command.description or target.description,
        parameters=target.parameters,
        returns=target.returns,
        experimental=command.experimental,
        deprecated=command.deprecated,
        redirect_target=(target.domain, target.name),
        handlers=command.handlers,
    )


def _type_cycles(types: Mapping[str, ResolvedTypeDef]) -> frozenset[str]:
    """Every type on a reference cycle, self-references included."""
    g = nx.DiGraph()
    g.add_nodes_from(types)
    for key, rtd in types.items():
        refs = [h for f in rtd.fields for h in iter_named(f.type)]
        if rtd.target is not None:
            refs.extend(iter_named(rtd.target))
        g.add_edges_from((key, h.key) for h in refs)
    cyclic: set[str] = {key for key in g if g.has_edge(key, key)}
    for component in nx.strongly_connected_components(g):
        if len(component) > 1:
            cyclic.update(component)
    return frozenset(cyclic)
