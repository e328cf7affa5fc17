"""Overload planner — call signatures and return shapes per command.

Optional parameters are approximated with a fixed, bounded policy: a command
or event with at least one optional parameter gets exactly two signatures,
required-only and then every parameter in declared order. Anything else gets
a single signature. Generated call sites depend on this exact policy, so it
is never widened to the full power set.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from cdpgen.domain.naming import snake_case, upper_first
from cdpgen.domain.resolver import (
    ResolvedCommand,
    ResolvedDomain,
    ResolvedEvent,
    ResolvedProperty,
    ResolvedSchema,
    ResolvedType,
)


class ReturnKind(StrEnum):
    NONE = "none"
    SINGLE = "single"
    COMPOSITE = "composite"


@dataclass(frozen=True)
class Signature:
    """One concrete parameter list."""

    parameters: tuple[ResolvedProperty, ...]

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.parameters)


@dataclass(frozen=True)
class ReturnPlan:
    """How a command's return bundle surfaces in its signatures.

    SINGLE returns the lone field's ``type`` directly and records the field
    name; COMPOSITE returns a named result type (``composite`` is its
    qualified ``Domain.Name`` key). ``fields`` is the return bundle.
    """

    kind: ReturnKind
    type: ResolvedType | None = None
    field: str | None = None
    composite: str | None = None
    fields: tuple[ResolvedProperty, ...] = ()

    @property
    def composite_name(self) -> str | None:
        return self.composite.split(".", 1)[1] if self.composite else None


@dataclass(frozen=True)
class CommandPlan:
    command: ResolvedCommand
    signatures: tuple[Signature, ...]
    returns: ReturnPlan
    forward_to: tuple[str, str] | None = None


@dataclass(frozen=True)
class EventPlan:
    event: ResolvedEvent
    payload: str  # payload type name in the domain's events package
    subscription: str  # Python method name, e.g. ``on_script_parsed``
    signatures: tuple[Signature, ...]


@dataclass(frozen=True)
class DomainPlan:
    domain: ResolvedDomain
    commands: tuple[CommandPlan, ...]
    events: tuple[EventPlan, ...]

    @property
    def composites(self) -> tuple[CommandPlan, ...]:
        """Plans owning a composite result declared in this domain."""
        return tuple(
            p
            for p in self.commands
            if p.forward_to is None and p.returns.kind is ReturnKind.COMPOSITE
        )


@dataclass(frozen=True)
class SchemaPlan:
    domains: tuple[DomainPlan, ...]

    def domain(self, name: str) -> DomainPlan | None:
        for plan in self.domains:
            if plan.domain.name == name:
                return plan
        return None

    def subset(self, names: set[str]) -> SchemaPlan:
        """Keep only the named domains, in schema order."""
        return SchemaPlan(domains=tuple(d for d in self.domains if d.domain.name in names))

    @property
    def signature_count(self) -> int:
        return sum(len(c.signatures) for d in self.domains for c in d.commands)


def plan_signatures(parameters: tuple[ResolvedProperty, ...]) -> tuple[Signature, ...]:
    """Required-only plus full when anything is optional, else the full list once."""
    full = Signature(parameters)
    if not any(p.optional for p in parameters):
        return (full,)
    required = Signature(tuple(p for p in parameters if not p.optional))
    return (required, full)


def composite_name(command: str, taken: set[str]) -> str:
    """Result type name derived from the command (``getX`` -> ``GetX``).

    Falls back to ``GetXResult`` (then a numeric suffix) when the name is
    already used by a type of the domain.
    """
    base = upper_first(command)
    if base not in taken:
        return base
    candidate = f"{base}Result"
    n = 2
    while candidate in taken:
        candidate = f"{base}Result{n}"
        n += 1
    return candidate


def plan_schema(resolved: ResolvedSchema) -> SchemaPlan:
    """Plan every domain. Redirects reuse their target's plan."""
    owned: dict[tuple[str, str], CommandPlan] = {}
    for domain in resolved.domains:
        taken = {resolved.types[key].name for key in domain.types}
        for command in domain.commands:
            if not command.is_redirect:
                owned[(domain.name, command.name)] = _plan_command(command, taken)

    domains: list[DomainPlan] = []
    for domain in resolved.domains:
        commands: list[CommandPlan] = []
        for command in domain.commands:
            if command.redirect_target is None:
                commands.append(owned[(domain.name, command.name)])
                continue
            target = owned[command.redirect_target]
            commands.append(
                CommandPlan(
                    command=command,
                    signatures=target.signatures,
                    returns=target.returns,
                    forward_to=command.redirect_target,
                )
            )
        events = tuple(_plan_event(e) for e in domain.events)
        domains.append(DomainPlan(domain=domain, commands=tuple(commands), events=events))
    return SchemaPlan(domains=tuple(domains))


def _plan_command(command: ResolvedCommand, taken: set[str]) -> CommandPlan:
    returns = command.returns
    if not returns:
        plan = ReturnPlan(kind=ReturnKind.NONE)
    elif len(returns) == 1:
        plan = ReturnPlan(
            kind=ReturnKind.SINGLE,
            type=returns[0].type,
            field=returns[0].name,
            fields=returns,
        )
    else:
        name = composite_name(command.name, taken)
        taken.add(name)
        plan = ReturnPlan(
            kind=ReturnKind.COMPOSITE,
            composite=f"{command.domain}.{name}",
            fields=returns,
        )
    return CommandPlan(
        command=command,
        signatures=plan_signatures(command.parameters),
        returns=plan,
    )


def _plan_event(event: ResolvedEvent) -> EventPlan:
    return EventPlan(
        event=event,
        payload=upper_first(event.name),
        subscription=f"on_{snake_case(event.name)}",
        signatures=plan_signatures(event.parameters),
    )
