"""Code emitter — renders the resolved model and overload plan as Python units.

Output layout for package ``cdp``::

    cdp/__init__.py
    cdp/commands/<domain>.py          one Protocol per domain
    cdp/types/<domain>/<type>.py      one unit per named type and composite result
    cdp/events/<domain>/<event>.py    one payload dataclass per event

Every unit is rendered from a Jinja2 template; this module only prepares the
view data (names, annotations, imports, docstrings). Output is a pure
function of the resolved input: declaration order is preserved everywhere and
import lists are sorted, so regenerating an unchanged schema is byte-stable.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from cdpgen.domain.model import TypeKind
from cdpgen.domain.naming import enum_member, snake_case, unique_names
from cdpgen.domain.planner import ReturnKind
from cdpgen.domain.resolver import ArrayType, PrimitiveType, iter_named
from cdpgen.infrastructure.templates import build_template_environment

if TYPE_CHECKING:
    from jinja2 import Environment

    from cdpgen.domain.planner import CommandPlan, DomainPlan, EventPlan, SchemaPlan, Signature
    from cdpgen.domain.resolver import (
        ResolvedProperty,
        ResolvedSchema,
        ResolvedType,
        ResolvedTypeDef,
    )

logger = logging.getLogger(__name__)

_PRIMITIVES = {
    "string": "str",
    "binary": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
    "any": "Any",
    "object": "dict[str, Any]",
}

# Names every generated module may import; protocol types never shadow them.
_RESERVED = frozenset(
    {
        "Any",
        "TYPE_CHECKING",
        "TypeAlias",
        "Protocol",
        "overload",
        "StrEnum",
        "dataclass",
        "field",
        "EventHandler",
        "EventListener",
        "command",
        "event_name",
    }
)
_RESERVED_MEMBERS = frozenset({"self", "field", "dataclass", "command", "event_name", "overload"})


@dataclass(frozen=True)
class SourceUnit:
    """One generated file: POSIX path relative to the output root, and its text."""

    name: str
    content: str


@dataclass(frozen=True)
class EmitOptions:
    package: str = "cdp"
    support_module: str = "cdp_runtime.support"
    workers: int = 1
    template_dir: Path | None = None


def emit_package(
    resolved: ResolvedSchema,
    plan: SchemaPlan,
    options: EmitOptions | None = None,
) -> list[SourceUnit]:
    """Render every unit for *plan*.

    Domains are independent once resolved, so with ``workers > 1`` they are
    rendered on a thread pool; ``map`` keeps results in schema order.
    """
    return _Emitter(resolved, options or EmitOptions()).emit(plan)


def member_name(name: str) -> str:
    """Python name for a protocol member, avoiding names generated code relies on."""
    result = snake_case(name)
    return f"{result}_" if result in _RESERVED_MEMBERS else result


# ── Import bookkeeping ───────────────────────────────────────────────


class _Imports:
    """Imports and local-name bindings for one generated module."""

    def __init__(self, emitter: _Emitter, own: dict[str, str] | None = None) -> None:
        self._emitter = emitter
        self._stdlib: dict[str, set[str]] = {}
        self._runtime: dict[str, set[str]] = {}
        self._checking: dict[str, set[str]] = {}
        self._bound: set[str] = set(_RESERVED)
        self._locals: dict[str, str] = {}
        for key, name in (own or {}).items():
            self._bound.add(name)
            self._locals[key] = name

    def std(self, module: str, name: str) -> str:
        self._stdlib.setdefault(module, set()).add(name)
        return name

    def runtime(self, module: str, name: str) -> str:
        self._runtime.setdefault(module, set()).add(name)
        return name

    def named(self, key: str, name: str, module: str, *, at_runtime: bool = False) -> str:
        """Bind *name* from *module* locally, aliasing on collisions."""
        if key in self._locals:
            return self._locals[key]
        local = name
        if local in self._bound:
            local = key.replace(".", "")
            n = 2
            while local in self._bound:
                local = f"{key.replace('.', '')}{n}"
                n += 1
        self._bound.add(local)
        self._locals[key] = local
        entry = name if local == name else f"{name} as {local}"
        target = self._runtime if at_runtime else self._checking
        target.setdefault(module, set()).add(entry)
        return local

    def annotate(self, rtype: ResolvedType) -> str:
        if isinstance(rtype, PrimitiveType):
            text = _PRIMITIVES.get(rtype.tag, "Any")
            if "Any" in text:
                self.std("typing", "Any")
            return text
        if isinstance(rtype, ArrayType):
            return f"list[{self.annotate(rtype.items)}]"
        return self.named(rtype.key, rtype.name, self._emitter.type_module(rtype.key))

    def stdlib_lines(self) -> list[str]:
        if self._checking:
            self.std("typing", "TYPE_CHECKING")
        return _import_lines(self._stdlib)

    def runtime_lines(self) -> list[str]:
        return _import_lines(self._runtime)

    def checking_lines(self) -> list[str]:
        return _import_lines(self._checking)


def _import_lines(groups: dict[str, set[str]]) -> list[str]:
    return [
        f"from {module} import {', '.join(sorted(names))}"
        for module, names in sorted(groups.items())
    ]


# ── Docstrings ───────────────────────────────────────────────────────


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')


def _docstring(
    summary: str,
    *,
    indent: int,
    experimental: bool = False,
    deprecated: bool = False,
    args: list[tuple[str, str]] | None = None,
) -> str:
    pad = " " * indent
    body = [line.rstrip() for line in _escape(summary.strip()).splitlines()] or ["(undocumented)"]
    notes: list[str] = []
    if experimental:
        notes.append("Experimental.")
    if deprecated:
        notes.append(".. deprecated:: Marked deprecated in the protocol schema.")
    for note in notes:
        body.extend(["", note])
    if args:
        body.extend(["", "Args:"])
        body.extend(f"    {name}: {_escape(text)}".rstrip() for name, text in args)

    if len(body) == 1 and not body[0].endswith('"'):
        return f'{pad}"""{body[0]}"""'
    lines = [f'{pad}"""{body[0]}']
    lines.extend(f"{pad}{line}" if line else "" for line in body[1:])
    lines.append(f'{pad}"""')
    return "\n".join(lines)


def _arg_doc(prop: ResolvedProperty) -> str:
    text = " ".join(prop.description.split())
    flags = [
        flag
        for flag, on in (
            ("optional", prop.optional),
            ("experimental", prop.experimental),
            ("deprecated", prop.deprecated),
        )
        if on
    ]
    if flags:
        text = f"{text} ({', '.join(flags)})" if text else f"({', '.join(flags)})"
    return text


def _literal_map(pairs: list[tuple[str, str]]) -> str:
    return "{" + ", ".join(f'"{py}": "{wire}"' for py, wire in pairs) + "}"


# ── Views consumed by the templates ──────────────────────────────────


@dataclass
class _MemberView:
    name: str
    decorators: list[str] = field(default_factory=list)
    params: list[str] = field(default_factory=list)
    returns: str = "None"
    doc: str | None = None
    forward: str | None = None


@dataclass
class _FieldView:
    name: str
    annotation: str
    wire: str
    optional: bool
    doc: str | None = None


# ── Emitter ──────────────────────────────────────────────────────────


class _Emitter:
    def __init__(self, resolved: ResolvedSchema, options: EmitOptions) -> None:
        self._resolved = resolved
        self._options = options
        self._env: Environment = build_template_environment(
            "python", override_dir=options.template_dir
        )
        # Module names are allocated up front so case-only differences
        # (``URL`` and ``Url``) never share a file.
        self._domain_modules = dict(
            zip(
                (d.name for d in resolved.domains),
                _distinct([snake_case(d.name) for d in resolved.domains]),
                strict=True,
            )
        )
        self._type_modules: dict[str, str] = {}
        self._taken_modules: dict[str, set[str]] = {}
        for domain in resolved.domains:
            taken: set[str] = set()
            for key in domain.types:
                self._type_modules[key] = _claim_module(snake_case(key.split(".", 1)[1]), taken)
            self._taken_modules[domain.name] = taken
        self._event_modules: dict[tuple[str, str], str] = {}

    # -- Layout --

    def type_module(self, key: str) -> str:
        domain = key.split(".", 1)[0]
        return f"{self.types_package(domain)}.{self._type_modules[key]}"

    def event_module(self, domain: str, payload: str) -> str:
        return f"{self.events_package(domain)}.{self._event_modules[(domain, payload)]}"

    def commands_module(self, domain: str) -> str:
        return f"{self._options.package}.commands.{self._domain_modules[domain]}"

    def types_package(self, domain: str) -> str:
        return f"{self._options.package}.types.{self._domain_modules[domain]}"

    def events_package(self, domain: str) -> str:
        return f"{self._options.package}.events.{self._domain_modules[domain]}"

    def _allocate_modules(self, plan: SchemaPlan) -> None:
        """Module names for composite results and event payloads of *plan*."""
        for domain_plan in plan.domains:
            name = domain_plan.domain.name
            taken = set(self._taken_modules[name])
            for command_plan in domain_plan.composites:
                key = command_plan.returns.composite or ""
                self._type_modules[key] = _claim_module(
                    snake_case(command_plan.returns.composite_name or ""), taken
                )
            events: set[str] = set()
            for event_plan in domain_plan.events:
                self._event_modules[(name, event_plan.payload)] = _claim_module(
                    snake_case(event_plan.payload), events
                )

    @staticmethod
    def unit_name(module: str, *, package: bool = False) -> str:
        path = module.replace(".", "/")
        return f"{path}/__init__.py" if package else f"{path}.py"

    def _render(self, template: str, **context: Any) -> str:
        return self._env.get_template(template).render(**context)

    # -- Entry point --

    def emit(self, plan: SchemaPlan) -> list[SourceUnit]:
        self._allocate_modules(plan)
        units = self._package_units(plan)
        if self._options.workers > 1 and len(plan.domains) > 1:
            with ThreadPoolExecutor(max_workers=self._options.workers) as executor:
                per_domain = list(executor.map(self._domain_units, plan.domains))
        else:
            per_domain = [self._domain_units(d) for d in plan.domains]
        for domain_units in per_domain:
            units.extend(domain_units)
        logger.debug("Rendered %d units for %d domains", len(units), len(plan.domains))
        return units

    def _package_units(self, plan: SchemaPlan) -> list[SourceUnit]:
        pkg = self._options.package
        version = self._resolved.version
        summary = "Typed DevTools protocol client interfaces."
        if version is not None:
            summary = f"Typed DevTools protocol client interfaces (protocol {version})."
        assignments = [f'PROTOCOL_VERSION = "{version}"'] if version is not None else []

        command_imports = [
            f"from {self.commands_module(d.domain.name)} import {d.domain.name}"
            for d in plan.domains
        ]
        forwards = _forward_bindings(plan)
        return [
            SourceUnit(
                self.unit_name(pkg, package=True),
                self._render(
                    "package.py.j2",
                    doc=_docstring(summary, indent=0),
                    imports=[],
                    exports=[],
                    assignments=assignments,
                ),
            ),
            SourceUnit(
                self.unit_name(f"{pkg}.commands", package=True),
                self._render(
                    "package.py.j2",
                    doc=_docstring("Domain command interfaces.", indent=0),
                    imports=command_imports,
                    exports=[d.domain.name for d in plan.domains],
                    assignments=forwards,
                ),
            ),
            SourceUnit(
                self.unit_name(f"{pkg}.types", package=True),
                self._render(
                    "package.py.j2",
                    doc=_docstring("Protocol data types, one subpackage per domain.", indent=0),
                    imports=[],
                    exports=[],
                    assignments=[],
                ),
            ),
            SourceUnit(
                self.unit_name(f"{pkg}.events", package=True),
                self._render(
                    "package.py.j2",
                    doc=_docstring("Event payload types, one subpackage per domain.", indent=0),
                    imports=[],
                    exports=[],
                    assignments=[],
                ),
            ),
        ]

    def _domain_units(self, plan: DomainPlan) -> list[SourceUnit]:
        domain = plan.domain
        units = [self._commands_unit(plan)]

        type_keys = list(domain.types)
        composites = plan.composites
        if type_keys or composites:
            exports: list[tuple[str, str]] = [
                (self.type_module(k), self._resolved.types[k].name) for k in type_keys
            ]
            exports.extend(
                (self.type_module(c.returns.composite or ""), c.returns.composite_name or "")
                for c in composites
            )
            units.append(
                self._subpackage_unit(
                    self.types_package(domain.name),
                    f"Types of the {domain.name} domain.",
                    exports,
                )
            )
            units.extend(self._type_unit(self._resolved.types[k]) for k in type_keys)
            units.extend(self._composite_unit(c) for c in composites)

        if plan.events:
            exports = [(self.event_module(domain.name, e.payload), e.payload) for e in plan.events]
            units.append(
                self._subpackage_unit(
                    self.events_package(domain.name),
                    f"Event payloads of the {domain.name} domain.",
                    exports,
                )
            )
            units.extend(self._event_unit(e) for e in plan.events)
        return units

    def _subpackage_unit(
        self, module: str, summary: str, exports: list[tuple[str, str]]
    ) -> SourceUnit:
        return SourceUnit(
            self.unit_name(module, package=True),
            self._render(
                "package.py.j2",
                doc=_docstring(summary, indent=0),
                imports=[f"from {m} import {name}" for m, name in exports],
                exports=[name for _m, name in exports],
                assignments=[],
            ),
        )

    # -- Domain interface --

    def _commands_unit(self, plan: DomainPlan) -> SourceUnit:
        domain = plan.domain
        imports = _Imports(self, own={f"commands.{domain.name}": domain.name})
        imports.std("typing", "Protocol")
        members: list[_MemberView] = []
        for command_plan in plan.commands:
            members.extend(self._command_members(command_plan, imports))
        for event_plan in plan.events:
            members.append(self._event_member(event_plan, imports))

        summary = domain.description or f"The {domain.name} domain."
        return SourceUnit(
            self.unit_name(self.commands_module(domain.name)),
            self._render(
                "domain.py.j2",
                module_doc=_docstring(f"{domain.name} domain interface.", indent=0),
                stdlib_imports=imports.stdlib_lines(),
                runtime_imports=imports.runtime_lines(),
                checking_imports=imports.checking_lines(),
                class_name=domain.name,
                class_doc=_docstring(
                    summary,
                    indent=4,
                    experimental=domain.experimental,
                    deprecated=domain.deprecated,
                ),
                members=members,
            ),
        )

    def _command_members(self, plan: CommandPlan, imports: _Imports) -> list[_MemberView]:
        command = plan.command
        name = member_name(command.name)
        if plan.forward_to is not None:
            target_domain, target_command = plan.forward_to
            # Bound at runtime by the commands package; see _forward_bindings.
            target = imports.named(
                f"commands.{target_domain}",
                target_domain,
                self.commands_module(target_domain),
            )
            return [_MemberView(name=name, forward=f"{target}.{member_name(target_command)}")]

        returns = self._return_annotation(plan, imports)
        overloaded = len(plan.signatures) > 1
        if overloaded:
            imports.std("typing", "overload")
        imports.runtime(self._options.support_module, "command")

        members: list[_MemberView] = []
        for index, signature in enumerate(plan.signatures):
            params, wire = self._params(signature, imports, full=index > 0)
            args = [f'"{command.domain}.{command.name}"']
            if wire:
                args.append(f"params={_literal_map(wire)}")
            if plan.returns.kind is ReturnKind.SINGLE:
                args.append(f'returns="{plan.returns.field}"')
            decorators = ["overload"] if overloaded else []
            decorators.append(f"command({', '.join(args)})")
            doc = None
            if index == 0 and (command.description or command.experimental or command.deprecated):
                doc = _docstring(
                    command.description or f"{command.domain}.{command.name}.",
                    indent=8,
                    experimental=command.experimental,
                    deprecated=command.deprecated,
                    args=self._arg_docs(plan.signatures[-1]),
                )
            members.append(
                _MemberView(
                    name=name, decorators=decorators, params=params, returns=returns, doc=doc
                )
            )
        return members

    def _params(
        self, signature: Signature, imports: _Imports, *, full: bool
    ) -> tuple[list[str], list[tuple[str, str]]]:
        names = unique_names([member_name(p.name) for p in signature.parameters])
        params: list[str] = []
        wire: list[tuple[str, str]] = []
        for py_name, prop in zip(names, signature.parameters, strict=True):
            annotation = imports.annotate(prop.type)
            if full and prop.optional:
                annotation = f"{annotation} | None"
            params.append(f"{py_name}: {annotation}")
            wire.append((py_name, prop.name))
        return params, wire

    @staticmethod
    def _arg_docs(signature: Signature) -> list[tuple[str, str]]:
        names = unique_names([member_name(p.name) for p in signature.parameters])
        return [
            (py_name, _arg_doc(prop))
            for py_name, prop in zip(names, signature.parameters, strict=True)
            if _arg_doc(prop)
        ]

    def _return_annotation(self, plan: CommandPlan, imports: _Imports) -> str:
        returns = plan.returns
        if returns.kind is ReturnKind.NONE:
            return "None"
        if returns.kind is ReturnKind.SINGLE:
            assert returns.type is not None
            annotation = imports.annotate(returns.type)
            if returns.fields and returns.fields[0].optional:
                annotation = f"{annotation} | None"
            return annotation
        key = returns.composite or ""
        return imports.named(key, returns.composite_name or "", self.type_module(key))

    def _event_member(self, plan: EventPlan, imports: _Imports) -> _MemberView:
        event = plan.event
        payload = imports.named(
            f"events.{event.domain}.{plan.payload}",
            plan.payload,
            self.event_module(event.domain, plan.payload),
        )
        imports.runtime(self._options.support_module, "EventHandler")
        imports.runtime(self._options.support_module, "EventListener")
        imports.runtime(self._options.support_module, "event_name")
        doc = None
        if event.description or event.experimental or event.deprecated:
            doc = _docstring(
                event.description or f"{event.domain}.{event.name}.",
                indent=8,
                experimental=event.experimental,
                deprecated=event.deprecated,
            )
        return _MemberView(
            name=plan.subscription,
            decorators=[f'event_name("{event.domain}.{event.name}")'],
            params=[f"handler: EventHandler[{payload}]"],
            returns="EventListener",
            doc=doc,
        )

    # -- Data types --

    def _fields(self, props: tuple[ResolvedProperty, ...], imports: _Imports) -> list[_FieldView]:
        names = unique_names([member_name(p.name) for p in props])
        views: list[_FieldView] = []
        for py_name, prop in zip(names, props, strict=True):
            annotation = imports.annotate(prop.type)
            if prop.optional:
                annotation = f"{annotation} | None"
            doc = _arg_doc(prop)
            views.append(
                _FieldView(
                    name=py_name,
                    annotation=annotation,
                    wire=prop.name,
                    optional=prop.optional,
                    doc=doc or None,
                )
            )
        return views

    def _dataclass_unit(
        self,
        module: str,
        key: str,
        name: str,
        summary: str,
        props: tuple[ResolvedProperty, ...],
        *,
        experimental: bool = False,
        deprecated: bool = False,
    ) -> SourceUnit:
        imports = _Imports(self, own={key: name})
        imports.std("dataclasses", "dataclass")
        if props:
            imports.std("dataclasses", "field")
        fields = self._fields(props, imports)
        return SourceUnit(
            self.unit_name(module),
            self._render(
                "object.py.j2",
                module_doc=_docstring(f"{key.removeprefix('events.')}.", indent=0),
                stdlib_imports=imports.stdlib_lines(),
                checking_imports=imports.checking_lines(),
                name=name,
                class_doc=_docstring(
                    summary, indent=4, experimental=experimental, deprecated=deprecated
                ),
                fields=fields,
            ),
        )

    def _type_unit(self, rtd: ResolvedTypeDef) -> SourceUnit:
        module = self.type_module(rtd.key)
        summary = rtd.description or f"{rtd.key}."
        if rtd.kind is TypeKind.OBJECT:
            return self._dataclass_unit(
                module,
                rtd.key,
                rtd.name,
                summary,
                rtd.fields,
                experimental=rtd.experimental,
                deprecated=rtd.deprecated,
            )
        if rtd.kind is TypeKind.ENUM:
            members = list(
                zip(unique_names([enum_member(v) for v in rtd.values]), rtd.values, strict=True)
            )
            return SourceUnit(
                self.unit_name(module),
                self._render(
                    "enum.py.j2",
                    module_doc=_docstring(f"{rtd.key}.", indent=0),
                    name=rtd.name,
                    class_doc=_docstring(
                        summary,
                        indent=4,
                        experimental=rtd.experimental,
                        deprecated=rtd.deprecated,
                    ),
                    members=[(member, _escape_literal(value)) for member, value in members],
                ),
            )

        assert rtd.target is not None
        imports = _Imports(self, own={rtd.key: rtd.name})
        imports.std("typing", "TypeAlias")
        target = imports.annotate(rtd.target)
        if any(True for _ in iter_named(rtd.target)):
            # Named targets may only exist under TYPE_CHECKING (or be the alias itself).
            target = f'"{target}"'
        return SourceUnit(
            self.unit_name(module),
            self._render(
                "alias.py.j2",
                module_doc=_docstring(
                    summary,
                    indent=0,
                    experimental=rtd.experimental,
                    deprecated=rtd.deprecated,
                ),
                stdlib_imports=imports.stdlib_lines(),
                checking_imports=imports.checking_lines(),
                name=rtd.name,
                target=target,
            ),
        )

    def _composite_unit(self, plan: CommandPlan) -> SourceUnit:
        command = plan.command
        key = plan.returns.composite or ""
        return self._dataclass_unit(
            self.type_module(key),
            key,
            plan.returns.composite_name or "",
            f"Return value of {command.domain}.{command.name}.",
            plan.returns.fields,
        )

    def _event_unit(self, plan: EventPlan) -> SourceUnit:
        event = plan.event
        return self._dataclass_unit(
            self.event_module(event.domain, plan.payload),
            f"events.{event.domain}.{plan.payload}",
            plan.payload,
            event.description or f"Payload of the {event.domain}.{event.name} event.",
            event.parameters,
            experimental=event.experimental,
            deprecated=event.deprecated,
        )


def _escape_literal(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')



def _claim_module(name: str, taken: set[str]) -> str:
    """Reserve *name* in *taken*, suffixing ``_2``, ``_3``... on collision."""
    candidate = name
    n = 2
    while candidate in taken:
        candidate = f"{name}_{n}"
        n += 1
    taken.add(candidate)
    return candidate


def _distinct(names: list[str]) -> list[str]:
    taken: set[str] = set()
    return [_claim_module(name, taken) for name in names]


def _forward_bindings(plan: SchemaPlan) -> list[str]:
    """Redirect attributes, assigned once every domain module is loaded.

    Domain modules only import each other under ``TYPE_CHECKING``, so two
    domains redirecting into each other never form an import cycle.
    """
    return [
        f"{d.domain.name}.{member_name(c.command.name)} = "
        f"{c.forward_to[0]}.{member_name(c.forward_to[1])}"
        for d in plan.domains
        for c in d.commands
        if c.forward_to is not None
    ]
