"""DependencyGraph — lazy-built NetworkX graph of cross-domain references.

Nodes are domains, an edge ``A -> B`` means something in A needs B: a type
reference in a field, parameter, return value or alias, or a command
redirect. Built on first access from the resolved schema; never cached
across runs.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, TypeAlias

import networkx as nx

from cdpgen.domain.resolver import iter_named

if TYPE_CHECKING:
    from cdpgen.domain.resolver import ResolvedProperty, ResolvedSchema

_Graph: TypeAlias = nx.DiGraph


class DependencyGraph:
    """Domain-level dependency graph over a resolved schema."""

    def __init__(self, resolved: ResolvedSchema) -> None:
        self._resolved = resolved
        self._graph: _Graph | None = None

    @property
    def graph(self) -> _Graph:
        """Return the graph, building it on first access."""
        if self._graph is None:
            self._graph = self._build()
        return self._graph

    def _build(self) -> _Graph:
        g: _Graph = nx.DiGraph()
        for domain in self._resolved.domains:
            g.add_node(domain.name, declared=set(domain.dependencies))

        for domain in self._resolved.domains:
            for key in domain.types:
                rtd = self._resolved.types[key]
                self._link_props(g, domain.name, rtd.fields)
                if rtd.target is not None:
                    self._link_keys(g, domain.name, (h.domain for h in iter_named(rtd.target)))
            for command in domain.commands:
                if command.redirect_target is not None:
                    self._add_edge(g, domain.name, command.redirect_target[0], "redirect")
                    continue
                self._link_props(g, domain.name, command.parameters)
                self._link_props(g, domain.name, command.returns)
            for event in domain.events:
                self._link_props(g, domain.name, event.parameters)
        return g

    def _link_props(self, g: _Graph, source: str, props: Iterable[ResolvedProperty]) -> None:
        self._link_keys(g, source, (h.domain for p in props for h in iter_named(p.type)))

    def _link_keys(self, g: _Graph, source: str, targets: Iterable[str]) -> None:
        for target in targets:
            self._add_edge(g, source, target, "type")

    @staticmethod
    def _add_edge(g: _Graph, source: str, target: str, kind: str) -> None:
        if source == target:
            return
        if g.has_edge(source, target):
            g.edges[source, target]["kinds"].add(kind)
        else:
            g.add_edge(source, target, kinds={kind})

    def dependencies(self, domain: str) -> list[str]:
        """Domains *domain* directly references, in schema order."""
        successors = set(self.graph.successors(domain))
        return [d.name for d in self._resolved.domains if d.name in successors]

    def undeclared(self) -> list[tuple[str, str]]:
        """Edges whose target is missing from the source domain's ``dependencies``."""
        missing: list[tuple[str, str]] = []
        for domain in self._resolved.domains:
            declared = self.graph.nodes[domain.name]["declared"]
            missing.extend(
                (domain.name, target)
                for target in self.dependencies(domain.name)
                if target not in declared
            )
        return missing

    def closure(self, names: Iterable[str]) -> list[str]:
        """Selected domains plus everything they transitively need, in schema order.

        Raises:
            KeyError: a name is not a domain of the schema.
        """
        needed: set[str] = set()
        for name in names:
            if name not in self.graph:
                raise KeyError(name)
            needed.add(name)
            needed.update(nx.descendants(self.graph, name))
        return [d.name for d in self._resolved.domains if d.name in needed]

    def cycles(self) -> list[list[str]]:
        """Domain-level reference cycles (mutually dependent domains)."""
        return sorted(sorted(c) for c in nx.simple_cycles(self.graph))
