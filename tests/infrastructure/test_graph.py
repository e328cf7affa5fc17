"""Tests for DependencyGraph — cross-domain references."""

from __future__ import annotations

from typing import Any

import pytest

from cdpgen.domain.loader import load_schema
from cdpgen.domain.resolver import ResolvedSchema, resolve_schema
from cdpgen.infrastructure.graph.engine import DependencyGraph


def _graph(*records: dict[str, Any]) -> DependencyGraph:
    return DependencyGraph(resolve_schema(load_schema(list(records))))


class TestBuild:
    def test_lazy(self, resolved: ResolvedSchema) -> None:
        graph = DependencyGraph(resolved)
        assert graph._graph is None
        assert graph.graph.number_of_nodes() == 2
        assert graph._graph is not None

    def test_edge_kinds(self, resolved: ResolvedSchema) -> None:
        g = DependencyGraph(resolved).graph
        assert g.edges["Debugger", "Runtime"]["kinds"] == {"type"}
        assert g.edges["Runtime", "Debugger"]["kinds"] == {"redirect"}

    def test_no_self_loops(self, resolved: ResolvedSchema) -> None:
        g = DependencyGraph(resolved).graph
        assert not g.has_edge("Runtime", "Runtime")


class TestQueries:
    def test_dependencies(self, resolved: ResolvedSchema) -> None:
        graph = DependencyGraph(resolved)
        assert graph.dependencies("Debugger") == ["Runtime"]
        assert graph.dependencies("Runtime") == ["Debugger"]

    def test_undeclared(self, resolved: ResolvedSchema) -> None:
        # Debugger declares Runtime; Runtime's redirect to Debugger is undeclared.
        assert DependencyGraph(resolved).undeclared() == [("Runtime", "Debugger")]

    def test_cycles(self, resolved: ResolvedSchema) -> None:
        assert DependencyGraph(resolved).cycles() == [["Debugger", "Runtime"]]

    def test_closure_follows_transitive_references(self) -> None:
        graph = _graph(
            {"domain": "A", "types": [{"id": "T", "type": "string"}]},
            {
                "domain": "B",
                "commands": [{"name": "run", "parameters": [{"name": "t", "$ref": "A.T"}]}],
            },
            {
                "domain": "C",
                "events": [
                    {
                        "name": "done",
                        "parameters": [{"name": "ts", "type": "array", "items": {"$ref": "A.T"}}],
                    }
                ],
            },
            {"domain": "D", "commands": [{"name": "run", "redirect": "B"}]},
        )
        assert graph.closure(["D"]) == ["A", "B", "D"]
        assert graph.closure(["C"]) == ["A", "C"]
        assert graph.closure(["A"]) == ["A"]

    def test_closure_unknown_domain(self, resolved: ResolvedSchema) -> None:
        with pytest.raises(KeyError):
            DependencyGraph(resolved).closure(["Nope"])

    def test_alias_target_is_an_edge(self) -> None:
        graph = _graph(
            {"domain": "A", "types": [{"id": "T", "type": "string"}]},
            {"domain": "B", "types": [{"id": "Ts", "type": "array", "items": {"$ref": "A.T"}}]},
        )
        assert graph.dependencies("B") == ["A"]
        assert graph.undeclared() == [("B", "A")]
