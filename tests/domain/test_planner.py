"""Tests for the overload planner."""

from __future__ import annotations

from typing import Any

import pytest

from cdpgen.domain.loader import load_schema
from cdpgen.domain.planner import (
    ReturnKind,
    SchemaPlan,
    composite_name,
    plan_schema,
    plan_signatures,
)
from cdpgen.domain.resolver import (
    ArrayType,
    NamedType,
    PrimitiveType,
    ResolvedProperty,
    resolve_schema,
)


def _props(*spec: tuple[str, bool]) -> tuple[ResolvedProperty, ...]:
    return tuple(
        ResolvedProperty(name=name, type=PrimitiveType("string"), optional=optional)
        for name, optional in spec
    )


def _plan(*records: dict[str, Any]) -> SchemaPlan:
    return plan_schema(resolve_schema(load_schema(list(records))))


class TestPlanSignatures:
    def test_no_optional_gives_one_signature(self) -> None:
        params = _props(("a", False), ("b", False))
        signatures = plan_signatures(params)
        assert [s.names for s in signatures] == [("a", "b")]

    def test_no_parameters(self) -> None:
        assert [s.names for s in plan_signatures(())] == [()]

    @pytest.mark.parametrize(
        ("spec", "required", "full"),
        [
            ([("a", True)], (), ("a",)),
            ([("a", False), ("b", True)], ("a",), ("a", "b")),
            ([("a", True), ("b", False), ("c", True)], ("b",), ("a", "b", "c")),
            (
                [("a", True), ("b", True), ("c", True), ("d", True), ("e", True)],
                (),
                ("a", "b", "c", "d", "e"),
            ),
        ],
    )
    def test_optional_gives_exactly_two(
        self,
        spec: list[tuple[str, bool]],
        required: tuple[str, ...],
        full: tuple[str, ...],
    ) -> None:
        signatures = plan_signatures(_props(*spec))
        assert len(signatures) == 2
        assert signatures[0].names == required
        assert signatures[1].names == full

    def test_set_breakpoint_by_url(self, plan: SchemaPlan) -> None:
        debugger = plan.domain("Debugger")
        assert debugger is not None
        command = debugger.commands[0]
        assert command.command.name == "setBreakpointByUrl"
        assert [s.names for s in command.signatures] == [
            ("lineNumber",),
            ("lineNumber", "url", "urlRegex", "columnNumber", "condition"),
        ]


class TestCompositeName:
    def test_derived_from_command(self) -> None:
        assert composite_name("getScriptSource", set()) == "GetScriptSource"

    def test_collision_appends_result(self) -> None:
        assert composite_name("location", {"Location"}) == "LocationResult"

    def test_repeated_collision_numbers(self) -> None:
        taken = {"Location", "LocationResult"}
        assert composite_name("location", taken) == "LocationResult2"


class TestReturnPlans:
    def test_no_returns(self, plan: SchemaPlan) -> None:
        debugger = plan.domain("Debugger")
        assert debugger is not None
        pause = next(c for c in debugger.commands if c.command.name == "pause")
        assert pause.returns.kind is ReturnKind.NONE

    def test_single_return_is_unwrapped(self, plan: SchemaPlan) -> None:
        debugger = plan.domain("Debugger")
        assert debugger is not None
        source = next(c for c in debugger.commands if c.command.name == "getScriptSource")
        assert source.returns.kind is ReturnKind.SINGLE
        assert source.returns.type == PrimitiveType("string")
        assert source.returns.field == "scriptSource"

    def test_multiple_returns_become_composite(self, plan: SchemaPlan) -> None:
        debugger = plan.domain("Debugger")
        assert debugger is not None
        command = debugger.commands[0]
        returns = command.returns
        assert returns.kind is ReturnKind.COMPOSITE
        assert returns.composite == "Debugger.SetBreakpointByUrl"
        assert returns.composite_name == "SetBreakpointByUrl"
        assert [f.name for f in returns.fields] == ["breakpointId", "locations"]
        assert returns.fields[1].type == ArrayType(NamedType("Debugger.Location"))

    def test_composite_avoids_domain_type_names(self) -> None:
        plan = _plan(
            {
                "domain": "DOM",
                "types": [{"id": "GetNode", "type": "string"}],
                "commands": [
                    {
                        "name": "getNode",
                        "returns": [
                            {"name": "a", "type": "string"},
                            {"name": "b", "type": "string"},
                        ],
                    }
                ],
            }
        )
        assert plan.domains[0].commands[0].returns.composite == "DOM.GetNodeResult"

    def test_domain_composites(self, plan: SchemaPlan) -> None:
        runtime = plan.domain("Runtime")
        assert runtime is not None
        assert [c.returns.composite for c in runtime.composites] == ["Runtime.Evaluate"]


class TestRedirectPlans:
    def test_forward_copies_target_plan(self, plan: SchemaPlan) -> None:
        runtime = plan.domain("Runtime")
        debugger = plan.domain("Debugger")
        assert runtime is not None and debugger is not None
        alias = next(c for c in runtime.commands if c.command.name == "setAsyncCallStackDepth")
        target = next(c for c in debugger.commands if c.command.name == "setAsyncCallStackDepth")
        assert alias.forward_to == ("Debugger", "setAsyncCallStackDepth")
        assert alias.signatures == target.signatures
        assert alias.returns == target.returns
        assert target.forward_to is None

    def test_forwarded_composite_is_owned_by_target(self) -> None:
        returns = [{"name": "a", "type": "string"}, {"name": "b", "type": "string"}]
        plan = _plan(
            {"domain": "A", "commands": [{"name": "get", "redirect": "B"}]},
            {"domain": "B", "commands": [{"name": "get", "returns": returns}]},
        )
        a, b = plan.domains
        assert a.commands[0].returns.composite == "B.Get"
        assert a.composites == ()
        assert [c.command.name for c in b.composites] == ["get"]


class TestEventPlans:
    def test_subscription_and_payload(self, plan: SchemaPlan) -> None:
        debugger = plan.domain("Debugger")
        assert debugger is not None
        paused, resumed = debugger.events
        assert paused.subscription == "on_paused"
        assert paused.payload == "Paused"
        assert [s.names for s in paused.signatures] == [
            ("callFrames", "reason"),
            ("callFrames", "reason", "hitBreakpoints"),
        ]
        assert resumed.signatures[0].names == ()

    def test_snake_case_subscription(self, plan: SchemaPlan) -> None:
        runtime = plan.domain("Runtime")
        assert runtime is not None
        assert runtime.events[0].subscription == "on_execution_context_created"


class TestSchemaPlan:
    def test_subset_keeps_schema_order(self, plan: SchemaPlan) -> None:
        subset = plan.subset({"Debugger", "Runtime"})
        assert [d.domain.name for d in subset.domains] == ["Runtime", "Debugger"]
        assert [d.domain.name for d in plan.subset({"Debugger"}).domains] == ["Debugger"]

    def test_signature_count(self, plan: SchemaPlan) -> None:
        # Runtime: evaluate x2, enable, forward x1; Debugger: 2 + 1 + 1 + 1
        assert plan.signature_count == 9

    def test_unknown_domain(self, plan: SchemaPlan) -> None:
        assert plan.domain("Nope") is None
