"""PlanService — list the call signatures generation would emit."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from cdpgen.domain.errors import SchemaError
from cdpgen.domain.planner import ReturnKind
from cdpgen.domain.resolver import ArrayType, NamedType
from cdpgen.services.base import BaseService
from cdpgen.services.result import ServiceResult
from cdpgen.services.telemetry import traced

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from cdpgen.domain.planner import CommandPlan, EventPlan, ReturnPlan, Signature
    from cdpgen.domain.resolver import ResolvedType


def describe_type(rtype: ResolvedType) -> str:
    """Schema-level spelling of a resolved type (``array<Runtime.RemoteObject>``)."""
    if isinstance(rtype, ArrayType):
        return f"array<{describe_type(rtype.items)}>"
    if isinstance(rtype, NamedType):
        return rtype.key
    return rtype.tag


def describe_signature(signature: Signature) -> str:
    params = ", ".join(
        f"{p.name}{'?' if p.optional else ''}: {describe_type(p.type)}"
        for p in signature.parameters
    )
    return f"({params})"


def describe_returns(returns: ReturnPlan) -> str:
    if returns.kind is ReturnKind.NONE:
        return "void"
    if returns.kind is ReturnKind.SINGLE:
        assert returns.type is not None
        return describe_type(returns.type)
    return returns.composite or ""


class PlanService(BaseService):
    """Lists planned overloads per command and event."""

    @traced
    def plan(
        self,
        paths: Sequence[str | Path] | None = None,
        *,
        domain: str | None = None,
    ) -> ServiceResult:
        op = "plan"
        schema_paths = self._schema_paths(paths)
        if not schema_paths:
            return ServiceResult.failure(
                op,
                "NO_SCHEMA",
                "No schema files given and no [input] paths configured",
            )
        try:
            pipeline = self._prepare(schema_paths)
        except SchemaError as exc:
            return self._schema_failure(op, exc)

        domains = pipeline.plan.domains
        if domain is not None:
            selected = pipeline.plan.domain(domain)
            if selected is None:
                return ServiceResult.failure(
                    op,
                    "UNKNOWN_DOMAIN",
                    f"Unknown domain: {domain}",
                    {"domain": domain, "available": [d.domain.name for d in domains]},
                )
            domains = (selected,)

        items: list[dict[str, Any]] = []
        for domain_plan in domains:
            items.extend(_command_item(c) for c in domain_plan.commands)
            items.extend(_event_item(e) for e in domain_plan.events)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "items": items,
                "count": len(items),
                "signatures": sum(len(i["signatures"]) for i in items),
            },
        )


def _command_item(plan: CommandPlan) -> dict[str, Any]:
    command = plan.command
    forward = None
    if plan.forward_to is not None:
        forward = f"{plan.forward_to[0]}.{plan.forward_to[1]}"
    return {
        "domain": command.domain,
        "name": command.name,
        "kind": "command",
        "signatures": [describe_signature(s) for s in plan.signatures],
        "returns": describe_returns(plan.returns),
        "forward_to": forward,
    }


def _event_item(plan: EventPlan) -> dict[str, Any]:
    event = plan.event
    return {
        "domain": event.domain,
        "name": event.name,
        "kind": "event",
        "signatures": [describe_signature(s) for s in plan.signatures],
        "returns": plan.payload,
        "forward_to": None,
        "subscription": plan.subscription,
    }
