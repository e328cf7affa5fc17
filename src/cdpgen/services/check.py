"""CheckService — validate schema documents without generating code.

Runs the same load, resolve and plan stages as generation, then reports
what a generation run would see. Undeclared cross-domain references are
warnings; every schema error is fatal.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cdpgen.domain.errors import SchemaError
from cdpgen.infrastructure.graph.engine import DependencyGraph
from cdpgen.services.base import BaseService
from cdpgen.services.result import ServiceResult
from cdpgen.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


class CheckService(BaseService):
    """Handles schema validation."""

    @traced
    def check(self, paths: Sequence[str | Path] | None = None) -> ServiceResult:
        """Report counts, recursive types and redirects; fail on schema errors."""
        op = "check"
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

        resolved = pipeline.resolved
        with trace_span("graph"):
            graph = DependencyGraph(resolved)
            undeclared = graph.undeclared()
            domain_cycles = graph.cycles()

        redirects = [
            f"{c.domain}.{c.name} -> {c.redirect_target[0]}.{c.redirect_target[1]}"
            for d in resolved.domains
            for c in d.commands
            if c.redirect_target is not None
        ]
        warnings = [
            f"Domain {source} references {target} without declaring the dependency"
            for source, target in undeclared
        ]
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "files": [str(p) for p in schema_paths],
                "version": str(resolved.version) if resolved.version else None,
                "domains": len(resolved.domains),
                "types": len(resolved.types),
                "synthesized": sum(1 for t in resolved.types.values() if t.synthesized),
                "commands": sum(len(d.commands) for d in resolved.domains),
                "events": sum(len(d.events) for d in resolved.domains),
                "signatures": pipeline.plan.signature_count,
                "cycles": sorted(resolved.cycles),
                "redirects": redirects,
                "domain_cycles": domain_cycles,
            },
            warnings=warnings,
        )
