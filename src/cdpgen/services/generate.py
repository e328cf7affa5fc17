"""GenerateService — schema documents in, Python client package out.

The whole package is rendered in memory before anything touches disk, so a
schema error never leaves a half-written package behind.
"""

from __future__ import annotations

import keyword
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from cdpgen.domain.errors import SchemaError
from cdpgen.infrastructure.emitter import EmitOptions, emit_package
from cdpgen.infrastructure.filesystem import write_units
from cdpgen.infrastructure.graph.engine import DependencyGraph
from cdpgen.services.base import BaseService
from cdpgen.services.result import ServiceResult
from cdpgen.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


def _valid_package(name: str) -> bool:
    return all(part.isidentifier() and not keyword.iskeyword(part) for part in name.split("."))


class GenerateService(BaseService):
    """Generates the typed client package."""

    @traced
    def generate(
        self,
        paths: Sequence[str | Path] | None = None,
        *,
        output: str | Path | None = None,
        package: str | None = None,
        domains: Sequence[str] | None = None,
        dry_run: bool = False,
    ) -> ServiceResult:
        """Load, resolve, plan and emit; then write the units that changed.

        Arguments left as ``None`` fall back to the ``[input]`` and
        ``[generate]`` configuration. With *domains*, only those domains and
        the domains they transitively depend on are emitted.
        """
        op = "generate"
        cfg = self._settings.generate
        package = package or cfg.package
        if not _valid_package(package):
            return ServiceResult.failure(
                op, "INVALID_PACKAGE", f"Not a valid Python package name: {package!r}"
            )

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

        plan = pipeline.plan
        graph = DependencyGraph(pipeline.resolved)
        warnings = [
            f"Domain {source} references {target} without declaring the dependency"
            for source, target in graph.undeclared()
        ]

        selected = list(domains or cfg.domains)
        if selected:
            try:
                closure = graph.closure(selected)
            except KeyError as exc:
                available = [d.name for d in pipeline.resolved.domains]
                return ServiceResult.failure(
                    op,
                    "UNKNOWN_DOMAIN",
                    f"Unknown domain: {exc.args[0]}",
                    {"domain": exc.args[0], "available": available},
                )
            plan = plan.subset(set(closure))

        options = EmitOptions(
            package=package,
            support_module=cfg.support_module,
            workers=cfg.workers,
            template_dir=self._settings.template_dir,
        )
        with trace_span("emit") as span:
            units = emit_package(pipeline.resolved, plan, options)
            if span:
                span.annotate("units", len(units))

        output_dir = Path(output) if output else self._settings.resolve_path(cfg.output)
        data: dict[str, Any] = {
            "package": package,
            "output_dir": str(output_dir),
            "domains": [d.domain.name for d in plan.domains],
            "unit_count": len(units),
            "dry_run": dry_run,
        }
        if dry_run:
            data["units"] = [unit.name for unit in units]
            return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

        with trace_span("write") as span:
            try:
                report = write_units(output_dir, units)
            except (OSError, ValueError) as exc:
                return ServiceResult.failure(
                    op,
                    "WRITE_FAILED",
                    f"Cannot write generated package: {exc}",
                    {"output_dir": str(output_dir)},
                )
            if span:
                span.annotate("written", len(report.written))

        logger.info(
            "Generated %s: %d written, %d unchanged",
            package,
            len(report.written),
            len(report.unchanged),
        )
        data["written"] = report.written
        data["unchanged"] = report.unchanged
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)
