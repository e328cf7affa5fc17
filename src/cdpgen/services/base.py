"""BaseService — shared pipeline for all cdpgen services.

Every service receives :class:`CdpgenSettings` at construction time and
drives the same front half of the pipeline: read the schema documents,
resolve every type reference, then plan signatures. Each stage runs inside
its own telemetry span.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from cdpgen.domain.planner import plan_schema
from cdpgen.domain.resolver import resolve_schema
from cdpgen.infrastructure.schema_files import load_schema_files
from cdpgen.services.result import ServiceResult
from cdpgen.services.telemetry import trace_span

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cdpgen.config.settings import CdpgenSettings
    from cdpgen.domain.errors import SchemaError
    from cdpgen.domain.planner import SchemaPlan
    from cdpgen.domain.resolver import ResolvedSchema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pipeline:
    """Resolved and planned schema, ready for emission."""

    resolved: ResolvedSchema
    plan: SchemaPlan


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class CheckService(BaseService):
            def check(self, paths) -> ServiceResult:
                try:
                    pipeline = self._prepare(self._schema_paths(paths))
                except SchemaError as exc:
                    return self._schema_failure("check", exc)
                ...
    """

    def __init__(self, settings: CdpgenSettings) -> None:
        self._settings = settings

    def _schema_paths(self, paths: Sequence[str | Path] | None) -> list[Path]:
        """Explicit *paths* (relative to the CWD), or the configured ``[input] paths``."""
        if paths:
            return [Path(p) for p in paths]
        return self._settings.schema_paths

    def _prepare(self, paths: Sequence[Path]) -> Pipeline:
        with trace_span("load") as span:
            schema = load_schema_files(paths)
            if span:
                span.annotate("files", len(paths))
                span.annotate("domains", len(schema.domains))

        with trace_span("resolve") as span:
            resolved = resolve_schema(schema)
            if span:
                span.annotate("types", len(resolved.types))

        with trace_span("plan") as span:
            plan = plan_schema(resolved)
            if span:
                span.annotate("signatures", plan.signature_count)

        logger.debug(
            "Prepared %d domains (%d types, %d signatures)",
            len(resolved.domains),
            len(resolved.types),
            plan.signature_count,
        )
        return Pipeline(resolved=resolved, plan=plan)

    def _schema_failure(self, op: str, exc: SchemaError) -> ServiceResult:
        """Log a rejected schema and turn it into a failed result."""
        logger.debug("Schema rejected", extra={"op": op, "error": exc})
        return ServiceResult.from_schema_error(op, exc)
