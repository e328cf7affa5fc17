"""AppContext — what every cdpgen subcommand receives via ``@click.pass_obj``.

Built once by the root group: it applies the logging and telemetry flags,
tags log records with the config file in effect, and turns a
:class:`ServiceResult` into output plus an exit status.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click
import structlog

from cdpgen.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from cdpgen.config.settings import CdpgenSettings
    from cdpgen.services.result import ServiceResult

log = structlog.get_logger(__name__)


class AppContext:
    """Settings plus result emission for one CLI invocation."""

    def __init__(self, settings: CdpgenSettings) -> None:
        self.settings = settings

        from cdpgen.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        structlog.contextvars.clear_contextvars()
        if settings.config_path is not None:
            structlog.contextvars.bind_contextvars(config=str(settings.config_path))

        if settings.verbose:
            from cdpgen.services.telemetry import enable_telemetry

            enable_telemetry()

        log.debug(
            "settings.loaded",
            project_root=str(settings.project_root),
            schemas=[str(p) for p in settings.schema_paths],
            package=settings.generate.package,
        )

    @property
    def output_settings(self) -> OutputSettings:
        return OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; a failed result exits with status 1.

        Output goes to stdout on success so generated listings can be piped.
        Warnings (undeclared cross-domain references) and failures go to
        stderr. In JSON mode warnings stay inside the payload.
        """
        settings = self.output_settings
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
            return

        error = result.error
        log.debug(
            "command.failed",
            op=result.op,
            code=error.code if error else None,
            schema_path=error.detail.get("path") if error else None,
        )
        click.echo(output, err=True)
        raise SystemExit(1)
