"""Command: generate the typed client package."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from cdpgen.commands._base import CdpCommand

if TYPE_CHECKING:
    from cdpgen.commands._context import AppContext


@click.command(
    cls=CdpCommand,
    examples="""\
  cdpgen generate browser_protocol.json js_protocol.json
  cdpgen generate protocol.json -o src -p devtools
  cdpgen generate protocol.json -d Page -d Network
  cdpgen generate protocol.json --dry-run
  cdpgen generate                      # uses [input] paths from cdpgen.toml""",
)
@click.argument("schemas", nargs=-1, type=click.Path(dir_okay=False))
@click.option("-o", "--output", default=None, help="Output root directory.")
@click.option("-p", "--package", default=None, help="Root package name of the generated code.")
@click.option(
    "-d",
    "--domain",
    "domains",
    multiple=True,
    help="Emit only this domain and what it depends on (repeatable).",
)
@click.option("--dry-run", is_flag=True, help="Render everything but write nothing.")
@click.pass_obj
def generate(
    app: AppContext,
    schemas: tuple[str, ...],
    output: str | None,
    package: str | None,
    domains: tuple[str, ...],
    dry_run: bool,
) -> None:
    """Generate typed Python interfaces from protocol schema files."""
    from cdpgen.services.generate import GenerateService

    app.emit(
        GenerateService(app.settings).generate(
            list(schemas),
            output=output,
            package=package,
            domains=list(domains) or None,
            dry_run=dry_run,
        )
    )
