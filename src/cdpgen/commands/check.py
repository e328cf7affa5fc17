"""Command: validate protocol schema files."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from cdpgen.commands._base import CdpCommand

if TYPE_CHECKING:
    from cdpgen.commands._context import AppContext


@click.command(
    cls=CdpCommand,
    examples="""\
  cdpgen check browser_protocol.json js_protocol.json
  cdpgen check protocol.yaml
  cdpgen --json check protocol.json""",
)
@click.argument("schemas", nargs=-1, type=click.Path(dir_okay=False))
@click.pass_obj
def check(app: AppContext, schemas: tuple[str, ...]) -> None:
    """Load and resolve schemas without generating code."""
    from cdpgen.services.check import CheckService

    app.emit(CheckService(app.settings).check(list(schemas)))
