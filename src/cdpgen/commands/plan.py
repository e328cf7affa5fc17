"""Command: show the planned call signatures."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from cdpgen.commands._base import CdpCommand

if TYPE_CHECKING:
    from cdpgen.commands._context import AppContext


@click.command(
    cls=CdpCommand,
    examples="""\
  cdpgen plan protocol.json
  cdpgen plan protocol.json -d Debugger
  cdpgen -q plan protocol.json""",
)
@click.argument("schemas", nargs=-1, type=click.Path(dir_okay=False))
@click.option("-d", "--domain", default=None, help="Only show this domain.")
@click.pass_obj
def plan(app: AppContext, schemas: tuple[str, ...], domain: str | None) -> None:
    """List every overload generation would emit."""
    from cdpgen.services.plan import PlanService

    app.emit(PlanService(app.settings).plan(list(schemas), domain=domain))
