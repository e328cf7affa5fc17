"""Subcommand modules for cdpgen.

Provides register_commands() which uses deferred imports to keep
``cdpgen --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the standalone commands on the root CLI group."""
    from cdpgen.commands.check import check
    from cdpgen.commands.generate import generate
    from cdpgen.commands.plan import plan

    cli.add_command(generate)
    cli.add_command(check)
    cli.add_command(plan)
