"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from intentgate.cli_commands.audit import audit
    from intentgate.cli_commands.check import check

    cli.add_command(check)
    cli.add_command(audit)
