"""intentgate CLI entrypoint."""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from intentgate import __version__


@click.group()
@click.version_option(version=__version__, prog_name="intentgate")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging on stderr.")
def main(verbose: bool) -> None:
    """intentgate — evaluate agent intents against a policy."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(name)s: %(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


# Register subcommands
from intentgate.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
