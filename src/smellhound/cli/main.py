"""Click CLI entry point for smellhound."""

from __future__ import annotations

import logging

import click
from rich.logging import RichHandler

from smellhound._version import __version__
from smellhound.core.output import error_console


@click.group()
@click.version_option(version=__version__, prog_name="smellhound")
@click.option("-v", "--verbose", is_flag=True, help="Log scan progress to stderr")
def cli(verbose: bool):
    """smellhound - fast detector for magic numbers and code smells.

    Exit status bits: 1 = alerts at or above the fail tier,
    2 = some files could not be read, 4 = invalid configuration or a missing PATH.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=error_console, show_path=False)],
        )


# Import and register subcommands
from smellhound.cli.scan_cmd import scan, scan_magic  # noqa: E402

cli.add_command(scan)
cli.add_command(scan_magic)


if __name__ == "__main__":
    cli()
