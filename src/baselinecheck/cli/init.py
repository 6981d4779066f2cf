"""CLI command: baseline-check init — write a starter config file."""

from __future__ import annotations

import sys

import click
from rich.console import Console

from baselinecheck.config import CONFIG_FILENAMES, create_default_config_file

console = Console(stderr=True)


@click.command()
@click.option(
    "--path",
    type=click.Path(dir_okay=False),
    default=CONFIG_FILENAMES[0],
    show_default=True,
    help="Where to write the config.",
)
def init(path: str) -> None:
    """Create a baseline-check.yaml with the default settings."""
    if not create_default_config_file(path):
        console.print(f"[red]Could not create {path} (does it already exist?)[/red]")
        sys.exit(1)
    console.print(f"[green]Config written to {path}[/green]")
