"""CLI commands: baseline-check cache stats|clear."""

from __future__ import annotations

import click
from rich.console import Console

from baselinecheck.cache import FingerprintCache
from baselinecheck.cli._common import load_config

console = Console(stderr=True)


@click.group()
def cache() -> None:
    """Inspect or clear the scan result cache."""


@cache.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show how many cache entries exist and their size."""
    config = load_config(ctx)
    result = FingerprintCache(config.cache_dir).stats()
    console.print(
        f"Cache [cyan]{config.cache_dir}[/cyan]: "
        f"{result.files} entries, {result.formatted}"
    )


@cache.command()
@click.pass_context
def clear(ctx: click.Context) -> None:
    """Delete every cached scan result."""
    config = load_config(ctx)
    FingerprintCache(config.cache_dir).invalidate_all()
    console.print(f"[green]Cleared cache {config.cache_dir}[/green]")
