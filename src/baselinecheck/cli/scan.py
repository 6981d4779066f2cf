"""CLI command: baseline-check scan — detect web platform features."""

from __future__ import annotations

import asyncio
import sys
from dataclasses import replace

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TextColumn
from rich.table import Table

from baselinecheck.cli._common import load_config
from baselinecheck.errors import BaselineCheckError
from baselinecheck.rules.presets import PRESETS, resolve_options
from baselinecheck.scanner.models import Report
from baselinecheck.scanner.pipeline import DEFAULT_OUTPUT, ScanPipeline, split_paths

console = Console(stderr=True)


@click.command()
@click.option(
    "--paths",
    "-p",
    default=".",
    show_default=True,
    help="Comma-separated root paths to scan.",
)
@click.option(
    "--out",
    "-o",
    type=click.Path(dir_okay=False),
    default=DEFAULT_OUTPUT,
    show_default=True,
    help="Where to write the JSON report.",
)
@click.option(
    "--preset",
    type=click.Choice(sorted(PRESETS)),
    default=None,
    help="Use a named preset instead of the configured detector settings.",
)
@click.option("--no-cache", is_flag=True, help="Ignore and do not write the cache.")
@click.option("--no-trends", is_flag=True, help="Do not record this scan in trends.")
@click.pass_context
def scan(
    ctx: click.Context,
    paths: str,
    out: str,
    preset: str | None,
    no_cache: bool,
    no_trends: bool,
) -> None:
    """Scan source files for web platform features."""
    config = load_config(ctx)
    if preset:
        config = config.with_overrides(
            detector=resolve_options(preset, custom_rules=config.custom_rules)
        )
    if no_cache:
        config = config.with_overrides(
            performance=replace(config.performance, cache_results=False)
        )
    if no_trends:
        config = config.with_overrides(record_trends=False)

    roots = split_paths(paths)
    console.print(
        f"[bold]Baseline Check[/bold] scanning [cyan]{', '.join(roots)}[/cyan]\n"
    )

    with Progress(
        TextColumn("Processing files..."),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        console=console,
        transient=True,
    ) as progress:
        task: list[TaskID] = []

        def _on_progress(done: int, total: int) -> None:
            if not task:
                task.append(progress.add_task("scan", total=total))
            progress.update(task[0], completed=done)

        pipeline = ScanPipeline(config=config, progress=_on_progress)
        try:
            report = asyncio.run(pipeline.run(roots, out=out))
        except BaselineCheckError as e:
            console.print(f"[red]Scan failed: {e}[/red]")
            sys.exit(1)

    _print_report(report)
    console.print(f"\n[green]Generated baseline report: {out}[/green]")


def _print_report(report: Report) -> None:
    meta = report.metadata
    if not report.detected:
        console.print("[yellow]No features detected.[/yellow]")
    else:
        table = Table(title="Detected features", show_lines=False)
        table.add_column("Feature", style="cyan")
        table.add_column("Files", justify="right")
        table.add_column("Example", max_width=50)
        for result in sorted(report.detected, key=lambda r: (-r.count, r.feature)):
            table.add_row(result.feature, str(result.count), result.files[0])
        console.print(table)

    summary = f"\nProcessed {meta.processed_files} of {meta.scanned_files} files"
    if meta.error_count:
        summary += f" ({meta.error_count} errors)"
    if meta.skipped_files:
        summary += f" ({meta.skipped_files} skipped)"
    console.print(summary)
    console.print(f"Found {len(report.detected)} unique features")
