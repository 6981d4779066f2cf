"""CLI command: baseline-check rules — list the active rule set."""

from __future__ import annotations

import sys

import click
from rich.console import Console
from rich.table import Table

from baselinecheck.cli._common import load_config
from baselinecheck.rules.catalog import catalog_stats
from baselinecheck.rules.presets import PRESETS, resolve_options
from baselinecheck.rules.registry import RuleRegistry

console = Console(stderr=True)


@click.command()
@click.option(
    "--preset",
    type=click.Choice(sorted(PRESETS)),
    default=None,
    help="Show the rules a named preset would enable.",
)
@click.option("--stats", "show_stats", is_flag=True, help="Show catalog counts only.")
@click.pass_context
def rules(ctx: click.Context, preset: str | None, show_stats: bool) -> None:
    """List the detection rules a scan would apply."""
    if show_stats:
        stats = catalog_stats()
        console.print(f"[bold]{stats['total']}[/bold] built-in rules")
        for group, count in stats["by_group"].items():
            console.print(f"  {group}: {count}")
        for framework, count in stats["by_framework"].items():
            console.print(f"  [dim]framework[/dim] {framework}: {count}")
        return

    config = load_config(ctx)
    options = config.detector
    if preset:
        options = resolve_options(preset, custom_rules=config.custom_rules)

    registry = RuleRegistry.build(options)
    rule_set = registry.freeze()

    table = Table(title=f"Active rules ({len(rule_set)})", show_lines=False)
    table.add_column("Rule", style="cyan")
    table.add_column("Category")
    table.add_column("Framework")
    table.add_column("Pattern", max_width=50)
    for entry in rule_set.snapshot():
        table.add_row(
            entry["name"],
            entry["category"],
            entry.get("framework", ""),
            entry.get("pattern", entry.get("matcher", "")),
        )
    console.print(table)

    problems = registry.validate()
    if problems:
        console.print(f"\n[red]{len(problems)} rule problem(s):[/red]")
        for problem in problems:
            console.print(f"  - {problem}")
        sys.exit(1)
