"""CLI command: baseline-check trends — summarize recorded scan history."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from baselinecheck.analytics.trends import TrendStore
from baselinecheck.cli._common import load_config

console = Console(stderr=True)


@click.command()
@click.option("--days", "-d", type=int, default=30, show_default=True)
@click.option(
    "--markdown",
    is_flag=True,
    help="Print a markdown report to stdout instead of a table.",
)
@click.pass_context
def trends(ctx: click.Context, days: int, markdown: bool) -> None:
    """Show risk and adoption trends over recent scans."""
    config = load_config(ctx)
    store = TrendStore(config.analytics_dir)

    if markdown:
        click.echo(store.generate_report(days))
        return

    report = store.get_trends(days)
    if report is None or report.summary is None:
        console.print("[yellow]No analytics data available. Run some scans first.[/yellow]")
        return

    table = Table(title=f"Trends (last {report.period})")
    table.add_column("Date")
    table.add_column("Scans", justify="right")
    table.add_column("Features", justify="right")
    table.add_column("Risk", justify="right")
    table.add_column("Adoption", justify="right")
    for day in report.daily_data:
        table.add_row(
            day.date,
            str(day.scans),
            str(day.total_features),
            f"{day.avg_risk_score:.2f}",
            f"{day.avg_adoption_score:.2f}",
        )
    console.print(table)

    s = report.summary
    console.print(
        f"\nRisk {s.risk_trend} ({s.risk_change:+.3f}), "
        f"adoption {s.adoption_trend} ({s.adoption_change:+.3f}) "
        f"over {s.total_scans} scans"
    )
