"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging

import click

from baselinecheck import __version__


@click.group()
@click.version_option(version=__version__, prog_name="baseline-check")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a YAML config file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """Baseline Check — find web platform features used in your sources."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _register_commands() -> None:
    from baselinecheck.cli.cache import cache  # noqa: F811
    from baselinecheck.cli.init import init  # noqa: F811
    from baselinecheck.cli.rules import rules  # noqa: F811
    from baselinecheck.cli.scan import scan  # noqa: F811
    from baselinecheck.cli.trends import trends  # noqa: F811

    main.add_command(scan)
    main.add_command(rules)
    main.add_command(cache)
    main.add_command(trends)
    main.add_command(init)


_register_commands()
