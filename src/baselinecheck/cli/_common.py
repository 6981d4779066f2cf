"""Helpers shared by CLI commands."""

from __future__ import annotations

import click

from baselinecheck.config import ScanConfig


def load_config(ctx: click.Context) -> ScanConfig:
    """Load the config selected by the global ``--config`` option."""
    return ScanConfig.load(ctx.obj.get("config_path") if ctx.obj else None)
