"""SonoROI CLI — top-level Click group."""

from __future__ import annotations

import click


@click.group()
@click.version_option(package_name="sonoroi")
@click.option("--verbose", "-v", is_flag=True, help="Show full tracebacks on errors.")
def cli(verbose: bool) -> None:
    """SonoROI — ultrasound time-series ROI analysis."""
    from sonoroi.cli import utils

    utils.verbose = verbose


def _register_commands() -> None:
    """Register all subcommands — imports deferred to keep startup light."""
    from sonoroi.cli.groups import groups
    from sonoroi.cli.roi import roi
    from sonoroi.cli.settings import settings
    from sonoroi.cli.stats import stats

    cli.add_command(groups)
    cli.add_command(roi)
    cli.add_command(settings)
    cli.add_command(stats)


_register_commands()
