"""sonoroi settings — show or update a directory's folder settings."""

from __future__ import annotations

from dataclasses import asdict, replace
from pathlib import Path

import click

from sonoroi.cli.utils import FORMAT_OPTION, error_handler, format_output
from sonoroi.core.settings import load_folder_settings, save_folder_settings


@click.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--window", type=float, default=None, help="Grouping window in seconds.")
@click.option("--ceus-spacing", type=float, default=None, help="Target pixel spacing for CEUS.")
@click.option("--shi-spacing", type=float, default=None, help="Target pixel spacing for SHI.")
@FORMAT_OPTION
@error_handler
def settings(
    directory: Path,
    window: float | None,
    ceus_spacing: float | None,
    shi_spacing: float | None,
    fmt: str,
) -> None:
    """Show the settings of DIRECTORY, updating any values given."""
    current = load_folder_settings(directory)
    changes = {
        key: value
        for key, value in (
            ("time_window_seconds", window),
            ("ceus_spacing", ceus_spacing),
            ("shi_spacing", shi_spacing),
        )
        if value is not None
    }
    if changes:
        current = replace(current, **changes)
        save_folder_settings(directory, current)

    rows = [{"setting": k, "value": v} for k, v in asdict(current).items()]
    format_output(rows, ["setting", "value"], fmt, "Folder Settings")
