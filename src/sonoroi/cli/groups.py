"""sonoroi groups — list time-series groups of an acquisition directory."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import click

from sonoroi.cli.utils import FORMAT_OPTION, console, error_handler, format_output


@click.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--window", type=float, default=None,
    help="Grouping window in seconds (default: folder setting).",
)
@click.option("--filter", "filter_text", default=None, help="Only list matching files.")
@click.option(
    "--tags", "search_tags", is_flag=True,
    help="Let --filter also match DICOM tag text.",
)
@FORMAT_OPTION
@error_handler
def groups(
    directory: Path,
    window: float | None,
    filter_text: str | None,
    search_tags: bool,
    fmt: str,
) -> None:
    """Load, classify and group the acquisitions in DIRECTORY."""
    from sonoroi.analysis.filtering import matches_filter
    from sonoroi.core.settings import load_folder_settings
    from sonoroi.io import format_tags, load_groups

    settings = load_folder_settings(directory)
    if window is not None:
        settings = replace(settings, time_window_seconds=window)

    group_list = load_groups(directory, settings)

    rows = []
    for group in group_list:
        for acq in group.acquisitions:
            if filter_text:
                tags = format_tags(acq.path) if search_tags else None
                if not matches_filter(acq.name, filter_text, tags):
                    continue
            rows.append({
                "group": group.group_id,
                "label": group.label,
                "file": acq.name,
                "mode": acq.classification.value,
                "frames": acq.frame_count,
                "size": f"{acq.width}x{acq.height}",
                "acquired": acq.acquired_at.isoformat() if acq.acquired_at else "",
            })

    if not rows:
        console.print("[dim]No acquisitions found.[/dim]")
        return

    format_output(
        rows, ["group", "label", "file", "mode", "frames", "size", "acquired"],
        fmt, f"Groups (window {settings.time_window_seconds:g}s)",
    )
