"""sonoroi stats — compute ROI mean intensities and per-group summaries."""

from __future__ import annotations

from pathlib import Path

import click

from sonoroi.cli.utils import FORMAT_OPTION, console, error_handler, format_output, make_progress


@click.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--group", "group_id", default=None, help="Only process this group.")
@FORMAT_OPTION
@error_handler
def stats(directory: Path, group_id: str | None, fmt: str) -> None:
    """Measure each group's lead ROI on every acquisition in DIRECTORY.

    Results are saved to the ROI file and summarized per group.
    """
    from sonoroi.analysis.batch import GroupMeanComputer, apply_result
    from sonoroi.analysis.grouping import find_group
    from sonoroi.analysis.statistics import summarize_region
    from sonoroi.core.exceptions import GroupNotFoundError
    from sonoroi.core.roi_store import RoiStore
    from sonoroi.io import DicomPixelProvider, load_groups

    group_list = load_groups(directory)
    if group_id is not None:
        selected = find_group(group_list, group_id)
        if selected is None:
            raise GroupNotFoundError(group_id)
        group_list = [selected]

    store = RoiStore()
    store.load(directory)
    work = [(g, store.get_region(g.group_id)) for g in group_list]
    work = [(g, r) for g, r in work if r is not None]

    if not work:
        console.print("[dim]No groups with ROIs to measure.[/dim]")
        return

    computer = GroupMeanComputer(lambda acq: DicomPixelProvider(acq.path))
    warnings: list[str] = []
    # Machine-readable formats get no progress bar.
    with make_progress(disable=fmt != "table") as progress:
        for group, region in work:
            task = progress.add_task(group.label, total=len(group.acquisitions))

            def on_progress(current: int, total: int, name: str, _task=task) -> None:
                progress.update(_task, completed=current)

            result = computer.compute_group(group, region, progress_callback=on_progress)
            apply_result(store, result)
            warnings.extend(result.warnings)

    store.save(directory)

    for warning in warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")

    rows = []
    for group, _ in work:
        lead = store.get_region(group.group_id)
        summary = summarize_region(lead)
        rows.append({
            "group": group.group_id,
            "label": group.label,
            "roi": lead.id,
            "count": summary.count,
            "mean": round(summary.mean, 2),
            "min": round(summary.min, 2),
            "max": round(summary.max, 2),
            "std_dev": round(summary.std_dev, 2),
        })

    format_output(
        rows, ["group", "label", "roi", "count", "mean", "min", "max", "std_dev"],
        fmt, "ROI Intensity Summary",
    )
