"""sonoroi roi — inspect and edit the ROI sidecar of an acquisition directory."""

from __future__ import annotations

from pathlib import Path

import click

from sonoroi.cli.utils import FORMAT_OPTION, console, error_handler, format_output
from sonoroi.core.geometry import RoiShape, ShapeKind
from sonoroi.core.roi_store import RoiStore

_DIRECTORY = click.argument(
    "directory", type=click.Path(exists=True, file_okay=False, path_type=Path),
)


def _open_store(directory: Path) -> RoiStore:
    store = RoiStore()
    store.load(directory)
    return store


@click.group()
def roi() -> None:
    """Manage regions of interest."""


@roi.command("list")
@_DIRECTORY
@click.option("--group", "group_id", default=None, help="Only list this group.")
@FORMAT_OPTION
@error_handler
def list_rois(directory: Path, group_id: str | None, fmt: str) -> None:
    """List the ROIs stored for DIRECTORY."""
    store = _open_store(directory)
    group_ids = [group_id] if group_id else store.group_ids()

    rows = []
    for gid in group_ids:
        for index, region in enumerate(store.get_regions(gid)):
            shape = region.shape
            rows.append({
                "group": gid,
                "index": index,
                "id": region.id,
                "shape": shape.kind.value,
                "x": shape.x,
                "y": shape.y,
                "width": shape.width,
                "height": shape.height,
                "points": len(shape.points),
                "means": len(region.file_means),
            })

    if not rows:
        console.print("[dim]No ROIs found.[/dim]")
        return

    format_output(
        rows,
        ["group", "index", "id", "shape", "x", "y", "width", "height", "points", "means"],
        fmt, "ROIs",
    )


@roi.command()
@_DIRECTORY
@click.argument("group_id")
@click.option(
    "--shape", "shape_name", default="rectangle",
    type=click.Choice([k.value.lower() for k in ShapeKind], case_sensitive=False),
    help="ROI shape.",
)
@click.option(
    "--box", type=float, nargs=4, default=None, metavar="X Y W H",
    help="Bounding box for rectangle and ellipse ROIs.",
)
@click.option(
    "--point", "points", type=float, nargs=2, multiple=True, metavar="X Y",
    help="Freeform vertex (repeat for each vertex).",
)
@click.option("--id", "region_id", default=None, help="Explicit ROI id.")
@error_handler
def add(
    directory: Path,
    group_id: str,
    shape_name: str,
    box: tuple[float, float, float, float] | None,
    points: tuple[tuple[float, float], ...],
    region_id: str | None,
) -> None:
    """Add an ROI to GROUP_ID."""
    kind = ShapeKind.parse(shape_name)
    if kind is ShapeKind.FREEFORM:
        if box:
            raise click.UsageError("--box is not used by freeform ROIs; use --point")
        shape = RoiShape.freeform(points)
    else:
        if box is None:
            raise click.UsageError(f"{kind.value} ROIs need --box X Y W H")
        if points:
            raise click.UsageError("--point is only used by freeform ROIs")
        shape = RoiShape(kind, *box)

    store = _open_store(directory)
    new_id = store.add_region(group_id, shape, region_id=region_id)
    store.save(directory)
    console.print(f"[green]Added {kind.value} ROI[/green] {new_id} to {group_id}")


@roi.command()
@_DIRECTORY
@click.argument("group_id")
@click.argument("region_id")
@error_handler
def remove(directory: Path, group_id: str, region_id: str) -> None:
    """Remove ROI REGION_ID from GROUP_ID."""
    store = _open_store(directory)
    if not store.remove_region(group_id, region_id):
        console.print(f"[yellow]No ROI {region_id} in {group_id}.[/yellow]")
        return
    store.save(directory)
    console.print(f"[green]Removed ROI[/green] {region_id}")


@roi.command()
@_DIRECTORY
@click.argument("group_id")
@error_handler
def clear(directory: Path, group_id: str) -> None:
    """Remove every ROI of GROUP_ID."""
    store = _open_store(directory)
    count = len(store.get_regions(group_id))
    store.clear_group(group_id)
    store.save(directory)
    console.print(f"[green]Cleared {count} ROI(s)[/green] from {group_id}")


@roi.command()
@_DIRECTORY
@click.argument("group_id")
@click.argument("x", type=float)
@click.argument("y", type=float)
@error_handler
def hit(directory: Path, group_id: str, x: float, y: float) -> None:
    """Show which ROI of GROUP_ID contains the point X, Y."""
    store = _open_store(directory)
    region = store.hit_test(group_id, x, y)
    if region is None:
        console.print("[dim]No ROI at that point.[/dim]")
        return
    console.print(f"{region.id} ({region.shape.kind.value})")
