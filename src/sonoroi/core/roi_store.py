"""RoiStore — per-group ROI lists with undo history and sidecar persistence."""

from __future__ import annotations

import copy
import json
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from sonoroi.core._atomic import atomic_write_json
from sonoroi.core.exceptions import DuplicateRegionError
from sonoroi.core.geometry import RoiShape, ShapeKind, contains_point

logger = logging.getLogger(__name__)

ROI_FILE_NAME = "dicom_viewer.roi"

# Integer shape codes written by older sidecar files.
_LEGACY_SHAPE_CODES = {0: ShapeKind.RECTANGLE, 1: ShapeKind.ELLIPSE, 2: ShapeKind.FREEFORM}


@dataclass
class RoiRegion:
    """One ROI belonging to a time-series group.

    Attributes:
        id: Unique id within the group.
        group_id: Owning group.
        shape: The ROI outline in image coordinates.
        file_means: Mean intensity per acquisition name.
    """

    id: str
    group_id: str
    shape: RoiShape
    file_means: dict[str, float] = field(default_factory=dict)

    def contains_point(self, px: float, py: float) -> bool:
        return contains_point(self.shape, px, py)


# A snapshot is the group's full region list before a mutation, or None
# when the group did not exist.
_Snapshot = list[RoiRegion] | None


class RoiStore:
    """Owns the ROI regions of every group in one acquisition directory.

    Regions are kept in per-group ordered lists; list order is hit-test
    priority. Every mutating call pushes the group's previous state onto
    that group's undo stack first. A group with no regions is absent from
    the map rather than mapped to an empty list.

    The store is not synchronized: callers must serialize mutating calls.
    """

    def __init__(self) -> None:
        self._regions: dict[str, list[RoiRegion]] = {}
        self._undo: dict[str, list[_Snapshot]] = {}

    # --- Queries ---

    def get_regions(self, group_id: str) -> list[RoiRegion]:
        """Return the group's regions in priority order (empty if none)."""
        return list(self._regions.get(group_id, []))

    def get_region(self, group_id: str) -> RoiRegion | None:
        """Return the lead (first) region of a group, or None."""
        regions = self._regions.get(group_id)
        return regions[0] if regions else None

    def find_region(self, group_id: str, region_id: str) -> RoiRegion | None:
        for region in self._regions.get(group_id, []):
            if region.id == region_id:
                return region
        return None

    def group_ids(self) -> list[str]:
        return list(self._regions)

    def hit_test(self, group_id: str, px: float, py: float) -> RoiRegion | None:
        """Return the first region of the group containing the point."""
        for region in self._regions.get(group_id, []):
            if region.contains_point(px, py):
                return region
        return None

    def can_undo(self, group_id: str) -> bool:
        return bool(self._undo.get(group_id))

    def __len__(self) -> int:
        return len(self._regions)

    def __contains__(self, group_id: object) -> bool:
        return group_id in self._regions

    # --- Mutations ---

    def add_region(
        self, group_id: str, shape: RoiShape, region_id: str | None = None,
    ) -> str:
        """Append a new region to a group (lowest hit-test priority).

        Args:
            group_id: Target group.
            shape: ROI outline.
            region_id: Explicit id. A fresh one is generated if None.

        Returns:
            The id of the new region.

        Raises:
            DuplicateRegionError: If ``region_id`` already exists in the group.
        """
        if region_id is not None and self.find_region(group_id, region_id):
            raise DuplicateRegionError(group_id, region_id)
        new_id = region_id or uuid.uuid4().hex

        self._push_snapshot(group_id)
        region = RoiRegion(id=new_id, group_id=group_id, shape=shape)
        self._regions.setdefault(group_id, []).append(region)
        return new_id

    def remove_region(self, group_id: str, region_id: str) -> bool:
        """Remove the first region with a matching id.

        Returns:
            True if a region was removed, False otherwise.
        """
        regions = self._regions.get(group_id)
        if regions is None:
            return False

        self._push_snapshot(group_id)
        for i, region in enumerate(regions):
            if region.id == region_id:
                del regions[i]
                if not regions:
                    del self._regions[group_id]
                return True
        return False

    def replace_shape(self, group_id: str, region_id: str, shape: RoiShape) -> bool:
        """Replace a region's outline, dropping means computed for the old one."""
        region = self.find_region(group_id, region_id)
        if region is None:
            return False
        # Snapshots are deep copies, so the live region can be edited in place.
        self._push_snapshot(group_id)
        region.shape = shape
        region.file_means.clear()
        return True

    def clear_group(self, group_id: str) -> None:
        """Drop every region of a group."""
        self._push_snapshot(group_id)
        self._regions.pop(group_id, None)

    def undo(self, group_id: str) -> bool:
        """Restore the group's state from before its last mutating call.

        Returns:
            True if a snapshot was restored, False if there was nothing to undo.
        """
        stack = self._undo.get(group_id)
        if not stack:
            return False
        snapshot = stack.pop()
        if snapshot is None:
            self._regions.pop(group_id, None)
        else:
            self._regions[group_id] = snapshot
        return True

    def attach_mean(self, group_id: str, acquisition_key: str, value: float) -> None:
        """Record a mean intensity on the group's lead region.

        Only the first region receives the value; no-op if the group has none.
        """
        lead = self.get_region(group_id)
        if lead is not None:
            lead.file_means[acquisition_key] = float(value)

    def _push_snapshot(self, group_id: str) -> None:
        current = self._regions.get(group_id)
        snapshot = copy.deepcopy(current) if current is not None else None
        self._undo.setdefault(group_id, []).append(snapshot)

    # --- Persistence ---

    def save(self, directory: str | Path | None) -> None:
        """Write all groups to the sidecar file in ``directory``.

        Does nothing when ``directory`` is empty or None.
        """
        if not directory:
            return
        path = Path(directory) / ROI_FILE_NAME
        data = {
            group_id: [_region_to_dict(r) for r in regions]
            for group_id, regions in self._regions.items()
        }
        atomic_write_json(path, data)
        logger.debug("Saved ROIs for %d group(s) to %s", len(data), path)

    def load(self, directory: str | Path) -> None:
        """Replace the store's contents with the sidecar file in ``directory``.

        Missing, unreadable or malformed files (including duplicate region
        ids within a group) leave the store empty. Legacy files that
        map each group to a single region are upgraded to one-element lists.
        Undo history is discarded.
        """
        self._regions = {}
        self._undo = {}
        path = Path(directory) / ROI_FILE_NAME
        try:
            if not path.exists():
                return
            data = json.loads(path.read_text(encoding="utf-8"))
            self._regions = _parse_roi_map(data)
        except (
            OSError, ValueError, TypeError, KeyError, IndexError, AttributeError, RecursionError,
        ) as e:
            logger.warning("Failed to load ROI file %s: %s", path, e)
            self._regions = {}


def _region_to_dict(region: RoiRegion) -> dict[str, Any]:
    shape = region.shape
    return {
        "id": region.id,
        "groupId": region.group_id,
        "shape": shape.kind.value,
        "x": shape.x,
        "y": shape.y,
        "width": shape.width,
        "height": shape.height,
        "points": [[px, py] for px, py in shape.points],
        "fileMeans": dict(region.file_means),
    }


def _parse_shape_kind(value: Any) -> ShapeKind:
    if isinstance(value, int) and not isinstance(value, bool):
        if value not in _LEGACY_SHAPE_CODES:
            raise ValueError(f"Unknown shape code: {value}")
        return _LEGACY_SHAPE_CODES[value]
    return ShapeKind.parse(value)


def _region_from_dict(group_id: str, data: dict[str, Any]) -> RoiRegion:
    kind = _parse_shape_kind(data.get("shape", ShapeKind.RECTANGLE.value))
    shape = RoiShape(
        kind=kind,
        x=float(data.get("x", 0.0)),
        y=float(data.get("y", 0.0)),
        width=float(data.get("width", 0.0)),
        height=float(data.get("height", 0.0)),
        points=tuple((float(p[0]), float(p[1])) for p in data.get("points") or []),
    )
    means = data.get("fileMeans") or {}
    return RoiRegion(
        id=str(data.get("id") or uuid.uuid4().hex),
        group_id=group_id,
        shape=shape,
        file_means={str(k): float(v) for k, v in means.items()},
    )


def _parse_roi_map(data: Any) -> dict[str, list[RoiRegion]]:
    if not isinstance(data, dict):
        raise ValueError(f"expected a mapping, got {type(data).__name__}")
    result: dict[str, list[RoiRegion]] = {}
    for group_id, entry in data.items():
        if isinstance(entry, dict):
            entry = [entry]  # legacy: one region per group
        if not isinstance(entry, list):
            raise ValueError(f"group {group_id!r}: expected a list of regions")
        regions = [_region_from_dict(group_id, item) for item in entry]
        ids = [r.id for r in regions]
        if len(set(ids)) != len(ids):
            raise ValueError(f"group {group_id!r}: duplicate region ids")
        if regions:
            result[group_id] = regions
    return result

