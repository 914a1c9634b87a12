"""GroupMeanComputer — ROI means for every acquisition of a time-series group."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from sonoroi.analysis.statistics import PixelProvider, compute_mean_intensity
from sonoroi.core.geometry import RoiShape

if TYPE_CHECKING:
    from sonoroi.core.models import Acquisition, TimeSeriesGroup
    from sonoroi.core.roi_store import RoiRegion, RoiStore

logger = logging.getLogger(__name__)

ProviderFactory = Callable[["Acquisition"], PixelProvider]


@dataclass(frozen=True)
class GroupMeanResult:
    """Means computed for one region over one group.

    Attributes:
        group_id: Group the means belong to.
        region_id: Region the means were computed for.
        shape: The region's shape at computation time.
        means: Mean intensity per acquisition name.
        warnings: Acquisitions that could not be measured, with reasons.
        elapsed_seconds: Wall-clock time in seconds.
    """

    group_id: str
    region_id: str
    shape: RoiShape
    means: dict[str, float] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0


class GroupMeanComputer:
    """Compute a region's mean intensity across all acquisitions of a group.

    This is the long-running part of an ROI edit and is meant to run on a
    worker. It does not touch the ROI store; use ``apply_result`` on the
    thread that owns the store.

    Args:
        open_provider: Callable returning a PixelProvider for an acquisition.
    """

    def __init__(self, open_provider: ProviderFactory) -> None:
        self._open_provider = open_provider

    def compute_group(
        self,
        group: TimeSeriesGroup,
        region: RoiRegion,
        progress_callback: Callable[[int, int, str], None] | None = None,
    ) -> GroupMeanResult:
        """Measure ``region`` on every acquisition of ``group``.

        Args:
            group: The time-series group.
            region: Region to measure.
            progress_callback: Optional callback(current, total, acquisition_name).

        Returns:
            GroupMeanResult with one mean per acquisition that could be opened.
        """
        start = time.monotonic()
        shape = region.shape
        means: dict[str, float] = {}
        warnings: list[str] = []
        total = len(group.acquisitions)

        for i, acq in enumerate(group.acquisitions):
            try:
                provider = self._open_provider(acq)
                means[acq.name] = compute_mean_intensity(provider, shape)
            except Exception as exc:
                if isinstance(exc, (MemoryError, KeyboardInterrupt, SystemExit)):
                    raise
                logger.warning(
                    "ROI mean failed for %s in %s: %s",
                    acq.name, group.group_id, exc, exc_info=True,
                )
                warnings.append(f"{acq.name}: {exc}")

            if progress_callback:
                progress_callback(i + 1, total, acq.name)

        return GroupMeanResult(
            group_id=group.group_id,
            region_id=region.id,
            shape=shape,
            means=means,
            warnings=warnings,
            elapsed_seconds=round(time.monotonic() - start, 3),
        )


def apply_result(store: RoiStore, result: GroupMeanResult) -> bool:
    """Write a result's means into the store if it is still current.

    Means are attached to the group's lead region. If that region has been
    removed, replaced or reshaped since the computation started, the result
    is stale and is discarded.

    Returns:
        True if the means were attached.
    """
    lead = store.get_region(result.group_id)
    if lead is None or lead.id != result.region_id or lead.shape != result.shape:
        logger.info("Discarding stale ROI means for group %s", result.group_id)
        return False
    for name, value in result.means.items():
        store.attach_mean(result.group_id, name, value)
    return True
