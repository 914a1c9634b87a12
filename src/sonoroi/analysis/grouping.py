"""Gap-based temporal grouping of acquisitions into time series."""

from __future__ import annotations

import logging
from typing import Iterable

from sonoroi.core.models import Acquisition, TimeSeriesGroup

logger = logging.getLogger(__name__)

UNKNOWN_GROUP_ID = "group_unknown"
UNKNOWN_GROUP_LABEL = "Unknown Time"
DEFAULT_TIME_WINDOW_SECONDS = 60.0


def group_acquisitions(
    acquisitions: Iterable[Acquisition],
    window_seconds: float = DEFAULT_TIME_WINDOW_SECONDS,
) -> list[TimeSeriesGroup]:
    """Cluster acquisitions into time series by acquisition timestamp.

    Timestamped acquisitions are sorted and scanned in order; a new group
    starts whenever the gap since the previous acquisition is strictly
    greater than ``window_seconds``. Acquisitions without a timestamp go
    into one trailing "Unknown Time" group in their original order.

    Args:
        acquisitions: Acquisitions to group.
        window_seconds: Maximum gap between consecutive acquisitions of
            one group. Zero or negative puts every distinct time in its
            own group.

    Returns:
        Groups in chronological order. Group ids derive from the first
        timestamp of each group, so the result is stable across calls.
    """
    items = list(acquisitions)
    timed = sorted(
        (a for a in items if a.acquired_at is not None),
        key=lambda a: a.acquired_at,
    )
    untimed = [a for a in items if a.acquired_at is None]

    clusters: list[list[Acquisition]] = []
    previous = None
    for acq in timed:
        if previous is None or (acq.acquired_at - previous).total_seconds() > window_seconds:
            clusters.append([])
        clusters[-1].append(acq)
        previous = acq.acquired_at

    groups = [_make_group(cluster) for cluster in clusters]

    if untimed:
        groups.append(
            TimeSeriesGroup(
                group_id=UNKNOWN_GROUP_ID,
                label=UNKNOWN_GROUP_LABEL,
                acquisitions=tuple(untimed),
            )
        )

    logger.debug(
        "Grouped %d acquisitions into %d group(s) (window %.1fs)",
        len(items), len(groups), window_seconds,
    )
    return groups


def _make_group(cluster: list[Acquisition]) -> TimeSeriesGroup:
    first = cluster[0].acquired_at
    last = cluster[-1].acquired_at
    if first == last:
        label = f"{first:%H:%M:%S}"
    else:
        label = f"{first:%H:%M:%S} - {last:%H:%M:%S}"
    return TimeSeriesGroup(
        group_id=f"group_{first:%Y%m%d%H%M%S}",
        label=label,
        acquisitions=tuple(cluster),
    )


def find_group(groups: Iterable[TimeSeriesGroup], group_id: str) -> TimeSeriesGroup | None:
    """Return the group with ``group_id``, or None."""
    for group in groups:
        if group.group_id == group_id:
            return group
    return None
