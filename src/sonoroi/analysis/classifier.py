"""Acquisition mode classification by nearest target pixel spacing."""

from __future__ import annotations

import dataclasses
from typing import Iterable, Sequence

from sonoroi.core.models import Acquisition, Classification, FolderSettings

DEFAULT_CEUS_SPACING = 0.5
DEFAULT_SHI_SPACING = 0.3


def classify(
    spacing: Sequence[float] | None,
    ceus_target: float = DEFAULT_CEUS_SPACING,
    shi_target: float = DEFAULT_SHI_SPACING,
) -> Classification:
    """Classify an acquisition by which target its row spacing is closer to.

    Only ``spacing[0]`` is consulted. Missing or empty spacing, and exact
    ties, classify as CEUS.
    """
    if spacing is None or len(spacing) == 0:
        return Classification.CEUS

    row_spacing = spacing[0]
    ceus_dist = abs(row_spacing - ceus_target)
    shi_dist = abs(row_spacing - shi_target)
    return Classification.SHI if shi_dist < ceus_dist else Classification.CEUS


def classify_acquisitions(
    acquisitions: Iterable[Acquisition],
    settings: FolderSettings | None = None,
) -> list[Acquisition]:
    """Return copies of ``acquisitions`` with their classification assigned."""
    settings = settings or FolderSettings()
    return [
        dataclasses.replace(
            acq,
            classification=classify(
                acq.pixel_spacing, settings.ceus_spacing, settings.shi_spacing,
            ),
        )
        for acq in acquisitions
    ]
