"""Data models for the SonoROI core module."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


class Classification(enum.Enum):
    """Acquisition mode, decided from pixel spacing."""

    CEUS = "CEUS"  # contrast-enhanced ultrasound (primary)
    SHI = "SHI"  # second harmonic imaging (secondary)


@dataclass(frozen=True)
class Acquisition:
    """One loaded image file (single frame or cine) and its metadata.

    Attributes:
        path: Full path on disk.
        name: File name, used as the key of per-file ROI means.
        width: Image width in pixels.
        height: Image height in pixels.
        frame_count: Number of frames (1 for single-frame files).
        acquired_at: Acquisition timestamp, if the file carries one.
        pixel_spacing: (row, column) spacing, if available.
        classification: Acquisition mode label.
    """

    path: Path
    name: str
    width: int = 0
    height: int = 0
    frame_count: int = 1
    acquired_at: datetime | None = None
    pixel_spacing: tuple[float, float] | None = None
    classification: Classification = Classification.CEUS

    def __post_init__(self) -> None:
        """Validate frame count."""
        if self.frame_count < 1:
            raise ValueError(f"frame_count must be >= 1, got {self.frame_count}")


@dataclass(frozen=True)
class TimeSeriesGroup:
    """A time-series cluster of acquisitions.

    Acquisitions are ordered by ascending timestamp, except for the
    unknown-time group which keeps load order.
    """

    group_id: str
    label: str
    acquisitions: tuple[Acquisition, ...]

    def __len__(self) -> int:
        return len(self.acquisitions)


@dataclass(frozen=True)
class FolderSettings:
    """Per-folder configuration stored alongside the acquisitions."""

    time_window_seconds: float = 60.0
    ceus_spacing: float = 0.5
    shi_spacing: float = 0.3
