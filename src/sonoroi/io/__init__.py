"""SonoROI IO — DICOM acquisition loading and pixel access."""

from __future__ import annotations

from pathlib import Path

from sonoroi.core.models import FolderSettings, TimeSeriesGroup
from sonoroi.io.dicom import (
    DicomPixelProvider,
    format_tags,
    load_directory,
    parse_dicom_datetime,
    parse_spacing_string,
    read_acquisition,
)

__all__ = [
    "DicomPixelProvider",
    "format_tags",
    "load_directory",
    "load_groups",
    "parse_dicom_datetime",
    "parse_spacing_string",
    "read_acquisition",
]


def load_groups(
    directory: Path,
    settings: FolderSettings | None = None,
) -> list[TimeSeriesGroup]:
    """Load, classify and group a directory. Convenience wrapper.

    Args:
        directory: Acquisition directory.
        settings: Folder settings. Read from ``directory`` if not provided.

    Returns:
        Time-series groups of classified acquisitions.
    """
    from sonoroi.analysis.classifier import classify_acquisitions
    from sonoroi.analysis.grouping import group_acquisitions
    from sonoroi.core.settings import load_folder_settings

    settings = settings or load_folder_settings(directory)
    acquisitions = classify_acquisitions(load_directory(directory), settings)
    return group_acquisitions(acquisitions, settings.time_window_seconds)
