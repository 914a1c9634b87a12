"""DICOM directory loading and pixel access via pydicom."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import numpy as np
import pydicom
from pydicom.dataset import Dataset
from pydicom.errors import InvalidDicomError

from sonoroi.analysis.statistics import PixelProvider
from sonoroi.core.exceptions import AcquisitionDirectoryError
from sonoroi.core.models import Acquisition

logger = logging.getLogger(__name__)

# Sidecar files written next to the acquisitions; never DICOM.
SKIPPED_SUFFIXES = frozenset({".roi", ".settings", ".json", ".tmp"})

# Keyed by the length of the integer part.
_DATETIME_FORMATS = {
    14: "%Y%m%d%H%M%S",
    12: "%Y%m%d%H%M",
    8: "%Y%m%d",
}


def parse_dicom_datetime(value: str | None) -> datetime | None:
    """Parse a DICOM DT (or DA + TM) string such as ``20251125143012.25``.

    Returns None for empty or unparseable values.
    """
    if not value or not str(value).strip():
        return None
    whole, _, fraction = str(value).strip().partition(".")
    fmt = _DATETIME_FORMATS.get(len(whole))
    if fmt is None or not whole.isdigit():
        return None
    if fraction and (fmt != _DATETIME_FORMATS[14] or not fraction.isdigit() or len(fraction) > 6):
        return None
    try:
        result = datetime.strptime(whole, fmt)
    except ValueError:
        return None
    if fraction:
        result = result.replace(microsecond=int(fraction.ljust(6, "0")))
    return result


def parse_spacing_string(value: str | None) -> tuple[float, float] | None:
    """Parse spacing strings like ``0.3\\0.3`` or ``[0.3, 0.3]``.

    A single value is used for both rows and columns. Unparseable parts
    are ignored; returns None if nothing numeric remains.
    """
    if not value or not value.strip():
        return None
    text = value.strip().strip("[]")
    numbers: list[float] = []
    for part in text.replace("\\", ",").split(","):
        try:
            numbers.append(float(part.strip()))
        except ValueError:
            continue
    if len(numbers) >= 2:
        return (numbers[0], numbers[1])
    if len(numbers) == 1:
        return (numbers[0], numbers[0])
    return None


def _spacing_from_value(value: Any) -> tuple[float, float] | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    if isinstance(value, str):
        return parse_spacing_string(value)
    try:
        numbers = [float(v) for v in value]
    except TypeError:
        numbers = [float(value)]
    except ValueError:
        return parse_spacing_string(str(value))
    if len(numbers) >= 2:
        return (numbers[0], numbers[1])
    if len(numbers) == 1:
        return (numbers[0], numbers[0])
    return None


def pixel_spacing(ds: Dataset) -> tuple[float, float] | None:
    """Return (row, column) spacing from PixelSpacing or ImagerPixelSpacing."""
    for keyword in ("PixelSpacing", "ImagerPixelSpacing"):
        if keyword not in ds:
            continue
        try:
            spacing = _spacing_from_value(ds[keyword].value)
        except (TypeError, ValueError) as e:
            logger.debug("Unreadable %s: %s", keyword, e)
            continue
        if spacing is not None:
            return spacing
    return None


def acquisition_time(ds: Dataset) -> datetime | None:
    """Return AcquisitionDateTime, falling back to AcquisitionDate + AcquisitionTime."""
    dt = parse_dicom_datetime(str(ds.get("AcquisitionDateTime", "") or ""))
    if dt is not None:
        return dt
    date = str(ds.get("AcquisitionDate", "") or "").strip()
    if not date:
        return None
    time_part = str(ds.get("AcquisitionTime", "") or "").strip()
    return parse_dicom_datetime(date + time_part)


def read_acquisition(path: Path) -> Acquisition:
    """Read an acquisition's metadata without decoding pixel data.

    Raises:
        pydicom.errors.InvalidDicomError: If the file is not DICOM.
    """
    path = Path(path)
    ds = pydicom.dcmread(str(path), stop_before_pixels=True)
    return Acquisition(
        path=path,
        name=path.name,
        width=int(ds.get("Columns", 0) or 0),
        height=int(ds.get("Rows", 0) or 0),
        frame_count=max(1, int(ds.get("NumberOfFrames", 1) or 1)),
        acquired_at=acquisition_time(ds),
        pixel_spacing=pixel_spacing(ds),
    )


def load_directory(directory: str | Path) -> list[Acquisition]:
    """Load every DICOM file directly inside ``directory``, sorted by path.

    Hidden files and sidecar files are ignored. Files that are not DICOM
    are skipped.

    Raises:
        AcquisitionDirectoryError: If ``directory`` is not a directory.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise AcquisitionDirectoryError(str(directory))

    candidates = sorted(
        p for p in directory.iterdir()
        if p.is_file()
        and not p.name.startswith(".")
        and p.suffix.lower() not in SKIPPED_SUFFIXES
    )

    acquisitions: list[Acquisition] = []
    for path in candidates:
        try:
            acquisitions.append(read_acquisition(path))
        except InvalidDicomError:
            logger.debug("Skipping non-DICOM file %s", path.name)
        except (OSError, ValueError) as e:
            logger.warning("Could not read %s: %s", path.name, e)
    logger.info("Loaded %d acquisition(s) from %s", len(acquisitions), directory)
    return acquisitions


class DicomPixelProvider(PixelProvider):
    """PixelProvider over one DICOM file.

    The file is read on first use and pixel data is decoded once, on the
    first ``render_frame`` call. pydicom returns color data as RGB.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._ds: Dataset | None = None
        self._frames: np.ndarray | None = None

    @property
    def dataset(self) -> Dataset:
        if self._ds is None:
            self._ds = pydicom.dcmread(str(self._path))
        return self._ds

    @property
    def width(self) -> int:
        return int(self.dataset.get("Columns", 0) or 0)

    @property
    def height(self) -> int:
        return int(self.dataset.get("Rows", 0) or 0)

    @property
    def frame_count(self) -> int:
        return max(1, int(self.dataset.get("NumberOfFrames", 1) or 1))

    def render_frame(self, index: int) -> np.ndarray:
        if not 0 <= index < self.frame_count:
            raise IndexError(f"Frame {index} out of range for {self._path.name}")
        if self._frames is None:
            arr = self.dataset.pixel_array
            samples = int(self.dataset.get("SamplesPerPixel", 1) or 1)
            # Normalize to (frames, rows, cols[, samples]).
            single_frame_ndim = 3 if samples > 1 else 2
            if arr.ndim == single_frame_ndim:
                arr = arr[np.newaxis, ...]
            self._frames = arr
        return self._frames[index]


def format_tags(path: str | Path) -> list[str]:
    """List a file's elements as ``GGGG,EEEE Name: Value`` strings.

    Pixel data is excluded. Values that cannot be rendered are shown as
    ``[Unable to read]``. A file that cannot be opened yields a single
    error line instead of raising.
    """
    try:
        ds = pydicom.dcmread(str(path), stop_before_pixels=True)
    except (InvalidDicomError, OSError) as e:
        return [f"Error reading tags: {e}"]

    lines: list[str] = []
    for elem in ds:
        tag_id = f"{elem.tag.group:04X},{elem.tag.element:04X}"
        name = elem.name or "Unknown"
        try:
            if elem.VR == "SQ":
                value = f"[Sequence: {len(elem.value)} items]"
            elif elem.VM > 1:
                value = "\\".join(str(v) for v in elem.value)
            else:
                value = "" if elem.value is None else str(elem.value)
        except Exception:
            value = "[Unable to read]"
        lines.append(f"{tag_id} {name}: {value}")
    return lines
