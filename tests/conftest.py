"""Shared test fixtures for SonoROI."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable

import numpy as np
import pydicom
import pytest
from pydicom.dataset import Dataset, FileMetaDataset
from pydicom.uid import ExplicitVRLittleEndian, generate_uid

from sonoroi.analysis.statistics import PixelProvider
from sonoroi.core.models import Acquisition

US_MULTIFRAME_IMAGE_STORAGE = "1.2.840.10008.5.1.4.1.1.3.1"


class FakePixelProvider(PixelProvider):
    """In-memory PixelProvider over a (frames, H, W, 3) array.

    Frame indices listed in ``failing`` raise RuntimeError when rendered.
    """

    def __init__(self, frames: np.ndarray, failing: set[int] | None = None) -> None:
        self._frames = np.asarray(frames)
        self._failing = failing or set()
        self.rendered: list[int] = []

    @property
    def width(self) -> int:
        return int(self._frames.shape[2]) if self._frames.ndim >= 3 else 0

    @property
    def height(self) -> int:
        return int(self._frames.shape[1]) if self._frames.ndim >= 3 else 0

    @property
    def frame_count(self) -> int:
        return int(self._frames.shape[0])

    def render_frame(self, index: int) -> np.ndarray:
        self.rendered.append(index)
        if index in self._failing:
            raise RuntimeError(f"cannot decode frame {index}")
        return self._frames[index]


def solid_frames(
    value: int | tuple[int, int, int], n_frames: int = 1, height: int = 20, width: int = 30,
) -> np.ndarray:
    """Frames filled with a single RGB color."""
    rgb = (value, value, value) if isinstance(value, int) else value
    frames = np.zeros((n_frames, height, width, 3), dtype=np.uint8)
    frames[...] = rgb
    return frames


def make_acquisition(
    name: str,
    acquired_at: datetime | None = None,
    spacing: tuple[float, float] | None = None,
) -> Acquisition:
    return Acquisition(
        path=Path("/data") / name,
        name=name,
        width=64,
        height=48,
        acquired_at=acquired_at,
        pixel_spacing=spacing,
    )


def write_dicom(
    path: Path,
    frames: np.ndarray,
    acquired: str | None = None,
    spacing: tuple[float, float] | None = None,
) -> Path:
    """Write an uncompressed multi-frame RGB ultrasound DICOM file."""
    frames = np.ascontiguousarray(frames, dtype=np.uint8)
    meta = FileMetaDataset()
    meta.MediaStorageSOPClassUID = US_MULTIFRAME_IMAGE_STORAGE
    meta.MediaStorageSOPInstanceUID = generate_uid()
    meta.TransferSyntaxUID = ExplicitVRLittleEndian

    ds = Dataset()
    ds.file_meta = meta
    ds.SOPClassUID = meta.MediaStorageSOPClassUID
    ds.SOPInstanceUID = meta.MediaStorageSOPInstanceUID
    ds.Modality = "US"
    ds.PatientName = "Test^Patient"
    ds.Rows = frames.shape[1]
    ds.Columns = frames.shape[2]
    ds.NumberOfFrames = frames.shape[0]
    ds.SamplesPerPixel = 3
    ds.PhotometricInterpretation = "RGB"
    ds.PlanarConfiguration = 0
    ds.BitsAllocated = 8
    ds.BitsStored = 8
    ds.HighBit = 7
    ds.PixelRepresentation = 0
    if acquired is not None:
        ds.AcquisitionDateTime = acquired
    if spacing is not None:
        ds.PixelSpacing = [spacing[0], spacing[1]]
    ds.PixelData = frames.tobytes()

    pydicom.dcmwrite(str(path), ds, enforce_file_format=True)
    return path


@pytest.fixture
def fake_provider() -> Callable[..., FakePixelProvider]:
    """Factory for FakePixelProvider instances."""
    return FakePixelProvider


@pytest.fixture
def dicom_dir(tmp_path: Path) -> Path:
    """A directory of three DICOM files forming two groups plus a sidecar.

    Layout:
        - IM_0001: 12:00:00, spacing 0.5 (CEUS), 2 frames, value 100
        - IM_0002: 12:00:30, spacing 0.3 (SHI), 1 frame, value 50
        - IM_0003: 12:05:00, spacing 0.5 (CEUS), 1 frame, value 200
        - notes.txt: not DICOM
    """
    directory = tmp_path / "study"
    directory.mkdir()
    write_dicom(directory / "IM_0001", solid_frames(100, n_frames=2),
                acquired="20250101120000", spacing=(0.5, 0.5))
    write_dicom(directory / "IM_0002", solid_frames(50),
                acquired="20250101120030", spacing=(0.3, 0.3))
    write_dicom(directory / "IM_0003", solid_frames(200),
                acquired="20250101120500", spacing=(0.5, 0.5))
    (directory / "notes.txt").write_text("not a dicom file")
    return directory
