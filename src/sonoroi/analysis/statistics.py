"""ROI intensity statistics over multi-frame acquisitions."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable

import numpy as np

from sonoroi.core.geometry import RoiShape, ShapeKind, bounding_box, shape_mask
from sonoroi.core.roi_store import RoiRegion

logger = logging.getLogger(__name__)

# ITU-R BT.601 luma weights.
LUMA_WEIGHTS = (0.299, 0.587, 0.114)


class PixelProvider(ABC):
    """Source of decoded pixels for one acquisition.

    Concrete implementations (e.g., DicomPixelProvider) expose image
    dimensions and render individual frames to RGB.
    """

    @property
    @abstractmethod
    def width(self) -> int:
        """Image width in pixels."""

    @property
    @abstractmethod
    def height(self) -> int:
        """Image height in pixels."""

    @property
    @abstractmethod
    def frame_count(self) -> int:
        """Number of frames."""

    @abstractmethod
    def render_frame(self, index: int) -> np.ndarray:
        """Render one frame.

        Args:
            index: Zero-based frame index.

        Returns:
            (H, W, 3) RGB array, or (H, W) grayscale.
        """


@dataclass(frozen=True)
class GroupSummary:
    """Summary statistics over per-acquisition means.

    Attributes:
        count: Number of values.
        mean: Arithmetic mean.
        min: Smallest value.
        max: Largest value.
        std_dev: Sample standard deviation (n - 1), 0 for fewer than 2 values.
    """

    count: int
    mean: float
    min: float
    max: float
    std_dev: float


def luminance(frame: np.ndarray) -> np.ndarray:
    """Convert an RGB or grayscale frame to float64 luminance."""
    pixels = np.asarray(frame, dtype=np.float64)
    if pixels.ndim == 2:
        r = g = b = pixels
    else:
        r, g, b = pixels[..., 0], pixels[..., 1], pixels[..., 2]
    wr, wg, wb = LUMA_WEIGHTS
    return wr * r + wg * g + wb * b


def scan_window(shape: RoiShape, width: int, height: int) -> tuple[int, int, int, int]:
    """Pixel block to scan for ``shape`` in a ``width`` x ``height`` image.

    Rectangles and ellipses use their rounded box; freeform polygons use
    their outward-snapped bounds. The origin is clamped at 0 and the extent
    at the image edge, so width or height may come out non-positive.
    """
    bx, by, bw, bh = bounding_box(shape)
    if shape.kind is not ShapeKind.FREEFORM:
        bx, by, bw, bh = round(bx), round(by), round(bw), round(bh)
    x0 = int(max(0, bx))
    y0 = int(max(0, by))
    w = int(min(width - x0, bw))
    h = int(min(height - y0, bh))
    return x0, y0, w, h


def compute_mean_intensity(provider: PixelProvider, roi: RoiRegion | RoiShape) -> float:
    """Average luminance inside an ROI across every frame of an acquisition.

    Frames that fail to render are skipped. Returns 0.0 when the image has
    no size, the ROI falls outside it, or no pixel was inside the shape.

    Args:
        provider: Pixel source for the acquisition.
        roi: The region (or bare shape) to measure.

    Returns:
        Mean of 0.299R + 0.587G + 0.114B over all in-shape pixels of all frames.
    """
    shape = roi.shape if isinstance(roi, RoiRegion) else roi
    width, height = provider.width, provider.height
    if width == 0 or height == 0:
        return 0.0

    x0, y0, w, h = scan_window(shape, width, height)
    if w <= 0 or h <= 0:
        return 0.0

    mask = shape_mask(shape, x0, y0, w, h)
    if not mask.any():
        return 0.0

    total = 0.0
    count = 0
    for index in range(provider.frame_count):
        try:
            frame = provider.render_frame(index)
        except Exception as exc:
            if isinstance(exc, (MemoryError, KeyboardInterrupt, SystemExit)):
                raise
            logger.warning("Skipping frame %d: render failed: %s", index, exc)
            continue

        crop = luminance(frame[y0:y0 + h, x0:x0 + w])
        frame_mask = mask[:crop.shape[0], :crop.shape[1]]
        total += float(crop[frame_mask].sum())
        count += int(frame_mask.sum())

    return total / count if count > 0 else 0.0


def summarize_group(means: Iterable[float]) -> GroupSummary:
    """Count, mean, min, max and sample standard deviation of ``means``."""
    values = np.asarray(list(means), dtype=np.float64)
    if values.size == 0:
        return GroupSummary(count=0, mean=0.0, min=0.0, max=0.0, std_dev=0.0)
    std_dev = float(np.std(values, ddof=1)) if values.size > 1 else 0.0
    return GroupSummary(
        count=int(values.size),
        mean=float(values.mean()),
        min=float(values.min()),
        max=float(values.max()),
        std_dev=std_dev,
    )


def summarize_region(region: RoiRegion) -> GroupSummary:
    """Summarize the per-acquisition means recorded on a region."""
    return summarize_group(region.file_means.values())
