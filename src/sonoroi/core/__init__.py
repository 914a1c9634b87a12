"""SonoROI Core — shape geometry, ROI store, models and folder settings."""

from sonoroi.core.exceptions import (
    AcquisitionDirectoryError,
    DuplicateRegionError,
    GroupNotFoundError,
    SonoRoiError,
)
from sonoroi.core.geometry import RoiShape, ShapeKind, bounding_box, contains_point, shape_mask
from sonoroi.core.models import Acquisition, Classification, FolderSettings, TimeSeriesGroup
from sonoroi.core.roi_store import RoiRegion, RoiStore
from sonoroi.core.settings import load_folder_settings, save_folder_settings

__all__ = [
    "Acquisition",
    "AcquisitionDirectoryError",
    "Classification",
    "DuplicateRegionError",
    "FolderSettings",
    "GroupNotFoundError",
    "RoiRegion",
    "RoiShape",
    "RoiStore",
    "ShapeKind",
    "SonoRoiError",
    "TimeSeriesGroup",
    "bounding_box",
    "contains_point",
    "load_folder_settings",
    "save_folder_settings",
    "shape_mask",
]
