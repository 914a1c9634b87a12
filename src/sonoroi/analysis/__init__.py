"""SonoROI Analysis — classification, grouping, filtering and ROI statistics."""

from sonoroi.analysis.batch import GroupMeanComputer, GroupMeanResult, apply_result
from sonoroi.analysis.classifier import classify, classify_acquisitions
from sonoroi.analysis.filtering import matches_filter
from sonoroi.analysis.grouping import find_group, group_acquisitions
from sonoroi.analysis.statistics import (
    GroupSummary,
    PixelProvider,
    compute_mean_intensity,
    summarize_group,
    summarize_region,
)

__all__ = [
    "GroupMeanComputer",
    "GroupMeanResult",
    "GroupSummary",
    "PixelProvider",
    "apply_result",
    "classify",
    "classify_acquisitions",
    "compute_mean_intensity",
    "find_group",
    "group_acquisitions",
    "matches_filter",
    "summarize_group",
    "summarize_region",
]
