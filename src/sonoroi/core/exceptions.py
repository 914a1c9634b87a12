"""Exception classes for the SonoROI core module."""


class SonoRoiError(Exception):
    """Base exception for all SonoROI errors."""


class AcquisitionDirectoryError(SonoRoiError):
    """Raised when an acquisition directory does not exist."""

    def __init__(self, path: str | None = None) -> None:
        msg = f"Acquisition directory not found: {path}" if path else "Acquisition directory not found"
        super().__init__(msg)
        self.path = path


class GroupNotFoundError(SonoRoiError):
    """Raised when referencing a time-series group that was not built."""

    def __init__(self, group_id: str | None = None) -> None:
        msg = f"Group not found: {group_id}" if group_id else "Group not found"
        super().__init__(msg)
        self.group_id = group_id


class DuplicateRegionError(SonoRoiError):
    """Raised when adding a region whose id already exists in its group."""

    def __init__(self, group_id: str | None = None, region_id: str | None = None) -> None:
        if group_id and region_id:
            msg = f"Duplicate region {region_id} in group {group_id}"
        elif region_id:
            msg = f"Duplicate region {region_id}"
        else:
            msg = "Duplicate region"
        super().__init__(msg)
        self.group_id = group_id
        self.region_id = region_id
