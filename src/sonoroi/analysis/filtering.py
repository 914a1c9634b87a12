"""Text filtering of acquisitions by display name and DICOM tag strings."""

from __future__ import annotations

from typing import Iterable


def matches_filter(
    display_name: str,
    text: str,
    tags: Iterable[str] | None = None,
) -> bool:
    """Case-insensitive substring match against a name, then its tags.

    An empty filter matches everything.
    """
    needle = text.casefold()
    if needle in display_name.casefold():
        return True
    if tags is None:
        return False
    return any(needle in tag.casefold() for tag in tags)
