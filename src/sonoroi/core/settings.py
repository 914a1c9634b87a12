"""Per-folder settings — never raises on read, degrades to defaults."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from sonoroi.core._atomic import atomic_write_json
from sonoroi.core.models import FolderSettings

logger = logging.getLogger(__name__)

FOLDER_SETTINGS_FILE = "dicom_viewer_directory.settings"

_KEYS = {
    "timeWindowSeconds": "time_window_seconds",
    "ceusSpacing": "ceus_spacing",
    "shiSpacing": "shi_spacing",
}


def load_folder_settings(directory: str | Path) -> FolderSettings:
    """Load the settings stored in ``directory``.

    Returns defaults if the file is missing or cannot be parsed. Unknown
    keys are ignored; missing keys keep their default values.
    """
    path = Path(directory) / FOLDER_SETTINGS_FILE
    try:
        if not path.exists():
            return FolderSettings()
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            logger.warning("Ignoring folder settings %s: not a JSON object", path)
            return FolderSettings()
        values = {
            attr: float(data[key]) for key, attr in _KEYS.items() if key in data
        }
        return FolderSettings(**values)
    except (json.JSONDecodeError, OSError, TypeError, ValueError, RecursionError) as e:
        logger.warning("Failed to load folder settings %s: %s", path, e)
        return FolderSettings()


def save_folder_settings(directory: str | Path, settings: FolderSettings) -> None:
    """Write ``settings`` into ``directory``."""
    path = Path(directory) / FOLDER_SETTINGS_FILE
    data = {key: getattr(settings, attr) for key, attr in _KEYS.items()}
    atomic_write_json(path, data)
