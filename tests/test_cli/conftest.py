"""Shared fixtures for CLI tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from sonoroi.cli import utils
from sonoroi.core.geometry import RoiShape
from sonoroi.core.roi_store import RoiStore


@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Render rich tables wide enough that ids are never truncated."""
    monkeypatch.setattr(utils.console, "_width", 200)


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def roi_dir(dicom_dir: Path) -> Path:
    """The DICOM directory with one rectangle ROI on each group.

    Group ``group_20250101120000`` also has a second, overlapping ellipse.
    """
    store = RoiStore()
    store.add_region("group_20250101120000", RoiShape.rectangle(0, 0, 10, 10), region_id="r1")
    store.add_region("group_20250101120000", RoiShape.ellipse(5, 5, 10, 10), region_id="r2")
    store.add_region("group_20250101120500", RoiShape.rectangle(2, 2, 4, 4), region_id="r3")
    store.save(dicom_dir)
    return dicom_dir


def json_output(output: str) -> list[dict]:
    """Parse a command's ``--format json`` output."""
    return json.loads(output)
