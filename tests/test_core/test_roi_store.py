"""Tests for RoiStore — multi-ROI CRUD, hit-testing, undo and persistence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from sonoroi.core.exceptions import DuplicateRegionError
from sonoroi.core.geometry import RoiShape, ShapeKind
from sonoroi.core.roi_store import ROI_FILE_NAME, RoiStore


@pytest.fixture
def store() -> RoiStore:
    return RoiStore()


class TestAddAndGet:
    def test_add_returns_generated_id(self, store):
        region_id = store.add_region("g1", RoiShape.rectangle(0, 0, 10, 10))
        assert region_id
        regions = store.get_regions("g1")
        assert len(regions) == 1
        assert regions[0].id == region_id
        assert regions[0].group_id == "g1"

    def test_generated_ids_are_unique(self, store):
        ids = {store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1)) for _ in range(20)}
        assert len(ids) == 20

    def test_explicit_id_is_kept(self, store):
        assert store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1), region_id="a") == "a"
        assert store.find_region("g1", "a") is not None

    def test_duplicate_explicit_id_raises_without_side_effects(self, store):
        store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1), region_id="a")
        with pytest.raises(DuplicateRegionError, match="Duplicate region a"):
            store.add_region("g1", RoiShape.rectangle(5, 5, 1, 1), region_id="a")
        assert len(store.get_regions("g1")) == 1
        store.undo("g1")
        assert store.get_regions("g1") == []
        assert not store.can_undo("g1")

    def test_same_id_allowed_in_different_groups(self, store):
        store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1), region_id="a")
        store.add_region("g2", RoiShape.rectangle(0, 0, 1, 1), region_id="a")
        assert store.find_region("g2", "a") is not None

    def test_appends_in_order(self, store):
        first = store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        second = store.add_region("g1", RoiShape.ellipse(0, 0, 1, 1))
        assert [r.id for r in store.get_regions("g1")] == [first, second]
        assert store.get_region("g1").id == first

    def test_groups_are_isolated(self, store):
        store.add_region("group1", RoiShape.rectangle(10, 0, 1, 1))
        store.add_region("group2", RoiShape.ellipse(99, 0, 1, 1))
        assert store.get_regions("group1")[0].shape.x == 10
        assert store.get_regions("group2")[0].shape.x == 99

    def test_unknown_group_is_empty(self, store):
        assert store.get_regions("nonexistent") == []
        assert store.get_region("nonexistent") is None
        assert "nonexistent" not in store

    def test_get_regions_returns_copy(self, store):
        store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        store.get_regions("g1").clear()
        assert len(store.get_regions("g1")) == 1


class TestRemoveAndClear:
    def test_remove_existing(self, store):
        keep = store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        drop = store.add_region("g1", RoiShape.rectangle(0, 0, 2, 2))
        assert store.remove_region("g1", drop) is True
        assert [r.id for r in store.get_regions("g1")] == [keep]

    def test_remove_unknown_id_returns_false(self, store):
        store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        assert store.remove_region("g1", "nonexistent-id") is False
        assert len(store.get_regions("g1")) == 1

    def test_remove_unknown_group_returns_false(self, store):
        assert store.remove_region("nonexistent", "any-id") is False
        assert not store.can_undo("nonexistent")

    def test_remove_last_region_drops_group(self, store):
        region_id = store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        store.remove_region("g1", region_id)
        assert "g1" not in store
        assert store.group_ids() == []

    def test_clear_group(self, store):
        store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        store.add_region("g1", RoiShape.rectangle(0, 0, 2, 2))
        store.clear_group("g1")
        assert store.get_regions("g1") == []
        assert "g1" not in store


class TestHitTest:
    def test_overlapping_returns_first_added(self, store):
        first = store.add_region("g1", RoiShape.rectangle(0, 0, 100, 100))
        store.add_region("g1", RoiShape.rectangle(50, 50, 100, 100))
        hit = store.hit_test("g1", 75, 75)
        assert hit is not None
        assert hit.id == first

    def test_falls_through_to_later_region(self, store):
        store.add_region("g1", RoiShape.rectangle(0, 0, 100, 100))
        second = store.add_region("g1", RoiShape.rectangle(50, 50, 100, 100))
        assert store.hit_test("g1", 140, 140).id == second

    def test_miss_returns_none(self, store):
        store.add_region("g1", RoiShape.ellipse(0, 0, 10, 10))
        assert store.hit_test("g1", 0, 0) is None

    def test_unknown_group_returns_none(self, store):
        assert store.hit_test("nonexistent", 50, 50) is None


class TestUndo:
    def test_nothing_to_undo(self, store):
        assert store.can_undo("g1") is False
        assert store.undo("g1") is False

    def test_undo_add_restores_previous_list(self, store):
        store.add_region("g1", RoiShape.rectangle(10, 0, 1, 1))
        store.add_region("g1", RoiShape.rectangle(20, 0, 1, 1))
        assert store.undo("g1") is True
        regions = store.get_regions("g1")
        assert len(regions) == 1
        assert regions[0].shape.x == 10

    def test_undo_first_add_removes_group(self, store):
        store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        store.add_region("g1", RoiShape.rectangle(0, 0, 2, 2))
        store.undo("g1")
        store.undo("g1")
        assert "g1" not in store
        assert store.can_undo("g1") is False

    def test_undo_remove_restores_region(self, store):
        store.add_region("g1", RoiShape.rectangle(10, 0, 1, 1))
        second = store.add_region("g1", RoiShape.rectangle(20, 0, 1, 1))
        store.remove_region("g1", second)
        store.undo("g1")
        assert [r.id for r in store.get_regions("g1")][1] == second

    def test_undo_remove_of_last_region_restores_group(self, store):
        only = store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        store.remove_region("g1", only)
        store.undo("g1")
        assert store.get_region("g1").id == only

    def test_undo_clear(self, store):
        store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        store.add_region("g1", RoiShape.rectangle(0, 0, 2, 2))
        store.clear_group("g1")
        store.undo("g1")
        assert len(store.get_regions("g1")) == 2

    def test_undo_clear_of_absent_group_keeps_it_absent(self, store):
        store.clear_group("g1")
        assert store.can_undo("g1")
        store.undo("g1")
        assert "g1" not in store

    def test_undo_is_per_group(self, store):
        store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        store.add_region("g2", RoiShape.rectangle(0, 0, 1, 1))
        store.undo("g2")
        assert "g1" in store
        assert "g2" not in store

    def test_snapshot_not_affected_by_later_mean_attachment(self, store):
        store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        store.add_region("g1", RoiShape.rectangle(0, 0, 2, 2))
        store.attach_mean("g1", "IM_0001", 12.5)
        store.undo("g1")
        assert store.get_region("g1").file_means == {}

    def test_replace_shape_is_undoable(self, store):
        region_id = store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        store.attach_mean("g1", "IM_0001", 3.0)
        assert store.replace_shape("g1", region_id, RoiShape.ellipse(5, 5, 10, 10)) is True
        region = store.get_region("g1")
        assert region.shape.kind is ShapeKind.ELLIPSE
        assert region.file_means == {}
        store.undo("g1")
        region = store.get_region("g1")
        assert region.shape.kind is ShapeKind.RECTANGLE
        assert region.file_means == {"IM_0001": 3.0}

    def test_replace_shape_unknown_region(self, store):
        assert store.replace_shape("g1", "missing", RoiShape.rectangle(0, 0, 1, 1)) is False
        assert not store.can_undo("g1")


class TestAttachMean:
    def test_attaches_to_lead_region_only(self, store):
        store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        store.add_region("g1", RoiShape.rectangle(0, 0, 2, 2))
        store.attach_mean("g1", "IM_0001", 42.0)
        first, second = store.get_regions("g1")
        assert first.file_means == {"IM_0001": 42.0}
        assert second.file_means == {}

    def test_overwrites_existing_value(self, store):
        store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        store.attach_mean("g1", "IM_0001", 1.0)
        store.attach_mean("g1", "IM_0001", 2.0)
        assert store.get_region("g1").file_means == {"IM_0001": 2.0}

    def test_no_regions_is_noop(self, store):
        store.attach_mean("nonexistent", "file.dcm", 42.0)
        assert "nonexistent" not in store


class TestPersistence:
    def test_round_trip_preserves_order_and_kinds(self, store, tmp_path: Path):
        store.add_region("g1", RoiShape.rectangle(10, 20, 100, 50))
        store.add_region("g1", RoiShape.ellipse(200, 200, 30, 30))
        store.save(tmp_path)

        loaded = RoiStore()
        loaded.load(tmp_path)
        regions = loaded.get_regions("g1")
        assert len(regions) == 2
        assert regions[0].shape.kind is ShapeKind.RECTANGLE
        assert regions[1].shape.kind is ShapeKind.ELLIPSE
        assert regions[0].shape.x == 10
        assert regions[1].shape.x == 200
        assert [r.id for r in regions] == [r.id for r in store.get_regions("g1")]

    def test_round_trip_freeform_and_means(self, store, tmp_path: Path):
        store.add_region("g1", RoiShape.freeform([(0, 0), (10, 0), (5, 8.5)]), region_id="poly")
        store.attach_mean("g1", "IM_0001", 87.25)
        store.save(tmp_path)

        loaded = RoiStore()
        loaded.load(tmp_path)
        region = loaded.find_region("g1", "poly")
        assert region.shape.points == ((0.0, 0.0), (10.0, 0.0), (5.0, 8.5))
        assert region.file_means == {"IM_0001": 87.25}
        assert region.group_id == "g1"

    def test_multiple_groups_round_trip(self, store, tmp_path: Path):
        for i, gid in enumerate(["g1", "g2", "g3"], start=1):
            store.add_region(gid, RoiShape.rectangle(i, 0, 1, 1))
        store.save(tmp_path)

        loaded = RoiStore()
        loaded.load(tmp_path)
        assert [loaded.get_region(g).shape.x for g in ["g1", "g2", "g3"]] == [1, 2, 3]

    def test_undo_to_empty_then_save_has_no_entry(self, store, tmp_path: Path):
        store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        store.add_region("g1", RoiShape.ellipse(0, 0, 1, 1))
        store.undo("g1")
        store.undo("g1")
        store.save(tmp_path)

        data = json.loads((tmp_path / ROI_FILE_NAME).read_text())
        assert "g1" not in data
        loaded = RoiStore()
        loaded.load(tmp_path)
        assert loaded.get_regions("g1") == []

    def test_written_format(self, store, tmp_path: Path):
        store.add_region("g1", RoiShape.rectangle(1, 2, 3, 4), region_id="r1")
        store.save(tmp_path)
        data = json.loads((tmp_path / ROI_FILE_NAME).read_text())
        assert data == {
            "g1": [{
                "id": "r1",
                "groupId": "g1",
                "shape": "Rectangle",
                "x": 1.0,
                "y": 2.0,
                "width": 3.0,
                "height": 4.0,
                "points": [],
                "fileMeans": {},
            }],
        }

    def test_save_empty_store(self, store, tmp_path: Path):
        store.save(tmp_path)
        assert json.loads((tmp_path / ROI_FILE_NAME).read_text()) == {}

    @pytest.mark.parametrize("directory", [None, ""])
    def test_save_without_directory_is_noop(self, store, directory):
        store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        store.save(directory)

    def test_load_missing_file_gives_empty_store(self, store, tmp_path: Path):
        store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        store.load(tmp_path)
        assert store.group_ids() == []

    @pytest.mark.parametrize("content", [
        "{ invalid json ]]",
        "[1, 2, 3]",
        '{"g1": 5}',
        '{"g1": [{"shape": "Hexagon"}]}',
        '{"g1": [{"points": [[1]]}]}',
        "[" * 100000 + "]" * 100000,
    ])
    def test_load_corrupted_file_gives_empty_store(self, store, tmp_path: Path, content):
        (tmp_path / ROI_FILE_NAME).write_text(content)
        store.load(tmp_path)
        assert store.group_ids() == []
        assert store.get_region("anything") is None

    def test_load_clears_undo_history(self, store, tmp_path: Path):
        store.add_region("g1", RoiShape.rectangle(0, 0, 1, 1))
        store.save(tmp_path)
        store.load(tmp_path)
        assert not store.can_undo("g1")

    def test_load_legacy_single_region_format(self, store, tmp_path: Path):
        legacy = {
            "group_20250101120000": {
                "id": "old",
                "groupId": "group_20250101120000",
                "shape": 1,
                "x": 5, "y": 6, "width": 20, "height": 10,
                "points": [],
                "fileMeans": {"IM_0001": 10.5},
            },
        }
        (tmp_path / ROI_FILE_NAME).write_text(json.dumps(legacy))
        store.load(tmp_path)

        regions = store.get_regions("group_20250101120000")
        assert len(regions) == 1
        assert regions[0].id == "old"
        assert regions[0].shape.kind is ShapeKind.ELLIPSE
        assert regions[0].file_means == {"IM_0001": 10.5}

    def test_legacy_file_is_rewritten_as_lists(self, store, tmp_path: Path):
        legacy = {"g1": {"id": "old", "shape": "Rectangle", "x": 1, "y": 1, "width": 2, "height": 2}}
        (tmp_path / ROI_FILE_NAME).write_text(json.dumps(legacy))
        store.load(tmp_path)
        store.save(tmp_path)
        data = json.loads((tmp_path / ROI_FILE_NAME).read_text())
        assert isinstance(data["g1"], list)
        assert data["g1"][0]["id"] == "old"

    def test_empty_group_list_in_file_is_dropped(self, store, tmp_path: Path):
        (tmp_path / ROI_FILE_NAME).write_text('{"g1": []}')
        store.load(tmp_path)
        assert "g1" not in store

    def test_duplicate_ids_in_group_give_empty_store(self, store, tmp_path: Path):
        region = {"id": "a", "shape": "Rectangle", "x": 0, "y": 0, "width": 1, "height": 1}
        (tmp_path / ROI_FILE_NAME).write_text(json.dumps({"g1": [region, region]}))
        store.load(tmp_path)
        assert store.get_regions("g1") == []

    def test_same_id_in_different_groups_loads(self, store, tmp_path: Path):
        region = {"id": "a", "shape": "Rectangle", "x": 0, "y": 0, "width": 1, "height": 1}
        (tmp_path / ROI_FILE_NAME).write_text(json.dumps({"g1": [region], "g2": [region]}))
        store.load(tmp_path)
        assert store.find_region("g1", "a") is not None
        assert store.find_region("g2", "a") is not None
