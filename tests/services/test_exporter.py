"""Tests for the bundle exporter."""

import json
from unittest.mock import MagicMock

import pytest

from planner_transfer.services.exporter import Exporter
from planner_transfer.store import StorageError


class TestExporter:
    """Test cases for Exporter."""

    def test_empty_store_exports_every_key(self, store):
        """Test the bundle shape for an empty store."""
        bundle = json.loads(Exporter(store, version="2.1.0").export_bundle())

        assert list(bundle) == [
            "tasks", "projects", "categories", "dailyPlans",
            "workSchedule", "journalEntries", "exportDate", "version",
        ]
        assert bundle["tasks"] == []
        assert bundle["workSchedule"] is None
        assert bundle["version"] == "2.1.0"
        assert bundle["exportDate"].endswith("Z")

    def test_default_version_from_config(self, store, monkeypatch):
        from planner_transfer import config
        monkeypatch.setattr(config, "EXPORT_VERSION", "9.9.9")

        assert Exporter(store).build_bundle()["version"] == "9.9.9"

    def test_work_schedule_exported_as_object(self, store, make_work_schedule):
        """Test that the single schedule row is exported under the singular key."""
        schedule = make_work_schedule()
        store.table("workSchedules").bulk_add([schedule])

        bundle = Exporter(store).build_bundle()

        assert bundle["workSchedule"] == schedule

    def test_only_first_schedule_exported(self, store, make_work_schedule):
        store.table("workSchedules").bulk_add([make_work_schedule("first"), make_work_schedule("second")])

        bundle = Exporter(store).build_bundle()

        assert bundle["workSchedule"]["id"] == "first"

    def test_tasks_exported_in_insertion_order(self, store, make_task):
        store.table("tasks").bulk_add([make_task("b"), make_task("a"), make_task("c")])

        bundle = Exporter(store).build_bundle()

        assert [t["id"] for t in bundle["tasks"]] == ["b", "a", "c"]

    def test_non_ascii_text_kept_verbatim(self, store, make_task):
        """Test that exported JSON text is not ASCII-escaped."""
        store.table("tasks").bulk_add([make_task("u", title="Café ☕")])

        assert "Café ☕" in Exporter(store).export_bundle()

    def test_read_failure_raises(self):
        """Test that a failed table read propagates instead of exporting partial data."""
        mock_store = MagicMock()
        mock_store.table.return_value.to_array.side_effect = StorageError("Failed to read tasks: locked")

        with pytest.raises(StorageError):
            Exporter(mock_store).export_bundle()
