"""Tests for the import/export API routes.

This module exercises the export download, raw-body import, format analysis,
legacy migration and reset endpoints through the FastAPI test client.
"""

import json
from datetime import date
from unittest.mock import patch

from fastapi.testclient import TestClient

from planner_transfer.store import StorageError


class TestExportEndpoint:
    """Test cases for GET /api/export."""

    def test_export_downloads_bundle(self, client: TestClient, store, make_task):
        store.table("tasks").bulk_add([make_task("t1")])

        response = client.get("/api/export")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        expected_name = f"planner-export-{date.today().isoformat()}.json"
        assert expected_name in response.headers["content-disposition"]
        assert response.json()["tasks"][0]["id"] == "t1"

    def test_export_failure_returns_500(self, client: TestClient):
        with patch("planner_transfer.routes.transfer_routes.export_bundle",
                   side_effect=StorageError("Failed to read tasks: locked")):
            response = client.get("/api/export")

        assert response.status_code == 500
        assert response.json()["detail"] == "Export failed"


class TestImportEndpoint:
    """Test cases for POST /api/import."""

    def test_import_then_export(self, client: TestClient, store, sample_bundle, sample_bundle_json, monkeypatch):
        from planner_transfer import config
        monkeypatch.setattr(config, "IMPORT_YIELD_DELAY_MS", 0.0)

        response = client.post("/api/import", content=sample_bundle_json,
                               headers={"Content-Type": "application/json"})

        assert response.status_code == 200
        assert response.json() == {"success": True}
        exported = client.get("/api/export").json()
        assert exported["tasks"] == sample_bundle["tasks"]
        assert exported["workSchedule"] == sample_bundle["workSchedule"]

    def test_invalid_document_returns_400(self, client: TestClient, store, make_task):
        store.table("tasks").bulk_add([make_task("keep")])

        response = client.post("/api/import", content="this is not json")

        assert response.status_code == 400
        assert "valid planner export" in response.json()["detail"]
        assert store.table("tasks").get("keep") is not None

    def test_non_utf8_body_returns_400(self, client: TestClient):
        response = client.post("/api/import", content=b'{"tasks": ["\xff"]}')

        assert response.status_code == 400


class TestAnalyzeEndpoint:
    """Test cases for POST /api/import/analyze."""

    def test_reports_foreign_format(self, client: TestClient, store):
        document = {"items": [{"text": "a"}], "lists": []}

        response = client.post("/api/import/analyze", content=json.dumps(document))

        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is True
        assert data["format"] == "todo-app"
        assert data["needsConversion"] is True
        assert data["topLevelKeys"] == ["items", "lists"]
        assert store.table("tasks").to_array() == []

    def test_reports_invalid_text(self, client: TestClient):
        response = client.post("/api/import/analyze", content="nope")

        assert response.status_code == 200
        assert response.json()["valid"] is False


class TestMigrateLegacyEndpoint:
    """Test cases for POST /api/migrate-legacy."""

    def test_migrates_snapshot(self, client: TestClient, store, make_task):
        snapshot = {"taskManager_tasks": json.dumps([make_task("legacy")])}

        response = client.post("/api/migrate-legacy", json=snapshot)

        assert response.status_code == 200
        assert store.table("tasks").get("legacy") is not None

    def test_invalid_json_returns_400(self, client: TestClient):
        response = client.post("/api/migrate-legacy", content="{broken")

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Invalid JSON")

    def test_non_object_snapshot_returns_400(self, client: TestClient):
        response = client.post("/api/migrate-legacy", json=["taskManager_tasks"])

        assert response.status_code == 400

    def test_corrupt_snapshot_returns_400(self, client: TestClient):
        response = client.post("/api/migrate-legacy", json={"taskManager_tasks": "[{oops"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Legacy data migration failed"


class TestResetEndpoint:
    """Test cases for DELETE /api/data."""

    def test_reset_clears_everything(self, client: TestClient, store, make_task, make_work_schedule):
        store.table("tasks").bulk_add([make_task("t1")])
        store.table("workSchedules").bulk_add([make_work_schedule()])

        response = client.delete("/api/data")

        assert response.status_code == 200
        assert response.json() == {"message": "All data cleared"}
        assert store.table("tasks").to_array() == []
        assert store.table("workSchedules").to_array() == []

    def test_reset_failure_returns_500(self, client: TestClient):
        with patch("planner_transfer.routes.transfer_routes.reset_all",
                   side_effect=StorageError("Failed to clear tasks: locked")):
            response = client.delete("/api/data")

        assert response.status_code == 500
