"""Tests for the Flask routes."""

from unittest.mock import MagicMock

import pytest

import app as roster_app
from records.store import RecordStore
from sync.gateway import ConnectivityError

ROWS = [
    {"ID": "5", "GramPanchayat": "A", "StudentName": "Asha", "AdmissionDetailed": "Pending"},
    {"ID": "6", "GramPanchayat": "B", "StudentName": "Ravi", "Mobile": "9142"},
]


@pytest.fixture
def gateway():
    gw = MagicMock()
    gw.fetch_rows.return_value = ROWS
    gw.push_update.return_value = {"status": "success", "message": "Updated row 2"}
    return gw


@pytest.fixture
def client(gateway):
    roster_app.configure(gateway, store=RecordStore())
    roster_app.app.config["TESTING"] = True
    with roster_app.app.test_client() as c:
        yield c


class TestRoutes:
    def test_refresh_then_list(self, client):
        assert client.post("/api/refresh").get_json()["total"] == 2

        data = client.get("/api/records").get_json()
        assert data["groups"] == ["A", "B"]
        assert data["selected_group"] == "A"
        assert [r["id"] for r in data["records"]] == ["5"]
        assert data["error"] is None

    def test_refresh_failure(self, client, gateway):
        gateway.fetch_rows.side_effect = ConnectivityError("Unable to connect to Google Sheet.")
        result = client.post("/api/refresh").get_json()
        assert result["status"] == "error"

        data = client.get("/api/records").get_json()
        assert data["records"] == []
        assert data["error"] == "Unable to connect to Google Sheet."

    def test_selection(self, client):
        client.post("/api/refresh")
        data = client.post("/api/selection", json={"group": "B", "query": "914"}).get_json()
        assert data["selected_group"] == "B"
        assert [r["id"] for r in data["records"]] == ["6"]

    def test_save(self, client, gateway):
        client.post("/api/refresh")

        outcome = client.post("/api/records/5", json={"admission_status": "Approved", "remark": "Good"}).get_json()

        assert outcome == {"id": "5", "status": "saved", "message": None, "found": True}
        gateway.push_update.assert_called_once_with("5", "Approved", "Good")
        assert client.get("/api/records/5/status").get_json()["state"] == "saved"
        assert client.get("/api/records").get_json()["records"][0]["admission_status"] == "Approved"

    def test_save_failure_sets_banner(self, client, gateway):
        client.post("/api/refresh")
        gateway.push_update.return_value = {"status": "error", "message": "Student ID not found: 5"}

        outcome = client.post("/api/records/5", json={"admission_status": "Approved", "remark": ""}).get_json()

        assert outcome["status"] == "failed"
        data = client.get("/api/records").get_json()
        assert data["error"] == "Failed to save to cloud. Changes are local only."
        assert data["records"][0]["admission_status"] == "Approved"

    def test_save_requires_json(self, client):
        assert client.post("/api/records/5", data="nope").status_code == 400

    def test_analysis_no_data(self, client):
        assert client.post("/api/analysis").get_json() == {"status": "no_data"}

    def test_analysis(self, client, monkeypatch):
        client.post("/api/refresh")
        monkeypatch.setattr(roster_app, "call_llm_simple", lambda prompt: '{"summary": "ok", "anomalies": []}')

        data = client.post("/api/analysis").get_json()

        assert data["status"] == "ok"
        assert data["analysis"]["summary"] == "ok"

    def test_export(self, client, monkeypatch, tmp_path):
        client.post("/api/refresh")
        monkeypatch.setattr(roster_app.config, "EXPORT_PATH", str(tmp_path / "roster.csv"))

        result = client.post("/api/export").get_json()

        assert result["rows_written"] == 1
        assert (tmp_path / "roster.csv").exists()

    def test_index(self, client):
        assert client.get("/").status_code == 200

    def test_no_static_route(self, client):
        assert roster_app.app.static_folder is None
        assert client.get("/static/app.js").status_code == 404
