"""
API Integration Tests for History Endpoints
"""

import json

import pytest


class TestHistoryAPI:
    """Integration tests for history API endpoints"""

    @pytest.fixture
    def setup_transform_data(self, client, png_bytes):
        """Create some transform history: two successes and one failure"""
        files = [
            ("files", ("a.png", png_bytes, "image/png")),
            ("files", ("b.png", png_bytes, "image/png")),
            ("files", ("broken.png", b"not an image", "image/png")),
        ]
        response = client.post(
            "/api/transform",
            files=files,
            data={"operation": json.dumps({"mode": "resize", "resize": {"width": 16}})},
        )
        assert response.status_code == 200
        return response.json()

    def test_get_recent_history(self, client, setup_transform_data):
        """Test getting recent transform history"""
        response = client.get("/api/history/recent")

        assert response.status_code == 200
        data = response.json()

        assert len(data["records"]) == 3
        record = data["records"][0]
        assert "source_name" in record
        assert "result" in record
        assert "timestamp" in record
        assert "processing_time_ms" in record
        assert data["statistics"]["total"] == 3

    def test_get_recent_history_with_limit(self, client, setup_transform_data):
        response = client.get("/api/history/recent?limit=2")

        assert response.status_code == 200
        assert len(response.json()["records"]) == 2

    def test_filter_by_result(self, client, setup_transform_data):
        response = client.get("/api/history/recent?result_filter=FAILED")

        records = response.json()["records"]
        assert len(records) == 1
        assert records[0]["source_name"] == "broken.png"
        assert records[0]["stage"] == "decode"
        assert records[0]["error_code"] == "DECODE_ERROR"

    def test_filter_by_mode(self, client, setup_transform_data):
        assert len(client.get("/api/history/recent?mode=resize").json()["records"]) == 3
        assert client.get("/api/history/recent?mode=crop").json()["records"] == []

    def test_invalid_result_filter(self, client):
        response = client.get("/api/history/recent?result_filter=PASS")
        assert response.status_code == 422

    def test_get_statistics(self, client, setup_transform_data):
        response = client.get("/api/history/statistics")

        assert response.status_code == 200
        data = response.json()

        assert data["total"] == 3
        assert data["ok"] == 2
        assert data["failed"] == 1
        assert data["by_mode"] == {"resize": 3}
        assert "avg_time_ms" in data

    def test_failure_analysis(self, client, setup_transform_data):
        data = client.get("/api/history/analysis/failures").json()

        assert data["total_failures"] == 1
        assert data["by_stage"] == [{"stage": "decode", "count": 1}]

    def test_get_record(self, client, setup_transform_data):
        record_id = client.get("/api/history/recent?result_filter=OK").json()["records"][0]["id"]

        response = client.get(f"/api/history/{record_id}")

        assert response.status_code == 200
        assert response.json()["output_filename"].endswith("_resized.jpeg")

    def test_get_record_not_found(self, client):
        response = client.get("/api/history/hist_missing")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RECORD_NOT_FOUND"

    def test_clear_history(self, client, setup_transform_data):
        response = client.post("/api/history/clear")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert client.get("/api/history/recent").json()["records"] == []
        assert client.get("/api/history/statistics").json()["total"] == 0
