"""Integration tests for /recording routes."""
import pytest
from fastapi.testclient import TestClient

from ridedata.api.main import create_app


def _payload(ride_messages: dict) -> dict:
    return {
        "records": ride_messages["recordMesgs"],
        "sessionSummary": ride_messages["sessionMesgs"][0],
    }


@pytest.fixture(name="client")
def client_fixture():
    app = create_app()
    with TestClient(app) as c:
        yield c


@pytest.fixture(name="loaded_client")
def loaded_client_fixture(client, ride_messages):
    resp = client.post("/recording/decoded?filename=ride.fit", json=_payload(ride_messages))
    assert resp.status_code == 200
    return client


class TestLoadRecording:
    def test_load_decoded(self, client, ride_messages):
        resp = client.post("/recording/decoded?filename=ride.fit", json=_payload(ride_messages))
        assert resp.status_code == 200
        data = resp.json()
        assert data["samples"] == 8
        assert data["filename"] == "ride.fit"
        assert data["has_summary"] is True
        assert "altitude" in data["available_metrics"]

    def test_no_records_is_422(self, client):
        resp = client.post("/recording/decoded", json={"records": [], "sessionSummary": {"totalAscent": 1}})
        assert resp.status_code == 422
        assert resp.json()["detail"]["kind"] == "no_records"

    def test_unusable_records_is_422(self, client):
        resp = client.post("/recording/decoded", json={"records": [{"heartRate": 120}]})
        assert resp.status_code == 422
        assert resp.json()["detail"]["kind"] == "no_usable_records"

    def test_upload_rejects_non_fit_filename(self, client):
        resp = client.post("/recording?filename=ride.gpx", content=b"<gpx/>")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid file type. Please upload a .FIT file."

    def test_upload_rejects_corrupt_fit(self, client):
        resp = client.post("/recording?filename=ride.fit", content=b"not a fit file")
        assert resp.status_code == 400

    def test_upload_rejects_empty_body(self, client):
        resp = client.post("/recording?filename=ride.fit", content=b"")
        assert resp.status_code == 400

    def test_upload_path_has_no_trailing_slash_redirect(self, client):
        resp = client.post("/recording?filename=ride.fit", content=b"", follow_redirects=False)
        assert resp.status_code == 400


class TestRecordingViews:
    def test_chart_requires_recording(self, client):
        assert client.get("/recording/chart").status_code == 404

    def test_chart_default_altitude(self, loaded_client):
        rows = loaded_client.get("/recording/chart?units=metric").json()
        assert len(rows) == 8
        assert rows[0]["displayAltitude"] == 296.4
        assert rows[0]["elapsedTimeMs"] == 0
        assert "displayHeartRate" not in rows[0]

    def test_chart_selected_metrics_imperial(self, loaded_client):
        rows = loaded_client.get(
            "/recording/chart", params={"units": "imperial", "metrics": ["altitude", "heartRate"]},
        ).json()
        assert rows[0]["displayAltitude"] == 972.44
        assert rows[0]["displayHeartRate"] == 70

    def test_chart_unknown_metric(self, loaded_client):
        resp = loaded_client.get("/recording/chart", params={"metrics": ["dem:epqs"]})
        assert resp.status_code == 422

    def test_metrics(self, loaded_client):
        metrics = loaded_client.get("/recording/metrics?units=metric").json()
        by_id = {m["metric_id"]: m for m in metrics}
        assert by_id["altitude"]["unit"] == "m"
        assert by_id["power"]["unit"] == "W"
        assert "temperature" not in by_id

    def test_summary(self, loaded_client):
        rows = loaded_client.get("/recording/summary?units=imperial").json()
        by_field = {r["field"]: r for r in rows}
        assert by_field["total_elapsed_time"]["value"] == "04:59:17"
        assert by_field["total_distance"]["label"] == "Total Distance (mi)"

    def test_summary_empty_without_recording(self, client):
        assert client.get("/recording/summary").json() == []

    def test_climb_linear(self, loaded_client):
        rows = loaded_client.get("/recording/climb?mode=linear&units=metric").json()
        assert len(rows) == 1
        assert rows[0]["source_id"] == "native"
        assert rows[0]["total_ascent"] == 6.7
        assert rows[0]["total_descent"] == 2.1
        assert rows[0]["unit"] == "m"

    def test_climb_spline_at_least_linear(self, loaded_client):
        linear = loaded_client.get("/recording/climb?mode=linear&units=metric").json()[0]
        spline = loaded_client.get("/recording/climb?mode=spline&units=metric").json()[0]
        assert spline["interpolation_mode"] == "spline"
        assert spline["total_ascent"] >= linear["total_ascent"]
        assert spline["total_descent"] >= linear["total_descent"]

    def test_default_chart_when_first_record_lacks_altitude(self, client):
        records = [
            {"timestamp": "2025-05-04T14:10:00Z", "distance": 0},
            {"timestamp": "2025-05-04T14:10:05Z", "distance": 5, "altitude": 300.0},
            {"timestamp": "2025-05-04T14:10:10Z", "distance": 10, "altitude": 305.0},
        ]
        assert client.post("/recording/decoded", json={"records": records}).status_code == 200
        resp = client.get("/recording/chart?units=metric")
        assert resp.status_code == 200
        assert len(resp.json()) == 3

    def test_spline_climb_with_nan_altitude(self, client):
        records = [
            {"timestamp": f"2025-05-04T14:10:{i * 5:02d}Z", "distance": i * 1000.0, "altitude": alt}
            for i, alt in enumerate([100, "NaN", 110, 105])
        ]
        client.post("/recording/decoded", json={"records": records})
        resp = client.get("/recording/climb?mode=spline&units=metric")
        assert resp.status_code == 200
        row = resp.json()[0]
        assert row["total_ascent"] - row["total_descent"] == pytest.approx(5.0, abs=0.1)
