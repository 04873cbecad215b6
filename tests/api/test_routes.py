"""HTTP-level tests for the simulator API."""

import pytest

from sleepsim.api import routes


class TestHypnogramEndpoint:
    def test_default_config(self, client):
        resp = client.post("/api/hypnogram", json={"seed": 1})
        assert resp.status_code == 200
        data = resp.json()
        assert data["blocks"][0]["stage"] == 0
        assert data["stats"]["actual_total_sleep"] == pytest.approx(476.25)
        assert data["params"]["chronotype"] == "normal"

    def test_seed_reproducible(self, client):
        body = {"config": {"age": 60, "sdb_severity": 5, "nocturia": 2}, "seed": 9}
        first = client.post("/api/hypnogram", json=body).json()
        second = client.post("/api/hypnogram", json=body).json()
        assert first == second

    @pytest.mark.parametrize("config", [
        {"age": 500},
        {"age": -1},
        {"alcohol": 11},
        {"caffeine_time": 30},
        {"chronotype": "night-owl"},
        {"gender": "robot"},
    ])
    def test_out_of_range_rejected(self, client, config):
        resp = client.post("/api/hypnogram", json={"config": config})
        assert resp.status_code == 422

    def test_unknown_calibration(self, client):
        resp = client.post("/api/hypnogram", json={"calibration": "nope"})
        assert resp.status_code == 400
        assert "Unknown calibration" in resp.json()["detail"]

    def test_early_calibration(self, client):
        resp = client.post("/api/hypnogram", json={"seed": 1, "calibration": "early"})
        assert resp.status_code == 200
        assert resp.json()["stats"]["latency_minutes"] == pytest.approx(10.0)


class TestCompareEndpoint:
    def test_two_profiles(self, client):
        body = {"a": {"age": 25}, "b": {"age": 75, "sdb_severity": 6}, "seed": 3}
        resp = client.post("/api/compare", json=body)
        assert resp.status_code == 200
        data = resp.json()
        assert data["a"]["stats"]["sleep_efficiency_percent"] > data["b"]["stats"]["sleep_efficiency_percent"]
        assert data["a"]["stats"]["n3_fraction"] > data["b"]["stats"]["n3_fraction"]


class TestCircadianEndpoint:
    def test_curves_returned(self, client):
        resp = client.post("/api/circadian", json={"config": {"caffeine": 2, "caffeine_time": 3}, "seed": 0})
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["curves"]) == 217
        assert data["result"]["blocks"]


class TestProfileEndpoint:
    def test_profile(self, client):
        resp = client.get("/api/profile/25")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total_sleep_target"] == pytest.approx(476.25)
        assert data["waso_target"] == pytest.approx(17.5)

    def test_out_of_range(self, client):
        assert client.get("/api/profile/121").status_code == 422


class TestStatus:
    def test_status(self, client):
        data = client.get("/api/status").json()
        assert data["status"] == "ok"
        assert "latest" in data["calibrations"]


class TestApiKey:
    def test_key_required_when_configured(self, client, monkeypatch):
        monkeypatch.setattr(routes, "API_KEY", "secret")
        assert client.post("/api/hypnogram", json={}).status_code == 401
        ok = client.post("/api/hypnogram", json={}, headers={"x-api-key": "secret"})
        assert ok.status_code == 200

    def test_status_is_public(self, client, monkeypatch):
        monkeypatch.setattr(routes, "API_KEY", "secret")
        assert client.get("/api/status").status_code == 200
