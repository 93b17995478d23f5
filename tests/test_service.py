from __future__ import annotations

from fastapi.testclient import TestClient

from rppg_core.config import PipelineConfig
from rppg_core.service import make_app
from synthetic import make_pulse_samples


def _payload(n: int = 150) -> dict:
    return {
        "face_detected": True,
        "samples": [
            {
                "r": s.r,
                "g": s.g,
                "b": s.b,
                "timestamp": s.timestamp,
                "roi_center": {"x": 320.0, "y": 240.0},
            }
            for s in make_pulse_samples(n)
        ],
    }


def _client() -> TestClient:
    # Long interval keeps the background loop out of the way
    return TestClient(make_app(PipelineConfig(process_interval_sec=60.0)))


def test_health_and_initial_metrics() -> None:
    with _client() as client:
        assert client.get("/health").json() == {"status": "ok"}
        assert client.get("/metrics").json() == {"status": "init"}


def test_ingest_then_process_reports_bpm() -> None:
    with _client() as client:
        r = client.post("/ingest", json=_payload())
        assert r.json() == {"status": "ok", "count": 150}
        body = client.post("/process").json()
        assert body["status"] == "ok"
        assert body["buffer_length"] == 150
        assert body["bpm"] is not None and abs(body["bpm"] - 72.0) < 4.0
        assert body["quality"]["level"] in {"good", "fair", "poor"}


def test_empty_ingest() -> None:
    with _client() as client:
        assert client.post("/ingest", json={"samples": []}).json() == {"status": "empty"}


def test_control_and_reset() -> None:
    with _client() as client:
        r = client.post("/control", json={"sample_rate": 15.0, "face_detected": False})
        assert r.status_code == 200
        assert r.json()["applied"] == {"face_detected": False, "sample_rate": 15.0}
        client.post("/ingest", json=_payload(20))
        assert client.post("/reset").json() == {"status": "ok"}
        body = client.post("/process").json()
        assert body["buffer_length"] == 0
        assert body["sample_rate"] == 15.0
        assert body["bpm"] is None


def test_control_validation() -> None:
    with _client() as client:
        assert client.post("/control", json={"sample_rate": 0}).status_code == 422
        bad = {"samples": [{"r": -1, "g": 0, "b": 0, "timestamp": 0}]}
        assert client.post("/ingest", json=bad).status_code == 422


def test_ingest_timestamps_recalibrate_sample_rate() -> None:
    samples = [
        {"r": 150.0, "g": 150.0, "b": 150.0, "timestamp": i * 40.0} for i in range(60)
    ]
    with _client() as client:
        client.post("/ingest", json={"face_detected": True, "samples": samples})
        body = client.post("/process").json()
        assert body["sample_rate"] == 25.0
        assert body["buffer_length"] == 60
