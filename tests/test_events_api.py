from __future__ import annotations

from fastapi.testclient import TestClient

from app.api.dependencies import get_ingestion_settings
from app.ingestion.config import IngestionConfig

CLIENT_A_EVENT = {
    "source": "client_A",
    "payload": {"metric": "transaction", "amount": "1200", "timestamp": "2024/01/01"},
}


def test_event_submission_and_duplicate(client: TestClient) -> None:
    create_resp = client.post("/api/v1/events", json={"event": CLIENT_A_EVENT})
    assert create_resp.status_code == 200
    body = create_resp.json()
    assert body["success"] is True
    assert body["idempotency_key"].startswith("client_A-")
    assert "is_duplicate" not in body

    duplicate_resp = client.post("/api/v1/events", json={"event": CLIENT_A_EVENT})
    assert duplicate_resp.status_code == 200
    duplicate = duplicate_resp.json()
    assert duplicate["is_duplicate"] is True
    assert duplicate["processed_event_id"] == body["processed_event_id"]
    assert duplicate["message"] == "Event already processed"

    list_resp = client.get("/api/v1/events", params={"client_id": "client_A"})
    list_resp.raise_for_status()
    events = list_resp.json()["data"]
    assert len(events) == 1
    assert events[0]["amount"] == 1200.0
    assert events[0]["timestamp"] == "2024-01-01T00:00:00.000Z"


def test_validation_failure_returns_400(client: TestClient) -> None:
    resp = client.post("/api/v1/events", json={"event": {"source": "client_A", "payload": {}}})

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Missing or invalid amount field"
    assert isinstance(body["raw_event_id"], int)

    failed = client.get("/api/v1/events/failed").json()["data"]
    assert [item["raw_event_id"] for item in failed] == [body["raw_event_id"]]


def test_missing_event_returns_400(client: TestClient) -> None:
    resp = client.post("/api/v1/events", json={})

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Missing event in request body"}


def test_simulated_failure_returns_500(client: TestClient) -> None:
    resp = client.post("/api/v1/events", json={"event": CLIENT_A_EVENT, "simulateFailure": True})

    assert resp.status_code == 500
    body = resp.json()
    assert body["is_system_error"] is True
    assert body["message"] == "System error during processing. Event may be retried."
    assert client.get("/api/v1/events").json()["data"] == []

    retry = client.post("/api/v1/events", json={"event": CLIENT_A_EVENT})
    assert retry.status_code == 200


def test_raw_event_listing(client: TestClient) -> None:
    client.post("/api/v1/events", json={"event": CLIENT_A_EVENT})
    client.post("/api/v1/events", json={"event": CLIENT_A_EVENT})

    resp = client.get("/api/v1/events/raw", params={"source": "client_A", "status": "duplicate"})
    resp.raise_for_status()
    rows = resp.json()["data"]
    assert len(rows) == 1
    assert rows[0]["processing_status"] == "duplicate"


def test_reports(client: TestClient) -> None:
    client.post("/api/v1/events", json={"event": CLIENT_A_EVENT})
    client.post(
        "/api/v1/events",
        json={"event": {"client": "client_B", "event_type": "payment", "value": 300, "event_time": 1704067200}},
    )
    client.post("/api/v1/events", json={"event": {"client": "client_B"}})

    aggregate = client.get("/api/v1/reports/aggregate").json()
    assert aggregate["success"] is True
    assert aggregate["data"] == [
        {"client_id": "client_A", "count": 1, "total": 1200.0, "average": 1200.0},
        {"client_id": "client_B", "count": 1, "total": 300.0, "average": 300.0},
    ]

    summary = client.get("/api/v1/reports/summary").json()["data"]
    assert summary == {
        "total_processed": 2,
        "total_failed": 1,
        "total_amount": 1500.0,
        "success_rate": "66.67%",
    }


def test_invalid_report_filter_returns_400(client: TestClient) -> None:
    resp = client.get("/api/v1/reports/aggregate", params={"start_date": "whenever"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_listing_limit_is_bounded(client: TestClient) -> None:
    assert client.get("/api/v1/events", params={"limit": 101}).status_code == 422
    assert client.get("/api/v1/events/failed", params={"limit": 51}).status_code == 422


def test_health_endpoints(client: TestClient) -> None:
    assert client.get("/healthz").json() == {"status": "ok"}
    assert client.get("/readyz").json() == {"status": "ready"}


def test_simulated_failure_ignored_when_disabled(client: TestClient) -> None:
    client.app.dependency_overrides[get_ingestion_settings] = lambda: IngestionConfig(
        bucket_seconds=60, producer_mappings={}, simulate_failure_enabled=False
    )

    resp = client.post("/api/v1/events", json={"event": CLIENT_A_EVENT, "simulateFailure": True})

    assert resp.status_code == 200
    assert resp.json()["success"] is True
