from fastapi.testclient import TestClient


def test_health_and_root(client: TestClient):
    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "healthy"

    root = client.get("/")
    assert root.json()["docs"] == "/api/v1/docs"


def test_request_context_headers(client: TestClient):
    response = client.get("/health", headers={"X-Correlation-ID": "corr-123"})

    assert response.headers["X-Correlation-ID"] == "corr-123"
    assert response.headers["X-Request-ID"]
    assert float(response.headers["X-Process-Time"]) >= 0
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_validation_errors_use_standard_envelope(client: TestClient):
    token = client.post("/api/v1/cart").json()["data"]["token"]

    response = client.post(f"/api/v1/cart/{token}/items", json={"variant_id": 0, "quantity": 1})

    assert response.status_code == 422
    payload = response.json()
    assert payload["success"] is False
    assert payload["message"] == "Validation failed"
    assert payload["errors"][0]["loc"] == ["body", "variant_id"]
