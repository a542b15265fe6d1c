from fastapi.testclient import TestClient

from nearby_service.app import create_app


def test_trace_header_is_propagated() -> None:
    app = create_app()
    client = TestClient(app)

    response = client.get("/healthz", headers={"x-trace-id": "trace-abc"})

    assert response.status_code == 200
    assert response.json() == {"data": {"status": "ok"}}
    assert response.headers["x-trace-id"] == "trace-abc"


def test_trace_header_is_generated_when_absent() -> None:
    client = TestClient(create_app())

    response = client.get("/readyz")

    assert response.status_code == 200
    assert response.headers["x-trace-id"]


def test_request_metric_is_collected() -> None:
    app = create_app()
    client = TestClient(app)

    response = client.post("/v1/providers/nearby", json={"longitude": 3.0})
    body = app.state.request_metrics.render()

    assert response.status_code == 400
    assert 'nearby_http_requests_total{method="POST",path="/v1/providers/nearby",status_code="400"} 1.0' in body
    assert 'nearby_http_request_duration_ms_count{method="POST",path="/v1/providers/nearby"} 1.0' in body


def test_prometheus_metrics_endpoint_exposes_http_metrics() -> None:
    app = create_app()
    client = TestClient(app)

    client.get("/healthz")
    response = client.get("/metrics")
    body = response.text

    assert response.status_code == 200
    assert "nearby_http_requests_total" in body
    assert "nearby_http_request_duration_ms" in body


def test_metrics_registry_is_per_app() -> None:
    first = create_app()
    second = create_app()

    TestClient(first).get("/healthz")

    assert 'path="/healthz"' in first.state.request_metrics.render()
    assert 'path="/healthz"' not in second.state.request_metrics.render()
