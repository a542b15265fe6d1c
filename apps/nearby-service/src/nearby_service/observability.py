from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

# upper buckets bracket the directory deadline
_LATENCY_BUCKETS_MS = (5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000)


class RequestMetrics:
    """Per-app Prometheus registry behind ``GET /metrics``."""

    def __init__(self) -> None:
        self.registry = CollectorRegistry()
        self._requests = Counter(
            "nearby_http_requests_total",
            "HTTP requests served by the nearby service",
            labelnames=("method", "path", "status_code"),
            registry=self.registry,
        )
        self._latency_ms = Histogram(
            "nearby_http_request_duration_ms",
            "HTTP request latency of the nearby service in milliseconds",
            labelnames=("method", "path"),
            buckets=_LATENCY_BUCKETS_MS,
            registry=self.registry,
        )

    def observe(self, method: str, path: str, status_code: int, duration_ms: float) -> None:
        self._requests.labels(method, path, str(status_code)).inc()
        self._latency_ms.labels(method, path).observe(duration_ms)

    def render(self) -> str:
        return generate_latest(self.registry).decode("utf-8")
