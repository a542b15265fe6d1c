from __future__ import annotations

from time import perf_counter
from uuid import uuid4

from opentelemetry import trace
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from nearby_service.observability import RequestMetrics


class ObservabilityMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, metrics: RequestMetrics) -> None:
        super().__init__(app)
        self._metrics = metrics
        self._tracer = trace.get_tracer("nearby-service")

    async def dispatch(self, request: Request, call_next) -> Response:
        trace_id = request.headers.get("x-trace-id") or str(uuid4())
        started = perf_counter()
        status_code = 500
        try:
            with self._tracer.start_as_current_span("http.request") as span:
                span.set_attribute("http.method", request.method)
                span.set_attribute("http.route", request.url.path)
                span.set_attribute("trace.id", trace_id)
                response = await call_next(request)
                status_code = response.status_code
                span.set_attribute("http.status_code", status_code)
        finally:
            self._metrics.observe(
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=(perf_counter() - started) * 1000.0,
            )
        response.headers["x-trace-id"] = trace_id
        return response
