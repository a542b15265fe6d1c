from __future__ import annotations

import logging

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider

PROBE_PATHS = ("/healthz", "/readyz", "/metrics")

_configured = False
_probe_filter_configured = False


class ProbeAccessLogFilter(logging.Filter):
    """Drops successful probe lines from ``uvicorn.access``.

    uvicorn logs access lines with ``args = (client, method, path, http_version, status)``.
    Records in any other shape pass through untouched.
    """

    def __init__(self, ignored_paths: tuple[str, ...] = PROBE_PATHS) -> None:
        super().__init__()
        self._ignored_paths = frozenset(_strip_path(path) for path in ignored_paths)

    def filter(self, record: logging.LogRecord) -> bool:
        args = record.args
        if not isinstance(args, tuple) or len(args) < 5 or not isinstance(args[2], str):
            return True
        try:
            status = int(args[4])
        except (TypeError, ValueError):
            return True
        return not (status == 200 and _strip_path(args[2]) in self._ignored_paths)


def _strip_path(path: str) -> str:
    base = path.split("?", 1)[0]
    if base != "/" and base.endswith("/"):
        return base[:-1]
    return base


def configure_otel(service_name: str) -> None:
    global _configured
    if _configured:
        return
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    trace.set_tracer_provider(provider)
    _configured = True


def configure_probe_access_log_filter(ignored_paths: tuple[str, ...] = PROBE_PATHS) -> None:
    global _probe_filter_configured
    if _probe_filter_configured:
        return
    logging.getLogger("uvicorn.access").addFilter(ProbeAccessLogFilter(ignored_paths=ignored_paths))
    _probe_filter_configured = True
