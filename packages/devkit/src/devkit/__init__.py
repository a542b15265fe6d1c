"""Common runtime devkit for service infrastructure concerns."""

from devkit.config import ServiceSettings, load_settings
from devkit.db import (
    AsyncDatabaseManager,
    Base,
    create_all_tables,
    create_async_engine,
    create_session_factory,
    is_transient_db_error,
    normalize_postgres_dsn,
    postgres_connect_args,
)
from devkit.observability import ProbeAccessLogFilter, configure_otel, configure_probe_access_log_filter

__all__ = [
    "AsyncDatabaseManager",
    "Base",
    "ProbeAccessLogFilter",
    "ServiceSettings",
    "create_all_tables",
    "configure_otel",
    "configure_probe_access_log_filter",
    "create_async_engine",
    "create_session_factory",
    "is_transient_db_error",
    "load_settings",
    "normalize_postgres_dsn",
    "postgres_connect_args",
]
