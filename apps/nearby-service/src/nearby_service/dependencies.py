from __future__ import annotations

from devkit.config import load_settings
from devkit.db import AsyncDatabaseManager

from nearby_service.clients.ip_geolocation_client import IpGeolocationClient
from nearby_service.directory import InMemoryProviderDirectory, ProviderDirectory, SqlProviderDirectory
from nearby_service.finder import NearbyProviderFinder
from nearby_service.services.location_service import LocationService

settings = load_settings("nearby-service")

_directory: ProviderDirectory
if settings.DATABASE_URL:
    # the finder owns the deadline, so no reconnect-and-sleep loop here
    _directory = SqlProviderDirectory(
        AsyncDatabaseManager(
            settings.DATABASE_URL,
            max_retries=1,
            connect_timeout_seconds=settings.NEARBY_DIRECTORY_TIMEOUT_SECONDS,
            statement_timeout_ms=int(settings.NEARBY_DIRECTORY_TIMEOUT_SECONDS * 1000),
        ),
        create_tables=False,
    )
else:
    _directory = InMemoryProviderDirectory()

_finder = NearbyProviderFinder(
    _directory,
    default_radius_km=settings.NEARBY_DEFAULT_RADIUS_KM,
    max_radius_km=settings.NEARBY_MAX_RADIUS_KM,
    max_results=settings.NEARBY_MAX_RESULTS,
    directory_timeout_seconds=settings.NEARBY_DIRECTORY_TIMEOUT_SECONDS,
)
_location_service = LocationService(
    IpGeolocationClient(timeout_seconds=settings.LOCATION_SOURCE_TIMEOUT_SECONDS),
)


def get_finder() -> NearbyProviderFinder:
    return _finder


def get_location_service() -> LocationService:
    return _location_service
