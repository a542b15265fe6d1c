from __future__ import annotations

import ipaddress

from geo_engine.location import FixValidator, is_plausible_fix, resolve_location

from nearby_service.clients.ip_geolocation_client import IpGeolocationClient
from nearby_service.schemas import ApproximateLocation


class LocationService:
    def __init__(self, client: IpGeolocationClient, validator: FixValidator = is_plausible_fix) -> None:
        self._client = client
        self._validator = validator

    async def approximate(self, client_ip: str | None) -> ApproximateLocation | None:
        if not _is_public_ip(client_ip):
            return None
        fix = await resolve_location(self._client.attempts(client_ip), validator=self._validator)
        if fix is None:
            return None
        return ApproximateLocation(
            latitude=fix.point.lat,
            longitude=fix.point.lng,
            accuracy_meters=fix.accuracy_meters,
            source=fix.source,
            city=fix.city,
            country=fix.country,
        )


def _is_public_ip(value: str | None) -> bool:
    if not value:
        return False
    try:
        return ipaddress.ip_address(value).is_global
    except ValueError:
        return False
