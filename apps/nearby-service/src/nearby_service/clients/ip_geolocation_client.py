from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
from geo_engine.location import LocationAttempt, LocationFix
from geo_engine.models import GeoPoint

from nearby_service.errors import ApiError

IP_API_URL = "http://ip-api.com/json/{ip}"
IPINFO_URL = "https://ipinfo.io/{ip}/json"
GEOJS_URL = "https://get.geojs.io/v1/ip/geo/{ip}.json"


class IpGeolocationClient:
    """Public IP-geolocation services, one method per service.

    Accuracy figures are the city-level estimates each service is known for.
    """

    def __init__(
        self,
        timeout_seconds: float = 3.0,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._client_factory = client_factory

    def attempts(self, ip: str) -> list[LocationAttempt]:
        return [
            LocationAttempt(name="ip-api", fetch=lambda: self.ip_api(ip), timeout_seconds=self._timeout_seconds),
            LocationAttempt(name="geojs", fetch=lambda: self.geojs(ip), timeout_seconds=self._timeout_seconds),
            LocationAttempt(name="ipinfo", fetch=lambda: self.ipinfo(ip), timeout_seconds=self._timeout_seconds),
        ]

    async def ip_api(self, ip: str) -> LocationFix | None:
        payload = await self._get_json(
            IP_API_URL.format(ip=ip),
            params={"fields": "status,lat,lon,city,country"},
        )
        if payload.get("status") != "success":
            return None
        return _fix(payload.get("lat"), payload.get("lon"), 800.0, "ip-api", payload)

    async def geojs(self, ip: str) -> LocationFix | None:
        payload = await self._get_json(GEOJS_URL.format(ip=ip))
        return _fix(payload.get("latitude"), payload.get("longitude"), 600.0, "geojs", payload)

    async def ipinfo(self, ip: str) -> LocationFix | None:
        payload = await self._get_json(IPINFO_URL.format(ip=ip))
        loc = payload.get("loc")
        if not isinstance(loc, str) or "," not in loc:
            return None
        lat, lng = loc.split(",", 1)
        return _fix(lat, lng, 1000.0, "ipinfo", payload)

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            factory = self._client_factory or (lambda: httpx.AsyncClient(timeout=self._timeout_seconds))
            async with factory() as client:
                response = await client.get(url, params=params, headers={"Accept": "application/json"})
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ApiError("UPSTREAM_TIMEOUT", "Upstream timeout", 504) from exc
        except httpx.HTTPStatusError as exc:
            raise ApiError("UPSTREAM_HTTP_ERROR", "Upstream returned error", 502) from exc
        except httpx.HTTPError as exc:
            raise ApiError("UPSTREAM_FAILURE", "Upstream request failed", 502) from exc

        payload = response.json()
        if not isinstance(payload, dict):
            raise ApiError("UPSTREAM_BAD_PAYLOAD", "Upstream returned unexpected payload", 502)
        return payload


def _fix(lat: Any, lng: Any, accuracy_meters: float, source: str, payload: dict[str, Any]) -> LocationFix | None:
    try:
        point = GeoPoint(lat=float(lat), lng=float(lng))
    except (TypeError, ValueError):
        return None
    country = payload.get("country") or payload.get("country_name")
    return LocationFix(
        point=point,
        accuracy_meters=accuracy_meters,
        source=source,
        city=payload.get("city"),
        country=country,
    )
