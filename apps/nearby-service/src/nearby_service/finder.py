"""Nearby provider lookup.

A query is a two-phase filter. The directory is read through a degree window
(see ``geo_engine.bounding_box``) so only candidates near the origin leave the
store. Then the exact Haversine distance trims the window's corners, and the
survivors are sorted nearest first.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any

from geo_engine.bounding_box import bounding_box
from geo_engine.distance import haversine_distance_km
from geo_engine.models import BoundingBox, GeoPoint
from opentelemetry import trace

from nearby_service.directory import ProviderDirectory, ProviderRecord
from nearby_service.errors import DirectoryUnavailableError, InvalidInputError

logger = logging.getLogger(__name__)
_tracer = trace.get_tracer(__name__)

DEFAULT_RADIUS_KM = 500.0
MAX_RADIUS_KM = 500.0
MAX_RESULTS = 500


@dataclass(frozen=True)
class NearbyMatch:
    record: ProviderRecord
    distance_km: float

    def to_payload(self) -> dict[str, Any]:
        return {**self.record.to_payload(), "distance": self.distance_km}


class NearbyProviderFinder:
    def __init__(
        self,
        directory: ProviderDirectory,
        *,
        default_radius_km: float = DEFAULT_RADIUS_KM,
        max_radius_km: float = MAX_RADIUS_KM,
        max_results: int = MAX_RESULTS,
        directory_timeout_seconds: float = 5.0,
    ) -> None:
        if default_radius_km <= 0 or max_radius_km <= 0:
            raise ValueError("radius settings must be > 0")
        if max_results <= 0:
            raise ValueError("max_results must be > 0")
        self._directory = directory
        self._default_radius_km = min(default_radius_km, max_radius_km)
        self._max_radius_km = max_radius_km
        self._max_results = max_results
        self._directory_timeout_seconds = directory_timeout_seconds

    async def query(
        self,
        origin_lat: object,
        origin_lng: object,
        radius_km: object = None,
    ) -> list[NearbyMatch]:
        origin = _validate_origin(origin_lat, origin_lng)
        radius = self._resolve_radius(radius_km)
        box = bounding_box(origin, radius)

        with _tracer.start_as_current_span("nearby.query") as span:
            span.set_attribute("nearby.origin_lat", origin.lat)
            span.set_attribute("nearby.origin_lng", origin.lng)
            span.set_attribute("nearby.radius_km", radius)
            candidates = await self._fetch_window(box)
            matches = _nearest_first(origin, radius, candidates)
            span.set_attribute("nearby.candidates", len(candidates))
            span.set_attribute("nearby.matches", len(matches))

        logger.info(
            "nearby_query_completed",
            extra={
                "component": "nearby_service",
                "origin_lat": origin.lat,
                "origin_lng": origin.lng,
                "radius_km": radius,
                "candidates": len(candidates),
                "matches": len(matches),
            },
        )
        return matches

    def _resolve_radius(self, radius_km: object) -> float:
        if radius_km is None:
            return self._default_radius_km
        if isinstance(radius_km, bool) or not isinstance(radius_km, (int, float)):
            raise InvalidInputError("radius must be a number")
        radius = float(radius_km)
        if not math.isfinite(radius) or radius <= 0:
            raise InvalidInputError("radius must be a positive number")
        if radius > self._max_radius_km:
            logger.info(
                "nearby_radius_clamped",
                extra={"component": "nearby_service", "requested_km": radius, "max_km": self._max_radius_km},
            )
            return self._max_radius_km
        return radius

    async def _fetch_window(self, box: BoundingBox) -> list[ProviderRecord]:
        try:
            return await asyncio.wait_for(
                self._directory.fetch_window(box, self._max_results),
                timeout=self._directory_timeout_seconds,
            )
        except TimeoutError as exc:
            logger.warning(
                "nearby_directory_unavailable",
                extra={"component": "nearby_service", "reason": "timeout"},
            )
            raise DirectoryUnavailableError("provider directory timed out") from exc
        except DirectoryUnavailableError:
            logger.warning(
                "nearby_directory_unavailable",
                extra={"component": "nearby_service", "reason": "read_failed"},
                exc_info=True,
            )
            raise
        except Exception as exc:
            logger.exception("nearby_directory_unavailable", extra={"component": "nearby_service", "reason": "error"})
            raise DirectoryUnavailableError("provider directory read failed") from exc


def _validate_origin(lat: object, lng: object) -> GeoPoint:
    if lat is None or lng is None:
        raise InvalidInputError("latitude and longitude are required")
    return GeoPoint(lat=_degrees("latitude", lat, 90.0), lng=_degrees("longitude", lng, 180.0))


def _degrees(field: str, value: object, bound: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{field} must be a number")
    number = float(value)
    if not math.isfinite(number) or not -bound <= number <= bound:
        raise InvalidInputError(f"{field} must be between {-bound:g} and {bound:g}")
    return number


def _nearest_first(origin: GeoPoint, radius_km: float, candidates: list[ProviderRecord]) -> list[NearbyMatch]:
    matches: list[NearbyMatch] = []
    for record in candidates:
        location = record.location
        if not record.verified or location is None:
            continue
        distance = haversine_distance_km(origin, location)
        if distance <= radius_km:
            matches.append(NearbyMatch(record=record, distance_km=distance))
    # sorted() is stable, ties keep retrieval order
    return sorted(matches, key=lambda match: match.distance_km)
