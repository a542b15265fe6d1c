"""Ordered location-source fallback.

A location lookup is a list of attempts (GPS relay, IP geolocation services,
a fixed city centre...). Each attempt runs under its own timeout and the first
fix accepted by the validator wins.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from geo_engine.models import GeoPoint

logger = logging.getLogger(__name__)

# south, west, north, east
ALGERIA_BOUNDS = (18.5, -9.0, 37.5, 12.5)


@dataclass(frozen=True)
class LocationFix:
    point: GeoPoint
    accuracy_meters: float
    source: str
    city: str | None = None
    country: str | None = None


@dataclass(frozen=True)
class LocationAttempt:
    name: str
    fetch: Callable[[], Awaitable[LocationFix | None]]
    timeout_seconds: float = 3.0


FixValidator = Callable[[LocationFix], bool]


def is_plausible_fix(fix: LocationFix) -> bool:
    lat = fix.point.lat
    lng = fix.point.lng
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    # (0, 0) is what broken providers report for "unknown"
    if lat == 0 and lng == 0:
        return False
    return -90 <= lat <= 90 and -180 <= lng <= 180


def region_validator(south: float, west: float, north: float, east: float) -> FixValidator:
    def _validate(fix: LocationFix) -> bool:
        if not is_plausible_fix(fix):
            return False
        return south <= fix.point.lat <= north and west <= fix.point.lng <= east

    return _validate


async def resolve_location(
    attempts: Iterable[LocationAttempt],
    validator: FixValidator = is_plausible_fix,
) -> LocationFix | None:
    for attempt in attempts:
        try:
            fix = await asyncio.wait_for(attempt.fetch(), timeout=attempt.timeout_seconds)
        except TimeoutError:
            logger.warning(
                "location_attempt_timeout",
                extra={"component": "geo_engine", "source": attempt.name, "timeout_seconds": attempt.timeout_seconds},
            )
            continue
        except Exception:
            logger.warning(
                "location_attempt_failed",
                extra={"component": "geo_engine", "source": attempt.name},
                exc_info=True,
            )
            continue
        if fix is None:
            continue
        if not validator(fix):
            logger.info(
                "location_fix_rejected",
                extra={"component": "geo_engine", "source": attempt.name, "lat": fix.point.lat, "lng": fix.point.lng},
            )
            continue
        return fix
    return None
