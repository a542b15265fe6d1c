from __future__ import annotations

import math

from geo_engine.distance import EARTH_RADIUS_KM
from geo_engine.models import BoundingBox, GeoPoint

KM_PER_DEGREE = 111.0

_ALL_LONGITUDES = ((-180.0, 180.0),)


def bounding_box(center: GeoPoint, radius_km: float) -> BoundingBox:
    """Degree window guaranteed to contain every point within ``radius_km``.

    The latitude half-height is ``radius_km / 111``. When the window reaches a
    pole, any longitude can be in range, so only the latitude bound applies.
    Windows that cross the antimeridian are split into two longitude ranges.
    """
    if radius_km < 0:
        raise ValueError("radius_km must be >= 0")
    lat_delta = radius_km / KM_PER_DEGREE
    south = max(-90.0, center.lat - lat_delta)
    north = min(90.0, center.lat + lat_delta)
    if abs(center.lat) + lat_delta >= 90.0:
        return BoundingBox(south=south, north=north, lng_ranges=_ALL_LONGITUDES)

    lng_delta = longitude_delta(center.lat, radius_km)
    if lng_delta >= 180.0:
        return BoundingBox(south=south, north=north, lng_ranges=_ALL_LONGITUDES)

    west = center.lng - lng_delta
    east = center.lng + lng_delta
    if west < -180.0:
        ranges = ((west + 360.0, 180.0), (-180.0, east))
    elif east > 180.0:
        ranges = ((west, 180.0), (-180.0, east - 360.0))
    else:
        ranges = ((west, east),)
    return BoundingBox(south=south, north=north, lng_ranges=ranges)


def longitude_delta(lat: float, radius_km: float) -> float:
    """Longitude half-width in degrees at ``lat``.

    Starts from ``radius_km / (111 * cos(lat))`` and widens it to the exact
    spherical half-width, which is larger at high latitudes and long radii.
    Callers must keep ``lat`` off the poles.
    """
    cos_lat = math.cos(math.radians(lat))
    if cos_lat <= 0.0:
        return 180.0
    flat = radius_km / (KM_PER_DEGREE * cos_lat)
    ratio = math.sin(radius_km / EARTH_RADIUS_KM) / cos_lat
    if ratio >= 1.0:
        return 180.0
    return max(flat, math.degrees(math.asin(ratio)))
