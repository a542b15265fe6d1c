"""Geo engine core package."""

from geo_engine.bounding_box import bounding_box, longitude_delta
from geo_engine.distance import EARTH_RADIUS_KM, haversine_distance_km
from geo_engine.location import (
    ALGERIA_BOUNDS,
    LocationAttempt,
    LocationFix,
    is_plausible_fix,
    region_validator,
    resolve_location,
)
from geo_engine.models import BoundingBox, GeoPoint

__all__ = [
    "GeoPoint",
    "BoundingBox",
    "EARTH_RADIUS_KM",
    "haversine_distance_km",
    "bounding_box",
    "longitude_delta",
    "ALGERIA_BOUNDS",
    "LocationFix",
    "LocationAttempt",
    "is_plausible_fix",
    "region_validator",
    "resolve_location",
]
