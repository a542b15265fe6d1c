from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass(frozen=True)
class BoundingBox:
    south: float
    north: float
    lng_ranges: tuple[tuple[float, float], ...]

    @property
    def covers_all_longitudes(self) -> bool:
        return self.lng_ranges == ((-180.0, 180.0),)

    def contains(self, point: GeoPoint) -> bool:
        if not self.south <= point.lat <= self.north:
            return False
        return any(west <= point.lng <= east for west, east in self.lng_ranges)
