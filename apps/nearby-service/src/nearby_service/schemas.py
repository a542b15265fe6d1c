from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class NearbyQueryRequest(BaseModel):
    # strict: JSON booleans and numeric strings are rejected instead of coerced
    model_config = ConfigDict(strict=True)

    # presence and range are checked by the finder so missing coordinates map to 400
    latitude: float | None = None
    longitude: float | None = None
    radius: float | None = None


class ApproximateLocation(BaseModel):
    latitude: float
    longitude: float
    accuracy_meters: float
    source: str
    city: str | None = None
    country: str | None = None
