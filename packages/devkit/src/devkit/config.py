from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    SERVICE_NAME: str = "service"
    DATABASE_URL: str | None = None
    NEARBY_DEFAULT_RADIUS_KM: float = Field(default=500.0, gt=0)
    NEARBY_MAX_RADIUS_KM: float = Field(default=500.0, gt=0)
    NEARBY_MAX_RESULTS: int = Field(default=500, ge=1)
    NEARBY_DIRECTORY_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)
    LOCATION_SOURCE_TIMEOUT_SECONDS: float = Field(default=3.0, gt=0)


def load_settings(service_name: str) -> ServiceSettings:
    return ServiceSettings(SERVICE_NAME=service_name)
