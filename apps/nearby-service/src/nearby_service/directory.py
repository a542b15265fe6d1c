from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol

from devkit.db import AsyncDatabaseManager, Base, create_all_tables
from geo_engine.models import BoundingBox, GeoPoint
from sqlalchemy import Boolean, Float, Index, Select, String, Text, or_, select
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, mapped_column

from nearby_service.errors import DirectoryUnavailableError


@dataclass(frozen=True)
class ProviderRecord:
    provider_id: str
    latitude: float | None
    longitude: float | None
    verified: bool
    profile: dict[str, Any] = field(default_factory=dict)

    @property
    def location(self) -> GeoPoint | None:
        if self.latitude is None or self.longitude is None:
            return None
        return GeoPoint(lat=self.latitude, lng=self.longitude)

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.provider_id,
            **self.profile,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "is_verified": self.verified,
        }


class ProviderDirectory(Protocol):
    async def fetch_window(self, box: BoundingBox, limit: int) -> list[ProviderRecord]:
        """Verified, located records inside ``box``, at most ``limit``, in a stable order."""
        ...


def _sample_provider(
    provider_id: str,
    name: str,
    city: str,
    lat: float | None,
    lng: float | None,
    *,
    verified: bool = True,
    services: list[str] | None = None,
) -> ProviderRecord:
    return ProviderRecord(
        provider_id=provider_id,
        latitude=lat,
        longitude=lng,
        verified=verified,
        profile={
            "vet_name": name,
            "clinic_name": name,
            "address": f"Centre-ville, {city}",
            "city": city,
            "phone": None,
            "email": None,
            "opening_hours": "8h00 - 17h00",
            "services_offered": services or ["Analyses sanguines"],
        },
    )


SAMPLE_PROVIDERS = (
    _sample_provider("vet-alg-1", "Cabinet Vétérinaire El Biar", "Alger", 36.7690, 3.0320),
    _sample_provider(
        "lab-alg-1",
        "Laboratoire Vétérinaire Central",
        "Alger",
        36.7372,
        3.0865,
        services=["Analyses sanguines", "Parasitologie", "Biochimie"],
    ),
    _sample_provider("vet-bli-1", "Clinique Vétérinaire de Blida", "Blida", 36.4700, 2.8277),
    _sample_provider("lab-ora-1", "Laboratoire Régional d'Oran", "Oran", 35.6969, -0.6331),
    _sample_provider("vet-cst-1", "Cabinet Vétérinaire Sidi Mabrouk", "Constantine", 36.3650, 6.6147),
    _sample_provider("vet-bat-1", "Clinique Vétérinaire des Aurès", "Batna", 35.5559, 6.1743),
    _sample_provider("vet-tiz-1", "Cabinet Vétérinaire Tizi Ouzou", "Tizi Ouzou", 36.7118, 4.0459, verified=False),
    _sample_provider("lab-set-1", "Laboratoire d'Analyses Sétif", "Sétif", None, None),
)


class InMemoryProviderDirectory:
    def __init__(self, records: Iterable[ProviderRecord] | None = None) -> None:
        source = SAMPLE_PROVIDERS if records is None else records
        self._records: dict[str, ProviderRecord] = {record.provider_id: record for record in source}

    async def fetch_window(self, box: BoundingBox, limit: int) -> list[ProviderRecord]:
        matched: list[ProviderRecord] = []
        for record in self._records.values():
            location = record.location
            if not record.verified or location is None or not box.contains(location):
                continue
            matched.append(record)
            if len(matched) >= limit:
                break
        return matched


class ProviderORM(Base):
    __tablename__ = "vet_profiles"
    __table_args__ = (Index("ix_vet_profiles_lat_lng", "latitude", "longitude"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    vet_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    clinic_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    city: Mapped[str | None] = mapped_column(String(120), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    opening_hours: Mapped[str | None] = mapped_column(String(255), nullable=True)
    services_offered: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)


def window_statement(box: BoundingBox, limit: int) -> Select[tuple[ProviderORM]]:
    longitude_in_window = or_(*(ProviderORM.longitude.between(west, east) for west, east in box.lng_ranges))
    return (
        select(ProviderORM)
        .where(ProviderORM.is_verified.is_(True))
        .where(ProviderORM.latitude.between(box.south, box.north))
        .where(longitude_in_window)
        .order_by(ProviderORM.id)
        .limit(limit)
    )


class SqlProviderDirectory:
    """Read-only view over ``vet_profiles``.

    The table is owned by the registration side of the product. ``create_tables``
    exists for local bootstrap and must stay off against a shared database.
    """

    def __init__(self, db: AsyncDatabaseManager, *, create_tables: bool = False) -> None:
        self._db = db
        self._create_tables = create_tables
        self._orm_ready = False

    async def fetch_window(self, box: BoundingBox, limit: int) -> list[ProviderRecord]:
        async def _run(session):
            rows = (await session.scalars(window_statement(box, limit))).all()
            return [self._to_record(row) for row in rows]

        try:
            await self._ensure_orm_ready()
            return await self._db.run_with_session(_run, read_only=True)
        except (SQLAlchemyError, OSError) as exc:
            raise DirectoryUnavailableError("provider directory read failed") from exc

    async def _ensure_orm_ready(self) -> None:
        if self._orm_ready:
            return
        if self._create_tables:
            await self._db.connect()
            await create_all_tables(self._db.engine, Base.metadata)
        self._orm_ready = True

    def _to_record(self, row: ProviderORM) -> ProviderRecord:
        return ProviderRecord(
            provider_id=row.id,
            latitude=row.latitude,
            longitude=row.longitude,
            verified=row.is_verified,
            profile={
                "vet_name": row.vet_name,
                "clinic_name": row.clinic_name,
                "address": row.address,
                "city": row.city,
                "phone": row.phone,
                "email": row.email,
                "opening_hours": row.opening_hours,
                "services_offered": list(row.services_offered or []),
            },
        )
