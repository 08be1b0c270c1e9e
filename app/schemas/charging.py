"""
Pydantic schemas for charger search API.
"""
import math
import time
from typing import Optional, List
from pydantic import BaseModel, Field
from app.models.charging import Charger, Coordinates, ResultRecord
from app.services.geo_index import GEO_MAX_LAT


def _finite(value: Optional[float]) -> Optional[float]:
    """JSON has no NaN; missing numbers are sent as null."""
    if value is None or math.isnan(value):
        return None
    return value


# ============ Shared Schemas ============

class CoordsSchema(BaseModel):
    """Latitude/longitude pair."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class IndexableCoordsSchema(CoordsSchema):
    """Coordinates the Redis geo index can store."""
    lat: float = Field(..., ge=-GEO_MAX_LAT, le=GEO_MAX_LAT)


# ============ Response Schemas ============

class ChargerResponse(BaseModel):
    """Charger search result."""
    id: str
    name: Optional[str] = None
    address: Optional[str] = None
    power_kw: Optional[float] = Field(None, alias="powerKW")
    price_per_kwh: Optional[float] = Field(None, alias="pricePerKWh")
    status: Optional[str] = None
    network: Optional[str] = None
    connectors: List[str] = []
    amenities: List[str] = []
    updated_at: Optional[int] = Field(None, alias="updatedAt")
    coords: Optional[CoordsSchema] = None
    distance_km: Optional[float] = Field(
        None, alias="distanceKm", description="Distance from query point in kilometres"
    )

    class Config:
        populate_by_name = True

    @classmethod
    def from_record(cls, record: ResultRecord) -> "ChargerResponse":
        return cls(
            id=record.id,
            name=record.name,
            address=record.address,
            power_kw=_finite(record.power_kw),
            price_per_kwh=_finite(record.price_per_kwh),
            status=record.status,
            network=record.network,
            connectors=record.connectors,
            amenities=record.amenities,
            updated_at=record.updated_at,
            coords=(
                CoordsSchema(lat=record.coords.lat, lng=record.coords.lng)
                if record.coords else None
            ),
            distance_km=_finite(record.distance_km),
        )


class ChargerSearchResponse(BaseModel):
    """Charger search result list."""
    items: List[ChargerResponse]


# ============ Sync Schemas ============

class ChargerIn(BaseModel):
    """Charger record accepted by the sync endpoint."""
    id: str = Field(..., min_length=1)
    name: str
    address: str = ""
    coords: IndexableCoordsSchema
    power_kw: float = Field(..., ge=0, alias="powerKW")
    price_per_kwh: float = Field(..., ge=0, alias="pricePerKWh")
    amenities: List[str] = []
    updated_at: Optional[int] = Field(None, ge=0, alias="updatedAt")
    status: Optional[str] = None
    network: Optional[str] = None
    connectors: Optional[List[str]] = None

    class Config:
        populate_by_name = True

    def to_charger(self) -> Charger:
        return Charger(
            id=self.id,
            name=self.name,
            address=self.address,
            coords=Coordinates(lat=self.coords.lat, lng=self.coords.lng),
            power_kw=self.power_kw,
            price_per_kwh=self.price_per_kwh,
            amenities=self.amenities,
            updated_at=(
                self.updated_at if self.updated_at is not None
                else int(time.time() * 1000)
            ),
            status=self.status,
            network=self.network,
            connectors=self.connectors,
        )


class ChargerSyncRequest(BaseModel):
    """Batch of chargers to ingest."""
    chargers: List[ChargerIn] = Field(..., min_length=1)


class SyncResultResponse(BaseModel):
    """Result of sync operation."""
    success: bool
    message: str
    written: List[str]
    skipped: List[str]
