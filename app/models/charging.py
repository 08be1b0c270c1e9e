"""
Charger domain models.
Typed records for the Redis hash layout and the search pipeline.
"""
import json
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Mapping, Optional, Tuple, TypeVar
from app.exceptions import MalformedAttribute

T = TypeVar("T")

NAN = float("nan")


@dataclass(frozen=True)
class Coordinates:
    """A WGS84 point."""
    lat: float
    lng: float

    def __post_init__(self):
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"Longitude out of range: {self.lng}")


class SortKey(str, Enum):
    """Result ordering options."""
    DISTANCE = "distance"
    POWER = "power"
    PRICE = "price"
    UPDATED = "updated"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortKey":
        """Unknown or empty values fall back to distance ordering."""
        if isinstance(value, cls):
            return value
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.DISTANCE


# ============ Field parsing ============

@dataclass(frozen=True)
class FieldResult(Generic[T]):
    """Outcome of parsing one stored field: a value plus an optional error."""
    value: T
    error: Optional[MalformedAttribute] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_number(raw: Optional[str], name: str) -> FieldResult[float]:
    """Coerce a stored value to float, NaN when absent or malformed."""
    if raw is None or raw == "":
        return FieldResult(NAN)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return FieldResult(NAN, MalformedAttribute(name, raw, "not a number"))
    if math.isinf(value):
        return FieldResult(NAN, MalformedAttribute(name, raw, "not finite"))
    return FieldResult(value)


def parse_timestamp(raw: Optional[str], name: str) -> FieldResult[Optional[int]]:
    """Parse milliseconds since epoch."""
    number = parse_number(raw, name)
    if not number.ok or math.isnan(number.value):
        return FieldResult(None, number.error)
    return FieldResult(int(number.value))


def parse_tags(raw: Optional[str], name: str) -> FieldResult[List[str]]:
    """Parse a JSON array of strings, empty on any failure."""
    if raw is None or raw == "":
        return FieldResult([])
    try:
        value = json.loads(raw)
    except (TypeError, ValueError, RecursionError):
        return FieldResult([], MalformedAttribute(name, raw, "invalid JSON"))
    if not isinstance(value, list):
        return FieldResult([], MalformedAttribute(name, raw, "not a list"))
    return FieldResult([str(item) for item in value if item is not None])


def parse_coordinates(
    lat_raw: Optional[str], lng_raw: Optional[str]
) -> FieldResult[Optional[Coordinates]]:
    """Parse a stored lat/lng pair. Both halves are required."""
    if not lat_raw or not lng_raw:
        return FieldResult(None)
    lat = parse_number(lat_raw, "lat")
    lng = parse_number(lng_raw, "lng")
    if not lat.ok:
        return FieldResult(None, lat.error)
    if not lng.ok:
        return FieldResult(None, lng.error)
    try:
        return FieldResult(Coordinates(lat=lat.value, lng=lng.value))
    except ValueError as e:
        return FieldResult(
            None, MalformedAttribute("coords", f"{lat_raw},{lng_raw}", str(e))
        )


def _text(raw: Optional[str]) -> Optional[str]:
    return raw if raw else None


@dataclass
class ChargerAttributes:
    """Strictly typed view of a stored charger hash."""
    name: Optional[str] = None
    address: Optional[str] = None
    power_kw: float = NAN
    price_per_kwh: float = NAN
    status: Optional[str] = None
    network: Optional[str] = None
    connectors: List[str] = field(default_factory=list)
    amenities: List[str] = field(default_factory=list)
    updated_at: Optional[int] = None
    coords: Optional[Coordinates] = None

    @classmethod
    def from_hash(
        cls, raw: Mapping[str, str]
    ) -> Tuple["ChargerAttributes", List[MalformedAttribute]]:
        """Parse a hash, returning defaulted attributes and per-field errors."""
        results: Dict[str, FieldResult[Any]] = {
            "power_kw": parse_number(raw.get("powerKW"), "powerKW"),
            "price_per_kwh": parse_number(raw.get("pricePerKWh"), "pricePerKWh"),
            "connectors": parse_tags(raw.get("connectors"), "connectors"),
            "amenities": parse_tags(raw.get("amenities"), "amenities"),
            "updated_at": parse_timestamp(raw.get("updatedAt"), "updatedAt"),
            "coords": parse_coordinates(raw.get("lat"), raw.get("lng")),
        }
        attributes = cls(
            name=_text(raw.get("name")),
            address=_text(raw.get("address")),
            status=_text(raw.get("status")),
            network=_text(raw.get("network")),
            **{key: result.value for key, result in results.items()},
        )
        errors = [result.error for result in results.values() if not result.ok]
        return attributes, errors


@dataclass
class Charger:
    """A charger as written by ingestion."""
    id: str
    name: str
    address: str
    coords: Coordinates
    power_kw: float
    price_per_kwh: float
    updated_at: int
    amenities: List[str] = field(default_factory=list)
    status: Optional[str] = None
    network: Optional[str] = None
    connectors: Optional[List[str]] = None

    def to_hash(self) -> Dict[str, str]:
        """Serialize to the string field map stored under charger:<id>."""
        mapping = {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "powerKW": str(self.power_kw),
            "pricePerKWh": str(self.price_per_kwh),
            "amenities": json.dumps(list(self.amenities)),
            "updatedAt": str(self.updated_at),
            "lat": str(self.coords.lat),
            "lng": str(self.coords.lng),
        }
        # Extension fields are only written when present
        if self.status:
            mapping["status"] = self.status
        if self.network:
            mapping["network"] = self.network
        if self.connectors is not None:
            mapping["connectors"] = json.dumps(list(self.connectors))
        return mapping


# ============ Search pipeline ============

@dataclass(frozen=True)
class GeoHit:
    """One radius query result from the geo index."""
    id: str
    distance_km: Optional[float] = None
    coords: Optional[Coordinates] = None


@dataclass(frozen=True)
class SearchQuery:
    """Transient search request."""
    origin: Coordinates
    radius_km: float = 30.0
    limit: int = 200
    min_power: Optional[float] = None
    max_price: Optional[float] = None
    text: str = ""
    sort_by: SortKey = SortKey.DISTANCE
    status: Optional[str] = None


@dataclass
class ResultRecord:
    """A geo hit merged with its attributes."""
    id: str
    distance_km: float
    coords: Optional[Coordinates] = None
    name: Optional[str] = None
    address: Optional[str] = None
    power_kw: float = NAN
    price_per_kwh: float = NAN
    status: Optional[str] = None
    network: Optional[str] = None
    connectors: List[str] = field(default_factory=list)
    amenities: List[str] = field(default_factory=list)
    updated_at: Optional[int] = None
