"""
Geo Index Adapter.
Radius queries over the Redis geo set holding charger locations.
"""
import logging
import math
from typing import Any, List, Optional, Sequence
import redis.asyncio as redis
from redis.exceptions import RedisError
from app.exceptions import IndexUnavailable
from app.models.charging import Coordinates, GeoHit

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
GEO_MAX_LAT = 85.05112878


def haversine_km(a: Coordinates, b: Coordinates) -> float:
    """
    Calculate the great circle distance between two points (in kilometres).
    Uses Haversine formula.
    """
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    delta_phi = math.radians(b.lat - a.lat)
    delta_lambda = math.radians(b.lng - a.lng)

    h = (
        math.sin(delta_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


class GeoIndexAdapter:
    """Wraps GEOSEARCH/GEOADD on a single geo-indexed key."""

    def __init__(self, client: redis.Redis, key: str = "chargers:geo"):
        self.client = client
        self.key = key

    async def find_within_radius(
        self, origin: Coordinates, radius_km: float, limit: int
    ) -> List[GeoHit]:
        """
        Return members within radius_km of origin, nearest first, at most limit.
        Raises IndexUnavailable when the store cannot answer.
        """
        try:
            rows = await self.client.geosearch(
                self.key,
                longitude=origin.lng,
                latitude=origin.lat,
                radius=radius_km,
                unit="km",
                sort="ASC",
                count=limit,
                withdist=True,
                withcoord=True,
            )
        except (RedisError, OSError) as e:
            logger.error("Radius query on %s failed: %s", self.key, e)
            raise IndexUnavailable(f"Geo index {self.key} unavailable: {e}") from e

        hits = [self._to_hit(row, origin) for row in rows or []]
        logger.debug(
            "Radius query r=%.3fkm limit=%d returned %d hits", radius_km, limit, len(hits)
        )
        return hits

    def _to_hit(self, row: Any, origin: Coordinates) -> GeoHit:
        """Convert a [member, dist, (lon, lat)] row into a GeoHit."""
        if isinstance(row, (str, bytes)):
            row = [row]
        member = row[0]
        if isinstance(member, bytes):
            member = member.decode()
        distance = _as_distance(row[1] if len(row) > 1 else None)
        coords = _as_coords(row[2] if len(row) > 2 else None)

        # Fall back to our own distance only when the store gave none
        if distance is None and coords is not None:
            distance = haversine_km(origin, coords)
        return GeoHit(id=member, distance_km=distance, coords=coords)

    def queue_add(self, pipe: Any, member: str, coords: Coordinates) -> None:
        """Queue an insert/move of a member on a pipeline. Used by ingestion only."""
        check_indexable(coords)
        pipe.geoadd(self.key, (coords.lng, coords.lat, member))


def check_indexable(coords: Coordinates) -> None:
    """Redis GEO only stores latitudes within the Web Mercator limit."""
    if abs(coords.lat) > GEO_MAX_LAT:
        raise ValueError(
            f"Latitude {coords.lat} outside geo index range ±{GEO_MAX_LAT}"
        )


def _as_distance(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        distance = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(distance) or distance < 0:
        return None
    return distance


def _as_coords(value: Optional[Sequence[Any]]) -> Optional[Coordinates]:
    """Redis echoes coordinates as (longitude, latitude)."""
    if not value or len(value) != 2:
        return None
    try:
        return Coordinates(lat=float(value[1]), lng=float(value[0]))
    except (TypeError, ValueError):
        return None
