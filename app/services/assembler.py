"""
Result Assembler.
Merges geo index hits with stored attribute hashes.
"""
import logging
from typing import Dict, List, Mapping, Optional, Sequence
from app.models.charging import (
    NAN,
    ChargerAttributes,
    Coordinates,
    GeoHit,
    ResultRecord,
)
from app.services.geo_index import haversine_km

logger = logging.getLogger(__name__)


def merge_one(
    hit: GeoHit,
    raw: Optional[Mapping[str, str]],
    origin: Optional[Coordinates] = None,
) -> ResultRecord:
    """Build one record. Never raises for bad stored data."""
    attributes, errors = ChargerAttributes.from_hash(raw or {})
    for error in errors:
        logger.warning("Malformed attribute on charger %s: %s", hit.id, error)

    # Attribute hash holds display coordinates, the index holds search ones
    coords = attributes.coords or hit.coords

    distance = hit.distance_km
    if distance is None:
        if origin is not None and coords is not None:
            distance = haversine_km(origin, hit.coords or coords)
        else:
            distance = NAN

    return ResultRecord(
        id=hit.id,
        distance_km=distance,
        coords=coords,
        name=attributes.name,
        address=attributes.address,
        power_kw=attributes.power_kw,
        price_per_kwh=attributes.price_per_kwh,
        status=attributes.status,
        network=attributes.network,
        connectors=attributes.connectors,
        amenities=attributes.amenities,
        updated_at=attributes.updated_at,
    )


def merge(
    hits: Sequence[GeoHit],
    attributes_by_id: Dict[str, Optional[Mapping[str, str]]],
    origin: Optional[Coordinates] = None,
) -> List[ResultRecord]:
    """One record per hit, in index order."""
    return [merge_one(hit, attributes_by_id.get(hit.id), origin) for hit in hits]
