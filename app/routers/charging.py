"""
Charger API router.
Provides endpoints for searching nearby chargers.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, HTTPException
import redis.asyncio as redis
from app.config import get_settings
from app.database import get_redis
from app.models.charging import Coordinates, SearchQuery, SortKey
from app.schemas.charging import ChargerResponse, ChargerSearchResponse
from app.services.search import ChargerSearchService

router = APIRouter(prefix="/api/chargers", tags=["Chargers"])


def get_search_service(client: redis.Redis = Depends(get_redis)) -> ChargerSearchService:
    """Dependency for a search service bound to the shared client."""
    return ChargerSearchService.from_client(client, get_settings())


@router.get("/search", response_model=ChargerSearchResponse)
async def search_chargers(
    lat: Optional[float] = Query(None, ge=-90, le=90, description="Latitude"),
    lng: Optional[float] = Query(None, ge=-180, le=180, description="Longitude"),
    radius_km: Optional[float] = Query(
        None, alias="radiusKm", gt=0, le=20000, description="Radius in kilometres"
    ),
    limit: Optional[int] = Query(None, ge=1, description="Capped at MAX_LIMIT"),
    min_power: Optional[float] = Query(None, alias="minPower", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    q: str = Query("", max_length=200, description="Name/address substring"),
    sort_by: Optional[str] = Query(
        None, alias="sortBy", description="distance | power | price | updated"
    ),
    status: Optional[str] = Query(None, description="Filter by charger status"),
    service: ChargerSearchService = Depends(get_search_service),
):
    """
    Get chargers near a location.
    Results are nearest first unless sortBy selects another ordering.
    """
    settings = get_settings()
    query = SearchQuery(
        origin=Coordinates(
            lat=lat if lat is not None else settings.default_lat,
            lng=lng if lng is not None else settings.default_lng,
        ),
        radius_km=radius_km if radius_km is not None else settings.default_radius_km,
        limit=min(limit or settings.default_limit, settings.max_limit),
        min_power=min_power,
        max_price=max_price,
        text=q,
        sort_by=SortKey.parse(sort_by),
        status=status,
    )

    records = await service.search(query)

    return ChargerSearchResponse(
        items=[ChargerResponse.from_record(record) for record in records]
    )


@router.get("/{charger_id}", response_model=ChargerResponse)
async def get_charger(
    charger_id: str,
    service: ChargerSearchService = Depends(get_search_service),
):
    """Get single charger by ID."""
    record = await service.get_charger(charger_id)

    if not record:
        raise HTTPException(status_code=404, detail="Charger not found")

    return ChargerResponse.from_record(record)
