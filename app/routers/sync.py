"""
Data sync API router.
Provides an endpoint for ingesting charger records.
"""
from fastapi import APIRouter, Depends, Header, HTTPException
import redis.asyncio as redis
from app.config import get_settings
from app.database import get_redis
from app.schemas.charging import ChargerSyncRequest, SyncResultResponse
from app.services.ingestion import ChargerIngestionService

router = APIRouter(prefix="/api/sync", tags=["Sync"])


def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")):
    """Verify API key for sync endpoints."""
    settings = get_settings()
    if not settings.sync_api_key or x_api_key != settings.sync_api_key:
        raise HTTPException(status_code=403, detail="Invalid API key")
    return x_api_key


def get_ingestion_service(
    client: redis.Redis = Depends(get_redis),
) -> ChargerIngestionService:
    return ChargerIngestionService.from_client(client, get_settings())


@router.post("/chargers", response_model=SyncResultResponse)
async def sync_chargers(
    request: ChargerSyncRequest,
    service: ChargerIngestionService = Depends(get_ingestion_service),
    _: str = Depends(verify_api_key),
):
    """
    Upsert chargers into the attribute store and geo index.
    Records older than the stored updatedAt are skipped.
    Requires X-API-Key header for authentication.
    """
    result = await service.upsert_many(c.to_charger() for c in request.chargers)

    return SyncResultResponse(
        success=True,
        message=f"Wrote {len(result.written)} chargers, skipped {len(result.skipped)} stale",
        written=result.written,
        skipped=result.skipped,
    )
