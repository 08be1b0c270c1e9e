"""
Charger ingestion.
Writes attribute hashes and geo index entries. Never used by the search path.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional
import redis.asyncio as redis
from redis.exceptions import RedisError
from app.config import Settings, get_settings
from app.exceptions import IndexUnavailable
from app.models.charging import Charger
from app.services.attribute_store import AttributeStoreAdapter
from app.services.geo_index import GeoIndexAdapter, check_indexable

logger = logging.getLogger(__name__)


@dataclass
class IngestionResult:
    """Outcome of an ingestion batch."""
    written: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


class ChargerIngestionService:
    """Upserts chargers into the attribute store and the geo index."""

    def __init__(self, geo_index: GeoIndexAdapter, attribute_store: AttributeStoreAdapter):
        self.geo_index = geo_index
        self.attribute_store = attribute_store

    @classmethod
    def from_client(
        cls, client: redis.Redis, settings: Optional[Settings] = None
    ) -> "ChargerIngestionService":
        settings = settings or get_settings()
        return cls(
            geo_index=GeoIndexAdapter(client, key=settings.geo_key),
            attribute_store=AttributeStoreAdapter(
                client, key_prefix=settings.charger_key_prefix
            ),
        )

    async def upsert(self, charger: Charger) -> bool:
        """
        Write one charger. Returns False when the stored record is newer,
        so updatedAt never moves backwards. The hash is replaced, not merged,
        and written in the same transaction as the geo entry.
        Raises ValueError for coordinates the geo index cannot store.
        """
        check_indexable(charger.coords)
        try:
            stored_at = await self.attribute_store.get_updated_at(charger.id)
            if stored_at is not None and stored_at > charger.updated_at:
                logger.info(
                    "Skipping stale update for %s (%d < %d)",
                    charger.id,
                    charger.updated_at,
                    stored_at,
                )
                return False
            async with self.geo_index.client.pipeline(transaction=True) as pipe:
                self.attribute_store.queue_replace(pipe, charger.id, charger.to_hash())
                self.geo_index.queue_add(pipe, charger.id, charger.coords)
                await pipe.execute()
        except (RedisError, OSError) as e:
            raise IndexUnavailable(f"Charger store unavailable: {e}") from e
        return True

    async def upsert_many(self, chargers: Iterable[Charger]) -> IngestionResult:
        result = IngestionResult()
        for charger in chargers:
            if await self.upsert(charger):
                result.written.append(charger.id)
            else:
                result.skipped.append(charger.id)
        logger.info(
            "Ingested %d chargers (%d skipped)", len(result.written), len(result.skipped)
        )
        return result
