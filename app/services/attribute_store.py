"""
Attribute Store Adapter.
Per-charger hash lookups under the charger:<id> namespace.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence
import redis.asyncio as redis
from redis.exceptions import RedisError
from app.exceptions import AttributeFetchPartial, IndexUnavailable
from app.models.charging import parse_timestamp

logger = logging.getLogger(__name__)


@dataclass
class AttributeFetchResult:
    """Raw hashes by ID. None marks an absent or failed record."""
    records: Dict[str, Optional[Dict[str, str]]] = field(default_factory=dict)
    missing: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.missing or self.failed)


class AttributeStoreAdapter:
    """Wraps HGETALL/HSET on charger attribute hashes."""

    def __init__(self, client: redis.Redis, key_prefix: str = "charger:"):
        self.client = client
        self.key_prefix = key_prefix

    def key_for(self, charger_id: str) -> str:
        return f"{self.key_prefix}{charger_id}"

    async def fetch_attributes(self, ids: Sequence[str]) -> AttributeFetchResult:
        """
        Fetch every hash concurrently; total latency tracks the slowest lookup.
        Failed or empty lookups resolve to None instead of raising.
        """
        responses = await asyncio.gather(
            *(self.client.hgetall(self.key_for(charger_id)) for charger_id in ids),
            return_exceptions=True,
        )

        result = AttributeFetchResult()
        for charger_id, response in zip(ids, responses):
            if isinstance(response, BaseException):
                logger.debug("Attribute lookup for %s failed: %s", charger_id, response)
                result.records[charger_id] = None
                result.failed.append(charger_id)
            elif not response:
                result.records[charger_id] = None
                result.missing.append(charger_id)
            else:
                result.records[charger_id] = dict(response)

        if result.partial:
            logger.warning(
                "Partial attribute fetch: %s",
                AttributeFetchPartial(missing=result.missing, failed=result.failed),
            )
        return result

    async def fetch_one(self, charger_id: str) -> Optional[Dict[str, str]]:
        """Fetch a single hash, None when absent."""
        try:
            response = await self.client.hgetall(self.key_for(charger_id))
        except (RedisError, OSError) as e:
            raise IndexUnavailable(f"Attribute store unavailable: {e}") from e
        return dict(response) if response else None

    async def get_updated_at(self, charger_id: str) -> Optional[int]:
        """Stored updatedAt for a charger, None when unknown."""
        raw = await self.client.hget(self.key_for(charger_id), "updatedAt")
        return parse_timestamp(raw, "updatedAt").value

    def queue_replace(self, pipe: Any, charger_id: str, mapping: Mapping[str, str]) -> None:
        """Queue a full replacement of a hash on a pipeline. Used by ingestion only."""
        key = self.key_for(charger_id)
        pipe.delete(key)
        pipe.hset(key, mapping=dict(mapping))
