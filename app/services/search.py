"""
Charger search service.
Composes radius lookup, attribute fetch, merge, filter and sort.
"""
import asyncio
import logging
from typing import List, Optional
import redis.asyncio as redis
from app.config import Settings, get_settings
from app.exceptions import SearchTimeout
from app.models.charging import GeoHit, ResultRecord, SearchQuery
from app.services import assembler, filtering
from app.services.attribute_store import AttributeStoreAdapter
from app.services.geo_index import GeoIndexAdapter

logger = logging.getLogger(__name__)


class ChargerSearchService:
    """Read-only search over the charger geo index and attribute hashes."""

    def __init__(
        self,
        geo_index: GeoIndexAdapter,
        attribute_store: AttributeStoreAdapter,
        default_timeout: Optional[float] = None,
    ):
        self.geo_index = geo_index
        self.attribute_store = attribute_store
        self.default_timeout = default_timeout

    @classmethod
    def from_client(
        cls, client: redis.Redis, settings: Optional[Settings] = None
    ) -> "ChargerSearchService":
        """Build the service and its adapters around one shared client."""
        settings = settings or get_settings()
        return cls(
            geo_index=GeoIndexAdapter(client, key=settings.geo_key),
            attribute_store=AttributeStoreAdapter(
                client, key_prefix=settings.charger_key_prefix
            ),
            default_timeout=settings.search_timeout_seconds,
        )

    async def search(
        self, query: SearchQuery, timeout: Optional[float] = None
    ) -> List[ResultRecord]:
        """
        Run a search. Raises IndexUnavailable if the geo index fails and
        SearchTimeout if the deadline passes; in-flight calls are cancelled.
        """
        timeout = timeout if timeout is not None else self.default_timeout
        if timeout is None:
            return await self._search(query)
        try:
            return await asyncio.wait_for(self._search(query), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.warning("Search timed out after %.3fs", timeout)
            raise SearchTimeout(timeout) from e

    async def _search(self, query: SearchQuery) -> List[ResultRecord]:
        hits = await self.geo_index.find_within_radius(
            query.origin, query.radius_km, query.limit
        )
        if not hits:
            return []

        fetched = await self.attribute_store.fetch_attributes([hit.id for hit in hits])
        records = assembler.merge(hits, fetched.records, origin=query.origin)
        results = filtering.apply(records, query)

        logger.info(
            "Search r=%.1fkm sort=%s: %d hits, %d results",
            query.radius_km,
            query.sort_by.value,
            len(hits),
            len(results),
        )
        return results

    async def get_charger(self, charger_id: str) -> Optional[ResultRecord]:
        """Look up one charger by ID; distance is unknown (NaN)."""
        raw = await self.attribute_store.fetch_one(charger_id)
        if raw is None:
            return None
        return assembler.merge_one(GeoHit(id=charger_id), raw)
