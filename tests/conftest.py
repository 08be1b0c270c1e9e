import asyncio
import math

import pytest

from app.config import get_settings
from app.seed import sample_chargers

NOW_MS = 1_700_000_000_000


def _haversine_km(lat1, lng1, lat2, lng2):
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dp, dl = math.radians(lat2 - lat1), math.radians(lng2 - lng1)
    h = math.sin(dp / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2) ** 2
    return 2 * 6371.0 * math.asin(math.sqrt(h))


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis with decode_responses=True."""

    def __init__(self):
        self.geo = {}
        self.hashes = {}
        self.calls = []
        self.closed = False
        self.hgetall_delay = 0.0
        self.in_flight = 0
        self.max_in_flight = 0

    async def geoadd(self, name, values):
        lng, lat, member = values
        self.calls.append(("geoadd", name, member))
        self.geo.setdefault(name, {})[member] = (float(lng), float(lat))
        return 1

    async def geosearch(
        self,
        name,
        longitude=None,
        latitude=None,
        radius=None,
        unit="m",
        sort=None,
        count=None,
        withdist=False,
        withcoord=False,
        **kwargs,
    ):
        self.calls.append(("geosearch", name, radius, count))
        assert unit == "km"
        rows = []
        for member, (lng, lat) in self.geo.get(name, {}).items():
            dist = _haversine_km(latitude, longitude, lat, lng)
            if dist <= radius:
                rows.append((dist, member, (lng, lat)))
        if sort == "ASC":
            rows.sort(key=lambda row: row[0])
        if count is not None:
            rows = rows[:count]
        result = []
        for dist, member, coord in rows:
            row = [member]
            if withdist:
                row.append(round(dist, 4))
            if withcoord:
                row.append(coord)
            result.append(row)
        return result

    async def hgetall(self, name):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.hgetall_delay:
                await asyncio.sleep(self.hgetall_delay)
            return dict(self.hashes.get(name, {}))
        finally:
            self.in_flight -= 1

    async def hget(self, name, key):
        return self.hashes.get(name, {}).get(key)

    async def hset(self, name, key=None, value=None, mapping=None):
        data = self.hashes.setdefault(name, {})
        if key is not None:
            data[key] = value
        if mapping:
            data.update(mapping)
        return len(mapping or {})

    async def delete(self, *names):
        removed = 0
        for name in names:
            removed += int(self.hashes.pop(name, None) is not None)
        return removed

    async def aclose(self):
        self.closed = True

    def pipeline(self, transaction=True):
        return FakePipeline(self, transaction)


class FakePipeline:
    """Buffers commands and applies them in order on execute()."""

    def __init__(self, redis, transaction):
        self.redis = redis
        self.transaction = transaction
        self.commands = []
        self.executed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.commands = []
        return False

    def delete(self, *names):
        self.commands.append(("delete", names, {}))
        return self

    def hset(self, name, key=None, value=None, mapping=None):
        self.commands.append(("hset", (name,), {"key": key, "value": value, "mapping": mapping}))
        return self

    def geoadd(self, name, values):
        self.commands.append(("geoadd", (name, values), {}))
        return self

    async def execute(self):
        self.redis.calls.append(("execute", [c[0] for c in self.commands], self.transaction))
        results = []
        for command, args, kwargs in self.commands:
            results.append(await getattr(self.redis, command)(*args, **kwargs))
        self.executed = True
        return results


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def seeded_redis(fake_redis):
    for charger in sample_chargers(NOW_MS):
        fake_redis.hashes[f"charger:{charger.id}"] = charger.to_hash()
        fake_redis.geo.setdefault("chargers:geo", {})[charger.id] = (
            charger.coords.lng,
            charger.coords.lat,
        )
    return fake_redis
