import json
import pytest
from unittest.mock import AsyncMock

from app.services.carriers import (
    CARRIER_CACHE_KEY,
    CachedCarrierProvider,
    InMemoryCarrierRepository,
    invalidate_carrier_cache,
)


@pytest.mark.asyncio
async def test_miss_loads_repository_and_writes_cache():
    redis = AsyncMock()
    redis.get.return_value = None
    provider = CachedCarrierProvider(InMemoryCarrierRepository(), redis, ttl=30)

    carriers = await provider.list_carriers()

    assert [c.name for c in carriers] == ["DPD", "Post"]
    key, value = redis.set.await_args.args
    assert key == CARRIER_CACHE_KEY
    assert json.loads(value) == [{"name": "DPD", "price": 1000}, {"name": "Post", "price": 1200}]
    assert redis.set.await_args.kwargs["ex"] == 30


@pytest.mark.asyncio
async def test_hit_skips_repository():
    redis = AsyncMock()
    redis.get.return_value = json.dumps([{"name": "GLS", "price": 700}]).encode()
    repository = AsyncMock()
    provider = CachedCarrierProvider(repository, redis)

    carriers = await provider.list_carriers()

    assert [(c.name, c.price) for c in carriers] == [("GLS", 700)]
    repository.list_carriers.assert_not_awaited()


@pytest.mark.asyncio
async def test_cache_errors_fall_back_to_repository():
    redis = AsyncMock()
    redis.get.side_effect = ConnectionError("redis down")
    redis.set.side_effect = ConnectionError("redis down")
    provider = CachedCarrierProvider(InMemoryCarrierRepository(), redis)

    carriers = await provider.list_carriers()

    assert len(carriers) == 2


@pytest.mark.asyncio
async def test_without_redis_reads_repository():
    provider = CachedCarrierProvider(InMemoryCarrierRepository(carriers=[]), None)

    assert await provider.list_carriers() == []


@pytest.mark.asyncio
async def test_invalidate_deletes_key():
    redis = AsyncMock()

    await invalidate_carrier_cache(redis)

    redis.delete.assert_awaited_once_with(CARRIER_CACHE_KEY)


@pytest.mark.asyncio
async def test_invalidate_tolerates_missing_redis():
    await invalidate_carrier_cache(None)
