"""Carrier price list providers.

The rate engine only ever reads the list; the admin routes also use the
mutating methods. Name matching for lookups and mutations is case-insensitive.
"""
import json
import logging
from typing import List, Optional, Protocol, Sequence

from pydantic import ValidationError
from redis.asyncio import Redis
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.config import settings
from app.core.exceptions import CarrierRepositoryError, DuplicateCarrierError
from app.core.metrics import carrier_cache_hits, carrier_cache_misses
from app.core.response_builders import build_carrier_response, build_carrier_response_list
from app.models.carrier import Carrier
from app.schemas.carrier import CarrierOut

logger = logging.getLogger(__name__)

DEFAULT_CARRIERS = (
    ("DPD", 1000),
    ("Post", 1200),
)

CARRIER_CACHE_KEY = "carriers:list"


class CarrierRepository(Protocol):
    async def list_carriers(self) -> List[CarrierOut]: ...

    async def get_carrier(self, name: str) -> Optional[CarrierOut]: ...

    async def add_carrier(self, name: str, price: int) -> CarrierOut: ...

    async def update_carrier(self, name: str, price: int) -> Optional[CarrierOut]: ...

    async def delete_carrier(self, name: str) -> bool: ...


class InMemoryCarrierRepository:
    """Process-local list, kept in insertion order."""

    def __init__(self, carriers: Optional[Sequence[CarrierOut]] = None):
        if carriers is None:
            carriers = [CarrierOut(name=name, price=price) for name, price in DEFAULT_CARRIERS]
        self._carriers: List[CarrierOut] = list(carriers)

    def _index(self, name: str) -> Optional[int]:
        wanted = name.lower()
        for i, carrier in enumerate(self._carriers):
            if carrier.name.lower() == wanted:
                return i
        return None

    async def list_carriers(self) -> List[CarrierOut]:
        return list(self._carriers)

    async def get_carrier(self, name: str) -> Optional[CarrierOut]:
        i = self._index(name)
        return None if i is None else self._carriers[i]

    async def add_carrier(self, name: str, price: int) -> CarrierOut:
        if self._index(name) is not None:
            raise DuplicateCarrierError(name)
        carrier = CarrierOut(name=name, price=price)
        self._carriers.append(carrier)
        return carrier

    async def update_carrier(self, name: str, price: int) -> Optional[CarrierOut]:
        i = self._index(name)
        if i is None:
            return None
        self._carriers[i] = CarrierOut(name=self._carriers[i].name, price=price)
        return self._carriers[i]

    async def delete_carrier(self, name: str) -> bool:
        i = self._index(name)
        if i is None:
            return False
        del self._carriers[i]
        return True


class SqlCarrierRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _find(self, name: str) -> Optional[Carrier]:
        res = await self.db.execute(select(Carrier).where(func.lower(Carrier.name) == name.lower()))
        return res.scalars().first()

    async def list_carriers(self) -> List[CarrierOut]:
        try:
            res = await self.db.execute(select(Carrier).order_by(Carrier.name, Carrier.id))
            return build_carrier_response_list(res.scalars().all())
        except (SQLAlchemyError, OSError, ValidationError) as e:
            logger.error(f"Failed to load carriers: {e}")
            raise CarrierRepositoryError("Carrier list unavailable") from e

    async def get_carrier(self, name: str) -> Optional[CarrierOut]:
        carrier = await self._find(name)
        return build_carrier_response(carrier) if carrier else None

    async def add_carrier(self, name: str, price: int) -> CarrierOut:
        carrier = Carrier(name=name, price=price)
        self.db.add(carrier)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateCarrierError(name) from e
        await self.db.refresh(carrier)
        return build_carrier_response(carrier)

    async def update_carrier(self, name: str, price: int) -> Optional[CarrierOut]:
        carrier = await self._find(name)
        if carrier is None:
            return None
        carrier.price = price
        self.db.add(carrier)
        await self.db.commit()
        await self.db.refresh(carrier)
        return build_carrier_response(carrier)

    async def delete_carrier(self, name: str) -> bool:
        carrier = await self._find(name)
        if carrier is None:
            return False
        await self.db.delete(carrier)
        await self.db.commit()
        return True


async def seed_default_carriers(db: AsyncSession) -> int:
    res = await db.execute(select(func.count()).select_from(Carrier))
    if res.scalar_one() > 0:
        return 0

    for name, price in DEFAULT_CARRIERS:
        db.add(Carrier(name=name, price=price))
    await db.commit()
    logger.info("Initialized default carriers")
    return len(DEFAULT_CARRIERS)


class CachedCarrierProvider:
    """Read-through Redis cache in front of a repository's carrier list."""

    def __init__(self, repository: CarrierRepository, redis: Optional[Redis], ttl: Optional[int] = None):
        self.repository = repository
        self.redis = redis
        self.ttl = settings.CARRIER_CACHE_TTL if ttl is None else ttl

    async def list_carriers(self) -> List[CarrierOut]:
        if self.redis is not None:
            try:
                cached = await self.redis.get(CARRIER_CACHE_KEY)
                if cached:
                    carrier_cache_hits.inc()
                    return [CarrierOut(**obj) for obj in json.loads(cached)]
            except Exception as e:
                logger.warning(f"Carrier cache retrieval failed: {e}")
            carrier_cache_misses.inc()

        carriers = await self.repository.list_carriers()

        if self.redis is not None and self.ttl > 0:
            try:
                await self.redis.set(
                    CARRIER_CACHE_KEY,
                    json.dumps([c.model_dump() for c in carriers]),
                    ex=self.ttl,
                )
            except Exception as e:
                logger.warning(f"Carrier cache write failed: {e}")

        return carriers


async def invalidate_carrier_cache(redis: Optional[Redis]) -> None:
    if redis is None:
        return
    try:
        await redis.delete(CARRIER_CACHE_KEY)
    except Exception as e:
        logger.warning(f"Carrier cache invalidation failed: {e}")
