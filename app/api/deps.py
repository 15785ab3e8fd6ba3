from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.enums import CarrierStore
from app.core.redis import get_redis
from app.db.session import get_db
from app.services.carriers import (
    CachedCarrierProvider,
    CarrierRepository,
    InMemoryCarrierRepository,
    SqlCarrierRepository,
)

memory_repository = InMemoryCarrierRepository()


def get_carrier_repository(db: AsyncSession = Depends(get_db)) -> CarrierRepository:
    if settings.CARRIER_STORE == CarrierStore.MEMORY:
        return memory_repository
    return SqlCarrierRepository(db)


def get_carrier_provider(
    repository: CarrierRepository = Depends(get_carrier_repository),
) -> CachedCarrierProvider:
    return CachedCarrierProvider(repository, get_redis())
