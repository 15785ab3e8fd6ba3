from fastapi import APIRouter, Depends, HTTPException
from typing import List
import logging

from app.api.deps import get_carrier_repository
from app.core.config import settings
from app.core.exceptions import DuplicateCarrierError
from app.core.redis import get_redis
from app.core.response_builders import build_carrier_list_response
from app.core.security import require_admin
from app.schemas.carrier import CarrierCreate, CarrierListOut, CarrierOut, CarrierUpdate, RegistrationOut
from app.services.carriers import CarrierRepository, invalidate_carrier_cache
from app.services.registration import register_carrier_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["carriers"], dependencies=[Depends(require_admin)])


def _check_price(price: int) -> None:
    if price <= 0:
        raise HTTPException(
            status_code=400,
            detail="Invalid price. Price (in cents) must be a positive number."
        )


def check_carrier_found(found, name: str) -> None:
    if not found:
        raise HTTPException(status_code=404, detail=f"Carrier {name} not found")


@router.get("/carriers", response_model=List[CarrierOut])
async def list_carriers(repository: CarrierRepository = Depends(get_carrier_repository)):
    return await repository.list_carriers()


@router.post("/carriers", response_model=CarrierListOut)
async def create_carrier(
    payload: CarrierCreate,
    repository: CarrierRepository = Depends(get_carrier_repository),
):
    name = payload.name.strip()
    if not name or payload.price <= 0:
        raise HTTPException(
            status_code=400,
            detail="Invalid carrier data. Name and price (in cents) are required."
        )

    if await repository.get_carrier(name):
        raise HTTPException(status_code=400, detail="A carrier with this name already exists")

    try:
        await repository.add_carrier(name, payload.price)
    except DuplicateCarrierError:
        raise HTTPException(status_code=400, detail="A carrier with this name already exists")
    await invalidate_carrier_cache(get_redis())
    logger.info(f"Carrier {name} added at {payload.price} cents per parcel")

    return build_carrier_list_response(await repository.list_carriers())


@router.put("/carriers/{name}", response_model=CarrierListOut)
async def update_carrier(
    name: str,
    payload: CarrierUpdate,
    repository: CarrierRepository = Depends(get_carrier_repository),
):
    _check_price(payload.price)

    updated = await repository.update_carrier(name, payload.price)
    check_carrier_found(updated, name)
    await invalidate_carrier_cache(get_redis())
    logger.info(f"Carrier {updated.name} repriced to {payload.price} cents per parcel")

    return build_carrier_list_response(await repository.list_carriers())


@router.delete("/carriers/{name}", response_model=CarrierListOut)
async def delete_carrier(
    name: str,
    repository: CarrierRepository = Depends(get_carrier_repository),
):
    deleted = await repository.delete_carrier(name)
    check_carrier_found(deleted, name)
    await invalidate_carrier_cache(get_redis())
    logger.info(f"Carrier {name} deleted")

    return build_carrier_list_response(await repository.list_carriers())


@router.post("/carrier-service/register", response_model=RegistrationOut)
async def register():
    if not settings.SHOPIFY_SHOP or not settings.SHOPIFY_ACCESS_TOKEN:
        raise HTTPException(status_code=400, detail="SHOPIFY_SHOP and SHOPIFY_ACCESS_TOKEN must be configured")

    registered = await register_carrier_service(settings.SHOPIFY_SHOP, settings.SHOPIFY_ACCESS_TOKEN)
    return RegistrationOut(registered=registered)
