"""Shopify Carrier Service callback"""
import logging
from fastapi import APIRouter, Depends

from app.api.deps import get_carrier_provider
from app.core.enums import RateOutcome
from app.core.exceptions import CarrierRepositoryError, RateValidationError
from app.core.metrics import parcels_per_request, rate_calculation_duration, rate_requests, track_duration
from app.core.response_builders import build_rates_response
from app.schemas.rate import CarrierServiceRequest, RatesResponse
from app.services.carriers import CachedCarrierProvider
from app.services.rates import quote_order, select_cheapest

logger = logging.getLogger(__name__)
router = APIRouter(tags=["carrier-service"])


@router.post("/carrier-service", response_model=RatesResponse)
@track_duration(rate_calculation_duration)
async def carrier_service(
    payload: CarrierServiceRequest,
    provider: CachedCarrierProvider = Depends(get_carrier_provider),
):
    logger.info(f"Received rate request: {payload.model_dump_json()}")

    try:
        carriers = await provider.list_carriers()
    except CarrierRepositoryError:
        rate_requests.labels(outcome=RateOutcome.ERROR.value).inc()
        raise

    try:
        quotation = quote_order(payload.rate, carriers)
    except RateValidationError as e:
        logger.warning(f"Rejected rate request: {e}")
        rate_requests.labels(outcome=RateOutcome.INVALID.value).inc()
        raise

    if not quotation.quotes:
        logger.info("No carriers configured")
        rate_requests.labels(outcome=RateOutcome.EMPTY.value).inc()
        return build_rates_response([])

    cheapest = select_cheapest(quotation.quotes)
    parcels_per_request.observe(quotation.parcels)
    rate_requests.labels(outcome=RateOutcome.QUOTED.value).inc()
    logger.info(f"Returning cheapest rate: {cheapest[0].model_dump()}")
    return build_rates_response(cheapest)
