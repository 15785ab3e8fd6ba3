"""Registers the /carrier-service callback with the Shopify Admin REST API"""
import asyncio
import logging
from typing import Optional

import httpx

from app.core.config import settings
from app.core.metrics import carrier_service_registrations

logger = logging.getLogger(__name__)


def _admin_url(shop: str, path: str) -> str:
    return f"https://{shop}/admin/api/{settings.SHOPIFY_API_VERSION}/{path}"


def carrier_service_payload() -> dict:
    return {
        "carrier_service": {
            "name": settings.CARRIER_SERVICE_NAME,
            "callback_url": f"{settings.HOST.rstrip('/')}/carrier-service",
            "service_discovery": True,
        }
    }


async def _upsert(client: httpx.AsyncClient, shop: str, headers: dict) -> httpx.Response:
    listing = await client.get(_admin_url(shop, "carrier_services.json"), headers=headers)
    listing.raise_for_status()

    existing = next(
        (
            service for service in listing.json().get("carrier_services", [])
            if service.get("name") == settings.CARRIER_SERVICE_NAME
        ),
        None,
    )
    payload = carrier_service_payload()

    if existing is not None:
        payload["carrier_service"]["id"] = existing["id"]
        return await client.put(
            _admin_url(shop, f"carrier_services/{existing['id']}.json"),
            json=payload,
            headers=headers,
        )
    return await client.post(_admin_url(shop, "carrier_services.json"), json=payload, headers=headers)


async def register_carrier_service(
    shop: str,
    access_token: str,
    retries: int | None = None,
    client: Optional[httpx.AsyncClient] = None,
) -> bool:

    if retries is None:
        retries = settings.SHOPIFY_RETRIES

    headers = {"X-Shopify-Access-Token": access_token}
    backoff = 1.0

    for attempt in range(1, retries + 1):
        try:
            if client is not None:
                response = await _upsert(client, shop, headers)
            else:
                async with httpx.AsyncClient(timeout=settings.SHOPIFY_TIMEOUT) as own_client:
                    response = await _upsert(own_client, shop, headers)

            if 200 <= response.status_code < 300:
                logger.info(f"Carrier Service registered successfully for {shop}")
                carrier_service_registrations.labels(status="success").inc()
                return True

            # 4xx from Shopify will not change on retry
            if 400 <= response.status_code < 500:
                logger.error(
                    f"Carrier Service registration rejected for {shop}: "
                    f"Status {response.status_code} {response.text}"
                )
                carrier_service_registrations.labels(status="rejected").inc()
                return False

            logger.warning(
                f"Carrier Service registration failed (attempt {attempt}/{retries}): "
                f"Status {response.status_code} for {shop}"
            )
        except httpx.HTTPStatusError as e:
            if 400 <= e.response.status_code < 500:
                logger.error(f"Carrier Service lookup rejected for {shop}: Status {e.response.status_code}")
                carrier_service_registrations.labels(status="rejected").inc()
                return False
            logger.warning(
                f"Carrier Service lookup failed (attempt {attempt}/{retries}): "
                f"Status {e.response.status_code} for {shop}"
            )
        except httpx.TimeoutException:
            logger.warning(f"Carrier Service registration timeout (attempt {attempt}/{retries}) for {shop}")
        except httpx.HTTPError as e:
            logger.warning(f"Carrier Service registration error (attempt {attempt}/{retries}): {e} for {shop}")
        except ValueError as e:
            # a 2xx listing whose body is not JSON, e.g. a maintenance page
            logger.warning(f"Carrier Service lookup returned an unreadable body (attempt {attempt}/{retries}): {e} for {shop}")

        if attempt < retries:
            await asyncio.sleep(backoff)
            backoff *= 2.0

    logger.error(f"Carrier Service registration failed after {retries} attempts for {shop}")
    carrier_service_registrations.labels(status="failed").inc()
    return False
