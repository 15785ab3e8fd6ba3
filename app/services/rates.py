import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from app.core.config import Settings, settings
from app.core.enums import ParcelPolicy
from app.schemas.carrier import CarrierOut
from app.schemas.rate import Quote, RateRequest
from app.services.parcels import parcel_count

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuoteOptions:
    parcel_policy: ParcelPolicy = ParcelPolicy.CEILING
    max_parcel_weight_kg: float = 31.5
    max_order_weight_grams: int = 100_000_000
    default_currency: str = "EUR"
    min_delivery_days: int = 1
    max_delivery_days: int = 5

    @classmethod
    def from_settings(cls, conf: Settings = settings) -> "QuoteOptions":
        return cls(
            parcel_policy=conf.PARCEL_POLICY,
            max_parcel_weight_kg=conf.MAX_PARCEL_WEIGHT_KG,
            max_order_weight_grams=conf.MAX_ORDER_WEIGHT_GRAMS,
            default_currency=conf.DEFAULT_CURRENCY,
            min_delivery_days=conf.MIN_DELIVERY_DAYS,
            max_delivery_days=conf.MAX_DELIVERY_DAYS,
        )


def format_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_quotes(
    parcels: int,
    carriers: Sequence[CarrierOut],
    currency: Optional[str],
    now: datetime,
    options: QuoteOptions,
) -> List[Quote]:
    plural = "s" if parcels > 1 else ""
    min_date = format_timestamp(now + timedelta(days=options.min_delivery_days))
    max_date = format_timestamp(now + timedelta(days=options.max_delivery_days))

    return [
        Quote(
            service_name=f"{carrier.name} ({parcels} parcel{plural})",
            service_code=carrier.name.lower(),
            total_price=carrier.price * parcels,
            currency=currency or options.default_currency,
            min_delivery_date=min_date,
            max_delivery_date=max_date,
            description=f"Delivery via {carrier.name}, split into {parcels} parcel(s)",
        )
        for carrier in carriers
    ]


def sort_quotes(quotes: Sequence[Quote]) -> List[Quote]:
    # sorted() is stable: equal prices keep the carrier list order
    return sorted(quotes, key=lambda quote: quote.total_price)


@dataclass(frozen=True)
class RateQuotation:
    parcels: int
    quotes: List[Quote]


def quote_order(
    request: RateRequest,
    carriers: Sequence[CarrierOut],
    now: Optional[datetime] = None,
    options: Optional[QuoteOptions] = None,
) -> RateQuotation:
    if options is None:
        options = QuoteOptions.from_settings()
    if now is None:
        now = datetime.now(timezone.utc)

    parcels = parcel_count(
        request.items,
        policy=options.parcel_policy,
        max_parcel_weight_kg=options.max_parcel_weight_kg,
        max_total_grams=options.max_order_weight_grams,
    )
    logger.info(
        f"Order of {len(request.items)} line(s) requires {parcels} parcel(s) "
        f"under the {options.parcel_policy} policy"
    )

    quotes = sort_quotes(build_quotes(parcels, carriers, request.currency, now, options))
    return RateQuotation(parcels=parcels, quotes=quotes)


def compute_rates(
    request: RateRequest,
    carriers: Sequence[CarrierOut],
    now: Optional[datetime] = None,
    options: Optional[QuoteOptions] = None,
) -> List[Quote]:
    """Quotes for every carrier, cheapest first; empty when there are no carriers."""
    return quote_order(request, carriers, now, options).quotes


def select_cheapest(quotes: Sequence[Quote]) -> List[Quote]:
    return [quotes[0]] if quotes else []
