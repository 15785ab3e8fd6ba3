from typing import List, Sequence
from app.models.carrier import Carrier
from app.schemas.carrier import CarrierListOut, CarrierOut
from app.schemas.rate import Quote, RatesResponse


def build_carrier_response(carrier: Carrier) -> CarrierOut:
    return CarrierOut(
        name=carrier.name,
        price=carrier.price,
    )


def build_carrier_response_list(carriers: list) -> List[CarrierOut]:
    return [build_carrier_response(carrier) for carrier in carriers]


def build_carrier_list_response(carriers: Sequence[CarrierOut]) -> CarrierListOut:
    return CarrierListOut(success=True, carriers=list(carriers))


def build_rates_response(quotes: Sequence[Quote]) -> RatesResponse:
    return RatesResponse(rates=list(quotes))
