from pydantic import BaseModel, Field, field_validator
from typing import List, Optional


class LineItem(BaseModel):
    grams: int = Field(ge=0)
    quantity: int = Field(ge=1)


class RateRequest(BaseModel):
    items: List[LineItem] = Field(default_factory=list)
    currency: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def normalise_currency(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        code = value.strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError("currency must be a three-letter ISO 4217 code")
        return code


class CarrierServiceRequest(BaseModel):
    rate: RateRequest


class Quote(BaseModel):
    service_name: str
    service_code: str
    total_price: int
    currency: str
    min_delivery_date: str
    max_delivery_date: str
    description: str


class RatesResponse(BaseModel):
    rates: List[Quote]
