from pydantic import BaseModel, Field
from typing import List


class CarrierCreate(BaseModel):
    name: str
    price: int


class CarrierUpdate(BaseModel):
    price: int


class CarrierOut(BaseModel):
    name: str = Field(min_length=1)
    price: int = Field(gt=0)


class CarrierListOut(BaseModel):
    success: bool = True
    carriers: List[CarrierOut]


class RegistrationOut(BaseModel):
    registered: bool
