from sqlalchemy import Column, String, Integer
from app.models.base import BaseModel


class Carrier(BaseModel):
    __tablename__ = "carriers"
    name = Column(String(120), unique=True, nullable=False)
    price = Column(Integer, nullable=False)  # cents per parcel
