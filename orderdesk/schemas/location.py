from typing import Optional

from pydantic import BaseModel, ConfigDict


class CityOut(BaseModel):
    id: int
    city: str
    alias: Optional[str] = None
    state: str

    model_config = ConfigDict(from_attributes=True)


class PincodeOut(BaseModel):
    id: int
    pincode: str
    area: Optional[str] = None
    city_id: Optional[int] = None
    city: Optional[CityOut] = None

    model_config = ConfigDict(from_attributes=True)
