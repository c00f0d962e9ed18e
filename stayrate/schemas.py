from datetime import date
from typing import Optional
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from .models import PriceModel, ReservationStatus, RoomStatus


class CamelModel(BaseModel):
    """Base for request and response bodies: snake_case in Python, camelCase on the wire."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


def camel_keys(data: dict) -> dict:
    return {to_camel(k): v for k, v in data.items()}


def by_day(data: dict) -> dict:
    """Date-keyed map with ISO date strings as keys; dict values get camelCase keys."""
    return {
        (k.isoformat() if isinstance(k, date) else k): (camel_keys(v) if isinstance(v, dict) else v)
        for k, v in data.items()
    }


class RoomOut(CamelModel):
    id: int
    room_type_id: int
    room_number: str
    status: RoomStatus


class RoomTypeOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    total_inventory: int
    base_occupancy: int
    max_occupancy: int
    price_model: PriceModel
    base_rate: float
    extra_guest_rate: float
    adult_rate: Optional[float] = None
    child_rate: Optional[float] = None
    active: bool


class ReservationOut(CamelModel):
    id: int
    room_type_id: int
    guest_name: str
    check_in: date
    check_out: date
    number_of_rooms: int
    total_amount: Optional[float] = None
    status: ReservationStatus
    rooms: list[RoomOut] = []
