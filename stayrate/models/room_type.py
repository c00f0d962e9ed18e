from __future__ import annotations
from datetime import datetime
from typing import TYPE_CHECKING
from enum import Enum as PyEnum
from sqlalchemy import Integer, String, ForeignKey, Numeric, Text, Boolean, DateTime, Enum, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

if TYPE_CHECKING:
    from .room import Room

class PriceModel(str, PyEnum):
    PER_PERSON = "perPerson"
    PER_ROOM = "perRoom"

# Rate columns carried by each price model, primary field first.
PRICE_FIELDS: dict[PriceModel, tuple[str, str]] = {
    PriceModel.PER_PERSON: ("adult_rate", "child_rate"),
    PriceModel.PER_ROOM: ("base_rate", "extra_guest_rate"),
}

class RoomType(Base):
    __tablename__ = "room_types"
    __table_args__ = (UniqueConstraint("property_id", "name", name="uq_room_types_property_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    total_inventory: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    base_occupancy: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_occupancy: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    price_model: Mapped[PriceModel] = mapped_column(Enum(PriceModel), default=PriceModel.PER_ROOM, nullable=False)
    base_rate: Mapped[float] = mapped_column(Numeric(10, 2), default=0, nullable=False)
    extra_guest_rate: Mapped[float] = mapped_column(Numeric(10, 2), default=0, nullable=False)
    adult_rate: Mapped[float | None] = mapped_column(Numeric(10, 2))
    child_rate: Mapped[float | None] = mapped_column(Numeric(10, 2))
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    rooms: Mapped[list[Room]] = relationship(back_populates="room_type", order_by="Room.id")

    @property
    def price_fields(self) -> tuple[str, str]:
        return PRICE_FIELDS[PriceModel(self.price_model)]

    def base_rates(self) -> dict[str, float]:
        """The room type's own rate for each field of its price model (missing → 0)."""
        return {field: float(getattr(self, field) or 0) for field in self.price_fields}
