from __future__ import annotations
from datetime import date, datetime
from typing import TYPE_CHECKING
from enum import Enum as PyEnum
from sqlalchemy import Integer, String, ForeignKey, Date, Numeric, Enum, DateTime, Table, Column
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

if TYPE_CHECKING:
    from .room import Room
    from .room_type import RoomType

class ReservationStatus(str, PyEnum):
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"

# Statuses that consume inventory.
COMMITTED_STATUSES = (ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN)

reservation_rooms = Table(
    "reservation_rooms",
    Base.metadata,
    Column("reservation_id", ForeignKey("reservations.id", ondelete="CASCADE"), primary_key=True),
    Column("room_id", ForeignKey("rooms.id"), primary_key=True),
)

class Reservation(Base):
    __tablename__ = "reservations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id"), nullable=False, index=True)
    room_type_id: Mapped[int] = mapped_column(ForeignKey("room_types.id"), nullable=False, index=True)
    guest_name: Mapped[str] = mapped_column(String(200), nullable=False)
    check_in: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    check_out: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    number_of_rooms: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total_amount: Mapped[float | None] = mapped_column(Numeric(10, 2))
    status: Mapped[ReservationStatus] = mapped_column(Enum(ReservationStatus), default=ReservationStatus.CONFIRMED, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    room_type: Mapped[RoomType] = relationship()
    rooms: Mapped[list[Room]] = relationship(secondary=reservation_rooms)

    @property
    def is_committed(self) -> bool:
        return self.status in COMMITTED_STATUSES
