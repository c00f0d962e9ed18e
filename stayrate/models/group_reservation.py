from __future__ import annotations
from datetime import date, datetime
from typing import TYPE_CHECKING
from enum import Enum as PyEnum
from sqlalchemy import Integer, String, ForeignKey, Date, Numeric, Text, Enum, DateTime, Table, Column, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

if TYPE_CHECKING:
    from .room import Room
    from .room_type import RoomType

class GroupStatus(str, PyEnum):
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    CANCELLED = "cancelled"

TERMINAL_GROUP_STATUSES = (GroupStatus.CHECKED_OUT, GroupStatus.CANCELLED)

# Allowed moves of the group status machine; terminal states have none.
GROUP_TRANSITIONS: dict[GroupStatus, tuple[GroupStatus, ...]] = {
    GroupStatus.CONFIRMED: (GroupStatus.CHECKED_IN, GroupStatus.CANCELLED),
    GroupStatus.CHECKED_IN: (GroupStatus.CHECKED_OUT, GroupStatus.CANCELLED),
    GroupStatus.CHECKED_OUT: (),
    GroupStatus.CANCELLED: (),
}

class PaymentMode(str, PyEnum):
    ENTIRE_BILL = "entire-bill"
    PARTIAL_BILL = "partial-bill"
    INDIVIDUAL_BILLS = "individual-bills"

class DiscountType(str, PyEnum):
    PERCENT = "percent"
    AMOUNT = "amount"

block_rooms = Table(
    "group_block_rooms",
    Base.metadata,
    Column("block_id", ForeignKey("group_room_blocks.id", ondelete="CASCADE"), primary_key=True),
    Column("room_id", ForeignKey("rooms.id"), primary_key=True),
)

class GroupReservation(Base):
    __tablename__ = "group_reservations"
    __table_args__ = (UniqueConstraint("property_id", "group_code", name="uq_group_reservations_property_code"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id"), nullable=False, index=True)
    group_code: Mapped[str] = mapped_column(String(20), nullable=False)
    group_name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_person: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_email: Mapped[str | None] = mapped_column(String(255))
    contact_phone: Mapped[str | None] = mapped_column(String(50))
    check_in: Mapped[date] = mapped_column(Date, nullable=False)
    check_out: Mapped[date] = mapped_column(Date, nullable=False)
    payment_mode: Mapped[PaymentMode] = mapped_column(Enum(PaymentMode), default=PaymentMode.INDIVIDUAL_BILLS, nullable=False)
    total_amount: Mapped[float] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    discount_type: Mapped[DiscountType] = mapped_column(Enum(DiscountType), default=DiscountType.PERCENT, nullable=False)
    discount_value: Mapped[float] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    discount_amount: Mapped[float] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    status: Mapped[GroupStatus] = mapped_column(Enum(GroupStatus), default=GroupStatus.CONFIRMED, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    room_blocks: Mapped[list[RoomBlock]] = relationship(
        back_populates="group",
        order_by="RoomBlock.position",
        cascade="all, delete-orphan",
    )

    @property
    def total_rooms(self) -> int:
        return sum(b.number_of_rooms for b in self.room_blocks)

    @property
    def assigned_room_count(self) -> int:
        return sum(len(b.assigned_rooms) for b in self.room_blocks)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_GROUP_STATUSES

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

class RoomBlock(Base):
    __tablename__ = "group_room_blocks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    group_id: Mapped[int] = mapped_column(ForeignKey("group_reservations.id", ondelete="CASCADE"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    room_type_id: Mapped[int] = mapped_column(ForeignKey("room_types.id"), nullable=False)
    number_of_rooms: Mapped[int] = mapped_column(Integer, nullable=False)

    group: Mapped[GroupReservation] = relationship(back_populates="room_blocks")
    room_type: Mapped[RoomType] = relationship()
    assigned_rooms: Mapped[list[Room]] = relationship(secondary=block_rooms, order_by="Room.id")

    @property
    def remaining(self) -> int:
        return self.number_of_rooms - len(self.assigned_rooms)
