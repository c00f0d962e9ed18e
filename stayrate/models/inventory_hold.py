from __future__ import annotations
import datetime as dt
from enum import Enum as PyEnum
from sqlalchemy import Integer, String, ForeignKey, Date, DateTime, Enum, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from ..db import Base

class HoldKind(str, PyEnum):
    MANUAL = "manual"
    GROUP = "group"
    TENTATIVE = "tentative"

class BlockType(str, PyEnum):
    OUT_OF_ORDER = "out-of-order"
    OUT_OF_SERVICE = "out-of-service"

MANUAL_HOLD_KEY = "manual"

def group_hold_key(group_id: int) -> str:
    return f"group:{group_id}"

def tentative_hold_key(token: str) -> str:
    return f"tentative:{token}"

class InventoryHold(Base):
    """Units of a room type set aside on one date without being a reservation."""
    __tablename__ = "inventory_holds"
    __table_args__ = (
        UniqueConstraint("property_id", "room_type_id", "date", "hold_key", name="uq_inventory_holds_owner_day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id"), nullable=False, index=True)
    room_type_id: Mapped[int] = mapped_column(ForeignKey("room_types.id"), nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    blocked_inventory: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    kind: Mapped[HoldKind] = mapped_column(Enum(HoldKind), default=HoldKind.MANUAL, nullable=False)
    hold_key: Mapped[str] = mapped_column(String(80), nullable=False, default=MANUAL_HOLD_KEY)
    group_id: Mapped[int | None] = mapped_column(ForeignKey("group_reservations.id", ondelete="CASCADE"), index=True)
    block_type: Mapped[BlockType] = mapped_column(Enum(BlockType), default=BlockType.OUT_OF_ORDER, nullable=False)
    reason: Mapped[str | None] = mapped_column(String(200))
    created_by: Mapped[str] = mapped_column(String(100), default="admin", nullable=False)
    expires_at: Mapped[dt.datetime | None] = mapped_column(DateTime)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)

    def is_live(self, now: dt.datetime) -> bool:
        return self.expires_at is None or self.expires_at > now
