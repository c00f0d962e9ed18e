from __future__ import annotations
import datetime as dt
from enum import Enum as PyEnum
from sqlalchemy import Integer, String, ForeignKey, Date, Numeric, Enum, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

class FolioStatus(str, PyEnum):
    ACTIVE = "active"
    CLOSED = "closed"

class GuestFolio(Base):
    __tablename__ = "guest_folios"
    __table_args__ = (UniqueConstraint("property_id", "folio_id", name="uq_guest_folios_property_folio"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id"), nullable=False, index=True)
    folio_id: Mapped[str] = mapped_column(String(20), nullable=False)
    group_id: Mapped[int | None] = mapped_column(ForeignKey("group_reservations.id"), index=True)
    guest_name: Mapped[str] = mapped_column(String(200), nullable=False)
    guest_email: Mapped[str | None] = mapped_column(String(255))
    guest_phone: Mapped[str | None] = mapped_column(String(50))
    room_numbers: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    check_in: Mapped[dt.date] = mapped_column(Date, nullable=False)
    check_out: Mapped[dt.date] = mapped_column(Date, nullable=False)
    status: Mapped[FolioStatus] = mapped_column(Enum(FolioStatus), default=FolioStatus.ACTIVE, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)

    items: Mapped[list[FolioItem]] = relationship(back_populates="folio", cascade="all, delete-orphan", order_by="FolioItem.id")

    @property
    def total_charges(self) -> float:
        return round(sum(float(i.amount) for i in self.items), 2)

class FolioItem(Base):
    __tablename__ = "folio_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    folio_pk: Mapped[int] = mapped_column(ForeignKey("guest_folios.id", ondelete="CASCADE"), nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(300), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    amount: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False)
    department: Mapped[str] = mapped_column(String(20), default="Room", nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    unit_price: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False)

    folio: Mapped[GuestFolio] = relationship(back_populates="items")
