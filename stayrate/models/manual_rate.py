import datetime as dt
from sqlalchemy import Integer, ForeignKey, Date, Numeric, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from ..db import Base

class ManualRate(Base):
    """Explicit price override for one room type on one date."""
    __tablename__ = "manual_rates"
    __table_args__ = (
        UniqueConstraint("property_id", "room_type_id", "date", name="uq_manual_rates_property_type_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id"), nullable=False, index=True)
    room_type_id: Mapped[int] = mapped_column(ForeignKey("room_types.id"), nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    base_rate: Mapped[float] = mapped_column(Numeric(10, 2), default=0, nullable=False)
    extra_guest_rate: Mapped[float] = mapped_column(Numeric(10, 2), default=0, nullable=False)
    adult_rate: Mapped[float] = mapped_column(Numeric(10, 2), default=0, nullable=False)
    child_rate: Mapped[float] = mapped_column(Numeric(10, 2), default=0, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow)

    def values(self, fields: tuple[str, ...]) -> dict[str, float]:
        return {f: float(getattr(self, f) or 0) for f in fields}
