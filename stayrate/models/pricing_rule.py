from __future__ import annotations
from datetime import datetime
from sqlalchemy import Integer, Float, Boolean, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

class DynamicPricingRule(Base):
    __tablename__ = "dynamic_pricing_rules"
    __table_args__ = (
        UniqueConstraint("property_id", "room_type_id", name="uq_dynamic_pricing_rules_property_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id"), nullable=False, index=True)
    room_type_id: Mapped[int] = mapped_column(ForeignKey("room_types.id"), nullable=False, index=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    demand_scale: Mapped[float] = mapped_column(Float, default=1.0, nullable=False)
    rate_round_off: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Declaration order matters: the first enabled match wins.
    occupancy_rules: Mapped[list[OccupancyRule]] = relationship(
        back_populates="rule",
        order_by="OccupancyRule.position",
        cascade="all, delete-orphan",
    )

class OccupancyRule(Base):
    __tablename__ = "occupancy_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    rule_id: Mapped[int] = mapped_column(ForeignKey("dynamic_pricing_rules.id", ondelete="CASCADE"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    start_percent: Mapped[float] = mapped_column(Float, nullable=False)
    end_percent: Mapped[float] = mapped_column(Float, nullable=False)
    add_subtract_1: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    multiplier: Mapped[float] = mapped_column(Float, default=1, nullable=False)
    add_subtract_2: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    rule: Mapped[DynamicPricingRule] = relationship(back_populates="occupancy_rules")
