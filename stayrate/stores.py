"""
Storage seams of the core.

The availability calculator depends only on ``AvailabilityStore`` (declared
next to it) and the pricing resolver on the protocols below; the ``Sql*``
classes implement them on a SQLAlchemy session scoped to one property. Tests
may hand in any object with the same methods.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from .errors import NotFoundError
from .models import (
    COMMITTED_STATUSES,
    DynamicPricingRule,
    InventoryHold,
    ManualRate,
    Reservation,
    RoomType,
)
from .services.availability import AvailabilityCalculator, Hold, Stay


class RateStore(Protocol):
    def manual_rates(self, room_type_id: int, start: date, end: date) -> dict[date, ManualRate]: ...


class RuleStore(Protocol):
    def rule_for(self, room_type_id: int) -> Optional[DynamicPricingRule]: ...


class SqlAvailabilityStore:
    """Committed reservations and live holds overlapping a range, one query each."""

    def __init__(self, db: Session, property_id: int, now: Optional[datetime] = None):
        self.db = db
        self.property_id = property_id
        self.now = now

    def stays(self, room_type_id: int, start: date, end: date) -> list[Stay]:
        rows = self.db.scalars(
            select(Reservation)
            .options(selectinload(Reservation.rooms))
            .where(
                Reservation.property_id == self.property_id,
                Reservation.room_type_id == room_type_id,
                Reservation.status.in_(COMMITTED_STATUSES),
                Reservation.check_in < end,
                Reservation.check_out > start,
            )
        ).all()
        return [
            Stay(
                check_in=r.check_in,
                check_out=r.check_out,
                number_of_rooms=r.number_of_rooms or 0,
                room_ids=frozenset(room.id for room in r.rooms),
            )
            for r in rows
        ]

    def holds(self, room_type_id: int, start: date, end: date) -> list[Hold]:
        now = self.now or datetime.utcnow()
        rows = self.db.scalars(
            select(InventoryHold).where(
                InventoryHold.property_id == self.property_id,
                InventoryHold.room_type_id == room_type_id,
                InventoryHold.date >= start,
                InventoryHold.date < end,
                (InventoryHold.expires_at.is_(None)) | (InventoryHold.expires_at > now),
            )
        ).all()
        return [Hold(date=h.date, blocked_inventory=h.blocked_inventory or 0) for h in rows]


class SqlRateStore:
    def __init__(self, db: Session, property_id: int):
        self.db = db
        self.property_id = property_id

    def manual_rates(self, room_type_id: int, start: date, end: date) -> dict[date, ManualRate]:
        rows = self.db.scalars(
            select(ManualRate).where(
                ManualRate.property_id == self.property_id,
                ManualRate.room_type_id == room_type_id,
                ManualRate.date >= start,
                ManualRate.date < end,
            )
        ).all()
        return {r.date: r for r in rows}


class SqlRuleStore:
    def __init__(self, db: Session, property_id: int):
        self.db = db
        self.property_id = property_id

    def rule_for(self, room_type_id: int) -> Optional[DynamicPricingRule]:
        return self.db.scalars(
            select(DynamicPricingRule)
            .options(selectinload(DynamicPricingRule.occupancy_rules))
            .where(
                DynamicPricingRule.property_id == self.property_id,
                DynamicPricingRule.room_type_id == room_type_id,
            )
        ).first()


def get_room_type(db: Session, property_id: int, room_type_id: int) -> RoomType:
    """Load a room type of the property or raise NotFoundError."""
    room_type = db.scalars(
        select(RoomType).where(RoomType.id == room_type_id, RoomType.property_id == property_id)
    ).first()
    if room_type is None:
        raise NotFoundError("Room type not found.")
    return room_type


def calculator_for(db: Session, property_id: int, now: Optional[datetime] = None) -> AvailabilityCalculator:
    return AvailabilityCalculator(SqlAvailabilityStore(db, property_id, now=now))
