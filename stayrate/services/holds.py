"""
Inventory holds: manual blocks, tentative two-phase holds, the monthly grid
and the per-day room status view.

Every hold is an ``InventoryHold`` row for one room type on one date, tagged
with its owner in ``hold_key``. Manual blocks use the ``manual`` key, group
allotments ``group:<id>`` (see ``groups.py``) and tentative holds
``tentative:<token>``; a tentative hold stops counting once ``expires_at`` has
passed.
"""
import logging
import uuid
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import CapacityError, ConflictError, NotFoundError, ValidationError
from ..models import BlockType, HoldKind, InventoryHold, Reservation, ReservationStatus, Room, RoomStatus, RoomType
from ..models.inventory_hold import MANUAL_HOLD_KEY, tentative_hold_key
from ..stores import calculator_for, get_room_type
from .dates import iter_dates, month_bounds, parse_date, parse_date_list, parse_range
from .locks import inventory_lock
from .reservations import check_amount

logger = logging.getLogger(__name__)


@dataclass
class HoldReceipt:
    token: str
    room_type_id: int
    check_in: date
    check_out: date
    rooms: int
    expires_at: datetime


def _count(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be a whole number.")
    if value < 0:
        raise ValidationError(f"{name} cannot be negative.")
    return value


def block_inventory(
    db: Session,
    property_id: int,
    room_type_id: int,
    dates: list,
    blocked_inventory: int,
    reason: Optional[str] = None,
    block_type: BlockType = BlockType.OUT_OF_ORDER,
    created_by: str = "admin",
) -> tuple[int, int]:
    """
    Set the manual block of a room type on each date. Returns ``(modified, created)``.

    Raising a block is checked against availability; lowering or keeping it is not.
    """
    blocked_inventory = _count(blocked_inventory, "blockedInventory")
    days = parse_date_list(dates)
    try:
        block_type = BlockType(block_type)
    except ValueError:
        raise ValidationError("blockType must be 'out-of-order' or 'out-of-service'.")
    room_type = get_room_type(db, property_id, room_type_id)

    with inventory_lock(db, property_id, [room_type_id]):
        existing = {
            h.date: h
            for h in db.scalars(
                select(InventoryHold).where(
                    InventoryHold.property_id == property_id,
                    InventoryHold.room_type_id == room_type_id,
                    InventoryHold.hold_key == MANUAL_HOLD_KEY,
                    InventoryHold.date.in_(days),
                )
            )
        }
        report = calculator_for(db, property_id).report(room_type, days[0], days[-1] + timedelta(days=1))
        daily = report.daily
        errors = []
        for day in days:
            current = existing[day].blocked_inventory if day in existing else 0
            growth = blocked_inventory - current
            if growth > 0 and daily[day] < growth:
                errors.append(
                    f"Only {max(0, daily[day])} room(s) available for {room_type.name} on "
                    f"{day.isoformat()}, but {growth} more requested to block"
                )
        if errors:
            logger.info("Rejected inventory block for room type %s: %s", room_type_id, errors)
            raise CapacityError("Not enough inventory to block the requested rooms.", errors)

        modified = created = 0
        for day in days:
            hold = existing.get(day)
            if hold is None:
                hold = InventoryHold(
                    property_id=property_id,
                    room_type_id=room_type_id,
                    date=day,
                    kind=HoldKind.MANUAL,
                    hold_key=MANUAL_HOLD_KEY,
                )
                db.add(hold)
                created += 1
            else:
                modified += 1
            hold.blocked_inventory = blocked_inventory
            hold.reason = reason
            hold.block_type = block_type
            hold.created_by = created_by
        db.commit()
    logger.info("Blocked %d room(s) of type %s on %d day(s)", blocked_inventory, room_type_id, len(days))
    return modified, created


def unblock_inventory(db: Session, property_id: int, room_type_id: int, dates: list) -> int:
    days = parse_date_list(dates)
    get_room_type(db, property_id, room_type_id)
    result = db.execute(
        delete(InventoryHold).where(
            InventoryHold.property_id == property_id,
            InventoryHold.room_type_id == room_type_id,
            InventoryHold.hold_key == MANUAL_HOLD_KEY,
            InventoryHold.date.in_(days),
        )
    )
    db.commit()
    return result.rowcount or 0


def list_blocks(db: Session, property_id: int, room_type_id: int,
                start=None, end=None) -> list[InventoryHold]:
    get_room_type(db, property_id, room_type_id)
    q = select(InventoryHold).where(
        InventoryHold.property_id == property_id,
        InventoryHold.room_type_id == room_type_id,
        InventoryHold.hold_key == MANUAL_HOLD_KEY,
    )
    if start is not None:
        q = q.where(InventoryHold.date >= parse_date(start, "startDate"))
    if end is not None:
        q = q.where(InventoryHold.date <= parse_date(end, "endDate"))
    return list(db.scalars(q.order_by(InventoryHold.date)))


def purge_expired_holds(db: Session, now: Optional[datetime] = None) -> int:
    """
    Delete tentative holds whose TTL has run out.
    Returns the number of rows removed.
    """
    now = now or datetime.utcnow()
    result = db.execute(
        delete(InventoryHold).where(
            InventoryHold.expires_at.is_not(None),
            InventoryHold.expires_at <= now,
        )
    )
    db.commit()
    count = result.rowcount or 0
    if count:
        logger.info("Purged %d expired hold row(s)", count)
    return count


def place_hold(
    db: Session,
    property_id: int,
    room_type_id: int,
    check_in,
    check_out,
    rooms: int = 1,
    ttl_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> HoldReceipt:
    """
    First phase of a booking: set ``rooms`` units aside for every night of the
    stay until the TTL runs out. The token confirms or releases the hold.
    """
    start, end = parse_range(check_in, check_out)
    rooms = _count(rooms, "numberOfRooms")
    if rooms < 1:
        raise ValidationError("numberOfRooms must be at least 1.")
    ttl = settings.HOLD_TTL_MINUTES if ttl_minutes is None else ttl_minutes
    if ttl <= 0:
        raise ValidationError("ttlMinutes must be positive.")
    room_type = get_room_type(db, property_id, room_type_id)
    now = now or datetime.utcnow()
    purge_expired_holds(db, now)

    token = uuid.uuid4().hex
    expires_at = now + timedelta(minutes=ttl)
    with inventory_lock(db, property_id, [room_type_id]):
        report = calculator_for(db, property_id, now=now).report(room_type, start, end)
        short = report.shortfalls(rooms)
        if short:
            errors = [
                f"Only {max(0, n)} room(s) available for {room_type.name} on {day.isoformat()}, but {rooms} requested"
                for day, n in short
            ]
            logger.info("Rejected tentative hold for room type %s: %s", room_type_id, errors)
            raise CapacityError("Not enough availability to hold the requested rooms.", errors)
        for day in iter_dates(start, end):
            db.add(InventoryHold(
                property_id=property_id,
                room_type_id=room_type_id,
                date=day,
                blocked_inventory=rooms,
                kind=HoldKind.TENTATIVE,
                hold_key=tentative_hold_key(token),
                reason="Tentative hold",
                expires_at=expires_at,
            ))
        db.commit()
    logger.info("Placed hold %s: %d room(s) of type %s until %s", token, rooms, room_type_id, expires_at)
    return HoldReceipt(token, room_type_id, start, end, rooms, expires_at)


def _hold_rows(db: Session, property_id: int, token: str) -> list[InventoryHold]:
    rows = list(db.scalars(
        select(InventoryHold)
        .where(InventoryHold.property_id == property_id, InventoryHold.hold_key == tentative_hold_key(token))
        .order_by(InventoryHold.date)
    ))
    if not rows:
        raise NotFoundError("Hold not found.")
    return rows


def confirm_hold(db: Session, property_id: int, token: str, guest_name: str,
                 total_amount: Optional[float] = None, now: Optional[datetime] = None) -> Reservation:
    """Second phase: turn a live hold into a confirmed reservation in one transaction."""
    if not guest_name or not guest_name.strip():
        raise ValidationError("guestName is required.")
    total_amount = check_amount(total_amount)
    now = now or datetime.utcnow()
    rows = _hold_rows(db, property_id, token)
    room_type_id = rows[0].room_type_id
    with inventory_lock(db, property_id, [room_type_id]):
        rows = _hold_rows(db, property_id, token)
        if not all(h.is_live(now) for h in rows):
            for h in rows:
                db.delete(h)
            db.commit()
            raise ConflictError("Hold has expired.")
        reservation = Reservation(
            property_id=property_id,
            room_type_id=room_type_id,
            guest_name=guest_name.strip(),
            check_in=rows[0].date,
            check_out=rows[-1].date + timedelta(days=1),
            number_of_rooms=rows[0].blocked_inventory,
            total_amount=total_amount,
            status=ReservationStatus.CONFIRMED,
        )
        db.add(reservation)
        for h in rows:
            db.delete(h)
        db.commit()
    db.refresh(reservation)
    logger.info("Hold %s confirmed as reservation %s", token, reservation.id)
    return reservation


def release_hold(db: Session, property_id: int, token: str) -> int:
    rows = _hold_rows(db, property_id, token)
    for h in rows:
        db.delete(h)
    db.commit()
    logger.info("Hold %s released", token)
    return len(rows)


def monthly_inventory(db: Session, property_id: int, year: int, month: int) -> dict:
    """Per day and per active room type: total, booked, blocked and available units plus base rates."""
    start, end = month_bounds(year, month)
    room_types = list(db.scalars(
        select(RoomType)
        .where(RoomType.property_id == property_id, RoomType.active.is_(True))
        .order_by(RoomType.id)
    ))
    calculator = calculator_for(db, property_id)
    days = list(iter_dates(start, end))
    daily: dict[date, dict[int, dict]] = {day: {} for day in days}
    for rt in room_types:
        report = calculator.report(rt, start, end)
        display = report.display
        rates = {
            "base_rate": float(rt.base_rate or 0),
            "extra_guest_rate": float(rt.extra_guest_rate or 0),
            "adult_rate": float(rt.adult_rate or 0),
            "child_rate": float(rt.child_rate or 0),
        }
        for day in days:
            daily[day][rt.id] = {
                "room_type_name": rt.name,
                "total_inventory": rt.total_inventory or 0,
                "booked_rooms": report.committed[day],
                "blocked_inventory": report.blocked[day],
                "available_rooms": display[day],
                "price_model": rt.price_model,
                **rates,
            }
    return {
        "month": month,
        "year": year,
        "days_in_month": len(days),
        "room_types": room_types,
        "daily_inventory": daily,
    }


def room_status_availability(db: Session, property_id: int, day=None,
                             room_type_id: Optional[int] = None) -> dict:
    """
    Housekeeping view of one day: for each active room type (or just
    ``room_type_id``), how many physical rooms are in each status and how many
    units the ledger has booked or blocked.

    Clean and dirty rooms count as sellable; ``actually_available`` is what is
    left of them after bookings. ``inventory_available`` is the calculator's
    figure for the day, which works from total inventory instead of rooms.
    """
    day = parse_date(day) if day else date.today()
    if room_type_id is not None:
        room_types = [get_room_type(db, property_id, room_type_id)]
    else:
        room_types = list(db.scalars(
            select(RoomType)
            .where(RoomType.property_id == property_id, RoomType.active.is_(True))
            .order_by(RoomType.id)
        ))

    counts: dict[int, Counter] = {rt.id: Counter() for rt in room_types}
    for rt_id, status in db.execute(
        select(Room.room_type_id, Room.status).where(
            Room.property_id == property_id, Room.room_type_id.in_(list(counts))
        )
    ):
        counts[rt_id][RoomStatus(status)] += 1

    calculator = calculator_for(db, property_id)
    out = []
    for rt in room_types:
        report = calculator.report(rt, day, day + timedelta(days=1))
        by_status = counts[rt.id]
        status_counts = {s.value: by_status[s] for s in RoomStatus}
        status_counts["total"] = sum(by_status.values())
        sellable = by_status[RoomStatus.CLEAN] + by_status[RoomStatus.DIRTY]
        booked = report.committed.get(day, 0)
        out.append({
            "room_type": rt,
            "room_status": status_counts,
            "availability": {
                "total_rooms": status_counts["total"],
                "available_rooms": sellable,
                "unavailable_rooms": by_status[RoomStatus.OCCUPIED] + by_status[RoomStatus.MAINTENANCE],
                "booked_rooms": booked,
                "blocked_inventory": report.blocked.get(day, 0),
                "actually_available": max(0, sellable - booked),
                "inventory_available": report.display[day],
            },
        })
    return {"date": day, "room_types": out}
