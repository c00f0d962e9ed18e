"""Capacity-checked reservation writes."""
import logging
import math
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..errors import CapacityError, ConflictError, NotFoundError, ValidationError
from ..models import COMMITTED_STATUSES, GroupReservation, Reservation, ReservationStatus, Room, RoomBlock
from ..models.group_reservation import TERMINAL_GROUP_STATUSES, block_rooms
from ..stores import calculator_for, get_room_type
from .dates import parse_range
from .locks import inventory_lock

logger = logging.getLogger(__name__)


def _status(value) -> ReservationStatus:
    try:
        return ReservationStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in ReservationStatus)
        raise ValidationError(f"status must be one of: {allowed}")


def _capacity_errors(report, rooms: int, room_type_name: str) -> list[str]:
    return [
        f"Only {max(0, n)} room(s) available for {room_type_name} on {day.isoformat()}, but {rooms} requested"
        for day, n in report.shortfalls(rooms)
    ]


def check_amount(value, name: str = "totalAmount") -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number.")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number.")
    if not math.isfinite(number):
        raise ValidationError(f"{name} must be a finite number.")
    if number < 0:
        raise ValidationError(f"{name} cannot be negative.")
    return number


def busy_rooms(db: Session, property_id: int, room_ids: Iterable[int], check_in, check_out,
               exclude_id: Optional[int] = None, exclude_group_id: Optional[int] = None) -> set[int]:
    """
    Ids among ``room_ids`` already assigned for an overlapping stay, either to a
    committed reservation or to a live group's block.
    """
    wanted = set(room_ids)
    if not wanted:
        return set()
    q = (
        select(Reservation)
        .options(selectinload(Reservation.rooms))
        .where(
            Reservation.property_id == property_id,
            Reservation.status.in_(COMMITTED_STATUSES),
            Reservation.check_in < check_out,
            Reservation.check_out > check_in,
        )
    )
    if exclude_id is not None:
        q = q.where(Reservation.id != exclude_id)
    busy = set()
    for other in db.scalars(q):
        busy.update(r.id for r in other.rooms if r.id in wanted)

    grouped = (
        select(block_rooms.c.room_id)
        .join(RoomBlock, RoomBlock.id == block_rooms.c.block_id)
        .join(GroupReservation, GroupReservation.id == RoomBlock.group_id)
        .where(
            GroupReservation.property_id == property_id,
            GroupReservation.status.not_in(TERMINAL_GROUP_STATUSES),
            GroupReservation.check_in < check_out,
            GroupReservation.check_out > check_in,
            block_rooms.c.room_id.in_(wanted),
        )
    )
    if exclude_group_id is not None:
        grouped = grouped.where(GroupReservation.id != exclude_group_id)
    busy.update(db.scalars(grouped))
    return busy


def create_reservation(
    db: Session,
    property_id: int,
    room_type_id: int,
    guest_name: str,
    check_in,
    check_out,
    number_of_rooms: int = 1,
    room_ids: Optional[list[int]] = None,
    total_amount: Optional[float] = None,
) -> Reservation:
    if not guest_name or not guest_name.strip():
        raise ValidationError("guestName is required.")
    start, end = parse_range(check_in, check_out)
    if isinstance(number_of_rooms, bool) or not isinstance(number_of_rooms, int) or number_of_rooms < 1:
        raise ValidationError("numberOfRooms must be at least 1.")
    room_ids = list(dict.fromkeys(room_ids or []))
    if len(room_ids) > number_of_rooms:
        raise ValidationError("More rooms assigned than numberOfRooms.")
    total_amount = check_amount(total_amount)

    room_type = get_room_type(db, property_id, room_type_id)
    rooms = []
    if room_ids:
        found = {
            r.id: r
            for r in db.scalars(select(Room).where(Room.property_id == property_id, Room.id.in_(room_ids)))
        }
        missing = [rid for rid in room_ids if rid not in found]
        if missing:
            raise NotFoundError(f"Room {missing[0]} not found")
        rooms = [found[rid] for rid in room_ids]
        wrong = [r.room_number for r in rooms if r.room_type_id != room_type_id]
        if wrong:
            raise ValidationError(f"Room {wrong[0]} is not of room type {room_type.name}")

    with inventory_lock(db, property_id, [room_type_id]):
        report = calculator_for(db, property_id).report(room_type, start, end)
        errors = _capacity_errors(report, number_of_rooms, room_type.name)
        if errors:
            logger.info("Rejected reservation for room type %s: %s", room_type_id, errors)
            raise CapacityError("Not enough availability for the requested stay.", errors)
        busy = busy_rooms(db, property_id, room_ids, start, end)
        if busy:
            numbers = sorted(r.room_number for r in rooms if r.id in busy)
            raise ConflictError(f"Room(s) {', '.join(numbers)} already assigned for overlapping dates")
        reservation = Reservation(
            property_id=property_id,
            room_type_id=room_type_id,
            guest_name=guest_name.strip(),
            check_in=start,
            check_out=end,
            number_of_rooms=number_of_rooms,
            total_amount=total_amount,
            status=ReservationStatus.CONFIRMED,
            rooms=rooms,
        )
        db.add(reservation)
        db.commit()
    db.refresh(reservation)
    logger.info("Reservation %s created: %d room(s) of type %s", reservation.id, number_of_rooms, room_type_id)
    return reservation


def get_reservation(db: Session, property_id: int, reservation_id: int) -> Reservation:
    reservation = db.scalars(
        select(Reservation).where(Reservation.id == reservation_id, Reservation.property_id == property_id)
    ).first()
    if reservation is None:
        raise NotFoundError("Reservation not found.")
    return reservation


def change_reservation_status(db: Session, property_id: int, reservation_id: int, status) -> Reservation:
    """
    Move a reservation to ``status``. Moving back into a status that consumes
    inventory re-checks capacity over the whole stay first.
    """
    new_status = _status(status)
    reservation = get_reservation(db, property_id, reservation_id)
    if reservation.status == new_status:
        return reservation
    if reservation.is_committed or new_status not in COMMITTED_STATUSES:
        reservation.status = new_status
        db.commit()
        db.refresh(reservation)
        return reservation

    room_type = get_room_type(db, property_id, reservation.room_type_id)
    with inventory_lock(db, property_id, [room_type.id]):
        report = calculator_for(db, property_id).report(room_type, reservation.check_in, reservation.check_out)
        errors = _capacity_errors(report, reservation.number_of_rooms, room_type.name)
        if errors:
            logger.info("Rejected reactivation of reservation %s: %s", reservation_id, errors)
            raise CapacityError("Not enough availability to reactivate the reservation.", errors)
        busy = busy_rooms(db, property_id, [r.id for r in reservation.rooms],
                          reservation.check_in, reservation.check_out, exclude_id=reservation.id)
        if busy:
            raise ConflictError("Assigned room(s) are taken by another booking for these dates")
        reservation.status = new_status
        db.commit()
    db.refresh(reservation)
    logger.info("Reservation %s reactivated as %s", reservation_id, new_status.value)
    return reservation
