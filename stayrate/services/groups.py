"""
Group block allocation.

A group asks for several blocks of rooms, each of one room type, for the same
stay. Requests are validated against the same availability calculator as
single reservations; a created group keeps its rooms out of inventory through
``group:<id>`` holds until it is cancelled or checked out.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..errors import CapacityError, ConflictError, NotFoundError, ValidationError
from ..models import (
    DiscountType,
    GroupReservation,
    GroupStatus,
    GuestFolio,
    HoldKind,
    InventoryHold,
    PaymentMode,
    Room,
    RoomBlock,
    RoomStatus,
    RoomType,
)
from ..models.group_reservation import GROUP_TRANSITIONS, TERMINAL_GROUP_STATUSES
from ..models.folio import FolioStatus
from ..models.inventory_hold import group_hold_key
from ..stores import calculator_for
from .availability import AvailabilityCalculator
from .dates import iter_dates, parse_date, parse_range
from .folios import create_group_folio
from .locks import group_lock, inventory_lock
from .reservations import busy_rooms

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("group_name", "contact_person", "contact_email", "contact_phone", "payment_mode", "notes")


@dataclass(frozen=True)
class BlockRequest:
    room_type_id: int
    number_of_rooms: int


@dataclass
class GroupAvailability:
    available: bool
    errors: list[str] = field(default_factory=list)
    details: list[dict] = field(default_factory=list)

    @property
    def message(self) -> str:
        return "All rooms available" if self.available else "Room availability check failed"


@dataclass
class AssignmentResult:
    group: GroupReservation
    folio: Optional[GuestFolio]
    assigned_room_ids: list[int]
    folio_created: bool = False

    @property
    def message(self) -> str:
        if self.folio_created:
            return "Rooms assigned and folio created successfully"
        return "Rooms assigned successfully"


def _block_requests(room_blocks) -> list[BlockRequest]:
    if not room_blocks:
        raise ValidationError("roomBlocks must be a non-empty list.")
    out = []
    for i, raw in enumerate(room_blocks):
        if isinstance(raw, BlockRequest):
            block = raw
        else:
            try:
                block = BlockRequest(int(raw["room_type_id"]), raw["number_of_rooms"])
            except (KeyError, TypeError, ValueError):
                raise ValidationError(f"Room block {i + 1} needs roomTypeId and numberOfRooms.")
        rooms = block.number_of_rooms
        if isinstance(rooms, bool) or not isinstance(rooms, int) or rooms < 1:
            raise ValidationError(f"Room block {i + 1}: numberOfRooms must be at least 1.")
        out.append(block)
    return out


def _room_types(db: Session, property_id: int, ids: Iterable[int]) -> dict[int, RoomType]:
    ids = set(ids)
    return {
        rt.id: rt
        for rt in db.scalars(select(RoomType).where(RoomType.property_id == property_id, RoomType.id.in_(ids)))
    }


def _evaluate(room_types: dict[int, RoomType], calculator: AvailabilityCalculator,
              start: date, end: date, blocks: list[BlockRequest]) -> GroupAvailability:
    """
    Check every block against one report per room type.

    Blocks of the same room type in one request compete for the same units,
    so each block sees what the earlier ones left.
    """
    reports = {}
    requested: dict[int, int] = defaultdict(int)
    errors: list[str] = []
    details: list[dict] = []
    for block in blocks:
        rt = room_types.get(block.room_type_id)
        if rt is None:
            errors.append(f"Room type {block.room_type_id} not found")
            continue
        if rt.id not in reports:
            reports[rt.id] = calculator.report(rt, start, end)
        daily = reports[rt.id].daily
        already = requested[rt.id]
        for day, n in daily.items():
            left = n - already
            if left < block.number_of_rooms:
                errors.append(
                    f"Only {max(0, left)} room(s) available for {rt.name} on {day.isoformat()}, "
                    f"but {block.number_of_rooms} requested"
                )
        details.append({
            "room_type_id": rt.id,
            "room_type_name": rt.name,
            "requested": block.number_of_rooms,
            "available": max(0, min(daily.values()) - already),
            "total_inventory": rt.total_inventory or 0,
        })
        requested[rt.id] += block.number_of_rooms
    return GroupAvailability(available=not errors, errors=errors, details=details)


def check_group_availability(db: Session, property_id: int, check_in, check_out, room_blocks,
                             calculator: Optional[AvailabilityCalculator] = None) -> GroupAvailability:
    """Validate a group request against current availability without writing anything."""
    start, end = parse_range(check_in, check_out)
    blocks = _block_requests(room_blocks)
    room_types = _room_types(db, property_id, (b.room_type_id for b in blocks))
    return _evaluate(room_types, calculator or calculator_for(db, property_id), start, end, blocks)


def generate_group_code(db: Session, property_id: int, today: Optional[date] = None) -> str:
    """Next group code of the month for the property: ``GRP<yy><mm><nnn>``."""
    today = today or date.today()
    prefix = f"GRP{today:%y%m}"
    last = db.scalars(
        select(GroupReservation.group_code)
        .where(GroupReservation.property_id == property_id, GroupReservation.group_code.like(f"{prefix}%"))
        .order_by(GroupReservation.group_code.desc())
    ).first()
    suffix = int(last[-3:]) + 1 if last and last[-3:].isdigit() else 1
    return f"{prefix}{suffix:03d}"


def _enum(enum_cls, value, name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"{name} must be one of: {allowed}")


def _non_negative(value, name: str) -> Decimal:
    try:
        number = Decimal(str(value if value is not None else 0))
    except ArithmeticError:
        raise ValidationError(f"{name} must be a number.")
    if not number.is_finite():
        raise ValidationError(f"{name} must be a finite number.")
    if number < 0:
        raise ValidationError(f"{name} cannot be negative.")
    return number


def create_group(
    db: Session,
    property_id: int,
    group_name: str,
    contact_person: str,
    check_in,
    check_out,
    room_blocks,
    contact_email: Optional[str] = None,
    contact_phone: Optional[str] = None,
    total_amount=0,
    discount_type="percent",
    discount_value=0,
    discount_amount=None,
    payment_mode="individual-bills",
    notes: Optional[str] = None,
    today: Optional[date] = None,
) -> GroupReservation:
    """
    Create a group and hold its rooms for every night of the stay.

    Validation, the capacity check and all writes happen under the inventory
    lock of the involved room types. Any shortfall raises CapacityError listing
    every offending day and nothing is written.
    """
    if not group_name or not group_name.strip():
        raise ValidationError("groupName is required.")
    if not contact_person or not contact_person.strip():
        raise ValidationError("contactPerson is required.")
    start, end = parse_range(check_in, check_out)
    blocks = _block_requests(room_blocks)
    total = _non_negative(total_amount, "totalAmount")
    dtype = _enum(DiscountType, discount_type, "discountType")
    value = _non_negative(discount_value, "discountValue")
    mode = _enum(PaymentMode, payment_mode, "paymentMode")
    if dtype == DiscountType.PERCENT:
        if value > 100:
            raise ValidationError("discountValue cannot exceed 100 percent.")
        discount = total * value / 100
    else:
        discount = _non_negative(discount_amount, "discountAmount") if discount_amount is not None else value
    if discount > total:
        raise ValidationError("Discount cannot exceed totalAmount.")

    type_ids = sorted({b.room_type_id for b in blocks})
    room_types = _room_types(db, property_id, type_ids)
    missing = [rt_id for rt_id in type_ids if rt_id not in room_types]
    if missing:
        raise NotFoundError(f"Room type {missing[0]} not found")

    with inventory_lock(db, property_id, type_ids):
        result = _evaluate(room_types, calculator_for(db, property_id), start, end, blocks)
        if not result.available:
            logger.info("Rejected group %r: %s", group_name, result.errors)
            raise CapacityError("Room availability check failed", result.errors)

        group = GroupReservation(
            property_id=property_id,
            group_code=generate_group_code(db, property_id, today),
            group_name=group_name.strip(),
            contact_person=contact_person.strip(),
            contact_email=contact_email,
            contact_phone=contact_phone,
            check_in=start,
            check_out=end,
            payment_mode=mode,
            total_amount=total,
            discount_type=dtype,
            discount_value=value,
            discount_amount=discount.quantize(Decimal("0.01")),
            status=GroupStatus.CONFIRMED,
            notes=notes,
            room_blocks=[
                RoomBlock(position=i, room_type_id=b.room_type_id, number_of_rooms=b.number_of_rooms)
                for i, b in enumerate(blocks)
            ],
        )
        db.add(group)
        try:
            db.flush()
            per_type: dict[int, int] = defaultdict(int)
            for b in blocks:
                per_type[b.room_type_id] += b.number_of_rooms
            for rt_id, rooms in per_type.items():
                for day in iter_dates(start, end):
                    db.add(InventoryHold(
                        property_id=property_id,
                        room_type_id=rt_id,
                        date=day,
                        blocked_inventory=rooms,
                        kind=HoldKind.GROUP,
                        hold_key=group_hold_key(group.id),
                        group_id=group.id,
                        reason=f"Group {group.group_code}",
                    ))
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning("Group code collision while creating %r", group_name)
            raise ConflictError("Another group was created at the same time. Please retry.")
    db.refresh(group)
    logger.info("Group %s created with %d room(s) from %s to %s", group.group_code, group.total_rooms, start, end)
    return group


def get_group(db: Session, property_id: int, group_id: int) -> GroupReservation:
    group = db.scalars(
        select(GroupReservation)
        .options(selectinload(GroupReservation.room_blocks).selectinload(RoomBlock.assigned_rooms))
        .where(GroupReservation.id == group_id, GroupReservation.property_id == property_id)
    ).first()
    if group is None:
        raise NotFoundError("Group reservation not found.")
    return group


def list_groups(db: Session, property_id: int, search: Optional[str] = None,
                page: int = 1, limit: int = 50) -> tuple[list[GroupReservation], int]:
    if page < 1 or not 1 <= limit <= 200:
        raise ValidationError("page must be at least 1 and limit between 1 and 200.")
    q = select(GroupReservation).where(GroupReservation.property_id == property_id)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.where(or_(
            GroupReservation.group_name.ilike(pattern),
            GroupReservation.group_code.ilike(pattern),
            GroupReservation.contact_person.ilike(pattern),
        ))
    total = db.scalar(select(func.count()).select_from(q.subquery()))
    groups = db.scalars(
        q.options(selectinload(GroupReservation.room_blocks))
        .order_by(GroupReservation.created_at.desc(), GroupReservation.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    return list(groups), total or 0


def list_arrivals(db: Session, property_id: int, day=None) -> list[GroupReservation]:
    """Live groups checking in on ``day`` (today by default)."""
    day = parse_date(day) if day is not None else date.today()
    return list(db.scalars(
        select(GroupReservation)
        .options(selectinload(GroupReservation.room_blocks))
        .where(
            GroupReservation.property_id == property_id,
            GroupReservation.check_in == day,
            GroupReservation.status.not_in(TERMINAL_GROUP_STATUSES),
        )
        .order_by(GroupReservation.id)
    ))


def update_group(db: Session, property_id: int, group_id: int, **changes) -> GroupReservation:
    """Change contact details, notes or payment mode of a live group."""
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update: {', '.join(sorted(unknown))}")
    group = get_group(db, property_id, group_id)
    if group.is_terminal:
        raise ConflictError(f"Group is {group.status.value} and can no longer be changed.")
    for name, value in changes.items():
        if name in ("group_name", "contact_person"):
            if not value or not str(value).strip():
                raise ValidationError(f"{name} cannot be empty.")
            value = value.strip()
        if name == "payment_mode":
            value = _enum(PaymentMode, value, "paymentMode")
        setattr(group, name, value)
    db.commit()
    db.refresh(group)
    return group


def _transition(group: GroupReservation, target: GroupStatus) -> None:
    current = GroupStatus(group.status)
    if target not in GROUP_TRANSITIONS[current]:
        raise ConflictError(f"Cannot change group status from {current.value} to {target.value}.")
    group.status = target


def _locked_group(db: Session, property_id: int, group_id: int) -> GroupReservation:
    group = get_group(db, property_id, group_id)
    # Another writer may have committed while this request waited for the lock.
    db.refresh(group)
    return group


def _release_holds(db: Session, group: GroupReservation) -> int:
    result = db.execute(delete(InventoryHold).where(InventoryHold.group_id == group.id))
    return result.rowcount or 0


def cancel_group(db: Session, property_id: int, group_id: int) -> GroupReservation:
    """Cancel a live group: its holds go back to inventory and occupied rooms become clean."""
    get_group(db, property_id, group_id)
    with group_lock(db, group_id):
        group = _locked_group(db, property_id, group_id)
        _transition(group, GroupStatus.CANCELLED)
        released = _release_holds(db, group)
        for block in group.room_blocks:
            for room in block.assigned_rooms:
                if room.status == RoomStatus.OCCUPIED:
                    room.status = RoomStatus.CLEAN
        db.commit()
    db.refresh(group)
    logger.info("Group %s cancelled, %d hold row(s) released", group.group_code, released)
    return group


def check_out_group(db: Session, property_id: int, group_id: int) -> GroupReservation:
    """Check out a checked-in group: holds are released, rooms need cleaning, the folio closes."""
    get_group(db, property_id, group_id)
    with group_lock(db, group_id):
        group = _locked_group(db, property_id, group_id)
        _transition(group, GroupStatus.CHECKED_OUT)
        released = _release_holds(db, group)
        for block in group.room_blocks:
            for room in block.assigned_rooms:
                room.status = RoomStatus.DIRTY
        for folio in db.scalars(
            select(GuestFolio).where(GuestFolio.group_id == group.id, GuestFolio.status == FolioStatus.ACTIVE)
        ):
            folio.status = FolioStatus.CLOSED
        db.commit()
    db.refresh(group)
    logger.info("Group %s checked out, %d hold row(s) released", group.group_code, released)
    return group


def assign_rooms(db: Session, property_id: int, group_id: int, room_assignments,
                 today: Optional[date] = None) -> AssignmentResult:
    """
    Attach concrete rooms to the group's blocks.

    ``room_assignments`` is a list of ``{"room_block_index", "room_ids"}``.
    The whole payload is validated before anything changes. Rooms already in
    their block, or beyond a block's size, are skipped. The first assignment
    checks the group in and opens its folio; repeating a payload changes
    nothing.
    """
    if not isinstance(room_assignments, (list, tuple)):
        raise ValidationError("roomAssignments must be an array")
    get_group(db, property_id, group_id)

    with group_lock(db, group_id):
        group = _locked_group(db, property_id, group_id)
        if group.is_terminal:
            raise ConflictError(f"Group is {group.status.value}; rooms can no longer be assigned.")

        blocks = group.room_blocks
        wanted: list[tuple[RoomBlock, list[int]]] = []
        target_block: dict[int, int] = {}
        for raw in room_assignments:
            try:
                index = raw["room_block_index"]
                ids = raw["room_ids"]
            except (KeyError, TypeError):
                raise ValidationError("Each assignment needs roomBlockIndex and roomIds.")
            if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(blocks):
                raise ValidationError(f"Invalid room block index {index}")
            if not isinstance(ids, (list, tuple)) or any(isinstance(i, bool) or not isinstance(i, int) for i in ids):
                raise ValidationError("roomIds must be a list of room ids.")
            for rid in ids:
                if target_block.setdefault(rid, index) != index:
                    raise ValidationError(f"Room {rid} is requested for more than one block")
            wanted.append((blocks[index], list(dict.fromkeys(ids))))

        all_ids = set(target_block)
        rooms = {
            r.id: r
            for r in db.scalars(select(Room).where(Room.property_id == property_id, Room.id.in_(all_ids)))
        }
        missing = sorted(all_ids - set(rooms))
        if missing:
            raise NotFoundError(f"Room {missing[0]} not found")

        current_block = {room.id: b.id for b in blocks for room in b.assigned_rooms}
        for block, ids in wanted:
            for rid in ids:
                room = rooms[rid]
                if room.room_type_id != block.room_type_id:
                    raise ValidationError(f"Room {room.room_number} is not of room type {block.room_type.name}")
                if current_block.get(rid, block.id) != block.id:
                    raise ConflictError(f"Room {room.room_number} is already assigned to another block of this group")

        taken = busy_rooms(db, property_id, all_ids, group.check_in, group.check_out, exclude_group_id=group.id)
        if taken:
            numbers = sorted(rooms[rid].room_number for rid in taken)
            raise ConflictError(f"Room(s) {', '.join(numbers)} already assigned for overlapping dates")

        assigned = []
        for block, ids in wanted:
            for rid in ids:
                room = rooms[rid]
                if room in block.assigned_rooms or block.remaining <= 0:
                    continue
                block.assigned_rooms.append(room)
                room.status = RoomStatus.OCCUPIED
                assigned.append(rid)

        folio, created = None, False
        if group.assigned_room_count > 0:
            if group.status == GroupStatus.CONFIRMED:
                _transition(group, GroupStatus.CHECKED_IN)
            db.flush()
            folio, created = create_group_folio(db, group, today)
        db.commit()

    db.refresh(group)
    if folio is not None:
        db.refresh(folio)
    logger.info("Assigned %d room(s) to group %s", len(assigned), group.group_code)
    return AssignmentResult(group=group, folio=folio, assigned_room_ids=assigned, folio_created=created)
