"""Consolidated folio for a group, created when its rooms are first assigned."""
import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import DiscountType, FolioItem, FolioStatus, GroupReservation, GuestFolio

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def generate_folio_id(db: Session, property_id: int, today: Optional[date] = None) -> str:
    """Next folio number of the day for the property: ``F<yy><mm><dd><nnn>``."""
    today = today or date.today()
    prefix = f"F{today:%y%m%d}"
    last = db.scalars(
        select(GuestFolio.folio_id)
        .where(GuestFolio.property_id == property_id, GuestFolio.folio_id.like(f"{prefix}%"))
        .order_by(GuestFolio.folio_id.desc())
    ).first()
    suffix = int(last[-3:]) + 1 if last and last[-3:].isdigit() else 1
    return f"{prefix}{suffix:03d}"


def active_folio(db: Session, group: GroupReservation) -> Optional[GuestFolio]:
    return db.scalars(
        select(GuestFolio).where(
            GuestFolio.property_id == group.property_id,
            GuestFolio.group_id == group.id,
            GuestFolio.status == FolioStatus.ACTIVE,
        )
    ).first()


def folio_items(group: GroupReservation) -> list[FolioItem]:
    """
    Charge lines for every assigned room plus a negative discount line.

    The net amount is shared between blocks by their share of the group's
    rooms, then evenly between the rooms assigned in each block.
    """
    nights = max(group.nights, 1)
    total = Decimal(str(group.total_amount or 0))
    discount = Decimal(str(group.discount_amount or 0))
    net = total - discount
    total_rooms = group.total_rooms or 1
    items = []
    for block in group.room_blocks:
        rooms = block.assigned_rooms
        if not rooms:
            continue
        per_room = _money(net * block.number_of_rooms / total_rooms / len(rooms))
        name = block.room_type.name if block.room_type is not None else "Room"
        for room in rooms:
            items.append(FolioItem(
                description=f"Accommodation - {name} (Room {room.room_number}) - {nights} night{'s' if nights > 1 else ''}",
                date=group.check_in,
                amount=per_room,
                department="Room",
                quantity=nights,
                unit_price=_money(per_room / nights),
            ))
    if discount > 0:
        label = f"{Decimal(str(group.discount_value)).normalize():f}%" if group.discount_type == DiscountType.PERCENT else "Fixed"
        items.append(FolioItem(
            description=f"Discount ({label})",
            date=group.check_in,
            amount=-_money(discount),
            department="Other",
            quantity=1,
            unit_price=-_money(discount),
        ))
    return items


def create_group_folio(db: Session, group: GroupReservation, today: Optional[date] = None) -> tuple[GuestFolio, bool]:
    """
    Return the group's active folio, creating it if there is none.
    The second element tells whether it was created. The caller commits.
    """
    existing = active_folio(db, group)
    if existing is not None:
        return existing, False
    folio = GuestFolio(
        property_id=group.property_id,
        folio_id=generate_folio_id(db, group.property_id, today),
        group_id=group.id,
        guest_name=group.group_name,
        guest_email=group.contact_email,
        guest_phone=group.contact_phone,
        room_numbers=[room.room_number for block in group.room_blocks for room in block.assigned_rooms],
        check_in=group.check_in,
        check_out=group.check_out,
        status=FolioStatus.ACTIVE,
        items=folio_items(group),
    )
    db.add(folio)
    db.flush()
    logger.info("Folio %s created for group %s with %d item(s)", folio.folio_id, group.group_code, len(folio.items))
    return folio, True
