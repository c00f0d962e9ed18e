import datetime as dt
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..limiter import limiter
from ..models import DiscountType, FolioStatus, GroupStatus, PaymentMode, Property
from ..schemas import CamelModel, RoomOut
from ..security import require_property
from ..services import groups

router = APIRouter(prefix="/api/v1/groups", tags=["groups"])

# ==== Schemas ====

class RoomBlockIn(CamelModel):
    room_type_id: int
    number_of_rooms: int

class GroupCheckIn(CamelModel):
    check_in_date: str
    check_out_date: str
    room_blocks: list[RoomBlockIn]

class GroupCreateIn(GroupCheckIn):
    group_name: str
    contact_person: str
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    total_amount: float = 0
    discount_type: DiscountType = DiscountType.PERCENT
    discount_value: float = 0
    discount_amount: Optional[float] = None
    payment_mode: PaymentMode = PaymentMode.INDIVIDUAL_BILLS
    notes: Optional[str] = None

class GroupUpdateIn(CamelModel):
    group_name: Optional[str] = None
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    payment_mode: Optional[PaymentMode] = None
    notes: Optional[str] = None

class RoomAssignmentIn(CamelModel):
    room_block_index: int
    room_ids: list[int]

class AssignRoomsIn(CamelModel):
    room_assignments: list[RoomAssignmentIn]

class BlockDetailOut(CamelModel):
    room_type_id: int
    room_type_name: str
    requested: int
    available: int
    total_inventory: int

class GroupCheckOut(CamelModel):
    available: bool
    message: str
    errors: list[str]
    details: list[BlockDetailOut]

class RoomBlockOut(CamelModel):
    room_type_id: int
    number_of_rooms: int
    remaining: int
    assigned_rooms: list[RoomOut] = []

class GroupOut(CamelModel):
    id: int
    group_code: str
    group_name: str
    contact_person: str
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    check_in: dt.date
    check_out: dt.date
    nights: int
    payment_mode: PaymentMode
    total_amount: float
    discount_type: DiscountType
    discount_value: float
    discount_amount: float
    status: GroupStatus
    notes: Optional[str] = None
    total_rooms: int
    assigned_room_count: int
    room_blocks: list[RoomBlockOut]

class FolioItemOut(CamelModel):
    description: str
    date: dt.date
    amount: float
    department: str
    quantity: int
    unit_price: float

class FolioOut(CamelModel):
    folio_id: str
    guest_name: str
    room_numbers: list[str]
    check_in: dt.date
    check_out: dt.date
    status: FolioStatus
    total_charges: float
    items: list[FolioItemOut]

class AssignRoomsOut(CamelModel):
    message: str
    group: GroupOut
    folio: Optional[FolioOut] = None

class GroupListOut(CamelModel):
    groups: list[GroupOut]
    total: int
    page: int
    limit: int

# ==== Endpoints ====

@router.post("/check-availability", response_model=GroupCheckOut)
def check_group_availability(payload: GroupCheckIn, prop: Property = Depends(require_property),
                             db: Session = Depends(get_db)):
    result = groups.check_group_availability(
        db, prop.id, payload.check_in_date, payload.check_out_date,
        [b.model_dump() for b in payload.room_blocks],
    )
    return GroupCheckOut(available=result.available, message=result.message, errors=result.errors,
                         details=result.details)

@router.get("/arrivals", response_model=list[GroupOut])
def group_arrivals(day: Optional[str] = Query(None, alias="date"), prop: Property = Depends(require_property),
                   db: Session = Depends(get_db)):
    return groups.list_arrivals(db, prop.id, day)

@router.post("", response_model=GroupOut, status_code=201)
@limiter.limit(settings.RATE_LIMIT_WRITE)
def create_group(request: Request, payload: GroupCreateIn, prop: Property = Depends(require_property),
                 db: Session = Depends(get_db)):
    return groups.create_group(
        db, prop.id,
        group_name=payload.group_name,
        contact_person=payload.contact_person,
        check_in=payload.check_in_date,
        check_out=payload.check_out_date,
        room_blocks=[b.model_dump() for b in payload.room_blocks],
        contact_email=payload.contact_email,
        contact_phone=payload.contact_phone,
        total_amount=payload.total_amount,
        discount_type=payload.discount_type,
        discount_value=payload.discount_value,
        discount_amount=payload.discount_amount,
        payment_mode=payload.payment_mode,
        notes=payload.notes,
    )

@router.get("", response_model=GroupListOut)
def list_groups(search: Optional[str] = None, page: int = 1, limit: int = 50,
                prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    rows, total = groups.list_groups(db, prop.id, search=search, page=page, limit=limit)
    return GroupListOut(groups=[GroupOut.model_validate(g) for g in rows], total=total, page=page, limit=limit)

@router.get("/{group_id}", response_model=GroupOut)
def get_group(group_id: int, prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    return groups.get_group(db, prop.id, group_id)

@router.patch("/{group_id}", response_model=GroupOut)
@limiter.limit(settings.RATE_LIMIT_WRITE)
def update_group(request: Request, group_id: int, payload: GroupUpdateIn,
                 prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    return groups.update_group(db, prop.id, group_id, **payload.model_dump(exclude_unset=True))

@router.post("/{group_id}/assign-rooms", response_model=AssignRoomsOut)
@limiter.limit(settings.RATE_LIMIT_WRITE)
def assign_rooms(request: Request, group_id: int, payload: AssignRoomsIn,
                 prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    result = groups.assign_rooms(db, prop.id, group_id, [a.model_dump() for a in payload.room_assignments])
    folio = FolioOut.model_validate(result.folio) if result.folio is not None else None
    return AssignRoomsOut(message=result.message, group=GroupOut.model_validate(result.group), folio=folio)

@router.post("/{group_id}/check-out", response_model=GroupOut)
def check_out_group(group_id: int, prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    return groups.check_out_group(db, prop.id, group_id)

@router.post("/{group_id}/cancel", response_model=GroupOut)
def cancel_group(group_id: int, prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    return groups.cancel_group(db, prop.id, group_id)
