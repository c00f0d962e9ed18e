from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..limiter import limiter
from ..models import BlockType, Property
from ..schemas import CamelModel, ReservationOut, camel_keys
from ..security import require_property
from ..services import holds

router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"])

# ==== Schemas ====

class BlockIn(CamelModel):
    room_type_id: int
    dates: list[str]
    blocked_inventory: int
    reason: Optional[str] = None
    block_type: BlockType = BlockType.OUT_OF_ORDER

class UnblockIn(CamelModel):
    room_type_id: int
    dates: list[str]

class BlockOut(CamelModel):
    id: int
    room_type_id: int
    date: str
    blocked_inventory: int
    reason: Optional[str] = None
    block_type: BlockType
    created_by: str

class HoldIn(CamelModel):
    room_type_id: int
    check_in_date: str
    check_out_date: str
    number_of_rooms: int = 1
    ttl_minutes: Optional[int] = None

class HoldOut(CamelModel):
    token: str
    room_type_id: int
    check_in_date: str
    check_out_date: str
    number_of_rooms: int
    expires_at: datetime

class ConfirmHoldIn(CamelModel):
    guest_name: str
    total_amount: Optional[float] = None

def _room_type_summary(rt) -> dict:
    return {
        "id": rt.id,
        "name": rt.name,
        "totalInventory": rt.total_inventory or 0,
        "priceModel": rt.price_model.value,
        "baseRate": float(rt.base_rate or 0),
        "extraGuestRate": float(rt.extra_guest_rate or 0),
        "adultRate": float(rt.adult_rate or 0),
        "childRate": float(rt.child_rate or 0),
    }

# ==== Endpoints ====

@router.get("/monthly")
def monthly_inventory(month: int = Query(...), year: int = Query(...),
                      prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    grid = holds.monthly_inventory(db, prop.id, year, month)
    return {
        "month": grid["month"],
        "year": grid["year"],
        "daysInMonth": grid["days_in_month"],
        "roomTypes": [_room_type_summary(rt) for rt in grid["room_types"]],
        "dailyInventory": {
            day.isoformat(): {str(rt_id): camel_keys(cell) for rt_id, cell in cells.items()}
            for day, cells in grid["daily_inventory"].items()
        },
    }

@router.get("/availability")
def room_availability(room_type_id: int = Query(..., alias="roomTypeId"), day: Optional[str] = Query(None, alias="date"),
                      prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    view = holds.room_status_availability(db, prop.id, day, room_type_id=room_type_id)
    entry = view["room_types"][0]
    return {
        "date": view["date"].isoformat(),
        "roomType": _room_type_summary(entry["room_type"]),
        "roomStatus": entry["room_status"],
        "availability": camel_keys(entry["availability"]),
    }

@router.get("/room-types-availability")
def room_types_availability(day: Optional[str] = Query(None, alias="date"),
                            prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    view = holds.room_status_availability(db, prop.id, day)
    return {
        "date": view["date"].isoformat(),
        "roomTypes": [
            {
                **_room_type_summary(entry["room_type"]),
                "roomStatus": entry["room_status"],
                "availability": camel_keys(entry["availability"]),
            }
            for entry in view["room_types"]
        ],
    }

@router.post("/block")
@limiter.limit(settings.RATE_LIMIT_WRITE)
def block_inventory(request: Request, payload: BlockIn, prop: Property = Depends(require_property),
                    db: Session = Depends(get_db)):
    modified, created = holds.block_inventory(
        db, prop.id, payload.room_type_id, payload.dates, payload.blocked_inventory,
        reason=payload.reason, block_type=payload.block_type,
    )
    return {
        "message": f"Inventory blocked for {len(payload.dates)} day(s). Modified: {modified}, Created: {created}.",
        "modified": modified,
        "created": created,
    }

@router.delete("/block")
@limiter.limit(settings.RATE_LIMIT_WRITE)
def unblock_inventory(request: Request, payload: UnblockIn = Body(...), prop: Property = Depends(require_property),
                      db: Session = Depends(get_db)):
    removed = holds.unblock_inventory(db, prop.id, payload.room_type_id, payload.dates)
    return {"message": f"Removed {removed} inventory block(s).", "removed": removed}

@router.get("/blocks", response_model=list[BlockOut])
def list_blocks(room_type_id: int = Query(..., alias="roomTypeId"),
                start_date: Optional[str] = Query(None, alias="startDate"),
                end_date: Optional[str] = Query(None, alias="endDate"),
                prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    rows = holds.list_blocks(db, prop.id, room_type_id, start_date, end_date)
    return [
        BlockOut(id=h.id, room_type_id=h.room_type_id, date=h.date.isoformat(), blocked_inventory=h.blocked_inventory,
                 reason=h.reason, block_type=h.block_type, created_by=h.created_by)
        for h in rows
    ]

@router.post("/holds", response_model=HoldOut, status_code=201)
@limiter.limit(settings.RATE_LIMIT_WRITE)
def place_hold(request: Request, payload: HoldIn, prop: Property = Depends(require_property),
               db: Session = Depends(get_db)):
    receipt = holds.place_hold(
        db, prop.id, payload.room_type_id, payload.check_in_date, payload.check_out_date,
        rooms=payload.number_of_rooms, ttl_minutes=payload.ttl_minutes,
    )
    return HoldOut(
        token=receipt.token,
        room_type_id=receipt.room_type_id,
        check_in_date=receipt.check_in.isoformat(),
        check_out_date=receipt.check_out.isoformat(),
        number_of_rooms=receipt.rooms,
        expires_at=receipt.expires_at,
    )

@router.post("/holds/{token}/confirm", response_model=ReservationOut, status_code=201)
@limiter.limit(settings.RATE_LIMIT_WRITE)
def confirm_hold(request: Request, token: str, payload: ConfirmHoldIn, prop: Property = Depends(require_property),
                 db: Session = Depends(get_db)):
    return holds.confirm_hold(db, prop.id, token, payload.guest_name, total_amount=payload.total_amount)

@router.delete("/holds/{token}")
def release_hold(token: str, prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    removed = holds.release_hold(db, prop.id, token)
    return {"message": f"Hold released ({removed} day(s)).", "released": removed}
