"""Thin access to the room catalog the core reads from."""
import math
from typing import Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..errors import ConflictError, ValidationError
from ..limiter import limiter
from ..models import PriceModel, Property, Room, RoomStatus, RoomType
from ..schemas import CamelModel, RoomOut, RoomTypeOut
from ..security import issue_property_token, require_property
from ..stores import get_room_type

router = APIRouter(prefix="/api/v1", tags=["catalog"])

# ==== Schemas ====

class PropertyIn(CamelModel):
    name: str

class PropertyOut(CamelModel):
    id: int
    name: str
    token: str

class RoomTypeIn(CamelModel):
    name: str
    description: Optional[str] = None
    total_inventory: int
    base_occupancy: int = 1
    max_occupancy: int = 2
    price_model: PriceModel = PriceModel.PER_ROOM
    base_rate: float = 0
    extra_guest_rate: float = 0
    adult_rate: Optional[float] = None
    child_rate: Optional[float] = None

class RoomIn(CamelModel):
    room_type_id: int
    room_number: str
    status: RoomStatus = RoomStatus.CLEAN

# ==== Endpoints ====

@router.post("/properties", response_model=PropertyOut, status_code=201)
@limiter.limit(settings.RATE_LIMIT_WRITE)
def create_property(request: Request, payload: PropertyIn, db: Session = Depends(get_db)):
    """Register a property and hand out the token that scopes later calls to it."""
    if not payload.name.strip():
        raise ValidationError("name is required.")
    prop = Property(name=payload.name.strip())
    db.add(prop)
    db.commit()
    db.refresh(prop)
    return PropertyOut(id=prop.id, name=prop.name, token=issue_property_token(prop.id))

@router.get("/room-types", response_model=list[RoomTypeOut])
def list_room_types(prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    return db.scalars(select(RoomType).where(RoomType.property_id == prop.id).order_by(RoomType.id)).all()

@router.post("/room-types", response_model=RoomTypeOut, status_code=201)
@limiter.limit(settings.RATE_LIMIT_WRITE)
def create_room_type(request: Request, payload: RoomTypeIn, prop: Property = Depends(require_property),
                     db: Session = Depends(get_db)):
    if payload.total_inventory < 0:
        raise ValidationError("totalInventory cannot be negative.")
    rates = [payload.base_rate, payload.extra_guest_rate, payload.adult_rate or 0, payload.child_rate or 0]
    if not all(math.isfinite(r) for r in rates):
        raise ValidationError("Rates must be finite numbers.")
    if min(rates) < 0:
        raise ValidationError("Rates cannot be negative.")
    room_type = RoomType(property_id=prop.id, **payload.model_dump())
    db.add(room_type)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"A room type named {payload.name} already exists.")
    db.refresh(room_type)
    return room_type

@router.get("/rooms", response_model=list[RoomOut])
def list_rooms(room_type_id: Optional[int] = None, prop: Property = Depends(require_property),
               db: Session = Depends(get_db)):
    q = select(Room).where(Room.property_id == prop.id)
    if room_type_id is not None:
        q = q.where(Room.room_type_id == room_type_id)
    return db.scalars(q.order_by(Room.id)).all()

@router.post("/rooms", response_model=RoomOut, status_code=201)
@limiter.limit(settings.RATE_LIMIT_WRITE)
def create_room(request: Request, payload: RoomIn, prop: Property = Depends(require_property),
                db: Session = Depends(get_db)):
    get_room_type(db, prop.id, payload.room_type_id)
    room = Room(property_id=prop.id, **payload.model_dump())
    db.add(room)
    db.commit()
    db.refresh(room)
    return room
