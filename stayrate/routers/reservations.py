from typing import Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..limiter import limiter
from ..models import Property, ReservationStatus
from ..schemas import CamelModel, ReservationOut
from ..security import require_property
from ..services import reservations

router = APIRouter(prefix="/api/v1/reservations", tags=["reservations"])

# ==== Schemas ====

class ReservationCreateIn(CamelModel):
    room_type_id: int
    guest_name: str
    check_in_date: str
    check_out_date: str
    number_of_rooms: int = 1
    room_ids: list[int] = []
    total_amount: Optional[float] = None

class StatusIn(CamelModel):
    status: ReservationStatus

# ==== Endpoints ====

@router.post("", response_model=ReservationOut, status_code=201)
@limiter.limit(settings.RATE_LIMIT_WRITE)
def create_reservation(request: Request, payload: ReservationCreateIn, prop: Property = Depends(require_property),
                       db: Session = Depends(get_db)):
    return reservations.create_reservation(
        db, prop.id, payload.room_type_id, payload.guest_name,
        payload.check_in_date, payload.check_out_date,
        number_of_rooms=payload.number_of_rooms,
        room_ids=payload.room_ids,
        total_amount=payload.total_amount,
    )

@router.get("/{reservation_id}", response_model=ReservationOut)
def get_reservation(reservation_id: int, prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    return reservations.get_reservation(db, prop.id, reservation_id)

@router.patch("/{reservation_id}/status", response_model=ReservationOut)
@limiter.limit(settings.RATE_LIMIT_WRITE)
def change_status(request: Request, reservation_id: int, payload: StatusIn,
                  prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    return reservations.change_reservation_status(db, prop.id, reservation_id, payload.status)
