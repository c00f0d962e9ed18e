from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Property
from ..schemas import CamelModel
from ..security import require_property
from ..services.dates import parse_date, parse_range
from ..stores import calculator_for, get_room_type

router = APIRouter(prefix="/api/v1/availability", tags=["availability"])

# ==== Schemas ====

class AvailabilityCheckIn(CamelModel):
    room_type_id: int
    check_in_date: str
    check_out_date: str

class AvailabilityOut(CamelModel):
    room_type_id: int
    check_in_date: str
    check_out_date: str
    overall_available: bool
    min_available_count: int
    daily_availability: dict[str, int]
    overbooked: dict[str, int]

class OccupancyOut(CamelModel):
    room_type_id: int
    date: str
    occupancy_percent: float

# ==== Endpoints ====

@router.post("/check", response_model=AvailabilityOut)
def check_availability(payload: AvailabilityCheckIn, prop: Property = Depends(require_property),
                       db: Session = Depends(get_db)):
    start, end = parse_range(payload.check_in_date, payload.check_out_date)
    room_type = get_room_type(db, prop.id, payload.room_type_id)
    report = calculator_for(db, prop.id).report(room_type, start, end)
    return AvailabilityOut(
        room_type_id=room_type.id,
        check_in_date=start.isoformat(),
        check_out_date=end.isoformat(),
        overall_available=report.overall_available,
        min_available_count=max(0, report.min_available),
        daily_availability={d.isoformat(): n for d, n in report.display.items()},
        overbooked={d.isoformat(): n for d, n in report.overbooked.items()},
    )

@router.get("/occupancy", response_model=OccupancyOut)
def get_occupancy(room_type_id: int = Query(..., alias="roomTypeId"), day: str = Query(..., alias="date"),
                  prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    d = parse_date(day)
    room_type = get_room_type(db, prop.id, room_type_id)
    percent = calculator_for(db, prop.id).occupancy_percent(room_type, d)
    return OccupancyOut(room_type_id=room_type.id, date=d.isoformat(), occupancy_percent=round(percent, 2))
