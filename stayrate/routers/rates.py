from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..limiter import limiter
from ..models import Property
from ..schemas import CamelModel, by_day, camel_keys
from ..security import require_property
from ..services import rates

router = APIRouter(prefix="/api/v1/rates", tags=["rates"])

# ==== Schemas ====

class SetRatesIn(CamelModel):
    room_type_id: int
    dates: list[str]
    price_model: str
    adult_price: Optional[float] = None
    child_price: Optional[float] = None
    base_rate: Optional[float] = None
    extra_guest_rate: Optional[float] = None

class SetRatesOut(CamelModel):
    message: str
    modified: int
    created: int
    updated_rates: dict[str, dict[str, float]]

# ==== Endpoints ====

@router.post("", response_model=SetRatesOut)
@limiter.limit(settings.RATE_LIMIT_WRITE)
def set_rates(request: Request, payload: SetRatesIn, prop: Property = Depends(require_property),
              db: Session = Depends(get_db)):
    if payload.price_model == "perPerson":
        primary, secondary = payload.adult_price, payload.child_price
    else:
        primary, secondary = payload.base_rate, payload.extra_guest_rate
    result = rates.set_rates(db, prop.id, payload.room_type_id, payload.dates, payload.price_model, primary, secondary)
    return SetRatesOut(
        message=result.message,
        modified=result.modified,
        created=result.created,
        updated_rates=by_day(result.rates),
    )

@router.get("")
def get_month_rates(room_type_id: int = Query(..., alias="roomTypeId"), month: int = Query(...), year: int = Query(...),
                    prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    return by_day(rates.month_rates(db, prop.id, room_type_id, year, month))

@router.get("/date")
def get_rate_for_date(room_type_id: int = Query(..., alias="roomTypeId"), day: str = Query(..., alias="date"),
                      prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    return camel_keys(rates.rate_for_date(db, prop.id, room_type_id, day))
