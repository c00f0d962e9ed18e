from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..errors import ValidationError
from ..limiter import limiter
from ..models import Property
from ..schemas import CamelModel, camel_keys
from ..security import require_property
from ..services import rules
from ..services.dates import parse_date, parse_range
from ..services.pricing import ResolvedPrice, resolver_for
from ..stores import get_room_type

router = APIRouter(prefix="/api/v1/pricing", tags=["pricing"])

# ==== Schemas ====

class OccupancyTier(CamelModel):
    start_percent: float
    end_percent: float
    add_subtract_1: float = 0
    multiplier: float = 1
    add_subtract_2: float = 0
    enabled: bool = True

class PricingRuleIn(CamelModel):
    enabled: bool
    demand_scale: float = 1.0
    rate_round_off: int = 1
    occupancy_rules: list[OccupancyTier] = []

class PricingRuleOut(CamelModel):
    room_type_id: int
    enabled: bool
    demand_scale: float
    rate_round_off: int
    occupancy_rules: list[OccupancyTier]

# ==== Helpers ====

def _price_out(price: ResolvedPrice) -> dict:
    out = {"date": price.date.isoformat(), "source": price.source.value, "rates": camel_keys(price.rates)}
    if price.occupancy_percent is not None:
        out["occupancyPercent"] = round(price.occupancy_percent, 2)
    return out

# ==== Endpoints ====

@router.get("/price")
def get_price(room_type_id: int = Query(..., alias="roomTypeId"),
              day: Optional[str] = Query(None, alias="date"),
              start_date: Optional[str] = Query(None, alias="startDate"),
              end_date: Optional[str] = Query(None, alias="endDate"),
              prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    """Resolved price for one date, or for every night of ``[startDate, endDate)``."""
    resolver = resolver_for(db, prop.id)
    if day is not None:
        d = parse_date(day)
        room_type = get_room_type(db, prop.id, room_type_id)
        price = resolver.price_for_date(room_type, d)
        return {"roomTypeId": room_type.id, "priceModel": room_type.price_model.value, **_price_out(price)}
    if start_date is None or end_date is None:
        raise ValidationError("Provide either date or both startDate and endDate.")
    start, end = parse_range(start_date, end_date, "startDate", "endDate")
    room_type = get_room_type(db, prop.id, room_type_id)
    prices = resolver.price_for_range(room_type, start, end)
    return {
        "roomTypeId": room_type.id,
        "priceModel": room_type.price_model.value,
        "prices": [_price_out(p) for p in prices],
    }

@router.get("/rules/{room_type_id}", response_model=PricingRuleOut)
def get_rule(room_type_id: int, prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    return rules.get_or_create_rule(db, prop.id, room_type_id)

@router.put("/rules/{room_type_id}", response_model=PricingRuleOut)
@limiter.limit(settings.RATE_LIMIT_WRITE)
def put_rule(request: Request, room_type_id: int, payload: PricingRuleIn,
             prop: Property = Depends(require_property), db: Session = Depends(get_db)):
    return rules.update_rule(
        db, prop.id, room_type_id,
        enabled=payload.enabled,
        demand_scale=payload.demand_scale,
        rate_round_off=payload.rate_round_off,
        occupancy_rules=[t.model_dump() for t in payload.occupancy_rules],
    )
