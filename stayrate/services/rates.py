"""Manual per-date rate overrides: bulk upsert and reads."""
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import ManualRate, PriceModel, PRICE_FIELDS
from ..stores import SqlRateStore, get_room_type
from .dates import month_bounds, parse_date, parse_date_list

logger = logging.getLogger(__name__)

# Input names per price model, as callers send them.
_REQUIRED_INPUT = {PriceModel.PER_PERSON: "adultPrice", PriceModel.PER_ROOM: "baseRate"}
_OPTIONAL_INPUT = {PriceModel.PER_PERSON: "childPrice", PriceModel.PER_ROOM: "extraGuestRate"}


@dataclass
class RateUpdateResult:
    requested_days: int
    modified: int
    created: int
    rates: dict[date, dict[str, float]] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return (
            f"Rates processed for {self.requested_days} day(s). "
            f"Modified: {self.modified}, Created: {self.created}."
        )


def _price_model(value) -> PriceModel:
    try:
        return PriceModel(value)
    except ValueError:
        raise ValidationError("priceModel must be either 'perPerson' or 'perRoom'")


def _price(value, name: str, required: bool) -> Optional[float]:
    if value is None:
        if required:
            raise ValidationError(f"Missing or invalid {name}.")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"Missing or invalid {name}.")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Missing or invalid {name}.")
    if not math.isfinite(number):
        raise ValidationError(f"Missing or invalid {name}.")
    if number < 0:
        raise ValidationError(f"{name} cannot be negative.")
    return number


def set_rates(
    db: Session,
    property_id: int,
    room_type_id: int,
    dates: list,
    price_model,
    primary=None,
    secondary=None,
) -> RateUpdateResult:
    """
    Upsert one ManualRate per requested date.

    ``primary`` is the adult price (perPerson) or base rate (perRoom);
    ``secondary`` is the child price or extra guest rate and defaults to 0.
    All dates are validated before anything is written; the whole batch is one
    transaction.
    """
    model = _price_model(price_model)
    primary_value = _price(primary, _REQUIRED_INPUT[model], required=True)
    secondary_value = _price(secondary, _OPTIONAL_INPUT[model], required=False) or 0.0
    days = parse_date_list(dates)

    room_type = get_room_type(db, property_id, room_type_id)
    if PriceModel(room_type.price_model) != model:
        raise ValidationError(
            f"Room type uses the {PriceModel(room_type.price_model).value} price model, not {model.value}."
        )

    primary_field, secondary_field = PRICE_FIELDS[model]
    existing = SqlRateStore(db, property_id).manual_rates(room_type_id, days[0], days[-1] + timedelta(days=1))
    modified = created = 0
    now = datetime.utcnow()
    try:
        for day in days:
            row = existing.get(day)
            if row is None:
                row = ManualRate(property_id=property_id, room_type_id=room_type_id, date=day)
                db.add(row)
                created += 1
            else:
                row.updated_at = now
                modified += 1
            setattr(row, primary_field, primary_value)
            setattr(row, secondary_field, secondary_value)
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Manual rate upsert collided for room type %s", room_type_id)
        raise ConflictError("Concurrency error or duplicate rate entry detected.")

    stored = SqlRateStore(db, property_id).manual_rates(room_type_id, days[0], days[-1] + timedelta(days=1))
    submitted = {primary_field: primary_value, secondary_field: secondary_value}
    rates = {}
    for day in days:
        row = stored.get(day)
        rates[day] = row.values(PRICE_FIELDS[model]) if row is not None else dict(submitted)
    logger.info(
        "Manual rates for room type %s: %d modified, %d created", room_type_id, modified, created
    )
    return RateUpdateResult(requested_days=len(dates), modified=modified, created=created, rates=rates)


def month_rates(db: Session, property_id: int, room_type_id: int, year: int, month: int) -> dict[date, dict[str, float]]:
    """Stored overrides of one month, keyed by date, in the room type's price fields."""
    room_type = get_room_type(db, property_id, room_type_id)
    start, end = month_bounds(year, month)
    rows = SqlRateStore(db, property_id).manual_rates(room_type_id, start, end)
    return {day: row.values(room_type.price_fields) for day, row in sorted(rows.items())}


def rate_for_date(db: Session, property_id: int, room_type_id: int, day) -> dict[str, float]:
    room_type = get_room_type(db, property_id, room_type_id)
    day = parse_date(day)
    row = db.scalars(
        select(ManualRate).where(
            ManualRate.property_id == property_id,
            ManualRate.room_type_id == room_type_id,
            ManualRate.date == day,
        )
    ).first()
    if row is None:
        raise NotFoundError(f"No rate set for {day.isoformat()}.")
    return row.values(room_type.price_fields)
