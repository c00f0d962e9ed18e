"""Dynamic pricing rule configuration per room type."""
import logging
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import ValidationError
from ..models import DynamicPricingRule, OccupancyRule
from ..stores import SqlRuleStore, get_room_type

logger = logging.getLogger(__name__)

_TIER_DEFAULTS = {"add_subtract_1": 0.0, "multiplier": 1.0, "add_subtract_2": 0.0, "enabled": True}


def get_or_create_rule(db: Session, property_id: int, room_type_id: int) -> DynamicPricingRule:
    """Return the room type's rule, creating a disabled default on first read."""
    get_room_type(db, property_id, room_type_id)
    store = SqlRuleStore(db, property_id)
    rule = store.rule_for(room_type_id)
    if rule is not None:
        return rule
    rule = DynamicPricingRule(property_id=property_id, room_type_id=room_type_id, enabled=False,
                              demand_scale=1.0, rate_round_off=1)
    db.add(rule)
    try:
        db.commit()
    except IntegrityError:
        # Another request created it first.
        db.rollback()
        return store.rule_for(room_type_id)
    logger.info("Created default pricing rule for room type %s", room_type_id)
    db.refresh(rule)
    return rule


def validate_tiers(tiers: Iterable[dict]) -> list[dict]:
    """
    Normalise occupancy tiers and check they are usable.

    Each tier needs ``0 <= start_percent < end_percent <= 100`` and a
    non-negative multiplier. Tiers must be given in ascending order without
    overlap; a shared boundary is allowed and the earlier tier wins there.
    """
    out = []
    previous_end: Optional[float] = None
    for i, raw in enumerate(tiers):
        tier = {**_TIER_DEFAULTS, **{k: v for k, v in raw.items() if v is not None}}
        try:
            start = float(tier["start_percent"])
            end = float(tier["end_percent"])
            multiplier = float(tier["multiplier"])
            add1 = float(tier["add_subtract_1"])
            add2 = float(tier["add_subtract_2"])
        except KeyError as exc:
            raise ValidationError(f"Occupancy rule {i + 1} is missing {exc.args[0]}")
        except (TypeError, ValueError):
            raise ValidationError(f"Occupancy rule {i + 1} has a non-numeric value")
        if not 0 <= start < end <= 100:
            raise ValidationError(f"Occupancy rule {i + 1} must satisfy 0 <= startPercent < endPercent <= 100")
        if multiplier < 0:
            raise ValidationError(f"Occupancy rule {i + 1} multiplier cannot be negative")
        if previous_end is not None and start < previous_end:
            raise ValidationError(f"Occupancy rule {i + 1} overlaps the previous rule")
        previous_end = end
        out.append({
            "start_percent": start,
            "end_percent": end,
            "add_subtract_1": add1,
            "multiplier": multiplier,
            "add_subtract_2": add2,
            "enabled": bool(tier["enabled"]),
        })
    return out


def update_rule(
    db: Session,
    property_id: int,
    room_type_id: int,
    enabled: bool,
    demand_scale: float = 1.0,
    rate_round_off: int = 1,
    occupancy_rules: Iterable[dict] = (),
) -> DynamicPricingRule:
    """Replace the whole configuration of a room type's rule."""
    if demand_scale is None or float(demand_scale) < 0:
        raise ValidationError("demandScale cannot be negative")
    if rate_round_off is None or int(rate_round_off) != rate_round_off or rate_round_off < 1:
        raise ValidationError("rateRoundOff must be an integer of at least 1")
    tiers = validate_tiers(occupancy_rules)

    rule = get_or_create_rule(db, property_id, room_type_id)
    rule.enabled = bool(enabled)
    rule.demand_scale = float(demand_scale)
    rule.rate_round_off = int(rate_round_off)
    rule.occupancy_rules.clear()
    db.flush()
    for position, tier in enumerate(tiers):
        rule.occupancy_rules.append(OccupancyRule(position=position, **tier))
    db.commit()
    db.refresh(rule)
    logger.info(
        "Pricing rule for room type %s updated (enabled=%s, %d tiers)", room_type_id, rule.enabled, len(tiers)
    )
    return rule
