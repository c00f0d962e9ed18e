"""
Date-indexed price resolution.

For each date the first source that applies wins:

1. a manual rate stored for that date,
2. the room type's dynamic rule, when enabled, driven by occupancy,
3. the room type's base rate fields.

A range is resolved from one fetch of each input; nothing is queried per day.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, Optional

from .availability import AvailabilityCalculator
from .dates import iter_dates
from ..stores import RateStore, RuleStore, SqlRateStore, SqlRuleStore, calculator_for

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


class PriceSource(str, Enum):
    MANUAL = "manual"
    DYNAMIC = "dynamic"
    BASE = "base"


@dataclass
class ResolvedPrice:
    date: date
    rates: dict[str, float]
    source: PriceSource
    occupancy_percent: Optional[float] = None


def _dec(value) -> Decimal:
    return Decimal(str(value or 0))


def matching_tier(tiers: Iterable, occupancy: float):
    """First enabled tier whose inclusive range contains ``occupancy``, else None."""
    for tier in tiers:
        if tier.enabled and tier.start_percent <= occupancy <= tier.end_percent:
            return tier
    return None


def apply_dynamic_rule(base_rates: dict[str, float], rule, occupancy: float) -> dict[str, float]:
    """
    Price every field of ``base_rates`` under ``rule`` at the given occupancy.

    ``price = base * demand_scale``; the matching tier adds ``add_subtract_1``,
    multiplies by ``multiplier`` when it is positive, then adds
    ``add_subtract_2``. A round-off above 1 rounds half-up to the nearest
    multiple. Prices never go below zero.
    """
    scale = _dec(rule.demand_scale)
    round_off = int(rule.rate_round_off or 1)
    tier = matching_tier(rule.occupancy_rules, occupancy)
    out = {}
    for name, base in base_rates.items():
        price = _dec(base) * scale
        if tier is not None:
            price += _dec(tier.add_subtract_1)
            multiplier = _dec(tier.multiplier)
            if multiplier > 0:
                price *= multiplier
            price += _dec(tier.add_subtract_2)
        if round_off > 1:
            step = Decimal(round_off)
            price = (price / step).quantize(Decimal(1), rounding=ROUND_HALF_UP) * step
        price = max(price, Decimal(0))
        out[name] = float(price.quantize(_CENT, rounding=ROUND_HALF_UP))
    return out


class PricingResolver:
    def __init__(self, rates: RateStore, rules: RuleStore, calculator: AvailabilityCalculator):
        self.rates = rates
        self.rules = rules
        self.calculator = calculator

    def price_for_range(self, room_type, start: date, end: date) -> list[ResolvedPrice]:
        """Resolved price for every night of ``[start, end)``."""
        fields = room_type.price_fields
        manual = self.rates.manual_rates(room_type.id, start, end)
        rule = self.rules.rule_for(room_type.id)
        dynamic = rule is not None and rule.enabled
        occupancy = self.calculator.occupancy_by_day(room_type, start, end) if dynamic else {}
        base = room_type.base_rates()

        out = []
        for day in iter_dates(start, end):
            row = manual.get(day)
            if row is not None:
                out.append(ResolvedPrice(day, row.values(fields), PriceSource.MANUAL))
            elif dynamic:
                occ = occupancy.get(day, 0.0)
                out.append(ResolvedPrice(day, apply_dynamic_rule(base, rule, occ), PriceSource.DYNAMIC, occ))
            else:
                out.append(ResolvedPrice(day, dict(base), PriceSource.BASE))
        logger.debug("Resolved %d price(s) for room type %s from %s", len(out), room_type.id, start)
        return out

    def price_for_date(self, room_type, day: date) -> ResolvedPrice:
        return self.price_for_range(room_type, day, day + timedelta(days=1))[0]


def resolver_for(db, property_id: int) -> PricingResolver:
    """A resolver reading the property's rates, rule and bookings from the session."""
    return PricingResolver(SqlRateStore(db, property_id), SqlRuleStore(db, property_id), calculator_for(db, property_id))
