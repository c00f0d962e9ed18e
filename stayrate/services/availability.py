"""
Finite-inventory availability calculator.

Everything here is a pure function of the inputs handed over by an
``AvailabilityStore`` (implemented in ``stayrate.stores``): reservations as ``Stay``
intervals and inventory holds as per-day ``Hold`` entries. No query is issued
per day; a range is computed with one sweep over delta events.

A reservation occupies day ``d`` iff ``check_in <= d < check_out``. The
checkout day itself is free. Every consumer (plain availability, pricing,
group validation) goes through the functions in this module, so the rule is
applied the same way everywhere.
"""
from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Protocol

from .dates import iter_dates


@dataclass(frozen=True)
class Stay:
    """A committed reservation as seen by the calculator."""
    check_in: date
    check_out: date
    number_of_rooms: int = 1
    room_ids: frozenset[int] = frozenset()


@dataclass(frozen=True)
class Hold:
    date: date
    blocked_inventory: int


class InventorySource(Protocol):
    """Anything with an id and a total inventory count (a RoomType row fits)."""
    id: int
    total_inventory: int


class AvailabilityStore(Protocol):
    def stays(self, room_type_id: int, start: date, end: date) -> list[Stay]: ...

    def holds(self, room_type_id: int, start: date, end: date) -> list[Hold]: ...


def overlaps(check_in: date, check_out: date, day: date) -> bool:
    return check_in <= day < check_out


def _clip(stay: Stay, start: date, end: date) -> tuple[date, date] | None:
    lo = max(stay.check_in, start)
    hi = min(stay.check_out, end)
    if lo >= hi:
        return None
    return lo, hi


def committed_by_day(stays: Iterable[Stay], start: date, end: date) -> dict[date, int]:
    """Rooms consumed per day of ``[start, end)``: +n at check-in, -n at check-out, running sum."""
    deltas: dict[date, int] = defaultdict(int)
    for stay in stays:
        span = _clip(stay, start, end)
        if span is None:
            continue
        deltas[span[0]] += stay.number_of_rooms
        deltas[span[1]] -= stay.number_of_rooms
    out: dict[date, int] = {}
    running = 0
    for day in iter_dates(start, end):
        running += deltas.get(day, 0)
        out[day] = running
    return out


def blocked_by_day(holds: Iterable[Hold], start: date, end: date) -> dict[date, int]:
    out = {day: 0 for day in iter_dates(start, end)}
    for hold in holds:
        if hold.date in out:
            out[hold.date] += hold.blocked_inventory
    return out


def occupied_by_day(stays: Iterable[Stay], start: date, end: date) -> dict[date, int]:
    """
    Occupied units per day for occupancy percentages.

    Reservations with assigned rooms contribute their distinct room units
    (a unit shared by two overlapping reservations counts once); rooms of a
    reservation not yet tied to a unit count by number.
    """
    unassigned: dict[date, int] = defaultdict(int)
    arrivals: dict[date, list[frozenset[int]]] = defaultdict(list)
    departures: dict[date, list[frozenset[int]]] = defaultdict(list)
    for stay in stays:
        span = _clip(stay, start, end)
        if span is None:
            continue
        lo, hi = span
        if stay.room_ids:
            arrivals[lo].append(stay.room_ids)
            departures[hi].append(stay.room_ids)
        remainder = max(0, stay.number_of_rooms - len(stay.room_ids))
        if remainder:
            unassigned[lo] += remainder
            unassigned[hi] -= remainder

    active: Counter = Counter()
    running = 0
    out: dict[date, int] = {}
    for day in iter_dates(start, end):
        running += unassigned.get(day, 0)
        for ids in departures.get(day, ()):
            active.subtract(ids)
        for ids in arrivals.get(day, ()):
            active.update(ids)
        out[day] = running + sum(1 for count in active.values() if count > 0)
    return out


def occupancy_percent(occupied: int, total_inventory: int) -> float:
    if total_inventory <= 0:
        return 0.0
    return occupied / total_inventory * 100


@dataclass
class AvailabilityReport:
    """
    Availability of one room type over ``[start, end)``.

    ``daily`` keeps the raw signed count (negative means overbooked) and is
    what capacity checks use; ``display`` clamps at zero for callers that show
    counts to people.
    """
    room_type_id: int
    total_inventory: int
    start: date
    end: date
    committed: dict[date, int] = field(default_factory=dict)
    blocked: dict[date, int] = field(default_factory=dict)

    @property
    def daily(self) -> dict[date, int]:
        return {
            day: self.total_inventory - self.committed.get(day, 0) - self.blocked.get(day, 0)
            for day in iter_dates(self.start, self.end)
        }

    @property
    def display(self) -> dict[date, int]:
        return {day: max(0, n) for day, n in self.daily.items()}

    @property
    def min_available(self) -> int:
        daily = self.daily
        return min(daily.values()) if daily else self.total_inventory

    @property
    def overall_available(self) -> bool:
        """True when at least one room is free on every night of the range."""
        return self.min_available > 0

    @property
    def overbooked(self) -> dict[date, int]:
        """Days where commitments exceed inventory, with the deficit."""
        return {day: -n for day, n in self.daily.items() if n < 0}

    def can_fit(self, rooms: int) -> bool:
        return rooms <= self.min_available

    def shortfalls(self, rooms: int) -> list[tuple[date, int]]:
        """Every day on which ``rooms`` would not fit, with what is left that day."""
        return [(day, n) for day, n in self.daily.items() if n < rooms]


def build_report(room_type_id: int, total_inventory: int, stays: Iterable[Stay],
                 holds: Iterable[Hold], start: date, end: date) -> AvailabilityReport:
    return AvailabilityReport(
        room_type_id=room_type_id,
        total_inventory=total_inventory,
        start=start,
        end=end,
        committed=committed_by_day(stays, start, end),
        blocked=blocked_by_day(holds, start, end),
    )


class AvailabilityCalculator:
    """Fetches a range once from the store, then computes in memory."""

    def __init__(self, store: AvailabilityStore):
        self.store = store

    def report(self, room_type: InventorySource, start: date, end: date) -> AvailabilityReport:
        stays = self.store.stays(room_type.id, start, end)
        holds = self.store.holds(room_type.id, start, end)
        return build_report(room_type.id, room_type.total_inventory or 0, stays, holds, start, end)

    def daily_availability(self, room_type: InventorySource, start: date, end: date) -> dict[date, int]:
        return self.report(room_type, start, end).daily

    def occupancy_by_day(self, room_type: InventorySource, start: date, end: date) -> dict[date, float]:
        stays = self.store.stays(room_type.id, start, end)
        occupied = occupied_by_day(stays, start, end)
        total = room_type.total_inventory or 0
        return {day: occupancy_percent(n, total) for day, n in occupied.items()}

    def occupancy_percent(self, room_type: InventorySource, day: date) -> float:
        return self.occupancy_by_day(room_type, day, day + timedelta(days=1))[day]
