from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest

from stayrate.errors import ValidationError
from stayrate.models import HoldKind, InventoryHold, Reservation, ReservationStatus
from stayrate.services.availability import (
    AvailabilityCalculator,
    Hold,
    Stay,
    build_report,
    committed_by_day,
    occupied_by_day,
)
from stayrate.services.dates import iter_dates, month_bounds, parse_date, parse_range
from stayrate.stores import calculator_for


class FakeStore:
    def __init__(self, stays=(), holds=()):
        self._stays = list(stays)
        self._holds = list(holds)

    def stays(self, room_type_id, start, end):
        return self._stays

    def holds(self, room_type_id, start, end):
        return self._holds


TEN = SimpleNamespace(id=1, total_inventory=10)


class TestDates:
    def test_parse_date_accepts_iso_and_date_objects(self):
        assert parse_date("2024-02-29") == date(2024, 2, 29)
        assert parse_date(date(2024, 1, 1)) == date(2024, 1, 1)
        assert parse_date(datetime(2024, 1, 1, 13, 30)) == date(2024, 1, 1)

    @pytest.mark.parametrize("value", ["2024-13-01", "01/02/2024", "", None, "2024-1-1"])
    def test_parse_date_rejects_bad_input(self, value):
        with pytest.raises(ValidationError):
            parse_date(value)

    def test_range_must_move_forward(self):
        with pytest.raises(ValidationError):
            parse_range("2024-01-02", "2024-01-02")

    def test_range_is_bounded(self):
        with pytest.raises(ValidationError):
            parse_range("2024-01-01", "2026-01-01")

    def test_iter_dates_is_half_open(self):
        assert list(iter_dates(date(2024, 1, 30), date(2024, 2, 2))) == [
            date(2024, 1, 30), date(2024, 1, 31), date(2024, 2, 1),
        ]

    def test_month_bounds_december(self):
        assert month_bounds(2024, 12) == (date(2024, 12, 1), date(2025, 1, 1))
        with pytest.raises(ValidationError):
            month_bounds(2024, 13)


class TestCalculator:
    def test_empty_calendar_is_fully_available(self):
        calc = AvailabilityCalculator(FakeStore())
        daily = calc.daily_availability(TEN, date(2024, 3, 1), date(2024, 3, 8))
        assert len(daily) == 7
        assert set(daily.values()) == {10}

    def test_checkout_day_is_free(self):
        stays = [Stay(date(2024, 1, 1), date(2024, 1, 3), number_of_rooms=4)]
        calc = AvailabilityCalculator(FakeStore(stays))
        assert calc.daily_availability(TEN, date(2024, 1, 1), date(2024, 1, 4)) == {
            date(2024, 1, 1): 6,
            date(2024, 1, 2): 6,
            date(2024, 1, 3): 10,
        }

    def test_reservations_and_holds_are_subtracted(self):
        stays = [
            Stay(date(2024, 5, 1), date(2024, 5, 4), number_of_rooms=2),
            Stay(date(2024, 5, 2), date(2024, 5, 3), number_of_rooms=3),
        ]
        holds = [Hold(date(2024, 5, 2), 1), Hold(date(2024, 5, 3), 4)]
        report = build_report(1, 10, stays, holds, date(2024, 5, 1), date(2024, 5, 4))
        assert report.daily == {
            date(2024, 5, 1): 8,
            date(2024, 5, 2): 4,
            date(2024, 5, 3): 4,
        }
        assert report.min_available == 4
        assert report.can_fit(4)
        assert not report.can_fit(5)

    def test_stays_outside_the_range_are_clipped(self):
        stays = [Stay(date(2024, 4, 25), date(2024, 5, 2), number_of_rooms=2)]
        counts = committed_by_day(stays, date(2024, 5, 1), date(2024, 5, 3))
        assert counts == {date(2024, 5, 1): 2, date(2024, 5, 2): 0}

    def test_overbooking_is_kept_raw_and_clamped_for_display(self):
        stays = [Stay(date(2024, 6, 1), date(2024, 6, 2), number_of_rooms=12)]
        report = build_report(1, 10, stays, [], date(2024, 6, 1), date(2024, 6, 3))
        assert report.daily[date(2024, 6, 1)] == -2
        assert report.display[date(2024, 6, 1)] == 0
        assert report.overbooked == {date(2024, 6, 1): 2}
        assert report.overall_available is False

    def test_shortfalls_name_every_day(self):
        holds = [Hold(date(2024, 7, 2), 9)]
        report = build_report(1, 10, [], holds, date(2024, 7, 1), date(2024, 7, 4))
        assert report.shortfalls(2) == [(date(2024, 7, 2), 1)]

    def test_shared_room_counts_once_for_occupancy(self):
        stays = [
            Stay(date(2024, 1, 1), date(2024, 1, 3), number_of_rooms=1, room_ids=frozenset({7})),
            Stay(date(2024, 1, 2), date(2024, 1, 4), number_of_rooms=1, room_ids=frozenset({7})),
            Stay(date(2024, 1, 1), date(2024, 1, 2), number_of_rooms=2),
        ]
        occupied = occupied_by_day(stays, date(2024, 1, 1), date(2024, 1, 5))
        assert occupied == {
            date(2024, 1, 1): 3,
            date(2024, 1, 2): 1,
            date(2024, 1, 3): 1,
            date(2024, 1, 4): 0,
        }

    def test_occupancy_percent(self):
        stays = [Stay(date(2024, 1, 1), date(2024, 1, 2), number_of_rooms=5)]
        calc = AvailabilityCalculator(FakeStore(stays))
        assert calc.occupancy_percent(TEN, date(2024, 1, 1)) == 50.0
        assert calc.occupancy_percent(SimpleNamespace(id=2, total_inventory=0), date(2024, 1, 1)) == 0.0


class TestSqlStore:
    def test_only_committed_reservations_count(self, db, hotel):
        pid, rt = hotel.property.id, hotel.deluxe
        for status, rooms in [
            (ReservationStatus.CONFIRMED, 2),
            (ReservationStatus.CHECKED_IN, 1),
            (ReservationStatus.CANCELLED, 3),
            (ReservationStatus.NO_SHOW, 1),
            (ReservationStatus.CHECKED_OUT, 1),
        ]:
            db.add(Reservation(property_id=pid, room_type_id=rt.id, guest_name="Guest",
                               check_in=date(2024, 1, 1), check_out=date(2024, 1, 3),
                               number_of_rooms=rooms, status=status))
        db.commit()
        daily = calculator_for(db, pid).daily_availability(rt, date(2024, 1, 1), date(2024, 1, 4))
        assert daily == {date(2024, 1, 1): 7, date(2024, 1, 2): 7, date(2024, 1, 3): 10}

    def test_expired_holds_do_not_reduce_availability(self, db, hotel):
        pid, rt = hotel.property.id, hotel.deluxe
        now = datetime(2024, 1, 1, 12, 0)
        db.add_all([
            InventoryHold(property_id=pid, room_type_id=rt.id, date=date(2024, 1, 2), blocked_inventory=2,
                          kind=HoldKind.TENTATIVE, hold_key="tentative:old", expires_at=now - timedelta(minutes=1)),
            InventoryHold(property_id=pid, room_type_id=rt.id, date=date(2024, 1, 2), blocked_inventory=3,
                          kind=HoldKind.TENTATIVE, hold_key="tentative:live", expires_at=now + timedelta(minutes=5)),
            InventoryHold(property_id=pid, room_type_id=rt.id, date=date(2024, 1, 2), blocked_inventory=1),
        ])
        db.commit()
        daily = calculator_for(db, pid, now=now).daily_availability(rt, date(2024, 1, 2), date(2024, 1, 3))
        assert daily == {date(2024, 1, 2): 6}

    def test_other_properties_are_invisible(self, db, hotel, make_hotel):
        other = make_hotel("Mountain")
        db.add(Reservation(property_id=other.property.id, room_type_id=other.deluxe.id, guest_name="Elsewhere",
                           check_in=date(2024, 1, 1), check_out=date(2024, 1, 2), number_of_rooms=5))
        db.commit()
        daily = calculator_for(db, hotel.property.id).daily_availability(
            hotel.deluxe, date(2024, 1, 1), date(2024, 1, 2))
        assert daily == {date(2024, 1, 1): 10}
