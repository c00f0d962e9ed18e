from datetime import date

import pytest

from stayrate.errors import NotFoundError, ValidationError
from stayrate.services import rates


def test_set_rates_creates_then_modifies(db, hotel):
    pid, rt = hotel.property.id, hotel.deluxe
    first = rates.set_rates(db, pid, rt.id, ["2024-04-01", "2024-04-02"], "perRoom", 900)
    assert (first.created, first.modified) == (2, 0)
    assert first.rates[date(2024, 4, 1)] == {"base_rate": 900.0, "extra_guest_rate": 0.0}

    second = rates.set_rates(db, pid, rt.id, ["2024-04-02", "2024-04-03"], "perRoom", 950, 100)
    assert (second.created, second.modified) == (1, 1)
    assert second.message == "Rates processed for 2 day(s). Modified: 1, Created: 1."

    stored = rates.month_rates(db, pid, rt.id, 2024, 4)
    assert list(stored) == [date(2024, 4, 1), date(2024, 4, 2), date(2024, 4, 3)]
    assert stored[date(2024, 4, 2)] == {"base_rate": 950.0, "extra_guest_rate": 100.0}


def test_per_person_rates(db, hotel):
    pid, rt = hotel.property.id, hotel.suite
    rates.set_rates(db, pid, rt.id, ["2024-04-05"], "perPerson", primary=400, secondary=150)
    assert rates.rate_for_date(db, pid, rt.id, "2024-04-05") == {"adult_rate": 400.0, "child_rate": 150.0}


def test_repeated_upsert_is_idempotent(db, hotel):
    pid, rt = hotel.property.id, hotel.deluxe
    rates.set_rates(db, pid, rt.id, ["2024-04-01"], "perRoom", 900)
    again = rates.set_rates(db, pid, rt.id, ["2024-04-01"], "perRoom", 900)
    assert (again.created, again.modified) == (0, 1)
    assert len(rates.month_rates(db, pid, rt.id, 2024, 4)) == 1


@pytest.mark.parametrize("kwargs", [
    {"dates": ["2024-04-01"], "price_model": "perNight", "primary": 100},
    {"dates": ["2024-04-01"], "price_model": "perRoom", "primary": None},
    {"dates": ["2024-04-01"], "price_model": "perRoom", "primary": -1},
    {"dates": ["2024-04-01"], "price_model": "perRoom", "primary": 100, "secondary": -5},
    {"dates": [], "price_model": "perRoom", "primary": 100},
    {"dates": ["04/01/2024"], "price_model": "perRoom", "primary": 100},
    {"dates": ["2024-04-01", "2099-12-31"], "price_model": "perRoom", "primary": 100},
    {"dates": ["2024-04-01"], "price_model": "perRoom", "primary": float("nan")},
    {"dates": ["2024-04-01"], "price_model": "perRoom", "primary": "inf"},
    {"dates": ["2024-04-01"], "price_model": "perRoom", "primary": 100, "secondary": "NaN"},
    {"dates": ["2024-04-01"], "price_model": "perPerson", "primary": 100},
])
def test_invalid_input_writes_nothing(db, hotel, kwargs):
    pid, rt = hotel.property.id, hotel.deluxe
    with pytest.raises(ValidationError):
        rates.set_rates(db, pid, rt.id, **kwargs)
    assert rates.month_rates(db, pid, rt.id, 2024, 4) == {}


def test_unknown_room_type(db, hotel):
    with pytest.raises(NotFoundError):
        rates.set_rates(db, hotel.property.id, 9999, ["2024-04-01"], "perRoom", 100)


def test_missing_rate_for_date(db, hotel):
    with pytest.raises(NotFoundError, match="No rate set for 2024-04-09"):
        rates.rate_for_date(db, hotel.property.id, hotel.deluxe.id, "2024-04-09")
