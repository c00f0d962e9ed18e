import pytest

from stayrate.errors import NotFoundError, ValidationError
from stayrate.services import rules


def test_first_read_creates_disabled_default(db, hotel):
    rule = rules.get_or_create_rule(db, hotel.property.id, hotel.deluxe.id)
    assert rule.enabled is False
    assert rule.demand_scale == 1.0
    assert rule.rate_round_off == 1
    assert rule.occupancy_rules == []
    assert rules.get_or_create_rule(db, hotel.property.id, hotel.deluxe.id).id == rule.id


def test_update_replaces_tiers_in_order(db, hotel):
    pid, rt = hotel.property.id, hotel.deluxe
    rules.update_rule(db, pid, rt.id, enabled=True, occupancy_rules=[
        {"start_percent": 0, "end_percent": 50, "add_subtract_1": -100},
        {"start_percent": 50, "end_percent": 100, "multiplier": 1.25},
    ])
    rule = rules.update_rule(db, pid, rt.id, enabled=True, demand_scale=1.1, rate_round_off=10, occupancy_rules=[
        {"start_percent": 60, "end_percent": 100, "add_subtract_2": 25},
    ])
    assert rule.demand_scale == 1.1
    assert rule.rate_round_off == 10
    assert [(t.position, t.start_percent, t.end_percent, t.add_subtract_2) for t in rule.occupancy_rules] == [
        (0, 60.0, 100.0, 25.0),
    ]


@pytest.mark.parametrize("tiers", [
    [{"start_percent": 50, "end_percent": 50}],
    [{"start_percent": -1, "end_percent": 20}],
    [{"start_percent": 0, "end_percent": 120}],
    [{"start_percent": 0, "end_percent": 50, "multiplier": -1}],
    [{"start_percent": 0, "end_percent": 60}, {"start_percent": 50, "end_percent": 100}],
    [{"end_percent": 60}],
    [{"start_percent": "low", "end_percent": 60}],
])
def test_invalid_tiers_are_rejected(tiers):
    with pytest.raises(ValidationError):
        rules.validate_tiers(tiers)


def test_touching_tiers_are_allowed():
    tiers = rules.validate_tiers([
        {"start_percent": 0, "end_percent": 50},
        {"start_percent": 50, "end_percent": 100, "enabled": False},
    ])
    assert [t["enabled"] for t in tiers] == [True, False]


@pytest.mark.parametrize("kwargs", [{"demand_scale": -0.5}, {"rate_round_off": 0}, {"rate_round_off": 2.5}])
def test_invalid_rule_settings(db, hotel, kwargs):
    with pytest.raises(ValidationError):
        rules.update_rule(db, hotel.property.id, hotel.deluxe.id, enabled=True, **kwargs)


def test_rule_for_unknown_room_type(db, hotel):
    with pytest.raises(NotFoundError):
        rules.get_or_create_rule(db, hotel.property.id, 12345)
