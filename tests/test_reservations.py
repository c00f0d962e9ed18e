import threading
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from stayrate.db import init_db
from stayrate.errors import CapacityError, ConflictError, NotFoundError, ValidationError
from stayrate.models import PriceModel, Property, Reservation, ReservationStatus, RoomType
from stayrate.services import reservations
from stayrate.stores import calculator_for


def test_create_reservation_with_rooms(db, hotel):
    pid, rt = hotel.property.id, hotel.deluxe
    room_ids = [hotel.deluxe_rooms[0].id, hotel.deluxe_rooms[1].id]
    res = reservations.create_reservation(db, pid, rt.id, "Grace Hopper", "2024-08-01", "2024-08-03",
                                          number_of_rooms=3, room_ids=room_ids, total_amount=4500)
    assert res.status == ReservationStatus.CONFIRMED
    assert sorted(r.room_number for r in res.rooms) == ["101", "102"]
    assert calculator_for(db, pid).daily_availability(rt, date(2024, 8, 1), date(2024, 8, 2)) == {
        date(2024, 8, 1): 7
    }


def test_capacity_error_lists_every_day(db, hotel):
    pid, rt = hotel.property.id, hotel.suite
    reservations.create_reservation(db, pid, rt.id, "First", "2024-08-02", "2024-08-04", number_of_rooms=2)
    with pytest.raises(CapacityError) as exc:
        reservations.create_reservation(db, pid, rt.id, "Second", "2024-08-01", "2024-08-05", number_of_rooms=2)
    assert exc.value.errors == [
        "Only 1 room(s) available for Suite on 2024-08-02, but 2 requested",
        "Only 1 room(s) available for Suite on 2024-08-03, but 2 requested",
    ]
    assert db.query(Reservation).count() == 1


def test_room_cannot_be_double_booked(db, hotel):
    pid, rt = hotel.property.id, hotel.deluxe
    room = hotel.deluxe_rooms[0]
    reservations.create_reservation(db, pid, rt.id, "First", "2024-08-01", "2024-08-03", room_ids=[room.id])
    with pytest.raises(ConflictError):
        reservations.create_reservation(db, pid, rt.id, "Second", "2024-08-02", "2024-08-04", room_ids=[room.id])
    # Back-to-back stays share the room.
    reservations.create_reservation(db, pid, rt.id, "Third", "2024-08-03", "2024-08-05", room_ids=[room.id])


@pytest.mark.parametrize("kwargs, error", [
    ({"guest_name": " "}, ValidationError),
    ({"check_out": "2024-08-01"}, ValidationError),
    ({"number_of_rooms": 0}, ValidationError),
    ({"total_amount": float("inf")}, ValidationError),
    ({"room_ids": [9999]}, NotFoundError),
    ({"room_type_id": 9999}, NotFoundError),
])
def test_invalid_requests(db, hotel, kwargs, error):
    args = {
        "room_type_id": hotel.deluxe.id,
        "guest_name": "Guest",
        "check_in": "2024-08-01",
        "check_out": "2024-08-02",
    }
    args.update(kwargs)
    with pytest.raises(error):
        reservations.create_reservation(db, hotel.property.id, **args)


def test_room_of_another_type_is_rejected(db, hotel):
    with pytest.raises(ValidationError):
        reservations.create_reservation(db, hotel.property.id, hotel.deluxe.id, "Guest", "2024-08-01",
                                        "2024-08-02", room_ids=[hotel.suite_rooms[0].id])


def test_cancel_frees_inventory_and_reactivation_is_checked(db, hotel):
    pid, rt = hotel.property.id, hotel.suite
    first = reservations.create_reservation(db, pid, rt.id, "First", "2024-09-01", "2024-09-02", number_of_rooms=3)
    reservations.change_reservation_status(db, pid, first.id, "cancelled")
    second = reservations.create_reservation(db, pid, rt.id, "Second", "2024-09-01", "2024-09-02", number_of_rooms=2)
    with pytest.raises(CapacityError):
        reservations.change_reservation_status(db, pid, first.id, ReservationStatus.CONFIRMED)
    reservations.change_reservation_status(db, pid, second.id, "checked-in")
    reservations.change_reservation_status(db, pid, second.id, "checked-out")
    assert reservations.change_reservation_status(db, pid, first.id, "confirmed").status == ReservationStatus.CONFIRMED


def test_unknown_status(db, hotel):
    res = reservations.create_reservation(db, hotel.property.id, hotel.deluxe.id, "Guest", "2024-08-01", "2024-08-02")
    with pytest.raises(ValidationError):
        reservations.change_reservation_status(db, hotel.property.id, res.id, "archived")


def test_two_threads_racing_for_the_last_room(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}", connect_args={"check_same_thread": False})
    init_db(bind=engine)
    Session = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    with Session() as setup:
        prop = Property(name="Tiny Inn")
        single = RoomType(name="Single", total_inventory=1, price_model=PriceModel.PER_ROOM, base_rate=80)
        prop.room_types.append(single)
        setup.add(prop)
        setup.commit()
        pid, rt_id = prop.id, single.id

    barrier = threading.Barrier(2)
    outcomes = []

    def book(name):
        with Session() as session:
            barrier.wait()
            try:
                reservations.create_reservation(session, pid, rt_id, name, "2024-12-24", "2024-12-26")
                outcomes.append("ok")
            except CapacityError:
                outcomes.append("full")

    threads = [threading.Thread(target=book, args=(f"Guest {i}",)) for i in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(outcomes) == ["full", "ok"]
    with Session() as check:
        assert check.query(Reservation).count() == 1
    engine.dispose()
