import os

# Settings are read at import time.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("SECRET_KEY", "test-secret")

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stayrate.db import get_db, init_db
from stayrate.main import app
from stayrate.models import PriceModel, Property, Room, RoomType
from stayrate.security import issue_property_token


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def seed_hotel(db, name="Seaside"):
    """One property with a per-room type of 10 units and a per-person type of 3."""
    prop = Property(name=name)
    deluxe = RoomType(
        name="Deluxe",
        total_inventory=10,
        price_model=PriceModel.PER_ROOM,
        base_rate=1000,
        extra_guest_rate=200,
    )
    suite = RoomType(
        name="Suite",
        total_inventory=3,
        price_model=PriceModel.PER_PERSON,
        base_rate=0,
        extra_guest_rate=0,
        adult_rate=500,
        child_rate=250,
    )
    prop.room_types.extend([deluxe, suite])
    db.add(prop)
    db.flush()
    deluxe_rooms = [
        Room(property_id=prop.id, room_type_id=deluxe.id, room_number=str(101 + i)) for i in range(5)
    ]
    suite_rooms = [
        Room(property_id=prop.id, room_type_id=suite.id, room_number=str(201 + i)) for i in range(3)
    ]
    db.add_all(deluxe_rooms + suite_rooms)
    db.commit()
    return SimpleNamespace(
        property=prop,
        deluxe=deluxe,
        suite=suite,
        deluxe_rooms=deluxe_rooms,
        suite_rooms=suite_rooms,
    )


@pytest.fixture
def hotel(db):
    return seed_hotel(db)


@pytest.fixture
def make_hotel(db):
    return lambda name: seed_hotel(db, name=name)


@pytest.fixture
def client(session_factory, hotel):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    client = TestClient(app, headers={"X-Property-Token": issue_property_token(hotel.property.id)})
    yield client
    app.dependency_overrides.clear()
