import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from .config import settings

logger = logging.getLogger(__name__)

class Base(DeclarativeBase):
    pass

engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Composite indexes for the overlap and per-day lookups the calculator issues.
_INDEXES = [
    "CREATE INDEX IF NOT EXISTS ix_reservations_type_stay ON reservations(property_id, room_type_id, check_in, check_out);",
    "CREATE INDEX IF NOT EXISTS ix_inventory_holds_type_date ON inventory_holds(property_id, room_type_id, date);",
    "CREATE INDEX IF NOT EXISTS ix_inventory_holds_expires_at ON inventory_holds(expires_at);",
    "CREATE INDEX IF NOT EXISTS ix_group_reservations_stay ON group_reservations(property_id, check_in, check_out);",
]


def init_db(bind=None):
    """Create missing tables, then the helper indexes."""
    from . import models  # noqa: F401  (registers mappers)

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    ensure_indexes(bind)


def ensure_indexes(bind=None):
    """
    Best-effort creation of the composite indexes used by availability queries.
    Both SQLite and PostgreSQL accept IF NOT EXISTS; a failure is logged and
    never blocks startup.
    """
    bind = bind or engine
    with bind.begin() as conn:
        for ddl in _INDEXES:
            try:
                conn.exec_driver_sql(ddl)
            except Exception:
                logger.warning("Could not ensure index: %s", ddl, exc_info=True)
