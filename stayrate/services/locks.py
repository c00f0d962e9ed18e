"""
Write serialisation for capacity-consuming operations.

Two layers: a process-local ``threading.Lock`` per key (acquired in sorted
order so two writers touching overlapping room types cannot deadlock) and a
``SELECT ... FOR UPDATE`` on the owning rows, which serialises separate
processes on databases with row locks. SQLite ignores ``FOR UPDATE``; there
the process lock is what counts.
"""
import logging
import threading
from collections import defaultdict
from contextlib import contextmanager, ExitStack
from typing import Iterable, Iterator

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import ConflictError
from ..models import GroupReservation, RoomType

logger = logging.getLogger(__name__)

_registry_lock = threading.Lock()
_locks: dict[tuple, threading.Lock] = defaultdict(threading.Lock)


def _lock_for(key: tuple) -> threading.Lock:
    with _registry_lock:
        return _locks[key]


@contextmanager
def _acquire(keys: Iterable[tuple]) -> Iterator[None]:
    timeout = settings.LOCK_TIMEOUT_SECONDS
    with ExitStack() as stack:
        for key in sorted(set(keys)):
            lock = _lock_for(key)
            if not lock.acquire(timeout=timeout):
                logger.warning("Timed out after %ss waiting for lock %s", timeout, key)
                raise ConflictError("Another update is in progress for this inventory. Please retry.")
            stack.callback(lock.release)
        yield


@contextmanager
def inventory_lock(db: Session, property_id: int, room_type_ids: Iterable[int]) -> Iterator[None]:
    """
    Hold the inventory of the given room types for the duration of the block.

    The caller validates and commits inside the block. On exit without a
    commit, the session is rolled back so row locks are released.
    """
    ids = sorted(set(room_type_ids))
    with _acquire(("inventory", property_id, rt) for rt in ids):
        try:
            if ids:
                db.execute(
                    select(RoomType.id)
                    .where(RoomType.property_id == property_id, RoomType.id.in_(ids))
                    .order_by(RoomType.id)
                    .with_for_update()
                )
            yield
        except Exception:
            db.rollback()
            raise


@contextmanager
def group_lock(db: Session, group_id: int) -> Iterator[None]:
    with _acquire([("group", group_id)]):
        try:
            db.execute(select(GroupReservation.id).where(GroupReservation.id == group_id).with_for_update())
            yield
        except Exception:
            db.rollback()
            raise
