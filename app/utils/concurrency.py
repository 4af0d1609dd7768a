"""
Unit-of-work helpers for the engine's mutating operations.

Each mutation runs inside a per-(worker, work date) lock and commits once.
Rows that participate in a state machine carry a SQLAlchemy version counter,
so a concurrent writer in another process turns into a StaleDataError. Partial
unique indexes allow one open attendance session per worker and day, and one
in-progress task per worker; a second writer racing past either one gets an
IntegrityError. The unit is then re-run once with fresh state; a second
conflict is reported to the caller.
"""
import logging
import threading
from contextlib import contextmanager
from datetime import date
from typing import Callable, Dict, Iterator, List, Tuple, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.exceptions import ConflictRetryExceeded

logger = logging.getLogger(__name__)

T = TypeVar("T")

_registry_guard = threading.Lock()
# (employee_id, work_date) -> [lock, number of holders and waiters]
_locks: Dict[Tuple[int, date], List] = {}


@contextmanager
def worker_day_lock(employee_id: int, work_date: date) -> Iterator[None]:
    """
    Serialize mutations of one worker's day within this process. The entry is
    dropped once its last user leaves, so the registry only holds days that
    are being written right now.
    """
    key = (employee_id, work_date)
    with _registry_guard:
        entry = _locks.get(key)
        if entry is None:
            entry = _locks[key] = [threading.RLock(), 0]
        entry[1] += 1
    try:
        with entry[0]:
            yield
    finally:
        with _registry_guard:
            entry[1] -= 1
            if entry[1] == 0:
                del _locks[key]


def run_unit_of_work(
    db: Session,
    employee_id: int,
    work_date: date,
    work: Callable[[], T],
    *,
    attempts: int = 2,
) -> T:
    """
    Run `work` (read state, validate, write) and commit it atomically.

    Domain errors roll back and propagate untouched. Write conflicts roll back
    and re-run `work` against fresh state, up to `attempts` runs in total.
    """
    for attempt in range(1, attempts + 1):
        with worker_day_lock(employee_id, work_date):
            try:
                result = work()
                db.commit()
                return result
            except (StaleDataError, IntegrityError) as exc:
                db.rollback()
                db.expire_all()
                logger.warning(
                    "Write conflict for employee_id=%s work_date=%s (attempt %s/%s): %s",
                    employee_id, work_date, attempt, attempts, exc.__class__.__name__,
                )
            except Exception:
                db.rollback()
                raise
    raise ConflictRetryExceeded()
