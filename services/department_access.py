"""Which departments a user may act on.

Every department-scoped read or write re-derives the caller's faculty
department ids. The lookup is cached per user id for
``DEPARTMENT_CACHE_TTL`` seconds and is only refreshed by expiry: a
department added to a faculty becomes visible to cached users after at most
one TTL.
"""
import time

from flask import current_app

from models.faculty import Department
from models.user import SUPER_ADMIN
from services.errors import ForbiddenError, NotFoundError
from utils.logging import get_logger

logger = get_logger(__name__)


class DepartmentCache:
    def __init__(self, ttl: float = 300, clock=time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._entries: dict[int, tuple[float, list[int]]] = {}

    def get(self, user_id: int):
        hit = self._entries.get(user_id)
        if hit is None:
            return None
        expires_at, ids = hit
        if self.clock() >= expires_at:
            del self._entries[user_id]
            return None
        return ids

    def put(self, user_id: int, ids: list[int]) -> None:
        self._entries[user_id] = (self.clock() + self.ttl, ids)

    def clear(self) -> None:
        self._entries.clear()


def _cache() -> DepartmentCache:
    cache = current_app.extensions.get("department_cache")
    if cache is None:
        cache = DepartmentCache(ttl=current_app.config["DEPARTMENT_CACHE_TTL"])
        current_app.extensions["department_cache"] = cache
    return cache


def faculty_department_ids(user) -> list[int]:
    cache = _cache()
    ids = cache.get(user.id)
    if ids is not None:
        return ids

    if user.role == SUPER_ADMIN:
        rows = Department.query.with_entities(Department.id).all()
    elif user.faculty_id is not None:
        rows = Department.query.with_entities(Department.id).filter_by(faculty_id=user.faculty_id).all()
    elif user.department_id is not None:
        # No faculty on record: fall back to the user's own department
        rows = [(user.department_id,)]
    else:
        rows = []

    ids = sorted(r[0] for r in rows)
    cache.put(user.id, ids)
    logger.debug("department_cache_fill", user_id=user.id, departments=len(ids))
    return ids


def ensure_department_access(user, department_id: int) -> None:
    if department_id not in faculty_department_ids(user):
        raise ForbiddenError("You do not have access to this department")


def default_department_id(user, department_id=None) -> int:
    """Department a new department-scoped row is created in.

    An explicit ``department_id`` must be accessible; otherwise the user's own
    department is used.
    """
    if department_id is not None:
        ensure_department_access(user, int(department_id))
        return int(department_id)
    if user.department_id is None:
        raise NotFoundError("No department associated with this user")
    return user.department_id
