"""
Tests for the department access cache.
"""
import pytest

from extensions import db
from models.faculty import Department
from models.user import User
from services.department_access import DepartmentCache, default_department_id, faculty_department_ids
from services.errors import ForbiddenError, NotFoundError


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestDepartmentCache:
    """TTL behaviour of DepartmentCache."""

    def test_entry_expires_after_ttl(self):
        clock = FakeClock()
        cache = DepartmentCache(ttl=300, clock=clock)
        cache.put(1, [10, 11])

        clock.now += 299
        assert cache.get(1) == [10, 11]

        clock.now += 1
        assert cache.get(1) is None

    def test_clear(self):
        cache = DepartmentCache(ttl=300)
        cache.put(1, [10])
        cache.clear()
        assert cache.get(1) is None


class TestFacultyDepartmentIds:
    """Faculty scoping with the cache in front of it."""

    def test_faculty_departments(self, app, ctx, ids):
        chair = db.session.get(User, ids.chair)
        assert faculty_department_ids(chair) == sorted([ids.cs, ids.it])

        outsider = db.session.get(User, ids.outsider)
        assert faculty_department_ids(outsider) == [ids.mkt]

    def test_super_admin_sees_everything(self, app, ctx, ids):
        admin = db.session.get(User, ids.admin)
        assert faculty_department_ids(admin) == sorted([ids.cs, ids.it, ids.mkt])

    def test_new_department_visible_after_ttl(self, app, ctx, ids):
        clock = FakeClock()
        app.extensions["department_cache"] = DepartmentCache(ttl=300, clock=clock)
        chair = db.session.get(User, ids.chair)
        assert len(faculty_department_ids(chair)) == 2

        dept = Department(name="Data Science", code="DS", faculty_id=ids.sci)
        db.session.add(dept)
        db.session.commit()

        # served from the cache until it expires
        assert dept.id not in faculty_department_ids(chair)
        clock.now += 300
        assert dept.id in faculty_department_ids(chair)

    def test_default_department(self, app, ctx, ids):
        chair = db.session.get(User, ids.chair)
        assert default_department_id(chair) == ids.cs
        assert default_department_id(chair, ids.it) == ids.it
        with pytest.raises(ForbiddenError):
            default_department_id(chair, ids.mkt)

        admin = db.session.get(User, ids.admin)
        with pytest.raises(NotFoundError):
            default_department_id(admin)
