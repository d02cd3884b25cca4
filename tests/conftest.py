"""
Pytest configuration and fixtures for testing.

Every test gets a fresh app on in-memory SQLite, seeded with two faculties:
SCI (departments CS and IT) and BUS (department MKT), plus one user per role.
Fixtures hand out ids, not ORM objects; open ``app.app_context()`` to load rows.
"""
from types import SimpleNamespace

import pytest

from app import create_app
from config import TestConfig
from extensions import db
from models.course import Course
from models.curriculum import Curriculum, CurriculumCourse
from models.curriculum_constraint import CurriculumConstraint
from models.elective_rule import ElectiveRule
from models.faculty import Faculty, Department
from models.user import User, SUPER_ADMIN, CHAIRPERSON, ADVISOR, STUDENT

PASSWORD = "password123"


def _seed():
    sci = Faculty(name="Faculty of Science", code="SCI")
    bus = Faculty(name="Faculty of Business", code="BUS")
    cs = Department(name="Computer Science", code="CS", faculty=sci)
    it = Department(name="Information Technology", code="IT", faculty=sci)
    mkt = Department(name="Marketing", code="MKT", faculty=bus)
    db.session.add_all([sci, bus, cs, it, mkt])
    db.session.flush()

    for email, role, faculty, dept in (
        ("admin@test.edu", SUPER_ADMIN, None, None),
        ("chair@test.edu", CHAIRPERSON, sci, cs),
        ("advisor@test.edu", ADVISOR, sci, cs),
        ("student@test.edu", STUDENT, sci, cs),
        ("outsider@test.edu", CHAIRPERSON, bus, mkt),
    ):
        user = User(
            email=email,
            name=email.split("@")[0].title(),
            role=role,
            faculty_id=faculty.id if faculty else None,
            department_id=dept.id if dept else None,
        )
        user.set_password(PASSWORD)
        db.session.add(user)

    db.session.commit()


@pytest.fixture(scope="function")
def app():
    """Fresh application + database for each test."""
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        _seed()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ids(app):
    """Primary keys of the seeded rows."""
    with app.app_context():
        dept = {d.code: d.id for d in Department.query.all()}
        users = {u.email.split("@")[0]: u.id for u in User.query.all()}
        fac = {f.code: f.id for f in Faculty.query.all()}
    return SimpleNamespace(
        cs=dept["CS"],
        it=dept["IT"],
        mkt=dept["MKT"],
        sci=fac["SCI"],
        bus=fac["BUS"],
        admin=users["admin"],
        chair=users["chair"],
        advisor=users["advisor"],
        student=users["student"],
        outsider=users["outsider"],
    )


@pytest.fixture
def ctx(app):
    """App context for calling services directly."""
    with app.app_context():
        yield


def login(client, email, password=PASSWORD):
    return client.post("/auth/login", json={"email": email, "password": password})


@pytest.fixture
def client(app):
    """Anonymous test client."""
    return app.test_client()


def _logged_in(app, email):
    c = app.test_client()
    response = login(c, email)
    assert response.status_code == 200, response.get_json()
    return c


@pytest.fixture
def chair_client(app):
    return _logged_in(app, "chair@test.edu")


@pytest.fixture
def outsider_client(app):
    return _logged_in(app, "outsider@test.edu")


@pytest.fixture
def student_client(app):
    return _logged_in(app, "student@test.edu")


@pytest.fixture
def admin_client(app):
    return _logged_in(app, "admin@test.edu")


@pytest.fixture
def make_course(app):
    """Factory: make_course("MATH101", credits=3) -> course id."""

    def _make(code, name=None, credits=3, category="Major", **flags):
        with app.app_context():
            course = Course(
                code=code,
                name=name or f"Course {code}",
                credits=credits,
                credit_hours="3-0-6",
                category=category,
                **flags,
            )
            db.session.add(course)
            db.session.commit()
            return course.id

    return _make


@pytest.fixture
def make_curriculum(app, ids):
    """Factory: make_curriculum("BSCS", "2022", course_codes=[...]) -> curriculum id."""

    def _make(name="BSCS", year="2022", course_codes=(), department_id=None, constraints=0, rules=()):
        department_id = department_id or ids.cs
        with app.app_context():
            dept = db.session.get(Department, department_id)
            curriculum = Curriculum(
                name=name,
                year=year,
                version="1.0",
                department_id=dept.id,
                faculty_id=dept.faculty_id,
                created_by_id=ids.chair,
            )
            db.session.add(curriculum)
            db.session.flush()

            for position, code in enumerate(course_codes):
                course = Course.query.filter_by(code=code).first()
                if course is None:
                    course = Course(code=code, name=f"Course {code}", credits=3, credit_hours="3-0-6")
                    db.session.add(course)
                    db.session.flush()
                db.session.add(
                    CurriculumCourse(curriculum_id=curriculum.id, course_id=course.id, position=position)
                )

            for i in range(constraints):
                db.session.add(
                    CurriculumConstraint(
                        curriculum_id=curriculum.id,
                        type="TOTAL_CREDITS" if i == 0 else "MINIMUM_GPA",
                        name=f"Constraint {i + 1}",
                        config={"value": i + 1},
                    )
                )

            for category, credits in rules:
                db.session.add(
                    ElectiveRule(curriculum_id=curriculum.id, category=category, required_credits=credits)
                )

            db.session.commit()
            return curriculum.id

    return _make


def curriculum_course_id(app, curriculum_id, code):
    with app.app_context():
        course = Course.query.filter_by(code=code).first()
        cc = CurriculumCourse.query.filter_by(curriculum_id=curriculum_id, course_id=course.id).first()
        return cc.id


def error_code(response):
    return response.get_json()["error"]["code"]
