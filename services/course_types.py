from __future__ import annotations

from extensions import db
from models.audit_log import ASSIGN, CREATE, DELETE, UNASSIGN, UPDATE
from models.course import Course
from models.course_type import CourseType, DepartmentCourseType
from models.credit_pool import PoolSource, SubCategoryPool
from services.audit import record_audit
from services.department_access import (
    default_department_id,
    ensure_department_access,
    faculty_department_ids,
)
from services.errors import ConflictError, InvalidInput, NotFoundError
from services.validation import parse_int, require_fields, validate_color

DEFAULT_COLOR = "#6366f1"


def get_accessible_course_type(user, course_type_id: int) -> CourseType:
    ct = db.session.get(CourseType, course_type_id)
    if ct is None or ct.department_id not in faculty_department_ids(user):
        raise NotFoundError("Course type not found or access denied")
    return ct


def type_lineage(course_type_id, types_by_id: dict) -> set:
    """The type itself plus all of its ancestors."""
    seen = set()
    current = types_by_id.get(course_type_id)
    while current is not None and current.id not in seen:
        seen.add(current.id)
        current = types_by_id.get(current.parent_id)
    return seen


def course_type_map(course_ids, department_id: int) -> dict:
    """course_id -> course_type_id within one department."""
    if not course_ids:
        return {}
    rows = DepartmentCourseType.query.filter(
        DepartmentCourseType.department_id == department_id,
        DepartmentCourseType.course_id.in_(list(course_ids)),
    ).all()
    return {r.course_id: r.course_type_id for r in rows}


def list_course_types(user, department_id=None) -> list[dict]:
    if department_id is not None:
        ensure_department_access(user, department_id)
        dept_ids = [department_id]
    else:
        dept_ids = faculty_department_ids(user)

    types = CourseType.query.filter(CourseType.department_id.in_(dept_ids)).order_by(CourseType.name).all()
    return [t.to_dict() for t in types]


def _check_parent(ct: CourseType, parent_id) -> None:
    if parent_id is None:
        ct.parent_id = None
        return
    parent = db.session.get(CourseType, parse_int(parent_id, "parentId"))
    if parent is None or parent.department_id != ct.department_id:
        raise InvalidInput("Parent type must exist in the same department")
    if ct.id is not None:
        types = {t.id: t for t in CourseType.query.filter_by(department_id=ct.department_id).all()}
        if ct.id in type_lineage(parent.id, types):
            raise InvalidInput("A course type cannot be its own ancestor")
    ct.parent_id = parent.id


def _ensure_unique_name(department_id: int, name: str, exclude_id=None) -> None:
    q = CourseType.query.filter_by(department_id=department_id, name=name)
    if exclude_id is not None:
        q = q.filter(CourseType.id != exclude_id)
    if q.first():
        raise ConflictError(f"Course type {name} already exists in this department", code="DUPLICATE")


def create_course_type(user, payload: dict) -> CourseType:
    require_fields(payload, ("name",))
    department_id = default_department_id(user, payload.get("departmentId"))
    name = str(payload["name"]).strip()
    _ensure_unique_name(department_id, name)

    ct = CourseType(
        name=name,
        color=validate_color(payload.get("color") or DEFAULT_COLOR),
        department_id=department_id,
    )
    _check_parent(ct, payload.get("parentId"))
    db.session.add(ct)
    db.session.flush()

    record_audit("CourseType", ct.id, CREATE, f"Created course type {ct.name}")
    db.session.commit()
    return ct


def update_course_type(user, course_type_id: int, payload: dict) -> CourseType:
    ct = get_accessible_course_type(user, course_type_id)
    before = ct.to_dict()

    if "name" in payload:
        name = str(payload.get("name") or "").strip()
        if not name:
            raise InvalidInput("name cannot be empty")
        _ensure_unique_name(ct.department_id, name, exclude_id=ct.id)
        ct.name = name
    if "color" in payload:
        ct.color = validate_color(payload["color"])
    if "parentId" in payload:
        _check_parent(ct, payload["parentId"])

    record_audit(
        "CourseType",
        ct.id,
        UPDATE,
        f"Updated course type {ct.name}",
        changes={"before": before, "after": ct.to_dict()},
    )
    db.session.commit()
    return ct


def delete_course_type(user, course_type_id: int) -> None:
    ct = get_accessible_course_type(user, course_type_id)
    in_pool = (
        PoolSource.query.filter_by(course_type_id=ct.id).first()
        or SubCategoryPool.query.filter_by(course_type_id=ct.id).first()
    )
    if in_pool:
        raise ConflictError(f"Course type {ct.name} is used by a credit pool")

    # children move up one level
    for child in list(ct.children):
        child.parent = ct.parent

    db.session.delete(ct)
    record_audit("CourseType", course_type_id, DELETE, f"Deleted course type {ct.name}")
    db.session.commit()


def assign_course_type(user, payload: dict) -> dict:
    """Give ``courseIds`` the type ``courseTypeId`` in that type's department.

    ``courseTypeId: null`` together with ``departmentId`` clears the courses'
    type in that department instead.
    """
    course_ids = payload.get("courseIds")
    if not isinstance(course_ids, list) or not course_ids:
        raise InvalidInput("courseIds must be a non-empty list")
    course_ids = [parse_int(c, "courseIds[]") for c in course_ids]

    found = {c.id for c in Course.query.filter(Course.id.in_(course_ids)).all()}
    missing = [c for c in course_ids if c not in found]
    if missing:
        raise NotFoundError(f"Courses not found: {missing}")

    if payload.get("courseTypeId") is None:
        department_id = parse_int(payload.get("departmentId"), "departmentId")
        ensure_department_access(user, department_id)
        removed = DepartmentCourseType.query.filter(
            DepartmentCourseType.department_id == department_id,
            DepartmentCourseType.course_id.in_(course_ids),
        ).delete(synchronize_session=False)
        record_audit(
            "DepartmentCourseType",
            None,
            UNASSIGN,
            f"Cleared course type of {removed} course(s)",
            changes={"courseIds": course_ids, "departmentId": department_id},
        )
        db.session.commit()
        return {"assigned": 0, "removed": removed}

    ct = get_accessible_course_type(user, parse_int(payload["courseTypeId"], "courseTypeId"))
    existing = {
        r.course_id: r
        for r in DepartmentCourseType.query.filter(
            DepartmentCourseType.department_id == ct.department_id,
            DepartmentCourseType.course_id.in_(course_ids),
        ).all()
    }
    for course_id in course_ids:
        row = existing.get(course_id)
        if row is None:
            db.session.add(
                DepartmentCourseType(course_id=course_id, course_type_id=ct.id, department_id=ct.department_id)
            )
        else:
            row.course_type_id = ct.id

    record_audit(
        "DepartmentCourseType",
        ct.id,
        ASSIGN,
        f"Assigned course type {ct.name} to {len(course_ids)} course(s)",
        changes={"courseIds": course_ids},
    )
    db.session.commit()
    return {"assigned": len(course_ids), "removed": 0}
