"""Course-level constraints: flags, prerequisite and corequisite edges.

Global edges live between Course rows and apply everywhere. Curriculum-scoped
edges live between CurriculumCourse rows of one curriculum and, together with
the ``override_*`` flag columns, let a curriculum tighten or relax a course
locally. Corequisites are stored in both directions at both levels and every
insert/delete touches the pair inside one commit.
"""
from __future__ import annotations

from extensions import db
from models.audit_log import ASSIGN, CREATE, DELETE, UNASSIGN, UPDATE
from models.course import Course
from models.curriculum import (
    CurriculumCourse,
    CurriculumCourseCorequisite,
    CurriculumCoursePrerequisite,
)
from models.curriculum_constraint import CONSTRAINT_TYPES, CurriculumConstraint
from models.prerequisite import CourseCorequisite, CoursePrerequisite
from services.audit import record_audit
from services.courses import get_active_course
from services.curricula import build_constraint, get_accessible_curriculum
from services.department_access import faculty_department_ids
from services.errors import ConflictError, InvalidInput, NotFoundError
from services.validation import (
    parse_bool,
    parse_int,
    require_fields,
    validate_senior_standing,
    validate_threshold,
)
from utils.logging import get_logger

logger = get_logger(__name__)

OVERRIDE_FIELDS = {
    "overrideRequiresPermission": "override_requires_permission",
    "overrideSummerOnly": "override_summer_only",
    "overrideRequiresSeniorStanding": "override_requires_senior_standing",
    "overrideMinCreditThreshold": "override_min_credit_threshold",
}


def _edge(relation_id: int, course: Course) -> dict:
    return {"id": relation_id, **course.to_summary()}


# -----------------------------
# Global (course-level)
# -----------------------------
def get_course_constraints(course_id: int) -> dict:
    course = get_active_course(course_id)
    return {
        "course": course.to_summary(),
        **course.flags(),
        "prerequisites": [_edge(e.id, e.prerequisite) for e in course.prerequisites],
        "corequisites": [_edge(e.id, e.corequisite) for e in course.corequisites],
    }


def set_course_flags(course_id: int, payload: dict) -> Course:
    """Update the flags; omitted booleans keep their value.

    ``minCreditThreshold`` is always read from the payload, so turning senior
    standing on without sending a threshold is rejected.
    """
    course = get_active_course(course_id)
    before = course.flags()

    requires_permission = parse_bool(
        payload.get("requiresPermission", course.requires_permission), "requiresPermission"
    )
    summer_only = parse_bool(payload.get("summerOnly", course.summer_only), "summerOnly")
    requires_senior = parse_bool(
        payload.get("requiresSeniorStanding", course.requires_senior_standing), "requiresSeniorStanding"
    )
    threshold = validate_senior_standing(requires_senior, payload.get("minCreditThreshold"))

    course.requires_permission = requires_permission
    course.summer_only = summer_only
    course.requires_senior_standing = requires_senior
    course.min_credit_threshold = threshold

    record_audit(
        "CourseConstraints",
        course.id,
        UPDATE,
        f"Updated constraint flags of {course.code}",
        changes={"before": before, "after": course.flags()},
        course_id=course.id,
    )
    db.session.commit()

    logger.info("course_flags_updated", course_id=course.id)
    return course


def _other_course(course: Course, other_id, field: str) -> Course:
    other = Course.query.filter_by(id=parse_int(other_id, field), is_active=True).first()
    if other is None:
        raise NotFoundError(f"{field} course not found")
    if other.id == course.id:
        raise InvalidInput("A course cannot depend on itself")
    return other


def add_prerequisite(course_id: int, prerequisite_id) -> CoursePrerequisite:
    course = get_active_course(course_id)
    prereq = _other_course(course, prerequisite_id, "prerequisiteId")

    if CoursePrerequisite.query.filter_by(course_id=course.id, prerequisite_id=prereq.id).first():
        raise ConflictError(f"{prereq.code} is already a prerequisite of {course.code}", code="DUPLICATE")

    edge = CoursePrerequisite(course_id=course.id, prerequisite_id=prereq.id)
    db.session.add(edge)
    db.session.flush()

    record_audit(
        "CoursePrerequisite",
        edge.id,
        ASSIGN,
        f"{prereq.code} is now a prerequisite of {course.code}",
        course_id=course.id,
    )
    db.session.commit()
    return edge


def remove_prerequisite(course_id: int, relation_id: int) -> None:
    course = get_active_course(course_id)
    edge = db.session.get(CoursePrerequisite, relation_id)
    if edge is None:
        raise NotFoundError("Prerequisite relation not found")
    if edge.course_id != course.id:
        raise InvalidInput("Prerequisite relation does not belong to this course")

    code = edge.prerequisite.code
    db.session.delete(edge)
    record_audit(
        "CoursePrerequisite",
        relation_id,
        UNASSIGN,
        f"{code} is no longer a prerequisite of {course.code}",
        course_id=course.id,
    )
    db.session.commit()


def add_corequisite(course_id: int, corequisite_id) -> CourseCorequisite:
    course = get_active_course(course_id)
    coreq = _other_course(course, corequisite_id, "corequisiteId")

    exists = CourseCorequisite.query.filter(
        db.or_(
            db.and_(CourseCorequisite.course_id == course.id, CourseCorequisite.corequisite_id == coreq.id),
            db.and_(CourseCorequisite.course_id == coreq.id, CourseCorequisite.corequisite_id == course.id),
        )
    ).first()
    if exists:
        raise ConflictError(f"{course.code} and {coreq.code} are already corequisites", code="DUPLICATE")

    forward = CourseCorequisite(course_id=course.id, corequisite_id=coreq.id)
    reverse = CourseCorequisite(course_id=coreq.id, corequisite_id=course.id)
    db.session.add_all([forward, reverse])
    db.session.flush()

    record_audit(
        "CourseCorequisite",
        forward.id,
        ASSIGN,
        f"{course.code} and {coreq.code} are now corequisites",
        changes={"relationIds": [forward.id, reverse.id]},
        course_id=course.id,
    )
    db.session.commit()

    logger.info("corequisite_added", course_id=course.id, corequisite_id=coreq.id)
    return forward


def remove_corequisite(course_id: int, relation_id: int) -> None:
    course = get_active_course(course_id)
    edge = db.session.get(CourseCorequisite, relation_id)
    if edge is None:
        raise NotFoundError("Corequisite relation not found")
    if edge.course_id != course.id:
        raise InvalidInput("Corequisite relation does not belong to this course")

    other_id = edge.corequisite_id
    other_code = edge.corequisite.code
    reverse = CourseCorequisite.query.filter_by(course_id=other_id, corequisite_id=course.id).first()

    db.session.delete(edge)
    if reverse is not None:
        db.session.delete(reverse)

    record_audit(
        "CourseCorequisite",
        relation_id,
        UNASSIGN,
        f"{course.code} and {other_code} are no longer corequisites",
        course_id=course.id,
    )
    db.session.commit()

    logger.info("corequisite_removed", course_id=course.id, corequisite_id=other_id)


# -----------------------------
# Curriculum-scoped
# -----------------------------
def get_accessible_curriculum_course(user, curriculum_id: int, curriculum_course_id: int) -> CurriculumCourse:
    cc = CurriculumCourse.query.filter_by(id=curriculum_course_id, curriculum_id=curriculum_id).first()
    if cc is None or cc.curriculum.department_id not in faculty_department_ids(user):
        raise NotFoundError("Curriculum course not found or access denied")
    return cc


def merged_flags(cc: CurriculumCourse) -> dict:
    base = cc.course
    return {
        "requiresPermission": (
            cc.override_requires_permission
            if cc.override_requires_permission is not None
            else base.requires_permission
        ),
        "summerOnly": cc.override_summer_only if cc.override_summer_only is not None else base.summer_only,
        "requiresSeniorStanding": (
            cc.override_requires_senior_standing
            if cc.override_requires_senior_standing is not None
            else base.requires_senior_standing
        ),
        "minCreditThreshold": (
            cc.override_min_credit_threshold
            if cc.override_min_credit_threshold is not None
            else base.min_credit_threshold
        ),
    }


def _cc_edge(relation_id: int, target: CurriculumCourse) -> dict:
    return {"id": relation_id, "curriculumCourseId": target.id, **target.course.to_summary()}


def get_curriculum_course_constraints(user, curriculum_id: int, curriculum_course_id: int) -> dict:
    cc = get_accessible_curriculum_course(user, curriculum_id, curriculum_course_id)
    course = cc.course
    return {
        "curriculumCourseId": cc.id,
        "curriculumId": cc.curriculum_id,
        "course": course.to_summary(),
        "baseFlags": course.flags(),
        "overrides": cc.override_flags(),
        "mergedFlags": merged_flags(cc),
        "basePrerequisites": [_edge(e.id, e.prerequisite) for e in course.prerequisites],
        "baseCorequisites": [_edge(e.id, e.corequisite) for e in course.corequisites],
        "curriculumPrerequisites": [_cc_edge(r.id, r.prerequisite_course) for r in cc.curriculum_prerequisites],
        "curriculumCorequisites": [_cc_edge(r.id, r.corequisite_course) for r in cc.curriculum_corequisites],
    }


def set_curriculum_course_overrides(user, curriculum_id: int, curriculum_course_id: int, payload: dict) -> dict:
    cc = get_accessible_curriculum_course(user, curriculum_id, curriculum_course_id)

    given = {k: payload[k] for k in OVERRIDE_FIELDS if k in payload}
    if not given:
        raise InvalidInput("At least one override field must be provided")

    before = cc.override_flags()
    for key, value in given.items():
        if key == "overrideMinCreditThreshold":
            value = validate_threshold(value)
        else:
            value = parse_bool(value, key, nullable=True)
        setattr(cc, OVERRIDE_FIELDS[key], value)

    merged = merged_flags(cc)
    if merged["requiresSeniorStanding"] and merged["minCreditThreshold"] is None:
        raise InvalidInput("Senior standing needs a minCreditThreshold (override or course value)")

    record_audit(
        "CurriculumCourse",
        cc.id,
        UPDATE,
        f"Updated constraint overrides of {cc.course.code}",
        changes={"before": before, "after": cc.override_flags()},
        curriculum_id=cc.curriculum_id,
        course_id=cc.course_id,
    )
    db.session.commit()
    return {"overrides": cc.override_flags(), "mergedFlags": merged}


def _resolve_target(cc: CurriculumCourse, payload: dict, field: str) -> CurriculumCourse:
    """Target CurriculumCourse for a curriculum-scoped edge.

    Accepts ``<field>`` (a CurriculumCourse id) or ``courseId`` (a catalog
    course that must be in the same curriculum).
    """
    if payload.get(field) is not None:
        target = db.session.get(CurriculumCourse, parse_int(payload[field], field))
        if target is None:
            raise NotFoundError("Target curriculum course not found")
        if target.curriculum_id != cc.curriculum_id:
            raise InvalidInput("Both courses must belong to the same curriculum")
    elif payload.get("courseId") is not None:
        course_id = parse_int(payload["courseId"], "courseId")
        target = CurriculumCourse.query.filter_by(curriculum_id=cc.curriculum_id, course_id=course_id).first()
        if target is None:
            if db.session.get(Course, course_id) is None:
                raise NotFoundError("Course not found")
            raise InvalidInput("Course is not part of this curriculum")
    else:
        raise InvalidInput(f"{field} or courseId is required")

    if target.id == cc.id:
        raise InvalidInput("A course cannot depend on itself")
    return target


def add_curriculum_prerequisite(user, curriculum_id: int, curriculum_course_id: int, payload: dict):
    cc = get_accessible_curriculum_course(user, curriculum_id, curriculum_course_id)
    target = _resolve_target(cc, payload, "prerequisiteCurriculumCourseId")

    if CurriculumCoursePrerequisite.query.filter_by(
        curriculum_course_id=cc.id, prerequisite_course_id=target.id
    ).first():
        raise ConflictError("Prerequisite already exists in this curriculum", code="DUPLICATE")

    edge = CurriculumCoursePrerequisite(curriculum_course_id=cc.id, prerequisite_course_id=target.id)
    db.session.add(edge)
    db.session.flush()

    record_audit(
        "CurriculumCoursePrerequisite",
        edge.id,
        ASSIGN,
        f"{target.course.code} is now a prerequisite of {cc.course.code} in this curriculum",
        curriculum_id=cc.curriculum_id,
        course_id=cc.course_id,
    )
    db.session.commit()
    return edge


def remove_curriculum_prerequisite(user, curriculum_id: int, curriculum_course_id: int, relation_id: int) -> None:
    cc = get_accessible_curriculum_course(user, curriculum_id, curriculum_course_id)
    edge = db.session.get(CurriculumCoursePrerequisite, relation_id)
    if edge is None:
        raise NotFoundError("Prerequisite relation not found")
    if edge.curriculum_course_id != cc.id:
        raise InvalidInput("Prerequisite relation does not belong to this curriculum course")

    db.session.delete(edge)
    record_audit(
        "CurriculumCoursePrerequisite",
        relation_id,
        UNASSIGN,
        f"Removed a curriculum prerequisite of {cc.course.code}",
        curriculum_id=cc.curriculum_id,
        course_id=cc.course_id,
    )
    db.session.commit()


def add_curriculum_corequisite(user, curriculum_id: int, curriculum_course_id: int, payload: dict):
    cc = get_accessible_curriculum_course(user, curriculum_id, curriculum_course_id)
    target = _resolve_target(cc, payload, "corequisiteCurriculumCourseId")

    exists = CurriculumCourseCorequisite.query.filter(
        db.or_(
            db.and_(
                CurriculumCourseCorequisite.curriculum_course_id == cc.id,
                CurriculumCourseCorequisite.corequisite_course_id == target.id,
            ),
            db.and_(
                CurriculumCourseCorequisite.curriculum_course_id == target.id,
                CurriculumCourseCorequisite.corequisite_course_id == cc.id,
            ),
        )
    ).first()
    if exists:
        raise ConflictError("Corequisite already exists in this curriculum", code="DUPLICATE")

    forward = CurriculumCourseCorequisite(curriculum_course_id=cc.id, corequisite_course_id=target.id)
    reverse = CurriculumCourseCorequisite(curriculum_course_id=target.id, corequisite_course_id=cc.id)
    db.session.add_all([forward, reverse])
    db.session.flush()

    record_audit(
        "CurriculumCourseCorequisite",
        forward.id,
        ASSIGN,
        f"{cc.course.code} and {target.course.code} are now corequisites in this curriculum",
        changes={"relationIds": [forward.id, reverse.id]},
        curriculum_id=cc.curriculum_id,
        course_id=cc.course_id,
    )
    db.session.commit()
    return forward


def remove_curriculum_corequisite(user, curriculum_id: int, curriculum_course_id: int, relation_id: int) -> None:
    cc = get_accessible_curriculum_course(user, curriculum_id, curriculum_course_id)
    edge = db.session.get(CurriculumCourseCorequisite, relation_id)
    if edge is None:
        raise NotFoundError("Corequisite relation not found")
    if edge.curriculum_course_id != cc.id:
        raise InvalidInput("Corequisite relation does not belong to this curriculum course")

    reverse = CurriculumCourseCorequisite.query.filter_by(
        curriculum_course_id=edge.corequisite_course_id, corequisite_course_id=cc.id
    ).first()
    db.session.delete(edge)
    if reverse is not None:
        db.session.delete(reverse)

    record_audit(
        "CurriculumCourseCorequisite",
        relation_id,
        UNASSIGN,
        f"Removed a curriculum corequisite of {cc.course.code}",
        curriculum_id=cc.curriculum_id,
        course_id=cc.course_id,
    )
    db.session.commit()


# -----------------------------
# Curriculum-level constraints
# -----------------------------
def list_curriculum_constraints(user, curriculum_id: int) -> list[dict]:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    return [c.to_dict() for c in curriculum.constraints]


def _get_constraint(curriculum, constraint_id: int) -> CurriculumConstraint:
    c = CurriculumConstraint.query.filter_by(id=constraint_id, curriculum_id=curriculum.id).first()
    if c is None:
        raise NotFoundError("Constraint not found")
    return c


def create_curriculum_constraint(user, curriculum_id: int, payload: dict) -> CurriculumConstraint:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    require_fields(payload, ("type", "name"))

    c = build_constraint(payload)
    c.curriculum_id = curriculum.id
    db.session.add(c)
    db.session.flush()

    record_audit(
        "CurriculumConstraint",
        c.id,
        CREATE,
        f"Added {c.type} constraint {c.name}",
        changes=c.to_dict(),
        curriculum_id=curriculum.id,
    )
    db.session.commit()
    return c


def update_curriculum_constraint(user, curriculum_id: int, constraint_id: int, payload: dict) -> CurriculumConstraint:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    c = _get_constraint(curriculum, constraint_id)
    before = c.to_dict()

    if "type" in payload:
        if payload["type"] not in CONSTRAINT_TYPES:
            raise InvalidInput(f"type must be one of {', '.join(CONSTRAINT_TYPES)}")
        c.type = payload["type"]
    if "name" in payload:
        name = str(payload.get("name") or "").strip()
        if not name:
            raise InvalidInput("name cannot be empty")
        c.name = name
    if "description" in payload:
        c.description = payload.get("description")
    if "isRequired" in payload:
        c.is_required = parse_bool(payload["isRequired"], "isRequired")
    if "config" in payload:
        if payload["config"] is not None and not isinstance(payload["config"], dict):
            raise InvalidInput("config must be an object")
        c.config = payload["config"]

    record_audit(
        "CurriculumConstraint",
        c.id,
        UPDATE,
        f"Updated constraint {c.name}",
        changes={"before": before, "after": c.to_dict()},
        curriculum_id=curriculum.id,
    )
    db.session.commit()
    return c


def delete_curriculum_constraint(user, curriculum_id: int, constraint_id: int) -> None:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    c = _get_constraint(curriculum, constraint_id)

    db.session.delete(c)
    record_audit(
        "CurriculumConstraint",
        constraint_id,
        DELETE,
        f"Deleted constraint {c.name}",
        curriculum_id=curriculum.id,
    )
    db.session.commit()
