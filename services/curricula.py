from __future__ import annotations

from sqlalchemy import or_

from extensions import db
from models.audit_log import ASSIGN, CREATE, DELETE, UNASSIGN, UPDATE
from models.course import Course
from models.curriculum import (
    Curriculum,
    CurriculumCourse,
    CurriculumCourseCorequisite,
    CurriculumCoursePrerequisite,
)
from models.curriculum_constraint import CONSTRAINT_TYPES, CurriculumConstraint
from models.credit_pool import AttachedPoolCourse, CreditPool, SubCategoryPool
from models.elective_rule import ElectiveRule
from models.faculty import Department
from services.audit import record_audit
from services.courses import upsert_course
from services.department_access import default_department_id, faculty_department_ids
from services.errors import ConflictError, InvalidInput, NotFoundError
from services.validation import parse_bool, parse_int, require_fields
from utils.logging import get_logger
from utils.pagination import pagination_dict

logger = get_logger(__name__)


def get_accessible_curriculum(user, curriculum_id: int) -> Curriculum:
    """Curriculum owned by one of the user's faculty departments, else NOT_FOUND."""
    curriculum = Curriculum.query.filter(
        Curriculum.id == curriculum_id,
        Curriculum.department_id.in_(faculty_department_ids(user)),
    ).first()
    if curriculum is None:
        raise NotFoundError("Curriculum not found or access denied")
    return curriculum


def _ensure_unique(name: str, year: str, version: str, department_id: int, exclude_id=None) -> None:
    q = Curriculum.query.filter_by(name=name, year=year, version=version, department_id=department_id)
    if exclude_id is not None:
        q = q.filter(Curriculum.id != exclude_id)
    if q.first():
        raise ConflictError(
            f"Curriculum {name} ({year}, v{version}) already exists in this department",
            code="DUPLICATE_CURRICULUM",
        )


def list_curricula(user, search=None, page=1, limit=20, include_inactive=False) -> dict:
    q = Curriculum.query.filter(Curriculum.department_id.in_(faculty_department_ids(user)))
    if not include_inactive:
        q = q.filter_by(is_active=True)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(Curriculum.name.ilike(like), Curriculum.year.ilike(like)))

    result = q.order_by(Curriculum.created_at.desc(), Curriculum.id.desc()).paginate(
        page=page, per_page=limit, error_out=False
    )
    return {
        "curricula": [c.to_dict() for c in result.items],
        "pagination": pagination_dict(result, page, limit),
    }


def build_constraint(entry: dict, index=None) -> CurriculumConstraint:
    where = f"constraints[{index}]" if index is not None else "constraint"
    if not isinstance(entry, dict):
        raise InvalidInput(f"{where} must be an object")
    ctype = entry.get("type")
    if ctype not in CONSTRAINT_TYPES:
        raise InvalidInput(f"{where}.type must be one of {', '.join(CONSTRAINT_TYPES)}")
    name = str(entry.get("name") or "").strip()
    if not name:
        raise InvalidInput(f"{where}.name is required")
    config = entry.get("config")
    if config is not None and not isinstance(config, dict):
        raise InvalidInput(f"{where}.config must be an object")
    return CurriculumConstraint(
        type=ctype,
        name=name,
        description=entry.get("description"),
        is_required=bool(parse_bool(entry.get("isRequired", True), f"{where}.isRequired")),
        config=config,
    )


def _build_elective_rule(entry: dict, index: int) -> ElectiveRule:
    if not isinstance(entry, dict):
        raise InvalidInput(f"electiveRules[{index}] must be an object")
    category = str(entry.get("category") or "").strip()
    if not category:
        raise InvalidInput(f"electiveRules[{index}].category is required")
    return ElectiveRule(
        category=category,
        required_credits=parse_int(entry.get("requiredCredits", 0), "requiredCredits", minimum=0),
        description=entry.get("description"),
    )


def create_curriculum(user, payload: dict) -> Curriculum:
    require_fields(payload, ("name", "year"))

    name = str(payload["name"]).strip()
    year = str(payload["year"]).strip()
    version = str(payload.get("version") or "1.0").strip()
    department_id = default_department_id(user, payload.get("departmentId"))
    department = db.session.get(Department, department_id)
    if department is None:
        raise NotFoundError("Department not found")

    _ensure_unique(name, year, version, department_id)

    courses = payload.get("courses") or []
    constraints = payload.get("constraints") or []
    rules = payload.get("electiveRules") or []
    if not all(isinstance(v, list) for v in (courses, constraints, rules)):
        raise InvalidInput("courses, constraints and electiveRules must be lists")

    curriculum = Curriculum(
        name=name,
        year=year,
        version=version,
        description=payload.get("description"),
        department_id=department_id,
        faculty_id=department.faculty_id,
        created_by_id=user.id,
    )
    db.session.add(curriculum)
    db.session.flush()

    seen_codes: set[str] = set()
    for index, entry in enumerate(courses):
        if not isinstance(entry, dict):
            raise InvalidInput(f"courses[{index}] must be an object")
        code = str(entry.get("code") or "").strip()
        title = str(entry.get("name") or entry.get("title") or "").strip()
        if not code or not title:
            raise InvalidInput(f"courses[{index}] needs a code and a name")
        if code in seen_codes:
            raise InvalidInput(f"Course {code} is listed twice")
        seen_codes.add(code)

        course, _ = upsert_course(
            code=code,
            name=title,
            credits=parse_int(entry.get("credits", 0), f"courses[{index}].credits", minimum=0),
            credit_hours=entry.get("creditHours"),
            description=entry.get("description"),
            category=entry.get("category"),
        )
        db.session.add(
            CurriculumCourse(
                curriculum_id=curriculum.id,
                course_id=course.id,
                position=parse_int(entry.get("position", index), "position", minimum=0),
                is_required=bool(parse_bool(entry.get("isRequired", True), "isRequired")),
                semester=entry.get("semester"),
                year=parse_int(entry.get("year"), "year", nullable=True),
            )
        )

    for index, entry in enumerate(constraints):
        c = build_constraint(entry, index)
        c.curriculum_id = curriculum.id
        db.session.add(c)

    categories: set[str] = set()
    for index, entry in enumerate(rules):
        rule = _build_elective_rule(entry, index)
        if rule.category in categories:
            raise ConflictError(f"Elective rule {rule.category} is listed twice", code="DUPLICATE_ELECTIVE_RULE")
        categories.add(rule.category)
        rule.curriculum_id = curriculum.id
        db.session.add(rule)

    db.session.flush()
    record_audit(
        "Curriculum",
        curriculum.id,
        CREATE,
        f"Created curriculum {name} ({year}, v{version})",
        changes={"courses": len(courses), "constraints": len(constraints), "electiveRules": len(rules)},
        curriculum_id=curriculum.id,
    )
    db.session.commit()

    logger.info("curriculum_created", curriculum_id=curriculum.id, courses=len(courses))
    return curriculum


def get_curriculum(user, curriculum_id: int) -> dict:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    data = curriculum.to_dict(include_children=True)
    data["blacklists"] = [cb.blacklist.to_dict() for cb in curriculum.blacklists]
    data["concentrations"] = [cc.to_dict() for cc in curriculum.concentrations]
    data["department"] = curriculum.department.to_dict()
    return data


def update_curriculum(user, curriculum_id: int, payload: dict) -> Curriculum:
    curriculum = get_accessible_curriculum(user, curriculum_id)

    before = {
        "name": curriculum.name,
        "year": curriculum.year,
        "version": curriculum.version,
        "description": curriculum.description,
    }

    identity = {"name": curriculum.name, "year": curriculum.year, "version": curriculum.version}
    for key in identity:
        if key in payload:
            value = str(payload.get(key) or "").strip()
            if not value:
                raise InvalidInput(f"{key} cannot be empty")
            identity[key] = value

    # check before assigning, autoflush would send the UPDATE first
    _ensure_unique(identity["name"], identity["year"], identity["version"], curriculum.department_id, curriculum.id)

    for key, value in identity.items():
        setattr(curriculum, key, value)
    if "description" in payload:
        curriculum.description = payload.get("description")

    after = {
        "name": curriculum.name,
        "year": curriculum.year,
        "version": curriculum.version,
        "description": curriculum.description,
    }
    record_audit(
        "Curriculum",
        curriculum.id,
        UPDATE,
        f"Updated curriculum {curriculum.name}",
        changes={"before": before, "after": after},
        curriculum_id=curriculum.id,
    )
    db.session.commit()
    return curriculum


def deactivate_curriculum(user, curriculum_id: int) -> None:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    curriculum.is_active = False
    record_audit(
        "Curriculum",
        curriculum.id,
        DELETE,
        f"Deactivated curriculum {curriculum.name}",
        curriculum_id=curriculum.id,
    )
    db.session.commit()
    logger.info("curriculum_deactivated", curriculum_id=curriculum.id)


def _get_curriculum_course(curriculum: Curriculum, course_id: int) -> CurriculumCourse:
    cc = CurriculumCourse.query.filter_by(curriculum_id=curriculum.id, course_id=course_id).first()
    if cc is None:
        raise NotFoundError("Course is not part of this curriculum")
    return cc


def _apply_course_fields(cc: CurriculumCourse, payload: dict) -> None:
    if "position" in payload:
        cc.position = parse_int(payload["position"], "position", minimum=0)
    if "isRequired" in payload:
        cc.is_required = parse_bool(payload["isRequired"], "isRequired")
    if "semester" in payload:
        cc.semester = payload.get("semester")
    if "year" in payload:
        cc.year = parse_int(payload.get("year"), "year", nullable=True)


def add_course_to_curriculum(user, curriculum_id: int, payload: dict) -> CurriculumCourse:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    require_fields(payload, ("courseId",))

    course = Course.query.filter_by(id=parse_int(payload["courseId"], "courseId"), is_active=True).first()
    if course is None:
        raise NotFoundError("Course not found")

    if CurriculumCourse.query.filter_by(curriculum_id=curriculum.id, course_id=course.id).first():
        raise ConflictError(f"Course {course.code} is already in this curriculum", code="DUPLICATE")

    cc = CurriculumCourse(
        curriculum_id=curriculum.id,
        course_id=course.id,
        position=len(curriculum.curriculum_courses),
    )
    _apply_course_fields(cc, payload)
    db.session.add(cc)

    record_audit(
        "CurriculumCourse",
        course.id,
        ASSIGN,
        f"Added {course.code} to curriculum {curriculum.name}",
        curriculum_id=curriculum.id,
        course_id=course.id,
    )
    db.session.commit()
    return cc


def update_curriculum_course(user, curriculum_id: int, course_id: int, payload: dict) -> CurriculumCourse:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    cc = _get_curriculum_course(curriculum, course_id)

    before = {"position": cc.position, "isRequired": cc.is_required, "semester": cc.semester, "year": cc.year}
    _apply_course_fields(cc, payload)
    after = {"position": cc.position, "isRequired": cc.is_required, "semester": cc.semester, "year": cc.year}

    record_audit(
        "CurriculumCourse",
        cc.id,
        UPDATE,
        f"Updated {cc.course.code} in curriculum {curriculum.name}",
        changes={"before": before, "after": after},
        curriculum_id=curriculum.id,
        course_id=course_id,
    )
    db.session.commit()
    return cc


def remove_course_from_curriculum(user, curriculum_id: int, course_id: int) -> None:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    cc = _get_curriculum_course(curriculum, course_id)
    code = cc.course.code

    # edges pointing at this row from other curriculum courses
    CurriculumCoursePrerequisite.query.filter_by(prerequisite_course_id=cc.id).delete()
    CurriculumCourseCorequisite.query.filter_by(corequisite_course_id=cc.id).delete()

    # sub-category attachments of this course in this curriculum's pools
    sub_ids = (
        db.select(SubCategoryPool.id)
        .join(CreditPool, SubCategoryPool.pool_id == CreditPool.id)
        .where(CreditPool.curriculum_id == curriculum.id)
    )
    AttachedPoolCourse.query.filter(
        AttachedPoolCourse.course_id == cc.course_id,
        AttachedPoolCourse.sub_category_id.in_(sub_ids),
    ).delete(synchronize_session=False)
    db.session.delete(cc)
    record_audit(
        "CurriculumCourse",
        course_id,
        UNASSIGN,
        f"Removed {code} from curriculum {curriculum.name}",
        curriculum_id=curriculum.id,
        course_id=course_id,
    )
    db.session.commit()


def clone_curriculum(user, curriculum_id: int, payload: dict) -> Curriculum:
    """Deep-copy courses, curriculum constraints and elective rules.

    Curriculum-scoped prerequisite/corequisite edges are re-pointed at the new
    CurriculumCourse rows. Blacklists and concentrations are not carried over.
    """
    source = get_accessible_curriculum(user, curriculum_id)
    require_fields(payload, ("name",))

    name = str(payload["name"]).strip()
    year = str(payload.get("year") or source.year).strip()
    version = str(payload.get("version") or source.version).strip()
    _ensure_unique(name, year, version, source.department_id)

    clone = Curriculum(
        name=name,
        year=year,
        version=version,
        description=payload.get("description", source.description),
        department_id=source.department_id,
        faculty_id=source.faculty_id,
        created_by_id=user.id,
    )
    db.session.add(clone)
    db.session.flush()

    cc_map: dict[int, CurriculumCourse] = {}
    for cc in source.curriculum_courses:
        copy = CurriculumCourse(
            curriculum_id=clone.id,
            course_id=cc.course_id,
            position=cc.position,
            is_required=cc.is_required,
            semester=cc.semester,
            year=cc.year,
            override_requires_permission=cc.override_requires_permission,
            override_summer_only=cc.override_summer_only,
            override_requires_senior_standing=cc.override_requires_senior_standing,
            override_min_credit_threshold=cc.override_min_credit_threshold,
        )
        db.session.add(copy)
        cc_map[cc.id] = copy

    for c in source.constraints:
        db.session.add(
            CurriculumConstraint(
                curriculum_id=clone.id,
                type=c.type,
                name=c.name,
                description=c.description,
                is_required=c.is_required,
                config=c.config,
            )
        )

    for r in source.elective_rules:
        db.session.add(
            ElectiveRule(
                curriculum_id=clone.id,
                category=r.category,
                required_credits=r.required_credits,
                description=r.description,
            )
        )

    db.session.flush()

    for cc in source.curriculum_courses:
        for rel in cc.curriculum_prerequisites:
            db.session.add(
                CurriculumCoursePrerequisite(
                    curriculum_course_id=cc_map[cc.id].id,
                    prerequisite_course_id=cc_map[rel.prerequisite_course_id].id,
                )
            )
        for rel in cc.curriculum_corequisites:
            db.session.add(
                CurriculumCourseCorequisite(
                    curriculum_course_id=cc_map[cc.id].id,
                    corequisite_course_id=cc_map[rel.corequisite_course_id].id,
                )
            )

    db.session.flush()
    # reload the clone's collections from the rows just written
    db.session.expire(clone, ["curriculum_courses", "constraints", "elective_rules"])
    counts = source.counts()
    target_counts = clone.counts()
    record_audit(
        "Curriculum",
        clone.id,
        CREATE,
        f"Cloned curriculum {source.name} ({source.year}, v{source.version}) as {name} ({year}, v{version})",
        changes={"sourceId": source.id, "targetId": clone.id, "source": counts, "target": target_counts},
        curriculum_id=clone.id,
    )
    db.session.commit()

    logger.info("curriculum_cloned", source_id=source.id, curriculum_id=clone.id, **counts)
    return clone
