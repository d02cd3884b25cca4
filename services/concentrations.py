from __future__ import annotations

from extensions import db
from models.audit_log import ASSIGN, CREATE, DELETE, UNASSIGN, UPDATE
from models.concentration import Concentration, ConcentrationCourse, CurriculumConcentration
from models.course import Course
from services.audit import record_audit
from services.curricula import get_accessible_curriculum
from services.department_access import default_department_id, faculty_department_ids
from services.errors import ConflictError, ForbiddenError, InvalidInput, NotFoundError
from services.validation import parse_int, require_fields


def get_accessible_concentration(user, concentration_id: int) -> Concentration:
    concentration = db.session.get(Concentration, concentration_id)
    if concentration is None:
        raise NotFoundError("Concentration not found")
    if concentration.department_id not in faculty_department_ids(user):
        raise ForbiddenError("You do not have access to this concentration")
    return concentration


def _set_courses(concentration: Concentration, course_ids) -> None:
    if not isinstance(course_ids, list):
        raise InvalidInput("courseIds must be a list")
    wanted = {parse_int(c, "courseIds[]") for c in course_ids}
    found = {c.id for c in Course.query.filter(Course.id.in_(wanted)).all()} if wanted else set()
    if wanted - found:
        raise NotFoundError(f"Courses not found: {sorted(wanted - found)}", code="COURSE_NOT_FOUND")

    for cc in list(concentration.courses):
        if cc.course_id not in wanted:
            concentration.courses.remove(cc)
    have = {cc.course_id for cc in concentration.courses}
    for course_id in sorted(wanted - have):
        concentration.courses.append(ConcentrationCourse(course_id=course_id))


def list_concentrations(user) -> list[dict]:
    rows = Concentration.query.filter(
        Concentration.department_id.in_(faculty_department_ids(user))
    ).order_by(Concentration.name).all()
    return [c.to_dict() for c in rows]


def create_concentration(user, payload: dict) -> Concentration:
    require_fields(payload, ("name",))
    department_id = default_department_id(user, payload.get("departmentId"))
    name = str(payload["name"]).strip()
    if Concentration.query.filter_by(department_id=department_id, name=name).first():
        raise ConflictError(f"A concentration named {name} already exists in this department")

    concentration = Concentration(
        name=name,
        description=payload.get("description"),
        department_id=department_id,
        created_by_id=user.id,
    )
    _set_courses(concentration, payload.get("courseIds") or [])
    db.session.add(concentration)
    db.session.flush()

    record_audit(
        "Concentration",
        concentration.id,
        CREATE,
        f"Created concentration {concentration.name}",
        changes={"courseIds": [cc.course_id for cc in concentration.courses]},
    )
    db.session.commit()
    return concentration


def update_concentration(user, concentration_id: int, payload: dict) -> Concentration:
    concentration = get_accessible_concentration(user, concentration_id)

    if "name" in payload:
        name = str(payload.get("name") or "").strip()
        if not name:
            raise InvalidInput("name cannot be empty")
        clash = Concentration.query.filter(
            Concentration.department_id == concentration.department_id,
            Concentration.name == name,
            Concentration.id != concentration.id,
        ).first()
        if clash:
            raise ConflictError(f"A concentration named {name} already exists in this department")
        concentration.name = name
    if "description" in payload:
        concentration.description = payload.get("description")
    if "courseIds" in payload:
        _set_courses(concentration, payload["courseIds"])

    record_audit(
        "Concentration",
        concentration.id,
        UPDATE,
        f"Updated concentration {concentration.name}",
        changes={"courseIds": [cc.course_id for cc in concentration.courses]},
    )
    db.session.commit()
    return concentration


def delete_concentration(user, concentration_id: int) -> None:
    concentration = get_accessible_concentration(user, concentration_id)
    db.session.delete(concentration)
    record_audit("Concentration", concentration_id, DELETE, f"Deleted concentration {concentration.name}")
    db.session.commit()


def list_curriculum_concentrations(user, curriculum_id: int) -> list[dict]:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    return [cc.to_dict() for cc in curriculum.concentrations]


def attach_concentration(user, curriculum_id: int, payload: dict) -> CurriculumConcentration:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    require_fields(payload, ("concentrationId",))
    concentration = get_accessible_concentration(user, parse_int(payload["concentrationId"], "concentrationId"))
    required = parse_int(payload.get("requiredCourses", 1), "requiredCourses", minimum=1)

    if CurriculumConcentration.query.filter_by(
        curriculum_id=curriculum.id, concentration_id=concentration.id
    ).first():
        raise ConflictError(f"{concentration.name} is already attached to this curriculum", code="DUPLICATE")

    link = CurriculumConcentration(
        curriculum_id=curriculum.id,
        concentration_id=concentration.id,
        required_courses=required,
    )
    db.session.add(link)
    record_audit(
        "CurriculumConcentration",
        concentration.id,
        ASSIGN,
        f"Attached concentration {concentration.name} (requires {required} course(s))",
        curriculum_id=curriculum.id,
    )
    db.session.commit()
    return link


def detach_concentration(user, curriculum_id: int, concentration_id: int) -> None:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    link = CurriculumConcentration.query.filter_by(
        curriculum_id=curriculum.id, concentration_id=concentration_id
    ).first()
    if link is None:
        raise NotFoundError("Concentration is not attached to this curriculum")

    db.session.delete(link)
    record_audit(
        "CurriculumConcentration",
        concentration_id,
        UNASSIGN,
        f"Detached concentration {link.concentration.name}",
        curriculum_id=curriculum.id,
    )
    db.session.commit()
