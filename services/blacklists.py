from __future__ import annotations

from extensions import db
from models.audit_log import ASSIGN, CREATE, DELETE, UNASSIGN, UPDATE
from models.blacklist import Blacklist, BlacklistCourse, CurriculumBlacklist
from models.course import Course
from services.audit import record_audit
from services.curricula import get_accessible_curriculum
from services.department_access import default_department_id, faculty_department_ids
from services.errors import ConflictError, ForbiddenError, InvalidInput, NotFoundError
from services.validation import parse_int, require_fields
from utils.logging import get_logger

logger = get_logger(__name__)


def get_accessible_blacklist(user, blacklist_id: int) -> Blacklist:
    blacklist = db.session.get(Blacklist, blacklist_id)
    if blacklist is None:
        raise NotFoundError("Blacklist not found")
    if blacklist.department_id not in faculty_department_ids(user):
        raise ForbiddenError("You do not have access to this blacklist")
    return blacklist


def _id_list(value, field: str) -> list[int]:
    if not isinstance(value, list) or not value:
        raise InvalidInput(f"{field} must be a non-empty list")
    # keep order, drop repeats
    return list(dict.fromkeys(parse_int(v, f"{field}[]") for v in value))


def _existing_courses(course_ids: list[int]) -> list[Course]:
    courses = Course.query.filter(Course.id.in_(course_ids)).all()
    missing = sorted(set(course_ids) - {c.id for c in courses})
    if missing:
        raise NotFoundError(f"Courses not found: {', '.join(map(str, missing))}", code="COURSE_NOT_FOUND")
    return courses


def _ensure_unique_name(department_id: int, name: str, exclude_id=None) -> None:
    q = Blacklist.query.filter_by(department_id=department_id, name=name)
    if exclude_id is not None:
        q = q.filter(Blacklist.id != exclude_id)
    if q.first():
        raise ConflictError(f"A blacklist named {name} already exists in this department")


def list_blacklists(user, search=None, department_id=None) -> list[dict]:
    dept_ids = faculty_department_ids(user)
    if department_id is not None:
        if department_id not in dept_ids:
            raise ForbiddenError("You do not have access to this department")
        dept_ids = [department_id]

    q = Blacklist.query.filter(Blacklist.department_id.in_(dept_ids))
    if search:
        q = q.filter(Blacklist.name.ilike(f"%{search.strip()}%"))
    return [b.to_dict() for b in q.order_by(Blacklist.name).all()]


def create_blacklist(user, payload: dict) -> Blacklist:
    require_fields(payload, ("name",))
    department_id = default_department_id(user, payload.get("departmentId"))
    name = str(payload["name"]).strip()
    _ensure_unique_name(department_id, name)

    blacklist = Blacklist(
        name=name,
        description=payload.get("description"),
        department_id=department_id,
        created_by_id=user.id,
    )
    course_ids = payload.get("courseIds") or []
    if course_ids:
        for course in _existing_courses(_id_list(course_ids, "courseIds")):
            blacklist.courses.append(BlacklistCourse(course_id=course.id))

    db.session.add(blacklist)
    db.session.flush()

    record_audit(
        "Blacklist",
        blacklist.id,
        CREATE,
        f"Created blacklist {blacklist.name}",
        changes={"courseIds": [bc.course_id for bc in blacklist.courses]},
    )
    db.session.commit()
    return blacklist


def update_blacklist(user, blacklist_id: int, payload: dict) -> Blacklist:
    blacklist = get_accessible_blacklist(user, blacklist_id)
    before = {"name": blacklist.name, "description": blacklist.description}

    if "name" in payload:
        name = str(payload.get("name") or "").strip()
        if not name:
            raise InvalidInput("name cannot be empty")
        _ensure_unique_name(blacklist.department_id, name, exclude_id=blacklist.id)
        blacklist.name = name
    if "description" in payload:
        blacklist.description = payload.get("description")

    record_audit(
        "Blacklist",
        blacklist.id,
        UPDATE,
        f"Updated blacklist {blacklist.name}",
        changes={"before": before, "after": {"name": blacklist.name, "description": blacklist.description}},
    )
    db.session.commit()
    return blacklist


def delete_blacklist(user, blacklist_id: int) -> None:
    blacklist = get_accessible_blacklist(user, blacklist_id)
    if blacklist.curricula:
        raise ConflictError(
            f"Blacklist {blacklist.name} is attached to {len(blacklist.curricula)} curriculum(s); detach it first"
        )

    db.session.delete(blacklist)
    record_audit("Blacklist", blacklist_id, DELETE, f"Deleted blacklist {blacklist.name}")
    db.session.commit()


def add_courses(user, blacklist_id: int, course_ids) -> dict:
    blacklist = get_accessible_blacklist(user, blacklist_id)
    courses = _existing_courses(_id_list(course_ids, "courseIds"))

    present = blacklist.course_ids()
    already = [c.code for c in courses if c.id in present]
    if already:
        raise ConflictError(
            f"Courses already in blacklist: {', '.join(already)}",
            code="COURSES_ALREADY_EXIST",
        )

    for course in courses:
        blacklist.courses.append(BlacklistCourse(course_id=course.id))

    record_audit(
        "BlacklistCourse",
        blacklist.id,
        ASSIGN,
        f"Added {len(courses)} course(s) to blacklist {blacklist.name}",
        changes={"courseIds": [c.id for c in courses]},
    )
    db.session.commit()
    return blacklist.to_dict()


def remove_courses(user, blacklist_id: int, course_ids) -> dict:
    blacklist = get_accessible_blacklist(user, blacklist_id)
    wanted = set(_id_list(course_ids, "courseIds"))

    rows = [bc for bc in blacklist.courses if bc.course_id in wanted]
    if not rows:
        raise NotFoundError("None of the courses are in this blacklist", code="COURSES_NOT_FOUND")

    for bc in rows:
        blacklist.courses.remove(bc)

    record_audit(
        "BlacklistCourse",
        blacklist.id,
        UNASSIGN,
        f"Removed {len(rows)} course(s) from blacklist {blacklist.name}",
        changes={"courseIds": [bc.course_id for bc in rows]},
    )
    db.session.commit()
    return blacklist.to_dict()


# -----------------------------
# Curriculum attachments
# -----------------------------
def list_curriculum_blacklists(user, curriculum_id: int) -> list[dict]:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    return [cb.blacklist.to_dict() for cb in curriculum.blacklists]


def attach_blacklists(user, curriculum_id: int, blacklist_ids) -> dict:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    blacklist_ids = _id_list(blacklist_ids, "blacklistIds")

    found = {b.id: b for b in Blacklist.query.filter(Blacklist.id.in_(blacklist_ids)).all()}
    missing = [i for i in blacklist_ids if i not in found]
    if missing:
        raise NotFoundError(
            f"Blacklists not found: {', '.join(map(str, missing))}",
            code="BLACKLIST_NOT_FOUND",
        )

    allowed = faculty_department_ids(user)
    if any(b.department_id not in allowed for b in found.values()):
        raise ForbiddenError("You do not have access to one or more of these blacklists")

    attached = {cb.blacklist_id for cb in curriculum.blacklists}
    new_ids = [i for i in blacklist_ids if i not in attached]
    already = [i for i in blacklist_ids if i in attached]
    if not new_ids:
        raise ConflictError(
            "All blacklists are already applied to this curriculum",
            code="BLACKLISTS_ALREADY_APPLIED",
        )

    for bid in new_ids:
        db.session.add(CurriculumBlacklist(curriculum_id=curriculum.id, blacklist_id=bid))
        record_audit(
            "CurriculumBlacklist",
            bid,
            ASSIGN,
            f"Applied blacklist {found[bid].name} to curriculum {curriculum.name}",
            curriculum_id=curriculum.id,
        )
    db.session.commit()

    logger.info("blacklists_attached", curriculum_id=curriculum.id, blacklist_ids=new_ids)
    return {"attached": new_ids, "alreadyAttached": already}


def detach_blacklist(user, curriculum_id: int, blacklist_id: int) -> None:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    link = CurriculumBlacklist.query.filter_by(curriculum_id=curriculum.id, blacklist_id=blacklist_id).first()
    if link is None:
        raise NotFoundError("Blacklist is not applied to this curriculum")

    name = link.blacklist.name
    db.session.delete(link)
    record_audit(
        "CurriculumBlacklist",
        blacklist_id,
        UNASSIGN,
        f"Removed blacklist {name} from curriculum {curriculum.name}",
        curriculum_id=curriculum.id,
    )
    db.session.commit()


def detach_blacklists(user, curriculum_id: int, blacklist_ids) -> dict:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    blacklist_ids = _id_list(blacklist_ids, "blacklistIds")

    links = CurriculumBlacklist.query.filter(
        CurriculumBlacklist.curriculum_id == curriculum.id,
        CurriculumBlacklist.blacklist_id.in_(blacklist_ids),
    ).all()
    if not links:
        raise NotFoundError(
            "None of the specified blacklists are applied to this curriculum",
            code="BLACKLISTS_NOT_FOUND",
        )

    removed = []
    for link in links:
        removed.append(link.blacklist_id)
        db.session.delete(link)
        record_audit(
            "CurriculumBlacklist",
            link.blacklist_id,
            UNASSIGN,
            f"Removed blacklist {link.blacklist.name} from curriculum {curriculum.name}",
            curriculum_id=curriculum.id,
        )
    db.session.commit()
    return {"removed": removed}
