from __future__ import annotations

from sqlalchemy import or_

from extensions import db
from models.audit_log import CREATE, UPDATE, DELETE
from models.course import Course
from models.curriculum import CurriculumCourse
from services.audit import record_audit
from services.errors import ConflictError, InvalidInput, NotFoundError
from services.validation import (
    parse_bool,
    parse_int,
    require_fields,
    validate_senior_standing,
)
from utils.course_catalog import parse_upload
from utils.logging import get_logger
from utils.pagination import pagination_dict

logger = get_logger(__name__)

MAX_COURSE_CREDITS = 6


def get_active_course(course_id: int) -> Course:
    course = Course.query.filter_by(id=course_id, is_active=True).first()
    if course is None:
        raise NotFoundError("Course not found")
    return course


def search_courses(text=None, category=None, credits=None, page=1, limit=20) -> dict:
    q = Course.query.filter_by(is_active=True)

    if text:
        like = f"%{text.strip()}%"
        q = q.filter(
            or_(
                Course.code.ilike(like),
                Course.name.ilike(like),
                Course.description.ilike(like),
            )
        )
    if category:
        q = q.filter(Course.category.ilike(f"%{category.strip()}%"))
    if credits is not None and str(credits).strip() != "":
        q = q.filter(Course.credits == parse_int(credits, "credits"))

    result = q.order_by(Course.code.asc()).paginate(page=page, per_page=limit, error_out=False)
    return {
        "courses": [c.to_dict() for c in result.items],
        "pagination": pagination_dict(result, page, limit),
    }


def get_course(course_id: int) -> dict:
    course = get_active_course(course_id)
    data = course.to_dict()
    data["curricula"] = [
        {
            "id": cc.curriculum.id,
            "name": cc.curriculum.name,
            "year": cc.curriculum.year,
            "version": cc.curriculum.version,
        }
        for cc in course.curriculum_courses
    ]
    return data


def create_course(payload: dict) -> Course:
    require_fields(payload, ("code", "name", "credits", "creditHours", "category"))

    code = str(payload["code"]).strip()
    if Course.query.filter_by(code=code).first():
        raise ConflictError(f"Course with code {code} already exists", code="DUPLICATE_COURSE")

    requires_senior = bool(parse_bool(payload.get("requiresSeniorStanding", False), "requiresSeniorStanding"))
    course = Course(
        code=code,
        name=str(payload["name"]).strip(),
        credits=parse_int(payload["credits"], "credits", minimum=0),
        credit_hours=str(payload["creditHours"]).strip(),
        description=payload.get("description"),
        category=str(payload["category"]).strip(),
        requires_permission=bool(parse_bool(payload.get("requiresPermission", False), "requiresPermission")),
        summer_only=bool(parse_bool(payload.get("summerOnly", False), "summerOnly")),
        requires_senior_standing=requires_senior,
        min_credit_threshold=validate_senior_standing(requires_senior, payload.get("minCreditThreshold")),
    )
    db.session.add(course)
    db.session.flush()

    record_audit("Course", course.id, CREATE, f"Created course {course.code}", course_id=course.id)
    db.session.commit()

    logger.info("course_created", course_id=course.id, code=course.code)
    return course


def update_course(course_id: int, payload: dict) -> Course:
    course = get_active_course(course_id)

    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        raise InvalidInput("Course name is required")
    name = name.strip()

    credits = parse_int(payload.get("credits"), "credits", minimum=0, maximum=MAX_COURSE_CREDITS)

    before = {
        "name": course.name,
        "credits": course.credits,
        "creditHours": course.credit_hours,
        "description": course.description,
    }

    course.name = name
    course.credits = credits
    if "creditHours" in payload:
        course.credit_hours = payload.get("creditHours")
    if "description" in payload:
        course.description = payload.get("description")

    after = {
        "name": course.name,
        "credits": course.credits,
        "creditHours": course.credit_hours,
        "description": course.description,
    }

    record_audit(
        "Course",
        course.id,
        UPDATE,
        f"Updated course {course.code}",
        changes={"before": before, "after": after},
        course_id=course.id,
    )
    db.session.commit()

    logger.info("course_updated", course_id=course.id)
    return course


def soft_delete_course(course_id: int) -> None:
    course = get_active_course(course_id)

    in_use = CurriculumCourse.query.filter_by(course_id=course.id).count()
    if in_use:
        raise ConflictError(
            f"Course {course.code} is used by {in_use} curriculum(s) and cannot be deleted",
            code="COURSE_IN_USE",
        )

    course.is_active = False
    record_audit("Course", course.id, DELETE, f"Deleted course {course.code}", course_id=course.id)
    db.session.commit()

    logger.info("course_deleted", course_id=course.id)


def upsert_course(
    code: str,
    name: str,
    credits: int,
    credit_hours: str | None = None,
    description: str | None = None,
    category: str | None = None,
) -> tuple[Course, bool]:
    """Insert or refresh a catalog course by code (flushes, never commits).

    Returns ``(course, created)``. An inactive course with the same code is
    brought back.
    """
    course = Course.query.filter_by(code=code).first()
    if course is None:
        course = Course(
            code=code,
            name=name,
            credits=credits,
            credit_hours=credit_hours,
            description=description,
            category=category,
        )
        db.session.add(course)
        db.session.flush()
        return course, True

    course.name = name
    course.credits = credits
    if credit_hours is not None:
        course.credit_hours = credit_hours
    if description is not None:
        course.description = description
    if category is not None:
        course.category = category
    course.is_active = True
    return course, False


def _course_fields(entry: dict, index: int) -> dict:
    if not isinstance(entry, dict):
        raise InvalidInput(f"courses[{index}] must be an object")
    code = str(entry.get("code") or "").strip()
    name = str(entry.get("name") or "").strip()
    if not code or not name:
        raise InvalidInput(f"courses[{index}] needs a code and a name")
    return {
        "code": code,
        "name": name,
        "credits": parse_int(entry.get("credits"), f"courses[{index}].credits", minimum=0),
        "credit_hours": entry.get("creditHours"),
        "description": entry.get("description"),
        "category": entry.get("category"),
    }


def bulk_upsert_courses(entries: list) -> dict:
    if not isinstance(entries, list) or not entries:
        raise InvalidInput("courses must be a non-empty list")

    fields = [_course_fields(e, i) for i, e in enumerate(entries)]

    created = updated = 0
    for f in fields:
        _, was_created = upsert_course(**f)
        if was_created:
            created += 1
        else:
            updated += 1

    record_audit(
        "Course",
        None,
        CREATE,
        f"Bulk imported {len(fields)} courses",
        changes={"created": created, "updated": updated, "codes": [f["code"] for f in fields]},
    )
    db.session.commit()

    logger.info("courses_bulk_upserted", created=created, updated=updated)
    return {"created": created, "updated": updated}


def import_courses_file(upload) -> dict:
    """Parse a CSV/XLSX upload and upsert its valid rows.

    Row-level problems come back in ``errors``; only an unreadable file fails.
    """
    if upload is None or not upload.filename:
        raise InvalidInput("No file uploaded")

    try:
        rows, errors = parse_upload(upload.filename, upload.stream)
    except ValueError as e:
        raise InvalidInput(str(e)) from e

    result = {"created": 0, "updated": 0}
    if rows:
        result = bulk_upsert_courses(
            [
                {
                    "code": r.code,
                    "name": r.name,
                    "credits": r.credits,
                    "creditHours": r.credit_hours,
                    "description": r.description,
                }
                for r in rows
            ]
        )

    return {**result, "courses": [r.to_dict() for r in rows], "errors": errors}
