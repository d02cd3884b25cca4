from __future__ import annotations

from extensions import db
from models.audit_log import CREATE, DELETE, UPDATE
from models.curriculum import CurriculumCourse
from models.elective_rule import ElectiveRule
from services.audit import record_audit
from services.curricula import get_accessible_curriculum
from services.errors import ConflictError, InvalidInput, NotFoundError
from services.validation import _safe_int, parse_int, require_fields
from utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_FREE_ELECTIVE_NAME = "Free Electives"


def _ensure_unique_category(curriculum_id: int, category: str, exclude_id=None) -> None:
    q = ElectiveRule.query.filter_by(curriculum_id=curriculum_id, category=category)
    if exclude_id is not None:
        q = q.filter(ElectiveRule.id != exclude_id)
    if q.first():
        raise ConflictError(
            f"An elective rule for {category} already exists",
            code="DUPLICATE_ELECTIVE_RULE",
        )


def _get_rule(curriculum, rule_id: int) -> ElectiveRule:
    rule = ElectiveRule.query.filter_by(id=rule_id, curriculum_id=curriculum.id).first()
    if rule is None:
        raise NotFoundError("Elective rule not found")
    return rule


def find_free_elective_rule(curriculum_id: int):
    # the first rule whose category mentions "free" is the free-elective bucket
    rules = ElectiveRule.query.filter_by(curriculum_id=curriculum_id).order_by(ElectiveRule.id).all()
    return next((r for r in rules if r.is_free_elective), None)


def list_rules(user, curriculum_id: int) -> dict:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    rules = ElectiveRule.query.filter_by(curriculum_id=curriculum.id).order_by(ElectiveRule.category).all()

    categories = sorted({cc.course.category for cc in curriculum.curriculum_courses if cc.course.category})
    return {
        "electiveRules": [r.to_dict() for r in rules],
        "courseCategories": categories,
    }


def create_rule(user, curriculum_id: int, payload: dict) -> ElectiveRule:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    require_fields(payload, ("category", "requiredCredits"))

    category = str(payload["category"]).strip()
    _ensure_unique_category(curriculum.id, category)

    rule = ElectiveRule(
        curriculum_id=curriculum.id,
        category=category,
        required_credits=parse_int(payload["requiredCredits"], "requiredCredits", minimum=0),
        description=payload.get("description"),
    )
    db.session.add(rule)
    db.session.flush()

    record_audit(
        "ElectiveRule",
        rule.id,
        CREATE,
        f"Created elective rule {rule.category} ({rule.required_credits} credits)",
        changes=rule.to_dict(),
        curriculum_id=curriculum.id,
    )
    db.session.commit()
    return rule


def update_rule(user, curriculum_id: int, rule_id: int, payload: dict) -> ElectiveRule:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    rule = _get_rule(curriculum, rule_id)
    before = rule.to_dict()

    if "category" in payload:
        category = str(payload.get("category") or "").strip()
        if not category:
            raise InvalidInput("category cannot be empty")
        _ensure_unique_category(curriculum.id, category, exclude_id=rule.id)
        rule.category = category
    if "requiredCredits" in payload:
        rule.required_credits = parse_int(payload["requiredCredits"], "requiredCredits", minimum=0)
    if "description" in payload:
        rule.description = payload.get("description")

    record_audit(
        "ElectiveRule",
        rule.id,
        UPDATE,
        f"Updated elective rule {rule.category}",
        changes={"before": before, "after": rule.to_dict()},
        curriculum_id=curriculum.id,
    )
    db.session.commit()
    return rule


def delete_rule(user, curriculum_id: int, rule_id: int) -> None:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    rule = _get_rule(curriculum, rule_id)

    db.session.delete(rule)
    record_audit(
        "ElectiveRule",
        rule_id,
        DELETE,
        f"Deleted elective rule {rule.category}",
        curriculum_id=curriculum.id,
    )
    db.session.commit()


def update_settings(user, curriculum_id: int, payload: dict) -> dict:
    """Batch update of the free-elective rule and per-course required flags.

    The free-elective name/credits are validated up front (INVALID_INPUT).
    Course requirement entries are checked one by one: malformed entries and
    courses outside the curriculum are skipped and reported. Every applied
    change writes its own audit entry; everything commits together.
    """
    curriculum = get_accessible_curriculum(user, curriculum_id)

    has_credits = "freeElectiveCredits" in payload
    has_name = "freeElectiveName" in payload
    credits = payload.get("freeElectiveCredits")
    name = payload.get("freeElectiveName")

    if has_credits:
        credits = _safe_int(credits)
        if credits is None or credits < 0:
            raise InvalidInput("Free elective credits must be a non-negative whole number")
    if has_name and (not isinstance(name, str) or not name.strip()):
        raise InvalidInput("Free elective name must be a non-empty string")

    requirements = payload.get("courseRequirements")
    if requirements is not None and not isinstance(requirements, list):
        raise InvalidInput("courseRequirements must be a list")

    updates = []
    skipped = []

    if has_credits or has_name:
        existing = find_free_elective_rule(curriculum.id)
        if has_name:
            final_name = name.strip()
        else:
            final_name = existing.category if existing else DEFAULT_FREE_ELECTIVE_NAME
        final_credits = credits if has_credits else (existing.required_credits if existing else 0)
        _ensure_unique_category(curriculum.id, final_name, exclude_id=existing.id if existing else None)

        change = {
            "name": final_name,
            "credits": final_credits,
            "previousName": existing.category if existing else None,
            "previousCredits": existing.required_credits if existing else None,
        }
        description = f"{final_name} allowing students to choose any courses"
        if existing:
            existing.category = final_name
            existing.required_credits = final_credits
            existing.description = description
            rule = existing
        else:
            rule = ElectiveRule(
                curriculum_id=curriculum.id,
                category=final_name,
                required_credits=final_credits,
                description=description,
            )
            db.session.add(rule)
            db.session.flush()

        action = UPDATE if existing else CREATE
        record_audit(
            "ElectiveRule",
            rule.id,
            action,
            f"Set free electives to {final_name} ({final_credits} credits)",
            changes=change,
            curriculum_id=curriculum.id,
        )
        updates.append({"type": "freeElective", "action": action, "data": change})

    for index, entry in enumerate(requirements or []):
        course_id = _safe_int(entry.get("courseId")) if isinstance(entry, dict) else None
        is_required = entry.get("isRequired") if isinstance(entry, dict) else None
        if not course_id or not isinstance(is_required, bool):
            skipped.append({"index": index, "reason": "courseId must be a course id and isRequired a boolean"})
            continue

        cc = CurriculumCourse.query.filter_by(curriculum_id=curriculum.id, course_id=course_id).first()
        if cc is None:
            skipped.append({"index": index, "courseId": course_id, "reason": "Course is not in this curriculum"})
            continue

        change = {"courseId": cc.course_id, "isRequired": is_required, "previousValue": cc.is_required}
        cc.is_required = is_required
        record_audit(
            "CurriculumCourse",
            cc.id,
            UPDATE,
            f"Marked {cc.course.code} as {'required' if is_required else 'elective'}",
            changes=change,
            curriculum_id=curriculum.id,
            course_id=cc.course_id,
        )
        updates.append({"type": "courseRequirement", "action": UPDATE, "data": change})

    db.session.commit()
    logger.info("elective_settings_updated", curriculum_id=curriculum.id, updates=len(updates), skipped=len(skipped))
    return {"updatesCount": len(updates), "updates": updates, "skipped": skipped}
