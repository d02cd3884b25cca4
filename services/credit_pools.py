from __future__ import annotations

from extensions import db
from models.audit_log import ASSIGN, CREATE, DELETE, UNASSIGN, UPDATE
from models.course_type import CourseType
from models.credit_pool import AttachedPoolCourse, CreditPool, PoolSource, SubCategoryPool
from models.curriculum import CurriculumCourse
from services.audit import record_audit
from services.course_types import course_type_map, type_lineage
from services.curricula import get_accessible_curriculum
from services.errors import ConflictError, InvalidInput, NotFoundError
from services.validation import parse_bool, parse_int, require_fields
from utils.logging import get_logger

logger = get_logger(__name__)


def _get_pool(curriculum, pool_id: int) -> CreditPool:
    pool = CreditPool.query.filter_by(id=pool_id, curriculum_id=curriculum.id).first()
    if pool is None:
        raise NotFoundError("Credit pool not found")
    return pool


def _get_sub_category(pool: CreditPool, sub_id: int) -> SubCategoryPool:
    sub = SubCategoryPool.query.filter_by(id=sub_id, pool_id=pool.id).first()
    if sub is None:
        raise NotFoundError("Sub-category not found")
    return sub


def _department_type(curriculum, course_type_id) -> CourseType:
    ct = db.session.get(CourseType, parse_int(course_type_id, "courseTypeId"))
    if ct is None or ct.department_id != curriculum.department_id:
        raise InvalidInput("Course type must belong to the curriculum's department")
    return ct


def _apply_range(pool: CreditPool, payload: dict) -> None:
    if "minCredits" in payload:
        pool.min_credits = parse_int(payload["minCredits"], "minCredits", minimum=0)
    if "maxCredits" in payload:
        pool.max_credits = parse_int(payload["maxCredits"], "maxCredits", minimum=0, nullable=True)
    if pool.max_credits is not None and pool.max_credits < (pool.min_credits or 0):
        raise InvalidInput("maxCredits must be greater than or equal to minCredits")


def _set_sources(curriculum, pool: CreditPool, type_ids) -> None:
    if not isinstance(type_ids, list):
        raise InvalidInput("sourceTypeIds must be a list")
    wanted = {_department_type(curriculum, t).id for t in type_ids}
    for source in list(pool.sources):
        if source.course_type_id not in wanted:
            pool.sources.remove(source)
    have = pool.source_type_ids()
    for type_id in sorted(wanted - have):
        pool.sources.append(PoolSource(course_type_id=type_id))


def list_pools(user, curriculum_id: int) -> list[dict]:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    pools = CreditPool.query.filter_by(curriculum_id=curriculum.id).order_by(
        CreditPool.order_index, CreditPool.id
    ).all()
    return [p.to_dict() for p in pools]


def create_pool(user, curriculum_id: int, payload: dict) -> CreditPool:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    require_fields(payload, ("name",))

    pool = CreditPool(
        curriculum_id=curriculum.id,
        name=str(payload["name"]).strip(),
        description=payload.get("description"),
        min_credits=0,
        enabled=bool(parse_bool(payload.get("enabled", True), "enabled")),
        order_index=CreditPool.query.filter_by(curriculum_id=curriculum.id).count(),
    )
    _apply_range(pool, payload)
    if "orderIndex" in payload:
        pool.order_index = parse_int(payload["orderIndex"], "orderIndex", minimum=0)
    _set_sources(curriculum, pool, payload.get("sourceTypeIds") or [])

    db.session.add(pool)
    db.session.flush()

    record_audit(
        "CreditPool",
        pool.id,
        CREATE,
        f"Created credit pool {pool.name}",
        changes={"minCredits": pool.min_credits, "maxCredits": pool.max_credits},
        curriculum_id=curriculum.id,
    )
    db.session.commit()
    return pool


def update_pool(user, curriculum_id: int, pool_id: int, payload: dict) -> CreditPool:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    pool = _get_pool(curriculum, pool_id)
    before = {"name": pool.name, "minCredits": pool.min_credits, "maxCredits": pool.max_credits}

    if "name" in payload:
        name = str(payload.get("name") or "").strip()
        if not name:
            raise InvalidInput("name cannot be empty")
        pool.name = name
    if "description" in payload:
        pool.description = payload.get("description")
    if "enabled" in payload:
        pool.enabled = parse_bool(payload["enabled"], "enabled")
    if "orderIndex" in payload:
        pool.order_index = parse_int(payload["orderIndex"], "orderIndex", minimum=0)
    _apply_range(pool, payload)
    if "sourceTypeIds" in payload:
        _set_sources(curriculum, pool, payload["sourceTypeIds"])

    record_audit(
        "CreditPool",
        pool.id,
        UPDATE,
        f"Updated credit pool {pool.name}",
        changes={
            "before": before,
            "after": {"name": pool.name, "minCredits": pool.min_credits, "maxCredits": pool.max_credits},
        },
        curriculum_id=curriculum.id,
    )
    db.session.commit()
    return pool


def delete_pool(user, curriculum_id: int, pool_id: int) -> None:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    pool = _get_pool(curriculum, pool_id)

    db.session.delete(pool)
    record_audit("CreditPool", pool_id, DELETE, f"Deleted credit pool {pool.name}", curriculum_id=curriculum.id)
    db.session.commit()


def reorder_pools(user, curriculum_id: int, pool_ids) -> list[dict]:
    """Set evaluation priority: ``pool_ids`` must list every pool exactly once."""
    curriculum = get_accessible_curriculum(user, curriculum_id)
    if not isinstance(pool_ids, list):
        raise InvalidInput("poolIds must be a list")
    pool_ids = [parse_int(p, "poolIds[]") for p in pool_ids]

    pools = {p.id: p for p in CreditPool.query.filter_by(curriculum_id=curriculum.id).all()}
    if sorted(pool_ids) != sorted(pools):
        raise InvalidInput("poolIds must contain every pool of the curriculum exactly once")

    for index, pid in enumerate(pool_ids):
        pools[pid].order_index = index

    record_audit(
        "CreditPool",
        None,
        UPDATE,
        "Reordered credit pools",
        changes={"order": pool_ids},
        curriculum_id=curriculum.id,
    )
    db.session.commit()
    return [pools[pid].to_dict() for pid in pool_ids]


# -----------------------------
# Sub-categories
# -----------------------------
def add_sub_category(user, curriculum_id: int, pool_id: int, payload: dict) -> SubCategoryPool:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    pool = _get_pool(curriculum, pool_id)
    require_fields(payload, ("courseTypeId",))

    ct = _department_type(curriculum, payload["courseTypeId"])
    if SubCategoryPool.query.filter_by(pool_id=pool.id, course_type_id=ct.id).first():
        raise ConflictError(f"{ct.name} is already a sub-category of {pool.name}", code="DUPLICATE")

    sub = SubCategoryPool(
        pool_id=pool.id,
        course_type_id=ct.id,
        required_credits=parse_int(payload.get("requiredCredits", 0), "requiredCredits", minimum=0),
        order_index=parse_int(payload.get("orderIndex", len(pool.sub_categories)), "orderIndex", minimum=0),
    )
    db.session.add(sub)
    db.session.flush()

    record_audit(
        "SubCategoryPool",
        sub.id,
        CREATE,
        f"Added sub-category {ct.name} to {pool.name}",
        curriculum_id=curriculum.id,
    )
    db.session.commit()
    return sub


def update_sub_category(user, curriculum_id: int, pool_id: int, sub_id: int, payload: dict) -> SubCategoryPool:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    pool = _get_pool(curriculum, pool_id)
    sub = _get_sub_category(pool, sub_id)
    before = {"requiredCredits": sub.required_credits, "orderIndex": sub.order_index}

    if "requiredCredits" in payload:
        sub.required_credits = parse_int(payload["requiredCredits"], "requiredCredits", minimum=0)
    if "orderIndex" in payload:
        sub.order_index = parse_int(payload["orderIndex"], "orderIndex", minimum=0)

    record_audit(
        "SubCategoryPool",
        sub.id,
        UPDATE,
        f"Updated sub-category of {pool.name}",
        changes={"before": before, "after": {"requiredCredits": sub.required_credits, "orderIndex": sub.order_index}},
        curriculum_id=curriculum.id,
    )
    db.session.commit()
    return sub


def delete_sub_category(user, curriculum_id: int, pool_id: int, sub_id: int) -> None:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    pool = _get_pool(curriculum, pool_id)
    sub = _get_sub_category(pool, sub_id)

    db.session.delete(sub)
    record_audit(
        "SubCategoryPool",
        sub_id,
        DELETE,
        f"Removed a sub-category from {pool.name}",
        curriculum_id=curriculum.id,
    )
    db.session.commit()


def attach_course(user, curriculum_id: int, pool_id: int, sub_id: int, course_id) -> AttachedPoolCourse:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    pool = _get_pool(curriculum, pool_id)
    sub = _get_sub_category(pool, sub_id)
    course_id = parse_int(course_id, "courseId")

    cc = CurriculumCourse.query.filter_by(curriculum_id=curriculum.id, course_id=course_id).first()
    if cc is None:
        raise InvalidInput("Course is not part of this curriculum")

    types = {t.id: t for t in CourseType.query.filter_by(department_id=curriculum.department_id).all()}
    course_type_id = course_type_map([course_id], curriculum.department_id).get(course_id)
    if sub.course_type_id not in type_lineage(course_type_id, types):
        raise InvalidInput(f"{cc.course.code} does not carry the {sub.course_type.name} course type")

    if AttachedPoolCourse.query.filter_by(sub_category_id=sub.id, course_id=course_id).first():
        raise ConflictError(f"{cc.course.code} is already attached", code="DUPLICATE")

    attached = AttachedPoolCourse(sub_category_id=sub.id, course_id=course_id)
    db.session.add(attached)
    record_audit(
        "AttachedPoolCourse",
        sub.id,
        ASSIGN,
        f"Attached {cc.course.code} to {pool.name} / {sub.course_type.name}",
        curriculum_id=curriculum.id,
        course_id=course_id,
    )
    db.session.commit()
    return attached


def detach_course(user, curriculum_id: int, pool_id: int, sub_id: int, course_id: int) -> None:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    pool = _get_pool(curriculum, pool_id)
    sub = _get_sub_category(pool, sub_id)

    attached = AttachedPoolCourse.query.filter_by(sub_category_id=sub.id, course_id=course_id).first()
    if attached is None:
        raise NotFoundError("Course is not attached to this sub-category")

    db.session.delete(attached)
    record_audit(
        "AttachedPoolCourse",
        sub.id,
        UNASSIGN,
        f"Detached a course from {pool.name}",
        curriculum_id=curriculum.id,
        course_id=course_id,
    )
    db.session.commit()


# -----------------------------
# Credit distribution
# -----------------------------
def calculate_pool_credits(pools, courses, course_types_by_course: dict, types_by_id: dict) -> list[dict]:
    """Distribute curriculum course credits over pools.

    Pools are evaluated by ``order_index``. Each pool takes the matching
    courses that no earlier pool consumed, in curriculum order, skipping any
    course that would push it past ``max_credits``. A course matches when its
    type, or one of that type's ancestors, is a pool source. Credits of
    matching courses beyond ``max_credits`` are reported as overflow.

    ``courses`` is a list of ``(course_id, code, credits)`` tuples.
    """
    consumed: set = set()
    results = []

    for pool in sorted(pools, key=lambda p: (p.order_index, p.id)):
        if not pool.enabled:
            continue
        sources = pool.source_type_ids()

        matching = [
            c for c in courses
            if c[0] not in consumed
            and type_lineage(course_types_by_course.get(c[0]), types_by_id) & sources
        ]

        applied = 0
        matched = []
        for course_id, code, credits in matching:
            if pool.max_credits is not None and applied + credits > pool.max_credits:
                continue
            applied += credits
            matched.append(code)
            consumed.add(course_id)

        potential = sum(c[2] for c in matching)
        overflow = max(0, potential - pool.max_credits) if pool.max_credits is not None else 0

        results.append(
            {
                "poolId": pool.id,
                "poolName": pool.name,
                "minCredits": pool.min_credits,
                "maxCredits": pool.max_credits,
                "appliedCredits": applied,
                "remainingCredits": max(0, pool.min_credits - applied),
                "overflowCredits": overflow,
                "isSatisfied": applied >= pool.min_credits,
                "matchedCourses": matched,
            }
        )

    return results


def detect_pool_overlaps(pools) -> dict:
    """pool id -> ids of other pools sharing at least one source type."""
    overlaps = {}
    for a in pools:
        others = [b.id for b in pools if b.id != a.id and a.source_type_ids() & b.source_type_ids()]
        if others:
            overlaps[a.id] = others
    return overlaps


def pool_summary(user, curriculum_id: int) -> dict:
    curriculum = get_accessible_curriculum(user, curriculum_id)
    pools = CreditPool.query.filter_by(curriculum_id=curriculum.id).all()

    ccs = curriculum.curriculum_courses
    courses = [(cc.course_id, cc.course.code, cc.course.credits) for cc in ccs]
    types_by_id = {t.id: t for t in CourseType.query.filter_by(department_id=curriculum.department_id).all()}
    course_types = course_type_map([c[0] for c in courses], curriculum.department_id)

    pools_out = calculate_pool_credits(pools, courses, course_types, types_by_id)
    return {
        "curriculumId": curriculum.id,
        "pools": pools_out,
        "totalOverflowCredits": sum(p["overflowCredits"] for p in pools_out),
        "overlaps": {str(k): v for k, v in detect_pool_overlaps(pools).items()},
    }
