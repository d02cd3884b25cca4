"""Read-only curriculum views for advisors and students.

Only active curricula are visible. Course flags are reported merged with the
curriculum's overrides.
"""
from __future__ import annotations

from models.curriculum import Curriculum
from services.constraints import merged_flags
from services.errors import NotFoundError
from utils.pagination import pagination_dict


def _active_curriculum(curriculum_id: int) -> Curriculum:
    curriculum = Curriculum.query.filter_by(id=curriculum_id, is_active=True).first()
    if curriculum is None:
        raise NotFoundError("Curriculum not found")
    return curriculum


def list_public_curricula(faculty_id=None, department_id=None, year=None, page=1, limit=20) -> dict:
    q = Curriculum.query.filter_by(is_active=True)
    if faculty_id:
        q = q.filter_by(faculty_id=faculty_id)
    if department_id:
        q = q.filter_by(department_id=department_id)
    if year:
        q = q.filter_by(year=str(year))

    result = q.order_by(Curriculum.updated_at.desc(), Curriculum.id.desc()).paginate(
        page=page, per_page=limit, error_out=False
    )
    return {
        "curricula": [c.to_dict() for c in result.items],
        "pagination": pagination_dict(result, page, limit),
    }


def get_public_curriculum(curriculum_id: int) -> dict:
    curriculum = _active_curriculum(curriculum_id)
    data = curriculum.to_dict()
    data["department"] = curriculum.department.to_dict()

    courses = []
    for cc in curriculum.curriculum_courses:
        course = cc.course
        courses.append(
            {
                **course.to_summary(),
                "creditHours": course.credit_hours,
                "category": course.category,
                "isRequired": cc.is_required,
                "semester": cc.semester,
                "year": cc.year,
                **merged_flags(cc),
                "prerequisites": sorted(
                    {e.prerequisite.code for e in course.prerequisites}
                    | {r.prerequisite_course.course.code for r in cc.curriculum_prerequisites}
                ),
                "corequisites": sorted(
                    {e.corequisite.code for e in course.corequisites}
                    | {r.corequisite_course.course.code for r in cc.curriculum_corequisites}
                ),
            }
        )
    data["courses"] = courses
    data["electiveRules"] = [r.to_dict() for r in curriculum.elective_rules]
    data["concentrations"] = [c.to_dict() for c in curriculum.concentrations]
    return data


def get_public_constraints(curriculum_id: int) -> list[dict]:
    return [c.to_dict() for c in _active_curriculum(curriculum_id).constraints]


def get_public_elective_rules(curriculum_id: int) -> list[dict]:
    return [r.to_dict() for r in _active_curriculum(curriculum_id).elective_rules]


def get_public_blacklists(curriculum_id: int) -> list[dict]:
    return [cb.blacklist.to_dict() for cb in _active_curriculum(curriculum_id).blacklists]
