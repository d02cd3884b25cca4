from flask import request
from flask_login import login_required

from services import public
from utils.pagination import page_params

from . import api_bp, ok


@api_bp.route("/public/curricula", methods=["GET"])
@login_required
def list_public_curricula():
    page, limit = page_params(request.args)
    result = public.list_public_curricula(
        faculty_id=request.args.get("facultyId", type=int),
        department_id=request.args.get("departmentId", type=int),
        year=request.args.get("year"),
        page=page,
        limit=limit,
    )
    return ok(**result)


@api_bp.route("/public/curricula/<int:curriculum_id>", methods=["GET"])
@login_required
def get_public_curriculum(curriculum_id: int):
    return ok(curriculum=public.get_public_curriculum(curriculum_id))


@api_bp.route("/public/curricula/<int:curriculum_id>/constraints", methods=["GET"])
@login_required
def get_public_constraints(curriculum_id: int):
    return ok(constraints=public.get_public_constraints(curriculum_id))


@api_bp.route("/public/curricula/<int:curriculum_id>/elective-rules", methods=["GET"])
@login_required
def get_public_elective_rules(curriculum_id: int):
    return ok(electiveRules=public.get_public_elective_rules(curriculum_id))


@api_bp.route("/public/curricula/<int:curriculum_id>/blacklists", methods=["GET"])
@login_required
def get_public_blacklists(curriculum_id: int):
    return ok(blacklists=public.get_public_blacklists(curriculum_id))
