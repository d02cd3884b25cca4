from flask import request
from flask_login import current_user

from auth.decorators import role_required
from models.user import CHAIRPERSON
from services import constraints, curricula
from utils.pagination import page_params

from . import api_bp, json_body, ok


@api_bp.route("/curricula", methods=["GET"])
@role_required(CHAIRPERSON)
def list_curricula():
    page, limit = page_params(request.args)
    result = curricula.list_curricula(
        current_user,
        search=request.args.get("search"),
        page=page,
        limit=limit,
        include_inactive=request.args.get("includeInactive") == "true",
    )
    return ok(**result)


@api_bp.route("/curricula", methods=["POST"])
@role_required(CHAIRPERSON)
def create_curriculum():
    curriculum = curricula.create_curriculum(current_user, json_body())
    return ok(201, curriculum=curriculum.to_dict(include_children=True))


@api_bp.route("/curricula/<int:curriculum_id>", methods=["GET"])
@role_required(CHAIRPERSON)
def get_curriculum(curriculum_id: int):
    return ok(curriculum=curricula.get_curriculum(current_user, curriculum_id))


@api_bp.route("/curricula/<int:curriculum_id>", methods=["PUT"])
@role_required(CHAIRPERSON)
def update_curriculum(curriculum_id: int):
    curriculum = curricula.update_curriculum(current_user, curriculum_id, json_body())
    return ok(curriculum=curriculum.to_dict())


@api_bp.route("/curricula/<int:curriculum_id>", methods=["DELETE"])
@role_required(CHAIRPERSON)
def deactivate_curriculum(curriculum_id: int):
    curricula.deactivate_curriculum(current_user, curriculum_id)
    return ok(message="Curriculum deactivated")


@api_bp.route("/curricula/<int:curriculum_id>/clone", methods=["POST"])
@role_required(CHAIRPERSON)
def clone_curriculum(curriculum_id: int):
    clone = curricula.clone_curriculum(current_user, curriculum_id, json_body())
    return ok(201, curriculum=clone.to_dict())


# -----------------------------
# Curriculum courses
# -----------------------------
@api_bp.route("/curricula/<int:curriculum_id>/courses", methods=["POST"])
@role_required(CHAIRPERSON)
def add_curriculum_course(curriculum_id: int):
    cc = curricula.add_course_to_curriculum(current_user, curriculum_id, json_body())
    return ok(201, curriculumCourse=cc.to_dict())


@api_bp.route("/curricula/<int:curriculum_id>/courses/<int:course_id>", methods=["PUT"])
@role_required(CHAIRPERSON)
def update_curriculum_course(curriculum_id: int, course_id: int):
    cc = curricula.update_curriculum_course(current_user, curriculum_id, course_id, json_body())
    return ok(curriculumCourse=cc.to_dict())


@api_bp.route("/curricula/<int:curriculum_id>/courses/<int:course_id>", methods=["DELETE"])
@role_required(CHAIRPERSON)
def remove_curriculum_course(curriculum_id: int, course_id: int):
    curricula.remove_course_from_curriculum(current_user, curriculum_id, course_id)
    return ok(message="Course removed from curriculum")


# -----------------------------
# Curriculum-scoped course constraints
# -----------------------------
@api_bp.route("/curricula/<int:curriculum_id>/courses/<int:cc_id>/constraints", methods=["GET"])
@role_required(CHAIRPERSON)
def get_curriculum_course_constraints(curriculum_id: int, cc_id: int):
    data = constraints.get_curriculum_course_constraints(current_user, curriculum_id, cc_id)
    return ok(constraints=data)


@api_bp.route("/curricula/<int:curriculum_id>/courses/<int:cc_id>/constraints", methods=["PUT"])
@role_required(CHAIRPERSON)
def set_curriculum_course_overrides(curriculum_id: int, cc_id: int):
    data = constraints.set_curriculum_course_overrides(current_user, curriculum_id, cc_id, json_body())
    return ok(**data)


@api_bp.route("/curricula/<int:curriculum_id>/courses/<int:cc_id>/prerequisites", methods=["POST"])
@role_required(CHAIRPERSON)
def add_curriculum_prerequisite(curriculum_id: int, cc_id: int):
    edge = constraints.add_curriculum_prerequisite(current_user, curriculum_id, cc_id, json_body())
    return ok(201, relationId=edge.id)


@api_bp.route(
    "/curricula/<int:curriculum_id>/courses/<int:cc_id>/prerequisites/<int:relation_id>",
    methods=["DELETE"],
)
@role_required(CHAIRPERSON)
def remove_curriculum_prerequisite(curriculum_id: int, cc_id: int, relation_id: int):
    constraints.remove_curriculum_prerequisite(current_user, curriculum_id, cc_id, relation_id)
    return ok(message="Prerequisite removed")


@api_bp.route("/curricula/<int:curriculum_id>/courses/<int:cc_id>/corequisites", methods=["POST"])
@role_required(CHAIRPERSON)
def add_curriculum_corequisite(curriculum_id: int, cc_id: int):
    edge = constraints.add_curriculum_corequisite(current_user, curriculum_id, cc_id, json_body())
    return ok(201, relationId=edge.id)


@api_bp.route(
    "/curricula/<int:curriculum_id>/courses/<int:cc_id>/corequisites/<int:relation_id>",
    methods=["DELETE"],
)
@role_required(CHAIRPERSON)
def remove_curriculum_corequisite(curriculum_id: int, cc_id: int, relation_id: int):
    constraints.remove_curriculum_corequisite(current_user, curriculum_id, cc_id, relation_id)
    return ok(message="Corequisite removed")


# -----------------------------
# Curriculum-level constraints
# -----------------------------
@api_bp.route("/curricula/<int:curriculum_id>/constraints", methods=["GET"])
@role_required(CHAIRPERSON)
def list_curriculum_constraints(curriculum_id: int):
    return ok(constraints=constraints.list_curriculum_constraints(current_user, curriculum_id))


@api_bp.route("/curricula/<int:curriculum_id>/constraints", methods=["POST"])
@role_required(CHAIRPERSON)
def create_curriculum_constraint(curriculum_id: int):
    c = constraints.create_curriculum_constraint(current_user, curriculum_id, json_body())
    return ok(201, constraint=c.to_dict())


@api_bp.route("/curricula/<int:curriculum_id>/constraints/<int:constraint_id>", methods=["PUT"])
@role_required(CHAIRPERSON)
def update_curriculum_constraint(curriculum_id: int, constraint_id: int):
    c = constraints.update_curriculum_constraint(current_user, curriculum_id, constraint_id, json_body())
    return ok(constraint=c.to_dict())


@api_bp.route("/curricula/<int:curriculum_id>/constraints/<int:constraint_id>", methods=["DELETE"])
@role_required(CHAIRPERSON)
def delete_curriculum_constraint(curriculum_id: int, constraint_id: int):
    constraints.delete_curriculum_constraint(current_user, curriculum_id, constraint_id)
    return ok(message="Constraint deleted")
