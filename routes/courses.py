from flask import request

from auth.decorators import role_required
from models.user import CHAIRPERSON
from services import constraints, courses
from utils.pagination import page_params

from . import api_bp, json_body, ok


# -----------------------------
# Catalog
# -----------------------------
@api_bp.route("/courses", methods=["GET"])
@role_required(CHAIRPERSON)
def search_courses():
    page, limit = page_params(request.args)
    result = courses.search_courses(
        text=request.args.get("search"),
        category=request.args.get("category"),
        credits=request.args.get("credits"),
        page=page,
        limit=limit,
    )
    return ok(**result)


@api_bp.route("/courses", methods=["POST"])
@role_required(CHAIRPERSON)
def create_course():
    course = courses.create_course(json_body())
    return ok(201, course=course.to_dict())


@api_bp.route("/courses/bulk", methods=["POST"])
@role_required(CHAIRPERSON)
def bulk_create_courses():
    result = courses.bulk_upsert_courses(json_body().get("courses"))
    return ok(**result)


@api_bp.route("/courses/import", methods=["POST"])
@role_required(CHAIRPERSON)
def import_courses():
    result = courses.import_courses_file(request.files.get("file"))
    return ok(**result)


@api_bp.route("/courses/<int:course_id>", methods=["GET"])
@role_required(CHAIRPERSON)
def get_course(course_id: int):
    return ok(course=courses.get_course(course_id))


@api_bp.route("/courses/<int:course_id>", methods=["PUT"])
@role_required(CHAIRPERSON)
def update_course(course_id: int):
    course = courses.update_course(course_id, json_body())
    return ok(course=course.to_dict())


@api_bp.route("/courses/<int:course_id>", methods=["DELETE"])
@role_required(CHAIRPERSON)
def delete_course(course_id: int):
    courses.soft_delete_course(course_id)
    return ok(message="Course deleted")


# -----------------------------
# Course-level constraints
# -----------------------------
@api_bp.route("/courses/<int:course_id>/constraints", methods=["GET"])
@role_required(CHAIRPERSON)
def get_course_constraints(course_id: int):
    return ok(constraints=constraints.get_course_constraints(course_id))


@api_bp.route("/courses/<int:course_id>/constraints", methods=["PUT"])
@role_required(CHAIRPERSON)
def set_course_flags(course_id: int):
    course = constraints.set_course_flags(course_id, json_body())
    return ok(course=course.to_dict())


@api_bp.route("/courses/<int:course_id>/prerequisites", methods=["POST"])
@role_required(CHAIRPERSON)
def add_prerequisite(course_id: int):
    edge = constraints.add_prerequisite(course_id, json_body().get("prerequisiteId"))
    return ok(201, relationId=edge.id)


@api_bp.route("/courses/<int:course_id>/prerequisites/<int:relation_id>", methods=["DELETE"])
@role_required(CHAIRPERSON)
def remove_prerequisite(course_id: int, relation_id: int):
    constraints.remove_prerequisite(course_id, relation_id)
    return ok(message="Prerequisite removed")


@api_bp.route("/courses/<int:course_id>/corequisites", methods=["POST"])
@role_required(CHAIRPERSON)
def add_corequisite(course_id: int):
    edge = constraints.add_corequisite(course_id, json_body().get("corequisiteId"))
    return ok(201, relationId=edge.id)


@api_bp.route("/courses/<int:course_id>/corequisites/<int:relation_id>", methods=["DELETE"])
@role_required(CHAIRPERSON)
def remove_corequisite(course_id: int, relation_id: int):
    constraints.remove_corequisite(course_id, relation_id)
    return ok(message="Corequisite removed")
