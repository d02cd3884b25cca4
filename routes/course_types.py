from flask import request
from flask_login import current_user

from auth.decorators import role_required
from models.user import CHAIRPERSON
from services import course_types

from . import api_bp, json_body, ok


@api_bp.route("/course-types", methods=["GET"])
@role_required(CHAIRPERSON)
def list_course_types():
    department_id = request.args.get("departmentId", type=int)
    return ok(courseTypes=course_types.list_course_types(current_user, department_id))


@api_bp.route("/course-types", methods=["POST"])
@role_required(CHAIRPERSON)
def create_course_type():
    ct = course_types.create_course_type(current_user, json_body())
    return ok(201, courseType=ct.to_dict())


@api_bp.route("/course-types/assign", methods=["POST"])
@role_required(CHAIRPERSON)
def assign_course_type():
    return ok(**course_types.assign_course_type(current_user, json_body()))


@api_bp.route("/course-types/<int:course_type_id>", methods=["PUT"])
@role_required(CHAIRPERSON)
def update_course_type(course_type_id: int):
    ct = course_types.update_course_type(current_user, course_type_id, json_body())
    return ok(courseType=ct.to_dict())


@api_bp.route("/course-types/<int:course_type_id>", methods=["DELETE"])
@role_required(CHAIRPERSON)
def delete_course_type(course_type_id: int):
    course_types.delete_course_type(current_user, course_type_id)
    return ok(message="Course type deleted")
