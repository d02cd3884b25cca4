from flask import request
from flask_login import current_user

from auth.decorators import role_required
from models.user import CHAIRPERSON
from services import blacklists

from . import api_bp, json_body, ok


@api_bp.route("/blacklists", methods=["GET"])
@role_required(CHAIRPERSON)
def list_blacklists():
    items = blacklists.list_blacklists(
        current_user,
        search=request.args.get("search"),
        department_id=request.args.get("departmentId", type=int),
    )
    return ok(blacklists=items)


@api_bp.route("/blacklists", methods=["POST"])
@role_required(CHAIRPERSON)
def create_blacklist():
    blacklist = blacklists.create_blacklist(current_user, json_body())
    return ok(201, blacklist=blacklist.to_dict())


@api_bp.route("/blacklists/<int:blacklist_id>", methods=["GET"])
@role_required(CHAIRPERSON)
def get_blacklist(blacklist_id: int):
    return ok(blacklist=blacklists.get_accessible_blacklist(current_user, blacklist_id).to_dict())


@api_bp.route("/blacklists/<int:blacklist_id>", methods=["PUT"])
@role_required(CHAIRPERSON)
def update_blacklist(blacklist_id: int):
    blacklist = blacklists.update_blacklist(current_user, blacklist_id, json_body())
    return ok(blacklist=blacklist.to_dict())


@api_bp.route("/blacklists/<int:blacklist_id>", methods=["DELETE"])
@role_required(CHAIRPERSON)
def delete_blacklist(blacklist_id: int):
    blacklists.delete_blacklist(current_user, blacklist_id)
    return ok(message="Blacklist deleted")


@api_bp.route("/blacklists/<int:blacklist_id>/courses", methods=["POST"])
@role_required(CHAIRPERSON)
def add_blacklist_courses(blacklist_id: int):
    return ok(blacklist=blacklists.add_courses(current_user, blacklist_id, json_body().get("courseIds")))


@api_bp.route("/blacklists/<int:blacklist_id>/courses", methods=["DELETE"])
@role_required(CHAIRPERSON)
def remove_blacklist_courses(blacklist_id: int):
    return ok(blacklist=blacklists.remove_courses(current_user, blacklist_id, json_body().get("courseIds")))


# -----------------------------
# Curriculum attachments
# -----------------------------
@api_bp.route("/curricula/<int:curriculum_id>/blacklists", methods=["GET"])
@role_required(CHAIRPERSON)
def list_curriculum_blacklists(curriculum_id: int):
    return ok(blacklists=blacklists.list_curriculum_blacklists(current_user, curriculum_id))


@api_bp.route("/curricula/<int:curriculum_id>/blacklists", methods=["POST"])
@role_required(CHAIRPERSON)
def attach_curriculum_blacklists(curriculum_id: int):
    result = blacklists.attach_blacklists(current_user, curriculum_id, json_body().get("blacklistIds"))
    return ok(201, message="Blacklists applied to curriculum", **result)


@api_bp.route("/curricula/<int:curriculum_id>/blacklists", methods=["DELETE"])
@role_required(CHAIRPERSON)
def detach_curriculum_blacklists(curriculum_id: int):
    result = blacklists.detach_blacklists(current_user, curriculum_id, json_body().get("blacklistIds"))
    return ok(message="Blacklists removed from curriculum", **result)


@api_bp.route("/curricula/<int:curriculum_id>/blacklists/<int:blacklist_id>", methods=["DELETE"])
@role_required(CHAIRPERSON)
def detach_curriculum_blacklist(curriculum_id: int, blacklist_id: int):
    blacklists.detach_blacklist(current_user, curriculum_id, blacklist_id)
    return ok(message="Blacklist removed from curriculum")
