from flask_login import current_user

from auth.decorators import role_required
from models.user import CHAIRPERSON
from services import elective_rules

from . import api_bp, json_body, ok


@api_bp.route("/curricula/<int:curriculum_id>/elective-rules", methods=["GET"])
@role_required(CHAIRPERSON)
def list_elective_rules(curriculum_id: int):
    return ok(**elective_rules.list_rules(current_user, curriculum_id))


@api_bp.route("/curricula/<int:curriculum_id>/elective-rules", methods=["POST"])
@role_required(CHAIRPERSON)
def create_elective_rule(curriculum_id: int):
    rule = elective_rules.create_rule(current_user, curriculum_id, json_body())
    return ok(201, electiveRule=rule.to_dict())


@api_bp.route("/curricula/<int:curriculum_id>/elective-rules/<int:rule_id>", methods=["PUT"])
@role_required(CHAIRPERSON)
def update_elective_rule(curriculum_id: int, rule_id: int):
    rule = elective_rules.update_rule(current_user, curriculum_id, rule_id, json_body())
    return ok(electiveRule=rule.to_dict())


@api_bp.route("/curricula/<int:curriculum_id>/elective-rules/<int:rule_id>", methods=["DELETE"])
@role_required(CHAIRPERSON)
def delete_elective_rule(curriculum_id: int, rule_id: int):
    elective_rules.delete_rule(current_user, curriculum_id, rule_id)
    return ok(message="Elective rule deleted")


@api_bp.route("/curricula/<int:curriculum_id>/elective-rules/settings", methods=["PUT"])
@role_required(CHAIRPERSON)
def update_elective_settings(curriculum_id: int):
    result = elective_rules.update_settings(current_user, curriculum_id, json_body())
    return ok(message="Elective rules settings updated", **result)
