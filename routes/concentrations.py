from flask_login import current_user

from auth.decorators import role_required
from models.user import CHAIRPERSON
from services import concentrations

from . import api_bp, json_body, ok


@api_bp.route("/concentrations", methods=["GET"])
@role_required(CHAIRPERSON)
def list_concentrations():
    return ok(concentrations=concentrations.list_concentrations(current_user))


@api_bp.route("/concentrations", methods=["POST"])
@role_required(CHAIRPERSON)
def create_concentration():
    c = concentrations.create_concentration(current_user, json_body())
    return ok(201, concentration=c.to_dict())


@api_bp.route("/concentrations/<int:concentration_id>", methods=["GET"])
@role_required(CHAIRPERSON)
def get_concentration(concentration_id: int):
    c = concentrations.get_accessible_concentration(current_user, concentration_id)
    return ok(concentration=c.to_dict())


@api_bp.route("/concentrations/<int:concentration_id>", methods=["PUT"])
@role_required(CHAIRPERSON)
def update_concentration(concentration_id: int):
    c = concentrations.update_concentration(current_user, concentration_id, json_body())
    return ok(concentration=c.to_dict())


@api_bp.route("/concentrations/<int:concentration_id>", methods=["DELETE"])
@role_required(CHAIRPERSON)
def delete_concentration(concentration_id: int):
    concentrations.delete_concentration(current_user, concentration_id)
    return ok(message="Concentration deleted")


@api_bp.route("/curricula/<int:curriculum_id>/concentrations", methods=["GET"])
@role_required(CHAIRPERSON)
def list_curriculum_concentrations(curriculum_id: int):
    return ok(concentrations=concentrations.list_curriculum_concentrations(current_user, curriculum_id))


@api_bp.route("/curricula/<int:curriculum_id>/concentrations", methods=["POST"])
@role_required(CHAIRPERSON)
def attach_curriculum_concentration(curriculum_id: int):
    link = concentrations.attach_concentration(current_user, curriculum_id, json_body())
    return ok(201, concentration=link.to_dict())


@api_bp.route("/curricula/<int:curriculum_id>/concentrations/<int:concentration_id>", methods=["DELETE"])
@role_required(CHAIRPERSON)
def detach_curriculum_concentration(curriculum_id: int, concentration_id: int):
    concentrations.detach_concentration(current_user, curriculum_id, concentration_id)
    return ok(message="Concentration detached")
