from flask import request

from auth.decorators import role_required
from models.user import SUPER_ADMIN
from services.audit import list_audit_logs
from utils.pagination import page_params

from . import api_bp, ok


@api_bp.route("/admin/audit", methods=["GET"])
@role_required(SUPER_ADMIN)
def list_audit():
    page, limit = page_params(request.args)
    result = list_audit_logs(
        entity_type=request.args.get("entityType"),
        action=request.args.get("action"),
        curriculum_id=request.args.get("curriculumId", type=int),
        page=page,
        limit=limit,
    )
    return ok(**result)
