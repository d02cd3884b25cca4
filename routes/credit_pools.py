from flask_login import current_user

from auth.decorators import role_required
from models.user import CHAIRPERSON
from services import credit_pools

from . import api_bp, json_body, ok

POOLS = "/curricula/<int:curriculum_id>/credit-pools"


@api_bp.route(POOLS, methods=["GET"])
@role_required(CHAIRPERSON)
def list_credit_pools(curriculum_id: int):
    return ok(pools=credit_pools.list_pools(current_user, curriculum_id))


@api_bp.route(POOLS, methods=["POST"])
@role_required(CHAIRPERSON)
def create_credit_pool(curriculum_id: int):
    pool = credit_pools.create_pool(current_user, curriculum_id, json_body())
    return ok(201, pool=pool.to_dict())


@api_bp.route(POOLS + "/order", methods=["PUT"])
@role_required(CHAIRPERSON)
def reorder_credit_pools(curriculum_id: int):
    pools = credit_pools.reorder_pools(current_user, curriculum_id, json_body().get("poolIds"))
    return ok(pools=pools)


@api_bp.route(POOLS + "/summary", methods=["GET"])
@role_required(CHAIRPERSON)
def credit_pool_summary(curriculum_id: int):
    return ok(summary=credit_pools.pool_summary(current_user, curriculum_id))


@api_bp.route(POOLS + "/<int:pool_id>", methods=["PUT"])
@role_required(CHAIRPERSON)
def update_credit_pool(curriculum_id: int, pool_id: int):
    pool = credit_pools.update_pool(current_user, curriculum_id, pool_id, json_body())
    return ok(pool=pool.to_dict())


@api_bp.route(POOLS + "/<int:pool_id>", methods=["DELETE"])
@role_required(CHAIRPERSON)
def delete_credit_pool(curriculum_id: int, pool_id: int):
    credit_pools.delete_pool(current_user, curriculum_id, pool_id)
    return ok(message="Credit pool deleted")


@api_bp.route(POOLS + "/<int:pool_id>/sub-categories", methods=["POST"])
@role_required(CHAIRPERSON)
def add_pool_sub_category(curriculum_id: int, pool_id: int):
    sub = credit_pools.add_sub_category(current_user, curriculum_id, pool_id, json_body())
    return ok(201, subCategory=sub.to_dict())


@api_bp.route(POOLS + "/<int:pool_id>/sub-categories/<int:sub_id>", methods=["PUT"])
@role_required(CHAIRPERSON)
def update_pool_sub_category(curriculum_id: int, pool_id: int, sub_id: int):
    sub = credit_pools.update_sub_category(current_user, curriculum_id, pool_id, sub_id, json_body())
    return ok(subCategory=sub.to_dict())


@api_bp.route(POOLS + "/<int:pool_id>/sub-categories/<int:sub_id>", methods=["DELETE"])
@role_required(CHAIRPERSON)
def delete_pool_sub_category(curriculum_id: int, pool_id: int, sub_id: int):
    credit_pools.delete_sub_category(current_user, curriculum_id, pool_id, sub_id)
    return ok(message="Sub-category deleted")


@api_bp.route(POOLS + "/<int:pool_id>/sub-categories/<int:sub_id>/courses", methods=["POST"])
@role_required(CHAIRPERSON)
def attach_pool_course(curriculum_id: int, pool_id: int, sub_id: int):
    credit_pools.attach_course(current_user, curriculum_id, pool_id, sub_id, json_body().get("courseId"))
    return ok(201, message="Course attached")


@api_bp.route(
    POOLS + "/<int:pool_id>/sub-categories/<int:sub_id>/courses/<int:course_id>",
    methods=["DELETE"],
)
@role_required(CHAIRPERSON)
def detach_pool_course(curriculum_id: int, pool_id: int, sub_id: int, course_id: int):
    credit_pools.detach_course(current_user, curriculum_id, pool_id, sub_id, course_id)
    return ok(message="Course detached")
