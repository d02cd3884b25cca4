from flask import Blueprint, jsonify, request
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from extensions import db
from services.errors import InvalidInput, ServiceError
from utils.logging import get_logger

logger = get_logger(__name__)

# single JSON blueprint for everything except auth (has its own)
api_bp = Blueprint("api", __name__, url_prefix="/api")


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidInput("Request body must be a JSON object")
    return data


def ok(status: int = 200, **payload):
    return jsonify({"success": True, **payload}), status


def _error(code: str, message: str, status: int):
    return jsonify({"success": False, "error": {"code": code, "message": message}}), status


@api_bp.errorhandler(ServiceError)
def handle_service_error(e: ServiceError):
    db.session.rollback()
    logger.info("service_error", code=e.code, status=e.status, path=request.path, message=e.message)
    return _error(e.code, e.message, e.status)


@api_bp.errorhandler(IntegrityError)
def handle_integrity_error(e: IntegrityError):
    # a uniqueness/FK rule the service checks did not catch (e.g. a concurrent insert)
    db.session.rollback()
    logger.warning("integrity_error", path=request.path, error=str(e.orig))
    return _error("CONFLICT", "The change conflicts with existing data", 409)


@api_bp.errorhandler(Exception)
def handle_unexpected_error(e: Exception):
    if isinstance(e, HTTPException):
        return _error(e.name.upper().replace(" ", "_"), e.description, e.code)

    db.session.rollback()
    logger.exception("unhandled_error", path=request.path, method=request.method)
    return _error("INTERNAL_ERROR", "An unexpected error occurred", 500)


#  import route modules (they register on api_bp, hence the # noqa: F401)
from . import courses           # noqa: F401,E402
from . import curricula         # noqa: F401,E402
from . import elective_rules    # noqa: F401,E402
from . import credit_pools      # noqa: F401,E402
from . import course_types      # noqa: F401,E402
from . import blacklists        # noqa: F401,E402
from . import concentrations    # noqa: F401,E402
from . import downloads         # noqa: F401,E402
from . import public            # noqa: F401,E402
from . import audit             # noqa: F401,E402
