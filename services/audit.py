from flask_login import current_user

from extensions import db
from models.audit_log import AuditLog, AUDIT_ACTIONS
from utils.logging import get_logger
from utils.pagination import pagination_dict

logger = get_logger(__name__)


def _current_user_id():
    # outside a request (scripts, seeds) there is no user
    try:
        return current_user.id if current_user.is_authenticated else None
    except (AttributeError, RuntimeError):
        return None


def record_audit(
    entity_type: str,
    entity_id,
    action: str,
    description: str,
    changes: dict | None = None,
    curriculum_id: int | None = None,
    course_id: int | None = None,
    user_id: int | None = None,
) -> AuditLog:
    """Queue an audit row on the current session.

    Does not commit: the row goes in with the mutation it describes, so a
    rollback drops both.
    """
    if action not in AUDIT_ACTIONS:
        raise ValueError(f"unknown audit action {action!r}")

    entry = AuditLog(
        user_id=user_id if user_id is not None else _current_user_id(),
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        description=description,
        changes=changes,
        curriculum_id=curriculum_id,
        course_id=course_id,
    )
    db.session.add(entry)
    logger.info(
        "audit",
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        curriculum_id=curriculum_id,
        course_id=course_id,
    )
    return entry


def list_audit_logs(entity_type=None, action=None, curriculum_id=None, page=1, limit=20) -> dict:
    q = AuditLog.query
    if entity_type:
        q = q.filter_by(entity_type=entity_type)
    if action:
        q = q.filter_by(action=action)
    if curriculum_id:
        q = q.filter_by(curriculum_id=curriculum_id)

    result = q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).paginate(
        page=page, per_page=limit, error_out=False
    )
    return {
        "logs": [e.to_dict() for e in result.items],
        "pagination": pagination_dict(result, page, limit),
    }
