from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from extensions import db, login_manager
from models.user import User
from utils.logging import get_logger

logger = get_logger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return (
        jsonify({"success": False, "error": {"code": "UNAUTHORIZED", "message": "Authentication required"}}),
        401,
    )


@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or request.form
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    user = User.query.filter_by(email=email).first()

    if user and user.check_password(password):
        login_user(user)
        logger.info("login", user_id=user.id, role=user.role)
        return jsonify({"success": True, "user": user.to_dict()})

    logger.info("login_failed", email=email)
    return (
        jsonify({"success": False, "error": {"code": "UNAUTHORIZED", "message": "Invalid email or password"}}),
        401,
    )


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logger.info("logout", user_id=current_user.id)
    logout_user()
    return jsonify({"success": True})


@auth_bp.route("/me")
@login_required
def me():
    return jsonify({"success": True, "user": current_user.to_dict()})
