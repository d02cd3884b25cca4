from functools import wraps

from flask_login import current_user, login_required

from services.errors import ForbiddenError


def role_required(*roles):
    """Require a logged-in user whose role is one of ``roles``.

    No session -> 401 via the login manager; wrong role -> FORBIDDEN (403).
    """

    def decorator(view):
        @wraps(view)
        @login_required
        def wrapped(*args, **kwargs):
            if current_user.role not in roles:
                raise ForbiddenError(f"{' or '.join(r.title().replace('_', ' ') for r in roles)} access required")
            return view(*args, **kwargs)

        return wrapped

    return decorator
