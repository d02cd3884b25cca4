class ServiceError(Exception):
    """Base for errors a service raises on purpose.

    ``code`` is the machine-readable error code returned to clients
    (``{"success": false, "error": {"code", "message"}}``) and ``status`` the
    HTTP status the blueprint error handler answers with.
    """

    status = 400
    default_code = "ERROR"

    def __init__(self, message: str, code: str | None = None, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        if status is not None:
            self.status = status

    def to_dict(self) -> dict:
        return {"success": False, "error": {"code": self.code, "message": self.message}}


class ValidationError(ServiceError):
    status = 400
    default_code = "VALIDATION_ERROR"


class InvalidInput(ValidationError):
    default_code = "INVALID_INPUT"


class NotFoundError(ServiceError):
    status = 404
    default_code = "NOT_FOUND"


class ConflictError(ServiceError):
    status = 409
    default_code = "CONFLICT"


class ForbiddenError(ServiceError):
    status = 403
    default_code = "FORBIDDEN"


class UnauthorizedError(ServiceError):
    status = 401
    default_code = "UNAUTHORIZED"
