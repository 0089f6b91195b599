from flask import jsonify
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    """Base error for the engine. Carries a stable ``kind`` and an HTTP status."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message, "kind": self.kind}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ApiError):
    kind = "validation_error"
    status_code = 400


class AuthError(ApiError):
    kind = "auth_error"
    status_code = 401


class ForbiddenError(ApiError):
    kind = "forbidden"
    status_code = 403


class NotFoundError(ApiError):
    kind = "not_found"
    status_code = 404


class ConflictError(ApiError):
    kind = "conflict"
    status_code = 409


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def _api_error(err: ApiError):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def _http_error(err: HTTPException):
        return jsonify(error=err.description, kind=err.name.lower().replace(" ", "_")), err.code
